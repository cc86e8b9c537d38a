"""Frame evaluation: turn sparse keyframes into a property patch at any frame."""

from collections.abc import Iterable, Mapping, Sequence

from ..model import COLOR_PROPS, AnimatableProp, Element, Keyframe, PropertyPatch, sort_keyframes
from ..model.patch import PropValue
from .color import interpolate_color
from .easing import EasingLibrary, get_easing_fn


def interpolate_number(a: float, b: float, t: float) -> float:
    return a + (b - a) * t


def interpolate_prop(prop: AnimatableProp, a: PropValue, b: PropValue, t: float) -> PropValue:
    """Blend two values of ``prop`` at eased progress ``t``.

    Colors are recognized by key, not by value type. Anything that is neither
    a color nor numeric holds ``a`` until the segment completes.
    """
    if prop in COLOR_PROPS:
        return interpolate_color(str(a), str(b), t)
    if _is_number(a) and _is_number(b):
        return interpolate_number(a, b, t)
    return a if t < 1 else b


def _is_number(value: object) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def evaluate(
    keyframes: Iterable[Keyframe],
    frame: float,
    easings: EasingLibrary | None = None,
) -> PropertyPatch:
    """Compute one element's animated property values at ``frame``.

    ``frame`` may be fractional. Before the first and after the last keyframe
    the endpoint patch is returned as-is; no extrapolation happens.
    """
    ordered = keyframes if isinstance(keyframes, _Sorted) else sort_keyframes(keyframes)
    if not ordered:
        return PropertyPatch()

    first, last = ordered[0], ordered[-1]
    if frame <= first.frame:
        return first.patch
    if frame >= last.frame:
        return last.patch

    prev, next_ = _bracket(ordered, frame)
    if next_.frame == frame:
        return next_.patch
    if next_.frame == prev.frame:
        return prev.patch

    t_raw = (frame - prev.frame) / (next_.frame - prev.frame)
    t = get_easing_fn(prev.easing, easings)(t_raw)

    values: dict[AnimatableProp, PropValue] = {}
    for prop in _union_keys(prev.patch, next_.patch):
        if prop not in next_.patch:
            values[prop] = prev.patch[prop]
        elif prop not in prev.patch:
            values[prop] = next_.patch[prop]
        else:
            values[prop] = interpolate_prop(prop, prev.patch[prop], next_.patch[prop], t)
    return PropertyPatch(values)


def evaluate_scene(
    elements: Iterable[Element],
    keyframes: Iterable[Keyframe],
    frame: float,
    easings: EasingLibrary | None = None,
) -> dict[str, PropertyPatch]:
    """Evaluate every element that owns keyframes; elements without any are omitted."""
    by_element: dict[str, list[Keyframe]] = {}
    for keyframe in keyframes:
        by_element.setdefault(keyframe.element_id, []).append(keyframe)

    result: dict[str, PropertyPatch] = {}
    for element in elements:
        track = by_element.get(element.id)
        if track:
            result[element.id] = evaluate(track, frame, easings)
    return result


class _Sorted(list):
    """A keyframe list already in frame order; ``evaluate`` skips re-sorting it."""


def sorted_track(keyframes: Iterable[Keyframe]) -> Sequence[Keyframe]:
    """Pre-sort a keyframe track for repeated evaluation."""
    return _Sorted(sort_keyframes(keyframes))


def _bracket(ordered: Sequence[Keyframe], frame: float) -> tuple[Keyframe, Keyframe]:
    for index in range(len(ordered) - 1):
        if ordered[index].frame <= frame <= ordered[index + 1].frame:
            return ordered[index], ordered[index + 1]
    # Unreachable once the endpoint checks have run.
    return ordered[-2], ordered[-1]


def _union_keys(a: Mapping, b: Mapping) -> list[AnimatableProp]:
    keys = list(a)
    keys.extend(key for key in b if key not in a)
    return keys
