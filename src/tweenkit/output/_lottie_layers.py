"""Shape-layer builders for Lottie (bodymovin 5.x) output."""

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from ..constants import FALLBACK_LINE_WIDTH, JUMP_FRAME_OFFSET
from ..engine import geometry
from ..engine.animator import Animator
from ..engine.color import hex_to_rgb
from ..engine.easing import EasingLibrary
from ..model import AnimatableProp as P
from ..model import BlendMode, Element, ElementType
from ._tracks import (
    interval_handles,
    is_keyframe_frame,
    left_limit,
    right_limit,
    lossy_easing_warning,
    plan_samples,
    values_differ,
)
from .base import ExportWarnings, element_skipped_warning

LottieValue = dict[str, Any]
Getter = Callable[[Element], Any]

_LINE_CAPS = {"butt": 1, "round": 2, "square": 3}
_LINE_JOINS = {"miter": 1, "round": 2, "bevel": 3}
_FILL_RULES = {"nonzero": 1, "evenodd": 2}
_BLEND_MODES = {
    BlendMode.NORMAL: 0,
    BlendMode.MULTIPLY: 1,
    BlendMode.SCREEN: 2,
    BlendMode.OVERLAY: 3,
    BlendMode.DARKEN: 4,
    BlendMode.LIGHTEN: 5,
}

_SIZE = (P.WIDTH, P.HEIGHT)
_ANCHOR_SOURCES = (*_SIZE, P.TRANSFORM_ORIGIN_X, P.TRANSFORM_ORIGIN_Y)
_POSITION_SOURCES = (P.X, P.Y, *_ANCHOR_SOURCES)

UNSUPPORTED_TYPES = {
    ElementType.TEXT: "Text elements are not supported in Lottie export and were skipped",
    ElementType.IMAGE: "Image elements are not supported in Lottie export and were skipped",
    ElementType.VIDEO: "Video elements are not supported in Lottie export and were skipped",
    ElementType.GROUP: (
        "Group containers are not supported in Lottie export; "
        "their children were exported as separate layers"
    ),
}
SHADOW_SKIPPED = "Drop shadows are not supported in Lottie export and were omitted"
BLUR_SKIPPED = "Layer blur is not supported in Lottie export and was omitted"
GRADIENT_AS_SOLID = "Gradient fills are exported as solid colors in Lottie"
MALFORMED_PATH = "Malformed path data was omitted from Lottie export"
PATH_STRUCTURE_STATIC = (
    "Path animations that change the number of sub-paths are exported statically in Lottie"
)


def _static(value: Any) -> LottieValue:
    return {"a": 0, "k": value}


def _frame_time(frame: float) -> float | int:
    return int(frame) if float(frame).is_integer() else frame


def _as_key_value(value: Any) -> list:
    if isinstance(value, list):
        return value
    return [value]


def lottie_color(hex_color: str) -> list[float]:
    r, g, b = hex_to_rgb(hex_color)
    return [r / 255, g / 255, b / 255, 1]


def subpath_shape(subpath: geometry.SubPath) -> dict[str, Any]:
    return {
        "i": [list(point) for point in subpath.in_tangents],
        "o": [list(point) for point in subpath.out_tangents],
        "v": [list(point) for point in subpath.vertices],
        "c": subpath.closed,
    }


def polyline_shape(points: list[geometry.Point], closed: bool) -> dict[str, Any]:
    return {
        "i": [[0, 0] for _ in points],
        "o": [[0, 0] for _ in points],
        "v": [list(point) for point in points],
        "c": closed,
    }


@dataclass
class LayerBuilder:
    """Builds one shape layer per exportable element."""

    animator: Animator
    easings: EasingLibrary
    warnings: ExportWarnings
    total_frames: int
    sampled: bool = False
    _resolved: dict[tuple[str, float], Element] = field(default_factory=dict)

    def resolve(self, element: Element, frame: float) -> Element:
        key = (element.id, frame)
        resolved = self._resolved.get(key)
        if resolved is None:
            resolved = self.animator.resolve(element, frame)
            self._resolved[key] = resolved
        return resolved

    # -- values ---------------------------------------------------------

    def value(self, element: Element, sources: tuple[P, ...], getter: Getter) -> LottieValue:
        """Static wrapper unless a keyframe of ``element`` records one of ``sources``."""
        if not self.animator.defines(element.id, sources):
            return _static(getter(element))
        return self.animated(element, getter)

    def animated(self, element: Element, getter: Getter) -> LottieValue:
        track = self.animator.keyframes(element.id)
        plan = plan_samples(track, self.easings, self.sampled)
        frames = plan.frames
        entries: list[dict[str, Any]] = []

        def value_at(frame: float) -> Any:
            return getter(self.resolve(element, frame))

        for index, frame in enumerate(frames):
            start = value_at(frame)
            if index == len(frames) - 1:
                entries.append({"t": _frame_time(frame), "s": _as_key_value(start)})
                break

            t = frame
            if is_keyframe_frame(track, frame):
                after = value_at(right_limit(frame))
                if values_differ(start, after):
                    # Hold the keyframe value for its own frame, then continue from the jump.
                    entries.append({"t": _frame_time(frame), "s": _as_key_value(start), "h": 1})
                    t, start = frame + JUMP_FRAME_OFFSET, after

            nxt = frames[index + 1]
            next_start = value_at(nxt)
            end = next_start
            if is_keyframe_frame(track, nxt):
                before = value_at(left_limit(nxt))
                if values_differ(before, next_start):
                    end = before
            x1, y1, x2, y2 = interval_handles(track, plan, frame, self.easings)
            entry: dict[str, Any] = {
                "t": _frame_time(t),
                "s": _as_key_value(start),
                "e": _as_key_value(end),
                "o": {"x": [x1], "y": [y1]},
                "i": {"x": [x2], "y": [y2]},
            }
            if not values_differ(start, end) and values_differ(end, next_start):
                entry["h"] = 1
            entries.append(entry)

        if frames[-1] < self.total_frames:
            tail = getter(self.resolve(element, self.total_frames))
            entries.append({"t": self.total_frames, "s": _as_key_value(tail)})
        return {"a": 1, "k": entries}

    # -- layer ----------------------------------------------------------

    def build(self, element: Element, index: int) -> dict[str, Any] | None:
        """Shape layer for ``element``, or None when this target cannot represent it."""
        if not element.visible:
            return None
        unsupported = UNSUPPORTED_TYPES.get(element.type)
        if unsupported is not None:
            self.warnings.add(unsupported)
            return None
        try:
            return self._layer(element, index)
        except ValueError as exc:
            self.warnings.add(element_skipped_warning(element, "Lottie", exc))
            return None

    def _layer(self, element: Element, index: int) -> dict[str, Any] | None:
        geometry_items = self._geometry(element)
        if not geometry_items:
            return None

        self._note_dropped_features(element)
        items = [*geometry_items]
        stroke = self._stroke(element)
        if stroke is not None:
            items.append(stroke)
        fill = self._fill(element)
        if fill is not None:
            items.append(fill)
        items.append(_group_transform())

        return {
            "ddd": 0,
            "ind": index,
            "ty": 4,
            "nm": element.name,
            "sr": 1,
            "ks": self._transform(element),
            "ao": 0,
            "shapes": [{"ty": "gr", "nm": "Shape Group", "it": items}],
            "ip": 0,
            "op": self.total_frames,
            "st": 0,
            "bm": _BLEND_MODES.get(element.blend_mode, 0),
        }

    def _note_dropped_features(self, element: Element) -> None:
        if element.primary_shadow() is not None:
            self.warnings.add(SHADOW_SKIPPED)
        if element.blur > 0 or self.animator.defines(element.id, (P.BLUR,)):
            self.warnings.add(BLUR_SKIPPED)
        fill = element.primary_fill()
        if fill is not None and fill.type in ("linear", "radial"):
            self.warnings.add(GRADIENT_AS_SOLID)
        if not self.sampled:
            for keyframe in self.animator.keyframes(element.id)[:-1]:
                if self.easings.is_lossy(keyframe.easing):
                    self.warnings.add(lossy_easing_warning(keyframe.easing, "Lottie"))

    def _transform(self, element: Element) -> dict[str, Any]:
        def position(el: Element) -> list[float]:
            px, py = geometry.pivot(el)
            return [px, py, 0]

        def anchor(el: Element) -> list[float]:
            ax, ay = geometry.local_pivot(el)
            return [ax, ay, 0]

        def scale(el: Element) -> list[float]:
            sx, sy = geometry.effective_scale(el)
            return [sx * 100, sy * 100, 100]

        return {
            "o": self.value(element, (P.OPACITY,), lambda el: el.opacity * 100),
            "r": self.value(element, (P.ROTATION,), lambda el: el.rotation),
            "p": self.value(element, _POSITION_SOURCES, position),
            "a": self.value(element, _ANCHOR_SOURCES, anchor),
            "s": self.value(element, (P.SCALE_X, P.SCALE_Y), scale),
        }

    # -- geometry -------------------------------------------------------

    def _geometry(self, element: Element) -> list[dict[str, Any]]:
        kind = element.type
        if kind == ElementType.RECT:
            return [{
                "ty": "rc",
                "nm": "Rectangle",
                "d": 1,
                "p": self.value(element, _SIZE, lambda el: [el.width / 2, el.height / 2]),
                "s": self.value(element, _SIZE, lambda el: [el.width, el.height]),
                "r": self.value(element, (P.RX,), lambda el: el.rx),
            }]

        if kind in (ElementType.CIRCLE, ElementType.ELLIPSE):
            def size(el: Element) -> list[float]:
                if el.type == ElementType.CIRCLE:
                    diameter = 2 * geometry.outer_radius(el.width, el.height)
                    return [diameter, diameter]
                return [el.width, el.height]

            return [{
                "ty": "el",
                "nm": "Ellipse",
                "d": 1,
                "p": self.value(element, _SIZE, lambda el: [el.width / 2, el.height / 2]),
                "s": self.value(element, _SIZE, size),
            }]

        if kind in (ElementType.POLYGON, ElementType.STAR):
            def outline(el: Element) -> dict[str, Any]:
                return polyline_shape(geometry.regular_shape_vertices(el, origin=(el.x, el.y)), True)

            name = "Star" if kind == ElementType.STAR else "Polygon"
            return [{"ty": "sh", "nm": name, "ks": self.value(element, _SIZE, outline)}]

        if kind == ElementType.LINE:
            def segment(el: Element) -> dict[str, Any]:
                return polyline_shape([(0.0, el.height / 2), (el.width, el.height / 2)], False)

            return [{"ty": "sh", "nm": "Line", "ks": self.value(element, _SIZE, segment)}]

        if kind == ElementType.PATH:
            return self._path_geometry(element)

        return []

    def _path_geometry(self, element: Element) -> list[dict[str, Any]]:
        def local_subpaths(el: Element) -> list[geometry.SubPath]:
            return [sub.translated(-el.x, -el.y) for sub in geometry.parse_path(el.d)]

        track = self.animator.keyframes(element.id)
        animated = self.animator.defines(element.id, (P.D, P.X, P.Y))
        frames = plan_samples(track, self.easings, self.sampled).frames if animated else ()

        try:
            base = local_subpaths(self.resolve(element, 0))
            probes = {*frames, *map(left_limit, frames[1:]), *map(right_limit, frames[:-1])}
            counts = {len(local_subpaths(self.resolve(element, frame))) for frame in probes}
        except geometry.PathSyntaxError:
            self.warnings.add(MALFORMED_PATH)
            return []

        if animated and counts != {len(base)}:
            self.warnings.add(PATH_STRUCTURE_STATIC)
            animated = False

        items = []
        for index, subpath in enumerate(base):
            if animated:
                ks = self.animated(
                    element,
                    lambda el, i=index: subpath_shape(local_subpaths(el)[i]),
                )
            else:
                ks = _static(subpath_shape(subpath))
            items.append({"ty": "sh", "nm": f"Path {index + 1}", "ks": ks})
        return items

    # -- paint ----------------------------------------------------------

    def _stroke(self, element: Element) -> dict[str, Any] | None:
        stroke = element.primary_stroke()
        if stroke is None:
            if not _is_open(element):
                return None
            # Open outlines without a stroke are drawn with the fill color.
            return {
                "ty": "st",
                "nm": "Stroke",
                "o": _static(100),
                "c": self.value(element, (P.FILL_COLOR,), lambda el: lottie_color(_fallback_color(el))),
                "w": _static(FALLBACK_LINE_WIDTH),
                "lc": _LINE_CAPS["round"],
                "lj": _LINE_JOINS["round"],
            }

        item = {
            "ty": "st",
            "nm": "Stroke",
            "o": _static(100),
            "c": self.value(element, (P.STROKE_COLOR,), lambda el: lottie_color(el.primary_stroke().color)),
            "w": self.value(element, (P.STROKE_WIDTH,), lambda el: el.primary_stroke().width),
            "lc": _LINE_CAPS.get(stroke.cap, 2),
            "lj": _LINE_JOINS.get(stroke.join, 2),
        }
        if stroke.join == "miter":
            item["ml"] = 4
        if stroke.dash_array:
            item["d"] = _dashes(stroke.dash_array, stroke.dash_offset)
        return item

    def _fill(self, element: Element) -> dict[str, Any] | None:
        if _is_open(element):
            return None
        fill = element.primary_fill()
        if fill is None:
            return None
        return {
            "ty": "fl",
            "nm": "Fill",
            "o": _static(fill.opacity * 100),
            "c": self.value(element, (P.FILL_COLOR,), lambda el: lottie_color(el.primary_fill().color)),
            "r": _FILL_RULES.get(element.fill_rule, 1),
        }


def _is_open(element: Element) -> bool:
    return element.type == ElementType.LINE or (
        element.type == ElementType.PATH and not element.closed
    )


def _fallback_color(element: Element) -> str:
    fill = element.primary_fill()
    return fill.color if fill is not None else "000000"


def _dashes(dash_array: tuple[float, ...], offset: float) -> list[dict[str, Any]]:
    values = list(dash_array)
    if len(values) % 2:
        values = values * 2
    dashes = [
        {"n": "d" if i % 2 == 0 else "g", "nm": "dash" if i % 2 == 0 else "gap", "v": _static(v)}
        for i, v in enumerate(values)
    ]
    dashes.append({"n": "o", "nm": "offset", "v": _static(offset)})
    return dashes


def _group_transform() -> dict[str, Any]:
    return {
        "ty": "tr",
        "nm": "Transform",
        "p": _static([0, 0]),
        "a": _static([0, 0]),
        "s": _static([100, 100]),
        "r": _static(0),
        "o": _static(100),
        "sk": _static(0),
        "sa": _static(0),
    }
