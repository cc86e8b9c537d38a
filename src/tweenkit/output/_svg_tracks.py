"""SMIL animation tracks for SVG output."""

from collections.abc import Callable, Sequence
from dataclasses import dataclass, field

from ..engine.easing import BezierHandles, EasingLibrary, LINEAR_HANDLES
from ..model import Keyframe
from ._svg_shared import _svg_key_time, _svg_num, _svg_seconds, _svg_text
from ._tracks import (
    SamplePlan,
    interval_handles,
    is_keyframe_frame,
    left_limit,
    right_limit,
    values_differ,
)


@dataclass
class SvgTrack:
    """Sampled values of one attribute with normalized times and per-interval splines."""

    values: list[str] = field(default_factory=list)
    key_times: list[float] = field(default_factory=list)
    splines: list[BezierHandles] = field(default_factory=list)

    def is_constant(self) -> bool:
        return all(value == self.values[0] for value in self.values[1:])


def _tl_build_track(
    plan: SamplePlan,
    track: Sequence[Keyframe],
    total_frames: int,
    easings: EasingLibrary,
    value_at: Callable[[float], str | None],
) -> SvgTrack | None:
    """Sample ``value_at`` over ``plan``.

    Where the value jumps on either side of a keyframe, the limit value and
    the value at the keyframe share one key time. Returns None if the
    attribute is missing at any sample.
    """
    result = SvgTrack()
    previous_frame: float | None = None
    last_frame = plan.frames[-1] if plan.frames else None
    for frame in plan.frames:
        value = value_at(frame)
        if value is None:
            return None
        key_time = frame / total_frames
        at_keyframe = is_keyframe_frame(track, frame)

        if previous_frame is not None:
            incoming = interval_handles(track, plan, previous_frame, easings)
            if at_keyframe:
                before = value_at(left_limit(frame))
                if before is not None and values_differ(before, value):
                    _tl_push(result, before, key_time, incoming)
                    incoming = LINEAR_HANDLES
            result.splines.append(incoming)

        result.values.append(value)
        result.key_times.append(key_time)

        if at_keyframe and frame != last_frame:
            after = value_at(right_limit(frame))
            if after is not None and values_differ(value, after):
                result.splines.append(LINEAR_HANDLES)
                result.values.append(after)
                result.key_times.append(key_time)
        previous_frame = frame
    return result


def _tl_push(result: SvgTrack, value: str, key_time: float, spline: BezierHandles) -> None:
    result.values.append(value)
    result.key_times.append(key_time)
    result.splines.append(spline)


def _tl_timing_attrs(track: SvgTrack, duration_s: float, loop: bool) -> str:
    attrs = [
        f'values="{_svg_text(";".join(track.values))}"',
        f'keyTimes="{";".join(_svg_key_time(t) for t in track.key_times)}"',
        f'dur="{_svg_seconds(duration_s)}"',
        'calcMode="spline"',
        f'keySplines="{";".join(" ".join(_svg_num(v) for v in s) for s in track.splines)}"',
        'repeatCount="indefinite"' if loop else 'repeatCount="1"',
    ]
    if not loop:
        attrs.append('fill="freeze"')
    return " ".join(attrs)


def _tl_animate(attribute_name: str, track: SvgTrack, duration_s: float, loop: bool) -> str:
    return f'<animate attributeName="{attribute_name}" {_tl_timing_attrs(track, duration_s, loop)}/>'


def _tl_animate_transform(
    transform_type: str, track: SvgTrack, duration_s: float, loop: bool
) -> str:
    return (
        f'<animateTransform attributeName="transform" type="{transform_type}" '
        f"{_tl_timing_attrs(track, duration_s, loop)}/>"
    )
