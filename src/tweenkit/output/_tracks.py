"""Keyframe-track sampling shared by the vector exporters."""

import re
from collections.abc import Sequence
from dataclasses import dataclass

from ..constants import LEFT_LIMIT_EPSILON
from ..engine.easing import BezierHandles, EasingLibrary, LINEAR_HANDLES
from ..model import Keyframe

_NUMBER = re.compile(r"[-+]?(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?")
_JUMP_TOLERANCE = 2e-3


@dataclass(frozen=True)
class SamplePlan:
    """Frames at which a track is sampled.

    ``dense`` holds frames whose outgoing interval was filled in frame by
    frame; such intervals interpolate linearly.
    """

    frames: tuple[float, ...]
    dense: frozenset[float] = frozenset()

    def intervals(self) -> list[tuple[float, float]]:
        return list(zip(self.frames, self.frames[1:]))


def plan_samples(
    track: Sequence[Keyframe],
    easings: EasingLibrary,
    sampled: bool = False,
    start: float | None = None,
    end: float | None = None,
) -> SamplePlan:
    """Sample frames for one element's sorted keyframes.

    ``start``/``end`` add and clip to a window. Segments are filled in per
    frame when ``sampled`` is set and the segment easing has no exact bezier
    form, or when ``end`` cuts the segment short.
    """
    frames = {float(kf.frame) for kf in track}
    if start is not None:
        frames.add(float(start))
    if end is not None:
        frames.add(float(end))

    dense: set[float] = set()
    for prev, nxt in zip(track, track[1:]):
        truncated = end is not None and prev.frame < end < nxt.frame
        lossy = sampled and easings.is_lossy(prev.easing)
        if not (truncated or lossy) or nxt.frame - prev.frame <= 1:
            continue
        stop = min(nxt.frame, end) if end is not None else nxt.frame
        for frame in range(prev.frame, int(stop)):
            frames.add(float(frame))
            dense.add(float(frame))

    ordered = sorted(frames)
    if start is not None:
        ordered = [frame for frame in ordered if frame >= start]
    if end is not None:
        ordered = [frame for frame in ordered if frame <= end]
    return SamplePlan(tuple(ordered), frozenset(dense))


def keyframe_at_or_before(track: Sequence[Keyframe], frame: float) -> Keyframe:
    """Keyframe whose outgoing easing governs ``frame``; the first keyframe before any."""
    chosen = track[0]
    for keyframe in track:
        if keyframe.frame <= frame:
            chosen = keyframe
        else:
            break
    return chosen


def interval_handles(
    track: Sequence[Keyframe],
    plan: SamplePlan,
    frame: float,
    easings: EasingLibrary,
) -> BezierHandles:
    if frame in plan.dense:
        return LINEAR_HANDLES
    return easings.bezier_handles(keyframe_at_or_before(track, frame).easing)


def is_keyframe_frame(track: Sequence[Keyframe], frame: float) -> bool:
    return any(kf.frame == frame for kf in track)


def left_limit(frame: float) -> float:
    return frame - LEFT_LIMIT_EPSILON


def right_limit(frame: float) -> float:
    return frame + LEFT_LIMIT_EPSILON


def values_differ(a: object, b: object) -> bool:
    """Whether two sampled values differ by more than evaluation noise.

    Numbers, and numbers embedded in strings with the same structure, are
    compared with a tolerance; everything else compares exactly.
    """
    if a == b:
        return False
    if isinstance(a, (int, float)) and isinstance(b, (int, float)):
        return abs(a - b) > _JUMP_TOLERANCE
    if isinstance(a, dict) and isinstance(b, dict):
        return a.keys() != b.keys() or any(values_differ(a[key], b[key]) for key in a)
    if isinstance(a, (list, tuple)) and isinstance(b, (list, tuple)):
        return len(a) != len(b) or any(values_differ(x, y) for x, y in zip(a, b))
    if isinstance(a, str) and isinstance(b, str):
        if _NUMBER.sub("#", a) != _NUMBER.sub("#", b):
            return True
        numbers_a = [float(n) for n in _NUMBER.findall(a)]
        numbers_b = [float(n) for n in _NUMBER.findall(b)]
        return any(abs(x - y) > _JUMP_TOLERANCE for x, y in zip(numbers_a, numbers_b))
    return True


def lossy_easing_warning(easing: str, target: str) -> str:
    return f"Easing '{easing}' has no cubic-bezier form and is approximated in {target}"
