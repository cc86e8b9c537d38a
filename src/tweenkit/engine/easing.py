"""Easing curves: named presets, parametric cubic-bezier and step functions.

Every curve maps progress ``t`` in [0, 1] to eased progress. Output is not
clamped: back, elastic and spring curves overshoot on purpose.
"""

import math
import re
from collections.abc import Callable, Mapping
from types import MappingProxyType

EasingFn = Callable[[float], float]
BezierHandles = tuple[float, float, float, float]

_C1 = 1.70158
_C2 = _C1 * 1.525
_C3 = _C1 + 1
_C4 = (2 * math.pi) / 3

_NUMBER = r"\s*([-+]?(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?)\s*"
_CUBIC_BEZIER_PATTERN = re.compile(
    rf"^cubic-bezier\({_NUMBER},{_NUMBER},{_NUMBER},{_NUMBER}\)$"
)
_STEPS_PATTERN = re.compile(r"^steps\(\s*(\d+)\s*\)$")

LINEAR_HANDLES: BezierHandles = (0.0, 0.0, 1.0, 1.0)
_NEWTON_ITERATIONS = 8
_NEWTON_MIN_SLOPE = 1e-6


def _linear(t: float) -> float:
    return t


def _cubic_in(t: float) -> float:
    return t * t * t


def _cubic_out(t: float) -> float:
    return 1 - (1 - t) ** 3


def _cubic_in_out(t: float) -> float:
    return 4 * t * t * t if t < 0.5 else 1 - (-2 * t + 2) ** 3 / 2


def _back_in(t: float) -> float:
    return _C3 * t * t * t - _C1 * t * t


def _back_out(t: float) -> float:
    return 1 + _C3 * (t - 1) ** 3 + _C1 * (t - 1) ** 2


def _back_in_out(t: float) -> float:
    if t < 0.5:
        return ((2 * t) ** 2 * ((_C2 + 1) * 2 * t - _C2)) / 2
    return ((2 * t - 2) ** 2 * ((_C2 + 1) * (2 * t - 2) + _C2) + 2) / 2


def _bounce_out(t: float) -> float:
    n1, d1 = 7.5625, 2.75
    if t < 1 / d1:
        return n1 * t * t
    if t < 2 / d1:
        t -= 1.5 / d1
        return n1 * t * t + 0.75
    if t < 2.5 / d1:
        t -= 2.25 / d1
        return n1 * t * t + 0.9375
    t -= 2.625 / d1
    return n1 * t * t + 0.984375


def _elastic_out(t: float) -> float:
    if t == 0 or t == 1:
        return t
    return 2 ** (-10 * t) * math.sin((t * 10 - 0.75) * _C4) + 1


def _spring(t: float) -> float:
    return 1 - math.exp(-8 * t) * math.cos(2 * math.pi * t * 0.5)


PRESET_EASINGS: Mapping[str, EasingFn] = MappingProxyType({
    "linear": _linear,
    "ease-in": _cubic_in,
    "ease-out": _cubic_out,
    "ease-in-out": _cubic_in_out,
    "ease-in-cubic": _cubic_in,
    "ease-out-cubic": _cubic_out,
    "ease-in-out-cubic": _cubic_in_out,
    "ease-in-back": _back_in,
    "ease-out-back": _back_out,
    "ease-in-out-back": _back_in_out,
    "ease-out-bounce": _bounce_out,
    "ease-out-elastic": _elastic_out,
    "spring": _spring,
})

# Control points used by bezier-keyed export targets (CSS cubic-bezier order).
PRESET_BEZIER_HANDLES: Mapping[str, BezierHandles] = MappingProxyType({
    "linear": LINEAR_HANDLES,
    "ease-in": (0.42, 0.0, 1.0, 0.58),
    "ease-out": (0.0, 0.42, 0.58, 1.0),
    "ease-in-out": (0.42, 0.0, 0.58, 1.0),
    "ease-in-cubic": (0.55, 0.0, 1.0, 0.45),
    "ease-out-cubic": (0.0, 0.55, 0.45, 1.0),
    "ease-in-out-cubic": (0.65, 0.0, 0.35, 1.0),
    "ease-in-back": (0.36, 0.0, 0.66, -0.56),
    "ease-out-back": (0.34, 1.56, 0.64, 1.0),
    "ease-in-out-back": (0.68, -0.6, 0.32, 1.6),
    # No bezier shape exists for these; the pair is an approximation.
    "ease-out-bounce": (0.42, 0.0, 0.58, 1.0),
    "ease-out-elastic": (0.42, 0.0, 0.58, 1.0),
    "spring": (0.42, 0.0, 0.58, 1.0),
})

LOSSY_PRESETS = frozenset({"ease-out-bounce", "ease-out-elastic", "spring"})


def make_cubic_bezier(x1: float, y1: float, x2: float, y2: float) -> EasingFn:
    """Build a CSS-style cubic-bezier easing solved by Newton iteration on x."""
    cx = 3 * x1
    bx = 3 * (x2 - x1) - cx
    ax = 1 - cx - bx
    cy = 3 * y1
    by = 3 * (y2 - y1) - cy
    ay = 1 - cy - by

    def sample_x(t: float) -> float:
        return ((ax * t + bx) * t + cx) * t

    def sample_y(t: float) -> float:
        return ((ay * t + by) * t + cy) * t

    def slope_x(t: float) -> float:
        return (3 * ax * t + 2 * bx) * t + cx

    def solve_t(x: float) -> float:
        t = x
        for _ in range(_NEWTON_ITERATIONS):
            slope = slope_x(t)
            if abs(slope) < _NEWTON_MIN_SLOPE:
                break
            t -= (sample_x(t) - x) / slope
        return t

    def ease(t: float) -> float:
        if t == 0 or t == 1:
            return t
        return sample_y(solve_t(t))

    return ease


def make_steps(count: int) -> EasingFn:
    """Discrete easing with ``count`` equal jumps, reaching 1 at t=1."""
    if count <= 0:
        return _linear

    def ease(t: float) -> float:
        return min(1.0, math.floor(t * count) / count)

    return ease


def parse_cubic_bezier(spec: str) -> BezierHandles | None:
    match = _CUBIC_BEZIER_PATTERN.match(spec.strip())
    if match is None:
        return None
    x1, y1, x2, y2 = (float(group) for group in match.groups())
    return x1, y1, x2, y2


def parse_steps(spec: str) -> int | None:
    match = _STEPS_PATTERN.match(spec.strip())
    return int(match.group(1)) if match else None


class EasingLibrary:
    """Lookup table from easing specs to curves and export handles.

    Unrecognized specs fall back to linear; lookups never raise.
    """

    def __init__(
        self,
        presets: Mapping[str, EasingFn] = PRESET_EASINGS,
        handles: Mapping[str, BezierHandles] = PRESET_BEZIER_HANDLES,
        lossy: frozenset[str] = LOSSY_PRESETS,
    ):
        self.presets = presets
        self.handles = handles
        self.lossy = lossy
        self._cache: dict[str, EasingFn] = {}

    def get(self, spec: str | None) -> EasingFn:
        """Resolve ``spec`` to an easing function."""
        if not spec:
            return _linear
        cached = self._cache.get(spec)
        if cached is not None:
            return cached

        fn = self.presets.get(spec)
        if fn is None:
            handles = parse_cubic_bezier(spec)
            steps = parse_steps(spec)
            if handles is not None:
                fn = make_cubic_bezier(*handles)
            elif steps is not None:
                fn = make_steps(steps)
            else:
                fn = _linear
        self._cache[spec] = fn
        return fn

    def bezier_handles(self, spec: str | None) -> BezierHandles:
        """Control points ``(x1, y1, x2, y2)`` for bezier-keyed targets."""
        if not spec:
            return LINEAR_HANDLES
        if spec in self.handles:
            return self.handles[spec]
        parsed = parse_cubic_bezier(spec)
        return parsed if parsed is not None else LINEAR_HANDLES

    def is_lossy(self, spec: str | None) -> bool:
        """Whether ``bezier_handles`` only approximates this curve."""
        if not spec:
            return False
        return spec in self.lossy or parse_steps(spec) is not None


DEFAULT_EASINGS = EasingLibrary()


def get_easing_fn(spec: str | None, library: EasingLibrary | None = None) -> EasingFn:
    """Resolve an easing spec, falling back to linear for anything unrecognized."""
    return (library or DEFAULT_EASINGS).get(spec)


def sample_easing(spec: str, steps: int = 24) -> list[tuple[float, float]]:
    """Sample ``steps + 1`` evenly spaced ``(t, eased)`` points of a curve."""
    fn = get_easing_fn(spec)
    return [(i / steps, fn(i / steps)) for i in range(steps + 1)]
