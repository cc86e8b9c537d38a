"""Tests for easing curves."""

import pytest

from tweenkit.engine.easing import (
    DEFAULT_EASINGS,
    EasingLibrary,
    LINEAR_HANDLES,
    get_easing_fn,
    make_cubic_bezier,
    sample_easing,
)


def test_unknown_easing_behaves_like_linear():
    """Unrecognized easing specs should fall back to linear."""
    unknown = get_easing_fn("not-a-real-easing")
    linear = get_easing_fn("linear")

    for i in range(11):
        t = i / 10
        assert unknown(t) == linear(t) == t


def test_empty_easing_is_linear():
    """None and empty specs resolve to linear."""
    assert get_easing_fn(None)(0.3) == 0.3
    assert get_easing_fn("")(0.7) == 0.7


@pytest.mark.parametrize("spec", ["ease-in", "ease-out-back", "ease-out-bounce", "spring"])
def test_presets_hit_endpoints(spec):
    """Every preset maps 0 to 0 and 1 to 1 (within rounding)."""
    fn = get_easing_fn(spec)
    assert fn(0) == pytest.approx(0, abs=1e-9)
    assert fn(1) == pytest.approx(1, abs=1e-3)


def test_back_easing_overshoots():
    """Back curves leave [0, 1] instead of being clamped."""
    assert get_easing_fn("ease-in-back")(0.2) < 0
    assert get_easing_fn("ease-out-back")(0.8) > 1


def test_cubic_bezier_spec_matches_direct_construction():
    """A parsed cubic-bezier spec samples the same as the curve built from its handles."""
    parsed = get_easing_fn("cubic-bezier(0.42, 0, 0.58, 1)")
    direct = make_cubic_bezier(0.42, 0, 0.58, 1)

    for i in range(21):
        t = i / 20
        assert parsed(t) == pytest.approx(direct(t), abs=1e-6)


def test_symmetric_cubic_bezier_is_half_at_midpoint():
    """cubic-bezier(0.42,0,0.58,1) is point-symmetric around (0.5, 0.5)."""
    fn = get_easing_fn("cubic-bezier(0.42,0,0.58,1)")
    assert fn(0.5) == pytest.approx(0.5, abs=1e-4)
    assert fn(0.25) == pytest.approx(1 - fn(0.75), abs=1e-4)


def test_cubic_bezier_accepts_negative_and_exponent_numbers():
    """Handles may be signed or use exponent notation."""
    library = EasingLibrary()
    assert library.bezier_handles("cubic-bezier(0.68,-0.6,0.32,1.6)") == (0.68, -0.6, 0.32, 1.6)
    assert library.bezier_handles("cubic-bezier(1e-1, 0, .5, 1)") == (0.1, 0.0, 0.5, 1.0)


def test_steps_easing_jumps():
    """steps(n) holds each level for 1/n of the segment."""
    fn = get_easing_fn("steps(4)")
    assert fn(0.0) == 0
    assert fn(0.24) == 0
    assert fn(0.25) == 0.25
    assert fn(0.99) == 0.75
    assert fn(1.0) == 1


def test_bezier_handles_for_presets_and_fallback():
    """Presets have fixed handles; unknown specs export as linear."""
    assert DEFAULT_EASINGS.bezier_handles("ease-in-out") == (0.42, 0.0, 0.58, 1.0)
    assert DEFAULT_EASINGS.bezier_handles("nope") == LINEAR_HANDLES
    assert DEFAULT_EASINGS.bezier_handles(None) == LINEAR_HANDLES


def test_lossy_detection():
    """Curves without an exact bezier form are reported as lossy."""
    assert DEFAULT_EASINGS.is_lossy("ease-out-bounce")
    assert DEFAULT_EASINGS.is_lossy("ease-out-elastic")
    assert DEFAULT_EASINGS.is_lossy("steps(3)")
    assert not DEFAULT_EASINGS.is_lossy("ease-in-out")
    assert not DEFAULT_EASINGS.is_lossy("cubic-bezier(0,0,1,1)")


def test_custom_library_is_independent():
    """A constructed library with its own presets does not affect the defaults."""
    library = EasingLibrary(presets={"half": lambda t: t / 2}, handles={}, lossy=frozenset())

    assert get_easing_fn("half", library)(1.0) == 0.5
    assert get_easing_fn("half")(1.0) == 1.0


def test_sample_easing_returns_grid():
    """sample_easing covers [0, 1] inclusive."""
    points = sample_easing("linear", steps=4)
    assert points == [(0.0, 0.0), (0.25, 0.25), (0.5, 0.5), (0.75, 0.75), (1.0, 1.0)]
