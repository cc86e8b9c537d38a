"""Tests for Lottie JSON output."""

import json

import pytest

from tweenkit.model import (
    Element,
    ElementType,
    FillEntry,
    Keyframe,
    PropertyPatch,
    Scene,
    ShadowEntry,
    StrokeEntry,
)
from tweenkit.output import LottieOutputProvider
from tweenkit.output._lottie_layers import (
    MALFORMED_PATH,
    SHADOW_SKIPPED,
    UNSUPPORTED_TYPES,
)
from tweenkit.output.base import EMPTY_SCENE
from tweenkit.output.options import LottieExportOptions


def _kf(frame, easing="linear", element_id="box", **values) -> Keyframe:
    return Keyframe(f"{element_id}-{frame}", element_id, frame, PropertyPatch(values), easing)


def _export(scene, options=None):
    result = LottieOutputProvider().export(scene, options)
    return json.loads(result.text), result


def _box(element_id="box", **kwargs) -> Element:
    kwargs.setdefault("fills", [FillEntry(color="FF0000")])
    return Element(id=element_id, x=10, y=20, width=100, height=50, **kwargs)


def test_document_header_and_layer_order():
    """Layers are listed top-most first with 1-based document indices."""
    scene = Scene(elements=[_box("a"), _box("b", name="Top")], fps=30, total_frames=45, width=320, height=240)
    document, result = _export(scene)

    assert document["fr"] == 30
    assert (document["ip"], document["op"]) == (0, 45)
    assert (document["w"], document["h"]) == (320, 240)
    assert document["nm"] == "Scene"
    assert [layer["nm"] for layer in document["layers"]] == ["Top", "a"]
    assert [layer["ind"] for layer in document["layers"]] == [2, 1]
    assert result.media_type == "application/json"
    assert result.warnings == ()


def test_rect_layer_geometry_and_transform():
    document, _ = _export(Scene(elements=[_box()], total_frames=10))
    layer = document["layers"][0]

    assert layer["ty"] == 4
    assert layer["op"] == 10
    assert layer["ks"]["p"] == {"a": 0, "k": [60, 45, 0]}
    assert layer["ks"]["a"] == {"a": 0, "k": [50, 25, 0]}
    assert layer["ks"]["o"] == {"a": 0, "k": 100}

    items = layer["shapes"][0]["it"]
    assert [item["ty"] for item in items] == ["rc", "fl", "tr"]
    assert items[0]["s"]["k"] == [100, 50]
    assert items[1]["c"]["k"] == [1, 0, 0, 1]


def test_unsupported_types_warn_once():
    """Several text elements yield one deduplicated warning and no layers."""
    scene = Scene(
        elements=[Element(id=f"t{i}", type=ElementType.TEXT, text="hi") for i in range(3)],
        total_frames=10,
    )
    document, result = _export(scene)

    assert document["layers"] == []
    assert result.warnings == (UNSUPPORTED_TYPES[ElementType.TEXT], EMPTY_SCENE)


def test_animated_opacity_keys():
    scene = Scene(elements=[_box()], keyframes=[_kf(0, opacity=0), _kf(30, opacity=1)], total_frames=30)
    document, _ = _export(scene)

    opacity = document["layers"][0]["ks"]["o"]
    assert opacity["a"] == 1
    first, last = opacity["k"]
    assert first["t"] == 0
    assert first["s"] == [0]
    assert first["e"] == [100]
    assert first["o"] == {"x": [0], "y": [0]}
    assert first["i"] == {"x": [1], "y": [1]}
    assert last == {"t": 30, "s": [100]}


def test_easing_handles_come_from_outgoing_keyframe():
    scene = Scene(
        elements=[_box()],
        keyframes=[_kf(0, "ease-in-out", rotation=0), _kf(10, rotation=45)],
        total_frames=10,
    )
    document, _ = _export(scene)

    first = document["layers"][0]["ks"]["r"]["k"][0]
    assert first["o"] == {"x": [0.42], "y": [0]}
    assert first["i"] == {"x": [0.58], "y": [1]}


def test_one_sided_key_emits_hold_then_continues():
    """A value recorded only on a later keyframe applies right after the earlier keyframe."""
    scene = Scene(
        elements=[_box()],
        keyframes=[_kf(0, x=0), _kf(10, x=50, opacity=0.2)],
        total_frames=10,
    )
    document, _ = _export(scene)

    hold, tween, last = document["layers"][0]["ks"]["o"]["k"]
    assert hold == {"t": 0, "s": [100], "h": 1}
    assert tween["t"] == pytest.approx(0.001)
    assert tween["s"] == [pytest.approx(20)]
    assert last["t"] == 10


def test_track_is_extended_to_timeline_end():
    scene = Scene(elements=[_box()], keyframes=[_kf(0, rotation=0), _kf(15, rotation=90)], total_frames=30)
    document, _ = _export(scene)

    keys = document["layers"][0]["ks"]["r"]["k"]
    assert keys[-1] == {"t": 30, "s": [90]}


def test_lossy_easing_warning():
    scene = Scene(
        elements=[_box()],
        keyframes=[_kf(0, "ease-out-elastic", x=0), _kf(10, x=100)],
        total_frames=10,
    )
    _, result = _export(scene)

    assert result.warnings == ("Easing 'ease-out-elastic' has no cubic-bezier form and is approximated in Lottie",)


def test_sampled_fidelity_bakes_per_frame_keys():
    scene = Scene(
        elements=[_box()],
        keyframes=[_kf(0, "ease-out-bounce", x=0), _kf(10, x=100)],
        total_frames=10,
    )
    document, result = _export(scene, LottieExportOptions(easing_fidelity="sampled"))

    keys = document["layers"][0]["ks"]["p"]["k"]
    assert [key["t"] for key in keys] == list(range(11))
    assert result.warnings == ()


def test_shadow_is_dropped_with_warning():
    _, result = _export(Scene(elements=[_box(shadows=[ShadowEntry()])], total_frames=10))
    assert result.warnings == (SHADOW_SKIPPED,)


def test_malformed_path_is_omitted():
    path = Element(id="p", type=ElementType.PATH, d="M0 0 A5 5 0 0 1 10 10")
    document, result = _export(Scene(elements=[path, _box()], total_frames=10))

    assert [layer["nm"] for layer in document["layers"]] == ["box"]
    assert MALFORMED_PATH in result.warnings


def test_open_path_uses_fallback_stroke():
    path = Element(id="p", type=ElementType.PATH, x=0, y=0, d="M0 0 L10 10", fills=[FillEntry(color="00FF00")])
    document, _ = _export(Scene(elements=[path], total_frames=10))

    items = document["layers"][0]["shapes"][0]["it"]
    assert [item["ty"] for item in items] == ["sh", "st", "tr"]
    assert items[0]["ks"]["k"]["v"] == [[0, 0], [10, 10]]
    assert items[1]["c"]["k"] == [0, 1, 0, 1]
    assert items[1]["w"]["k"] == 2


def test_dashed_stroke():
    box = _box(strokes=[StrokeEntry(color="000000", width=3, dash_array=(4,), dash_offset=1)])
    document, _ = _export(Scene(elements=[box], total_frames=10))

    stroke = document["layers"][0]["shapes"][0]["it"][1]
    assert stroke["ty"] == "st"
    assert [dash["n"] for dash in stroke["d"]] == ["d", "g", "o"]
    assert stroke["d"][-1]["v"]["k"] == 1


def test_pretty_print():
    scene = Scene(elements=[_box()], total_frames=10)

    compact = LottieOutputProvider().export(scene).text
    pretty = LottieOutputProvider().export(scene, LottieExportOptions(pretty_print=True)).text

    assert "\n" not in compact
    assert "\n  " in pretty
    assert json.loads(compact) == json.loads(pretty)


def test_unparseable_color_skips_only_that_element():
    scene = Scene(elements=[_box("good"), _box("bad", fills=[FillEntry(color="red")])], width=200, height=100)

    document, result = _export(scene)

    assert [layer["nm"] for layer in document["layers"]] == ["good"]
    (warning,) = result.warnings
    assert warning == "Element 'bad' could not be exported to Lottie and was skipped: Invalid hex color: 'red'"


def test_children_of_hidden_group_are_not_exported():
    """Hidden groups hide their children, matching SVG and raster output."""
    group = Element(id="g", type=ElementType.GROUP, visible=False, child_ids=["inner"])
    scene = Scene(elements=[group, _box("inner"), _box("outer")], width=200, height=100)

    document, result = _export(scene)

    assert [layer["nm"] for layer in document["layers"]] == ["outer"]
    assert result.warnings == ()
