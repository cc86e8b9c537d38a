"""Tests for reading and writing scene documents."""

import json

import pytest

from tweenkit.errors import SceneFormatError
from tweenkit.model import ElementType, Keyframe, PropertyPatch
from tweenkit.scene_io import load_scene, save_scene, scene_from_dict, scene_to_dict

DOCUMENT = {
    "name": "Intro",
    "width": 320,
    "height": 180,
    "fps": 30,
    "total_frames": 60,
    "background": "101010",
    "elements": [
        {
            "id": "title",
            "type": "text",
            "text": "Hello",
            "x": 20,
            "fills": [{"color": "FFFFFF"}],
        },
        {
            "id": "bar",
            "type": "rect",
            "width": 100,
            "height": 8,
            "strokes": [{"color": "FF0000", "width": 2, "dash_array": [4, 2]}],
            "transform_origin": {"x": 0, "y": 0.5},
        },
    ],
    "keyframes": [
        {"element_id": "bar", "frame": 0, "patch": {"scale_x": 0}, "easing": "ease-out"},
        {"id": "grow", "element_id": "bar", "frame": 30, "patch": {"scale_x": 1}},
    ],
}


def test_scene_from_dict_builds_model():
    scene = scene_from_dict(DOCUMENT)

    assert (scene.name, scene.width, scene.height, scene.fps, scene.total_frames) == ("Intro", 320, 180, 30, 60)
    title, bar = scene.elements
    assert title.type == ElementType.TEXT
    assert title.fills[0].color == "FFFFFF"
    assert bar.strokes[0].dash_array == (4, 2)
    assert bar.transform_origin.x == 0

    first, second = scene.keyframes
    assert first.id == "bar@0"
    assert first.easing == "ease-out"
    assert first.patch == PropertyPatch(scale_x=0)
    assert second.id == "grow"
    assert second.easing == "linear"


def test_round_trip_through_file(tmp_path):
    """Saving and loading a scene preserves elements and keyframes."""
    scene = scene_from_dict(DOCUMENT)
    path = tmp_path / "scene.json"

    save_scene(scene, path)
    loaded = load_scene(path)

    assert loaded.elements == scene.elements
    assert list(loaded.keyframes) == list(scene.keyframes)
    assert scene_to_dict(loaded) == scene_to_dict(scene)
    assert json.loads(path.read_text())["keyframes"][1]["patch"] == {"scale_x": 1}


def test_duplicate_keyframes_keep_the_last():
    document = {
        "elements": [{"id": "a"}],
        "keyframes": [
            {"element_id": "a", "frame": 5, "patch": {"x": 1}},
            {"element_id": "a", "frame": 5, "patch": {"x": 2}},
        ],
    }
    (keyframe,) = scene_from_dict(document).keyframes
    assert keyframe == Keyframe("a@5", "a", 5, PropertyPatch(x=2))


@pytest.mark.parametrize(
    "document, message",
    [
        ([], "must be a JSON object"),
        ({"colour": "red"}, "Unknown keys in scene: colour"),
        ({"elements": [{"id": "a", "colour": "red"}]}, "Unknown keys in element 'a'"),
        ({"elements": [{"type": "rect"}]}, "missing its 'id'"),
        ({"elements": [{"id": "a", "type": "hexagon"}]}, "Invalid element 'a'"),
        ({"elements": [{"id": "a", "fills": [{"hue": 3}]}]}, "Unknown keys in FillEntry"),
        ({"elements": {"id": "a"}}, "'elements' must be a list"),
        ({"keyframes": [{"frame": 0}]}, "missing"),
        ({"keyframes": [{"element_id": "a", "frame": "soon"}]}, "must be an integer"),
        ({"keyframes": [{"element_id": "a", "frame": 0, "patch": {"colour": 1}}]}, "Invalid keyframe"),
    ],
)
def test_malformed_documents_are_rejected(document, message):
    with pytest.raises(SceneFormatError, match=message):
        scene_from_dict(document)


def test_load_missing_file(tmp_path):
    with pytest.raises(SceneFormatError, match="not found"):
        load_scene(tmp_path / "nope.json")


def test_load_invalid_json(tmp_path):
    path = tmp_path / "broken.json"
    path.write_text("{not json")

    with pytest.raises(SceneFormatError, match="Invalid JSON"):
        load_scene(path)


@pytest.mark.parametrize(
    "document",
    [
        {"background": "white"},
        {"elements": [{"id": "a", "fills": [{"color": "red"}]}]},
        {"elements": [{"id": "a", "strokes": [{"color": "#12345"}]}]},
        {"elements": [{"id": "a", "shadows": [{"color": 0}]}]},
        {"keyframes": [{"element_id": "a", "frame": 0, "patch": {"fill_color": "blue"}}]},
        {"keyframes": [{"element_id": "a", "frame": 0, "patch": {"shadow_color": "ZZZZZZ"}}]},
    ],
)
def test_colors_must_be_hex(document):
    with pytest.raises(SceneFormatError, match="Invalid color"):
        scene_from_dict(document)


def test_hex_colors_are_accepted_with_or_without_hash():
    scene = scene_from_dict(
        {
            "elements": [{"id": "a", "fills": [{"color": "#0F0"}]}],
            "keyframes": [{"element_id": "a", "frame": 0, "patch": {"stroke_color": "00ff00"}}],
        }
    )

    assert scene.elements[0].fills[0].color == "#0F0"
