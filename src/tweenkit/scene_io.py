"""Load and save scene documents as JSON."""

import json
from dataclasses import asdict, fields, replace
from pathlib import Path
from typing import Any

from .engine.color import is_valid_hex
from .errors import SceneFormatError
from .model import (
    AnimatableProp,
    Element,
    FillEntry,
    Keyframe,
    KeyframeStore,
    Scene,
    ShadowEntry,
    StrokeEntry,
    TransformOrigin,
)

_SCENE_KEYS = {f.name for f in fields(Scene)}
_ELEMENT_KEYS = {f.name for f in fields(Element)}
_COLOR_KEYS = {
    AnimatableProp.FILL_COLOR.value,
    AnimatableProp.STROKE_COLOR.value,
    AnimatableProp.SHADOW_COLOR.value,
}


def load_scene(path: str | Path) -> Scene:
    """
    Read a scene document from disk.

    Raises:
        SceneFormatError: If the file is missing, is not JSON, or has an invalid shape
    """
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except FileNotFoundError:
        raise SceneFormatError(f"Scene file '{path}' not found")
    except json.JSONDecodeError as e:
        raise SceneFormatError(f"Invalid JSON in '{path}': {e}")
    return scene_from_dict(data)


def save_scene(scene: Scene, path: str | Path) -> None:
    with open(path, "w", encoding="utf-8") as f:
        json.dump(scene_to_dict(scene), f, indent=2)


def scene_from_dict(data: Any) -> Scene:
    """Build a Scene from its document form (snake_case keys)."""
    if not isinstance(data, dict):
        raise SceneFormatError("Scene document must be a JSON object")
    _reject_unknown("scene", data, _SCENE_KEYS)

    elements = [_element_from_dict(item) for item in _list(data, "elements")]
    keyframes = KeyframeStore(_keyframe_from_dict(item) for item in _list(data, "keyframes"))
    options = {key: data[key] for key in ("width", "height", "fps", "total_frames", "background", "name") if key in data}
    if "background" in options:
        _check_color("scene background", options["background"])
    return Scene(elements=elements, keyframes=keyframes, **options)


def scene_to_dict(scene: Scene) -> dict[str, Any]:
    """Document form of a scene; the inverse of ``scene_from_dict``."""
    return {
        "name": scene.name,
        "width": scene.width,
        "height": scene.height,
        "fps": scene.fps,
        "total_frames": scene.total_frames,
        "background": scene.background,
        "elements": [_element_to_dict(element) for element in scene.elements],
        "keyframes": [
            {
                "id": keyframe.id,
                "element_id": keyframe.element_id,
                "frame": keyframe.frame,
                "patch": keyframe.patch.to_dict(),
                "easing": keyframe.easing,
            }
            for keyframe in scene.keyframes
        ],
    }


def _element_from_dict(item: Any) -> Element:
    if not isinstance(item, dict):
        raise SceneFormatError("Each element must be a JSON object")
    if "id" not in item:
        raise SceneFormatError("Element is missing its 'id'")
    _reject_unknown(f"element '{item['id']}'", item, _ELEMENT_KEYS)

    values = dict(item)
    values["fills"] = [_entry(FillEntry, fill) for fill in values.get("fills", [])]
    values["strokes"] = [_stroke(stroke) for stroke in values.get("strokes", [])]
    values["shadows"] = [_entry(ShadowEntry, shadow) for shadow in values.get("shadows", [])]
    for entry in (*values["fills"], *values["strokes"], *values["shadows"]):
        _check_color(f"element '{item['id']}'", entry.color)
    if "transform_origin" in values:
        values["transform_origin"] = _entry(TransformOrigin, values["transform_origin"])
    try:
        return Element(**values)
    except (TypeError, ValueError) as e:
        raise SceneFormatError(f"Invalid element '{item['id']}': {e}")


def _stroke(data: Any) -> StrokeEntry:
    stroke = _entry(StrokeEntry, data)
    if not isinstance(stroke.dash_array, tuple):
        return replace(stroke, dash_array=tuple(stroke.dash_array))
    return stroke


def _entry(cls: type, data: Any):
    if not isinstance(data, dict):
        raise SceneFormatError(f"{cls.__name__} must be a JSON object")
    _reject_unknown(cls.__name__, data, {f.name for f in fields(cls)})
    return cls(**data)


def _keyframe_from_dict(item: Any) -> Keyframe:
    if not isinstance(item, dict):
        raise SceneFormatError("Each keyframe must be a JSON object")
    try:
        element_id = item["element_id"]
        frame = int(item["frame"])
    except KeyError as e:
        raise SceneFormatError(f"Keyframe is missing {e}")
    except (TypeError, ValueError):
        raise SceneFormatError(f"Keyframe frame must be an integer (got {item['frame']!r})")
    patch = item.get("patch", {})
    if isinstance(patch, dict):
        for key in sorted(_COLOR_KEYS.intersection(patch)):
            if patch[key] is None:
                continue
            _check_color(f"keyframe for '{element_id}' at frame {frame}", patch[key])
    try:
        return Keyframe(
            id=item.get("id") or f"{element_id}@{frame}",
            element_id=element_id,
            frame=frame,
            patch=patch,
            easing=item.get("easing", "linear"),
        )
    except ValueError as e:
        raise SceneFormatError(f"Invalid keyframe for '{element_id}' at frame {frame}: {e}")


def _element_to_dict(element: Element) -> dict[str, Any]:
    data = asdict(element)
    data["type"] = element.type.value
    data["blend_mode"] = element.blend_mode.value
    for stroke in data["strokes"]:
        stroke["dash_array"] = list(stroke["dash_array"])
    return data


def _list(data: dict, key: str) -> list:
    value = data.get(key, [])
    if not isinstance(value, list):
        raise SceneFormatError(f"'{key}' must be a list")
    return value


def _reject_unknown(context: str, data: dict, allowed: set[str]) -> None:
    unknown = sorted(set(data) - allowed)
    if unknown:
        raise SceneFormatError(f"Unknown keys in {context}: {', '.join(unknown)}")


def _check_color(context: str, value: Any) -> None:
    if not isinstance(value, str) or not is_valid_hex(value):
        raise SceneFormatError(f"Invalid color in {context}: {value!r} (expected RRGGBB hex)")
