"""tweenkit - keyframe animation evaluation and multi-format export."""

from .engine import Animator, EasingLibrary, evaluate, get_easing_fn
from .export_pipeline import export_scene, write_export
from .model import (
    AnimatableProp,
    Element,
    ElementType,
    FillEntry,
    Keyframe,
    PropertyPatch,
    Scene,
    ShadowEntry,
    StrokeEntry,
    TransformOrigin,
)
from .output import (
    ExportResult,
    LottieExportOptions,
    LottieOutputProvider,
    SvgExportOptions,
    SvgOutputProvider,
    VideoExportOptions,
    VideoOutputProvider,
)
from .scene_io import load_scene, scene_from_dict, scene_to_dict

__all__ = [
    "AnimatableProp",
    "Animator",
    "EasingLibrary",
    "Element",
    "ElementType",
    "ExportResult",
    "FillEntry",
    "Keyframe",
    "LottieExportOptions",
    "LottieOutputProvider",
    "PropertyPatch",
    "Scene",
    "ShadowEntry",
    "StrokeEntry",
    "SvgExportOptions",
    "SvgOutputProvider",
    "TransformOrigin",
    "VideoExportOptions",
    "VideoOutputProvider",
    "evaluate",
    "export_scene",
    "get_easing_fn",
    "load_scene",
    "scene_from_dict",
    "scene_to_dict",
    "write_export",
]
