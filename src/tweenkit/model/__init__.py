"""Scene data model: elements, keyframes and property patches."""

from .elements import (
    BlendMode,
    Element,
    ElementType,
    FillEntry,
    ShadowEntry,
    StrokeEntry,
    TransformOrigin,
)
from .keyframes import Keyframe, KeyframeStore, sort_keyframes
from .patch import COLOR_PROPS, AnimatableProp, PropertyPatch
from .scene import Scene, collect_child_ids, collect_hidden_ids, iter_top_level

__all__ = [
    "AnimatableProp",
    "BlendMode",
    "COLOR_PROPS",
    "Element",
    "ElementType",
    "FillEntry",
    "Keyframe",
    "KeyframeStore",
    "PropertyPatch",
    "Scene",
    "ShadowEntry",
    "StrokeEntry",
    "TransformOrigin",
    "collect_child_ids",
    "collect_hidden_ids",
    "iter_top_level",
    "sort_keyframes",
]
