"""Sparse property patches keyed by a closed set of animatable properties."""

from collections.abc import Iterator, Mapping
from enum import Enum
from typing import Any, Union


class AnimatableProp(str, Enum):
    """Element properties that keyframes may record."""

    X = "x"
    Y = "y"
    WIDTH = "width"
    HEIGHT = "height"
    ROTATION = "rotation"
    SCALE_X = "scale_x"
    SCALE_Y = "scale_y"
    OPACITY = "opacity"
    RX = "rx"
    FILL_COLOR = "fill_color"
    STROKE_COLOR = "stroke_color"
    STROKE_WIDTH = "stroke_width"
    FONT_SIZE = "font_size"
    BLUR = "blur"
    SHADOW_X = "shadow_x"
    SHADOW_Y = "shadow_y"
    SHADOW_BLUR = "shadow_blur"
    SHADOW_OPACITY = "shadow_opacity"
    SHADOW_COLOR = "shadow_color"
    D = "d"
    TRANSFORM_ORIGIN_X = "transform_origin_x"
    TRANSFORM_ORIGIN_Y = "transform_origin_y"


# Interpolated per RGB channel. Other string-valued props snap.
COLOR_PROPS = frozenset({AnimatableProp.FILL_COLOR, AnimatableProp.STROKE_COLOR})

PropValue = Union[float, int, str]
PropKey = Union[AnimatableProp, str]


def coerce_prop(key: PropKey) -> AnimatableProp:
    """Resolve a property name or enum member, rejecting unknown keys."""
    if isinstance(key, AnimatableProp):
        return key
    try:
        return AnimatableProp(key)
    except ValueError:
        raise ValueError(f"Unknown animatable property: {key!r}") from None


class PropertyPatch(Mapping[AnimatableProp, PropValue]):
    """Immutable sparse mapping of animatable property values.

    A key that is absent means "not specified", which is different from a key
    that is present with the same value as the element's base state.
    """

    __slots__ = ("_values",)

    def __init__(self, values: Mapping[PropKey, PropValue] | None = None, **kwargs: PropValue):
        merged: dict[AnimatableProp, PropValue] = {}
        for source in (values or {}, kwargs):
            for key, value in source.items():
                if value is None:
                    continue
                merged[coerce_prop(key)] = value
        self._values = merged

    def __getitem__(self, key: PropKey) -> PropValue:
        return self._values[coerce_prop(key)]

    def __contains__(self, key: object) -> bool:
        if isinstance(key, (AnimatableProp, str)):
            try:
                return coerce_prop(key) in self._values
            except ValueError:
                return False
        return False

    def __iter__(self) -> Iterator[AnimatableProp]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        body = ", ".join(f"{key.value}={value!r}" for key, value in self._values.items())
        return f"PropertyPatch({body})"

    def __hash__(self) -> int:
        return hash(frozenset(self._values.items()))

    def merged(self, other: Mapping[PropKey, PropValue]) -> "PropertyPatch":
        """Return a new patch with ``other`` layered on top of this one."""
        return PropertyPatch({**self._values, **PropertyPatch(other)._values})

    def to_dict(self) -> dict[str, Any]:
        return {key.value: value for key, value in self._values.items()}
