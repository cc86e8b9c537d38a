"""Scene elements: geometry, paint layers and type-specific fields."""

from dataclasses import dataclass, field, replace
from enum import Enum

from .patch import AnimatableProp, PropertyPatch


class ElementType(str, Enum):
    RECT = "rect"
    CIRCLE = "circle"
    ELLIPSE = "ellipse"
    LINE = "line"
    POLYGON = "polygon"
    STAR = "star"
    TEXT = "text"
    PATH = "path"
    GROUP = "group"
    IMAGE = "image"
    VIDEO = "video"


class BlendMode(str, Enum):
    NORMAL = "normal"
    MULTIPLY = "multiply"
    SCREEN = "screen"
    OVERLAY = "overlay"
    DARKEN = "darken"
    LIGHTEN = "lighten"


@dataclass
class FillEntry:
    id: str = "fill"
    visible: bool = True
    type: str = "solid"  # solid | linear | radial | none
    color: str = "000000"
    opacity: float = 1.0


@dataclass
class StrokeEntry:
    id: str = "stroke"
    visible: bool = True
    color: str = "000000"
    width: float = 1.0
    position: str = "center"  # center | inside | outside
    cap: str = "butt"  # butt | round | square
    join: str = "miter"  # miter | round | bevel
    dash_array: tuple[float, ...] = ()
    dash_offset: float = 0.0


@dataclass
class ShadowEntry:
    id: str = "shadow"
    visible: bool = True
    color: str = "000000"
    opacity: float = 0.25
    x: float = 0.0
    y: float = 4.0
    blur: float = 8.0
    spread: float = 0.0


@dataclass(frozen=True)
class TransformOrigin:
    """Normalized (0-1 per axis) pivot used for rotation and scale."""

    x: float = 0.5
    y: float = 0.5


# Properties copied straight onto Element attributes of the same name.
_DIRECT_FIELDS = {
    AnimatableProp.X: "x",
    AnimatableProp.Y: "y",
    AnimatableProp.WIDTH: "width",
    AnimatableProp.HEIGHT: "height",
    AnimatableProp.ROTATION: "rotation",
    AnimatableProp.SCALE_X: "scale_x",
    AnimatableProp.SCALE_Y: "scale_y",
    AnimatableProp.OPACITY: "opacity",
    AnimatableProp.RX: "rx",
    AnimatableProp.FONT_SIZE: "font_size",
    AnimatableProp.BLUR: "blur",
    AnimatableProp.D: "d",
}

_SHADOW_FIELDS = {
    AnimatableProp.SHADOW_X: "x",
    AnimatableProp.SHADOW_Y: "y",
    AnimatableProp.SHADOW_BLUR: "blur",
    AnimatableProp.SHADOW_OPACITY: "opacity",
    AnimatableProp.SHADOW_COLOR: "color",
}


@dataclass
class Element:
    """A drawable scene element.

    Position is the top-left corner of the bounding box for every type,
    including center-based shapes (circle, ellipse, polygon, star).
    """

    id: str
    type: ElementType = ElementType.RECT
    name: str = ""
    x: float = 0.0
    y: float = 0.0
    width: float = 100.0
    height: float = 100.0
    rotation: float = 0.0
    scale_x: float = 1.0
    scale_y: float = 1.0
    flip_x: bool = False
    flip_y: bool = False
    transform_origin: TransformOrigin = field(default_factory=TransformOrigin)
    opacity: float = 1.0
    blend_mode: BlendMode = BlendMode.NORMAL
    fills: list[FillEntry] = field(default_factory=list)
    strokes: list[StrokeEntry] = field(default_factory=list)
    shadows: list[ShadowEntry] = field(default_factory=list)
    blur: float = 0.0
    visible: bool = True
    # rect
    rx: float = 0.0
    # polygon / star
    sides: int = 6
    star_points: int = 5
    inner_radius: float = 0.4
    # text
    text: str = ""
    font_size: float = 16.0
    font_family: str = "sans-serif"
    font_weight: int = 400
    letter_spacing: float = 0.0
    # path
    d: str = ""
    closed: bool = False
    fill_rule: str = "nonzero"
    # group
    child_ids: list[str] = field(default_factory=list)
    # image / video
    href: str = ""
    media_id: str = ""
    trim_start: float = 0.0
    trim_end: float | None = None
    playback_rate: float = 1.0
    fit: str = "contain"  # contain | cover | fill

    def __post_init__(self) -> None:
        self.type = ElementType(self.type)
        self.blend_mode = BlendMode(self.blend_mode)
        if not self.name:
            self.name = self.id

    @property
    def is_center_based(self) -> bool:
        """Whether markup positions this shape by its center rather than its corner."""
        return self.type in (ElementType.CIRCLE, ElementType.ELLIPSE)

    def primary_fill(self) -> FillEntry | None:
        """First visible fill that paints something."""
        return next((f for f in self.fills if f.visible and f.type != "none"), None)

    def primary_stroke(self) -> StrokeEntry | None:
        return next((s for s in self.strokes if s.visible), None)

    def primary_shadow(self) -> ShadowEntry | None:
        return next((s for s in self.shadows if s.visible), None)

    def with_patch(self, patch: PropertyPatch) -> "Element":
        """Return a copy of this element with ``patch`` merged onto its base values."""
        if not patch:
            return self

        changes: dict[str, object] = {}
        for prop, attr in _DIRECT_FIELDS.items():
            if prop in patch:
                changes[attr] = patch[prop]

        if AnimatableProp.TRANSFORM_ORIGIN_X in patch or AnimatableProp.TRANSFORM_ORIGIN_Y in patch:
            changes["transform_origin"] = TransformOrigin(
                x=float(patch.get(AnimatableProp.TRANSFORM_ORIGIN_X, self.transform_origin.x)),
                y=float(patch.get(AnimatableProp.TRANSFORM_ORIGIN_Y, self.transform_origin.y)),
            )

        if AnimatableProp.FILL_COLOR in patch:
            changes["fills"] = _replace_first(
                self.fills,
                lambda f: f.visible and f.type != "none",
                color=str(patch[AnimatableProp.FILL_COLOR]),
            )

        stroke_changes: dict[str, object] = {}
        if AnimatableProp.STROKE_COLOR in patch:
            stroke_changes["color"] = str(patch[AnimatableProp.STROKE_COLOR])
        if AnimatableProp.STROKE_WIDTH in patch:
            stroke_changes["width"] = patch[AnimatableProp.STROKE_WIDTH]
        if stroke_changes:
            changes["strokes"] = _replace_first(self.strokes, lambda s: s.visible, **stroke_changes)

        shadow_changes = {
            attr: patch[prop] for prop, attr in _SHADOW_FIELDS.items() if prop in patch
        }
        if shadow_changes:
            changes["shadows"] = _replace_first(self.shadows, lambda s: s.visible, **shadow_changes)

        return replace(self, **changes)


def _replace_first(entries: list, predicate, **changes: object) -> list:
    """Copy ``entries`` with the first entry matching ``predicate`` updated."""
    updated = list(entries)
    for index, entry in enumerate(updated):
        if predicate(entry):
            updated[index] = replace(entry, **changes)
            break
    return updated
