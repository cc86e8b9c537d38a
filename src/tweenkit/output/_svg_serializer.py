"""Serialize resolved elements into self-contained SVG markup.

Used directly for static SVG output and by the markup rasterization strategy,
and as the source of initial attribute values for animated SVG output.
"""

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field

from ..constants import FALLBACK_LINE_WIDTH, SVG_NAMESPACE
from ..engine import geometry
from ..engine.color import hex_to_rgb
from ..engine.timeline import TimelineSample
from ..model import BlendMode, Element, ElementType
from ._svg_shared import _svg_color, _svg_num, _svg_points, _svg_tag, _svg_text
from .base import element_skipped_warning

_PLACEHOLDER_FILL = "#111"

EMPTY_PATH = "Path elements without path data were skipped"

_ASPECT_RATIO = {
    "fill": "none",
    "cover": "xMidYMid slice",
    "contain": "xMidYMid meet",
}


@dataclass
class SvgNode:
    """A single markup element: tag, ordered attributes and optional text."""

    tag: str
    attrs: dict[str, str] = field(default_factory=dict)
    text: str = ""

    def render(self, children: str = "") -> str:
        return _svg_tag(self.tag, self.attrs, _svg_text(self.text) + children)


def _fill(element: Element) -> tuple[str, float]:
    fill = element.primary_fill()
    if fill is None:
        return "none", 1.0
    return _svg_color(fill.color), fill.opacity


def paint_attrs(element: Element) -> dict[str, str]:
    """fill/stroke presentation attributes of a closed shape."""
    color, opacity = _fill(element)
    attrs = {"fill": color}
    if opacity != 1:
        attrs["fill-opacity"] = _svg_num(opacity)
    attrs.update(_stroke_attrs(element))
    return attrs


def _stroke_attrs(element: Element) -> dict[str, str]:
    stroke = element.primary_stroke()
    if stroke is None:
        return {"stroke": "none"}
    attrs = {"stroke": _svg_color(stroke.color), "stroke-width": _svg_num(stroke.width)}
    if stroke.cap != "butt":
        attrs["stroke-linecap"] = stroke.cap
    if stroke.join != "miter":
        attrs["stroke-linejoin"] = stroke.join
    if stroke.dash_array:
        attrs["stroke-dasharray"] = " ".join(_svg_num(v) for v in stroke.dash_array)
    if stroke.dash_offset:
        attrs["stroke-dashoffset"] = _svg_num(stroke.dash_offset)
    return attrs


def _open_stroke(element: Element, fallback: str) -> dict[str, str]:
    """Stroke for open geometry: falls back to ``fallback`` color at a fixed width."""
    stroke = element.primary_stroke()
    color = _svg_color(stroke.color) if stroke else fallback
    width = stroke.width if stroke else FALLBACK_LINE_WIDTH
    return {"stroke": color, "stroke-width": _svg_num(width), "stroke-linecap": "round"}


def shape_node(element: Element) -> SvgNode | None:
    """Markup for the element's own geometry, without its wrapper group.

    Returns None for types that have no standalone geometry (groups, video)
    and for paths without data.
    """
    x, y, w, h = element.x, element.y, element.width, element.height
    kind = element.type

    if kind == ElementType.RECT:
        attrs = {
            "x": _svg_num(x),
            "y": _svg_num(y),
            "width": _svg_num(w),
            "height": _svg_num(h),
            "rx": _svg_num(element.rx),
        }
        return SvgNode("rect", {**attrs, **paint_attrs(element)})

    if kind == ElementType.CIRCLE:
        cx, cy = geometry.center(element)
        attrs = {
            "cx": _svg_num(cx),
            "cy": _svg_num(cy),
            "r": _svg_num(geometry.outer_radius(w, h)),
        }
        return SvgNode("circle", {**attrs, **paint_attrs(element)})

    if kind == ElementType.ELLIPSE:
        cx, cy = geometry.center(element)
        attrs = {
            "cx": _svg_num(cx),
            "cy": _svg_num(cy),
            "rx": _svg_num(w / 2),
            "ry": _svg_num(h / 2),
        }
        return SvgNode("ellipse", {**attrs, **paint_attrs(element)})

    if kind == ElementType.LINE:
        (x1, y1), (x2, y2) = geometry.line_endpoints(element)
        attrs = {"x1": _svg_num(x1), "y1": _svg_num(y1), "x2": _svg_num(x2), "y2": _svg_num(y2)}
        fill_color, _ = _fill(element)
        fallback = fill_color if fill_color != "none" else "#000"
        return SvgNode("line", {**attrs, **_open_stroke(element, fallback)})

    if kind in (ElementType.POLYGON, ElementType.STAR):
        points = _svg_points(geometry.regular_shape_vertices(element))
        return SvgNode("polygon", {"points": points, **paint_attrs(element)})

    if kind == ElementType.TEXT:
        color, opacity = _fill(element)
        attrs = {
            "x": _svg_num(x),
            # Baseline approximation: text boxes are anchored at their top edge.
            "y": _svg_num(y + element.font_size),
            "font-family": element.font_family,
            "font-size": _svg_num(element.font_size),
            "font-weight": str(element.font_weight),
            "fill": color if color != "none" else "#000",
        }
        if opacity != 1:
            attrs["fill-opacity"] = _svg_num(opacity)
        if element.letter_spacing:
            attrs["letter-spacing"] = _svg_num(element.letter_spacing)
        return SvgNode("text", attrs, text=element.text)

    if kind == ElementType.PATH:
        if not element.d.strip():
            return None
        color, opacity = _fill(element)
        attrs = {"d": element.d, "fill": color if element.closed else "none"}
        if element.closed and opacity != 1:
            attrs["fill-opacity"] = _svg_num(opacity)
        fallback = "none" if element.closed or color == "none" else color
        attrs.update(_open_stroke(element, fallback))
        attrs["fill-rule"] = element.fill_rule
        return SvgNode("path", attrs)

    if kind == ElementType.IMAGE:
        box = {"x": _svg_num(x), "y": _svg_num(y), "width": _svg_num(w), "height": _svg_num(h)}
        if not element.href:
            return SvgNode("rect", {**box, "fill": _PLACEHOLDER_FILL})
        return SvgNode(
            "image",
            {**box, "href": element.href, "preserveAspectRatio": _ASPECT_RATIO.get(element.fit, "xMidYMid meet")},
        )

    return None


def transform_attr(element: Element) -> str:
    """Static pivot-aware rotate/scale transform, empty when the element is untransformed."""
    px, py = geometry.pivot(element)
    sx, sy = geometry.effective_scale(element)
    parts = []
    if element.rotation:
        parts.append(f"rotate({_svg_num(element.rotation)} {_svg_num(px)} {_svg_num(py)})")
    if sx != 1 or sy != 1:
        parts.append(
            f"translate({_svg_num(px)} {_svg_num(py)}) "
            f"scale({_svg_num(sx)} {_svg_num(sy)}) "
            f"translate({_svg_num(-px)} {_svg_num(-py)})"
        )
    return " ".join(parts)


def filter_attr(element: Element) -> str:
    parts = []
    shadow = element.primary_shadow()
    if shadow is not None:
        r, g, b = hex_to_rgb(shadow.color)
        parts.append(
            f"drop-shadow({_svg_num(shadow.x)}px {_svg_num(shadow.y)}px {_svg_num(shadow.blur)}px "
            f"rgba({r},{g},{b},{_svg_num(shadow.opacity)}))"
        )
    if element.blur > 0:
        parts.append(f"blur({_svg_num(element.blur)}px)")
    return " ".join(parts)


def wrapper_attrs(element: Element, with_transform: bool = True) -> dict[str, str]:
    attrs: dict[str, str] = {}
    if element.opacity != 1:
        attrs["opacity"] = _svg_num(element.opacity)
    if with_transform:
        transform = transform_attr(element)
        if transform:
            attrs["transform"] = transform
    effect = filter_attr(element)
    if effect:
        attrs["filter"] = effect
    if element.blend_mode != BlendMode.NORMAL:
        attrs["style"] = f"mix-blend-mode:{element.blend_mode.value}"
    return attrs


def serialize_element(
    element: Element,
    lookup: Mapping[str, Element] | None = None,
    on_warning: Callable[[str], object] | None = None,
    _visiting: frozenset[str] = frozenset(),
) -> str:
    """Markup for one element wrapped in its presentation group.

    Groups render their visible children (resolved through ``lookup``) inside
    their own wrapper. Hidden elements and video produce no markup. With
    ``on_warning`` set, an element whose values cannot be serialized is
    reported there and left out; otherwise the ValueError propagates.
    """
    if not element.visible or element.id in _visiting:
        return ""

    if element.type == ElementType.GROUP:
        visiting = _visiting | {element.id}
        inner = "".join(
            serialize_element(child, lookup, on_warning, visiting)
            for child in group_children(element, lookup)
        )
        return _svg_tag("g", wrapper_attrs(element), inner) if inner else ""

    try:
        node = shape_node(element)
        if node is None:
            if on_warning is not None and element.type == ElementType.PATH:
                on_warning(EMPTY_PATH)
            return ""
        return _svg_tag("g", wrapper_attrs(element), node.render())
    except ValueError as exc:
        if on_warning is None:
            raise
        on_warning(element_skipped_warning(element, "SVG", exc))
        return ""


def group_children(group: Element, lookup: Mapping[str, Element] | None) -> list[Element]:
    if not lookup:
        return []
    return [lookup[child_id] for child_id in group.child_ids if child_id in lookup]


def document_open(width: int, height: int, extra: Mapping[str, str] | None = None) -> str:
    attrs = {
        "xmlns": SVG_NAMESPACE,
        "width": str(width),
        "height": str(height),
        "viewBox": f"0 0 {width} {height}",
        **(extra or {}),
    }
    return "<svg" + "".join(f' {name}="{value}"' for name, value in attrs.items()) + ">"


def serialize_frame(
    sample: TimelineSample,
    background: str | None = None,
    on_warning: Callable[[str], object] | None = None,
) -> str:
    """Complete SVG document for one timeline sample.

    ``background`` paints a full-canvas rect beneath everything; None leaves
    the canvas transparent.
    """
    lookup = sample.lookup()
    parts = [document_open(sample.width, sample.height)]
    if background:
        parts.append(
            f'<rect width="{sample.width}" height="{sample.height}" fill="{_svg_color(background)}"/>'
        )
    for element in sample.top_level():
        markup = serialize_element(element, lookup, on_warning)
        if markup:
            parts.append(markup)
    parts.append("</svg>")
    return "\n".join(parts)
