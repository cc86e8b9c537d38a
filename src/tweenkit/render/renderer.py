"""Renderer for drawing timeline samples using Pillow."""

import base64
import io
import logging
from collections.abc import Callable, Mapping

from PIL import Image, ImageChops, ImageDraw, ImageFilter, ImageFont

from ..constants import FALLBACK_LINE_WIDTH
from ..engine import geometry
from ..engine.color import rgba
from ..engine.timeline import TimelineSample
from ..model import BlendMode, Element, ElementType, ShadowEntry
from .media import composite_at, draw_media_frame
from .render_context import RenderContext

logger = logging.getLogger(__name__)

_PLACEHOLDER = (17, 17, 17, 255)
_TRANSPARENT = (0, 0, 0, 0)

EMPTY_PATH = "Path elements without path data were not drawn"

_BLEND_OPS = {
    BlendMode.MULTIPLY: ImageChops.multiply,
    BlendMode.SCREEN: ImageChops.screen,
    BlendMode.OVERLAY: ImageChops.overlay,
    BlendMode.DARKEN: ImageChops.darker,
    BlendMode.LIGHTEN: ImageChops.lighter,
}


class Renderer:
    """Draws resolved scene samples onto one reused RGBA canvas."""

    def __init__(
        self,
        render_context: RenderContext,
        on_warning: Callable[[str], object] | None = None,
    ):
        """
        Initialize renderer.

        Args:
            render_context: Canvas size, resolution multiplier and background
            on_warning: Receives messages about content that was skipped
        """
        self.context = render_context
        self.on_warning = on_warning
        self.canvas = Image.new("RGBA", render_context.size, render_context.background_rgba)
        self._images: dict[str, Image.Image | None] = {}
        self._fonts: dict[tuple[str, int], ImageFont.ImageFont | ImageFont.FreeTypeFont] = {}

    def clear(self) -> Image.Image:
        """Reset the canvas to the background and return it."""
        self.canvas.paste(self.context.background_rgba, (0, 0, *self.context.size))
        return self.canvas

    def render_frame(
        self,
        sample: TimelineSample,
        media_frames: Mapping[str, Image.Image] | None = None,
    ) -> Image.Image:
        """
        Render one timeline sample.

        Args:
            sample: Resolved scene state
            media_frames: Current frame of each video element, keyed by element id

        Returns:
            The shared canvas; copy it before rendering the next frame
        """
        self.clear()
        lookup = sample.lookup()
        for element in sample.top_level():
            self._composite(self.canvas, element, lookup, media_frames or {}, frozenset())
        return self.canvas

    # -- layers ---------------------------------------------------------

    def _composite(
        self,
        target: Image.Image,
        element: Element,
        lookup: Mapping[str, Element],
        media_frames: Mapping[str, Image.Image],
        visiting: frozenset[str],
    ) -> None:
        if not element.visible or element.id in visiting:
            return
        layer = Image.new("RGBA", target.size, _TRANSPARENT)

        if element.type == ElementType.GROUP:
            for child_id in element.child_ids:
                child = lookup.get(child_id)
                if child is not None:
                    self._composite(layer, child, lookup, media_frames, visiting | {element.id})
        else:
            self._draw_element(layer, element, media_frames)

        layer = self._transform(layer, element)
        if element.blur > 0:
            layer = layer.filter(ImageFilter.GaussianBlur(element.blur * self.context.scale))
        if element.opacity < 1:
            layer = _with_opacity(layer, element.opacity)
        shadow = element.primary_shadow()
        if shadow is not None:
            self._drop_shadow(target, layer, shadow)
        _blend(target, layer, element.blend_mode)

    def _transform(self, layer: Image.Image, element: Element) -> Image.Image:
        sx, sy = geometry.effective_scale(element)
        if not element.rotation and sx == 1 and sy == 1:
            return layer
        if sx == 0 or sy == 0:
            return Image.new("RGBA", layer.size, _TRANSPARENT)
        px, py = geometry.pivot(element)
        s = self.context.scale
        forward = geometry.transform_about(px * s, py * s, element.rotation, sx, sy)
        return layer.transform(
            layer.size,
            Image.Transform.AFFINE,
            data=geometry.invert(forward),
            resample=Image.Resampling.BICUBIC,
        )

    def _drop_shadow(self, target: Image.Image, layer: Image.Image, shadow: ShadowEntry) -> None:
        s = self.context.scale
        silhouette = Image.new("RGBA", layer.size, rgba(shadow.color, 1.0))
        alpha = layer.getchannel("A").point(lambda a: round(a * shadow.opacity))
        silhouette.putalpha(alpha)
        if shadow.blur > 0:
            silhouette = silhouette.filter(ImageFilter.GaussianBlur(shadow.blur * s / 2))
        composite_at(target, silhouette, (round(shadow.x * s), round(shadow.y * s)))

    # -- shapes ---------------------------------------------------------

    def _draw_element(
        self,
        layer: Image.Image,
        element: Element,
        media_frames: Mapping[str, Image.Image],
    ) -> None:
        s = self.context.scale
        draw = ImageDraw.Draw(layer, "RGBA")
        x, y, w, h = element.x * s, element.y * s, element.width * s, element.height * s
        fill = _fill_color(element)
        outline, width = _stroke(element, s)
        kind = element.type

        if kind == ElementType.RECT:
            box = (x, y, x + w, y + h)
            if element.rx > 0:
                draw.rounded_rectangle(box, radius=element.rx * s, fill=fill, outline=outline, width=width)
            else:
                draw.rectangle(box, fill=fill, outline=outline, width=width)
        elif kind == ElementType.CIRCLE:
            cx, cy = x + w / 2, y + h / 2
            r = geometry.outer_radius(w, h)
            draw.ellipse((cx - r, cy - r, cx + r, cy + r), fill=fill, outline=outline, width=width)
        elif kind == ElementType.ELLIPSE:
            draw.ellipse((x, y, x + w, y + h), fill=fill, outline=outline, width=width)
        elif kind == ElementType.LINE:
            color, line_width = _open_stroke(element, s)
            draw.line([(x, y + h / 2), (x + w, y + h / 2)], fill=color, width=line_width)
        elif kind in (ElementType.POLYGON, ElementType.STAR):
            points = [(px * s, py * s) for px, py in geometry.regular_shape_vertices(element)]
            draw.polygon(points, fill=fill, outline=outline, width=width)
        elif kind == ElementType.TEXT:
            self._draw_text(draw, element)
        elif kind == ElementType.PATH:
            self._draw_path(layer, element)
        elif kind == ElementType.IMAGE:
            self._draw_image(layer, element)
        elif kind == ElementType.VIDEO:
            frame = media_frames.get(element.id)
            if frame is not None:
                draw_media_frame(layer, frame, _box(element, s), element.fit)

    def _draw_text(self, draw: ImageDraw.ImageDraw, element: Element) -> None:
        if not element.text:
            return
        s = self.context.scale
        size = max(1, round(element.font_size * s))
        font = self._font(element.font_family, size)
        color = _fill_color(element) or (0, 0, 0, 255)
        if isinstance(font, ImageFont.FreeTypeFont):
            baseline = (element.y + element.font_size) * s
            draw.text((element.x * s, baseline), element.text, font=font, fill=color, anchor="ls")
        else:
            # Bitmap fonts only support top-left anchoring.
            draw.text((element.x * s, element.y * s), element.text, font=font, fill=color)

    def _draw_path(self, layer: Image.Image, element: Element) -> None:
        if not element.d.strip():
            self._warn(EMPTY_PATH)
            return
        s = self.context.scale
        try:
            subpaths = geometry.parse_path(element.d)
        except geometry.PathSyntaxError as exc:
            self._warn(f"Malformed path data was not drawn: {exc}")
            return
        polylines = [
            [(px * s, py * s) for px, py in geometry.flatten_subpath(subpath)]
            for subpath in subpaths
        ]
        draw = ImageDraw.Draw(layer, "RGBA")
        fill = _fill_color(element)
        if element.closed and fill is not None:
            mask = _path_mask(layer.size, polylines, element.fill_rule)
            painted = Image.new("RGBA", layer.size, fill)
            painted.putalpha(ImageChops.multiply(mask, painted.getchannel("A")))
            layer.alpha_composite(painted)

        stroke = element.primary_stroke()
        if stroke is not None:
            color, width = rgba(stroke.color), max(1, round(stroke.width * s))
        elif not element.closed:
            color, width = _open_stroke(element, s)
        else:
            return
        for points in polylines:
            if element.closed and len(points) > 2:
                points = [*points, points[0]]
            draw.line(points, fill=color, width=width, joint="curve")

    def _draw_image(self, layer: Image.Image, element: Element) -> None:
        box = _box(element, self.context.scale)
        source = self._image(element.href) if element.href else None
        if source is None:
            ImageDraw.Draw(layer).rectangle(
                (box[0], box[1], box[0] + box[2], box[1] + box[3]), fill=_PLACEHOLDER
            )
            return
        draw_media_frame(layer, source, box, element.fit)

    # -- resources ------------------------------------------------------

    def _image(self, href: str) -> Image.Image | None:
        if href not in self._images:
            try:
                self._images[href] = _load_image(href)
            except (OSError, ValueError) as exc:
                self._warn(f"Image could not be loaded and was drawn as a placeholder: {exc}")
                self._images[href] = None
        return self._images[href]

    def _warn(self, message: str) -> None:
        if self.on_warning is not None:
            self.on_warning(message)
        else:
            logger.warning(message)

    def _font(self, family: str, size: int):
        key = (family, size)
        if key not in self._fonts:
            try:
                self._fonts[key] = ImageFont.truetype(family, size)
            except OSError:
                self._fonts[key] = ImageFont.load_default(size=size)
        return self._fonts[key]


def _load_image(href: str) -> Image.Image:
    if href.startswith("data:"):
        _header, _, payload = href.partition(",")
        with Image.open(io.BytesIO(base64.b64decode(payload))) as image:
            return image.convert("RGBA")
    with Image.open(href.removeprefix("file://")) as image:
        return image.convert("RGBA")


def _box(element: Element, scale: float) -> tuple[int, int, int, int]:
    return (
        round(element.x * scale),
        round(element.y * scale),
        round(element.width * scale),
        round(element.height * scale),
    )


def _fill_color(element: Element) -> tuple[int, int, int, int] | None:
    fill = element.primary_fill()
    if fill is None:
        return None
    return rgba(fill.color, fill.opacity)


def _stroke(element: Element, scale: float) -> tuple[tuple[int, int, int, int] | None, int]:
    stroke = element.primary_stroke()
    if stroke is None or stroke.width <= 0:
        return None, 0
    return rgba(stroke.color), max(1, round(stroke.width * scale))


def _open_stroke(element: Element, scale: float) -> tuple[tuple[int, int, int, int], int]:
    """Stroke for open outlines: the stroke, else the fill color at a fixed width."""
    stroke = element.primary_stroke()
    if stroke is not None:
        return rgba(stroke.color), max(1, round(stroke.width * scale))
    fill = element.primary_fill()
    color = rgba(fill.color) if fill is not None else (0, 0, 0, 255)
    return color, max(1, round(FALLBACK_LINE_WIDTH * scale))


def _path_mask(size: tuple[int, int], polylines: list[list[geometry.Point]], fill_rule: str) -> Image.Image:
    mask = Image.new("L", size, 0)
    for points in polylines:
        if len(points) < 3:
            continue
        if fill_rule == "evenodd":
            ring = Image.new("L", size, 0)
            ImageDraw.Draw(ring).polygon(points, fill=255)
            mask = ImageChops.difference(mask, ring)
        else:
            ImageDraw.Draw(mask).polygon(points, fill=255)
    return mask


def _with_opacity(layer: Image.Image, opacity: float) -> Image.Image:
    alpha = layer.getchannel("A").point(lambda a: round(a * max(0.0, opacity)))
    faded = layer.copy()
    faded.putalpha(alpha)
    return faded


def _blend(target: Image.Image, layer: Image.Image, mode: BlendMode) -> None:
    op = _BLEND_OPS.get(mode)
    if op is None:
        target.alpha_composite(layer)
        return
    mixed = op(target.convert("RGB"), layer.convert("RGB")).convert("RGBA")
    mixed.putalpha(ImageChops.lighter(target.getchannel("A"), layer.getchannel("A")))
    target.paste(mixed, (0, 0), mask=layer.getchannel("A"))
