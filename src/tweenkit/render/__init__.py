"""Raster rendering: Pillow direct draw, markup rasterization and media sources."""

from .media import AnimatedImageSource, MediaSource, draw_media_frame, media_local_time
from .render_context import RenderContext
from .renderer import Renderer
from .svg_rasterizer import SvgRasterizer, find_rsvg_convert

__all__ = [
    "AnimatedImageSource",
    "MediaSource",
    "RenderContext",
    "Renderer",
    "SvgRasterizer",
    "draw_media_frame",
    "find_rsvg_convert",
    "media_local_time",
]
