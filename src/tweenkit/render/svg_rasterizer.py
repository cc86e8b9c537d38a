"""Markup rasterization strategy: SVG documents drawn by rsvg-convert."""

import io
import logging
import os
import shutil
import subprocess
from collections.abc import Callable, Mapping

from PIL import Image

from ..constants import RSVG_CONVERT_BINARY, RSVG_CONVERT_ENV
from ..engine.timeline import TimelineSample
from ..errors import RasterizerUnavailableError
from .media import draw_media_frame
from .render_context import RenderContext

logger = logging.getLogger(__name__)

FrameSerializer = Callable[[TimelineSample, str | None], str]


def find_rsvg_convert(binary: str | None = None) -> str | None:
    """Resolve the rasterizer executable from an explicit path, the environment, or PATH."""
    candidate = binary or os.getenv(RSVG_CONVERT_ENV) or RSVG_CONVERT_BINARY
    return shutil.which(candidate)


class SvgRasterizer:
    """Turns timeline samples into images by piping markup through rsvg-convert."""

    def __init__(
        self,
        serializer: FrameSerializer,
        render_context: RenderContext,
        binary: str | None = None,
        timeout: float = 30.0,
    ):
        """
        Initialize the rasterizer.

        Args:
            serializer: Builds one SVG document from a sample and optional background
            render_context: Output size and background
            binary: rsvg-convert executable (environment or PATH lookup when None)
            timeout: Seconds allowed per frame

        Raises:
            RasterizerUnavailableError: If the executable cannot be found
        """
        executable = find_rsvg_convert(binary)
        if executable is None:
            raise RasterizerUnavailableError(
                f"Markup rasterization needs '{binary or RSVG_CONVERT_BINARY}' on PATH "
                f"(or set {RSVG_CONVERT_ENV})"
            )
        self.executable = executable
        self.serializer = serializer
        self.context = render_context
        self.timeout = timeout
        logger.info("Rasterizing frames with %s", executable)

    def command(self) -> list[str]:
        return [
            self.executable,
            "--format", "png",
            "--width", str(self.context.width),
            "--height", str(self.context.height),
        ]

    def render_frame(
        self,
        sample: TimelineSample,
        media_frames: Mapping[str, Image.Image] | None = None,
    ) -> Image.Image:
        """Rasterize one sample; video frames are composited above the markup."""
        markup = self.serializer(sample, self.context.background)
        completed = subprocess.run(
            self.command(),
            input=markup.encode("utf-8"),
            capture_output=True,
            timeout=self.timeout,
            check=True,
        )
        with Image.open(io.BytesIO(completed.stdout)) as image:
            frame = image.convert("RGBA")
        if frame.size != self.context.size:
            frame = frame.resize(self.context.size, Image.Resampling.BILINEAR)

        s = self.context.scale
        for element in sample.top_level():
            media = (media_frames or {}).get(element.id)
            if media is None:
                continue
            box = (
                round(element.x * s),
                round(element.y * s),
                round(element.width * s),
                round(element.height * s),
            )
            draw_media_frame(frame, media, box, element.fit)
        return frame
