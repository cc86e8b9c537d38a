"""Raster animation output provider.

Frames are rendered strictly in order into one reused canvas and handed to a
Pillow sequence encoder negotiated at setup. The export is a coroutine that
yields between frames so callers can cancel it or report progress.
"""

import asyncio
import logging
from collections.abc import Callable, Mapping
from functools import partial
from typing import Protocol

from PIL import Image

from ..engine.animator import Animator
from ..engine.easing import EasingLibrary
from ..engine.timeline import TimelineSample
from ..errors import ExportCancelledError
from ..model import Element, ElementType, Scene
from ..render.media import AnimatedImageSource, MediaSource, media_local_time, seek_with_timeout
from ..render.render_context import RenderContext
from ..render.renderer import Renderer
from ..render.svg_rasterizer import SvgRasterizer
from ._svg_serializer import serialize_frame
from .base import EMPTY_SCENE, ExportProgress, ExportResult, ExportWarnings, OutputProvider
from .encoders import DEFAULT_ENCODERS, EncoderRegistry, negotiate_encoder
from .options import VideoExportOptions

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[ExportProgress], None]

MEDIA_MISSING = "Video elements without a media source were skipped"


class FrameRasterizer(Protocol):
    def render_frame(
        self,
        sample: TimelineSample,
        media_frames: Mapping[str, Image.Image] | None = None,
    ) -> Image.Image: ...


RasterizerFactory = Callable[[VideoExportOptions, RenderContext, Callable[[str], object]], FrameRasterizer]
MediaFactory = Callable[[Element], MediaSource]


def build_rasterizer(
    options: VideoExportOptions,
    context: RenderContext,
    warn: Callable[[str], object],
) -> FrameRasterizer:
    """Rasterizer for the configured strategy; raises RasterizerUnavailableError."""
    if options.strategy == "markup":
        return SvgRasterizer(partial(serialize_frame, on_warning=warn), context)
    return Renderer(context, on_warning=warn)


def open_media_source(element: Element) -> MediaSource:
    return AnimatedImageSource(element.href)


class VideoOutputProvider(OutputProvider[VideoExportOptions]):
    """Output provider for animated raster containers (WebP, APNG, GIF)."""

    output_format = "video"
    # Pins negotiation to one container and disables the fallback.
    container: str | None = None

    def __init__(
        self,
        path: str = "",
        easings: EasingLibrary | None = None,
        container: str | None = None,
        encoders: EncoderRegistry = DEFAULT_ENCODERS,
        rasterizer_factory: RasterizerFactory = build_rasterizer,
        media_factory: MediaFactory = open_media_source,
    ):
        """
        Initialize the provider.

        Args:
            path: Path to the output file
            easings: Easing table shared with the evaluator
            container: Encode only this container instead of negotiating
            encoders: Encoder classes by container name
            rasterizer_factory: Builds the frame rasterizer for the chosen strategy
            media_factory: Opens the media source behind a video element
        """
        super().__init__(path, easings)
        if container is not None:
            self.container = container
        self.encoders = encoders
        self.rasterizer_factory = rasterizer_factory
        self.media_factory = media_factory

    def default_options(self) -> VideoExportOptions:
        return VideoExportOptions()

    def export(self, scene: Scene, options: VideoExportOptions | None = None) -> ExportResult:
        """Blocking wrapper around ``export_async``; must not be called from a running loop."""
        return asyncio.run(self.export_async(scene, options))

    async def export_async(
        self,
        scene: Scene,
        options: VideoExportOptions | None = None,
        on_progress: ProgressCallback | None = None,
        cancel_event: asyncio.Event | None = None,
    ) -> ExportResult:
        """
        Render and encode every frame of a scene.

        Args:
            scene: Scene to export
            options: Raster options (defaults when None)
            on_progress: Called with progress updates between frames
            cancel_event: When set, the export stops before the next frame

        Returns:
            The encoded container with any collected warnings

        Raises:
            ExportSetupError: If options, encoder or rasterizer are unusable
            ExportCancelledError: If ``cancel_event`` was set
        """
        options = options or self.default_options()
        options.validate()
        scene.validate()

        frame_count = scene.total_frames + 1
        _report(on_progress, "preparing", 0, frame_count)

        warnings = ExportWarnings(logger)
        if self.container is not None:
            encoder_class = negotiate_encoder((self.container,), self.encoders, fallback=None)
        else:
            encoder_class = negotiate_encoder(options.formats, self.encoders)

        background = None if options.transparent_background else (options.background or scene.background)
        context = RenderContext.for_scene(scene.width, scene.height, options.resolution, background)
        rasterizer = self.rasterizer_factory(options, context, warnings.add)
        encoder = encoder_class(
            fps=scene.fps,
            loop=options.loop,
            quality=options.quality,
            bitrate=options.video_bitrate,
            transparent=options.transparent_background,
        )
        if not any(el.visible for el in scene.elements):
            warnings.add(EMPTY_SCENE)

        animator = Animator(scene, self.easings)
        sources = self._open_media(scene, warnings)
        try:
            for frame in range(frame_count):
                if cancel_event is not None and cancel_event.is_set():
                    raise ExportCancelledError(f"Export cancelled at frame {frame}")

                image = await self._render(animator, rasterizer, context, sources, frame, options, warnings)
                encoder.add_frame(image)
                _report(on_progress, "rendering", frame + 1, frame_count)

                await asyncio.sleep(animator.frame_duration / 1000 if options.realtime else 0)

            _report(on_progress, "encoding", frame_count, frame_count)
            data = encoder.finish()
        finally:
            for source in sources.values():
                source.close()

        _report(on_progress, "complete", frame_count, frame_count)
        return ExportResult(
            data=data,
            media_type=encoder.media_type,
            warnings=warnings.as_tuple(),
            output_format=encoder.name,
        )

    async def _render(
        self,
        animator: Animator,
        rasterizer: FrameRasterizer,
        context: RenderContext,
        sources: Mapping[str, MediaSource],
        frame: int,
        options: VideoExportOptions,
        warnings: ExportWarnings,
    ) -> Image.Image:
        try:
            sample = animator.sample(frame)
            media_frames = await self._seek_media(sources, frame, animator, options.seek_timeout)
            return rasterizer.render_frame(sample, media_frames)
        except Exception as exc:
            logger.debug("Frame %d failed to render", frame, exc_info=True)
            warnings.add(f"Frame {frame} failed to render and was replaced with the background: {exc}")
            return Image.new("RGBA", context.size, context.background_rgba)

    async def _seek_media(
        self,
        sources: Mapping[str, MediaSource],
        frame: int,
        animator: Animator,
        timeout: float,
    ) -> dict[str, Image.Image]:
        frames = {}
        for element_id, source in sources.items():
            element = animator.scene.element(element_id)
            if element is None:
                continue
            seconds = media_local_time(animator.resolve(element, frame), frame, animator.fps)
            await seek_with_timeout(source, seconds, timeout)
            current = source.current_frame()
            if current is not None:
                frames[element_id] = current
        return frames

    def _open_media(self, scene: Scene, warnings: ExportWarnings) -> dict[str, MediaSource]:
        sources: dict[str, MediaSource] = {}
        try:
            for element in scene.elements:
                if element.type != ElementType.VIDEO or not element.visible:
                    continue
                if not element.href:
                    warnings.add(MEDIA_MISSING)
                    continue
                try:
                    sources[element.id] = self.media_factory(element)
                except OSError as exc:
                    warnings.add(f"Media for video element '{element.name}' could not be opened: {exc}")
        except BaseException:
            for source in sources.values():
                source.close()
            raise
        return sources


def _report(callback: ProgressCallback | None, phase: str, current: int, total: int) -> None:
    if callback is not None:
        callback(ExportProgress.at(phase, current, total))
