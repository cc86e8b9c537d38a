"""Time-based media sources composited into raster frames."""

import asyncio
import logging
import threading
from abc import ABC, abstractmethod
from bisect import bisect_right
from itertools import accumulate

from PIL import Image

from ..model import Element

logger = logging.getLogger(__name__)

_DEFAULT_FRAME_MS = 100


class MediaSource(ABC):
    """A seekable stream of frames backing a video element."""

    @property
    @abstractmethod
    def duration(self) -> float:
        """Length in seconds."""
        raise NotImplementedError

    @abstractmethod
    async def seek(self, seconds: float) -> None:
        raise NotImplementedError

    @abstractmethod
    def current_frame(self) -> Image.Image | None:
        """Frame at the last completed seek, or None before the first one."""
        raise NotImplementedError

    @abstractmethod
    def close(self) -> None:
        raise NotImplementedError


class AnimatedImageSource(MediaSource):
    """Media backed by a multi-frame image Pillow can read (GIF, APNG, WebP).

    Decoding runs in a worker thread. Only one decode is in flight at a time:
    a seek issued while an earlier one is still running waits on that one
    instead of starting another, and ``close()`` waits for it before the
    image is released.
    """

    def __init__(self, path: str):
        self.path = path
        self._image = Image.open(path)
        count = getattr(self._image, "n_frames", 1)
        durations = []
        for index in range(count):
            self._image.seek(index)
            durations.append(self._image.info.get("duration") or _DEFAULT_FRAME_MS)
        self._image.seek(0)
        self._starts = [0, *accumulate(durations)][:-1]
        self._duration_ms = sum(durations)
        self._frame: Image.Image | None = None
        self._index = -1
        self._lock = threading.Lock()
        self._pending: asyncio.Future | None = None
        self._closed = False

    @property
    def duration(self) -> float:
        return self._duration_ms / 1000

    def frame_index(self, seconds: float) -> int:
        millis = max(0.0, min(seconds * 1000, self._duration_ms - 1e-6))
        return max(0, bisect_right(self._starts, millis) - 1)

    async def seek(self, seconds: float) -> None:
        pending = self._pending
        if pending is not None and not pending.done():
            await asyncio.shield(pending)
            return
        self._pending = asyncio.ensure_future(asyncio.to_thread(self._seek_sync, seconds))
        await asyncio.shield(self._pending)

    def _seek_sync(self, seconds: float) -> None:
        with self._lock:
            if self._closed:
                return
            index = self.frame_index(seconds)
            if index == self._index and self._frame is not None:
                return
            self._frame = self._decode(index)
            self._index = index

    def _decode(self, index: int) -> Image.Image:
        self._image.seek(index)
        return self._image.convert("RGBA")

    def current_frame(self) -> Image.Image | None:
        return self._frame

    def close(self) -> None:
        self._closed = True
        with self._lock:
            self._image.close()


def media_local_time(element: Element, frame: int, fps: int) -> float:
    """Seconds into the media for ``frame``, clamped to the trim window."""
    seconds = element.trim_start + frame / fps * element.playback_rate
    seconds = max(element.trim_start, seconds)
    if element.trim_end is not None:
        seconds = min(element.trim_end, seconds)
    return seconds


async def seek_with_timeout(source: MediaSource, seconds: float, timeout: float) -> bool:
    """Seek ``source``; returns False when the seek did not finish in ``timeout`` seconds."""
    try:
        await asyncio.wait_for(source.seek(seconds), timeout)
    except asyncio.TimeoutError:
        logger.debug("Media seek to %.3fs timed out after %.3fs", seconds, timeout)
        return False
    return True


def fit_box(
    source_size: tuple[int, int],
    box: tuple[int, int, int, int],
    fit: str,
) -> tuple[tuple[int, int], tuple[int, int], tuple[int, int, int, int] | None]:
    """
    Lay out a source image inside a destination box.

    Args:
        source_size: Width and height of the media frame
        box: Destination ``(left, top, width, height)``
        fit: ``contain`` letterboxes, ``cover`` crops, ``fill`` stretches

    Returns:
        Resized size, paste offset and an optional crop of the resized image
    """
    left, top, width, height = box
    src_w, src_h = source_size
    if fit == "fill" or src_w <= 0 or src_h <= 0:
        return (width, height), (left, top), None

    ratio = (
        max(width / src_w, height / src_h) if fit == "cover" else min(width / src_w, height / src_h)
    )
    new_w = max(1, round(src_w * ratio))
    new_h = max(1, round(src_h * ratio))
    if fit == "cover":
        crop_x = (new_w - width) // 2
        crop_y = (new_h - height) // 2
        return (new_w, new_h), (left, top), (crop_x, crop_y, crop_x + width, crop_y + height)
    return (new_w, new_h), (left + (width - new_w) // 2, top + (height - new_h) // 2), None


def draw_media_frame(
    layer: Image.Image,
    frame: Image.Image,
    box: tuple[int, int, int, int],
    fit: str = "contain",
) -> None:
    """Composite a media frame into ``layer`` within ``box``."""
    if box[2] <= 0 or box[3] <= 0:
        return
    size, offset, crop = fit_box(frame.size, box, fit)
    resized = frame.convert("RGBA").resize(size, Image.Resampling.BILINEAR)
    if crop is not None:
        resized = resized.crop(crop)
    composite_at(layer, resized, offset)


def composite_at(layer: Image.Image, image: Image.Image, offset: tuple[int, int]) -> None:
    """Alpha-composite ``image`` over ``layer`` at ``offset``; negative offsets are clipped."""
    overlay = Image.new("RGBA", layer.size, (0, 0, 0, 0))
    overlay.paste(image, offset)
    layer.alpha_composite(overlay)
