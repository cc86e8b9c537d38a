"""Frame encoders for animated raster containers and codec negotiation."""

import logging
from abc import ABC, abstractmethod
from collections.abc import Iterable, Mapping
from io import BytesIO
from types import MappingProxyType

from PIL import Image, features

from ..constants import DEFAULT_VIDEO_BITRATE, DEFAULT_VIDEO_FORMAT, DEFAULT_VIDEO_QUALITY, LOSSLESS_BITRATE_THRESHOLD
from ..errors import EncoderUnavailableError

logger = logging.getLogger(__name__)


def frame_durations(count: int, fps: int) -> list[int]:
    """Whole-millisecond durations whose running sum tracks ``i * 1000 / fps``."""
    durations = []
    elapsed = 0
    for index in range(1, count + 1):
        target = round(index * 1000 / fps)
        durations.append(target - elapsed)
        elapsed = target
    return durations


class FrameEncoder(ABC):
    """Accumulates rendered frames and produces one encoded container."""

    name: str = ""
    extension: str = ""
    media_type: str = "application/octet-stream"

    def __init__(
        self,
        fps: int,
        loop: bool = True,
        quality: int = DEFAULT_VIDEO_QUALITY,
        bitrate: int = DEFAULT_VIDEO_BITRATE,
        transparent: bool = False,
    ):
        self.fps = fps
        self.loop = loop
        self.quality = quality
        self.bitrate = bitrate
        self.transparent = transparent

    @classmethod
    @abstractmethod
    def available(cls) -> bool:
        """Whether the running Pillow build can write this container."""
        raise NotImplementedError

    @abstractmethod
    def add_frame(self, frame: Image.Image) -> None:
        raise NotImplementedError

    @abstractmethod
    def finish(self) -> bytes:
        raise NotImplementedError


class PillowSequenceEncoder(FrameEncoder, ABC):
    """Template encoder for Pillow-supported animated image formats."""

    @property
    @abstractmethod
    def pillow_format(self) -> str:
        """Pillow format identifier (for example, ``GIF`` or ``WEBP``)."""
        raise NotImplementedError

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self._frames: list[Image.Image] = []

    @classmethod
    def _can_save_all(cls, pillow_format: str) -> bool:
        Image.init()
        return pillow_format in Image.SAVE_ALL

    def prepare(self, frame: Image.Image) -> Image.Image:
        """Copy of ``frame`` in the mode this container stores."""
        if self.transparent:
            return frame.convert("RGBA")
        return frame.convert("RGB")

    def add_frame(self, frame: Image.Image) -> None:
        self._frames.append(self.prepare(frame))

    @property
    def frame_count(self) -> int:
        return len(self._frames)

    def finish(self) -> bytes:
        if not self._frames:
            return b""

        buffer = BytesIO()
        self._frames[0].save(
            buffer,
            format=self.pillow_format,
            save_all=True,
            append_images=self._frames[1:],
            duration=frame_durations(len(self._frames), self.fps),
            **self.loop_options,
            **self.save_options,
        )
        self._frames.clear()
        return buffer.getvalue()

    @property
    def loop_options(self) -> dict[str, object]:
        # 0 repeats forever; 1 plays once.
        return {"loop": 0 if self.loop else 1}

    @property
    def save_options(self) -> dict[str, object]:
        """Additional Pillow ``save`` kwargs for this format."""
        return {}


class WebPEncoder(PillowSequenceEncoder):
    """Animated WebP; lossless at high bitrates."""

    name = "webp"
    extension = ".webp"
    media_type = "image/webp"
    pillow_format = "WEBP"

    @classmethod
    def available(cls) -> bool:
        return bool(features.check("webp")) and cls._can_save_all("WEBP")

    @property
    def save_options(self) -> dict[str, object]:
        if self.bitrate >= LOSSLESS_BITRATE_THRESHOLD:
            return {"lossless": True, "quality": 100, "method": 4}
        return {"lossless": False, "quality": self.quality, "method": 4}


class ApngEncoder(PillowSequenceEncoder):
    """Animated PNG."""

    name = "apng"
    extension = ".png"
    media_type = "image/apng"
    pillow_format = "PNG"

    @classmethod
    def available(cls) -> bool:
        return cls._can_save_all("PNG")

    @property
    def loop_options(self) -> dict[str, object]:
        return {"loop": 0 if self.loop else 1, "default_image": False}


class GifEncoder(PillowSequenceEncoder):
    """Animated GIF with an adaptive palette per frame."""

    name = "gif"
    extension = ".gif"
    media_type = "image/gif"
    pillow_format = "GIF"

    @classmethod
    def available(cls) -> bool:
        return cls._can_save_all("GIF")

    def prepare(self, frame: Image.Image) -> Image.Image:
        if self.transparent:
            return frame.convert("RGBA")
        return frame.convert("RGB").convert("P", palette=Image.Palette.ADAPTIVE)

    @property
    def loop_options(self) -> dict[str, object]:
        # GIFs without a loop extension play once.
        return {"loop": 0} if self.loop else {}

    @property
    def save_options(self) -> dict[str, object]:
        options: dict[str, object] = {"optimize": False}
        if self.transparent:
            options["disposal"] = 2
        return options


EncoderRegistry = Mapping[str, type[FrameEncoder]]

DEFAULT_ENCODERS: EncoderRegistry = MappingProxyType({
    WebPEncoder.name: WebPEncoder,
    ApngEncoder.name: ApngEncoder,
    GifEncoder.name: GifEncoder,
})


def negotiate_encoder(
    formats: Iterable[str],
    registry: EncoderRegistry = DEFAULT_ENCODERS,
    fallback: str | None = DEFAULT_VIDEO_FORMAT,
) -> type[FrameEncoder]:
    """
    Pick the first usable encoder from a preference list.

    Args:
        formats: Container names in order of preference
        registry: Encoder classes by container name
        fallback: Container tried when no preferred one is usable (None disables)

    Returns:
        The negotiated encoder class

    Raises:
        EncoderUnavailableError: If neither a preferred nor the fallback container is usable
    """
    tried = []
    for name in formats:
        tried.append(name)
        encoder = registry.get(name.lower())
        if encoder is None:
            logger.debug("No encoder registered for %r", name)
            continue
        if encoder.available():
            logger.info("Negotiated %s encoder", encoder.name)
            return encoder
        logger.debug("Encoder %r is not supported by this Pillow build", name)

    if fallback is not None and fallback not in tried:
        encoder = registry.get(fallback)
        if encoder is not None and encoder.available():
            logger.info("No preferred encoder available; falling back to %s", encoder.name)
            return encoder
        tried.append(fallback)

    raise EncoderUnavailableError(f"No usable encoder among: {', '.join(tried) or 'none'}")
