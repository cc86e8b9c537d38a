"""Per-target export options."""

from dataclasses import dataclass

from ..constants import (
    DEFAULT_SEEK_TIMEOUT,
    DEFAULT_VIDEO_BITRATE,
    DEFAULT_VIDEO_QUALITY,
    PREFERRED_VIDEO_FORMATS,
)
from ..engine.color import is_valid_hex
from ..errors import InvalidExportOptionsError

EASING_FIDELITIES = ("bezier", "sampled")
RASTER_STRATEGIES = ("direct", "markup")


def _check_fidelity(value: str) -> None:
    if value not in EASING_FIDELITIES:
        raise InvalidExportOptionsError(
            f"easing_fidelity must be one of {', '.join(EASING_FIDELITIES)} (got {value!r})"
        )


@dataclass(frozen=True)
class LottieExportOptions:
    loop: bool = True
    pretty_print: bool = False
    # "sampled" bakes non-bezier easings into per-frame keys.
    easing_fidelity: str = "bezier"

    def validate(self) -> None:
        _check_fidelity(self.easing_fidelity)


@dataclass(frozen=True)
class SvgExportOptions:
    animated: bool = True
    loop: bool = True
    easing_fidelity: str = "bezier"

    def validate(self) -> None:
        _check_fidelity(self.easing_fidelity)


@dataclass(frozen=True)
class VideoExportOptions:
    """Raster animation options.

    ``formats`` is tried in order; ``background`` of None uses the scene's.
    """

    formats: tuple[str, ...] = PREFERRED_VIDEO_FORMATS
    resolution: float = 1.0
    quality: int = DEFAULT_VIDEO_QUALITY
    video_bitrate: int = DEFAULT_VIDEO_BITRATE
    transparent_background: bool = False
    background: str | None = None
    loop: bool = True
    strategy: str = "direct"
    seek_timeout: float = DEFAULT_SEEK_TIMEOUT
    realtime: bool = False

    def validate(self) -> None:
        if not self.formats:
            raise InvalidExportOptionsError("At least one output format is required")
        if self.resolution <= 0:
            raise InvalidExportOptionsError(f"resolution must be positive (got {self.resolution})")
        if not 0 <= self.quality <= 100:
            raise InvalidExportOptionsError(f"quality must be within 0-100 (got {self.quality})")
        if self.video_bitrate <= 0:
            raise InvalidExportOptionsError(
                f"video_bitrate must be positive (got {self.video_bitrate})"
            )
        if self.strategy not in RASTER_STRATEGIES:
            raise InvalidExportOptionsError(
                f"strategy must be one of {', '.join(RASTER_STRATEGIES)} (got {self.strategy!r})"
            )
        if self.seek_timeout <= 0:
            raise InvalidExportOptionsError(
                f"seek_timeout must be positive (got {self.seek_timeout})"
            )
        if self.background is not None and not is_valid_hex(self.background):
            raise InvalidExportOptionsError(f"Invalid background color: {self.background!r}")
