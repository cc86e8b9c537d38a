"""Base class for output format providers."""

import logging
from abc import ABC, abstractmethod
from collections.abc import Iterator
from dataclasses import dataclass
from typing import Generic, TypeVar

from ..engine.easing import EasingLibrary
from ..model import Element, Scene

OptionsT = TypeVar("OptionsT")

logger = logging.getLogger(__name__)

EMPTY_SCENE = "Scene has no exportable elements"


def element_skipped_warning(element: Element, target: str, error: Exception) -> str:
    return f"Element '{element.name}' could not be exported to {target} and was skipped: {error}"


class ExportWarnings:
    """Ordered, message-deduplicated log of non-fatal export problems."""

    def __init__(self, log: logging.Logger | None = None):
        self._messages: list[str] = []
        self._log = log or logger

    def add(self, message: str) -> bool:
        """Record ``message`` unless it is already present; returns whether it was new."""
        if message in self._messages:
            return False
        self._messages.append(message)
        self._log.warning(message)
        return True

    def __iter__(self) -> Iterator[str]:
        return iter(self._messages)

    def __len__(self) -> int:
        return len(self._messages)

    def __contains__(self, message: object) -> bool:
        return message in self._messages

    def as_tuple(self) -> tuple[str, ...]:
        return tuple(self._messages)


@dataclass(frozen=True)
class ExportResult:
    """An encoded artifact plus the warnings collected while producing it."""

    data: bytes
    media_type: str
    warnings: tuple[str, ...] = ()
    output_format: str = ""

    @property
    def text(self) -> str:
        return self.data.decode("utf-8")


@dataclass(frozen=True)
class ExportProgress:
    phase: str  # preparing | rendering | encoding | complete
    current_frame: int
    total_frames: int
    percent: float

    @classmethod
    def at(cls, phase: str, current_frame: int, total_frames: int) -> "ExportProgress":
        percent = 100.0 if total_frames <= 0 else min(100.0, 100.0 * current_frame / total_frames)
        return cls(phase, current_frame, total_frames, percent)


class OutputProvider(ABC, Generic[OptionsT]):
    """Abstract base class for output format providers."""

    output_format: str = ""
    media_type: str = "application/octet-stream"

    def __init__(self, path: str = "", easings: EasingLibrary | None = None):
        """
        Initialize the provider with an output file path.

        Args:
            path: Path to the output file
            easings: Easing table shared with the evaluator (default presets when None)
        """
        self.path = path
        self.easings = easings

    @abstractmethod
    def default_options(self) -> OptionsT:
        raise NotImplementedError

    @abstractmethod
    def export(self, scene: Scene, options: OptionsT | None = None) -> ExportResult:
        """
        Encode a scene into this provider's format.

        Args:
            scene: Scene to export
            options: Format specific options (defaults when None)

        Returns:
            The encoded artifact with any collected warnings
        """
        raise NotImplementedError

    def write(self, data: bytes) -> None:
        """
        Write encoded data to a file.

        Args:
            data: Encoded data to write
        """
        if not self.path:
            raise ValueError("Output path not set")
        with open(self.path, "wb") as f:
            f.write(data)
