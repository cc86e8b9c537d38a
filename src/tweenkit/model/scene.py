"""Scene composition: elements, keyframes and timeline parameters."""

from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field

from ..constants import (
    DEFAULT_BACKGROUND,
    DEFAULT_FPS,
    DEFAULT_HEIGHT,
    DEFAULT_TOTAL_FRAMES,
    DEFAULT_WIDTH,
)
from ..errors import SceneValidationError
from .elements import Element, ElementType
from .keyframes import KeyframeStore


@dataclass
class Scene:
    """An animated artboard.

    ``elements`` is in document order: the first element is painted first
    (visually bottom-most).
    """

    elements: list[Element] = field(default_factory=list)
    keyframes: KeyframeStore = field(default_factory=KeyframeStore)
    width: int = DEFAULT_WIDTH
    height: int = DEFAULT_HEIGHT
    fps: int = DEFAULT_FPS
    total_frames: int = DEFAULT_TOTAL_FRAMES
    background: str = DEFAULT_BACKGROUND
    name: str = "Scene"

    def __post_init__(self) -> None:
        if not isinstance(self.keyframes, KeyframeStore):
            self.keyframes = KeyframeStore(self.keyframes)

    def validate(self) -> None:
        """Raise SceneValidationError if timeline or artboard parameters are unusable."""
        if self.fps <= 0:
            raise SceneValidationError(f"fps must be positive (got {self.fps})")
        if self.total_frames < 0:
            raise SceneValidationError(
                f"total_frames must not be negative (got {self.total_frames})"
            )
        if self.width <= 0 or self.height <= 0:
            raise SceneValidationError(
                f"Artboard size must be positive (got {self.width}x{self.height})"
            )

    @property
    def duration_seconds(self) -> float:
        return self.total_frames / self.fps

    def element(self, element_id: str) -> Element | None:
        return next((el for el in self.elements if el.id == element_id), None)

    def remove_element(self, element_id: str) -> None:
        """Delete an element and cascade to its keyframes."""
        self.elements = [el for el in self.elements if el.id != element_id]
        self.keyframes.remove_element(element_id)

    def child_ids(self) -> set[str]:
        return collect_child_ids(self.elements)


def collect_child_ids(elements: Iterable[Element]) -> set[str]:
    """Ids of elements owned by a group; their parent renders them."""
    return {
        child_id
        for element in elements
        if element.type == ElementType.GROUP
        for child_id in element.child_ids
    }


def collect_hidden_ids(elements: Iterable[Element]) -> set[str]:
    """Ids of elements that are hidden themselves or sit inside a hidden group."""
    elements = list(elements)
    by_id = {element.id: element for element in elements}
    hidden: set[str] = set()
    pending = [element.id for element in elements if not element.visible]
    while pending:
        element_id = pending.pop()
        if element_id in hidden:
            continue
        hidden.add(element_id)
        element = by_id.get(element_id)
        if element is not None and element.type == ElementType.GROUP:
            pending.extend(element.child_ids)
    return hidden


def iter_top_level(elements: list[Element]) -> Iterator[Element]:
    """Yield visible, non-child elements in painter order from back to front."""
    child_ids = collect_child_ids(elements)
    for element in elements:
        if element.visible and element.id not in child_ids:
            yield element
