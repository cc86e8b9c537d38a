"""Immutable per-frame snapshots consumed by every exporter."""

from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field

from ..model import Element, PropertyPatch, iter_top_level


@dataclass(frozen=True)
class TimelineSample:
    """Fully resolved scene state at one frame.

    ``elements`` keeps document order and includes hidden elements and group
    children; use ``top_level()`` for what should be painted directly.
    """

    frame: float
    time_ms: float
    width: int
    height: int
    background: str
    elements: tuple[Element, ...]
    patches: Mapping[str, PropertyPatch] = field(default_factory=dict)

    def element(self, element_id: str) -> Element | None:
        return next((el for el in self.elements if el.id == element_id), None)

    def lookup(self) -> dict[str, Element]:
        return {el.id: el for el in self.elements}

    def top_level(self) -> Iterator[Element]:
        return iter_top_level(list(self.elements))
