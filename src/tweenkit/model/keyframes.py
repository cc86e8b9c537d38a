"""Keyframes and the per-element keyframe store."""

from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field

from ..constants import DEFAULT_EASING
from .patch import PropertyPatch


@dataclass(frozen=True)
class Keyframe:
    """A recorded property patch at one frame of one element.

    ``easing`` governs the outgoing transition from this keyframe to the next
    keyframe of the same element.
    """

    id: str
    element_id: str
    frame: int
    patch: PropertyPatch = field(default_factory=PropertyPatch)
    easing: str = DEFAULT_EASING

    def __post_init__(self) -> None:
        if not isinstance(self.patch, PropertyPatch):
            object.__setattr__(self, "patch", PropertyPatch(self.patch))


def sort_keyframes(keyframes: Iterable[Keyframe]) -> list[Keyframe]:
    """Sort keyframes by frame ascending, keeping insertion order for ties."""
    return sorted(keyframes, key=lambda keyframe: keyframe.frame)


class KeyframeStore:
    """Keyframes of a scene, unique per ``(element_id, frame)``."""

    def __init__(self, keyframes: Iterable[Keyframe] = ()):
        self._keyframes: list[Keyframe] = []
        for keyframe in keyframes:
            self.upsert(keyframe)

    def __iter__(self) -> Iterator[Keyframe]:
        return iter(self._keyframes)

    def __len__(self) -> int:
        return len(self._keyframes)

    def upsert(self, keyframe: Keyframe) -> None:
        """Add a keyframe, replacing any existing one at the same element frame."""
        for index, existing in enumerate(self._keyframes):
            if existing.element_id == keyframe.element_id and existing.frame == keyframe.frame:
                self._keyframes[index] = keyframe
                return
        self._keyframes.append(keyframe)

    def remove(self, keyframe_id: str) -> None:
        self._keyframes = [kf for kf in self._keyframes if kf.id != keyframe_id]

    def remove_element(self, element_id: str) -> None:
        """Drop every keyframe owned by ``element_id``."""
        self._keyframes = [kf for kf in self._keyframes if kf.element_id != element_id]

    def for_element(self, element_id: str) -> list[Keyframe]:
        """Keyframes of one element sorted by frame."""
        return sort_keyframes(kf for kf in self._keyframes if kf.element_id == element_id)

    def element_ids(self) -> set[str]:
        return {kf.element_id for kf in self._keyframes}
