"""Animator for sampling a scene's timeline frame by frame."""

from collections.abc import Iterable, Iterator, Sequence

from ..model import Element, Keyframe, PropertyPatch, Scene
from ..model.patch import PropKey, coerce_prop
from .easing import EasingLibrary
from .evaluator import evaluate, sorted_track
from .timeline import TimelineSample


class Animator:
    """Resolves element state over a scene's timeline."""

    def __init__(self, scene: Scene, easings: EasingLibrary | None = None):
        """
        Initialize animator.

        Args:
            scene: The scene to sample. Keyframes are read once; later edits to
                the scene are not picked up.
            easings: Easing table used for every segment (default presets when None)
        """
        self.scene = scene
        self.easings = easings
        self.fps = scene.fps
        self.total_frames = scene.total_frames
        self.frame_duration = 1000 / scene.fps

        grouped: dict[str, list[Keyframe]] = {}
        for keyframe in scene.keyframes:
            grouped.setdefault(keyframe.element_id, []).append(keyframe)
        self._tracks = {element_id: sorted_track(kfs) for element_id, kfs in grouped.items()}

    def keyframes(self, element_id: str) -> Sequence[Keyframe]:
        """Sorted keyframes of one element (empty when it is not animated)."""
        return self._tracks.get(element_id, ())

    def keyframe_frames(self, element_id: str) -> list[int]:
        return sorted({kf.frame for kf in self.keyframes(element_id)})

    def defines(self, element_id: str, props: Iterable[PropKey]) -> bool:
        """Whether any keyframe of the element records one of ``props``."""
        wanted = {coerce_prop(prop) for prop in props}
        return any(prop in wanted for kf in self.keyframes(element_id) for prop in kf.patch)

    def patch(self, element_id: str, frame: float) -> PropertyPatch:
        track = self._tracks.get(element_id)
        if not track:
            return PropertyPatch()
        return evaluate(track, frame, self.easings)

    def resolve(self, element: Element, frame: float) -> Element:
        """The element with its animated values at ``frame`` merged in."""
        return element.with_patch(self.patch(element.id, frame))

    def sample(self, frame: float) -> TimelineSample:
        patches = {}
        elements = []
        for element in self.scene.elements:
            patch = self.patch(element.id, frame)
            if patch:
                patches[element.id] = patch
            elements.append(element.with_patch(patch))
        return TimelineSample(
            frame=frame,
            time_ms=frame * self.frame_duration,
            width=self.scene.width,
            height=self.scene.height,
            background=self.scene.background,
            elements=tuple(elements),
            patches=patches,
        )

    def iter_timeline(self, max_frames: int | None = None) -> Iterator[TimelineSample]:
        """Yield samples for frames 0 through ``total_frames`` inclusive."""
        for frame in range(self.total_frames + 1):
            if max_frames is not None and frame >= max_frames:
                break
            yield self.sample(frame)
