"""Rendering configuration shared by the raster strategies."""

from dataclasses import dataclass

from ..engine.color import hex_to_rgb


@dataclass(frozen=True)
class RenderContext:
    """Output canvas size and background for one raster export."""

    width: int
    height: int
    scale: float = 1.0
    background: str | None = "FFFFFF"  # None renders a transparent canvas

    @classmethod
    def for_scene(
        cls,
        scene_width: int,
        scene_height: int,
        resolution: float = 1.0,
        background: str | None = "FFFFFF",
    ) -> "RenderContext":
        """Context whose canvas is the artboard multiplied by ``resolution``."""
        return cls(
            width=max(1, round(scene_width * resolution)),
            height=max(1, round(scene_height * resolution)),
            scale=resolution,
            background=background,
        )

    @property
    def size(self) -> tuple[int, int]:
        return self.width, self.height

    @property
    def background_rgba(self) -> tuple[int, int, int, int]:
        if self.background is None:
            return 0, 0, 0, 0
        return (*hex_to_rgb(self.background), 255)
