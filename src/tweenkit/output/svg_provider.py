"""SVG output provider."""

from ..engine.animator import Animator
from ..engine.easing import DEFAULT_EASINGS
from ..errors import InvalidExportOptionsError
from ..model import ElementType, Scene
from ._svg_animation_encoder import VIDEO_SKIPPED, encode_svg_animation
from ._svg_serializer import serialize_frame
from .base import EMPTY_SCENE, ExportResult, ExportWarnings, OutputProvider
from .options import SvgExportOptions


class SvgOutputProvider(OutputProvider[SvgExportOptions]):
    """Output provider for static or SMIL-animated SVG."""

    output_format = "svg"
    media_type = "image/svg+xml"

    def default_options(self) -> SvgExportOptions:
        return SvgExportOptions()

    def export(self, scene: Scene, options: SvgExportOptions | None = None) -> ExportResult:
        options = options or self.default_options()
        options.validate()
        scene.validate()
        if options.animated and scene.total_frames <= 0:
            raise InvalidExportOptionsError("Animated SVG export needs at least one frame of duration")

        warnings = ExportWarnings()
        animator = Animator(scene, self.easings)
        if options.animated:
            markup = encode_svg_animation(
                scene,
                animator,
                self.easings or DEFAULT_EASINGS,
                warnings,
                loop=options.loop,
                sampled=options.easing_fidelity == "sampled",
            )
        else:
            markup = self._encode_static(animator, warnings)

        return ExportResult(
            data=markup.encode("utf-8"),
            media_type=self.media_type,
            warnings=warnings.as_tuple(),
            output_format=self.output_format,
        )

    def _encode_static(self, animator: Animator, warnings: ExportWarnings) -> str:
        sample = animator.sample(0)
        if any(el.type == ElementType.VIDEO for el in sample.elements if el.visible):
            warnings.add(VIDEO_SKIPPED)
        markup = serialize_frame(sample, on_warning=warnings.add)
        # Only the root open/close tags were written.
        if markup.count("\n") <= 1:
            warnings.add(EMPTY_SCENE)
        return markup
