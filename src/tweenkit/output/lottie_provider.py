"""Lottie (bodymovin JSON) output provider."""

import json
from typing import Any

from ..constants import LOTTIE_DOCUMENT_NAME, LOTTIE_VERSION
from ..engine.animator import Animator
from ..engine.easing import DEFAULT_EASINGS
from ..model import Scene, collect_hidden_ids
from ._lottie_layers import LayerBuilder
from .base import EMPTY_SCENE, ExportResult, ExportWarnings, OutputProvider
from .options import LottieExportOptions


class LottieOutputProvider(OutputProvider[LottieExportOptions]):
    """Output provider for Lottie JSON documents."""

    output_format = "lottie"
    media_type = "application/json"

    def default_options(self) -> LottieExportOptions:
        return LottieExportOptions()

    def export(self, scene: Scene, options: LottieExportOptions | None = None) -> ExportResult:
        options = options or self.default_options()
        options.validate()
        scene.validate()

        warnings = ExportWarnings()
        document = self.build_document(scene, options, warnings)
        indent = 2 if options.pretty_print else None
        text = json.dumps(document, indent=indent)
        return ExportResult(
            data=text.encode("utf-8"),
            media_type=self.media_type,
            warnings=warnings.as_tuple(),
            output_format=self.output_format,
        )

    def build_document(
        self,
        scene: Scene,
        options: LottieExportOptions,
        warnings: ExportWarnings,
    ) -> dict[str, Any]:
        """
        Build the Lottie document as plain JSON-compatible data.

        Every visible element becomes one shape layer. Group containers are
        not layers themselves; their children appear at their own document
        position. Lottie lists layers top-most first, so document order is
        reversed.
        """
        builder = LayerBuilder(
            animator=Animator(scene, self.easings),
            easings=self.easings or DEFAULT_EASINGS,
            warnings=warnings,
            total_frames=scene.total_frames,
            sampled=options.easing_fidelity == "sampled",
        )

        hidden = collect_hidden_ids(scene.elements)
        layers = []
        for index, element in enumerate(scene.elements):
            if element.id in hidden:
                continue
            layer = builder.build(element, index + 1)
            if layer is not None:
                layers.append(layer)
        if not layers:
            warnings.add(EMPTY_SCENE)

        return {
            "v": LOTTIE_VERSION,
            "fr": scene.fps,
            "ip": 0,
            "op": scene.total_frames,
            "w": scene.width,
            "h": scene.height,
            "nm": scene.name or LOTTIE_DOCUMENT_NAME,
            "ddd": 0,
            "assets": [],
            "layers": list(reversed(layers)),
            "markers": [],
        }
