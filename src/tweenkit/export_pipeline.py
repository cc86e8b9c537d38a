"""Shared export orchestration used by the CLI and library callers."""

import asyncio
from typing import Any

from .engine.easing import EasingLibrary
from .model import Scene
from .output import resolve_output_provider
from .output.base import ExportResult, OutputProvider
from .output.video_provider import ProgressCallback, VideoOutputProvider


def export_scene(
    scene: Scene,
    output_path: str,
    options: Any = None,
    provider: OutputProvider[Any] | None = None,
    on_progress: ProgressCallback | None = None,
    easings: EasingLibrary | None = None,
) -> ExportResult:
    """
    Encode a scene with the provider matching ``output_path``.

    Args:
        scene: Scene to export
        output_path: Destination path; its extension picks the provider unless one is given
        options: Options for the chosen provider (its defaults when None)
        provider: Explicit provider, bypassing extension lookup
        on_progress: Progress callback for raster exports
        easings: Easing table for evaluation and export

    Returns:
        The encoded artifact; the caller decides whether to write it
    """
    target_provider = provider or resolve_output_provider(output_path, easings)
    if isinstance(target_provider, VideoOutputProvider):
        return asyncio.run(target_provider.export_async(scene, options, on_progress=on_progress))
    return target_provider.export(scene, options)


def write_export(scene: Scene, output_path: str, **kwargs: Any) -> ExportResult:
    """Export and write the artifact to ``output_path``."""
    provider = kwargs.pop("provider", None) or resolve_output_provider(
        output_path, kwargs.get("easings")
    )
    result = export_scene(scene, output_path, provider=provider, **kwargs)
    provider.path = provider.path or output_path
    provider.write(result.data)
    return result
