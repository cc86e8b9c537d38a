"""Output providers for different animation formats."""

from dataclasses import dataclass
from pathlib import Path
from typing import Any

from ..engine.easing import EasingLibrary
from .apng_provider import ApngOutputProvider
from .base import ExportProgress, ExportResult, ExportWarnings, OutputProvider
from .gif_provider import GifOutputProvider
from .lottie_provider import LottieOutputProvider
from .options import LottieExportOptions, SvgExportOptions, VideoExportOptions
from .svg_provider import SvgOutputProvider
from .video_provider import VideoOutputProvider
from .webp_provider import WebPOutputProvider


@dataclass(frozen=True)
class OutputFormatSpec:
    extension: str
    media_type: str
    provider_class: type[OutputProvider[Any]]


_OUTPUT_FORMATS: dict[str, OutputFormatSpec] = {
    "lottie": OutputFormatSpec(
        extension=".json",
        media_type="application/json",
        provider_class=LottieOutputProvider,
    ),
    "svg": OutputFormatSpec(
        extension=".svg",
        media_type="image/svg+xml",
        provider_class=SvgOutputProvider,
    ),
    "webp": OutputFormatSpec(
        extension=".webp",
        media_type="image/webp",
        provider_class=WebPOutputProvider,
    ),
    "apng": OutputFormatSpec(
        extension=".png",
        media_type="image/apng",
        provider_class=ApngOutputProvider,
    ),
    "gif": OutputFormatSpec(
        extension=".gif",
        media_type="image/gif",
        provider_class=GifOutputProvider,
    ),
}


def resolve_output_provider(
    file_path: str,
    easings: EasingLibrary | None = None,
) -> OutputProvider[Any]:
    """
    Resolve the appropriate output provider based on file extension.

    Args:
        file_path: Output file path (extension determines format)
        easings: Easing table handed to the provider

    Returns:
        An OutputProvider instance

    Raises:
        ValueError: If file extension is not supported
    """
    ext = Path(file_path).suffix.lower()
    spec = _output_spec_from_extension(ext)
    return spec.provider_class(file_path, easings)


def supported_output_formats() -> tuple[str, ...]:
    """Return supported output format names."""
    return tuple(_OUTPUT_FORMATS.keys())


def media_type_for_output_format(output_format: str) -> str:
    """Resolve media type for a supported output format."""
    spec = _output_spec_from_format(output_format)
    return spec.media_type


def output_path_for_format(output_format: str, base_name: str = "output") -> str:
    """Build a synthetic output path from an output format name."""
    spec = _output_spec_from_format(output_format)
    return f"{base_name}{spec.extension}"


def _output_spec_from_extension(ext: str) -> OutputFormatSpec:
    spec = next((spec for spec in _OUTPUT_FORMATS.values() if spec.extension == ext), None)
    if spec is not None:
        return spec
    supported = ", ".join(spec.extension for spec in _OUTPUT_FORMATS.values())
    raise ValueError(f"Unsupported output format: {ext}. Supported formats: {supported}")


def _output_spec_from_format(output_format: str) -> OutputFormatSpec:
    spec = _OUTPUT_FORMATS.get(output_format.lower())
    if spec is not None:
        return spec
    supported = ", ".join(supported_output_formats())
    raise ValueError(f"Invalid format. Choose from: {supported}")


__all__ = [
    "ApngOutputProvider",
    "ExportProgress",
    "ExportResult",
    "ExportWarnings",
    "GifOutputProvider",
    "LottieExportOptions",
    "LottieOutputProvider",
    "OutputFormatSpec",
    "OutputProvider",
    "SvgExportOptions",
    "SvgOutputProvider",
    "VideoExportOptions",
    "VideoOutputProvider",
    "WebPOutputProvider",
    "media_type_for_output_format",
    "output_path_for_format",
    "resolve_output_provider",
    "supported_output_formats",
]
