"""CLI interface for tweenkit."""

import logging
import os
import sys
from pathlib import Path
from typing import Any

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.logging import RichHandler
from rich.progress import BarColumn, Progress, TextColumn

from .errors import ExportError, SceneFormatError, SceneValidationError
from .export_pipeline import export_scene
from .model import Scene
from .output import (
    LottieOutputProvider,
    SvgOutputProvider,
    VideoOutputProvider,
    resolve_output_provider,
    supported_output_formats,
)
from .output.base import ExportProgress, ExportResult, OutputProvider
from .output.options import (
    EASING_FIDELITIES,
    RASTER_STRATEGIES,
    LottieExportOptions,
    SvgExportOptions,
    VideoExportOptions,
)
from .scene_io import load_scene

# Load environment variables from .env file
load_dotenv()

LOG_LEVEL_ENV = "TWEENKIT_LOG_LEVEL"

console = Console()
err_console = Console(stderr=True)
SUPPORTED_OUTPUT_FORMATS_TEXT = ", ".join(supported_output_formats()).upper()


class CLIError(Exception):
    """Base exception for CLI errors with user-friendly messages."""
    pass


def main(
    scene_file: str = typer.Argument(None, help="Scene document (JSON) to export"),
    out: str = typer.Option(
        None,
        "--output",
        "-out",
        "-o",
        help=f"Output file; the extension picks the format ({SUPPORTED_OUTPUT_FORMATS_TEXT})",
    ),
    static: bool = typer.Option(False, "--static", help="Write a static SVG of the first frame"),
    no_loop: bool = typer.Option(False, "--no-loop", help="Play the animation once"),
    pretty: bool = typer.Option(False, "--pretty", help="Indent JSON output"),
    resolution: float = typer.Option(1.0, "--resolution", help="Raster size multiplier"),
    transparent: bool = typer.Option(
        False, "--transparent", help="Render raster frames on a transparent background"
    ),
    strategy: str = typer.Option(
        "direct",
        "--strategy",
        help=f"Raster strategy ({', '.join(RASTER_STRATEGIES)})",
    ),
    easing_fidelity: str = typer.Option(
        "bezier",
        "--easing-fidelity",
        help=f"Vector easing export ({', '.join(EASING_FIDELITIES)})",
    ),
    realtime: bool = typer.Option(False, "--realtime", help="Pace raster rendering at the scene fps"),
    log_level: str = typer.Option(
        None,
        "--log-level",
        help=f"Logging level (default from {LOG_LEVEL_ENV}, else ERROR)",
    ),
) -> None:
    """
    Export an animated scene to Lottie JSON, SVG or an animated raster image.

    Examples:
      # Lottie document
      tweenkit scene.json --output anim.json --pretty

      # Animated WebP at twice the artboard size
      tweenkit scene.json -o anim.webp --resolution 2
    """
    _configure_logging(log_level)
    try:
        if not scene_file:
            raise CLIError("Scene file is required")
        if not out:
            out = f"{Path(scene_file).stem}.gif"

        scene = _load_scene(scene_file)
        provider = _resolve_provider(out)
        options = _build_options(
            provider,
            static=static,
            loop=not no_loop,
            pretty=pretty,
            resolution=resolution,
            transparent=transparent,
            strategy=strategy,
            easing_fidelity=easing_fidelity,
            realtime=realtime,
        )
        _generate_output(scene, out, provider, options)

    except CLIError as e:
        err_console.print(f"[bold red]Error:[/bold red] {e}")
        sys.exit(1)

    except Exception as e:
        err_console.print(f"[bold red]Unexpected error:[/bold red] {e}")
        sys.exit(1)


def _configure_logging(level: str | None) -> None:
    name = (level or os.getenv(LOG_LEVEL_ENV) or "ERROR").upper()
    logging.basicConfig(
        level=getattr(logging, name, logging.ERROR),
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


def _load_scene(file_path: str) -> Scene:
    """Load a scene document from a JSON file."""
    console.print(f"[bold blue]Loading scene from {file_path}...[/bold blue]")
    try:
        return load_scene(file_path)
    except SceneFormatError as e:
        raise CLIError(str(e))


def _resolve_provider(output_path: str) -> OutputProvider[Any]:
    try:
        return resolve_output_provider(output_path)
    except ValueError as exc:
        raise CLIError(str(exc))


def _build_options(provider: OutputProvider[Any], **flags: Any) -> Any:
    """Options for ``provider`` from the command-line flags that apply to it."""
    if isinstance(provider, LottieOutputProvider):
        return LottieExportOptions(
            loop=flags["loop"],
            pretty_print=flags["pretty"],
            easing_fidelity=flags["easing_fidelity"],
        )
    if isinstance(provider, SvgOutputProvider):
        return SvgExportOptions(
            animated=not flags["static"],
            loop=flags["loop"],
            easing_fidelity=flags["easing_fidelity"],
        )
    return VideoExportOptions(
        resolution=flags["resolution"],
        transparent_background=flags["transparent"],
        loop=flags["loop"],
        strategy=flags["strategy"],
        realtime=flags["realtime"],
    )


def _generate_output(
    scene: Scene,
    output_path: str,
    provider: OutputProvider[Any],
    options: Any,
) -> None:
    """Export the scene and write it to ``output_path``."""
    ext = Path(output_path).suffix[1:].upper()
    console.print(f"\n[bold blue]Generating {ext} animation...[/bold blue]")

    try:
        if isinstance(provider, VideoOutputProvider):
            result = _export_with_progress(scene, output_path, provider, options)
        else:
            result = export_scene(scene, output_path, options, provider=provider)
    except (ExportError, SceneValidationError, ValueError) as e:
        raise CLIError(f"Failed to generate output: {e}")

    _print_warnings(result)

    console.print(f"[bold blue]Saving to {output_path}...[/bold blue]")
    try:
        provider.write(result.data)
    except OSError as e:
        raise CLIError(f"Failed to save file '{output_path}': {e}")
    console.print(f"[green]✓[/green] {ext} saved to {output_path}")


def _export_with_progress(
    scene: Scene,
    output_path: str,
    provider: VideoOutputProvider,
    options: VideoExportOptions,
) -> ExportResult:
    with Progress(
        TextColumn("{task.description}"),
        BarColumn(),
        TextColumn("{task.completed}/{task.total}"),
        console=console,
        transient=True,
    ) as progress:
        task = progress.add_task("preparing", total=scene.total_frames + 1)

        def on_progress(update: ExportProgress) -> None:
            progress.update(task, description=update.phase, completed=update.current_frame)

        return export_scene(scene, output_path, options, provider=provider, on_progress=on_progress)


def _print_warnings(result: ExportResult) -> None:
    for warning in result.warnings:
        console.print(f"[yellow]Warning:[/yellow] {warning}")


app = typer.Typer()
app.command()(main)

if __name__ == "__main__":
    app()
