"""CLI command for generate."""

import logging
import random
from pathlib import Path
from typing import Any, Dict, Optional

import typer
from rich.console import Console

from thumbsheet.generate.main import main
from thumbsheet.models.options import (
    DecoderBackend,
    ThumbnailOptions,
    find_config_file,
    load_config_file,
    save_config_file,
)
from thumbsheet.utils.cli import cli_error_handler, setup_logging, stderr_console

console = Console()

EXPLICIT_SOURCES = ("COMMANDLINE", "ENVIRONMENT")


def is_explicit(ctx: typer.Context, name: str) -> bool:
    """True when the user gave the option, not when it holds its declared default."""
    # compared by name: typer may carry its own copy of click and its enum class
    source = ctx.get_parameter_source(name)
    return source is not None and source.name in EXPLICIT_SOURCES


def resolve_options(ctx: typer.Context, config: Optional[Path]) -> ThumbnailOptions:
    """Merge option layers: model defaults < config file < options given on the command line."""
    logger = logging.getLogger(__name__)
    values: Dict[str, Any] = {}

    config_path = config if config is not None else find_config_file(Path.cwd())
    if config_path is not None:
        logger.info(f"Using config file: {config_path}")
        values.update(load_config_file(config_path))

    for name in ThumbnailOptions.model_fields:
        if name in ctx.params and is_explicit(ctx, name):
            values[name] = ctx.params[name]

    return ThumbnailOptions.model_validate(values)


@cli_error_handler
def generate(
    ctx: typer.Context,
    video_file: Path = typer.Argument(..., help="Video file to process"),
    num_caps: int = typer.Option(4, "--numcaps", "-n", help="Number of captures to make"),
    columns: int = typer.Option(2, "--columns", "-c", help="Number of columns in output"),
    width: int = typer.Option(400, "--width", "-w", help="Width of individual thumbnails in pixels"),
    height: int = typer.Option(0, "--height", help="Height of individual thumbnails in pixels (0 = keep aspect ratio)"),
    padding: int = typer.Option(10, "--padding", "-p", help="Padding between images in pixels"),
    output: str = typer.Option("{{.Path}}{{.Name}}.jpg", "--output", "-o", help="Output filename pattern ({{.Path}} and {{.Name}} are replaced)"),
    interval: float = typer.Option(0, "--interval", "-i", help="Seconds between captures (overrides --numcaps)"),
    from_time: str = typer.Option("00:00:00", "--from", help="Start time for captures (HH:MM:SS)"),
    to_time: str = typer.Option("00:00:00", "--to", "--end", help="End time for captures (HH:MM:SS, 00:00:00 = end of video)"),
    skip_credits: bool = typer.Option(False, "--skip-credits", help="Skip end credits by cutting off the last 2 minutes or 10%"),
    filters: str = typer.Option("none", "--filter", help="Image filters, comma separated (see 'thumbsheet filters')"),
    font: Optional[str] = typer.Option(None, "--font", "-f", help="TrueType font for timestamps and header"),
    font_size: int = typer.Option(12, "--font-size", help="Font size in points"),
    disable_timestamps: bool = typer.Option(False, "--disable-timestamps", "-d", help="Disable timestamp overlay on images"),
    timestamp_opacity: float = typer.Option(1.0, "--timestamp-opacity", help="Opacity of timestamp labels (0.0-1.0)"),
    header: bool = typer.Option(True, "--header/--no-header", help="Include header with file information"),
    header_meta: bool = typer.Option(False, "--header-meta", help="Include codec, FPS and bitrate in header"),
    comment: str = typer.Option("contactsheet created with thumbsheet", "--comment", help="Comment line for the header"),
    bg_content: str = typer.Option("0,0,0", "--bg-content", help="Background color of the content area (R,G,B)"),
    bg_header: str = typer.Option("0,0,0", "--bg-header", help="Background color of the header (R,G,B)"),
    fg_header: str = typer.Option("255,255,255", "--fg-header", help="Text color of the header (R,G,B)"),
    border: int = typer.Option(0, "--border", help="Border width around thumbnails"),
    watermark: Optional[Path] = typer.Option(None, "--watermark", exists=True, dir_okay=False, help="Watermark image centered on the contact sheet"),
    watermark_all: Optional[Path] = typer.Option(None, "--watermark-all", exists=True, dir_okay=False, help="Watermark image for every thumbnail"),
    skip_blank: bool = typer.Option(False, "--skip-blank", "-b", help="Retry blank frames"),
    skip_blurry: bool = typer.Option(False, "--skip-blurry", help="Retry blurry frames"),
    sfw: bool = typer.Option(False, "--sfw", help="Retry frames dominated by skin tones (experimental)"),
    blank_threshold: int = typer.Option(85, "--blank-threshold", help="Threshold for blank frame detection (0-100)"),
    blur_threshold: int = typer.Option(62, "--blur-threshold", help="Threshold for blur detection (0-100)"),
    max_retries: int = typer.Option(3, "--max-retries", help="Decode attempts per capture, one second apart"),
    fast: bool = typer.Option(False, "--fast", help="Use fast but less accurate seeking"),
    decoder: DecoderBackend = typer.Option(DecoderBackend.AV, "--decoder", help="Frame decoder: 'av' (PyAV) or 'ffmpeg' (ffmpeg executable)"),
    single_images: bool = typer.Option(False, "--single-images", "-s", help="Save individual images instead of a contact sheet"),
    overwrite: bool = typer.Option(False, "--overwrite", help="Overwrite existing files"),
    skip_existing: bool = typer.Option(False, "--skip-existing", help="Skip processing if the output already exists"),
    vtt: bool = typer.Option(False, "--vtt", help="Write a WebVTT thumbnail track next to the contact sheet"),
    webvtt: bool = typer.Option(False, "--webvtt", help="WebVTT sprite mode: --vtt without header, padding and timestamps"),
    config: Optional[Path] = typer.Option(None, "--config", exists=True, dir_okay=False, help="JSON config file (default: ./thumbsheet.json if present)"),
    save_config: Optional[Path] = typer.Option(None, "--save-config", help="Save the resolved options to a JSON config file"),
    show_config: bool = typer.Option(False, "--show-config", help="Print the resolved options and exit"),
    seed: Optional[int] = typer.Option(None, "--seed", help="Seed for randomized filters such as 'fancy'"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logging"),
) -> None:
    """
    Create a contact sheet of thumbnails from a video.

    Frames are taken at evenly spaced times (or every --interval seconds),
    optionally re-picked when blank or blurry, and laid out on a grid below a
    header with file information. --vtt adds a WebVTT track mapping time
    ranges to thumbnail regions for video player scrubbing previews.
    """
    setup_logging(verbose)
    logger = logging.getLogger(__name__)

    options = resolve_options(ctx, config)

    if show_config:
        console.print_json(options.model_dump_json())
        raise typer.Exit()

    if save_config is not None:
        save_config_file(options, save_config)

    if not video_file.exists():
        stderr_console.print(f"[bold red]Error:[/bold red] Input file does not exist: {video_file}")
        raise typer.Exit(code=1)

    if not video_file.is_file():
        stderr_console.print(f"[bold red]Error:[/bold red] Input path is not a file: {video_file}")
        raise typer.Exit(code=1)

    rng = random.Random(seed)
    logger.debug(f"Options: {options.model_dump()}")
    result = main(str(video_file), options, rng)

    if result.skipped:
        console.print(f"[bold yellow]Skipped:[/bold yellow] output for {video_file.name} already exists")
        return

    for path in result.image_paths:
        console.print(f"[bold green]Saved:[/bold green] {path}")
    if result.vtt_path is not None:
        console.print(f"[bold green]Saved:[/bold green] {result.vtt_path}")
    console.print(f"\n[bold green]Success![/bold green] {result.frame_count} frames from {video_file.name}")
