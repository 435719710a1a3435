"""
Generate a contact sheet (and optionally a WebVTT scrubber track) for one video
"""

import logging
import random
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Sequence

from rich.console import Console
from rich.progress import BarColumn, Progress, SpinnerColumn, TextColumn, TimeElapsedColumn

from thumbsheet.acquisition.loop import acquire_frames
from thumbsheet.compose.compositor import compose_contact_sheet
from thumbsheet.compose.filters import apply_filters
from thumbsheet.compose.layout import build_layout
from thumbsheet.decoder.base import Decoder, open_decoder
from thumbsheet.models.frames import Frame, FrameList
from thumbsheet.models.options import ThumbnailOptions
from thumbsheet.output.sink import (
    check_overwrite,
    resolve_output_path,
    save_image,
    save_single_images,
    single_image_paths,
    vtt_path_for,
    write_webvtt,
)
from thumbsheet.planner.timestamps import plan_display, plan_extraction
from thumbsheet.quality.gate import QualityGate
from thumbsheet.utils.timecode import format_hms

logger = logging.getLogger(__name__)


@dataclass
class GenerateResult:
    """Files written by one run."""
    output_path: Path
    image_paths: List[Path] = field(default_factory=list)
    vtt_path: Optional[Path] = None
    frame_count: int = 0
    skipped: bool = False


def extract_frames(
    decoder: Decoder,
    timestamps: Sequence[float],
    options: ThumbnailOptions,
    console: Optional[Console] = None,
) -> FrameList:
    """Run the acquisition loop behind a progress bar."""
    gate = QualityGate.from_options(options)
    if gate.enabled:
        logger.info(
            f"Quality checks: blank={gate.skip_blank}, blurry={gate.skip_blurry}, sfw={gate.sfw} "
            f"(up to {options.max_retries} attempts per capture)"
        )

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        TextColumn("[cyan]{task.completed}/{task.total}[/cyan] frames"),
        TimeElapsedColumn(),
        console=console,
        transient=True,
    ) as progress:
        task = progress.add_task("Extracting frames", total=len(timestamps))

        def on_slot(index: int, timestamp: float) -> None:
            progress.update(task, advance=1, description=f"Extracting frame at {format_hms(timestamp)}")

        frames = acquire_frames(
            decoder,
            timestamps,
            gate,
            fast=options.fast,
            max_retries=options.max_retries,
            on_slot=on_slot,
        )

    logger.info(f"Extracted {len(frames)} frames")
    return frames


def filter_frames(frames: FrameList, names: Sequence[str], rng: Optional[random.Random] = None) -> FrameList:
    """Filtered copies of frames, keeping their timestamps. The input list is left untouched."""
    rng = rng if rng is not None else random.Random()
    filtered = FrameList()
    try:
        for frame in frames:
            filtered.append(Frame(image=apply_filters(frame.image, names, rng), timestamp=frame.timestamp))
    except BaseException:
        filtered.close()
        raise
    return filtered


def generate(
    video_file: Path,
    options: ThumbnailOptions,
    rng: Optional[random.Random] = None,
    console: Optional[Console] = None,
) -> GenerateResult:
    """
    Build the contact sheet for a video.

    Args:
        video_file: Path to the input video file
        options: Resolved run options
        rng: Random source for randomized filters (seed it for reproducible output)
        console: Console used for the progress bar

    Raises:
        FileNotFoundError: If the video does not exist
        FileExistsError: If an output exists and neither overwrite nor skip_existing is set
        DecodeError: If the video cannot be opened
        NoFramesError: If no frame could be extracted
    """
    video_path = Path(video_file)
    if not video_path.is_file():
        raise FileNotFoundError(f"Input file does not exist: {video_path}")

    output_path = resolve_output_path(video_path, options.output)
    if not options.single_images and output_path.exists():
        if options.skip_existing:
            logger.info(f"Skipping existing file: {output_path}")
            return GenerateResult(output_path=output_path, skipped=True)
        check_overwrite(output_path, options.overwrite)
    if options.vtt and not options.single_images:
        check_overwrite(vtt_path_for(output_path), options.overwrite)

    logger.info(f"Processing video: {video_path}")
    with open_decoder(video_path, options.decoder) as decoder:
        metadata = decoder.metadata
        timestamps = plan_extraction(metadata.duration, options)
        if options.single_images and options.skip_existing:
            existing = [p for p in single_image_paths(output_path, len(timestamps)) if p.exists()]
            if existing:
                logger.info(f"Skipping: {len(existing)} single image(s) already exist, e.g. {existing[0]}")
                return GenerateResult(output_path=output_path, skipped=True)
        logger.info(f"Will extract {len(timestamps)} frames using the {options.decoder.value} decoder")
        frames = extract_frames(decoder, timestamps, options, console)

    with frames:
        if options.single_images:
            with filter_frames(frames, options.filters, rng) as filtered:
                paths = save_single_images(filtered, output_path, options.overwrite)
            return GenerateResult(output_path=output_path, image_paths=paths, frame_count=len(frames))

        logger.info("Creating contact sheet...")
        with compose_contact_sheet(frames, metadata, options, rng) as sheet:
            save_image(sheet.image, output_path)
        logger.info(f"Saved contact sheet: {output_path}")

        vtt_path = None
        if options.vtt:
            # Thumbnail rectangles come from the same layout function the compositor used
            layout = build_layout(frames, metadata, options)
            display_timestamps = plan_display(metadata.duration, len(frames))
            vtt_path = write_webvtt(vtt_path_for(output_path), output_path, layout, display_timestamps)

        return GenerateResult(
            output_path=output_path,
            image_paths=[output_path],
            vtt_path=vtt_path,
            frame_count=len(frames),
        )


def main(
    video_file: str,
    options: ThumbnailOptions,
    rng: Optional[random.Random] = None,
) -> GenerateResult:
    return generate(Path(video_file), options, rng)
