"""Tests for output paths, image saving and WebVTT generation."""

import os
from pathlib import Path

import pytest
from PIL import Image

from thumbsheet.compose.layout import compute_layout
from thumbsheet.models.frames import Frame, FrameList
from thumbsheet.output.sink import (
    build_webvtt,
    check_overwrite,
    resolve_output_path,
    save_image,
    save_single_images,
    single_image_paths,
    vtt_path_for,
    write_webvtt,
)


def test_default_pattern_places_sheet_next_to_video():
    video = Path("/videos/holiday/beach.mp4")
    assert resolve_output_path(video, "{{.Path}}{{.Name}}.jpg") == Path("/videos/holiday/beach.jpg")


def test_relative_video_without_directory():
    assert resolve_output_path(Path("beach.mp4"), "{{.Path}}{{.Name}}.jpg") == Path("beach.jpg")


def test_bare_filename_pattern_goes_next_to_video():
    video = Path("/videos/beach.mp4")
    assert resolve_output_path(video, "{{.Name}}_sheet.png") == Path("/videos/beach_sheet.png")


def test_pattern_with_directory_is_kept(tmp_path: Path):
    video = Path("/videos/beach.mp4")
    pattern = f"{tmp_path}{os.sep}sheets{os.sep}{{{{.Name}}}}.jpg"
    assert resolve_output_path(video, pattern) == tmp_path / "sheets" / "beach.jpg"


def test_check_overwrite(tmp_path: Path):
    target = tmp_path / "sheet.jpg"
    check_overwrite(target, overwrite=False)
    target.write_bytes(b"x")
    check_overwrite(target, overwrite=True)
    with pytest.raises(FileExistsError, match="--overwrite"):
        check_overwrite(target, overwrite=False)


def test_save_image_format_follows_extension(tmp_path: Path):
    image = Image.new("RGB", (8, 8), (10, 20, 30))
    jpeg = save_image(image, tmp_path / "nested" / "sheet.jpg")
    png = save_image(image, tmp_path / "sheet.png")
    assert jpeg.read_bytes()[:2] == b"\xff\xd8"
    assert png.read_bytes()[:8] == b"\x89PNG\r\n\x1a\n"


def test_single_image_paths_are_zero_padded():
    paths = single_image_paths(Path("/out/clip.jpg"), 12)
    assert paths[0] == Path("/out/clip_01.jpg")
    assert paths[-1] == Path("/out/clip_12.jpg")
    assert single_image_paths(Path("/out/clip.png"), 3) == [
        Path("/out/clip_1.png"), Path("/out/clip_2.png"), Path("/out/clip_3.png"),
    ]


def test_save_single_images(tmp_path: Path):
    frames = FrameList([Frame(Image.new("RGB", (8, 8)), float(i)) for i in range(2)])
    paths = save_single_images(frames, tmp_path / "clip.jpg")
    assert [p.name for p in paths] == ["clip_1.jpg", "clip_2.jpg"]
    assert all(p.exists() for p in paths)

    with pytest.raises(FileExistsError):
        save_single_images(frames, tmp_path / "clip.jpg")
    save_single_images(frames, tmp_path / "clip.jpg", overwrite=True)


def test_vtt_path_for():
    assert vtt_path_for(Path("/out/clip.jpg")) == Path("/out/clip.vtt")


def test_build_webvtt():
    layout = compute_layout(3, 2, 100, 80, 10, header_height=0)
    text = build_webvtt("clip.jpg", layout, [0.0, 40.0, 80.0, 120.0])
    assert text == (
        "WEBVTT\n"
        "\n"
        "00:00:00.000 --> 00:00:40.000\n"
        "clip.jpg#xywh=10,10,100,80\n"
        "\n"
        "00:00:40.000 --> 00:01:20.000\n"
        "clip.jpg#xywh=120,10,100,80\n"
        "\n"
        "00:01:20.000 --> 00:02:00.000\n"
        "clip.jpg#xywh=10,100,100,80\n"
        "\n"
    )


def test_webvtt_rects_include_header_offset():
    layout = compute_layout(9, 3, 100, 80, 10, header_height=50)
    text = build_webvtt("sheet.jpg", layout, [float(i) for i in range(10)])
    assert "sheet.jpg#xywh=120,150,100,80" in text.splitlines()


def test_build_webvtt_rejects_mismatched_plan():
    layout = compute_layout(3, 2, 100, 80, 10)
    with pytest.raises(ValueError):
        build_webvtt("clip.jpg", layout, [0.0, 1.0, 2.0])


def test_write_webvtt_uses_image_name(tmp_path: Path):
    layout = compute_layout(1, 1, 100, 80, 0)
    path = write_webvtt(tmp_path / "clip.vtt", tmp_path / "clip.jpg", layout, [0.0, 5.0])
    assert path.read_text().splitlines()[:4] == [
        "WEBVTT", "", "00:00:00.000 --> 00:00:05.000", "clip.jpg#xywh=0,0,100,80",
    ]
