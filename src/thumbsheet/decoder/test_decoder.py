"""Tests for the PyAV and ffmpeg pipe decoders."""

import shutil
from pathlib import Path
from unittest.mock import MagicMock, patch

import ffmpeg
import pytest

from thumbsheet.conftest import palette_index
from thumbsheet.decoder.av_decoder import AvDecoder
from thumbsheet.decoder.base import DecodeError, open_decoder
from thumbsheet.decoder.pipe_decoder import PipeDecoder
from thumbsheet.models.metadata import VideoMetadata
from thumbsheet.models.options import DecoderBackend
from thumbsheet.utils.dependencies import check_ffmpeg, parse_version_tuple
from thumbsheet.utils.video import get_video_info, parse_frame_rate, resolve_duration

needs_ffmpeg = pytest.mark.skipif(
    shutil.which("ffmpeg") is None or shutil.which("ffprobe") is None,
    reason="ffmpeg executables not installed",
)


def test_av_metadata(sample_video: Path):
    with AvDecoder(sample_video) as decoder:
        metadata = decoder.metadata
    assert metadata.filename == "clip.mp4"
    assert metadata.file_size == sample_video.stat().st_size
    assert metadata.duration == pytest.approx(10.0, abs=0.2)
    assert (metadata.width, metadata.height) == (160, 120)
    assert metadata.video_codec == "mpeg4"
    assert metadata.audio_codec == "unknown"
    assert metadata.frame_rate == pytest.approx(10.0)


def test_av_accurate_seek_lands_on_target(sample_video: Path):
    with AvDecoder(sample_video) as decoder:
        # out of order on purpose: every seek must reset decoder state
        for second in (5, 2, 8, 0):
            image = decoder.seek_and_decode(second + 0.5)
            assert image is not None
            assert image.size == (160, 120)
            assert palette_index(image) == second


def test_av_fast_seek_stops_at_or_before_target(sample_video: Path):
    with AvDecoder(sample_video) as decoder:
        image = decoder.seek_and_decode(5.5, fast=True)
    assert image is not None
    assert palette_index(image) in (4, 5)


def test_av_seek_past_end_returns_none(sample_video: Path):
    with AvDecoder(sample_video) as decoder:
        assert decoder.seek_and_decode(30.0) is None


def test_av_rejects_invalid_file(tmp_path: Path):
    broken = tmp_path / "broken.mp4"
    broken.write_bytes(b"this is not a video")
    with pytest.raises(DecodeError):
        AvDecoder(broken)


def test_open_decoder_picks_backend(sample_video: Path):
    with open_decoder(sample_video) as decoder:
        assert isinstance(decoder, AvDecoder)


@needs_ffmpeg
def test_pipe_decoder_matches_av(sample_video: Path):
    with open_decoder(sample_video, DecoderBackend.FFMPEG) as decoder:
        assert isinstance(decoder, PipeDecoder)
        assert (decoder.metadata.width, decoder.metadata.height) == (160, 120)
        assert decoder.metadata.duration == pytest.approx(10.0, abs=0.2)
        image = decoder.seek_and_decode(6.5)
        assert image is not None
        assert palette_index(image) == 6


def _pipe_decoder(tmp_path: Path) -> PipeDecoder:
    metadata = VideoMetadata(filename="clip.mp4", file_size=1, duration=10.0, width=4, height=2)
    video = tmp_path / "clip.mp4"
    video.write_bytes(b"")
    with patch("thumbsheet.decoder.pipe_decoder.check_ffmpeg", return_value="6.1"), \
            patch("thumbsheet.decoder.pipe_decoder.check_ffprobe", return_value="6.1"), \
            patch("thumbsheet.decoder.pipe_decoder.get_video_info", return_value=metadata):
        return PipeDecoder(video)


def test_pipe_decoder_command(tmp_path: Path):
    decoder = _pipe_decoder(tmp_path)
    commands = []

    def fake_run(stream, **kwargs):
        commands.append(stream.compile())
        return bytes(4 * 2 * 3), b""

    with patch.object(ffmpeg.nodes.OutputStream, "run", autospec=True, side_effect=fake_run):
        accurate = decoder.seek_and_decode(2.5)
        fast = decoder.seek_and_decode(2.5, fast=True)

    assert accurate.size == (4, 2)
    assert fast is not None
    assert "-noaccurate_seek" not in commands[0]
    assert "-noaccurate_seek" in commands[1]
    for command in commands:
        assert command[command.index("-ss") + 1] == "2.500"
        assert command[command.index("-s") + 1] == "4x2"
        assert "rawvideo" in command


def test_pipe_decoder_short_output_is_end_of_stream(tmp_path: Path):
    decoder = _pipe_decoder(tmp_path)
    with patch.object(ffmpeg.nodes.OutputStream, "run", autospec=True, return_value=(b"", b"")):
        assert decoder.seek_and_decode(9.9) is None


def test_pipe_decoder_failure_is_decode_error(tmp_path: Path):
    decoder = _pipe_decoder(tmp_path)
    error = ffmpeg.Error("ffmpeg", b"", b"corrupt packet")
    with patch.object(ffmpeg.nodes.OutputStream, "run", autospec=True, side_effect=error):
        with pytest.raises(DecodeError, match="corrupt packet"):
            decoder.seek_and_decode(1.0)


def test_parse_frame_rate():
    assert parse_frame_rate("30000/1001") == pytest.approx(29.97, abs=0.01)
    assert parse_frame_rate("25") == 25.0
    assert parse_frame_rate("0/0") == 0.0
    assert parse_frame_rate(None) == 0.0


def test_resolve_duration_prefers_stream():
    assert resolve_duration({"duration": "12.5"}, {"duration": "13.0"}) == 12.5
    assert resolve_duration({}, {"duration": "13.0"}) == 13.0
    assert resolve_duration({"duration": "N/A"}, {}) == 0.0


def test_get_video_info_from_probe(tmp_path: Path):
    video = tmp_path / "talk.mkv"
    video.write_bytes(b"\0" * 10)
    probe = {
        "streams": [
            {"codec_type": "audio", "codec_name": "opus"},
            {"codec_type": "video", "codec_name": "vp9", "width": 1280, "height": 720,
             "avg_frame_rate": "0/0", "r_frame_rate": "30/1"},
        ],
        "format": {"duration": "61.5", "bit_rate": "800000", "format_name": "matroska,webm"},
    }
    with patch("thumbsheet.utils.video.ffmpeg.probe", return_value=probe):
        info = get_video_info(video)

    assert info.file_size == 10
    assert info.duration == 61.5
    assert (info.width, info.height) == (1280, 720)
    assert (info.video_codec, info.audio_codec) == ("vp9", "opus")
    assert info.frame_rate == 30.0
    assert info.bit_rate == 800000


def test_get_video_info_without_video_stream(tmp_path: Path):
    audio_only = tmp_path / "song.mp3"
    audio_only.write_bytes(b"\0")
    probe = {"streams": [{"codec_type": "audio"}], "format": {}}
    with patch("thumbsheet.utils.video.ffmpeg.probe", return_value=probe):
        with pytest.raises(DecodeError, match="No video stream"):
            get_video_info(audio_only)


@pytest.mark.parametrize("output, expected", [
    ("ffmpeg version 6.1.1-3ubuntu5 Copyright (c) 2000-2023", "6.1.1"),
    ("ffmpeg version n7.0 Copyright", "7.0"),
    ("ffmpeg version N-113012-g1a2b3c Copyright", "snapshot"),
])
def test_check_ffmpeg_versions(output, expected):
    completed = MagicMock(stdout=output, stderr="")
    with patch("thumbsheet.utils.dependencies.subprocess.run", return_value=completed):
        assert check_ffmpeg() == expected


def test_check_ffmpeg_too_old_or_missing():
    old = MagicMock(stdout="ffmpeg version 3.4.8 Copyright", stderr="")
    with patch("thumbsheet.utils.dependencies.subprocess.run", return_value=old):
        with pytest.raises(RuntimeError, match="not supported"):
            check_ffmpeg()
    with patch("thumbsheet.utils.dependencies.subprocess.run", side_effect=FileNotFoundError):
        with pytest.raises(RuntimeError, match="not found"):
            check_ffmpeg()
    assert parse_version_tuple("6.1.1") == (6, 1, 1)
