"""Shared Pydantic models for video metadata."""

from pydantic import BaseModel, ConfigDict, Field


class VideoMetadata(BaseModel):
    """Information about the input video, read once when the decoder is opened."""

    model_config = ConfigDict(frozen=True)

    filename: str = Field(..., description="Base name of the video file")
    file_size: int = Field(..., ge=0, description="File size in bytes")
    duration: float = Field(..., ge=0, description="Duration in seconds (0 if unknown)")
    width: int = Field(..., gt=0, description="Video width in pixels")
    height: int = Field(..., gt=0, description="Video height in pixels")
    video_codec: str = Field("unknown", description="Video codec name")
    audio_codec: str = Field("unknown", description="Audio codec name, 'unknown' without audio")
    frame_rate: float = Field(0.0, ge=0, description="Average frames per second")
    bit_rate: int = Field(0, ge=0, description="Container bit rate in bits per second")
    format_name: str = Field("unknown", description="Container format name")
