"""Run options for contact sheet generation, and the JSON config file that can preset them."""

import json
import logging
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from thumbsheet.compose.filters import normalize_filter_names
from thumbsheet.utils.color import parse_color
from thumbsheet.utils.timecode import parse_time

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILES = ("thumbsheet.json", "thumbsheet.config.json")

Color = Tuple[int, int, int]


class DecoderBackend(str, Enum):
    """Frame decoder implementations."""
    AV = "av"
    FFMPEG = "ffmpeg"


class ThumbnailOptions(BaseModel):
    """Resolved options for one run. Immutable once validated."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    # Capture plan
    num_caps: int = Field(4, ge=1, description="Number of captures (ignored when interval > 0)")
    interval: float = Field(0, ge=0, description="Seconds between captures, overrides num_caps")
    from_time: str = Field("00:00:00", description="Start of the capture range")
    to_time: str = Field("00:00:00", description="End of the capture range, 00:00:00 means end of video")
    skip_credits: bool = False
    fast: bool = Field(False, description="Accept the first frame after the keyframe instead of decoding forward")
    decoder: DecoderBackend = DecoderBackend.AV

    # Quality gate
    skip_blank: bool = False
    skip_blurry: bool = False
    sfw: bool = False
    blank_threshold: int = Field(85, ge=0, le=100)
    blur_threshold: int = Field(62, ge=0, le=100)
    max_retries: int = Field(3, ge=1)

    # Layout
    columns: int = Field(2, ge=1)
    width: int = Field(400, ge=1, description="Thumbnail width in pixels")
    height: int = Field(0, ge=0, description="Thumbnail height in pixels, 0 keeps the aspect ratio")
    padding: int = Field(10, ge=0)
    border: int = Field(0, ge=0)

    # Labels
    header: bool = True
    header_meta: bool = False
    comment: str = "contactsheet created with thumbsheet"
    disable_timestamps: bool = False
    timestamp_opacity: float = Field(1.0, ge=0, le=1)
    font: Optional[str] = Field(None, description="TrueType font file, default searches common system fonts")
    font_size: int = Field(12, ge=1)

    # Colors and decoration
    bg_content: Color = (0, 0, 0)
    bg_header: Color = (0, 0, 0)
    fg_header: Color = (255, 255, 255)
    filters: List[str] = Field(default_factory=list)
    watermark: Optional[Path] = None
    watermark_all: Optional[Path] = None

    # Output
    output: str = "{{.Path}}{{.Name}}.jpg"
    single_images: bool = False
    overwrite: bool = False
    skip_existing: bool = False
    vtt: bool = False
    webvtt: bool = Field(False, description="VTT sprite mode: implies vtt, no header, no timestamps, no padding")

    @model_validator(mode="before")
    @classmethod
    def apply_webvtt_mode(cls, data: Any) -> Any:
        if isinstance(data, dict) and data.get("webvtt"):
            data = {
                **data,
                "vtt": True,
                "header": False,
                "header_meta": False,
                "disable_timestamps": True,
                "padding": 0,
            }
        return data

    @field_validator("from_time", "to_time")
    @classmethod
    def check_time(cls, value: str) -> str:
        parse_time(value)
        return value

    @field_validator("bg_content", "bg_header", "fg_header", mode="before")
    @classmethod
    def check_color(cls, value: Any) -> Any:
        if isinstance(value, str):
            return parse_color(value)
        return value

    @field_validator("filters", mode="before")
    @classmethod
    def check_filters(cls, value: Any) -> List[str]:
        return normalize_filter_names(value)

    @property
    def start_seconds(self) -> float:
        return parse_time(self.from_time)

    @property
    def end_seconds(self) -> Optional[float]:
        """Parsed end of range, None when unset."""
        end = parse_time(self.to_time)
        return end if end > 0 else None


def find_config_file(directory: Path) -> Optional[Path]:
    """Return the first default config file present in directory."""
    for name in DEFAULT_CONFIG_FILES:
        candidate = directory / name
        if candidate.is_file():
            return candidate
    return None


def load_config_file(path: Path) -> Dict[str, Any]:
    """Read a JSON config file into a dict of option values.

    Keys are validated later, together with the command line values.

    Raises:
        FileNotFoundError: If the file does not exist.
        ValueError: If the file is not a JSON object.
    """
    if not path.exists():
        raise FileNotFoundError(f"Config file does not exist: {path}")
    try:
        data = json.loads(path.read_text())
    except json.JSONDecodeError as e:
        raise ValueError(f"Config file {path} is not valid JSON: {e}")
    if not isinstance(data, dict):
        raise ValueError(f"Config file {path} must contain a JSON object")
    logger.debug(f"Loaded {len(data)} option(s) from {path}")
    return data


def save_config_file(options: ThumbnailOptions, path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, 'w') as f:
        f.write(options.model_dump_json(indent=2))
    logger.info(f"Saved configuration to {path}")
