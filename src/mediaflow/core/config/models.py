"""
Configuration Models

Pydantic models for the application settings: engine defaults, thumbnail
generation and the async job infrastructure.
"""

from pathlib import Path
from typing import Any, Dict, List

from pydantic import BaseModel, ConfigDict, Field, field_validator


class EngineConfig(BaseModel):
    """Settings handed to the media engines."""

    default_image_quality: int = Field(
        default=85,
        ge=1,
        le=100,
        description="Encoder quality when an image config does not set one"
    )
    preserve_original_metadata: bool = Field(
        default=True,
        description="Carry EXIF/container metadata over to outputs"
    )
    video_quality_crf: int = Field(
        default=23,
        ge=0,
        le=51,
        description="CRF used for x264/x265/VP9 when no bitrate is given"
    )
    ffmpeg_path: str = Field(
        default="ffmpeg",
        description="ffmpeg executable"
    )
    ffprobe_path: str = Field(
        default="ffprobe",
        description="ffprobe executable"
    )
    rsvg_convert_path: str = Field(
        default="rsvg-convert",
        description="rsvg-convert executable used to rasterize SVG"
    )

    model_config = ConfigDict(extra="forbid")

    def to_engine_options(self) -> Dict[str, Any]:
        """Flatten into the option dictionary the engines accept."""
        return {
            'image_quality': self.default_image_quality,
            'preserve_original_metadata': self.preserve_original_metadata,
            'video_quality_crf': self.video_quality_crf,
            'ffmpeg_path': self.ffmpeg_path,
            'ffprobe_path': self.ffprobe_path,
            'rsvg_convert_path': self.rsvg_convert_path,
        }


class ThumbnailConfig(BaseModel):
    """Defaults for thumbnail generation."""

    sizes: List[int] = Field(
        default=[150, 300, 600],
        description="Bounding box edge lengths in pixels"
    )
    format: str = Field(
        default="webp",
        description="Thumbnail output format"
    )
    quality: int = Field(
        default=85,
        ge=1,
        le=100,
        description="Thumbnail encoder quality"
    )
    frame_offset: float = Field(
        default=1.0,
        ge=0.0,
        description="Seconds into a video at which the thumbnail frame is taken"
    )

    model_config = ConfigDict(extra="forbid")

    @field_validator('sizes')
    @classmethod
    def validate_sizes(cls, v):
        """Thumbnail sizes must be positive."""
        if any(size <= 0 for size in v):
            raise ValueError("Thumbnail sizes must be positive integers")
        return v

    @field_validator('format')
    @classmethod
    def validate_format(cls, v):
        supported_formats = {'jpeg', 'jpg', 'png', 'webp'}
        if v.lower() not in supported_formats:
            raise ValueError(f"Unsupported thumbnail format: {v}")
        return v.lower()


class JobsConfig(BaseModel):
    """Async job infrastructure."""

    status_dir: Path = Field(
        default=Path("var/processing_jobs"),
        description="Directory holding one status record per job"
    )
    spool_dir: Path = Field(
        default=Path("var/queue"),
        description="Directory used as the message queue"
    )
    retention_days: int = Field(
        default=7,
        ge=0,
        description="Age after which job status records are cleaned up"
    )
    poll_interval: float = Field(
        default=1.0,
        gt=0.0,
        le=60.0,
        description="Seconds between queue polls in the worker"
    )

    model_config = ConfigDict(extra="forbid")


class AppConfig(BaseModel):
    """Root application configuration model."""

    engines: EngineConfig = Field(default_factory=EngineConfig, description="Engine configuration")
    thumbnails: ThumbnailConfig = Field(default_factory=ThumbnailConfig, description="Thumbnail configuration")
    jobs: JobsConfig = Field(default_factory=JobsConfig, description="Job configuration")

    verbose: bool = Field(
        default=False,
        description="Enable verbose logging output"
    )
    debug: bool = Field(
        default=False,
        description="Enable debug mode with detailed logging"
    )
    log_level: str = Field(
        default="INFO",
        description="Logging level when neither verbose nor debug is set"
    )

    model_config = ConfigDict(
        extra="forbid",
        validate_assignment=True,
    )

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v):
        """Validate log level name."""
        levels = {'DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'}
        if v.upper() not in levels:
            raise ValueError(f"Unsupported log level: {v}. Supported: {', '.join(sorted(levels))}")
        return v.upper()

    def get_log_level(self) -> str:
        """Effective log level after verbose/debug flags."""
        if self.debug:
            return "DEBUG"
        if self.verbose and self.log_level in ("WARNING", "ERROR", "CRITICAL"):
            return "INFO"
        return self.log_level

