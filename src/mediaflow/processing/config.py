"""
Processing Configuration Models

Immutable pydantic models describing how a single media file should be
transformed. The image, video and audio variants plus a generic fallback form
a tagged union discriminated by the ``family`` field, so dispatch always
happens on the tag rather than on the concrete class.
"""

from enum import Enum
from typing import Annotated, Any, Dict, Literal, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter


class MediaFamily(str, Enum):
    """Media families understood by the processing layer."""

    IMAGE = "image"
    VIDEO = "video"
    AUDIO = "audio"
    GENERIC = "generic"
    UNKNOWN = "unknown"


class _BaseProcessingConfig(BaseModel):
    """Shared read-only surface of every processing config variant."""

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
    )

    output_format: Optional[str] = Field(
        default=None,
        description="Target container/file format (None keeps the source format)"
    )

    def to_dict(self) -> Dict[str, Any]:
        """Serialize the config, including its family tag."""
        return self.model_dump(mode="json")


class ImageConfig(_BaseProcessingConfig):
    """Configuration for raster and vector image processing."""

    family: Literal["image"] = "image"

    width: Optional[int] = Field(default=None, gt=0, description="Target width in pixels")
    height: Optional[int] = Field(default=None, gt=0, description="Target height in pixels")
    quality: Optional[int] = Field(
        default=None,
        ge=0,
        le=100,
        description="Encoder quality for lossy formats (None uses the engine default)"
    )
    maintain_aspect_ratio: bool = Field(
        default=True,
        description="Fit within width x height instead of stretching"
    )
    preserve_transparency: bool = Field(
        default=True,
        description="Keep alpha channel when the target format supports it"
    )
    strip_metadata: bool = Field(default=False, description="Drop EXIF and other metadata")
    progressive: bool = Field(default=False, description="Write progressive/interlaced output")
    background_color: Optional[str] = Field(
        default=None,
        description="Colour used when flattening transparency"
    )

    @property
    def has_resize(self) -> bool:
        return self.width is not None or self.height is not None


class VideoConfig(_BaseProcessingConfig):
    """Configuration for video transcoding."""

    family: Literal["video"] = "video"

    width: Optional[int] = Field(default=None, gt=0)
    height: Optional[int] = Field(default=None, gt=0)
    codec: Optional[str] = Field(default=None, description="Video codec, e.g. libx264")
    audio_codec: Optional[str] = Field(
        default=None,
        description="Audio codec (None copies the source audio stream)"
    )
    bitrate: Optional[int] = Field(default=None, gt=0, description="Video bitrate in bits/sec")
    framerate: Optional[float] = Field(default=None, gt=0)
    duration: Optional[float] = Field(default=None, gt=0, description="Clip length in seconds")
    start_time: Optional[float] = Field(default=None, ge=0, description="Clip start in seconds")
    maintain_aspect_ratio: bool = True
    audio_bitrate: Optional[int] = Field(default=None, gt=0, description="Audio bitrate in bits/sec")
    audio_sample_rate: Optional[int] = Field(default=None, gt=0)

    @property
    def has_resize(self) -> bool:
        return self.width is not None or self.height is not None

    @property
    def has_trimming(self) -> bool:
        return self.duration is not None or self.start_time is not None


class AudioConfig(_BaseProcessingConfig):
    """Configuration for audio transcoding."""

    family: Literal["audio"] = "audio"

    codec: Optional[str] = None
    bitrate: Optional[int] = Field(default=None, gt=0, description="Bitrate in bits/sec")
    sample_rate: Optional[int] = Field(default=None, gt=0)
    channels: Optional[int] = Field(default=None, gt=0)
    duration: Optional[float] = Field(default=None, gt=0)
    start_time: Optional[float] = Field(default=None, ge=0)
    volume: Optional[float] = Field(default=None, ge=0, le=2, description="Gain multiplier")
    normalize: bool = Field(default=False, description="Apply EBU R128 loudness normalization")

    @property
    def has_trimming(self) -> bool:
        return self.duration is not None or self.start_time is not None


class GenericConfig(_BaseProcessingConfig):
    """Fallback config for callers that do not know the media family yet."""

    family: Literal["generic"] = "generic"

    options: Dict[str, Any] = Field(default_factory=dict)


ProcessingConfig = Annotated[
    Union[ImageConfig, VideoConfig, AudioConfig, GenericConfig],
    Field(discriminator="family"),
]

_config_adapter: TypeAdapter = TypeAdapter(ProcessingConfig)


def parse_config(data: Mapping[str, Any]) -> ProcessingConfig:
    """
    Rebuild a config variant from its serialized form.

    Args:
        data: Mapping produced by ``to_dict()``; a missing ``family`` tag
            yields a GenericConfig

    Returns:
        The matching config variant

    Raises:
        pydantic.ValidationError: If the data does not describe a valid config
    """
    payload = dict(data)
    payload.setdefault("family", MediaFamily.GENERIC.value)
    return _config_adapter.validate_python(payload)


def derive_config(base: ProcessingConfig, overrides: Mapping[str, Any]) -> ProcessingConfig:
    """
    Create a new config of the same variant with some fields replaced.

    The base config is never modified; the merged values are validated again
    so overrides cannot smuggle in out-of-range values or unknown fields.
    """
    merged = {**base.model_dump(), **dict(overrides)}
    merged["family"] = base.family
    return type(base).model_validate(merged)
