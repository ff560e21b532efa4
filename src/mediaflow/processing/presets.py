"""
Processing Presets

Named, read-only processing configurations for common use cases (web
delivery, thumbnails, social media, podcasts, ...). The tables are built once
at import time; deriving a custom preset always returns a new config.

Bitrates are in bits per second. Callers persist derived configs, so the
values below are part of the public contract and should only change with a
version bump.
"""

from types import MappingProxyType
from typing import Any, List, Mapping, Optional, Union

from mediaflow.processing.config import (
    AudioConfig,
    ImageConfig,
    MediaFamily,
    ProcessingConfig,
    VideoConfig,
    derive_config,
)


PRESETS_VERSION = "1.0"

IMAGE_PRESETS: Mapping[str, ImageConfig] = MappingProxyType({
    'web_optimized': ImageConfig(
        width=1920, height=1080, quality=85, output_format='webp',
        maintain_aspect_ratio=True, strip_metadata=True,
    ),
    'thumbnail_small': ImageConfig(
        width=150, height=150, quality=80, output_format='webp',
        maintain_aspect_ratio=True, strip_metadata=True,
    ),
    'thumbnail_medium': ImageConfig(
        width=300, height=300, quality=85, output_format='webp',
        maintain_aspect_ratio=True, strip_metadata=True,
    ),
    'thumbnail_large': ImageConfig(
        width=600, height=600, quality=85, output_format='webp',
        maintain_aspect_ratio=True, strip_metadata=True,
    ),
    'print_quality': ImageConfig(
        width=3000, height=3000, quality=95, output_format='png',
        maintain_aspect_ratio=True,
    ),
    'social_media_square': ImageConfig(
        width=1080, height=1080, quality=85, output_format='jpeg',
        maintain_aspect_ratio=False, strip_metadata=True,
    ),
    'social_media_story': ImageConfig(
        width=1080, height=1920, quality=85, output_format='jpeg',
        maintain_aspect_ratio=False, strip_metadata=True,
    ),
    'email_friendly': ImageConfig(
        width=800, height=600, quality=75, output_format='jpeg',
        maintain_aspect_ratio=True, strip_metadata=True,
    ),
    'high_compression': ImageConfig(
        width=1280, height=720, quality=65, output_format='webp',
        maintain_aspect_ratio=True, strip_metadata=True,
    ),
})

VIDEO_PRESETS: Mapping[str, VideoConfig] = MappingProxyType({
    'web_hd': VideoConfig(
        width=1920, height=1080, codec='libx264', audio_codec='aac',
        bitrate=5_000_000, framerate=30.0, output_format='mp4',
    ),
    'web_sd': VideoConfig(
        width=1280, height=720, codec='libx264', audio_codec='aac',
        bitrate=2_500_000, framerate=30.0, output_format='mp4',
    ),
    'mobile_optimized': VideoConfig(
        width=854, height=480, codec='libx264', audio_codec='aac',
        bitrate=1_200_000, framerate=24.0, output_format='mp4',
    ),
    'social_media_square': VideoConfig(
        width=1080, height=1080, codec='libx264', audio_codec='aac',
        bitrate=3_000_000, framerate=30.0, output_format='mp4',
    ),
    'gif_conversion': VideoConfig(
        width=480, height=480, framerate=12.0, duration=10.0, output_format='gif',
    ),
    'webm_streaming': VideoConfig(
        width=1920, height=1080, codec='libvpx-vp9', audio_codec='libopus',
        bitrate=4_000_000, framerate=30.0, output_format='webm',
    ),
    'high_compression': VideoConfig(
        width=1280, height=720, codec='libx265', audio_codec='aac',
        bitrate=1_000_000, framerate=24.0, output_format='mp4',
    ),
})

AUDIO_PRESETS: Mapping[str, AudioConfig] = MappingProxyType({
    'high_quality': AudioConfig(
        output_format='flac', bitrate=1_411_000, sample_rate=44100, channels=2,
    ),
    'web_streaming': AudioConfig(
        output_format='mp3', bitrate=192_000, sample_rate=44100, channels=2,
    ),
    'podcast': AudioConfig(
        output_format='mp3', bitrate=128_000, sample_rate=44100, channels=2, normalize=True,
    ),
    'mobile_optimized': AudioConfig(
        output_format='aac', bitrate=128_000, sample_rate=44100, channels=2,
    ),
    'voice_only': AudioConfig(
        output_format='mp3', bitrate=64_000, sample_rate=22050, channels=1, normalize=True,
    ),
    'lossless': AudioConfig(
        output_format='wav', bitrate=1_411_000, sample_rate=44100, channels=2,
    ),
    'compressed': AudioConfig(
        output_format='ogg', bitrate=96_000, sample_rate=44100, channels=2,
    ),
})

PRESETS: Mapping[MediaFamily, Mapping[str, ProcessingConfig]] = MappingProxyType({
    MediaFamily.IMAGE: IMAGE_PRESETS,
    MediaFamily.VIDEO: VIDEO_PRESETS,
    MediaFamily.AUDIO: AUDIO_PRESETS,
})


def _family_presets(family: Union[MediaFamily, str]) -> Mapping[str, ProcessingConfig]:
    try:
        key = MediaFamily(family)
    except ValueError:
        return MappingProxyType({})
    return PRESETS.get(key, MappingProxyType({}))


def list_presets(family: Union[MediaFamily, str]) -> List[str]:
    """Return the preset names for a family (empty for unknown families)."""
    return list(_family_presets(family))


def get_preset(family: Union[MediaFamily, str], name: str) -> Optional[ProcessingConfig]:
    """Fetch a preset by family and name, or None if it does not exist."""
    return _family_presets(family).get(name)


def derive_preset(
    family: Union[MediaFamily, str],
    base_name: str,
    overrides: Mapping[str, Any]
) -> Optional[ProcessingConfig]:
    """
    Create a custom config from an existing preset.

    Args:
        family: Media family of the base preset
        base_name: Name of the preset to start from
        overrides: Field values replacing the preset's values

    Returns:
        A new config, or None if the base preset does not exist

    Raises:
        pydantic.ValidationError: If an override is invalid for the family
    """
    base = get_preset(family, base_name)
    if base is None:
        return None
    return derive_config(base, overrides)
