"""
Media Processing Pipeline

Content-based classification and processing of images, video and audio.

This module provides:
- MediaProcessingService: routes a file to the engine for its media family
- ImageProcessor: PIL/Pillow-based raster engine
- VideoProcessor: FFmpeg-based video and audio engine
- RsvgRasterizer: SVG rendering through rsvg-convert
- Processing configs, presets and the ProcessingResult value

Requirements:
- PIL/Pillow for image processing (installed)
- FFmpeg system dependency for video and audio (requires separate installation)
- librsvg's rsvg-convert for SVG rasterization (optional)

Example usage:
    from mediaflow.processing import get_preset
    from mediaflow.processing.factory import ProcessorFactory

    service = ProcessorFactory().create_processing_service()
    result = service.process('in.png', 'out.webp', get_preset('image', 'web_optimized'))
"""

from mediaflow.processing.exceptions import (
    EngineUnavailableError,
    FFmpegNotFoundError,
    ImageProcessingError,
    ProcessingError,
    UnsupportedFormatError,
    VectorRasterizationError,
    VideoProcessingError,
)
from mediaflow.processing.config import (
    AudioConfig,
    GenericConfig,
    ImageConfig,
    MediaFamily,
    ProcessingConfig,
    VideoConfig,
    derive_config,
    parse_config,
)
from mediaflow.processing.result import ProcessingResult
from mediaflow.processing.classifier import TypeClassifier
from mediaflow.processing.image_processor import ImageProcessor
from mediaflow.processing.video_processor import VideoProcessor
from mediaflow.processing.vector_rasterizer import RsvgRasterizer
from mediaflow.processing.orchestrator import MediaProcessingService
from mediaflow.processing.presets import derive_preset, get_preset, list_presets

__all__ = [
    'ProcessingError',
    'ImageProcessingError',
    'VideoProcessingError',
    'VectorRasterizationError',
    'FFmpegNotFoundError',
    'UnsupportedFormatError',
    'EngineUnavailableError',
    'MediaFamily',
    'ImageConfig',
    'VideoConfig',
    'AudioConfig',
    'GenericConfig',
    'ProcessingConfig',
    'parse_config',
    'derive_config',
    'ProcessingResult',
    'TypeClassifier',
    'ImageProcessor',
    'VideoProcessor',
    'RsvgRasterizer',
    'MediaProcessingService',
    'list_presets',
    'get_preset',
    'derive_preset',
]
