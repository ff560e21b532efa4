"""
Engine Capability Interfaces

Abstract base classes for the external engines the orchestrator calls into.
One implementation of each is supplied at composition time, which lets tests
substitute fakes without touching the orchestrator.
"""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, Optional, Union

from mediaflow.processing.config import AudioConfig, ImageConfig, VideoConfig
from mediaflow.processing.result import ProcessingResult


PathLike = Union[str, Path]


class RasterEngine(ABC):
    """Raster image resize/convert engine."""

    name = "raster"

    @abstractmethod
    def process_image(
        self,
        input_path: PathLike,
        output_path: PathLike,
        config: ImageConfig
    ) -> ProcessingResult:
        """Transform an image according to ``config`` and write it to ``output_path``."""

    @abstractmethod
    def extract_metadata(self, file_path: PathLike) -> Dict[str, Any]:
        """Return image specific metadata (dimensions, format, EXIF summary)."""


class AudiovisualEngine(ABC):
    """Video and audio transcoding engine."""

    name = "audiovisual"

    @abstractmethod
    def process_video(
        self,
        input_path: PathLike,
        output_path: PathLike,
        config: VideoConfig
    ) -> ProcessingResult:
        """Transcode a video according to ``config``."""

    @abstractmethod
    def process_audio(
        self,
        input_path: PathLike,
        output_path: PathLike,
        config: AudioConfig
    ) -> ProcessingResult:
        """Transcode an audio file according to ``config``."""

    @abstractmethod
    def extract_video_frame(
        self,
        input_path: PathLike,
        output_path: PathLike,
        timestamp: float = 0.0,
        width: Optional[int] = None,
        height: Optional[int] = None
    ) -> ProcessingResult:
        """Write a single frame taken at ``timestamp`` seconds as an image."""

    @abstractmethod
    def extract_metadata(self, file_path: PathLike) -> Dict[str, Any]:
        """Return stream level metadata (duration, codecs, bitrate)."""


class VectorRasterizer(ABC):
    """Renders vector graphics (SVG) to raster formats."""

    name = "vector"

    @abstractmethod
    def rasterize(
        self,
        input_path: PathLike,
        output_path: PathLike,
        width: Optional[int],
        height: Optional[int],
        output_format: str,
        quality: Optional[int]
    ) -> ProcessingResult:
        """Render ``input_path`` at the requested size into ``output_format``."""
