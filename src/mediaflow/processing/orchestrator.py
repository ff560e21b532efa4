"""
Media Processing Service

Single entry point for media processing. Classifies the input by content,
routes it to the engine for its family (or to the async job service) and
converts every engine fault into a failure result.
"""

import logging
import time
from pathlib import Path
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Mapping, Optional, Sequence, Union

from mediaflow.processing.classifier import TypeClassifier
from mediaflow.processing.config import (
    AudioConfig,
    ImageConfig,
    MediaFamily,
    ProcessingConfig,
    VideoConfig,
)
from mediaflow.processing.engines import AudiovisualEngine, RasterEngine, VectorRasterizer
from mediaflow.processing.exceptions import EngineUnavailableError
from mediaflow.processing.result import ProcessingResult

if TYPE_CHECKING:
    from mediaflow.jobs.service import AsyncJobService


PathLike = Union[str, Path]

DEFAULT_THUMBNAIL_SIZES = (150, 300, 600)
DEFAULT_THUMBNAIL_FORMAT = 'webp'
DEFAULT_THUMBNAIL_QUALITY = 85
DEFAULT_FRAME_OFFSET = 1.0

DEFAULT_CONVERT_QUALITY = 85
DEFAULT_CONVERT_AUDIO_BITRATE = 192000

SVG_MIME_TYPE = 'image/svg+xml'


class MediaProcessingService:
    """
    Orchestrates classification, routing and result normalization.

    Args:
        raster_engine: Engine for raster images (None disables images)
        av_engine: Engine for video and audio (None disables both)
        job_service: Producer used when processing is requested async
        vector_rasterizer: Renderer for SVG inputs with a raster target
        classifier: Content sniffer, a default TypeClassifier if omitted
        thumbnail_sizes: Default edge lengths for generate_thumbnails
        thumbnail_format: Default thumbnail output format
        thumbnail_quality: Default thumbnail encoder quality
        frame_offset: Seconds into a video the thumbnail frame is taken
    """

    def __init__(
        self,
        raster_engine: Optional[RasterEngine],
        av_engine: Optional[AudiovisualEngine],
        job_service: Optional['AsyncJobService'] = None,
        vector_rasterizer: Optional[VectorRasterizer] = None,
        classifier: Optional[TypeClassifier] = None,
        thumbnail_sizes: Sequence[int] = DEFAULT_THUMBNAIL_SIZES,
        thumbnail_format: str = DEFAULT_THUMBNAIL_FORMAT,
        thumbnail_quality: int = DEFAULT_THUMBNAIL_QUALITY,
        frame_offset: float = DEFAULT_FRAME_OFFSET
    ):
        self.raster_engine = raster_engine
        self.av_engine = av_engine
        self.job_service = job_service
        self.vector_rasterizer = vector_rasterizer
        self.classifier = classifier or TypeClassifier()
        self.thumbnail_sizes = list(thumbnail_sizes)
        self.thumbnail_format = thumbnail_format
        self.thumbnail_quality = thumbnail_quality
        self.frame_offset = frame_offset
        self.logger = logging.getLogger("mediaflow.processing.orchestrator")

    def process(
        self,
        input_path: PathLike,
        output_path: PathLike,
        config: ProcessingConfig,
        async_: bool = False,
        delay_seconds: Optional[float] = None
    ) -> ProcessingResult:
        """
        Process a file according to its detected media family.

        Args:
            input_path: File to process
            output_path: Where the artifact is written
            config: Processing configuration; a config of the wrong family
                is replaced by that family's defaults
            async_: Queue the work for a background worker instead
            delay_seconds: Minimum delay before a queued job becomes visible

        Returns:
            ProcessingResult; never raises
        """
        start_time = time.time()
        try:
            if not Path(input_path).exists():
                return ProcessingResult.failed(
                    f"Input file does not exist: {input_path}",
                    metadata={'input_path': str(input_path)}
                )

            if async_:
                if self.job_service is None:
                    return ProcessingResult.failed("Async processing is not configured")
                return self.job_service.queue_processing(
                    input_path, output_path, config, delay_seconds=delay_seconds
                )

            mime_type = self.classifier.detect_mime_type(input_path)
            family = self.classifier.classify_mime_type(mime_type)
            self.logger.debug(f"Detected {mime_type} ({family.value}) for {input_path}")

            match family:
                case MediaFamily.IMAGE:
                    return self.process_image(input_path, output_path, config)
                case MediaFamily.VIDEO:
                    return self.process_video(input_path, output_path, config)
                case MediaFamily.AUDIO:
                    return self.process_audio(input_path, output_path, config)
                case _:
                    return ProcessingResult.failed(
                        f"Unsupported media type: {mime_type}",
                        metadata={'mime_type': mime_type}
                    )
        except Exception as e:
            self.logger.error(f"Processing failed for {input_path}: {e}")
            return ProcessingResult.failed(
                f"Processing failed: {e}",
                metadata={'exception': e.__class__.__name__},
                processing_time=time.time() - start_time
            )

    def process_image(
        self,
        input_path: PathLike,
        output_path: PathLike,
        config: Optional[ProcessingConfig] = None
    ) -> ProcessingResult:
        """Run the raster (or vector) pipeline on an image."""
        image_config = self._coerce(config, MediaFamily.IMAGE, ImageConfig)

        def run() -> ProcessingResult:
            if self.classifier.detect_mime_type(input_path) == SVG_MIME_TYPE:
                return self._process_vector(input_path, output_path, image_config)
            return self._require(self.raster_engine, RasterEngine.name).process_image(
                input_path, output_path, image_config
            )

        return self._guarded("Image processing", run)

    def process_video(
        self,
        input_path: PathLike,
        output_path: PathLike,
        config: Optional[ProcessingConfig] = None
    ) -> ProcessingResult:
        """Transcode a video through the audiovisual engine."""
        video_config = self._coerce(config, MediaFamily.VIDEO, VideoConfig)
        return self._guarded(
            "Video processing",
            lambda: self._require(self.av_engine, AudiovisualEngine.name).process_video(
                input_path, output_path, video_config
            )
        )

    def process_audio(
        self,
        input_path: PathLike,
        output_path: PathLike,
        config: Optional[ProcessingConfig] = None
    ) -> ProcessingResult:
        """Transcode audio through the audiovisual engine."""
        audio_config = self._coerce(config, MediaFamily.AUDIO, AudioConfig)
        return self._guarded(
            "Audio processing",
            lambda: self._require(self.av_engine, AudiovisualEngine.name).process_audio(
                input_path, output_path, audio_config
            )
        )

    def generate_thumbnails(
        self,
        input_path: PathLike,
        sizes: Optional[Sequence[int]] = None,
        output_format: Optional[str] = None,
        quality: Optional[int] = None,
        output_dir: Optional[PathLike] = None
    ) -> ProcessingResult:
        """
        Generate square-bounded thumbnails, one per size.

        Sizes are attempted independently; the operation only fails if none
        of them could be produced. Thumbnails are written next to the input
        (or into ``output_dir``) as ``<stem>_thumb_<size>.<format>``.

        Returns:
            On success, ``output_path`` is the first thumbnail produced,
            ``processed_files`` lists all of them and the metadata carries
            ``thumbnails`` (size -> path), ``errors`` and ``generated_count``
        """
        start_time = time.time()
        sizes = list(self.thumbnail_sizes if sizes is None else sizes)
        output_format = (output_format or self.thumbnail_format).lower()
        quality = self.thumbnail_quality if quality is None else quality

        input_path = Path(input_path)
        if not input_path.exists():
            return ProcessingResult.failed(
                f"Input file does not exist: {input_path}",
                metadata={'input_path': str(input_path)}
            )

        try:
            mime_type = self.classifier.detect_mime_type(input_path)
        except OSError as e:
            self.logger.error(f"Could not read {input_path}: {e}")
            return ProcessingResult.failed(
                f"Failed to read input file: {e}",
                metadata={'exception': e.__class__.__name__}
            )
        family = self.classifier.classify_mime_type(mime_type)

        target_dir = Path(output_dir) if output_dir is not None else input_path.parent
        thumbnails: Dict[int, str] = {}
        errors: List[str] = []

        for size in sizes:
            if family not in (MediaFamily.IMAGE, MediaFamily.VIDEO):
                errors.append(f"Thumbnail generation not supported for type: {mime_type}")
                continue

            thumb_path = target_dir / f"{input_path.stem}_thumb_{size}.{output_format}"
            try:
                result = self._generate_thumbnail(
                    family, input_path, thumb_path, size, output_format, quality
                )
            except Exception as e:
                self.logger.warning(f"Thumbnail {size}px failed for {input_path}: {e}")
                errors.append(f"Exception generating {size}px thumbnail: {e}")
                continue

            if result.success:
                thumbnails[size] = result.output_path or str(thumb_path)
            else:
                errors.append(f"Failed to generate {size}px thumbnail: {result.error_message}")

        processing_time = time.time() - start_time

        if not thumbnails:
            message = 'Failed to generate any thumbnails' if sizes else 'No thumbnail sizes requested'
            return ProcessingResult.failed(
                message,
                metadata={'errors': errors, 'mime_type': mime_type},
                processing_time=processing_time
            )

        self.logger.info(f"Generated {len(thumbnails)}/{len(sizes)} thumbnails for {input_path}")
        paths = list(thumbnails.values())
        return ProcessingResult.succeeded(
            paths[0],
            metadata={
                'thumbnails': thumbnails,
                'errors': errors,
                'generated_count': len(thumbnails),
            },
            processed_files=paths,
            processing_time=processing_time
        )

    def extract_metadata(self, file_path: PathLike) -> Dict[str, Any]:
        """
        Describe a file: basic filesystem facts plus engine metadata.

        Returns:
            Metadata mapping; on any fault, ``{'file_path', 'error'}``
        """
        try:
            path = Path(file_path)
            stat = path.stat()
            mime_type = self.classifier.detect_mime_type(path)
            family = self.classifier.classify_mime_type(mime_type)

            metadata: Dict[str, Any] = {
                'file_path': str(path),
                'file_size': stat.st_size,
                'mime_type': mime_type,
                'family': family.value,
                'modified_time': stat.st_mtime,
            }

            match family:
                case MediaFamily.IMAGE if mime_type == SVG_MIME_TYPE:
                    metadata['vector'] = True
                case MediaFamily.IMAGE:
                    metadata.update(
                        self._require(self.raster_engine, RasterEngine.name).extract_metadata(path)
                    )
                case MediaFamily.VIDEO | MediaFamily.AUDIO:
                    metadata.update(
                        self._require(self.av_engine, AudiovisualEngine.name).extract_metadata(path)
                    )

            return metadata
        except Exception as e:
            self.logger.error(f"Failed to extract metadata from {file_path}: {e}")
            return {'file_path': str(file_path), 'error': f"Failed to extract metadata: {e}"}

    def convert_format(
        self,
        input_path: PathLike,
        output_path: PathLike,
        target_format: str,
        options: Optional[Mapping[str, Any]] = None
    ) -> ProcessingResult:
        """
        Convert a file to another container/format with default settings.

        Options:
            quality: Image encoder quality (default 85)
            bitrate: Audio bitrate in bits per second (default 192000)
        """
        options = options or {}
        try:
            if not Path(input_path).exists():
                return ProcessingResult.failed(
                    f"Input file does not exist: {input_path}",
                    metadata={'input_path': str(input_path)}
                )

            mime_type = self.classifier.detect_mime_type(input_path)
            family = self.classifier.classify_mime_type(mime_type)

            match family:
                case MediaFamily.IMAGE:
                    config = ImageConfig(
                        quality=int(options.get('quality', DEFAULT_CONVERT_QUALITY)),
                        output_format=target_format
                    )
                    return self.process_image(input_path, output_path, config)
                case MediaFamily.VIDEO:
                    return self.process_video(
                        input_path, output_path, VideoConfig(output_format=target_format)
                    )
                case MediaFamily.AUDIO:
                    config = AudioConfig(
                        bitrate=int(options.get('bitrate', DEFAULT_CONVERT_AUDIO_BITRATE)),
                        output_format=target_format
                    )
                    return self.process_audio(input_path, output_path, config)
                case _:
                    return ProcessingResult.failed(
                        f"Format conversion not supported for type: {mime_type}",
                        metadata={'mime_type': mime_type}
                    )
        except Exception as e:
            self.logger.error(f"Format conversion failed for {input_path}: {e}")
            return ProcessingResult.failed(
                f"Format conversion failed: {e}",
                metadata={'exception': e.__class__.__name__}
            )

    def _generate_thumbnail(
        self,
        family: MediaFamily,
        input_path: Path,
        thumb_path: Path,
        size: int,
        output_format: str,
        quality: int
    ) -> ProcessingResult:
        if family == MediaFamily.IMAGE:
            config = ImageConfig(
                width=size,
                height=size,
                quality=quality,
                output_format=output_format,
                maintain_aspect_ratio=True,
            )
            return self.process_image(input_path, thumb_path, config)

        thumb_path.parent.mkdir(parents=True, exist_ok=True)
        return self._require(self.av_engine, AudiovisualEngine.name).extract_video_frame(
            input_path, thumb_path, self.frame_offset, size, size
        )

    def _process_vector(
        self,
        input_path: PathLike,
        output_path: PathLike,
        config: ImageConfig
    ) -> ProcessingResult:
        """SVG input: rasterize for raster targets, otherwise pass through."""
        target_format = (config.output_format or Path(output_path).suffix.lstrip(".")).lower()
        if target_format in ("", "svg"):
            return self._require(self.raster_engine, RasterEngine.name).process_image(
                input_path, output_path, config.model_copy(update={'output_format': 'svg'})
            )

        return self._require(self.vector_rasterizer, VectorRasterizer.name).rasterize(
            input_path,
            output_path,
            config.width,
            config.height,
            target_format,
            config.quality
        )

    def _guarded(self, operation: str, action: Callable[[], ProcessingResult]) -> ProcessingResult:
        start_time = time.time()
        try:
            return action()
        except Exception as e:
            self.logger.error(f"{operation} failed: {e}")
            return ProcessingResult.failed(
                f"{operation} failed: {e}",
                metadata={'exception': e.__class__.__name__},
                processing_time=time.time() - start_time
            )

    @staticmethod
    def _require(engine, engine_name: str):
        if engine is None:
            raise EngineUnavailableError(engine_name)
        return engine

    def _coerce(self, config: Optional[ProcessingConfig], family: MediaFamily, default_factory):
        if config is not None and config.family == family.value:
            return config
        if config is not None:
            self.logger.debug(f"Ignoring {config.family} config for {family.value} input")
        return default_factory()
