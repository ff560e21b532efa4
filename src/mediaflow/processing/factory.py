"""
Processor Factory

Composition root: builds the engines, the job infrastructure and the
processing service from an AppConfig. Engines whose external tools are
missing are left out so the service can report a structured failure for
that media family instead of failing at startup.
"""

import logging
from typing import Optional

from mediaflow.core.config import AppConfig
from mediaflow.jobs.queue import MessageQueue, SpoolDirectoryQueue
from mediaflow.jobs.service import AsyncJobService
from mediaflow.jobs.store import FileJobStatusStore, JobStatusStore
from mediaflow.jobs.worker import JobWorker
from mediaflow.processing.exceptions import FFmpegNotFoundError
from mediaflow.processing.image_processor import ImageProcessor
from mediaflow.processing.orchestrator import MediaProcessingService
from mediaflow.processing.vector_rasterizer import RsvgRasterizer
from mediaflow.processing.video_processor import VideoProcessor


class ProcessorFactory:
    """
    Creates configured engines and services.

    Queue and store instances are created once per factory so the service
    and a worker built from the same factory share them.
    """

    def __init__(self, config: Optional[AppConfig] = None):
        self.config = config or AppConfig()
        self.logger = logging.getLogger("mediaflow.processing.factory")

        self._queue: Optional[MessageQueue] = None
        self._store: Optional[JobStatusStore] = None
        self._job_service: Optional[AsyncJobService] = None

    def create_raster_engine(self) -> ImageProcessor:
        return ImageProcessor(self.config.engines.to_engine_options())

    def create_audiovisual_engine(self) -> Optional[VideoProcessor]:
        """Create the ffmpeg engine, or None if ffmpeg is not installed."""
        try:
            return VideoProcessor(self.config.engines.to_engine_options())
        except FFmpegNotFoundError as e:
            self.logger.warning(f"Video and audio processing disabled: {e}")
            return None

    def create_vector_rasterizer(self) -> Optional[RsvgRasterizer]:
        """Create the SVG rasterizer, or None if rsvg-convert is not installed."""
        rasterizer = RsvgRasterizer(self.config.engines.to_engine_options())
        if not rasterizer.is_available():
            self.logger.warning(
                f"SVG rasterization disabled: {self.config.engines.rsvg_convert_path} not found"
            )
            return None
        return rasterizer

    def get_queue(self) -> MessageQueue:
        if self._queue is None:
            self._queue = SpoolDirectoryQueue(
                self.config.jobs.spool_dir,
                poll_interval=self.config.jobs.poll_interval
            )
        return self._queue

    def get_store(self) -> JobStatusStore:
        if self._store is None:
            self._store = FileJobStatusStore(self.config.jobs.status_dir)
        return self._store

    def get_job_service(self) -> AsyncJobService:
        if self._job_service is None:
            self._job_service = AsyncJobService(
                self.get_queue(),
                self.get_store(),
                retention_days=self.config.jobs.retention_days
            )
        return self._job_service

    def create_processing_service(self) -> MediaProcessingService:
        thumbnails = self.config.thumbnails
        return MediaProcessingService(
            raster_engine=self.create_raster_engine(),
            av_engine=self.create_audiovisual_engine(),
            job_service=self.get_job_service(),
            vector_rasterizer=self.create_vector_rasterizer(),
            thumbnail_sizes=thumbnails.sizes,
            thumbnail_format=thumbnails.format,
            thumbnail_quality=thumbnails.quality,
            frame_offset=thumbnails.frame_offset,
        )

    def create_worker(self, processing_service: Optional[MediaProcessingService] = None) -> JobWorker:
        return JobWorker(
            processing_service or self.create_processing_service(),
            self.get_job_service(),
            self.get_queue(),
            poll_interval=self.config.jobs.poll_interval
        )
