"""
Job Worker

Consumer side of deferred processing. Each received message is run through
the synchronous pipeline and the outcome is written back to the status
store. Cancellation is cooperative: a cancelled job is skipped before it
starts, and a job cancelled while running keeps its cancelled record.
"""

import logging
import threading
import time
from typing import TYPE_CHECKING, Optional

from mediaflow.jobs.messages import ProcessMediaMessage
from mediaflow.jobs.queue import MessageQueue, QueueError
from mediaflow.jobs.service import (
    STATUS_COMPLETED,
    STATUS_FAILED,
    STATUS_RUNNING,
    AsyncJobService,
)
from mediaflow.processing.result import ProcessingResult

if TYPE_CHECKING:
    from mediaflow.processing.orchestrator import MediaProcessingService


class JobWorker:
    """Runs queued processing jobs."""

    def __init__(
        self,
        processing_service: 'MediaProcessingService',
        job_service: AsyncJobService,
        queue: MessageQueue,
        poll_interval: float = 1.0
    ):
        self.processing_service = processing_service
        self.job_service = job_service
        self.queue = queue
        self.poll_interval = poll_interval
        self.logger = logging.getLogger("mediaflow.jobs.worker")
        self._stop_event = threading.Event()

    def handle(self, message: ProcessMediaMessage) -> Optional[ProcessingResult]:
        """
        Process one message.

        Returns:
            The processing result, or None if the job was cancelled before
            it started

        Raises:
            Exception: Whatever the pipeline raised, after the job has been
                marked failed
        """
        job_id = message.job_id

        if self.job_service.is_cancelled(job_id):
            self.logger.info(f"Skipping cancelled job {job_id}")
            return None

        self.job_service.update_job_status(job_id, {
            'status': STATUS_RUNNING,
            'progress': 0,
            'message': 'Processing started',
            'input_path': message.input_path,
            'output_path': message.output_path,
        })

        try:
            result = self.processing_service.process(
                message.input_path,
                message.output_path,
                message.config,
                async_=False
            )
        except Exception as e:
            self.logger.error(f"Job {job_id} raised {e.__class__.__name__}: {e}")
            self.job_service.update_job_status(job_id, {
                'status': STATUS_FAILED,
                'message': str(e),
                'error': e.__class__.__name__,
            })
            raise

        if self.job_service.is_cancelled(job_id):
            self.logger.info(f"Job {job_id} was cancelled while running, discarding result")
            return result

        if result.success:
            self.job_service.update_job_status(job_id, {
                'status': STATUS_COMPLETED,
                'progress': 100,
                'message': 'Processing completed',
                'output_path': result.output_path,
                'metadata': result.metadata,
                'processing_time': result.processing_time,
            })
            self.logger.info(f"Completed job {job_id} in {result.processing_time:.2f}s")
        else:
            self.job_service.update_job_status(job_id, {
                'status': STATUS_FAILED,
                'message': result.error_message,
                'metadata': result.metadata,
                'processing_time': result.processing_time,
            })
            self.logger.warning(f"Job {job_id} failed: {result.error_message}")

        return result

    def run(self, max_messages: Optional[int] = None, idle_timeout: Optional[float] = None) -> int:
        """
        Receive and handle messages until stopped.

        Args:
            max_messages: Stop after handling this many messages
            idle_timeout: Stop after this many seconds without a message

        Returns:
            Number of messages handled
        """
        self._stop_event.clear()
        handled = 0
        last_activity = time.monotonic()
        self.logger.info("Worker started")

        while not self._stop_event.is_set():
            if max_messages is not None and handled >= max_messages:
                break

            try:
                message = self.queue.receive(timeout=self.poll_interval)
            except QueueError as e:
                self.logger.error(f"Failed to receive message: {e}")
                self._stop_event.wait(self.poll_interval)
                continue

            if message is None:
                if idle_timeout is not None and time.monotonic() - last_activity >= idle_timeout:
                    self.logger.info(f"No messages for {idle_timeout}s, stopping")
                    break
                continue

            try:
                self.handle(message)
            except Exception:
                self.logger.exception(f"Unhandled error in job {message.job_id}")
            handled += 1
            last_activity = time.monotonic()

        self.logger.info(f"Worker stopped after {handled} messages")
        return handled

    def stop(self) -> None:
        """Ask a running loop to exit after the current message."""
        self._stop_event.set()
