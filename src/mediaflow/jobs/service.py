"""
Async Job Service

Producer side of deferred processing: assigns job ids, records status and
hands ProcessMediaMessage instances to the queue transport. Every public
method returns a normal value; transport and storage faults are logged and
reported through the return value.
"""

import logging
import time
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional, Union

from mediaflow.jobs.messages import ProcessMediaMessage
from mediaflow.jobs.queue import MessageQueue
from mediaflow.jobs.store import JobStatusStore
from mediaflow.processing.config import ProcessingConfig
from mediaflow.processing.result import ProcessingResult


STATUS_QUEUED = "queued"
STATUS_RUNNING = "running"
STATUS_COMPLETED = "completed"
STATUS_FAILED = "failed"
STATUS_CANCELLED = "cancelled"
STATUS_NOT_FOUND = "not_found"
STATUS_UNKNOWN = "unknown"

SECONDS_PER_DAY = 86400


def generate_job_id() -> str:
    """Return a new globally unique job id."""
    return f"job_{uuid.uuid4().hex}"


class AsyncJobService:
    """
    Queues processing jobs and tracks their status.

    Args:
        queue: Transport the messages are sent through
        store: Status record storage
        retention_days: Default age for cleanup_old_jobs
    """

    def __init__(self, queue: MessageQueue, store: JobStatusStore, retention_days: int = 7):
        self.queue = queue
        self.store = store
        self.retention_days = retention_days
        self.logger = logging.getLogger("mediaflow.jobs.service")

    def queue_processing(
        self,
        input_path: Union[str, Path],
        output_path: Union[str, Path],
        config: ProcessingConfig,
        delay_seconds: Optional[float] = None
    ) -> ProcessingResult:
        """
        Record a queued job and send it to the transport.

        Returns:
            A success result carrying the job id but no output path, or a
            failure result (still carrying the job id) if enqueueing failed
        """
        job_id = generate_job_id()

        try:
            message = ProcessMediaMessage(
                job_id=job_id,
                input_path=str(input_path),
                output_path=str(output_path),
                config=config,
            )
            self._write_status(job_id, {
                'status': STATUS_QUEUED,
                'message': 'Job queued',
                'input_path': str(input_path),
                'output_path': str(output_path),
                'config': config.to_dict(),
            })

            delay_ms = int(delay_seconds * 1000) if delay_seconds else None
            self.queue.send(message, delay_ms=delay_ms)
        except Exception as e:
            self.logger.error(f"Failed to queue job {job_id}: {e}")
            self.update_job_status(job_id, {
                'status': STATUS_FAILED,
                'message': f"Failed to queue job: {e}",
            })
            return ProcessingResult.failed(
                f"Failed to queue processing job: {e}",
                metadata={'exception': e.__class__.__name__, 'job_id': job_id},
                job_id=job_id
            )

        self.logger.info(f"Queued job {job_id} for {input_path}")
        return ProcessingResult.queued(job_id, {'job_id': job_id, 'status': STATUS_QUEUED})

    def get_job_status(self, job_id: str) -> Dict[str, Any]:
        """Return the stored status record, or a not_found/unknown placeholder."""
        try:
            record = self.store.get(job_id)
        except Exception as e:
            self.logger.error(f"Could not read status for job {job_id}: {e}")
            return {'job_id': job_id, 'status': STATUS_UNKNOWN, 'message': 'Could not read job status'}

        if record is None:
            return {'job_id': job_id, 'status': STATUS_NOT_FOUND, 'message': 'Job not found'}
        return record

    def update_job_status(self, job_id: str, status: Dict[str, Any]) -> bool:
        """
        Replace the status record of a job.

        The stored record is ``status`` plus the job id and a fresh
        ``updated_at`` timestamp. Concurrent writers are last-writer-wins.

        Returns:
            True if the record was written
        """
        try:
            self._write_status(job_id, status)
        except Exception as e:
            self.logger.error(f"Failed to update status for job {job_id}: {e}")
            return False
        return True

    def cancel_job(self, job_id: str) -> bool:
        """
        Mark a job cancelled.

        A worker that has not started the job yet will skip it; a job already
        running is not interrupted, but its final result is discarded.
        """
        try:
            self._write_status(job_id, {
                'status': STATUS_CANCELLED,
                'message': 'Job cancelled by user',
            })
        except Exception as e:
            self.logger.error(f"Failed to cancel job {job_id}: {e}")
            return False

        self.logger.info(f"Cancelled job {job_id}")
        return True

    def is_cancelled(self, job_id: str) -> bool:
        return self.get_job_status(job_id).get('status') == STATUS_CANCELLED

    def cleanup_old_jobs(self, days_old: Optional[int] = None) -> int:
        """
        Delete status records not modified within ``days_old`` days.

        Returns:
            Number of records removed (0 if cleanup failed)
        """
        if days_old is None:
            days_old = self.retention_days
        cutoff = time.time() - days_old * SECONDS_PER_DAY

        try:
            deleted = self.store.delete_older_than(cutoff)
        except Exception as e:
            self.logger.error(f"Job cleanup failed: {e}")
            return 0

        self.logger.info(f"Cleaned up {deleted} job status records older than {days_old} days")
        return deleted

    def _write_status(self, job_id: str, status: Dict[str, Any]) -> None:
        record = dict(status)
        record['job_id'] = job_id
        record['updated_at'] = datetime.now(timezone.utc).isoformat()
        self.store.put(job_id, record)
