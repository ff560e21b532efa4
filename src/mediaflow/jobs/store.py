"""
Job Status Stores

Key-value storage for job status records keyed by job id. Records are plain
dictionaries; every write replaces the whole record and refreshes its
modification time, which is what retention cleanup ages by.
"""

import json
import logging
import os
import re
import threading
import time
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Tuple, Union


class JobStoreError(Exception):
    """Raised when a status record cannot be read or written."""
    pass


class JobStatusStore(ABC):
    """Storage contract for job status records."""

    @abstractmethod
    def get(self, job_id: str) -> Optional[Dict[str, Any]]:
        """
        Read a record.

        Returns:
            The record, or None if no record exists for ``job_id``

        Raises:
            JobStoreError: If the record exists but cannot be read
        """

    @abstractmethod
    def put(self, job_id: str, record: Dict[str, Any]) -> None:
        """Replace the record for ``job_id``."""

    @abstractmethod
    def delete_older_than(self, cutoff: float) -> int:
        """Delete records last modified at or before ``cutoff`` (epoch seconds)."""


class InMemoryJobStatusStore(JobStatusStore):
    """Process-local store, mainly for tests and single-process setups."""

    def __init__(self, clock: Callable[[], float] = time.time):
        self._records: Dict[str, Tuple[Dict[str, Any], float]] = {}
        self._lock = threading.Lock()
        self._clock = clock

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)

    def get(self, job_id: str) -> Optional[Dict[str, Any]]:
        with self._lock:
            entry = self._records.get(job_id)
        return dict(entry[0]) if entry else None

    def put(self, job_id: str, record: Dict[str, Any]) -> None:
        with self._lock:
            self._records[job_id] = (dict(record), self._clock())

    def delete_older_than(self, cutoff: float) -> int:
        with self._lock:
            expired = [job_id for job_id, (_, modified) in self._records.items() if modified <= cutoff]
            for job_id in expired:
                del self._records[job_id]
        return len(expired)


class FileJobStatusStore(JobStatusStore):
    """
    One JSON file per job under a status directory.

    Writes go through a temporary file and an atomic replace so readers never
    observe a half-written record.
    """

    JOB_ID_PATTERN = re.compile(r'^[A-Za-z0-9_.-]+$')

    def __init__(self, status_dir: Union[str, Path]):
        self.status_dir = Path(status_dir)
        self.logger = logging.getLogger("mediaflow.jobs.store")

    def get(self, job_id: str) -> Optional[Dict[str, Any]]:
        if not self._is_valid_id(job_id):
            return None

        path = self._path(job_id)
        try:
            with open(path, 'r', encoding='utf-8') as f:
                record = json.load(f)
        except FileNotFoundError:
            return None
        except (OSError, json.JSONDecodeError) as e:
            raise JobStoreError(f"Failed to read status for job {job_id}: {e}") from e

        if not isinstance(record, dict):
            raise JobStoreError(f"Status record for job {job_id} is not an object")
        return record

    def put(self, job_id: str, record: Dict[str, Any]) -> None:
        if not self._is_valid_id(job_id):
            raise JobStoreError(f"Invalid job id: {job_id!r}")

        path = self._path(job_id)
        tmp_path = path.with_name(f".{path.name}.tmp")
        try:
            self.status_dir.mkdir(parents=True, exist_ok=True)
            with open(tmp_path, 'w', encoding='utf-8') as f:
                json.dump(record, f, indent=2, default=str)
            os.replace(tmp_path, path)
        except (OSError, TypeError, ValueError) as e:
            raise JobStoreError(f"Failed to write status for job {job_id}: {e}") from e

    def delete_older_than(self, cutoff: float) -> int:
        if not self.status_dir.exists():
            return 0

        deleted = 0
        for path in self.status_dir.glob('*.json'):
            try:
                if path.stat().st_mtime <= cutoff:
                    path.unlink()
                    deleted += 1
                    self.logger.debug(f"Removed expired status file {path.name}")
            except FileNotFoundError:
                # Removed concurrently
                continue
            except OSError as e:
                self.logger.error(f"Failed to remove status file {path.name}: {e}")
        return deleted

    def _path(self, job_id: str) -> Path:
        return self.status_dir / f"{job_id}.json"

    def _is_valid_id(self, job_id: str) -> bool:
        return bool(job_id) and bool(self.JOB_ID_PATTERN.match(job_id)) and job_id not in ('.', '..')
