"""
Message Queue Transports

The transport carries ProcessMediaMessage instances from the job service to
workers. Delivery may be delayed; a delayed message stays invisible to
receivers until its delivery time has passed.
"""

import heapq
import itertools
import logging
import os
import threading
import time
from abc import ABC, abstractmethod
from pathlib import Path
from typing import List, Optional, Tuple, Union

from mediaflow.jobs.messages import ProcessMediaMessage


class QueueError(Exception):
    """Raised when a message cannot be sent to or read from the transport."""
    pass


class MessageQueue(ABC):
    """Message transport between the job service and its workers."""

    @abstractmethod
    def send(self, message: ProcessMediaMessage, delay_ms: Optional[int] = None) -> None:
        """
        Enqueue a message.

        Args:
            message: Message to deliver
            delay_ms: Minimum delay before the message becomes visible

        Raises:
            QueueError: If the transport rejects the message
        """

    @abstractmethod
    def receive(self, timeout: float = 0.0) -> Optional[ProcessMediaMessage]:
        """
        Take the next due message, waiting up to ``timeout`` seconds.

        Returns None when nothing became due within the timeout.
        """


class InMemoryMessageQueue(MessageQueue):
    """Thread-safe in-process transport ordered by delivery time."""

    def __init__(self):
        self._heap: List[Tuple[float, int, ProcessMediaMessage]] = []
        self._counter = itertools.count()
        self._condition = threading.Condition()

    def __len__(self) -> int:
        with self._condition:
            return len(self._heap)

    def send(self, message: ProcessMediaMessage, delay_ms: Optional[int] = None) -> None:
        deliver_at = time.monotonic() + max(0, delay_ms or 0) / 1000.0
        with self._condition:
            heapq.heappush(self._heap, (deliver_at, next(self._counter), message))
            self._condition.notify()

    def receive(self, timeout: float = 0.0) -> Optional[ProcessMediaMessage]:
        deadline = time.monotonic() + max(0.0, timeout)
        with self._condition:
            while True:
                now = time.monotonic()
                if self._heap and self._heap[0][0] <= now:
                    return heapq.heappop(self._heap)[2]

                remaining = deadline - now
                if remaining <= 0:
                    return None
                if self._heap:
                    remaining = min(remaining, self._heap[0][0] - now)
                self._condition.wait(remaining)


class SpoolDirectoryQueue(MessageQueue):
    """
    Filesystem transport shared between processes.

    Each message is a JSON file named ``<deliver_at_ms>-<job_id>.json``.
    Receivers claim a due message by renaming it into ``claimed/``; the
    rename is atomic, so a message is handed to exactly one worker.
    Messages that cannot be decoded are moved to ``rejected/``.
    """

    def __init__(self, spool_dir: Union[str, Path], poll_interval: float = 1.0):
        self.spool_dir = Path(spool_dir)
        self.claimed_dir = self.spool_dir / 'claimed'
        self.rejected_dir = self.spool_dir / 'rejected'
        self.poll_interval = poll_interval
        self.logger = logging.getLogger("mediaflow.jobs.queue")

    def send(self, message: ProcessMediaMessage, delay_ms: Optional[int] = None) -> None:
        deliver_at_ms = int(time.time() * 1000) + max(0, delay_ms or 0)
        filename = f"{deliver_at_ms:015d}-{message.job_id}.json"
        target = self.spool_dir / filename
        tmp_path = self.spool_dir / f".{filename}.tmp"

        try:
            self.spool_dir.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(message.to_json(), encoding='utf-8')
            os.replace(tmp_path, target)
        except OSError as e:
            raise QueueError(f"Failed to spool message for job {message.job_id}: {e}") from e

        self.logger.debug(f"Spooled message {filename}")

    def receive(self, timeout: float = 0.0) -> Optional[ProcessMediaMessage]:
        deadline = time.monotonic() + max(0.0, timeout)
        while True:
            message = self._claim_next()
            if message is not None:
                return message
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                return None
            time.sleep(min(self.poll_interval, remaining))

    def pending(self) -> int:
        """Number of messages waiting in the spool (due or not)."""
        if not self.spool_dir.exists():
            return 0
        return sum(1 for _ in self.spool_dir.glob('*.json'))

    def _claim_next(self) -> Optional[ProcessMediaMessage]:
        if not self.spool_dir.exists():
            return None

        now_ms = int(time.time() * 1000)
        for path in sorted(self.spool_dir.glob('*.json')):
            deliver_at = self._delivery_time(path)
            if deliver_at is None:
                continue
            if deliver_at > now_ms:
                # Names sort by delivery time
                break

            self.claimed_dir.mkdir(parents=True, exist_ok=True)
            claimed = self.claimed_dir / path.name
            try:
                os.rename(path, claimed)
            except FileNotFoundError:
                # Another worker won the race
                continue
            except OSError as e:
                raise QueueError(f"Failed to claim message {path.name}: {e}") from e

            return self._read_claimed(claimed)
        return None

    def _read_claimed(self, claimed: Path) -> ProcessMediaMessage:
        try:
            message = ProcessMediaMessage.from_json(claimed.read_text(encoding='utf-8'))
        except Exception as e:
            self.rejected_dir.mkdir(parents=True, exist_ok=True)
            os.replace(claimed, self.rejected_dir / claimed.name)
            raise QueueError(f"Rejected undecodable message {claimed.name}: {e}") from e

        claimed.unlink()
        return message

    @staticmethod
    def _delivery_time(path: Path) -> Optional[int]:
        prefix = path.name.split('-', 1)[0]
        return int(prefix) if prefix.isdigit() else None
