"""
Deferred processing: job messages, queue transports, status stores, the
producer-side job service and the worker that consumes the queue.
"""

from mediaflow.jobs.messages import ProcessMediaMessage
from mediaflow.jobs.queue import InMemoryMessageQueue, MessageQueue, QueueError, SpoolDirectoryQueue
from mediaflow.jobs.service import AsyncJobService, generate_job_id
from mediaflow.jobs.store import (
    FileJobStatusStore,
    InMemoryJobStatusStore,
    JobStatusStore,
    JobStoreError,
)
from mediaflow.jobs.worker import JobWorker

__all__ = [
    'ProcessMediaMessage',
    'MessageQueue',
    'InMemoryMessageQueue',
    'SpoolDirectoryQueue',
    'QueueError',
    'JobStatusStore',
    'InMemoryJobStatusStore',
    'FileJobStatusStore',
    'JobStoreError',
    'AsyncJobService',
    'generate_job_id',
    'JobWorker',
]
