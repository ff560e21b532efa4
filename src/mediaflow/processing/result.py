"""
Processing Result

Uniform value returned by every public processing and job operation.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass(frozen=True)
class ProcessingResult:
    """
    Outcome of a media processing operation.

    A successful result never carries an error message and a failed result
    never carries an output path; both are enforced at construction.

    Attributes:
        success: Whether the operation succeeded
        output_path: Produced artifact (synchronous successes only)
        error_message: Human readable failure reason (failures only)
        metadata: Open key/value bag (job id, engine diagnostics, counts)
        processed_files: Ordered list of produced artifact paths
        processing_time: Elapsed seconds, 0.0 when not measured
        job_id: Set when the work was handed to the async path
    """
    success: bool
    output_path: Optional[str] = None
    error_message: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)
    processed_files: List[str] = field(default_factory=list)
    processing_time: float = 0.0
    job_id: Optional[str] = None

    def __post_init__(self):
        if self.success and self.error_message is not None:
            raise ValueError("A successful result cannot carry an error message")
        if not self.success and self.output_path is not None:
            raise ValueError("A failed result cannot carry an output path")

    def is_success(self) -> bool:
        return self.success

    def has_metadata(self, key: str) -> bool:
        return key in self.metadata

    def get_metadata(self, key: str, default: Any = None) -> Any:
        return self.metadata.get(key, default)

    @classmethod
    def succeeded(
        cls,
        output_path: Optional[str],
        metadata: Optional[Dict[str, Any]] = None,
        processed_files: Optional[List[str]] = None,
        processing_time: float = 0.0,
        job_id: Optional[str] = None
    ) -> 'ProcessingResult':
        """Build a success result; ``processed_files`` defaults to the output path."""
        if processed_files is None:
            processed_files = [output_path] if output_path else []
        return cls(
            success=True,
            output_path=output_path,
            metadata=dict(metadata or {}),
            processed_files=list(processed_files),
            processing_time=processing_time,
            job_id=job_id
        )

    @classmethod
    def failed(
        cls,
        error_message: str,
        metadata: Optional[Dict[str, Any]] = None,
        processing_time: float = 0.0,
        job_id: Optional[str] = None
    ) -> 'ProcessingResult':
        return cls(
            success=False,
            error_message=error_message,
            metadata=dict(metadata or {}),
            processing_time=processing_time,
            job_id=job_id
        )

    @classmethod
    def queued(cls, job_id: str, metadata: Optional[Dict[str, Any]] = None) -> 'ProcessingResult':
        """Result of handing work to the async path: no artifact exists yet."""
        return cls(
            success=True,
            metadata=dict(metadata or {}),
            job_id=job_id
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert result to dictionary for serialization."""
        return {
            'success': self.success,
            'output_path': self.output_path,
            'error_message': self.error_message,
            'metadata': self.metadata,
            'processed_files': self.processed_files,
            'processing_time': self.processing_time,
            'job_id': self.job_id
        }
