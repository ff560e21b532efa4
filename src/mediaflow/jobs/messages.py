"""
Job Messages

The message handed to the queue transport when processing is deferred to a
background worker.
"""

import json
from dataclasses import dataclass
from typing import Any, Dict

from mediaflow.processing.config import ProcessingConfig, parse_config


@dataclass(frozen=True)
class ProcessMediaMessage:
    """Instruction for a worker to run the synchronous pipeline on one file."""
    job_id: str
    input_path: str
    output_path: str
    config: ProcessingConfig

    def to_dict(self) -> Dict[str, Any]:
        return {
            'job_id': self.job_id,
            'input_path': self.input_path,
            'output_path': self.output_path,
            'config': self.config.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ProcessMediaMessage':
        """
        Rebuild a message from its dictionary form.

        Raises:
            KeyError: If a required field is missing
            pydantic.ValidationError: If the embedded config is invalid
        """
        return cls(
            job_id=data['job_id'],
            input_path=data['input_path'],
            output_path=data['output_path'],
            config=parse_config(data.get('config') or {}),
        )

    def to_json(self) -> str:
        return json.dumps(self.to_dict())

    @classmethod
    def from_json(cls, payload: str) -> 'ProcessMediaMessage':
        return cls.from_dict(json.loads(payload))
