"""Persisted workflow progress for a single change request."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import List

from pydantic import BaseModel, Field

from .constants import STATE_FILE_SUFFIX


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def state_file_path(change_request_path: str) -> str:
    """Return the state file location for ``change_request_path``."""
    return f"{change_request_path}{STATE_FILE_SUFFIX}"


class WorkflowState(BaseModel):
    """Progress record stored next to the change request.

    ``completed_steps`` mirrors ``current_step_index``: it always lists the ids
    of the steps before the current one.
    """

    change_request_path: str
    current_step_index: int = Field(default=0, strict=True)
    completed_steps: List[str] = Field(default_factory=list)
    last_modified: datetime = Field(default_factory=_utcnow)

    def to_json(self) -> str:
        return self.model_dump_json(indent=2)

    @classmethod
    def from_json(cls, data: str | bytes) -> "WorkflowState":
        return cls.model_validate_json(data)
