"""Exception hierarchy for changeflow."""

from __future__ import annotations

from typing import Optional, Sequence


class ChangeflowError(Exception):
    """Base class for all changeflow errors."""


class ChangeRequestNotFound(ChangeflowError):
    """Raised when the change request file does not exist."""

    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__(f"File {path} not found.")


class InvalidStateFile(ChangeflowError):
    """Raised when a persisted state file cannot be used.

    Callers inside the manager recover from this by treating the workflow as
    not started, so it should never reach the command line.
    """

    def __init__(self, path: str, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Invalid state file {path}: {reason}")


class StepExecutionFailure(ChangeflowError):
    """Raised when reading input or writing output fails during a step."""

    def __init__(self, step_id: str, reason: str) -> None:
        self.step_id = step_id
        self.reason = reason
        super().__init__(f"Failed to execute step {step_id}: {reason}")


class StateValidationError(ChangeflowError, ValueError):
    """Raised when a requested state transition is out of range."""


class StateWriteError(ChangeflowError):
    """Raised when the state file cannot be written."""

    def __init__(self, path: str, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Failed to update workflow state {path}: {reason}")


class DefinitionError(ChangeflowError, ValueError):
    """Raised when a workflow definition cannot be loaded."""


class InterpolationError(ChangeflowError):
    """Problems found while interpolating a prompt template."""

    def __init__(
        self,
        message: str,
        malformed_vars: Optional[Sequence[str]] = None,
        missing_vars: Optional[Sequence[str]] = None,
    ) -> None:
        self.message = message
        self.malformed_vars = list(malformed_vars or [])
        self.missing_vars = list(missing_vars or [])
        super().__init__(str(self))

    def __str__(self) -> str:
        parts = []
        if self.malformed_vars:
            parts.append(f"malformed variables [{', '.join(self.malformed_vars)}]")
        if self.missing_vars:
            parts.append(f"missing variables [{', '.join(self.missing_vars)}]")
        if not parts:
            return self.message
        return f"{self.message}: {', '.join(parts)}"


__all__ = [
    "ChangeflowError",
    "ChangeRequestNotFound",
    "InvalidStateFile",
    "StepExecutionFailure",
    "StateValidationError",
    "StateWriteError",
    "DefinitionError",
    "InterpolationError",
]
