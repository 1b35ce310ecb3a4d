"""Workflow state management.

The manager is the only component that reads or writes state files. A
change request moves through three states:

* not started: no state file, or one that cannot be trusted
* in progress: ``0 <= current_step_index < N``
* complete: ``current_step_index == N``

Progress only moves forward through :meth:`WorkflowManager.update_state`,
which callers invoke after a step has been executed successfully. A failed
step leaves the state file alone, so the same step runs again next time.

Two processes working on the same change request are not coordinated; the
last one to save wins.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Optional

from pydantic import ValidationError

from .definition import WorkflowDefinition, WorkflowStep
from .errors import InvalidStateFile, StateValidationError, StateWriteError
from .filesystem import FileSystem, LocalFileSystem
from .prompt import PromptVariables, interpolate_with_diagnostics
from .reporting import LoggingReporter, Reporter
from .state import WorkflowState, state_file_path

logger = logging.getLogger(__name__)


class WorkflowManager:
    """Load, validate, advance and reset workflow state."""

    def __init__(
        self,
        definition: WorkflowDefinition,
        fs: FileSystem | None = None,
        reporter: Reporter | None = None,
    ) -> None:
        self.definition = definition
        self._fs = fs or LocalFileSystem()
        self._reporter = reporter or LoggingReporter()

    @property
    def total_steps(self) -> int:
        return len(self.definition)

    # ------------------------------------------------------------------
    # Paths
    # ------------------------------------------------------------------

    def state_file_path(self, change_request_path: str) -> str:
        return state_file_path(change_request_path)

    def output_file_path(
        self, change_request_path: str, step: WorkflowStep, strict: bool = False
    ) -> str:
        """Render the step's output file template for ``change_request_path``.

        Unresolved placeholders are reported as a warning, or raised as
        :class:`~changeflow.errors.InterpolationError` when ``strict`` is set.
        """
        variables = PromptVariables(change_request_file_path=change_request_path)
        rendered = interpolate_with_diagnostics(step.output_file, variables)
        if strict:
            rendered.raise_for_issues(f"Invalid output file in step {step.id}")
        elif rendered.missing_vars:
            self._reporter.warn(
                f"Step {step.id} output file contains undefined variables: "
                f"[{', '.join(rendered.missing_vars)}]"
            )
        return rendered.text

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def _validate_index(self, index: int) -> None:
        if isinstance(index, bool) or not isinstance(index, int):
            raise StateValidationError(f"Step index must be an integer, got {index!r}")
        if not 0 <= index <= self.total_steps:
            raise StateValidationError(
                f"Step index {index} is outside the range 0..{self.total_steps}"
            )

    def load_state(self, change_request_path: str) -> Optional[WorkflowState]:
        """Return the stored state, or ``None`` when none has been saved.

        Raises:
            InvalidStateFile: The file cannot be read, is not a valid state
                document, or points outside the workflow.
        """
        path = self.state_file_path(change_request_path)
        if not self._fs.exists(path):
            return None

        try:
            data = self._fs.read_file(path)
        except FileNotFoundError:
            return None
        except OSError as exc:
            raise InvalidStateFile(path, f"cannot be read ({exc})") from exc

        try:
            state = WorkflowState.from_json(data)
        except ValidationError as exc:
            raise InvalidStateFile(path, f"malformed content ({exc.error_count()} errors)") from exc

        index = state.current_step_index
        if not 0 <= index <= self.total_steps:
            raise InvalidStateFile(
                path, f"step index {index} outside the range 0..{self.total_steps}"
            )

        expected = self.definition.step_ids(index)
        if state.completed_steps != expected:
            logger.debug(
                f"Completed steps in {path} do not match index {index}; using {expected}"
            )
        return state.model_copy(
            update={"change_request_path": change_request_path, "completed_steps": expected}
        )

    def save_state(self, state: WorkflowState) -> WorkflowState:
        """Persist ``state`` and return the version that was written."""
        self._validate_index(state.current_step_index)
        state = state.model_copy(
            update={
                "completed_steps": self.definition.step_ids(state.current_step_index),
                "last_modified": datetime.now(timezone.utc),
            }
        )
        path = self.state_file_path(state.change_request_path)
        try:
            self._fs.write_file(path, state.to_json().encode("utf-8"))
        except OSError as exc:
            raise StateWriteError(path, str(exc)) from exc
        logger.debug(f"Saved state for {state.change_request_path} at step {state.current_step_index}")
        return state

    # ------------------------------------------------------------------
    # Workflow operations
    # ------------------------------------------------------------------

    def get_state(self, change_request_path: str) -> WorkflowState:
        """Return the stored state, falling back to a fresh one.

        An unusable state file is reported once as a warning and treated as
        if the workflow had not started.
        """
        try:
            state = self.load_state(change_request_path)
        except InvalidStateFile as exc:
            logger.debug(str(exc))
            self._reporter.warn(
                f"Invalid state file detected for {change_request_path}. "
                "Starting from the beginning."
            )
            state = None
        return state or WorkflowState(change_request_path=change_request_path)

    def determine_next_step(self, change_request_path: str) -> Optional[int]:
        """Return the index of the next step, or ``None`` when all are done."""
        state = self.get_state(change_request_path)
        if state.current_step_index == self.total_steps:
            return None
        return state.current_step_index

    def update_state(self, change_request_path: str, new_index: int) -> WorkflowState:
        """Record that every step before ``new_index`` has been completed.

        Raises:
            StateValidationError: ``new_index`` is outside ``0..N``.
            StateWriteError: The state file could not be written.
        """
        self._validate_index(new_index)
        state = WorkflowState(change_request_path=change_request_path, current_step_index=new_index)
        return self.save_state(state)

    def reset_workflow(self, change_request_path: str) -> WorkflowState:
        """Start the workflow over, whatever the state file currently holds."""
        state = self.save_state(WorkflowState(change_request_path=change_request_path))
        logger.info(f"Workflow reset for {change_request_path}")
        self._reporter.info(f"Workflow reset for {change_request_path}")
        return state

    def is_workflow_complete(self, change_request_path: str) -> bool:
        try:
            state = self.load_state(change_request_path)
        except InvalidStateFile:
            return False
        return state is not None and state.current_step_index == self.total_steps
