"""Run one step of a change request's workflow."""

from __future__ import annotations

import logging
from typing import Literal, Optional

from pydantic import BaseModel

from .definition import WorkflowDefinition
from .errors import ChangeRequestNotFound
from .executor import StepExecutor, StepResult
from .filesystem import FileSystem, LocalFileSystem
from .manager import WorkflowManager
from .reporting import LoggingReporter, Reporter

logger = logging.getLogger(__name__)


class RunOutcome(BaseModel):
    """What a single invocation did."""

    change_request_path: str
    status: Literal["step_completed", "already_complete"]
    step_index: Optional[int] = None
    result: Optional[StepResult] = None
    next_step_index: Optional[int] = None

    @property
    def workflow_complete(self) -> bool:
        return self.next_step_index is None


class WorkflowRunner:
    """Determine, execute and record the next step for a change request."""

    def __init__(
        self,
        definition: WorkflowDefinition,
        fs: FileSystem | None = None,
        reporter: Reporter | None = None,
        strict: bool = False,
    ) -> None:
        self.definition = definition
        self._fs = fs or LocalFileSystem()
        self._reporter = reporter or LoggingReporter()
        self.strict = strict
        self.manager = WorkflowManager(definition, fs=self._fs, reporter=self._reporter)
        self.executor = StepExecutor(fs=self._fs, reporter=self._reporter, strict=strict)

    def run(self, change_request_path: str, reset: bool = False) -> RunOutcome:
        """Execute the next pending step.

        State is advanced only after the step's artifact has been written, so
        any failure leaves the workflow where it was and the same step runs
        on the next invocation.
        """
        if not self._fs.exists(change_request_path):
            raise ChangeRequestNotFound(change_request_path)

        if reset:
            self.manager.reset_workflow(change_request_path)

        total = len(self.definition)
        index = self.manager.determine_next_step(change_request_path)
        if index is None:
            self._reporter.success(
                f"All steps completed successfully for change request: {change_request_path}"
            )
            return RunOutcome(change_request_path=change_request_path, status="already_complete")

        step = self.definition[index]
        self._reporter.step(index + 1, total, step.description)

        output_path = self.manager.output_file_path(change_request_path, step, strict=self.strict)
        result = self.executor.execute_step(change_request_path, step, output_path)
        self.manager.update_state(change_request_path, index + 1)

        # Per-step progress is informational; only verbose reporters show it.
        self._reporter.info(f"Completed step {index + 1}: {step.description}")
        next_index = index + 1 if index + 1 < total else None
        if next_index is None:
            self._reporter.info(
                f"All steps completed successfully for change request: {change_request_path}"
            )
        else:
            self._reporter.info(f"Next step: {self.definition[next_index].description}")

        logger.debug(f"Advanced {change_request_path} to step {index + 1}/{total}")
        return RunOutcome(
            change_request_path=change_request_path,
            status="step_completed",
            step_index=index,
            result=result,
            next_step_index=next_index,
        )
