"""Step execution: render a step's prompt into its output artifact."""

from __future__ import annotations

import logging
from typing import List

from pydantic import BaseModel, Field

from .definition import WorkflowStep
from .errors import ChangeRequestNotFound, StepExecutionFailure
from .filesystem import FileSystem, LocalFileSystem
from .prompt import (
    InterpolationResult,
    PromptVariables,
    default_prompt,
    format_as_instructions,
    interpolate_with_diagnostics,
)
from .reporting import LoggingReporter, Reporter

logger = logging.getLogger(__name__)


class StepResult(BaseModel):
    """Outcome of a successful step execution."""

    step_id: str
    output_path: str
    instructions: str
    missing_vars: List[str] = Field(default_factory=list)
    malformed_vars: List[str] = Field(default_factory=list)


class StepExecutor:
    """Produce the output artifact for a single workflow step.

    The executor writes exactly one file per call and never touches workflow
    state; advancing the workflow is the caller's job once this succeeds.
    """

    def __init__(
        self,
        fs: FileSystem | None = None,
        reporter: Reporter | None = None,
        strict: bool = False,
    ) -> None:
        self._fs = fs or LocalFileSystem()
        self._reporter = reporter or LoggingReporter()
        self.strict = strict

    def render_prompt(self, change_request_path: str, step: WorkflowStep) -> InterpolationResult:
        """Interpolate the step prompt, synthesizing one if the step has none."""
        if not step.prompt.strip():
            return InterpolationResult(text=default_prompt(step.description))
        variables = PromptVariables(change_request_file_path=change_request_path)
        return interpolate_with_diagnostics(step.prompt, variables)

    def _report_diagnostics(self, step: WorkflowStep, rendered: InterpolationResult) -> None:
        if rendered.missing_vars:
            self._reporter.warn(
                f"Step {step.id} contains undefined variables: [{', '.join(rendered.missing_vars)}]"
            )
        if rendered.malformed_vars:
            self._reporter.warn(
                f"Step {step.id} contains malformed variables: [{', '.join(rendered.malformed_vars)}]"
            )

    def execute_step(
        self, change_request_path: str, step: WorkflowStep, output_file_path: str
    ) -> StepResult:
        """Render ``step`` for ``change_request_path`` and write it to ``output_file_path``.

        Args:
            change_request_path: Change request the step is executed for.
            step: Step to execute.
            output_file_path: Destination of the rendered instructions.

        Returns:
            Details of the written artifact.

        Raises:
            ChangeRequestNotFound: The change request file does not exist.
            StepExecutionFailure: Reading the input or writing the output failed.
            InterpolationError: Only in strict mode, when the prompt references
                missing or malformed variables.
        """
        logger.info(f"Executing step {step.id} for {change_request_path}")

        try:
            self._fs.read_file(change_request_path)
        except FileNotFoundError as exc:
            raise ChangeRequestNotFound(change_request_path) from exc
        except OSError as exc:
            raise StepExecutionFailure(step.id, f"cannot read {change_request_path}: {exc}") from exc

        rendered = self.render_prompt(change_request_path, step)
        if self.strict:
            rendered.raise_for_issues(f"Invalid prompt in step {step.id}")
        else:
            self._report_diagnostics(step, rendered)

        instructions = format_as_instructions(rendered.text)
        content = f"# {step.description}\n\n{instructions}"

        try:
            self._fs.write_file(output_file_path, content.encode("utf-8"))
        except OSError as exc:
            raise StepExecutionFailure(
                step.id, f"cannot create output file {output_file_path}: {exc}"
            ) from exc

        logger.info(f"Step {step.id} written to {output_file_path}")
        return StepResult(
            step_id=step.id,
            output_path=output_file_path,
            instructions=instructions,
            missing_vars=rendered.missing_vars,
            malformed_vars=rendered.malformed_vars,
        )
