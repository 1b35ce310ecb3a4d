"""Changeflow: resumable, step-by-step implementation workflows for change requests."""

from .definition import STANDARD_WORKFLOW, WorkflowDefinition, WorkflowStep, load_definition
from .errors import (
    ChangeflowError,
    ChangeRequestNotFound,
    DefinitionError,
    InterpolationError,
    InvalidStateFile,
    StateValidationError,
    StateWriteError,
    StepExecutionFailure,
)
from .executor import StepExecutor, StepResult
from .manager import WorkflowManager
from .prompt import (
    PromptVariables,
    interpolate,
    interpolate_with_diagnostics,
    interpolate_with_map,
)
from .runner import RunOutcome, WorkflowRunner
from .state import WorkflowState

__version__ = "0.1.0"
__all__ = [
    "STANDARD_WORKFLOW",
    "WorkflowDefinition",
    "WorkflowStep",
    "load_definition",
    "ChangeflowError",
    "ChangeRequestNotFound",
    "DefinitionError",
    "InterpolationError",
    "InvalidStateFile",
    "StateValidationError",
    "StateWriteError",
    "StepExecutionFailure",
    "StepExecutor",
    "StepResult",
    "WorkflowManager",
    "PromptVariables",
    "interpolate",
    "interpolate_with_diagnostics",
    "interpolate_with_map",
    "RunOutcome",
    "WorkflowRunner",
    "WorkflowState",
]
