"""Workflow step definitions."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING, Any, List, Optional, Tuple

import yaml
from pydantic import BaseModel, ConfigDict, ValidationError, field_validator, model_validator

from .constants import CHANGE_REQUEST_VARIABLE
from .errors import DefinitionError, InterpolationError
from .prompt import validate_prompt

if TYPE_CHECKING:
    from .config import ChangeflowConfig

logger = logging.getLogger(__name__)


def default_output_template(step_id: str) -> str:
    """Output file template used when a step does not declare one."""
    return "${%s}.%s.md" % (CHANGE_REQUEST_VARIABLE, step_id)


class WorkflowStep(BaseModel):
    """One phase of the implementation workflow."""

    model_config = ConfigDict(frozen=True)

    id: str
    description: str
    prompt: str = ""
    output_file: str = ""
    is_test: bool = False

    @model_validator(mode="before")
    @classmethod
    def _fill_output_file(cls, data: Any) -> Any:
        if isinstance(data, dict) and not data.get("output_file") and data.get("id"):
            data = {**data, "output_file": default_output_template(data["id"])}
        return data

    @field_validator("id", "description")
    @classmethod
    def _ensure_not_blank(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("must be a non-empty string")
        return v

    @field_validator("prompt", "output_file")
    @classmethod
    def _ensure_well_formed(cls, v: str) -> str:
        try:
            validate_prompt(v)
        except InterpolationError as exc:
            raise ValueError(str(exc)) from exc
        return v


class WorkflowDefinition(BaseModel):
    """Immutable, ordered table of workflow steps."""

    model_config = ConfigDict(frozen=True)

    steps: Tuple[WorkflowStep, ...]

    @field_validator("steps")
    @classmethod
    def _validate_steps(cls, steps: Tuple[WorkflowStep, ...]) -> Tuple[WorkflowStep, ...]:
        if not steps:
            raise ValueError("a workflow needs at least one step")
        seen: set[str] = set()
        for step in steps:
            if step.id in seen:
                raise ValueError(f"duplicate step id: {step.id}")
            seen.add(step.id)
        return steps

    def __len__(self) -> int:
        return len(self.steps)

    def __getitem__(self, index: int) -> WorkflowStep:
        return self.steps[index]

    def step_ids(self, upto: Optional[int] = None) -> List[str]:
        """Return the ids of the first ``upto`` steps (all steps by default)."""
        return [step.id for step in self.steps[:upto]]

    def index_of(self, step_id: str) -> int:
        for index, step in enumerate(self.steps):
            if step.id == step_id:
                return index
        raise KeyError(step_id)


STANDARD_WORKFLOW = WorkflowDefinition(
    steps=(
        WorkflowStep(
            id="01-laying-the-foundation",
            description="Laying the foundation - Setting up the architecture and structure",
            prompt=(
                "Read the change request in ${change_request_file_path} and every user story it references. "
                "Create the packages, interfaces and core data structures the change needs. "
                "Establish the file organization and the testing infrastructure. "
                "Do not implement business logic yet."
            ),
        ),
        WorkflowStep(
            id="01-laying-the-foundation-test",
            description="Laying the foundation testing - Verifying the foundational changes",
            prompt=(
                "Review the foundation built for ${change_request_file_path}. "
                "Write tests that validate the package structure, interface completeness and data structure integrity. "
                "Make sure the test infrastructure runs."
            ),
            is_test=True,
        ),
        WorkflowStep(
            id="02-mvi",
            description="Minimum Viable Implementation - Building the core functionality",
            prompt=(
                "Implement the core functionality described in ${change_request_file_path}. "
                "Focus on the essential business logic with basic error handling. "
                "Keep the user-facing surface minimal."
            ),
        ),
        WorkflowStep(
            id="02-mvi-test",
            description="Minimum Viable Implementation testing - Verifying the core functionality",
            prompt=(
                "Write tests for the minimum viable implementation of ${change_request_file_path}. "
                "Cover the core functionality, basic error handling and integration points. "
                "Fix any failures before moving on."
            ),
            is_test=True,
        ),
        WorkflowStep(
            id="03-extend-functionalities",
            description="Extending functionalities - Adding additional features and improvements",
            prompt=(
                "Extend the implementation with the remaining features from ${change_request_file_path}. "
                "Improve error handling and performance where needed. "
                "Refine the user experience."
            ),
        ),
        WorkflowStep(
            id="03-extend-functionalities-test",
            description="Extending functionalities testing - Verifying the additional features",
            prompt=(
                "Write tests for the extended features of ${change_request_file_path}. "
                "Cover error handling paths and performance-sensitive code."
            ),
            is_test=True,
        ),
        WorkflowStep(
            id="04-final-iteration",
            description="Final iteration - Polishing and final adjustments",
            prompt=(
                "Polish the implementation of ${change_request_file_path}. "
                "Clean up the code, update the documentation and apply final optimizations."
            ),
        ),
        WorkflowStep(
            id="04-final-iteration-test",
            description="Final iteration testing - Final verification and validation",
            prompt=(
                "Run the end-to-end verification for ${change_request_file_path}. "
                "Check the documentation against the behaviour and confirm every user story is satisfied."
            ),
            is_test=True,
        ),
    )
)


def load_definition(path: str | Path) -> WorkflowDefinition:
    """Load a workflow definition from a YAML file.

    The document must contain a ``steps`` list whose items use the
    :class:`WorkflowStep` field names.
    """

    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as exc:
        raise DefinitionError(f"Cannot read workflow definition {path}: {exc}") from exc

    if not isinstance(data, dict) or not isinstance(data.get("steps"), list):
        raise DefinitionError(f"Workflow definition {path} must contain a 'steps' list")

    try:
        definition = WorkflowDefinition(steps=tuple(data["steps"]))
    except ValidationError as exc:
        raise DefinitionError(f"Invalid workflow definition {path}: {exc}") from exc

    logger.debug(f"Loaded {len(definition)} workflow steps from {path}")
    return definition


def get_definition(config: Optional["ChangeflowConfig"] = None) -> WorkflowDefinition:
    """Return the configured workflow definition or the standard one."""
    definition_file = config.workflow.definition_file if config else None
    if definition_file:
        return load_definition(definition_file)
    return STANDARD_WORKFLOW


__all__ = [
    "WorkflowStep",
    "WorkflowDefinition",
    "STANDARD_WORKFLOW",
    "default_output_template",
    "load_definition",
    "get_definition",
]
