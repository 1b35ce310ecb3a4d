"""Shared fixtures for changeflow tests."""

from __future__ import annotations

from typing import List, Tuple

import pytest

from changeflow.definition import WorkflowDefinition, WorkflowStep
from changeflow.filesystem import InMemoryFileSystem


class RecordingReporter:
    """Reporter that keeps every message for later assertions."""

    def __init__(self) -> None:
        self.warnings: List[str] = []
        self.infos: List[str] = []
        self.successes: List[str] = []
        self.steps: List[Tuple[int, int, str]] = []

    def warn(self, message: str) -> None:
        self.warnings.append(message)

    def info(self, message: str) -> None:
        self.infos.append(message)

    def success(self, message: str) -> None:
        self.successes.append(message)

    def step(self, current: int, total: int, description: str) -> None:
        self.steps.append((current, total, description))


@pytest.fixture
def reporter() -> RecordingReporter:
    return RecordingReporter()


@pytest.fixture
def memory_fs() -> InMemoryFileSystem:
    return InMemoryFileSystem()


@pytest.fixture
def small_workflow() -> WorkflowDefinition:
    return WorkflowDefinition(
        steps=(
            WorkflowStep(
                id="01-build",
                description="Build the thing",
                prompt="Read ${change_request_file_path}. Build it.",
            ),
            WorkflowStep(
                id="01-build-test",
                description="Test the thing",
                prompt="Test what was built for ${change_request_file_path}.",
                is_test=True,
            ),
            WorkflowStep(id="02-polish", description="Polish the thing"),
        )
    )


@pytest.fixture(autouse=True)
def _isolated_config(monkeypatch):
    for name in (
        "CHANGEFLOW_CONFIG",
        "CHANGEFLOW_DEFINITION_FILE",
        "CHANGEFLOW_STRICT_PROMPTS",
        "CHANGEFLOW_LOG_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)
