"""CLI tests."""

import json

import pytest
import yaml
from typer.testing import CliRunner

from changeflow.cli import app
from changeflow.definition import STANDARD_WORKFLOW
from changeflow.manager import WorkflowManager

runner = CliRunner()


@pytest.fixture
def workspace(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    (tmp_path / "cr1.md").write_text("# Change request\n")
    return tmp_path


def _stored_index(workspace):
    return json.loads((workspace / "cr1.md.step").read_text())["current_step_index"]


def test_code_runs_first_step(workspace):
    result = runner.invoke(app, ["code", "cr1.md"])

    assert result.exit_code == 0, f"Command failed with exit code {result.exit_code}. Output: {result.output}"
    artifact = workspace / "cr1.md.01-laying-the-foundation.md"
    assert artifact.exists(), f"Artifact not created, directory holds {sorted(p.name for p in workspace.iterdir())}"
    assert artifact.read_text().startswith(
        "# Laying the foundation - Setting up the architecture and structure\n\n1. "
    )
    assert _stored_index(workspace) == 1
    assert "1. Read the change request in cr1.md" in result.output


def test_code_on_complete_workflow_changes_nothing(workspace):
    WorkflowManager(STANDARD_WORKFLOW).update_state("cr1.md", len(STANDARD_WORKFLOW))
    state_before = (workspace / "cr1.md.step").read_bytes()
    files_before = sorted(p.name for p in workspace.iterdir())

    result = runner.invoke(app, ["code", "cr1.md"])

    assert result.exit_code == 0, f"Command failed with exit code {result.exit_code}. Output: {result.output}"
    assert "All steps completed successfully" in result.output
    assert (workspace / "cr1.md.step").read_bytes() == state_before
    assert sorted(p.name for p in workspace.iterdir()) == files_before


def test_code_reset_reruns_first_step(workspace):
    WorkflowManager(STANDARD_WORKFLOW).update_state("cr1.md", 5)
    artifact = workspace / "cr1.md.01-laying-the-foundation.md"
    artifact.write_text("old content")

    result = runner.invoke(app, ["code", "--reset", "cr1.md"])

    assert result.exit_code == 0, f"Command failed with exit code {result.exit_code}. Output: {result.output}"
    assert artifact.read_text() != "old content"
    assert _stored_index(workspace) == 1


def test_code_missing_change_request(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)

    result = runner.invoke(app, ["code", "missing.md"])

    assert result.exit_code == 1, f"Expected exit code 1, got {result.exit_code}. Output: {result.output}"
    assert "Error: File missing.md not found." in result.output
    assert list(tmp_path.iterdir()) == []


def test_code_recovers_from_corrupt_state(workspace):
    (workspace / "cr1.md.step").write_text("{ not json")

    result = runner.invoke(app, ["code", "cr1.md"])

    assert result.exit_code == 0, f"Command failed with exit code {result.exit_code}. Output: {result.output}"
    assert "Invalid state file detected for cr1.md" in result.output
    assert _stored_index(workspace) == 1


def test_code_advances_on_each_invocation(workspace):
    for expected in range(1, 4):
        result = runner.invoke(app, ["code", "cr1.md"])
        assert result.exit_code == 0, f"Run {expected} failed. Output: {result.output}"
        assert _stored_index(workspace) == expected

    assert (workspace / "cr1.md.02-mvi.md").exists()


def test_status_reports_progress(workspace):
    runner.invoke(app, ["code", "cr1.md"])

    result = runner.invoke(app, ["status", "cr1.md"])

    assert result.exit_code == 0, f"Command failed with exit code {result.exit_code}. Output: {result.output}"
    assert (
        "Step 2/8: Laying the foundation testing - Verifying the foundational changes" in result.output
    )
    assert "[x] 01-laying-the-foundation\n" in result.output
    assert "[ ] 01-laying-the-foundation-test (test)" in result.output


def test_status_complete(workspace):
    WorkflowManager(STANDARD_WORKFLOW).update_state("cr1.md", len(STANDARD_WORKFLOW))

    result = runner.invoke(app, ["status", "cr1.md"])

    assert result.exit_code == 0
    assert "Workflow complete: 8/8 steps" in result.output


def test_status_missing_change_request(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)

    result = runner.invoke(app, ["status", "missing.md"])

    assert result.exit_code == 1
    assert "not found" in result.output


def test_steps_lists_standard_workflow(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)

    result = runner.invoke(app, ["steps"])

    assert result.exit_code == 0
    assert "1. 01-laying-the-foundation - Laying the foundation" in result.output
    assert "8. 04-final-iteration-test - Final iteration testing" in result.output
    assert result.output.count("(test)") == 4


def _write_workflow(path, steps):
    path.write_text(yaml.safe_dump({"steps": steps}))
    return path


def test_custom_definition_from_config(workspace):
    definition = _write_workflow(
        workspace / "workflow.yaml",
        [{"id": "draft", "description": "Draft it", "prompt": "Draft ${change_request_file_path}."}],
    )
    config = workspace / "custom.yaml"
    config.write_text(yaml.safe_dump({"workflow": {"definition_file": str(definition)}}))

    result = runner.invoke(app, ["--config", str(config), "code", "cr1.md"])

    assert result.exit_code == 0, f"Command failed with exit code {result.exit_code}. Output: {result.output}"
    assert (workspace / "cr1.md.draft.md").read_text() == "# Draft it\n\n1. Draft cr1.md.\n"
    assert _stored_index(workspace) == 1


def test_custom_definition_from_env(workspace, monkeypatch):
    definition = _write_workflow(
        workspace / "workflow.yaml",
        [
            {"id": "draft", "description": "Draft it"},
            {"id": "draft-test", "description": "Check the draft", "is_test": True},
        ],
    )
    monkeypatch.setenv("CHANGEFLOW_DEFINITION_FILE", str(definition))

    result = runner.invoke(app, ["steps"])

    assert result.exit_code == 0
    assert result.output == "1. draft - Draft it\n2. draft-test - Check the draft (test)\n"


def test_invalid_definition_file(workspace, monkeypatch):
    definition = _write_workflow(workspace / "workflow.yaml", [{"id": "no-description"}])
    monkeypatch.setenv("CHANGEFLOW_DEFINITION_FILE", str(definition))

    result = runner.invoke(app, ["code", "cr1.md"])

    assert result.exit_code == 1
    assert "Error:" in result.output
    assert not (workspace / "cr1.md.step").exists()


def test_strict_mode_rejects_undefined_variables(workspace, monkeypatch):
    definition = _write_workflow(
        workspace / "workflow.yaml",
        [{"id": "draft", "description": "Draft it", "prompt": "Use ticket ${ticket_id}."}],
    )
    monkeypatch.setenv("CHANGEFLOW_DEFINITION_FILE", str(definition))

    result = runner.invoke(app, ["code", "--strict", "cr1.md"])

    assert result.exit_code == 1, f"Expected exit code 1, got {result.exit_code}. Output: {result.output}"
    assert "Invalid prompt in step draft" in result.output
    assert not (workspace / "cr1.md.draft.md").exists()
    assert not (workspace / "cr1.md.step").exists()


def test_undefined_variables_warn_without_strict(workspace, monkeypatch):
    definition = _write_workflow(
        workspace / "workflow.yaml",
        [{"id": "draft", "description": "Draft it", "prompt": "Use ticket ${ticket_id}."}],
    )
    monkeypatch.setenv("CHANGEFLOW_DEFINITION_FILE", str(definition))

    result = runner.invoke(app, ["code", "cr1.md"])

    assert result.exit_code == 0
    assert "Step draft contains undefined variables: [ticket_id]" in result.output
    assert (workspace / "cr1.md.draft.md").exists()


def test_step_progress_shown_only_with_debug(workspace):
    result = runner.invoke(app, ["code", "cr1.md"])

    assert result.exit_code == 0
    assert "Completed step 1" not in result.output
    assert "Next step" not in result.output

    result = runner.invoke(app, ["--debug", "code", "cr1.md"])

    assert result.exit_code == 0, f"Command failed with exit code {result.exit_code}. Output: {result.output}"
    assert "Completed step 2: Laying the foundation testing" in result.output
    assert "Next step: Minimum Viable Implementation" in result.output
