"""Command line interface for changeflow."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, Tuple

import typer

from changeflow.config import ChangeflowConfig, load_config
from changeflow.definition import WorkflowDefinition, get_definition
from changeflow.errors import ChangeflowError, ChangeRequestNotFound, DefinitionError
from changeflow.manager import WorkflowManager
from changeflow.reporting import ConsoleReporter
from changeflow.runner import WorkflowRunner

app = typer.Typer(help="Drive change requests through a staged implementation workflow")


@app.callback()
def main(
    ctx: typer.Context,
    config: Optional[Path] = typer.Option(
        None, "--config", help="Path to a changeflow.yaml configuration file"
    ),
    debug: bool = typer.Option(False, "--debug", help="Show debug logging and progress"),
) -> None:
    """Changeflow CLI entry point."""
    settings = load_config(str(config) if config else None)
    level = logging.DEBUG if debug else getattr(logging, settings.log_level.upper(), logging.WARNING)
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    ctx.obj = {"config": settings, "debug": debug}


def _context(ctx: typer.Context) -> Tuple[ChangeflowConfig, bool]:
    obj = ctx.obj or {}
    return obj.get("config") or load_config(), bool(obj.get("debug"))


def _load_definition(settings: ChangeflowConfig) -> WorkflowDefinition:
    try:
        return get_definition(settings)
    except DefinitionError as exc:
        typer.secho(f"Error: {exc}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)


@app.command("code")
def code(
    ctx: typer.Context,
    change_request: Path,
    reset: bool = typer.Option(
        False, "--reset", help="Reset the workflow and start from the beginning"
    ),
    strict: bool = typer.Option(
        False, "--strict", help="Fail on undefined or malformed prompt variables"
    ),
) -> None:
    """
    Execute the next step in the implementation workflow.

    Detects which step the change request is on, writes the step's
    instructions next to it, prints them and records the progress in a
    .step file so the next invocation resumes with the following step.

    Example:
        changeflow code docs/changes-request/2025-03-26-code-command.blueprint.md
        changeflow code --reset docs/changes-request/2025-03-26-code-command.blueprint.md
    """
    settings, debug = _context(ctx)
    definition = _load_definition(settings)
    runner = WorkflowRunner(
        definition,
        reporter=ConsoleReporter(verbose=debug),
        strict=strict or settings.workflow.strict_prompts,
    )

    try:
        outcome = runner.run(str(change_request), reset=reset)
    except ChangeRequestNotFound as exc:
        typer.secho(f"Error: File {exc.path} not found.", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)
    except ChangeflowError as exc:
        typer.secho(f"Error: {exc}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)

    if outcome.result is not None:
        typer.echo(outcome.result.instructions)


@app.command("status")
def status(ctx: typer.Context, change_request: Path) -> None:
    """Show how far a change request has progressed through the workflow."""
    settings, debug = _context(ctx)
    definition = _load_definition(settings)
    path = str(change_request)
    if not change_request.exists():
        typer.secho(f"Error: File {path} not found.", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)

    manager = WorkflowManager(definition, reporter=ConsoleReporter(verbose=debug))
    state = manager.get_state(path)
    total = len(definition)
    current = state.current_step_index

    if current == total:
        typer.echo(f"Workflow complete: {total}/{total} steps")
    else:
        typer.echo(f"Step {current + 1}/{total}: {definition[current].description}")
    for index, step in enumerate(definition.steps):
        marker = "x" if index < current else " "
        suffix = " (test)" if step.is_test else ""
        typer.echo(f"[{marker}] {step.id}{suffix}")


@app.command("steps")
def steps(ctx: typer.Context) -> None:
    """List the steps of the configured workflow."""
    settings, _ = _context(ctx)
    definition = _load_definition(settings)
    for number, step in enumerate(definition.steps, 1):
        suffix = " (test)" if step.is_test else ""
        typer.echo(f"{number}. {step.id} - {step.description}{suffix}")


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    app()
