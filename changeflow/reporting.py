"""User-facing progress reporting.

Reporters are purely observational: the engine never branches on them.
"""

from __future__ import annotations

import logging
from typing import Protocol

import typer


class Reporter(Protocol):
    """Protocol for progress and warning output."""

    def warn(self, message: str) -> None:
        ...

    def info(self, message: str) -> None:
        ...

    def success(self, message: str) -> None:
        ...

    def step(self, current: int, total: int, description: str) -> None:
        ...


class LoggingReporter(Reporter):
    """Forward reporter calls to the standard logging system."""

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self._logger = logger or logging.getLogger("changeflow")

    def warn(self, message: str) -> None:
        self._logger.warning(message)

    def info(self, message: str) -> None:
        self._logger.info(message)

    def success(self, message: str) -> None:
        self._logger.info(message)

    def step(self, current: int, total: int, description: str) -> None:
        self._logger.info(f"Step {current}/{total}: {description}")


class ConsoleReporter(Reporter):
    """Print progress to stderr so stdout carries only step instructions.

    Informational messages are shown only when ``verbose`` is set.
    """

    def __init__(self, verbose: bool = False) -> None:
        self.verbose = verbose

    def warn(self, message: str) -> None:
        typer.secho(f"Warning: {message}", fg=typer.colors.YELLOW, err=True)

    def info(self, message: str) -> None:
        if self.verbose:
            typer.echo(message, err=True)

    def success(self, message: str) -> None:
        typer.secho(message, fg=typer.colors.GREEN, err=True)

    def step(self, current: int, total: int, description: str) -> None:
        typer.secho(f"Step {current}/{total}: {description}", bold=True, err=True)


__all__ = ["Reporter", "LoggingReporter", "ConsoleReporter"]
