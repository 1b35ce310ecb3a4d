"""File access abstraction used by the workflow engine."""

from __future__ import annotations

from typing import Protocol


class FileSystem(Protocol):
    """Protocol for the file operations the engine needs."""

    def read_file(self, path: str) -> bytes:
        """Return the file contents, raising ``FileNotFoundError`` if absent."""

    def write_file(self, path: str, data: bytes) -> None:
        """Replace the file contents in one step, creating parent directories."""

    def exists(self, path: str) -> bool:
        """Return ``True`` if ``path`` exists."""
