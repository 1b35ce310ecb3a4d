"""File access collaborators for the workflow engine."""

from __future__ import annotations

from .base import FileSystem
from .inmemory import InMemoryFileSystem
from .local import LocalFileSystem

__all__ = [
    "FileSystem",
    "LocalFileSystem",
    "InMemoryFileSystem",
]
