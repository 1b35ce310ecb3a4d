"""In-memory implementation of the file system protocol."""

from __future__ import annotations

from typing import Dict, List, Optional

from .base import FileSystem


class InMemoryFileSystem(FileSystem):
    """Keep files in a dictionary.

    Useful for tests. ``fail_writes`` / ``fail_reads`` make the matching
    operation raise ``OSError`` so error paths can be exercised, and
    ``writes`` records every successful write in order.
    """

    def __init__(self, files: Optional[Dict[str, bytes]] = None) -> None:
        self.files: Dict[str, bytes] = dict(files or {})
        self.writes: List[str] = []
        self.fail_writes = False
        self.fail_reads = False

    # ------------------------------------------------------------------
    def read_file(self, path: str) -> bytes:
        if self.fail_reads:
            raise OSError(f"simulated read failure: {path}")
        try:
            return self.files[path]
        except KeyError:
            raise FileNotFoundError(path) from None

    def write_file(self, path: str, data: bytes) -> None:
        if self.fail_writes:
            raise OSError(f"simulated write failure: {path}")
        self.files[path] = bytes(data)
        self.writes.append(path)

    def exists(self, path: str) -> bool:
        return path in self.files
