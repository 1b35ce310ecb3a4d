"""Local disk implementation of the file system protocol."""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path

from .base import FileSystem

logger = logging.getLogger(__name__)


class LocalFileSystem(FileSystem):
    """Read and write files on the local disk.

    Writes go to a temporary file in the destination directory which is then
    moved over the target with ``os.replace``, so a reader sees either the old
    or the new content and never a partial document.
    """

    def __init__(self, file_mode: int = 0o644) -> None:
        self.file_mode = file_mode

    def read_file(self, path: str) -> bytes:
        return Path(path).read_bytes()

    def write_file(self, path: str, data: bytes) -> None:
        target = Path(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(
            dir=target.parent, prefix=f".{target.name}.", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(data)
                f.flush()
                os.fsync(f.fileno())
            os.chmod(tmp_path, self.file_mode)
            os.replace(tmp_path, target)
        except Exception:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise
        logger.debug(f"Wrote {len(data)} bytes to {target}")

    def exists(self, path: str) -> bool:
        return Path(path).exists()
