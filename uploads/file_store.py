"""
Uploads - File Store.

============================================================
PURPOSE
============================================================
Persist uploaded screenshots and hand back StoredFile
references that the trade record and the vision provider use.

LocalFileStore writes under a configurable directory.
Names are generated, never taken from the caller, so two
uploads of '5min.png' never overwrite each other.

============================================================
"""

import logging
import re
import uuid
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Iterable, Union

from core.exceptions import PersistenceError

from .types import StoredFile


logger = logging.getLogger(__name__)


_UNSAFE = re.compile(r"[^a-zA-Z0-9_\-]")


class FileStore(ABC):
    """
    Storage for uploaded files.
    """

    @abstractmethod
    def save(self, label: str, filename: str, data: bytes) -> StoredFile:
        """
        Store one file.

        Raises:
            PersistenceError: The file could not be written
        """
        pass

    @abstractmethod
    def delete(self, stored: StoredFile) -> bool:
        """Remove a stored file. Returns False if it was already gone."""
        pass

    def delete_all(self, stored_files: Iterable[StoredFile]) -> int:
        """
        Best-effort removal of several files.

        Failures are logged, not raised. Returns files removed.
        """
        removed = 0
        for stored in stored_files:
            try:
                if self.delete(stored):
                    removed += 1
            except OSError as e:
                logger.error(f"Failed to remove stored file {stored.path}: {e}")
        return removed


class LocalFileStore(FileStore):
    """FileStore on the local filesystem."""

    def __init__(self, root: Union[str, Path]):
        self.root = Path(root)

    def _target(self, label: str, filename: str) -> Path:
        suffix = Path(filename).suffix.lower()
        safe_label = _UNSAFE.sub("_", label)[:20] or "file"
        return self.root / f"{safe_label}_{uuid.uuid4().hex}{suffix}"

    def save(self, label: str, filename: str, data: bytes) -> StoredFile:
        try:
            self.root.mkdir(parents=True, exist_ok=True)
            target = self._target(label, filename)
            # exclusive create
            with open(target, "xb") as handle:
                handle.write(data)
        except OSError as e:
            raise PersistenceError(
                f"Failed to store {label} screenshot: {e}",
                operation="file_save",
                cause=e,
            ) from e

        logger.debug(f"Stored {label} screenshot at {target} ({len(data)} bytes)")
        return StoredFile(path=target, size=len(data), label=label)

    def delete(self, stored: StoredFile) -> bool:
        path = Path(stored.path)
        if not path.exists():
            return False
        path.unlink()
        logger.debug(f"Removed stored file {path}")
        return True


__all__ = ["FileStore", "LocalFileStore"]
