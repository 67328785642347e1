"""
Storage Exceptions.

============================================================
PURPOSE
============================================================
Repository methods never let a raw SQLAlchemy error escape.
Each failure is re-raised as one of the exceptions below,
tagged with the repository and the operation that failed.

Only DuplicateRecordError is expected to be handled by callers
(pattern statistics retry the update after a lost insert race).
Everything else bubbles up to transaction_scope(), which turns
it into core.exceptions.PersistenceError.

============================================================
"""

from typing import Any, Dict, Optional


class RepositoryException(Exception):
    """A repository operation failed."""

    def __init__(
        self,
        repository_name: str,
        operation: str,
        reason: str,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.repository_name = repository_name
        self.operation = operation
        self.reason = reason
        self.details = details or {}
        super().__init__(f"{repository_name}.{operation} failed: {reason}")


class DuplicateRecordError(RepositoryException):
    """Insert hit an existing unique key."""

    def __init__(self, repository_name: str, key_field: str, value: Any) -> None:
        super().__init__(
            repository_name,
            "insert",
            f"{key_field}={value!r} already exists",
            {key_field: str(value)},
        )
        self.key_field = key_field
        self.value = value


class StorageUnavailableError(RepositoryException):
    """The database could not be reached or the connection dropped."""


class StatementError(RepositoryException):
    """A statement was rejected: constraint violation or malformed query."""


__all__ = [
    "RepositoryException",
    "DuplicateRecordError",
    "StorageUnavailableError",
    "StatementError",
]
