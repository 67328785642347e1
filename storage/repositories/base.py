"""
Base Repository.

============================================================
PURPOSE
============================================================
Shared plumbing for the journal repositories:
- The injected session (repositories never commit)
- _guard(): maps SQLAlchemy failures to storage exceptions
- Small add / get / query / bulk-statement helpers

The unit of work that owns the session (transaction_scope)
decides commit or rollback.

============================================================
"""

import logging
from contextlib import contextmanager
from typing import Any, Generic, Iterator, List, Optional, Type, TypeVar

from sqlalchemy.exc import IntegrityError, OperationalError, SQLAlchemyError
from sqlalchemy.orm import Session

from storage.models.base import Base
from storage.repositories.exceptions import (
    DuplicateRecordError,
    StatementError,
    StorageUnavailableError,
)


ModelT = TypeVar("ModelT", bound=Base)


def _is_unique_violation(error: IntegrityError) -> bool:
    text = str(error.orig or error).lower()
    return "unique" in text or "duplicate" in text


class BaseRepository(Generic[ModelT]):
    """
    Repository over one ORM model.

    Subclasses pass their model class; the class name doubles as
    the logger suffix and the tag on raised exceptions.
    """

    model: Type[ModelT]

    def __init__(self, session: Session, model: Type[ModelT]) -> None:
        self._session = session
        self.model = model
        self.name = type(self).__name__
        self._logger = logging.getLogger(f"storage.{self.name}")

    @property
    def session(self) -> Session:
        return self._session

    @contextmanager
    def _guard(self, operation: str, key_field: str = "id", key: Any = None) -> Iterator[None]:
        """
        Re-raise SQLAlchemy errors from the block as storage exceptions.

        A unique violation becomes DuplicateRecordError(key_field, key).
        """
        try:
            yield
        except IntegrityError as e:
            if _is_unique_violation(e):
                self._logger.warning(f"{self.name}.{operation}: duplicate {key_field}={key!r}")
                raise DuplicateRecordError(self.name, key_field, key) from e
            self._logger.error(f"{self.name}.{operation}: constraint violation: {e.orig}")
            raise StatementError(self.name, operation, str(e.orig)) from e
        except OperationalError as e:
            self._logger.error(f"{self.name}.{operation}: database unavailable: {e.orig}")
            raise StorageUnavailableError(self.name, operation, str(e.orig)) from e
        except SQLAlchemyError as e:
            self._logger.error(f"{self.name}.{operation}: {type(e).__name__}: {e}")
            raise StatementError(self.name, operation, str(e)) from e

    # =========================================================
    # HELPERS
    # =========================================================

    def _add(self, entity: ModelT, operation: str = "add") -> ModelT:
        with self._guard(operation):
            self._session.add(entity)
            self._session.flush()
        return entity

    def _insert_once(self, entity: ModelT, key_field: str, key: Any) -> ModelT:
        """
        Insert inside a SAVEPOINT.

        A lost unique-key race rolls back only the savepoint, so the
        surrounding unit of work stays usable for a retry.
        """
        with self._guard("insert", key_field, key):
            with self._session.begin_nested():
                self._session.add(entity)
                self._session.flush()
        return entity

    def _get_by_id(self, record_id: Any, populate_existing: bool = False) -> Optional[ModelT]:
        with self._guard("get"):
            return self._session.get(self.model, record_id, populate_existing=populate_existing)

    def _all(self, stmt: Any) -> List[ModelT]:
        with self._guard("query"):
            return list(self._session.execute(stmt).scalars().all())

    def _first(self, stmt: Any) -> Optional[Any]:
        with self._guard("query"):
            return self._session.execute(stmt).scalar_one_or_none()

    def _bulk(self, stmt: Any, operation: str) -> int:
        """
        Run an UPDATE or DELETE and return the matched row count.

        The identity map is not synchronized; callers re-read the
        affected objects when they need fresh attributes.
        """
        with self._guard(operation):
            result = self._session.execute(stmt, execution_options={"synchronize_session": False})
        return result.rowcount
