"""
Navigation - Key-Value Stores.

============================================================
PURPOSE
============================================================
Externally owned state with a time-to-live.

- InMemoryTTLStore: one process, tests
- SqlKeyValueStore: database table with expires_at, survives
  restarts and is shared by every process on the database

Values are JSON-compatible dicts. An expired entry behaves as
if it was never set.

============================================================
"""

import copy
import logging
import threading
import time
from abc import ABC, abstractmethod
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, Optional, Tuple

from sqlalchemy.orm import Session

from database.engine import get_session_factory, transaction_scope
from storage.models import utcnow
from storage.repositories import NavigationRepository


logger = logging.getLogger(__name__)


class KeyValueStore(ABC):
    """
    Key-value storage with per-entry expiry.
    """

    @abstractmethod
    def get(self, key: str) -> Optional[Dict[str, Any]]:
        """Live value for key, or None if absent or expired."""
        pass

    @abstractmethod
    def set(self, key: str, value: Dict[str, Any], ttl_seconds: int) -> None:
        pass

    @abstractmethod
    def delete(self, key: str) -> None:
        pass


class InMemoryTTLStore(KeyValueStore):
    """Dict-backed store, safe for threads of one process."""

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._entries: Dict[str, Tuple[float, Dict[str, Any]]] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[Dict[str, Any]]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            expires_at, value = entry
            if expires_at <= self._clock():
                del self._entries[key]
                return None
            return copy.deepcopy(value)

    def set(self, key: str, value: Dict[str, Any], ttl_seconds: int) -> None:
        with self._lock:
            self._entries[key] = (self._clock() + ttl_seconds, copy.deepcopy(value))

    def delete(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def purge_expired(self) -> int:
        with self._lock:
            now = self._clock()
            expired = [k for k, (expires_at, _) in self._entries.items() if expires_at <= now]
            for key in expired:
                del self._entries[key]
            return len(expired)

    def __len__(self) -> int:
        return len(self._entries)


class SqlKeyValueStore(KeyValueStore):
    """Store on the navigation_state table. Each call is its own transaction."""

    def __init__(
        self,
        session_factory: Optional[Callable[[], Session]] = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self._session_factory = session_factory or get_session_factory()
        self._clock = clock

    def get(self, key: str) -> Optional[Dict[str, Any]]:
        with transaction_scope(self._session_factory) as session:
            entry = NavigationRepository(session).get_live(key, self._clock())
            return copy.deepcopy(entry.value) if entry is not None else None

    def set(self, key: str, value: Dict[str, Any], ttl_seconds: int) -> None:
        expires_at = self._clock() + timedelta(seconds=ttl_seconds)
        with transaction_scope(self._session_factory) as session:
            NavigationRepository(session).upsert(key, copy.deepcopy(value), expires_at)

    def delete(self, key: str) -> None:
        with transaction_scope(self._session_factory) as session:
            NavigationRepository(session).delete_key(key)

    def purge_expired(self) -> int:
        with transaction_scope(self._session_factory) as session:
            removed = NavigationRepository(session).purge_expired(self._clock())
        if removed:
            logger.info(f"Purged {removed} expired navigation entries")
        return removed


__all__ = ["InMemoryTTLStore", "KeyValueStore", "SqlKeyValueStore"]
