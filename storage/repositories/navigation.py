"""
Navigation State Repository.

Key-value rows with expiry. Expired rows are filtered in SQL and
removed lazily.
"""

from datetime import datetime
from typing import Any, Dict, Optional

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from storage.models.navigation import NavigationEntry
from storage.repositories.base import BaseRepository


class NavigationRepository(BaseRepository[NavigationEntry]):
    """Repository for navigation state entries."""

    def __init__(self, session: Session) -> None:
        super().__init__(session, NavigationEntry)

    def get_live(self, key: str, now: datetime) -> Optional[NavigationEntry]:
        stmt = select(NavigationEntry).where(
            NavigationEntry.key == key,
            NavigationEntry.expires_at > now,
        )
        return self._first(stmt)

    def upsert(self, key: str, value: Dict[str, Any], expires_at: datetime) -> NavigationEntry:
        entry = self._get_by_id(key)
        if entry is None:
            return self._add(NavigationEntry(key=key, value=value, expires_at=expires_at))
        entry.value = value
        entry.expires_at = expires_at
        self._session.flush()
        return entry

    def delete_key(self, key: str) -> int:
        return self._bulk(delete(NavigationEntry).where(NavigationEntry.key == key), "delete_key")

    def purge_expired(self, now: datetime) -> int:
        stmt = delete(NavigationEntry).where(NavigationEntry.expires_at <= now)
        return self._bulk(stmt, "purge_expired")
