"""
Navigation State ORM Model.

Key-value rows with an expiry, backing the SQL navigation store.
"""

from datetime import datetime
from typing import Any, Dict

from sqlalchemy import JSON, DateTime, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from storage.models.base import Base, utcnow


class NavigationEntry(Base):
    """One navigation state entry; expired rows are treated as absent."""

    __tablename__ = "navigation_state"

    key: Mapped[str] = mapped_column(String(128), primary_key=True)
    value: Mapped[Dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow,
    )

    __table_args__ = (
        Index("idx_navigation_expires", "expires_at"),
    )
