"""
Pattern Statistics ORM Models.

============================================================
MODELS
============================================================
- SetupPatternStat: Success statistics per setup pattern
- ExecutionPatternStat: Running statistics per behavioral
  execution pattern

Both tables are keyed by name and updated in place with
single-statement SQL arithmetic.

============================================================
"""

from datetime import datetime

from sqlalchemy import DateTime, Float, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from storage.models.base import Base, utcnow


class SetupPatternStat(Base):
    """Outcome statistics of one setup pattern."""

    __tablename__ = "setup_patterns"

    pattern_name: Mapped[str] = mapped_column(String(50), primary_key=True)

    success_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    confidence_score: Mapped[float] = mapped_column(
        Float,
        nullable=False,
        default=0.5,
        comment="Bounded to [0, 1]"
    )

    last_updated: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)

    @property
    def success_rate(self) -> float:
        return self.success_count / self.total_count if self.total_count else 0.0


class ExecutionPatternStat(Base):
    """Running frequency and rr impact of one execution pattern."""

    __tablename__ = "execution_patterns"

    pattern_type: Mapped[str] = mapped_column(String(50), primary_key=True)

    frequency_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    average_impact: Mapped[float] = mapped_column(
        Float,
        nullable=False,
        default=0.0,
        comment="Running mean of rr impact"
    )

    confidence_score: Mapped[float] = mapped_column(Float, nullable=False, default=0.5)

    first_seen: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    last_seen: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
