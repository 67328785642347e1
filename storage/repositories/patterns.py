"""
Pattern Statistics Repositories.

============================================================
ATOMICITY
============================================================
Aggregate updates are single UPDATE statements whose new values
are computed by the database from the current row, so two
concurrent updates of the same key never lose an increment.

Rows are created on first occurrence. A unique-key race on
creation surfaces as DuplicateRecordError; callers retry the
UPDATE.

============================================================
"""

from datetime import datetime
from typing import List, Optional

from sqlalchemy import case, select, update
from sqlalchemy.orm import Session

from storage.models.base import utcnow
from storage.models.patterns import ExecutionPatternStat, SetupPatternStat
from storage.repositories.base import BaseRepository


class SetupPatternRepository(BaseRepository[SetupPatternStat]):
    """Repository for setup pattern statistics."""

    def __init__(self, session: Session) -> None:
        super().__init__(session, SetupPatternStat)

    def get(self, pattern_name: str) -> Optional[SetupPatternStat]:
        return self._get_by_id(pattern_name, populate_existing=True)

    def list_all(self) -> List[SetupPatternStat]:
        stmt = (
            select(SetupPatternStat)
            .order_by(SetupPatternStat.pattern_name)
            .execution_options(populate_existing=True)
        )
        return self._all(stmt)

    def insert(self, pattern_name: str, total_count: int = 0, confidence: float = 0.5) -> SetupPatternStat:
        row = SetupPatternStat(
            pattern_name=pattern_name,
            success_count=0,
            total_count=total_count,
            confidence_score=confidence,
            last_updated=utcnow(),
        )
        return self._insert_once(row, "pattern_name", pattern_name)

    def increment_total(self, pattern_name: str, now: Optional[datetime] = None) -> int:
        stmt = (
            update(SetupPatternStat)
            .where(SetupPatternStat.pattern_name == pattern_name)
            .values(
                total_count=SetupPatternStat.total_count + 1,
                last_updated=now or utcnow(),
            )
        )
        return self._bulk(stmt, "increment_total")

    def apply_outcome(
        self,
        pattern_name: str,
        success: bool,
        success_step: float,
        failure_step: float,
        now: Optional[datetime] = None,
    ) -> int:
        """
        success: success_count + 1, confidence = min(1, c + success_step)
        failure: confidence = max(0, c - failure_step)
        """
        confidence = SetupPatternStat.confidence_score
        if success:
            values = {
                "success_count": SetupPatternStat.success_count + 1,
                "confidence_score": case(
                    (confidence + success_step > 1.0, 1.0),
                    else_=confidence + success_step,
                ),
            }
        else:
            values = {
                "confidence_score": case(
                    (confidence - failure_step < 0.0, 0.0),
                    else_=confidence - failure_step,
                ),
            }

        stmt = (
            update(SetupPatternStat)
            .where(SetupPatternStat.pattern_name == pattern_name)
            .values(last_updated=now or utcnow(), **values)
        )
        return self._bulk(stmt, "apply_outcome")


class ExecutionPatternRepository(BaseRepository[ExecutionPatternStat]):
    """Repository for execution pattern statistics."""

    def __init__(self, session: Session) -> None:
        super().__init__(session, ExecutionPatternStat)

    def get(self, pattern_type: str) -> Optional[ExecutionPatternStat]:
        return self._get_by_id(pattern_type, populate_existing=True)

    def list_by_frequency(self, min_frequency: int = 1) -> List[ExecutionPatternStat]:
        stmt = (
            select(ExecutionPatternStat)
            .where(ExecutionPatternStat.frequency_count >= min_frequency)
            .order_by(ExecutionPatternStat.frequency_count.desc(), ExecutionPatternStat.pattern_type)
            .execution_options(populate_existing=True)
        )
        return self._all(stmt)

    def accumulate(self, pattern_type: str, impact: float, now: Optional[datetime] = None) -> int:
        """
        average_impact = (avg * freq + impact) / (freq + 1)
        frequency_count = freq + 1

        Both expressions read the pre-update row values.
        """
        freq = ExecutionPatternStat.frequency_count
        avg = ExecutionPatternStat.average_impact
        stmt = (
            update(ExecutionPatternStat)
            .where(ExecutionPatternStat.pattern_type == pattern_type)
            .values(
                average_impact=(avg * freq + impact) / (freq + 1.0),
                frequency_count=freq + 1,
                last_seen=now or utcnow(),
            )
        )
        return self._bulk(stmt, "accumulate")

    def insert(self, pattern_type: str, impact: float, confidence: float = 0.5) -> ExecutionPatternStat:
        now = utcnow()
        row = ExecutionPatternStat(
            pattern_type=pattern_type,
            frequency_count=1,
            average_impact=impact,
            confidence_score=confidence,
            first_seen=now,
            last_seen=now,
        )
        return self._insert_once(row, "pattern_type", pattern_type)
