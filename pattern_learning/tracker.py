"""
Pattern Learning - Tracker.

============================================================
PURPOSE
============================================================
Running statistics of what the trader does:

SETUP PATH
- record_occurrence(name)          total_count += 1
- record_outcome(name, success)    success_count, confidence

EXECUTION PATH
- record_execution_pattern(type, impact)
      average_impact = (avg * freq + impact) / (freq + 1)
      frequency_count += 1

Every update is one SQL statement computed from the current
row. First occurrences insert the row; if a concurrent writer
inserted it first, the UPDATE is retried once.

The tracker works inside the caller's session and never
commits.

============================================================
"""

import logging
from typing import Any, Callable, Dict, List

from sqlalchemy.orm import Session

from core.exceptions import PersistenceError
from storage.repositories import (
    DuplicateRecordError,
    ExecutionPatternRepository,
    SetupPatternRepository,
)

from .vocabulary import (
    DOMINANT_MIN_FREQUENCY,
    FAILURE_STEP,
    INITIAL_CONFIDENCE,
    SETUP_VOCABULARY,
    SUCCESS_STEP,
    impact_trend,
)


logger = logging.getLogger(__name__)


class PatternLearningTracker:
    """
    Setup and execution pattern statistics.
    """

    def __init__(
        self,
        session: Session,
        success_step: float = SUCCESS_STEP,
        failure_step: float = FAILURE_STEP,
        initial_confidence: float = INITIAL_CONFIDENCE,
    ):
        self.session = session
        self.setups = SetupPatternRepository(session)
        self.executions = ExecutionPatternRepository(session)
        self.success_step = success_step
        self.failure_step = failure_step
        self.initial_confidence = initial_confidence

    def _update_or_create(
        self,
        update: Callable[[], int],
        create: Callable[[], Any],
        key: str,
    ) -> None:
        """UPDATE; on no match INSERT; on a lost insert race UPDATE once more."""
        if update():
            return
        try:
            create()
            return
        except DuplicateRecordError:
            logger.info(f"Concurrent insert of pattern {key}, retrying update")

        if not update():
            raise PersistenceError(f"Pattern row {key} vanished during update", operation="pattern_update")

    # =========================================================
    # SETUP PATTERNS
    # =========================================================

    def seed_setup_vocabulary(self) -> int:
        """Insert missing vocabulary rows. Idempotent; returns rows created."""
        created = 0
        for name in SETUP_VOCABULARY:
            if self.setups.get(name) is None:
                self.setups.insert(name, total_count=0, confidence=self.initial_confidence)
                created += 1
        return created

    def record_occurrence(self, pattern_name: str) -> None:
        self._update_or_create(
            lambda: self.setups.increment_total(pattern_name),
            lambda: self.setups.insert(pattern_name, total_count=1, confidence=self.initial_confidence),
            pattern_name,
        )
        logger.debug(f"Setup occurrence recorded: {pattern_name}")

    def record_outcome(self, pattern_name: str, success: bool) -> None:
        """
        success: success_count + 1, confidence + success_step (max 1)
        failure: confidence - failure_step (min 0)
        """
        def apply() -> int:
            return self.setups.apply_outcome(
                pattern_name, success, self.success_step, self.failure_step,
            )

        if not apply():
            self.record_occurrence(pattern_name)
            apply()

        logger.info(f"Setup outcome recorded: {pattern_name} success={success}")

    def list_setup_patterns(self) -> List[Dict[str, Any]]:
        return [
            {
                "pattern_name": row.pattern_name,
                "success_count": row.success_count,
                "total_count": row.total_count,
                "success_rate": round(row.success_rate, 4),
                "confidence_score": round(row.confidence_score, 4),
                "last_updated": row.last_updated.isoformat() if row.last_updated else None,
            }
            for row in self.setups.list_all()
        ]

    # =========================================================
    # EXECUTION PATTERNS
    # =========================================================

    def record_execution_pattern(self, pattern_type: str, impact: float) -> None:
        self._update_or_create(
            lambda: self.executions.accumulate(pattern_type, impact),
            lambda: self.executions.insert(pattern_type, impact, confidence=self.initial_confidence),
            pattern_type,
        )
        logger.info(f"Execution pattern recorded: {pattern_type} impact={impact:+.2f}")

    def dominant_execution_patterns(self, min_frequency: int = DOMINANT_MIN_FREQUENCY) -> List[Dict[str, Any]]:
        """Patterns seen at least min_frequency times, most frequent first."""
        return [
            {
                "pattern_type": row.pattern_type,
                "frequency_count": row.frequency_count,
                "average_impact": round(row.average_impact, 4),
                "confidence_score": round(row.confidence_score, 4),
                "trend": impact_trend(row.average_impact),
            }
            for row in self.executions.list_by_frequency(min_frequency)
        ]


__all__ = ["PatternLearningTracker"]
