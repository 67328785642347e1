"""
Trade Lifecycle - Types.

============================================================
PURPOSE
============================================================
Phase and outcome enums plus the value objects exchanged with
the lifecycle manager.

============================================================
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional

from analysis_engine.types import ExecutionAnalysis


class TradePhase(str, Enum):
    """Phase of a trade. Advances only, never regresses."""

    PRE_TRADE = "pre_trade"
    EXECUTION = "execution"
    COMPLETE = "complete"

    def is_terminal(self) -> bool:
        return self is TradePhase.COMPLETE


class Outcome(str, Enum):
    WIN = "win"
    LOSS = "loss"
    BREAKEVEN = "breakeven"
    PENDING = "pending"

    @classmethod
    def parse(cls, value: Any) -> "Outcome":
        """Lenient parse; anything unrecognized is PENDING."""
        if isinstance(value, Outcome):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return cls.PENDING


@dataclass
class ExecutionSubmission:
    """What the trader submits after taking a planned trade."""

    analysis: ExecutionAnalysis
    """Execution review (provider or fallback)."""

    notes: Optional[str] = None
    """Execution notes."""

    screenshots: Mapping[str, Any] = field(default_factory=dict)
    """label -> stored execution screenshot (path, size)."""

    outcome: Outcome = Outcome.PENDING
    """Known outcome at submission time, if any."""


@dataclass
class PriceVariance:
    """Actual minus planned, in points."""

    entry: float = 0.0
    stop: float = 0.0
    target: float = 0.0

    def to_dict(self) -> Dict[str, float]:
        return {
            "entry_variance": round(self.entry, 4),
            "stop_variance": round(self.stop, 4),
            "target_variance": round(self.target, 4),
        }


@dataclass(frozen=True)
class BehavioralPattern:
    """Execution habit inferred from the variances."""

    pattern_type: str
    impact: float
    suggestion: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.pattern_type,
            "impact": round(self.impact, 4),
            "suggestion": self.suggestion,
        }


@dataclass
class ExecutionResult:
    """Result of a successful execution submission."""

    trade_id: str
    linked_execution_id: str
    phase: TradePhase
    variances: PriceVariance
    actual_rr: float
    planned_rr: float
    rr_impact: float
    pnl: float
    outcome: Outcome
    execution_grade: str
    grade_breakdown: Dict[str, str] = field(default_factory=dict)
    patterns: List[BehavioralPattern] = field(default_factory=list)
    learning_synthesis: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "trade_id": self.trade_id,
            "linked_execution_id": self.linked_execution_id,
            "phase": self.phase.value,
            "price_variances": {**self.variances.to_dict(), "rr_impact": round(self.rr_impact, 4)},
            "actual_rr": self.actual_rr,
            "planned_rr": self.planned_rr,
            "pnl": self.pnl,
            "outcome": self.outcome.value,
            "execution_grade": self.execution_grade,
            "grade_breakdown": dict(self.grade_breakdown),
            "execution_patterns": [p.to_dict() for p in self.patterns],
            "learning_synthesis": dict(self.learning_synthesis),
        }
