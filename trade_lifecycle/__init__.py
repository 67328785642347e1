"""
Trade Lifecycle Package.

Two-phase trade records: a pre-trade plan created from an upload
and a single execution submission that completes it.

Components:
- types: TradePhase, Outcome, submission and result objects
- state_machine: VALID_TRANSITIONS and TransitionGuard
- tokens: single-use execution tokens
- variance: plan vs actual figures, behavioral patterns
- grading: letter grades and learning synthesis
- manager: TradeLifecycleManager
"""

from .grading import grade_breakdown, grade_from_variance, learning_synthesis, overall_grade
from .manager import TradeLifecycleManager
from .state_machine import VALID_TRANSITIONS, TransitionGuard
from .tokens import issue_token, tokens_match
from .types import (
    BehavioralPattern,
    ExecutionResult,
    ExecutionSubmission,
    Outcome,
    PriceVariance,
    TradePhase,
)
from .variance import (
    classify_behavioral_patterns,
    compute_actual_rr,
    compute_pnl,
    compute_variances,
)

__all__ = [
    "TradeLifecycleManager",
    "VALID_TRANSITIONS",
    "TransitionGuard",
    "issue_token",
    "tokens_match",
    "BehavioralPattern",
    "ExecutionResult",
    "ExecutionSubmission",
    "Outcome",
    "PriceVariance",
    "TradePhase",
    "classify_behavioral_patterns",
    "compute_actual_rr",
    "compute_pnl",
    "compute_variances",
    "grade_breakdown",
    "grade_from_variance",
    "learning_synthesis",
    "overall_grade",
]
