"""
Trade Lifecycle - Plan vs Actual.

============================================================
PURPOSE
============================================================
Figures derived when an execution is submitted:

- variances      actual - planned per price (missing planned
                 value defaults to the actual one)
- actual_rr      |target - entry| / |entry - stop|
- rr_impact      actual_rr - planned_rr
- pnl            win: +reward points, loss: -risk points,
                 times the point value
- behavioral patterns from variance thresholds

============================================================
"""

from typing import List, Optional

from analysis_engine.price_extraction import PriceLevels
from core.config import ExecutionThresholds

from .types import BehavioralPattern, Outcome, PriceVariance


SUGGESTIONS = {
    "early_entry": "Wait for pullback completion before entry trigger",
    "late_entry": "Set alerts to catch entry levels earlier",
    "stop_tightening": "Maintain planned stop levels for consistency",
    "target_extension": "Target extensions show good momentum reading",
}


def _variance(planned: Optional[float], actual: Optional[float]) -> float:
    if actual is None:
        return 0.0
    return actual - (planned if planned is not None else actual)


def compute_variances(planned: PriceLevels, actual: PriceLevels) -> PriceVariance:
    return PriceVariance(
        entry=_variance(planned.entry, actual.entry),
        stop=_variance(planned.stop, actual.stop),
        target=_variance(planned.target, actual.target),
    )


def compute_actual_rr(actual: PriceLevels, planned_rr: Optional[float], default_rr: float = 2.0) -> float:
    """Reward/risk of the executed prices; planned (or default) when risk is zero or unknown."""
    fallback = planned_rr if planned_rr is not None else default_rr
    return actual.risk_reward(fallback)


def compute_pnl(outcome: Outcome, actual: PriceLevels, point_value: float) -> float:
    if outcome is Outcome.WIN:
        return round((actual.reward_points or 0.0) * point_value, 2)
    if outcome is Outcome.LOSS:
        return round(-(actual.risk_points or 0.0) * point_value, 2)
    return 0.0


def classify_behavioral_patterns(
    variances: PriceVariance,
    rr_impact: float,
    thresholds: Optional[ExecutionThresholds] = None,
) -> List[BehavioralPattern]:
    """Execution habits implied by the variances; each carries the rr impact."""
    thresholds = thresholds or ExecutionThresholds()
    detected = []

    if variances.entry > thresholds.early_entry_points:
        detected.append("early_entry")
    if variances.entry < -thresholds.late_entry_points:
        detected.append("late_entry")
    if variances.stop > thresholds.stop_tightening_points:
        detected.append("stop_tightening")
    if variances.target > thresholds.target_extension_points:
        detected.append("target_extension")

    return [
        BehavioralPattern(pattern_type=name, impact=rr_impact, suggestion=SUGGESTIONS[name])
        for name in detected
    ]


__all__ = [
    "SUGGESTIONS",
    "classify_behavioral_patterns",
    "compute_actual_rr",
    "compute_pnl",
    "compute_variances",
]
