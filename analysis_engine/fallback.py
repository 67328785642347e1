"""
Analysis Engine - Deterministic Fallback.

============================================================
PURPOSE
============================================================
Produce an analysis in the provider schema when the provider
cannot be used (missing key, timeout, rejected request, answer
without JSON).

Values are derived from the trader's notes only:
- three prices        -> reward/risk computed from them
- entry and stop      -> target projected at the default ratio
- entry and target    -> ratio stays at the default
- fewer than two      -> neutral placeholders, low_confidence set

The output always carries source="fallback".

============================================================
"""

import logging
from typing import Optional

from core.config import RiskRules
from core.context import TradingContext
from timeframes.types import TimeframeHierarchy

from .price_extraction import PriceLevels, extract_execution_prices, extract_from_notes
from .types import (
    SETUP_PATTERNS,
    UNKNOWN_PATTERN,
    AnalysisResult,
    AnalysisSource,
    ExecutionAnalysis,
    TimeframeAnalysis,
)


logger = logging.getLogger(__name__)


PLACEHOLDER_CONFIDENCE = 0.3
NOTES_CONFIDENCE = 0.5


def detect_pattern(notes: Optional[str]) -> str:
    """First setup vocabulary entry mentioned in the notes."""
    if not notes:
        return UNKNOWN_PATTERN
    text = notes.lower()
    for pattern in SETUP_PATTERNS:
        if pattern in text or pattern.replace("_", " ") in text:
            return pattern
    return UNKNOWN_PATTERN


def synthesize_fallback(
    notes: Optional[str],
    hierarchy: TimeframeHierarchy,
    context: TradingContext,
    rules: Optional[RiskRules] = None,
    point_value: float = 2.0,
    default_rr: float = 2.0,
) -> AnalysisResult:
    """
    Build a deterministic pre-trade analysis from notes.

    Args:
        notes: Trader notes, may be empty
        hierarchy: Resolved hierarchy of the upload
        context: Trading context
        rules: Risk rules (for risk_amount and within_limits)
        point_value: Dollars per point per contract
        default_rr: Ratio assumed when it cannot be computed

    Returns:
        AnalysisResult with source=fallback
    """
    rules = rules or RiskRules()
    levels = extract_from_notes(notes)
    usable = levels.known_count >= 2

    if usable:
        if levels.target is None:
            levels.project_target(default_rr)
            rr = default_rr
        else:
            rr = levels.risk_reward(default_rr)
    else:
        rr = default_rr

    risk_points = levels.risk_points if usable else None
    risk_amount = risk_points * point_value if risk_points is not None else rules.max_risk_per_trade
    confidence = NOTES_CONFIDENCE if usable else PLACEHOLDER_CONFIDENCE

    if usable:
        commentary = (
            "Provider analysis unavailable. Prices and reward/risk derived from trader notes; "
            "chart-based assessment was not performed."
        )
    else:
        commentary = (
            "Provider analysis unavailable and notes did not contain usable prices. "
            "Values are neutral placeholders."
        )

    individual = {
        tf.label: TimeframeAnalysis(
            timeframe_role=tf.role.value if tf.role else tf.classification.priority.value,
        )
        for tf in hierarchy.timeframes
    }

    result = AnalysisResult(
        source=AnalysisSource.FALLBACK,
        setup_quality=5,
        risk_reward_ratio=rr,
        pattern_type=detect_pattern(notes) if usable else UNKNOWN_PATTERN,
        ai_commentary=commentary,
        risk_amount=risk_amount,
        within_limits=risk_amount <= rules.max_risk_per_trade,
        recommendation="WAIT",
        confidence_score=confidence,
        specific_observations=[
            f"Fallback analysis for {context.instrument} ({len(hierarchy.timeframes)} timeframe(s))",
            f"Prices recovered from notes: {levels.known_count} of 3",
        ],
        planned_entry=levels.entry if usable else None,
        planned_stop=levels.stop if usable else None,
        planned_target=levels.target if usable else None,
        low_confidence=not usable,
        individual_timeframe_analysis=individual,
        analysis_confidence=confidence,
        completeness_score=hierarchy.completeness,
    )

    logger.info(
        f"Fallback analysis: prices={levels.known_count}/3 rr={result.risk_reward_ratio} "
        f"low_confidence={result.low_confidence}"
    )
    return result


def synthesize_execution_fallback(
    planned: PriceLevels,
    execution_notes: Optional[str],
    planned_rr: Optional[float] = None,
    default_rr: float = 2.0,
) -> ExecutionAnalysis:
    """
    Build a deterministic execution review.

    Actual prices come from the execution notes; any price not
    found there is assumed to equal the planned one.
    """
    found = extract_execution_prices(execution_notes)
    actual = PriceLevels(
        entry=found.entry if found.entry is not None else planned.entry,
        stop=found.stop if found.stop is not None else planned.stop,
        target=found.target if found.target is not None else planned.target,
    )
    fallback_rr = planned_rr if planned_rr is not None else default_rr

    observations = ["Provider execution review unavailable"]
    if found.known_count:
        observations.append(f"Actual prices recovered from notes: {found.known_count} of 3")
    else:
        observations.append("No actual prices in notes; planned prices assumed")

    logger.info(f"Execution fallback: prices from notes={found.known_count}/3")

    return ExecutionAnalysis(
        source=AnalysisSource.FALLBACK,
        actual_entry=actual.entry,
        actual_stop=actual.stop,
        actual_target=actual.target,
        actual_rr=actual.risk_reward(fallback_rr),
        execution_timing="unknown",
        behavioral_observations=observations,
        coaching_insights=["Manual review recommended when the provider is available"],
        confidence_score=NOTES_CONFIDENCE if found.known_count else PLACEHOLDER_CONFIDENCE,
        low_confidence=found.known_count == 0,
    )


__all__ = ["detect_pattern", "synthesize_fallback", "synthesize_execution_fallback"]
