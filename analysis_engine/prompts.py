"""
Analysis Engine - Prompt Builders.

Request text for the pre-trade analysis and for the execution
review. Both end with the exact JSON shape the parser expects.
"""

import json
from typing import Any, Dict, Optional

from core.config import RiskRules
from core.context import TradingContext
from specialization.types import SpecializationInsights
from timeframes.strategy import AnalysisStrategy
from timeframes.types import TimeframeHierarchy

from .types import (
    ENTRY_QUALITIES,
    EXECUTION_TIMINGS,
    RECOMMENDATIONS,
    SESSION_TIMINGS,
    SETUP_PATTERNS,
    STOP_PLACEMENTS,
    TARGET_SELECTIONS,
)


def _analysis_schema(hierarchy: TimeframeHierarchy) -> Dict[str, Any]:
    return {
        "enhanced_analysis": {
            "setup_quality": "integer 1-10",
            "risk_reward_ratio": "number",
            "pattern_type": " | ".join(SETUP_PATTERNS),
            "entry_quality": " | ".join(ENTRY_QUALITIES),
            "stop_placement": " | ".join(STOP_PLACEMENTS),
            "target_selection": " | ".join(TARGET_SELECTIONS),
            "session_timing": " | ".join(SESSION_TIMINGS),
            "ai_commentary": "string",
            "risk_amount": "dollars",
            "within_limits": "boolean",
            "trade_frequency": "string",
            "learning_insights": "string",
            "recommendation": " | ".join(RECOMMENDATIONS),
            "confidence_score": "number 0-1",
            "specific_observations": ["string (max 10)"],
            "planned_entry": "price or null",
            "planned_stop": "price or null",
            "planned_target": "price or null",
        },
        "universal_timeframe_analysis": {
            "primary_timeframe_bias": "string",
            "confluence": "string",
        },
        "individual_timeframe_analysis": {
            label: {
                "pattern_identified": "string",
                "trend_direction": "bullish | bearish | neutral",
                "key_levels": ["price"],
                "volume_analysis": "string",
                "setup_quality": "integer 1-10",
                "timeframe_role": "string",
            }
            for label in hierarchy.labels
        },
        "instrument_insights": {"notes": "string"},
        "analysis_confidence": "number 0-1",
        "completeness_score": "integer 0-100",
    }


def _describe_hierarchy(hierarchy: TimeframeHierarchy) -> str:
    lines = []
    for tf in hierarchy.timeframes:
        role = tf.role.value if tf.role else "supporting"
        marker = " (PRIMARY)" if tf is hierarchy.primary else ""
        lines.append(
            f"- {tf.label}{marker}: {tf.classification.category.value}, "
            f"role {role}, {tf.classification.description}"
        )
    lines.append(f"Hierarchy completeness: {hierarchy.completeness}/100")
    return "\n".join(lines)


def build_analysis_prompt(
    hierarchy: TimeframeHierarchy,
    context: TradingContext,
    rules: RiskRules,
    strategy: AnalysisStrategy,
    insights: Optional[SpecializationInsights] = None,
    notes: Optional[str] = None,
) -> str:
    """Prompt for the pre-trade assessment of the uploaded screenshots."""
    sections = [
        f"You are reviewing {len(hierarchy.timeframes)} chart screenshot(s) of "
        f"{context.instrument} for a {context.trading_style} trade plan.",
        "",
        "TIMEFRAMES",
        _describe_hierarchy(hierarchy),
        "",
        "TRADING CONTEXT",
        f"- Account size: ${context.account_size:,.0f}",
        f"- Session: {context.session_info or 'not provided'}",
        f"- Trades this week: {context.trades_this_week} (goal {rules.max_trades_per_week})",
        "",
        "RISK RULES",
        f"- Maximum risk per trade: ${rules.max_risk_per_trade:g}",
        f"- Minimum reward/risk: {rules.minimum_rr:g}",
        f"- Session window: {rules.session_start:%H:%M}-{rules.session_end:%H:%M}",
        "",
        "ANALYSIS STRATEGY",
        f"- Focus: {', '.join(strategy.analysis_focus) or 'general'}",
        f"- Depth: {strategy.analysis_depth}",
    ]

    if strategy.specialized_insights:
        sections.append(f"- Specialized insights: {', '.join(strategy.specialized_insights)}")

    if insights is not None:
        sections.extend(["", "INSTRUMENT CONDITIONS"])
        sections.extend(f"- {line}" for line in insights.key_insights)
        sections.extend(f"- {k}: {v}" for k, v in insights.trading_plan.items())

    if notes:
        sections.extend(["", "TRADER NOTES", notes])

    sections.extend([
        "",
        "Respond with a single JSON object exactly in this shape, no prose outside it:",
        json.dumps(_analysis_schema(hierarchy), indent=2),
    ])
    return "\n".join(sections)


def build_execution_prompt(
    pre_trade: Dict[str, Any],
    context: TradingContext,
    labels: list,
    notes: Optional[str] = None,
) -> str:
    """Prompt for reviewing how a planned trade was executed."""
    schema = {
        "actual_prices": {"entry": "price", "stop": "price", "target": "price"},
        "actual_rr": "number",
        "execution_timing": " | ".join(EXECUTION_TIMINGS),
        "execution_quality_grade": "A+ .. F",
        "behavioral_observations": ["string"],
        "coaching_insights": ["string"],
        "execution_grade_breakdown": {
            "entry_timing": "string",
            "stop_management": "string",
            "target_selection": "string",
            "overall_discipline": "string",
        },
        "confidence_score": "number 0-1",
    }

    sections = [
        f"Review the execution of a {context.instrument} trade against its plan.",
        f"Execution screenshots: {', '.join(labels) or 'none'}",
        "",
        "PLAN",
        json.dumps(pre_trade, indent=2, default=str),
    ]
    if notes:
        sections.extend(["", "EXECUTION NOTES", notes])
    sections.extend([
        "",
        "Respond with a single JSON object exactly in this shape, no prose outside it:",
        json.dumps(schema, indent=2),
    ])
    return "\n".join(sections)


__all__ = ["build_analysis_prompt", "build_execution_prompt"]
