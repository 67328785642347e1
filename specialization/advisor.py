"""
Specialization - Advisor.

============================================================
PURPOSE
============================================================
Optional instrument-specific overlay for intraday scalping.

Given the resolved hierarchy and trading context it produces:
- Session timing quality and risk adjustment
- Scalping conditions score (session, timeframes, account, experience)
- Position sizing parameters
- Microstructure notes and recommendations

The overlay returns None for instruments and styles it does not
cover; callers treat None as "no adjustment".

============================================================
"""

import logging
import math
from datetime import datetime
from typing import List, Optional

from core.config import SpecializationSettings
from core.context import TradingContext
from timeframes.types import TimeframeCategory, TimeframeHierarchy

from .session import analyze_session_timing
from .types import (
    Microstructure,
    RiskParameters,
    ScalpingConditions,
    SessionTiming,
    SpecializationInsights,
)


logger = logging.getLogger(__name__)


def applies_to(context: TradingContext, settings: SpecializationSettings) -> bool:
    """Check whether the overlay covers this context."""
    return (
        context.instrument.upper() in {i.upper() for i in settings.instruments}
        or context.trading_style in settings.trading_styles
    )


def generate_recommendations(
    rating: str,
    session: SessionTiming,
    hierarchy: TimeframeHierarchy,
) -> List[str]:
    """Actionable recommendations from session quality and timeframe mix."""
    recommendations = []

    if session.quality == "optimal":
        recommendations.extend([
            "Execute with standard position size - optimal conditions",
            "Focus on breakout and momentum continuation patterns",
            "Target 0.25% - 0.5% account gains per trade",
        ])
    elif session.quality == "good":
        recommendations.extend([
            "Reduce position size by 15% due to session timing",
            "Focus on higher-probability confluence setups",
            "Tighten profit targets to 0.2% - 0.3% account gains",
        ])
    elif session.quality == "fair":
        recommendations.extend([
            "Reduce position size by 30% - challenging conditions",
            "Only take highest-conviction setups",
            "Consider paper trading during this session",
        ])
    elif session.quality == "acceptable":
        recommendations.extend([
            "Reduce position size by 20% - selective afternoon conditions",
            "Wait for volume confirmation before entry",
        ])
    else:
        recommendations.extend([
            "Avoid trading - poor session conditions for scalping",
            "Use this time for market study and preparation",
        ])

    has_ultra_short = hierarchy.has_category(TimeframeCategory.ULTRA_SHORT)
    has_structure = hierarchy.has_category(TimeframeCategory.SHORT_TERM)

    if not has_ultra_short:
        recommendations.append("Consider adding 1-5 minute timeframe for better entry timing")
    if not has_structure:
        recommendations.append("Add 15-30 minute timeframe for structure confirmation")
    if has_ultra_short and has_structure:
        recommendations.append("Excellent timeframe combination for scalping analysis")
        recommendations.append("Use structure for bias, ultra-short for timing")

    if rating == "poor":
        recommendations.append("Overall conditions poor - consider skipping this setup")

    return recommendations


def assess_scalping_conditions(
    hierarchy: TimeframeHierarchy,
    context: TradingContext,
    settings: SpecializationSettings,
    timestamp: Optional[datetime] = None,
) -> ScalpingConditions:
    """
    Score scalping conditions.

    score = session (risk_adjustment x 40)
          + timeframes (20 ultra-short, 15 short-term)
          + account size tier
          + experience
    """
    session = analyze_session_timing(context.session_info, settings, timestamp)
    favorable = []
    warnings = []

    session_score = session.risk_adjustment * settings.session_score_weight
    favorable.append(f"Session timing: {session.quality} ({round(session_score)}pts)")

    timeframe_score = 0.0
    if hierarchy.has_category(TimeframeCategory.ULTRA_SHORT):
        timeframe_score += settings.ultra_short_bonus
        favorable.append("Entry timeframe available for precise execution")
    else:
        warnings.append("No ultra-short timeframe for precise entry timing")

    if hierarchy.has_category(TimeframeCategory.SHORT_TERM):
        timeframe_score += settings.short_term_bonus
        favorable.append("Structure timeframe provides confluence")
    else:
        warnings.append("No structure timeframe for setup confirmation")

    account_score = settings.account_size_floor_bonus
    for minimum, bonus in settings.account_size_tiers:
        if context.account_size >= minimum:
            account_score = bonus
            favorable.append(f"Account size ${context.account_size:,.0f} supports scalping risk")
            break
    else:
        warnings.append("Account size may be too small for optimal risk management")

    score = session_score + timeframe_score + account_score + settings.experience_bonus

    rating = "poor"
    for minimum, label in settings.rating_thresholds:
        if score >= minimum:
            rating = label
            break

    return ScalpingConditions(
        rating=rating,
        score=round(score),
        session=session,
        favorable_conditions=favorable,
        warnings=warnings,
        recommendations=generate_recommendations(rating, session, hierarchy),
    )


def calculate_risk_parameters(
    account_size: float,
    session: SessionTiming,
    settings: SpecializationSettings,
) -> RiskParameters:
    """Position sizing from base risk scaled by session quality."""
    adjusted_risk = settings.base_risk * session.risk_adjustment
    max_risk_points = adjusted_risk / settings.point_value
    contract_risk = settings.average_daily_range * settings.point_value * settings.contract_range_fraction
    contracts = math.floor(adjusted_risk / contract_risk) if contract_risk > 0 else 1

    return RiskParameters(
        max_risk_dollars=round(adjusted_risk, 2),
        max_risk_points=round(max_risk_points, 2),
        recommended_contracts=max(1, contracts),
        point_value=settings.point_value,
        typical_spread=settings.typical_spread,
        stop_buffer=settings.stop_buffer_points,
        risk_adjustment_factor=session.risk_adjustment,
        account_heat_percentage=round(adjusted_risk / account_size * 100, 2) if account_size > 0 else 0.0,
    )


def analyze_microstructure(
    hierarchy: TimeframeHierarchy,
    session: SessionTiming,
) -> Microstructure:
    analysis = Microstructure()

    if hierarchy.has_category(TimeframeCategory.ULTRA_SHORT):
        analysis.execution_insights.append("Ultra-short timeframe allows for precise entry/exit timing")
        analysis.execution_insights.append("Tick-level analysis possible for optimal fills")
        analysis.spread_considerations.append("Monitor spread widening during low-volume periods")

    if hierarchy.has_category(TimeframeCategory.SHORT_TERM):
        analysis.execution_insights.append("Structure timeframe helps identify institutional activity")
        analysis.volume_profile_importance = "critical"

    if session.quality == "optimal":
        analysis.liquidity_assessment = "excellent"
        analysis.spread_considerations.append("Tightest spreads expected during opening session")
    elif session.quality == "poor":
        analysis.liquidity_assessment = "reduced"
        analysis.spread_considerations.append("Wider spreads possible - use limit orders")
        analysis.execution_insights.append("Reduce size to account for execution risk")

    return analysis


def provide_insights(
    hierarchy: TimeframeHierarchy,
    context: TradingContext,
    settings: Optional[SpecializationSettings] = None,
    timestamp: Optional[datetime] = None,
) -> Optional[SpecializationInsights]:
    """
    Produce the scalping overlay for a request.

    Args:
        hierarchy: Resolved hierarchy
        context: Trading context
        settings: Overlay constants (defaults if omitted)
        timestamp: Setup time, used when session_info is empty

    Returns:
        SpecializationInsights, or None when the overlay does not apply
    """
    settings = settings or SpecializationSettings()
    if not applies_to(context, settings):
        return None

    account_size = context.account_size or settings.default_account_size
    conditions = assess_scalping_conditions(hierarchy, context, settings, timestamp)
    risk = calculate_risk_parameters(account_size, conditions.session, settings)
    microstructure = analyze_microstructure(hierarchy, conditions.session)

    entry = hierarchy.entry
    trading_plan = {
        "entry_strategy": (
            f"Use {entry.label} for precise entry timing"
            if entry else "Add ultra-short timeframe for better entry precision"
        ),
        "risk_management": (
            f"Max risk ${risk.max_risk_dollars} ({risk.max_risk_points} points) "
            f"with {risk.stop_buffer} point buffer"
        ),
        "profit_targets": (
            "0.25% - 0.5% account target per trade"
            if conditions.session.quality == "optimal"
            else "0.15% - 0.3% account target (reduced due to session)"
        ),
    }

    insights = SpecializationInsights(
        instrument=context.instrument,
        conditions=conditions,
        risk_parameters=risk,
        microstructure=microstructure,
        key_insights=[
            f"Scalping suitability: {conditions.rating} ({conditions.score}/100)",
            f"Session quality: {conditions.session.quality} - {conditions.session.reason}",
            f"Recommended risk: ${risk.max_risk_dollars} ({risk.account_heat_percentage}% account)",
            f"Contracts suggested: {risk.recommended_contracts}",
        ],
        trading_plan=trading_plan,
    )

    logger.debug(
        f"Specialization for {context.instrument}: rating={conditions.rating} "
        f"score={conditions.score} session={conditions.session.quality}"
    )
    return insights


__all__ = [
    "applies_to",
    "analyze_microstructure",
    "assess_scalping_conditions",
    "calculate_risk_parameters",
    "generate_recommendations",
    "provide_insights",
]
