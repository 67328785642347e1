"""
Specialization Package.

Instrument-specific scalping overlay (session timing, conditions
score, position sizing, microstructure). Applies only to the
configured instruments and trading styles.
"""

from .advisor import (
    analyze_microstructure,
    applies_to,
    assess_scalping_conditions,
    calculate_risk_parameters,
    generate_recommendations,
    provide_insights,
)
from .session import analyze_session_timing, parse_session_hour, session_clock
from .types import (
    Microstructure,
    RiskParameters,
    ScalpingConditions,
    SessionTiming,
    SpecializationInsights,
)

__all__ = [
    "analyze_microstructure",
    "applies_to",
    "assess_scalping_conditions",
    "calculate_risk_parameters",
    "generate_recommendations",
    "provide_insights",
    "analyze_session_timing",
    "parse_session_hour",
    "session_clock",
    "Microstructure",
    "RiskParameters",
    "ScalpingConditions",
    "SessionTiming",
    "SpecializationInsights",
]
