"""
Specialization - Types.

Result types of the instrument-specific scalping overlay.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List


@dataclass
class SessionTiming:
    """Quality of the trading session at the time of the setup."""

    quality: str
    """optimal / good / fair / acceptable / poor / unknown."""

    risk_adjustment: float
    """Multiplier applied to base risk."""

    reason: str = ""
    """Why the session received this rating."""

    decimal_hour: float = -1.0
    """Parsed time as decimal hours, -1 when unknown."""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "quality": self.quality,
            "risk_adjustment": self.risk_adjustment,
            "reason": self.reason,
            "decimal_hour": self.decimal_hour if self.decimal_hour >= 0 else None,
        }


@dataclass
class ScalpingConditions:
    """Overall scalping conditions score."""

    rating: str
    """excellent / good / fair / poor."""

    score: int
    """0-100."""

    session: SessionTiming
    favorable_conditions: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    recommendations: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "overall_suitability": self.rating,
            "suitability_score": self.score,
            "session_analysis": self.session.to_dict(),
            "favorable_conditions": list(self.favorable_conditions),
            "warnings": list(self.warnings),
            "recommendations": list(self.recommendations),
        }


@dataclass
class RiskParameters:
    """Position sizing guidance for the setup."""

    max_risk_dollars: float
    max_risk_points: float
    recommended_contracts: int
    point_value: float
    typical_spread: float
    stop_buffer: float
    risk_adjustment_factor: float
    account_heat_percentage: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "max_risk_dollars": self.max_risk_dollars,
            "max_risk_points": self.max_risk_points,
            "recommended_contracts": self.recommended_contracts,
            "point_value": self.point_value,
            "typical_spread": self.typical_spread,
            "stop_buffer": self.stop_buffer,
            "risk_adjustment_factor": self.risk_adjustment_factor,
            "account_heat_percentage": self.account_heat_percentage,
        }


@dataclass
class Microstructure:
    """Liquidity and execution notes."""

    liquidity_assessment: str = "high"
    volume_profile_importance: str = "high"
    spread_considerations: List[str] = field(default_factory=list)
    execution_insights: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "liquidity_assessment": self.liquidity_assessment,
            "volume_profile_importance": self.volume_profile_importance,
            "spread_considerations": list(self.spread_considerations),
            "execution_insights": list(self.execution_insights),
        }


@dataclass
class SpecializationInsights:
    """Complete overlay result for one analysis request."""

    instrument: str
    conditions: ScalpingConditions
    risk_parameters: RiskParameters
    microstructure: Microstructure
    key_insights: List[str] = field(default_factory=list)
    trading_plan: Dict[str, str] = field(default_factory=dict)

    @property
    def confidence_multiplier(self) -> float:
        return self.conditions.score / 100

    @property
    def rating(self) -> str:
        return self.conditions.rating

    def to_dict(self) -> Dict[str, Any]:
        return {
            "specialization_type": "scalping_expert",
            "instrument": self.instrument,
            "overall_assessment": self.conditions.rating,
            "confidence_multiplier": round(self.confidence_multiplier, 4),
            "session_analysis": self.conditions.session.to_dict(),
            "scalping_conditions": self.conditions.to_dict(),
            "risk_parameters": self.risk_parameters.to_dict(),
            "microstructure_analysis": self.microstructure.to_dict(),
            "key_insights": list(self.key_insights),
            "trading_plan": dict(self.trading_plan),
            "recommendations": list(self.conditions.recommendations),
        }
