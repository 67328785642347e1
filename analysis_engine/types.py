"""
Analysis Engine - Schemas.

============================================================
PURPOSE
============================================================
Pydantic models for the structured trade assessment and the
post-execution review.

Provider output is untrusted. Every field has its own
before-validator that repairs the value (clamp, coerce, fall
back to default) instead of rejecting the whole payload, so a
single malformed field never discards the rest of the analysis.

============================================================
"""

import math
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field, field_validator


# =============================================================
# ENUMS & ALLOW-LISTS
# =============================================================

class AnalysisSource(str, Enum):
    PROVIDER = "provider"
    FALLBACK = "fallback"


SETUP_PATTERNS = (
    "opening_breakout",
    "volume_spike",
    "pullback_entry",
    "range_break",
    "momentum_continuation",
    "reversal_pattern",
    "gap_fill",
    "premarket_setup",
)
UNKNOWN_PATTERN = "unknown"

ENTRY_QUALITIES = ("excellent", "good", "fair", "poor")
STOP_PLACEMENTS = ("appropriate", "too_tight", "too_wide", "unclear")
TARGET_SELECTIONS = ("realistic", "aggressive", "conservative", "unclear")
SESSION_TIMINGS = ("optimal", "acceptable", "poor")
RECOMMENDATIONS = ("EXECUTE", "WAIT", "SKIP")
TREND_DIRECTIONS = ("bullish", "bearish", "neutral")
EXECUTION_TIMINGS = ("early", "optimal", "late", "unknown")
EXECUTION_GRADES = ("A+", "A", "A-", "B+", "B", "B-", "C+", "C", "C-", "D", "F")

MAX_OBSERVATIONS = 10


# =============================================================
# COERCION HELPERS
# =============================================================

def _to_float(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    try:
        number = float(str(value).strip().rstrip("%").replace(",", "").lstrip("$"))
    except (TypeError, ValueError):
        return None
    if math.isnan(number) or math.isinf(number):
        return None
    return number


def clamp_number(value: Any, low: float, high: float, default: float) -> float:
    """Clamp to [low, high]; non-numeric input yields the default."""
    number = _to_float(value)
    if number is None:
        return default
    return max(low, min(high, number))


def choose(value: Any, allowed: Sequence[str], default: str, upper: bool = False) -> str:
    """Return the allow-listed spelling of value, or the default."""
    if value is None:
        return default
    text = str(value).strip().replace(" ", "_").replace("-", "_")
    text = text.upper() if upper else text.lower()
    return text if text in allowed else default


def coerce_text(value: Any, default: str = "") -> str:
    if value is None:
        return default
    if isinstance(value, (list, tuple)):
        return " ".join(str(v) for v in value)
    return str(value)


def coerce_string_list(value: Any, limit: int = MAX_OBSERVATIONS) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        items = [value] if value.strip() else []
    elif isinstance(value, (list, tuple)):
        items = [str(v) for v in value if v is not None and str(v).strip()]
    elif isinstance(value, dict):
        items = [f"{k}: {v}" for k, v in value.items()]
    else:
        items = [str(value)]
    return items[:limit]


def coerce_bool(value: Any, default: bool = False) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0
    if isinstance(value, str):
        text = value.strip().lower()
        if text in ("true", "yes", "y", "1"):
            return True
        if text in ("false", "no", "n", "0"):
            return False
    return default


def coerce_price(value: Any) -> Optional[float]:
    number = _to_float(value)
    if number is None or number <= 0:
        return None
    return number


def coerce_mapping(value: Any) -> Dict[str, Any]:
    return dict(value) if isinstance(value, dict) else {}


# =============================================================
# PER-TIMEFRAME ANALYSIS
# =============================================================

class TimeframeAnalysis(BaseModel):
    """Provider assessment of a single uploaded timeframe."""

    model_config = ConfigDict(extra="ignore")

    pattern_identified: str = UNKNOWN_PATTERN
    trend_direction: str = "neutral"
    key_levels: List[str] = Field(default_factory=list)
    volume_analysis: str = ""
    setup_quality: int = 5
    timeframe_role: str = ""

    @field_validator("pattern_identified", mode="before")
    @classmethod
    def _pattern(cls, v):
        text = coerce_text(v).strip()
        return text or UNKNOWN_PATTERN

    @field_validator("trend_direction", mode="before")
    @classmethod
    def _trend(cls, v):
        return choose(v, TREND_DIRECTIONS, "neutral")

    @field_validator("key_levels", mode="before")
    @classmethod
    def _levels(cls, v):
        return coerce_string_list(v)

    @field_validator("volume_analysis", "timeframe_role", mode="before")
    @classmethod
    def _text(cls, v):
        return coerce_text(v)

    @field_validator("setup_quality", mode="before")
    @classmethod
    def _quality(cls, v):
        return round(clamp_number(v, 1, 10, 5))


# =============================================================
# PRE-TRADE ANALYSIS
# =============================================================

class AnalysisResult(BaseModel):
    """
    Structured pre-trade assessment.

    Produced either from provider output (source=provider) or by
    the deterministic fallback (source=fallback). Both paths share
    this schema so downstream code never branches on the source.
    """

    model_config = ConfigDict(extra="ignore")

    source: AnalysisSource = AnalysisSource.PROVIDER

    setup_quality: int = 5
    """Overall setup quality, 1-10."""

    risk_reward_ratio: float = 2.0
    """Planned reward/risk, 0-10."""

    pattern_type: str = UNKNOWN_PATTERN
    """One of SETUP_PATTERNS or 'unknown'."""

    entry_quality: str = "fair"
    stop_placement: str = "unclear"
    target_selection: str = "unclear"
    session_timing: str = "acceptable"

    ai_commentary: str = ""
    risk_amount: float = 50.0
    """Dollar risk of the planned trade, 0-1000."""

    within_limits: bool = True
    trade_frequency: str = ""
    learning_insights: str = ""
    recommendation: str = "WAIT"

    confidence_score: float = 0.5
    """0-1."""

    specific_observations: List[str] = Field(default_factory=list)

    planned_entry: Optional[float] = None
    planned_stop: Optional[float] = None
    planned_target: Optional[float] = None

    low_confidence: bool = False
    """Set when the values are placeholders rather than an assessment."""

    universal_timeframe_analysis: Dict[str, Any] = Field(default_factory=dict)
    individual_timeframe_analysis: Dict[str, TimeframeAnalysis] = Field(default_factory=dict)
    specialized_insights: Dict[str, Any] = Field(default_factory=dict)
    analysis_confidence: float = 0.5
    completeness_score: int = 40

    specialization: Dict[str, Any] = Field(default_factory=dict)
    strategy: Dict[str, Any] = Field(default_factory=dict)

    @field_validator("setup_quality", mode="before")
    @classmethod
    def _setup_quality(cls, v):
        return round(clamp_number(v, 1, 10, 5))

    @field_validator("risk_reward_ratio", mode="before")
    @classmethod
    def _rr(cls, v):
        return round(clamp_number(v, 0, 10, 2.0), 2)

    @field_validator("risk_amount", mode="before")
    @classmethod
    def _risk_amount(cls, v):
        return clamp_number(v, 0, 1000, 50.0)

    @field_validator("confidence_score", "analysis_confidence", mode="before")
    @classmethod
    def _confidence(cls, v):
        return clamp_number(v, 0, 1, 0.5)

    @field_validator("completeness_score", mode="before")
    @classmethod
    def _completeness(cls, v):
        return round(clamp_number(v, 0, 100, 40))

    @field_validator("pattern_type", mode="before")
    @classmethod
    def _pattern_type(cls, v):
        return choose(v, SETUP_PATTERNS, UNKNOWN_PATTERN)

    @field_validator("entry_quality", mode="before")
    @classmethod
    def _entry_quality(cls, v):
        return choose(v, ENTRY_QUALITIES, "fair")

    @field_validator("stop_placement", mode="before")
    @classmethod
    def _stop_placement(cls, v):
        return choose(v, STOP_PLACEMENTS, "unclear")

    @field_validator("target_selection", mode="before")
    @classmethod
    def _target_selection(cls, v):
        return choose(v, TARGET_SELECTIONS, "unclear")

    @field_validator("session_timing", mode="before")
    @classmethod
    def _session_timing(cls, v):
        return choose(v, SESSION_TIMINGS, "acceptable")

    @field_validator("recommendation", mode="before")
    @classmethod
    def _recommendation(cls, v):
        return choose(v, RECOMMENDATIONS, "WAIT", upper=True)

    @field_validator("ai_commentary", "trade_frequency", "learning_insights", mode="before")
    @classmethod
    def _text(cls, v):
        return coerce_text(v)

    @field_validator("within_limits", mode="before")
    @classmethod
    def _within_limits(cls, v):
        return coerce_bool(v, default=True)

    @field_validator("low_confidence", mode="before")
    @classmethod
    def _low_confidence(cls, v):
        return coerce_bool(v)

    @field_validator("specific_observations", mode="before")
    @classmethod
    def _observations(cls, v):
        return coerce_string_list(v)

    @field_validator("planned_entry", "planned_stop", "planned_target", mode="before")
    @classmethod
    def _prices(cls, v):
        return coerce_price(v)

    @field_validator("individual_timeframe_analysis", mode="before")
    @classmethod
    def _individual(cls, v):
        if not isinstance(v, dict):
            return {}
        return {
            str(label): TimeframeAnalysis.model_validate(entry if isinstance(entry, dict) else {})
            for label, entry in v.items()
        }

    @field_validator(
        "universal_timeframe_analysis", "specialized_insights",
        "specialization", "strategy", mode="before",
    )
    @classmethod
    def _mapping(cls, v):
        return coerce_mapping(v)

    @field_validator("source", mode="before")
    @classmethod
    def _source(cls, v):
        try:
            return AnalysisSource(v)
        except ValueError:
            return AnalysisSource.PROVIDER

    @classmethod
    def from_provider_payload(cls, payload: Dict[str, Any]) -> "AnalysisResult":
        """
        Build from a decoded provider JSON object.

        Fields nested under `enhanced_analysis` are lifted to the top
        level; instrument insights may arrive under either
        `mnq_specialized_insights` or `instrument_insights`.
        """
        data = dict(payload)
        enhanced = data.pop("enhanced_analysis", None)
        if isinstance(enhanced, dict):
            for key, value in enhanced.items():
                data.setdefault(key, value)

        for key in ("mnq_specialized_insights", "instrument_insights"):
            if key in data and "specialized_insights" not in data:
                data["specialized_insights"] = data.pop(key)

        data["source"] = AnalysisSource.PROVIDER
        return cls.model_validate(data)

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(mode="json")


# =============================================================
# EXECUTION REVIEW
# =============================================================

class ExecutionAnalysis(BaseModel):
    """Post-execution review of how a planned trade was carried out."""

    model_config = ConfigDict(extra="ignore")

    source: AnalysisSource = AnalysisSource.PROVIDER

    actual_entry: Optional[float] = None
    actual_stop: Optional[float] = None
    actual_target: Optional[float] = None
    actual_rr: float = 2.0

    execution_timing: str = "unknown"
    execution_quality_grade: str = "C"
    behavioral_observations: List[str] = Field(default_factory=list)
    coaching_insights: List[str] = Field(default_factory=list)
    execution_grade_breakdown: Dict[str, str] = Field(default_factory=dict)
    confidence_score: float = 0.5
    low_confidence: bool = False

    @field_validator("actual_entry", "actual_stop", "actual_target", mode="before")
    @classmethod
    def _prices(cls, v):
        return coerce_price(v)

    @field_validator("actual_rr", mode="before")
    @classmethod
    def _rr(cls, v):
        return round(clamp_number(v, 0, 10, 2.0), 2)

    @field_validator("execution_timing", mode="before")
    @classmethod
    def _timing(cls, v):
        return choose(v, EXECUTION_TIMINGS, "unknown")

    @field_validator("execution_quality_grade", mode="before")
    @classmethod
    def _grade(cls, v):
        text = coerce_text(v).strip().upper()
        return text if text in EXECUTION_GRADES else "C"

    @field_validator("behavioral_observations", "coaching_insights", mode="before")
    @classmethod
    def _lists(cls, v):
        return coerce_string_list(v)

    @field_validator("execution_grade_breakdown", mode="before")
    @classmethod
    def _breakdown(cls, v):
        return {str(k): coerce_text(val) for k, val in coerce_mapping(v).items()}

    @field_validator("confidence_score", mode="before")
    @classmethod
    def _confidence(cls, v):
        return clamp_number(v, 0, 1, 0.5)

    @field_validator("low_confidence", mode="before")
    @classmethod
    def _low_confidence(cls, v):
        return coerce_bool(v)

    @field_validator("source", mode="before")
    @classmethod
    def _source(cls, v):
        try:
            return AnalysisSource(v)
        except ValueError:
            return AnalysisSource.PROVIDER

    @classmethod
    def from_provider_payload(cls, payload: Dict[str, Any]) -> "ExecutionAnalysis":
        """Build from provider JSON, flattening `actual_prices`."""
        data = dict(payload)
        prices = data.pop("actual_prices", None)
        if isinstance(prices, dict):
            data.setdefault("actual_entry", prices.get("entry"))
            data.setdefault("actual_stop", prices.get("stop"))
            data.setdefault("actual_target", prices.get("target"))
        data["source"] = AnalysisSource.PROVIDER
        return cls.model_validate(data)

    def to_dict(self) -> Dict[str, Any]:
        data = self.model_dump(mode="json")
        data["actual_prices"] = {
            "entry": self.actual_entry,
            "stop": self.actual_stop,
            "target": self.actual_target,
        }
        return data
