"""
Timeframes - Types.

============================================================
PURPOSE
============================================================
Type definitions for timeframe classification and hierarchy
resolution.

A classification is a pure function of its label: it is
recomputed on demand and never stored on its own.

============================================================
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


# ============================================================
# CLASSIFICATION ENUMS
# ============================================================

class TimeframeCategory(str, Enum):
    """Horizon bucket of a timeframe label."""

    ULTRA_SHORT = "ultra_short"
    """Seconds to five minutes."""

    SHORT_TERM = "short_term"
    """Ten minutes to four hours."""

    MEDIUM_TERM = "medium_term"
    """Daily to three days."""

    LONG_TERM = "long_term"
    """Weekly and beyond."""

    CUSTOM = "custom"
    """Label could not be interpreted."""


class AnalyticalPriority(str, Enum):
    """What a timeframe is used for in the analysis."""

    ENTRY_TIMING = "entry_timing"
    STRUCTURE = "structure"
    TREND = "trend"
    BIAS = "bias"
    CONTEXT = "context"


class Suitability(str, Enum):
    """Qualitative fit of a timeframe for intraday scalping."""

    EXCELLENT = "excellent"
    GOOD = "good"
    MODERATE = "moderate"
    LIMITED = "limited"
    UNKNOWN = "unknown"


class HierarchyRole(str, Enum):
    """Analytical role assigned to at most one timeframe per request."""

    ENTRY = "entry"
    STRUCTURE = "structure"
    TREND = "trend"
    BIAS = "bias"


# Priority that fills each role
ROLE_FOR_PRIORITY: Dict[AnalyticalPriority, HierarchyRole] = {
    AnalyticalPriority.ENTRY_TIMING: HierarchyRole.ENTRY,
    AnalyticalPriority.STRUCTURE: HierarchyRole.STRUCTURE,
    AnalyticalPriority.TREND: HierarchyRole.TREND,
    AnalyticalPriority.BIAS: HierarchyRole.BIAS,
}

# Completeness contribution of each filled role
ROLE_COMPLETENESS_POINTS: Dict[HierarchyRole, int] = {
    HierarchyRole.ENTRY: 20,
    HierarchyRole.STRUCTURE: 25,
    HierarchyRole.TREND: 10,
    HierarchyRole.BIAS: 5,
}

BASE_COMPLETENESS = 40


# ============================================================
# CLASSIFICATION
# ============================================================

@dataclass(frozen=True)
class TimeframeClassification:
    """Semantic classification of a single timeframe label."""

    category: TimeframeCategory
    """Horizon bucket."""

    priority: AnalyticalPriority
    """Analytical priority."""

    weight: float
    """Sort weight, lower is a shorter horizon."""

    suitability: Suitability
    """Fit for intraday scalping."""

    description: str = ""
    """Human-readable summary."""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "category": self.category.value,
            "priority": self.priority.value,
            "weight": self.weight,
            "suitability": self.suitability.value,
            "description": self.description,
        }


# ============================================================
# HIERARCHY
# ============================================================

@dataclass(frozen=True)
class TimeframeInput:
    """One uploaded timeframe as supplied by the caller."""

    label: str
    """Free-form timeframe label."""

    is_primary: bool = False
    """Caller marked this timeframe as primary."""


@dataclass
class ClassifiedTimeframe:
    """An uploaded timeframe with its classification and assigned role."""

    label: str
    classification: TimeframeClassification
    is_primary: bool = False
    input_index: int = 0
    """Position in the original upload order."""

    role: Optional[HierarchyRole] = None
    """Assigned role, None when another item already fills it."""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "label": self.label,
            "is_primary": self.is_primary,
            "role": self.role.value if self.role else None,
            **self.classification.to_dict(),
        }


@dataclass
class TimeframeHierarchy:
    """
    Hierarchy resolved for one analysis request.

    Holds at most one timeframe per role. `primary` always refers
    to one of `timeframes`.
    """

    timeframes: List[ClassifiedTimeframe]
    """All uploaded timeframes, sorted ascending by weight."""

    primary: ClassifiedTimeframe
    """Primary timeframe."""

    roles: Dict[HierarchyRole, ClassifiedTimeframe] = field(default_factory=dict)
    """Filled roles."""

    completeness: int = BASE_COMPLETENESS
    """0-100 score from the filled roles."""

    @property
    def entry(self) -> Optional[ClassifiedTimeframe]:
        return self.roles.get(HierarchyRole.ENTRY)

    @property
    def structure(self) -> Optional[ClassifiedTimeframe]:
        return self.roles.get(HierarchyRole.STRUCTURE)

    @property
    def trend(self) -> Optional[ClassifiedTimeframe]:
        return self.roles.get(HierarchyRole.TREND)

    @property
    def bias(self) -> Optional[ClassifiedTimeframe]:
        return self.roles.get(HierarchyRole.BIAS)

    @property
    def labels(self) -> List[str]:
        return [tf.label for tf in self.timeframes]

    def has_category(self, category: TimeframeCategory) -> bool:
        return any(tf.classification.category == category for tf in self.timeframes)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "timeframes": [tf.to_dict() for tf in self.timeframes],
            "primary": self.primary.label,
            "roles": {role.value: tf.label for role, tf in self.roles.items()},
            "completeness": self.completeness,
        }
