"""
Timeframes Package.

Classifies free-form timeframe labels and resolves an upload
batch into an analytical hierarchy (entry / structure / trend / bias).

Components:
- classifier: label -> TimeframeClassification (total, pure)
- hierarchy: batch -> TimeframeHierarchy
- strategy: scalping suitability, analysis strategy, metadata
"""

from .classifier import classify_timeframe, normalize_label
from .hierarchy import resolve_hierarchy
from .strategy import (
    AnalysisStrategy,
    ScalpingSuitability,
    assess_scalping_suitability,
    format_timeframe_metadata,
    generate_analysis_strategy,
)
from .types import (
    AnalyticalPriority,
    ClassifiedTimeframe,
    HierarchyRole,
    Suitability,
    TimeframeCategory,
    TimeframeClassification,
    TimeframeHierarchy,
    TimeframeInput,
)

__all__ = [
    "classify_timeframe",
    "normalize_label",
    "resolve_hierarchy",
    "AnalysisStrategy",
    "ScalpingSuitability",
    "assess_scalping_suitability",
    "format_timeframe_metadata",
    "generate_analysis_strategy",
    "AnalyticalPriority",
    "ClassifiedTimeframe",
    "HierarchyRole",
    "Suitability",
    "TimeframeCategory",
    "TimeframeClassification",
    "TimeframeHierarchy",
    "TimeframeInput",
]
