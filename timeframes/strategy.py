"""
Timeframes - Analysis Strategy.

============================================================
PURPOSE
============================================================
Derives analysis guidance from a resolved hierarchy:

- Scalping suitability of the uploaded timeframe combination
- Analysis focus tags and confidence multiplier
- Storage metadata for the uploaded screenshots

============================================================
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

from .types import TimeframeCategory, TimeframeHierarchy


MAX_CONFIDENCE_MULTIPLIER = 1.5


@dataclass
class ScalpingSuitability:
    """Scalping fitness of a timeframe combination."""

    suitability: str = "poor"
    """poor / fair / good / excellent."""

    score: int = 0
    """0-100."""

    recommendations: List[str] = field(default_factory=list)

    @property
    def ideal(self) -> bool:
        return self.suitability in ("excellent", "good")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "suitability": self.suitability,
            "score": self.score,
            "recommendations": list(self.recommendations),
            "ideal_for_scalping": self.ideal,
        }


@dataclass
class AnalysisStrategy:
    """Analysis guidance embedded into the provider request."""

    analysis_focus: List[str] = field(default_factory=list)
    confidence_multiplier: float = 1.0
    specialized_insights: List[str] = field(default_factory=list)
    analysis_depth: str = "standard"
    scalping: ScalpingSuitability = field(default_factory=ScalpingSuitability)
    hierarchy_completeness: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "analysis_focus": list(self.analysis_focus),
            "confidence_multiplier": round(self.confidence_multiplier, 4),
            "specialized_insights": list(self.specialized_insights),
            "analysis_depth": self.analysis_depth,
            "scalping_suitability": self.scalping.to_dict(),
            "hierarchy_completeness": self.hierarchy_completeness,
        }


def assess_scalping_suitability(hierarchy: TimeframeHierarchy) -> ScalpingSuitability:
    """Score how well the uploaded combination supports intraday scalping."""
    has_ultra_short = hierarchy.has_category(TimeframeCategory.ULTRA_SHORT)
    has_short_term = hierarchy.has_category(TimeframeCategory.SHORT_TERM)

    result = ScalpingSuitability()

    if has_ultra_short:
        result.score += 40
        result.suitability = "fair"
        result.recommendations.append("Ultra-short timeframe present for entry timing")

    if has_short_term:
        result.score += 30
        if result.suitability == "fair":
            result.suitability = "good"
        result.recommendations.append("Short-term timeframe provides structure context")

    if has_ultra_short and has_short_term:
        result.score += 20
        result.suitability = "excellent"
        result.recommendations.append("Optimal combination for scalping analysis")

    if len(hierarchy.timeframes) >= 3:
        result.score += 10
        result.recommendations.append("Multiple timeframes enhance confluence analysis")

    result.score = min(result.score, 100)
    return result


def generate_analysis_strategy(
    hierarchy: TimeframeHierarchy,
    trading_style: str = "mnq_scalping",
    scalping_styles: tuple = ("mnq_scalping",),
) -> AnalysisStrategy:
    """
    Build analysis focus and confidence multiplier for a hierarchy.

    Args:
        hierarchy: Resolved hierarchy
        trading_style: Caller's trading style
        scalping_styles: Styles that receive the scalping specializations

    Returns:
        AnalysisStrategy
    """
    strategy = AnalysisStrategy(
        scalping=assess_scalping_suitability(hierarchy),
        hierarchy_completeness=hierarchy.completeness,
    )

    if hierarchy.entry:
        strategy.analysis_focus.append("precision_entry_timing")
        strategy.confidence_multiplier += 0.2

    if hierarchy.structure:
        strategy.analysis_focus.append("structural_confluence")
        strategy.confidence_multiplier += 0.25

    if hierarchy.trend:
        strategy.analysis_focus.append("trend_alignment")
        strategy.confidence_multiplier += 0.15

    if trading_style in scalping_styles:
        if strategy.scalping.ideal:
            strategy.specialized_insights.extend([
                "session_analysis",
                "volatility_assessment",
                "micro_futures_considerations",
            ])
            strategy.analysis_depth = "expert"
            strategy.confidence_multiplier += 0.1

        entry = hierarchy.entry
        if entry and entry.classification.category == TimeframeCategory.ULTRA_SHORT:
            strategy.specialized_insights.extend([
                "scalping_optimization",
                "session_timing_analysis",
            ])

    strategy.confidence_multiplier = min(strategy.confidence_multiplier, MAX_CONFIDENCE_MULTIPLIER)
    return strategy


def format_timeframe_metadata(
    hierarchy: TimeframeHierarchy,
    stored_files: Optional[Mapping[str, Any]] = None,
) -> Dict[str, Any]:
    """
    Flatten a hierarchy (and the stored file per label) for persistence.

    Args:
        hierarchy: Resolved hierarchy
        stored_files: label -> object with `path` and `size` attributes

    Returns:
        Dict with screenshots_metadata, timeframes_used,
        primary_timeframe and analysis_completeness_score
    """
    stored_files = stored_files or {}
    screenshots = []

    for tf in sorted(hierarchy.timeframes, key=lambda t: t.input_index):
        stored = stored_files.get(tf.label)
        screenshots.append({
            "timeframe_label": tf.label,
            "screenshot_path": getattr(stored, "path", None),
            "file_size": getattr(stored, "size", None),
            "timeframe_category": tf.classification.category.value,
            "timeframe_priority": tf.classification.priority.value,
            "suitability": tf.classification.suitability.value,
            "role": tf.role.value if tf.role else None,
            "is_primary": tf is hierarchy.primary,
        })

    return {
        "screenshots_metadata": screenshots,
        "timeframes_used": ",".join(s["timeframe_label"] for s in screenshots),
        "primary_timeframe": hierarchy.primary.label,
        "analysis_completeness_score": hierarchy.completeness,
    }


__all__ = [
    "AnalysisStrategy",
    "ScalpingSuitability",
    "assess_scalping_suitability",
    "generate_analysis_strategy",
    "format_timeframe_metadata",
]
