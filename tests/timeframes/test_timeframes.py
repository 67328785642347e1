"""
Tests for timeframe classification and hierarchy resolution.

Tests cover:
- Canonical and numeric label classification
- Totality for unrecognized input
- Role assignment and completeness
- Primary selection
- Analysis strategy and persistence metadata
"""

from types import SimpleNamespace

import pytest

from core.exceptions import InputValidationError
from timeframes import (
    AnalyticalPriority,
    HierarchyRole,
    TimeframeCategory,
    TimeframeInput,
    classify_timeframe,
    format_timeframe_metadata,
    generate_analysis_strategy,
    resolve_hierarchy,
)


# =============================================================
# TEST: Classifier
# =============================================================

class TestClassifyTimeframe:
    """Test label classification."""

    @pytest.mark.parametrize("label,category", [
        ("1min", TimeframeCategory.ULTRA_SHORT),
        ("5min", TimeframeCategory.ULTRA_SHORT),
        ("15min", TimeframeCategory.SHORT_TERM),
        ("4hr", TimeframeCategory.SHORT_TERM),
        ("daily", TimeframeCategory.MEDIUM_TERM),
        ("weekly", TimeframeCategory.LONG_TERM),
        ("1M", TimeframeCategory.LONG_TERM),
    ])
    def test_canonical_labels(self, label, category):
        """Canonical labels map to their fixed category."""
        assert classify_timeframe(label).category == category

    @pytest.mark.parametrize("label,category", [
        ("4m", TimeframeCategory.ULTRA_SHORT),
        ("45min", TimeframeCategory.SHORT_TERM),
        ("3h", TimeframeCategory.SHORT_TERM),
        ("12h", TimeframeCategory.MEDIUM_TERM),
        ("5d", TimeframeCategory.LONG_TERM),
        ("2w", TimeframeCategory.LONG_TERM),
    ])
    def test_numeric_labels(self, label, category):
        """Numeric labels are bucketed by threshold."""
        assert classify_timeframe(label).category == category

    @pytest.mark.parametrize("label", ["renko", "", "90min", None, 42, "  "])
    def test_unrecognized_is_custom(self, label):
        """Anything unrecognized is custom and never raises."""
        classification = classify_timeframe(label)
        assert classification.category == TimeframeCategory.CUSTOM
        assert classification.priority == AnalyticalPriority.CONTEXT
        assert classification.weight == 2.5

    def test_deterministic_and_case_insensitive(self):
        """Same label, same classification, regardless of case and padding."""
        assert classify_timeframe("15min") == classify_timeframe(" 15MIN ")
        assert classify_timeframe("daily") == classify_timeframe("daily")


# =============================================================
# TEST: Hierarchy
# =============================================================

class TestResolveHierarchy:
    """Test hierarchy resolution."""

    def test_three_timeframe_batch(self):
        """1min/15min/daily with 1min primary fills entry, structure, trend."""
        hierarchy = resolve_hierarchy([
            TimeframeInput("1min", is_primary=True),
            TimeframeInput("15min"),
            TimeframeInput("daily"),
        ])

        assert hierarchy.entry.label == "1min"
        assert hierarchy.structure.label == "15min"
        assert hierarchy.trend.label == "daily"
        assert hierarchy.bias is None
        assert hierarchy.completeness == 95
        assert hierarchy.primary.label == "1min"

    def test_full_hierarchy_completeness(self):
        """All four roles give completeness 100."""
        hierarchy = resolve_hierarchy(["5min", "1hr", "daily", "weekly"])
        assert hierarchy.completeness == 100
        assert set(hierarchy.roles) == set(HierarchyRole)

    def test_first_of_equal_weight_wins_role(self):
        """Equal weights keep upload order; only the first gets the role."""
        hierarchy = resolve_hierarchy(["5min", "1min"])
        assert hierarchy.entry.label == "5min"
        assert hierarchy.completeness == 60

    def test_custom_labels_get_no_role(self):
        """Custom timeframes contribute nothing to completeness."""
        hierarchy = resolve_hierarchy(["renko"])
        assert hierarchy.roles == {}
        assert hierarchy.completeness == 40

    def test_primary_defaults_to_most_granular(self):
        """Without a flagged primary the lowest-weight timeframe is primary."""
        hierarchy = resolve_hierarchy(["daily", "5min"])
        assert hierarchy.primary.label == "5min"

    def test_empty_batch_rejected(self):
        """At least one timeframe is required."""
        with pytest.raises(InputValidationError):
            resolve_hierarchy([])


# =============================================================
# TEST: Strategy and metadata
# =============================================================

class TestAnalysisStrategy:
    """Test strategy generation and persistence metadata."""

    def test_scalping_strategy(self):
        """Ultra-short plus short-term is an expert scalping strategy."""
        hierarchy = resolve_hierarchy(["1min", "15min", "daily"])
        strategy = generate_analysis_strategy(hierarchy, "mnq_scalping")

        assert strategy.scalping.suitability == "excellent"
        assert strategy.analysis_depth == "expert"
        assert "precision_entry_timing" in strategy.analysis_focus
        assert "scalping_optimization" in strategy.specialized_insights
        assert strategy.confidence_multiplier <= 1.5

    def test_other_styles_skip_specializations(self):
        """Non-scalping styles get no specialized insights."""
        hierarchy = resolve_hierarchy(["1min", "15min"])
        strategy = generate_analysis_strategy(hierarchy, "swing")
        assert strategy.specialized_insights == []

    def test_metadata_keeps_upload_order(self):
        """Metadata lists screenshots in upload order with their files."""
        hierarchy = resolve_hierarchy([TimeframeInput("daily"), TimeframeInput("5min", is_primary=True)])
        stored = {
            "daily": SimpleNamespace(path="/tmp/daily.png", size=10),
            "5min": SimpleNamespace(path="/tmp/5min.png", size=20),
        }

        metadata = format_timeframe_metadata(hierarchy, stored)

        assert [s["timeframe_label"] for s in metadata["screenshots_metadata"]] == ["daily", "5min"]
        assert metadata["timeframes_used"] == "daily,5min"
        assert metadata["primary_timeframe"] == "5min"
        assert metadata["screenshots_metadata"][1]["file_size"] == 20
        assert metadata["screenshots_metadata"][1]["is_primary"] is True
