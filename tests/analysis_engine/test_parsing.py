"""
Tests for provider output parsing.

Tests cover:
- JSON extraction from fenced, embedded and malformed text
- Per-field repair of provider payloads
- Price recovery from commentary and notes
"""

import pytest

from analysis_engine import AnalysisResult, AnalysisSource, ExecutionAnalysis, extract_json_object
from analysis_engine.price_extraction import (
    PriceLevels,
    extract_execution_prices,
    extract_from_commentary,
    extract_from_notes,
)
from core.exceptions import ProviderResponseError


# =============================================================
# TEST: JSON extraction
# =============================================================

class TestExtractJsonObject:
    """Test JSON recovery from model answers."""

    def test_plain_object(self):
        assert extract_json_object('{"setup_quality": 7}') == {"setup_quality": 7}

    def test_fenced_block(self):
        """A ```json fenced block is preferred."""
        text = 'Here you go:\n```json\n{"pattern_type": "gap_fill"}\n```\nGood luck!'
        assert extract_json_object(text) == {"pattern_type": "gap_fill"}

    def test_embedded_in_prose(self):
        """An object surrounded by prose is found by brace matching."""
        text = 'Analysis follows {"a": {"b": "}"}, "c": 1} and that is all.'
        assert extract_json_object(text) == {"a": {"b": "}"}, "c": 1}

    def test_trailing_commas_repaired(self):
        """Trailing commas before closing brackets are tolerated."""
        text = '{"observations": ["one", "two",], "score": 5,}'
        assert extract_json_object(text) == {"observations": ["one", "two"], "score": 5}

    @pytest.mark.parametrize("text", ["", None, "no json here", "[1, 2, 3]", "{not: json"])
    def test_nothing_decodes(self, text):
        """Text without an object raises ProviderResponseError."""
        with pytest.raises(ProviderResponseError):
            extract_json_object(text)


# =============================================================
# TEST: Payload repair
# =============================================================

class TestAnalysisResultRepair:
    """Test per-field validation of untrusted provider output."""

    def test_out_of_range_values_clamped(self):
        """Numbers are clamped to their ranges."""
        result = AnalysisResult.from_provider_payload({
            "setup_quality": 14,
            "risk_reward_ratio": -1,
            "confidence_score": "1.7",
            "risk_amount": "$5000",
        })
        assert result.setup_quality == 10
        assert result.risk_reward_ratio == 0
        assert result.confidence_score == 1.0
        assert result.risk_amount == 1000

    def test_unknown_enums_defaulted(self):
        """Values outside the allow-lists take their defaults."""
        result = AnalysisResult.from_provider_payload({
            "pattern_type": "Head and Shoulders",
            "recommendation": "buy now",
            "entry_quality": "Excellent",
            "session_timing": "late",
        })
        assert result.pattern_type == "unknown"
        assert result.recommendation == "WAIT"
        assert result.entry_quality == "excellent"
        assert result.session_timing == "acceptable"

    def test_spelling_variants_normalized(self):
        """Spaces, hyphens and case are normalized before matching."""
        result = AnalysisResult.from_provider_payload({
            "pattern_type": "Opening Breakout",
            "stop_placement": "too-tight",
            "recommendation": "execute",
        })
        assert result.pattern_type == "opening_breakout"
        assert result.stop_placement == "too_tight"
        assert result.recommendation == "EXECUTE"

    def test_enhanced_analysis_flattened(self):
        """Fields under enhanced_analysis are lifted; insights are renamed."""
        result = AnalysisResult.from_provider_payload({
            "enhanced_analysis": {"setup_quality": 8, "planned_entry": "19,700"},
            "mnq_specialized_insights": {"note": "tight spreads"},
            "individual_timeframe_analysis": {"5min": {"trend_direction": "Bullish", "setup_quality": 99}},
        })
        assert result.setup_quality == 8
        assert result.planned_entry == 19700.0
        assert result.specialized_insights == {"note": "tight spreads"}
        assert result.individual_timeframe_analysis["5min"].trend_direction == "bullish"
        assert result.individual_timeframe_analysis["5min"].setup_quality == 10
        assert result.source is AnalysisSource.PROVIDER

    def test_wrong_types_do_not_raise(self):
        """Lists, strings and garbage in typed fields are repaired."""
        result = AnalysisResult.from_provider_payload({
            "specific_observations": "single note",
            "within_limits": "no",
            "planned_stop": "n/a",
            "universal_timeframe_analysis": ["not", "a", "dict"],
            "ai_commentary": ["part one", "part two"],
        })
        assert result.specific_observations == ["single note"]
        assert result.within_limits is False
        assert result.planned_stop is None
        assert result.universal_timeframe_analysis == {}
        assert result.ai_commentary == "part one part two"

    def test_observations_capped(self):
        result = AnalysisResult.from_provider_payload({"specific_observations": [str(i) for i in range(25)]})
        assert len(result.specific_observations) == 10

    def test_execution_payload(self):
        """Actual prices are flattened and the grade validated."""
        review = ExecutionAnalysis.from_provider_payload({
            "actual_prices": {"entry": 19702, "stop": "19680", "target": None},
            "execution_timing": "EARLY",
            "execution_quality_grade": "b+",
            "behavioral_observations": ["chased entry"],
        })
        assert review.actual_entry == 19702.0
        assert review.actual_stop == 19680.0
        assert review.actual_target is None
        assert review.execution_timing == "early"
        assert review.execution_quality_grade == "B+"
        assert review.to_dict()["actual_prices"]["entry"] == 19702.0


# =============================================================
# TEST: Price extraction
# =============================================================

class TestPriceExtraction:
    """Test regex price recovery."""

    def test_notes(self):
        levels = extract_from_notes("Long idea: entry 19700 stop 19680 target 19740")
        assert (levels.entry, levels.stop, levels.target) == (19700.0, 19680.0, 19740.0)
        assert levels.risk_reward() == 2.0

    def test_notes_without_prices(self):
        assert extract_from_notes("looks bullish").known_count == 0
        assert extract_from_notes(None).known_count == 0

    def test_commentary_projects_target(self):
        """Missing target is projected from entry, stop and ratio."""
        levels = extract_from_commentary(["Enter at 19700 with stop at 19690"], rr=2.5)
        assert levels.entry == 19700.0
        assert levels.stop == 19690.0
        assert levels.target == 19725.0

    def test_short_trade_projection(self):
        """A stop above entry projects the target below it."""
        levels = PriceLevels(entry=19700.0, stop=19710.0)
        levels.project_target(2.0)
        assert levels.target == 19680.0

    def test_zero_risk_uses_default(self):
        assert PriceLevels(entry=100.0, stop=100.0, target=110.0).risk_reward(1.5) == 1.5

    def test_execution_notes(self):
        levels = extract_execution_prices("Entered at 19703, stop 19680, exited 19735")
        assert levels.entry == 19703.0
        assert levels.stop == 19680.0
        assert levels.target == 19735.0
