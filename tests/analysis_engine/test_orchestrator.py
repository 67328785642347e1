"""
Tests for the analysis orchestrator.

Tests cover:
- Provider path with price completion from commentary
- Fallback on every provider failure
- Execution review with planned-price defaults
- Specialization adjustments
"""

import json
from unittest.mock import MagicMock

import anthropic
import httpx
import pytest

from analysis_engine import (
    AnalysisOrchestrator,
    AnalysisSource,
    AnthropicVisionProvider,
    VisionProvider,
    apply_specialization_adjustments,
    synthesize_fallback,
)
from analysis_engine.types import AnalysisResult
from core.context import TradingContext
from core.exceptions import ProviderResponseError, ProviderTransientError
from timeframes import resolve_hierarchy


PLANNED = {
    "pattern_type": "pullback_entry",
    "setup_quality": 7,
    "planned_entry": 19700.0,
    "planned_stop": 19680.0,
    "planned_target": 19740.0,
    "planned_rr": 2.0,
    "risk_amount": 40.0,
}


@pytest.fixture
def neutral_context():
    """A context the scalping overlay does not cover."""
    return TradingContext(instrument="ES", trading_style="swing", session_info="9:35 AM")


@pytest.fixture
def hierarchy():
    return resolve_hierarchy(["5min", "15min"])


@pytest.fixture
def files(tmp_path):
    paths = {}
    for label in ("5min", "15min"):
        path = tmp_path / f"{label}.png"
        path.write_bytes(b"\x89PNG chart")
        paths[label] = path
    return paths


@pytest.fixture
def provider():
    return MagicMock(spec=VisionProvider)


@pytest.fixture
def orchestrator(provider, config):
    return AnalysisOrchestrator(provider=provider, config=config)


# =============================================================
# TEST: Provider path
# =============================================================

class TestProviderAnalysis:
    """Test the provider path."""

    def test_structured_answer(self, orchestrator, provider, files, hierarchy, neutral_context):
        """A fenced answer is parsed and missing prices completed."""
        payload = {
            "enhanced_analysis": {
                "setup_quality": 8,
                "risk_reward_ratio": 2.5,
                "pattern_type": "pullback_entry",
                "ai_commentary": "Enter at 19700 with stop at 19690.",
                "recommendation": "EXECUTE",
                "confidence_score": 0.8,
            },
        }
        provider.analyze.return_value = f"```json\n{json.dumps(payload)}\n```"

        result = orchestrator.request_analysis(files, neutral_context, hierarchy)

        assert result.source is AnalysisSource.PROVIDER
        assert result.setup_quality == 8
        assert result.pattern_type == "pullback_entry"
        assert (result.planned_entry, result.planned_stop, result.planned_target) == (19700.0, 19690.0, 19725.0)
        assert result.completeness_score == hierarchy.completeness
        assert result.confidence_score == 0.8
        assert result.strategy

        attachments = provider.analyze.call_args.args[1]
        assert [a.label for a in attachments] == ["5min", "15min"]

    def test_provider_prices_kept(self, orchestrator, provider, files, hierarchy, neutral_context):
        """Prices given by the provider are not overwritten."""
        provider.analyze.return_value = json.dumps({
            "planned_entry": 19800, "planned_stop": 19790, "planned_target": 19830,
            "ai_commentary": "Enter at 19700",
        })

        result = orchestrator.request_analysis(files, neutral_context, hierarchy)

        assert result.planned_entry == 19800.0
        assert result.planned_target == 19830.0


# =============================================================
# TEST: Fallback
# =============================================================

class TestFallback:
    """Test that provider failures never escape."""

    @pytest.mark.parametrize("failure", [
        ProviderTransientError("timeout", provider="mock"),
        ProviderResponseError("no json"),
    ])
    def test_provider_failure(self, orchestrator, provider, files, hierarchy, neutral_context, failure):
        provider.analyze.side_effect = failure

        result = orchestrator.request_analysis(
            files, neutral_context, hierarchy, notes="entry 19700 stop 19680 target 19740",
        )

        assert result.source is AnalysisSource.FALLBACK
        assert result.risk_reward_ratio == 2.0
        assert result.risk_amount == 40.0
        assert result.confidence_score == 0.5
        assert result.low_confidence is False

    def test_answer_without_json(self, orchestrator, provider, files, hierarchy, neutral_context):
        provider.analyze.return_value = "I cannot see the chart clearly."

        result = orchestrator.request_analysis(files, neutral_context, hierarchy)

        assert result.source is AnalysisSource.FALLBACK

    def test_unreadable_attachment(self, orchestrator, provider, tmp_path, hierarchy, neutral_context):
        """A missing screenshot falls back without calling the provider."""
        result = orchestrator.request_analysis(
            {"5min": tmp_path / "gone.png"}, neutral_context, hierarchy,
        )

        assert result.source is AnalysisSource.FALLBACK
        provider.analyze.assert_not_called()

    def test_unvalidated_sdk_response(self, config, files, hierarchy, neutral_context):
        """Any SDK error from the real provider still ends in the fallback."""
        client = MagicMock()
        client.messages.create.side_effect = anthropic.APIResponseValidationError(
            response=httpx.Response(200, request=httpx.Request("POST", "https://api.anthropic.com/v1/messages")),
            body=None,
        )
        orchestrator = AnalysisOrchestrator(
            provider=AnthropicVisionProvider(config.provider, client=client), config=config,
        )

        result = orchestrator.request_analysis(
            files, neutral_context, hierarchy, notes="entry 19700 stop 19680 target 19740",
        )

        assert result.source is AnalysisSource.FALLBACK
        assert result.risk_reward_ratio == 2.0
        client.messages.create.assert_called_once()

    def test_placeholders_without_prices(self, hierarchy, neutral_context):
        """Notes without prices give neutral, low-confidence values."""
        result = synthesize_fallback("looks good", hierarchy, neutral_context)

        assert result.low_confidence is True
        assert result.confidence_score == 0.3
        assert result.risk_amount == 50.0
        assert result.planned_entry is None
        assert set(result.individual_timeframe_analysis) == {"5min", "15min"}

    def test_projected_target(self, hierarchy, neutral_context):
        """Entry and stop only: target projected at the default ratio."""
        result = synthesize_fallback("gap fill entry 19700 stop 19690", hierarchy, neutral_context)

        assert result.planned_target == 19720.0
        assert result.risk_reward_ratio == 2.0
        assert result.pattern_type == "gap_fill"


# =============================================================
# TEST: Execution review
# =============================================================

class TestExecutionAnalysis:
    """Test the execution review."""

    def test_missing_actuals_default_to_plan(self, orchestrator, provider, files, neutral_context):
        provider.analyze.return_value = json.dumps({
            "actual_prices": {"entry": 19703},
            "execution_timing": "early",
            "execution_quality_grade": "B",
        })

        review = orchestrator.request_execution_analysis(PLANNED, files, None, neutral_context)

        assert review.source is AnalysisSource.PROVIDER
        assert review.actual_entry == 19703.0
        assert review.actual_stop == 19680.0
        assert review.actual_target == 19740.0
        assert review.execution_timing == "early"

    def test_fallback_reads_notes(self, orchestrator, provider, neutral_context):
        provider.analyze.side_effect = ProviderTransientError("down", provider="mock")

        review = orchestrator.request_execution_analysis(
            PLANNED, {}, "entered at 19703", neutral_context,
        )

        assert review.source is AnalysisSource.FALLBACK
        assert review.actual_entry == 19703.0
        assert review.actual_stop == 19680.0
        assert review.low_confidence is False

    def test_fallback_without_notes(self, orchestrator, provider, neutral_context):
        provider.analyze.side_effect = ProviderTransientError("down", provider="mock")

        review = orchestrator.request_execution_analysis(PLANNED, {}, None, neutral_context)

        assert review.actual_entry == 19700.0
        assert review.actual_rr == 2.0
        assert review.low_confidence is True


# =============================================================
# TEST: Specialization adjustments
# =============================================================

class TestSpecializationAdjustments:
    """Test the overlay applied to a finished analysis."""

    def _insights(self, multiplier, rating):
        insights = MagicMock()
        insights.confidence_multiplier = multiplier
        insights.rating = rating
        insights.to_dict.return_value = {"overall_assessment": rating}
        return insights

    def test_no_insights_unchanged(self):
        result = AnalysisResult(confidence_score=0.7)
        assert apply_specialization_adjustments(result, None) is result

    def test_confidence_scaled(self):
        result = AnalysisResult(confidence_score=0.8, completeness_score=60)

        adjusted = apply_specialization_adjustments(result, self._insights(0.5, "fair"))

        assert adjusted.confidence_score == pytest.approx(0.4)
        assert adjusted.completeness_score == 60
        assert adjusted.specialization == {"overall_assessment": "fair"}

    def test_excellent_bonus_capped(self):
        result = AnalysisResult(confidence_score=0.9, completeness_score=98)

        adjusted = apply_specialization_adjustments(result, self._insights(1.2, "excellent"))

        assert adjusted.confidence_score == 1.0
        assert adjusted.completeness_score == 100
