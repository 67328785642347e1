"""
Tests for lifecycle rules without a database.

Tests cover:
- Phase transitions
- Execution tokens
- Variances, reward/risk and pnl
- Behavioral patterns and grades
"""

import pytest

from analysis_engine import PriceLevels
from core.exceptions import InvalidTransitionError
from trade_lifecycle import Outcome, PriceVariance, TradePhase
from trade_lifecycle.grading import grade_breakdown, grade_from_variance, learning_synthesis, overall_grade
from trade_lifecycle.state_machine import TransitionGuard
from trade_lifecycle.tokens import issue_token, tokens_match
from trade_lifecycle.variance import (
    classify_behavioral_patterns,
    compute_actual_rr,
    compute_pnl,
    compute_variances,
)


PLANNED = PriceLevels(entry=19700.0, stop=19680.0, target=19740.0)


# =============================================================
# TEST: State machine
# =============================================================

class TestTransitionGuard:
    """Test phase transition rules."""

    @pytest.mark.parametrize("from_phase,to_phase", [
        (TradePhase.PRE_TRADE, TradePhase.COMPLETE),
        (TradePhase.PRE_TRADE, TradePhase.EXECUTION),
        (TradePhase.EXECUTION, TradePhase.COMPLETE),
    ])
    def test_valid(self, from_phase, to_phase):
        allowed, _ = TransitionGuard.can_transition(from_phase, to_phase)
        assert allowed is True
        TransitionGuard.require(from_phase, to_phase)

    @pytest.mark.parametrize("from_phase,to_phase", [
        (TradePhase.COMPLETE, TradePhase.PRE_TRADE),
        (TradePhase.COMPLETE, TradePhase.EXECUTION),
        (TradePhase.EXECUTION, TradePhase.PRE_TRADE),
        (TradePhase.PRE_TRADE, TradePhase.PRE_TRADE),
    ])
    def test_invalid(self, from_phase, to_phase):
        with pytest.raises(InvalidTransitionError):
            TransitionGuard.require(from_phase, to_phase)

    def test_terminal_reason(self):
        _, reason = TransitionGuard.can_transition(TradePhase.COMPLETE, TradePhase.PRE_TRADE)
        assert "terminal" in reason


class TestTokens:
    """Test execution token handling."""

    def test_issued_tokens_differ(self):
        assert issue_token() != issue_token()

    def test_match(self):
        token = issue_token()
        assert tokens_match(token, token) is True
        assert tokens_match(token, token + "x") is False

    @pytest.mark.parametrize("expected,provided", [(None, "a"), ("a", None), ("", ""), (None, None)])
    def test_missing_never_matches(self, expected, provided):
        assert tokens_match(expected, provided) is False


# =============================================================
# TEST: Plan vs actual
# =============================================================

class TestVariance:
    """Test variance, reward/risk and pnl figures."""

    def test_variances(self):
        actual = PriceLevels(entry=19703.0, stop=19682.0, target=19736.0)

        variances = compute_variances(PLANNED, actual)

        assert (variances.entry, variances.stop, variances.target) == (3.0, 2.0, -4.0)

    def test_missing_planned_price(self):
        """A missing planned price counts as no variance."""
        variances = compute_variances(PriceLevels(entry=19700.0), PriceLevels(entry=19701.0, stop=19690.0))
        assert variances.stop == 0.0

    def test_actual_rr(self):
        actual = PriceLevels(entry=19703.0, stop=19680.0, target=19740.0)
        assert compute_actual_rr(actual, 2.0) == 1.61

    def test_actual_rr_zero_risk(self):
        actual = PriceLevels(entry=19700.0, stop=19700.0, target=19740.0)
        assert compute_actual_rr(actual, 2.5) == 2.5
        assert compute_actual_rr(actual, None, default_rr=1.8) == 1.8

    @pytest.mark.parametrize("outcome,pnl", [
        (Outcome.WIN, 80.0),
        (Outcome.LOSS, -40.0),
        (Outcome.BREAKEVEN, 0.0),
        (Outcome.PENDING, 0.0),
    ])
    def test_pnl(self, outcome, pnl):
        assert compute_pnl(outcome, PLANNED, point_value=2.0) == pnl

    @pytest.mark.parametrize("value,parsed", [
        ("WIN", Outcome.WIN),
        (" loss ", Outcome.LOSS),
        ("scratch", Outcome.PENDING),
        (None, Outcome.PENDING),
        (Outcome.BREAKEVEN, Outcome.BREAKEVEN),
    ])
    def test_outcome_parse(self, value, parsed):
        assert Outcome.parse(value) is parsed


class TestBehavioralPatterns:
    """Test threshold classification of execution habits."""

    @pytest.mark.parametrize("variances,expected", [
        (PriceVariance(entry=3.0), ["early_entry"]),
        (PriceVariance(entry=-2.5), ["late_entry"]),
        (PriceVariance(stop=2.5), ["stop_tightening"]),
        (PriceVariance(target=3.5), ["target_extension"]),
        (PriceVariance(entry=2.0, stop=2.0, target=3.0), []),
        (PriceVariance(entry=4.0, target=5.0), ["early_entry", "target_extension"]),
    ])
    def test_classification(self, variances, expected):
        patterns = classify_behavioral_patterns(variances, rr_impact=-0.2)

        assert [p.pattern_type for p in patterns] == expected
        assert all(p.impact == -0.2 and p.suggestion for p in patterns)


# =============================================================
# TEST: Grades
# =============================================================

class TestGrading:
    """Test letter grades."""

    @pytest.mark.parametrize("variance,grade", [
        (0.0, "A+"),
        (-1.0, "A+"),
        (1.5, "A"),
        (3.0, "A-"),
        (-4.0, "B+"),
        (5.0, "B"),
        (6.5, "B-"),
        (10.0, "C+"),
        (10.5, "C"),
    ])
    def test_variance_grade(self, variance, grade):
        assert grade_from_variance(variance) == grade

    def test_overall(self):
        assert overall_grade(["A+", "A+", "A+"]) == "A+"
        assert overall_grade(["A-", "A+", "A+"]) == "A"
        assert overall_grade(["C", "C", "C"]) == "C"
        assert overall_grade([]) == "C"

    def test_breakdown(self):
        breakdown = grade_breakdown(PriceVariance(entry=3.0))
        assert breakdown["overall_discipline"] == "A"

    def test_synthesis(self):
        synthesis = learning_synthesis(
            "pullback_entry", "C", PriceVariance(entry=5.0, stop=3.0), "early", Outcome.LOSS, [],
            ["Chased the move"],
        )

        assert synthesis["pattern_confirmation"] == "pullback_entry pattern contradicted"
        assert synthesis["improvement_areas"] == [
            "Entry timing discipline", "Price level precision", "Overall execution consistency",
        ]
        assert synthesis["strength_reinforcement"] == []
        assert synthesis["execution_lessons"] == ["Chased the move"]
        assert "needs improvement" in synthesis["next_similar_setup_guidance"]
