"""
Tests for the two-phase trade lifecycle.

Tests cover:
- Pre-trade creation (token, alerts, screenshots, pattern occurrence)
- Execution submission (variances, grades, learning)
- Token and phase guards
- Lost transition race
- Settle-once outcome reporting and the trade summary
"""

from datetime import datetime, timezone

import pytest

from analysis_engine import AnalysisResult, ExecutionAnalysis
from core.exceptions import (
    OutcomeSettledError,
    PhaseConflictError,
    TokenMismatchError,
    TradeNotFoundError,
)
from pattern_learning import PatternLearningTracker
from storage.repositories import TradeRepository
from trade_lifecycle import ExecutionSubmission, Outcome, TradePhase


def _setup_stats(session, name):
    rows = {r["pattern_name"]: r for r in PatternLearningTracker(session).list_setup_patterns()}
    return rows.get(name)


# =============================================================
# TEST: Pre-trade
# =============================================================

class TestCreatePreTrade:
    """Test creation of the planned trade."""

    def test_record_fields(self, session, create_trade):
        trade = create_trade(session)

        assert trade.phase == TradePhase.PRE_TRADE.value
        assert trade.execution_token
        assert trade.planned_rr == 2.0
        assert trade.within_limits is True
        assert trade.outcome == "pending"
        assert trade.executed is False
        assert (trade.week_number, trade.year) == (10, 2025)
        assert trade.timeframes_used == "5min,15min"
        assert trade.primary_timeframe == "5min"
        assert trade.analysis_data["validation"] == {"valid": True, "violations": []}

    def test_tokens_unique(self, session, create_trade):
        assert create_trade(session).execution_token != create_trade(session).execution_token

    def test_screenshots_recorded(self, session, create_trade):
        trade = create_trade(session)

        assert [s.timeframe_label for s in trade.screenshots] == ["5min", "15min"]
        assert all(s.phase == "pre_trade" for s in trade.screenshots)
        assert trade.screenshots[0].screenshot_path == "/uploads/5min.png"
        assert trade.screenshots[0].is_primary is True

    def test_violations_become_alerts(self, session, create_trade):
        risky = AnalysisResult(risk_amount=75, risk_reward_ratio=1.5, pattern_type="gap_fill")

        trade = create_trade(session, analysis=risky)

        assert trade.within_limits is False
        assert sorted(a.rule for a in trade.alerts) == ["MAX_RISK", "RISK_REWARD"]

    def test_pattern_occurrence(self, session, create_trade):
        create_trade(session)
        create_trade(session)

        assert _setup_stats(session, "pullback_entry")["total_count"] == 2

    def test_unknown_pattern_not_recorded(self, session, create_trade):
        create_trade(session, analysis=AnalysisResult())

        assert _setup_stats(session, "unknown") is None


# =============================================================
# TEST: Execution
# =============================================================

class TestSubmitExecution:
    """Test execution submission."""

    def test_early_entry(self, session, manager, create_trade, early_entry):
        trade = create_trade(session)

        result = manager.submit_execution(session, trade.id, trade.execution_token, early_entry)

        assert result.phase is TradePhase.COMPLETE
        assert result.variances.entry == 3.0
        assert result.variances.stop == 0.0
        assert result.actual_rr == 1.61
        assert result.rr_impact == pytest.approx(-0.39)
        assert [p.pattern_type for p in result.patterns] == ["early_entry"]
        assert result.grade_breakdown == {
            "entry_timing": "A-",
            "stop_management": "A+",
            "target_selection": "A+",
            "overall_discipline": "A",
        }
        assert result.execution_grade == "A"
        assert result.pnl == 74.0
        assert "Entry timing discipline" in result.learning_synthesis["improvement_areas"]

    def test_record_completed(self, session, manager, create_trade, early_entry):
        trade = create_trade(session)
        manager.submit_execution(session, trade.id, trade.execution_token, early_entry)

        stored = TradeRepository(session).get(trade.id)
        assert stored.phase == "complete"
        assert stored.actual_entry == 19703.0
        assert stored.linked_execution_id
        assert stored.executed is True
        assert stored.outcome == "win"
        assert stored.actual_pnl == 74.0
        assert stored.execution_analysis["execution_patterns"][0]["type"] == "early_entry"

    def test_pattern_learning_updated(self, session, manager, create_trade, early_entry):
        trade = create_trade(session)
        tracker = PatternLearningTracker(session)
        tracker.record_execution_pattern("early_entry", 0.5)

        manager.submit_execution(session, trade.id, trade.execution_token, early_entry)

        [row] = tracker.dominant_execution_patterns()
        assert row["frequency_count"] == 2
        assert row["average_impact"] == pytest.approx(0.055)

        stats = _setup_stats(session, "pullback_entry")
        assert stats["success_count"] == 1
        assert stats["confidence_score"] == pytest.approx(0.55)

    def test_execution_screenshots(self, session, manager, create_trade):
        trade = create_trade(session)
        submission = ExecutionSubmission(
            analysis=ExecutionAnalysis(),
            screenshots={"fill": "/uploads/fill.png"},
        )

        manager.submit_execution(session, trade.id, trade.execution_token, submission)

        execution_shots = [s for s in trade.screenshots if s.phase == "complete"]
        assert [s.timeframe_label for s in execution_shots] == ["fill"]

    def test_missing_actuals_use_plan(self, session, manager, create_trade):
        """No actual prices: zero variance, planned ratio, pending outcome."""
        trade = create_trade(session)

        result = manager.submit_execution(
            session, trade.id, trade.execution_token, ExecutionSubmission(analysis=ExecutionAnalysis()),
        )

        assert result.variances.to_dict() == {"entry_variance": 0.0, "stop_variance": 0.0, "target_variance": 0.0}
        assert result.rr_impact == 0.0
        assert result.patterns == []
        assert result.outcome is Outcome.PENDING
        assert TradeRepository(session).get(trade.id).actual_pnl is None


# =============================================================
# TEST: Guards
# =============================================================

class TestExecutionGuards:
    """Test token, phase and race guards."""

    def test_unknown_trade(self, session, manager, early_entry):
        with pytest.raises(TradeNotFoundError):
            manager.submit_execution(session, "missing", "token", early_entry)

    def test_token_mismatch(self, session, manager, create_trade, early_entry):
        trade = create_trade(session)

        with pytest.raises(TokenMismatchError) as exc_info:
            manager.submit_execution(session, trade.id, "wrong-token", early_entry)

        assert exc_info.value.status_code == 401
        assert TradeRepository(session).get(trade.id).phase == "pre_trade"

    def test_authorize_is_read_only(self, session, manager, create_trade):
        trade = create_trade(session)

        assert manager.authorize_execution(session, trade.id, trade.execution_token) is trade
        with pytest.raises(TokenMismatchError):
            manager.authorize_execution(session, trade.id, "wrong-token")
        assert TradeRepository(session).get(trade.id).phase == "pre_trade"

    def test_resubmission_conflicts(self, session, manager, create_trade, early_entry):
        trade = create_trade(session)
        token = trade.execution_token
        manager.submit_execution(session, trade.id, token, early_entry)

        with pytest.raises(PhaseConflictError) as exc_info:
            manager.submit_execution(session, trade.id, token, early_entry)

        assert exc_info.value.status_code == 409

    def test_lost_race(self, session, manager, create_trade, early_entry, monkeypatch):
        """A conditional update matching no row is a conflict."""
        trade = create_trade(session)
        monkeypatch.setattr(TradeRepository, "complete_execution", lambda self, *args, **kwargs: 0)

        with pytest.raises(PhaseConflictError):
            manager.submit_execution(session, trade.id, trade.execution_token, early_entry)


# =============================================================
# TEST: Outcome and summary
# =============================================================

class TestOutcomeAndSummary:
    """Test outcome reporting and the combined trade document."""

    def test_report_loss(self, session, manager, create_trade):
        trade = create_trade(session)

        updated = manager.report_outcome(session, trade.id, "loss")

        assert updated.outcome == "loss"
        assert updated.actual_pnl == -40.0
        assert updated.executed is True
        assert _setup_stats(session, "pullback_entry")["confidence_score"] == pytest.approx(0.4)

    def test_report_explicit_pnl(self, session, manager, create_trade):
        trade = create_trade(session)

        assert manager.report_outcome(session, trade.id, Outcome.WIN, pnl=55.5).actual_pnl == 55.5

    def test_report_after_execution_counts_once(self, session, manager, create_trade, early_entry):
        trade = create_trade(session)
        manager.submit_execution(session, trade.id, trade.execution_token, early_entry)

        updated = manager.report_outcome(session, trade.id, "win")

        assert updated.outcome == "win"
        assert updated.actual_pnl == 74.0
        stats = _setup_stats(session, "pullback_entry")
        assert stats["success_count"] == 1
        assert stats["confidence_score"] == pytest.approx(0.55)

    def test_repeat_report_is_noop(self, session, manager, create_trade):
        trade = create_trade(session)
        manager.report_outcome(session, trade.id, "loss")

        updated = manager.report_outcome(session, trade.id, Outcome.LOSS, pnl=-99.0)

        assert updated.actual_pnl == -40.0
        assert _setup_stats(session, "pullback_entry")["confidence_score"] == pytest.approx(0.4)

    def test_changed_outcome_rejected(self, session, manager, create_trade):
        trade = create_trade(session)
        manager.report_outcome(session, trade.id, "loss")

        with pytest.raises(OutcomeSettledError) as exc_info:
            manager.report_outcome(session, trade.id, "win")

        assert exc_info.value.status_code == 409
        assert exc_info.value.settled == "loss"
        assert TradeRepository(session).get(trade.id).outcome == "loss"
        assert _setup_stats(session, "pullback_entry")["success_count"] == 0

    def test_pending_report_leaves_trade_open(self, session, manager, create_trade):
        trade = create_trade(session)

        updated = manager.report_outcome(session, trade.id, "pending")

        assert updated.outcome == "pending"
        assert updated.executed is False
        manager.report_outcome(session, trade.id, "win")
        assert TradeRepository(session).get(trade.id).outcome == "win"

    def test_lost_outcome_race(self, session, manager, create_trade, monkeypatch):
        trade = create_trade(session)
        monkeypatch.setattr(TradeRepository, "settle_outcome", lambda self, *args: 0)

        with pytest.raises(OutcomeSettledError):
            manager.report_outcome(session, trade.id, "win")

        assert _setup_stats(session, "pullback_entry")["success_count"] == 0

    def test_summary_before_execution(self, session, manager, create_trade):
        trade = create_trade(session)

        summary = manager.get_trade_summary(session, trade.id)

        assert summary["phase"] == "pre_trade"
        assert summary["execution"] is None
        assert summary["pre_trade"]["planned_prices"] == {"entry": 19700.0, "stop": 19680.0, "target": 19740.0}
        assert summary["pre_trade"]["timeframes_used"] == ["5min", "15min"]
        assert summary["pre_trade"]["alerts"] == []

    def test_summary_after_execution(self, session, manager, create_trade, early_entry):
        trade = create_trade(session)
        manager.submit_execution(session, trade.id, trade.execution_token, early_entry)

        summary = manager.get_trade_summary(session, trade.id)

        assert summary["phase"] == "complete"
        assert summary["execution"]["execution_grade"] == "A"
        assert summary["execution"]["price_variances"]["entry_variance"] == 3.0
        assert summary["outcome"] == "win"

    def test_summary_unknown_trade(self, session, manager):
        with pytest.raises(TradeNotFoundError):
            manager.get_trade_summary(session, "missing")

    def test_get_trade(self, session, manager, create_trade):
        trade = create_trade(session)

        assert manager.get_trade(session, trade.id) is trade
        with pytest.raises(TradeNotFoundError):
            manager.get_trade(session, "missing")
