"""
Fixtures for trade lifecycle tests.
"""

from pathlib import Path

import pytest

from analysis_engine import AnalysisResult, ExecutionAnalysis
from risk_validation import validate_trading_rules
from timeframes import resolve_hierarchy
from trade_lifecycle import ExecutionSubmission, Outcome, TradeLifecycleManager
from uploads import StoredFile


@pytest.fixture
def manager(config):
    return TradeLifecycleManager(config)


@pytest.fixture
def analysis():
    return AnalysisResult(
        setup_quality=7,
        risk_reward_ratio=2.0,
        pattern_type="pullback_entry",
        risk_amount=40,
        planned_entry=19700,
        planned_stop=19680,
        planned_target=19740,
    )


@pytest.fixture
def create_trade(manager, analysis, context, setup_time):
    """Create a pre-trade record in the given session."""

    def create(session, analysis=analysis, labels=("5min", "15min"), timestamp=setup_time):
        hierarchy = resolve_hierarchy(list(labels))
        screenshots = {
            label: StoredFile(path=Path(f"/uploads/{label}.png"), size=1024, label=label)
            for label in labels
        }
        validation = validate_trading_rules(analysis, context, timestamp)
        return manager.create_pre_trade(
            session, analysis, hierarchy, screenshots, validation, context,
            timestamp=timestamp, notes="pullback to vwap",
        )

    return create


@pytest.fixture
def early_entry():
    """Entered three points above the planned entry."""
    return ExecutionSubmission(
        analysis=ExecutionAnalysis(
            actual_entry=19703,
            actual_stop=19680,
            actual_target=19740,
            execution_timing="early",
            behavioral_observations=["Entered before the pullback completed"],
        ),
        notes="jumped in early",
        outcome=Outcome.WIN,
    )
