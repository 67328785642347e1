"""
Tests for the trade ingestion pipeline.

The provider always fails, so every analysis comes from the
deterministic fallback. The database is in-memory SQLite.

Tests cover:
- Upload to pre-trade record
- Validation before any file is stored
- File cleanup when persistence fails
- Execution submission end to end
- Token and phase checked before files are stored
"""

from unittest.mock import MagicMock

import pytest

from analysis_engine import AnalysisOrchestrator
from core.exceptions import (
    PersistenceError,
    PhaseConflictError,
    TokenMismatchError,
    TradeNotFoundError,
    UploadValidationError,
)
from database.engine import transaction_scope
from ingestion import TradeIngestionPipeline
from trade_lifecycle import Outcome, TradeLifecycleManager
from uploads import LocalFileStore, TradeUpload, UploadedFile


NOTES = "pullback entry 19700 stop 19680 target 19740"


def _png(label):
    return UploadedFile(label=label, filename=f"{label}.png", data=b"\x89PNG chart")


@pytest.fixture
def upload_dir(tmp_path):
    return tmp_path / "uploads"


@pytest.fixture
def pipeline(config, fallback_orchestrator, session_factory, upload_dir):
    return TradeIngestionPipeline(
        config=config,
        orchestrator=fallback_orchestrator,
        file_store=LocalFileStore(upload_dir),
        session_factory=session_factory,
    )


@pytest.fixture
def upload(setup_time):
    return TradeUpload(
        files=[_png("15min"), _png("5min")],
        context={"session_info": "9:35 AM", "account_size": 50000},
        notes=NOTES,
        timestamp=setup_time,
    )


def _stored(upload_dir):
    return sorted(p.name for p in upload_dir.iterdir()) if upload_dir.exists() else []


# =============================================================
# TEST: Pre-trade ingestion
# =============================================================

class TestIngest:
    """Test upload to pre-trade record."""

    def test_creates_trade(self, pipeline, upload, session_factory, upload_dir):
        result = pipeline.ingest(upload)

        assert result.trade_id
        assert result.execution_token
        assert result.analysis.source.value == "fallback"
        assert result.validation.valid is True
        assert (result.week_number, result.year) == (10, 2025)
        assert len(_stored(upload_dir)) == 2

        with transaction_scope(session_factory) as session:
            summary = pipeline.manager.get_trade_summary(session, result.trade_id)
        assert summary["phase"] == "pre_trade"
        assert summary["pre_trade"]["planned_prices"]["entry"] == 19700.0
        assert summary["pre_trade"]["primary_timeframe"] == "15min"

    def test_response_document(self, pipeline, upload):
        document = pipeline.ingest(upload).to_dict()

        assert document["trade_phase"] == "pre_trade"
        assert document["timeframes_analyzed"] == ["15min", "5min"]
        assert document["execution_flow"]["awaiting_execution"] is True
        assert document["execution_flow"]["execution_token"]
        assert document["compliance_check"]["within_limits"] is True
        assert document["trading_context"]["primary_timeframe"] == "15min"

    def test_explicit_primary(self, pipeline, upload):
        upload.primary_timeframe = "5min"

        result = pipeline.ingest(upload)

        assert result.hierarchy.primary.label == "5min"

    def test_trades_this_week_counted(self, pipeline, upload):
        assert pipeline.ingest(upload).context.trades_this_week == 0
        assert pipeline.ingest(upload).context.trades_this_week == 1

    def test_trades_this_week_given(self, pipeline, upload):
        upload.context["trades_this_week"] = 4
        assert pipeline.ingest(upload).context.trades_this_week == 4

    def test_rule_violations_recorded(self, pipeline, upload, setup_time):
        upload.notes = "entry 19700 stop 19670 target 19730"
        upload.context.pop("session_info")
        upload.timestamp = setup_time.replace(hour=19)  # 14:40 EST

        result = pipeline.ingest(upload)

        rules = [v.rule.value for v in result.validation.violations]
        assert rules == ["MAX_RISK", "TRADING_HOURS", "RISK_REWARD"]


class TestIngestFailures:
    """Test that failed uploads leave no state behind."""

    def test_invalid_upload_stores_nothing(self, pipeline, upload, upload_dir):
        upload.files.append(_png("5min"))

        with pytest.raises(UploadValidationError):
            pipeline.ingest(upload)

        assert _stored(upload_dir) == []

    def test_unknown_primary(self, pipeline, upload, upload_dir):
        upload.primary_timeframe = "daily"

        with pytest.raises(UploadValidationError):
            pipeline.ingest(upload)

        assert _stored(upload_dir) == []

    def test_persistence_failure_removes_files(self, config, fallback_orchestrator, session_factory, upload, upload_dir):
        manager = MagicMock(spec=TradeLifecycleManager)
        manager.create_pre_trade.side_effect = PersistenceError("disk full", operation="insert")
        pipeline = TradeIngestionPipeline(
            config=config,
            orchestrator=fallback_orchestrator,
            file_store=LocalFileStore(upload_dir),
            manager=manager,
            session_factory=session_factory,
        )

        with pytest.raises(PersistenceError):
            pipeline.ingest(upload)

        assert _stored(upload_dir) == []


# =============================================================
# TEST: Execution submission
# =============================================================

class TestSubmitExecution:
    """Test execution submission through the pipeline."""

    def test_completes_trade(self, pipeline, upload, upload_dir, session_factory):
        created = pipeline.ingest(upload)

        result = pipeline.submit_execution(
            created.trade_id,
            created.execution_token,
            [UploadedFile("fill", "fill.webp", b"RIFF")],
            notes="entered at 19703",
            outcome="win",
        )

        assert result.outcome is Outcome.WIN
        assert result.actual_rr == 1.61
        assert [p.pattern_type for p in result.patterns] == ["early_entry"]
        assert len(_stored(upload_dir)) == 3

        with transaction_scope(session_factory) as session:
            summary = pipeline.manager.get_trade_summary(session, created.trade_id)
        assert summary["phase"] == "complete"
        assert summary["execution"]["actual_prices"]["entry"] == 19703.0

    def test_without_screenshots(self, pipeline, upload):
        created = pipeline.ingest(upload)

        result = pipeline.submit_execution(created.trade_id, created.execution_token, [])

        assert result.outcome is Outcome.PENDING
        assert result.rr_impact == 0.0

    def test_wrong_token_stores_nothing(self, pipeline, upload, upload_dir):
        """The token is checked before any file is stored or reviewed."""
        created = pipeline.ingest(upload)
        pipeline.file_store = MagicMock(wraps=pipeline.file_store)
        pipeline.orchestrator = MagicMock(spec=AnalysisOrchestrator)

        with pytest.raises(TokenMismatchError):
            pipeline.submit_execution(created.trade_id, "forged", [_png("fill")])

        pipeline.file_store.save.assert_not_called()
        pipeline.orchestrator.request_execution_analysis.assert_not_called()
        assert len(_stored(upload_dir)) == 2

    def test_completed_trade_stores_nothing(self, pipeline, upload, upload_dir):
        """A trade that already left pre_trade is rejected before the review."""
        created = pipeline.ingest(upload)
        pipeline.submit_execution(created.trade_id, created.execution_token, [])
        pipeline.file_store = MagicMock(wraps=pipeline.file_store)
        pipeline.orchestrator = MagicMock(spec=AnalysisOrchestrator)

        with pytest.raises(PhaseConflictError):
            pipeline.submit_execution(created.trade_id, created.execution_token, [_png("fill")])

        pipeline.file_store.save.assert_not_called()
        pipeline.orchestrator.request_execution_analysis.assert_not_called()
        assert len(_stored(upload_dir)) == 2

    def test_second_submission_conflicts(self, pipeline, upload):
        created = pipeline.ingest(upload)
        pipeline.submit_execution(created.trade_id, created.execution_token, [])

        with pytest.raises(PhaseConflictError):
            pipeline.submit_execution(created.trade_id, created.execution_token, [])

    def test_unknown_trade(self, pipeline):
        with pytest.raises(TradeNotFoundError):
            pipeline.submit_execution("missing", "token", [])
