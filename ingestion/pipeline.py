"""
Ingestion - Trade Ingestion Pipeline.

============================================================
PURPOSE
============================================================
One upload or execution submission as a single unit of work.

PRE-TRADE (ingest)
1. Validate the upload                 (no state yet)
2. Store the screenshots
3. Resolve the timeframe hierarchy
4. Request the analysis                (provider or fallback)
5. Validate the trading rules
6. Create the pre-trade record         (transaction_scope)

EXECUTION (submit_execution)
1. Validate the execution screenshots  (no state yet)
2. Check token and phase               (read only)
3. Store the screenshots
4. Request the execution review
5. Submit through the lifecycle manager (transaction_scope)

Files stored by a request are removed when that request fails.
Cleanup is best effort and logged.

============================================================
"""

import logging
from datetime import datetime
from typing import Callable, List, Optional, Sequence

from sqlalchemy.orm import Session

from analysis_engine import AnalysisOrchestrator
from core.config import JournalConfig
from core.context import TradingContext
from database.engine import get_session_factory, transaction_scope
from risk_validation import validate_trading_rules
from storage.models import utcnow
from storage.repositories import TradeRepository
from timeframes import TimeframeInput, resolve_hierarchy
from trade_lifecycle import (
    ExecutionResult,
    ExecutionSubmission,
    Outcome,
    TradeLifecycleManager,
)
from uploads import (
    EXECUTION_EXTENSIONS,
    FileStore,
    LocalFileStore,
    StoredFile,
    TradeUpload,
    UploadedFile,
    resolve_primary,
    validate_files,
)

from .types import IngestionResult


logger = logging.getLogger(__name__)


class TradeIngestionPipeline:
    """
    Upload to trade record, and execution submission.
    """

    def __init__(
        self,
        config: Optional[JournalConfig] = None,
        orchestrator: Optional[AnalysisOrchestrator] = None,
        file_store: Optional[FileStore] = None,
        manager: Optional[TradeLifecycleManager] = None,
        session_factory: Optional[Callable[[], Session]] = None,
    ):
        self.config = config or JournalConfig()
        self.orchestrator = orchestrator or AnalysisOrchestrator(config=self.config)
        self.file_store = file_store or LocalFileStore(self.config.storage.upload_dir)
        self.manager = manager or TradeLifecycleManager(self.config)
        self.session_factory = session_factory or get_session_factory()

    def _store(self, files: Sequence[UploadedFile]) -> List[StoredFile]:
        stored: List[StoredFile] = []
        try:
            for item in files:
                stored.append(self.file_store.save(item.label, item.filename, item.data))
        except Exception:
            self._cleanup(stored)
            raise
        return stored

    def _cleanup(self, stored: Sequence[StoredFile]) -> None:
        if not stored:
            return
        removed = self.file_store.delete_all(stored)
        logger.info(f"Cleaned up {removed}/{len(stored)} stored file(s)")

    def _trades_this_week(self, timestamp: datetime) -> int:
        iso_year, iso_week, _ = timestamp.isocalendar()
        with transaction_scope(self.session_factory) as session:
            return len(TradeRepository(session).list_for_week(iso_week, iso_year))

    def _build_context(self, upload: TradeUpload, primary: str, timestamp: datetime) -> TradingContext:
        data = dict(upload.context)
        data["primary_timeframe"] = primary
        if "trades_this_week" not in data:
            data["trades_this_week"] = self._trades_this_week(timestamp)
        return TradingContext.from_mapping(data)

    # =========================================================
    # PRE-TRADE
    # =========================================================

    def ingest(self, upload: TradeUpload) -> IngestionResult:
        """
        Turn an upload into a pre-trade record.

        Raises:
            TimeframeLabelError, UploadValidationError: Before any state exists
            PersistenceError: After the stored files were removed
        """
        validate_files(upload.files, self.config.storage)
        primary = resolve_primary(upload.labels, upload.primary_timeframe)
        timestamp = upload.timestamp or utcnow()

        context = self._build_context(upload, primary, timestamp)
        hierarchy = resolve_hierarchy([
            TimeframeInput(label=f.label, is_primary=f.label == primary) for f in upload.files
        ])

        stored = self._store(upload.files)
        by_label = {s.label: s for s in stored}

        try:
            analysis = self.orchestrator.request_analysis(
                by_label, context, hierarchy, notes=upload.notes, timestamp=timestamp,
            )
            validation = validate_trading_rules(
                analysis, context, timestamp=timestamp, rules=self.config.risk,
            )

            with transaction_scope(self.session_factory) as session:
                trade = self.manager.create_pre_trade(
                    session,
                    analysis,
                    hierarchy,
                    by_label,
                    validation,
                    context,
                    timestamp=timestamp,
                    notes=upload.notes,
                )
                trade_id = trade.id
                token = trade.execution_token
                week_number, year = trade.week_number, trade.year
        except Exception as e:
            logger.error(f"Upload failed, removing {len(stored)} stored file(s): {type(e).__name__}: {e}")
            self._cleanup(stored)
            raise

        logger.info(
            f"Ingested trade {trade_id}: {len(stored)} timeframe(s), primary={primary}, "
            f"source={analysis.source.value}, valid={validation.valid}"
        )
        return IngestionResult(
            trade_id=trade_id,
            execution_token=token,
            timestamp=timestamp,
            week_number=week_number,
            year=year,
            context=context,
            hierarchy=hierarchy,
            analysis=analysis,
            validation=validation,
            stored_files=stored,
        )

    # =========================================================
    # EXECUTION
    # =========================================================

    def submit_execution(
        self,
        trade_id: str,
        token: str,
        files: Sequence[UploadedFile],
        notes: Optional[str] = None,
        outcome: Optional[str] = None,
        context: Optional[dict] = None,
    ) -> ExecutionResult:
        """
        Record the execution of a planned trade.

        Raises:
            TradeNotFoundError, TokenMismatchError, PhaseConflictError
            UploadValidationError: Bad execution screenshots
            PersistenceError: Storage failure
        """
        validate_files(files, self.config.storage, EXECUTION_EXTENSIONS, require_files=False)

        with transaction_scope(self.session_factory) as session:
            trade = self.manager.authorize_execution(session, trade_id, token)
            pre_trade = {
                "pattern_type": trade.pattern_type,
                "setup_quality": trade.setup_quality,
                "planned_entry": trade.planned_entry,
                "planned_stop": trade.planned_stop,
                "planned_target": trade.planned_target,
                "planned_rr": trade.planned_rr,
                "risk_amount": trade.risk_amount,
            }
            trade_context = TradingContext.from_mapping({
                "instrument": trade.instrument,
                "trading_style": trade.trading_style,
                "session_info": trade.session_info,
                **(context or {}),
            })

        stored = self._store(files)
        try:
            review = self.orchestrator.request_execution_analysis(
                pre_trade, {s.label: s for s in stored}, notes, trade_context,
            )
            submission = ExecutionSubmission(
                analysis=review,
                notes=notes,
                screenshots={s.label: s for s in stored},
                outcome=Outcome.parse(outcome),
            )
            with transaction_scope(self.session_factory) as session:
                result = self.manager.submit_execution(session, trade_id, token, submission)
        except Exception as e:
            logger.error(f"Execution submission for {trade_id} failed: {type(e).__name__}: {e}")
            self._cleanup(stored)
            raise

        return result


__all__ = ["TradeIngestionPipeline"]
