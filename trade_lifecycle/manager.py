"""
Trade Lifecycle - Manager.

============================================================
PURPOSE
============================================================
Owns the two-phase trade record.

create_pre_trade   plan, validation, hierarchy metadata,
                   screenshots, alerts, single-use token
submit_execution   token check, variances, grades, atomic
                   PRE_TRADE -> COMPLETE transition, pattern
                   learning in the same transaction
report_outcome     settle-once outcome, pnl, setup pattern learning

============================================================
CONCURRENCY
============================================================
The token and phase are re-checked by the conditional UPDATE
that performs the transition. Of two concurrent submitters with
the same token exactly one sees rowcount 1; the other gets
PhaseConflictError and its transaction is rolled back.

All methods work in the caller's session and never commit.

============================================================
"""

import logging
import uuid
from datetime import datetime
from typing import Any, Dict, Mapping, Optional

from sqlalchemy.orm import Session

from analysis_engine.price_extraction import PriceLevels
from analysis_engine.types import UNKNOWN_PATTERN, AnalysisResult
from core.config import JournalConfig
from core.context import TradingContext
from core.exceptions import (
    OutcomeSettledError,
    PhaseConflictError,
    TokenMismatchError,
    TradeNotFoundError,
)
from pattern_learning import PatternLearningTracker
from risk_validation.types import ValidationReport
from storage.models import RiskAlert, ScreenshotAnalysis, Trade, utcnow
from storage.repositories import RiskAlertRepository, TradeRepository
from timeframes.strategy import format_timeframe_metadata
from timeframes.types import TimeframeHierarchy

from .grading import grade_breakdown, learning_synthesis
from .state_machine import TransitionGuard
from .tokens import issue_token, tokens_match
from .types import ExecutionResult, ExecutionSubmission, Outcome, TradePhase
from .variance import (
    classify_behavioral_patterns,
    compute_actual_rr,
    compute_pnl,
    compute_variances,
)


logger = logging.getLogger(__name__)


def _planned_levels(trade: Trade) -> PriceLevels:
    return PriceLevels(entry=trade.planned_entry, stop=trade.planned_stop, target=trade.planned_target)


def _or_planned(actual: Optional[float], planned: Optional[float]) -> Optional[float]:
    return actual if actual is not None else planned


class TradeLifecycleManager:
    """
    Two-phase trade lifecycle.
    """

    def __init__(self, config: Optional[JournalConfig] = None):
        self.config = config or JournalConfig()

    def _tracker(self, session: Session) -> PatternLearningTracker:
        return PatternLearningTracker(session)

    def _load(self, session: Session, trade_id: str) -> Trade:
        trade = TradeRepository(session).get(trade_id)
        if trade is None:
            raise TradeNotFoundError(trade_id)
        return trade

    # =========================================================
    # PRE-TRADE
    # =========================================================

    def create_pre_trade(
        self,
        session: Session,
        analysis: AnalysisResult,
        hierarchy: TimeframeHierarchy,
        screenshots: Mapping[str, Any],
        validation: ValidationReport,
        context: TradingContext,
        timestamp: Optional[datetime] = None,
        notes: Optional[str] = None,
    ) -> Trade:
        """
        Persist a planned trade.

        Args:
            session: Open session (caller owns the transaction)
            analysis: Pre-trade analysis
            hierarchy: Resolved hierarchy of the uploaded labels
            screenshots: label -> stored file (path, size)
            validation: Trading rule report
            context: Trading context
            timestamp: Setup time (now if omitted)
            notes: Trader notes

        Returns:
            The new Trade in phase pre_trade, carrying its execution token
        """
        timestamp = timestamp or utcnow()
        iso_year, iso_week, _ = timestamp.isocalendar()
        metadata = format_timeframe_metadata(hierarchy, screenshots)

        trade = Trade(
            id=str(uuid.uuid4()),
            phase=TradePhase.PRE_TRADE.value,
            timestamp=timestamp,
            instrument=context.instrument,
            trading_style=context.trading_style,
            session_info=context.session_info or None,
            notes=notes,
            screenshot_refs={
                label: {"path": str(getattr(stored, "path", stored)), "size": getattr(stored, "size", None)}
                for label, stored in screenshots.items()
            },
            pattern_type=analysis.pattern_type,
            setup_quality=analysis.setup_quality,
            analysis_source=analysis.source.value,
            planned_entry=analysis.planned_entry,
            planned_stop=analysis.planned_stop,
            planned_target=analysis.planned_target,
            planned_rr=analysis.risk_reward_ratio,
            risk_amount=analysis.risk_amount,
            within_limits=validation.valid,
            execution_token=issue_token(),
            outcome=Outcome.PENDING.value,
            executed=False,
            primary_timeframe=metadata["primary_timeframe"],
            timeframes_used=metadata["timeframes_used"],
            analysis_completeness=analysis.completeness_score,
            analysis_data={**analysis.to_dict(), "validation": validation.to_dict()},
            week_number=iso_week,
            year=iso_year,
        )

        repo = TradeRepository(session)
        repo.add(trade)

        for item in metadata["screenshots_metadata"]:
            individual = analysis.individual_timeframe_analysis.get(item["timeframe_label"])
            repo.add_screenshot(ScreenshotAnalysis(
                trade_id=trade.id,
                phase=TradePhase.PRE_TRADE.value,
                timeframe_label=item["timeframe_label"],
                timeframe_category=item["timeframe_category"],
                role=item["role"],
                is_primary=item["is_primary"],
                screenshot_path=str(item["screenshot_path"] or ""),
                file_size=item["file_size"] or 0,
                pattern_identified=individual.pattern_identified if individual else None,
                trend_direction=individual.trend_direction if individual else None,
                setup_quality=individual.setup_quality if individual else None,
            ))

        alerts = RiskAlertRepository(session)
        for violation in validation.violations:
            alerts.add(RiskAlert(
                trade_id=trade.id,
                rule=violation.rule.value,
                message=violation.message,
                severity=violation.severity.value,
            ))

        if analysis.pattern_type != UNKNOWN_PATTERN:
            self._tracker(session).record_occurrence(analysis.pattern_type)

        repo.refresh(trade)

        logger.info(
            f"Pre-trade {trade.id} created: pattern={trade.pattern_type} "
            f"rr={trade.planned_rr} violations={len(validation.violations)}"
        )
        return trade

    # =========================================================
    # EXECUTION
    # =========================================================

    def authorize_execution(self, session: Session, trade_id: str, token: str) -> Trade:
        """
        Token and phase check for an execution submission.

        Read only. The conditional UPDATE in submit_execution checks
        both again and remains the authority under concurrency.

        Raises:
            TradeNotFoundError, TokenMismatchError, PhaseConflictError
        """
        trade = self._load(session, trade_id)

        if not tokens_match(trade.execution_token, token):
            logger.warning(f"Execution token mismatch for trade {trade_id}")
            raise TokenMismatchError(trade_id)

        phase = TradePhase(trade.phase)
        if phase is not TradePhase.PRE_TRADE:
            raise PhaseConflictError(trade_id, current_phase=phase.value, expected_phase=TradePhase.PRE_TRADE.value)
        TransitionGuard.require(phase, TradePhase.COMPLETE)
        return trade

    def submit_execution(
        self,
        session: Session,
        trade_id: str,
        token: str,
        submission: ExecutionSubmission,
    ) -> ExecutionResult:
        """
        Record the execution of a planned trade.

        Raises:
            TradeNotFoundError: Unknown trade
            TokenMismatchError: Token does not match (no mutation)
            PhaseConflictError: Trade already executed, or a concurrent
                submission won the transition
        """
        trade = self.authorize_execution(session, trade_id, token)

        thresholds = self.config.execution
        review = submission.analysis
        planned = _planned_levels(trade)
        actual = PriceLevels(
            entry=_or_planned(review.actual_entry, planned.entry),
            stop=_or_planned(review.actual_stop, planned.stop),
            target=_or_planned(review.actual_target, planned.target),
        )

        variances = compute_variances(planned, actual)
        planned_rr = trade.planned_rr if trade.planned_rr is not None else thresholds.default_rr
        actual_rr = compute_actual_rr(actual, planned_rr, thresholds.default_rr)
        rr_impact = round(actual_rr - planned_rr, 4)
        outcome = submission.outcome
        pnl = compute_pnl(outcome, actual, thresholds.point_value)

        patterns = classify_behavioral_patterns(variances, rr_impact, thresholds)
        breakdown = grade_breakdown(variances)
        grade = breakdown["overall_discipline"]
        synthesis = learning_synthesis(
            trade.pattern_type,
            grade,
            variances,
            review.execution_timing,
            outcome,
            patterns,
            review.behavioral_observations,
        )

        execution_id = str(uuid.uuid4())
        rowcount = TradeRepository(session).complete_execution(
            trade_id,
            token,
            expected_phase=TradePhase.PRE_TRADE.value,
            new_phase=TradePhase.COMPLETE.value,
            values={
                "linked_execution_id": execution_id,
                "actual_entry": actual.entry,
                "actual_stop": actual.stop,
                "actual_target": actual.target,
                "actual_rr": actual_rr,
                "variance_entry": variances.entry,
                "variance_stop": variances.stop,
                "variance_target": variances.target,
                "rr_impact": rr_impact,
                "execution_notes": submission.notes,
                "executed_at": utcnow(),
                "execution_analysis": {
                    **review.to_dict(),
                    "execution_patterns": [p.to_dict() for p in patterns],
                    "learning_synthesis": synthesis,
                },
                "execution_grade": grade,
                "grade_breakdown": breakdown,
                "outcome": outcome.value,
                "actual_pnl": pnl if outcome is not Outcome.PENDING else None,
                "executed": True,
            },
        )
        if rowcount != 1:
            logger.warning(f"Concurrent execution submission lost for trade {trade_id}")
            raise PhaseConflictError(trade_id, expected_phase=TradePhase.PRE_TRADE.value)

        repo = TradeRepository(session)
        for label, stored in submission.screenshots.items():
            repo.add_screenshot(ScreenshotAnalysis(
                trade_id=trade_id,
                phase=TradePhase.COMPLETE.value,
                timeframe_label=label,
                screenshot_path=str(getattr(stored, "path", stored)),
                file_size=getattr(stored, "size", 0) or 0,
            ))

        tracker = self._tracker(session)
        for pattern in patterns:
            tracker.record_execution_pattern(pattern.pattern_type, pattern.impact)

        if outcome in (Outcome.WIN, Outcome.LOSS) and trade.pattern_type != UNKNOWN_PATTERN:
            tracker.record_outcome(trade.pattern_type, outcome is Outcome.WIN)

        repo.refresh(trade)
        logger.info(
            f"Execution recorded for {trade_id}: grade={grade} rr={actual_rr} "
            f"impact={rr_impact:+.2f} patterns={[p.pattern_type for p in patterns]}"
        )

        return ExecutionResult(
            trade_id=trade_id,
            linked_execution_id=execution_id,
            phase=TradePhase.COMPLETE,
            variances=variances,
            actual_rr=actual_rr,
            planned_rr=planned_rr,
            rr_impact=rr_impact,
            pnl=pnl,
            outcome=outcome,
            execution_grade=grade,
            grade_breakdown=breakdown,
            patterns=patterns,
            learning_synthesis=synthesis,
        )

    # =========================================================
    # OUTCOME
    # =========================================================

    def report_outcome(
        self,
        session: Session,
        trade_id: str,
        outcome: Outcome,
        pnl: Optional[float] = None,
    ) -> Trade:
        """
        Record the trade outcome and feed setup pattern learning.

        Without an explicit pnl it is computed from the executed
        (or planned) prices. An outcome settles once: repeating the
        settled value is a no-op, a different value raises
        OutcomeSettledError. Setup pattern statistics are only fed
        on the pending -> win/loss step.
        """
        trade = self._load(session, trade_id)
        outcome = Outcome.parse(outcome)
        settled = Outcome.parse(trade.outcome)

        if settled is not Outcome.PENDING:
            if settled is outcome:
                logger.info(f"Outcome for {trade_id} already {settled.value}, nothing to record")
                return trade
            raise OutcomeSettledError(trade_id, settled.value, outcome.value)
        if outcome is Outcome.PENDING:
            return trade

        if pnl is None:
            prices = PriceLevels(
                entry=_or_planned(trade.actual_entry, trade.planned_entry),
                stop=_or_planned(trade.actual_stop, trade.planned_stop),
                target=_or_planned(trade.actual_target, trade.planned_target),
            )
            pnl = compute_pnl(outcome, prices, self.config.execution.point_value)

        repo = TradeRepository(session)
        if repo.settle_outcome(trade_id, outcome.value, pnl) != 1:
            repo.refresh(trade)
            logger.warning(f"Concurrent outcome report won for trade {trade_id}")
            raise OutcomeSettledError(trade_id, trade.outcome, outcome.value)
        repo.refresh(trade)

        if outcome in (Outcome.WIN, Outcome.LOSS) and trade.pattern_type != UNKNOWN_PATTERN:
            self._tracker(session).record_outcome(trade.pattern_type, outcome is Outcome.WIN)

        logger.info(f"Outcome for {trade_id}: {outcome.value} pnl={pnl}")
        return trade

    # =========================================================
    # READ PATHS
    # =========================================================

    def get_trade(self, session: Session, trade_id: str) -> Trade:
        return self._load(session, trade_id)

    def get_trade_summary(self, session: Session, trade_id: str) -> Dict[str, Any]:
        """Pre-trade plan and, when present, the execution in one document."""
        trade = self._load(session, trade_id)
        phase = TradePhase(trade.phase)

        summary: Dict[str, Any] = {
            "trade_id": trade.id,
            "phase": phase.value,
            "timestamp": trade.timestamp.isoformat() if trade.timestamp else None,
            "pre_trade": {
                "instrument": trade.instrument,
                "pattern_type": trade.pattern_type,
                "setup_quality": trade.setup_quality,
                "analysis_source": trade.analysis_source,
                "planned_prices": {
                    "entry": trade.planned_entry,
                    "stop": trade.planned_stop,
                    "target": trade.planned_target,
                },
                "planned_rr": trade.planned_rr,
                "risk_amount": trade.risk_amount,
                "within_limits": trade.within_limits,
                "primary_timeframe": trade.primary_timeframe,
                "timeframes_used": trade.timeframes_used.split(",") if trade.timeframes_used else [],
                "analysis_completeness": trade.analysis_completeness,
                "analysis": trade.analysis_data,
                "alerts": [
                    {"rule": a.rule, "message": a.message, "severity": a.severity}
                    for a in trade.alerts
                ],
                "screenshots": [
                    {
                        "timeframe_label": s.timeframe_label,
                        "category": s.timeframe_category,
                        "role": s.role,
                        "is_primary": s.is_primary,
                        "path": s.screenshot_path,
                    }
                    for s in trade.screenshots
                    if s.phase == TradePhase.PRE_TRADE.value
                ],
            },
            "execution": None,
            "outcome": trade.outcome,
            "actual_pnl": trade.actual_pnl,
        }

        if phase is TradePhase.COMPLETE or phase is TradePhase.EXECUTION:
            summary["execution"] = {
                "linked_execution_id": trade.linked_execution_id,
                "actual_prices": {
                    "entry": trade.actual_entry,
                    "stop": trade.actual_stop,
                    "target": trade.actual_target,
                },
                "actual_rr": trade.actual_rr,
                "price_variances": {
                    "entry_variance": trade.variance_entry,
                    "stop_variance": trade.variance_stop,
                    "target_variance": trade.variance_target,
                    "rr_impact": trade.rr_impact,
                },
                "execution_grade": trade.execution_grade,
                "grade_breakdown": trade.grade_breakdown,
                "analysis": trade.execution_analysis,
                "executed_at": trade.executed_at.isoformat() if trade.executed_at else None,
            }

        return summary


__all__ = ["TradeLifecycleManager"]
