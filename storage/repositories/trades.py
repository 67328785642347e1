"""
Trade Repositories.

============================================================
REPOSITORIES
============================================================
- TradeRepository: Trade aggregate, screenshots, phase transition
- RiskAlertRepository: Rule violations

============================================================
"""

from typing import Any, Dict, List, Optional

from sqlalchemy import case, func, select, update
from sqlalchemy.orm import Session

from storage.models.trades import RiskAlert, ScreenshotAnalysis, Trade
from storage.repositories.base import BaseRepository


class TradeRepository(BaseRepository[Trade]):
    """Repository for trades and their screenshots."""

    def __init__(self, session: Session) -> None:
        super().__init__(session, Trade)

    def add(self, trade: Trade) -> Trade:
        return self._add(trade)

    def get(self, trade_id: str) -> Optional[Trade]:
        return self._get_by_id(trade_id)

    def add_screenshot(self, screenshot: ScreenshotAnalysis) -> ScreenshotAnalysis:
        with self._guard("add_screenshot", "trade_id", screenshot.trade_id):
            self._session.add(screenshot)
            self._session.flush()
        return screenshot

    def complete_execution(
        self,
        trade_id: str,
        token: str,
        expected_phase: str,
        new_phase: str,
        values: Dict[str, Any],
    ) -> int:
        """
        Conditional phase transition.

        UPDATE trades SET phase=:new_phase, ... WHERE id=:id
            AND phase=:expected_phase AND execution_token=:token

        Returns:
            Rows updated: 1 for the winning submission, 0 otherwise
        """
        stmt = (
            update(Trade)
            .where(
                Trade.id == trade_id,
                Trade.phase == expected_phase,
                Trade.execution_token == token,
            )
            .values(phase=new_phase, **values)
        )
        rowcount = self._bulk(stmt, "complete_execution")
        self._logger.debug(f"complete_execution {trade_id}: rowcount={rowcount}")
        return rowcount

    def settle_outcome(self, trade_id: str, outcome: str, pnl: Optional[float]) -> int:
        """
        UPDATE trades SET outcome=:outcome, ... WHERE id=:id AND outcome='pending'

        Returns:
            Rows updated: 0 when the outcome was already settled
        """
        stmt = (
            update(Trade)
            .where(Trade.id == trade_id, Trade.outcome == "pending")
            .values(outcome=outcome, actual_pnl=pnl, executed=True)
        )
        return self._bulk(stmt, "settle_outcome")

    def refresh(self, trade: Trade) -> Trade:
        self._session.refresh(trade)
        return trade

    def list_for_week(self, week_number: int, year: int) -> List[Trade]:
        stmt = (
            select(Trade)
            .where(Trade.week_number == week_number, Trade.year == year)
            .order_by(Trade.timestamp)
        )
        return self._all(stmt)

    def weekly_aggregates(self, week_number: int, year: int) -> Dict[str, Any]:
        """Counts and P&L sums for one ISO week."""
        executed_pnl = case((Trade.executed.is_(True), Trade.actual_pnl))
        stmt = select(
            func.count(Trade.id).label("total_trades"),
            func.avg(Trade.setup_quality).label("avg_setup_quality"),
            func.count(case((Trade.executed.is_(True), 1))).label("executed_trades"),
            func.count(case((Trade.executed.is_(True) & (Trade.actual_pnl > 0), 1))).label("winning_trades"),
            func.avg(executed_pnl).label("avg_pnl_per_trade"),
            func.sum(executed_pnl).label("total_pnl"),
        ).where(Trade.week_number == week_number, Trade.year == year)
        with self._guard("weekly_aggregates"):
            row = self._session.execute(stmt).one()
        return dict(row._mapping)


class RiskAlertRepository(BaseRepository[RiskAlert]):
    """Repository for risk alerts."""

    def __init__(self, session: Session) -> None:
        super().__init__(session, RiskAlert)

    def add(self, alert: RiskAlert) -> RiskAlert:
        return self._add(alert)
