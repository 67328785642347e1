"""
Trade Domain ORM Models.

============================================================
PURPOSE
============================================================
Models for the trade aggregate: the two-phase trade record,
one row per uploaded screenshot, and the risk alerts raised
when the trade was planned.

============================================================
DATA LIFECYCLE ROLE
============================================================
- Created: pre-trade upload (phase pre_trade)
- Mutated: execution submission (phase complete), outcome report
- Deleted: only when the creating upload fails to persist

============================================================
MODELS
============================================================
- Trade: Plan, execution, variances, grades
- ScreenshotAnalysis: Per-timeframe screenshot and assessment
- RiskAlert: Rule violation recorded at creation

============================================================
"""

import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import (
    JSON,
    Boolean,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from storage.models.base import Base, TimestampMixin, utcnow


def _new_trade_id() -> str:
    return str(uuid.uuid4())


class Trade(Base, TimestampMixin):
    """
    A planned trade and, once submitted, its execution.

    ============================================================
    PHASES
    ============================================================
    pre_trade -> complete. The execution token issued at creation
    is consumed by the conditional UPDATE that performs the
    transition, so it can be used exactly once.

    ============================================================
    """

    __tablename__ = "trades"

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=_new_trade_id,
        comment="Opaque trade identifier (UUID)"
    )

    phase: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default="pre_trade",
        comment="pre_trade, execution, complete"
    )

    timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        comment="Setup time"
    )

    # Context
    instrument: Mapped[str] = mapped_column(String(20), nullable=False, default="MNQ")
    trading_style: Mapped[str] = mapped_column(String(40), nullable=False, default="mnq_scalping")
    session_info: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    screenshot_refs: Mapped[Dict[str, Any]] = mapped_column(
        JSON,
        nullable=False,
        default=dict,
        comment="timeframe label -> {path, size}"
    )

    # Assessment
    pattern_type: Mapped[str] = mapped_column(String(50), nullable=False, default="unknown")
    setup_quality: Mapped[int] = mapped_column(Integer, nullable=False, default=5)
    analysis_source: Mapped[str] = mapped_column(String(20), nullable=False, default="provider")

    # Plan
    planned_entry: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    planned_stop: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    planned_target: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    planned_rr: Mapped[float] = mapped_column(Float, nullable=False, default=2.0)

    # Execution
    actual_entry: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    actual_stop: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    actual_target: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    actual_rr: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    execution_notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    executed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    # Variances (actual - planned, points)
    variance_entry: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    variance_stop: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    variance_target: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    rr_impact: Mapped[Optional[float]] = mapped_column(Float, nullable=True)

    # Risk
    risk_amount: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    within_limits: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    # Lifecycle
    execution_token: Mapped[Optional[str]] = mapped_column(
        String(64),
        nullable=True,
        comment="Single-use token, consumed by the phase transition"
    )
    linked_execution_id: Mapped[Optional[str]] = mapped_column(String(36), nullable=True)

    # Outcome
    outcome: Mapped[str] = mapped_column(String(20), nullable=False, default="pending")
    actual_pnl: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    executed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    # Hierarchy metadata
    primary_timeframe: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    timeframes_used: Mapped[Optional[str]] = mapped_column(String(250), nullable=True)
    analysis_completeness: Mapped[int] = mapped_column(Integer, nullable=False, default=40)

    # Payloads
    analysis_data: Mapped[Dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    execution_analysis: Mapped[Optional[Dict[str, Any]]] = mapped_column(JSON, nullable=True)

    # Grades
    execution_grade: Mapped[Optional[str]] = mapped_column(String(3), nullable=True)
    grade_breakdown: Mapped[Optional[Dict[str, Any]]] = mapped_column(JSON, nullable=True)

    week_number: Mapped[int] = mapped_column(Integer, nullable=False)
    year: Mapped[int] = mapped_column(Integer, nullable=False)

    screenshots: Mapped[List["ScreenshotAnalysis"]] = relationship(
        back_populates="trade",
        cascade="all, delete-orphan",
        order_by="ScreenshotAnalysis.id",
    )

    alerts: Mapped[List["RiskAlert"]] = relationship(
        back_populates="trade",
        cascade="all, delete-orphan",
        order_by="RiskAlert.id",
    )

    __table_args__ = (
        Index("idx_trades_phase", "phase"),
        Index("idx_trades_week", "year", "week_number"),
        Index("idx_trades_pattern", "pattern_type"),
    )

    def __repr__(self) -> str:
        return f"<Trade {self.id} phase={self.phase} pattern={self.pattern_type}>"


class ScreenshotAnalysis(Base):
    """One uploaded screenshot of a trade and its per-timeframe assessment."""

    __tablename__ = "screenshot_analysis"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    trade_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("trades.id", ondelete="CASCADE"),
        nullable=False,
    )

    phase: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default="pre_trade",
        comment="Phase in which the screenshot was uploaded"
    )

    timeframe_label: Mapped[str] = mapped_column(String(20), nullable=False)
    timeframe_category: Mapped[str] = mapped_column(String(20), nullable=False, default="custom")
    role: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    is_primary: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    screenshot_path: Mapped[str] = mapped_column(String(500), nullable=False)
    file_size: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    pattern_identified: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    trend_direction: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    setup_quality: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)

    trade: Mapped["Trade"] = relationship(back_populates="screenshots")

    __table_args__ = (
        Index("idx_screenshot_trade", "trade_id"),
    )


class RiskAlert(Base):
    """Trading rule violation recorded when a trade was created."""

    __tablename__ = "risk_alerts"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    trade_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("trades.id", ondelete="CASCADE"),
        nullable=False,
    )

    rule: Mapped[str] = mapped_column(String(30), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    severity: Mapped[str] = mapped_column(String(10), nullable=False)
    acknowledged: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)

    trade: Mapped["Trade"] = relationship(back_populates="alerts")

    __table_args__ = (
        Index("idx_alerts_unacknowledged", "acknowledged"),
    )
