"""
Core Module - Trading Context.

Caller-supplied context for one upload. Defaults are applied to
any missing field so downstream code never checks for absence.
"""

from dataclasses import asdict, dataclass
from typing import Any, Dict, Mapping, Optional


DEFAULT_INSTRUMENT = "MNQ"
DEFAULT_TRADING_STYLE = "mnq_scalping"
DEFAULT_ACCOUNT_SIZE = 67500.0


@dataclass(frozen=True)
class TradingContext:
    """Trading context supplied per upload."""

    instrument: str = DEFAULT_INSTRUMENT
    """Traded instrument symbol."""

    trading_style: str = DEFAULT_TRADING_STYLE
    """Trading style identifier."""

    session_info: str = ""
    """Free-form session time, e.g. '9:35 AM'."""

    account_size: float = DEFAULT_ACCOUNT_SIZE
    """Account size in dollars."""

    primary_timeframe: Optional[str] = None
    """Caller's primary timeframe label. None means first uploaded."""

    weekly_pnl_percent: float = 0.0
    """Week-to-date P&L, percent."""

    trades_this_week: int = 0
    """Trades already taken this week."""

    @classmethod
    def from_mapping(cls, data: Optional[Mapping[str, Any]]) -> "TradingContext":
        """Build from a loosely-typed mapping, defaulting missing or bad fields."""
        data = data or {}

        try:
            account_size = float(data.get("account_size") or DEFAULT_ACCOUNT_SIZE)
        except (TypeError, ValueError):
            account_size = DEFAULT_ACCOUNT_SIZE

        try:
            weekly_pnl = float(data.get("weekly_pnl_percent") or 0.0)
        except (TypeError, ValueError):
            weekly_pnl = 0.0

        try:
            trades_this_week = int(data.get("trades_this_week") or 0)
        except (TypeError, ValueError):
            trades_this_week = 0

        primary = data.get("primary_timeframe")
        return cls(
            instrument=str(data.get("instrument") or DEFAULT_INSTRUMENT).upper(),
            trading_style=str(data.get("trading_style") or DEFAULT_TRADING_STYLE),
            session_info=str(data.get("session_info") or ""),
            account_size=account_size if account_size > 0 else DEFAULT_ACCOUNT_SIZE,
            primary_timeframe=str(primary) if primary else None,
            weekly_pnl_percent=weekly_pnl,
            trades_this_week=max(0, trades_this_week),
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
