"""
Storage Models Package.

ORM models for the journal database, organized by domain.

============================================================
MODEL ORGANIZATION
============================================================

Trades (trades.py)
- Trade
- ScreenshotAnalysis
- RiskAlert

Patterns (patterns.py)
- SetupPatternStat
- ExecutionPatternStat

Navigation (navigation.py)
- NavigationEntry

============================================================
"""

from storage.models.base import Base, TimestampMixin, utcnow
from storage.models.navigation import NavigationEntry
from storage.models.patterns import ExecutionPatternStat, SetupPatternStat
from storage.models.trades import RiskAlert, ScreenshotAnalysis, Trade

__all__ = [
    "Base",
    "TimestampMixin",
    "utcnow",
    "Trade",
    "ScreenshotAnalysis",
    "RiskAlert",
    "SetupPatternStat",
    "ExecutionPatternStat",
    "NavigationEntry",
]
