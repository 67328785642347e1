"""
Repository Layer Package.

============================================================
PURPOSE
============================================================
The only gateway to persistent storage. Sessions are injected,
repositories never commit, and every database error is wrapped
in a repository exception.

============================================================
REPOSITORIES
============================================================
- TradeRepository: Trades, screenshots, phase transition
- RiskAlertRepository: Rule violations
- SetupPatternRepository: Setup pattern statistics
- ExecutionPatternRepository: Execution pattern statistics
- NavigationRepository: Navigation state entries

============================================================
"""

from storage.repositories.base import BaseRepository
from storage.repositories.exceptions import (
    DuplicateRecordError,
    RepositoryException,
    StatementError,
    StorageUnavailableError,
)
from storage.repositories.navigation import NavigationRepository
from storage.repositories.patterns import ExecutionPatternRepository, SetupPatternRepository
from storage.repositories.trades import RiskAlertRepository, TradeRepository

__all__ = [
    "BaseRepository",
    "RepositoryException",
    "DuplicateRecordError",
    "StorageUnavailableError",
    "StatementError",
    "TradeRepository",
    "RiskAlertRepository",
    "SetupPatternRepository",
    "ExecutionPatternRepository",
    "NavigationRepository",
]
