"""
Risk Validation Package.

Fixed trading rules (max risk, trading hours, reward/risk)
evaluated against every pre-trade analysis.
"""

from .types import RuleName, ValidationReport, Violation, ViolationSeverity
from .validator import validate_trading_rules

__all__ = [
    "RuleName",
    "ValidationReport",
    "Violation",
    "ViolationSeverity",
    "validate_trading_rules",
]
