"""
Risk Validation - Types.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List


class RuleName(str, Enum):
    MAX_RISK = "MAX_RISK"
    TRADING_HOURS = "TRADING_HOURS"
    RISK_REWARD = "RISK_REWARD"


class ViolationSeverity(str, Enum):
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"


@dataclass(frozen=True)
class Violation:
    """A single broken trading rule."""

    rule: RuleName
    message: str
    severity: ViolationSeverity

    def to_dict(self) -> Dict[str, Any]:
        return {
            "rule": self.rule.value,
            "message": self.message,
            "severity": self.severity.value,
        }


@dataclass
class ValidationReport:
    """Outcome of evaluating all trading rules against one analysis."""

    violations: List[Violation] = field(default_factory=list)

    @property
    def valid(self) -> bool:
        return not self.violations

    def to_dict(self) -> Dict[str, Any]:
        return {
            "valid": self.valid,
            "violations": [v.to_dict() for v in self.violations],
        }
