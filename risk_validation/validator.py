"""
Risk Validation - Trading Rules.

============================================================
PURPOSE
============================================================
Evaluate the fixed trading rules against an analysis.

RULES (independent, all evaluated):
- MAX_RISK       risk_amount above max risk per trade   HIGH
- TRADING_HOURS  setup time outside the session window  MEDIUM
- RISK_REWARD    reward/risk below the minimum          MEDIUM

Pure function: no I/O, no clock reads.

============================================================
"""

import logging
from datetime import datetime
from typing import Optional

from analysis_engine.types import AnalysisResult
from core.config import RiskRules
from core.context import TradingContext
from specialization.session import session_clock

from .types import RuleName, ValidationReport, Violation, ViolationSeverity


logger = logging.getLogger(__name__)


def validate_trading_rules(
    analysis: AnalysisResult,
    context: TradingContext,
    timestamp: Optional[datetime] = None,
    rules: Optional[RiskRules] = None,
) -> ValidationReport:
    """
    Check an analysis against the trading rules.

    Args:
        analysis: Pre-trade analysis
        context: Trading context (session_info preferred over the timestamp)
        timestamp: Setup time, converted to the session timezone when aware
        rules: Rule thresholds (defaults if omitted)

    Returns:
        ValidationReport, valid exactly when no rule is violated
    """
    rules = rules or RiskRules()
    report = ValidationReport()

    if analysis.risk_amount > rules.max_risk_per_trade:
        report.violations.append(Violation(
            rule=RuleName.MAX_RISK,
            message=(
                f"Risk amount ${analysis.risk_amount:g} exceeds maximum "
                f"${rules.max_risk_per_trade:g} per trade"
            ),
            severity=ViolationSeverity.HIGH,
        ))

    setup_time = session_clock(context.session_info, timestamp, rules.session_timezone)
    if setup_time is None:
        logger.debug("No setup time available, TRADING_HOURS not evaluated")
    elif not rules.session_start <= setup_time <= rules.session_end:
        report.violations.append(Violation(
            rule=RuleName.TRADING_HOURS,
            message=(
                f"Setup at {setup_time:%H:%M} is outside the trading window "
                f"{rules.session_start:%H:%M}-{rules.session_end:%H:%M}"
            ),
            severity=ViolationSeverity.MEDIUM,
        ))

    if analysis.risk_reward_ratio < rules.minimum_rr:
        report.violations.append(Violation(
            rule=RuleName.RISK_REWARD,
            message=(
                f"Risk/reward {analysis.risk_reward_ratio:g} is below the "
                f"minimum {rules.minimum_rr:g}"
            ),
            severity=ViolationSeverity.MEDIUM,
        ))

    if report.violations:
        logger.info(
            f"Rule violations: {', '.join(v.rule.value for v in report.violations)}"
        )
    return report


__all__ = ["validate_trading_rules"]
