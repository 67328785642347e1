"""
Progress Tracking - Account Growth Projection.

============================================================
PURPOSE
============================================================
Long-horizon account projections for the weekly progress view.

Compounding model, one step per week:
    balance = (balance + weekly_deposit) * (1 + weekly_return / 100)

The weekly deposit is chosen once from the starting balance:
phase 1 below phase_one_threshold, phase 2 at or above it.

All heuristic constants come from ProjectionParameters.

============================================================
"""

import logging
import math
from datetime import date, timedelta
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from core.config import ProjectionParameters
from storage.repositories import TradeRepository


logger = logging.getLogger(__name__)


HORIZON_START = date(2025, 1, 1)
HORIZON_END = date(2030, 1, 1)
DAYS_PER_MONTH = 30.44

CONFIDENCE_FLOOR = 0.1
CONFIDENCE_CEILING = 1.0
HIGH_CONFIDENCE = 0.7
MEDIUM_CONFIDENCE = 0.4

ACTIVE_WEEK_TRADES = 2
QUALITY_SETUP_SCORE = 7
WEAK_SETUP_SCORE = 5
ON_PACE_PERCENT = 0.5

SNAPSHOT_EVERY_WEEKS = 4
MAX_SNAPSHOTS = 60


def _params(params: Optional[ProjectionParameters]) -> ProjectionParameters:
    return params or ProjectionParameters()


def phase_for_balance(balance: float, params: Optional[ProjectionParameters] = None) -> int:
    return 2 if balance >= _params(params).phase_one_threshold else 1


def weekly_deposit_for(balance: float, params: Optional[ProjectionParameters] = None) -> float:
    params = _params(params)
    if phase_for_balance(balance, params) == 1:
        return params.weekly_deposit_phase_one
    return params.weekly_deposit_phase_two


def project_balance(balance: float, weeks: int, weekly_deposit: float, weekly_return: float) -> float:
    """Balance after compounding deposit and return for the given weeks."""
    for _ in range(max(0, weeks)):
        balance += weekly_deposit
        balance *= 1 + weekly_return / 100
    return balance


def required_weekly_return(
    balance: float,
    target: float,
    weeks: int,
    deposit: float,
    params: Optional[ProjectionParameters] = None,
) -> float:
    """
    Weekly return (percent) that reaches target, by bounded search.

    Starts at 0, steps up while short of target and down while
    above it, stopping within the tolerance or after the
    configured number of iterations. Never negative.
    """
    params = _params(params)
    if weeks <= 0:
        return 0.0

    required = 0.0
    for _ in range(params.search_iterations):
        projected = project_balance(balance, weeks, deposit, required)
        if abs(projected - target) < params.search_tolerance:
            break
        if projected < target:
            required += params.search_step_up
        else:
            required -= params.search_step_down

    return max(0.0, round(required, 2))


def confidence_level(
    week_trades: int,
    avg_setup_quality: float,
    week_pnl_percent: float,
    params: Optional[ProjectionParameters] = None,
) -> str:
    """high, medium or low from this week's activity, setup quality and P&L."""
    params = _params(params)
    weights = params.confidence_adjustments
    confidence = params.confidence_base

    if week_trades >= ACTIVE_WEEK_TRADES:
        confidence += weights.get("active_week", 0.0)
    if avg_setup_quality >= QUALITY_SETUP_SCORE:
        confidence += weights.get("quality_setups", 0.0)
    if week_pnl_percent >= ON_PACE_PERCENT:
        confidence += weights.get("on_pace", 0.0)
    if week_pnl_percent >= params.target_weekly_return:
        confidence += weights.get("target_met", 0.0)
    if week_pnl_percent < 0:
        confidence += weights.get("losing_week", 0.0)
    if avg_setup_quality < WEAK_SETUP_SCORE:
        confidence += weights.get("weak_setups", 0.0)

    confidence = max(CONFIDENCE_FLOOR, min(CONFIDENCE_CEILING, confidence))
    if confidence > HIGH_CONFIDENCE:
        return "high"
    if confidence > MEDIUM_CONFIDENCE:
        return "medium"
    return "low"


def five_year_projection(
    current_balance: float,
    week_pnl_percent: float = 0.0,
    week_trades: int = 0,
    avg_setup_quality: float = 0.0,
    today: Optional[date] = None,
    params: Optional[ProjectionParameters] = None,
) -> Dict[str, Any]:
    """
    Projection from today to the end of the five-year horizon.

    This week's return stands in for the average when non-zero,
    otherwise the target weekly return is used.
    """
    params = _params(params)
    today = today or date.today()

    days_elapsed = (today - HORIZON_START).days
    total_days = (HORIZON_END - HORIZON_START).days
    weeks_remaining = max(0, (total_days - days_elapsed) // 7)

    phase = phase_for_balance(current_balance, params)
    deposit = weekly_deposit_for(current_balance, params)
    weekly_return = week_pnl_percent or params.target_weekly_return

    projected = project_balance(current_balance, weeks_remaining, deposit, weekly_return)
    trajectory = (projected - params.target_balance) / params.target_balance * 100

    return {
        "months_elapsed": int(days_elapsed // DAYS_PER_MONTH),
        "projected_final_balance": round(projected),
        "target_balance": params.target_balance,
        "current_trajectory": f"{'+' if trajectory > 0 else ''}{round(trajectory)}%",
        "confidence_level": confidence_level(week_trades, avg_setup_quality, week_pnl_percent, params),
        "phase": phase,
        "weeks_remaining": weeks_remaining,
        "required_weekly_return": required_weekly_return(
            current_balance, params.target_balance, weeks_remaining, deposit, params,
        ),
    }


def _scenario(balance: float, weekly_return: float, params: ProjectionParameters) -> Dict[str, Any]:
    deposit = weekly_deposit_for(balance, params)
    snapshots: List[Dict[str, Any]] = []

    for week in range(params.scenario_weeks):
        balance = project_balance(balance, 1, deposit, weekly_return)
        if week % SNAPSHOT_EVERY_WEEKS == 0:
            snapshots.append({
                "month": week // SNAPSHOT_EVERY_WEEKS + 1,
                "balance": round(balance),
                "phase": phase_for_balance(balance, params),
            })

    if balance >= params.target_balance:
        probability = "High"
    elif balance >= params.target_balance * 0.75:
        probability = "Medium"
    else:
        probability = "Low"

    return {
        "weekly_return": weekly_return,
        "final_balance": round(balance),
        "monthly_snapshots": snapshots[:MAX_SNAPSHOTS],
        "success_probability": probability,
    }


def scenario_projection(
    current_balance: float,
    executed_trades: int = 0,
    params: Optional[ProjectionParameters] = None,
) -> Dict[str, Any]:
    """Conservative, realistic and optimistic scenarios with recommendations."""
    params = _params(params)
    scenarios = {
        name: _scenario(current_balance, weekly_return, params)
        for name, weekly_return in params.scenario_returns.items()
    }

    risks = []
    if executed_trades < 10:
        risks.append({
            "risk": "Limited trading history",
            "severity": "Medium",
            "mitigation": "Focus on consistent execution",
        })

    recommendations = []
    realistic = scenarios.get("realistic")
    if realistic is not None and realistic["final_balance"] < params.target_balance:
        recommendations.append("Consider increasing weekly return target to 1.0%")
    if executed_trades < 50:
        recommendations.append("Focus on building consistent trading rhythm")

    return {
        "current_balance": current_balance,
        "scenarios": scenarios,
        "risk_assessment": risks,
        "recommendations": recommendations,
    }


def next_milestone(
    current_balance: float,
    today: Optional[date] = None,
    params: Optional[ProjectionParameters] = None,
) -> Dict[str, Any]:
    """
    The next milestone above the balance and an estimate to reach it.

    Weeks needed assume the target weekly return on the current
    balance, without deposits.
    """
    params = _params(params)
    today = today or date.today()

    upcoming = next((m for m in sorted(params.milestones) if m > current_balance), None)
    if upcoming is None:
        return {
            "target": params.target_balance,
            "estimated_date": "Target Achieved",
            "trades_needed": 0,
            "amount_needed": 0,
            "weeks_needed": 0,
        }

    amount_needed = upcoming - current_balance
    weekly_gain = current_balance * params.target_weekly_return / 100
    weeks_needed = math.ceil(amount_needed / weekly_gain) if weekly_gain > 0 else None

    return {
        "target": upcoming,
        "estimated_date": (
            (today + timedelta(weeks=weeks_needed)).isoformat() if weeks_needed is not None else None
        ),
        "trades_needed": (
            math.ceil(weeks_needed * params.trades_per_week_estimate) if weeks_needed is not None else None
        ),
        "amount_needed": amount_needed,
        "weeks_needed": weeks_needed,
    }


def weekly_performance_metrics(session: Session, week: int, year: int) -> Dict[str, Any]:
    """Trade counts, win rate and P&L for one ISO week of stored trades."""
    row = TradeRepository(session).weekly_aggregates(week, year)

    executed = row["executed_trades"] or 0
    win_rate = (row["winning_trades"] or 0) / executed * 100 if executed else 0.0

    metrics = {
        "week_number": week,
        "year": year,
        "total_analyses": row["total_trades"] or 0,
        "executed_trades": executed,
        "win_rate": round(win_rate),
        "avg_setup_quality": round(float(row["avg_setup_quality"] or 0), 1),
        "avg_pnl_per_trade": round(float(row["avg_pnl_per_trade"] or 0), 2),
        "total_week_pnl": round(float(row["total_pnl"] or 0), 2),
    }
    logger.debug(f"Weekly metrics {year}-W{week:02d}: {metrics}")
    return metrics


__all__ = [
    "confidence_level",
    "five_year_projection",
    "next_milestone",
    "phase_for_balance",
    "project_balance",
    "required_weekly_return",
    "scenario_projection",
    "weekly_deposit_for",
    "weekly_performance_metrics",
]
