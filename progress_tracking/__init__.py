"""
Progress Tracking Package.

Account growth projections and weekly performance metrics.
"""

from .projection import (
    confidence_level,
    five_year_projection,
    next_milestone,
    project_balance,
    required_weekly_return,
    scenario_projection,
    weekly_performance_metrics,
)

__all__ = [
    "confidence_level",
    "five_year_projection",
    "next_milestone",
    "project_balance",
    "required_weekly_return",
    "scenario_projection",
    "weekly_performance_metrics",
]
