"""
Trade Lifecycle - Execution Grading.

Letter grades from absolute price variance, an overall grade
from their mean value, and the learning synthesis shown after
an execution.
"""

from typing import Any, Dict, List, Sequence

from .types import BehavioralPattern, Outcome, PriceVariance


VARIANCE_GRADES = [
    (1.0, "A+"),
    (2.0, "A"),
    (3.0, "A-"),
    (4.0, "B+"),
    (5.0, "B"),
    (7.0, "B-"),
    (10.0, "C+"),
]
FLOOR_GRADE = "C"

GRADE_VALUES = {
    "A+": 4.3,
    "A": 4.0,
    "A-": 3.7,
    "B+": 3.3,
    "B": 3.0,
    "B-": 2.7,
    "C+": 2.3,
    "C": 2.0,
}

OVERALL_THRESHOLDS = [
    (4.2, "A+"),
    (3.9, "A"),
    (3.5, "A-"),
    (3.2, "B+"),
    (2.9, "B"),
    (2.5, "B-"),
    (2.2, "C+"),
]


def grade_from_variance(variance: float) -> str:
    absolute = abs(variance)
    for limit, grade in VARIANCE_GRADES:
        if absolute <= limit:
            return grade
    return FLOOR_GRADE


def overall_grade(grades: Sequence[str]) -> str:
    """Mean grade value mapped back to a letter. Unknown grades count as C."""
    if not grades:
        return FLOOR_GRADE
    mean = sum(GRADE_VALUES.get(g, GRADE_VALUES[FLOOR_GRADE]) for g in grades) / len(grades)
    for minimum, grade in OVERALL_THRESHOLDS:
        if mean >= minimum:
            return grade
    return FLOOR_GRADE


def grade_breakdown(variances: PriceVariance) -> Dict[str, str]:
    breakdown = {
        "entry_timing": grade_from_variance(variances.entry),
        "stop_management": grade_from_variance(variances.stop),
        "target_selection": grade_from_variance(variances.target),
    }
    breakdown["overall_discipline"] = overall_grade(list(breakdown.values()))
    return breakdown


def next_setup_guidance(pattern_type: str, grade: str) -> str:
    if grade.startswith("A"):
        return f"Excellent execution on {pattern_type}. Replicate this approach on similar setups."
    if grade.startswith("B"):
        return f"Good execution on {pattern_type}. Focus on entry timing refinement."
    return f"{pattern_type} execution needs improvement. Review planned prices before entry."


def learning_synthesis(
    pattern_type: str,
    grade: str,
    variances: PriceVariance,
    execution_timing: str,
    outcome: Outcome,
    patterns: List[BehavioralPattern],
    observations: Sequence[str] = (),
) -> Dict[str, Any]:
    improvement_areas = []
    if execution_timing == "early":
        improvement_areas.append("Entry timing discipline")
    if abs(variances.entry) > 3:
        improvement_areas.append("Price level precision")
    if grade.startswith("C"):
        improvement_areas.append("Overall execution consistency")

    strengths = []
    if execution_timing == "optimal":
        strengths.append("Excellent entry timing")
    if abs(variances.stop) < 2:
        strengths.append("Disciplined stop management")
    if grade.startswith("A"):
        strengths.append("Professional-grade execution")

    if outcome is Outcome.WIN:
        confirmation = f"{pattern_type} pattern confirmed"
    elif outcome is Outcome.LOSS:
        confirmation = f"{pattern_type} pattern contradicted"
    else:
        confirmation = f"{pattern_type} pattern outcome pending"

    return {
        "pattern_confirmation": confirmation,
        "execution_lessons": list(observations),
        "behavioral_patterns": [p.pattern_type for p in patterns],
        "improvement_areas": improvement_areas,
        "strength_reinforcement": strengths,
        "next_similar_setup_guidance": next_setup_guidance(pattern_type, grade),
    }
