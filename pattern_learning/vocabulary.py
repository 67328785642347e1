"""
Pattern Learning - Vocabulary.

Setup patterns seeded into the statistics table, and the
behavioral execution patterns derived from plan-vs-actual
variances.
"""

from analysis_engine.types import SETUP_PATTERNS


SETUP_VOCABULARY = SETUP_PATTERNS

INITIAL_CONFIDENCE = 0.5
SUCCESS_STEP = 0.05
FAILURE_STEP = 0.10

DOMINANT_MIN_FREQUENCY = 2
IMPROVING_ABOVE = 0.0
DECLINING_BELOW = -0.1


def impact_trend(average_impact: float) -> str:
    """improving / declining / stable from a running rr impact."""
    if average_impact > IMPROVING_ABOVE:
        return "improving"
    if average_impact < DECLINING_BELOW:
        return "declining"
    return "stable"
