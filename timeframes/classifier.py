"""
Timeframes - Classifier.

============================================================
PURPOSE
============================================================
Maps a free-form timeframe label to a TimeframeClassification.

ALGORITHM:
1. Normalize (lowercase, trim)
2. Match canonical patterns, ultra_short -> long_term
3. Parse {number}{unit} and bucket by numeric thresholds
4. Otherwise: custom with a neutral mid-range weight

INVARIANTS:
- Total: never raises, any input yields a classification
- Pure: same label, same classification

============================================================
"""

import re
from typing import Any, List, Optional, Tuple

from .types import (
    AnalyticalPriority,
    Suitability,
    TimeframeCategory,
    TimeframeClassification,
)


# ============================================================
# CANONICAL CLASSIFICATIONS
# ============================================================

ULTRA_SHORT = TimeframeClassification(
    category=TimeframeCategory.ULTRA_SHORT,
    priority=AnalyticalPriority.ENTRY_TIMING,
    weight=1,
    suitability=Suitability.EXCELLENT,
    description="Precision entry timing and momentum confirmation",
)

SHORT_TERM = TimeframeClassification(
    category=TimeframeCategory.SHORT_TERM,
    priority=AnalyticalPriority.STRUCTURE,
    weight=2,
    suitability=Suitability.GOOD,
    description="Intraday structure, key levels and pattern development",
)

MEDIUM_TERM = TimeframeClassification(
    category=TimeframeCategory.MEDIUM_TERM,
    priority=AnalyticalPriority.TREND,
    weight=3,
    suitability=Suitability.MODERATE,
    description="Trend direction and major support/resistance",
)

LONG_TERM = TimeframeClassification(
    category=TimeframeCategory.LONG_TERM,
    priority=AnalyticalPriority.BIAS,
    weight=4,
    suitability=Suitability.LIMITED,
    description="Directional bias and macro context",
)

CUSTOM = TimeframeClassification(
    category=TimeframeCategory.CUSTOM,
    priority=AnalyticalPriority.CONTEXT,
    weight=2.5,
    suitability=Suitability.UNKNOWN,
    description="Custom timeframe, used as supporting context",
)

# Ordered shortest horizon first
CANONICAL_PATTERNS: List[Tuple[re.Pattern, TimeframeClassification]] = [
    (re.compile(r"^(15s|30s|1min|2min|3min|5min)$"), ULTRA_SHORT),
    (re.compile(r"^(10min|15min|30min|1hr|2hr|4hr)$"), SHORT_TERM),
    (re.compile(r"^(daily|1d|2d|3d)$"), MEDIUM_TERM),
    (re.compile(r"^(weekly|1w|monthly|1m|quarterly|yearly)$"), LONG_TERM),
]

NUMERIC_PATTERN = re.compile(r"^(\d+)(min|m|h|hr|hours?|d|days?|w|weeks?|mo|months?)$")


def _bucket_numeric(value: int, unit: str) -> Optional[TimeframeClassification]:
    """Bucket a parsed {number}{unit} label. None when no bucket applies."""
    if unit in ("min", "m"):
        if value <= 5:
            return ULTRA_SHORT
        if value <= 60:
            return SHORT_TERM
        return None

    if unit in ("h", "hr", "hour", "hours"):
        if value <= 4:
            return SHORT_TERM
        if value <= 24:
            return MEDIUM_TERM
        return None

    if unit in ("d", "day", "days"):
        return MEDIUM_TERM if value <= 3 else LONG_TERM

    # weeks and months
    return LONG_TERM


def normalize_label(label: Any) -> str:
    """Lowercase and trim; non-strings normalize to an empty label."""
    if not isinstance(label, str):
        return ""
    return label.strip().lower()


def classify_timeframe(label: Any) -> TimeframeClassification:
    """
    Classify a timeframe label.

    Args:
        label: Free-form label such as "5min", "4hr", "daily"

    Returns:
        TimeframeClassification (custom when unrecognized)
    """
    normalized = normalize_label(label)
    if not normalized:
        return CUSTOM

    for pattern, classification in CANONICAL_PATTERNS:
        if pattern.match(normalized):
            return classification

    match = NUMERIC_PATTERN.match(normalized)
    if match:
        bucket = _bucket_numeric(int(match.group(1)), match.group(2))
        if bucket is not None:
            return bucket

    return CUSTOM


__all__ = [
    "CANONICAL_PATTERNS",
    "CUSTOM",
    "classify_timeframe",
    "normalize_label",
]
