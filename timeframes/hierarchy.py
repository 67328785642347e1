"""
Timeframes - Hierarchy Resolver.

============================================================
PURPOSE
============================================================
Resolves one upload batch of timeframes into a hierarchy:

    entry     <- first entry_timing timeframe
    structure <- first structure timeframe
    trend     <- first trend timeframe
    bias      <- first bias timeframe

Items are sorted ascending by weight (stable, so ties keep
upload order). Extra items of an already-filled role stay
unassigned but remain classified.

COMPLETENESS:
    40 + 20 (entry) + 25 (structure) + 10 (trend) + 5 (bias)
    capped at 100

============================================================
"""

import logging
from typing import Iterable, List, Sequence, Union

from core.exceptions import InputValidationError

from .classifier import classify_timeframe
from .types import (
    BASE_COMPLETENESS,
    ROLE_COMPLETENESS_POINTS,
    ROLE_FOR_PRIORITY,
    ClassifiedTimeframe,
    TimeframeHierarchy,
    TimeframeInput,
)


logger = logging.getLogger(__name__)


def _coerce_inputs(items: Iterable[Union[TimeframeInput, str]]) -> List[TimeframeInput]:
    coerced = []
    for item in items:
        if isinstance(item, TimeframeInput):
            coerced.append(item)
        else:
            coerced.append(TimeframeInput(label=str(item)))
    return coerced


def resolve_hierarchy(items: Sequence[Union[TimeframeInput, str]]) -> TimeframeHierarchy:
    """
    Resolve an upload batch into a TimeframeHierarchy.

    Args:
        items: Uploaded timeframes (TimeframeInput or bare labels)

    Returns:
        TimeframeHierarchy

    Raises:
        InputValidationError: If the batch is empty
    """
    inputs = _coerce_inputs(items)
    if not inputs:
        raise InputValidationError(
            "At least one timeframe is required",
            field="timeframes",
        )

    classified = [
        ClassifiedTimeframe(
            label=item.label,
            classification=classify_timeframe(item.label),
            is_primary=item.is_primary,
            input_index=index,
        )
        for index, item in enumerate(inputs)
    ]

    # sorted() is stable: equal weights keep upload order
    ordered = sorted(classified, key=lambda tf: tf.classification.weight)

    roles = {}
    for tf in ordered:
        role = ROLE_FOR_PRIORITY.get(tf.classification.priority)
        if role is not None and role not in roles:
            tf.role = role
            roles[role] = tf

    flagged = [tf for tf in ordered if tf.is_primary]
    if len(flagged) > 1:
        logger.warning(
            f"Multiple primary timeframes flagged ({[tf.label for tf in flagged]}), "
            f"using first in upload order"
        )
    primary = (
        min(flagged, key=lambda tf: tf.input_index) if flagged else ordered[0]
    )

    completeness = BASE_COMPLETENESS + sum(
        ROLE_COMPLETENESS_POINTS[role] for role in roles
    )

    hierarchy = TimeframeHierarchy(
        timeframes=ordered,
        primary=primary,
        roles=roles,
        completeness=min(100, completeness),
    )

    role_labels = {role.value: tf.label for role, tf in roles.items()}
    logger.debug(
        f"Resolved hierarchy: primary={primary.label} roles={role_labels} "
        f"completeness={hierarchy.completeness}"
    )
    return hierarchy


__all__ = ["resolve_hierarchy"]
