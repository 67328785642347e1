"""
Trade Lifecycle - Phase State Machine.

============================================================
STATE MACHINE
============================================================

    PRE_TRADE ──────────────► COMPLETE
        │                        ▲
        └──► EXECUTION ──────────┘

INVARIANTS:
- COMPLETE is terminal
- Phases never regress
- Every transition is checked against VALID_TRANSITIONS

The EXECUTION phase is reachable for an execution recorded in
more than one step; execution submission moves PRE_TRADE
directly to COMPLETE.

============================================================
"""

import logging
from typing import Dict, Set

from core.exceptions import InvalidTransitionError

from .types import TradePhase


logger = logging.getLogger(__name__)


VALID_TRANSITIONS: Dict[TradePhase, Set[TradePhase]] = {
    TradePhase.PRE_TRADE: {
        TradePhase.EXECUTION,
        TradePhase.COMPLETE,
    },
    TradePhase.EXECUTION: {
        TradePhase.COMPLETE,
    },
    TradePhase.COMPLETE: set(),
}


class TransitionGuard:
    """
    Guard for phase transitions.

    Ensures transitions are valid and provides reason for denial.
    """

    @staticmethod
    def can_transition(from_phase: TradePhase, to_phase: TradePhase) -> tuple[bool, str]:
        """
        Check if transition is allowed.

        Returns:
            Tuple of (allowed, reason)
        """
        if to_phase in VALID_TRANSITIONS[from_phase]:
            return True, "Valid transition"

        if from_phase.is_terminal():
            return False, f"Cannot transition from terminal phase {from_phase.value}"

        if from_phase == to_phase:
            return False, f"Trade already in phase {from_phase.value}"

        return False, f"Invalid transition: {from_phase.value} -> {to_phase.value}"

    @staticmethod
    def require(from_phase: TradePhase, to_phase: TradePhase) -> None:
        """
        Raises:
            InvalidTransitionError: Transition not in VALID_TRANSITIONS
        """
        allowed, reason = TransitionGuard.can_transition(from_phase, to_phase)
        if not allowed:
            logger.warning(f"Rejected phase transition: {reason}")
            raise InvalidTransitionError(from_phase.value, to_phase.value, reason)
