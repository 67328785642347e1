"""
Analysis Engine - Price Extraction.

Regex recovery of entry / stop / target prices from provider
commentary and from trader notes, plus the derived reward/risk.
"""

import re
from dataclasses import dataclass
from typing import Iterable, Optional


# Provider commentary: four or five digit index prices
COMMENTARY_ENTRY = re.compile(r"(?:enter\s*(?:at|:)?\s*|entry\s*:?\s*)(\d{4,5}(?:\.\d+)?)", re.IGNORECASE)
COMMENTARY_STOP = re.compile(r"(?:stop\s*(?:at|:)?\s*|stop\s*loss\s*:?\s*)(\d{4,5}(?:\.\d+)?)", re.IGNORECASE)
COMMENTARY_TARGET = re.compile(r"(?:target\s*(?:at|:)?\s*|profit\s*(?:at|:)?\s*)(\d{4,5}(?:\.\d+)?)", re.IGNORECASE)

# Trader notes
NOTES_ENTRY = re.compile(r"entry\D*?(\d+(?:\.\d+)?)", re.IGNORECASE)
NOTES_STOP = re.compile(r"stop\D*?(\d+(?:\.\d+)?)", re.IGNORECASE)
NOTES_TARGET = re.compile(r"target\D*?(\d+(?:\.\d+)?)", re.IGNORECASE)

# Execution notes may say "actual entry" or "entered at"
EXECUTION_ENTRY = re.compile(r"(?:actual\s+)?ent(?:ry|ered)\D*?(\d+(?:\.\d+)?)", re.IGNORECASE)
EXECUTION_STOP = re.compile(r"(?:actual\s+)?stop\D*?(\d+(?:\.\d+)?)", re.IGNORECASE)
EXECUTION_TARGET = re.compile(r"(?:actual\s+)?(?:target|exit(?:ed)?)\D*?(\d+(?:\.\d+)?)", re.IGNORECASE)


@dataclass
class PriceLevels:
    """Entry / stop / target, any of which may be unknown."""

    entry: Optional[float] = None
    stop: Optional[float] = None
    target: Optional[float] = None

    @property
    def known_count(self) -> int:
        return sum(1 for p in (self.entry, self.stop, self.target) if p is not None)

    @property
    def risk_points(self) -> Optional[float]:
        if self.entry is None or self.stop is None:
            return None
        return abs(self.entry - self.stop)

    @property
    def reward_points(self) -> Optional[float]:
        if self.entry is None or self.target is None:
            return None
        return abs(self.target - self.entry)

    def risk_reward(self, default: float = 2.0) -> float:
        """reward / risk when both are known and risk is non-zero."""
        risk, reward = self.risk_points, self.reward_points
        if risk is None or reward is None or risk == 0:
            return default
        return round(reward / risk, 2)

    def project_target(self, rr: float) -> None:
        """Fill a missing target at `rr` times the risk beyond entry."""
        if self.target is not None or self.entry is None or self.stop is None:
            return
        risk = abs(self.entry - self.stop)
        direction = 1 if self.entry > self.stop else -1
        self.target = self.entry + direction * risk * rr


def _first(pattern: re.Pattern, text: str) -> Optional[float]:
    match = pattern.search(text)
    if not match:
        return None
    try:
        value = float(match.group(1))
    except ValueError:
        return None
    return value if value > 0 else None


def extract_from_commentary(texts: Iterable[str], rr: float) -> PriceLevels:
    """
    Extract planned prices from provider commentary and observations.

    A missing target is projected from entry and stop at `rr`.
    """
    combined = " ".join(t for t in texts if t)
    levels = PriceLevels(
        entry=_first(COMMENTARY_ENTRY, combined),
        stop=_first(COMMENTARY_STOP, combined),
        target=_first(COMMENTARY_TARGET, combined),
    )
    levels.project_target(rr)
    return levels


def extract_from_notes(notes: Optional[str]) -> PriceLevels:
    if not notes:
        return PriceLevels()
    return PriceLevels(
        entry=_first(NOTES_ENTRY, notes),
        stop=_first(NOTES_STOP, notes),
        target=_first(NOTES_TARGET, notes),
    )


def extract_execution_prices(notes: Optional[str]) -> PriceLevels:
    if not notes:
        return PriceLevels()
    return PriceLevels(
        entry=_first(EXECUTION_ENTRY, notes),
        stop=_first(EXECUTION_STOP, notes),
        target=_first(EXECUTION_TARGET, notes),
    )


__all__ = [
    "PriceLevels",
    "extract_from_commentary",
    "extract_from_notes",
    "extract_execution_prices",
]
