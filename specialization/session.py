"""
Specialization - Session Timing.

Parses free-form session times ("9:35 AM", "09:35", "935") and
rates them against the configured intraday session bands.

The setup clock is resolved the same way everywhere: the
caller's session_info first, then the setup timestamp in the
exchange timezone. Naive timestamps are taken as exchange local.
"""

import re
from datetime import datetime, time
from typing import Optional
from zoneinfo import ZoneInfo

from core.config import DEFAULT_SESSION_TIMEZONE, SpecializationSettings

from .types import SessionTiming


AMPM_PATTERN = re.compile(r"(\d{1,2}):?(\d{2})?\s*(am|pm)")
CLOCK_PATTERN = re.compile(r"(\d{1,2}):?(\d{2})")


def parse_session_hour(session_info: Optional[str]) -> Optional[float]:
    """
    Parse a session time into decimal hours.

    Returns:
        Decimal hour (e.g. 9.5833 for 9:35) or None if nothing parses
    """
    if not session_info:
        return None

    text = str(session_info).lower()

    match = AMPM_PATTERN.search(text)
    if match:
        hour = int(match.group(1))
        minute = int(match.group(2) or 0)
        if match.group(3) == "pm" and hour != 12:
            hour += 12
        if match.group(3) == "am" and hour == 12:
            hour = 0
    else:
        match = CLOCK_PATTERN.search(text)
        if not match:
            return None
        hour = int(match.group(1))
        minute = int(match.group(2))

    if hour > 23 or minute > 59:
        return None
    return hour + minute / 60


def session_clock(
    session_info: Optional[str],
    timestamp: Optional[datetime] = None,
    timezone_name: str = DEFAULT_SESSION_TIMEZONE,
) -> Optional[time]:
    """
    Exchange-local time of day of a setup.

    Returns:
        session_info when it parses, else the timestamp converted to
        timezone_name, else None
    """
    decimal_hour = parse_session_hour(session_info)
    if decimal_hour is not None:
        minutes = round(decimal_hour * 60)
        return time(minutes // 60, minutes % 60)

    if timestamp is None:
        return None
    if timestamp.tzinfo is not None:
        timestamp = timestamp.astimezone(ZoneInfo(timezone_name))
    return timestamp.time()


def analyze_session_timing(
    session_info: Optional[str],
    settings: SpecializationSettings,
    timestamp: Optional[datetime] = None,
) -> SessionTiming:
    """
    Rate the session in which a setup occurred.

    Args:
        session_info: Caller-provided session time string
        settings: Overlay constants
        timestamp: Fallback when session_info has no parseable time

    Returns:
        SessionTiming
    """
    clock = session_clock(session_info, timestamp, settings.session_timezone)
    if clock is None:
        return SessionTiming(
            quality="unknown",
            risk_adjustment=settings.unknown_session_adjustment,
            reason="Session time not provided",
        )

    decimal_hour = clock.hour + clock.minute / 60
    for band in settings.session_bands:
        if band.start_hour <= decimal_hour < band.end_hour:
            return SessionTiming(
                quality=band.quality,
                risk_adjustment=band.risk_adjustment,
                reason=band.note,
                decimal_hour=round(decimal_hour, 4),
            )

    return SessionTiming(
        quality="poor",
        risk_adjustment=settings.off_hours_adjustment,
        reason="Outside regular trading hours or low activity period",
        decimal_hour=round(decimal_hour, 4),
    )
