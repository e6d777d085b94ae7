"""Urgency scoring: target-date pressure plus historical opening patterns."""

import math
from collections.abc import Iterable
from datetime import datetime, time, timedelta

from visa_radar.radar.models import MonitorableRecord, OpeningLogEntry, UrgencyResult

# Weekday names as written into the opening log, indexed by datetime.weekday()
WEEKDAY_NAMES = ("Lundi", "Mardi", "Mercredi", "Jeudi", "Vendredi", "Samedi", "Dimanche")

TARGET_WINDOW_DAYS = 15
TARGET_WINDOW_POINTS = 50
SECONDARY_WINDOW_DAYS = 30
SECONDARY_WINDOW_POINTS = 20
HISTORY_MATCH_POINTS = 100


def weekday_name(moment: datetime) -> str:
    return WEEKDAY_NAMES[moment.weekday()]


def days_until(start: datetime, now: datetime) -> int:
    """Whole days until ``start``, rounded up (a partial day counts as one)."""
    return math.ceil((start - now) / timedelta(days=1))


def matches_history(destination: str, opening_logs: Iterable[OpeningLogEntry], now: datetime) -> bool:
    """Whether slots for ``destination`` have opened before on this weekday at this hour."""
    day = weekday_name(now)
    hour = f"{now.hour:02d}"
    return any(
        log.destination == destination and log.day_of_week == day and log.time_of_day.startswith(hour)
        for log in opening_logs
    )


def score(
    record: MonitorableRecord,
    opening_logs: Iterable[OpeningLogEntry],
    now: datetime,
    *,
    secondary_window: bool = False,
) -> UrgencyResult:
    """Compute the urgency score and history-match flag for a record.

    Args:
        record: The record to score.
        opening_logs: Read-only history of observed slot openings.
        now: Reference time.
        secondary_window: Also add 20 points when the target window starts
            within 30 days (the single 15-day threshold applies otherwise).
    """
    total = 0
    if record.target_date_start is not None:
        start = datetime.combine(record.target_date_start, time.min)
        remaining = days_until(start, now)
        if remaining < TARGET_WINDOW_DAYS:
            total += TARGET_WINDOW_POINTS
        elif secondary_window and remaining < SECONDARY_WINDOW_DAYS:
            total += SECONDARY_WINDOW_POINTS

    history_match = matches_history(record.destination, opening_logs, now)
    if history_match:
        total += HISTORY_MATCH_POINTS

    return UrgencyResult(score=total, history_match=history_match)
