"""Re-check interval policy.

Manual priority modes and automatic scoring map onto the same three tiers so
an operator override feels identical to what ``auto`` would pick.
"""

from visa_radar.radar.models import PriorityMode, TimeDisplay

URGENT_MINUTES = 30
NORMAL_MINUTES = 120
DORMANT_MINUTES = 1440

_MODE_INTERVALS: dict[str, int] = {
    "urgent": URGENT_MINUTES,
    "normal": NORMAL_MINUTES,
    "dormant": DORMANT_MINUTES,
}


def interval_minutes(priority_mode: PriorityMode, urgency_score: int) -> int:
    """Minutes to wait between manual checks for a record."""
    if priority_mode in _MODE_INTERVALS:
        return _MODE_INTERVALS[priority_mode]
    if urgency_score >= 50:
        return URGENT_MINUTES
    if urgency_score >= 20:
        return NORMAL_MINUTES
    return DORMANT_MINUTES


def is_due(display: TimeDisplay, interval: int) -> bool:
    if display["tier"] == "never":
        return True
    return display["minutes_elapsed"] >= interval
