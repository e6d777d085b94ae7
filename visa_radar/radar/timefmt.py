"""Parsing and bucketing of "last checked" timestamps.

The CRM stores ``last_checked`` as free text.  Two shapes occur in practice:
ISO-8601 timestamps, and the compact ``D/M H:MM`` stamp written by the
mark-as-checked action, which omits the year.  All datetimes here are naive
local wall-clock times.
"""

import re
from dataclasses import dataclass
from datetime import datetime

from visa_radar.radar.models import TimeDisplay

NEVER_MINUTES = 999999

_COMPACT_RE = re.compile(r"^(\d{1,2})/(\d{1,2})\s+(\d{1,2}):(\d{1,2})$")


@dataclass(frozen=True)
class Parsed:
    value: datetime


@dataclass(frozen=True)
class Unparseable:
    raw: str
    reason: str


ParseResult = Parsed | Unparseable


def parse_last_checked(raw: str | None, now: datetime) -> ParseResult:
    """Parse a stored ``last_checked`` value. Never raises.

    Args:
        raw: The stored string (may be None or empty).
        now: Reference time used for year inference of compact stamps.

    Returns:
        ``Parsed`` with a naive local datetime, or ``Unparseable`` with a reason.
    """
    if raw is None or not raw.strip():
        return Unparseable(raw=raw or "", reason="empty")
    text = raw.strip()

    try:
        value = datetime.fromisoformat(text)
    except ValueError:
        pass
    else:
        if value.tzinfo is not None:
            value = value.astimezone().replace(tzinfo=None)
        return Parsed(value)

    match = _COMPACT_RE.match(text)
    if match is None:
        return Unparseable(raw=text, reason="unrecognized format")

    day, month, hour, minute = (int(g) for g in match.groups())
    try:
        value = datetime(now.year, month, day, hour, minute)
        # No year in the stamp: a future result means it was written last year
        if value > now:
            value = value.replace(year=now.year - 1)
    except ValueError as exc:
        return Unparseable(raw=text, reason=str(exc))
    return Parsed(value)


def classify(parsed: datetime | None, now: datetime) -> TimeDisplay:
    """Bucket the time elapsed since ``parsed`` into a display tier."""
    if parsed is None:
        return TimeDisplay(text="never", minutes_elapsed=NEVER_MINUTES, tier="never")
    if parsed > now:
        # Clock skew between operator machines
        return TimeDisplay(text="just now", minutes_elapsed=0, tier="just_now")

    minutes = int((now - parsed).total_seconds() // 60)
    if minutes < 60:
        return TimeDisplay(text=f"{minutes} min", minutes_elapsed=minutes, tier="fresh")
    if minutes < 1440:
        hours, mins = divmod(minutes, 60)
        tier = "recent" if minutes < 240 else "aging"
        return TimeDisplay(text=f"{hours}h {mins}min", minutes_elapsed=minutes, tier=tier)
    days = minutes // 1440
    return TimeDisplay(text=f"{days} day{'s' if days > 1 else ''}", minutes_elapsed=minutes, tier="stale")


def describe_last_checked(raw: str | None, now: datetime) -> TimeDisplay:
    """Parse and classify in one step; garbage is shown as never checked."""
    result = parse_last_checked(raw, now)
    if isinstance(result, Parsed):
        return classify(result.value, now)
    display = classify(None, now)
    if result.reason != "empty":
        display["text"] = "invalid date"
    return display


def format_check_stamp(now: datetime) -> str:
    """Render the compact ``D/M H:MM`` stamp written when a record is checked."""
    return f"{now.day}/{now.month} {now.hour}:{now.minute:02d}"
