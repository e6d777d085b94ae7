"""Opening-log helpers: building new observations and the hourly heatmap."""

from collections.abc import Iterable
from datetime import datetime

from visa_radar.radar.models import MonitorableRecord, OpeningLogEntry
from visa_radar.radar.urgency import weekday_name


def observe_opening(record: MonitorableRecord, now: datetime) -> OpeningLogEntry:
    """Build the opening-log entry for an appointment obtained at ``now``."""
    return OpeningLogEntry(
        destination=record.destination,
        center=record.center or "N/A",
        visa_type=record.visa_type,
        found_at=now,
        day_of_week=weekday_name(now),
        time_of_day=f"{now.hour:02d}:{now.minute:02d}",
    )


def opening_heatmap(opening_logs: Iterable[OpeningLogEntry]) -> dict[str, int]:
    """Count observed openings per hour of day, keyed "00h" through "23h"."""
    counts = {f"{hour:02d}h": 0 for hour in range(24)}
    for log in opening_logs:
        key = f"{log.time_of_day[:2]}h"
        if key in counts:
            counts[key] += 1
    return counts
