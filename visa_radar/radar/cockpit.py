"""Cockpit ordering: one focused record at a time, most pressing first."""

from collections.abc import Iterable, Sequence
from datetime import datetime
from typing_extensions import TypedDict

from visa_radar.radar import urgency
from visa_radar.radar.models import MonitorableRecord, OpeningLogEntry, TimeDisplay, is_monitorable
from visa_radar.radar.timefmt import describe_last_checked

# Elapsed minutes beyond this (including "never") stop growing the sort key
RECENCY_CAP_MINUTES = 10000
RECENCY_CAP_POINTS = 100


class RankedRecord(TypedDict):
    record: MonitorableRecord
    urgency_score: int
    history_match: bool
    time_display: TimeDisplay
    sort_score: float


def recency_points(display: TimeDisplay) -> float:
    if display["minutes_elapsed"] > RECENCY_CAP_MINUTES:
        return RECENCY_CAP_POINTS
    return display["minutes_elapsed"] / 10


class CockpitRanker:
    """Ranked list of waiting records with keyboard-style focus traversal."""

    def __init__(self, *, secondary_window: bool = False) -> None:
        self._secondary_window = secondary_window
        self._ranked: list[RankedRecord] = []
        self._index = 0

    @property
    def index(self) -> int:
        return self._index

    @property
    def ranked(self) -> list[RankedRecord]:
        return list(self._ranked)

    def rank(
        self,
        records: Iterable[MonitorableRecord],
        opening_logs: Sequence[OpeningLogEntry],
        now: datetime,
    ) -> list[RankedRecord]:
        """Score eligible records and sort them, highest first (stable on ties)."""
        ranked: list[RankedRecord] = []
        for record in records:
            if not is_monitorable(record):
                continue
            result = urgency.score(record, opening_logs, now, secondary_window=self._secondary_window)
            display = describe_last_checked(record.last_checked, now)
            ranked.append(
                RankedRecord(
                    record=record,
                    urgency_score=result["score"],
                    history_match=result["history_match"],
                    time_display=display,
                    sort_score=result["score"] + recency_points(display),
                )
            )
        ranked.sort(key=lambda r: r["sort_score"], reverse=True)
        self._ranked = ranked
        self._index = min(self._index, max(len(ranked) - 1, 0))
        return list(ranked)

    def focused(self) -> RankedRecord | None:
        if not self._ranked:
            return None
        return self._ranked[self._index]

    def focus(self, index: int) -> RankedRecord | None:
        if 0 <= index < len(self._ranked):
            self._index = index
        return self.focused()

    def next(self) -> RankedRecord | None:
        """Move focus forward, wrapping to the first record after the last."""
        if self._ranked:
            self._index = self._index + 1 if self._index < len(self._ranked) - 1 else 0
        return self.focused()

    def previous(self) -> RankedRecord | None:
        """Move focus back; stays on the first record."""
        if self._index > 0:
            self._index -= 1
        return self.focused()
