"""Live record read model and the operator actions that change it.

``RecordRegistry`` holds the CRM's projection of monitorable records and the
opening history; the CRM replaces it wholesale.  ``OperatorActions`` applies
the two record-level actions the radar owns (mark checked, promote status),
keeps the alert queue consistent with them in the same step, and emits the
effects the CRM must persist.
"""

import logging
from collections.abc import Callable, Iterable, Mapping
from datetime import datetime

from visa_radar.radar.effects import EffectSink
from visa_radar.radar.models import (
    APPOINTMENT_SET,
    CLOSING_STATUSES,
    ApplicationStatus,
    MonitorableRecord,
    OpeningLogEntry,
    is_monitorable,
)
from visa_radar.radar.openings import observe_opening
from visa_radar.radar.queue import AlertQueue
from visa_radar.radar.timefmt import format_check_stamp

logger = logging.getLogger(__name__)


class RecordNotFoundError(LookupError):
    """No record with the given id is known to the radar."""


class RecordRegistry:
    def __init__(
        self,
        records: Iterable[MonitorableRecord] = (),
        openings: Iterable[OpeningLogEntry] = (),
    ) -> None:
        self._records: dict[str, MonitorableRecord] = {r.id: r for r in records}
        self._openings: list[OpeningLogEntry] = list(openings)

    def records(self) -> list[MonitorableRecord]:
        return list(self._records.values())

    def openings(self) -> list[OpeningLogEntry]:
        return list(self._openings)

    def get(self, record_id: str) -> MonitorableRecord:
        try:
            return self._records[record_id]
        except KeyError:
            msg = f"Unknown record '{record_id}'"
            raise RecordNotFoundError(msg) from None

    def put(self, record: MonitorableRecord) -> None:
        self._records[record.id] = record

    def replace_records(self, records: Iterable[MonitorableRecord]) -> None:
        self._records = {r.id: r for r in records}

    def replace_openings(self, openings: Iterable[OpeningLogEntry]) -> None:
        self._openings = list(openings)

    def add_opening(self, entry: OpeningLogEntry) -> None:
        self._openings.insert(0, entry)


def portal_url(record: MonitorableRecord, centers: Mapping[str, str], default: str) -> str:
    """URL the operator opens to check a record: its center, its own portal, or the default."""
    if record.center and record.center in centers:
        return centers[record.center]
    return record.portal_url or default


class OperatorActions:
    def __init__(
        self,
        registry: RecordRegistry,
        queue: AlertQueue,
        effects: EffectSink,
        *,
        check_log_limit: int = 50,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self._registry = registry
        self._queue = queue
        self._effects = effects
        self._check_log_limit = check_log_limit
        self._clock = clock

    def mark_checked(self, record_id: str, now: datetime | None = None) -> MonitorableRecord:
        """Record a manual portal check and resolve the client's pending alert.

        Raises:
            RecordNotFoundError: If the record is unknown.
        """
        now = now or self._clock()
        record = self._registry.get(record_id)
        stamp = format_check_stamp(now)
        check_log = [stamp, *record.check_log][: self._check_log_limit]
        updated = record.model_copy(update={"last_checked": stamp, "check_log": check_log})

        # Same step as the timestamp update, so the next scan sees both
        self._registry.put(updated)
        self._queue.on_record_checked(record.client_id)
        self._effects.record_checked(record.client_id, record.id, stamp, stamp)
        logger.info("Record %s checked at %s", record.id, stamp)
        return updated

    def promote_status(
        self,
        record_id: str,
        new_status: ApplicationStatus,
        now: datetime | None = None,
    ) -> MonitorableRecord:
        """Move a record to a new status, e.g. once an appointment was obtained.

        Promotion to ``appointment_set`` also logs a slot opening observed now.

        Raises:
            RecordNotFoundError: If the record is unknown.
        """
        now = now or self._clock()
        record = self._registry.get(record_id)
        updated = record.model_copy(
            update={
                "status": new_status,
                "archived": record.archived or new_status in CLOSING_STATUSES,
            }
        )
        self._registry.put(updated)
        if not is_monitorable(updated):
            self._queue.acknowledge(record.client_id)
        self._effects.status_promoted(record.client_id, record.id, new_status)

        if new_status == APPOINTMENT_SET:
            entry = observe_opening(record, now)
            self._registry.add_opening(entry)
            self._effects.opening_observed(entry)
        logger.info("Record %s promoted to %s", record.id, new_status)
        return updated

    def sync_records(self, records: Iterable[MonitorableRecord]) -> None:
        """Replace the live records; a changed ``last_checked`` resolves that client's alert."""
        incoming = list(records)
        for record in incoming:
            try:
                previous = self._registry.get(record.id)
            except RecordNotFoundError:
                continue
            if record.last_checked and record.last_checked != previous.last_checked:
                self._queue.on_record_checked(record.client_id)
        self._registry.replace_records(incoming)
