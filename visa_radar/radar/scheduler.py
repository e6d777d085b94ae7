"""The radar loop: periodic scan of monitorable records for due re-checks.

Uses an APScheduler interval job on an injected scheduler.  The job handle is
the only cancellation handle; deactivating removes it and silences the
notification channels but keeps the alert queue ("mute without forget").
"""

import contextlib
import logging
import time
from collections.abc import Callable, Iterable, Sequence
from datetime import datetime

from apscheduler.job import Job  # type: ignore[import-untyped]
from apscheduler.jobstores.base import JobLookupError  # type: ignore[import-untyped]
from apscheduler.schedulers.base import BaseScheduler  # type: ignore[import-untyped]
from apscheduler.triggers.interval import IntervalTrigger  # type: ignore[import-untyped]

from visa_radar.observability.metrics import RADAR_ACTIVE, RADAR_DUE_RECORDS, RADAR_TICK_DURATION, RADAR_TICKS_TOTAL
from visa_radar.radar import urgency
from visa_radar.radar.frequency import interval_minutes, is_due
from visa_radar.radar.models import MonitorableRecord, OpeningLogEntry, PendingAlert, is_monitorable
from visa_radar.radar.notifier import NotificationMultiplexer
from visa_radar.radar.queue import AlertQueue
from visa_radar.radar.timefmt import describe_last_checked

logger = logging.getLogger(__name__)

RADAR_JOB_ID = "radar_tick"

RecordSource = Callable[[], Iterable[MonitorableRecord]]
OpeningSource = Callable[[], Sequence[OpeningLogEntry]]


class RadarScheduler:
    def __init__(
        self,
        scheduler: BaseScheduler,
        queue: AlertQueue,
        notifier: NotificationMultiplexer,
        records: RecordSource,
        openings: OpeningSource,
        *,
        tick_seconds: int = 10,
        secondary_window: bool = False,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self._scheduler = scheduler
        self._queue = queue
        self._notifier = notifier
        self._records = records
        self._openings = openings
        self._tick_seconds = tick_seconds
        self._secondary_window = secondary_window
        self._clock = clock
        self._job: Job | None = None

    @property
    def active(self) -> bool:
        return self._job is not None

    def activate(self) -> None:
        """Start scanning every ``tick_seconds``. No-op if already active."""
        if self._job is not None:
            return
        self._notifier.request_permission()
        self._job = self._scheduler.add_job(
            self._scheduled_tick,
            trigger=IntervalTrigger(seconds=self._tick_seconds),
            id=RADAR_JOB_ID,
            name="Radar scan",
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )
        RADAR_ACTIVE.set(1)
        logger.info("Radar activated (every %ds)", self._tick_seconds)

    def deactivate(self) -> None:
        """Stop scanning and silence alerts; queued alerts are kept."""
        if self._job is not None:
            with contextlib.suppress(JobLookupError):
                self._job.remove()
            self._job = None
            logger.info("Radar deactivated (%d alert(s) kept)", len(self._queue))
        RADAR_ACTIVE.set(0)
        self._notifier.stop()

    def visible_alerts(self) -> list[PendingAlert]:
        """Alerts the operator should see: none while the radar is muted."""
        return self._queue.items() if self.active else []

    def due_alerts(self, now: datetime) -> list[PendingAlert]:
        """Scan the live records and return an alert for each one due for a check."""
        openings = self._openings()
        due: list[PendingAlert] = []
        for record in self._records():
            if not is_monitorable(record):
                continue
            result = urgency.score(record, openings, now, secondary_window=self._secondary_window)
            interval = interval_minutes(record.priority_mode, result["score"])
            display = describe_last_checked(record.last_checked, now)
            if is_due(display, interval):
                logger.debug(
                    "Record %s due: %s since last check, interval %d min",
                    record.id,
                    display["text"],
                    interval,
                )
                due.append(
                    PendingAlert(
                        id=record.client_id,
                        client_name=record.client_name,
                        destination=record.destination,
                    )
                )
        return due

    def tick(self, now: datetime | None = None) -> list[PendingAlert]:
        """Run one scan. Returns the alerts newly added to the queue."""
        now = now or self._clock()
        start = time.monotonic()

        due = self.due_alerts(now)
        added = [alert for alert in due if self._queue.enqueue_if_absent(alert)]
        # A muted radar still queues alerts but signals nothing until reactivated
        if self._queue and self.active:
            # Channels are idempotent, so re-triggering keeps sound and title alive
            self._notifier.trigger(len(self._queue))

        RADAR_DUE_RECORDS.set(len(due))
        RADAR_TICK_DURATION.observe(time.monotonic() - start)
        RADAR_TICKS_TOTAL.labels(status="success").inc()
        if added:
            logger.info("Radar scan: %d new alert(s), %d pending", len(added), len(self._queue))
        return added

    async def _scheduled_tick(self) -> None:
        """Job body executed by the scheduler; a failed scan never stops the loop."""
        try:
            self.tick()
        except Exception:
            RADAR_TICKS_TOTAL.labels(status="error").inc()
            logger.exception("Radar scan failed")
