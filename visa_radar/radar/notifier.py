"""Idempotent fan-out of radar alerts to sound, system notification and title.

``trigger`` is called on every radar tick while alerts are pending, so each
channel guards itself: the sound loop is never restarted while playing, and
at most one title-blink job exists.  Only the system notification repeats;
the host is expected to coalesce those.
"""

import contextlib
import logging

from apscheduler.job import Job  # type: ignore[import-untyped]
from apscheduler.jobstores.base import JobLookupError  # type: ignore[import-untyped]
from apscheduler.schedulers.base import BaseScheduler  # type: ignore[import-untyped]
from apscheduler.triggers.interval import IntervalTrigger  # type: ignore[import-untyped]

from visa_radar.observability.metrics import NOTIFICATIONS_TOTAL
from visa_radar.radar.host import HostPort, Permission, SoundBlockedError

logger = logging.getLogger(__name__)

BLINK_JOB_ID = "title_blink"


class NotificationMultiplexer:
    def __init__(
        self,
        host: HostPort,
        scheduler: BaseScheduler,
        *,
        neutral_title: str,
        volume: float = 0.8,
        blink_seconds: float = 1.0,
    ) -> None:
        self._host = host
        self._scheduler = scheduler
        self._neutral_title = neutral_title
        self._volume = volume
        self._blink_seconds = blink_seconds
        self._permission: Permission = "default"
        self._blink_job: Job | None = None
        self._blink_on = False
        self._count = 0

    @property
    def permission(self) -> Permission:
        return self._permission

    @property
    def blinking(self) -> bool:
        return self._blink_job is not None

    def alert_title(self, count: int) -> str:
        return f"\U0001f534 ({count}) ALERT!"

    def request_permission(self) -> Permission:
        """Ask the host for notification permission once; later calls reuse the answer."""
        if self._permission == "default":
            self._permission = self._host.request_notification_permission()
            logger.info("Notification permission: %s", self._permission)
        return self._permission

    def trigger(self, count: int) -> None:
        """Make sure every channel is signalling ``count`` pending alerts."""
        self._count = count
        self._start_sound()
        self._notify(count)
        self._start_blink()

    def stop(self) -> None:
        """Silence all channels. Safe to call when nothing is running."""
        self._host.stop_sound()
        if self._blink_job is not None:
            with contextlib.suppress(JobLookupError):
                self._blink_job.remove()
            self._blink_job = None
        self._blink_on = False
        self._host.set_display_title(self._neutral_title)

    def blink_step(self) -> None:
        """Flip the display title between the alert label and the neutral title."""
        self._blink_on = not self._blink_on
        self._host.set_display_title(self.alert_title(self._count) if self._blink_on else self._neutral_title)

    # -----------------------------------------------------------------------
    # Channels
    # -----------------------------------------------------------------------

    def _start_sound(self) -> None:
        if self._host.is_sound_playing():
            return
        try:
            self._host.play_looping_sound(self._volume)
        except SoundBlockedError:
            NOTIFICATIONS_TOTAL.labels(channel="sound", status="blocked").inc()
            logger.warning("Alert sound blocked by host (operator interaction needed first)", exc_info=True)
            return
        NOTIFICATIONS_TOTAL.labels(channel="sound", status="started").inc()

    def _notify(self, count: int) -> None:
        if self._permission != "granted":
            NOTIFICATIONS_TOTAL.labels(channel="system", status="skipped").inc()
            return
        self._host.show_notification(
            f"{self._neutral_title}: action required",
            f"{count} record(s) to check now",
        )
        NOTIFICATIONS_TOTAL.labels(channel="system", status="sent").inc()

    def _start_blink(self) -> None:
        if self._blink_job is not None:
            return
        self._blink_on = False
        self._blink_job = self._scheduler.add_job(
            self._blink_tick,
            trigger=IntervalTrigger(seconds=self._blink_seconds),
            id=BLINK_JOB_ID,
            name="Title blink",
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )
        NOTIFICATIONS_TOTAL.labels(channel="title", status="started").inc()

    async def _blink_tick(self) -> None:
        self.blink_step()
