"""One-shot wall-clock reminders for the operator.

Independent of the radar loop: its own APScheduler job checks every few
seconds whether the current "HH:MM" is in the alarm set.  Firing removes the
alarm (re-adding is up to the operator), plays a three-beep tone on the
one-shot channel, raises a self-dismissing banner and one system
notification.
"""

import contextlib
import logging
import re
from collections.abc import Callable, Iterable
from datetime import datetime, timedelta

from apscheduler.job import Job  # type: ignore[import-untyped]
from apscheduler.jobstores.base import JobLookupError  # type: ignore[import-untyped]
from apscheduler.schedulers.base import BaseScheduler  # type: ignore[import-untyped]
from apscheduler.triggers.interval import IntervalTrigger  # type: ignore[import-untyped]

from visa_radar.observability.metrics import ALARMS_FIRED_TOTAL
from visa_radar.radar.effects import EffectSink
from visa_radar.radar.host import ALARM_TONE, HostPort, SoundBlockedError

logger = logging.getLogger(__name__)

ALARM_JOB_ID = "alarm_clock"

_TIME_RE = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


def validate_alarm_time(value: str) -> str:
    """Return the normalized "HH:MM" string or raise ValueError."""
    text = value.strip()
    if not _TIME_RE.match(text):
        msg = f"Invalid alarm time {value!r} (expected HH:MM)"
        raise ValueError(msg)
    return text


def parse_alarm_list(raw: str) -> list[str]:
    """Parse a comma-separated alarm list from settings, skipping blanks."""
    return [validate_alarm_time(part) for part in raw.split(",") if part.strip()]


class AlarmClock:
    def __init__(
        self,
        host: HostPort,
        scheduler: BaseScheduler,
        effects: EffectSink,
        *,
        alarms: Iterable[str] = (),
        tick_seconds: int = 5,
        banner_seconds: int = 10,
        app_title: str = "Visa Radar",
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self._host = host
        self._scheduler = scheduler
        self._effects = effects
        self._tick_seconds = tick_seconds
        self._banner_seconds = banner_seconds
        self._app_title = app_title
        self._clock = clock
        self._alarms: set[str] = {validate_alarm_time(a) for a in alarms}
        self._last_fired: datetime | None = None
        self._banner: str | None = None
        self._banner_until: datetime | None = None
        self._job: Job | None = None

    @property
    def running(self) -> bool:
        return self._job is not None

    def alarms(self) -> list[str]:
        return sorted(self._alarms)

    # -----------------------------------------------------------------------
    # Operator mutations
    # -----------------------------------------------------------------------

    def add(self, alarm_time: str) -> list[str]:
        alarm_time = validate_alarm_time(alarm_time)
        if alarm_time not in self._alarms:
            self._alarms.add(alarm_time)
            self._changed()
        return self.alarms()

    def remove(self, alarm_time: str) -> list[str]:
        if alarm_time in self._alarms:
            self._alarms.discard(alarm_time)
            self._changed()
        return self.alarms()

    def replace(self, alarm_times: Iterable[str]) -> list[str]:
        """Swap in a whole new alarm set (e.g. loaded by the CRM)."""
        new = {validate_alarm_time(a) for a in alarm_times}
        if new != self._alarms:
            self._alarms = new
            self._changed()
        return self.alarms()

    # -----------------------------------------------------------------------
    # Loop
    # -----------------------------------------------------------------------

    def start(self) -> None:
        if self._job is not None:
            return
        self._job = self._scheduler.add_job(
            self._scheduled_tick,
            trigger=IntervalTrigger(seconds=self._tick_seconds),
            id=ALARM_JOB_ID,
            name="Alarm clock",
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )
        logger.info("Alarm clock started with %d alarm(s)", len(self._alarms))

    def stop(self) -> None:
        if self._job is not None:
            with contextlib.suppress(JobLookupError):
                self._job.remove()
            self._job = None
            logger.info("Alarm clock stopped")

    def tick(self, now: datetime | None = None) -> str | None:
        """Fire the alarm for the current minute, at most once. Returns the fired time."""
        now = now or self._clock()
        current = now.strftime("%H:%M")
        minute = now.replace(second=0, microsecond=0)
        # Several ticks land in the same minute
        if current in self._alarms and minute != self._last_fired:
            self.fire(current, now)
            return current
        return None

    def fire(self, alarm_time: str, now: datetime | None = None) -> None:
        now = now or self._clock()
        self._last_fired = now.replace(second=0, microsecond=0)
        self._alarms.discard(alarm_time)
        self._changed()
        ALARMS_FIRED_TOTAL.inc()
        logger.info("Alarm %s fired", alarm_time)

        try:
            self._host.play_one_shot_tone(ALARM_TONE)
        except SoundBlockedError:
            logger.warning("Alarm tone blocked by host", exc_info=True)

        self._banner = f"Reminder: it is {alarm_time}"
        self._banner_until = now + timedelta(seconds=self._banner_seconds)
        self._host.show_notification(
            f"⏰ {self._app_title}: reminder",
            f"It is {alarm_time}",
            focus_on_click=True,
        )

    def current_banner(self, now: datetime | None = None) -> str | None:
        """The in-app banner text, or None once it has dismissed itself."""
        now = now or self._clock()
        if self._banner is None or self._banner_until is None or now >= self._banner_until:
            return None
        return self._banner

    def _changed(self) -> None:
        self._effects.alarm_set_changed(self.alarms())

    async def _scheduled_tick(self) -> None:
        try:
            self.tick()
        except Exception:
            logger.exception("Alarm clock tick failed")
