"""Wiring of one radar instance from settings.

Every loop shares the injected scheduler; each component owns its own job on
it and can be stopped independently.
"""

from dataclasses import dataclass

from apscheduler.schedulers.base import BaseScheduler  # type: ignore[import-untyped]

from visa_radar.alarms.clock import AlarmClock, parse_alarm_list
from visa_radar.config import get_settings
from visa_radar.radar.actions import OperatorActions, RecordRegistry
from visa_radar.radar.cockpit import CockpitRanker
from visa_radar.radar.effects import EffectSink
from visa_radar.radar.host import HostPort, LoggingHost
from visa_radar.radar.notifier import NotificationMultiplexer
from visa_radar.radar.queue import AlertQueue
from visa_radar.radar.scheduler import RadarScheduler


@dataclass
class RadarService:
    host: HostPort
    effects: EffectSink
    registry: RecordRegistry
    notifier: NotificationMultiplexer
    queue: AlertQueue
    radar: RadarScheduler
    alarm_clock: AlarmClock
    cockpit: CockpitRanker
    actions: OperatorActions

    def shutdown(self) -> None:
        """Cancel both loops and silence every channel."""
        self.radar.deactivate()
        self.alarm_clock.stop()


def build_radar_service(
    scheduler: BaseScheduler,
    host: HostPort | None = None,
    registry: RecordRegistry | None = None,
) -> RadarService:
    """Assemble the radar, alarm clock and cockpit around one scheduler."""
    settings = get_settings()
    host = host or LoggingHost()
    registry = registry or RecordRegistry()

    effects = EffectSink(
        settings.effects_webhook_url,
        timeout_seconds=settings.effects_webhook_timeout_seconds,
    )
    notifier = NotificationMultiplexer(
        host,
        scheduler,
        neutral_title=settings.app_title,
        volume=settings.sound_volume,
        blink_seconds=settings.title_blink_seconds,
    )
    queue = AlertQueue(notifier)
    radar = RadarScheduler(
        scheduler,
        queue,
        notifier,
        registry.records,
        registry.openings,
        tick_seconds=settings.radar_tick_seconds,
        secondary_window=settings.urgency_secondary_window,
    )
    alarm_clock = AlarmClock(
        host,
        scheduler,
        effects,
        alarms=parse_alarm_list(settings.alarms),
        tick_seconds=settings.alarm_tick_seconds,
        banner_seconds=settings.alarm_banner_seconds,
        app_title=settings.app_title,
    )
    actions = OperatorActions(registry, queue, effects, check_log_limit=settings.check_log_limit)

    return RadarService(
        host=host,
        effects=effects,
        registry=registry,
        notifier=notifier,
        queue=queue,
        radar=radar,
        alarm_clock=alarm_clock,
        cockpit=CockpitRanker(secondary_window=settings.urgency_secondary_window),
        actions=actions,
    )
