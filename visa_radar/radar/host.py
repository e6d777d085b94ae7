"""Host capability port: the side effects the radar needs from its environment.

Sound, system notifications and the display title belong to whatever hosts
the radar (a browser shell, a desktop app, a terminal).  The radar and the
alarm clock only talk to ``HostPort``; tests substitute a fake.
"""

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Literal, Protocol

logger = logging.getLogger(__name__)

Permission = Literal["granted", "denied", "default"]


class SoundBlockedError(Exception):
    """Raised by a host when playback is refused (e.g. autoplay policy)."""


@dataclass(frozen=True)
class Beep:
    """One tone of a one-shot sequence: a frequency ramp with a fast decay."""

    offset_seconds: float
    start_hz: float = 440.0
    end_hz: float = 880.0
    duration_seconds: float = 0.5


# Three beeps 0.6 s apart, played on the alarm channel (not the radar loop)
ALARM_TONE: tuple[Beep, ...] = tuple(Beep(offset_seconds=i * 0.6) for i in range(3))


class HostPort(Protocol):
    def request_notification_permission(self) -> Permission: ...

    def show_notification(self, title: str, body: str, *, focus_on_click: bool = False) -> None: ...

    def play_looping_sound(self, volume: float) -> None: ...

    def stop_sound(self) -> None: ...

    def is_sound_playing(self) -> bool: ...

    def play_one_shot_tone(self, sequence: Sequence[Beep]) -> None: ...

    def set_display_title(self, text: str) -> None: ...


class LoggingHost:
    """Headless host: every side effect becomes a log line.

    Used by the API service and the terminal cockpit, where a real speaker or
    window title is not available.  Notifications are always permitted.
    """

    def __init__(self) -> None:
        self._playing = False
        self.title = ""

    def request_notification_permission(self) -> Permission:
        return "granted"

    def show_notification(self, title: str, body: str, *, focus_on_click: bool = False) -> None:
        logger.warning("NOTIFICATION %s: %s", title, body)

    def play_looping_sound(self, volume: float) -> None:
        self._playing = True
        logger.info("Alert sound looping at volume %.2f", volume)

    def stop_sound(self) -> None:
        if self._playing:
            logger.info("Alert sound stopped")
        self._playing = False

    def is_sound_playing(self) -> bool:
        return self._playing

    def play_one_shot_tone(self, sequence: Sequence[Beep]) -> None:
        logger.info("Alarm tone: %d beep(s)", len(sequence))

    def set_display_title(self, text: str) -> None:
        self.title = text
        logger.debug("Title: %s", text)
