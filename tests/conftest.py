"""Shared pytest configuration and fixtures."""

from collections.abc import Callable, Generator, Sequence
from typing import Any
from unittest.mock import MagicMock, patch

import pytest

from visa_radar.config import Settings, get_settings
from visa_radar.radar.host import Beep, Permission, SoundBlockedError
from visa_radar.radar.models import MonitorableRecord
from visa_radar.radar.notifier import NotificationMultiplexer
from visa_radar.radar.queue import AlertQueue


@pytest.fixture(autouse=True)
def _no_dotenv() -> Generator[None]:
    """Block .env loading so a developer's local settings never leak into tests."""
    get_settings.cache_clear()
    original = Settings.model_config.get("env_file")
    Settings.model_config["env_file"] = None

    try:
        yield
    finally:
        Settings.model_config["env_file"] = original
        get_settings.cache_clear()


@pytest.fixture
def mock_settings() -> Generator[Any]:
    """Provide fake settings so tests don't depend on the environment.

    Patches get_settings at every import site so cached references are overridden.
    """
    fake_settings = type(
        "FakeSettings",
        (),
        {
            "app_title": "Visa Radar",
            "radar_tick_seconds": 10,
            "alarm_tick_seconds": 5,
            "title_blink_seconds": 1.0,
            "alarm_banner_seconds": 10,
            "sound_volume": 0.8,
            "check_log_limit": 50,
            "radar_autostart": False,
            "urgency_secondary_window": False,
            "centers": {"VFS Global": "https://visa.vfsglobal.test/tun"},
            "default_portal_url": "https://portal.test/index.php",
            "alarms": "",
            "effects_webhook_url": "",
            "effects_webhook_timeout_seconds": 5.0,
        },
    )()
    with (
        patch("visa_radar.config.get_settings", return_value=fake_settings),
        patch("visa_radar.radar.service.get_settings", return_value=fake_settings),
        patch("visa_radar.api.main.get_settings", return_value=fake_settings),
        patch("visa_radar.cli.get_settings", return_value=fake_settings),
    ):
        yield fake_settings


class FakeHost:
    """In-memory HostPort that records every side effect."""

    def __init__(self, permission: Permission = "granted") -> None:
        self.permission = permission
        self.permission_requests = 0
        self.playing = False
        self.block_sound = False
        self.play_calls = 0
        self.stop_calls = 0
        self.volumes: list[float] = []
        self.notifications: list[tuple[str, str, bool]] = []
        self.tones: list[Sequence[Beep]] = []
        self.titles: list[str] = []

    def request_notification_permission(self) -> Permission:
        self.permission_requests += 1
        return self.permission

    def show_notification(self, title: str, body: str, *, focus_on_click: bool = False) -> None:
        self.notifications.append((title, body, focus_on_click))

    def play_looping_sound(self, volume: float) -> None:
        self.play_calls += 1
        if self.block_sound:
            msg = "autoplay blocked"
            raise SoundBlockedError(msg)
        self.playing = True
        self.volumes.append(volume)

    def stop_sound(self) -> None:
        self.stop_calls += 1
        self.playing = False

    def is_sound_playing(self) -> bool:
        return self.playing

    def play_one_shot_tone(self, sequence: Sequence[Beep]) -> None:
        self.tones.append(sequence)

    def set_display_title(self, text: str) -> None:
        self.titles.append(text)


@pytest.fixture
def host() -> FakeHost:
    return FakeHost()


@pytest.fixture
def scheduler() -> MagicMock:
    """Stand-in for an APScheduler scheduler; add_job returns a mock job handle."""
    fake = MagicMock(name="scheduler")
    fake.add_job.side_effect = lambda *args, **kwargs: MagicMock(name=f"job:{kwargs.get('id')}")
    return fake


@pytest.fixture
def notifier(host: FakeHost, scheduler: MagicMock) -> NotificationMultiplexer:
    mux = NotificationMultiplexer(host, scheduler, neutral_title="Visa Radar")
    mux.request_permission()
    return mux


@pytest.fixture
def queue(notifier: NotificationMultiplexer) -> AlertQueue:
    return AlertQueue(notifier)


@pytest.fixture
def make_record() -> Callable[..., MonitorableRecord]:
    """Factory for eligible records; override any field by keyword."""

    def _make(record_id: str = "app-1", **overrides: Any) -> MonitorableRecord:
        fields: dict[str, Any] = {
            "id": record_id,
            "client_id": f"client-{record_id}",
            "client_name": f"Client {record_id}",
            "destination": "France",
            "status": "awaiting_appointment",
        }
        fields.update(overrides)
        return MonitorableRecord(**fields)

    return _make
