from functools import lru_cache
from typing import ClassVar

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables / .env file."""

    app_title: str = "Visa Radar"

    # Loop cadences (seconds)
    radar_tick_seconds: int = 10
    alarm_tick_seconds: int = 5
    title_blink_seconds: float = 1.0
    alarm_banner_seconds: int = 10

    sound_volume: float = 0.8
    check_log_limit: int = 50

    # Start scanning as soon as the service boots instead of waiting for the operator
    radar_autostart: bool = False

    # Also add 20 points for a target window 15-29 days out (off = single 15-day threshold)
    urgency_secondary_window: bool = False

    # Portal lookup: center name -> booking URL, as JSON, e.g. '{"VFS Global": "https://..."}'
    centers: dict[str, str] = {}
    default_portal_url: str = "https://fr.tlscontact.com/tn/tun/index.php"

    # Initial alarm set (comma-separated "HH:MM" values)
    alarms: str = ""

    # Outbound effects (optional; empty string means in-process listeners only)
    effects_webhook_url: str = ""
    effects_webhook_timeout_seconds: float = 5.0

    model_config: ClassVar[SettingsConfigDict] = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Lazily load and cache settings. Fails at first call, not at import time."""
    return Settings()
