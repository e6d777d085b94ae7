"""Outbound effects: what the radar tells the surrounding CRM to persist.

The radar owns no storage.  Every state change a collaborator must record is
emitted as a small JSON-able dict to in-process listeners and, when a webhook
URL is configured, POSTed there in the background.  Local state stays
authoritative; delivery failures are logged and never reach the caller.
"""

import asyncio
import logging
from collections.abc import Callable
from typing import Any

import httpx

from visa_radar.observability.metrics import EFFECTS_TOTAL
from visa_radar.radar.models import OpeningLogEntry

logger = logging.getLogger(__name__)

Effect = dict[str, Any]
Listener = Callable[[Effect], None]


class EffectSink:
    def __init__(self, webhook_url: str = "", *, timeout_seconds: float = 5.0) -> None:
        self._webhook_url = webhook_url
        self._timeout_seconds = timeout_seconds
        self._listeners: list[Listener] = []
        self._pending: set[asyncio.Task[bool]] = set()

    def subscribe(self, listener: Listener) -> None:
        self._listeners.append(listener)

    # -----------------------------------------------------------------------
    # Effect constructors
    # -----------------------------------------------------------------------

    def record_checked(self, client_id: str, record_id: str, timestamp: str, log_entry: str) -> None:
        self._emit(
            {
                "type": "record_checked",
                "client_id": client_id,
                "record_id": record_id,
                "timestamp": timestamp,
                "log_entry": log_entry,
            }
        )

    def status_promoted(self, client_id: str, record_id: str, new_status: str) -> None:
        self._emit(
            {
                "type": "status_promoted",
                "client_id": client_id,
                "record_id": record_id,
                "new_status": new_status,
            }
        )

    def alarm_set_changed(self, alarms: list[str]) -> None:
        self._emit({"type": "alarm_set_changed", "alarms": list(alarms)})

    def opening_observed(self, entry: OpeningLogEntry) -> None:
        self._emit({"type": "opening_observed", "entry": entry.model_dump(mode="json")})

    # -----------------------------------------------------------------------
    # Delivery
    # -----------------------------------------------------------------------

    def _emit(self, effect: Effect) -> None:
        for listener in self._listeners:
            try:
                listener(effect)
            except Exception:
                EFFECTS_TOTAL.labels(type=effect["type"], status="error").inc()
                logger.exception("Effect listener failed for %s", effect["type"])
        if self._webhook_url:
            self._deliver_later(effect)
        EFFECTS_TOTAL.labels(type=effect["type"], status="emitted").inc()

    def _deliver_later(self, effect: Effect) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.warning("No running event loop, webhook delivery of %s skipped", effect["type"])
            return
        task = loop.create_task(self.deliver(effect))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def deliver(self, effect: Effect) -> bool:
        """POST one effect to the webhook. Returns False on any HTTP failure."""
        try:
            async with httpx.AsyncClient(timeout=self._timeout_seconds) as client:
                resp = await client.post(self._webhook_url, json=effect)
                _ = resp.raise_for_status()
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            EFFECTS_TOTAL.labels(type=effect["type"], status="undelivered").inc()
            logger.warning("Webhook delivery of %s failed: %s", effect["type"], exc)
            return False
        EFFECTS_TOTAL.labels(type=effect["type"], status="delivered").inc()
        return True

    async def drain(self) -> None:
        """Wait for in-flight webhook deliveries (used at shutdown)."""
        if self._pending:
            await asyncio.gather(*self._pending)
