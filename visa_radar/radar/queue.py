"""Deduplicated, order-preserving queue of pending radar alerts."""

import logging

from visa_radar.observability.metrics import ALERT_QUEUE_LENGTH, ALERTS_ENQUEUED_TOTAL, ALERTS_RESOLVED_TOTAL
from visa_radar.radar.models import PendingAlert
from visa_radar.radar.notifier import NotificationMultiplexer

logger = logging.getLogger(__name__)


class AlertQueue:
    """Pending alerts keyed by client id, oldest first.

    An id already present is never re-added or moved.  Emptying the queue by
    any path silences the notification channels.
    """

    def __init__(self, notifier: NotificationMultiplexer) -> None:
        self._notifier = notifier
        self._alerts: dict[str, PendingAlert] = {}

    def __len__(self) -> int:
        return len(self._alerts)

    def __contains__(self, alert_id: object) -> bool:
        return alert_id in self._alerts

    def ids(self) -> list[str]:
        return list(self._alerts)

    def items(self) -> list[PendingAlert]:
        return list(self._alerts.values())

    def enqueue_if_absent(self, alert: PendingAlert) -> bool:
        """Append ``alert`` unless its id is already queued. Returns True if added."""
        if alert["id"] in self._alerts:
            return False
        self._alerts[alert["id"]] = alert
        ALERTS_ENQUEUED_TOTAL.inc()
        ALERT_QUEUE_LENGTH.set(len(self._alerts))
        logger.info("Alert queued for %s (%s)", alert["client_name"], alert["destination"])
        return True

    def acknowledge(self, alert_id: str) -> None:
        """Remove one alert. Unknown ids are ignored."""
        self._remove(alert_id, reason="acknowledged")

    def on_record_checked(self, client_id: str) -> None:
        """Drop the client's alert after a manual check was recorded."""
        self._remove(client_id, reason="checked")

    def clear_all(self) -> None:
        """Drop every alert and silence notifications ("ignore all")."""
        if self._alerts:
            ALERTS_RESOLVED_TOTAL.labels(reason="cleared").inc(len(self._alerts))
            logger.info("Cleared %d pending alert(s)", len(self._alerts))
        self._alerts.clear()
        ALERT_QUEUE_LENGTH.set(0)
        self._notifier.stop()

    def _remove(self, alert_id: str, *, reason: str) -> None:
        if self._alerts.pop(alert_id, None) is None:
            return
        ALERTS_RESOLVED_TOTAL.labels(reason=reason).inc()
        ALERT_QUEUE_LENGTH.set(len(self._alerts))
        if not self._alerts:
            self._notifier.stop()
