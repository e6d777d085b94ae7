"""Unit tests for the deduplicated alert queue."""

from typing import Any

from visa_radar.radar.models import PendingAlert
from visa_radar.radar.notifier import NotificationMultiplexer
from visa_radar.radar.queue import AlertQueue


def _alert(alert_id: str) -> PendingAlert:
    return PendingAlert(id=alert_id, client_name=f"Client {alert_id}", destination="France")


class TestEnqueue:
    def test_enqueue_same_id_twice_keeps_one(self, queue: AlertQueue) -> None:
        assert queue.enqueue_if_absent(_alert("c1")) is True
        assert queue.enqueue_if_absent(_alert("c1")) is False
        assert len(queue) == 1

    def test_duplicate_does_not_reorder(self, queue: AlertQueue) -> None:
        for alert_id in ("c1", "c2", "c3"):
            queue.enqueue_if_absent(_alert(alert_id))
        queue.enqueue_if_absent(_alert("c1"))
        assert queue.ids() == ["c1", "c2", "c3"]

    def test_duplicate_keeps_original_payload(self, queue: AlertQueue) -> None:
        queue.enqueue_if_absent(_alert("c1"))
        queue.enqueue_if_absent(PendingAlert(id="c1", client_name="Renamed", destination="Italie"))
        assert queue.items()[0]["client_name"] == "Client c1"

    def test_membership(self, queue: AlertQueue) -> None:
        queue.enqueue_if_absent(_alert("c1"))
        assert "c1" in queue
        assert "c2" not in queue


class TestAcknowledge:
    def test_acknowledge_middle_preserves_order(self, queue: AlertQueue) -> None:
        for alert_id in ("c1", "c2", "c3"):
            queue.enqueue_if_absent(_alert(alert_id))

        queue.acknowledge("c2")

        assert len(queue) == 2
        assert queue.ids() == ["c1", "c3"]

    def test_unknown_id_is_noop(self, queue: AlertQueue, host: Any) -> None:
        queue.enqueue_if_absent(_alert("c1"))
        queue.acknowledge("missing")
        assert queue.ids() == ["c1"]
        assert host.stop_calls == 0

    def test_last_acknowledge_stops_notifications(
        self, queue: AlertQueue, notifier: NotificationMultiplexer, host: Any
    ) -> None:
        queue.enqueue_if_absent(_alert("c1"))
        queue.enqueue_if_absent(_alert("c2"))
        notifier.trigger(2)

        queue.acknowledge("c1")
        assert host.playing is True

        queue.acknowledge("c2")
        assert host.playing is False
        assert not notifier.blinking
        assert host.titles[-1] == "Visa Radar"


class TestClearAll:
    def test_clear_all_empties_and_stops(self, queue: AlertQueue, notifier: NotificationMultiplexer, host: Any) -> None:
        for alert_id in ("c1", "c2"):
            queue.enqueue_if_absent(_alert(alert_id))
        notifier.trigger(2)

        queue.clear_all()

        assert len(queue) == 0
        assert host.playing is False
        assert not notifier.blinking

    def test_clear_all_on_empty_queue(self, queue: AlertQueue, host: Any) -> None:
        queue.clear_all()
        assert len(queue) == 0
        assert host.stop_calls == 1


class TestOnRecordChecked:
    def test_removes_matching_client(self, queue: AlertQueue) -> None:
        queue.enqueue_if_absent(_alert("c1"))
        queue.enqueue_if_absent(_alert("c2"))

        queue.on_record_checked("c1")

        assert queue.ids() == ["c2"]

    def test_last_alert_checked_stops_notifications(
        self, queue: AlertQueue, notifier: NotificationMultiplexer, host: Any
    ) -> None:
        queue.enqueue_if_absent(_alert("c1"))
        notifier.trigger(1)

        queue.on_record_checked("c1")

        assert host.playing is False

    def test_unknown_client_is_noop(self, queue: AlertQueue) -> None:
        queue.enqueue_if_absent(_alert("c1"))
        queue.on_record_checked("c9")
        assert queue.ids() == ["c1"]
