from __future__ import annotations

import logging
import threading
from datetime import datetime, timezone
from typing import List, Optional

from logging_config import NOTIFICATION_LOGGER
from models.records import Reading
from services.notifier import (
    MOVEMENT_BODY,
    MOVEMENT_TITLE,
    AlertNotifier,
    LoggingNotificationSink,
)


class RecordingSink:
    def __init__(self) -> None:
        self.notifications: List[tuple[str, str]] = []

    def notify(self, title: str, body: str) -> None:
        self.notifications.append((title, body))


class ExplodingSink:
    def notify(self, title: str, body: str) -> None:
        raise RuntimeError("push service unavailable")


def _reading(alert: bool) -> Reading:
    return Reading(
        temperature=21.0,
        humidity=40.0,
        movement_alert=alert,
        observed_at=datetime(2024, 5, 1, tzinfo=timezone.utc),
    )


def test_fires_only_on_rising_edges() -> None:
    sink = RecordingSink()
    notifier = AlertNotifier(sink)
    previous: Optional[Reading] = None
    fired_at = []

    for index, alert in enumerate([False, True, True, False, True]):
        current = _reading(alert)
        if notifier.on_reading(previous, current):
            fired_at.append(index)
        previous = current

    assert fired_at == [1, 4]
    assert sink.notifications == [(MOVEMENT_TITLE, MOVEMENT_BODY)] * 2
    notifier.shutdown()


def test_first_reading_with_alert_fires() -> None:
    sink = RecordingSink()
    notifier = AlertNotifier(sink)

    assert notifier.on_reading(None, _reading(True)) is True
    assert notifier.on_reading(None, _reading(False)) is False
    assert len(sink.notifications) == 1
    notifier.shutdown()


def test_rising_edge_schedules_device_reset() -> None:
    reset_calls: List[str] = []
    done = threading.Event()

    def reset(address: str) -> bool:
        reset_calls.append(address)
        done.set()
        return True

    notifier = AlertNotifier(RecordingSink(), reset_alert=reset)

    notifier.on_reading(_reading(False), _reading(True), address="10.0.0.5")

    assert done.wait(timeout=2)
    assert reset_calls == ["10.0.0.5"]
    notifier.shutdown()


def test_failing_reset_does_not_block_notification() -> None:
    sink = RecordingSink()
    done = threading.Event()

    def reset(address: str) -> bool:
        done.set()
        raise RuntimeError("device gone")

    notifier = AlertNotifier(sink, reset_alert=reset)

    assert notifier.on_reading(None, _reading(True), address="10.0.0.5") is True
    assert done.wait(timeout=2)
    assert len(sink.notifications) == 1
    notifier.shutdown()


def test_failing_sink_is_not_propagated() -> None:
    notifier = AlertNotifier(ExplodingSink())

    assert notifier.on_reading(None, _reading(True)) is True
    notifier.shutdown()


def test_logging_sink_emits_on_notification_logger(caplog) -> None:
    sink = LoggingNotificationSink()

    with caplog.at_level(logging.WARNING, logger=NOTIFICATION_LOGGER):
        sink.notify(MOVEMENT_TITLE, MOVEMENT_BODY)

    assert any(
        record.name == NOTIFICATION_LOGGER and MOVEMENT_BODY in record.getMessage()
        for record in caplog.records
    )


def test_notify_connection_uses_sink() -> None:
    sink = RecordingSink()
    notifier = AlertNotifier(sink)

    notifier.notify_connection("Connected to device at 10.0.0.5.")

    assert sink.notifications == [("Sensor Monitor", "Connected to device at 10.0.0.5.")]
    notifier.shutdown()
