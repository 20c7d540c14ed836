"""Movement alert notifications."""

from __future__ import annotations

import logging
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Callable, Optional, Protocol

from logging_config import NOTIFICATION_LOGGER
from models.records import Reading

logger = logging.getLogger(__name__)

MOVEMENT_TITLE = "Security Alert"
MOVEMENT_BODY = "Movement was detected on your ESP32 device."
CONNECTION_TITLE = "Sensor Monitor"


class NotificationSink(Protocol):
    def notify(self, title: str, body: str) -> None:  # pragma: no cover - protocol
        ...


class LoggingNotificationSink:
    """Delivers notifications as records on the notification logger."""

    def __init__(self, logger_name: str = NOTIFICATION_LOGGER) -> None:
        self._logger = logging.getLogger(logger_name)

    def notify(self, title: str, body: str) -> None:
        self._logger.warning("%s: %s", title, body)


def build_notification_sink() -> NotificationSink:
    return LoggingNotificationSink()


def is_rising_edge(previous: Optional[Reading], current: Reading) -> bool:
    previously_alerting = previous is not None and previous.movement_alert
    return current.movement_alert and not previously_alerting


class AlertNotifier:
    """Fires a notification on each false-to-true transition of ``movement_alert``.

    The notifier keeps no reading state; the caller passes the previous reading.
    When an address is supplied, the device's alert flag is reset on a background
    thread so a slow or failing device never delays the notification or the poll.
    """

    def __init__(
        self,
        sink: NotificationSink,
        reset_alert: Optional[Callable[[str], object]] = None,
    ) -> None:
        self.sink = sink
        self._reset_alert = reset_alert
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="alert-reset")

    def on_reading(
        self,
        previous: Optional[Reading],
        current: Reading,
        address: Optional[str] = None,
    ) -> bool:
        if not is_rising_edge(previous, current):
            return False

        logger.info("Movement detected", extra={"address": address})
        self._deliver(MOVEMENT_TITLE, MOVEMENT_BODY)
        if address and self._reset_alert is not None:
            self._schedule_reset(address)
        return True

    def notify_connection(self, message: str) -> None:
        self._deliver(CONNECTION_TITLE, message)

    def shutdown(self) -> None:
        self._executor.shutdown(wait=False, cancel_futures=True)

    def _deliver(self, title: str, body: str) -> None:
        try:
            self.sink.notify(title, body)
        except Exception as exc:  # noqa: BLE001 - sinks are external collaborators
            logger.error("Notification delivery failed", extra={"reason": str(exc)})

    def _schedule_reset(self, address: str) -> Optional[Future]:
        assert self._reset_alert is not None
        try:
            future = self._executor.submit(self._reset_alert, address)
        except RuntimeError:
            # Executor already shut down during teardown.
            return None
        future.add_done_callback(lambda f, addr=address: self._log_reset_failure(f, addr))
        return future

    @staticmethod
    def _log_reset_failure(future: Future, address: str) -> None:
        if future.cancelled():
            return
        exc = future.exception()
        if exc is not None:
            logger.warning(
                "Movement alert reset raised", extra={"address": address, "reason": str(exc)}
            )
