"""Connection lifecycle and periodic polling of the sensor device."""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass, field
from datetime import datetime
from functools import lru_cache
from typing import Callable, Optional

from app.schemas import (
    ConnectionState,
    HistoryEntry,
    HistorySummaryView,
    ReadingView,
    RelayResult,
    SessionSnapshot,
)
from models.records import Reading
from services.aggregator import Aggregator
from services.device_client import DeviceClient, normalize_address
from services.errors import (
    MonitorError,
    NotConnectedError,
    RelayInProgressError,
    StorageError,
)
from services.history import HistoryStore
from services.notifier import AlertNotifier, build_notification_sink
from services.preferences import PreferencesStore
from services.relay import RelayClient
from settings import get_settings
from storage.kv_store import build_default_store

logger = logging.getLogger(__name__)


class RepeatingTimer:
    """Runs ``callback`` every ``interval`` seconds on a daemon thread until cancelled.

    Calls never overlap. A call that overruns its slot causes the missed slots to be
    skipped rather than fired back-to-back.
    """

    def __init__(self, interval: float, callback: Callable[[], None], name: str = "poll-timer") -> None:
        self.interval = interval
        self._callback = callback
        self._stop = threading.Event()
        self._thread = threading.Thread(target=self._run, name=name, daemon=True)

    @property
    def active(self) -> bool:
        return self._thread.is_alive() and not self._stop.is_set()

    def start(self) -> None:
        self._thread.start()

    def cancel(self, wait: bool = False, timeout: Optional[float] = None) -> None:
        self._stop.set()
        if wait and self._thread.is_alive() and threading.current_thread() is not self._thread:
            self._thread.join(timeout)

    def _run(self) -> None:
        next_due = time.monotonic() + self.interval
        while not self._stop.wait(max(0.0, next_due - time.monotonic())):
            started = time.monotonic()
            try:
                self._callback()
            except Exception:  # noqa: BLE001 - keep the schedule alive
                logger.exception("Poll tick raised unexpectedly")
            next_due += self.interval
            now = time.monotonic()
            if next_due <= now:
                skipped = int((now - next_due) // self.interval) + 1
                next_due += skipped * self.interval
                logger.warning(
                    "Poll tick overran its slot; skipping %d scheduled tick(s)",
                    skipped,
                    extra={"elapsed_ms": int((now - started) * 1000)},
                )


@dataclass
class PollingSession:
    address: str
    state: ConnectionState = ConnectionState.connecting
    last_reading: Optional[Reading] = None
    last_error: Optional[str] = None
    last_success_at: Optional[datetime] = None
    timer: Optional[RepeatingTimer] = field(default=None, repr=False)
    poll_lock: threading.Lock = field(default_factory=threading.Lock, repr=False)


class PollingController:
    """Owns the single polling session and coordinates history, alerts and relay."""

    def __init__(
        self,
        device: DeviceClient,
        history: HistoryStore,
        notifier: AlertNotifier,
        relay: RelayClient,
        preferences: Optional[PreferencesStore] = None,
        aggregator: Optional[Aggregator] = None,
        poll_interval: float = 5.0,
        default_address: str = "192.168.1.108",
        connection_notifications: bool = False,
    ) -> None:
        self.device = device
        self.history = history
        self.notifier = notifier
        self.relay = relay
        self.preferences = preferences
        self.aggregator = aggregator or Aggregator()
        self.poll_interval = poll_interval
        self.default_address = default_address
        self.connection_notifications = connection_notifications
        self._session: Optional[PollingSession] = None
        self._lock = threading.Lock()
        self._relay_lock = threading.Lock()

    @property
    def state(self) -> ConnectionState:
        with self._lock:
            return self._session.state if self._session else ConnectionState.idle

    @property
    def has_active_timer(self) -> bool:
        with self._lock:
            timer = self._session.timer if self._session else None
        return timer is not None and timer.active

    def connect(self, address: Optional[str] = None) -> SessionSnapshot:
        """Validate ``address``, take one reading and start polling.

        The address is validated before anything else changes, so an invalid
        address raises ``AddressValidationError`` and leaves any current session
        polling as it was. A valid address replaces the current session. Device
        errors from the first reading are re-raised unchanged after the
        controller has returned to idle.
        """
        candidate = address if address is not None else self._remembered_address()
        target = normalize_address(candidate)

        self.disconnect()
        session = PollingSession(address=target)
        with self._lock:
            self._session = session
        logger.info("Connecting to device", extra={"address": target})

        try:
            reading = self.device.fetch_reading(target)
        except MonitorError as exc:
            with self._lock:
                if self._session is session:
                    self._session = None
            logger.warning(
                "Connection attempt failed", extra={"address": target, "reason": str(exc)}
            )
            raise

        with session.poll_lock:
            recorded = self._record(session, None, reading)
        if not recorded:
            logger.info("Connection abandoned before completion", extra={"address": target})
            return self.snapshot()

        with self._lock:
            started = self._session is session
            if started:
                session.state = ConnectionState.connected
                session.timer = RepeatingTimer(
                    self.poll_interval,
                    lambda: self._tick(session),
                    name=f"poll-{target}",
                )
                session.timer.start()
        if not started:
            logger.info("Connection abandoned before completion", extra={"address": target})
            return self.snapshot()

        if self.preferences is not None:
            self.preferences.remember_address(target)
        logger.info("Device connected", extra={"address": target, "state": "connected"})
        if self.connection_notifications:
            self.notifier.notify_connection(f"Connected to device at {target}.")
        return self.snapshot()

    def disconnect(self, wait: bool = False) -> bool:
        """End the current session; returns False when there was nothing to end."""
        with self._lock:
            session = self._session
            self._session = None
        if session is None:
            return False

        if session.timer is not None:
            session.timer.cancel(wait=wait, timeout=self.device.read_timeout + 1.0)
        logger.info("Device disconnected", extra={"address": session.address})
        if self.connection_notifications:
            self.notifier.notify_connection(f"Disconnected from device at {session.address}.")
        return True

    def poll_once(self) -> SessionSnapshot:
        with self._lock:
            session = self._session
        if session is None or session.state is not ConnectionState.connected:
            raise NotConnectedError()
        self._tick(session)
        return self.snapshot()

    def trigger_relay(self) -> RelayResult:
        if not self._relay_lock.acquire(blocking=False):
            raise RelayInProgressError()
        try:
            entries = self.history.all()
            return self.relay.send(entries, self._device_tag())
        finally:
            self._relay_lock.release()

    def history_entries(self) -> list[HistoryEntry]:
        return self.history.all()

    def history_summary(self) -> HistorySummaryView:
        return self.aggregator.summarize(self.history.all())

    def clear_history(self) -> None:
        self.history.clear()

    def snapshot(self) -> SessionSnapshot:
        with self._lock:
            session = self._session
            state = session.state if session else ConnectionState.idle
            address = session.address if session else None
            last_reading = session.last_reading if session else None
            last_error = session.last_error if session else None
            last_success_at = session.last_success_at if session else None

        return SessionSnapshot(
            state=state,
            address=address,
            last_reading=ReadingView.from_reading(last_reading) if last_reading else None,
            last_error=last_error,
            last_success_at=last_success_at,
            last_address=self.preferences.last_address if self.preferences else None,
            history=self.history.all(),
        )

    def shutdown(self) -> None:
        """Stop polling and release HTTP clients and background threads."""
        self.disconnect(wait=True)
        self.notifier.shutdown()
        self.device.close()
        self.relay.close()

    def _tick(self, session: PollingSession) -> None:
        with session.poll_lock:
            if not self._is_current(session):
                return
            previous = session.last_reading
            try:
                reading = self.device.fetch_reading(session.address)
            except MonitorError as exc:
                with self._lock:
                    if self._session is session:
                        session.last_error = str(exc)
                logger.warning(
                    "Poll failed", extra={"address": session.address, "reason": str(exc)}
                )
                return
            self._record(session, previous, reading)

    def _record(self, session: PollingSession, previous: Optional[Reading], reading: Reading) -> bool:
        """Store ``reading`` and evaluate the alert unless the session already ended."""
        with self._lock:
            if self._session is not session:
                return False
            session.last_reading = reading
            session.last_success_at = reading.observed_at
            session.last_error = None
            try:
                self.history.append(reading)
            except StorageError as exc:
                session.last_error = str(exc)
                logger.error(
                    "Unable to store reading",
                    extra={"address": session.address, "reason": str(exc)},
                )

        self.notifier.on_reading(previous, reading, session.address)
        return True

    def _is_current(self, session: PollingSession) -> bool:
        with self._lock:
            return self._session is session

    def _remembered_address(self) -> str:
        if self.preferences is not None:
            remembered = self.preferences.last_address
            if remembered:
                return remembered
        return self.default_address

    def _device_tag(self) -> str:
        with self._lock:
            if self._session is not None:
                return self._session.address
        return self._remembered_address()


@lru_cache
def build_default_controller() -> PollingController:
    """Factory that wires the controller with the configured collaborators."""
    settings = get_settings()
    store = build_default_store()
    device = DeviceClient(
        read_timeout=settings.device_read_timeout,
        reset_timeout=settings.device_reset_timeout,
    )
    notifier = AlertNotifier(build_notification_sink(), reset_alert=device.reset_alert)
    relay = RelayClient(settings.collector_url, timeout=settings.relay_timeout)
    return PollingController(
        device=device,
        history=HistoryStore(store),
        notifier=notifier,
        relay=relay,
        preferences=PreferencesStore(store),
        poll_interval=settings.poll_interval,
        default_address=settings.default_address,
        connection_notifications=settings.connection_notifications,
    )
