"""Error taxonomy for the polling and relay pipeline."""

from __future__ import annotations


class MonitorError(Exception):
    """Base class for every failure the monitor reports to its callers."""


class AddressValidationError(MonitorError, ValueError):
    def __init__(self, address: str) -> None:
        super().__init__(f"Invalid IPv4 address: {address!r}.")
        self.address = address


class RequestTimeoutError(MonitorError):
    def __init__(self, url: str, timeout: float) -> None:
        super().__init__(f"Request to {url} timed out after {timeout:g}s.")
        self.url = url
        self.timeout = timeout


class HttpStatusError(MonitorError):
    def __init__(self, url: str, status: int, reason: str = "") -> None:
        detail = f"HTTP {status}"
        if reason:
            detail = f"{detail}: {reason}"
        super().__init__(f"{detail} from {url}.")
        self.url = url
        self.status = status


class PayloadParseError(MonitorError):
    """The device answered with a body that is not a JSON object."""


class TransportError(MonitorError):
    """Connection refused, DNS failure, or any other transport-level problem."""


class StorageError(MonitorError):
    """Persistence write failure."""


class EmptyHistoryError(MonitorError):
    def __init__(self) -> None:
        super().__init__("No readings to send.")


class RelayInProgressError(MonitorError):
    def __init__(self) -> None:
        super().__init__("A relay to the collector is already in progress.")


class NotConnectedError(MonitorError):
    def __init__(self) -> None:
        super().__init__("No device is connected.")
