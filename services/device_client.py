"""HTTP client for the ESP32 sensor board."""

from __future__ import annotations

import json
import logging
import math
import re
from datetime import datetime, timezone
from typing import Any, Optional

import httpx

from models.records import Reading
from services.errors import (
    AddressValidationError,
    HttpStatusError,
    PayloadParseError,
    RequestTimeoutError,
    TransportError,
)
from services.http_deadline import send_within

logger = logging.getLogger(__name__)

_OCTET = r"(?:25[0-5]|2[0-4][0-9]|[01]?[0-9][0-9]?)"
_IPV4_PATTERN = re.compile(rf"{_OCTET}(?:\.{_OCTET}){{3}}")


def validate_address(address: str) -> bool:
    """Return whether ``address`` is a dotted-quad IPv4 address."""
    if not isinstance(address, str):
        return False
    return _IPV4_PATTERN.fullmatch(address.strip()) is not None


def normalize_address(address: str) -> str:
    if not validate_address(address):
        raise AddressValidationError(str(address))
    return address.strip()


def _coerce_float(value: Any) -> float:
    # The board occasionally reports garbage; keep polling with 0 instead of failing.
    if isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)):
        parsed = float(value)
    elif isinstance(value, str):
        try:
            parsed = float(value.strip())
        except ValueError:
            return 0.0
    else:
        return 0.0
    if math.isnan(parsed) or math.isinf(parsed):
        return 0.0
    return parsed


class DeviceClient:
    """Bounded-timeout requests against the device's ``/data`` and ``/reset_alert``."""

    def __init__(
        self,
        read_timeout: float = 5.0,
        reset_timeout: float = 3.0,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self.read_timeout = read_timeout
        self.reset_timeout = reset_timeout
        self._client = httpx.Client(transport=transport)

    def close(self) -> None:
        self._client.close()

    def fetch_reading(self, address: str) -> Reading:
        url = f"http://{address}/data"
        try:
            response, body = send_within(
                self._client,
                "GET",
                url,
                self.read_timeout,
                headers={"Accept": "application/json"},
            )
        except httpx.TimeoutException as exc:
            raise RequestTimeoutError(url, self.read_timeout) from exc
        except httpx.HTTPError as exc:
            raise TransportError(f"Connection error while reaching {url}: {exc}") from exc

        if not response.is_success:
            raise HttpStatusError(url, response.status_code, response.reason_phrase)

        try:
            data = json.loads(body)
        except ValueError as exc:
            raise PayloadParseError(f"Device at {address} returned invalid JSON.") from exc
        if not isinstance(data, dict):
            raise PayloadParseError(
                f"Device at {address} returned {type(data).__name__}, expected an object."
            )

        return Reading(
            temperature=_coerce_float(data.get("temperature")),
            humidity=_coerce_float(data.get("humidity")),
            movement_alert=bool(data.get("movement_alert")),
            observed_at=datetime.now(timezone.utc),
        )

    def reset_alert(self, address: str) -> bool:
        """Ask the device to clear its movement flag; failures are only logged."""
        url = f"http://{address}/reset_alert"
        try:
            response, _ = send_within(
                self._client,
                "POST",
                url,
                self.reset_timeout,
                headers={"Content-Type": "application/json"},
            )
            response.raise_for_status()
        except httpx.HTTPError as exc:
            logger.warning(
                "Unable to reset movement alert",
                extra={"address": address, "reason": str(exc) or type(exc).__name__},
            )
            return False
        return True
