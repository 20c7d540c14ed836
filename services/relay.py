"""Forwarding of the stored history to the remote collector."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Optional, Sequence

import httpx

from app.schemas import HistoryEntry, RelayPayload, RelayResult
from services.errors import EmptyHistoryError, RequestTimeoutError, TransportError
from services.http_deadline import send_within

logger = logging.getLogger(__name__)


def device_id_for(device_tag: str) -> str:
    return "ESP32_" + device_tag.replace(".", "_")


class RelayClient:
    """POSTs history snapshots to a fixed collector URL."""

    def __init__(
        self,
        collector_url: str,
        timeout: float = 10.0,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self.collector_url = collector_url
        self.timeout = timeout
        self._client = httpx.Client(transport=transport)

    def close(self) -> None:
        self._client.close()

    def build_payload(self, entries: Sequence[HistoryEntry], device_tag: str) -> RelayPayload:
        return RelayPayload(
            device_id=device_id_for(device_tag),
            readings=list(entries),
            total_readings=len(entries),
            timestamp=datetime.now(timezone.utc),
        )

    def send(self, entries: Sequence[HistoryEntry], device_tag: str) -> RelayResult:
        if not entries:
            raise EmptyHistoryError()

        payload = self.build_payload(entries, device_tag)
        try:
            response, raw_body = send_within(
                self._client,
                "POST",
                self.collector_url,
                self.timeout,
                content=payload.model_dump_json(),
                headers={
                    "Content-Type": "application/json",
                    "Accept": "application/json",
                },
            )
        except httpx.TimeoutException as exc:
            raise RequestTimeoutError(self.collector_url, self.timeout) from exc
        except httpx.HTTPError as exc:
            raise TransportError(
                f"Connection error while reaching {self.collector_url}: {exc}"
            ) from exc

        success = response.is_success
        message = (
            "Data sent successfully"
            if success
            else f"Collector returned status {response.status_code}"
        )
        log = logger.info if success else logger.warning
        log(
            "Relay finished",
            extra={
                "url": self.collector_url,
                "status": response.status_code,
                "entry_count": payload.total_readings,
            },
        )
        return RelayResult(
            success=success,
            status=response.status_code,
            body=raw_body.decode(response.charset_encoding or "utf-8", errors="replace"),
            message=message,
            entry_count=payload.total_readings,
        )
