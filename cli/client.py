from __future__ import annotations

import time
from typing import Any, Callable, Dict, Optional

import httpx
import typer

from cli.config import CLIConfig


class ApiClient:
    """Minimal HTTP client for the sensor monitor service."""

    def __init__(self, config: CLIConfig) -> None:
        self._config = config
        self._client = httpx.Client(base_url=config.base_url, timeout=config.request_timeout)

    def close(self) -> None:
        self._client.close()

    def connect(self, address: Optional[str] = None) -> Dict[str, Any]:
        return self._request("POST", "/session/connect", json={"address": address})

    def disconnect(self) -> Dict[str, Any]:
        return self._request("POST", "/session/disconnect")

    def get_status(self) -> Dict[str, Any]:
        return self._request("GET", "/session")

    def get_history(self) -> Dict[str, Any]:
        return self._request("GET", "/history")

    def clear_history(self) -> None:
        self._request("DELETE", "/history")

    def relay(self) -> Dict[str, Any]:
        return self._request("POST", "/relay")

    def watch_status(
        self,
        interval: float,
        timeout: float,
        on_update: Callable[[Dict[str, Any]], None],
    ) -> Dict[str, Any]:
        """Render the session every ``interval`` seconds until idle or ``timeout``."""
        deadline = time.monotonic() + timeout
        payload = self.get_status()
        on_update(payload)
        while payload.get("state") != "idle" and time.monotonic() + interval <= deadline:
            time.sleep(interval)
            payload = self.get_status()
            on_update(payload)
        return payload

    def _request(self, method: str, path: str, **kwargs: Any) -> Dict[str, Any]:
        try:
            response = self._client.request(method, path, **kwargs)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            self._handle_http_error(exc)
        except httpx.HTTPError as exc:
            typer.secho(
                f"Unable to reach {self._config.base_url}: {exc}", fg=typer.colors.RED, err=True
            )
            raise typer.Exit(code=1)
        if response.status_code == 204 or not response.content:
            return {}
        return response.json()

    @staticmethod
    def _handle_http_error(exc: httpx.HTTPStatusError) -> None:
        detail: str | None = None
        try:
            data = exc.response.json()
            detail = data.get("detail")
        except Exception:  # noqa: BLE001 - best effort parsing
            detail = exc.response.text.strip()
        message = (
            f"Request failed with status {exc.response.status_code}: {detail or 'no detail provided.'}"
        )
        typer.secho(message, fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)
