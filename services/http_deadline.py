"""Requests bounded by one deadline for the whole exchange, body included."""

from __future__ import annotations

import time
from typing import Any, Tuple

import httpx


def send_within(
    client: httpx.Client,
    method: str,
    url: str,
    timeout: float,
    **kwargs: Any,
) -> Tuple[httpx.Response, bytes]:
    """Send a request and read its body, giving up once ``timeout`` seconds have passed.

    httpx timeouts apply per connect/read/write step, so a peer dripping bytes
    never trips them. The body is streamed instead and the deadline is checked
    after every chunk; leaving the ``stream`` block closes the connection.
    Overruns raise ``httpx.ReadTimeout`` so callers handle them like any other
    httpx timeout.
    """
    deadline = time.monotonic() + timeout
    with client.stream(method, url, timeout=timeout, **kwargs) as response:
        chunks = []
        _check_deadline(deadline, timeout, response.request)
        for chunk in response.iter_bytes():
            chunks.append(chunk)
            _check_deadline(deadline, timeout, response.request)
    return response, b"".join(chunks)


def _check_deadline(deadline: float, timeout: float, request: httpx.Request) -> None:
    if time.monotonic() > deadline:
        raise httpx.ReadTimeout(
            f"Exchange exceeded its {timeout:g}s deadline.", request=request
        )
