"""HTTP route definitions for the service."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Response, status

from app.schemas import ConnectRequest, HistoryResponse, RelayResult, SessionSnapshot
from services.controller import PollingController, build_default_controller
from services.errors import (
    AddressValidationError,
    EmptyHistoryError,
    HttpStatusError,
    MonitorError,
    NotConnectedError,
    PayloadParseError,
    RelayInProgressError,
    RequestTimeoutError,
    StorageError,
    TransportError,
)

router = APIRouter()


def get_controller() -> PollingController:
    return build_default_controller()


def _upstream_error(exc: MonitorError) -> HTTPException:
    if isinstance(exc, RequestTimeoutError):
        return HTTPException(status_code=status.HTTP_504_GATEWAY_TIMEOUT, detail=str(exc))
    if isinstance(exc, (HttpStatusError, PayloadParseError, TransportError)):
        return HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc))
    if isinstance(exc, StorageError):
        return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))


@router.post(
    "/session/connect",
    response_model=SessionSnapshot,
    summary="Connect to a device and start polling it.",
)
def connect(
    request: ConnectRequest,
    controller: PollingController = Depends(get_controller),
) -> SessionSnapshot:
    try:
        return controller.connect(request.address)
    except AddressValidationError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except MonitorError as exc:
        raise _upstream_error(exc) from exc


@router.post(
    "/session/disconnect",
    response_model=SessionSnapshot,
    summary="Stop polling the current device.",
)
def disconnect(controller: PollingController = Depends(get_controller)) -> SessionSnapshot:
    controller.disconnect()
    return controller.snapshot()


@router.post(
    "/session/poll",
    response_model=SessionSnapshot,
    summary="Poll the connected device immediately.",
)
def poll_now(controller: PollingController = Depends(get_controller)) -> SessionSnapshot:
    try:
        return controller.poll_once()
    except NotConnectedError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc


@router.get(
    "/session",
    response_model=SessionSnapshot,
    summary="Current connection state, last reading and history.",
)
def get_session(controller: PollingController = Depends(get_controller)) -> SessionSnapshot:
    return controller.snapshot()


@router.get(
    "/history",
    response_model=HistoryResponse,
    summary="Stored readings, most recent first, with summary statistics.",
)
def get_history(controller: PollingController = Depends(get_controller)) -> HistoryResponse:
    entries = controller.history_entries()
    return HistoryResponse(entries=entries, summary=controller.aggregator.summarize(entries))


@router.delete(
    "/history",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete every stored reading.",
)
def delete_history(controller: PollingController = Depends(get_controller)) -> Response:
    try:
        controller.clear_history()
    except StorageError as exc:
        raise _upstream_error(exc) from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/relay",
    response_model=RelayResult,
    summary="Send the stored history to the collector.",
)
def relay(controller: PollingController = Depends(get_controller)) -> RelayResult:
    try:
        return controller.trigger_relay()
    except EmptyHistoryError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except RelayInProgressError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    except MonitorError as exc:
        raise _upstream_error(exc) from exc


@router.get(
    "/health",
    summary="Health check endpoint.",
    status_code=status.HTTP_200_OK,
)
async def healthcheck() -> dict[str, str]:
    return {"status": "ok"}


@router.get(
    "/",
    summary="Root endpoint mirrors health information.",
    status_code=status.HTTP_200_OK,
)
async def root() -> dict[str, str]:
    return {"status": "ok", "detail": "See /session for the device state."}
