"""Pydantic schemas shared by the services and the HTTP API layer."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from models.records import Reading


class ConnectionState(str, Enum):
    """Lifecycle states of the polling session."""

    idle = "idle"
    connecting = "connecting"
    connected = "connected"


class HistoryEntry(BaseModel):
    """A stored reading; created once by the history store and never edited."""

    model_config = ConfigDict(frozen=True)

    id: str
    temperature: float
    humidity: float
    movement_alert: bool
    timestamp: datetime = Field(..., description="When the reading was received.")
    date: str = Field(..., description="Local calendar date of the reading.")

    def to_reading(self) -> Reading:
        return Reading(
            temperature=self.temperature,
            humidity=self.humidity,
            movement_alert=self.movement_alert,
            observed_at=self.timestamp,
        )


class ReadingView(BaseModel):
    temperature: float
    humidity: float
    movement_alert: bool
    observed_at: datetime

    @classmethod
    def from_reading(cls, reading: Reading) -> "ReadingView":
        return cls(
            temperature=reading.temperature,
            humidity=reading.humidity,
            movement_alert=reading.movement_alert,
            observed_at=reading.observed_at,
        )


class HistorySummaryView(BaseModel):
    """Aggregate statistics over the stored history."""

    entry_count: int = Field(..., ge=0)
    movement_count: int = Field(0, ge=0)
    min_temperature: Optional[float] = None
    max_temperature: Optional[float] = None
    mean_temperature: Optional[float] = None
    min_humidity: Optional[float] = None
    max_humidity: Optional[float] = None
    mean_humidity: Optional[float] = None


class HistoryResponse(BaseModel):
    entries: List[HistoryEntry] = Field(default_factory=list)
    summary: HistorySummaryView


class SessionSnapshot(BaseModel):
    """Read-only view of the controller for display."""

    state: ConnectionState
    address: Optional[str] = None
    last_reading: Optional[ReadingView] = None
    last_error: Optional[str] = None
    last_success_at: Optional[datetime] = None
    last_address: Optional[str] = Field(
        default=None, description="Last address that connected successfully."
    )
    history: List[HistoryEntry] = Field(default_factory=list)


class ConnectRequest(BaseModel):
    address: Optional[str] = Field(
        default=None,
        description="Device IPv4 address; the remembered address is used when omitted.",
    )


class RelayPayload(BaseModel):
    """Body posted to the collector."""

    device_id: str
    readings: List[HistoryEntry]
    total_readings: int = Field(..., ge=0)
    timestamp: datetime


class RelayResult(BaseModel):
    """Outcome of a relay that reached the collector, whatever its status."""

    success: bool
    status: int
    body: str = ""
    message: str = ""
    entry_count: int = Field(0, ge=0)
