"""Domain models shared across services."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True, slots=True)
class Reading:
    """A single observation pulled from the sensor device."""

    temperature: float
    humidity: float
    movement_alert: bool
    observed_at: datetime
