"""Summary statistics over the stored history."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from app.schemas import HistoryEntry, HistorySummaryView


@dataclass
class _Range:
    minimum: float | None = None
    maximum: float | None = None
    total: float = 0.0

    def add(self, value: float) -> None:
        self.total += value
        if self.minimum is None or value < self.minimum:
            self.minimum = value
        if self.maximum is None or value > self.maximum:
            self.maximum = value


class Aggregator:
    """Pure aggregation component that can be unit tested in isolation."""

    def summarize(self, entries: Iterable[HistoryEntry]) -> HistorySummaryView:
        temperature = _Range()
        humidity = _Range()
        count = 0
        movements = 0

        for entry in entries:
            count += 1
            temperature.add(entry.temperature)
            humidity.add(entry.humidity)
            if entry.movement_alert:
                movements += 1

        return HistorySummaryView(
            entry_count=count,
            movement_count=movements,
            min_temperature=temperature.minimum,
            max_temperature=temperature.maximum,
            mean_temperature=temperature.total / count if count else None,
            min_humidity=humidity.minimum,
            max_humidity=humidity.maximum,
            mean_humidity=humidity.total / count if count else None,
        )
