from __future__ import annotations

import asyncio
from datetime import date
from pathlib import Path

import pytest

import quincena.persistence as persistence
import quincena.runtime_logging as runtime_logging


@pytest.fixture(autouse=True)
def runtime_log_dir(tmp_path, monkeypatch) -> Path:
    log_dir = Path(tmp_path) / "logs"
    monkeypatch.setattr(runtime_logging, "LOG_DIR", log_dir)
    monkeypatch.setattr(runtime_logging, "RUNTIME_EVENTS_LOG_FILE", log_dir / "runtime_events.jsonl")
    return log_dir


@pytest.fixture
def local_store(tmp_path, monkeypatch) -> Path:
    store_dir = Path(tmp_path) / "store"
    monkeypatch.setattr(persistence, "STORE_DIR", store_dir)
    monkeypatch.setattr(persistence, "PERIOD_STORE_FILE", store_dir / "periods.json")
    return store_dir


class GatedHolidayLookup:
    """Holiday lookup whose answers are released by the test, one start date at a time."""

    def __init__(self, holidays: list[date], error: Exception | None = None):
        self.holidays = tuple(holidays)
        self.error = error
        self.calls: list[tuple[date, date]] = []
        self._gates: dict[date, asyncio.Event] = {}

    def _gate(self, start: date) -> asyncio.Event:
        return self._gates.setdefault(start, asyncio.Event())

    def release(self, start: date) -> None:
        self._gate(start).set()

    async def get_holidays_in_range(self, start: date, end: date) -> tuple[date, ...]:
        self.calls.append((start, end))
        await self._gate(start).wait()
        if self.error is not None:
            raise self.error
        return tuple(d for d in self.holidays if start <= d <= end)


@pytest.fixture
def gated_lookup_factory():
    return GatedHolidayLookup
