"""Holiday calendar lookups used to pre-fill a period's worked holidays."""

from __future__ import annotations

import asyncio
from datetime import date
from typing import Protocol

import pandas as pd
from pandas.tseries.holiday import AbstractHolidayCalendar, GoodFriday, Holiday
from pandas.tseries.offsets import Day, Easter

from quincena.date_lists import DateSet, is_canonical_date


class HolidayLookup(Protocol):
    async def get_holidays_in_range(self, start: date, end: date) -> DateSet:
        """Public holidays in ``[start, end]``, inclusive."""
        ...


HolyThursday = Holiday("Jueves Santo", month=1, day=1, offset=[Easter(), Day(-3)])


class PeruHolidayCalendar(AbstractHolidayCalendar):
    """National public holidays of Peru (feriados nacionales)."""

    rules = [
        Holiday("Año Nuevo", month=1, day=1),
        HolyThursday,
        GoodFriday,
        Holiday("Día del Trabajo", month=5, day=1),
        Holiday("Batalla de Arica y Día de la Bandera", month=6, day=7, start_date="2022-01-01"),
        Holiday("San Pedro y San Pablo", month=6, day=29),
        Holiday("Día de la Fuerza Aérea", month=7, day=23, start_date="2024-01-01"),
        Holiday("Fiestas Patrias", month=7, day=28),
        Holiday("Fiestas Patrias (segundo día)", month=7, day=29),
        Holiday("Batalla de Junín", month=8, day=6, start_date="2022-01-01"),
        Holiday("Santa Rosa de Lima", month=8, day=30),
        Holiday("Combate de Angamos", month=10, day=8),
        Holiday("Todos los Santos", month=11, day=1),
        Holiday("Inmaculada Concepción", month=12, day=8),
        Holiday("Batalla de Ayacucho", month=12, day=9, start_date="2022-01-01"),
        Holiday("Navidad", month=12, day=25),
    ]


PERU_HOLIDAY_CALENDAR = PeruHolidayCalendar()


def holidays_between(calendar: AbstractHolidayCalendar, start: date, end: date) -> DateSet:
    if end < start:
        return ()
    found = calendar.holidays(start=pd.Timestamp(start), end=pd.Timestamp(end))
    days = {ts.date() for ts in pd.DatetimeIndex(found)}
    return tuple(sorted(d for d in days if is_canonical_date(d)))


class CalendarHolidayLookup:
    """Serve ``HolidayLookup`` from a pandas holiday calendar."""

    def __init__(self, calendar: AbstractHolidayCalendar | None = None):
        self.calendar = calendar if calendar is not None else PERU_HOLIDAY_CALENDAR

    def holidays_in_range(self, start: date, end: date) -> DateSet:
        return holidays_between(self.calendar, start, end)

    async def get_holidays_in_range(self, start: date, end: date) -> DateSet:
        return await asyncio.to_thread(self.holidays_in_range, start, end)
