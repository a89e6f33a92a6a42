from __future__ import annotations

import asyncio
from datetime import date

from pandas.tseries.holiday import USFederalHolidayCalendar

from quincena.calendar_utils import PERU_HOLIDAY_CALENDAR, CalendarHolidayLookup, holidays_between


def test_easter_week_holidays_move_with_easter():
    assert holidays_between(PERU_HOLIDAY_CALENDAR, date(2025, 4, 10), date(2025, 4, 24)) == (
        date(2025, 4, 17),
        date(2025, 4, 18),
    )
    assert holidays_between(PERU_HOLIDAY_CALENDAR, date(2024, 3, 20), date(2024, 4, 3)) == (
        date(2024, 3, 28),
        date(2024, 3, 29),
    )


def test_holidays_added_in_2022_are_not_back_dated():
    assert holidays_between(PERU_HOLIDAY_CALENDAR, date(2025, 12, 1), date(2025, 12, 15)) == (
        date(2025, 12, 8),
        date(2025, 12, 9),
    )
    assert holidays_between(PERU_HOLIDAY_CALENDAR, date(2021, 12, 1), date(2021, 12, 15)) == (date(2021, 12, 8),)


def test_range_bounds_are_inclusive():
    assert holidays_between(PERU_HOLIDAY_CALENDAR, date(2025, 7, 28), date(2025, 7, 28)) == (date(2025, 7, 28),)
    assert holidays_between(PERU_HOLIDAY_CALENDAR, date(2025, 7, 29), date(2025, 8, 5)) == (date(2025, 7, 29),)


def test_reversed_range_is_empty():
    assert holidays_between(PERU_HOLIDAY_CALENDAR, date(2025, 1, 15), date(2025, 1, 1)) == ()


def test_lookup_accepts_another_pandas_calendar():
    lookup = CalendarHolidayLookup(USFederalHolidayCalendar())
    assert lookup.holidays_in_range(date(2025, 7, 1), date(2025, 7, 15)) == (date(2025, 7, 4),)


def test_async_lookup_matches_sync_query():
    lookup = CalendarHolidayLookup()
    found = asyncio.run(lookup.get_holidays_in_range(date(2025, 7, 20), date(2025, 8, 3)))
    assert found == (date(2025, 7, 23), date(2025, 7, 28), date(2025, 7, 29))
    assert found == lookup.holidays_in_range(date(2025, 7, 20), date(2025, 8, 3))
