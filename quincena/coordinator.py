"""Recalculation coordinator for one period editing session.

Every field edit replaces ``coordinator.period`` with a new immutable
``BillingPeriod``, so derived amounts are recomputed synchronously. The one
asynchronous step is the holiday lookup issued when the start date changes:

- the lookup is tagged with the start date (and generation) it was issued for
  and its result is discarded if the period has moved on since;
- the result is merged into the latest period, not into the one captured when
  the lookup started, so pause-hour edits made meanwhile survive;
- manual holiday add/remove made while the lookup is in flight are replayed
  on top of the looked-up holidays;
- a failing lookup leaves the holidays as they were and marks them
  unconfirmed.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import date
from decimal import Decimal
from fractions import Fraction
from typing import Any

from quincena.billing import Amount
from quincena.calendar_utils import HolidayLookup
from quincena.date_lists import as_date, normalize_date_input
from quincena.model import BillingPeriod
from quincena.runtime_logging import append_runtime_event


HOLIDAY_ADD = "add"
HOLIDAY_REMOVE = "remove"


@dataclass(frozen=True)
class _LookupTag:
    start_date: date
    generation: int


class PeriodRecalculationCoordinator:
    def __init__(self, period: BillingPeriod, holiday_lookup: HolidayLookup | None = None):
        self.period = period
        self.holiday_lookup = holiday_lookup
        self._generation = 0
        self._in_flight: _LookupTag | None = None
        self._holiday_edits: list[tuple[str, date]] = []

    @property
    def total(self) -> Fraction:
        return self.period.computed_total

    @property
    def display_total(self) -> Decimal:
        return self.period.display_total

    @property
    def lookup_in_flight(self) -> bool:
        return self._in_flight is not None

    # -- synchronous edits -------------------------------------------------

    def set_pause_hours(self, hours: Amount | None) -> BillingPeriod:
        self.period = self.period.with_pause_hours(hours if hours is not None else 0)
        return self.period

    def set_base_monthly_amount(self, amount: Amount | None) -> BillingPeriod:
        self.period = self.period.with_base_monthly_amount(amount)
        return self.period

    def add_holiday(self, value: Any) -> bool:
        day = normalize_date_input(value)
        if day is None or not self.period.contains(day) or day in self.period.holiday_dates:
            return False
        self.period = self.period.with_holidays(self.period.holiday_dates + (day,))
        self._record_holiday_edit(HOLIDAY_ADD, day)
        return True

    def remove_holiday(self, value: Any) -> bool:
        day = normalize_date_input(value)
        if day is None or day not in self.period.holiday_dates:
            return False
        self.period = self.period.with_holidays(d for d in self.period.holiday_dates if d != day)
        self._record_holiday_edit(HOLIDAY_REMOVE, day)
        return True

    def add_pause_date(self, value: Any) -> bool:
        day = normalize_date_input(value)
        if day is None or day in self.period.pause_dates:
            return False
        self.period = replace(self.period, pause_dates=self.period.pause_dates + (day,))
        return True

    def remove_pause_date(self, value: Any) -> bool:
        day = normalize_date_input(value)
        if day is None or day not in self.period.pause_dates:
            return False
        self.period = replace(self.period, pause_dates=tuple(d for d in self.period.pause_dates if d != day))
        return True

    def add_payment_date(self, value: Any) -> bool:
        day = normalize_date_input(value)
        if day is None or day in self.period.payment_dates:
            return False
        self.period = replace(self.period, payment_dates=self.period.payment_dates + (day,))
        return True

    def remove_payment_date(self, value: Any) -> bool:
        day = normalize_date_input(value)
        if day is None or day not in self.period.payment_dates:
            return False
        self.period = replace(
            self.period, payment_dates=tuple(d for d in self.period.payment_dates if d != day)
        )
        return True

    def _record_holiday_edit(self, op: str, day: date) -> None:
        if self._in_flight is not None:
            self._holiday_edits.append((op, day))

    # -- start date and the asynchronous holiday lookup ----------------------

    async def set_start_date(self, value: Any) -> bool:
        """
        Move the period and refresh its holidays from the lookup.

        Everything before the first ``await`` runs synchronously: the end date
        follows the new start and holidays outside the new window are dropped.

        Returns:
            True if looked-up holidays were applied, False if there is no
            lookup, the lookup failed, or its result went stale.

        Raises:
            ValueError: If the start date is not a valid canonical date.
        """
        start = normalize_date_input(value)
        if start is None:
            raise ValueError(f"Invalid period start date: {value!r}")

        self.period = self.period.with_start_date(start)
        if self.holiday_lookup is None:
            return False

        self._generation += 1
        tag = _LookupTag(start_date=start, generation=self._generation)
        self._in_flight = tag
        self._holiday_edits = []
        try:
            return await self._apply_lookup(tag)
        finally:
            # Runs on cancellation too.
            if self._in_flight == tag:
                self._in_flight = None
                self._holiday_edits = []

    async def _apply_lookup(self, tag: _LookupTag) -> bool:
        start = tag.start_date
        end = self.period.end_date
        try:
            found = await self.holiday_lookup.get_holidays_in_range(start, end)
        except Exception as exc:
            if not self._is_current(tag):
                self._log_discarded(tag, "failed")
                return False
            self.period = replace(self.period, holidays_confirmed=False)
            append_runtime_event(
                level="WARNING",
                event="holiday_lookup_failed",
                message=str(exc) or type(exc).__name__,
                context={"start_date": start, "end_date": end},
                exc=exc,
            )
            return False

        if not self._is_current(tag):
            self._log_discarded(tag, "resolved")
            return False

        found_days = (as_date(d) for d in (found or ()) if isinstance(d, date))
        holidays = {d for d in found_days if self.period.contains(d)}
        for op, day in self._holiday_edits:
            if op == HOLIDAY_ADD:
                holidays.add(day)
            else:
                holidays.discard(day)
        self.period = self.period.with_holidays(holidays, confirmed=True)
        append_runtime_event(
            level="INFO",
            event="holiday_lookup_applied",
            message=f"{len(self.period.holiday_dates)} holiday(s) in period.",
            context={"start_date": start, "end_date": end, "holidays": self.period.holiday_dates},
        )
        return True

    def _is_current(self, tag: _LookupTag) -> bool:
        return tag.generation == self._generation and tag.start_date == self.period.start_date

    def _log_discarded(self, tag: _LookupTag, outcome: str) -> None:
        append_runtime_event(
            level="INFO",
            event="holiday_lookup_discarded",
            message=f"Stale holiday lookup {outcome} after the start date changed.",
            context={"lookup_start_date": tag.start_date, "current_start_date": self.period.start_date},
        )

    def to_record(self) -> dict:
        return self.period.to_record()
