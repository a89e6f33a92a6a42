"""Billing period model: one quincena of a home-care contract."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date
from decimal import Decimal, InvalidOperation
from fractions import Fraction
from typing import Any, Iterable

from quincena.billing import (
    Amount,
    QuincenaRates,
    compute_total,
    holiday_amount,
    pause_deduction,
    period_end_date,
    round_money,
)
from quincena.date_lists import DateSet, as_date, is_canonical_date, parse_field, serialize
from quincena.schema import format_pause_hours, parse_pause_hours, parse_record_date


# Record columns owned by the billing model; everything else is carried through.
_DERIVED_RECORD_FIELDS = {
    "f_desde",
    "f_hasta",
    "monto",
    "f_feriados",
    "m_feriados",
    "p_del_serv",
    "f_pausas",
    "monto_total",
    "fecha_pago",
}


def _date_set(dates: Iterable[date]) -> DateSet:
    return tuple(sorted({as_date(d) for d in dates}))


def _to_decimal(value: Amount | None) -> Decimal | None:
    if value is None:
        return None
    if isinstance(value, Fraction):
        return Decimal(value.numerator) / Decimal(value.denominator)
    if isinstance(value, Decimal):
        result = value
    else:
        text = str(value).strip().replace(",", ".") or "0"
        try:
            result = Decimal(text)
        except InvalidOperation:
            raise ValueError(f"Unreadable amount: {value!r}") from None
    if not result.is_finite():
        raise ValueError(f"Amount must be finite: {value!r}")
    return result


@dataclass(frozen=True)
class BillingPeriod:
    """Immutable snapshot of a period being edited.

    ``end_date`` and every amount are derived, so they can never disagree
    with the inputs they come from.
    """

    start_date: date
    base_monthly_amount: Decimal | None = None
    holiday_dates: DateSet = ()
    pause_hours: Decimal = Decimal("0")
    pause_dates: DateSet = ()
    payment_dates: DateSet = ()
    holidays_confirmed: bool = True
    record_fields: dict[str, Any] = field(default_factory=dict, compare=False)

    def __post_init__(self) -> None:
        if isinstance(self.start_date, date):
            object.__setattr__(self, "start_date", as_date(self.start_date))
        if not is_canonical_date(self.start_date):
            raise ValueError(f"Period start date outside supported range: {self.start_date!r}")
        hours = _to_decimal(self.pause_hours) or Decimal("0")
        if hours < 0:
            raise ValueError(f"Pause hours cannot be negative: {self.pause_hours}")
        holidays = _date_set(self.holiday_dates)
        outside = [d for d in holidays if not self.contains(d)]
        if outside:
            raise ValueError(
                f"Holidays {', '.join(d.isoformat() for d in outside)} fall outside "
                f"{self.start_date.isoformat()}..{self.end_date.isoformat()}"
            )
        object.__setattr__(self, "base_monthly_amount", _to_decimal(self.base_monthly_amount))
        object.__setattr__(self, "pause_hours", hours)
        object.__setattr__(self, "holiday_dates", holidays)
        object.__setattr__(self, "pause_dates", _date_set(self.pause_dates))
        object.__setattr__(self, "payment_dates", _date_set(self.payment_dates))

    @classmethod
    def new(cls, start_date: date, base_monthly_amount: Amount | None = None) -> "BillingPeriod":
        return cls(start_date=start_date, base_monthly_amount=_to_decimal(base_monthly_amount))

    @classmethod
    def from_record(cls, record: dict, base_monthly_amount: Amount | None = None) -> "BillingPeriod":
        """Load a persisted period row; holidays outside the period window are dropped."""
        start = parse_record_date(record.get("f_desde")) or parse_record_date(record.get("fecha_pago_quincena"))
        if start is None:
            raise ValueError("Period record has no readable f_desde or fecha_pago_quincena.")
        end = period_end_date(start)
        holidays = [d for d in parse_field(record.get("f_feriados")) if start <= d <= end]
        extra = {k: v for k, v in record.items() if k not in _DERIVED_RECORD_FIELDS}
        return cls(
            start_date=start,
            base_monthly_amount=_to_decimal(base_monthly_amount),
            holiday_dates=tuple(holidays),
            pause_hours=parse_pause_hours(record.get("p_del_serv")),
            pause_dates=parse_field(record.get("f_pausas")),
            payment_dates=parse_field(record.get("fecha_pago")),
            record_fields=extra,
        )

    @property
    def end_date(self) -> date:
        return period_end_date(self.start_date)

    @property
    def rates(self) -> QuincenaRates:
        return QuincenaRates.from_monthly_amount(self.base_monthly_amount)

    @property
    def holiday_count(self) -> int:
        return len(self.holiday_dates)

    @property
    def holiday_amount(self) -> Fraction:
        return holiday_amount(self.base_monthly_amount, self.holiday_count)

    @property
    def pause_deduction(self) -> Fraction:
        return pause_deduction(self.base_monthly_amount, self.pause_hours)

    @property
    def computed_total(self) -> Fraction:
        return compute_total(self.base_monthly_amount, self.holiday_count, self.pause_hours)

    @property
    def display_total(self) -> Decimal:
        return round_money(self.computed_total)

    def contains(self, day: date) -> bool:
        return self.start_date <= day <= self.end_date

    def with_start_date(self, start_date: date) -> "BillingPeriod":
        start_date = as_date(start_date)
        end = period_end_date(start_date)
        kept = tuple(d for d in self.holiday_dates if start_date <= d <= end)
        return replace(self, start_date=start_date, holiday_dates=kept)

    def with_holidays(self, holiday_dates: Iterable[date], confirmed: bool | None = None) -> "BillingPeriod":
        return replace(
            self,
            holiday_dates=tuple(holiday_dates),
            holidays_confirmed=self.holidays_confirmed if confirmed is None else confirmed,
        )

    def with_pause_hours(self, pause_hours: Amount) -> "BillingPeriod":
        return replace(self, pause_hours=_to_decimal(pause_hours))

    def with_base_monthly_amount(self, base_monthly_amount: Amount | None) -> "BillingPeriod":
        return replace(self, base_monthly_amount=_to_decimal(base_monthly_amount))

    def to_record(self) -> dict:
        """Persisted row shape; money is rounded here and nowhere earlier."""
        record = dict(self.record_fields)
        record.update(
            {
                "f_desde": self.start_date.isoformat(),
                "f_hasta": self.end_date.isoformat(),
                "monto": float(round_money(self.rates.base)),
                "f_feriados": serialize(self.holiday_dates),
                "m_feriados": float(round_money(self.holiday_amount)),
                "p_del_serv": format_pause_hours(self.pause_hours),
                "f_pausas": serialize(self.pause_dates),
                "monto_total": float(self.display_total),
                "fecha_pago": serialize(self.payment_dates),
            }
        )
        return record
