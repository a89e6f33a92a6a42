"""Quincena billing arithmetic.

All amounts stay exact (``fractions.Fraction``) until ``round_money`` is
called at the record/display boundary, so repeated edits of the same period
never accumulate rounding drift.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta
from decimal import Decimal
from fractions import Fraction
from typing import Final, Union


# Used when the contract has no positive monthly plan price.
FALLBACK_QUINCENA_AMOUNT: Final[Decimal] = Decimal("2500")

QUINCENA_DAYS: Final[int] = 15
PERIOD_END_OFFSET_DAYS: Final[int] = QUINCENA_DAYS - 1
HOURS_PER_DAY: Final[int] = 24
MONEY_QUANTUM: Final[Decimal] = Decimal("0.01")

Amount = Union[Decimal, Fraction, int, float, str]


def to_exact(value: Amount | None) -> Fraction:
    """Convert an amount to an exact rational; ``None`` and blank text are zero."""
    if value is None:
        return Fraction(0)
    if isinstance(value, Fraction):
        return value
    if isinstance(value, bool):
        raise ValueError(f"Amount cannot be a boolean: {value!r}")
    if isinstance(value, float):
        # repr keeps the decimal the user typed instead of the binary expansion.
        return Fraction(repr(value))
    if isinstance(value, str):
        text = value.strip().replace(",", ".")
        return Fraction(text) if text else Fraction(0)
    return Fraction(value)


def period_end_date(start_date: date) -> date:
    """Last day of the quincena: 14 days after the start, 15 days inclusive."""
    return start_date + timedelta(days=PERIOD_END_OFFSET_DAYS)


def quincena_base(base_monthly_amount: Amount | None) -> Fraction:
    monthly = to_exact(base_monthly_amount)
    if monthly > 0:
        return monthly / 2
    return Fraction(FALLBACK_QUINCENA_AMOUNT)


@dataclass(frozen=True)
class QuincenaRates:
    """Derived per-period rates for one monthly plan price."""

    base: Fraction
    per_diem_holiday: Fraction
    per_hour_pause_deduction: Fraction

    @classmethod
    def from_monthly_amount(cls, base_monthly_amount: Amount | None) -> "QuincenaRates":
        base = quincena_base(base_monthly_amount)
        per_diem = base / QUINCENA_DAYS
        return cls(
            base=base,
            per_diem_holiday=per_diem,
            per_hour_pause_deduction=per_diem / HOURS_PER_DAY,
        )


def _validate_holiday_count(holiday_count: int) -> int:
    if isinstance(holiday_count, bool) or int(holiday_count) != holiday_count:
        raise ValueError(f"Holiday count must be a whole number: {holiday_count!r}")
    if holiday_count < 0:
        raise ValueError(f"Holiday count cannot be negative: {holiday_count}")
    return int(holiday_count)


def _validate_pause_hours(pause_hours: Amount | None) -> Fraction:
    hours = to_exact(pause_hours)
    if hours < 0:
        raise ValueError(f"Pause hours cannot be negative: {pause_hours}")
    return hours


def holiday_amount(base_monthly_amount: Amount | None, holiday_count: int) -> Fraction:
    """Holiday bonus for the period (persisted as ``m_feriados``)."""
    rates = QuincenaRates.from_monthly_amount(base_monthly_amount)
    return _validate_holiday_count(holiday_count) * rates.per_diem_holiday


def pause_deduction(base_monthly_amount: Amount | None, pause_hours: Amount | None) -> Fraction:
    rates = QuincenaRates.from_monthly_amount(base_monthly_amount)
    return _validate_pause_hours(pause_hours) * rates.per_hour_pause_deduction


def compute_total(
    base_monthly_amount: Amount | None,
    holiday_count: int,
    pause_hours: Amount | None,
) -> Fraction:
    """
    Exact period total.

    total = quincena_base + holidays * quincena_base / 15
            - pause_hours * quincena_base / 15 / 24

    Args:
        base_monthly_amount: Monthly plan price; missing or non-positive falls
            back to ``FALLBACK_QUINCENA_AMOUNT`` as the quincena base.
        holiday_count: Holidays worked inside the period.
        pause_hours: Hours of recorded pause/absence.

    Returns:
        Unrounded total. Pass it through ``round_money`` before persisting
        or displaying it.

    Raises:
        ValueError: If the holiday count or pause hours are negative.
    """
    rates = QuincenaRates.from_monthly_amount(base_monthly_amount)
    count = _validate_holiday_count(holiday_count)
    hours = _validate_pause_hours(pause_hours)
    return rates.base + count * rates.per_diem_holiday - hours * rates.per_hour_pause_deduction


def round_money(value: Amount | None) -> Decimal:
    """Round half-up to cents. The only rounding step in the billing path."""
    exact = to_exact(value)
    cents = abs(exact) * 100
    whole = cents.numerator // cents.denominator
    if cents - whole >= Fraction(1, 2):
        whole += 1
    if exact < 0:
        whole = -whole
    return Decimal(whole).scaleb(-2).quantize(MONEY_QUANTUM)
