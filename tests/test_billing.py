from __future__ import annotations

from datetime import date
from decimal import Decimal
from fractions import Fraction

import pytest

from quincena.billing import (
    FALLBACK_QUINCENA_AMOUNT,
    QuincenaRates,
    compute_total,
    holiday_amount,
    pause_deduction,
    period_end_date,
    quincena_base,
    round_money,
    to_exact,
)


def test_one_holiday_adds_one_per_diem():
    total = compute_total(Decimal("5000.00"), 1, 0)
    assert total == Fraction(2500) + Fraction(2500, 15)
    assert round_money(total) == Decimal("2666.67")


def test_full_day_pause_deducts_exactly_one_per_diem():
    assert pause_deduction(Decimal("5000.00"), 24) == Fraction(2500, 15)
    assert round_money(compute_total(Decimal("5000.00"), 0, 24)) == Decimal("2333.33")


def test_fallback_base_when_plan_price_unknown():
    assert quincena_base(None) == Fraction(FALLBACK_QUINCENA_AMOUNT)
    assert quincena_base(0) == Fraction(2500)
    assert quincena_base(Decimal("-10")) == Fraction(2500)
    assert compute_total(None, 0, 0) == Fraction(2500)


def test_quincena_base_is_half_the_monthly_amount():
    assert quincena_base(Decimal("3000")) == Fraction(1500)
    assert quincena_base("4500.50") == Fraction(450050, 200)


def test_rates_are_derived_from_quincena_base():
    rates = QuincenaRates.from_monthly_amount(Decimal("6000"))
    assert rates.base == Fraction(3000)
    assert rates.per_diem_holiday == Fraction(200)
    assert rates.per_hour_pause_deduction == Fraction(200, 24)


def test_total_strictly_increases_with_holidays():
    totals = [compute_total(Decimal("5000"), n, Decimal("3")) for n in range(0, 16)]
    assert all(later > earlier for earlier, later in zip(totals, totals[1:]))


def test_total_strictly_decreases_with_pause_hours():
    hours = [Decimal("0"), Decimal("0.5"), Decimal("1"), Decimal("12"), Decimal("24"), Decimal("100")]
    totals = [compute_total(Decimal("5000"), 2, h) for h in hours]
    assert all(later < earlier for earlier, later in zip(totals, totals[1:]))


def test_full_period_of_holidays_doubles_base_without_rounding_drift():
    # Rounding the per-diem first would give 15 * 166.67 = 2500.05.
    assert round_money(compute_total(Decimal("5000"), 15, 0)) == Decimal("5000.00")
    assert round_money(holiday_amount(Decimal("5000"), 15)) == Decimal("2500.00")


def test_negative_inputs_are_rejected():
    with pytest.raises(ValueError):
        compute_total(Decimal("5000"), -1, 0)
    with pytest.raises(ValueError):
        compute_total(Decimal("5000"), 0, Decimal("-0.5"))
    with pytest.raises(ValueError):
        compute_total(Decimal("5000"), 1.5, 0)


def test_period_end_is_fourteen_days_after_start():
    assert period_end_date(date(2025, 1, 1)) == date(2025, 1, 15)
    assert period_end_date(date(2025, 2, 20)) == date(2025, 3, 6)
    assert period_end_date(date(2024, 2, 20)) == date(2024, 3, 5)
    assert period_end_date(date(2025, 12, 25)) == date(2026, 1, 8)


def test_round_money_is_half_up():
    assert round_money(Fraction(1, 200)) == Decimal("0.01")
    assert round_money("2.345") == Decimal("2.35")
    assert round_money("2.344") == Decimal("2.34")
    assert round_money(-Fraction(1, 200)) == Decimal("-0.01")
    assert str(round_money(0)) == "0.00"
    assert str(round_money(Fraction(8000, 3))) == "2666.67"


def test_to_exact_keeps_typed_decimals():
    assert to_exact(0.1) == Fraction(1, 10)
    assert to_exact("1,5") == Fraction(3, 2)
    assert to_exact("") == 0
    assert to_exact(None) == 0
    with pytest.raises(ValueError):
        to_exact("abc")
