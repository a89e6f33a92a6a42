"""Ledger integrity checks over a contract's persisted periods."""

from __future__ import annotations

from typing import Any

import numpy as np
import pandas as pd

from quincena.billing import Amount, PERIOD_END_OFFSET_DAYS, compute_total, holiday_amount, round_money
from quincena.date_lists import parse_field
from quincena.schema import parse_pause_hours, parse_record_date


LEDGER_COLUMNS = [
    "Item",
    "Start",
    "End",
    "Base",
    "Holidays",
    "Holiday Amount",
    "Pause Hours",
    "Total",
    "Payment Dates",
    "Holidays Outside Window",
    "Year",
]


def _row_for_record(record: dict) -> dict[str, Any]:
    start = parse_record_date(record.get("f_desde"))
    end = parse_record_date(record.get("f_hasta"))
    holidays = parse_field(record.get("f_feriados"))
    outside = 0
    if start is not None and end is not None:
        outside = sum(1 for d in holidays if not start <= d <= end)
    return {
        "Item": record.get("item"),
        "Start": pd.Timestamp(start) if start else pd.NaT,
        "End": pd.Timestamp(end) if end else pd.NaT,
        "Base": float(record.get("monto") or 0.0),
        "Holidays": len(holidays),
        "Holiday Amount": float(record.get("m_feriados") or 0.0),
        "Pause Hours": float(parse_pause_hours(record.get("p_del_serv"))),
        "Total": float(record.get("monto_total") or 0.0),
        "Payment Dates": len(parse_field(record.get("fecha_pago"))),
        "Holidays Outside Window": outside,
        "Year": start.year if start else np.nan,
    }


def periods_frame(records: list[dict]) -> pd.DataFrame:
    """Tabulate period rows, one line per period, ordered by start date."""
    rows = [_row_for_record(r) for r in records or []]
    df = pd.DataFrame(rows, columns=LEDGER_COLUMNS)
    if df.empty:
        return df
    return df.sort_values(["Start", "Item"], na_position="last").reset_index(drop=True)


def _finding(
    check: str,
    max_abs_delta: float,
    item: str,
    lhs_name: str,
    rhs_name: str,
) -> dict[str, Any]:
    return {
        "Check": check,
        "Max Abs Delta": float(max_abs_delta),
        "Item of Max Delta": item,
        "LHS": lhs_name,
        "RHS": rhs_name,
    }


def _item_of_max_delta(df: pd.DataFrame, delta: np.ndarray) -> str:
    if len(delta) == 0:
        return ""
    idx = int(np.argmax(np.abs(delta)))
    if "Item" in df.columns and idx < len(df):
        return str(df.iloc[idx]["Item"])
    return str(idx)


def _check_series_identity(
    findings: list[dict[str, Any]],
    df: pd.DataFrame,
    check_name: str,
    lhs_name: str,
    rhs_name: str,
    lhs: np.ndarray,
    rhs: np.ndarray,
    tol: float,
) -> None:
    delta = np.nan_to_num(np.asarray(lhs, dtype=float) - np.asarray(rhs, dtype=float), nan=0.0)
    if len(delta) == 0:
        return
    max_abs = float(np.max(np.abs(delta)))
    if max_abs > float(tol):
        findings.append(_finding(check_name, max_abs, _item_of_max_delta(df, delta), lhs_name, rhs_name))


def run_integrity_checks(
    df: pd.DataFrame,
    base_monthly_amount: Amount | None = None,
    tol: float = 0.005,
) -> list[dict[str, Any]]:
    """Return integrity findings (empty list means all checks passed)."""
    if not isinstance(df, pd.DataFrame) or df.empty:
        return [{"Check": "Ledger not available", "Max Abs Delta": np.nan, "Item of Max Delta": "", "LHS": "", "RHS": ""}]

    findings: list[dict[str, Any]] = []
    holidays = df["Holidays"].astype(int).to_numpy()
    pause_hours = df["Pause Hours"].to_numpy(dtype=float)

    expected_holiday_amount = np.array(
        [float(round_money(holiday_amount(base_monthly_amount, int(n)))) for n in holidays]
    )
    expected_total = np.array(
        [
            float(round_money(compute_total(base_monthly_amount, int(n), float(h))))
            for n, h in zip(holidays, pause_hours)
        ]
    )

    _check_series_identity(
        findings,
        df,
        "Holiday amount identity",
        "Holiday Amount",
        "Holidays * quincena base / 15",
        df["Holiday Amount"].to_numpy(),
        expected_holiday_amount,
        tol,
    )
    _check_series_identity(
        findings,
        df,
        "Total identity",
        "Total",
        "Base + holiday amount - pause deduction",
        df["Total"].to_numpy(),
        expected_total,
        tol,
    )

    span_days = ((df["End"] - df["Start"]).dt.days).to_numpy(dtype=float)
    _check_series_identity(
        findings,
        df,
        "Period window identity",
        "End - Start (days)",
        f"{PERIOD_END_OFFSET_DAYS} days",
        span_days,
        np.full(len(df), float(PERIOD_END_OFFSET_DAYS)),
        0.0,
    )

    outside = df["Holidays Outside Window"].to_numpy(dtype=float)
    if outside.sum() > 0:
        findings.append(
            _finding(
                "Holidays inside window",
                float(outside.max()),
                _item_of_max_delta(df, outside),
                "Holidays Outside Window",
                "0",
            )
        )

    return findings
