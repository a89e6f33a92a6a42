"""Summary metrics over a contract's period ledger."""

from __future__ import annotations

import numpy as np
import pandas as pd


def _safe_div(a: float, b: float) -> float:
    return float(a / b) if b else 0.0


def compute_period_metrics(df: pd.DataFrame) -> dict:
    """Totals for a ledger built by ``integrity_checks.periods_frame``."""
    if df.empty:
        return {
            "periods": 0,
            "total_billed": 0.0,
            "total_holiday_amount": 0.0,
            "total_pause_deduction": 0.0,
            "holidays_worked": 0,
            "pause_hours": 0.0,
            "unpaid_periods": 0,
            "average_total": 0.0,
            "billed_by_year": pd.DataFrame(columns=["Year", "Total"]),
        }

    # Whatever the total does not explain through base and holidays is the pause deduction.
    deduction = (df["Base"] + df["Holiday Amount"] - df["Total"]).clip(lower=0.0)
    billed_by_year = (
        df.dropna(subset=["Year"])
        .assign(Year=lambda d: d["Year"].astype(int))
        .groupby("Year", as_index=False)["Total"]
        .sum()
    )
    total_billed = float(df["Total"].sum())

    return {
        "periods": int(len(df)),
        "total_billed": total_billed,
        "total_holiday_amount": float(df["Holiday Amount"].sum()),
        "total_pause_deduction": float(np.round(deduction.sum(), 2)),
        "holidays_worked": int(df["Holidays"].sum()),
        "pause_hours": float(df["Pause Hours"].sum()),
        "unpaid_periods": int((df["Payment Dates"] == 0).sum()),
        "average_total": _safe_div(total_billed, len(df)),
        "billed_by_year": billed_by_year,
    }
