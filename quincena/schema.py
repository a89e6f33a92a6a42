"""Period record schema helpers, constants, and legacy-row migration."""

from __future__ import annotations

import re
from copy import deepcopy
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Any

from quincena.billing import period_end_date
from quincena.date_lists import normalize_date_input, parse_field_with_report, serialize
from quincena.defaults import DEFAULT_TURNO, PERIOD_DEFAULTS


SCHEMA_VERSION = 1
PERIOD_RECORD_TYPE = "home_care_period"

DATE_LIST_FIELDS = ("f_feriados", "f_pausas", "fecha_pago")
DATE_FIELDS = ("fecha_pago_quincena", "f_desde", "f_hasta")
MONEY_FIELDS = ("monto", "m_feriados", "monto_total")
COUNTER_FIELDS = ("item", "n_pago")

# Persisted spelling; "TRANFERENCIA" is what existing rows contain.
PAYMENT_METHOD_LABELS = {
    "TRANFERENCIA": "Transferencia",
    "YAPE": "Yape",
    "PLIN": "Plin",
    "EFECTIVO": "Efectivo",
    "TARJETA": "Tarjeta",
}
PAYMENT_METHODS = set(PAYMENT_METHOD_LABELS)

PAUSE_HOURS_SUFFIX = "HORAS"

_HOURS_RE = re.compile(r"\d+(?:[.,]\d+)?")


def parse_record_date(value: Any) -> date | None:
    """Read a date column that may hold ``YYYY-MM-DD`` or a full ISO timestamp."""
    if value is None:
        return None
    if isinstance(value, date):
        return normalize_date_input(value)
    text = str(value).strip().split("T")[0].split(" ")[0]
    return normalize_date_input(text)


def parse_pause_hours(p_del_serv: Any) -> Decimal:
    """``"24 HORAS"`` -> 24, ``"1,5 horas"`` -> 1.5; anything unreadable is 0."""
    if p_del_serv is None:
        return Decimal("0")
    if isinstance(p_del_serv, (int, float, Decimal)) and not isinstance(p_del_serv, bool):
        hours = Decimal(str(p_del_serv))
        return hours if hours.is_finite() and hours > 0 else Decimal("0")
    match = _HOURS_RE.search(str(p_del_serv))
    if not match:
        return Decimal("0")
    return Decimal(match.group(0).replace(",", "."))


def format_pause_hours(hours: Any) -> str:
    try:
        value = Decimal(str(hours))
    except InvalidOperation:
        return "0"
    if not value.is_finite() or value <= 0:
        return "0"
    return f"{format(value.normalize(), 'f')} {PAUSE_HOURS_SUFFIX}"


def payment_method_label(method: str) -> str:
    return PAYMENT_METHOD_LABELS.get(str(method or "").strip().upper(), "")


def _coerce_money(record: dict, key: str, warnings: list[str]) -> None:
    value = record.get(key)
    if value is None or (isinstance(value, str) and not value.strip()):
        record[key] = 0.0
        return
    try:
        record[key] = float(Decimal(str(value).strip()))
    except (InvalidOperation, ValueError):
        record[key] = float(PERIOD_DEFAULTS[key])
        warnings.append(f"{key} invalid and reset to default.")


def _coerce_counter(record: dict, key: str, warnings: list[str]) -> None:
    value = record.get(key)
    if value is None or value == "":
        record[key] = None
        return
    try:
        record[key] = max(1, int(value))
    except (TypeError, ValueError):
        record[key] = None
        warnings.append(f"{key} invalid and cleared.")


def migrate_period_record(raw_record: dict) -> tuple[dict, list[str], list[str]]:
    """Normalize a stored or imported period row into the canonical record shape.

    Returns: (record, warnings, unknown_keys)
    """
    warnings: list[str] = []
    unknown_keys: list[str] = []
    record = deepcopy(PERIOD_DEFAULTS)
    payload = raw_record if isinstance(raw_record, dict) else {}

    for k, v in payload.items():
        if k in record:
            record[k] = v
        else:
            unknown_keys.append(k)

    for field in DATE_LIST_FIELDS:
        dates, dropped = parse_field_with_report(record.get(field))
        if dropped:
            warnings.append(f"{field}: dropped unreadable fragments {', '.join(dropped)}.")
        record[field] = serialize(dates)

    for field in DATE_FIELDS:
        raw_value = record.get(field)
        parsed = parse_record_date(raw_value)
        if parsed is None and raw_value not in (None, ""):
            warnings.append(f"{field} invalid and cleared.")
        record[field] = parsed.isoformat() if parsed else None

    if record["f_desde"] is None and record["fecha_pago_quincena"] is not None:
        record["f_desde"] = record["fecha_pago_quincena"]
    if record["f_desde"] is not None and record["f_hasta"] is None:
        record["f_hasta"] = period_end_date(date.fromisoformat(record["f_desde"])).isoformat()
        warnings.append("f_hasta missing; derived from f_desde.")

    for key in MONEY_FIELDS:
        _coerce_money(record, key, warnings)
    for key in COUNTER_FIELDS:
        _coerce_counter(record, key, warnings)

    method = str(record.get("metodo_pago") or "").strip().upper()
    if method and method not in PAYMENT_METHODS:
        warnings.append(f"metodo_pago {method} invalid and cleared.")
        method = ""
    record["metodo_pago"] = method

    record["p_del_serv"] = format_pause_hours(parse_pause_hours(record.get("p_del_serv")))
    record["turno"] = str(record.get("turno") or DEFAULT_TURNO).strip() or DEFAULT_TURNO
    for key in ("numero_operacion", "factura_boleta"):
        record[key] = str(record.get(key) or "").strip()

    return record, warnings, sorted(unknown_keys)
