from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from quincena.defaults import DEFAULT_TURNO
from quincena.schema import (
    format_pause_hours,
    migrate_period_record,
    parse_pause_hours,
    parse_record_date,
    payment_method_label,
)


def test_legacy_row_migrates_to_canonical_shape():
    raw = {
        "item": "4",
        "f_desde": "2025-12-01T05:00:00.000Z",
        "f_feriados": "08 Y 09/12/2025",
        "f_pausas": "0",
        "fecha_pago": "0",
        "p_del_serv": "24 horas",
        "monto": "2500",
        "metodo_pago": "yape",
        "legacy_col": "x",
    }
    record, warnings, unknown = migrate_period_record(raw)

    assert record["f_desde"] == "2025-12-01"
    assert record["f_hasta"] == "2025-12-15"
    assert record["f_feriados"] == "2025-12-08, 2025-12-09"
    assert record["f_pausas"] == ""
    assert record["fecha_pago"] == ""
    assert record["p_del_serv"] == "24 HORAS"
    assert record["monto"] == 2500.0
    assert record["item"] == 4
    assert record["metodo_pago"] == "YAPE"
    assert record["turno"] == DEFAULT_TURNO
    assert unknown == ["legacy_col"]
    assert warnings == ["f_hasta missing; derived from f_desde."]


def test_unreadable_fragments_are_reported():
    record, warnings, _ = migrate_period_record({"f_desde": "2025-01-01", "f_hasta": "2025-01-15", "f_feriados": "01/01/2025, feriado?"})
    assert record["f_feriados"] == "2025-01-01"
    assert warnings == ["f_feriados: dropped unreadable fragments feriado?."]


def test_invalid_scalars_are_cleared_with_warnings():
    raw = {
        "f_desde": "2025-02-30",
        "fecha_pago_quincena": "2025-03-01",
        "monto": "mucho",
        "n_pago": "segundo",
        "metodo_pago": "bitcoin",
    }
    record, warnings, _ = migrate_period_record(raw)

    assert record["f_desde"] == "2025-03-01"
    assert record["f_hasta"] == "2025-03-15"
    assert record["monto"] == 0.0
    assert record["n_pago"] is None
    assert record["metodo_pago"] == ""
    assert "f_desde invalid and cleared." in warnings
    assert "monto invalid and reset to default." in warnings
    assert "n_pago invalid and cleared." in warnings
    assert "metodo_pago BITCOIN invalid and cleared." in warnings


def test_non_dict_payload_yields_defaults():
    record, warnings, unknown = migrate_period_record(None)
    assert record["f_desde"] is None
    assert record["f_hasta"] is None
    assert record["p_del_serv"] == "0"
    assert warnings == []
    assert unknown == []


def test_migration_is_stable_on_its_own_output():
    record, _, _ = migrate_period_record({"f_desde": "2025-07-20", "f_feriados": "23-28-29/07/2025", "p_del_serv": "1,5 HORAS"})
    again, warnings, unknown = migrate_period_record(record)
    assert again == record
    assert warnings == []
    assert unknown == []


def test_parse_pause_hours():
    assert parse_pause_hours("24 HORAS") == Decimal("24")
    assert parse_pause_hours("1,5 horas") == Decimal("1.5")
    assert parse_pause_hours("0") == Decimal("0")
    assert parse_pause_hours("sin pausa") == Decimal("0")
    assert parse_pause_hours(None) == Decimal("0")
    assert parse_pause_hours(6) == Decimal("6")
    assert parse_pause_hours(float("nan")) == Decimal("0")
    assert parse_pause_hours(-3) == Decimal("0")


def test_format_pause_hours():
    assert format_pause_hours(Decimal("24")) == "24 HORAS"
    assert format_pause_hours(Decimal("1.50")) == "1.5 HORAS"
    assert format_pause_hours(Decimal("0")) == "0"
    assert format_pause_hours("abc") == "0"


def test_parse_record_date_accepts_timestamps():
    assert parse_record_date("2025-07-20T12:00:00.000Z").isoformat() == "2025-07-20"
    assert parse_record_date("2025-07-20 08:00:00").isoformat() == "2025-07-20"
    assert parse_record_date("") is None
    assert parse_record_date(None) is None


def test_payment_method_label():
    assert payment_method_label("tranferencia") == "Transferencia"
    assert payment_method_label("PLIN") == "Plin"
    assert payment_method_label(None) == ""


def test_timestamp_values_migrate_as_dates():
    record, warnings, _ = migrate_period_record(
        {"f_desde": datetime(2025, 1, 1, 9, 30), "fecha_pago": datetime(2025, 1, 20, 18, 0)}
    )
    assert record["f_desde"] == "2025-01-01"
    assert record["f_hasta"] == "2025-01-15"
    assert record["fecha_pago"] == "2025-01-20"
    assert warnings == ["f_hasta missing; derived from f_desde."]
