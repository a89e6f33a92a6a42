"""Local persistence for home-care billing periods."""

from __future__ import annotations

import json
import os
from copy import deepcopy
from datetime import date, datetime, timezone
from pathlib import Path
from uuid import uuid4

from quincena.billing import period_end_date
from quincena.model import BillingPeriod
from quincena.runtime_logging import append_runtime_event
from quincena.schema import PERIOD_RECORD_TYPE, SCHEMA_VERSION, migrate_period_record


STORE_DIR = Path(".local_store")
PERIOD_STORE_FILE = STORE_DIR / "periods.json"

_DEFAULT_STORE_DIR = Path(".local_store")
_STORAGE_ENV_VAR = "QUINCENA_STORAGE_ROOT"

# Identity columns a caller may not rewrite through update_period.
_IMMUTABLE_FIELDS = {"id", "contract_id", "created_at"}


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _expand_storage_root(path_value: str | Path | None) -> Path:
    if path_value is None:
        return _DEFAULT_STORE_DIR
    text = str(path_value).strip()
    if not text:
        return _DEFAULT_STORE_DIR
    expanded = os.path.expandvars(os.path.expanduser(text))
    return Path(expanded)


def configure_storage_root(path_value: str | Path | None) -> Path:
    """Configure storage root directory used for period persistence."""

    global STORE_DIR, PERIOD_STORE_FILE
    root = _expand_storage_root(path_value)
    STORE_DIR = root
    PERIOD_STORE_FILE = STORE_DIR / "periods.json"
    return STORE_DIR


def storage_root_path() -> str:
    return str(STORE_DIR.resolve())


def storage_root_from_env() -> Path:
    return _expand_storage_root(os.getenv(_STORAGE_ENV_VAR, ""))


def _empty_store() -> dict:
    return {"type": PERIOD_RECORD_TYPE, "schema_version": SCHEMA_VERSION, "contracts": {}}


def _load_store() -> dict:
    p = PERIOD_STORE_FILE
    if not p.exists():
        return _empty_store()
    try:
        data = json.loads(p.read_text(encoding="utf-8"))
    except json.JSONDecodeError:
        return _empty_store()
    if not isinstance(data, dict) or not isinstance(data.get("contracts"), dict):
        return _empty_store()
    return data


def _save_store(data: dict) -> None:
    STORE_DIR.mkdir(parents=True, exist_ok=True)
    p = PERIOD_STORE_FILE
    tmp = p.with_suffix(f"{p.suffix}.tmp")
    tmp.write_text(json.dumps(data, indent=2, ensure_ascii=False), encoding="utf-8")
    tmp.replace(p)


def _contract_rows(store: dict, contract_id: str) -> list[dict]:
    return store["contracts"].setdefault(str(contract_id), [])


def list_periods(contract_id: str) -> list[dict]:
    rows = _load_store()["contracts"].get(str(contract_id), [])
    return sorted(deepcopy(rows), key=lambda r: (r.get("item") or 0, r.get("f_desde") or ""))


def load_period(contract_id: str, period_id: str) -> dict | None:
    for row in _load_store()["contracts"].get(str(contract_id), []):
        if row.get("id") == period_id:
            return deepcopy(row)
    return None


def create_period(contract_id: str, data: dict) -> tuple[bool, str, dict | None]:
    """Insert a period row; ``item`` and ``n_pago`` default to the next sequence number."""
    if not str(contract_id or "").strip():
        return False, "Contract id is required.", None
    store = _load_store()
    rows = _contract_rows(store, contract_id)

    record, warnings, _ = migrate_period_record(data)
    next_number = len(rows) + 1
    if record["item"] is None:
        record["item"] = next_number
    if record["n_pago"] is None:
        record["n_pago"] = next_number
    if record["f_desde"] is None:
        record["f_desde"] = date.today().isoformat()
        record["f_hasta"] = period_end_date(date.today()).isoformat()
    if not record["monto_total"]:
        record["monto_total"] = record["monto"]

    now = _now_iso()
    record["id"] = record["id"] or uuid4().hex
    record["contract_id"] = str(contract_id)
    record["created_at"] = now
    record["updated_at"] = now
    rows.append(record)
    _save_store(store)
    append_runtime_event(
        level="INFO",
        event="period_created",
        message=f"Period {record['item']} created.",
        context={"contract_id": contract_id, "period_id": record["id"], "warnings": warnings},
    )
    return True, "Saved.", deepcopy(record)


def update_period(contract_id: str, period_id: str, data: dict) -> tuple[bool, str, dict | None]:
    """Apply only the provided columns to an existing period row."""
    store = _load_store()
    rows = _contract_rows(store, contract_id)
    for idx, row in enumerate(rows):
        if row.get("id") != period_id:
            continue
        merged = dict(row)
        merged.update({k: v for k, v in data.items() if k not in _IMMUTABLE_FIELDS})
        record, warnings, _ = migrate_period_record(merged)
        for key in _IMMUTABLE_FIELDS:
            record[key] = row.get(key)
        record["updated_at"] = _now_iso()
        rows[idx] = record
        _save_store(store)
        append_runtime_event(
            level="INFO",
            event="period_updated",
            message=f"Period {record.get('item')} updated.",
            context={"contract_id": contract_id, "period_id": period_id, "warnings": warnings},
        )
        return True, "Saved.", deepcopy(record)
    return False, "Period not found.", None


def delete_period(contract_id: str, period_id: str) -> bool:
    store = _load_store()
    rows = store["contracts"].get(str(contract_id), [])
    remaining = [row for row in rows if row.get("id") != period_id]
    if len(remaining) == len(rows):
        return False
    store["contracts"][str(contract_id)] = remaining
    _save_store(store)
    append_runtime_event(
        level="INFO",
        event="period_deleted",
        message="Period deleted.",
        context={"contract_id": contract_id, "period_id": period_id},
    )
    return True


def save_billing_period(
    contract_id: str,
    period: BillingPeriod,
    period_id: str | None = None,
) -> tuple[bool, str, dict | None]:
    """Persist an edited period in one write: create when new, update otherwise."""
    record = period.to_record()
    target_id = period_id or record.get("id")
    if target_id and load_period(contract_id, target_id) is not None:
        return update_period(contract_id, target_id, record)
    return create_period(contract_id, record)


configure_storage_root(storage_root_from_env())
