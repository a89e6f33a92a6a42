"""Runtime diagnostics logging for period editing and storage."""

from __future__ import annotations

import json
import os
import traceback
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Any


LOG_DIR = Path(".local_store")
RUNTIME_EVENTS_LOG_FILE = LOG_DIR / "runtime_events.jsonl"

_DEFAULT_LOG_DIR = Path(".local_store")
_STORAGE_ENV_VAR = "QUINCENA_STORAGE_ROOT"

LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR"}


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _safe_json_default(value: Any):
    if isinstance(value, (set, frozenset)):
        return sorted(value, key=str)
    if isinstance(value, date):
        return value.isoformat()
    return str(value)


def _expand_log_root(path_value: str | Path | None) -> Path:
    if path_value is None:
        return _DEFAULT_LOG_DIR
    text = str(path_value).strip()
    if not text:
        return _DEFAULT_LOG_DIR
    expanded = os.path.expandvars(os.path.expanduser(text))
    return Path(expanded)


def configure_log_root(path_value: str | Path | None) -> Path:
    global LOG_DIR, RUNTIME_EVENTS_LOG_FILE
    LOG_DIR = _expand_log_root(path_value)
    RUNTIME_EVENTS_LOG_FILE = LOG_DIR / "runtime_events.jsonl"
    return LOG_DIR


def runtime_log_path() -> str:
    return str(RUNTIME_EVENTS_LOG_FILE.resolve())


def append_runtime_event(
    level: str,
    event: str,
    message: str,
    context: dict[str, Any] | None = None,
    exc: BaseException | None = None,
) -> None:
    """Append a structured runtime event record to disk."""
    try:
        LOG_DIR.mkdir(parents=True, exist_ok=True)
        level_text = str(level).upper()
        record: dict[str, Any] = {
            "timestamp_utc": _now_iso(),
            "level": level_text if level_text in LOG_LEVELS else "INFO",
            "event": str(event),
            "message": str(message),
            "context": context or {},
        }
        if exc is not None:
            record["exception_type"] = type(exc).__name__
            record["exception_message"] = str(exc)
            if exc.__traceback__ is not None:
                record["traceback"] = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
            else:
                record["traceback"] = traceback.format_exc()
        with RUNTIME_EVENTS_LOG_FILE.open("a", encoding="utf-8") as f:
            f.write(json.dumps(record, default=_safe_json_default, ensure_ascii=False) + "\n")
    except Exception:
        # Diagnostics should never break an edit or a save.
        pass


def read_runtime_events(limit: int = 200, event: str | None = None) -> list[dict[str, Any]]:
    if limit <= 0 or not RUNTIME_EVENTS_LOG_FILE.exists():
        return []
    try:
        lines = RUNTIME_EVENTS_LOG_FILE.read_text(encoding="utf-8").splitlines()
    except Exception:
        return []
    out: list[dict[str, Any]] = []
    for line in lines:
        if not line.strip():
            continue
        try:
            out.append(json.loads(line))
        except json.JSONDecodeError:
            out.append(
                {
                    "timestamp_utc": _now_iso(),
                    "level": "ERROR",
                    "event": "log_parse_error",
                    "message": "Malformed log line encountered.",
                    "context": {"line": line},
                }
            )
    if event is not None:
        out = [row for row in out if row.get("event") == event]
    return out[-int(limit) :]


configure_log_root(os.getenv(_STORAGE_ENV_VAR, ""))
