"""Legacy date-list parsing and canonical serialization for period records.

Persisted period fields (holidays, pauses, payment dates) were typed by hand
for years before the form enforced ISO dates, so the stored strings mix
several shapes:

- "0" or empty for "no dates"
- ISO dates: "2025-07-23, 2025-07-28"
- day-first dates: "23/07/2025", "3-7-2025"
- several days sharing one month/year: "23-28-29/07/2025"
- bare days borrowing the month/year of a neighbouring date: "08 Y 09/12/2025"

``parse`` folds the tokens through a two-state machine and never raises.
``serialize`` writes the canonical form only: ISO dates joined by ", ".
"""

from __future__ import annotations

import re
from datetime import date, datetime
from enum import Enum
from functools import reduce
from typing import Any, Iterable, NamedTuple


YEAR_MIN = 2020
YEAR_MAX = 2035

LEGACY_EMPTY_SENTINEL = "0"
CANONICAL_SEPARATOR = ", "

_TOKEN_SPLIT_RE = re.compile(r"\s*[,;]\s*|\s+Y\s+", re.IGNORECASE)
_MULTI_DAY_RE = re.compile(r"^(\d{1,2}(?:-\d{1,2})*)[/-](\d{1,2})[/-](\d{4})$")
_BARE_DAY_RE = re.compile(r"^\d{1,2}$")
_ISO_DATE_RE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})$")
_DAY_FIRST_RE = re.compile(r"^(\d{1,2})[/-](\d{1,2})[/-](\d{4})$")

DateSet = tuple[date, ...]


class ParseState(str, Enum):
    NO_CONTEXT = "no_context"
    HAS_CONTEXT = "has_context"


class _Fold(NamedTuple):
    state: ParseState
    pending_days: tuple[int, ...]
    month: int | None
    year: int | None
    dates: frozenset[date]
    dropped: tuple[str, ...]


_INITIAL_FOLD = _Fold(ParseState.NO_CONTEXT, (), None, None, frozenset(), ())


def canonical_date(year: int, month: int, day: int) -> date | None:
    """Build a date only if it exists on the calendar and sits in the year window."""
    if year < YEAR_MIN or year > YEAR_MAX:
        return None
    try:
        return date(year, month, day)
    except ValueError:
        return None


def is_canonical_date(value: Any) -> bool:
    if not isinstance(value, date):
        return False
    return YEAR_MIN <= value.year <= YEAR_MAX


def _strip_legacy_empty(raw: Any) -> str:
    # The only place that knows about the old "0" placeholder.
    if raw is None:
        return ""
    text = str(raw).strip()
    if text == LEGACY_EMPTY_SENTINEL:
        return ""
    return text


def tokenize(text: str) -> list[str]:
    return [part.strip() for part in _TOKEN_SPLIT_RE.split(text) if part and part.strip()]


def _flush(acc: _Fold) -> _Fold:
    if acc.state is ParseState.NO_CONTEXT or not acc.pending_days:
        return acc
    resolved: set[date] = set()
    dropped = list(acc.dropped)
    for day in acc.pending_days:
        d = canonical_date(acc.year, acc.month, day)
        if d is None:
            dropped.append(str(day))
        else:
            resolved.add(d)
    return acc._replace(pending_days=(), dates=acc.dates | resolved, dropped=tuple(dropped))


def _enter_context(acc: _Fold, month: int, year: int) -> _Fold:
    # Pending days belong to the context in force before this token. An
    # out-of-range month/year still becomes the context; days flushed
    # against it are dropped.
    return _flush(acc)._replace(state=ParseState.HAS_CONTEXT, month=month, year=year)


def _drop(acc: _Fold, token: str) -> _Fold:
    return acc._replace(dropped=acc.dropped + (token,))


def _step(acc: _Fold, token: str) -> _Fold:
    multi = _MULTI_DAY_RE.match(token)
    if multi:
        days_text, month_text, year_text = multi.groups()
        month, year = int(month_text), int(year_text)
        found: set[date] = set()
        invalid_days = False
        for day_text in days_text.split("-"):
            d = canonical_date(year, month, int(day_text))
            if d is None:
                invalid_days = True
            else:
                found.add(d)
        if invalid_days:
            acc = _drop(acc, token)
        return _enter_context(acc._replace(dates=acc.dates | found), month, year)

    if _BARE_DAY_RE.match(token):
        day = int(token)
        if 1 <= day <= 31:
            return acc._replace(pending_days=acc.pending_days + (day,))
        return _drop(acc, token)

    iso = _ISO_DATE_RE.match(token)
    if iso:
        year, month, day = (int(part) for part in iso.groups())
        d = canonical_date(year, month, day)
        if d is None:
            return _drop(acc, token)
        return _enter_context(acc._replace(dates=acc.dates | {d}), month, year)

    return _drop(acc, token)


def _finish(acc: _Fold) -> _Fold:
    acc = _flush(acc)
    if acc.pending_days:
        # Bare days that never met a month/year.
        acc = acc._replace(
            pending_days=(),
            dropped=acc.dropped + tuple(str(day) for day in acc.pending_days),
        )
    return acc


def parse_with_report(raw: str | None) -> tuple[DateSet, tuple[str, ...]]:
    """Parse a legacy date list and also return the fragments that were dropped."""
    text = _strip_legacy_empty(raw)
    if not text:
        return (), ()
    acc = _finish(reduce(_step, tokenize(text), _INITIAL_FOLD))
    return tuple(sorted(acc.dates)), acc.dropped


def parse(raw: str | None) -> DateSet:
    """Return the sorted, deduplicated dates found in a legacy date-list string."""
    return parse_with_report(raw)[0]


def parse_field_with_report(value: Any) -> tuple[DateSet, tuple[str, ...]]:
    if value is None:
        return (), ()
    if isinstance(value, (list, tuple)):
        dates: set[date] = set()
        dropped: list[str] = []
        for item in value:
            found, lost = parse_field_with_report(item)
            dates.update(found)
            dropped.extend(lost)
        return tuple(sorted(dates)), tuple(dropped)
    if isinstance(value, date):
        return parse_with_report(as_date(value).isoformat())
    return parse_with_report(value if isinstance(value, str) else str(value))


def parse_field(value: Any) -> DateSet:
    """Parse a date-list column as the data store returns it (string, list or scalar)."""
    return parse_field_with_report(value)[0]


def as_date(value: date) -> date:
    """Drop the time part of a ``datetime``; plain dates pass through."""
    return value.date() if isinstance(value, datetime) else value


def normalize_date_input(value: Any) -> date | None:
    """Parse one operator-typed date: ``YYYY-MM-DD`` or day-first ``D/M/YYYY``."""
    if isinstance(value, date):
        value = as_date(value)
        return value if is_canonical_date(value) else None
    text = str(value or "").strip()
    if not text:
        return None
    iso = _ISO_DATE_RE.match(text)
    if iso:
        year, month, day = (int(part) for part in iso.groups())
        return canonical_date(year, month, day)
    day_first = _DAY_FIRST_RE.match(text)
    if day_first:
        day, month, year = (int(part) for part in day_first.groups())
        return canonical_date(year, month, day)
    return None


def _iso_text(item: Any) -> str:
    if isinstance(item, date):
        return as_date(item).isoformat()
    return str(item).strip()


def serialize(dates: Iterable[date | str]) -> str:
    """Join canonical dates as ``YYYY-MM-DD, YYYY-MM-DD``; empty input gives ``""``."""
    kept: set[str] = set()
    for item in dates or ():
        text = _iso_text(item)
        if not _ISO_DATE_RE.match(text):
            continue
        if not YEAR_MIN <= int(text[:4]) <= YEAR_MAX:
            continue
        kept.add(text)
    return CANONICAL_SEPARATOR.join(sorted(kept))
