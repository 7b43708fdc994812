# Overview: Timestamp helpers; the database stores naive UTC datetimes.

from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone
from typing import Optional

_ONE_DAY = timedelta(days=1)
_LAST_TICK = timedelta(microseconds=1)


def utcnow() -> datetime:
    """Naive UTC 'now', the form every DateTime column is written in."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _as_naive_utc(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        return dt
    return dt.astimezone(timezone.utc).replace(tzinfo=None)


def parse_iso_datetime(value: Optional[str]) -> Optional[datetime]:
    """
    "2026-03-01T10:15", "2026-03-01T10:15:00Z" or "...+05:30" -> naive UTC.
    Offset-less input is taken as UTC. Blank -> None; garbage -> ValueError.
    """
    text = (value or "").strip()
    if not text:
        return None
    if text[-1] in "zZ":
        text = f"{text[:-1]}+00:00"
    return _as_naive_utc(datetime.fromisoformat(text))


def parse_date_bound(value: Optional[str], *, end: bool = False) -> Optional[datetime]:
    """
    Filter bound for bill history. A bare "YYYY-MM-DD" covers the whole
    day, so end=True yields the last microsecond of that day.
    """
    text = (value or "").strip()
    if len(text) != 10:
        return parse_iso_datetime(text)

    midnight = datetime.combine(date.fromisoformat(text), time.min)
    return midnight + _ONE_DAY - _LAST_TICK if end else midnight


def to_utc_z(dt: Optional[datetime]) -> Optional[str]:
    """JSON form: whole seconds, UTC, trailing 'Z' (naive input is UTC)."""
    if dt is None:
        return None
    stamp = _as_naive_utc(dt).replace(microsecond=0)
    return f"{stamp.isoformat()}Z"
