"""Clock helpers: "HH:MM" strings anchored to a calendar day."""

from __future__ import annotations

import datetime as dt


def parse_clock(day: dt.date, text: str) -> dt.datetime:
    """Anchor "HH:MM" to ``day``; "24:00" maps to the next midnight."""
    hours, _, minutes = str(text).strip().partition(":")
    h = int(hours)
    m = int(minutes or 0)
    if h == 24 and m == 0:
        return dt.datetime.combine(day, dt.time(0, 0)) + dt.timedelta(days=1)
    if not (0 <= h <= 23 and 0 <= m <= 59):
        raise ValueError(f"invalid clock time: {text!r}")
    return dt.datetime.combine(day, dt.time(h, m))


def fmt_clock(value: dt.datetime) -> str:
    return value.strftime("%H:%M")


def add_minutes(value: dt.datetime, minutes: float) -> dt.datetime:
    return value + dt.timedelta(minutes=minutes)


def minutes_between(start: dt.datetime, end: dt.datetime) -> float:
    return (end - start).total_seconds() / 60.0


def hour_of(value: dt.datetime, day: dt.date) -> float:
    """Fractional hour of ``value`` relative to midnight of ``day`` (may exceed 24)."""
    midnight = dt.datetime.combine(day, dt.time(0, 0))
    return (value - midnight).total_seconds() / 3600.0
