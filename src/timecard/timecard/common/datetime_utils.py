from __future__ import annotations

import calendar
import time as _time
from datetime import date, datetime, time, timedelta

from ..core.constants import JST, MS_PER_DAY
from ..core.exceptions import ValidationError


def now_ms() -> int:
    """Current instant as UTC epoch milliseconds.

    Note: Wrapped so tests can patch/mock easier.
    """
    return int(_time.time() * 1000)


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid date: {value!r}") from None


def parse_hhmm(value: str) -> time:
    try:
        return datetime.strptime(value, "%H:%M").time()
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid time: {value!r}") from None


def to_jst(timestamp_ms: int) -> datetime:
    return datetime.fromtimestamp(timestamp_ms / 1000, tz=JST)


def jst_date(timestamp_ms: int) -> date:
    """Calendar date of an instant in JST."""
    return to_jst(timestamp_ms).date()


def jst_date_key(timestamp_ms: int) -> str:
    return jst_date(timestamp_ms).strftime("%Y-%m-%d")


def jst_minutes_of_day(timestamp_ms: int) -> int:
    """Minutes since JST midnight."""
    local = to_jst(timestamp_ms)
    return local.hour * 60 + local.minute


def jst_timestamp(day: date, at: time) -> int:
    """Epoch ms of a JST wall-clock date + time."""
    return int(datetime.combine(day, at, tzinfo=JST).timestamp() * 1000)


def jst_day_bounds(day: date) -> tuple[int, int]:
    """[start, end] of a JST calendar day, both inclusive, in epoch ms."""
    start = jst_timestamp(day, time(0, 0))
    return start, start + MS_PER_DAY - 1


def jst_today_bounds(timestamp_ms: int) -> tuple[int, int]:
    return jst_day_bounds(jst_date(timestamp_ms))


def jst_period_bounds(start_day: date, end_day: date) -> tuple[int, int]:
    start, _ = jst_day_bounds(start_day)
    _, end = jst_day_bounds(end_day)
    return start, end


def month_dates(year: int, month: int) -> list[date]:
    if not 1 <= int(month) <= 12:
        raise ValidationError(f"Invalid month: {month!r}")
    last_day = calendar.monthrange(int(year), int(month))[1]
    first = date(int(year), int(month), 1)
    return [first + timedelta(days=i) for i in range(last_day)]


def jst_month_bounds(year: int, month: int) -> tuple[int, int]:
    days = month_dates(year, month)
    return jst_period_bounds(days[0], days[-1])


def format_hhmm(minutes: float) -> str:
    """Format a minute count as HH:MM (floored)."""
    total = max(int(minutes), 0)
    return f"{total // 60:02d}:{total % 60:02d}"
