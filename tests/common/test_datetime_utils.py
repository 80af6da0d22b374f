from __future__ import annotations

from datetime import date, datetime, time, timezone

import pytest

from src.timecard.timecard.common.datetime_utils import (
    format_hhmm,
    jst_date,
    jst_day_bounds,
    jst_minutes_of_day,
    jst_month_bounds,
    jst_timestamp,
    month_dates,
    parse_hhmm,
    parse_iso_date,
)
from src.timecard.timecard.core.constants import MS_PER_DAY
from src.timecard.timecard.core.exceptions import ValidationError


def test_jst_timestamp_is_nine_hours_ahead_of_utc():
    ts = jst_timestamp(date(2024, 5, 10), time(9, 0))

    assert datetime.fromtimestamp(ts / 1000, tz=timezone.utc) == datetime(2024, 5, 10, 0, 0, tzinfo=timezone.utc)


def test_jst_date_rolls_over_at_utc_15():
    utc_1459 = int(datetime(2024, 5, 9, 14, 59, tzinfo=timezone.utc).timestamp() * 1000)
    utc_1500 = int(datetime(2024, 5, 9, 15, 0, tzinfo=timezone.utc).timestamp() * 1000)

    assert jst_date(utc_1459) == date(2024, 5, 9)
    assert jst_date(utc_1500) == date(2024, 5, 10)
    assert jst_minutes_of_day(utc_1500) == 0


def test_day_bounds_are_inclusive():
    start, end = jst_day_bounds(date(2024, 5, 10))

    assert end - start == MS_PER_DAY - 1
    assert jst_date(start) == jst_date(end) == date(2024, 5, 10)
    assert jst_date(end + 1) == date(2024, 5, 11)


def test_month_bounds_cover_leap_february():
    start, end = jst_month_bounds(2024, 2)

    assert jst_date(start) == date(2024, 2, 1)
    assert jst_date(end) == date(2024, 2, 29)
    assert len(month_dates(2024, 2)) == 29


def test_month_bounds_reject_invalid_month():
    with pytest.raises(ValidationError):
        jst_month_bounds(2024, 0)


@pytest.mark.parametrize("value", ["2024-02-30", "", None, "20240501"])
def test_parse_iso_date_rejects(value):
    with pytest.raises(ValidationError):
        parse_iso_date(value)


def test_parse_hhmm():
    assert parse_hhmm("07:05") == time(7, 5)
    with pytest.raises(ValidationError):
        parse_hhmm("7pm")


@pytest.mark.parametrize("minutes,expected", [(0, "00:00"), (59.9, "00:59"), (61, "01:01"), (1500, "25:00"), (-5, "00:00")])
def test_format_hhmm(minutes, expected):
    assert format_hhmm(minutes) == expected
