import calendar

import pytest

from devcom.Services.protocols.timestamps import (
    DAY_SECONDS,
    full_year,
    julian_day,
    reconstruct_timestamp,
    time_of_day_seconds,
)


def test_full_date():
    assert reconstruct_timestamp(230394, 123519, 0) == calendar.timegm((1994, 3, 23, 12, 35, 19, 0, 0, 0))


@pytest.mark.parametrize(
    "ddmmyy, expected",
    [
        (10100, (2000, 1, 1)),
        (290200, (2000, 2, 29)),
        (10300, (2000, 3, 1)),
        (311299, (1999, 12, 31)),
        (150124, (2024, 1, 15)),
        (280224, (2024, 2, 28)),
        (10180, (1980, 1, 1)),
    ],
)
def test_january_february_and_century(ddmmyy, expected):
    y, m, d = expected
    assert reconstruct_timestamp(ddmmyy, 0, 0) == calendar.timegm((y, m, d, 0, 0, 0, 0, 0, 0))


def test_julian_day_epoch():
    assert julian_day(1970, 1, 1) == 0


def test_two_digit_year_pivot():
    assert full_year(94) == 1994
    assert full_year(79) == 2079
    assert full_year(5) == 2005


def test_time_of_day_seconds():
    assert time_of_day_seconds(235959) == 86399


def test_missing_date_uses_today():
    now = calendar.timegm((2024, 5, 10, 12, 0, 0, 0, 0, 0))
    result = reconstruct_timestamp(0, 113000, now)
    assert result == calendar.timegm((2024, 5, 10, 11, 30, 0, 0, 0, 0))


def test_missing_date_keeps_time_of_day():
    now = calendar.timegm((2024, 5, 10, 3, 0, 0, 0, 0, 0))
    for hhmmss in (0, 10101, 120000, 235959):
        assert reconstruct_timestamp(0, hhmmss, now) % DAY_SECONDS == time_of_day_seconds(hhmmss)


def test_day_rolls_forward_after_midnight():
    # server at 23:59:00 on day D, device already at 00:01:00
    now = calendar.timegm((2024, 5, 10, 23, 59, 0, 0, 0, 0))
    assert reconstruct_timestamp(0, 100, now) == calendar.timegm((2024, 5, 11, 0, 1, 0, 0, 0, 0))


def test_day_rolls_back_before_midnight():
    # server just past midnight, device still reporting 23:58
    now = calendar.timegm((2024, 5, 11, 0, 2, 0, 0, 0, 0))
    assert reconstruct_timestamp(None, 235800, now) == calendar.timegm((2024, 5, 10, 23, 58, 0, 0, 0, 0))


def test_deterministic_for_fixed_now():
    now = 1700000000
    assert reconstruct_timestamp(0, 81500, now) == reconstruct_timestamp(0, 81500, now)
