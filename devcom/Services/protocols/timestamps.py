# devcom/Services/protocols/timestamps.py

"""
Fix timestamp reconstruction shared by every decoder.

Devices report a DDMMYY date and an HHMMSS time of day. Some retransmits
omit the date, in which case the calendar day is taken from the server clock
and nudged by one day when the reported time of day is more than 12 hours
away from the server's.
"""

from typing import Optional

DAY_SECONDS = 86400
HALF_DAY_SECONDS = 43200

CENTURY_PIVOT = 80
"""Two-digit years >= 80 are 19yy, the others 20yy."""


def _tdiv(a: int, b: int) -> int:
    """Integer division truncating toward zero."""
    q = abs(a) // abs(b)
    return q if (a >= 0) == (b > 0) else -q


def time_of_day_seconds(hhmmss: int) -> int:
    """Seconds since midnight for an HHMMSS integer (123519 -> 45319)."""
    hh = (hhmmss // 10000) % 100
    mm = (hhmmss // 100) % 100
    ss = hhmmss % 100
    return hh * 3600 + mm * 60 + ss


def full_year(yy: int) -> int:
    """
    Expand a two digit year around CENTURY_PIVOT.

    Args:
        yy: Year as sent by the device; values >= 100 are returned as is

    Returns:
        Four digit year (94 -> 1994, 23 -> 2023)
    """
    if yy >= 100:
        return yy
    return (1900 + yy) if yy >= CENTURY_PIVOT else (2000 + yy)


def julian_day(year: int, month: int, day: int) -> int:
    """Days since 1970-01-01 for a civil date."""
    yr = (year * 1000) + _tdiv((month - 3) * 1000, 12)
    return (
        ((367 * yr + 625) // 1000)
        - (2 * (yr // 1000))
        + (yr // 4000)
        - (yr // 100000)
        + (yr // 400000)
        + day
        - 719469
    )


def reconstruct_timestamp(day: Optional[int], time_of_day: int, now: int) -> int:
    """
    UTC epoch seconds for a DDMMYY `day` and HHMMSS `time_of_day`.

    When `day` is missing or 0 the date comes from `now`: the day is moved
    forward when the device's time of day is far behind the server's
    (device already past midnight) and backward in the opposite case.

    >>> reconstruct_timestamp(230394, 123519, 0)
    764426119
    """
    tod = time_of_day_seconds(max(int(time_of_day or 0), 0))

    if day:
        dd = (day // 10000) % 100
        mm = (day // 100) % 100
        yy = full_year(day % 100)
        days = julian_day(yy, mm, dd)
    else:
        now = int(now)
        days = now // DAY_SECONDS
        now_tod = now % DAY_SECONDS
        if abs(now_tod - tod) > HALF_DAY_SECONDS:
            if now_tod > tod:
                days += 1
            else:
                days -= 1

    return (days * DAY_SECONDS) + tod
