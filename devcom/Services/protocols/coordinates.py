# devcom/Services/protocols/coordinates.py

"""
Degrees/decimal-minutes (DMM) coordinate decoding.

Wire value `raw` is degrees*100 + minutes, e.g. "4807.038" = 48°07.038'.
Protocols that send pre-scaled integers (48070380 for 4807.0380) pass the
divisor as `scale`.
"""

from typing import Any, Optional

from .normalizers import parse_float

INVALID_RAW = 99999.0
INVALID_LATITUDE = 90.0
INVALID_LONGITUDE = 180.0


def _raw_value(raw: Any, scale: float) -> Optional[float]:
    # the sentinel applies to the scaled value; unparseable input maps onto it
    value = parse_float(raw, default=INVALID_RAW * scale) / scale
    if value >= INVALID_RAW:
        return None
    return value


def _decode_dmm(value: float) -> float:
    deg = int(value / 100.0)
    minutes = value - (deg * 100.0)
    return deg + (minutes / 60.0)


def decode_latitude(raw: Any, hemisphere: str, scale: float = 1.0) -> float:
    """
    Signed decimal latitude; 90.0 when `raw` is unparseable or >= 99999.

    >>> round(decode_latitude("4807.038", "N"), 4)
    48.1173
    """
    value = _raw_value(raw, scale)
    if value is None:
        return INVALID_LATITUDE
    lat = _decode_dmm(value)
    if (hemisphere or "").strip().upper() == "S":
        lat = -lat
    return lat


def decode_longitude(raw: Any, hemisphere: str, scale: float = 1.0) -> float:
    """Signed decimal longitude; 180.0 when `raw` is unparseable or >= 99999."""
    value = _raw_value(raw, scale)
    if value is None:
        return INVALID_LONGITUDE
    lon = _decode_dmm(value)
    if (hemisphere or "").strip().upper() == "W":
        lon = -lon
    return lon
