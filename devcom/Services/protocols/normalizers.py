# devcom/Services/protocols/normalizers.py

"""
Fail-soft numeric parsing for wire fields.

Malformed numeric sub-fields never abort a frame: they fall back to the
caller supplied default (0, -1, or 99999 for coordinates, which the
coordinate decoder turns into its invalid marker).
"""

import math
from typing import Any, Optional, Union

Number = Union[int, float]


def _clean(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, bytes):
        value = value.decode("ascii", errors="replace")
    v = str(value).strip()
    if v == "" or v.lower() == "null":
        return None
    return v


def parse_float(value: Any, default: float = 0.0) -> float:
    """Parse a float; NaN and infinities count as malformed."""
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        try:
            result = float(value)
        except OverflowError:
            return default
    else:
        v = _clean(value)
        if v is None:
            return default
        try:
            result = float(v)
        except ValueError:
            return default
    return result if math.isfinite(result) else default


def parse_int(value: Any, default: int = 0, base: int = 10) -> int:
    """
    Parse an integer; decimal strings like "12.7" are truncated when
    base is 10.
    """
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    v = _clean(value)
    if v is None:
        return default
    try:
        return int(v, base)
    except ValueError:
        if base != 10:
            return default
    try:
        return int(float(v))
    except (ValueError, OverflowError):
        return default


def parse_hex(value: Any, default: int = 0) -> int:
    """Parse a hex integer, with or without a 0x prefix."""
    v = _clean(value)
    if v is None:
        return default
    if v.lower().startswith("0x"):
        v = v[2:]
    return parse_int(v, default=default, base=16)


def bounded(value: int, low: int, high: int, default: int) -> int:
    """`value` when low <= value <= high, else `default`."""
    return value if low <= value <= high else default


def parse_bool(value: Any, default: bool = False) -> bool:
    """
    Parse the usual textual booleans ("1", "true", "yes", "on", ...).

    Args:
        value: Raw field (str, bytes or None)
        default: Returned for blank or unrecognized input

    Returns:
        bool
    """
    v = _clean(value)
    if v is None:
        return default
    v = v.lower()
    if v in ("1", "true", "yes", "on", "y", "t"):
        return True
    if v in ("0", "false", "no", "off", "n", "f"):
        return False
    return default
