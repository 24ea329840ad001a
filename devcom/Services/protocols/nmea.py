# devcom/Services/protocols/nmea.py

"""
GPRMC sub-sentence helpers shared by the ASCII decoders.

The nine RMC fields after the sentinel are, in order:
    time(HHMMSS[.sss]), validity(A/V), lat, N/S, lon, E/W, knots, heading, date(DDMMYY)
"""

from dataclasses import dataclass
from typing import List, Optional

from devcom.Core.exceptions import ProtocolError
from devcom.Core.geo import KILOMETERS_PER_KNOT

from .coordinates import decode_latitude, decode_longitude
from .normalizers import parse_float, parse_int
from .timestamps import reconstruct_timestamp

RMC_FIELD_COUNT = 9


@dataclass
class RmcFix:
    fixtime: int
    valid: bool
    latitude: float
    longitude: float
    speed_kph: float
    heading: float


def parse_rmc_fields(fields: List[str], now: int) -> RmcFix:
    """
    Decode the nine RMC fields.

    A validity flag other than "A" yields a zeroed fix (still a fix).
    Raises ProtocolError when fewer than nine fields are available.
    """
    if len(fields) < RMC_FIELD_COUNT:
        raise ProtocolError(f"GPRMC needs {RMC_FIELD_COUNT} fields, got {len(fields)}")

    hms, validity, lat, lat_hemi, lon, lon_hemi, knots, heading, dmy = fields[:RMC_FIELD_COUNT]

    # HHMMSS.sss -> HHMMSS; the fraction is dropped
    time_of_day = parse_int(hms.split(".", 1)[0], default=0)
    day = parse_int(dmy, default=0)
    fixtime = reconstruct_timestamp(day, time_of_day, now)

    if validity.strip().upper() != "A":
        return RmcFix(fixtime=fixtime, valid=False, latitude=0.0, longitude=0.0, speed_kph=0.0, heading=0.0)

    return RmcFix(
        fixtime=fixtime,
        valid=True,
        latitude=decode_latitude(lat, lat_hemi),
        longitude=decode_longitude(lon, lon_hemi),
        speed_kph=parse_float(knots, default=-1.0) * KILOMETERS_PER_KNOT,
        heading=parse_float(heading, default=-1.0),
    )


def nmea_checksum(body: str) -> int:
    """XOR of every character of `body` (the text between '$' and '*')."""
    cs = 0
    for ch in body:
        cs ^= ord(ch)
    return cs


def split_sentence(sentence: str, ignore_checksum: bool = False) -> List[str]:
    """
    Split "$GPRMC,...*CS" into its comma fields (sentinel included).

    The checksum, when present, must match unless `ignore_checksum`.
    A sentence without "*CS" is accepted as is.
    """
    s = sentence.strip()
    if s.startswith("$"):
        s = s[1:]

    checksum: Optional[str] = None
    if "*" in s:
        s, checksum = s.rsplit("*", 1)

    if checksum is not None and not ignore_checksum:
        expected = nmea_checksum(s)
        try:
            received = int(checksum.strip()[:2], 16)
        except ValueError:
            raise ProtocolError(f"Unparseable NMEA checksum '{checksum}'")
        if received != expected:
            raise ProtocolError(f"NMEA checksum mismatch: got {received:02X}, expected {expected:02X}")

    return s.split(",")
