# devcom/Services/protocols/rtprops.py

"""
Whitespace separated key=value records, used by relays and simple devices:

    mid=123456789012345 ts=1254100914 code=0xF020 gps=39.1234/-142.1234 kph=45.6 dir=123 alt=1234 odom=1234.5

Keys (case-insensitive, first alias wins):
    mid|modemid|uniqueid|imei   unique identifier
    acct|accountid              account (requires dev, excludes mid)
    dev|deviceid                device (requires acct)
    ts|timestamp|time           epoch seconds
    code|statuscode             status code (decimal or 0x hex)
    gps|geopoint                "<lat>/<lon>" in decimal degrees
    age|gpsage, sats|satcount, kph|speed|speedkph, dir|heading,
    alt|altm|altitude, odom|odometer, gpio|inputmask, batt|battery
    ack                         reply sent once every event is committed

Only keys present in the record are set on the event.
"""

from typing import Dict, Optional, Tuple

from devcom.Core.exceptions import ProtocolError
from devcom.Core.status_codes import STATUS_LOCATION
from devcom.Schemas.gps_event import GPSEvent

from .base import DecodeResult, ProtocolDecoder, register_decoder
from .coordinates import INVALID_LATITUDE, INVALID_LONGITUDE
from .normalizers import bounded, parse_float, parse_hex, parse_int

ALIASES: Dict[str, Tuple[str, ...]] = {
    "mobile_id": ("mid", "modemid", "uniqueid", "imei"),
    "account_id": ("acct", "accountid"),
    "device_id": ("dev", "deviceid"),
    "fixtime": ("ts", "timestamp", "time"),
    "status_code": ("code", "statuscode"),
    "geopoint": ("gps", "geopoint"),
    "gps_age": ("age", "gpsage"),
    "satellite_count": ("sats", "satcount"),
    "speed_kph": ("kph", "speed", "speedkph"),
    "heading": ("dir", "heading"),
    "altitude": ("alt", "altm", "altitude"),
    "odometer_km": ("odom", "odometer"),
    "input_mask": ("gpio", "inputmask"),
    "battery_level": ("batt", "battery"),
    "ack": ("ack",),
}

FLOAT_FIELDS = ("speed_kph", "heading", "altitude", "odometer_km", "battery_level")
INT_FIELDS = ("gps_age", "satellite_count")

# storable ranges; values outside fall back like malformed fields
MAX_FIXTIME = 0xFFFFFFFF
MAX_COUNTER = 0x7FFFFFFF
MAX_INPUT_MASK = 0xFFFFFFFF


def parse_properties(text: str) -> Dict[str, str]:
    """
    Split a record into lower-cased key=value pairs.

    Tokens without "=" are ignored and the first occurrence of a key wins.

    Args:
        text: One record, tokens separated by whitespace

    Returns:
        Dict of key -> raw value

    Example:
        parse_properties("MID=42 ts=100 ts=200")  # {"mid": "42", "ts": "100"}
    """
    props: Dict[str, str] = {}
    for token in text.split():
        if "=" not in token:
            continue
        key, value = token.split("=", 1)
        props.setdefault(key.strip().lower(), value.strip())
    return props


def _lookup(props: Dict[str, str], name: str) -> Optional[str]:
    for alias in ALIASES[name]:
        if alias in props:
            return props[alias]
    return None


def _parse_code(value: str) -> int:
    if value.lower().startswith("0x"):
        code = parse_hex(value, default=STATUS_LOCATION)
    else:
        code = parse_int(value, default=STATUS_LOCATION)
    if not 0 <= code <= 0xFFFF:
        raise ProtocolError(f"Status code out of range: {value}")
    return code


def _parse_geopoint(value: str) -> Tuple[float, float]:
    lat, sep, lon = value.partition("/")
    if not sep:
        return INVALID_LATITUDE, INVALID_LONGITUDE
    return (
        parse_float(lat, default=INVALID_LATITUDE),
        parse_float(lon, default=INVALID_LONGITUDE),
    )


@register_decoder("rtprops")
class RTPropsDecoder(ProtocolDecoder):

    def decode(self, frame: bytes) -> DecodeResult:
        text = self.frame_text(frame)
        if not text:
            raise ProtocolError("Blank record")

        props = parse_properties(text)

        mobile_id = (_lookup(props, "mobile_id") or "").strip()
        account_id = (_lookup(props, "account_id") or "").strip().lower()
        device_id = (_lookup(props, "device_id") or "").strip().lower()

        if account_id:
            if not device_id:
                raise ProtocolError("'deviceid' required if 'accountid' specified")
            if mobile_id:
                raise ProtocolError("'mobileid' not allowed if 'accountid' specified")
        elif device_id:
            raise ProtocolError("'accountid' required if 'deviceid' specified")
        elif not mobile_id:
            raise ProtocolError("UniqueID/ModemID not specified")

        event = GPSEvent(
            account_id=account_id,
            device_id=device_id,
            mobile_id=mobile_id,
            fixtime=bounded(parse_int(_lookup(props, "fixtime"), default=0), 0, MAX_FIXTIME, 0),
            status_code=_parse_code(_lookup(props, "status_code") or ""),
            raw_data=text,
        )

        geopoint = _lookup(props, "geopoint")
        if geopoint is not None:
            event.latitude, event.longitude = _parse_geopoint(geopoint)

        for name in FLOAT_FIELDS:
            value = _lookup(props, name)
            if value is not None:
                setattr(event, name, parse_float(value, default=0.0))

        for name in INT_FIELDS:
            value = _lookup(props, name)
            if value is not None:
                setattr(event, name, bounded(parse_int(value, default=0), 0, MAX_COUNTER, 0))

        gpio = _lookup(props, "input_mask")
        if gpio is not None:
            mask = parse_hex(gpio, default=-1) if gpio.lower().startswith("0x") else parse_int(gpio, default=-1)
            if 0 <= mask <= MAX_INPUT_MASK:
                event.input_mask = mask

        ack = _lookup(props, "ack") or self.config.ack
        return DecodeResult(
            events=[self.finish_fix(event)],
            ack=(ack + "\n").encode("ascii", errors="replace") if ack else None,
        )
