# devcom/Services/protocols/gprmc_ascii.py

"""
Delimited ASCII decoder with an embedded GPRMC sub-sentence.

    imei:123456789012345,tracker,0809231929,13554900601,F,112909.397,A,
        2234.4669,N,11354.3287,E,0.11,,

The identifier token is found anywhere in the line by its prefix ("imei:"),
the location sub-sentence by the exact sentinel token ("GPRMC"), followed by
the nine RMC fields.
"""

from devcom.Core.exceptions import ProtocolError
from devcom.Core.status_codes import STATUS_LOCATION
from devcom.Schemas.gps_event import GPSEvent

from .base import DecodeResult, ProtocolDecoder, register_decoder
from .nmea import RMC_FIELD_COUNT, parse_rmc_fields


def extract_identifier(token: str, prefix: str) -> str:
    """ASCII letters/digits following `prefix`, up to the first other character."""
    out = []
    for ch in token[len(prefix):]:
        if not (ch.isascii() and ch.isalnum()):
            break
        out.append(ch)
    return "".join(out)


@register_decoder("gprmc")
class GprmcAsciiDecoder(ProtocolDecoder):

    def decode(self, frame: bytes) -> DecodeResult:
        cfg = self.config
        text = self.frame_text(frame)
        fields = [f.strip() for f in text.split(cfg.delimiter)]

        if len(fields) < cfg.min_field_count:
            raise ProtocolError(f"Invalid number of fields: {len(fields)} < {cfg.min_field_count}")

        # identifier token
        mobile_id = ""
        for token in fields:
            if token.startswith(cfg.id_prefix):
                mobile_id = extract_identifier(token, cfg.id_prefix)
                break
        if not mobile_id:
            raise ProtocolError(f"'{cfg.id_prefix}' identifier is missing")

        # location sub-sentence
        try:
            gpx = fields.index(cfg.sentinel)
        except ValueError:
            raise ProtocolError(f"'{cfg.sentinel}' not found")

        rmc = fields[gpx + 1:gpx + 1 + RMC_FIELD_COUNT]
        if len(rmc) < RMC_FIELD_COUNT:
            raise ProtocolError(f"'{cfg.sentinel}' is followed by {len(rmc)} fields, expected {RMC_FIELD_COUNT}")

        fix = parse_rmc_fields(rmc, self.now())

        event = GPSEvent(
            mobile_id=mobile_id,
            fixtime=fix.fixtime,
            status_code=STATUS_LOCATION,
            latitude=fix.latitude,
            longitude=fix.longitude,
            speed_kph=fix.speed_kph,
            heading=fix.heading,
            raw_data=text,
        )
        return DecodeResult(events=[self.finish_fix(event)])
