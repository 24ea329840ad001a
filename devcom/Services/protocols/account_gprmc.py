# devcom/Services/protocols/account_gprmc.py

"""
Self-identified account/device lines carrying a full NMEA sentence:

    <account>/<device>/$GPRMC,025423.494,A,3709.0642,N,11907.8315,W,0.094824,108.52,200505,,*12

Identity is resolved by account + device (transport id). A blank account
falls back to a unique-id lookup of the device token.
"""

from devcom.Core.exceptions import ProtocolError
from devcom.Core.status_codes import STATUS_LOCATION
from devcom.Schemas.gps_event import GPSEvent

from .base import DecodeResult, ProtocolDecoder, register_decoder
from .nmea import parse_rmc_fields, split_sentence


@register_decoder("account_gprmc")
class AccountGprmcDecoder(ProtocolDecoder):

    def decode(self, frame: bytes) -> DecodeResult:
        cfg = self.config
        text = self.frame_text(frame)

        parts = text.split(cfg.delimiter, 2)
        if len(parts) < 3:
            raise ProtocolError(f"Invalid number of fields: {len(parts)} < 3")

        account_id = parts[0].strip().lower()
        device_id = parts[1].strip().lower()
        if not device_id:
            raise ProtocolError("DeviceID not specified")

        fields = split_sentence(parts[2], ignore_checksum=cfg.ignore_checksum)
        if not fields or fields[0] != cfg.sentinel:
            raise ProtocolError(f"Expected a '{cfg.sentinel}' sentence, got '{fields[0] if fields else ''}'")

        fix = parse_rmc_fields(fields[1:], self.now())

        event = GPSEvent(
            fixtime=fix.fixtime,
            status_code=STATUS_LOCATION,
            latitude=fix.latitude,
            longitude=fix.longitude,
            speed_kph=fix.speed_kph,
            heading=fix.heading,
            altitude=0.0,
            raw_data=text,
        )
        if account_id:
            event.account_id = account_id
            event.device_id = device_id
        else:
            event.mobile_id = device_id

        return DecodeResult(events=[self.finish_fix(event)])
