# devcom/Services/protocols/hex_table.py

"""
Table-driven hex decoder.

Frames are hex strings (ASCII-hex on the wire, or raw bytes rendered to hex
when HexLayout.binary is set). Fields are sliced strictly left to right from
a width table; a field may take its width from an earlier field
(`width_from`), so decoding is sequential.

Two layouts:

    command   the header itself is one fix: ASCII date-time, hemispheres,
              DMM coordinates and a variable list of sensor samples
    report    the header declares a data type and a payload length; single
              record types carry one fix, the other types a batch of
              fixed-size sub-records (count = length / record_size). A short
              batch yields the complete sub-records only.

Report sub-record example (GP6000, 27 bytes):

    date    time    lat      lon       L sp hd fh status   mileage  --
    230394  123519  22324690 114036847 6 0A 54 01 00000000 0000012C 00

Decoding stops after mileage; the 27th byte is not read. fuel_low and
sequence are only read from a single record longer than 27 bytes.
"""

import string
from typing import Any, Dict, List, Optional, Tuple

from devcom.Core import log_ws
from devcom.Core.exceptions import ProtocolError
from devcom.Core.geo import KILOMETERS_PER_KNOT
from devcom.Core.status_codes import STATUS_LOCATION
from devcom.Schemas.gps_event import GPSEvent
from devcom.Schemas.protocol_config import HexField, HexLayout

from .base import DecodeResult, ProtocolDecoder, register_decoder
from .coordinates import decode_latitude, decode_longitude
from .normalizers import parse_hex, parse_int
from .timestamps import reconstruct_timestamp

_HEX_DIGITS = set(string.hexdigits)


# ==========================================================
# FIELD SLICING
# ==========================================================

def _convert(field: HexField, raw: str) -> Any:
    if field.sample_width:
        w = field.sample_width
        return [parse_hex(raw[i:i + w], default=-1) for i in range(0, len(raw) - w + 1, w)]
    if field.encoding == "ascii":
        try:
            return bytes.fromhex(raw).decode("ascii", errors="replace").strip()
        except ValueError:
            return ""
    if field.encoding == "int":
        return parse_hex(raw, default=-1)
    if field.encoding == "digits":
        return raw.strip()
    return raw.upper()


def read_fields(
    data: str,
    table: List[HexField],
    separator_width: int = 0,
) -> Tuple[Dict[str, Any], int]:
    """
    Slice `data` by `table`; returns (values by field name, end position).

    Raises ProtocolError when a field runs past the end of `data` or a
    derived width cannot be computed.
    """
    values: Dict[str, Any] = {}
    pos = 0
    for field in table:
        if field.present_if_longer_than and len(data) <= field.present_if_longer_than:
            continue

        if field.width_from:
            count = parse_int(values.get(field.width_from), default=-1)
            if count < 0:
                raise ProtocolError(f"Field '{field.name}' width depends on unparseable '{field.width_from}'")
            width = count * field.width_scale
        else:
            width = field.width

        if pos + width > len(data):
            raise ProtocolError(f"Field '{field.name}' truncated at {pos} (need {width}, have {len(data) - pos})")

        values[field.name] = _convert(field, data[pos:pos + width])
        pos += width + separator_width

    return values, min(pos, len(data))


def split_status(raw: str) -> List[int]:
    """Four 8-bit groups, least significant byte first."""
    raw = raw.rjust(8, "0")[-8:]
    return [parse_hex(raw[2 * (3 - i):2 * (4 - i)], default=0) for i in range(4)]


# ==========================================================
# DECODER
# ==========================================================

@register_decoder("hex_table")
class HexTableDecoder(ProtocolDecoder):

    @property
    def layout(self) -> HexLayout:
        layout = self.config.hex_layout
        if layout is None:
            raise ValueError("hex_table decoder requires a hex_layout")
        return layout

    def decode(self, frame: bytes) -> DecodeResult:
        layout = self.layout
        data = self._to_hex(frame)

        if layout.strip_leading or layout.strip_trailing:
            if len(data) < layout.strip_leading + layout.strip_trailing:
                raise ProtocolError("Frame shorter than its markers")
            data = data[layout.strip_leading:len(data) - layout.strip_trailing]

        if layout.kind == "command":
            events = [self._decode_command(data)]
        else:
            events = self._decode_report(data)

        return DecodeResult(events=[self.finish_fix(e) for e in events])

    def _to_hex(self, frame: bytes) -> str:
        if self.layout.binary:
            data = frame[self.config.skip_leading_bytes:].hex().upper()
        else:
            data = self.frame_text(frame).replace(" ", "").upper()
        if not data:
            raise ProtocolError("Empty frame")
        if len(data) % 2 != 0:
            raise ProtocolError(f"Odd hex length {len(data)}")
        if not set(data) <= _HEX_DIGITS:
            raise ProtocolError("Frame is not a hex string")
        return data

    # ========================================
    # command layout
    # ========================================

    def _decode_command(self, data: str) -> GPSEvent:
        layout = self.layout
        values, _ = read_fields(data, layout.header, layout.separator_width)

        mobile_id = values.get("imei", "")
        if not mobile_id:
            raise ProtocolError("Command frame without identifier")

        stamp = values.get("datetime", "")
        fixtime = reconstruct_timestamp(
            parse_int(stamp[:6], default=0),
            parse_int(stamp[6:12], default=0),
            self.now(),
        )

        event = GPSEvent(
            mobile_id=mobile_id,
            fixtime=fixtime,
            status_code=STATUS_LOCATION,
            latitude=decode_latitude(values.get("latitude"), values.get("lat_hemi", ""), layout.coordinate_scale),
            longitude=decode_longitude(values.get("longitude"), values.get("lon_hemi", ""), layout.coordinate_scale),
            raw_data=data,
        )
        if "samples" in values:
            event.sensor_samples = values["samples"]
        if "sequence" in values:
            event.sequence_number = parse_int(values["sequence"], default=-1)
        return event

    # ========================================
    # report layout
    # ========================================

    def _decode_report(self, data: str) -> List[GPSEvent]:
        layout = self.layout
        header, header_end = read_fields(data, layout.header, layout.separator_width)

        data_type = header.get(layout.type_field, -1)
        data_length = header.get(layout.length_field, -1)
        if data_type < 0 or data_length < 0:
            raise ProtocolError("Unparseable report header")

        mobile_id = header.get("imei", "")
        if not mobile_id:
            raise ProtocolError("Report frame without identifier")

        payload = data[header_end:]

        if data_type in layout.single_record_types:
            record = payload[:data_length * 2] if len(payload) >= data_length * 2 else payload
            return [self._record_event(mobile_id, record)]

        size = layout.record_size * 2
        declared = data_length // layout.record_size
        events = []
        for i in range(declared):
            chunk = payload[i * size:(i + 1) * size]
            if len(chunk) < size:
                log_ws.log_from_thread(
                    "[HEX] Short batch, keeping complete sub-records only",
                    "warning",
                    mobile_id=mobile_id,
                    declared=declared,
                    decoded=len(events),
                )
                break
            events.append(self._record_event(mobile_id, chunk))
        return events

    def _record_event(self, mobile_id: str, record: str) -> GPSEvent:
        layout = self.layout
        values, _ = read_fields(record, layout.record)

        fixtime = reconstruct_timestamp(
            parse_int(values.get("date"), default=0),
            parse_int(values.get("time"), default=0),
            self.now(),
        )

        locating = max(values.get("locating", 0), 0)
        lat_hemi = "N" if locating & 0x2 else "S"
        lon_hemi = "E" if locating & 0x4 else "W"

        event = GPSEvent(
            mobile_id=mobile_id,
            fixtime=fixtime,
            status_code=STATUS_LOCATION,
            latitude=decode_latitude(values.get("latitude"), lat_hemi, layout.coordinate_scale),
            longitude=decode_longitude(values.get("longitude"), lon_hemi, layout.coordinate_scale),
            raw_data=record,
        )

        if "speed" in values:
            event.speed_kph = values["speed"] * KILOMETERS_PER_KNOT
        if "heading" in values:
            event.heading = float(values["heading"])
        if "status" in values:
            event.status_flags = split_status(values["status"])
        if "mileage" in values and values["mileage"] >= 0:
            event.odometer_km = values["mileage"] * layout.odometer_scale
        if "fuel_high" in values:
            event.fuel_level = float(max(values["fuel_high"], 0) * 256 + max(values.get("fuel_low", 0), 0))
        if "sequence" in values:
            event.sequence_number = values["sequence"]

        return event
