# devcom/Services/protocols/__init__.py
"""
Protocol decoding package.

Leaf utilities (coordinates, timestamps, normalizers) are pure functions
shared by every decoder. Decoder modules register themselves by kind when
imported here, so create_decoder() can build any of them from a
DecoderConfig.

Modules:
- coordinates: DMM -> signed decimal degrees
- timestamps: DDMMYY + HHMMSS (+ now) -> UTC epoch seconds
- normalizers: fail-soft numeric parsing
- framer: PacketFramer (terminator / end-of-stream / derived length)
- base: ProtocolDecoder, DecodeResult, decoder registry
- nmea: GPRMC field parsing and checksum
- gprmc_ascii: "imei:...,GPRMC,..." lines
- account_gprmc: "account/device/$GPRMC,...*CS" lines
- rtprops: key=value records
- hex_table: table-driven hex frames (command and report layouts)
"""

from .coordinates import decode_latitude, decode_longitude
from .timestamps import reconstruct_timestamp
from .framer import FrameResult, FrameStatus, PacketFramer
from .base import DecodeResult, ProtocolDecoder, create_decoder, register_decoder, registered_kinds

from .gprmc_ascii import GprmcAsciiDecoder
from .account_gprmc import AccountGprmcDecoder
from .rtprops import RTPropsDecoder
from .hex_table import HexTableDecoder

__all__ = [
    "decode_latitude",
    "decode_longitude",
    "reconstruct_timestamp",
    "FrameResult",
    "FrameStatus",
    "PacketFramer",
    "DecodeResult",
    "ProtocolDecoder",
    "create_decoder",
    "register_decoder",
    "registered_kinds",
    "GprmcAsciiDecoder",
    "AccountGprmcDecoder",
    "RTPropsDecoder",
    "HexTableDecoder",
]
