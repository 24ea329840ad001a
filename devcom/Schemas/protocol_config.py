# devcom/Schemas/protocol_config.py

"""
Protocol configuration schemas.

A ProtocolConfig is chosen once per session (see Core/config.py) and passed
explicitly into the framer and the decoder; decoders never read module level
thresholds. Each preset describes one device family:

    sipgear     comma delimited "imei:<id>,...,GPRMC,<9 fields>" lines
    gtx         "account/device/$GPRMC,..." lines
    rtprops     "mid=<id> ts=<epoch> gps=<lat>/<lon> ..." lines
    gp6000      binary report frames, length prefixed, decoded as hex
    gp6000-cmd  ASCII-hex command frames terminated by newline

Hex table widths are expressed in hex characters (two per byte).
"""

from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class FramerConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    mode: Literal["terminator", "end_of_stream", "length"] = "terminator"
    terminators: List[bytes] = Field(default_factory=lambda: [b"\n"])
    ignore_bytes: bytes = Field(b"\r", description="Filler bytes dropped from terminated frames")
    min_length: int = Field(1, ge=0)
    max_length: int = Field(600, gt=0)
    length_offset: int = Field(0, ge=0, description="Offset of the big-endian length field")
    length_size: int = Field(2, ge=1, le=4)
    length_adjust: int = Field(0, description="Added to the length field value to obtain the frame size")


class HexField(BaseModel):
    """One entry of a hex width table, read left to right."""

    model_config = ConfigDict(frozen=True)

    name: str
    width: int = Field(0, ge=0, description="Width in hex characters")
    encoding: Literal["ascii", "hex", "int", "digits"] = "hex"
    width_from: Optional[str] = Field(None, description="Earlier field whose decimal value gives this width")
    width_scale: int = Field(2, ge=1, description="Hex characters per unit of width_from")
    sample_width: int = Field(0, ge=0, description="Split the value into samples of this many hex characters")
    present_if_longer_than: int = Field(0, ge=0, description="Only read when the record is longer than this")


class HexLayout(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["command", "report"]
    binary: bool = Field(False, description="Frames arrive as raw bytes and are rendered to hex")
    strip_leading: int = 0
    strip_trailing: int = 0
    separator_width: int = 0
    header: List[HexField]
    record: List[HexField] = Field(default_factory=list)
    record_size: int = Field(27, gt=0, description="Sub-record size in bytes")
    length_field: str = "data_length"
    type_field: str = "data_type"
    single_record_types: List[int] = Field(default_factory=lambda: [1, 2])
    coordinate_scale: float = Field(1.0, gt=0, description="Divisor applied to raw coordinates before DMM decoding")
    odometer_scale: float = Field(1.0, gt=0, description="Kilometers per unit of the distance counter")


class DecoderConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["gprmc", "account_gprmc", "rtprops", "hex_table"]
    minimum_speed_kph: float = Field(0.0, ge=0)
    estimate_odometer: bool = False
    odometer_policy: Literal["estimate_if_missing", "always_estimate"] = "estimate_if_missing"
    simulate_digital_inputs: int = Field(0, ge=0, le=0xFFFF)
    delimiter: str = ","
    id_prefix: str = "imei:"
    sentinel: str = "GPRMC"
    min_field_count: int = 11
    skip_leading_bytes: int = Field(0, ge=0)
    ignore_checksum: bool = False
    ack: Optional[str] = None
    hex_layout: Optional[HexLayout] = None


class ProtocolConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    framer: FramerConfig
    decoder: DecoderConfig
    unique_prefixes: List[str] = Field(default_factory=lambda: [""])
    device_code: str = "devcom"
    terminate_on_auth_failure: bool = False


# ==========================================================
# HEX TABLES
# ==========================================================

GP6000_REPORT = HexLayout(
    kind="report",
    binary=True,
    header=[
        HexField(name="head", width=2),
        HexField(name="imei", width=10),
        HexField(name="protocol_version", width=1),
        HexField(name="data_type", width=1, encoding="int"),
        HexField(name="data_length", width=4, encoding="int"),
    ],
    record=[
        HexField(name="date", width=6, encoding="digits"),
        HexField(name="time", width=6, encoding="digits"),
        HexField(name="latitude", width=8, encoding="digits"),
        HexField(name="longitude", width=9, encoding="digits"),
        HexField(name="locating", width=1, encoding="int"),
        HexField(name="speed", width=2, encoding="int"),
        HexField(name="heading", width=2, encoding="int"),
        HexField(name="fuel_high", width=2, encoding="int"),
        HexField(name="status", width=8),
        HexField(name="mileage", width=8, encoding="int"),
        HexField(name="fuel_low", width=2, encoding="int", present_if_longer_than=54),
        HexField(name="sequence", width=2, encoding="int", present_if_longer_than=56),
    ],
    record_size=27,
    coordinate_scale=10000.0,
)

GP6000_COMMAND = HexLayout(
    kind="command",
    strip_leading=2,
    strip_trailing=2,
    separator_width=2,
    header=[
        HexField(name="imei", width=20, encoding="ascii"),
        HexField(name="protocol_version", width=2, encoding="ascii"),
        HexField(name="command_type", width=6, encoding="ascii"),
        HexField(name="sequence", width=2, encoding="ascii"),
        HexField(name="param0", width=2, encoding="ascii"),
        HexField(name="param1", width=2, encoding="ascii"),
        HexField(name="sample_count", width=2, encoding="ascii"),
        HexField(name="samples", width_from="sample_count", width_scale=2, sample_width=2),
        HexField(name="reserved", width=2, encoding="ascii"),
        HexField(name="datetime", width=24, encoding="ascii"),
        HexField(name="lon_hemi", width=2, encoding="ascii"),
        HexField(name="longitude", width=20, encoding="ascii"),
        HexField(name="lat_hemi", width=2, encoding="ascii"),
        HexField(name="latitude", width=18, encoding="ascii"),
    ],
)


# ==========================================================
# PRESETS
# ==========================================================

PRESETS: Dict[str, ProtocolConfig] = {
    "sipgear": ProtocolConfig(
        name="sipgear",
        framer=FramerConfig(
            mode="terminator",
            terminators=[b"\x00", b"\xff", b"\xce", b"\n"],
            ignore_bytes=b"\r",
            min_length=12,
            max_length=600,
        ),
        decoder=DecoderConfig(kind="gprmc", minimum_speed_kph=3.0),
    ),
    "gtx": ProtocolConfig(
        name="gtx",
        framer=FramerConfig(mode="terminator", terminators=[b"\n"], min_length=1, max_length=600),
        decoder=DecoderConfig(kind="account_gprmc", minimum_speed_kph=3.0, delimiter="/"),
    ),
    "rtprops": ProtocolConfig(
        name="rtprops",
        framer=FramerConfig(mode="terminator", terminators=[b"\n"], min_length=1, max_length=600),
        decoder=DecoderConfig(kind="rtprops", minimum_speed_kph=3.0, delimiter=" "),
    ),
    "gp6000": ProtocolConfig(
        name="gp6000",
        framer=FramerConfig(
            mode="length",
            length_offset=7,
            length_size=2,
            length_adjust=9,
            min_length=9,
            max_length=2048,
        ),
        decoder=DecoderConfig(kind="hex_table", minimum_speed_kph=3.0, hex_layout=GP6000_REPORT),
    ),
    "gp6000-cmd": ProtocolConfig(
        name="gp6000-cmd",
        framer=FramerConfig(mode="terminator", terminators=[b"\n"], min_length=1, max_length=1024),
        decoder=DecoderConfig(kind="hex_table", minimum_speed_kph=3.0, hex_layout=GP6000_COMMAND),
    ),
}


def get_preset(name: str) -> ProtocolConfig:
    """Return the preset registered under `name` (case-insensitive)."""
    try:
        return PRESETS[name.strip().lower()]
    except KeyError:
        raise ValueError(f"Unknown protocol preset '{name}' (available: {', '.join(sorted(PRESETS))})")
