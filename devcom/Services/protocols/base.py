# devcom/Services/protocols/base.py

"""
Protocol decoder interface and registry.

A decoder turns one complete frame into zero or more GPSEvents. Decoders are
selected by the `kind` tag of DecoderConfig and receive their thresholds
through that config object; nothing is read from module level state.

Structurally invalid frames raise ProtocolError. The session drops such a
frame and keeps going.
"""

import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Type

from devcom.Core.exceptions import ProtocolError
from devcom.Core.geo import is_valid_geopoint
from devcom.Schemas.gps_event import GPSEvent
from devcom.Schemas.protocol_config import DecoderConfig

Clock = Callable[[], float]


@dataclass
class DecodeResult:
    events: List[GPSEvent] = field(default_factory=list)
    ack: Optional[bytes] = None
    """Reply sent to the device only if every event of the frame was committed."""


class ProtocolDecoder(ABC):

    kind: str = ""

    def __init__(self, config: DecoderConfig, clock: Clock = time.time):
        self.config = config
        self.clock = clock

    def now(self) -> int:
        return int(self.clock())

    @abstractmethod
    def decode(self, frame: bytes) -> DecodeResult:
        raise NotImplementedError

    # ========================================
    # Shared helpers
    # ========================================

    def frame_text(self, frame: bytes) -> str:
        """Frame as text, after the configured leading byte skip."""
        skip = self.config.skip_leading_bytes
        if skip and len(frame) <= skip:
            raise ProtocolError(f"frame of {len(frame)} bytes shorter than the {skip} byte header")
        return frame[skip:].decode("ascii", errors="replace").strip()

    def finish_fix(self, event: GPSEvent) -> GPSEvent:
        """
        Post-processing applied to every decoded fix:
            - fixtime <= 0 becomes the current time
            - an invalid/out-of-range position becomes 0/0
            - speed below minimum_speed_kph becomes 0.0 with heading 0.0
            - a negative heading becomes 0.0
        """
        if event.fixtime <= 0:
            event.fixtime = self.now()

        if event.has("latitude") or event.has("longitude"):
            if not is_valid_geopoint(event.latitude, event.longitude):
                event.latitude = 0.0
                event.longitude = 0.0

        if event.has("speed_kph") and event.speed_kph < self.config.minimum_speed_kph:
            event.speed_kph = 0.0
            event.heading = 0.0
        elif event.has("heading") and event.heading < 0.0:
            event.heading = 0.0

        return event


# ==========================================================
# REGISTRY
# ==========================================================

_DECODERS: Dict[str, Type[ProtocolDecoder]] = {}


def register_decoder(kind: str):
    def wrapper(cls: Type[ProtocolDecoder]) -> Type[ProtocolDecoder]:
        cls.kind = kind
        _DECODERS[kind] = cls
        return cls
    return wrapper


def create_decoder(config: DecoderConfig, clock: Clock = time.time) -> ProtocolDecoder:
    """
    Instantiate the decoder registered for `config.kind`.

    Args:
        config: Decoder section of a ProtocolConfig
        clock: Time source used for missing or partial timestamps

    Returns:
        ProtocolDecoder instance

    Raises:
        ValueError: no decoder is registered for the kind

    Example:
        decoder = create_decoder(get_preset("rtprops").decoder)
    """
    try:
        decoder_cls = _DECODERS[config.kind]
    except KeyError:
        raise ValueError(f"No decoder registered for kind '{config.kind}'")
    return decoder_cls(config, clock=clock)


def registered_kinds() -> List[str]:
    return sorted(_DECODERS)
