# devcom/Services/protocols/framer.py

"""
Packet framing.

PacketFramer.frame(buffer) inspects the bytes buffered so far and reports
whether they hold one complete frame. It never mutates the buffer and keeps
no state, so the listener may call it again every time more bytes arrive.

Modes (FramerConfig.mode):
    terminator      frame ends at the first configured terminator sequence;
                    filler bytes (ignore_bytes) are dropped from the frame
    end_of_stream   the whole received unit (one datagram) is the frame
    length          total size = big-endian length field + length_adjust
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from devcom.Schemas.protocol_config import FramerConfig


class FrameStatus(str, Enum):
    NEED_MORE = "need_more"
    COMPLETE = "complete"
    END_OF_STREAM = "end_of_stream"
    MALFORMED = "malformed"


@dataclass(frozen=True)
class FrameResult:
    status: FrameStatus
    frame: bytes = b""
    consumed: int = 0
    need: int = 0
    reason: str = ""

    @property
    def terminate(self) -> bool:
        return self.status == FrameStatus.MALFORMED


class PacketFramer:

    def __init__(self, config: FramerConfig):
        self.config = config

    def frame(self, buffer: bytes, length_so_far: Optional[int] = None) -> FrameResult:
        """
        Classify `buffer[:length_so_far]`.

        Returns NEED_MORE (with the number of bytes still missing, or 1 when
        unknown), COMPLETE (with the frame and the number of buffer bytes it
        consumed), END_OF_STREAM (read until the peer stops; the frame is
        whatever was received) or MALFORMED (the session must terminate).
        """
        data = bytes(buffer[:length_so_far] if length_so_far is not None else buffer)
        mode = self.config.mode

        if mode == "end_of_stream":
            return self._end_of_stream(data)
        if mode == "length":
            return self._derived_length(data)
        return self._terminated(data)

    # ========================================
    # Modes
    # ========================================

    def _end_of_stream(self, data: bytes) -> FrameResult:
        if len(data) > self.config.max_length:
            return FrameResult(FrameStatus.MALFORMED, reason=f"datagram exceeds {self.config.max_length} bytes")
        return FrameResult(FrameStatus.END_OF_STREAM, frame=data, consumed=len(data))

    def _terminated(self, data: bytes) -> FrameResult:
        cfg = self.config

        end = -1
        term_len = 0
        for terminator in cfg.terminators:
            if not terminator:
                continue
            idx = data.find(terminator)
            if idx >= 0 and (end < 0 or idx < end):
                end, term_len = idx, len(terminator)

        if end < 0:
            if len(data) >= cfg.max_length:
                return FrameResult(FrameStatus.MALFORMED, reason=f"no terminator within {cfg.max_length} bytes")
            return FrameResult(FrameStatus.NEED_MORE, need=1)

        if end > cfg.max_length:
            return FrameResult(FrameStatus.MALFORMED, reason=f"frame of {end} bytes exceeds {cfg.max_length}")

        frame = data[:end]
        if cfg.ignore_bytes:
            frame = bytes(b for b in frame if b not in cfg.ignore_bytes)

        # Runts (stray terminators, keep-alive noise) are consumed and reported empty
        if len(frame) < cfg.min_length:
            return FrameResult(FrameStatus.COMPLETE, frame=b"", consumed=end + term_len, reason="short frame")

        return FrameResult(FrameStatus.COMPLETE, frame=frame, consumed=end + term_len)

    def _derived_length(self, data: bytes) -> FrameResult:
        cfg = self.config
        header_end = cfg.length_offset + cfg.length_size
        required = max(cfg.min_length, header_end)
        if len(data) < required:
            return FrameResult(FrameStatus.NEED_MORE, need=required - len(data))

        declared = int.from_bytes(data[cfg.length_offset:header_end], "big")
        total = declared + cfg.length_adjust

        if total < header_end or total > cfg.max_length:
            return FrameResult(FrameStatus.MALFORMED, reason=f"declared frame length {total} out of range")

        if len(data) < total:
            return FrameResult(FrameStatus.NEED_MORE, need=total - len(data))

        return FrameResult(FrameStatus.COMPLETE, frame=data[:total], consumed=total)
