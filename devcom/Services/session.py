# devcom/Services/session.py
"""
Client Session
==============
Per-connection pipeline: Framer -> Decoder -> Resolver -> Sink.

One ClientSession per TCP connection or UDP flow. It owns its own database
session, resolver cache and receive buffer, and shares nothing mutable with
other sessions. The listener (out of scope here) drives it through:

    session_started(remote_ip, remote_port, is_tcp, is_text)
    get_actual_packet_length(buffer, length_so_far) -> FrameResult
    get_handle_packet(frame) -> reply bytes | None
    terminate_session() -> bool
    session_terminated(error, read_count, write_count)

or through the convenience drivers feed() (stream bytes) and
handle_datagram() (one datagram).

Failure handling per frame:
- FramingError: session is flagged for termination, buffer discarded
- ProtocolError: frame dropped, session continues
- AuthenticationError: frame dropped, nothing committed; terminates only
  when terminate_on_auth_failure is configured
- StorageError: fix lost, logged, no retry
No reply is sent unless every event of the frame was committed.
"""

import time
from typing import Callable, List, Optional

from sqlalchemy.orm import Session, sessionmaker

from devcom.Core import log_ws
from devcom.Core.exceptions import AuthenticationError, FramingError, ProtocolError, StorageError
from devcom.DB.session import SessionLocal
from devcom.Schemas.protocol_config import ProtocolConfig
from devcom.Services.device_resolver import DeviceResolver
from devcom.Services.event_handlers import EventSink, apply_odometer_policy, simulate_input_events
from devcom.Services.protocols import FrameResult, FrameStatus, PacketFramer, create_decoder


class ClientSession:

    def __init__(
        self,
        protocol_config: ProtocolConfig,
        session_factory: Callable[[], Session] = SessionLocal,
        clock: Callable[[], float] = time.time,
    ):
        self.config = protocol_config
        self.session_factory = session_factory
        self.clock = clock

        self.framer = PacketFramer(protocol_config.framer)
        self.decoder = create_decoder(protocol_config.decoder, clock=clock)

        self.db: Optional[Session] = None
        self.resolver: Optional[DeviceResolver] = None
        self.sink: Optional[EventSink] = None

        self.remote_ip: Optional[str] = None
        self.remote_port: Optional[int] = None
        self.is_tcp = True
        self.is_text = False
        self.start_time: Optional[int] = None

        self.fix_count = 0
        self.frame_count = 0
        self.error_count = 0
        self._terminate = False
        self._buffer = bytearray()

    @property
    def peer(self) -> str:
        return f"{self.remote_ip}:{self.remote_port}"

    # ==========================================================
    # LISTENER INTERFACE
    # ==========================================================

    def session_started(
        self,
        remote_ip: Optional[str],
        remote_port: Optional[int] = None,
        is_tcp: bool = True,
        is_text: bool = False,
    ) -> None:
        self.remote_ip = remote_ip
        self.remote_port = remote_port
        self.is_tcp = is_tcp
        self.is_text = is_text
        self.start_time = int(self.clock())

        self.db = self.session_factory()
        self.resolver = DeviceResolver(
            self.db,
            unique_prefixes=self.config.unique_prefixes,
            device_code=self.config.device_code,
            clock=self.clock,
        )
        self.sink = EventSink(self.db)

        print(f"[SESSION] {'TCP' if is_tcp else 'UDP'} session started from {self.peer} ({self.config.name})")

    def get_actual_packet_length(self, buffer: bytes, length_so_far: Optional[int] = None) -> FrameResult:
        result = self.framer.frame(buffer, length_so_far)
        if result.status == FrameStatus.MALFORMED:
            self._flag_framing_error(result.reason)
        return result

    def get_handle_packet(self, frame: bytes) -> Optional[bytes]:
        if self.db is None:
            raise RuntimeError("session_started() must be called before handling packets")

        if not frame:
            print(f"[SESSION] {self.peer}: empty packet ignored")
            return None

        self.frame_count += 1

        # ========================================
        # PASO 1: DECODE FRAME
        # ========================================
        try:
            result = self.decoder.decode(frame)
        except ProtocolError as e:
            self.error_count += 1
            log_ws.log_from_thread(
                f"[SESSION] {self.peer}: frame dropped: {e}",
                "warning",
                protocol=self.config.name,
                frame=frame[:64].hex(),
            )
            return None

        if not result.events:
            print(f"[SESSION] {self.peer}: frame carried no fixes")
            return None

        committed = 0
        failed = 0
        device = None

        for event in result.events:
            log_ws.log_from_thread("[DECODER] fix decoded", "log", **event.log_fields())

            # ========================================
            # PASO 2: RESOLVE + AUTHORIZE DEVICE
            # ========================================
            try:
                device = self.resolver.resolve_and_authorize(event, self.remote_ip, self.remote_port)
            except AuthenticationError as e:
                self.error_count += 1
                print(f"[SESSION] {self.peer}: {e} - frame dropped")
                if self.config.terminate_on_auth_failure:
                    self._terminate = True
                # Every fix of a frame comes from the same unit
                return None

            # ========================================
            # PASO 3: ODOMETER + SIMULATED INPUTS
            # ========================================
            apply_odometer_policy(device, event, self.config.decoder)
            extra_events = simulate_input_events(device, event, self.config.decoder.simulate_digital_inputs)

            # ========================================
            # PASO 4: COMMIT
            # ========================================
            for pending in extra_events + [event]:
                try:
                    self.sink.insert_event(device, pending)
                    committed += 1
                    self.fix_count += 1
                except StorageError as e:
                    failed += 1
                    self.error_count += 1
                    print(f"[SESSION] {self.peer}: fix not stored: {e}")

        # ========================================
        # PASO 5: FLUSH DEVICE METADATA
        # ========================================
        if device is not None:
            try:
                self.sink.commit_device_changes(device)
            except StorageError as e:
                print(f"[SESSION] {self.peer}: {e}")

        if failed == 0 and committed > 0:
            return result.ack
        return None

    def terminate_session(self) -> bool:
        return self._terminate

    def session_terminated(
        self,
        error: Optional[BaseException] = None,
        read_count: int = 0,
        write_count: int = 0,
    ) -> None:
        if self._buffer:
            print(f"[SESSION] {self.peer}: discarding {len(self._buffer)} unframed bytes")
        self._buffer.clear()

        if self.db is not None:
            # Nothing uncommitted may survive the session
            self.db.rollback()
            self.db.close()
            self.db = None

        msg_type = "error" if error else "log"
        log_ws.log_from_thread(
            f"[SESSION] session closed from {self.peer}",
            msg_type,
            protocol=self.config.name,
            fixes=self.fix_count,
            frames=self.frame_count,
            errors=self.error_count,
            read_bytes=read_count,
            written_bytes=write_count,
            error=str(error) if error else None,
        )

    # ==========================================================
    # DRIVERS
    # ==========================================================

    def feed(self, data: bytes) -> List[bytes]:
        """
        Append stream bytes and process every complete frame.

        Returns the replies to send, in order. After a framing error the
        buffer is discarded and terminate_session() is True.
        """
        replies: List[bytes] = []
        if self._terminate:
            return replies

        self._buffer.extend(data)

        while self._buffer and not self._terminate:
            result = self.get_actual_packet_length(bytes(self._buffer))

            if result.status == FrameStatus.NEED_MORE:
                break
            if result.status == FrameStatus.MALFORMED:
                self._buffer.clear()
                break
            if result.status == FrameStatus.END_OF_STREAM:
                # the whole stream is one frame, wait for finish_stream()
                break

            del self._buffer[:result.consumed]
            if result.frame:
                reply = self.get_handle_packet(result.frame)
                if reply:
                    replies.append(reply)

        return replies

    def finish_stream(self) -> Optional[bytes]:
        """Peer closed an end-of-stream connection: handle what was received."""
        if not self._buffer or self._terminate:
            return None
        result = self.get_actual_packet_length(bytes(self._buffer))
        self._buffer.clear()
        if result.status in (FrameStatus.END_OF_STREAM, FrameStatus.COMPLETE) and result.frame:
            return self.get_handle_packet(result.frame)
        return None

    def handle_datagram(self, data: bytes) -> Optional[bytes]:
        """
        Process every frame carried by one UDP datagram.

        Datagrams are never continued, so an unterminated remainder is
        handled as the last frame. Returns the concatenated replies, or
        None when there is nothing to send.
        """
        replies: List[bytes] = []
        remaining = bytes(data)

        while remaining and not self._terminate:
            result = self.get_actual_packet_length(remaining)

            if result.status == FrameStatus.MALFORMED:
                break
            if result.status == FrameStatus.COMPLETE:
                frame = result.frame
                remaining = remaining[result.consumed:]
            else:
                frame = self._datagram_remainder(remaining)
                remaining = b""

            if frame:
                reply = self.get_handle_packet(frame)
                if reply:
                    replies.append(reply)

        return b"".join(replies) or None

    # ==========================================================
    # HELPERS
    # ==========================================================

    def _datagram_remainder(self, data: bytes) -> bytes:
        """Unterminated tail of a datagram, filtered like a terminated frame."""
        cfg = self.config.framer
        if cfg.mode != "terminator":
            return data
        if cfg.ignore_bytes:
            data = bytes(b for b in data if b not in cfg.ignore_bytes)
        return data if len(data) >= cfg.min_length else b""

    def _flag_framing_error(self, reason: str) -> None:
        self._terminate = True
        self.error_count += 1
        error = FramingError(reason)
        log_ws.log_from_thread(
            f"[SESSION] {self.peer}: framing error, terminating: {error}",
            "error",
            protocol=self.config.name,
        )


def open_session(
    protocol_config: ProtocolConfig,
    remote_ip: Optional[str],
    remote_port: Optional[int] = None,
    is_tcp: bool = True,
    session_factory: sessionmaker = SessionLocal,
    clock: Callable[[], float] = time.time,
) -> ClientSession:
    """Create and start a ClientSession in one call."""
    session = ClientSession(protocol_config, session_factory=session_factory, clock=clock)
    session.session_started(remote_ip, remote_port, is_tcp=is_tcp, is_text=protocol_config.decoder.kind != "hex_table")
    return session
