import pytest

from devcom.Schemas.protocol_config import FramerConfig, get_preset
from devcom.Services.protocols import FrameStatus, PacketFramer


# =============================================================================
# Terminator mode
# =============================================================================

@pytest.fixture
def sipgear_framer():
    return PacketFramer(get_preset("sipgear").framer)


def test_need_more_without_terminator(sipgear_framer):
    result = sipgear_framer.frame(b"imei:123456789012345,GPRMC")
    assert result.status == FrameStatus.NEED_MORE
    assert not result.terminate


def test_complete_frame_strips_terminator_and_filler(sipgear_framer):
    data = b"imei:123456789012345,GPRMC\r\nimei:next"
    result = sipgear_framer.frame(data)
    assert result.status == FrameStatus.COMPLETE
    assert result.frame == b"imei:123456789012345,GPRMC"
    assert result.consumed == len(b"imei:123456789012345,GPRMC\r\n")


@pytest.mark.parametrize("terminator", [b"\x00", b"\xff", b"\xce", b"\n"])
def test_every_configured_terminator_ends_a_frame(sipgear_framer, terminator):
    result = sipgear_framer.frame(b"imei:1234567890" + terminator + b"rest")
    assert result.status == FrameStatus.COMPLETE
    assert result.frame == b"imei:1234567890"


def test_earliest_terminator_wins(sipgear_framer):
    result = sipgear_framer.frame(b"imei:1234567890\x00tail-of-frame\n")
    assert result.frame == b"imei:1234567890"


def test_runt_frame_is_consumed_empty(sipgear_framer):
    result = sipgear_framer.frame(b"\r\nimei:1234567890\n")
    assert result.status == FrameStatus.COMPLETE
    assert result.frame == b""
    assert result.consumed == 2


def test_oversized_buffer_is_malformed(sipgear_framer):
    result = sipgear_framer.frame(b"A" * 600)
    assert result.status == FrameStatus.MALFORMED
    assert result.terminate


def test_oversized_frame_before_terminator_is_malformed(sipgear_framer):
    result = sipgear_framer.frame(b"A" * 700 + b"\n")
    assert result.status == FrameStatus.MALFORMED


def test_length_so_far_limits_inspection(sipgear_framer):
    result = sipgear_framer.frame(b"imei:1234567890\n", length_so_far=10)
    assert result.status == FrameStatus.NEED_MORE


def test_framer_does_not_mutate_buffer(sipgear_framer):
    buffer = bytearray(b"imei:1234567890\nnext")
    sipgear_framer.frame(buffer)
    assert buffer == bytearray(b"imei:1234567890\nnext")


# =============================================================================
# End-of-stream mode
# =============================================================================

def test_end_of_stream_returns_whole_unit():
    framer = PacketFramer(FramerConfig(mode="end_of_stream", max_length=32))
    result = framer.frame(b"mid=1 ts=2")
    assert result.status == FrameStatus.END_OF_STREAM
    assert result.frame == b"mid=1 ts=2"


def test_end_of_stream_over_max_is_malformed():
    framer = PacketFramer(FramerConfig(mode="end_of_stream", max_length=4))
    assert framer.frame(b"12345").status == FrameStatus.MALFORMED


# =============================================================================
# Derived length mode
# =============================================================================

@pytest.fixture
def gp6000_framer():
    return PacketFramer(get_preset("gp6000").framer)


def _header(length: int) -> bytes:
    return bytes.fromhex("24012345678913") + length.to_bytes(2, "big")


def test_header_incomplete_reports_missing_bytes(gp6000_framer):
    result = gp6000_framer.frame(_header(54)[:5])
    assert result.status == FrameStatus.NEED_MORE
    assert result.need == 4


def test_payload_incomplete_reports_missing_bytes(gp6000_framer):
    data = _header(54) + b"\x00" * 20
    result = gp6000_framer.frame(data)
    assert result.status == FrameStatus.NEED_MORE
    assert result.need == 63 - len(data)


def test_complete_length_frame(gp6000_framer):
    frame = _header(54) + b"\x11" * 54
    result = gp6000_framer.frame(frame + b"\x24\x01")
    assert result.status == FrameStatus.COMPLETE
    assert result.frame == frame
    assert result.consumed == 63


def test_declared_length_over_max_is_malformed(gp6000_framer):
    result = gp6000_framer.frame(_header(0xFFFF))
    assert result.status == FrameStatus.MALFORMED
