import pytest

from devcom.Core.exceptions import ProtocolError
from devcom.Schemas.protocol_config import GP6000_REPORT, HexField, get_preset
from devcom.Services.protocols import create_decoder
from devcom.Services.protocols.hex_table import read_fields, split_status

from conftest import E2E_FIXTIME, FIXED_NOW


# =============================================================================
# Frame builders
# =============================================================================

def report_record(
    date="230394",
    time="123519",
    latitude="22324690",
    longitude="114036847",
    locating="6",
    speed="0A",
    heading="54",
    fuel_high="01",
    status="11223344",
    mileage="0000012C",
    tail="00",
) -> str:
    """One 27 byte sub-record as hex text."""
    return date + time + latitude + longitude + locating + speed + heading + fuel_high + status + mileage + tail


def report_frame(records, data_type=3, declared=None, imei="0123456789") -> bytes:
    payload = "".join(records)
    length = len(payload) // 2 if declared is None else declared
    return bytes.fromhex("24" + imei + "1" + f"{data_type:X}" + f"{length:04X}" + payload)


def ascii_hex(text: str) -> str:
    return text.encode("ascii").hex().upper()


def command_frame(datetime="230394123519", latitude="2232.4690", lat_hemi="N", samples="0A0B0C") -> bytes:
    fields = [
        ascii_hex("8612345678"),
        ascii_hex("1"),
        ascii_hex("ABC"),
        ascii_hex("7"),
        ascii_hex("0"),
        ascii_hex("0"),
        ascii_hex(str(len(samples) // 2)),
        samples,
        ascii_hex("0"),
        ascii_hex(datetime),
        ascii_hex("E"),
        ascii_hex("11403.6847"),
        ascii_hex(lat_hemi),
        ascii_hex(latitude),
    ]
    return ("40" + "2C".join(fields) + "23").encode("ascii")


@pytest.fixture
def report_decoder():
    return create_decoder(get_preset("gp6000").decoder, clock=lambda: FIXED_NOW)


@pytest.fixture
def command_decoder():
    return create_decoder(get_preset("gp6000-cmd").decoder, clock=lambda: FIXED_NOW)


# =============================================================================
# Report layout
# =============================================================================

class TestReport:

    def test_batch_yields_one_event_per_record(self, report_decoder):
        frame = report_frame([report_record(), report_record(time="123619")])
        events = report_decoder.decode(frame).events

        assert [e.fixtime for e in events] == [E2E_FIXTIME, E2E_FIXTIME + 60]
        assert all(e.mobile_id == "0123456789" for e in events)

    def test_record_values(self, report_decoder):
        event = report_decoder.decode(report_frame([report_record()])).events[0]

        assert event.latitude == pytest.approx(22.54115, abs=1e-6)
        assert event.longitude == pytest.approx(114.061412, abs=1e-6)
        assert event.speed_kph == pytest.approx(18.52)
        assert event.heading == 84.0
        assert event.status_flags == [0x44, 0x33, 0x22, 0x11]
        assert event.odometer_km == 300.0
        assert event.fuel_level == 256.0
        assert not event.has("sequence_number")

    def test_locating_bits_select_hemispheres(self, report_decoder):
        event = report_decoder.decode(report_frame([report_record(locating="0")])).events[0]
        assert event.latitude < 0
        assert event.longitude < 0

    def test_short_batch_keeps_complete_records(self, report_decoder):
        records = [report_record(), report_record(time="123619")]
        frame = report_frame(records, declared=27 * 3)
        events = report_decoder.decode(frame).events
        assert len(events) == 2

    def test_short_batch_drops_partial_record(self, report_decoder):
        records = [report_record(), report_record(time="123619")[:20]]
        frame = report_frame(records, declared=27 * 2)
        assert len(report_decoder.decode(frame).events) == 1

    def test_single_record_type_with_optional_fields(self, report_decoder):
        record = report_record(tail="") + "05" + "07" + "00"
        event = report_decoder.decode(report_frame([record], data_type=1)).events[0]
        assert event.fuel_level == 261.0
        assert event.sequence_number == 7

    def test_bcd_invalid_coordinates_become_zero(self, report_decoder):
        event = report_decoder.decode(report_frame([report_record(latitude="99999999")])).events[0]
        assert (event.latitude, event.longitude) == (0.0, 0.0)

    def test_truncated_header(self, report_decoder):
        with pytest.raises(ProtocolError):
            report_decoder.decode(bytes.fromhex("2401234567"))


# =============================================================================
# Command layout
# =============================================================================

class TestCommand:

    def test_command_fix(self, command_decoder):
        event = command_decoder.decode(command_frame()).events[0]

        assert event.mobile_id == "8612345678"
        assert event.fixtime == E2E_FIXTIME
        assert event.latitude == pytest.approx(22.54115, abs=1e-6)
        assert event.longitude == pytest.approx(114.061412, abs=1e-6)
        assert event.sensor_samples == [10, 11, 12]
        assert event.sequence_number == 7
        assert not event.has("speed_kph")

    def test_southern_hemisphere(self, command_decoder):
        event = command_decoder.decode(command_frame(lat_hemi="S")).events[0]
        assert event.latitude == pytest.approx(-22.54115, abs=1e-6)

    def test_variable_sample_count(self, command_decoder):
        event = command_decoder.decode(command_frame(samples="01")).events[0]
        assert event.sensor_samples == [1]

    def test_truncated_command(self, command_decoder):
        frame = command_frame()
        with pytest.raises(ProtocolError):
            command_decoder.decode(frame[:60] + b"23")

    @pytest.mark.parametrize("frame", [b"40ABC", b"40ZZ23", b""])
    def test_not_hex(self, command_decoder, frame):
        with pytest.raises(ProtocolError):
            command_decoder.decode(frame)


# =============================================================================
# Helpers
# =============================================================================

def test_split_status_is_lsb_first():
    assert split_status("000000FF") == [0xFF, 0, 0, 0]


def test_read_fields_derived_width():
    table = [
        HexField(name="count", width=2, encoding="int"),
        HexField(name="items", width_from="count", width_scale=2, sample_width=2),
        HexField(name="tail", width=2),
    ]
    values, end = read_fields("03AABBCCDD", table)
    assert values["count"] == 3
    assert values["items"] == [0xAA, 0xBB, 0xCC]
    assert values["tail"] == "DD"
    assert end == 10


def test_record_fields_read_left_to_right():
    values, end = read_fields(report_record(), GP6000_REPORT.record)
    assert values["date"] == "230394"
    assert values["mileage"] == 300
    assert "fuel_low" not in values
    assert end == 52
