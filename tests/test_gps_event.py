import pytest
from pydantic import ValidationError

from devcom.Core.exceptions import EventSealedError
from devcom.Core.status_codes import STATUS_LOCATION, input_status_code, status_name
from devcom.Schemas.gps_event import GPSEvent


def test_unset_fields_are_distinguishable_from_zero():
    event = GPSEvent(mobile_id="42", fixtime=1, odometer_km=0.0)
    assert event.has("odometer_km")
    assert not event.has("altitude")
    assert event.altitude is None


def test_assignment_marks_field_as_set():
    event = GPSEvent(mobile_id="42", fixtime=1)
    event.speed_kph = 12.5
    assert event.has("speed_kph")
    assert event.fields() == {"speed_kph": 12.5}


def test_has_rejects_unknown_names():
    with pytest.raises(AttributeError):
        GPSEvent().has("velocity")


def test_status_code_range():
    with pytest.raises(ValidationError):
        GPSEvent(status_code=0x10000)


def test_sealed_event_is_read_only():
    event = GPSEvent(mobile_id="42", fixtime=1).seal()
    assert event.sealed
    with pytest.raises(EventSealedError):
        event.latitude = 10.0


def test_copy_for_status_keeps_fix_and_is_unsealed():
    event = GPSEvent(
        account_id="acme",
        device_id="truck01",
        fixtime=100,
        latitude=1.5,
        longitude=2.5,
        input_mask=3,
    ).seal()
    copy = event.copy_for_status(input_status_code(0, True))

    assert not copy.sealed
    assert copy.status_code == 0xF420
    assert (copy.account_id, copy.fixtime, copy.latitude, copy.input_mask) == ("acme", 100, 1.5, 3)
    assert not copy.has("altitude")
    assert event.status_code == STATUS_LOCATION


def test_valid_geopoint_requires_both_coordinates():
    assert not GPSEvent(latitude=10.0).is_valid_geopoint()
    assert not GPSEvent(latitude=0.0, longitude=0.0).is_valid_geopoint()
    assert GPSEvent(latitude=10.0, longitude=20.0).is_valid_geopoint()


def test_non_finite_geopoint_is_invalid():
    from devcom.Core.geo import is_valid_geopoint

    assert not is_valid_geopoint(float("nan"), 1.0)
    assert not is_valid_geopoint(1.0, float("inf"))
    assert is_valid_geopoint(1.0, 1.0)


def test_status_names():
    assert status_name(STATUS_LOCATION) == "Location"
    assert status_name(0xF421) == "InputOn_01"
    assert status_name(0xF44F) == "InputOff_15"
    assert status_name(0x1234) == "0x1234"
