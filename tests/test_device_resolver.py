import pytest

from devcom.Core.exceptions import AuthenticationError
from devcom.Models.device import MAX_ODOMETER_KM, Device
from devcom.Repositories.device import get_device_by_account_device
from devcom.Schemas.gps_event import GPSEvent
from devcom.Services.device_resolver import DeviceResolver

from conftest import FIXED_NOW


# =============================================================================
# Device model
# =============================================================================

class TestDeviceModel:

    def test_ip_allow_list(self):
        device = Device(IpAddressValid="10.0.0.0/24, 192.168.1.7")
        assert device.is_valid_ip_address("10.0.0.99")
        assert device.is_valid_ip_address("192.168.1.7")
        assert not device.is_valid_ip_address("192.168.1.8")
        assert not device.is_valid_ip_address("not-an-ip")

    def test_blank_allow_lists_accept_everything(self):
        device = Device()
        assert device.is_valid_ip_address("8.8.8.8")
        assert device.is_valid_port(1)

    def test_port_ranges(self):
        device = Device(AllowedPorts="5000-5010,6000")
        assert device.is_valid_port(5005)
        assert device.is_valid_port(6000)
        assert not device.is_valid_port(5011)

    def test_adjust_odometer_is_monotonic(self):
        device = Device(LastOdometerKM=100.0)
        assert device.adjust_odometer_km(150.0) == 150.0
        assert device.adjust_odometer_km(90.0) == 100.0
        assert device.adjust_odometer_km(MAX_ODOMETER_KM) == 100.0

    def test_estimate_next_odometer(self):
        device = Device(LastOdometerKM=10.0, LastValidLatitude=0.0, LastValidLongitude=1.0)
        # one degree of longitude on the equator
        assert device.estimate_next_odometer_km(0.0, 2.0) == pytest.approx(10.0 + 111.195, abs=0.01)

    def test_estimate_without_previous_location(self):
        device = Device(LastOdometerKM=10.0)
        assert device.estimate_next_odometer_km(48.0, 11.0) == 10.0


# =============================================================================
# Resolution
# =============================================================================

@pytest.fixture
def resolver(seeded):
    return DeviceResolver(seeded, unique_prefixes=["imei_", ""], device_code="devcom", clock=lambda: FIXED_NOW)


def test_resolve_by_unique_id(resolver):
    device = resolver.resolve_by_unique_id("123456789012345")
    assert (device.AccountID, device.DeviceID) == ("acme", "truck01")


def test_prefixes_are_tried_in_order(resolver):
    assert resolver.resolve_by_unique_id("555").DeviceID == "van02"


def test_unknown_identifier(resolver):
    assert resolver.resolve_by_unique_id("000") is None


def test_inactive_device_and_account(resolver):
    assert resolver.resolve_by_unique_id("999") is None
    assert resolver.resolve_by_unique_id("777") is None


def test_resolve_by_transport_id_then_device_id(resolver):
    assert resolver.resolve_by_account_device("acme", "unit7").DeviceID == "gtx01"
    assert resolver.resolve_by_account_device("acme", "truck01").DeviceID == "truck01"
    assert resolver.resolve_by_account_device("other", "truck01") is None


def test_lookups_are_cached(resolver):
    first = resolver.resolve_by_unique_id("123456789012345")
    assert resolver.resolve_by_unique_id("123456789012345") is first


def test_resolve_and_authorize_fills_identity(resolver):
    event = GPSEvent(mobile_id="555", fixtime=1)
    device = resolver.resolve_and_authorize(event, "10.0.0.5", 5001)

    assert (event.account_id, event.device_id) == ("acme", "van02")
    assert device.IpAddressCurrent == "10.0.0.5"
    assert device.RemotePortCurrent == 5001
    assert device.DeviceCode == "devcom"
    assert device.LastTotalConnectTime == FIXED_NOW


def test_unknown_device_raises(resolver):
    with pytest.raises(AuthenticationError) as exc:
        resolver.resolve_and_authorize(GPSEvent(mobile_id="000"), "10.0.0.5", 5001)
    assert exc.value.identifier == "000"


@pytest.mark.parametrize("ip, port", [("192.168.1.9", 5001), ("10.0.0.5", 4000)])
def test_disallowed_source_raises_and_stages_nothing(resolver, seeded, ip, port):
    with pytest.raises(AuthenticationError):
        resolver.resolve_and_authorize(GPSEvent(mobile_id="555"), ip, port)
    device = get_device_by_account_device(seeded, "acme", "van02")
    assert device.IpAddressCurrent is None
    assert device.LastTotalConnectTime is None
