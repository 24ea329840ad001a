import pytest

from devcom.Services.protocols.coordinates import (
    INVALID_LATITUDE,
    INVALID_LONGITUDE,
    decode_latitude,
    decode_longitude,
)


def test_latitude_north():
    assert decode_latitude("4807.038", "N") == pytest.approx(48.1173, abs=1e-4)


def test_longitude_east():
    assert decode_longitude("01131.000", "E") == pytest.approx(11.516667, abs=1e-6)


@pytest.mark.parametrize("raw", ["4807.038", "0000.500", "8959.999", "1234.5678", "0"])
def test_south_is_negated_north(raw):
    north = decode_latitude(raw, "N")
    assert decode_latitude(raw, "S") == -north
    assert -90.0 <= north <= 90.0


@pytest.mark.parametrize("raw", ["11403.6847", "00000.0001", "17959.9999"])
def test_west_is_negated_east(raw):
    assert decode_longitude(raw, "W") == -decode_longitude(raw, "E")


@pytest.mark.parametrize("raw", ["99999", "99999.5", "123456", "", "abc", None, "nan", "-inf", float("nan")])
def test_invalid_raw_yields_marker(raw):
    assert decode_latitude(raw, "S") == INVALID_LATITUDE
    assert decode_longitude(raw, "W") == INVALID_LONGITUDE


def test_hemisphere_is_case_insensitive():
    assert decode_latitude("4807.038", "s") < 0


def test_prescaled_integer():
    # BCD coordinates carry four implied decimals
    assert decode_latitude("22324690", "N", scale=10000.0) == pytest.approx(22.54115, abs=1e-6)
    assert decode_longitude("114036847", "W", scale=10000.0) == pytest.approx(-114.061412, abs=1e-6)


def test_prescaled_sentinel():
    assert decode_latitude("999990000", "N", scale=10000.0) == INVALID_LATITUDE
    assert decode_longitude("garbage", "E", scale=10000.0) == INVALID_LONGITUDE


@pytest.mark.parametrize("raw, expected", [("1.5", 1.5), ("nan", -1.0), ("inf", -1.0), (float("-inf"), -1.0), (10 ** 400, -1.0)])
def test_parse_float_rejects_non_finite(raw, expected):
    from devcom.Services.protocols.normalizers import parse_float

    assert parse_float(raw, default=-1.0) == expected
