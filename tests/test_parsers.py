"""
Tests for free-form coordinate parsing.
"""

import pytest

from eovtrans.core.config import settings
from eovtrans.core.errors import InputRangeError
from eovtrans.core.geodesy.cartesian import geodetic_to_cartesian
from eovtrans.core.geodesy.ellipsoid import WGS84
from eovtrans.core.parsers.coordinates import (
    FORMAT_CARTESIAN,
    FORMAT_DECIMAL,
    FORMAT_DMS,
    FORMAT_DMS_SYMBOLS,
    FORMAT_DMS_WORDS,
    parse_coordinate_input,
)

LAT_4730 = 47 + 30 / 60 + 4.18 / 3600
LON_1902 = 19 + 2 / 60 + 23.36 / 3600


class TestDmsInput:
    """Tests for DMS notations."""

    def test_symbols_with_hemisphere(self) -> None:
        """Symbols and hemisphere letters with a height."""
        parsed = parse_coordinate_input("47°30'4.18\" N 19°2'23.36\" E 130.5")
        assert parsed.detected_format == FORMAT_DMS
        assert parsed.lat == pytest.approx(LAT_4730)
        assert parsed.lon == pytest.approx(LON_1902)
        assert parsed.height == pytest.approx(130.5)

    def test_southern_western(self) -> None:
        """S and W letters negate the values."""
        parsed = parse_coordinate_input("33°52'4\" S 70°40'0\" W")
        assert parsed.lat < 0
        assert parsed.lon < 0
        assert parsed.height == 0.0

    def test_symbols_only(self) -> None:
        """Symbols without letters default to north and east."""
        parsed = parse_coordinate_input("46°38'56.33974\" 20°12'3.56457\" 130.560")
        assert parsed.detected_format == FORMAT_DMS_SYMBOLS
        assert parsed.lat == pytest.approx(46 + 38 / 60 + 56.33974 / 3600)
        assert parsed.lon == pytest.approx(20 + 12 / 60 + 3.56457 / 3600)
        assert parsed.height == pytest.approx(130.56)

    def test_space_separated(self) -> None:
        """Space-separated DMS with letters."""
        parsed = parse_coordinate_input("47 30 4.18 n 19 2 23.36 e 130.5")
        assert parsed.detected_format == FORMAT_DMS_WORDS
        assert parsed.lat == pytest.approx(LAT_4730)
        assert parsed.lon == pytest.approx(LON_1902)


class TestNumericInput:
    """Tests for decimal degrees and Cartesian input."""

    def test_decimal_degrees(self) -> None:
        """Three numbers are lat, lon and height."""
        parsed = parse_coordinate_input("47.5, 19.0, 120")
        assert parsed.detected_format == FORMAT_DECIMAL
        assert (parsed.lat, parsed.lon, parsed.height) == (47.5, 19.0, 120.0)
        assert parsed.epoch == settings.default_epoch
        assert parsed.cartesian is None

    def test_negative_decimal(self) -> None:
        """Signs are kept."""
        parsed = parse_coordinate_input("-33.9 -70.6 10")
        assert (parsed.lat, parsed.lon) == (-33.9, -70.6)

    def test_default_epoch_override(self) -> None:
        """The caller's default epoch is reported."""
        assert parse_coordinate_input("47.5 19 0", default_epoch=2020.0).epoch == 2020.0

    def test_cartesian_with_epoch(self) -> None:
        """Large values are read as X Y Z with an optional epoch."""
        x, y, z = geodetic_to_cartesian(47.5, 19.0, 150.0, WGS84)
        parsed = parse_coordinate_input(f"{x:.4f} {y:.4f} {z:.4f} 2026.5")
        assert parsed.detected_format == FORMAT_CARTESIAN
        assert parsed.epoch == 2026.5
        assert parsed.lat == pytest.approx(47.5, abs=1e-8)
        assert parsed.lon == pytest.approx(19.0, abs=1e-8)
        assert parsed.height == pytest.approx(150.0, abs=1e-3)
        assert parsed.cartesian == pytest.approx((x, y, z), abs=1e-3)

    def test_cartesian_without_epoch(self) -> None:
        """Without an epoch the default is used."""
        parsed = parse_coordinate_input("4097000 1428000 4681000")
        assert parsed.epoch == settings.default_epoch

    def test_to_dict(self) -> None:
        """Dictionary form names the notation."""
        data = parse_coordinate_input("47.5 19 0").to_dict()
        assert data["detected_format"] == FORMAT_DECIMAL
        assert data["cartesian"] is None


class TestInvalidInput:
    """Tests for rejected input."""

    @pytest.mark.parametrize("text", ["", "   ", "hello", "47.5 19.0"])
    def test_unrecognised(self, text: str) -> None:
        """Text without a coordinate raises InputRangeError."""
        with pytest.raises(InputRangeError):
            parse_coordinate_input(text)

    @pytest.mark.parametrize("text", ["95 19 100", "47 200 0", "95°0'0\" N 19°0'0\" E"])
    def test_out_of_range(self, text: str) -> None:
        """Latitudes or longitudes out of range are rejected."""
        with pytest.raises(InputRangeError):
            parse_coordinate_input(text)
