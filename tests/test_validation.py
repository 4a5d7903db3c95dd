"""
Tests for coordinate and epoch validation.
"""

import math

import pytest

from eovtrans.core.errors import InputRangeError
from eovtrans.core.validation import (
    validate_epoch,
    validate_finite,
    validate_lat_lon,
    validate_latitude,
    validate_longitude,
)


class TestValidateFinite:
    """Tests for validate_finite."""

    def test_numbers_and_strings(self) -> None:
        """Numeric values and numeric strings are accepted."""
        assert validate_finite(1, "x") == 1.0
        assert validate_finite("2.5", "x") == 2.5

    @pytest.mark.parametrize("value", [math.nan, math.inf, -math.inf, "abc", None])
    def test_rejected(self, value) -> None:
        """NaN, infinities and non-numbers are rejected with the field name."""
        with pytest.raises(InputRangeError) as exc_info:
            validate_finite(value, "height")
        assert exc_info.value.details["field"] == "height"


class TestLatLon:
    """Tests for latitude and longitude ranges."""

    @pytest.mark.parametrize("lat", [-90.0, 0.0, 47.5, 90.0])
    def test_valid_latitude(self, lat: float) -> None:
        """Boundary latitudes are accepted."""
        assert validate_latitude(lat) == lat

    @pytest.mark.parametrize("lat", [-90.0001, 90.0001, 180.0])
    def test_invalid_latitude(self, lat: float) -> None:
        """Latitudes outside [-90, 90] are rejected."""
        with pytest.raises(InputRangeError):
            validate_latitude(lat)

    @pytest.mark.parametrize("lon", [-180.0, 180.0, 19.0])
    def test_valid_longitude(self, lon: float) -> None:
        """Boundary longitudes are accepted."""
        assert validate_longitude(lon) == lon

    @pytest.mark.parametrize("lon", [-180.5, 181.0, math.nan])
    def test_invalid_longitude(self, lon: float) -> None:
        """Longitudes outside [-180, 180] are rejected."""
        with pytest.raises(InputRangeError):
            validate_longitude(lon)

    def test_pair(self) -> None:
        """Pairs are validated in order."""
        assert validate_lat_lon("47.5", 19) == (47.5, 19.0)
        with pytest.raises(InputRangeError) as exc_info:
            validate_lat_lon(19.0, 200.0)
        assert exc_info.value.details["field"] == "longitude"


class TestValidateEpoch:
    """Tests for validate_epoch."""

    def test_valid(self) -> None:
        """Decimal years in the window are accepted."""
        assert validate_epoch(2026.5) == 2026.5

    @pytest.mark.parametrize("epoch", [1900.0, 2200.0, math.inf])
    def test_invalid(self, epoch: float) -> None:
        """Epochs outside the window are rejected."""
        with pytest.raises(InputRangeError):
            validate_epoch(epoch)
