"""
Tests for ellipsoids and geodetic/Cartesian conversion.
"""

import math

import pytest

from eovtrans.core.errors import ConfigurationError
from eovtrans.core.geodesy.cartesian import (
    cartesian_distance,
    cartesian_to_geodetic,
    geodetic_to_cartesian,
)
from eovtrans.core.geodesy.ellipsoid import (
    GRS67,
    GRS80,
    WGS84,
    derive_ellipsoid,
    get_ellipsoid,
    meridian_radius,
    prime_vertical_radius,
)


class TestEllipsoid:
    """Tests for ellipsoid constants."""

    @pytest.mark.parametrize("ellipsoid", [GRS80, WGS84, GRS67])
    def test_derived_constants(self, ellipsoid) -> None:
        """Derived constants agree with a and f."""
        f = ellipsoid.f
        assert ellipsoid.b == pytest.approx(ellipsoid.a * (1 - f), rel=1e-15)
        assert ellipsoid.e2 == pytest.approx(2 * f - f * f, rel=1e-15)
        assert ellipsoid.e2 == pytest.approx(1 - (ellipsoid.b / ellipsoid.a) ** 2, rel=1e-12)
        assert ellipsoid.ep2 == pytest.approx(ellipsoid.e2 / (1 - ellipsoid.e2), rel=1e-12)
        assert ellipsoid.n == pytest.approx(
            (ellipsoid.a - ellipsoid.b) / (ellipsoid.a + ellipsoid.b), rel=1e-12
        )

    def test_grs80_values(self) -> None:
        """GRS80 semi-minor axis matches its published value."""
        assert GRS80.b == pytest.approx(6356752.314140, abs=1e-6)

    def test_grs67_values(self) -> None:
        """GRS67 uses a = 6378160 m."""
        assert GRS67.a == 6378160.0
        assert 1 / GRS67.f == pytest.approx(298.247167427)

    @pytest.mark.parametrize(
        "a, f",
        [(0.0, 0.003), (-1.0, 0.003), (6378137.0, 0.0), (6378137.0, 1.0), (math.nan, 0.003)],
    )
    def test_invalid_parameters(self, a: float, f: float) -> None:
        """Invalid axis or flattening raises ConfigurationError."""
        with pytest.raises(ConfigurationError):
            derive_ellipsoid(a, f, "bad")

    def test_get_ellipsoid(self) -> None:
        """Named lookup is case-insensitive."""
        assert get_ellipsoid("grs80") is GRS80
        with pytest.raises(ConfigurationError):
            get_ellipsoid("Bessel")

    def test_radii_of_curvature(self) -> None:
        """N equals M at the poles and exceeds it elsewhere."""
        pole = math.radians(90.0)
        assert prime_vertical_radius(pole, GRS80) == pytest.approx(meridian_radius(pole, GRS80))
        assert prime_vertical_radius(0.0, GRS80) == pytest.approx(GRS80.a)
        assert prime_vertical_radius(0.8, GRS80) > meridian_radius(0.8, GRS80)

    def test_to_dict(self) -> None:
        """Dictionary form includes inverse flattening."""
        data = GRS80.to_dict()
        assert data["name"] == "GRS80"
        assert data["inverse_flattening"] == pytest.approx(298.257222101)


class TestCartesian:
    """Tests for geodetic/Cartesian conversion."""

    @pytest.mark.parametrize(
        "lat, lon, h",
        [
            (47.5, 19.0, 150.0),
            (0.0, 0.0, 0.0),
            (-33.86, 151.21, 50.0),
            (85.0, -120.0, 1000.0),
            (-60.0, -179.5, -30.0),
            (45.0, 90.0, 8848.0),
            (89.0, 180.0, -500.0),
            (-89.0, -180.0, 9000.0),
            (89.0, -180.0, 9000.0),
            (-89.0, 180.0, -500.0),
        ],
    )
    def test_round_trip(self, lat: float, lon: float, h: float) -> None:
        """Geodetic to Cartesian and back recovers the input."""
        x, y, z = geodetic_to_cartesian(lat, lon, h, GRS80)
        lat2, lon2, h2 = cartesian_to_geodetic(x, y, z, GRS80)

        assert lat2 == pytest.approx(lat, abs=1e-9)
        assert lon2 == pytest.approx(lon, abs=1e-9)
        assert h2 == pytest.approx(h, abs=1e-6)

    def test_equator_prime_meridian(self) -> None:
        """The origin of latitude and longitude lies on the X axis."""
        x, y, z = geodetic_to_cartesian(0.0, 0.0, 0.0, WGS84)
        assert x == pytest.approx(WGS84.a)
        assert y == pytest.approx(0.0, abs=1e-9)
        assert z == pytest.approx(0.0, abs=1e-9)

    def test_pole(self) -> None:
        """Points on the polar axis get latitude 90 and a finite height."""
        lat, lon, h = cartesian_to_geodetic(0.0, 0.0, GRS80.b + 100.0, GRS80)
        assert lat == pytest.approx(90.0)
        assert h == pytest.approx(100.0, abs=1e-6)

    def test_distance_from_axis(self) -> None:
        """The distance from the polar axis is N(phi) cos(phi) at zero height."""
        x, y, z = geodetic_to_cartesian(47.5, 19.0, 0.0, GRS80)
        phi = math.radians(47.5)
        expected = prime_vertical_radius(phi, GRS80) * math.cos(phi)
        assert math.hypot(x, y) == pytest.approx(expected, rel=1e-14)
        assert math.degrees(math.atan2(y, x)) == pytest.approx(19.0, abs=1e-12)

    def test_distance_same_point(self) -> None:
        """A point is at zero distance from itself."""
        assert cartesian_distance(47.5, 19.0, 150.0, 47.5, 19.0, 150.0, GRS80) == 0.0

    def test_distance_vertical_offset(self) -> None:
        """Points differing only in height are that height apart."""
        distance = cartesian_distance(47.5, 19.0, 100.0, 47.5, 19.0, 1100.0, GRS80)
        assert distance == pytest.approx(1000.0, abs=1e-6)

    def test_distance_across_ellipsoids(self) -> None:
        """Equal coordinates on different ellipsoids are not the same position."""
        same = cartesian_distance(47.5, 19.0, 0.0, 47.5, 19.0, 0.0, GRS80, GRS80)
        across = cartesian_distance(47.5, 19.0, 0.0, 47.5, 19.0, 0.0, GRS80, GRS67)
        assert same == 0.0
        assert across > 1.0
