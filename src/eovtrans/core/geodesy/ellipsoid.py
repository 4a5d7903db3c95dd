"""
Reference ellipsoids.

This module provides the ellipsoids used by the supported frames and the
radii of curvature the other geodesy modules are built on.
"""

import math
from typing import Dict

from eovtrans.core.errors import ConfigurationError
from eovtrans.models.geodesy import Ellipsoid


def derive_ellipsoid(a: float, f: float, name: str = "") -> Ellipsoid:
    """
    Build an ellipsoid from its semi-major axis and flattening.

    Args:
        a: Semi-major axis in metres
        f: Flattening (not inverse flattening)
        name: Ellipsoid name

    Returns:
        Ellipsoid with b, e2, ep2 and n derived

    Raises:
        ConfigurationError: If a <= 0, f outside (0, 1) or either non-finite
    """
    return Ellipsoid(a=float(a), f=float(f), name=name)


GRS80 = derive_ellipsoid(6378137.0, 1 / 298.257222101, "GRS80")
WGS84 = derive_ellipsoid(6378137.0, 1 / 298.257223563, "WGS84")
GRS67 = derive_ellipsoid(6378160.0, 1 / 298.247167427, "GRS67")

ELLIPSOIDS: Dict[str, Ellipsoid] = {
    "GRS80": GRS80,
    "WGS84": WGS84,
    "GRS67": GRS67,
}


def get_ellipsoid(name: str) -> Ellipsoid:
    """
    Look up a named ellipsoid (case-insensitive).

    Raises:
        ConfigurationError: If the name is unknown
    """
    try:
        return ELLIPSOIDS[name.upper()]
    except KeyError:
        raise ConfigurationError(
            f"Unknown ellipsoid '{name}'. Known: {', '.join(ELLIPSOIDS)}",
            config_key="ellipsoid",
        )


def prime_vertical_radius(lat_rad: float, ellipsoid: Ellipsoid) -> float:
    """Radius of curvature in the prime vertical, N(phi)."""
    sin_lat = math.sin(lat_rad)
    return ellipsoid.a / math.sqrt(1 - ellipsoid.e2 * sin_lat * sin_lat)


def meridian_radius(lat_rad: float, ellipsoid: Ellipsoid) -> float:
    """Radius of curvature in the meridian, M(phi)."""
    sin_lat = math.sin(lat_rad)
    w2 = 1 - ellipsoid.e2 * sin_lat * sin_lat
    return ellipsoid.a * (1 - ellipsoid.e2) / (w2 * math.sqrt(w2))
