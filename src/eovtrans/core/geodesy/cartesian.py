"""
Conversion between geodetic and Earth-centred Cartesian coordinates.
"""

import logging
import math
from typing import Optional, Tuple

from eovtrans.core.errors import TransformationError
from eovtrans.models.geodesy import Ellipsoid

logger = logging.getLogger(__name__)

MAX_ITERATIONS = 5
CONVERGENCE_RAD = 1e-12
RESIDUAL_LIMIT_RAD = 1e-9


def geodetic_to_cartesian(
    lat: float, lon: float, h: float, ellipsoid: Ellipsoid
) -> Tuple[float, float, float]:
    """
    Convert geodetic coordinates to Cartesian X, Y, Z.

    Args:
        lat: Latitude in degrees
        lon: Longitude in degrees
        h: Ellipsoidal height in metres
        ellipsoid: Reference ellipsoid

    Returns:
        Tuple of (X, Y, Z) in metres
    """
    phi = math.radians(lat)
    lam = math.radians(lon)
    sin_phi = math.sin(phi)
    cos_phi = math.cos(phi)

    n = ellipsoid.a / math.sqrt(1 - ellipsoid.e2 * sin_phi * sin_phi)

    x = (n + h) * cos_phi * math.cos(lam)
    y = (n + h) * cos_phi * math.sin(lam)
    z = (n * (1 - ellipsoid.e2) + h) * sin_phi
    return x, y, z


def cartesian_to_geodetic(
    x: float, y: float, z: float, ellipsoid: Ellipsoid
) -> Tuple[float, float, float]:
    """
    Convert Cartesian X, Y, Z to geodetic coordinates.

    Starts from Bowring's auxiliary-angle estimate and refines the latitude
    by fixed-point iteration until successive values differ by less than
    1e-12 rad, for at most five iterations.

    Args:
        x: X in metres
        y: Y in metres
        z: Z in metres
        ellipsoid: Reference ellipsoid

    Returns:
        Tuple of (lat, lon, h) in degrees, degrees, metres

    Raises:
        TransformationError: If the result is not finite or the iteration
            leaves a residual above 1e-9 rad
    """
    a = ellipsoid.a
    b = ellipsoid.b
    e2 = ellipsoid.e2

    p = math.hypot(x, y)
    lam = math.atan2(y, x)

    theta = math.atan2(z * a, p * b)
    sin_t = math.sin(theta)
    cos_t = math.cos(theta)
    phi = math.atan2(
        z + ellipsoid.ep2 * b * sin_t**3,
        p - e2 * a * cos_t**3,
    )

    delta = math.inf
    for _ in range(MAX_ITERATIONS):
        sin_phi = math.sin(phi)
        n = a / math.sqrt(1 - e2 * sin_phi * sin_phi)
        next_phi = math.atan2(z + e2 * n * sin_phi, p)
        delta = abs(next_phi - phi)
        phi = next_phi
        if delta < CONVERGENCE_RAD:
            break

    if not math.isfinite(phi) or delta > RESIDUAL_LIMIT_RAD:
        raise TransformationError(
            "Cartesian to geodetic latitude iteration did not converge",
            stage="cartesian_to_geodetic",
            details={"x": x, "y": y, "z": z, "residual_rad": delta},
        )

    sin_phi = math.sin(phi)
    cos_phi = math.cos(phi)
    n = a / math.sqrt(1 - e2 * sin_phi * sin_phi)
    if abs(cos_phi) > 1e-10:
        h = p / cos_phi - n
    else:
        # At the poles p/cos(phi) is 0/0
        h = abs(z) - n * (1 - e2)

    lat = math.degrees(phi)
    lon = math.degrees(lam)
    if not (math.isfinite(lat) and math.isfinite(lon) and math.isfinite(h)):
        raise TransformationError(
            "Cartesian to geodetic conversion produced a non-finite result",
            stage="cartesian_to_geodetic",
        )
    return lat, lon, h


def cartesian_distance(
    lat1: float,
    lon1: float,
    h1: float,
    lat2: float,
    lon2: float,
    h2: float,
    ellipsoid1: Ellipsoid,
    ellipsoid2: Optional[Ellipsoid] = None,
) -> float:
    """
    Straight-line distance between two geodetic positions.

    Each position is placed in Cartesian space on its own ellipsoid, so for
    a point and its image in another frame the result is the 3-D shift the
    frame transformation applied.

    Args:
        lat1, lon1, h1: First position (degrees, degrees, metres)
        lat2, lon2, h2: Second position
        ellipsoid1: Ellipsoid of the first position
        ellipsoid2: Ellipsoid of the second position (defaults to ellipsoid1)

    Returns:
        Distance in metres
    """
    first = geodetic_to_cartesian(lat1, lon1, h1, ellipsoid1)
    second = geodetic_to_cartesian(lat2, lon2, h2, ellipsoid2 or ellipsoid1)
    return math.dist(first, second)
