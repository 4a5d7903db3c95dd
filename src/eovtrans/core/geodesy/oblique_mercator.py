"""
Oblique Mercator projection used by EOV.

EOV (EPSG:23700) is a double projection: the GRS67 ellipsoid is mapped
conformally onto a Gaussian sphere, and the sphere onto an oblique Mercator
cylinder whose axis is tilted so the cylinder touches the centre of Hungary.
This is the same construction as PROJ's `somerc` (Swiss oblique cylindrical).
"""

import logging
import math
from dataclasses import dataclass
from functools import lru_cache
from typing import Tuple

from eovtrans.core.errors import ConfigurationError, TransformationError
from eovtrans.core.geodesy.ellipsoid import GRS67
from eovtrans.models.geodesy import ObliqueMercatorDefinition

logger = logging.getLogger(__name__)

FORTPI = math.pi / 4
HALFPI = math.pi / 2
INVERSE_TOLERANCE = 1e-10
MAX_INVERSE_ITERATIONS = 10

EOV_PROJECTION = ObliqueMercatorDefinition(
    lat0=47.14439372222222,
    lon0=19.04857177777778,
    k0=0.99993,
    false_easting=650000.0,
    false_northing=200000.0,
    ellipsoid=GRS67,
)


@dataclass(frozen=True)
class _SphereConstants:
    """Constants of the ellipsoid-to-sphere mapping for one definition."""

    e: float
    es: float
    hlf_e: float
    c: float
    K: float
    kR: float
    sinp0: float
    cosp0: float


def _asin(value: float) -> float:
    # Clamp rounding noise just beyond +/-1
    return math.asin(max(-1.0, min(1.0, value)))


@lru_cache(maxsize=8)
def _sphere_constants(projection: ObliqueMercatorDefinition) -> _SphereConstants:
    """
    Precompute the Gaussian sphere constants for a projection.

    Raises:
        ConfigurationError: If the definition yields non-finite constants
    """
    ellipsoid = projection.ellipsoid
    e = ellipsoid.e
    es = ellipsoid.e2
    phi0 = math.radians(projection.lat0)

    hlf_e = 0.5 * e
    cp = math.cos(phi0) ** 2
    c = math.sqrt(1 + es * cp * cp / (1 - es))
    sp = math.sin(phi0)
    sinp0 = sp / c
    phip0 = _asin(sinp0)
    cosp0 = math.cos(phip0)
    sp *= e
    K = math.log(math.tan(FORTPI + 0.5 * phip0)) - c * (
        math.log(math.tan(FORTPI + 0.5 * phi0)) - hlf_e * math.log((1 + sp) / (1 - sp))
    )
    kR = projection.k0 * math.sqrt(1 - es) / (1 - sp * sp)

    constants = _SphereConstants(
        e=e, es=es, hlf_e=hlf_e, c=c, K=K, kR=kR, sinp0=sinp0, cosp0=cosp0
    )
    if not all(math.isfinite(value) for value in vars(constants).values()):
        raise ConfigurationError(
            "Oblique Mercator definition produced non-finite constants",
            config_key="projection",
            details={"lat0": projection.lat0, "k0": projection.k0},
        )
    return constants


def forward_oblique_mercator(
    lat: float,
    lon: float,
    projection: ObliqueMercatorDefinition = EOV_PROJECTION,
) -> Tuple[float, float]:
    """
    Project geodetic coordinates onto the oblique Mercator plane.

    Args:
        lat: Latitude in degrees on the projection's ellipsoid
        lon: Longitude in degrees on the projection's ellipsoid
        projection: Projection definition (EOV by default)

    Returns:
        Tuple of (easting, northing) in metres; for EOV these are (Y, X)

    Raises:
        TransformationError: If the result is not finite
    """
    k = _sphere_constants(projection)
    a = projection.ellipsoid.a

    phi = math.radians(lat)
    lam = math.radians(lon - projection.lon0)

    sp = k.e * math.sin(phi)
    phip = (
        2
        * math.atan(
            math.exp(
                k.c
                * (
                    math.log(math.tan(FORTPI + 0.5 * phi))
                    - k.hlf_e * math.log((1 + sp) / (1 - sp))
                )
                + k.K
            )
        )
        - HALFPI
    )
    lamp = k.c * lam
    cp = math.cos(phip)
    phipp = _asin(k.cosp0 * math.sin(phip) - k.sinp0 * cp * math.cos(lamp))
    lampp = _asin(cp * math.sin(lamp) / math.cos(phipp))

    easting = a * k.kR * lampp + projection.false_easting
    northing = a * k.kR * math.log(math.tan(FORTPI + 0.5 * phipp)) + projection.false_northing

    if not (math.isfinite(easting) and math.isfinite(northing)):
        raise TransformationError(
            "Oblique Mercator projection produced a non-finite result",
            stage="forward_oblique_mercator",
            details={"lat": lat, "lon": lon},
        )
    return easting, northing


def inverse_oblique_mercator(
    easting: float,
    northing: float,
    projection: ObliqueMercatorDefinition = EOV_PROJECTION,
    max_iterations: int = MAX_INVERSE_ITERATIONS,
) -> Tuple[float, float]:
    """
    Recover geodetic coordinates from oblique Mercator plane coordinates.

    The sphere-to-ellipsoid latitude is solved by Newton iteration to
    1e-10 rad.

    Args:
        easting: Easting in metres (EOV Y)
        northing: Northing in metres (EOV X)
        projection: Projection definition (EOV by default)
        max_iterations: Iteration cap for the latitude solution

    Returns:
        Tuple of (lat, lon) in degrees on the projection's ellipsoid

    Raises:
        TransformationError: If the latitude iteration does not converge
    """
    k = _sphere_constants(projection)
    a = projection.ellipsoid.a

    x = (easting - projection.false_easting) / a
    y = (northing - projection.false_northing) / a

    phipp = 2 * (math.atan(math.exp(y / k.kR)) - FORTPI)
    lampp = x / k.kR
    cp = math.cos(phipp)
    phip = _asin(k.cosp0 * math.sin(phipp) + k.sinp0 * cp * math.cos(lampp))
    lamp = _asin(cp * math.sin(lampp) / math.cos(phip))
    con = (k.K - math.log(math.tan(FORTPI + 0.5 * phip))) / k.c

    converged = False
    for _ in range(max_iterations):
        esp = k.e * math.sin(phip)
        delp = (
            (
                con
                + math.log(math.tan(FORTPI + 0.5 * phip))
                - k.hlf_e * math.log((1 + esp) / (1 - esp))
            )
            * (1 - esp * esp)
            * math.cos(phip)
            / (1 - k.es)
        )
        phip -= delp
        if abs(delp) < INVERSE_TOLERANCE:
            converged = True
            break

    if not converged or not math.isfinite(phip):
        raise TransformationError(
            "Inverse oblique Mercator latitude did not converge",
            stage="inverse_oblique_mercator",
            details={"easting": easting, "northing": northing},
        )

    lat = math.degrees(phip)
    lon = math.degrees(lamp / k.c) + projection.lon0
    return lat, lon
