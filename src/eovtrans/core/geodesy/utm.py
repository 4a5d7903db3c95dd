"""
UTM projection and zone utilities.

The projection uses Krüger's series in the third flattening n to sixth
order (Karney 2011), which is accurate to a few nanometres within a zone
and well beyond it, and reports the exact meridian convergence and point
scale of the series.
"""

import math
from typing import List, Optional, Tuple

from eovtrans.core.errors import InputRangeError, TransformationError
from eovtrans.core.geodesy.ellipsoid import GRS80
from eovtrans.core.validation import validate_lat_lon
from eovtrans.models.geodesy import Ellipsoid, UtmCoordinate

UTM_K0 = 0.9996
FALSE_EASTING = 500000.0
FALSE_NORTHING_SOUTH = 10000000.0
TAU_TOLERANCE = 1e-12
MAX_TAU_ITERATIONS = 10


def _rectifying_radius(n: float, a: float) -> float:
    n2 = n * n
    return a / (1 + n) * (1 + n2 / 4 + n2 * n2 / 64 + n2 * n2 * n2 / 256)


def _alpha(n: float) -> List[float]:
    """Forward series coefficients alpha_1..alpha_6."""
    n2, n3, n4, n5, n6 = n**2, n**3, n**4, n**5, n**6
    return [
        n / 2 - 2 / 3 * n2 + 5 / 16 * n3 + 41 / 180 * n4 - 127 / 288 * n5 + 7891 / 37800 * n6,
        13 / 48 * n2 - 3 / 5 * n3 + 557 / 1440 * n4 + 281 / 630 * n5 - 1983433 / 1935360 * n6,
        61 / 240 * n3 - 103 / 140 * n4 + 15061 / 26880 * n5 + 167603 / 181440 * n6,
        49561 / 161280 * n4 - 179 / 168 * n5 + 6601661 / 7257600 * n6,
        34729 / 80640 * n5 - 3418889 / 1995840 * n6,
        212378941 / 319334400 * n6,
    ]


def _beta(n: float) -> List[float]:
    """Inverse series coefficients beta_1..beta_6."""
    n2, n3, n4, n5, n6 = n**2, n**3, n**4, n**5, n**6
    return [
        n / 2 - 2 / 3 * n2 + 37 / 96 * n3 - 1 / 360 * n4 - 81 / 512 * n5 + 96199 / 604800 * n6,
        1 / 48 * n2 + 1 / 15 * n3 - 437 / 1440 * n4 + 46 / 105 * n5 - 1118711 / 3870720 * n6,
        17 / 480 * n3 - 37 / 840 * n4 - 209 / 4480 * n5 + 5569 / 90720 * n6,
        4397 / 161280 * n4 - 11 / 504 * n5 - 830251 / 7257600 * n6,
        4583 / 161280 * n5 - 108847 / 3991680 * n6,
        20648693 / 638668800 * n6,
    ]


def _conformal_tau(tau: float, e: float) -> float:
    """Tangent of the conformal latitude for tau = tan(phi)."""
    sigma = math.sinh(e * math.atanh(e * tau / math.sqrt(1 + tau * tau)))
    return tau * math.sqrt(1 + sigma * sigma) - sigma * math.sqrt(1 + tau * tau)


def detect_utm_zone(longitude: float) -> int:
    """
    Standard UTM zone for a longitude.

    Zone 1 starts at 180°W; 180°E itself belongs to zone 60.

    Args:
        longitude: Longitude in decimal degrees (-180 to 180)

    Returns:
        Zone number 1-60
    """
    zone = int(math.floor((longitude + 180) / 6)) + 1
    return min(max(zone, 1), 60)


def _check_zone(zone_number: int) -> None:
    if not 1 <= zone_number <= 60:
        raise InputRangeError(
            f"UTM zone must be between 1 and 60, got {zone_number}",
            field="zone",
            value=zone_number,
        )


def calculate_utm_central_meridian(zone_number: int) -> float:
    """
    Calculate the central meridian for a UTM zone.

    Raises:
        InputRangeError: If zone_number is out of valid range
    """
    _check_zone(zone_number)
    return -180 + (zone_number - 1) * 6 + 3


def get_utm_zone_bounds(zone_number: int) -> Tuple[float, float]:
    """
    Get the longitude bounds for a UTM zone.

    Returns:
        Tuple of (min_longitude, max_longitude)

    Raises:
        InputRangeError: If zone_number is out of valid range
    """
    _check_zone(zone_number)
    min_lon = -180 + (zone_number - 1) * 6
    return (min_lon, min_lon + 6)


def get_utm_letter_designator(latitude: float) -> str:
    """
    Get the MGRS latitude band letter.

    Bands are 8 degrees tall from 80°S, lettered C to X without I and O;
    band X spans 72°N to 84°N.

    Raises:
        InputRangeError: If latitude is outside 80°S..84°N
    """
    if latitude < -80 or latitude > 84:
        raise InputRangeError(
            f"UTM bands are only defined between 80°S and 84°N, got {latitude}",
            field="latitude",
            value=latitude,
        )
    if latitude >= 72:
        return "X"
    return "CDEFGHJKLMNPQRSTUVWX"[int((latitude + 80) // 8)]


def format_utm_zone(zone_number: int, hemisphere: str, band: Optional[str] = None) -> str:
    """Format a zone as '34N', or '34T' when a band letter is given."""
    return f"{zone_number}{band or hemisphere}"


def get_utm_epsg(zone_number: int, is_northern: bool, datum: str = "WGS84") -> int:
    """
    Get the EPSG code of a UTM zone.

    Args:
        zone_number: UTM zone number (1-60)
        is_northern: True for northern hemisphere
        datum: 'WGS84' (EPSG:326xx/327xx) or 'ETRS89' (EPSG:258xx, north only)

    Returns:
        EPSG code

    Raises:
        InputRangeError: If the zone or datum/hemisphere combination is invalid
    """
    _check_zone(zone_number)
    if datum.upper() == "ETRS89":
        if not is_northern:
            raise InputRangeError("ETRS89 / UTM is only defined in the northern hemisphere")
        return 25800 + zone_number
    return (32600 if is_northern else 32700) + zone_number


def geodetic_to_utm(
    lat: float,
    lon: float,
    ellipsoid: Ellipsoid = GRS80,
    zone: Optional[int] = None,
) -> UtmCoordinate:
    """
    Project geodetic coordinates to UTM.

    Args:
        lat: Latitude in degrees
        lon: Longitude in degrees
        ellipsoid: Ellipsoid of the coordinates (GRS80 by default)
        zone: Force a zone instead of the standard one for `lon`

    Returns:
        UtmCoordinate with convergence (degrees) and point scale

    Raises:
        InputRangeError: If coordinates or zone are out of range
        TransformationError: If the result is not finite
    """
    lat, lon = validate_lat_lon(lat, lon)
    if zone is None:
        zone = detect_utm_zone(lon)
    lon0 = calculate_utm_central_meridian(zone)

    a = ellipsoid.a
    e = ellipsoid.e
    n = ellipsoid.n
    big_a = _rectifying_radius(n, a)
    alpha = _alpha(n)

    phi = math.radians(lat)
    lam = math.radians(lon - lon0)
    cos_lam = math.cos(lam)
    sin_lam = math.sin(lam)

    tau = math.tan(phi)
    tau_p = _conformal_tau(tau, e)

    xi_p = math.atan2(tau_p, cos_lam)
    eta_p = math.asinh(sin_lam / math.sqrt(tau_p * tau_p + cos_lam * cos_lam))

    xi = xi_p
    eta = eta_p
    p_p = 1.0
    q_p = 0.0
    for j, alpha_j in enumerate(alpha, start=1):
        s2 = math.sin(2 * j * xi_p)
        c2 = math.cos(2 * j * xi_p)
        sh2 = math.sinh(2 * j * eta_p)
        ch2 = math.cosh(2 * j * eta_p)
        xi += alpha_j * s2 * ch2
        eta += alpha_j * c2 * sh2
        p_p += 2 * j * alpha_j * c2 * ch2
        q_p += 2 * j * alpha_j * s2 * sh2

    easting = UTM_K0 * big_a * eta + FALSE_EASTING
    northing = UTM_K0 * big_a * xi
    if lat < 0:
        northing += FALSE_NORTHING_SOUTH

    gamma_p = math.atan(tau_p / math.sqrt(1 + tau_p * tau_p) * math.tan(lam))
    gamma_pp = math.atan2(q_p, p_p)
    convergence = math.degrees(gamma_p + gamma_pp)

    sin_phi = math.sin(phi)
    k_p = (
        math.sqrt(1 - ellipsoid.e2 * sin_phi * sin_phi)
        * math.sqrt(1 + tau * tau)
        / math.sqrt(tau_p * tau_p + cos_lam * cos_lam)
    )
    k_pp = big_a / a * math.sqrt(p_p * p_p + q_p * q_p)
    scale_factor = UTM_K0 * k_p * k_pp

    if not all(math.isfinite(v) for v in (easting, northing, convergence, scale_factor)):
        raise TransformationError(
            "UTM projection produced a non-finite result",
            stage="geodetic_to_utm",
            details={"lat": lat, "lon": lon, "zone": zone},
        )

    band = get_utm_letter_designator(lat) if -80 <= lat <= 84 else ""

    return UtmCoordinate(
        zone=zone,
        easting=easting,
        northing=northing,
        hemisphere="N" if lat >= 0 else "S",
        convergence=convergence,
        scale_factor=scale_factor,
        band=band,
    )


def utm_to_geodetic(
    zone: int,
    easting: float,
    northing: float,
    hemisphere: str = "N",
    ellipsoid: Ellipsoid = GRS80,
) -> Tuple[float, float]:
    """
    Recover geodetic coordinates from UTM.

    Args:
        zone: UTM zone number (1-60)
        easting: Easting in metres
        northing: Northing in metres
        hemisphere: 'N' or 'S'
        ellipsoid: Ellipsoid of the coordinates (GRS80 by default)

    Returns:
        Tuple of (lat, lon) in degrees

    Raises:
        InputRangeError: If zone or hemisphere is invalid
        TransformationError: If the latitude iteration does not converge
    """
    lon0 = calculate_utm_central_meridian(zone)
    hemisphere = hemisphere.upper()
    if hemisphere not in ("N", "S"):
        raise InputRangeError(
            f"Hemisphere must be 'N' or 'S', got {hemisphere!r}", field="hemisphere"
        )

    a = ellipsoid.a
    e = ellipsoid.e
    e2 = ellipsoid.e2
    n = ellipsoid.n
    big_a = _rectifying_radius(n, a)
    beta = _beta(n)

    x = easting - FALSE_EASTING
    y = northing - (FALSE_NORTHING_SOUTH if hemisphere == "S" else 0.0)

    eta = x / (UTM_K0 * big_a)
    xi = y / (UTM_K0 * big_a)

    xi_p = xi
    eta_p = eta
    for j, beta_j in enumerate(beta, start=1):
        xi_p -= beta_j * math.sin(2 * j * xi) * math.cosh(2 * j * eta)
        eta_p -= beta_j * math.cos(2 * j * xi) * math.sinh(2 * j * eta)

    sinh_eta_p = math.sinh(eta_p)
    sin_xi_p = math.sin(xi_p)
    cos_xi_p = math.cos(xi_p)

    tau_p = sin_xi_p / math.sqrt(sinh_eta_p * sinh_eta_p + cos_xi_p * cos_xi_p)

    tau = tau_p
    for _ in range(MAX_TAU_ITERATIONS):
        tau_i_p = _conformal_tau(tau, e)
        delta = (
            (tau_p - tau_i_p)
            / math.sqrt(1 + tau_i_p * tau_i_p)
            * (1 + (1 - e2) * tau * tau)
            / ((1 - e2) * math.sqrt(1 + tau * tau))
        )
        tau += delta
        if abs(delta) < TAU_TOLERANCE:
            break
    else:
        raise TransformationError(
            "Inverse UTM latitude did not converge",
            stage="utm_to_geodetic",
            details={"zone": zone, "easting": easting, "northing": northing},
        )

    lat = math.degrees(math.atan(tau))
    lon = math.degrees(math.atan2(sinh_eta_p, cos_xi_p)) + lon0
    return lat, lon
