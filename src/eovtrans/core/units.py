"""
Unit conversion and display formatting helpers.
"""

import math
from typing import Optional, Union

from eovtrans.models.geometry import DMS

CM_THRESHOLD_M = 1.0
HECTARE_M2 = 10000.0
SQUARE_KM_M2 = 1000000.0
DECIMAL_PLACES = 2
DMS_SECONDS_PLACES = 4


def format_distance(distance_m: float) -> str:
    """
    Format a distance for display.

    Below 1 m the distance is shown in centimetres, otherwise in metres,
    both with two decimals.

    Examples:
        >>> format_distance(0.256)
        '25.60 cm'
        >>> format_distance(12.3456)
        '12.35 m'
    """
    if distance_m < CM_THRESHOLD_M:
        return f"{distance_m * 100:.{DECIMAL_PLACES}f} cm"
    return f"{distance_m:.{DECIMAL_PLACES}f} m"


def format_area(area_m2: float) -> str:
    """
    Format an area for display.

    Square metres below one hectare, hectares below one square kilometre,
    square kilometres above.
    """
    if area_m2 < HECTARE_M2:
        return f"{area_m2:.{DECIMAL_PLACES}f} m²"
    if area_m2 < SQUARE_KM_M2:
        return f"{area_m2 / HECTARE_M2:.{DECIMAL_PLACES}f} ha"
    return f"{area_m2 / SQUARE_KM_M2:.{DECIMAL_PLACES}f} km²"


def decimal_to_dms(value: float, precision: Optional[int] = None) -> DMS:
    """
    Split decimal degrees into degrees, minutes and seconds.

    Without `precision` the seconds keep full float precision, so
    `dms_to_decimal` recovers the input. With `precision` the seconds are
    rounded and a rounded value of 60 carries into the minutes (and
    degrees).

    Args:
        value: Angle in decimal degrees
        precision: Decimal places to round the seconds to

    Returns:
        DMS with non-negative components and an explicit sign
    """
    sign = -1 if value < 0 else 1
    magnitude = abs(value)

    degrees = int(math.floor(magnitude))
    minutes_decimal = (magnitude - degrees) * 60
    minutes = int(math.floor(minutes_decimal))
    seconds = (minutes_decimal - minutes) * 60

    if precision is not None:
        seconds = round(seconds, precision)
        if seconds >= 60:
            seconds -= 60
            minutes += 1
        if minutes >= 60:
            minutes -= 60
            degrees += 1

    return DMS(degrees=degrees, minutes=minutes, seconds=seconds, sign=sign)


def dms_to_decimal(
    degrees: Union[DMS, float],
    minutes: float = 0.0,
    seconds: float = 0.0,
    sign: Optional[int] = None,
) -> float:
    """
    Combine degrees, minutes and seconds into decimal degrees.

    Non-finite components count as zero. Without an explicit `sign` the
    result is negative if any component is negative.

    Args:
        degrees: Degrees, or a DMS instance (other arguments are then ignored)
        minutes: Minutes
        seconds: Seconds
        sign: 1 or -1

    Returns:
        Angle in decimal degrees
    """
    if isinstance(degrees, DMS):
        dms = degrees
        degrees, minutes, seconds, sign = dms.degrees, dms.minutes, dms.seconds, dms.sign

    components = [c if math.isfinite(c) else 0.0 for c in (degrees, minutes, seconds)]
    if sign is None:
        sign = -1 if any(c < 0 for c in components) else 1

    deg, mins, secs = (abs(c) for c in components)
    return (-1 if sign < 0 else 1) * (deg + mins / 60.0 + secs / 3600.0)


def format_dms(value: Union[DMS, float], axis: str = "lat") -> str:
    """
    Format an angle as degrees, minutes and seconds with a hemisphere letter.

    Args:
        value: DMS instance or decimal degrees
        axis: 'lat' for N/S, 'lon' for E/W

    Returns:
        String such as 47° 29' 52.1234" N
    """
    if isinstance(value, DMS):
        dms = value
    else:
        dms = decimal_to_dms(value, precision=DMS_SECONDS_PLACES)

    if axis == "lat":
        direction = "S" if dms.is_negative else "N"
    else:
        direction = "W" if dms.is_negative else "E"

    return f"{dms.degrees}° {dms.minutes}' {dms.seconds:.{DMS_SECONDS_PLACES}f}\" {direction}"
