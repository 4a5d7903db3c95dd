"""
Input validation for coordinates and epochs.
"""

import logging
import math
from typing import Any

from eovtrans.core.errors import InputRangeError

logger = logging.getLogger(__name__)

# Plausible epoch window for ITRF/ETRF realizations
MIN_EPOCH = 1950.0
MAX_EPOCH = 2150.0


def validate_finite(value: Any, field: str) -> float:
    """
    Validate that a value is a finite number.

    Args:
        value: Value to check
        field: Name of the input, used in the error

    Returns:
        The value as float

    Raises:
        InputRangeError: If the value is not a finite number
    """
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise InputRangeError(f"{field} must be a number, got {value!r}", field=field)

    if not math.isfinite(number):
        raise InputRangeError(
            f"{field} must be finite, got {number}", field=field, value=str(number)
        )
    return number


def validate_latitude(lat: Any, field: str = "latitude") -> float:
    """
    Validate a latitude in degrees.

    Raises:
        InputRangeError: If not finite or outside [-90, 90]
    """
    lat = validate_finite(lat, field)
    if not -90.0 <= lat <= 90.0:
        raise InputRangeError(
            f"Latitude must lie in [-90, 90], got {lat}",
            field=field,
            value=lat,
            suggestions=["Check whether latitude and longitude are swapped"],
        )
    return lat


def validate_longitude(lon: Any, field: str = "longitude") -> float:
    """
    Validate a longitude in degrees.

    Raises:
        InputRangeError: If not finite or outside [-180, 180]
    """
    lon = validate_finite(lon, field)
    if not -180.0 <= lon <= 180.0:
        raise InputRangeError(
            f"Longitude must lie in [-180, 180], got {lon}",
            field=field,
            value=lon,
            suggestions=["Check whether latitude and longitude are swapped"],
        )
    return lon


def validate_lat_lon(lat: Any, lon: Any) -> tuple[float, float]:
    """
    Validate a latitude/longitude pair.

    Args:
        lat: Latitude in degrees
        lon: Longitude in degrees

    Returns:
        Tuple of (lat, lon) as floats

    Raises:
        InputRangeError: If either value is invalid
    """
    return validate_latitude(lat), validate_longitude(lon)


def validate_epoch(epoch: Any) -> float:
    """
    Validate an epoch given as decimal year.

    Raises:
        InputRangeError: If not finite or outside the supported window
    """
    epoch = validate_finite(epoch, "epoch")
    if not MIN_EPOCH <= epoch <= MAX_EPOCH:
        raise InputRangeError(
            f"Epoch must lie in [{MIN_EPOCH}, {MAX_EPOCH}], got {epoch}",
            field="epoch",
            value=epoch,
        )
    return epoch
