"""
Free-form coordinate text parsing.

Recognises, in this order:
- DMS with symbols and hemisphere letters: 47°30'4.18" N 19°2'23.36" E 130.5
- DMS with symbols only (north/east assumed): 46°38'56.33974" 20°12'3.56457" 130.560
- Space-separated DMS with letters: 47 30 4.18 N 19 2 23.36 E 130.5
- Cartesian X Y Z [epoch], when the first three values exceed 1000 in magnitude
- Decimal degrees: lat lon height
"""

import logging
import re
from typing import List, Optional

from eovtrans.core.config import settings
from eovtrans.core.errors import InputRangeError
from eovtrans.core.geodesy.cartesian import cartesian_to_geodetic
from eovtrans.core.geodesy.ellipsoid import WGS84
from eovtrans.core.units import dms_to_decimal
from eovtrans.core.validation import validate_lat_lon
from eovtrans.models.geometry import ParsedCoordinate

logger = logging.getLogger(__name__)

_NUM = r"([\d.]+)"
_DMS_SYMBOLS = _NUM + r"°\s*" + _NUM + r"['′]\s*" + _NUM + r"[\"″]?"

DMS_HEMISPHERE_PATTERN = re.compile(
    _DMS_SYMBOLS + r"\s*([NSEW])\s+" + _DMS_SYMBOLS + r"\s*([NSEW])(?:\s+" + _NUM + r")?",
    re.IGNORECASE,
)
DMS_SYMBOLS_PATTERN = re.compile(
    _DMS_SYMBOLS + r"\s+" + _DMS_SYMBOLS + r"(?:\s+" + _NUM + r")?"
)
DMS_WORDS_PATTERN = re.compile(
    r"\s+".join([_NUM] * 3) + r"\s+([NSEW])\s+" + r"\s+".join([_NUM] * 3)
    + r"\s+([NSEW])(?:\s+" + _NUM + r")?",
    re.IGNORECASE,
)
NUMBER_PATTERN = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")

CARTESIAN_MIN_MAGNITUDE = 1000.0

FORMAT_DMS = "DMS"
FORMAT_DMS_SYMBOLS = "DMS (symbols)"
FORMAT_DMS_WORDS = "DMS (words)"
FORMAT_DECIMAL = "Decimal degrees"
FORMAT_CARTESIAN = "Cartesian (ITRF20)"


def _hemisphere_sign(letter: str) -> int:
    return -1 if letter.upper() in ("S", "W") else 1


def _from_dms_groups(
    groups: List[Optional[str]], with_letters: bool, default_epoch: float, detected: str
) -> ParsedCoordinate:
    if with_letters:
        lat_parts, lat_letter = groups[0:3], groups[3]
        lon_parts, lon_letter = groups[4:7], groups[7]
        height_text = groups[8]
        lat_sign = _hemisphere_sign(lat_letter)
        lon_sign = _hemisphere_sign(lon_letter)
    else:
        lat_parts, lon_parts = groups[0:3], groups[3:6]
        height_text = groups[6]
        lat_sign = lon_sign = 1

    try:
        lat = lat_sign * dms_to_decimal(*(float(p) for p in lat_parts))
        lon = lon_sign * dms_to_decimal(*(float(p) for p in lon_parts))
        height = float(height_text) if height_text else 0.0
    except ValueError as e:
        raise InputRangeError(f"Malformed DMS value: {e}", field="text") from e

    lat, lon = validate_lat_lon(lat, lon)
    return ParsedCoordinate(
        lat=lat, lon=lon, height=height, epoch=default_epoch, detected_format=detected
    )


def parse_coordinate_input(
    text: str, default_epoch: Optional[float] = None
) -> ParsedCoordinate:
    """
    Parse a coordinate typed or pasted by a user.

    Args:
        text: Input text
        default_epoch: Epoch reported when the text carries none
            (settings.default_epoch if None)

    Returns:
        ParsedCoordinate naming the detected notation

    Raises:
        InputRangeError: If nothing parses or the values are out of range
    """
    if default_epoch is None:
        default_epoch = settings.default_epoch

    if text is None or not text.strip():
        raise InputRangeError("Coordinate text is empty", field="text")
    text = text.strip()

    match = DMS_HEMISPHERE_PATTERN.search(text)
    if match:
        return _from_dms_groups(list(match.groups()), True, default_epoch, FORMAT_DMS)

    match = DMS_SYMBOLS_PATTERN.search(text)
    if match:
        return _from_dms_groups(list(match.groups()), False, default_epoch, FORMAT_DMS_SYMBOLS)

    match = DMS_WORDS_PATTERN.search(text)
    if match:
        return _from_dms_groups(list(match.groups()), True, default_epoch, FORMAT_DMS_WORDS)

    values = [float(v) for v in NUMBER_PATTERN.findall(text)]
    if len(values) < 3:
        raise InputRangeError(
            f"Could not recognise a coordinate in '{text}'",
            field="text",
            value=text,
            suggestions=[
                "Use 'lat lon height' in decimal degrees",
                "Use DMS such as 47°30'4.18\" N 19°2'23.36\" E",
                "Use Cartesian 'X Y Z [epoch]' in metres",
            ],
        )

    if all(abs(v) > CARTESIAN_MIN_MAGNITUDE for v in values[:3]):
        x, y, z = values[:3]
        epoch = values[3] if len(values) > 3 and values[3] else default_epoch
        lat, lon, height = cartesian_to_geodetic(x, y, z, WGS84)
        logger.debug(f"Parsed Cartesian input ({x}, {y}, {z}) at epoch {epoch}")
        return ParsedCoordinate(
            lat=lat,
            lon=lon,
            height=height,
            epoch=epoch,
            detected_format=FORMAT_CARTESIAN,
            cartesian=(x, y, z),
        )

    lat, lon = validate_lat_lon(values[0], values[1])
    return ParsedCoordinate(
        lat=lat,
        lon=lon,
        height=values[2],
        epoch=default_epoch,
        detected_format=FORMAT_DECIMAL,
    )
