"""
Planar measurement utilities.

Distances, point-to-segment projection and polygon areas on projected (EOV)
coordinates, plus a spherical distance for geodetic coordinates.

Points may be given as `(x, y)` sequences, `{"x": .., "y": ..}` mappings,
`{"lat": .., "lon": ..}` mappings (x = lon, y = lat) or shapely Points.
"""

import logging
import math
from typing import Any, Iterable, List, Mapping, Optional, Sequence, Tuple

from shapely.geometry import LinearRing, LineString, Point, Polygon
from shapely.geometry.base import BaseGeometry

from eovtrans.core.errors import InputRangeError
from eovtrans.models.geometry import SegmentProjection

logger = logging.getLogger(__name__)

EARTH_RADIUS_M = 6371000.0

# Squared segment length below which a segment is treated as a point
PLANAR_EPSILON = 1e-10
GEODETIC_EPSILON = 1e-15


def _coerce_xy(value: Any) -> Optional[Tuple[float, float]]:
    """Extract a finite (x, y) pair, or None if the value is not usable."""
    try:
        if isinstance(value, Point):
            x, y = value.x, value.y
        elif isinstance(value, Mapping):
            if "x" in value and "y" in value:
                x, y = value["x"], value["y"]
            elif "lat" in value and "lon" in value:
                x, y = value["lon"], value["lat"]
            else:
                return None
        elif isinstance(value, (str, bytes)):
            return None
        elif isinstance(value, Sequence) or hasattr(value, "__len__"):
            if len(value) < 2:
                return None
            x, y = value[0], value[1]
        else:
            return None
        x = float(x)
        y = float(y)
    except (TypeError, ValueError, IndexError):
        return None

    if not (math.isfinite(x) and math.isfinite(y)):
        return None
    return x, y


def _require_xy(value: Any, field: str) -> Tuple[float, float]:
    xy = _coerce_xy(value)
    if xy is None:
        raise InputRangeError(
            f"{field} must be an (x, y) pair, an x/y or lat/lon mapping, or a Point",
            field=field,
        )
    return xy


def point_to_segment_distance(
    point: Any,
    seg_start: Any,
    seg_end: Any,
    geodetic: bool = False,
) -> SegmentProjection:
    """
    Project a point onto a segment.

    `t` is the unclamped parameter of the orthogonal projection onto the
    line through the segment; `closest_point` clamps it to [0, 1]. A
    segment shorter than the tolerance is treated as its start point.

    Args:
        point: The point
        seg_start: Segment start
        seg_end: Segment end
        geodetic: Inputs are lat/lon degrees; uses a tighter degeneracy
            tolerance (1e-15 instead of 1e-10)

    Returns:
        SegmentProjection with (x, y) tuples; for geodetic inputs x is lon

    Raises:
        InputRangeError: If any input is not a usable point
    """
    px, py = _require_xy(point, "point")
    x1, y1 = _require_xy(seg_start, "seg_start")
    x2, y2 = _require_xy(seg_end, "seg_end")

    epsilon = GEODETIC_EPSILON if geodetic else PLANAR_EPSILON

    dx = x2 - x1
    dy = y2 - y1
    length_sq = dx * dx + dy * dy

    if length_sq < epsilon:
        distance = math.hypot(px - x1, py - y1)
        return SegmentProjection(
            distance=distance,
            closest_point=(x1, y1),
            t=0.0,
            perpendicular_distance=distance,
            unclamped_projection=(x1, y1),
        )

    t = ((px - x1) * dx + (py - y1) * dy) / length_sq

    proj_x = x1 + t * dx
    proj_y = y1 + t * dy
    perpendicular = math.hypot(px - proj_x, py - proj_y)

    t_clamped = max(0.0, min(1.0, t))
    closest_x = x1 + t_clamped * dx
    closest_y = y1 + t_clamped * dy

    return SegmentProjection(
        distance=math.hypot(px - closest_x, py - closest_y),
        closest_point=(closest_x, closest_y),
        t=t,
        perpendicular_distance=perpendicular,
        unclamped_projection=(proj_x, proj_y),
    )


def normalize_vertices(vertices: Any) -> List[Tuple[float, float]]:
    """
    Turn polygon input into a list of finite (x, y) vertices.

    Accepts a shapely Polygon (its exterior ring), LinearRing or LineString,
    or an iterable of points. Malformed and non-finite entries are skipped,
    and a closing vertex equal to the first is dropped.

    Args:
        vertices: Polygon input

    Returns:
        List of (x, y) tuples
    """
    if vertices is None:
        return []

    if isinstance(vertices, Polygon):
        raw: Iterable[Any] = vertices.exterior.coords
    elif isinstance(vertices, (LinearRing, LineString)):
        raw = vertices.coords
    elif isinstance(vertices, BaseGeometry):
        logger.debug(f"Unsupported geometry type for area: {vertices.geom_type}")
        return []
    else:
        try:
            raw = list(vertices)
        except TypeError:
            return []

    points: List[Tuple[float, float]] = []
    skipped = 0
    for vertex in raw:
        xy = _coerce_xy(vertex)
        if xy is None:
            skipped += 1
            continue
        points.append(xy)

    if skipped:
        logger.debug(f"Skipped {skipped} malformed polygon vertices")

    if len(points) > 1 and points[0] == points[-1]:
        points.pop()
    return points


def polygon_signed_area(vertices: Any) -> float:
    """
    Signed shoelace area of a polygon ring.

    Positive for counter-clockwise rings in a right-handed (x east,
    y north) system. Fewer than 3 valid vertices give 0.
    """
    points = normalize_vertices(vertices)
    if len(points) < 3:
        return 0.0

    total = 0.0
    for (x1, y1), (x2, y2) in zip(points, points[1:] + points[:1]):
        total += x1 * y2 - x2 * y1
    return total / 2.0


def polygon_area(vertices: Any) -> float:
    """
    Area of a polygon ring in square units of its coordinates.

    Args:
        vertices: (x, y) pairs, x/y mappings, or a shapely Polygon/LinearRing/LineString

    Returns:
        Non-negative area; 0 for fewer than 3 valid vertices
    """
    return abs(polygon_signed_area(vertices))


def haversine_distance(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """
    Great-circle distance on a sphere of radius 6,371,000 m.

    Args:
        lat1: Latitude of the first point in degrees
        lon1: Longitude of the first point in degrees
        lat2: Latitude of the second point in degrees
        lon2: Longitude of the second point in degrees

    Returns:
        Distance in metres
    """
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    dphi = phi2 - phi1
    dlam = math.radians(lon2 - lon1)

    h = math.sin(dphi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(dlam / 2) ** 2
    return 2 * EARTH_RADIUS_M * math.asin(min(1.0, math.sqrt(h)))
