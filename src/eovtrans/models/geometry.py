"""
Data models for planar measurements and coordinate notation.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple


@dataclass(frozen=True)
class SegmentProjection:
    """
    Result of projecting a point onto a segment.

    Attributes:
        distance: Distance from the point to the closest point on the segment
        closest_point: Closest point on the segment, (x, y)
        t: Unclamped line parameter of the orthogonal projection
        perpendicular_distance: Distance to the infinite line through the segment
        unclamped_projection: Orthogonal projection onto the infinite line, (x, y)
    """

    distance: float
    closest_point: Tuple[float, float]
    t: float
    perpendicular_distance: float
    unclamped_projection: Tuple[float, float]

    @property
    def within_segment(self) -> bool:
        """True if the orthogonal projection falls on the segment."""
        return 0.0 <= self.t <= 1.0

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "distance": self.distance,
            "closest_point": list(self.closest_point),
            "t": self.t,
            "perpendicular_distance": self.perpendicular_distance,
            "unclamped_projection": list(self.unclamped_projection),
            "within_segment": self.within_segment,
        }


@dataclass(frozen=True)
class DMS:
    """
    Angle in degrees, minutes and seconds.

    The sign is carried separately so that angles between -1 and 0 degrees
    keep their sign when `degrees` is zero.

    Attributes:
        degrees: Whole degrees (non-negative)
        minutes: Whole minutes, 0-59
        seconds: Seconds, 0 <= seconds < 60
        sign: 1 or -1
    """

    degrees: int
    minutes: int
    seconds: float
    sign: int = 1

    @property
    def is_negative(self) -> bool:
        """True for southern latitudes and western longitudes."""
        return self.sign < 0


@dataclass(frozen=True)
class ParsedCoordinate:
    """
    Coordinate recovered from free-form text.

    Attributes:
        lat: Latitude in degrees
        lon: Longitude in degrees
        height: Ellipsoidal height in metres
        epoch: Epoch (decimal year)
        detected_format: Notation the text was recognised as
        cartesian: Source (X, Y, Z) when the text held Cartesian values
    """

    lat: float
    lon: float
    height: float
    epoch: float
    detected_format: str
    cartesian: Optional[Tuple[float, float, float]] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "lat": self.lat,
            "lon": self.lon,
            "height": self.height,
            "epoch": self.epoch,
            "detected_format": self.detected_format,
            "cartesian": list(self.cartesian) if self.cartesian else None,
        }
