"""
Planar geometry module.

Point-to-segment projection, polygon areas and spherical distances used for
survey measurements on transformed coordinates.
"""

from eovtrans.core.geometry.planar import (
    EARTH_RADIUS_M,
    haversine_distance,
    normalize_vertices,
    point_to_segment_distance,
    polygon_area,
    polygon_signed_area,
)

__all__ = [
    "EARTH_RADIUS_M",
    "haversine_distance",
    "normalize_vertices",
    "point_to_segment_distance",
    "polygon_area",
    "polygon_signed_area",
]
