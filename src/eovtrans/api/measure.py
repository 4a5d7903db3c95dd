"""
Measurement and coordinate parsing API endpoints.
"""

import logging

from fastapi import APIRouter

from eovtrans.core.geometry import (
    haversine_distance,
    normalize_vertices,
    point_to_segment_distance,
    polygon_area,
)
from eovtrans.core.parsers import parse_coordinate_input
from eovtrans.core.units import format_area, format_distance, format_dms
from eovtrans.core.validation import validate_lat_lon
from eovtrans.models.api import (
    DistanceResponse,
    HaversineRequest,
    ParseRequest,
    ParseResponse,
    PolygonAreaRequest,
    PolygonAreaResponse,
    SegmentRequest,
    SegmentResponse,
)
from eovtrans.models.errors import ErrorResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["measure"])


@router.post(
    "/measure/segment",
    response_model=SegmentResponse,
    summary="Point to segment distance",
    description="Project a point onto a segment and report the distances.",
)
def measure_segment(request: SegmentRequest) -> SegmentResponse:
    """Project a point onto a segment."""
    projection = point_to_segment_distance(
        request.point, request.seg_start, request.seg_end, geodetic=request.geodetic
    )
    return SegmentResponse(
        distance_display=format_distance(projection.distance),
        **projection.to_dict(),
    )


@router.post(
    "/measure/polygon-area",
    response_model=PolygonAreaResponse,
    summary="Polygon area",
    description="Shoelace area of a polygon ring in square metres.",
)
def measure_polygon_area(request: PolygonAreaRequest) -> PolygonAreaResponse:
    """Compute the area of a polygon ring."""
    area = polygon_area(request.vertices)
    return PolygonAreaResponse(
        area=area,
        area_display=format_area(area),
        vertex_count=len(normalize_vertices(request.vertices)),
    )


@router.post(
    "/measure/haversine",
    response_model=DistanceResponse,
    responses={400: {"model": ErrorResponse, "description": "Invalid coordinates"}},
    summary="Great-circle distance",
)
def measure_haversine(request: HaversineRequest) -> DistanceResponse:
    """Great-circle distance between two points."""
    lat1, lon1 = validate_lat_lon(request.lat1, request.lon1)
    lat2, lon2 = validate_lat_lon(request.lat2, request.lon2)
    distance = haversine_distance(lat1, lon1, lat2, lon2)
    return DistanceResponse(distance=distance, distance_display=format_distance(distance))


@router.post(
    "/parse",
    response_model=ParseResponse,
    responses={400: {"model": ErrorResponse, "description": "Unrecognised coordinate text"}},
    summary="Parse coordinate text",
    description=(
        "Recognise DMS, decimal degree or Cartesian (X Y Z [epoch]) coordinate text."
    ),
)
def parse_coordinates(request: ParseRequest) -> ParseResponse:
    """Parse free-form coordinate text."""
    parsed = parse_coordinate_input(request.text, default_epoch=request.default_epoch)
    logger.debug(f"Parsed coordinate text as {parsed.detected_format}")
    return ParseResponse(
        lat_dms=format_dms(parsed.lat, axis="lat"),
        lon_dms=format_dms(parsed.lon, axis="lon"),
        **parsed.to_dict(),
    )
