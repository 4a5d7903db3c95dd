"""
Coordinate transformation API endpoints.
"""

import logging

from fastapi import APIRouter

from eovtrans.core.geodesy import (
    FRAME_ALIASES,
    FRAMES,
    get_default_transformer,
    get_utm_epsg,
    validate_transformation_accuracy,
)
from eovtrans.core.errors import InputRangeError
from eovtrans.core.units import format_distance
from eovtrans.models.api import (
    EovProjectRequest,
    EovResultResponse,
    EovUnprojectRequest,
    FrameEpochRequest,
    FrameInfo,
    FrameListResponse,
    FrameResultResponse,
    FrameShiftResponse,
    ReferenceCheckRequest,
    ReferenceCheckResponse,
    TransformRequest,
    UtmRequest,
    UtmResponse,
)
from eovtrans.models.errors import ErrorResponse
from eovtrans.models.geodesy import EovResult, FrameResult

logger = logging.getLogger(__name__)

router = APIRouter(tags=["transform"])

_ERROR_RESPONSES = {
    400: {"model": ErrorResponse, "description": "Invalid coordinates, frame or epoch"},
    422: {"model": ErrorResponse, "description": "Transformation failed"},
    500: {"model": ErrorResponse, "description": "Internal server error"},
}


def _frame_response(result: FrameResult) -> FrameResultResponse:
    return FrameResultResponse(**result.to_dict())


def _eov_response(result: EovResult) -> EovResultResponse:
    return EovResultResponse(**result.to_dict())


def _shift_response(result: FrameResult) -> FrameShiftResponse:
    return FrameShiftResponse(
        **result.to_dict(), displacement_display=format_distance(result.displacement_3d)
    )


@router.get(
    "/frames",
    response_model=FrameListResponse,
    summary="List reference frames",
    description="List the supported reference frames and the aliases accepted for them.",
)
def list_frames() -> FrameListResponse:
    """Return the frame registry."""
    frames = [
        FrameInfo(
            id=frame.id,
            name=frame.name,
            ellipsoid=frame.ellipsoid.name,
            projected=frame.is_projected,
            epsg=frame.epsg,
        )
        for frame in FRAMES.values()
    ]
    return FrameListResponse(frames=frames, aliases=dict(FRAME_ALIASES))


@router.post(
    "/transform",
    response_model=FrameResultResponse,
    responses=_ERROR_RESPONSES,
    summary="Transform between frames",
    description=(
        "Transform geodetic coordinates between ITRF20, ITRF2014, ETRF2000, ETRS89 "
        "and EOV (HD72 latitude/longitude). The response reports the accuracy tier "
        "of the path actually used."
    ),
)
def transform(request: TransformRequest) -> FrameResultResponse:
    """
    Transform a point between two frames.

    Args:
        request: Coordinates, frames and optional epoch

    Returns:
        Transformed coordinates with accuracy metadata
    """
    result = get_default_transformer().to_target_frame(
        request.lat,
        request.lon,
        request.source_frame,
        request.target_frame,
        epoch=request.epoch,
        height=request.height,
    )
    return _frame_response(result)


@router.post(
    "/eov/project",
    response_model=EovResultResponse,
    responses=_ERROR_RESPONSES,
    summary="Project to EOV",
    description=(
        "Transform geodetic coordinates to EOV Y/X. Uses the ETRS2EOV correction "
        "grid when loaded and the point is covered, the Helmert parameters otherwise."
    ),
)
def project_eov(request: EovProjectRequest) -> EovResultResponse:
    """Project a point to EOV."""
    result = get_default_transformer().project_to_eov(
        request.lat,
        request.lon,
        source_frame=request.source_frame,
        height=request.height,
        epoch=request.epoch,
    )
    return _eov_response(result)


@router.post(
    "/eov/unproject",
    response_model=FrameResultResponse,
    responses=_ERROR_RESPONSES,
    summary="Convert EOV to geodetic",
    description="Transform EOV Y/X to geodetic coordinates in the target frame.",
)
def unproject_eov(request: EovUnprojectRequest) -> FrameResultResponse:
    """Convert EOV Y/X to geodetic coordinates."""
    result = get_default_transformer().unproject_from_eov(
        request.y, request.x, target_frame=request.target_frame, epoch=request.epoch
    )
    return _frame_response(result)


@router.post(
    "/itrf20/etrs89",
    response_model=FrameShiftResponse,
    responses=_ERROR_RESPONSES,
    summary="ITRF20 to ETRS89",
    description="Transform ITRF20 to ETRS89 and report the parameters applied at the epoch.",
)
def itrf20_to_etrs89(request: FrameEpochRequest) -> FrameShiftResponse:
    """Transform ITRF20 coordinates to ETRS89 at an epoch."""
    result = get_default_transformer().itrf20_to_etrs89(
        request.lat, request.lon, request.height, request.epoch
    )
    return _shift_response(result)


@router.post(
    "/etrs89/itrf20",
    response_model=FrameShiftResponse,
    responses=_ERROR_RESPONSES,
    summary="ETRS89 to ITRF20",
    description="Transform ETRS89 to ITRF20 and report the parameters applied at the epoch.",
)
def etrs89_to_itrf20(request: FrameEpochRequest) -> FrameShiftResponse:
    """Transform ETRS89 coordinates to ITRF20 at an epoch."""
    result = get_default_transformer().etrs89_to_itrf20(
        request.lat, request.lon, request.height, request.epoch
    )
    return _shift_response(result)


@router.post(
    "/utm",
    response_model=UtmResponse,
    responses=_ERROR_RESPONSES,
    summary="Project to UTM",
    description="Project geodetic coordinates to UTM on the ellipsoid of the given frame.",
)
def project_utm(request: UtmRequest) -> UtmResponse:
    """Project a point to UTM and report the zone's EPSG code."""
    utm = get_default_transformer().geodetic_to_utm(
        request.lat, request.lon, frame=request.frame, zone=request.zone
    )

    datum = "WGS84" if request.frame.upper() in ("WGS84", "ITRF2014", "ITRF20") else "ETRS89"
    try:
        epsg = get_utm_epsg(utm.zone, utm.hemisphere == "N", datum)
    except InputRangeError:
        # ETRS89 / UTM has no southern zones
        epsg = None

    return UtmResponse(
        zone=utm.zone,
        band=utm.band,
        label=utm.label,
        hemisphere=utm.hemisphere,
        easting=utm.easting,
        northing=utm.northing,
        convergence=utm.convergence,
        scale_factor=utm.scale_factor,
        epsg=epsg,
    )


@router.post(
    "/reference-check",
    response_model=ReferenceCheckResponse,
    responses=_ERROR_RESPONSES,
    summary="Cross-check against PROJ",
    description=(
        "Run the Helmert path natively and through PROJ and report the "
        "horizontal difference in metres."
    ),
)
def reference_check(request: ReferenceCheckRequest) -> ReferenceCheckResponse:
    """Compare the native result with pyproj."""
    report = validate_transformation_accuracy(
        request.lat,
        request.lon,
        source_frame=request.source_frame,
        target_frame=request.target_frame,
        epoch=request.epoch,
        tolerance_m=request.tolerance_m,
    )
    return ReferenceCheckResponse(
        source_frame=report["source_frame"],
        target_frame=report["target_frame"],
        native=list(report["native"]),
        reference=list(report["reference"]),
        difference_m=report["difference_m"],
        tolerance_m=report["tolerance_m"],
        within_tolerance=report["within_tolerance"],
    )
