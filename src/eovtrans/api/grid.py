"""
Correction grid API endpoints.
"""

import logging

from fastapi import APIRouter, Request, status

from eovtrans.core.config import settings
from eovtrans.core.errors import InputRangeError
from eovtrans.core.geodesy import get_default_transformer
from eovtrans.models.api import GridLoadResponse, GridStatusResponse
from eovtrans.models.errors import ErrorResponse
from eovtrans.models.geodesy import GridStatus

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/grid", tags=["grid"])


def _status_fields(grid_status: GridStatus) -> dict:
    return {
        "name": grid_status.name,
        "state": grid_status.state,
        "loaded": grid_status.loaded,
        "subgrid_count": grid_status.subgrid_count,
        "accuracy_label": grid_status.accuracy_label,
        "source_label": grid_status.source_label,
    }


@router.get(
    "/status",
    response_model=GridStatusResponse,
    summary="Correction grid status",
    description="Report whether the ETRS2EOV correction grid is loaded.",
)
def get_grid_status() -> GridStatusResponse:
    """Return the status of the EOV correction grid."""
    return GridStatusResponse(**_status_fields(get_default_transformer().grid_status()))


@router.put(
    "/{name}",
    response_model=GridLoadResponse,
    status_code=status.HTTP_200_OK,
    responses={
        400: {"model": ErrorResponse, "description": "Empty body"},
        500: {"model": ErrorResponse, "description": "Internal server error"},
    },
    summary="Upload a correction grid",
    description=(
        "Upload the raw bytes of an NTv2 (.gsb) or GeoTIFF correction grid. "
        f"Only '{settings.eov_grid_name}' is accepted. "
        f"Maximum size: {settings.max_grid_size_mb}MB. "
        "Invalid grids are rejected and the previous grid stays in use."
    ),
)
async def upload_grid(name: str, request: Request) -> GridLoadResponse:
    """
    Load a correction grid from the request body.

    Args:
        name: Grid file name
        request: Request whose body is the grid file

    Returns:
        Whether the grid was accepted, and the resulting status

    Raises:
        InputRangeError: If the body is empty
    """
    raw = await request.body()
    if not raw:
        raise InputRangeError("Grid upload body is empty", field="body")

    logger.info(f"Received grid upload '{name}' ({len(raw)} bytes)")
    transformer = get_default_transformer()
    accepted = transformer.load_correction_grid(name, raw)

    return GridLoadResponse(accepted=accepted, **_status_fields(transformer.grid_status()))
