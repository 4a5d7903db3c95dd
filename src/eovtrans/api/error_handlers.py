"""
Map eovtrans exceptions to JSON error responses.

Each domain error keeps its context in the response body. A failed
transformation names its frames and the pipeline stage. A rejected grid
names the grid and the accuracy still being served, and an out-of-range
input names the offending field. Clients can react to these without
parsing messages.
"""

import logging
from typing import Any, List, Optional, Sequence, Union

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError as PydanticValidationError

from eovtrans.core.config import settings
from eovtrans.core.errors import (
    EovTransException,
    GridLoadError,
    InputRangeError,
    TransformationError,
)
from eovtrans.core.geodesy import grid_status, list_frame_ids
from eovtrans.models.errors import ErrorDetail, ErrorResponse

logger = logging.getLogger(__name__)

COORDINATE_FIELDS = frozenset({"lat", "lon", "latitude", "longitude", "height", "epoch"})
FRAME_FIELDS = frozenset({"source_frame", "target_frame", "frame"})


def _respond(request: Request, status_code: int, body: ErrorResponse) -> JSONResponse:
    body.request_id = getattr(request.state, "request_id", None)
    return JSONResponse(
        status_code=status_code,
        content=body.model_dump(mode="json", exclude_none=True),
    )


def _error_body(exc: EovTransException, **fields: Any) -> ErrorResponse:
    return ErrorResponse(
        error_code=exc.error_code,
        message=exc.message,
        details=exc.details or None,
        suggestions=exc.suggestions or None,
        **fields,
    )


async def transformation_error_handler(
    request: Request, exc: TransformationError
) -> JSONResponse:
    """Report the frames and stage of a failed transformation."""
    logger.warning(
        f"Transformation {exc.source_frame or '?'}->{exc.target_frame or '?'} "
        f"failed: {exc.message}",
        extra={
            "source_frame": exc.source_frame,
            "target_frame": exc.target_frame,
            "stage": exc.stage,
        },
    )
    body = _error_body(
        exc,
        source_frame=exc.source_frame,
        target_frame=exc.target_frame,
        stage=exc.stage,
    )
    return _respond(request, exc.status_code, body)


async def grid_load_error_handler(request: Request, exc: GridLoadError) -> JSONResponse:
    """Report a rejected grid together with the accuracy still being served."""
    grid_name = exc.details.get("grid_name")
    active = grid_status()
    logger.warning(
        f"Correction grid rejected: {exc.message}; serving {active.accuracy_label}",
        extra={"grid_name": grid_name},
    )
    body = _error_body(exc, grid_name=grid_name, active_accuracy=active.accuracy_label)
    return _respond(request, exc.status_code, body)


async def input_range_error_handler(request: Request, exc: InputRangeError) -> JSONResponse:
    """Report an out-of-range input as a field-level error."""
    field = exc.details.get("field")
    logger.info(f"Rejected input: {exc.message}", extra={"field": field})
    errors = [ErrorDetail(field=field, message=exc.message, code="out_of_range")] if field else None
    return _respond(request, exc.status_code, _error_body(exc, errors=errors))


async def eovtrans_exception_handler(
    request: Request, exc: EovTransException
) -> JSONResponse:
    """Fallback for the remaining domain errors, mainly ConfigurationError."""
    log = logger.error if exc.status_code >= 500 else logger.warning
    log(f"{exc.error_code}: {exc.message}", extra={"details": exc.details})
    return _respond(request, exc.status_code, _error_body(exc))


def _validation_suggestions(fields: Sequence[str]) -> List[str]:
    suggestions = []
    if any(field in COORDINATE_FIELDS for field in fields):
        suggestions.append(
            "Latitude must lie in [-90, 90] and longitude in [-180, 180], in decimal degrees"
        )
    if any(field in FRAME_FIELDS for field in fields):
        suggestions.append(f"Supported frames: {', '.join(list_frame_ids())}")
    return suggestions or ["Check the request format and field values"]


async def validation_error_handler(
    request: Request, exc: Union[RequestValidationError, PydanticValidationError]
) -> JSONResponse:
    """List every invalid request field, with coordinate and frame hints."""
    errors = []
    leaf_fields = []
    for error in exc.errors():
        location = [str(part) for part in error.get("loc", [])]
        if location:
            leaf_fields.append(location[-1])
        errors.append(
            ErrorDetail(
                field=".".join(location),
                message=error.get("msg", "Validation error"),
                code=error.get("type", "validation_error"),
            )
        )

    logger.info(
        f"Request validation failed for {', '.join(e.field for e in errors if e.field)}"
    )
    body = ErrorResponse(
        error_code="VALIDATION_ERROR",
        message="Request validation failed",
        suggestions=_validation_suggestions(leaf_fields),
        errors=errors,
    )
    return _respond(request, status.HTTP_422_UNPROCESSABLE_ENTITY, body)


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Hide unexpected failures behind a generic 500."""
    logger.error(f"Unhandled {type(exc).__name__}: {exc}", exc_info=exc)

    details: Optional[dict] = None
    if settings.environment == "development":
        details = {"exception_type": type(exc).__name__, "exception_message": str(exc)}

    body = ErrorResponse(
        error_code="INTERNAL_ERROR",
        message="An unexpected error occurred",
        details=details,
        suggestions=["Try again later"],
    )
    return _respond(request, status.HTTP_500_INTERNAL_SERVER_ERROR, body)


def register_error_handlers(app: FastAPI) -> None:
    """Register the handlers; the most specific exception class wins."""
    app.add_exception_handler(TransformationError, transformation_error_handler)
    app.add_exception_handler(GridLoadError, grid_load_error_handler)
    app.add_exception_handler(InputRangeError, input_range_error_handler)
    app.add_exception_handler(EovTransException, eovtrans_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(PydanticValidationError, validation_error_handler)
    app.add_exception_handler(Exception, generic_exception_handler)
