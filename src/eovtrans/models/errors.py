"""
Pydantic models for standardized error responses.

This module defines the structure for API error responses to ensure
consistency across all endpoints.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_serializer


class ErrorDetail(BaseModel):
    """
    Detailed information about a specific error.

    Used for validation errors with multiple field-level issues.
    """

    field: Optional[str] = Field(None, description="Field name that caused the error")
    message: str = Field(..., description="Error message for this field")
    code: Optional[str] = Field(None, description="Error code for this specific issue")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "field": "body.lat",
                "message": "Input should be less than or equal to 90",
                "code": "less_than_equal",
            }
        }
    )


class ErrorResponse(BaseModel):
    """
    Standardized error response model for all API errors.

    Attributes:
        error_code: Machine-readable error identifier (e.g., 'INPUT_RANGE_ERROR')
        message: Human-readable error message
        details: Optional dictionary with additional technical details
        timestamp: When the error occurred (UTC)
        request_id: Optional request correlation ID for tracing
        suggestions: Optional list of actionable suggestions for resolution
        errors: Optional list of detailed field-level errors
        source_frame, target_frame, stage: Where a transformation failed
        grid_name: Grid named by a grid load error
        active_accuracy: Accuracy still served after a rejected grid
    """

    error_code: str = Field(
        ...,
        description="Machine-readable error code",
        examples=["INPUT_RANGE_ERROR", "TRANSFORMATION_ERROR", "GRID_LOAD_ERROR"],
    )
    message: str = Field(
        ...,
        description="Human-readable error message",
        examples=["Latitude must lie in [-90, 90]"],
    )
    details: Optional[Dict[str, Any]] = Field(
        None,
        description="Additional technical details about the error",
    )
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="When the error occurred (UTC)",
    )
    request_id: Optional[str] = Field(
        None,
        description="Request correlation ID for tracing",
    )
    suggestions: Optional[List[str]] = Field(
        None,
        description="Actionable suggestions for resolving the error",
    )
    errors: Optional[List[ErrorDetail]] = Field(
        None,
        description="Detailed field-level errors (for validation)",
    )
    source_frame: Optional[str] = Field(
        None,
        description="Source frame of a failed transformation",
    )
    target_frame: Optional[str] = Field(
        None,
        description="Target frame of a failed transformation",
    )
    stage: Optional[str] = Field(
        None,
        description="Pipeline stage that failed",
        examples=["inverse_oblique_mercator", "cartesian_to_geodetic"],
    )
    grid_name: Optional[str] = Field(
        None,
        description="Correction grid a load error refers to",
    )
    active_accuracy: Optional[str] = Field(
        None,
        description="Accuracy the service keeps working at after a rejected grid",
    )

    @field_serializer("timestamp")
    def serialize_timestamp(self, timestamp: datetime, _info) -> str:
        """Serialize timestamp to ISO format string."""
        return timestamp.isoformat()

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "error_code": "TRANSFORMATION_ERROR",
                "message": "Inverse oblique Mercator latitude did not converge",
                "source_frame": "EOV",
                "target_frame": "ETRF2000",
                "stage": "inverse_oblique_mercator",
                "timestamp": "2026-03-10T15:30:00+00:00",
                "request_id": "550e8400-e29b-41d4-a716-446655440000",
                "suggestions": [
                    "Verify the coordinates lie within the valid extent of the frames",
                ],
            }
        }
    )
