"""
Custom exception hierarchy for eovtrans.

This module defines the exception hierarchy shared by the transformation
core and the HTTP layer, so that every failure carries a machine-readable
error code, technical details and resolution suggestions.
"""

from typing import Any, Dict, List, Optional


class EovTransException(Exception):
    """
    Base exception for all eovtrans-specific errors.

    Attributes:
        error_code: String identifier for the error type
        message: User-friendly error message
        details: Technical details for logging/debugging
        status_code: HTTP status code for API responses
        suggestions: Optional list of resolution suggestions
    """

    def __init__(
        self,
        message: str,
        error_code: str,
        status_code: int = 500,
        details: Optional[Dict[str, Any]] = None,
        suggestions: Optional[List[str]] = None,
    ):
        """
        Initialize EovTransException.

        Args:
            message: User-friendly error message
            error_code: String identifier for the error type
            status_code: HTTP status code (default: 500)
            details: Technical details for logging
            suggestions: List of suggestions for resolution
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        self.details = details or {}
        self.suggestions = suggestions or []

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert exception to dictionary for API responses.

        Returns:
            Dictionary representation of the error
        """
        return {
            "error_code": self.error_code,
            "message": self.message,
            "details": self.details,
            "suggestions": self.suggestions,
        }

    def __str__(self) -> str:
        """String representation of the exception."""
        return f"{self.error_code}: {self.message}"

    def __repr__(self) -> str:
        """Detailed string representation for debugging."""
        return (
            f"{self.__class__.__name__}("
            f"error_code='{self.error_code}', "
            f"message='{self.message}', "
            f"status_code={self.status_code})"
        )


class ConfigurationError(EovTransException):
    """
    Raised when ellipsoid, projection or application constants are invalid.

    With the fixed constant sets shipped in this package this should never
    happen at runtime; it signals a programming or deployment error.
    Maps to HTTP 500 Internal Server Error.
    """

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        suggestions: Optional[List[str]] = None,
    ):
        """
        Initialize ConfigurationError.

        Args:
            message: User-friendly error message
            config_key: Name of the constant or setting that is invalid
            details: Technical details about the configuration error
            suggestions: List of suggestions for resolution
        """
        error_details = details or {}
        if config_key:
            error_details["config_key"] = config_key

        default_suggestions = [
            "Check ellipsoid and projection constants",
            "Verify environment variables are set correctly",
        ]

        super().__init__(
            message=message,
            error_code="CONFIGURATION_ERROR",
            status_code=500,
            details=error_details,
            suggestions=suggestions or default_suggestions,
        )


class InputRangeError(EovTransException):
    """
    Raised when an input coordinate is out of range or not finite.

    Used for latitudes outside [-90, 90], longitudes outside [-180, 180],
    NaN/Infinity inputs and unparseable coordinate text.
    Maps to HTTP 400 Bad Request.
    """

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        value: Any = None,
        details: Optional[Dict[str, Any]] = None,
        suggestions: Optional[List[str]] = None,
    ):
        """
        Initialize InputRangeError.

        Args:
            message: User-friendly error message
            field: Name of the offending input (e.g. 'latitude')
            value: The rejected value
            details: Technical details about the failure
            suggestions: List of suggestions for fixing the input
        """
        error_details = details or {}
        if field:
            error_details["field"] = field
        if value is not None:
            error_details["value"] = value

        super().__init__(
            message=message,
            error_code="INPUT_RANGE_ERROR",
            status_code=400,
            details=error_details,
            suggestions=suggestions or ["Check the coordinate values and their order"],
        )


class TransformationError(EovTransException):
    """
    Raised when a transformation pipeline fails numerically.

    Used for non-convergent iterations and NaN/Infinity intermediate
    results. Always names the source frame, target frame and the stage of
    the pipeline that failed.
    Maps to HTTP 422 Unprocessable Entity.
    """

    def __init__(
        self,
        message: str,
        source_frame: Optional[str] = None,
        target_frame: Optional[str] = None,
        stage: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        suggestions: Optional[List[str]] = None,
    ):
        """
        Initialize TransformationError.

        Args:
            message: User-friendly error message
            source_frame: Source reference frame id
            target_frame: Target reference frame id
            stage: Pipeline stage that failed (e.g. 'cartesian_to_geodetic')
            details: Technical details about the failure
            suggestions: List of suggestions for resolution
        """
        error_details = details or {}
        if source_frame:
            error_details["source_frame"] = source_frame
        if target_frame:
            error_details["target_frame"] = target_frame
        if stage:
            error_details["stage"] = stage

        self.source_frame = source_frame
        self.target_frame = target_frame
        self.stage = stage

        default_suggestions = [
            "Verify the coordinates lie within the valid extent of the frames",
            "Check that the source frame matches the input coordinates",
        ]

        super().__init__(
            message=message,
            error_code="TRANSFORMATION_ERROR",
            status_code=422,
            details=error_details,
            suggestions=suggestions or default_suggestions,
        )

    def with_frames(self, source_frame: str, target_frame: str) -> "TransformationError":
        """
        Return a copy of this error tagged with the given frames.

        Low-level math functions do not know which frames they serve; the
        pipeline re-raises their errors with the frame names filled in.
        """
        return TransformationError(
            self.message,
            source_frame=self.source_frame or source_frame,
            target_frame=self.target_frame or target_frame,
            stage=self.stage,
            details={
                k: v
                for k, v in self.details.items()
                if k not in ("source_frame", "target_frame", "stage")
            },
            suggestions=self.suggestions,
        )


class GridLoadError(EovTransException):
    """
    Raised when a correction grid payload cannot be parsed.

    Never fatal: the loader reports failure and the transformer keeps using
    the Helmert fallback.
    Maps to HTTP 422 Unprocessable Entity.
    """

    def __init__(
        self,
        message: str,
        grid_name: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        suggestions: Optional[List[str]] = None,
    ):
        """
        Initialize GridLoadError.

        Args:
            message: User-friendly error message
            grid_name: Name of the grid being loaded
            details: Technical details about the parse failure
            suggestions: List of suggestions for resolution
        """
        error_details = details or {}
        if grid_name:
            error_details["grid_name"] = grid_name

        default_suggestions = [
            "Verify the payload is an NTv2 (.gsb) or GeoTIFF correction grid",
            "Check the download was not truncated",
        ]

        super().__init__(
            message=message,
            error_code="GRID_LOAD_ERROR",
            status_code=422,
            details=error_details,
            suggestions=suggestions or default_suggestions,
        )
