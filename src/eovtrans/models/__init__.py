"""
Data models and schemas.
"""

from .errors import ErrorDetail, ErrorResponse
from .geodesy import (
    AccuracyTier,
    AngleUnit,
    CartesianPoint,
    CoordinatePoint,
    DatumTransformParams,
    EffectiveParams,
    Ellipsoid,
    EovResult,
    FrameResult,
    GeodeticPoint,
    GridState,
    GridStatus,
    LengthUnit,
    ObliqueMercatorDefinition,
    ProjectedPoint,
    ReferenceFrame,
    ScaleUnit,
    StepKind,
    TransformPath,
    TransformResult,
    TransformStep,
    UtmCoordinate,
)
from .geometry import DMS, ParsedCoordinate, SegmentProjection

__all__ = [
    # Error models
    "ErrorDetail",
    "ErrorResponse",
    # Geodesy models
    "AccuracyTier",
    "AngleUnit",
    "CartesianPoint",
    "CoordinatePoint",
    "DatumTransformParams",
    "EffectiveParams",
    "Ellipsoid",
    "EovResult",
    "FrameResult",
    "GeodeticPoint",
    "GridState",
    "GridStatus",
    "LengthUnit",
    "ObliqueMercatorDefinition",
    "ProjectedPoint",
    "ReferenceFrame",
    "ScaleUnit",
    "StepKind",
    "TransformPath",
    "TransformResult",
    "TransformStep",
    "UtmCoordinate",
    # Geometry models
    "DMS",
    "ParsedCoordinate",
    "SegmentProjection",
]
