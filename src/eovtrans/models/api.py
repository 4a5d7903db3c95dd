"""
Pydantic models for the HTTP API.

Range checks on coordinates happen in the transformation core, so that
out-of-range values produce the same INPUT_RANGE_ERROR response whether
they arrive through the API or the library.
"""

from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from eovtrans.models.geodesy import AccuracyTier, GridState


class TransformRequest(BaseModel):
    """
    Geodetic transformation between two reference frames.

    Attributes:
        lat: Latitude in degrees
        lon: Longitude in degrees
        height: Ellipsoidal height in metres
        source_frame: Source frame id or alias
        target_frame: Target frame id or alias
        epoch: Epoch for time-dependent parameters (default from settings)
    """

    lat: float = Field(..., description="Latitude in degrees")
    lon: float = Field(..., description="Longitude in degrees")
    height: float = Field(0.0, description="Ellipsoidal height in metres")
    source_frame: str = Field(..., description="Source frame id or alias", min_length=1)
    target_frame: str = Field(..., description="Target frame id or alias", min_length=1)
    epoch: Optional[float] = Field(None, description="Epoch as a decimal year")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "lat": 47.4979,
                "lon": 19.0402,
                "height": 130.0,
                "source_frame": "ITRF20",
                "target_frame": "ETRS89",
                "epoch": 2026.0,
            }
        }
    )


class FrameEpochRequest(BaseModel):
    """Geodetic coordinates with an optional epoch."""

    lat: float = Field(..., description="Latitude in degrees")
    lon: float = Field(..., description="Longitude in degrees")
    height: float = Field(0.0, description="Ellipsoidal height in metres")
    epoch: Optional[float] = Field(None, description="Epoch as a decimal year")


class EovProjectRequest(BaseModel):
    """Geodetic coordinates to project to EOV."""

    lat: float = Field(..., description="Latitude in degrees")
    lon: float = Field(..., description="Longitude in degrees")
    height: float = Field(0.0, description="Ellipsoidal height in metres")
    source_frame: str = Field("ETRF2000", description="Source frame id or alias")
    epoch: Optional[float] = Field(None, description="Epoch as a decimal year")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {"lat": 46.940890424, "lon": 19.234320340, "source_frame": "ETRF2000"}
        }
    )


class EovUnprojectRequest(BaseModel):
    """EOV Y/X to convert to geodetic coordinates."""

    y: float = Field(..., description="EOV Y (easting) in metres")
    x: float = Field(..., description="EOV X (northing) in metres")
    target_frame: str = Field("ETRF2000", description="Target frame id or alias")
    epoch: Optional[float] = Field(None, description="Epoch as a decimal year")


class UtmRequest(BaseModel):
    """Geodetic coordinates to project to UTM."""

    lat: float = Field(..., description="Latitude in degrees")
    lon: float = Field(..., description="Longitude in degrees")
    frame: str = Field("ETRS89", description="Frame whose ellipsoid is used")
    zone: Optional[int] = Field(None, description="Force a zone (1-60)", ge=1, le=60)


class FrameResultResponse(BaseModel):
    """Geodetic coordinates in a target frame with accuracy metadata."""

    lat: float
    lon: float
    height: float
    frame: str
    accuracy_tier: AccuracyTier
    accuracy_label: str
    source_label: str


class EffectiveParamsResponse(BaseModel):
    """Bursa-Wolf parameters evaluated at an epoch."""

    tx_mm: float = Field(..., description="X translation in millimetres")
    ty_mm: float = Field(..., description="Y translation in millimetres")
    tz_mm: float = Field(..., description="Z translation in millimetres")
    rx_mas: float = Field(..., description="X rotation in milliarcseconds")
    ry_mas: float = Field(..., description="Y rotation in milliarcseconds")
    rz_mas: float = Field(..., description="Z rotation in milliarcseconds")
    scale_ppm: float = Field(..., description="Scale difference in parts per million")


class FrameShiftResponse(FrameResultResponse):
    """Frame change result with the parameters applied and the 3-D shift."""

    epoch: float = Field(..., description="Epoch the parameters were evaluated at")
    effective_params: EffectiveParamsResponse
    displacement_3d: float = Field(..., description="Distance the point moved, in metres")
    displacement_display: str = Field(..., description="Displacement formatted for display")


class EovResultResponse(BaseModel):
    """EOV planar coordinates with accuracy metadata."""

    y: float = Field(..., description="EOV Y (easting) in metres")
    x: float = Field(..., description="EOV X (northing) in metres")
    accuracy_tier: AccuracyTier
    accuracy_label: str
    source_label: str


class UtmResponse(BaseModel):
    """UTM coordinate with zone metadata."""

    zone: int
    band: str
    label: str
    hemisphere: str
    easting: float
    northing: float
    convergence: float = Field(..., description="Meridian convergence in degrees")
    scale_factor: float
    epsg: Optional[int] = Field(None, description="EPSG code of the UTM zone, if defined")


class GridStatusResponse(BaseModel):
    """State of the EOV correction grid."""

    name: str
    state: GridState
    loaded: bool
    subgrid_count: int
    accuracy_label: str
    source_label: str


class GridLoadResponse(GridStatusResponse):
    """Outcome of a grid upload."""

    accepted: bool = Field(..., description="True if the uploaded grid is now in use")


class FrameInfo(BaseModel):
    """A supported reference frame."""

    id: str
    name: str
    ellipsoid: str
    projected: bool
    epsg: Optional[int] = None


class FrameListResponse(BaseModel):
    """Supported frames and the aliases that resolve to them."""

    frames: List[FrameInfo]
    aliases: Dict[str, str]


class SegmentRequest(BaseModel):
    """A point and a segment, as [x, y] pairs."""

    point: List[float] = Field(..., min_length=2, max_length=2)
    seg_start: List[float] = Field(..., min_length=2, max_length=2)
    seg_end: List[float] = Field(..., min_length=2, max_length=2)
    geodetic: bool = Field(False, description="Inputs are [lon, lat] degrees")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {"point": [5.0, 5.0], "seg_start": [0.0, 0.0], "seg_end": [10.0, 0.0]}
        }
    )


class SegmentResponse(BaseModel):
    """Projection of a point onto a segment."""

    distance: float
    distance_display: str
    closest_point: List[float]
    t: float
    perpendicular_distance: float
    unclamped_projection: List[float]
    within_segment: bool


class PolygonAreaRequest(BaseModel):
    """Polygon ring as a list of [x, y] vertices."""

    vertices: List[List[float]] = Field(..., description="Ring vertices; closing vertex optional")


class PolygonAreaResponse(BaseModel):
    """Polygon area in square metres."""

    area: float
    area_display: str
    vertex_count: int


class HaversineRequest(BaseModel):
    """Two geodetic points."""

    lat1: float
    lon1: float
    lat2: float
    lon2: float


class DistanceResponse(BaseModel):
    """Distance in metres."""

    distance: float
    distance_display: str


class ParseRequest(BaseModel):
    """Free-form coordinate text."""

    text: str = Field(..., description="Coordinate text in DMS, decimal or Cartesian form")
    default_epoch: Optional[float] = Field(None, description="Epoch when the text has none")

    model_config = ConfigDict(
        json_schema_extra={"example": {"text": "47°30'4.18\" N 19°2'23.36\" E 130.5"}}
    )


class ParseResponse(BaseModel):
    """Coordinate recovered from text."""

    lat: float
    lon: float
    height: float
    epoch: float
    detected_format: str
    cartesian: Optional[List[float]] = None
    lat_dms: str
    lon_dms: str


class ReferenceCheckRequest(BaseModel):
    """Point to cross-check against PROJ."""

    lat: float
    lon: float
    source_frame: str = "ETRF2000"
    target_frame: str = "EOV"
    epoch: Optional[float] = None
    tolerance_m: float = Field(0.01, gt=0)


class ReferenceCheckResponse(BaseModel):
    """Native and PROJ results side by side."""

    source_frame: str
    target_frame: str
    native: List[float]
    reference: List[float]
    difference_m: float
    tolerance_m: float
    within_tolerance: bool
