"""
Data models for reference frames, datum parameters and coordinate points.

This module defines the immutable configuration types (ellipsoids, frames,
projection definitions, datum parameter sets) and the value types flowing
through a transformation (points, paths, results).
"""

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Dict, Optional, Tuple, Union

from eovtrans.core.errors import ConfigurationError

if TYPE_CHECKING:
    from eovtrans.core.geodesy.grid import CorrectionGrid


class LengthUnit(str, Enum):
    """Units of datum translations."""

    METRE = "m"
    MILLIMETRE = "mm"


class AngleUnit(str, Enum):
    """Units of datum rotations."""

    ARCSEC = "arcsec"
    MILLIARCSEC = "mas"


class ScaleUnit(str, Enum):
    """Units of the datum scale difference."""

    PPM = "ppm"
    UNITLESS = "unitless"


class AccuracyTier(str, Enum):
    """
    Expected accuracy class of a transformation.

    Ordered from finest to coarsest; a path is as accurate as its
    coarsest step.
    """

    EXACT = "exact"
    FRAME = "frame"
    GRID = "grid"
    HELMERT = "helmert"

    @property
    def label(self) -> str:
        """Human-readable accuracy label."""
        return _TIER_LABELS[self]

    @property
    def rank(self) -> int:
        """Position in the finest-to-coarsest ordering."""
        return _TIER_ORDER.index(self)

    @classmethod
    def coarsest(cls, tiers: "Tuple[AccuracyTier, ...]") -> "AccuracyTier":
        """Return the coarsest of the given tiers (EXACT for none)."""
        if not tiers:
            return cls.EXACT
        return max(tiers, key=lambda tier: tier.rank)


_TIER_ORDER = (
    AccuracyTier.EXACT,
    AccuracyTier.FRAME,
    AccuracyTier.GRID,
    AccuracyTier.HELMERT,
)

_TIER_LABELS = {
    AccuracyTier.EXACT: "exact (identity)",
    AccuracyTier.FRAME: "±1-2 cm (7-parameter)",
    AccuracyTier.GRID: "±10-50 mm (ETRS2EOV)",
    AccuracyTier.HELMERT: "±200-500 cm (Helmert)",
}


class GridState(str, Enum):
    """Load state of a correction grid source."""

    UNLOADED = "unloaded"
    LOADED = "loaded"


class StepKind(str, Enum):
    """Kind of a single transformation step between geodetic coordinates."""

    IDENTITY = "identity"
    BURSA_WOLF = "bursa_wolf"
    HELMERT = "helmert"
    GRID = "grid"


@dataclass(frozen=True)
class Ellipsoid:
    """
    Reference ellipsoid with its derived constants.

    Only `a`, `f` and `name` are given; `b`, `e2`, `ep2` and `n` are computed
    together during construction so they can never disagree.

    Attributes:
        a: Semi-major axis in metres
        f: Flattening
        name: Ellipsoid name (e.g. 'GRS80')
        b: Semi-minor axis in metres
        e2: First eccentricity squared
        ep2: Second eccentricity squared
        n: Third flattening
    """

    a: float
    f: float
    name: str = ""
    b: float = field(init=False)
    e2: float = field(init=False)
    ep2: float = field(init=False)
    n: float = field(init=False)

    def __post_init__(self) -> None:
        """Validate axis and flattening, then derive the remaining constants."""
        if not math.isfinite(self.a) or self.a <= 0:
            raise ConfigurationError(
                f"Semi-major axis must be a positive finite number, got {self.a}",
                config_key=f"{self.name or 'ellipsoid'}.a",
            )
        if not math.isfinite(self.f) or not 0 < self.f < 1:
            raise ConfigurationError(
                f"Flattening must lie in (0, 1), got {self.f}",
                config_key=f"{self.name or 'ellipsoid'}.f",
            )

        f = self.f
        object.__setattr__(self, "b", self.a * (1 - f))
        object.__setattr__(self, "e2", 2 * f - f * f)
        object.__setattr__(self, "ep2", f * (2 - f) / ((1 - f) ** 2))
        object.__setattr__(self, "n", f / (2 - f))

    @property
    def e(self) -> float:
        """First eccentricity."""
        return math.sqrt(self.e2)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "name": self.name,
            "a": self.a,
            "f": self.f,
            "inverse_flattening": 1 / self.f,
            "b": self.b,
            "e2": self.e2,
            "ep2": self.ep2,
            "n": self.n,
        }


@dataclass(frozen=True)
class ObliqueMercatorDefinition:
    """
    Parameters of a Swiss-style oblique Mercator projection.

    Attributes:
        lat0: Latitude of the projection centre in degrees
        lon0: Longitude of the projection centre in degrees
        k0: Scale factor at the projection centre
        false_easting: False easting in metres
        false_northing: False northing in metres
        ellipsoid: Ellipsoid the projection is defined on
    """

    lat0: float
    lon0: float
    k0: float
    false_easting: float
    false_northing: float
    ellipsoid: Ellipsoid


@dataclass(frozen=True)
class ReferenceFrame:
    """
    Static description of a reference frame.

    Attributes:
        id: Canonical frame identifier (e.g. 'ETRF2000')
        name: Human-readable name
        ellipsoid: Ellipsoid geodetic coordinates in this frame refer to
        projection: Map projection for frames with planar coordinates (EOV only)
        proj_geodetic: PROJ definition of the geodetic coordinates
        proj_projected: PROJ definition of the projected coordinates
        epsg: EPSG code of the frame's primary CRS, if any
    """

    id: str
    name: str
    ellipsoid: Ellipsoid
    projection: Optional[ObliqueMercatorDefinition] = None
    proj_geodetic: Optional[str] = None
    proj_projected: Optional[str] = None
    epsg: Optional[int] = None

    @property
    def is_projected(self) -> bool:
        """True if the frame carries planar coordinates."""
        return self.projection is not None

    def __str__(self) -> str:
        """String representation."""
        return self.id


@dataclass(frozen=True)
class DatumTransformParams:
    """
    Seven-parameter datum transformation with optional epoch rates.

    Values are stored in the units declared by `length_unit`, `angle_unit`
    and `scale_unit`; rates use the same units per year.

    Attributes:
        name: Identifier of the parameter set
        translation: (tx, ty, tz) at `epoch0`
        rotation: (rx, ry, rz) at `epoch0`
        scale: Scale difference at `epoch0`
        translation_rate: (tx, ty, tz) change per year
        rotation_rate: (rx, ry, rz) change per year
        scale_rate: Scale change per year
        epoch0: Reference epoch (decimal year); None for static sets
        length_unit: Unit of translations
        angle_unit: Unit of rotations
        scale_unit: Unit of scale
    """

    name: str
    translation: Tuple[float, float, float]
    rotation: Tuple[float, float, float] = (0.0, 0.0, 0.0)
    scale: float = 0.0
    translation_rate: Tuple[float, float, float] = (0.0, 0.0, 0.0)
    rotation_rate: Tuple[float, float, float] = (0.0, 0.0, 0.0)
    scale_rate: float = 0.0
    epoch0: Optional[float] = None
    length_unit: LengthUnit = LengthUnit.METRE
    angle_unit: AngleUnit = AngleUnit.ARCSEC
    scale_unit: ScaleUnit = ScaleUnit.PPM

    @property
    def is_time_dependent(self) -> bool:
        """True if any rate is non-zero."""
        return any(self.translation_rate) or any(self.rotation_rate) or bool(self.scale_rate)


@dataclass(frozen=True)
class EffectiveParams:
    """
    Datum parameters evaluated at an epoch, in SI units.

    Attributes:
        tx, ty, tz: Translations in metres
        rx, ry, rz: Rotations in radians
        s: Dimensionless scale difference
    """

    tx: float
    ty: float
    tz: float
    rx: float = 0.0
    ry: float = 0.0
    rz: float = 0.0
    s: float = 0.0

    def as_tuple(self) -> Tuple[float, ...]:
        """Return (tx, ty, tz, rx, ry, rz, s)."""
        return (self.tx, self.ty, self.tz, self.rx, self.ry, self.rz, self.s)

    def to_dict(self) -> Dict[str, float]:
        """Values in conventional units: mm, milliarcseconds and ppm."""
        mas_per_rad = math.degrees(1.0) * 3600.0 * 1000.0
        return {
            "tx_mm": self.tx * 1000.0,
            "ty_mm": self.ty * 1000.0,
            "tz_mm": self.tz * 1000.0,
            "rx_mas": self.rx * mas_per_rad,
            "ry_mas": self.ry * mas_per_rad,
            "rz_mas": self.rz * mas_per_rad,
            "scale_ppm": self.s * 1e6,
        }


@dataclass(frozen=True)
class GeodeticPoint:
    """Latitude/longitude in degrees and ellipsoidal height in metres."""

    lat: float
    lon: float
    height: float = 0.0
    frame: str = "ETRF2000"


@dataclass(frozen=True)
class CartesianPoint:
    """Earth-centred Cartesian coordinates in metres."""

    x: float
    y: float
    z: float
    frame: str = "ETRF2000"


@dataclass(frozen=True)
class ProjectedPoint:
    """
    Planar coordinates in metres.

    For EOV, `easting` is the EOV Y value and `northing` the EOV X value.
    """

    easting: float
    northing: float
    frame: str = "EOV"


CoordinatePoint = Union[GeodeticPoint, CartesianPoint, ProjectedPoint]


@dataclass(frozen=True)
class TransformStep:
    """
    One step between the geodetic coordinates of two frames.

    Attributes:
        name: Descriptive name (e.g. 'ITRF2014->ETRF2000')
        kind: Step kind
        source_ellipsoid: Ellipsoid of the input coordinates
        target_ellipsoid: Ellipsoid of the output coordinates
        tier: Accuracy tier contributed by this step
        params: Bursa-Wolf parameters for BURSA_WOLF and HELMERT steps
        inverse: For GRID steps, True for ETRS89->HD72
        fallback: For GRID steps, Helmert parameters used outside coverage
    """

    name: str
    kind: StepKind
    source_ellipsoid: Ellipsoid
    target_ellipsoid: Ellipsoid
    tier: AccuracyTier
    params: Optional[EffectiveParams] = None
    inverse: bool = False
    fallback: Optional[EffectiveParams] = None


@dataclass(frozen=True)
class TransformPath:
    """
    Ordered steps from a source frame to a target frame.

    Attributes:
        source_frame: Canonical source frame id
        target_frame: Canonical target frame id
        steps: Steps to run in order
        accuracy_tier: Coarsest tier of all steps
        source_label: Description of the method used
        grid: Correction grid snapshot used by GRID steps
        epoch: Epoch the time-dependent parameters were evaluated at
    """

    source_frame: str
    target_frame: str
    steps: Tuple[TransformStep, ...]
    accuracy_tier: AccuracyTier
    source_label: str
    grid: Optional["CorrectionGrid"] = None
    epoch: Optional[float] = None


@dataclass(frozen=True)
class TransformResult:
    """Transformed point with its accuracy metadata."""

    point: CoordinatePoint
    accuracy_tier: AccuracyTier
    source_label: str

    @property
    def accuracy_label(self) -> str:
        """Human-readable accuracy label."""
        return self.accuracy_tier.label


@dataclass(frozen=True)
class FrameResult:
    """
    Geodetic coordinates in a target frame with accuracy metadata.

    Frame-to-frame shortcuts also report the Bursa-Wolf parameters
    evaluated at `epoch` and the 3-D distance the point moved.
    """

    lat: float
    lon: float
    height: float
    frame: str
    accuracy_tier: AccuracyTier
    accuracy_label: str
    source_label: str
    effective_params: Optional[EffectiveParams] = None
    epoch: Optional[float] = None
    displacement_3d: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        data: Dict[str, Any] = {
            "lat": self.lat,
            "lon": self.lon,
            "height": self.height,
            "frame": self.frame,
            "accuracy_tier": self.accuracy_tier.value,
            "accuracy_label": self.accuracy_label,
            "source_label": self.source_label,
        }
        if self.effective_params is not None:
            data["effective_params"] = self.effective_params.to_dict()
            data["epoch"] = self.epoch
            data["displacement_3d"] = self.displacement_3d
        return data


@dataclass(frozen=True)
class EovResult:
    """
    EOV planar coordinates with accuracy metadata.

    Attributes:
        y: EOV Y (easting) in metres
        x: EOV X (northing) in metres
    """

    y: float
    x: float
    accuracy_tier: AccuracyTier
    accuracy_label: str
    source_label: str

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "y": self.y,
            "x": self.x,
            "accuracy_tier": self.accuracy_tier.value,
            "accuracy_label": self.accuracy_label,
            "source_label": self.source_label,
        }


@dataclass(frozen=True)
class GridStatus:
    """Snapshot of a correction grid source."""

    name: str
    state: GridState
    accuracy_label: str
    source_label: str
    subgrid_count: int = 0

    @property
    def loaded(self) -> bool:
        """True if a grid is loaded."""
        return self.state == GridState.LOADED


@dataclass(frozen=True)
class UtmCoordinate:
    """
    UTM coordinate with grid convergence and point scale.

    Attributes:
        zone: UTM zone number (1-60)
        easting: Easting in metres
        northing: Northing in metres
        hemisphere: 'N' or 'S'
        convergence: Meridian convergence in degrees
        scale_factor: Point scale factor
        band: MGRS latitude band letter
    """

    zone: int
    easting: float
    northing: float
    hemisphere: str
    convergence: float
    scale_factor: float
    band: str

    @property
    def label(self) -> str:
        """Zone label such as '34T'."""
        return f"{self.zone}{self.band}"
