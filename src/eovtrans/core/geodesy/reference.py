"""
Independent cross-check of the native pipeline against PROJ.

Each frame is described to PROJ as a geographic CRS on its ellipsoid with a
`+towgs84` Helmert shift to the ETRF2000 hub (EOV additionally with its
`somerc` projection), so pyproj builds the same Helmert-path transformation
from its own implementation. Correction grids are not involved.
"""

import logging
import math
from typing import Any, Dict, Optional, Tuple

from pyproj import CRS, Transformer
from pyproj.exceptions import ProjError

from eovtrans.core.config import settings
from eovtrans.core.errors import TransformationError
from eovtrans.core.geodesy.datum import ARCSEC_TO_RAD, effective_params
from eovtrans.core.geodesy.frames import HUB_LINKS, resolve_frame
from eovtrans.core.geodesy.transformer import select_transform_path, transform_point
from eovtrans.models.geodesy import GeodeticPoint, ProjectedPoint, ReferenceFrame

logger = logging.getLogger(__name__)

# Rough metres per degree, good enough to express small geodetic differences
METRES_PER_DEGREE = 111320.0


def frame_proj_definition(
    frame_id: str, epoch: Optional[float] = None, projected: bool = False
) -> str:
    """
    Build the PROJ string of a frame.

    Args:
        frame_id: Frame id or alias
        epoch: Epoch for time-dependent frames (settings.default_epoch if None)
        projected: Return the projected definition (EOV only)

    Returns:
        PROJ definition string
    """
    frame = resolve_frame(frame_id)
    if projected and frame.proj_projected:
        return frame.proj_projected
    base = HUB_LINKS[frame.id]
    if frame.proj_geodetic and (base is None or not base.is_time_dependent):
        return frame.proj_geodetic
    return _towgs84_definition(frame, settings.default_epoch if epoch is None else epoch)


def _towgs84_definition(frame: ReferenceFrame, epoch: float) -> str:
    base = HUB_LINKS[frame.id]
    values = (0.0,) * 7
    if base is not None:
        p = effective_params(base, epoch)
        values = (
            p.tx,
            p.ty,
            p.tz,
            p.rx / ARCSEC_TO_RAD,
            p.ry / ARCSEC_TO_RAD,
            p.rz / ARCSEC_TO_RAD,
            p.s * 1e6,
        )
    towgs84 = ",".join(f"{value:.12g}" for value in values)
    return f"+proj=longlat +ellps={frame.ellipsoid.name} +towgs84={towgs84} +no_defs"


class ReferenceTransformer:
    """
    pyproj transformer between two frames.

    Coordinates are in (lon, lat) order for geographic CRSs and
    (easting, northing) for projected ones, as pyproj's `always_xy`.
    """

    def __init__(
        self,
        source_frame: str,
        target_frame: str,
        epoch: Optional[float] = None,
        projected_target: Optional[bool] = None,
    ):
        """
        Initialize transformer.

        Args:
            source_frame: Source frame id or alias (geodetic input)
            target_frame: Target frame id or alias
            epoch: Epoch for time-dependent frames
            projected_target: Output projected coordinates where the target
                has a projection (default True)

        Raises:
            TransformationError: If pyproj cannot build the transformer
        """
        self.source = resolve_frame(source_frame)
        self.target = resolve_frame(target_frame)
        if projected_target is None:
            projected_target = self.target.is_projected
        self.projected_target = projected_target and self.target.is_projected

        source_def = frame_proj_definition(self.source.id, epoch)
        target_def = frame_proj_definition(self.target.id, epoch, self.projected_target)
        try:
            self.transformer = Transformer.from_crs(
                CRS.from_proj4(source_def),
                CRS.from_proj4(target_def),
                always_xy=True,
            )
        except ProjError as e:
            raise TransformationError(
                f"Failed to create reference transformer: {e}",
                source_frame=self.source.id,
                target_frame=self.target.id,
                stage="reference",
            ) from e

    def transform(self, lat: float, lon: float) -> Tuple[float, float]:
        """
        Transform one point.

        Returns:
            (easting, northing) for a projected target, else (lat, lon)

        Raises:
            TransformationError: If pyproj returns a non-finite result
        """
        xx, yy = self.transformer.transform(lon, lat)
        if not (math.isfinite(xx) and math.isfinite(yy)):
            raise TransformationError(
                "Reference transformation returned a non-finite result",
                source_frame=self.source.id,
                target_frame=self.target.id,
                stage="reference",
            )
        if self.projected_target:
            return xx, yy
        return yy, xx


def validate_transformation_accuracy(
    lat: float,
    lon: float,
    source_frame: str = "ETRF2000",
    target_frame: str = "EOV",
    epoch: Optional[float] = None,
    tolerance_m: float = 0.01,
) -> Dict[str, Any]:
    """
    Compare the native Helmert-path result for a point with pyproj's.

    Args:
        lat: Latitude in degrees
        lon: Longitude in degrees
        source_frame: Source frame id or alias
        target_frame: Target frame id or alias
        epoch: Epoch for time-dependent frames
        tolerance_m: Largest acceptable horizontal difference in metres

    Returns:
        Dictionary with both results, the difference in metres and
        whether it is within tolerance
    """
    path = select_transform_path(source_frame, target_frame, grid=None, epoch=epoch)
    reference = ReferenceTransformer(path.source_frame, path.target_frame, path.epoch)

    point = GeodeticPoint(lat=lat, lon=lon, frame=path.source_frame)
    native = transform_point(point, path, projected_output=reference.projected_target).point
    ref_a, ref_b = reference.transform(lat, lon)

    if isinstance(native, ProjectedPoint):
        native_a, native_b = native.easting, native.northing
        difference_m = math.hypot(native_a - ref_a, native_b - ref_b)
    else:
        native_a, native_b = native.lat, native.lon
        difference_m = METRES_PER_DEGREE * math.hypot(
            native_a - ref_a, (native_b - ref_b) * math.cos(math.radians(native_a))
        )

    within = difference_m <= tolerance_m
    if not within:
        logger.warning(
            f"Native {path.source_frame}->{path.target_frame} differs from PROJ by "
            f"{difference_m:.4f} m at ({lat}, {lon})"
        )

    return {
        "source_frame": path.source_frame,
        "target_frame": path.target_frame,
        "native": (native_a, native_b),
        "reference": (ref_a, ref_b),
        "difference_m": difference_m,
        "tolerance_m": tolerance_m,
        "within_tolerance": within,
    }
