"""
Transformation path selection and the public transformation surface.

A path runs from the source frame to the ETRF2000 hub and on to the target
frame. The HD72 <-> ETRS89 link of EOV uses the correction grid when one is
loaded and falls back to a Helmert shift otherwise; the accuracy tier and
source label of every result say which one was used.
"""

import logging
import math
from dataclasses import replace
from pathlib import PurePath
from typing import List, Optional, Sequence, Tuple

import numpy as np

from eovtrans.core.config import settings
from eovtrans.core.errors import InputRangeError, TransformationError
from eovtrans.core.geodesy.cartesian import (
    cartesian_distance,
    cartesian_to_geodetic,
    geodetic_to_cartesian,
)
from eovtrans.core.geodesy.datum import effective_params, frame_to_frame, inverse_params
from eovtrans.core.geodesy.frames import HUB_FRAME, HUB_LINKS, canonical_frame_id, resolve_frame
from eovtrans.core.geodesy.grid import (
    HELMERT_SOURCE_LABEL,
    CorrectionGrid,
    GridCorrectionSource,
    grid_source_label,
)
from eovtrans.core.geodesy.oblique_mercator import (
    forward_oblique_mercator,
    inverse_oblique_mercator,
)
from eovtrans.core.geodesy.utm import geodetic_to_utm as _geodetic_to_utm
from eovtrans.core.logging_config import log_context
from eovtrans.core.validation import validate_epoch, validate_finite, validate_lat_lon
from eovtrans.models.geodesy import (
    AccuracyTier,
    CartesianPoint,
    CoordinatePoint,
    EovResult,
    FrameResult,
    GeodeticPoint,
    GridStatus,
    ProjectedPoint,
    ReferenceFrame,
    StepKind,
    TransformPath,
    TransformResult,
    TransformStep,
    UtmCoordinate,
)
from eovtrans.utils.logging import PerformanceTimer

logger = logging.getLogger(__name__)

FRAME_SOURCE_LABEL = "Bursa-Wolf 7-parameter frame transformation"
IDENTITY_SOURCE_LABEL = "Identity (same frame)"


def _steps_to_hub(
    frame: ReferenceFrame, grid: Optional[CorrectionGrid], epoch: float
) -> List[TransformStep]:
    base = HUB_LINKS[frame.id]
    if base is None:
        return []

    hub = resolve_frame(HUB_FRAME)
    params = effective_params(base, epoch)
    name = f"{frame.id}->{HUB_FRAME}"

    if frame.is_projected:
        if grid is not None:
            return [
                TransformStep(
                    name=name,
                    kind=StepKind.GRID,
                    source_ellipsoid=frame.ellipsoid,
                    target_ellipsoid=hub.ellipsoid,
                    tier=AccuracyTier.GRID,
                    fallback=params,
                )
            ]
        return [
            TransformStep(
                name=name,
                kind=StepKind.HELMERT,
                source_ellipsoid=frame.ellipsoid,
                target_ellipsoid=hub.ellipsoid,
                tier=AccuracyTier.HELMERT,
                params=params,
            )
        ]

    return [
        TransformStep(
            name=name,
            kind=StepKind.BURSA_WOLF,
            source_ellipsoid=frame.ellipsoid,
            target_ellipsoid=hub.ellipsoid,
            tier=AccuracyTier.FRAME,
            params=params,
        )
    ]


def _invert_step(step: TransformStep) -> TransformStep:
    source, target = step.name.split("->")
    return TransformStep(
        name=f"{target}->{source}",
        kind=step.kind,
        source_ellipsoid=step.target_ellipsoid,
        target_ellipsoid=step.source_ellipsoid,
        tier=step.tier,
        params=inverse_params(step.params) if step.params is not None else None,
        inverse=not step.inverse,
        fallback=inverse_params(step.fallback) if step.fallback is not None else None,
    )


def _source_label(steps: Sequence[TransformStep], grid: Optional[CorrectionGrid]) -> str:
    kinds = {step.kind for step in steps}
    if StepKind.GRID in kinds and grid is not None:
        return grid_source_label(grid.name)
    if StepKind.HELMERT in kinds:
        return HELMERT_SOURCE_LABEL
    if StepKind.BURSA_WOLF in kinds:
        return FRAME_SOURCE_LABEL
    return IDENTITY_SOURCE_LABEL


def select_transform_path(
    source_frame: str,
    target_frame: str,
    grid: Optional[CorrectionGrid] = None,
    epoch: Optional[float] = None,
) -> TransformPath:
    """
    Choose the steps between two frames.

    Side-effect free: the caller passes the grid snapshot to use (None for
    the Helmert fallback).

    Args:
        source_frame: Source frame id or alias
        target_frame: Target frame id or alias
        grid: Loaded correction grid, or None
        epoch: Epoch for time-dependent parameters (settings.default_epoch if None)

    Returns:
        TransformPath with its accuracy tier and source label

    Raises:
        InputRangeError: If a frame is unknown or the epoch is invalid
    """
    source = resolve_frame(source_frame)
    target = resolve_frame(target_frame)
    epoch = validate_epoch(settings.default_epoch if epoch is None else epoch)

    steps: List[TransformStep] = []
    if source.id != target.id:
        steps.extend(_steps_to_hub(source, grid, epoch))
        steps.extend(_invert_step(step) for step in reversed(_steps_to_hub(target, grid, epoch)))

    uses_grid = any(step.kind == StepKind.GRID for step in steps)
    return TransformPath(
        source_frame=source.id,
        target_frame=target.id,
        steps=tuple(steps),
        accuracy_tier=AccuracyTier.coarsest(tuple(step.tier for step in steps)),
        source_label=_source_label(steps, grid),
        grid=grid if uses_grid else None,
        epoch=epoch,
    )


def _run_grid_step(
    step: TransformStep,
    path: TransformPath,
    lat: float,
    lon: float,
    h: float,
) -> Tuple[Tuple[float, float, float], bool]:
    """Run a grid step; returns the coordinates and whether it fell back."""
    shifted = None
    if path.grid is not None:
        if step.inverse:
            shifted = path.grid.inverse(lat, lon)
        else:
            shifted = path.grid.forward(lat, lon)

    if shifted is not None:
        return (shifted[0], shifted[1], h), False

    logger.warning(
        f"Point ({lat:.8f}, {lon:.8f}) is outside grid coverage for {step.name}; "
        f"falling back to Helmert",
        extra={
            "grid_name": path.grid.name if path.grid is not None else None,
            "stage": step.name,
        },
    )
    result = frame_to_frame(
        lat, lon, h, step.source_ellipsoid, step.target_ellipsoid, step.fallback
    )
    return result, True


def transform_point(
    point: CoordinatePoint,
    path: TransformPath,
    projected_output: Optional[bool] = None,
) -> TransformResult:
    """
    Run a transformation path on a point.

    Geodetic input gives geodetic output, Cartesian input Cartesian output
    and projected input projected output where the target frame has a
    projection; `projected_output` overrides this for projected targets.
    A grid step that finds the point outside coverage falls back to
    Helmert and the result reports the Helmert tier.

    Args:
        point: Point tagged with the path's source frame
        path: Path from select_transform_path
        projected_output: Force projected (True) or geodetic (False) output

    Returns:
        TransformResult tagged with the target frame

    Raises:
        InputRangeError: If the point is invalid or not in the source frame
        TransformationError: If a stage fails numerically
    """
    source = resolve_frame(path.source_frame)
    target = resolve_frame(path.target_frame)
    if canonical_frame_id(point.frame) != source.id:
        raise InputRangeError(
            f"Point frame '{point.frame}' does not match path source '{source.id}'",
            field="frame",
            value=point.frame,
        )

    try:
        if isinstance(point, ProjectedPoint):
            if source.projection is None:
                raise InputRangeError(
                    f"Frame '{source.id}' has no projection for planar input",
                    field="frame",
                    value=source.id,
                )
            easting = validate_finite(point.easting, "easting")
            northing = validate_finite(point.northing, "northing")
            lat, lon = inverse_oblique_mercator(
                easting,
                northing,
                source.projection,
                max_iterations=settings.grid_max_iterations,
            )
            h = 0.0
        elif isinstance(point, CartesianPoint):
            x = validate_finite(point.x, "x")
            y = validate_finite(point.y, "y")
            z = validate_finite(point.z, "z")
            lat, lon, h = cartesian_to_geodetic(x, y, z, source.ellipsoid)
        else:
            lat, lon = validate_lat_lon(point.lat, point.lon)
            h = validate_finite(point.height, "height")

        tiers: List[AccuracyTier] = []
        fell_back = False
        for step in path.steps:
            if step.kind == StepKind.GRID:
                (lat, lon, h), step_fell_back = _run_grid_step(step, path, lat, lon, h)
                fell_back = fell_back or step_fell_back
                tiers.append(AccuracyTier.HELMERT if step_fell_back else step.tier)
            elif step.kind in (StepKind.BURSA_WOLF, StepKind.HELMERT):
                lat, lon, h = frame_to_frame(
                    lat, lon, h, step.source_ellipsoid, step.target_ellipsoid, step.params
                )
                tiers.append(step.tier)
            else:
                tiers.append(step.tier)

            if not all(math.isfinite(v) for v in (lat, lon, h)):
                raise TransformationError(
                    f"Step {step.name} produced a non-finite result",
                    stage=step.name,
                )

        if projected_output is None:
            projected_output = isinstance(point, ProjectedPoint)

        out: CoordinatePoint
        if projected_output and target.projection is not None:
            easting, northing = forward_oblique_mercator(lat, lon, target.projection)
            out = ProjectedPoint(easting=easting, northing=northing, frame=target.id)
        elif isinstance(point, CartesianPoint) and not projected_output:
            x, y, z = geodetic_to_cartesian(lat, lon, h, target.ellipsoid)
            out = CartesianPoint(x=x, y=y, z=z, frame=target.id)
        else:
            out = GeodeticPoint(lat=lat, lon=lon, height=h, frame=target.id)
    except TransformationError as e:
        raise e.with_frames(source.id, target.id) from e

    if fell_back:
        return TransformResult(
            point=out,
            accuracy_tier=AccuracyTier.coarsest(tuple(tiers)),
            source_label=HELMERT_SOURCE_LABEL,
        )
    return TransformResult(
        point=out,
        accuracy_tier=path.accuracy_tier,
        source_label=path.source_label,
    )


class FrameTransformer:
    """
    Transformation front end bound to one EOV correction grid source.

    Usage:
        transformer = FrameTransformer()
        transformer.load_correction_grid("etrs2eov_notowgs.gsb", raw)
        result = transformer.project_to_eov(47.5, 19.05)
    """

    def __init__(self, grid_source: Optional[GridCorrectionSource] = None) -> None:
        """
        Initialize FrameTransformer.

        Args:
            grid_source: Grid source for the EOV link; a fresh unloaded source
                named after settings.eov_grid_name by default
        """
        self.grid_source = grid_source or GridCorrectionSource(settings.eov_grid_name)

    def load_correction_grid(self, name: str, raw: bytes) -> bool:
        """
        Load a correction grid by file name.

        The name is matched by its base name against the grid this
        transformer knows. Never raises on bad data.

        Args:
            name: Grid file name or path
            raw: Complete grid file content

        Returns:
            True if the grid was loaded and is now in use
        """
        basename = PurePath(str(name)).name
        if basename.lower() != self.grid_source.name.lower():
            logger.warning(
                f"Ignoring unknown correction grid '{name}'; "
                f"expected '{self.grid_source.name}'"
            )
            return False
        return self.grid_source.load(raw)

    def grid_status(self) -> GridStatus:
        """Report whether the correction grid is loaded."""
        return self.grid_source.status()

    def select_transform_path(
        self, source_frame: str, target_frame: str, epoch: Optional[float] = None
    ) -> TransformPath:
        """Select a path using the current grid snapshot."""
        return select_transform_path(
            source_frame, target_frame, self.grid_source.snapshot(), epoch
        )

    def transform_point(
        self,
        point: CoordinatePoint,
        target_frame: str,
        epoch: Optional[float] = None,
        projected_output: Optional[bool] = None,
    ) -> TransformResult:
        """Transform a point into the target frame."""
        path = self.select_transform_path(point.frame, target_frame, epoch)
        return transform_point(point, path, projected_output)

    def to_target_frame(
        self,
        lat: float,
        lon: float,
        source_frame: str,
        target_frame: str,
        epoch: Optional[float] = None,
        height: float = 0.0,
    ) -> FrameResult:
        """
        Transform geodetic coordinates between frames.

        For the EOV frame, geodetic coordinates are HD72 latitude/longitude
        on GRS67.

        Args:
            lat: Latitude in degrees
            lon: Longitude in degrees
            source_frame: Source frame id or alias
            target_frame: Target frame id or alias
            epoch: Epoch for time-dependent parameters
            height: Ellipsoidal height in metres

        Returns:
            FrameResult with accuracy metadata

        Raises:
            InputRangeError: If inputs are invalid
            TransformationError: If the transformation fails numerically
        """
        point = GeodeticPoint(lat=lat, lon=lon, height=height, frame=source_frame)
        result = self.transform_point(point, target_frame, epoch, projected_output=False)
        return _frame_result(result)

    def project_to_eov(
        self,
        lat: float,
        lon: float,
        source_frame: str = "ETRF2000",
        height: float = 0.0,
        epoch: Optional[float] = None,
    ) -> EovResult:
        """
        Transform geodetic coordinates to EOV Y/X.

        Raises:
            InputRangeError: If inputs are invalid
            TransformationError: If the transformation fails numerically
        """
        point = GeodeticPoint(lat=lat, lon=lon, height=height, frame=source_frame)
        result = self.transform_point(point, "EOV", epoch, projected_output=True)
        projected = result.point
        return EovResult(
            y=projected.easting,
            x=projected.northing,
            accuracy_tier=result.accuracy_tier,
            accuracy_label=result.accuracy_label,
            source_label=result.source_label,
        )

    def unproject_from_eov(
        self,
        y: float,
        x: float,
        target_frame: str = "ETRF2000",
        epoch: Optional[float] = None,
    ) -> FrameResult:
        """
        Transform EOV Y/X to geodetic coordinates in the target frame.

        Raises:
            InputRangeError: If inputs are invalid
            TransformationError: If the transformation fails numerically
        """
        point = ProjectedPoint(easting=y, northing=x, frame="EOV")
        result = self.transform_point(point, target_frame, epoch, projected_output=False)
        return _frame_result(result)

    def itrf20_to_etrs89(
        self, lat: float, lon: float, h: float = 0.0, epoch: Optional[float] = None
    ) -> FrameResult:
        """Transform ITRF20 coordinates to ETRS89 at an epoch."""
        return self._frame_shift(lat, lon, h, "ITRF20", "ETRS89", epoch)

    def etrs89_to_itrf20(
        self, lat: float, lon: float, h: float = 0.0, epoch: Optional[float] = None
    ) -> FrameResult:
        """Transform ETRS89 coordinates to ITRF20 at an epoch."""
        return self._frame_shift(lat, lon, h, "ETRS89", "ITRF20", epoch)

    def _frame_shift(
        self,
        lat: float,
        lon: float,
        h: float,
        source_frame: str,
        target_frame: str,
        epoch: Optional[float],
    ) -> FrameResult:
        """
        Run a Bursa-Wolf frame change and report how it moved the point.

        The result carries the parameters evaluated at the epoch, in the
        direction they were applied, and the Cartesian distance between the
        input and the output.
        """
        path = self.select_transform_path(source_frame, target_frame, epoch)
        point = GeodeticPoint(lat=lat, lon=lon, height=h, frame=path.source_frame)
        result = _frame_result(transform_point(point, path, projected_output=False))

        params = next(
            (step.params for step in path.steps if step.kind == StepKind.BURSA_WOLF), None
        )
        displacement = cartesian_distance(
            lat,
            lon,
            h,
            result.lat,
            result.lon,
            result.height,
            resolve_frame(path.source_frame).ellipsoid,
            resolve_frame(path.target_frame).ellipsoid,
        )
        return replace(
            result, effective_params=params, epoch=path.epoch, displacement_3d=displacement
        )

    def geodetic_to_utm(
        self, lat: float, lon: float, frame: str = "ETRS89", zone: Optional[int] = None
    ) -> UtmCoordinate:
        """Project geodetic coordinates to UTM on the frame's ellipsoid."""
        return _geodetic_to_utm(lat, lon, resolve_frame(frame).ellipsoid, zone)

    def transform_batch(
        self,
        lats: Sequence[float],
        lons: Sequence[float],
        source_frame: str,
        target_frame: str,
        epoch: Optional[float] = None,
        projected_output: Optional[bool] = None,
    ) -> Tuple[np.ndarray, np.ndarray]:
        """
        Transform many points along one path.

        For a projected target with projected output the arrays are
        (easting, northing), i.e. EOV (Y, X); otherwise (lat, lon).

        Raises:
            InputRangeError: If the arrays differ in length or hold invalid values
            TransformationError: If any point fails numerically
        """
        lat_array = np.asarray(lats, dtype=np.float64).ravel()
        lon_array = np.asarray(lons, dtype=np.float64).ravel()
        if lat_array.shape != lon_array.shape:
            raise InputRangeError(
                f"Latitude and longitude arrays differ in length "
                f"({lat_array.size} vs {lon_array.size})"
            )

        path = self.select_transform_path(source_frame, target_frame, epoch)
        if projected_output is None:
            projected_output = resolve_frame(path.target_frame).is_projected

        first = np.empty_like(lat_array)
        second = np.empty_like(lon_array)
        with log_context(
            source_frame=path.source_frame, target_frame=path.target_frame, epoch=path.epoch
        ), PerformanceTimer(
            "transform_batch", log_level=logging.DEBUG, threshold_ms=100, unit="points"
        ) as timer:
            timer.count = int(lat_array.size)
            for i, (lat, lon) in enumerate(zip(lat_array, lon_array)):
                point = GeodeticPoint(lat=float(lat), lon=float(lon), frame=path.source_frame)
                out = transform_point(point, path, projected_output).point
                if isinstance(out, ProjectedPoint):
                    first[i], second[i] = out.easting, out.northing
                else:
                    first[i], second[i] = out.lat, out.lon

        logger.debug(
            f"Transformed {lat_array.size} points {path.source_frame}->{path.target_frame}"
        )
        return first, second


def _frame_result(result: TransformResult) -> FrameResult:
    point = result.point
    return FrameResult(
        lat=point.lat,
        lon=point.lon,
        height=point.height,
        frame=point.frame,
        accuracy_tier=result.accuracy_tier,
        accuracy_label=result.accuracy_label,
        source_label=result.source_label,
    )


_default_transformer: Optional[FrameTransformer] = None


def get_default_transformer() -> FrameTransformer:
    """Return the process-wide transformer, creating it on first use."""
    global _default_transformer
    if _default_transformer is None:
        _default_transformer = FrameTransformer()
    return _default_transformer


def to_target_frame(
    lat: float,
    lon: float,
    source_frame: str,
    target_frame: str,
    epoch: Optional[float] = None,
    height: float = 0.0,
) -> FrameResult:
    """Transform geodetic coordinates with the default transformer."""
    return get_default_transformer().to_target_frame(
        lat, lon, source_frame, target_frame, epoch, height
    )


def project_to_eov(lat: float, lon: float, source_frame: str = "ETRF2000") -> EovResult:
    """Project to EOV with the default transformer."""
    return get_default_transformer().project_to_eov(lat, lon, source_frame)


def unproject_from_eov(y: float, x: float, target_frame: str = "ETRF2000") -> FrameResult:
    """Unproject EOV Y/X with the default transformer."""
    return get_default_transformer().unproject_from_eov(y, x, target_frame)


def load_correction_grid(name: str, raw: bytes) -> bool:
    """Load a correction grid into the default transformer."""
    return get_default_transformer().load_correction_grid(name, raw)


def grid_status() -> GridStatus:
    """Grid status of the default transformer."""
    return get_default_transformer().grid_status()


def itrf20_to_etrs89(
    lat: float, lon: float, h: float = 0.0, epoch: Optional[float] = None
) -> FrameResult:
    """Transform ITRF20 to ETRS89 with the default transformer."""
    return get_default_transformer().itrf20_to_etrs89(lat, lon, h, epoch)


def etrs89_to_itrf20(
    lat: float, lon: float, h: float = 0.0, epoch: Optional[float] = None
) -> FrameResult:
    """Transform ETRS89 to ITRF20 with the default transformer."""
    return get_default_transformer().etrs89_to_itrf20(lat, lon, h, epoch)


def geodetic_to_utm(lat: float, lon: float, zone: Optional[int] = None) -> UtmCoordinate:
    """Project ETRS89 coordinates to UTM."""
    return get_default_transformer().geodetic_to_utm(lat, lon, zone=zone)
