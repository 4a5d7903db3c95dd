"""
Horizontal correction grids.

Parses NTv2 (.gsb) and GeoTIFF correction grids into numpy arrays, and
interpolates latitude/longitude shifts bilinearly. Used for the
HD72 <-> ETRS89 step of the EOV pipeline (e.g. `etrs2eov_notowgs.gsb`).

Shifts are kept in arc-seconds with longitude east-positive, on nodes
ordered south-to-north and west-to-east, whatever the payload's own
conventions are.
"""

import logging
import math
import struct
import threading
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np
import rasterio
from rasterio.errors import RasterioError
from rasterio.io import MemoryFile
from scipy.interpolate import RegularGridInterpolator

from eovtrans.core.config import settings
from eovtrans.core.errors import GridLoadError, TransformationError
from eovtrans.core.geodesy.frames import EOV_AREA_OF_USE
from eovtrans.core.logging_config import log_context
from eovtrans.models.geodesy import AccuracyTier, GridState, GridStatus
from eovtrans.utils.logging import PerformanceTimer

logger = logging.getLogger(__name__)

NTV2_RECORD_SIZE = 16
NTV2_OVERVIEW_RECORDS = 11
NTV2_SUBGRID_RECORDS = 11
NTV2_NODE_SIZE = 16

TIFF_MAGIC = (b"II*\x00", b"MM\x00*", b"II+\x00", b"MM\x00+")

INVERSE_TOLERANCE_DEG = 1e-12

HELMERT_SOURCE_LABEL = "Helmert 7-parameter transformation"

_UNIT_TO_ARCSEC = {
    "SECONDS": 1.0,
    "MINUTES": 60.0,
    "DEGREES": 3600.0,
}


def grid_source_label(name: str) -> str:
    """Source label reported when a grid is in use."""
    return f"ETRS2EOV nadgrid ({name})"


class SubGrid:
    """
    One rectangular grid of shift nodes.

    Attributes:
        name: Sub-grid name
        parent: Parent sub-grid name ('NONE' for top-level grids)
        lats: Node latitudes in degrees, ascending
        lons: Node longitudes in degrees (east-positive), ascending
        lat_shift: Latitude shifts in arc-seconds, shape (len(lats), len(lons))
        lon_shift: Longitude shifts in arc-seconds (east-positive), same shape
    """

    def __init__(
        self,
        name: str,
        parent: str,
        lats: np.ndarray,
        lons: np.ndarray,
        lat_shift: np.ndarray,
        lon_shift: np.ndarray,
    ) -> None:
        if lats.size < 2 or lons.size < 2:
            raise GridLoadError(
                f"Sub-grid '{name}' needs at least 2x2 nodes, got {lats.size}x{lons.size}"
            )
        if lat_shift.shape != (lats.size, lons.size) or lon_shift.shape != lat_shift.shape:
            raise GridLoadError(
                f"Sub-grid '{name}' shift arrays do not match its node axes",
                details={"shape": list(lat_shift.shape), "nodes": [lats.size, lons.size]},
            )

        self.name = name
        self.parent = parent
        self.lats = lats
        self.lons = lons
        self.lat_shift = lat_shift
        self.lon_shift = lon_shift

        self._interpolator = RegularGridInterpolator(
            (lats, lons),
            np.stack([lat_shift, lon_shift], axis=-1),
            method="linear",
            bounds_error=False,
            fill_value=np.nan,
        )

    @property
    def bounds(self) -> Tuple[float, float, float, float]:
        """(south, west, north, east) in degrees."""
        return (
            float(self.lats[0]),
            float(self.lons[0]),
            float(self.lats[-1]),
            float(self.lons[-1]),
        )

    def contains(self, lat: float, lon: float) -> bool:
        """True if the point lies inside the sub-grid extent."""
        south, west, north, east = self.bounds
        return south <= lat <= north and west <= lon <= east

    def shift(self, lat: float, lon: float) -> Optional[Tuple[float, float]]:
        """
        Interpolate the shift at a point.

        Returns:
            (dlat, dlon) in arc-seconds, or None outside the sub-grid or
            where a surrounding node holds no value
        """
        if not self.contains(lat, lon):
            return None
        dlat, dlon = self._interpolator([[lat, lon]])[0]
        if not (math.isfinite(dlat) and math.isfinite(dlon)):
            return None
        return float(dlat), float(dlon)

    def __repr__(self) -> str:
        south, west, north, east = self.bounds
        return (
            f"SubGrid(name={self.name!r}, parent={self.parent!r}, "
            f"bounds=({south}, {west}, {north}, {east}), "
            f"nodes={self.lats.size}x{self.lons.size})"
        )


class CorrectionGrid:
    """
    A parsed correction grid made of one or more sub-grids.

    Instances are never mutated after construction, so a reference can be
    shared between threads freely.
    """

    def __init__(self, name: str, subgrids: Sequence[SubGrid], source_format: str) -> None:
        if not subgrids:
            raise GridLoadError("Correction grid contains no sub-grids", grid_name=name)
        self.name = name
        self.subgrids: Tuple[SubGrid, ...] = tuple(subgrids)
        self.source_format = source_format
        self._depth = self._compute_depths()

    def _compute_depths(self) -> Dict[str, int]:
        by_name = {grid.name: grid for grid in self.subgrids}
        depths: Dict[str, int] = {}
        for grid in self.subgrids:
            depth = 0
            parent = grid.parent
            seen = {grid.name}
            while parent in by_name and parent not in seen:
                seen.add(parent)
                depth += 1
                parent = by_name[parent].parent
            depths[grid.name] = depth
        return depths

    @classmethod
    def from_bytes(cls, name: str, raw: bytes) -> "CorrectionGrid":
        """
        Parse a grid payload, detecting NTv2 or GeoTIFF from its header.

        Args:
            name: Grid name (usually its file name)
            raw: Complete file content

        Returns:
            Parsed CorrectionGrid

        Raises:
            GridLoadError: If the payload is malformed or in an unknown format
        """
        if not raw:
            raise GridLoadError("Grid payload is empty", grid_name=name)
        if raw[:4] in TIFF_MAGIC:
            return cls.from_geotiff(name, raw)
        return cls.from_ntv2(name, raw)

    @classmethod
    def from_ntv2(cls, name: str, raw: bytes) -> "CorrectionGrid":
        """
        Parse an NTv2 (.gsb) payload.

        The byte order is detected from the NUM_OREC record, which must hold
        11. Longitudes in the file are positive west and each row runs from
        east to west; both are converted here.

        Raises:
            GridLoadError: If the payload is malformed
        """
        try:
            return cls(name, _parse_ntv2(raw, name), "ntv2")
        except struct.error as e:
            raise GridLoadError(
                f"Truncated NTv2 payload: {e}", grid_name=name
            ) from e
        except (ValueError, OverflowError, UnicodeDecodeError) as e:
            raise GridLoadError(f"Malformed NTv2 payload: {e}", grid_name=name) from e

    @classmethod
    def from_geotiff(cls, name: str, raw: bytes) -> "CorrectionGrid":
        """
        Parse a GeoTIFF horizontal offset grid.

        Bands are located by their descriptions `latitude_offset` and
        `longitude_offset` (falling back to bands 1 and 2), with values in
        arc-seconds. A band tagged `positive_value=west` is negated.

        Raises:
            GridLoadError: If the payload cannot be read
        """
        try:
            with MemoryFile(raw) as memfile:
                with memfile.open() as src:
                    subgrid = _read_geotiff_subgrid(src, name)
        except RasterioError as e:
            raise GridLoadError(
                f"Failed to read GeoTIFF grid: {e}", grid_name=name
            ) from e
        return cls(name, [subgrid], "geotiff")

    @property
    def bounds(self) -> Tuple[float, float, float, float]:
        """Union extent (south, west, north, east) of all sub-grids."""
        all_bounds = [grid.bounds for grid in self.subgrids]
        return (
            min(b[0] for b in all_bounds),
            min(b[1] for b in all_bounds),
            max(b[2] for b in all_bounds),
            max(b[3] for b in all_bounds),
        )

    def find_subgrid(self, lat: float, lon: float) -> Optional[SubGrid]:
        """Return the most detailed sub-grid containing the point."""
        candidates = [grid for grid in self.subgrids if grid.contains(lat, lon)]
        if not candidates:
            return None
        return max(candidates, key=lambda grid: self._depth[grid.name])

    def shift(self, lat: float, lon: float) -> Optional[Tuple[float, float]]:
        """
        Interpolated (dlat, dlon) in arc-seconds at a point.

        Returns:
            The shift, or None outside grid coverage
        """
        subgrid = self.find_subgrid(lat, lon)
        if subgrid is None:
            return None
        return subgrid.shift(lat, lon)

    def forward(self, lat: float, lon: float) -> Optional[Tuple[float, float]]:
        """
        Apply the grid shift (HD72 -> ETRS89).

        Returns:
            Shifted (lat, lon) in degrees, or None outside grid coverage
        """
        shift = self.shift(lat, lon)
        if shift is None:
            return None
        dlat, dlon = shift
        return lat + dlat / 3600.0, lon + dlon / 3600.0

    def inverse(
        self,
        lat: float,
        lon: float,
        max_iterations: Optional[int] = None,
    ) -> Optional[Tuple[float, float]]:
        """
        Remove the grid shift (ETRS89 -> HD72).

        Solves forward(p) = (lat, lon) by fixed-point iteration to 1e-12
        degrees.

        Args:
            lat: Latitude in degrees
            lon: Longitude in degrees
            max_iterations: Iteration cap (settings.grid_max_iterations by default)

        Returns:
            (lat, lon) in degrees, or None outside grid coverage

        Raises:
            TransformationError: If the iteration does not converge
        """
        if max_iterations is None:
            max_iterations = settings.grid_max_iterations

        shift = self.shift(lat, lon)
        if shift is None:
            return None

        est_lat = lat - shift[0] / 3600.0
        est_lon = lon - shift[1] / 3600.0
        for _ in range(max_iterations):
            shift = self.shift(est_lat, est_lon)
            if shift is None:
                return None
            next_lat = lat - shift[0] / 3600.0
            next_lon = lon - shift[1] / 3600.0
            delta = max(abs(next_lat - est_lat), abs(next_lon - est_lon))
            est_lat, est_lon = next_lat, next_lon
            if delta < INVERSE_TOLERANCE_DEG:
                return est_lat, est_lon

        raise TransformationError(
            "Inverse grid correction did not converge",
            stage="grid_inverse",
            details={"grid_name": self.name, "lat": lat, "lon": lon},
        )

    def __repr__(self) -> str:
        return (
            f"CorrectionGrid(name={self.name!r}, format={self.source_format!r}, "
            f"subgrids={len(self.subgrids)})"
        )


def _parse_ntv2(raw: bytes, name: str) -> List[SubGrid]:
    if len(raw) < NTV2_RECORD_SIZE * NTV2_OVERVIEW_RECORDS:
        raise GridLoadError("Payload is too short for an NTv2 header", grid_name=name)

    if struct.unpack_from("<i", raw, 8)[0] == NTV2_OVERVIEW_RECORDS:
        endian = "<"
    elif struct.unpack_from(">i", raw, 8)[0] == NTV2_OVERVIEW_RECORDS:
        endian = ">"
    else:
        raise GridLoadError(
            "Not an NTv2 payload (NUM_OREC is not 11 in either byte order)",
            grid_name=name,
        )

    overview = _read_records(raw, 0, NTV2_OVERVIEW_RECORDS, endian)
    if "NUM_OREC" not in overview or "NUM_FILE" not in overview:
        raise GridLoadError("NTv2 overview header is incomplete", grid_name=name)

    num_file = _as_int(overview["NUM_FILE"], endian)
    gs_type = _as_text(overview.get("GS_TYPE", b"SECONDS ")).upper()
    if gs_type not in _UNIT_TO_ARCSEC:
        raise GridLoadError(f"Unsupported NTv2 GS_TYPE '{gs_type}'", grid_name=name)
    to_arcsec = _UNIT_TO_ARCSEC[gs_type]

    subgrids: List[SubGrid] = []
    offset = NTV2_RECORD_SIZE * NTV2_OVERVIEW_RECORDS
    for _ in range(num_file):
        header = _read_records(raw, offset, NTV2_SUBGRID_RECORDS, endian)
        offset += NTV2_RECORD_SIZE * NTV2_SUBGRID_RECORDS

        missing = {"SUB_NAME", "PARENT", "S_LAT", "N_LAT", "E_LONG", "W_LONG",
                   "LAT_INC", "LONG_INC", "GS_COUNT"} - header.keys()
        if missing:
            raise GridLoadError(
                f"NTv2 sub-grid header missing {', '.join(sorted(missing))}",
                grid_name=name,
            )

        s_lat, n_lat, e_long, w_long, lat_inc, long_inc = (
            _as_float(header[key], endian) * to_arcsec
            for key in ("S_LAT", "N_LAT", "E_LONG", "W_LONG", "LAT_INC", "LONG_INC")
        )
        gs_count = _as_int(header["GS_COUNT"], endian)
        if not all(map(math.isfinite, (s_lat, n_lat, e_long, w_long, lat_inc, long_inc))):
            raise GridLoadError("NTv2 sub-grid header holds non-finite values", grid_name=name)
        if lat_inc <= 0 or long_inc <= 0 or n_lat <= s_lat or w_long <= e_long:
            raise GridLoadError("NTv2 sub-grid has an invalid extent", grid_name=name)

        nrows = int(round((n_lat - s_lat) / lat_inc)) + 1
        ncols = int(round((w_long - e_long) / long_inc)) + 1
        if nrows * ncols != gs_count:
            raise GridLoadError(
                f"NTv2 GS_COUNT {gs_count} does not match {nrows}x{ncols} nodes",
                grid_name=name,
            )

        size = gs_count * NTV2_NODE_SIZE
        if offset + size > len(raw):
            raise GridLoadError("NTv2 node data is truncated", grid_name=name)
        nodes = np.frombuffer(
            raw, dtype=np.dtype(f"{endian}f4"), count=gs_count * 4, offset=offset
        ).reshape(nrows, ncols, 4)
        offset += size

        # Columns run east to west with positive-west values
        lat_shift = nodes[:, ::-1, 0].astype(np.float64) * to_arcsec
        lon_shift = -nodes[:, ::-1, 1].astype(np.float64) * to_arcsec

        lats = (s_lat + np.arange(nrows) * lat_inc) / 3600.0
        lons = (-w_long + np.arange(ncols) * long_inc) / 3600.0

        subgrid = SubGrid(
            name=_as_text(header["SUB_NAME"]),
            parent=_as_text(header["PARENT"]),
            lats=lats,
            lons=lons,
            lat_shift=lat_shift,
            lon_shift=lon_shift,
        )
        logger.debug(f"Parsed NTv2 sub-grid {subgrid!r}")
        subgrids.append(subgrid)

    return subgrids


def _read_records(raw: bytes, offset: int, count: int, endian: str) -> Dict[str, bytes]:
    records: Dict[str, bytes] = {}
    for index in range(count):
        start = offset + index * NTV2_RECORD_SIZE
        key, value = struct.unpack_from("8s8s", raw, start)
        records[_as_text(key)] = value
    return records


def _as_text(value: bytes) -> str:
    return value.decode("ascii").rstrip(" \x00")


def _as_int(value: bytes, endian: str) -> int:
    return struct.unpack(f"{endian}i", value[:4])[0]


def _as_float(value: bytes, endian: str) -> float:
    return struct.unpack(f"{endian}d", value)[0]


def _read_geotiff_subgrid(src: "rasterio.DatasetReader", name: str) -> SubGrid:
    if src.crs is None or src.transform.is_identity:
        raise GridLoadError("GeoTIFF grid has no georeferencing", grid_name=name)
    if not src.crs.is_geographic:
        raise GridLoadError(
            f"GeoTIFF grid must use geographic coordinates, got {src.crs}", grid_name=name
        )
    if src.count < 2:
        raise GridLoadError(
            f"GeoTIFF grid needs latitude and longitude offset bands, found {src.count}",
            grid_name=name,
        )

    descriptions = [(d or "").lower() for d in src.descriptions]
    lat_band = descriptions.index("latitude_offset") + 1 if "latitude_offset" in descriptions else 1
    lon_band = descriptions.index("longitude_offset") + 1 if "longitude_offset" in descriptions else 2

    lat_shift = src.read(lat_band).astype(np.float64)
    lon_shift = src.read(lon_band).astype(np.float64)
    if src.tags(lon_band).get("positive_value", "east").lower() == "west":
        lon_shift = -lon_shift

    if src.nodata is not None:
        lat_shift[lat_shift == src.nodata] = np.nan
        lon_shift[lon_shift == src.nodata] = np.nan

    transform = src.transform
    # Area rasters locate values at pixel centres, Point rasters at corners
    half = 0.5 if src.tags().get("AREA_OR_POINT", "Area").lower() == "area" else 0.0
    lons = transform.c + (np.arange(src.width) + half) * transform.a
    lats = transform.f + (np.arange(src.height) + half) * transform.e

    if lats[0] > lats[-1]:
        lats = lats[::-1]
        lat_shift = lat_shift[::-1, :]
        lon_shift = lon_shift[::-1, :]
    if lons[0] > lons[-1]:
        lons = lons[::-1]
        lat_shift = lat_shift[:, ::-1]
        lon_shift = lon_shift[:, ::-1]

    south, west, north, east = EOV_AREA_OF_USE
    if lats[-1] < south or lats[0] > north or lons[-1] < west or lons[0] > east:
        raise GridLoadError(
            f"GeoTIFF grid extent ({lats[0]:.3f}, {lons[0]:.3f}, {lats[-1]:.3f}, "
            f"{lons[-1]:.3f}) does not overlap the EOV area",
            grid_name=name,
        )

    return SubGrid(
        name=name,
        parent="NONE",
        lats=np.ascontiguousarray(lats),
        lons=np.ascontiguousarray(lons),
        lat_shift=np.ascontiguousarray(lat_shift),
        lon_shift=np.ascontiguousarray(lon_shift),
    )


class GridCorrectionSource:
    """
    A named correction grid that may or may not be loaded yet.

    The parsed grid is published as a single reference under a lock;
    readers take a snapshot of the reference and never see a partial grid.
    A failed load leaves the previous state untouched.
    """

    def __init__(self, name: str) -> None:
        self.name = name
        self._grid: Optional[CorrectionGrid] = None
        self._lock = threading.Lock()

    @property
    def state(self) -> GridState:
        """Current load state."""
        return GridState.LOADED if self._grid is not None else GridState.UNLOADED

    @property
    def grid(self) -> Optional[CorrectionGrid]:
        """The published grid, if any."""
        return self._grid

    def snapshot(self) -> Optional[CorrectionGrid]:
        """Return the currently published grid reference."""
        return self._grid

    def load(self, raw: bytes) -> bool:
        """
        Parse and publish a grid payload.

        Args:
            raw: Complete grid file content

        Returns:
            True if the grid was parsed and published, False otherwise
        """
        with log_context(grid_name=self.name):
            if len(raw) > settings.max_grid_size_bytes:
                logger.warning(
                    f"Grid rejected: {len(raw)} bytes exceeds "
                    f"{settings.max_grid_size_mb} MB limit"
                )
                return False

            try:
                with PerformanceTimer("parse correction grid", unit="sub-grids") as timer:
                    grid = CorrectionGrid.from_bytes(self.name, raw)
                    timer.count = len(grid.subgrids)
            except GridLoadError as e:
                logger.warning(
                    f"Failed to load correction grid: {e.message}; "
                    f"keeping {self.state.value} state",
                    extra={"error_code": e.error_code},
                )
                return False

            with self._lock:
                self._grid = grid

            logger.info(
                f"Loaded correction grid ({grid.source_format}, "
                f"{len(grid.subgrids)} sub-grids, bounds={grid.bounds})"
            )
            return True

    def status(self) -> GridStatus:
        """Describe the source for status reporting."""
        grid = self._grid
        if grid is None:
            return GridStatus(
                name=self.name,
                state=GridState.UNLOADED,
                accuracy_label=AccuracyTier.HELMERT.label,
                source_label=HELMERT_SOURCE_LABEL,
            )
        return GridStatus(
            name=self.name,
            state=GridState.LOADED,
            accuracy_label=AccuracyTier.GRID.label,
            source_label=grid_source_label(self.name),
            subgrid_count=len(grid.subgrids),
        )
