"""
Tests for NTv2 and GeoTIFF correction grids.
"""

import math
import struct
from pathlib import Path

import numpy as np
import pytest
import rasterio
from rasterio.transform import from_origin

from eovtrans.core.config import settings
from eovtrans.core.errors import GridLoadError, TransformationError
from eovtrans.core.geodesy.grid import (
    HELMERT_SOURCE_LABEL,
    CorrectionGrid,
    GridCorrectionSource,
    SubGrid,
    grid_source_label,
)
from eovtrans.core.geodesy.transformer import FrameTransformer
from eovtrans.models.geodesy import AccuracyTier, GridState


def _patch_double(raw: bytes, key: str, value: float) -> bytes:
    """Overwrite the first little-endian double record named `key`."""
    index = raw.index(key.ljust(8).encode("ascii")) + 8
    return raw[:index] + struct.pack("<d", value) + raw[index + 8:]


def _write_geotiff(
    path: Path,
    lat_band: np.ndarray,
    lon_band: np.ndarray,
    west: float,
    north: float,
    step: float,
    descriptions=("latitude_offset", "longitude_offset"),
    lon_positive: str = "east",
    nodata=None,
    crs: str = "EPSG:4258",
    georeferenced: bool = True,
) -> bytes:
    height, width = lat_band.shape
    georeferencing = (
        {"crs": crs, "transform": from_origin(west, north, step, step)} if georeferenced else {}
    )
    with rasterio.open(
        path,
        "w",
        driver="GTiff",
        height=height,
        width=width,
        count=2,
        dtype="float32",
        nodata=nodata,
        **georeferencing,
    ) as dst:
        dst.write(lat_band.astype("float32"), 1)
        dst.write(lon_band.astype("float32"), 2)
        dst.set_band_description(1, descriptions[0])
        dst.set_band_description(2, descriptions[1])
        dst.update_tags(2, positive_value=lon_positive)
    return path.read_bytes()


class TestSubGrid:
    """Tests for a single sub-grid."""

    def _grid(self) -> SubGrid:
        lats = np.array([46.0, 47.0])
        lons = np.array([18.0, 19.0, 20.0])
        lat_shift = np.array([[0.0, 1.0, 2.0], [2.0, 3.0, 4.0]])
        lon_shift = -lat_shift
        return SubGrid("S", "NONE", lats, lons, lat_shift, lon_shift)

    def test_bounds(self) -> None:
        """Bounds are (south, west, north, east)."""
        assert self._grid().bounds == (46.0, 18.0, 47.0, 20.0)

    def test_bilinear_interpolation(self) -> None:
        """Shifts interpolate bilinearly between nodes."""
        dlat, dlon = self._grid().shift(46.5, 18.5)
        assert dlat == pytest.approx(1.5)
        assert dlon == pytest.approx(-1.5)

    def test_node_value_exact(self) -> None:
        """Shifts at nodes equal the node values."""
        assert self._grid().shift(47.0, 20.0) == pytest.approx((4.0, -4.0))

    def test_outside_returns_none(self) -> None:
        """Points outside the extent have no shift."""
        assert self._grid().shift(45.9, 19.0) is None
        assert self._grid().shift(46.5, 20.1) is None

    def test_nan_node_returns_none(self) -> None:
        """Cells touching a missing node have no shift."""
        lats = np.array([46.0, 47.0])
        lons = np.array([18.0, 19.0])
        shifts = np.array([[1.0, np.nan], [1.0, 1.0]])
        grid = SubGrid("S", "NONE", lats, lons, shifts, shifts)
        assert grid.shift(46.5, 18.5) is None

    def test_too_few_nodes_rejected(self) -> None:
        """A sub-grid needs at least 2x2 nodes."""
        with pytest.raises(GridLoadError):
            SubGrid("S", "NONE", np.array([46.0]), np.array([18.0, 19.0]),
                    np.zeros((1, 2)), np.zeros((1, 2)))

    def test_shape_mismatch_rejected(self) -> None:
        """Shift arrays must match the node axes."""
        with pytest.raises(GridLoadError):
            SubGrid("S", "NONE", np.array([46.0, 47.0]), np.array([18.0, 19.0]),
                    np.zeros((2, 3)), np.zeros((2, 3)))


class TestNTv2Parsing:
    """Tests for NTv2 payload parsing."""

    def test_little_endian(self, hungary_ntv2: bytes) -> None:
        """Little-endian grids parse and shift points."""
        grid = CorrectionGrid.from_ntv2("test.gsb", hungary_ntv2)

        assert grid.source_format == "ntv2"
        assert len(grid.subgrids) == 1
        assert grid.bounds == pytest.approx((45.0, 16.0, 49.0, 23.0))
        assert grid.shift(47.0, 19.0) == pytest.approx((0.5, -1.5))

    def test_big_endian(self, ntv2_builder, hungary_subgrid) -> None:
        """Big-endian grids are detected from NUM_OREC."""
        raw = ntv2_builder([hungary_subgrid], endian=">")
        grid = CorrectionGrid.from_ntv2("test.gsb", raw)
        assert grid.shift(47.0, 19.0) == pytest.approx((0.5, -1.5))

    def test_longitude_orientation(self, ntv2_builder, hungary_subgrid) -> None:
        """Positive-west file values become east-positive, west-to-east axes."""
        sub = dict(hungary_subgrid, lat_shift=lambda lat, lon: lon, lon_shift=lambda lat, lon: lat)
        grid = CorrectionGrid.from_ntv2("test.gsb", ntv2_builder([sub]))

        subgrid = grid.subgrids[0]
        assert subgrid.lons[0] == pytest.approx(16.0)
        assert subgrid.lons[-1] == pytest.approx(23.0)
        dlat, dlon = grid.shift(47.25, 19.25)
        assert dlat == pytest.approx(19.25, abs=1e-4)
        assert dlon == pytest.approx(47.25, abs=1e-4)

    @pytest.mark.parametrize("gs_type", ["MINUTES", "DEGREES"])
    def test_gs_type_units(self, gs_type: str, ntv2_builder, hungary_subgrid) -> None:
        """Shift units are converted to arc-seconds."""
        raw = ntv2_builder([hungary_subgrid], gs_type=gs_type)
        grid = CorrectionGrid.from_ntv2("test.gsb", raw)
        dlat, dlon = grid.shift(47.0, 19.0)
        assert dlat == pytest.approx(0.5, rel=1e-5)
        assert dlon == pytest.approx(-1.5, rel=1e-5)

    def test_nested_subgrid_preferred(self, ntv2_builder, hungary_subgrid) -> None:
        """The most detailed containing sub-grid is used."""
        child = {
            "name": "CHILD",
            "parent": "HUNGARY",
            "south": 46.5,
            "north": 47.5,
            "west": 18.5,
            "east": 19.5,
            "lat_inc": 0.25,
            "lon_inc": 0.25,
            "lat_shift": 3.0,
            "lon_shift": 3.0,
        }
        grid = CorrectionGrid.from_ntv2("test.gsb", ntv2_builder([hungary_subgrid, child]))

        assert grid.find_subgrid(47.0, 19.0).name == "CHILD"
        assert grid.shift(47.0, 19.0) == pytest.approx((3.0, 3.0))
        assert grid.find_subgrid(45.5, 17.0).name == "HUNGARY"
        assert grid.shift(45.5, 17.0) == pytest.approx((0.5, -1.5))

    def test_not_ntv2(self) -> None:
        """Payloads without NUM_OREC=11 are rejected."""
        with pytest.raises(GridLoadError):
            CorrectionGrid.from_bytes("test.gsb", b"\x00" * 400)

    def test_too_short(self) -> None:
        """Payloads shorter than the overview header are rejected."""
        with pytest.raises(GridLoadError):
            CorrectionGrid.from_bytes("test.gsb", b"NUM_OREC")

    def test_empty(self) -> None:
        """Empty payloads are rejected."""
        with pytest.raises(GridLoadError):
            CorrectionGrid.from_bytes("test.gsb", b"")

    def test_truncated_nodes(self, hungary_ntv2: bytes) -> None:
        """Missing node data is reported, not read past the end."""
        with pytest.raises(GridLoadError):
            CorrectionGrid.from_bytes("test.gsb", hungary_ntv2[:-200])

    def test_gs_count_mismatch(self, hungary_ntv2: bytes) -> None:
        """GS_COUNT must match the extent and increments."""
        marker = b"GS_COUNT"
        index = hungary_ntv2.index(marker) + 8
        corrupted = hungary_ntv2[:index] + (7).to_bytes(4, "little") + hungary_ntv2[index + 4:]
        with pytest.raises(GridLoadError):
            CorrectionGrid.from_bytes("test.gsb", corrupted)

    def test_unknown_gs_type(self, hungary_ntv2: bytes) -> None:
        """Unsupported shift units are rejected."""
        corrupted = hungary_ntv2.replace(b"SECONDS ", b"RADIANS ", 1)
        with pytest.raises(GridLoadError):
            CorrectionGrid.from_bytes("test.gsb", corrupted)

    @pytest.mark.parametrize("key", ["S_LAT", "N_LAT", "LAT_INC", "LONG_INC"])
    def test_non_finite_header(self, key: str, hungary_ntv2: bytes) -> None:
        """Infinite or NaN extents are rejected as malformed."""
        for value in (math.inf, math.nan):
            with pytest.raises(GridLoadError):
                CorrectionGrid.from_bytes("test.gsb", _patch_double(hungary_ntv2, key, value))

    def test_overflowing_node_count(self, hungary_ntv2: bytes) -> None:
        """An increment too small to count nodes is rejected."""
        corrupted = _patch_double(hungary_ntv2, "LAT_INC", 1e-306)
        with pytest.raises(GridLoadError):
            CorrectionGrid.from_bytes("test.gsb", corrupted)

    def test_non_finite_header_not_loaded(self, hungary_ntv2: bytes) -> None:
        """Loading a grid with an infinite extent returns False."""
        transformer = FrameTransformer()
        corrupted = _patch_double(hungary_ntv2, "N_LAT", math.inf)

        assert transformer.load_correction_grid("etrs2eov_notowgs.gsb", corrupted) is False
        assert transformer.grid_status().loaded is False


class TestGridShifts:
    """Tests for forward and inverse grid application."""

    def test_forward_adds_shift(self, hungary_ntv2: bytes) -> None:
        """Forward adds the shift in arc-seconds."""
        grid = CorrectionGrid.from_bytes("test.gsb", hungary_ntv2)
        lat, lon = grid.forward(47.0, 19.0)
        assert lat == pytest.approx(47.0 + 0.5 / 3600.0, abs=1e-12)
        assert lon == pytest.approx(19.0 - 1.5 / 3600.0, abs=1e-12)

    def test_inverse_round_trip(self, ntv2_builder, hungary_subgrid) -> None:
        """Inverse undoes forward on a varying grid."""
        sub = dict(
            hungary_subgrid,
            lat_shift=lambda lat, lon: 0.2 * lon,
            lon_shift=lambda lat, lon: -0.1 * lat,
        )
        grid = CorrectionGrid.from_bytes("test.gsb", ntv2_builder([sub]))

        shifted = grid.forward(47.3, 19.7)
        lat, lon = grid.inverse(*shifted)
        assert lat == pytest.approx(47.3, abs=1e-10)
        assert lon == pytest.approx(19.7, abs=1e-10)

    def test_outside_coverage(self, hungary_ntv2: bytes) -> None:
        """Points outside coverage return None in both directions."""
        grid = CorrectionGrid.from_bytes("test.gsb", hungary_ntv2)
        assert grid.forward(52.0, 13.0) is None
        assert grid.inverse(52.0, 13.0) is None

    def test_inverse_non_convergence(self, ntv2_builder, hungary_subgrid) -> None:
        """A diverging inverse raises TransformationError."""
        sub = dict(
            hungary_subgrid,
            lat_shift=lambda lat, lon: 5000.0 * (lat - 47.0),
            lon_shift=0.0,
        )
        grid = CorrectionGrid.from_bytes("test.gsb", ntv2_builder([sub]))

        with pytest.raises(TransformationError) as exc_info:
            grid.inverse(47.1, 19.0, max_iterations=3)
        assert exc_info.value.stage == "grid_inverse"


class TestGeoTiff:
    """Tests for GeoTIFF offset grids."""

    def test_geotiff_bands_by_description(self, tmp_path: Path) -> None:
        """Bands are found by description and pixel centres are used."""
        lat_band = np.full((4, 6), 0.5)
        lon_band = np.full((4, 6), -1.5)
        raw = _write_geotiff(tmp_path / "grid.tif", lat_band, lon_band, 16.0, 49.0, 1.0)

        grid = CorrectionGrid.from_bytes("grid.tif", raw)

        assert grid.source_format == "geotiff"
        south, west, north, east = grid.bounds
        assert (south, west, north, east) == pytest.approx((45.5, 16.5, 48.5, 21.5))
        assert grid.shift(47.0, 19.0) == pytest.approx((0.5, -1.5))

    def test_geotiff_swapped_bands(self, tmp_path: Path) -> None:
        """Band descriptions decide which band holds which shift."""
        first = np.full((3, 3), -1.5)
        second = np.full((3, 3), 0.5)
        raw = _write_geotiff(
            tmp_path / "grid.tif", first, second, 18.0, 48.0, 1.0,
            descriptions=("longitude_offset", "latitude_offset"),
        )
        grid = CorrectionGrid.from_bytes("grid.tif", raw)
        assert grid.shift(47.0, 19.0) == pytest.approx((0.5, -1.5))

    def test_geotiff_rows_flipped(self, tmp_path: Path) -> None:
        """North-up rasters are stored with ascending latitudes."""
        lat_band = np.array([[3.0, 3.0], [1.0, 1.0]])
        lon_band = np.zeros((2, 2))
        raw = _write_geotiff(tmp_path / "grid.tif", lat_band, lon_band, 18.0, 48.0, 1.0)

        grid = CorrectionGrid.from_bytes("grid.tif", raw)
        subgrid = grid.subgrids[0]
        assert subgrid.lats[0] < subgrid.lats[-1]
        assert grid.shift(46.5, 18.5)[0] == pytest.approx(1.0)
        assert grid.shift(47.5, 18.5)[0] == pytest.approx(3.0)

    def test_geotiff_positive_west(self, tmp_path: Path) -> None:
        """A positive-west longitude band is negated."""
        raw = _write_geotiff(
            tmp_path / "grid.tif", np.zeros((3, 3)), np.full((3, 3), 1.5),
            18.0, 48.0, 1.0, lon_positive="west",
        )
        grid = CorrectionGrid.from_bytes("grid.tif", raw)
        assert grid.shift(47.0, 19.0)[1] == pytest.approx(-1.5)

    def test_geotiff_nodata(self, tmp_path: Path) -> None:
        """Nodata nodes give no shift."""
        lat_band = np.full((3, 3), -9999.0)
        raw = _write_geotiff(
            tmp_path / "grid.tif", lat_band, np.zeros((3, 3)), 18.0, 48.0, 1.0, nodata=-9999.0
        )
        grid = CorrectionGrid.from_bytes("grid.tif", raw)
        assert grid.shift(47.0, 19.0) is None

    def test_geotiff_without_georeferencing(self, tmp_path: Path) -> None:
        """Rasters without a CRS or transform are rejected."""
        raw = _write_geotiff(
            tmp_path / "grid.tif", np.zeros((3, 3)), np.zeros((3, 3)),
            0.0, 3.0, 1.0, georeferenced=False,
        )
        with pytest.raises(GridLoadError):
            CorrectionGrid.from_bytes("grid.tif", raw)

    def test_geotiff_projected_crs(self, tmp_path: Path) -> None:
        """Offset grids must be laid out in geographic coordinates."""
        raw = _write_geotiff(
            tmp_path / "grid.tif", np.zeros((3, 3)), np.zeros((3, 3)),
            600000.0, 250000.0, 1000.0, crs="EPSG:23700",
        )
        with pytest.raises(GridLoadError):
            CorrectionGrid.from_bytes("grid.tif", raw)

    def test_geotiff_outside_eov_area(self, tmp_path: Path) -> None:
        """A grid that does not cover Hungary is rejected."""
        raw = _write_geotiff(tmp_path / "grid.tif", np.zeros((3, 3)), np.zeros((3, 3)), 0.0, 3.0, 1.0)
        with pytest.raises(GridLoadError):
            CorrectionGrid.from_bytes("grid.tif", raw)

    def test_ungeoreferenced_geotiff_not_loaded(self, tmp_path: Path) -> None:
        """The source stays unloaded after an ungeoreferenced GeoTIFF."""
        raw = _write_geotiff(
            tmp_path / "grid.tif", np.zeros((3, 3)), np.zeros((3, 3)),
            0.0, 3.0, 1.0, georeferenced=False,
        )
        source = GridCorrectionSource("etrs2eov_notowgs.gsb")

        assert source.load(raw) is False
        assert source.status().loaded is False


class TestGridCorrectionSource:
    """Tests for the grid source state machine."""

    def test_initial_state(self) -> None:
        """A new source is unloaded and reports the Helmert fallback."""
        source = GridCorrectionSource("etrs2eov_notowgs.gsb")
        status = source.status()

        assert source.state == GridState.UNLOADED
        assert source.snapshot() is None
        assert status.loaded is False
        assert status.accuracy_label == AccuracyTier.HELMERT.label
        assert status.source_label == HELMERT_SOURCE_LABEL

    def test_load_success(self, hungary_ntv2: bytes) -> None:
        """A valid payload is published."""
        source = GridCorrectionSource("etrs2eov_notowgs.gsb")

        assert source.load(hungary_ntv2) is True
        status = source.status()
        assert status.state == GridState.LOADED
        assert status.subgrid_count == 1
        assert status.accuracy_label == AccuracyTier.GRID.label
        assert status.source_label == grid_source_label("etrs2eov_notowgs.gsb")

    def test_failed_load_keeps_previous_grid(self, hungary_ntv2: bytes) -> None:
        """A bad payload neither raises nor replaces the loaded grid."""
        source = GridCorrectionSource("etrs2eov_notowgs.gsb")
        source.load(hungary_ntv2)
        previous = source.snapshot()

        assert source.load(b"garbage" * 50) is False
        assert source.snapshot() is previous
        assert source.state == GridState.LOADED

    def test_failed_load_when_unloaded(self) -> None:
        """A bad first payload leaves the source unloaded."""
        source = GridCorrectionSource("etrs2eov_notowgs.gsb")
        assert source.load(b"") is False
        assert source.state == GridState.UNLOADED

    def test_oversized_payload_rejected(self, hungary_ntv2: bytes, monkeypatch) -> None:
        """Payloads above the configured size are rejected."""
        monkeypatch.setattr(settings, "max_grid_size_mb", 0)
        source = GridCorrectionSource("etrs2eov_notowgs.gsb")
        assert source.load(hungary_ntv2) is False
        assert source.state == GridState.UNLOADED
