"""
Shared fixtures: synthetic correction grid payloads and a fresh default transformer.
"""

import struct
from typing import Callable, Dict, List

import numpy as np
import pytest

from eovtrans.core.config import settings
from eovtrans.core.geodesy import transformer as transformer_module
from eovtrans.core.geodesy.transformer import FrameTransformer


def _text(key: str, value: str) -> bytes:
    return key.ljust(8).encode("ascii") + value.ljust(8).encode("ascii")


def _int(key: str, value: int, endian: str) -> bytes:
    return key.ljust(8).encode("ascii") + struct.pack(f"{endian}i", value) + b"\x00" * 4


def _double(key: str, value: float, endian: str) -> bytes:
    return key.ljust(8).encode("ascii") + struct.pack(f"{endian}d", value)


def build_ntv2(subgrids: List[Dict], endian: str = "<", gs_type: str = "SECONDS") -> bytes:
    """
    Build an NTv2 payload.

    Each subgrid dict gives `name`, `parent`, `south`, `north`, `west`, `east`
    (east-positive degrees), `lat_inc` and `lon_inc` (degrees), and
    `lat_shift` / `lon_shift`: either constants or callables f(lat, lon)
    returning arc-seconds with longitude east-positive. Values are written
    in `gs_type` units.
    """
    unit = {"SECONDS": 1.0, "MINUTES": 60.0, "DEGREES": 3600.0}[gs_type]

    out = b"".join(
        [
            _int("NUM_OREC", 11, endian),
            _int("NUM_SREC", 11, endian),
            _int("NUM_FILE", len(subgrids), endian),
            _text("GS_TYPE", gs_type),
            _text("VERSION", "NTv2.0"),
            _text("SYSTEM_F", "HD72"),
            _text("SYSTEM_T", "ETRS89"),
            _double("MAJOR_F", 6378160.0, endian),
            _double("MINOR_F", 6356774.516, endian),
            _double("MAJOR_T", 6378137.0, endian),
            _double("MINOR_T", 6356752.314, endian),
        ]
    )

    for sub in subgrids:
        nrows = int(round((sub["north"] - sub["south"]) / sub["lat_inc"])) + 1
        ncols = int(round((sub["east"] - sub["west"]) / sub["lon_inc"])) + 1

        def value(shift, lat, lon):
            return shift(lat, lon) if callable(shift) else shift

        nodes = []
        for row in range(nrows):
            lat = sub["south"] + row * sub["lat_inc"]
            # Each row runs east to west, longitudes positive west
            for col in range(ncols):
                lon = sub["east"] - col * sub["lon_inc"]
                dlat = value(sub["lat_shift"], lat, lon)
                dlon_west = -value(sub["lon_shift"], lat, lon)
                nodes.append((dlat / unit, dlon_west / unit, 0.0, 0.0))

        out += b"".join(
            [
                _text("SUB_NAME", sub["name"]),
                _text("PARENT", sub.get("parent", "NONE")),
                _text("CREATED", "20260101"),
                _text("UPDATED", "20260101"),
                _double("S_LAT", sub["south"] * 3600.0 / unit, endian),
                _double("N_LAT", sub["north"] * 3600.0 / unit, endian),
                _double("E_LONG", -sub["east"] * 3600.0 / unit, endian),
                _double("W_LONG", -sub["west"] * 3600.0 / unit, endian),
                _double("LAT_INC", sub["lat_inc"] * 3600.0 / unit, endian),
                _double("LONG_INC", sub["lon_inc"] * 3600.0 / unit, endian),
                _int("GS_COUNT", nrows * ncols, endian),
            ]
        )
        out += np.asarray(nodes, dtype=np.dtype(f"{endian}f4")).tobytes()

    out += _text("END", "")
    return out


HUNGARY_GRID = {
    "name": "HUNGARY",
    "parent": "NONE",
    "south": 45.0,
    "north": 49.0,
    "west": 16.0,
    "east": 23.0,
    "lat_inc": 0.5,
    "lon_inc": 0.5,
    "lat_shift": 0.5,
    "lon_shift": -1.5,
}


@pytest.fixture
def ntv2_builder() -> Callable[..., bytes]:
    """Factory building NTv2 payloads from sub-grid dicts."""
    return build_ntv2


@pytest.fixture
def hungary_subgrid() -> Dict:
    """Sub-grid dict covering Hungary with a constant shift."""
    return dict(HUNGARY_GRID)


@pytest.fixture
def hungary_ntv2() -> bytes:
    """Single sub-grid covering Hungary with a constant shift."""
    return build_ntv2([dict(HUNGARY_GRID)])


@pytest.fixture
def fresh_transformer(monkeypatch) -> FrameTransformer:
    """Replace the process-wide transformer with an unloaded one for the test."""
    monkeypatch.setattr(transformer_module, "_default_transformer", None)
    transformer = transformer_module.get_default_transformer()
    assert transformer.grid_source.name == settings.eov_grid_name
    return transformer
