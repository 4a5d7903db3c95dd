"""
Registry of supported reference frames.

All transformations are routed through ETRF2000 (the hub). Each frame
declares the parameter set linking it to the hub, in the frame-to-hub
direction; ETRS89 is treated as identical to ETRF2000.
"""

from typing import Dict, List, Optional

from eovtrans.core.errors import InputRangeError
from eovtrans.core.geodesy.datum import (
    HD72_TO_ETRS89_HELMERT,
    ITRF2014_TO_ETRF2000,
    ITRF20_TO_ETRS89,
)
from eovtrans.core.geodesy.ellipsoid import GRS67, GRS80, WGS84
from eovtrans.core.geodesy.oblique_mercator import EOV_PROJECTION
from eovtrans.models.geodesy import DatumTransformParams, ReferenceFrame

HUB_FRAME = "ETRF2000"

# EPSG:23700 area of use as (south, west, north, east) in degrees
EOV_AREA_OF_USE = (45.74, 16.11, 48.58, 22.90)

EOV_PROJ_PROJECTED = (
    "+proj=somerc +lat_0=47.14439372222222 +lon_0=19.04857177777778 "
    "+k_0=0.99993 +x_0=650000 +y_0=200000 +ellps=GRS67 "
    "+towgs84=52.17,-71.82,-14.9,0,0,0,0 +units=m +no_defs"
)

ETRF2000 = ReferenceFrame(
    id="ETRF2000",
    name="European Terrestrial Reference Frame 2000",
    ellipsoid=GRS80,
    proj_geodetic="+proj=longlat +ellps=GRS80 +towgs84=0,0,0,0,0,0,0 +no_defs",
    epsg=9067,
)

ETRS89 = ReferenceFrame(
    id="ETRS89",
    name="European Terrestrial Reference System 1989",
    ellipsoid=GRS80,
    proj_geodetic="+proj=longlat +ellps=GRS80 +towgs84=0,0,0,0,0,0,0 +no_defs",
    epsg=4258,
)

ITRF2014 = ReferenceFrame(
    id="ITRF2014",
    name="International Terrestrial Reference Frame 2014",
    ellipsoid=GRS80,
    proj_geodetic=(
        "+proj=longlat +ellps=GRS80 "
        "+towgs84=0.0009,-0.0014,-0.0003,0.002114,-0.012789,0.020671,0.00034 +no_defs"
    ),
    epsg=7912,
)

# towgs84 of ITRF20 depends on the epoch and is built on demand
ITRF20 = ReferenceFrame(
    id="ITRF20",
    name="International Terrestrial Reference Frame 2020",
    ellipsoid=WGS84,
    epsg=9989,
)

EOV = ReferenceFrame(
    id="EOV",
    name="Egységes Országos Vetület (HD72)",
    ellipsoid=GRS67,
    projection=EOV_PROJECTION,
    proj_geodetic="+proj=longlat +ellps=GRS67 +towgs84=52.17,-71.82,-14.9,0,0,0,0 +no_defs",
    proj_projected=EOV_PROJ_PROJECTED,
    epsg=23700,
)

FRAMES: Dict[str, ReferenceFrame] = {
    frame.id: frame for frame in (ETRF2000, ETRS89, ITRF2014, ITRF20, EOV)
}

FRAME_ALIASES: Dict[str, str] = {
    "WGS84": "ITRF2014",
    "RTK": "ETRF2000",
    "HD72": "EOV",
    "EPSG:23700": "EOV",
    "ITRF2020": "ITRF20",
}

# Frame -> hub parameter sets; None marks frames identical to the hub
HUB_LINKS: Dict[str, Optional[DatumTransformParams]] = {
    "ETRF2000": None,
    "ETRS89": None,
    "ITRF2014": ITRF2014_TO_ETRF2000,
    "ITRF20": ITRF20_TO_ETRS89,
    "EOV": HD72_TO_ETRS89_HELMERT,
}


def canonical_frame_id(frame_id: str) -> str:
    """
    Resolve a frame id or alias to its canonical id (case-insensitive).

    Raises:
        InputRangeError: If the frame is unknown
    """
    key = str(frame_id).strip().upper()
    key = FRAME_ALIASES.get(key, key)
    if key not in FRAMES:
        raise InputRangeError(
            f"Unknown reference frame '{frame_id}'",
            field="frame",
            value=str(frame_id),
            suggestions=[f"Use one of: {', '.join(list_frame_ids())}"],
        )
    return key


def resolve_frame(frame_id: str) -> ReferenceFrame:
    """
    Look up a frame by id or alias.

    Raises:
        InputRangeError: If the frame is unknown
    """
    return FRAMES[canonical_frame_id(frame_id)]


def list_frame_ids(include_aliases: bool = True) -> List[str]:
    """List canonical frame ids, optionally followed by the aliases."""
    ids = list(FRAMES)
    if include_aliases:
        ids.extend(FRAME_ALIASES)
    return ids
