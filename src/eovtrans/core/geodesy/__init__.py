"""
Geodesy module.

This module provides the transformation core:
- Reference ellipsoids and geodetic/Cartesian conversion
- Bursa-Wolf datum transformations with epoch-dependent parameters
- EOV oblique Mercator and UTM projections
- Correction grid parsing with Helmert fallback
- Independent cross-check against PROJ
"""

from eovtrans.core.geodesy.cartesian import (
    cartesian_distance,
    cartesian_to_geodetic,
    geodetic_to_cartesian,
)
from eovtrans.core.geodesy.datum import (
    HD72_TO_ETRS89_HELMERT,
    ITRF20_TO_ETRS89,
    ITRF2014_TO_ETRF2000,
    apply_transform,
    effective_params,
    frame_to_frame,
    inverse_params,
    inverse_transform,
)
from eovtrans.core.geodesy.ellipsoid import GRS67, GRS80, WGS84, derive_ellipsoid, get_ellipsoid
from eovtrans.core.geodesy.frames import (
    FRAME_ALIASES,
    FRAMES,
    HUB_FRAME,
    canonical_frame_id,
    list_frame_ids,
    resolve_frame,
)
from eovtrans.core.geodesy.grid import CorrectionGrid, GridCorrectionSource, SubGrid
from eovtrans.core.geodesy.oblique_mercator import (
    EOV_PROJECTION,
    forward_oblique_mercator,
    inverse_oblique_mercator,
)
from eovtrans.core.geodesy.reference import (
    ReferenceTransformer,
    frame_proj_definition,
    validate_transformation_accuracy,
)
from eovtrans.core.geodesy.transformer import (
    FrameTransformer,
    etrs89_to_itrf20,
    get_default_transformer,
    grid_status,
    itrf20_to_etrs89,
    load_correction_grid,
    project_to_eov,
    select_transform_path,
    to_target_frame,
    transform_point,
    unproject_from_eov,
)
from eovtrans.core.geodesy.utm import (
    calculate_utm_central_meridian,
    detect_utm_zone,
    format_utm_zone,
    geodetic_to_utm,
    get_utm_epsg,
    get_utm_letter_designator,
    get_utm_zone_bounds,
    utm_to_geodetic,
)

__all__ = [
    # Ellipsoids
    "GRS67",
    "GRS80",
    "WGS84",
    "derive_ellipsoid",
    "get_ellipsoid",
    # Cartesian
    "cartesian_distance",
    "cartesian_to_geodetic",
    "geodetic_to_cartesian",
    # Datum
    "HD72_TO_ETRS89_HELMERT",
    "ITRF20_TO_ETRS89",
    "ITRF2014_TO_ETRF2000",
    "apply_transform",
    "effective_params",
    "frame_to_frame",
    "inverse_params",
    "inverse_transform",
    # Frames
    "FRAME_ALIASES",
    "FRAMES",
    "HUB_FRAME",
    "canonical_frame_id",
    "list_frame_ids",
    "resolve_frame",
    # Grids
    "CorrectionGrid",
    "GridCorrectionSource",
    "SubGrid",
    # Projections
    "EOV_PROJECTION",
    "forward_oblique_mercator",
    "inverse_oblique_mercator",
    "calculate_utm_central_meridian",
    "detect_utm_zone",
    "format_utm_zone",
    "geodetic_to_utm",
    "get_utm_epsg",
    "get_utm_letter_designator",
    "get_utm_zone_bounds",
    "utm_to_geodetic",
    # Transformer
    "FrameTransformer",
    "etrs89_to_itrf20",
    "get_default_transformer",
    "grid_status",
    "itrf20_to_etrs89",
    "load_correction_grid",
    "project_to_eov",
    "select_transform_path",
    "to_target_frame",
    "transform_point",
    "unproject_from_eov",
    # Reference
    "ReferenceTransformer",
    "frame_proj_definition",
    "validate_transformation_accuracy",
]
