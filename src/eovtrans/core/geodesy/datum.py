"""
Seven-parameter (Bursa-Wolf) datum transformations.

Parameter sets declare their own units; `effective_params` evaluates a set
at an epoch and converts it to metres, radians and a dimensionless scale
once, so the transformation formula itself is unit-free.
"""

import logging
import math
from typing import Optional, Tuple

from eovtrans.core.errors import TransformationError
from eovtrans.core.geodesy.cartesian import cartesian_to_geodetic, geodetic_to_cartesian
from eovtrans.models.geodesy import (
    AngleUnit,
    DatumTransformParams,
    EffectiveParams,
    Ellipsoid,
    LengthUnit,
    ScaleUnit,
)

logger = logging.getLogger(__name__)

ARCSEC_TO_RAD = math.pi / (180.0 * 3600.0)

_LENGTH_TO_M = {
    LengthUnit.METRE: 1.0,
    LengthUnit.MILLIMETRE: 1e-3,
}

_ANGLE_TO_RAD = {
    AngleUnit.ARCSEC: ARCSEC_TO_RAD,
    AngleUnit.MILLIARCSEC: ARCSEC_TO_RAD / 1000.0,
}

_SCALE_TO_UNITLESS = {
    ScaleUnit.PPM: 1e-6,
    ScaleUnit.UNITLESS: 1.0,
}


# HD72 (GRS67) -> ETRS89 (GRS80), translation only
HD72_TO_ETRS89_HELMERT = DatumTransformParams(
    name="HD72->ETRS89 (Helmert)",
    translation=(52.17, -71.82, -14.9),
    length_unit=LengthUnit.METRE,
    angle_unit=AngleUnit.MILLIARCSEC,
    scale_unit=ScaleUnit.UNITLESS,
)

ITRF2014_TO_ETRF2000 = DatumTransformParams(
    name="ITRF2014->ETRF2000",
    translation=(0.0009, -0.0014, -0.0003),
    rotation=(0.002114, -0.012789, 0.020671),
    scale=0.00034,
    length_unit=LengthUnit.METRE,
    angle_unit=AngleUnit.ARCSEC,
    scale_unit=ScaleUnit.PPM,
)

ITRF20_TO_ETRS89 = DatumTransformParams(
    name="ITRF20->ETRS89",
    translation=(0.0031, -0.1019, 0.1301),
    rotation=(0.0, 0.0, -4.78e-3),
    scale=0.0,
    translation_rate=(0.0001, -0.0070, 0.0096),
    rotation_rate=(0.0, 0.0, -2.2e-3),
    scale_rate=0.0,
    epoch0=2000.0,
    length_unit=LengthUnit.MILLIMETRE,
    angle_unit=AngleUnit.MILLIARCSEC,
    scale_unit=ScaleUnit.PPM,
)


def effective_params(
    base: DatumTransformParams, epoch: Optional[float] = None
) -> EffectiveParams:
    """
    Evaluate a parameter set at an epoch and convert it to SI units.

    Each value follows value0 + rate * (epoch - epoch0). Static sets (no
    `epoch0`) ignore the epoch.

    Args:
        base: Parameter set in its declared units
        epoch: Epoch as decimal year; required only for time-dependent sets

    Returns:
        EffectiveParams in metres, radians and dimensionless scale
    """
    if base.epoch0 is None or epoch is None:
        dt = 0.0
    else:
        dt = epoch - base.epoch0

    to_m = _LENGTH_TO_M[base.length_unit]
    to_rad = _ANGLE_TO_RAD[base.angle_unit]
    to_scale = _SCALE_TO_UNITLESS[base.scale_unit]

    tx, ty, tz = (
        (value + rate * dt) * to_m
        for value, rate in zip(base.translation, base.translation_rate)
    )
    rx, ry, rz = (
        (value + rate * dt) * to_rad
        for value, rate in zip(base.rotation, base.rotation_rate)
    )
    s = (base.scale + base.scale_rate * dt) * to_scale

    return EffectiveParams(tx=tx, ty=ty, tz=tz, rx=rx, ry=ry, rz=rz, s=s)


def inverse_params(params: EffectiveParams) -> EffectiveParams:
    """Negate all seven parameters (first-order inverse)."""
    return EffectiveParams(
        tx=-params.tx,
        ty=-params.ty,
        tz=-params.tz,
        rx=-params.rx,
        ry=-params.ry,
        rz=-params.rz,
        s=-params.s,
    )


def apply_transform(
    x: float, y: float, z: float, params: EffectiveParams
) -> Tuple[float, float, float]:
    """
    Apply the small-angle Bursa-Wolf formula to Cartesian coordinates.

    Args:
        x: X in metres
        y: Y in metres
        z: Z in metres
        params: Parameters in SI units

    Returns:
        Transformed (X, Y, Z) in metres
    """
    k = 1.0 + params.s
    x_out = k * x + params.tx - params.rz * y + params.ry * z
    y_out = k * y + params.rz * x + params.ty - params.rx * z
    z_out = k * z - params.ry * x + params.rx * y + params.tz
    return x_out, y_out, z_out


def inverse_transform(
    x: float, y: float, z: float, params: EffectiveParams
) -> Tuple[float, float, float]:
    """Apply the Bursa-Wolf formula with negated parameters."""
    return apply_transform(x, y, z, inverse_params(params))


def frame_to_frame(
    lat: float,
    lon: float,
    h: float,
    source_ellipsoid: Ellipsoid,
    target_ellipsoid: Ellipsoid,
    params: EffectiveParams,
) -> Tuple[float, float, float]:
    """
    Transform geodetic coordinates between two frames.

    Converts to Cartesian on the source ellipsoid, applies Bursa-Wolf and
    converts back on the target ellipsoid.

    Args:
        lat: Latitude in degrees
        lon: Longitude in degrees
        h: Ellipsoidal height in metres
        source_ellipsoid: Ellipsoid of the input coordinates
        target_ellipsoid: Ellipsoid of the output coordinates
        params: Parameters in SI units

    Returns:
        Tuple of (lat, lon, h) on the target ellipsoid

    Raises:
        TransformationError: If any intermediate value is not finite
    """
    x, y, z = geodetic_to_cartesian(lat, lon, h, source_ellipsoid)
    x, y, z = apply_transform(x, y, z, params)
    if not (math.isfinite(x) and math.isfinite(y) and math.isfinite(z)):
        raise TransformationError(
            "Bursa-Wolf transformation produced a non-finite result",
            stage="bursa_wolf",
        )
    return cartesian_to_geodetic(x, y, z, target_ellipsoid)
