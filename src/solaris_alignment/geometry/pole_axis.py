"""Mount polar-axis estimation from three sky samples.

The mount's hour-angle (RA) axis is found from three positions sampled with
the declination axis held fixed while the mount is rotated in hour angle.

Geometry
--------
Each sample (hour angle, declination) is turned into direction cosines, i.e.
a point (x, y, z) on the unit sphere. Rotating the mount about its true axis
moves the pointing along a small circle of that sphere. Three points define
the plane of this circle and the circle's centre lies on the rotation axis,
so the unit normal of the plane *is* the axis direction. This is closed form:
no iterative fitting, no initial guess.

Conventions
-----------
- primary (hour-angle-like): degrees, [0, 360), positive counter-clockwise
  when looking north from the centre of the sphere; 0 points "up".
- secondary (declination-like): degrees, [-90, 90]; 0 is the equator and
  +90 the north pole.
- z points to the north pole, x points "up" (primary=0, secondary=0) and y
  completes the frame so that primary increases counter-clockwise.

    x = cos(secondary) * cos(primary)
    y = cos(secondary) * sin(primary)
    z = sin(secondary)

Sign of the normal
------------------
The normal points to the north or the south pole depending on the sense of
rotation p1 -> p2 -> p3. ``pole_axis`` does not pick one. The opposite pole
is ``flip_pole(v)`` (equivalent to negating the declination and adding 180
degrees to the hour angle); ``north_pole_axis`` forces z >= 0.

Degenerate samples
------------------
Coincident or collinear samples (e.g. hour angles too close together) do not
define a plane. ``normal`` then returns the zero vector ``V3()`` instead of
raising. A cross product with a length below ``DEGENERATE_LENGTH`` is
treated the same way, because its direction is dominated by rounding noise.
Pass ``eps=0.0`` to only reject an exactly zero cross product.

Input vectors for ``to_spherical``
----------------------------------
``to_spherical`` expects a unit vector. The declination is asin(z), not
asin(z / |v|); a non-unit vector therefore yields a biased secondary angle.
z is clamped to [-1, 1] so that rounding noise never raises.
"""

from __future__ import annotations

import logging
import math
from typing import Optional, Tuple

import numpy as np

from solaris_alignment.align_core.angles import range360
from solaris_alignment.align_core.model import SkyPoint, V3

logger = logging.getLogger(__name__)

# Below this cross-product length the three samples are treated as collinear.
DEGENERATE_LENGTH = 5e-8


# ----- Spherical <-> direction cosines -----

def to_vector(primary_deg: float, secondary_deg: float) -> V3:
    """Direction cosines for a (primary, secondary) pair in degrees."""
    p = math.radians(primary_deg)
    s = math.radians(secondary_deg)
    cos_s = math.cos(s)
    return V3(cos_s * math.cos(p), cos_s * math.sin(p), math.sin(s))


def sky_point_to_vector(point: SkyPoint) -> V3:
    return to_vector(point.primary_deg, point.secondary_deg)


def to_vectors(primary_deg, secondary_deg) -> np.ndarray:
    """Vectorized ``to_vector``: returns an (N, 3) array of direction cosines.

    Inputs are broadcast against each other, so a scalar declination can be
    combined with an array of hour angles.
    """
    p = np.deg2rad(np.asarray(primary_deg, dtype=float))
    s = np.deg2rad(np.asarray(secondary_deg, dtype=float))
    p, s = np.broadcast_arrays(p, s)
    cos_s = np.cos(s)
    out = np.stack([cos_s * np.cos(p), cos_s * np.sin(p), np.sin(s)], axis=-1)
    return out.reshape(-1, 3)


def primary_of(v: V3) -> float:
    """Hour-angle-like angle of ``v`` in [0, 360)."""
    return range360(math.degrees(math.atan2(v.y, v.x)))


def secondary_of(v: V3) -> float:
    """Declination-like angle of ``v`` in [-90, 90]; expects a unit vector."""
    z = min(1.0, max(-1.0, v.z))
    return math.degrees(math.asin(z))


def to_spherical(v: V3) -> Tuple[float, float]:
    """Inverse of ``to_vector`` for unit vectors: (primary_deg, secondary_deg)."""
    return primary_of(v), secondary_of(v)


def to_sky_point(v: V3) -> SkyPoint:
    primary, secondary = to_spherical(v)
    return SkyPoint(primary, secondary)


# ----- Plane normal and pole axis -----

def normal(v1: V3, v2: V3, v3: V3, eps: float = DEGENERATE_LENGTH) -> V3:
    """Unit normal of the plane through three points, or ``V3()`` if none.

    The edges are d1 = v2 - v1 and d2 = v3 - v2. Both lie in the plane, so
    the direction of d1 x d2 matches the usual (v2 - v1) x (v3 - v1) up to
    sign.
    """
    d1 = v2 - v1
    d2 = v3 - v2
    cross = d1.cross(d2)
    len_sq = cross.length_sq()
    if len_sq == 0.0:
        return V3()
    length = math.sqrt(len_sq)
    if length < eps:
        return V3()
    return cross.scaled(1.0 / length)


def is_degenerate(v: V3) -> bool:
    """True for the zero-vector sentinel returned by ``normal``."""
    return v.is_zero()


def pole_axis(
    p1: SkyPoint, p2: SkyPoint, p3: SkyPoint, eps: float = DEGENERATE_LENGTH
) -> V3:
    """Mount rotation axis from three samples taken at a fixed declination.

    Returns a unit vector pointing to whichever pole the sense of rotation
    p1 -> p2 -> p3 implies, or ``V3()`` when the samples are degenerate.
    """
    axis = normal(
        sky_point_to_vector(p1),
        sky_point_to_vector(p2),
        sky_point_to_vector(p3),
        eps=eps,
    )
    if is_degenerate(axis):
        logger.warning(
            "Degenerate pole-axis samples %s, %s, %s: points are collinear "
            "or coincident",
            p1,
            p2,
            p3,
        )
    return axis


def flip_pole(v: V3) -> V3:
    """The opposite pole: -dec and hour angle + 180."""
    return -v


def north_pole_axis(v: V3) -> V3:
    """Return ``v`` or its opposite, whichever has z >= 0."""
    return flip_pole(v) if v.z < 0.0 else v


def pole_axis_sky_point(
    p1: SkyPoint, p2: SkyPoint, p3: SkyPoint, north: bool = False
) -> Optional[SkyPoint]:
    """``pole_axis`` expressed as a ``SkyPoint``; None for degenerate samples."""
    axis = pole_axis(p1, p2, p3)
    if is_degenerate(axis):
        return None
    if north:
        axis = north_pole_axis(axis)
    return to_sky_point(axis)


__all__ = [
    "DEGENERATE_LENGTH",
    "to_vector",
    "sky_point_to_vector",
    "to_vectors",
    "primary_of",
    "secondary_of",
    "to_spherical",
    "to_sky_point",
    "normal",
    "is_degenerate",
    "pole_axis",
    "flip_pole",
    "north_pole_axis",
    "pole_axis_sky_point",
]
