"""Angle normalizations shared by the geometry and rotator modules.

Two conventions are used:
  - circular angle, [0, 360): rotator mechanical angle, hour angle.
  - position angle, (-180, 180]: camera position angle and its offset.

Both helpers accept a Python number or a numpy array. Scalars come back as
``float``; arrays come back as float arrays of the same shape.
"""

from __future__ import annotations

import numpy as np


def _as_float_or_array(x: np.ndarray):
    return float(x) if np.ndim(x) == 0 else x


def range360(angle_deg):
    """Wrap into [0, 360)."""
    a = np.mod(np.asarray(angle_deg, dtype=float), 360.0)
    # np.mod(-1e-17, 360) rounds to exactly 360.0
    a = np.where(a >= 360.0, a - 360.0, a)
    return _as_float_or_array(a)


def range_pa(angle_deg):
    """Wrap into the position-angle range (-180, 180]."""
    a = np.asarray(range360(angle_deg), dtype=float)
    a = np.where(a > 180.0, a - 360.0, a)
    return _as_float_or_array(a)


def unwrap_circular(angle_deg: float) -> float:
    """Map a circular angle above 180 onto its negative twin (200 -> -160)."""
    return angle_deg - 360.0 if angle_deg > 180.0 else angle_deg


__all__ = ["range360", "range_pa", "unwrap_circular"]
