"""
pole_axis_example.py
====================

Purpose
-------
Minimal example showing how to use `solaris_alignment.geometry.pole_axis`
to estimate a mount's rotation axis from three samples, and
`solaris_alignment.rotator.rotator_utils` to convert rotator angles.

What this example does
----------------------
1) Simulates a mount whose axis is tilted 0.5 deg from the pole.
2) Samples three positions at fixed declination, 30 deg apart in hour angle.
3) Recovers the axis and prints its hour angle / declination.
4) Runs a rotator session through a meridian flip.

Usage
-----
    python examples/pole_axis_example.py
"""

import math

from solaris_alignment.align_core.model import PierSide, SkyPoint
from solaris_alignment.align_core.settings import InMemorySettingsStore
from solaris_alignment.geometry.pole_axis import (
    north_pole_axis,
    pole_axis,
    to_spherical,
    to_vector,
)
from solaris_alignment.rotator.rotator_utils import RotatorSession
from solaris_alignment.rotator.static_mount import StaticMount, StaticMountResolver

# 1) True axis: 0.5 deg off the pole, towards hour angle 60.
axis_ha, axis_dec = 60.0, 89.5
axis = to_vector(axis_ha, axis_dec)


def rotate_about(v, k, angle_deg):
    """Rodrigues rotation of vector v about unit axis k."""
    a = math.radians(angle_deg)
    c, s = math.cos(a), math.sin(a)
    kxv = k.cross(v)
    kdv = k.dot(v)
    return v.scaled(c) + kxv.scaled(s) + k.scaled(kdv * (1.0 - c))


# 2) Three samples taken by rotating one pointing about the true axis.
start = to_vector(0.0, 40.0)
samples = [
    SkyPoint(*to_spherical(rotate_about(start, axis, step)))
    for step in (0.0, 30.0, 60.0)
]

# 3) Recover the axis.
estimate = north_pole_axis(pole_axis(*samples))
ha, dec = to_spherical(estimate)
print(f"Recovered axis: ha={ha:.3f} deg dec={dec:.3f} deg "
      f"(expected {axis_ha:.3f}, {axis_dec:.3f})")

# 4) Rotator session with a calibration offset of 12 deg, calibrated on WEST.
mount = StaticMount(PierSide.WEST)
session = RotatorSession(
    InMemorySettingsStore({"Main Scope": 12.0}),
    StaticMountResolver({"Main Scope": mount}),
)
session.initialize("Main Scope")
print("Rotator for PA 30:", session.rotator_angle_from_position(30.0))
mount.set_pier_side(PierSide.EAST)
print("After flip, rotator for PA 30:", session.rotator_angle_from_position(30.0))
session.release()
