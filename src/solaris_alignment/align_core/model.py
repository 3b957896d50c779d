from __future__ import annotations

"""
model.py
========
Data models shared by the pole-axis geometry and the rotator converter.

Angles are always in degrees. Vectors are plain 3-tuples of floats wrapped in
an immutable dataclass so they can be compared, hashed and logged.

Collaborators that live outside this package (settings store, mount handle,
mount resolver) are described as ``Protocol`` classes. Any object with the
right methods can be passed in; nothing here imports a driver layer.
"""

import enum
import math
from dataclasses import dataclass
from typing import Callable, Iterable, Optional, Protocol

import numpy as np


# A position on the sky in mount (hour angle / declination) coordinates.
@dataclass(frozen=True)
class SkyPoint:
    # Hour-angle-like angle in degrees, 0..360, counter-clockwise from north.
    primary_deg: float
    # Declination-like angle in degrees, -90..+90, 0 at the equator.
    secondary_deg: float


@dataclass(frozen=True)
class V3:
    """Direction cosines (x, y, z) of a point on, or inside, the unit sphere.

    z points to the north pole, x points "up" (primary=0, secondary=0) and
    increasing primary turns counter-clockwise when looking north.
    ``V3()`` is the zero vector, used as the degenerate-result sentinel.
    """

    x: float = 0.0
    y: float = 0.0
    z: float = 0.0

    @classmethod
    def from_iterable(cls, values: Iterable[float]) -> "V3":
        x, y, z = (float(v) for v in values)
        return cls(x, y, z)

    def as_array(self) -> np.ndarray:
        return np.array([self.x, self.y, self.z], dtype=float)

    def length_sq(self) -> float:
        return self.x * self.x + self.y * self.y + self.z * self.z

    def length(self) -> float:
        return math.sqrt(self.length_sq())

    def is_zero(self) -> bool:
        return self.x == 0.0 and self.y == 0.0 and self.z == 0.0

    def dot(self, other: "V3") -> float:
        return self.x * other.x + self.y * other.y + self.z * other.z

    def cross(self, other: "V3") -> "V3":
        return V3(
            self.y * other.z - self.z * other.y,
            self.z * other.x - self.x * other.z,
            self.x * other.y - self.y * other.x,
        )

    def scaled(self, factor: float) -> "V3":
        return V3(self.x * factor, self.y * factor, self.z * factor)

    def __sub__(self, other: "V3") -> "V3":
        return V3(self.x - other.x, self.y - other.y, self.z - other.z)

    def __add__(self, other: "V3") -> "V3":
        return V3(self.x + other.x, self.y + other.y, self.z + other.z)

    def __neg__(self) -> "V3":
        return V3(-self.x, -self.y, -self.z)


class PierSide(enum.Enum):
    """Side of the mount pivot the optical tube sits on."""

    WEST = "west"
    EAST = "east"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, value: "str | PierSide | None") -> "PierSide":
        """Accept an enum member, its value or its name (case-insensitive)."""
        if value is None:
            return cls.UNKNOWN
        if isinstance(value, cls):
            return value
        key = str(value).strip().lower()
        if key.startswith("pier_"):
            key = key[len("pier_"):]
        for member in cls:
            if member.value == key:
                return member
        raise ValueError(
            f"Unsupported pier side '{value}'. Use 'west', 'east' or 'unknown'."
        )


PierSideListener = Callable[[PierSide], None]


class Mount(Protocol):
    """Live mount handle as seen by the rotator converter."""

    @property
    def pier_side(self) -> PierSide: ...

    def subscribe_pier_side(self, callback: PierSideListener) -> None: ...

    def unsubscribe_pier_side(self, callback: PierSideListener) -> None: ...


class MountResolver(Protocol):
    """Maps an equipment configuration id to its mount, if any."""

    def get_mount(self, configuration_id: str) -> Optional[Mount]: ...


class SettingsStore(Protocol):
    """Persistent rotator calibration settings keyed by configuration id."""

    def get_offset(self, configuration_id: str) -> float: ...

    def set_offset(self, configuration_id: str, offset_deg: float) -> None: ...

    def get_calibration_pier_side(self, configuration_id: str) -> PierSide: ...


__all__ = [
    "SkyPoint",
    "V3",
    "PierSide",
    "PierSideListener",
    "Mount",
    "MountResolver",
    "SettingsStore",
]
