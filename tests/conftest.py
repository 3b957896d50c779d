from __future__ import annotations

import pytest

from solaris_alignment.align_core.model import PierSide, SkyPoint
from solaris_alignment.align_core.settings import InMemorySettingsStore
from solaris_alignment.rotator.rotator_utils import RotatorSession
from solaris_alignment.rotator.static_mount import StaticMount, StaticMountResolver

TRAIN = "Main Scope"

# ---------- Shared fixtures ----------


@pytest.fixture
def train() -> str:
    return TRAIN


@pytest.fixture
def mount() -> StaticMount:
    """A mount sitting on the calibration side (WEST)."""
    return StaticMount(PierSide.WEST)


@pytest.fixture
def settings() -> InMemorySettingsStore:
    return InMemorySettingsStore({TRAIN: 20.0}, {TRAIN: PierSide.WEST})


@pytest.fixture
def session(settings, mount):
    """An initialized session with offset 20 deg, calibrated on WEST."""
    s = RotatorSession(settings, StaticMountResolver({TRAIN: mount}))
    s.initialize(TRAIN)
    yield s
    s.release()


@pytest.fixture
def sky_points_at_dec():
    """Return three SkyPoints at one declination, evenly spaced in HA."""

    def _make(dec: float, start: float = 0.0, step: float = 30.0):
        return [SkyPoint(start + i * step, dec) for i in range(3)]

    return _make
