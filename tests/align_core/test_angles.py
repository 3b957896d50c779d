import numpy as np
import pytest

from solaris_alignment.align_core.angles import range360, range_pa, unwrap_circular


@pytest.mark.parametrize(
    "angle, expected",
    [
        (0.0, 0.0),
        (360.0, 0.0),
        (-10.0, 350.0),
        (370.0, 10.0),
        (725.0, 5.0),
        (359.5, 359.5),
    ],
)
def test_range360(angle, expected):
    assert range360(angle) == pytest.approx(expected)


def test_range360_never_returns_360_for_tiny_negative():
    out = range360(-1e-17)
    assert 0.0 <= out < 360.0


@pytest.mark.parametrize(
    "angle, expected",
    [
        (0.0, 0.0),
        (180.0, 180.0),
        (-180.0, 180.0),
        (181.0, -179.0),
        (-181.0, 179.0),
        (350.0, -10.0),
        (540.0, 180.0),
    ],
)
def test_range_pa(angle, expected):
    assert range_pa(angle) == pytest.approx(expected)


def test_scalars_come_back_as_float():
    assert isinstance(range360(10), float)
    assert isinstance(range_pa(10), float)


def test_arrays_are_supported():
    a = np.array([-90.0, 0.0, 190.0, 450.0])
    np.testing.assert_allclose(range360(a), [270.0, 0.0, 190.0, 90.0])
    np.testing.assert_allclose(range_pa(a), [-90.0, 0.0, -170.0, 90.0])


def test_unwrap_circular():
    assert unwrap_circular(200.0) == -160.0
    assert unwrap_circular(180.0) == 180.0
    assert unwrap_circular(10.0) == 10.0
