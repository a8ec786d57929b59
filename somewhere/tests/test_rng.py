"""
Tests for deterministic RNG helpers, round intervals and device movement.
"""

import math

import numpy as np
import pytest
from scipy.special import gamma

from somewhere.device import Device
from somewhere.rng import make_rng, make_seed, RoundIntervals, weibull_shape


def test_make_seed_deterministic():
    assert make_seed(0, 5, "walk") == make_seed(0, 5, "walk")
    assert make_seed(0, 5, "walk") != make_seed(0, 6, "walk")
    assert make_rng(1, "x").uniform() == make_rng(1, "x").uniform()


@pytest.mark.parametrize("cv", [0.0011, 0.02, 0.1, 0.48])
def test_weibull_shape_matches_cv(cv):
    k = weibull_shape(cv)
    g1 = gamma(1.0 + 1.0 / k)
    g2 = gamma(1.0 + 2.0 / k)
    assert math.sqrt(g2 / g1 ** 2 - 1.0) == pytest.approx(cv, rel=1e-6)


def test_round_intervals_moments():
    intervals = RoundIntervals(make_rng(0, "rounds"), mean=1.0, deviation=0.1)
    samples = np.array([intervals.next() for _ in range(20000)])

    assert samples.mean() == pytest.approx(1.0, abs=0.01)
    assert samples.std() == pytest.approx(0.1, abs=0.01)
    assert samples.min() > 0.0


def test_round_intervals_small_deviation():
    # Just above the constant-interval threshold the shape exceeds 1000
    intervals = RoundIntervals(make_rng(0, "rounds"), mean=1.0, deviation=0.0011)
    samples = np.array([intervals.next() for _ in range(20000)])

    assert samples.mean() == pytest.approx(1.0, abs=1e-3)
    assert samples.std() == pytest.approx(0.0011, rel=0.05)


def test_round_intervals_constant_without_variance():
    intervals = RoundIntervals(make_rng(0, "rounds"), mean=1.0, deviation=0.0)
    assert [intervals.next() for _ in range(5)] == [1.0] * 5


def test_device_walk_stays_inside():
    low, high = np.zeros(2), np.full(2, 50.0)
    rng = make_rng(7, "walk")
    device = Device(uid=0, position=[25.0, 25.0], speed=10.0)

    for _ in range(100):
        before = device.position.copy()
        device.walk(1.0, low, high, rng)
        assert np.linalg.norm(device.position - before) <= 10.0 + 1e-9
        assert np.all(device.position >= low) and np.all(device.position <= high)


def test_stationary_device_does_not_move():
    device = Device(uid=0, position=[1.0, 2.0], speed=0.0)
    device.walk(1.0, np.zeros(2), np.full(2, 10.0), make_rng(0))
    assert device.position.tolist() == [1.0, 2.0]
    assert device.target is None


def test_device_dict_roundtrip():
    device = Device(uid=4, position=[1.0, 2.0], speed=3.0)
    restored = Device.from_dict(device.to_dict())
    assert restored.uid == 4
    assert restored.position.tolist() == [1.0, 2.0]
    assert restored.speed == 3.0
