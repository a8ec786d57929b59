"""
Deterministic RNG utilities for the somewhere simulation.

Uses SHA256 hashing to derive stable seeds from hierarchical components
(scenario seed, device uid, component name). All randomness uses
numpy.random.Generator(PCG64) for reproducible cross-session results.
"""

import hashlib
import math
import numpy as np
from typing import Any
from scipy.optimize import brentq
from scipy.special import gamma


# Shape bracket of the Weibull solver; the coefficient of variation
# at the upper end is about 1.3e-5
WEIBULL_SHAPE_BRACKET = (0.05, 1.0e5)

# Relative deviations below this give constant round intervals
MIN_INTERVAL_CV = 1.0e-3


def make_seed(*components: Any) -> int:
    """
    Generate deterministic 64-bit seed from hierarchical components.

    Args:
        *components: Seed components (scenario seed, uid, component name, ...)

    Returns:
        64-bit integer seed for numpy RNG

    Example:
        device_seed = make_seed(seed, uid)
        walk_rng = make_rng(device_seed, "walk")
    """
    hash_input = ":".join(str(c) for c in components)
    hash_bytes = hashlib.sha256(hash_input.encode('utf-8')).digest()
    return int.from_bytes(hash_bytes[:8], byteorder='big')


def make_rng(*components: Any) -> np.random.Generator:
    """PCG64 generator seeded from make_seed(*components)"""
    return np.random.Generator(np.random.PCG64(make_seed(*components)))


def random_position_in_rectangle(rng: np.random.Generator, low: np.ndarray, high: np.ndarray) -> np.ndarray:
    """
    Generate random position uniformly distributed within an axis-aligned box.

    Args:
        rng: Generator to draw from
        low: Lower corner [x, y]
        high: Upper corner [x, y]

    Returns:
        Random position as float64 array
    """
    low = np.asarray(low, dtype=np.float64)
    high = np.asarray(high, dtype=np.float64)
    return low + rng.uniform(0.0, 1.0, size=low.shape) * (high - low)


def weibull_shape(cv: float) -> float:
    """
    Weibull shape parameter k giving coefficient of variation `cv`.

    Solves sqrt(G(1+2/k) / G(1+1/k)^2 - 1) = cv for k.

    Args:
        cv: Target standard deviation divided by mean (> 0)

    Returns:
        Shape parameter k
    """
    def residual(k):
        g1 = gamma(1.0 + 1.0 / k)
        g2 = gamma(1.0 + 2.0 / k)
        return math.sqrt(max(g2 / (g1 * g1) - 1.0, 0.0)) - cv

    # cv is strictly decreasing in k over this bracket
    return brentq(residual, *WEIBULL_SHAPE_BRACKET)


class RoundIntervals:
    """
    Sampler of round intervals with given mean and standard deviation.

    Zero deviation gives a constant period; otherwise intervals are
    Weibull-distributed, scaled so that their mean equals `mean`.
    """

    def __init__(self, rng: np.random.Generator, mean: float, deviation: float):
        self._rng = rng
        self.mean = mean
        self.deviation = deviation
        if deviation / mean >= MIN_INTERVAL_CV:
            self._shape = weibull_shape(deviation / mean)
            self._scale = mean / gamma(1.0 + 1.0 / self._shape)
        else:
            self._shape = None
            self._scale = mean

    def next(self) -> float:
        """Draw the next interval (always positive)"""
        if self._shape is None:
            return self.mean
        return max(float(self._scale * self._rng.weibull(self._shape)), 1e-6)
