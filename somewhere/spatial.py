"""
Spatial utility functions for 2D device movement.

Helper functions for random-walk stepping inside a rectangular
deployment area.
"""

import numpy as np
from typing import Tuple


def normalize(vec: np.ndarray) -> Tuple[np.ndarray, float]:
    """
    Normalize vector to unit length.

    Args:
        vec: Vector to normalize

    Returns:
        Tuple of (normalized vector, original length)
    """
    length = float(np.sqrt(np.dot(vec, vec)))

    if length < 1e-9:
        # Zero vector, return zero direction
        return np.zeros_like(vec, dtype=np.float64), 0.0

    return vec / length, length


def step_towards(position: np.ndarray, target: np.ndarray, speed: float, dt: float) -> Tuple[np.ndarray, bool]:
    """
    Move from position towards target at constant speed for dt seconds.

    Args:
        position: Current position
        target: Walk target
        speed: Movement speed (m/s)
        dt: Elapsed time (seconds)

    Returns:
        Tuple of (new position, reached) where reached is True when the
        target was reached within dt
    """
    direction, length = normalize(target - position)
    travel = speed * dt

    if travel >= length:
        return target.copy(), True

    return position + direction * travel, False


def clamp_to_rectangle(position: np.ndarray, low: np.ndarray, high: np.ndarray) -> np.ndarray:
    """
    Clamp position inside an axis-aligned rectangle.

    Args:
        position: Position [x, y]
        low: Lower corner
        high: Upper corner

    Returns:
        Clamped position
    """
    return np.minimum(np.maximum(position, low), high)
