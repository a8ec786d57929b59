"""
Byte-size model of exported values.

Messages are never actually serialized; the network only needs a
deterministic size to charge each export with. Scalar sizes follow the
numpy dtypes a compact wire format would use.
"""

import numpy as np
from typing import Any

from .constants import TRACE_TAG_BYTES


BOOL_BYTES = np.dtype(np.bool_).itemsize      # 1
INT_BYTES = np.dtype(np.int32).itemsize       # 4 (device ids, hops, keys)
FLOAT_BYTES = np.dtype(np.float64).itemsize   # 8 (times)


def encoded_size(value: Any) -> int:
    """
    Size in bytes of a value on the wire.

    Objects may define encoded_size() to describe their own layout;
    containers cost the sum of their items (dict keys included).

    Args:
        value: Exported value

    Returns:
        Size in bytes

    Raises:
        TypeError: For values with no wire representation
    """
    if value is None:
        return 0
    if hasattr(value, 'encoded_size'):
        return int(value.encoded_size())
    if isinstance(value, (bool, np.bool_)):
        return BOOL_BYTES
    if isinstance(value, (int, np.integer)):
        return INT_BYTES
    if isinstance(value, (float, np.floating)):
        return FLOAT_BYTES
    if isinstance(value, (tuple, list, frozenset, set)):
        return sum(encoded_size(item) for item in value)
    if isinstance(value, dict):
        return sum(encoded_size(k) + encoded_size(v) for k, v in value.items())
    raise TypeError(f"No wire size for value of type {type(value).__name__}")


def export_size(value: Any) -> int:
    """Size charged for one export: trace tag plus encoded value"""
    return TRACE_TAG_BYTES + encoded_size(value)
