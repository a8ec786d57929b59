"""
Per-device view of the whole network for the fastest strategy.

A NetState maps every device heard of through gossip to the pair
(timestamp, value) of the freshest local trigger known for it. Devices
never heard of read as (-inf, False).

Merge is the pointwise maximum of the pairs (timestamp first, value as
tie-break), which is commutative, associative and idempotent, so gossip
converges under any delivery order or duplication.

NetState instances are immutable: update() and max() return new objects,
so an exported state can be shared by every receiver.
"""

import math
from typing import Dict, Iterable, Iterator, Mapping, Optional, Tuple

from .wire import BOOL_BYTES, FLOAT_BYTES, INT_BYTES


Entry = Tuple[float, bool]

DEFAULT_ENTRY: Entry = (-math.inf, False)


class NetState:
    """
    Models a view of a data for all devices of a network.

    Args:
        data: Optional mapping uid -> (timestamp, value)
    """

    __slots__ = ('_data',)

    def __init__(self, data: Optional[Mapping[int, Entry]] = None):
        self._data: Dict[int, Entry] = {}
        if data:
            for uid, (timestamp, value) in data.items():
                self._data[uid] = (float(timestamp), bool(value))

    def get(self, uid: int) -> Entry:
        """Entry stored for `uid` (DEFAULT_ENTRY if unseen)"""
        return self._data.get(uid, DEFAULT_ENTRY)

    def update(self, uid: int, time: float, value: bool) -> 'NetState':
        """Copy with the entry of `uid` overwritten by (time, value)"""
        data = dict(self._data)
        data[uid] = (float(time), bool(value))
        return NetState(data)

    def value(self, threshold: float) -> bool:
        """True if some device stored a true value with timestamp after threshold"""
        return any(timestamp > threshold and value for timestamp, value in self._data.values())

    @staticmethod
    def max(x: 'NetState', y: 'NetState') -> 'NetState':
        """Calculates the pointwise maximum of two netstates"""
        data = dict(x._data)
        for uid, entry in y._data.items():
            current = data.get(uid, DEFAULT_ENTRY)
            if entry > current:
                data[uid] = entry
        return NetState(data)

    @classmethod
    def fold(cls, states: Iterable['NetState']) -> 'NetState':
        """Pointwise maximum of any number of netstates (empty view if none)"""
        result = cls()
        for state in states:
            result = cls.max(result, state)
        return result

    def encoded_size(self) -> int:
        """Wire size: uid, timestamp and value per known device"""
        return len(self._data) * (INT_BYTES + FLOAT_BYTES + BOOL_BYTES)

    def items(self) -> Iterator[Tuple[int, Entry]]:
        return iter(sorted(self._data.items()))

    def __len__(self) -> int:
        return len(self._data)

    def __contains__(self, uid: int) -> bool:
        return uid in self._data

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, NetState):
            return NotImplemented
        return self._data == other._data

    def __hash__(self) -> int:
        return hash(tuple(sorted(self._data.items())))

    def __repr__(self) -> str:
        return f"NetState({dict(self.items())!r})"
