"""
Per-device, per-round view of the network.

A RoundContext is what every strategy and coordination primitive reads
and writes during one round of one device:

- old(name): the device's own export from its previous round
- nbr(name): neighbour id -> exported value (own previous value included)
- export(name, value): publish a value for this round
- scope(*names): push a path prefix so that the same sub-computation on
  different devices reads and writes the same keys (alignment)
- msg_size(): running byte count of this round's outgoing message
- own(name) / keep(name, value): device-local state carried to the next
  round without being sent

Exports are stored under tuple keys (path + name). Values must be
treated as immutable once exported: the same object is handed to every
receiving device.
"""

from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Dict, Hashable, List, Optional, Set, Tuple

from .wire import export_size


Key = Tuple[Hashable, ...]


@dataclass(frozen=True)
class Message:
    """
    Outgoing message of one device round.

    Attributes:
        sender: uid of the sending device
        time: Time the round executed
        exports: Mapping from scoped key to exported value
        size: Total size in bytes
        private: Device-local state kept for the sender's next round (never read by neighbours)
    """
    sender: int
    time: float
    exports: Dict[Key, Any] = field(default_factory=dict)
    size: int = 0
    private: Dict[Key, Any] = field(default_factory=dict)


class RoundContext:
    """
    Round-local read/write access to own and neighbour exports.

    Args:
        uid: Device executing the round
        time: Current time
        previous: The device's own message from its previous round (None on first round)
        inbox: Latest non-expired message per neighbour (self excluded)
    """

    def __init__(self, uid: int, time: float, previous: Optional[Message], inbox: Dict[int, Message]):
        self.uid = uid
        self.time = time
        self._previous = previous
        self._inbox = inbox
        self._path: Key = ()
        self._exports: Dict[Key, Any] = {}
        self._private: Dict[Key, Any] = {}
        self._msg_size = 0

    # ------------------------------------------------------------------
    # Alignment
    # ------------------------------------------------------------------

    @contextmanager
    def scope(self, *names: Hashable):
        """Run the enclosed block under path + names"""
        saved = self._path
        self._path = saved + tuple(names)
        try:
            yield self
        finally:
            self._path = saved

    @property
    def path(self) -> Key:
        return self._path

    def _key(self, name: Hashable) -> Key:
        return self._path + (name,)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    @property
    def neighbors(self) -> List[int]:
        """Neighbour uids with a live message, sorted"""
        return sorted(self._inbox)

    @property
    def previous_time(self) -> Optional[float]:
        """Time of this device's previous round"""
        return None if self._previous is None else self._previous.time

    def old(self, name: Hashable, default: Any = None) -> Any:
        """Own export of `name` from the previous round, or default"""
        if self._previous is None:
            return default
        return self._previous.exports.get(self._key(name), default)

    def own(self, name: Hashable, default: Any = None) -> Any:
        """Device-local value kept under `name` in the previous round, or default"""
        if self._previous is None:
            return default
        return self._previous.private.get(self._key(name), default)

    def nbr(self, name: Hashable, default: Any = None) -> Dict[int, Any]:
        """
        Field of values exported under `name`.

        The device itself is always present (own previous value, or
        default); neighbours are present only if they exported the key.
        """
        key = self._key(name)
        field_ = {self.uid: self.old(name, default)}
        for sender, message in self._inbox.items():
            if key in message.exports:
                field_[sender] = message.exports[key]
        return field_

    def nbr_lag(self) -> Dict[int, float]:
        """Time elapsed since each neighbour's message (own previous round included)"""
        own = 0.0 if self._previous is None else self.time - self._previous.time
        lags = {self.uid: own}
        for sender, message in self._inbox.items():
            lags[sender] = self.time - message.time
        return lags

    def child_keys(self, name: Hashable) -> Set[Hashable]:
        """
        Sub-scope identifiers exported under path + (name, k, ...).

        Collected from the own previous message and every neighbour.
        """
        prefix = self._key(name)
        depth = len(prefix)
        found = set()
        messages = list(self._inbox.values())
        if self._previous is not None:
            messages.append(self._previous)
        for message in messages:
            for key in message.exports:
                if len(key) > depth and key[:depth] == prefix:
                    found.add(key[depth])
        return found

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def export(self, name: Hashable, value: Any) -> Any:
        """
        Publish value under `name` for this round.

        Raises:
            ValueError: If the same key is exported twice in a round
        """
        key = self._key(name)
        if key in self._exports:
            raise ValueError(f"Key {key!r} exported twice in one round by device {self.uid}")
        self._exports[key] = value
        self._msg_size += export_size(value)
        return value

    def keep(self, name: Hashable, value: Any) -> Any:
        """Carry value under `name` to this device's next round (not sent, no byte cost)"""
        self._private[self._key(name)] = value
        return value

    def msg_size(self) -> int:
        """Bytes exported so far in this round (monotonic within a round)"""
        return self._msg_size

    def mark(self) -> Tuple[frozenset, frozenset, int]:
        """Snapshot of the export and local state sets, restorable with rollback()"""
        return frozenset(self._exports), frozenset(self._private), self._msg_size

    def rollback(self, mark: Tuple[frozenset, frozenset, int]):
        """Drop every export and kept value made after `mark`"""
        export_keys, private_keys, size = mark
        for key in [k for k in self._exports if k not in export_keys]:
            del self._exports[key]
        for key in [k for k in self._private if k not in private_keys]:
            del self._private[key]
        self._msg_size = size

    def finish(self) -> Message:
        """Seal the round into its outgoing message"""
        return Message(sender=self.uid, time=self.time, exports=dict(self._exports),
                       size=self._msg_size, private=dict(self._private))
