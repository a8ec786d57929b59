"""
Network substrate: connectivity, message delivery and retention.

Devices exchange whole-round messages with the devices in range. A
message stays in the receiver's inbox until it is replaced by a newer
message from the same sender or expires after `retain` seconds.

Connectivity is either radius-based (scipy cKDTree over positions,
rebuilt with build()) or a fixed adjacency set with set_topology().

Delivery modes:
- end_round(ctx, deliver=True): asynchronous, the message is visible to
  neighbours from their next round on
- end_round(ctx, deliver=False) + flush(): synchronous, every device of
  a round computes on the same snapshot (run_synchronous_round)
"""

import numpy as np
from typing import Callable, Dict, Iterable, List, Optional, Set
from scipy.spatial import cKDTree

from .constants import COMM_RADIUS, RETAIN_TIME, CKDTREE_LEAFSIZE
from .context import Message, RoundContext
from .device import Device
from .exceptions import TopologyError


class NetworkSubstrate:
    """
    Neighbour data provider for device rounds.

    Args:
        comm_radius: Communication radius for radius-based connectivity
        retain: Seconds a received message is kept
        leafsize: cKDTree leaf size
    """

    def __init__(self, comm_radius: float = COMM_RADIUS, retain: float = RETAIN_TIME,
                 leafsize: int = CKDTREE_LEAFSIZE):
        self.comm_radius = comm_radius
        self.retain = retain
        self._leafsize = leafsize

        self.devices: Dict[int, Device] = {}
        self._neighbors: Dict[int, Set[int]] = {}
        self._fixed: Optional[Dict[int, Set[int]]] = None
        self._inbox: Dict[int, Dict[int, Message]] = {}
        self._previous: Dict[int, Message] = {}
        self._pending: List[Message] = []

        # Cumulative traffic counters
        self.messages_sent: int = 0
        self.bytes_sent: int = 0

    # ------------------------------------------------------------------
    # Membership
    # ------------------------------------------------------------------

    def add_device(self, device: Device):
        """Register a device; it has no neighbours until the next build()"""
        if device.uid in self.devices:
            raise ValueError(f"Device {device.uid} already in network")
        self.devices[device.uid] = device
        self._inbox[device.uid] = {}
        self._neighbors[device.uid] = set()
        if self._fixed is not None:
            self._fixed[device.uid] = set()

    def retire_device(self, uid: int):
        """
        Remove a device and all of its state.

        Messages it already delivered stay in other inboxes until they
        expire; nobody is notified.
        """
        if uid not in self.devices:
            raise TopologyError(uid)
        del self.devices[uid]
        del self._inbox[uid]
        self._previous.pop(uid, None)
        for other in self._neighbors.pop(uid, set()):
            self._neighbors.get(other, set()).discard(uid)
        if self._fixed is not None:
            self._fixed.pop(uid, None)
            for adjacent in self._fixed.values():
                adjacent.discard(uid)
        self._pending = [m for m in self._pending if m.sender != uid]

    # ------------------------------------------------------------------
    # Connectivity
    # ------------------------------------------------------------------

    def set_topology(self, adjacency: Dict[int, Iterable[int]]):
        """
        Use a fixed undirected graph instead of radius-based connectivity.

        Args:
            adjacency: uid -> neighbour uids (closed under symmetry here)

        Raises:
            TopologyError: If a uid is not a registered device
        """
        fixed = {uid: set() for uid in self.devices}
        for uid, adjacent in adjacency.items():
            if uid not in self.devices:
                raise TopologyError(uid)
            for other in adjacent:
                if other not in self.devices:
                    raise TopologyError(other)
                if other != uid:
                    fixed[uid].add(other)
                    fixed[other].add(uid)
        self._fixed = fixed
        self.build()

    def build(self):
        """Recompute neighbour sets from the fixed topology or from positions"""
        if self._fixed is not None:
            self._neighbors = {uid: set(adjacent) for uid, adjacent in self._fixed.items()}
            return

        uids = sorted(self.devices)
        self._neighbors = {uid: set() for uid in uids}
        if len(uids) < 2:
            return

        positions = np.array([self.devices[uid].position for uid in uids], dtype=np.float64)
        tree = cKDTree(positions, leafsize=self._leafsize)
        pairs = tree.query_pairs(r=self.comm_radius, output_type='ndarray')

        for a, b in pairs:
            ua, ub = uids[int(a)], uids[int(b)]
            self._neighbors[ua].add(ub)
            self._neighbors[ub].add(ua)

    def neighbors_of(self, uid: int) -> Set[int]:
        """Current neighbour set of `uid` (self excluded)"""
        if uid not in self.devices:
            raise TopologyError(uid)
        return set(self._neighbors.get(uid, set()))

    def degree_histogram(self) -> Dict:
        """Network health telemetry: isolated / sparse (1-2) / connected (3+)"""
        degrees = np.array([len(self._neighbors.get(uid, ())) for uid in self.devices], dtype=np.int32)
        if len(degrees) == 0:
            return {'degree_mean': 0.0, 'isolated': 0, 'sparse': 0, 'connected': 0, 'total_devices': 0}
        return {
            'degree_mean': float(degrees.mean()),
            'isolated': int((degrees == 0).sum()),
            'sparse': int(((degrees >= 1) & (degrees <= 2)).sum()),
            'connected': int((degrees >= 3).sum()),
            'total_devices': int(len(degrees))
        }

    # ------------------------------------------------------------------
    # Rounds
    # ------------------------------------------------------------------

    def begin_round(self, uid: int, time: float) -> RoundContext:
        """
        Open a round of device `uid` at `time`.

        Expired messages are dropped from the inbox first; the context
        receives a snapshot, so deliveries during the round are not seen.
        """
        if uid not in self.devices:
            raise TopologyError(uid)

        inbox = self._inbox[uid]
        expired = [sender for sender, message in inbox.items() if time - message.time > self.retain]
        for sender in expired:
            del inbox[sender]

        return RoundContext(uid, time, self._previous.get(uid), dict(inbox))

    def end_round(self, ctx: RoundContext, deliver: bool = True) -> Message:
        """
        Close a round: store the message as the device's own previous
        state and send it (now, or on flush() when deliver is False).
        """
        message = ctx.finish()
        device = self.devices[ctx.uid]
        device.round_count += 1
        device.last_round_time = ctx.time
        self._previous[ctx.uid] = message

        self.messages_sent += 1
        self.bytes_sent += message.size

        if deliver:
            self._deliver(message)
        else:
            self._pending.append(message)
        return message

    def flush(self):
        """Deliver every message held back by end_round(deliver=False)"""
        pending, self._pending = self._pending, []
        for message in pending:
            self._deliver(message)

    def _deliver(self, message: Message):
        for receiver in self._neighbors.get(message.sender, ()):
            inbox = self._inbox.get(receiver)
            if inbox is not None:
                inbox[message.sender] = message

    def run_synchronous_round(self, time: float, program: Callable[[RoundContext, Device], None],
                              uids: Optional[Iterable[int]] = None) -> Dict[int, Message]:
        """
        Execute one synchronous round on every device (or on `uids`).

        All devices observe the messages of previous rounds only; the new
        messages are delivered after every device has computed.

        Args:
            time: Round time
            program: Called as program(ctx, device) for each device
            uids: Optional subset of devices (default: all, sorted)

        Returns:
            Dict uid -> outgoing message
        """
        sent = {}
        for uid in sorted(self.devices if uids is None else uids):
            ctx = self.begin_round(uid, time)
            program(ctx, self.devices[uid])
            sent[uid] = self.end_round(ctx, deliver=False)
        self.flush()
        return sent
