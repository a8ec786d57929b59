"""
Generic coordination primitives used by the somewhere strategies.

Each primitive runs inside its own scope of the RoundContext, so two
devices executing the same primitive read each other's exports. A
primitive called twice within the same parent scope must be wrapped in
distinct scopes by the caller.

Primitives:
- abf_hops: self-stabilizing hop-count gradient from source devices
- shared_clock: network-wide clock estimate (max of neighbours + lag)
- past_eventually: true once the flag held anywhere in the causal past
- wave_election: network-wide minimum key with leader heartbeats
- spawn / ReplicaRegistry: keyed persistent sub-computations
- replicate: staggered replicas of a computation, oldest alive wins
"""

import math
from dataclasses import dataclass
from typing import Any, Callable, Dict, Hashable, Iterable, List, Optional, Tuple

from .constants import ELECTION_PATIENCE
from .context import RoundContext
from .wire import INT_BYTES, encoded_size


# ============================================================================
# Hop Gradient
# ============================================================================

def abf_hops(ctx: RoundContext, source: bool) -> float:
    """
    Hop distance to the nearest source.

    0 on sources, otherwise 1 + the minimum distance reported by
    neighbours (own previous value excluded), +inf when no neighbour
    knows a finite distance.
    """
    with ctx.scope('abf_hops'):
        distances = ctx.nbr('d', math.inf)
        if source:
            d = 0.0
        else:
            d = min((v for uid, v in distances.items() if uid != ctx.uid), default=math.inf) + 1.0
        ctx.export('d', d)
    return d


# ============================================================================
# Shared Clock
# ============================================================================

def shared_clock(ctx: RoundContext) -> float:
    """
    Clock shared across the connected network.

    Each device advances the largest clock it hears of (own included) by
    the time elapsed since that value was sent.
    """
    with ctx.scope('shared_clock'):
        clocks = ctx.nbr('t', 0.0)
        lags = ctx.nbr_lag()
        t = max(clocks[uid] + lags[uid] for uid in clocks)
        ctx.export('t', t)
    return t


# ============================================================================
# Past Eventually
# ============================================================================

def past_eventually(ctx: RoundContext, flag: bool) -> bool:
    """
    True if flag holds now or held in the causal past of this round.

    The causal past is reached through the previous values of the device
    itself and of its neighbours, so truth spreads one hop per round and
    is never forgotten within the same scope.
    """
    with ctx.scope('past_eventually'):
        seen = ctx.nbr('ep', False)
        result = bool(flag) or any(seen.values())
        ctx.export('ep', result)
    return result


# ============================================================================
# Wave Election
# ============================================================================

COLLECT = 'collect'
DISSEMINATE = 'disseminate'


@dataclass(frozen=True)
class Wave:
    """
    Leadership wave exported to neighbours.

    Attributes:
        key: Candidate leader key
        origin: uid of the device championing the key
        wave: Heartbeat counter of the origin (increases every origin round)
        dist: Hops from the origin along which the wave arrived
    """
    key: Any
    origin: int
    wave: int
    dist: int

    def encoded_size(self) -> int:
        return encoded_size(self.key) + 3 * INT_BYTES

    def rank(self) -> Tuple[Any, int, int]:
        """Total preorder used to pick the best wave: smaller key, fresher wave, shorter path"""
        return (self.key, -self.wave, self.dist)


@dataclass(frozen=True)
class ElectionState:
    """
    Device-local state of the election state machine.

    Attributes:
        phase: COLLECT (championing own key) or DISSEMINATE (relaying a better leader)
        current: Wave currently held (own wave in COLLECT)
        own_wave: Heartbeat counter of this device
        stall: Consecutive rounds the relayed wave did not advance
        tomb: (origin, key, wave) of the last leader dropped as stale
    """
    phase: str
    current: Wave
    own_wave: int = 0
    stall: int = 0
    tomb: Optional[Tuple[int, Any, int]] = None

    @property
    def leader(self) -> Any:
        return self.current.key


def select_wave(waves: Iterable[Wave]) -> Optional[Wave]:
    """
    Best wave among candidates (None if empty).

    Selection is a minimum under a total preorder, hence commutative,
    associative and idempotent in the candidates.
    """
    best = None
    for wave in waves:
        if best is None or wave.rank() < best.rank() or (
                wave.rank() == best.rank() and wave.origin < best.origin):
            best = wave
    return best


def _buried(wave: Wave, tomb: Optional[Tuple[int, Any, int]]) -> bool:
    """True if wave is not newer than the tombstoned leader"""
    if tomb is None:
        return False
    origin, key, number = tomb
    return wave.origin == origin and wave.key == key and wave.wave <= number


def wave_election_state(ctx: RoundContext, key: Any, patience: int = ELECTION_PATIENCE) -> ElectionState:
    """
    One round of the election state machine.

    COLLECT: the device's own key is the best it knows; it originates a
    new wave (heartbeat) every round.
    DISSEMINATE: a neighbour relays a smaller key; the device adopts the
    freshest such wave and relays it one hop further. If that wave does
    not advance for more than `patience` rounds its origin is considered
    gone: the (origin, key, wave) is tombstoned and the device falls
    back to COLLECT.

    Waves whose origin is this device are ignored: only the device
    itself knows its current key.
    """
    with ctx.scope('wave_election'):
        prev: Optional[ElectionState] = ctx.own('state')
        own_wave = 0 if prev is None else prev.own_wave + 1
        tomb = None if prev is None else prev.tomb
        own = Wave(key=key, origin=ctx.uid, wave=own_wave, dist=0)

        candidates: List[Wave] = []
        for uid, wave in ctx.nbr('wave').items():
            if uid == ctx.uid or wave is None or wave.origin == ctx.uid:
                continue
            if _buried(wave, tomb):
                continue
            candidates.append(Wave(wave.key, wave.origin, wave.wave, wave.dist + 1))

        held = None
        if prev is not None and prev.phase == DISSEMINATE and not _buried(prev.current, tomb):
            held = prev.current
            candidates.append(held)

        best = select_wave(candidates)

        if best is not None and best.key < key:
            same_leader = held is not None and held.origin == best.origin and held.key == best.key
            stall = prev.stall + 1 if same_leader and best.wave <= held.wave else 0
            if stall > patience:
                tomb = (best.origin, best.key, best.wave)
                state = ElectionState(COLLECT, own, own_wave, 0, tomb)
            else:
                state = ElectionState(DISSEMINATE, best, own_wave, stall, tomb)
        else:
            state = ElectionState(COLLECT, own, own_wave, 0, tomb)

        ctx.export('wave', state.current)
        ctx.keep('state', state)
    return state


def wave_election(ctx: RoundContext, key: Any, patience: int = ELECTION_PATIENCE) -> Any:
    """Network-wide minimum of `key` (per connected component)"""
    return wave_election_state(ctx, key, patience).leader


# ============================================================================
# Replica Spawning
# ============================================================================

class ReplicaRegistry:
    """
    Keys of the sub-computations a device is running.

    Keys are inserted on first reference (own request or a neighbour
    running them) and removed explicitly once their process reports it
    is no longer alive.
    """

    def __init__(self, keys: Iterable[Hashable] = ()):
        self._keys = set(keys)

    def insert(self, key: Hashable) -> bool:
        """Add key; returns True if it was not running yet"""
        if key in self._keys:
            return False
        self._keys.add(key)
        return True

    def remove(self, key: Hashable):
        self._keys.discard(key)

    def keys(self) -> List[Hashable]:
        return sorted(self._keys)

    def __contains__(self, key: Hashable) -> bool:
        return key in self._keys

    def __len__(self) -> int:
        return len(self._keys)


def spawn(ctx: RoundContext, process: Callable[[Hashable], Tuple[Any, bool]],
          new_keys: Iterable[Hashable], name: Hashable = 'spawn') -> Dict[Hashable, Any]:
    """
    Run one persistent sub-computation per key.

    Keys running this round: those kept from the previous round, the new
    keys requested now, and every key a neighbour is running. Each
    process runs in its own scope and returns (value, alive); a process
    that is not alive has its exports discarded (so it stops spreading)
    and is removed from the registry.

    Args:
        ctx: Round context
        process: Called as process(key) -> (value, alive)
        new_keys: Keys this device starts now
        name: Scope name (distinguishes independent spawn sites)

    Returns:
        Dict key -> value for the processes alive this round
    """
    with ctx.scope(name):
        registry = ReplicaRegistry(ctx.own('registry', ()))
        for key in new_keys:
            registry.insert(key)
        for key in ctx.child_keys('proc'):
            registry.insert(key)

        results = {}
        for key in registry.keys():
            mark = ctx.mark()
            with ctx.scope('proc', key):
                value, alive = process(key)
            if alive:
                results[key] = value
            else:
                ctx.rollback(mark)
                registry.remove(key)

        ctx.keep('registry', tuple(registry.keys()))
    return results


def replicate_generations(ctx: RoundContext, process: Callable[[], Any], replicas: int,
                          interval: float) -> Tuple[int, Dict[int, Any]]:
    """
    Staggered replicas of `process`, one generation every `interval`.

    The current generation is floor(shared_clock / interval); generation
    k is alive while k > current - replicas. Negative bounds keep every
    generation alive during cold start.

    Returns:
        Tuple of (current generation, alive generation -> value)
    """
    with ctx.scope('replicate'):
        now = int(math.floor(shared_clock(ctx) / interval))
        results = spawn(ctx, lambda k: (process(), k > now - replicas), [now])
    return now, results


def replicate(ctx: RoundContext, process: Callable[[], Any], replicas: int, interval: float) -> Any:
    """Value of the oldest alive replica visible to this device"""
    _, results = replicate_generations(ctx, process, replicas, interval)
    return results[min(results)]
