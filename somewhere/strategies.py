"""
Alternative implementations of the somewhere operator.

Every strategy is a callable strategy(ctx, local_trigger, ...) -> bool
with a unique name; the Reporter runs each one in its own scope.

- Oracle: ground truth, no communication
- Baseline: hop gradient from triggered devices below the diameter
- KnowledgeFree: election of the minimum (not triggered, uid) key
- Replicated: staggered replicas of the past-eventually operator
- Fastest: gossip of a full per-device NetState
"""

from typing import Dict

from .constants import ORACLE, BASELINE, KNOWLEDGE_FREE, REPLICATED, FASTEST
from .context import RoundContext
from .coordination import abf_hops, wave_election, past_eventually, replicate
from .netstate import NetState


class Strategy:
    """Base class: subclasses set `name` and implement __call__"""

    name: str = ''

    def __call__(self, ctx: RoundContext, local_trigger: bool, *args) -> bool:
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class Oracle(Strategy):
    """Oracle implementation: returns the externally supplied truth."""

    name = ORACLE

    def __call__(self, ctx: RoundContext, local_trigger: bool, trigger_global: bool) -> bool:
        return bool(trigger_global)


class Baseline(Strategy):
    """
    State-of-the-art baseline implementation.

    True while the hop gradient from triggered devices is below the
    diameter bound. Gives false negatives while the gradient re-converges
    after topology changes and false positives for about diameter rounds
    after the trigger stops.
    """

    name = BASELINE

    def __call__(self, ctx: RoundContext, local_trigger: bool, diameter: float) -> bool:
        return abf_hops(ctx, local_trigger) < diameter


class KnowledgeFree(Strategy):
    """
    Knowledge-free implementation.

    Elects the minimum (not triggered, uid) key: its first component is
    False iff some device of the connected component is triggered. Needs
    no diameter or speed bound.
    """

    name = KNOWLEDGE_FREE

    def __call__(self, ctx: RoundContext, local_trigger: bool) -> bool:
        leader = wave_election(ctx, (not local_trigger, ctx.uid))
        return not leader[0]


class Replicated(Strategy):
    """
    Implementation by replicating the past-eventually operator.

    A bare past-eventually never forgets; replicas started every
    diameter / info_speed / (replicas - 1) seconds and retired after
    `replicas` generations bound how long a past truth is remembered.
    """

    name = REPLICATED

    def __call__(self, ctx: RoundContext, local_trigger: bool, diameter: float,
                 info_speed: float, replicas: int) -> bool:
        interval = diameter / info_speed / (replicas - 1)
        return bool(replicate(ctx, lambda: past_eventually(ctx, local_trigger), replicas, interval))


class Fastest(Strategy):
    """
    Fastest and heaviest implementation.

    Gossips a NetState with the freshest trigger value of every device;
    true if some device was true within the last diameter / info_speed
    seconds. Message size grows with the number of devices.
    """

    name = FASTEST

    def __call__(self, ctx: RoundContext, local_trigger: bool, diameter: float, info_speed: float) -> bool:
        states = ctx.nbr('netstate', NetState())
        state = NetState.fold(states.values()).update(ctx.uid, ctx.time, local_trigger)
        ctx.export('netstate', state)
        return state.value(ctx.time - diameter / info_speed)


STRATEGIES: Dict[str, Strategy] = {
    strategy.name: strategy
    for strategy in (Oracle(), Baseline(), KnowledgeFree(), Replicated(), Fastest())
}
