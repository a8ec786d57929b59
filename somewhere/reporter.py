"""
Executes somewhere strategies and stores data about them on the device.

For each strategy the Reporter measures the bytes the strategy adds to
the outgoing message, runs it in its own scope, and stores a
StrategyRecord (value, error against the oracle, msg_size) on the device
under the strategy's name.

A strategy that raises does not stop the round: its partial exports are
discarded, a warning is printed, and its record holds value=False.
"""

import os
from typing import Optional

from .constants import ORACLE, BASELINE, KNOWLEDGE_FREE, REPLICATED, FASTEST
from .context import RoundContext
from .data_types import StrategyParams, StrategyRecord
from .device import Device
from .strategies import STRATEGIES, Strategy


class Reporter:
    """
    Runs strategies for one device round and records their outcome.

    Args:
        device: Device whose storage receives the records
        verbose: Print a warning for every failing strategy (default True)
    """

    def __init__(self, device: Device, verbose: bool = True):
        self.device = device
        self.verbose = verbose
        self.failures = 0

    def oracle_value(self) -> Optional[bool]:
        """Oracle value of the current round (None if not reported yet)"""
        record = self.device.record(ORACLE)
        return None if record is None else record.value

    def report(self, ctx: RoundContext, strategy: Strategy, *args) -> StrategyRecord:
        """
        Run `strategy` and store its record.

        The oracle must be reported first in each round; the oracle's own
        error is always False.
        """
        mark = ctx.mark()
        msg_base = ctx.msg_size()

        try:
            with ctx.scope(strategy.name):
                value = bool(strategy(ctx, *args))
        except Exception as e:
            ctx.rollback(mark)
            value = False
            self.failures += 1
            if self.verbose:
                print(f"[WARN] Strategy {strategy.name} failed on device {ctx.uid} "
                      f"at t={ctx.time:.3f}: {type(e).__name__}: {e}")

        msg_size = ctx.msg_size() - msg_base
        oracle = value if strategy.name == ORACLE else self.oracle_value()
        record = StrategyRecord(value=value, error=value != oracle, msg_size=msg_size)
        self.device.storage[strategy.name] = record
        return record


def run_program(ctx: RoundContext, device: Device, params: StrategyParams, trigger_global: bool,
                origin: int, reporter: Optional[Reporter] = None) -> Reporter:
    """
    Main per-round program of the experiment.

    Only the origin device is triggered, and only while the global event
    window is open. Every strategy is reported, the oracle first.

    Args:
        ctx: Round context of `device`
        device: Executing device
        params: Strategy parameters
        trigger_global: Ground truth of the somewhere formula this round
        origin: uid of the triggering device
        reporter: Optional reporter to reuse

    Returns:
        The reporter used
    """
    if reporter is None:
        reporter = Reporter(device, verbose=os.getenv('SOMEWHERE_QUIET') != '1')

    local_trigger = ctx.uid == origin and trigger_global
    device.local_trigger = local_trigger

    reporter.report(ctx, STRATEGIES[ORACLE], local_trigger, trigger_global)
    reporter.report(ctx, STRATEGIES[BASELINE], local_trigger, params.diameter)
    reporter.report(ctx, STRATEGIES[KNOWLEDGE_FREE], local_trigger)
    reporter.report(ctx, STRATEGIES[REPLICATED], local_trigger, params.diameter,
                    params.info_speed, params.replicas)
    reporter.report(ctx, STRATEGIES[FASTEST], local_trigger, params.diameter, params.info_speed)
    return reporter
