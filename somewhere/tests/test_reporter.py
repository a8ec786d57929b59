"""
Tests for the Reporter: records, message sizes and fault isolation.
"""

from somewhere.constants import ORACLE, BASELINE, KNOWLEDGE_FREE, REPLICATED, FASTEST, STRATEGY_NAMES
from somewhere.context import RoundContext
from somewhere.data_types import StrategyParams
from somewhere.device import Device
from somewhere.network import NetworkSubstrate
from somewhere.reporter import Reporter, run_program
from somewhere.strategies import STRATEGIES, Strategy


class Exploding(Strategy):
    """Exports a value, then fails"""

    name = 'exploding'

    def __call__(self, ctx, local_trigger):
        ctx.export('partial', 1.0)
        raise RuntimeError("boom")


def test_first_round_message_sizes():
    device = Device(uid=0, position=[0.0, 0.0])
    ctx = RoundContext(0, 0.0, None, {})
    run_program(ctx, device, StrategyParams(), trigger_global=False, origin=0,
                reporter=Reporter(device, verbose=False))

    sizes = {name: device.record(name).msg_size for name in STRATEGY_NAMES}
    assert sizes == {
        ORACLE: 0,
        BASELINE: 16,          # one float
        KNOWLEDGE_FREE: 25,    # wave: (bool, int) key + origin, wave, dist
        REPLICATED: 25,        # shared clock + one generation flag
        FASTEST: 21,           # one netstate entry
    }
    assert ctx.msg_size() == sum(sizes.values())


def test_msg_size_never_negative_over_rounds():
    network = NetworkSubstrate()
    for uid in range(4):
        network.add_device(Device(uid=uid, position=[0.0, 0.0]))
    network.set_topology({0: [1, 2], 2: [3]})
    params = StrategyParams(diameter=3, info_speed=1.0, replicas=3)

    def program(ctx, device):
        run_program(ctx, device, params, 5 < ctx.time < 10, origin=0,
                    reporter=Reporter(device, verbose=False))
        for name in STRATEGY_NAMES:
            assert device.record(name).msg_size >= 0
        assert device.record(ORACLE).error is False

    for t in range(20):
        network.run_synchronous_round(float(t), program)


def test_failing_strategy_is_isolated():
    device = Device(uid=0, position=[0.0, 0.0])
    reporter = Reporter(device, verbose=False)
    ctx = RoundContext(0, 0.0, None, {})

    reporter.report(ctx, STRATEGIES[ORACLE], True, True)
    record = reporter.report(ctx, Exploding(), True)
    after = reporter.report(ctx, STRATEGIES[BASELINE], True, 10)

    assert record.value is False
    assert record.error is True, "failure counts as disagreement with a true oracle"
    assert record.msg_size == 0, "partial exports are discarded"
    assert reporter.failures == 1
    assert after.value is True

    message = ctx.finish()
    assert not any(key[0] == 'exploding' for key in message.exports)


def test_error_flag_against_oracle():
    device = Device(uid=3, position=[0.0, 0.0])
    ctx = RoundContext(3, 50.0, None, {})
    run_program(ctx, device, StrategyParams(), trigger_global=True, origin=0,
                reporter=Reporter(device, verbose=False))

    # Device 3 is not the origin and has no neighbours: only the oracle knows
    assert device.local_trigger is False
    assert device.record(ORACLE).value is True
    for name in (BASELINE, KNOWLEDGE_FREE, REPLICATED, FASTEST):
        assert device.record(name).value is False
        assert device.record(name).error is True
