"""
Tests for the somewhere strategies on fixed topologies.

Line scenario: devices 0 - 1 - 2 - 3 - 4, only device 0 is triggered and
only while 20 < t < 40, so its first triggered round is t = 21. With
diameter 10 and info_speed 1 every strategy must become true on device
k exactly at round 21 + k, and be false again well after the window.
"""

import pytest

from somewhere.constants import ORACLE, BASELINE, KNOWLEDGE_FREE, REPLICATED, FASTEST, STRATEGY_NAMES
from somewhere.data_types import ScenarioConfig, StrategyParams
from somewhere.device import Device
from somewhere.network import NetworkSubstrate
from somewhere.reporter import run_program
from somewhere.simulation import SomewhereSimulation
from somewhere.strategies import STRATEGIES


def make_network(n: int, adjacency) -> NetworkSubstrate:
    network = NetworkSubstrate()
    for uid in range(n):
        network.add_device(Device(uid=uid, position=[0.0, 0.0]))
    network.set_topology(adjacency)
    return network


def run_experiment(network, params, trigger, times, origin=0):
    """
    Run run_program synchronously; returns {strategy: {t: {uid: value}}}.

    Args:
        trigger: Callable t -> global trigger value
    """
    values = {name: {} for name in STRATEGY_NAMES}

    def program(ctx, device):
        run_program(ctx, device, params, trigger(ctx.time), origin)
        for name in STRATEGY_NAMES:
            values[name].setdefault(ctx.time, {})[ctx.uid] = device.record(name).value

    for t in times:
        network.run_synchronous_round(float(t), program)
    return values


@pytest.fixture(scope="module")
def line_values():
    network = make_network(5, {uid: [uid + 1] for uid in range(4)})
    params = StrategyParams(diameter=10, info_speed=1.0, replicas=3)
    return run_experiment(network, params, lambda t: 20 < t < 40, range(61))


def test_registry_names():
    assert list(STRATEGIES) == STRATEGY_NAMES
    for name, strategy in STRATEGIES.items():
        assert strategy.name == name


def test_oracle_matches_trigger(line_values):
    for t, values in line_values[ORACLE].items():
        expected = 20 < t < 40
        assert all(v == expected for v in values.values()), f"oracle wrong at t={t}"


@pytest.mark.parametrize("name", [BASELINE, KNOWLEDGE_FREE, REPLICATED, FASTEST])
def test_truth_travels_one_hop_per_round(line_values, name):
    history = line_values[name]
    for k in range(5):
        first_true = min(t for t, values in history.items() if values[k])
        assert first_true == 21 + k, f"{name}: device {k} true at t={first_true}"
        assert all(history[t][k] for t in range(21 + k, 40)), f"{name}: device {k} lost truth early"


@pytest.mark.parametrize("name", [BASELINE, KNOWLEDGE_FREE, REPLICATED, FASTEST])
def test_false_after_window(line_values, name):
    assert not any(line_values[name][60.0].values()), f"{name} still true 20 rounds after the window"


def test_fastest_forgets_exactly(line_values):
    # The newest entry of device 0 seen by device k is k rounds old
    history = line_values[FASTEST]
    for k in range(5):
        assert history[39 + k][k], f"device {k} should still see t=39"
        assert not history[40 + k][k], f"device {k} should see device 0 false at t={40 + k}"


def test_knowledge_free_partitioned():
    # Component {0, 1, 2} holds the triggered device, {3, 4} does not
    network = make_network(5, {0: [1], 1: [2], 3: [4]})
    params = StrategyParams(diameter=10, info_speed=1.0, replicas=3)
    values = run_experiment(network, params, lambda t: True, range(10))

    final = values[KNOWLEDGE_FREE][9.0]
    assert final == {0: True, 1: True, 2: True, 3: False, 4: False}


def test_single_device_matches_oracle():
    config = ScenarioConfig(devices=1, speed=0, tvar=0, synchronised=True)
    simulation = SomewhereSimulation(config, verbose=False)
    rows = simulation.run()

    assert len(rows) == config.end_time + 1
    logged = [row for row in rows if row['time'] > 0]
    for row in logged:
        for name in STRATEGY_NAMES:
            assert row[f"{name}_error"] == 0.0, f"{name} disagrees at t={row['time']}"

    # Row t shows the round at t - 1: rounds 101..199 are true
    true_rows = [row['time'] for row in logged if row[f"{ORACLE}_value"] == 1.0]
    assert true_rows == [float(t) for t in range(102, 201)]
    assert simulation.strategy_failures() == 0
