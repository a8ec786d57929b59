"""
Tests for scenario and strategy parameter dataclasses.
"""

import pytest

from somewhere.data_types import (
    StrategyParams, ScenarioConfig, StrategyRecord, side_formula, device_formula
)
from somewhere.exceptions import ConfigurationError


def test_strategy_params_defaults():
    params = StrategyParams()
    assert params.diameter == 10
    assert params.info_speed == 70
    assert params.replicas == 3
    assert params.replica_interval == pytest.approx(10 / 70 / 2)
    assert params.window == pytest.approx(10 / 70)


@pytest.mark.parametrize("kwargs", [
    {'replicas': 1},
    {'replicas': 0},
    {'replicas': 2.5},
    {'info_speed': 0},
    {'info_speed': -1.0},
    {'diameter': 0},
])
def test_strategy_params_rejects_invalid(kwargs):
    with pytest.raises(ConfigurationError):
        StrategyParams(**kwargs)


def test_side_and_device_formulas():
    assert side_formula(10, 100) == 707
    assert device_formula(10, 707, 100) == 159
    assert side_formula(1, 100) == 71


def test_scenario_derives_side_and_devices():
    config = ScenarioConfig()
    assert config.side == 707
    assert config.devices == 159

    explicit = ScenarioConfig(side=100, devices=4)
    assert explicit.side == 100
    assert explicit.devices == 4


def test_scenario_rejects_invalid():
    with pytest.raises(ConfigurationError):
        ScenarioConfig(true_time=50, false_time=20, end_time=60)
    with pytest.raises(ConfigurationError):
        ScenarioConfig(replicas=1)
    with pytest.raises(ConfigurationError):
        ScenarioConfig(devices=0)
    with pytest.raises(ConfigurationError):
        ScenarioConfig(speed=-1)
    with pytest.raises(ConfigurationError):
        ScenarioConfig(devices=1, origin=5)
    with pytest.raises(ConfigurationError):
        ScenarioConfig(devices=4, origin=-1)
    assert ScenarioConfig(devices=4, origin=3).origin == 3


def test_trigger_global_is_open_interval():
    config = ScenarioConfig(devices=1)
    assert not config.trigger_global(100)
    assert config.trigger_global(100.5)
    assert config.trigger_global(199)
    assert not config.trigger_global(200)


def test_label_and_params():
    config = ScenarioConfig(seed=3, speed=4, dens=5, hops=6, tvar=7)
    assert config.label() == "seed-3_speed-4_dens-5_hops-6_tvar-7"
    assert ScenarioConfig(devices=1, name="single").label() == "single"

    params = config.strategy_params()
    assert params.diameter == 6
    assert config.to_dict()['hops'] == 6


def test_strategy_record_to_dict():
    record = StrategyRecord(value=True, error=False, msg_size=16)
    assert record.to_dict() == {'value': True, 'error': False, 'msg_size': 16}
