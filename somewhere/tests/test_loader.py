"""
Test data loading: scenario and batch plan YAML files.

Verifies YAML -> dataclass conversion and that invalid files are
rejected before any simulation starts.
"""

import pytest

from somewhere.exceptions import ConfigurationError, DataLoadError
from somewhere.loader import (
    DATA_ROOT, load_batch_plan, load_scenario, load_scenarios, load_yaml
)


SCENARIO_DIR = DATA_ROOT / "scenarios"


def write(tmp_path, text, name="scenario.yaml"):
    path = tmp_path / name
    path.write_text(text)
    return path


def test_load_default_scenario():
    config = load_scenario(SCENARIO_DIR / "default.yaml")

    assert config.name == "default"
    assert (config.hops, config.dens, config.speed, config.tvar) == (10, 10, 10, 10)
    assert config.side == 707
    assert config.devices == 159
    assert config.synchronised is False
    assert config.strategy_params().replicas == 3
    print(f"[OK] Loaded scenario {config.name}: {config.devices} devices")


def test_load_all_scenarios():
    registry = load_scenarios(SCENARIO_DIR)

    assert {'default', 'single-device', 'static-line'} <= set(registry)
    single = registry['single-device']
    assert single.devices == 1
    assert single.synchronised is True


def test_missing_file(tmp_path):
    with pytest.raises(DataLoadError):
        load_scenario(tmp_path / "missing.yaml")


def test_malformed_yaml(tmp_path):
    path = write(tmp_path, "name: [unclosed\n")
    with pytest.raises(DataLoadError):
        load_yaml(path)


def test_schema_rejects_single_replica(tmp_path):
    path = write(tmp_path, "name: bad\nparameters: {hops: 3}\nstrategies: {replicas: 1}\n")
    with pytest.raises(DataLoadError):
        load_scenario(path)


def test_schema_rejects_unknown_key(tmp_path):
    path = write(tmp_path, "name: bad\nparameters: {hops: 3, colour: red}\n")
    with pytest.raises(DataLoadError):
        load_scenario(path)


def test_inconsistent_event_window(tmp_path):
    path = write(tmp_path, "name: bad\nparameters: {hops: 3}\n"
                           "event: {true_time: 50, false_time: 20, end_time: 60}\n")
    with pytest.raises(ConfigurationError):
        load_scenario(path)


def test_missing_sections_use_defaults(tmp_path):
    path = write(tmp_path, "name: minimal\nparameters: {hops: 2, devices: 4}\n")
    config = load_scenario(path)

    assert config.devices == 4
    assert config.true_time == 100
    assert config.info_speed == 70


def test_load_batch_plan():
    plan = load_batch_plan(DATA_ROOT / "batch" / "sweep.yaml")

    assert plan.seeds.start == 0 and plan.seeds.stop == 9
    assert set(plan.sweeps) == {'speed', 'dens', 'hops', 'tvar'}
    assert plan.sweeps['dens'].default == 10


def test_batch_plan_requires_seeds(tmp_path):
    path = write(tmp_path, "sweeps:\n  speed: {start: 0, stop: 4, step: 2, default: 2}\n", "plan.yaml")
    with pytest.raises(DataLoadError):
        load_batch_plan(path)
