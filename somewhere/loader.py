"""
YAML data loader with schema validation.

Loads scenario and batch plan definitions from YAML files and validates
them against the JSON schemas in data/schemas/.
"""

import yaml
import json
from pathlib import Path
from typing import Dict, Optional
import jsonschema

from .data_types import ScenarioConfig, SweepRange, BatchPlan
from .exceptions import DataLoadError


# Repository data directory (data/ next to the package)
DATA_ROOT = Path(__file__).resolve().parent.parent / "data"
SCHEMA_DIR = DATA_ROOT / "schemas"


def load_yaml(file_path: Path) -> dict:
    """Load YAML file and return parsed dict"""
    file_path = Path(file_path)
    if not file_path.exists():
        raise DataLoadError(f"File not found: {file_path}")

    try:
        with open(file_path, 'r') as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise DataLoadError(f"YAML parse error in {file_path}: {e}")

    if not isinstance(data, dict):
        raise DataLoadError(f"Expected a mapping at the top of {file_path}")
    return data


def validate_against_schema(data: dict, schema_path: Path, data_path: Path):
    """Validate data dict against JSON schema"""
    if not schema_path.exists():
        raise DataLoadError(f"Schema not found: {schema_path}")

    try:
        with open(schema_path, 'r') as f:
            schema = json.load(f)
        jsonschema.validate(instance=data, schema=schema)
    except jsonschema.ValidationError as e:
        raise DataLoadError(f"Validation error in {data_path}: {e.message}")
    except json.JSONDecodeError as e:
        raise DataLoadError(f"Invalid JSON schema {schema_path}: {e}")


def scenario_from_dict(data: dict) -> ScenarioConfig:
    """
    Build a ScenarioConfig from a parsed scenario document.

    Sections (parameters, event, network, strategies) are flattened;
    missing keys keep the ScenarioConfig defaults.

    Raises:
        ConfigurationError: If the values do not describe a runnable scenario
    """
    fields = {}
    for section in ('parameters', 'event', 'network', 'strategies'):
        fields.update(data.get(section) or {})
    return ScenarioConfig(name=data.get('name'), **fields)


def load_scenario(file_path: Path, schema_dir: Optional[Path] = SCHEMA_DIR) -> ScenarioConfig:
    """Load scenario definition from YAML"""
    data = load_yaml(file_path)

    # Validate if schema dir given
    if schema_dir:
        schema_path = Path(schema_dir) / "scenario.schema.json"
        validate_against_schema(data, schema_path, file_path)

    return scenario_from_dict(data)


def load_scenarios(scenario_dir: Path, schema_dir: Optional[Path] = SCHEMA_DIR) -> Dict[str, ScenarioConfig]:
    """Load all scenarios from directory, keyed by name"""
    scenario_dir = Path(scenario_dir)
    if not scenario_dir.exists():
        raise DataLoadError(f"Scenario directory not found: {scenario_dir}")

    registry = {}
    for yaml_file in sorted(scenario_dir.glob("*.yaml")):
        scenario = load_scenario(yaml_file, schema_dir)
        if scenario.name in registry:
            raise DataLoadError(f"Duplicate scenario name '{scenario.name}' in {yaml_file}")
        registry[scenario.name] = scenario

    if not registry:
        raise DataLoadError(f"No scenario files found in {scenario_dir}")

    return registry


def load_batch_plan(file_path: Path, schema_dir: Optional[Path] = SCHEMA_DIR) -> BatchPlan:
    """Load batch plan (seeds and parameter sweeps) from YAML"""
    data = load_yaml(file_path)

    if schema_dir:
        schema_path = Path(schema_dir) / "batch.schema.json"
        validate_against_schema(data, schema_path, file_path)

    seeds = SweepRange(**data['seeds'])
    sweeps = {name: SweepRange(**values) for name, values in data['sweeps'].items()}
    return BatchPlan(seeds=seeds, sweeps=sweeps)
