"""
Batch execution of scenario sweeps.

A batch is the union of one-at-a-time sweeps: for every seed, each swept
parameter runs over its range while the other swept parameters stay at
their defaults. The all-defaults scenario is run once per seed.

Every scenario writes its logged rows to <output_dir>/batch_<label>.txt.
"""

import math
import time
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Sequence

from .aggregation import row_columns, summarize, write_rows
from .data_types import ScenarioConfig, SweepRange, BatchPlan
from .exceptions import ConfigurationError
from .simulation import SomewhereSimulation


# Sweeps of the reference experiment
DEFAULT_SEEDS = SweepRange(start=0, stop=9, step=1)
DEFAULT_SWEEPS = {
    'speed': SweepRange(start=0, stop=48, step=2, default=10),
    'dens': SweepRange(start=5, stop=29, step=1, default=10),
    'hops': SweepRange(start=1, stop=25, step=1, default=10),
    'tvar': SweepRange(start=0, stop=48, step=2, default=10),
}


def arithmetic(start: float, stop: float, step: float = 1, default: Optional[float] = None) -> List[float]:
    """
    Inclusive arithmetic sequence start, start + step, ... <= stop.

    Integers stay integers when start and step are integral.

    Raises:
        ConfigurationError: On a non-positive step, an empty range, or
            a default outside [start, stop]
    """
    if not step > 0:
        raise ConfigurationError(f"step must be positive, got {step}")
    if stop < start:
        raise ConfigurationError(f"empty range {start}..{stop}")
    if default is not None and not (start <= default <= stop):
        raise ConfigurationError(f"default {default} outside range {start}..{stop}")

    count = int(math.floor((stop - start) / step + 1e-9)) + 1
    integral = float(start).is_integer() and float(step).is_integer()
    values = [start + i * step for i in range(count)]
    if integral:
        values = [int(v) for v in values]
    return values


def _range_values(sweep: SweepRange) -> List[float]:
    return arithmetic(sweep.start, sweep.stop, sweep.step, sweep.default)


def make_scenarios(seeds: SweepRange = DEFAULT_SEEDS, sweeps: Optional[Mapping[str, SweepRange]] = None,
                   **overrides) -> List[ScenarioConfig]:
    """
    Scenarios of a one-at-a-time parameter sweep.

    Args:
        seeds: Range of random seeds
        sweeps: Parameter name -> range with default (default: reference sweeps)
        **overrides: Fixed ScenarioConfig fields applied to every scenario

    Returns:
        Scenarios ordered by seed, then parameter, then value (duplicates removed)

    Raises:
        ConfigurationError: If a swept parameter has no default or a
            combination is not a valid scenario
    """
    sweeps = DEFAULT_SWEEPS if sweeps is None else sweeps
    if 'seed' in overrides or 'seed' in sweeps:
        raise ConfigurationError("seeds are given by the seeds range")
    for name, sweep in sweeps.items():
        if sweep.default is None:
            raise ConfigurationError(f"swept parameter '{name}' needs a default")
        if name in overrides:
            raise ConfigurationError(f"parameter '{name}' is both swept and fixed")

    defaults = {name: sweep.default for name, sweep in sweeps.items()}
    scenarios = []
    seen = set()
    for seed in _range_values(seeds):
        for name, sweep in sweeps.items():
            for value in _range_values(sweep):
                params = dict(defaults, **{name: value})
                key = (seed,) + tuple(sorted(params.items()))
                if key in seen:
                    continue
                seen.add(key)
                scenarios.append(ScenarioConfig(seed=int(seed), **params, **overrides))
    return scenarios


def scenarios_from_plan(plan: BatchPlan, **overrides) -> List[ScenarioConfig]:
    """Scenarios of a batch plan loaded with loader.load_batch_plan()"""
    return make_scenarios(plan.seeds, plan.sweeps, **overrides)


def output_path(config: ScenarioConfig, output_dir: Path) -> Path:
    """Result file of a scenario"""
    return Path(output_dir) / f"batch_{config.label()}.txt"


def run_scenario(config: ScenarioConfig, output_dir: Optional[Path] = None,
                 verbose: bool = False) -> List[Dict[str, float]]:
    """
    Run one scenario and optionally write its rows.

    Returns:
        Logged rows
    """
    simulation = SomewhereSimulation(config, verbose=verbose)
    rows = simulation.run()
    if output_dir is not None:
        header = [f"{key} = {value}" for key, value in config.to_dict().items()]
        write_rows(output_path(config, output_dir), rows, header=header, columns=row_columns())
    return rows


def run_batch(scenarios: Sequence[ScenarioConfig], output_dir: Path = Path("output"),
              verbose: bool = True) -> Dict[str, Dict[str, Dict[str, float]]]:
    """
    Run scenarios sequentially, writing one result file each.

    Args:
        scenarios: Scenarios to run
        output_dir: Directory receiving batch_<label>.txt files
        verbose: Print one progress line per scenario

    Returns:
        Dict label -> per-strategy summary after the first switch
    """
    results = {}
    batch_start = time.perf_counter()
    for index, config in enumerate(scenarios, start=1):
        start = time.perf_counter()
        rows = run_scenario(config, output_dir)
        summary = summarize(rows, after=config.true_time)
        results[config.label()] = summary

        if verbose:
            errors = " ".join(f"{name}={values['error']:.3f}" for name, values in summary.items())
            print(f"[OK] {index:4d}/{len(scenarios)} {config.label()} "
                  f"({time.perf_counter() - start:.1f}s) error: {errors}")

    if verbose:
        print(f"[OK] Batch finished: {len(scenarios)} scenarios in "
              f"{time.perf_counter() - batch_start:.1f}s, output in {output_dir}")
    return results
