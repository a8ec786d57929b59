"""
Run the somewhere parameter sweep.

Default plan: 10 seeds, speed 0..48 step 2, dens 5..29, hops 1..25 and
tvar 0..48 step 2, one parameter varied at a time around 10. A YAML plan
(--plan) replaces the default sweep; --limit runs only the first scenarios.
"""

import argparse
from pathlib import Path

from somewhere.batch import make_scenarios, run_batch, scenarios_from_plan
from somewhere.constants import STRATEGY_NAMES
from somewhere.loader import load_batch_plan


def parse_args():
    parser = argparse.ArgumentParser(description="Run a batch of somewhere scenarios")
    parser.add_argument('--plan', type=Path, help="Batch plan YAML (default: reference sweep)")
    parser.add_argument('--output-dir', type=Path, default=Path("output"))
    parser.add_argument('--limit', type=int, default=None, help="Run at most this many scenarios")
    parser.add_argument('--synchronised', action='store_true', help="Run all rounds at integer times")
    return parser.parse_args()


def main():
    """Run every scenario of the plan sequentially."""
    args = parse_args()

    if args.plan:
        scenarios = scenarios_from_plan(load_batch_plan(args.plan), synchronised=args.synchronised)
    else:
        scenarios = make_scenarios(synchronised=args.synchronised)
    if args.limit is not None:
        scenarios = scenarios[:args.limit]

    print("=" * 80)
    print(f"Somewhere batch: {len(scenarios)} scenarios -> {args.output_dir}")
    print("=" * 80)
    print()

    results = run_batch(scenarios, output_dir=args.output_dir)

    # Mean over scenarios of the per-scenario summaries
    print()
    print("| Strategy   | Error  | Msg size (B) |")
    print("|------------|--------|--------------|")
    for name in STRATEGY_NAMES:
        errors = [summary[name]['error'] for summary in results.values()]
        sizes = [summary[name]['msg_size'] for summary in results.values()]
        print(f"| {name:10s} | {sum(errors) / max(len(errors), 1):6.3f} | "
              f"{sum(sizes) / max(len(sizes), 1):12.1f} |")
    print()


if __name__ == '__main__':
    main()
