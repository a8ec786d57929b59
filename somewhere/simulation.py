"""
Somewhere simulation kernel.

Main simulation class that spawns the devices of a scenario, schedules
their rounds, moves them and logs the per-strategy means once per
simulated second.
"""

import heapq
import numpy as np
import os
import time
from contextlib import contextmanager
from typing import Dict, List, Optional

from .aggregation import aggregate_rows
from .constants import (
    DIMENSIONS,
    ROUND_PERIOD,
    LOG_PERIOD,
    TICK_TIME_WINDOW,
    TICK_SUMMARY_INTERVAL,
)
from .context import RoundContext
from .data_types import ScenarioConfig
from .device import Device
from .network import NetworkSubstrate
from .reporter import Reporter, run_program
from .rng import make_rng, random_position_in_rectangle, RoundIntervals


class _PhaseTimer:
    """
    Lightweight timer for profiling tick phases.

    Enabled when SOMEWHERE_PROFILE=1 environment variable is set.
    Adds negligible overhead when disabled (~1 branch per section).
    """
    def __init__(self):
        self.enabled = os.getenv('SOMEWHERE_PROFILE') == '1'
        self.timings: Dict[str, float] = {}
        self.ticks = 0

    @contextmanager
    def time(self, name: str):
        """Context manager to time a code section."""
        if not self.enabled:
            yield
            return

        start = time.perf_counter_ns()
        yield
        elapsed_ms = (time.perf_counter_ns() - start) / 1_000_000
        # Accumulated over all ticks, averaged on print
        self.timings[name] = self.timings.get(name, 0.0) + elapsed_ms

    def reset(self):
        self.timings.clear()
        self.ticks = 0


class SomewhereSimulation:
    """
    Main simulation class for one scenario.

    Each tick covers one simulated second [t, t + 1):
    1. Log: aggregate the device records at t (t <= end_time only)
    2. Rounds: execute every device round scheduled in the tick, in
       time order (asynchronous delivery), or one synchronous round of
       all devices at t when the scenario is synchronised
    3. Movement: advance the random walks by one second
    4. Connectivity: rebuild neighbour sets from the new positions
    """

    def __init__(self, config: ScenarioConfig, verbose: bool = True):
        """
        Initialize simulation from a scenario.

        Args:
            config: Validated scenario
            verbose: Print status lines and strategy warnings
        """
        self.config = config
        self.params = config.strategy_params()
        self.verbose = verbose

        self.network = NetworkSubstrate(comm_radius=config.comm_radius, retain=config.retain)
        self.time: float = 0.0
        self.dt: float = LOG_PERIOD
        self.tick_count: int = 0
        self.rows: List[Dict[str, float]] = []

        # Deployment area
        self._low = np.zeros(DIMENSIONS, dtype=np.float64)
        self._high = np.full(DIMENSIONS, float(config.side), dtype=np.float64)

        # Per-device schedule and helpers (keyed by uid)
        self._walk_rngs: Dict[int, np.random.Generator] = {}
        self._intervals: Dict[int, RoundIntervals] = {}
        self._next_round: Dict[int, Optional[float]] = {}
        self._reporters: Dict[int, Reporter] = {}

        # Rounds stop after this time
        self._last_round_time = config.end_time + 2 * ROUND_PERIOD

        # Performance metrics
        self._tick_times: List[float] = []
        self._tick_time_sum: float = 0.0
        self._tick_time_window: int = TICK_TIME_WINDOW
        self._timer = _PhaseTimer()
        self.rounds_run: int = 0

        self._spawn_devices()
        self.network.build()

        if self.verbose:
            mode = "synchronised" if config.synchronised else "asynchronous"
            print(f"[OK] Simulation initialized: {len(self.network.devices)} devices, "
                  f"side={config.side}, {mode} rounds, seed={config.seed}")

    @property
    def devices(self) -> List[Device]:
        """Devices sorted by uid"""
        return [self.network.devices[uid] for uid in sorted(self.network.devices)]

    def _spawn_devices(self):
        """Place every device uniformly in the square and seed its schedule"""
        config = self.config
        for uid in range(config.devices):
            position = random_position_in_rectangle(make_rng(config.seed, uid, "place"), self._low, self._high)
            device = Device(uid=uid, position=position, speed=float(config.speed))
            self.network.add_device(device)

            self._walk_rngs[uid] = make_rng(config.seed, uid, "walk")
            round_rng = make_rng(config.seed, uid, "rounds")
            self._intervals[uid] = RoundIntervals(round_rng, ROUND_PERIOD, config.tvar / 100.0 * ROUND_PERIOD)
            self._next_round[uid] = float(round_rng.uniform(0.0, ROUND_PERIOD))
            self._reporters[uid] = Reporter(device, verbose=self.verbose)

    def _program(self, ctx: RoundContext, device: Device):
        run_program(ctx, device, self.params, self.config.trigger_global(ctx.time),
                    self.config.origin, self._reporters[device.uid])

    def _run_asynchronous_rounds(self, t_end: float):
        """Execute the rounds scheduled before t_end in time order (ties by uid)"""
        queue = [(t, uid) for uid, t in self._next_round.items() if t is not None and t < t_end]
        heapq.heapify(queue)

        while queue:
            t, uid = heapq.heappop(queue)
            ctx = self.network.begin_round(uid, t)
            self._program(ctx, self.network.devices[uid])
            self.network.end_round(ctx, deliver=True)
            self.rounds_run += 1

            next_t = t + self._intervals[uid].next()
            if next_t > self._last_round_time:
                self._next_round[uid] = None
                continue
            self._next_round[uid] = next_t
            if next_t < t_end:
                heapq.heappush(queue, (next_t, uid))

    def tick(self):
        """Advance simulation by one second"""
        start_time = time.perf_counter()
        t0 = self.time
        t1 = t0 + self.dt

        with self._timer.time('log'):
            if t0 <= self.config.end_time:
                self.rows.append(aggregate_rows(self.devices, t0))

        with self._timer.time('rounds'):
            if self.config.synchronised:
                if t0 <= self._last_round_time:
                    sent = self.network.run_synchronous_round(t0, self._program)
                    self.rounds_run += len(sent)
            else:
                self._run_asynchronous_rounds(t1)

        with self._timer.time('movement'):
            for device in self.devices:
                device.walk(self.dt, self._low, self._high, self._walk_rngs[device.uid])

        with self._timer.time('build'):
            self.network.build()

        self.time = t1
        self.tick_count += 1
        self._timer.ticks += 1

        elapsed = time.perf_counter() - start_time
        self._record_tick_time(elapsed)

    def run(self) -> List[Dict[str, float]]:
        """
        Run the scenario to completion.

        Returns:
            Logged rows, one per second from 0 to end_time
        """
        while self.time <= self._last_round_time:
            self.tick()
            if self.verbose and self.tick_count % TICK_SUMMARY_INTERVAL == 0:
                self.print_tick_summary()
                self.print_perf_breakdown()

        if self.verbose:
            failures = self.strategy_failures()
            status = "[OK]" if failures == 0 else "[WARN]"
            print(f"{status} Simulation finished: {self.rounds_run} rounds, {len(self.rows)} rows, "
                  f"{self.network.bytes_sent} bytes sent, {failures} strategy failures")
        return self.rows

    def strategy_failures(self) -> int:
        """Number of strategy executions that raised"""
        return sum(reporter.failures for reporter in self._reporters.values())

    def get_tick_stats(self) -> dict:
        """
        Get current tick timing statistics.

        Returns:
            Dict with tick_count, avg_tick_time_ms, last_tick_time_ms
        """
        if not self._tick_times:
            return {
                'tick_count': self.tick_count,
                'avg_tick_time_ms': 0.0,
                'last_tick_time_ms': 0.0
            }

        avg_time = self._tick_time_sum / len(self._tick_times)
        last_time = self._tick_times[-1]

        return {
            'tick_count': self.tick_count,
            'avg_tick_time_ms': avg_time * 1000.0,
            'last_tick_time_ms': last_time * 1000.0
        }

    def _record_tick_time(self, elapsed: float):
        """
        Record tick timing for rolling average.

        Args:
            elapsed: Tick time in seconds
        """
        self._tick_times.append(elapsed)
        self._tick_time_sum += elapsed

        # Maintain rolling window
        if len(self._tick_times) > self._tick_time_window:
            removed = self._tick_times.pop(0)
            self._tick_time_sum -= removed

    def get_snapshot(self) -> dict:
        """
        Get complete simulation state snapshot.

        Returns:
            Dict with time, devices, traffic and timing
        """
        return {
            'tick_count': self.tick_count,
            'time': self.time,
            'device_count': len(self.network.devices),
            'devices': [d.to_dict() for d in self.devices],
            'traffic': {
                'messages_sent': self.network.messages_sent,
                'bytes_sent': self.network.bytes_sent
            },
            'timing': self.get_tick_stats()
        }

    def print_tick_summary(self):
        """Print tick summary to console (lightweight monitoring)"""
        stats = self.get_tick_stats()
        print(f"Tick {stats['tick_count']:5d} | "
              f"Avg: {stats['avg_tick_time_ms']:6.3f} ms | "
              f"Last: {stats['last_tick_time_ms']:6.3f} ms | "
              f"Devices: {len(self.network.devices)}")

    def print_perf_breakdown(self):
        """Print phase timings (SOMEWHERE_PROFILE=1 only) and network health"""
        if not self._timer.enabled or self._timer.ticks == 0:
            return

        ticks = self._timer.ticks
        print(f"\n[Perf Breakdown] Tick {self.tick_count} ({len(self.network.devices)} devices)")
        for name in ('log', 'rounds', 'movement', 'build'):
            print(f"  {name.capitalize() + ':':13s} {self._timer.timings.get(name, 0.0) / ticks:6.3f} ms")

        health = self.network.degree_histogram()
        total = max(health['total_devices'], 1)
        print(f"  [Network] degree_mean={health['degree_mean']:.2f} | "
              f"isolated={100.0 * health['isolated'] / total:.1f}% "
              f"sparse={100.0 * health['sparse'] / total:.1f}% "
              f"connected={100.0 * health['connected'] / total:.1f}%")
        self._timer.reset()
