"""
Data types mirroring YAML scenario structures and per-round records.

These dataclasses are populated by loader.py from YAML files, or built
directly by the batch runner and tests.
"""

import math
from dataclasses import dataclass, asdict
from typing import Any, Dict, Optional

from .constants import (
    COMM_RADIUS,
    TRUE_TIME,
    FALSE_TIME,
    END_TIME,
    ORIGIN_UID,
    RETAIN_TIME,
    INFO_SPEED,
    REPLICAS,
    DEFAULT_HOPS,
    DEFAULT_DENS,
    DEFAULT_SPEED,
    DEFAULT_TVAR,
    DEFAULT_SEED,
)
from .exceptions import ConfigurationError


# ============================================================================
# Strategy Parameters
# ============================================================================

@dataclass(frozen=True)
class StrategyParams:
    """
    Parameters shared by the somewhere strategies.

    Attributes:
        diameter: Upper bound on the network diameter (hops)
        info_speed: Information propagation speed (hops per second)
        replicas: Number of concurrently alive replicas (>= 2)
    """
    diameter: float = DEFAULT_HOPS
    info_speed: float = INFO_SPEED
    replicas: int = REPLICAS

    def __post_init__(self):
        """Reject parameters that make the strategies ill-defined"""
        if not self.diameter > 0:
            raise ConfigurationError(f"diameter must be positive, got {self.diameter}")
        if not self.info_speed > 0:
            raise ConfigurationError(f"info_speed must be positive, got {self.info_speed}")
        if int(self.replicas) != self.replicas or self.replicas < 2:
            raise ConfigurationError(f"replicas must be an integer >= 2, got {self.replicas}")

    @property
    def window(self) -> float:
        """Staleness window diameter / info_speed (seconds)"""
        return self.diameter / self.info_speed

    @property
    def replica_interval(self) -> float:
        """Time between two replica generations"""
        return self.diameter / self.info_speed / (self.replicas - 1)


# ============================================================================
# Scenario Definition
# ============================================================================

def side_formula(hops: float, comm: float = COMM_RADIUS) -> int:
    """Side of the deployment square giving roughly `hops` hops of diameter"""
    return int(hops * comm / math.sqrt(2.0) + 0.5)


def device_formula(dens: float, side: float, comm: float = COMM_RADIUS) -> int:
    """Number of devices giving roughly `dens` neighbours per device"""
    return int(dens * side * side / (math.pi * comm * comm) + 0.5)


@dataclass
class ScenarioConfig:
    """
    Complete description of a single simulation run.

    Attributes:
        hops: Target network diameter in hops (also the strategies' diameter)
        dens: Target average neighbourhood size
        speed: Device movement speed (m/s)
        tvar: Round timing variance (percent of the round period)
        seed: Random seed for placement, movement and round schedule
        side: Side of the deployment square (None = derived from hops)
        devices: Number of devices (None = derived from dens and side)
        comm_radius: Communication radius (meters)
        true_time: Time the event window opens
        false_time: Time the event window closes
        end_time: Final simulation time
        info_speed: Strategy information speed
        replicas: Strategy replica count
        retain: Message retention time (seconds)
        origin: Device id whose trigger follows the event window
        synchronised: If True, all devices run rounds at integer times
        name: Optional scenario name (used in output file names)
    """
    hops: float = DEFAULT_HOPS
    dens: float = DEFAULT_DENS
    speed: float = DEFAULT_SPEED
    tvar: float = DEFAULT_TVAR
    seed: int = DEFAULT_SEED
    side: Optional[float] = None
    devices: Optional[int] = None
    comm_radius: float = COMM_RADIUS
    true_time: float = TRUE_TIME
    false_time: float = FALSE_TIME
    end_time: float = END_TIME
    info_speed: float = INFO_SPEED
    replicas: int = REPLICAS
    retain: float = RETAIN_TIME
    origin: int = ORIGIN_UID
    synchronised: bool = False
    name: Optional[str] = None

    def __post_init__(self):
        """Derive side/devices and validate ranges"""
        if self.side is None:
            self.side = side_formula(self.hops, self.comm_radius)
        if self.devices is None:
            self.devices = device_formula(self.dens, self.side, self.comm_radius)
        self.validate()

    def validate(self):
        """Raise ConfigurationError for values no simulation can run with"""
        if self.hops <= 0:
            raise ConfigurationError(f"hops must be positive, got {self.hops}")
        if self.speed < 0 or self.tvar < 0 or self.dens < 0:
            raise ConfigurationError("speed, tvar and dens must be non-negative")
        if self.comm_radius <= 0:
            raise ConfigurationError(f"comm_radius must be positive, got {self.comm_radius}")
        if self.devices < 1:
            raise ConfigurationError(f"scenario needs at least one device, got {self.devices}")
        if not (0 <= self.origin < self.devices):
            raise ConfigurationError(f"origin {self.origin} is not one of the {self.devices} devices")
        if self.side < 0:
            raise ConfigurationError(f"side must be non-negative, got {self.side}")
        if not (0 <= self.true_time <= self.false_time <= self.end_time):
            raise ConfigurationError(
                f"expected 0 <= true_time <= false_time <= end_time, got "
                f"{self.true_time}, {self.false_time}, {self.end_time}")
        if self.retain <= 0:
            raise ConfigurationError(f"retain must be positive, got {self.retain}")
        # Fails early on bad strategy parameters
        self.strategy_params()

    def strategy_params(self) -> StrategyParams:
        """Strategy parameters implied by this scenario"""
        return StrategyParams(diameter=self.hops, info_speed=self.info_speed, replicas=self.replicas)

    def trigger_global(self, time: float) -> bool:
        """Ground truth of the somewhere formula at `time`"""
        return self.true_time < time < self.false_time

    def label(self) -> str:
        """Compact parameter label used in output file names"""
        if self.name:
            return self.name
        return (f"seed-{self.seed}_speed-{self.speed:g}_dens-{self.dens:g}"
                f"_hops-{self.hops:g}_tvar-{self.tvar:g}")

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to a YAML/JSON-compatible dict"""
        return asdict(self)


# ============================================================================
# Per-round Records
# ============================================================================

@dataclass(frozen=True)
class StrategyRecord:
    """
    Outcome of one strategy on one device in one round.

    Attributes:
        value: The strategy's belief about "somewhere"
        error: True when value differs from the oracle's
        msg_size: Bytes the strategy added to the device's outgoing message
    """
    value: bool
    error: bool
    msg_size: int

    def to_dict(self) -> Dict[str, Any]:
        return {'value': bool(self.value), 'error': bool(self.error), 'msg_size': int(self.msg_size)}


# ============================================================================
# Batch Plans
# ============================================================================

@dataclass(frozen=True)
class SweepRange:
    """
    Arithmetic range of one scenario parameter.

    Attributes:
        start: First value
        stop: Last value (inclusive)
        step: Increment (> 0)
        default: Value used while another parameter is swept (None = not swept alone)
    """
    start: float
    stop: float
    step: float = 1
    default: Optional[float] = None


@dataclass
class BatchPlan:
    """Seeds and one-at-a-time sweeps making up a batch of scenarios"""
    seeds: SweepRange
    sweeps: Dict[str, SweepRange]
