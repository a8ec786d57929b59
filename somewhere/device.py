"""
Device runtime representation.

Devices are spawned by the simulation (or built directly in tests) and
exist in the network. Each device has a unique integer uid, a position,
a random-walk target, and a storage of the latest strategy records.
"""

import numpy as np
from dataclasses import dataclass
from typing import Optional

from .data_types import StrategyRecord
from .rng import random_position_in_rectangle
from .spatial import step_towards, clamp_to_rectangle


@dataclass
class Device:
    """
    Runtime device in the network.

    Attributes:
        uid: Unique identifier (non-negative int, also the election tie-break)
        position: 2D position [x, y] in meters
        target: Random-walk target [x, y] (None = stationary)
        speed: Movement speed (m/s)
        local_trigger: Local trigger value of the latest round
        storage: Latest StrategyRecord per strategy name
        round_count: Number of rounds executed
        last_round_time: Time of the latest round (None before the first)
    """
    uid: int
    position: np.ndarray  # [x, y] float64
    target: Optional[np.ndarray] = None
    speed: float = 0.0
    local_trigger: bool = False
    storage: dict = None  # {strategy_name: StrategyRecord}
    round_count: int = 0
    last_round_time: Optional[float] = None

    def __post_init__(self):
        """Ensure position and target are float64 arrays, initialize defaults"""
        self.position = np.array(self.position, dtype=np.float64)
        if self.target is not None:
            self.target = np.array(self.target, dtype=np.float64)

        if self.storage is None:
            self.storage = {}

    def walk(self, dt: float, low: np.ndarray, high: np.ndarray, rng: np.random.Generator):
        """
        Advance the rectangle random walk by dt seconds.

        When the target is reached, a new uniform target inside [low, high]
        is drawn and the remaining time is not carried over.

        Args:
            dt: Time step in seconds
            low: Lower corner of the deployment area
            high: Upper corner of the deployment area
            rng: Generator used for new targets
        """
        if self.speed <= 0 or dt <= 0:
            return

        if self.target is None:
            self.target = random_position_in_rectangle(rng, low, high)

        self.position, reached = step_towards(self.position, self.target, self.speed, dt)
        self.position = clamp_to_rectangle(self.position, low, high)

        if reached:
            self.target = random_position_in_rectangle(rng, low, high)

    def record(self, name: str) -> Optional[StrategyRecord]:
        """Latest record stored for strategy `name` (None before its first round)"""
        return self.storage.get(name)

    def to_dict(self) -> dict:
        """
        Serialize device to JSON-compatible dict.

        Returns:
            Dict with all device fields
        """
        return {
            'uid': self.uid,
            'position': self.position.tolist(),
            'target': None if self.target is None else self.target.tolist(),
            'speed': self.speed,
            'local_trigger': self.local_trigger,
            'storage': {name: rec.to_dict() for name, rec in self.storage.items()},
            'round_count': self.round_count,
            'last_round_time': self.last_round_time
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'Device':
        """
        Deserialize device from dict.

        Args:
            data: Dict with device fields

        Returns:
            Device instance
        """
        return cls(
            uid=data['uid'],
            position=np.array(data['position'], dtype=np.float64),
            target=data.get('target'),
            speed=data.get('speed', 0.0),
            local_trigger=data.get('local_trigger', False),
            storage={name: StrategyRecord(**rec) for name, rec in data.get('storage', {}).items()},
            round_count=data.get('round_count', 0),
            last_round_time=data.get('last_round_time')
        )
