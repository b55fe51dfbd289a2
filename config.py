"""Configuration parameters for the boid simulation."""

import logging
import math

logger = logging.getLogger(__name__)


# Live tunables read by every agent on every update
DEFAULT_PARAMETERS = {
    'sightDistance': 300.0,
    'maxSpeed': 5.0,
    'minWallDistance': 150.0,
    'wallAvoidanceDamping': 0.1,
    'separationDistance': 10.0,
    'cohesionDamping': 0.02,
}


class Parameters:
    """Mutable set of named tunables shared by reference with every agent.

    Agents only ever call ``get``; edits made through ``set`` or ``update``
    are visible on the next read.
    """

    def __init__(self, **overrides):
        self._values = dict(DEFAULT_PARAMETERS)
        self.update(**overrides)

    def get(self, name: str) -> float:
        return self._values[name]

    def set(self, name: str, value: float) -> None:
        """Change one tunable.

        Args:
            name: One of the keys of ``DEFAULT_PARAMETERS``
            value: New finite numeric value

        Raises:
            KeyError: If ``name`` is not a known tunable
            ValueError: If ``value`` is not a finite number
        """
        if name not in self._values:
            raise KeyError(f"Unknown parameter: {name}")
        value = float(value)
        if not math.isfinite(value):
            raise ValueError(f"Parameter {name} must be finite, got {value}")
        logger.debug("parameter %s: %s -> %s", name, self._values[name], value)
        self._values[name] = value

    def update(self, **values) -> None:
        for name, value in values.items():
            self.set(name, value)

    def as_dict(self) -> dict:
        return dict(self._values)

    def __repr__(self):
        return f"Parameters({self._values!r})"


class SimulationConfig:
    """Configuration for the simulation run (not live-tunable)."""

    # Simulation parameters
    num_boids: int = 200
    seed: int = 42

    # Plane size used when no window dictates it
    world_width: float = 800.0
    world_height: float = 600.0

    # Frame cadence
    fps: int = 60
    frame_interval_ms: float = 1000.0 / 60  # ~16.66 ms

    # Visualization
    agent_size: float = 3.0  # side of the square drawn per agent
    closest_distance_scale: float = 10.0  # distance mapped to the full hue range


# Default configuration
default_config = SimulationConfig()
