"""Population manager: owns the agents and drives the frame loop."""

import logging
import math
import time
from typing import Callable, List, NamedTuple, Tuple

import numpy as np
from jax import random

from agent import Agent
from boids import Bounds, FlockState, initialize_boids
from config import default_config

logger = logging.getLogger(__name__)


def monotonic_ms() -> float:
    """Default clock, in milliseconds."""
    return time.perf_counter() * 1000.0


class FlockStats(NamedTuple):
    """Summary of the population after the last executed frame."""
    frames: int
    mean_speed: float
    max_speed: float
    mean_closest_distance: float  # nan until an agent has been updated
    centroid: Tuple[float, float]


class Flock:
    """Fixed-size population of agents drawn to a render surface.

    The loop is driven from outside: a scheduler calls ``tick`` and the
    flock asks it for the next frame after every tick, executed or not.
    Ticks arriving sooner than ``frame_interval_ms`` after the last executed
    frame are skipped.
    """

    def __init__(self, surface, population_size: int, parameters,
                 seed: int = default_config.seed,
                 clock: Callable[[], float] = monotonic_ms,
                 scheduler=None,
                 frame_interval_ms: float = default_config.frame_interval_ms):
        if population_size < 0:
            raise ValueError(f"population_size must be >= 0, got {population_size}")

        self.surface = surface
        self.population_size = population_size
        self.parameters = parameters
        self.seed = seed
        self.scheduler = scheduler
        self.frame_interval_ms = frame_interval_ms

        self._clock = clock
        self._running = False
        self.last_tick_at = clock()
        self.frame_count = 0

        self.agents: List[Agent] = []
        self.initialize()

    def initialize(self) -> None:
        """(Re)create the population over the surface's current dimensions."""
        state = initialize_boids(
            random.PRNGKey(self.seed),
            self.population_size,
            self.surface.width,
            self.surface.height,
            self.parameters.get('maxSpeed'),
        )
        positions = np.asarray(state.positions)
        velocities = np.asarray(state.velocities)
        self.agents = [
            Agent(position, velocity, self.parameters)
            for position, velocity in zip(positions, velocities)
        ]
        logger.debug("initialized %d agents on %sx%s plane",
                     len(self.agents), self.surface.width, self.surface.height)

    def start(self) -> None:
        """Ask the scheduler for the first frame; ticks keep re-registering."""
        if self.scheduler is None:
            raise RuntimeError("Flock.start() needs a scheduler")
        self._running = True
        self.last_tick_at = self._clock()
        self.scheduler.request_frame(self.tick)

    def stop(self) -> None:
        self._running = False

    @property
    def running(self) -> bool:
        return self._running

    def tick(self) -> bool:
        """Run one frame if enough time has passed.

        Returns:
            True if the frame was executed, False if it was throttled
        """
        now = self._clock()
        elapsed = now - self.last_tick_at

        executed = elapsed >= self.frame_interval_ms
        if executed:
            self.last_tick_at = now
            self.step(elapsed)
        else:
            logger.debug("frame skipped after %.2f ms", elapsed)

        if self._running and self.scheduler is not None:
            self.scheduler.request_frame(self.tick)
        return executed

    def step(self, elapsed: float) -> None:
        """Clear, then update and render every agent against one snapshot.

        Args:
            elapsed: Milliseconds since the last executed frame
        """
        surface = self.surface
        surface.clear()

        bounds = Bounds(surface.width, surface.height)
        snapshot = FlockState.from_agents(self.agents)

        for index, agent in enumerate(self.agents):
            agent.update(snapshot, bounds, elapsed, index=index)
            agent.render(surface)

        self.frame_count += 1

    def stats(self) -> FlockStats:
        if not self.agents:
            return FlockStats(self.frame_count, 0.0, 0.0, math.nan, (math.nan, math.nan))

        state = FlockState.from_agents(self.agents)
        speeds = np.linalg.norm(state.velocities, axis=1)
        closest = [a.closest_distance for a in self.agents
                   if a.closest_distance is not None and math.isfinite(a.closest_distance)]
        centroid = np.mean(state.positions, axis=0)

        return FlockStats(
            frames=self.frame_count,
            mean_speed=float(np.mean(speeds)),
            max_speed=float(np.max(speeds)),
            mean_closest_distance=float(np.mean(closest)) if closest else math.nan,
            centroid=(float(centroid[0]), float(centroid[1])),
        )

    def __len__(self):
        return len(self.agents)
