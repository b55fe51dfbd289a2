"""A single boid: kinematic state, steering and drawing."""

from typing import Optional

import numpy as np

from boids import (
    Bounds,
    FlockState,
    Params,
    alignment_force_jit,
    avoid_walls_force_jit,
    cohesion_force_jit,
    separation_force_jit,
    step_agent_jit,
)
from config import default_config


def _as_state(neighbors) -> FlockState:
    if isinstance(neighbors, FlockState):
        return neighbors
    return FlockState.from_agents(list(neighbors))


def _as_vector(value) -> np.ndarray:
    return np.asarray(value, dtype=np.float32).reshape(2)


class Agent:
    """One boid.

    ``parameters`` is shared with every other agent and only read. Each
    steering computation reads it again, so edits apply on the next frame.

    ``closest_distance`` is the distance to the nearest other agent seen by
    the last separation computation. It only drives the render color and is
    ``None`` until the agent has been updated once.
    """

    def __init__(self, position, velocity, parameters, size: float = default_config.agent_size):
        self.position = _as_vector(position)
        self.velocity = _as_vector(velocity)
        self.parameters = parameters
        self.size = size
        self.closest_distance: Optional[float] = None

    def distance_to(self, other: 'Agent') -> float:
        return float(np.linalg.norm(other.position - self.position))

    def can_see(self, other: 'Agent') -> bool:
        distance = self.distance_to(other)
        return 0 < distance <= self.parameters.get('sightDistance')

    def is_too_close(self, other: 'Agent') -> bool:
        return self.distance_to(other) <= self.parameters.get('separationDistance')

    def _self_index(self, neighbors, index):
        if index is not None:
            return index
        if isinstance(neighbors, FlockState):
            return -1
        return next((i for i, agent in enumerate(neighbors) if agent is self), -1)

    def update(self, neighbors, bounds, elapsed: float, index: Optional[int] = None) -> None:
        """Steer, cap speed and move by one frame.

        Args:
            neighbors: ``FlockState`` snapshot of the whole population
                (this agent included) or a sequence of agents
            bounds: ``Bounds`` or ``(width, height)`` of the plane
            elapsed: Milliseconds since the last executed frame
            index: Row of this agent in ``neighbors``; looked up by identity
                when ``neighbors`` is a sequence of agents
        """
        if not isinstance(neighbors, FlockState):
            neighbors = list(neighbors)
        position, velocity, closest = step_agent_jit(
            self.position,
            self.velocity,
            _as_state(neighbors),
            Bounds(*bounds),
            Params.read(self.parameters),
            float(elapsed),
            self._self_index(neighbors, index),
        )
        self.position = np.asarray(position)
        self.velocity = np.asarray(velocity)
        self.closest_distance = float(closest)

    def calculate_cohesion_force(self, neighbors, elapsed: float) -> np.ndarray:
        return np.asarray(cohesion_force_jit(
            self.position, _as_state(neighbors), Params.read(self.parameters), float(elapsed)))

    def calculate_separation_force(self, neighbors, elapsed: float,
                                   index: Optional[int] = None) -> np.ndarray:
        """Separation force; also refreshes ``closest_distance``."""
        if not isinstance(neighbors, FlockState):
            neighbors = list(neighbors)
        force, closest = separation_force_jit(
            self.position, _as_state(neighbors), Params.read(self.parameters), float(elapsed),
            self._self_index(neighbors, index))
        self.closest_distance = float(closest)
        return np.asarray(force)

    def calculate_alignment_force(self, neighbors, elapsed: float) -> np.ndarray:
        return np.asarray(alignment_force_jit(
            self.position, _as_state(neighbors), Params.read(self.parameters), float(elapsed)))

    def calculate_avoid_walls_force(self, bounds, elapsed: float) -> np.ndarray:
        return np.asarray(avoid_walls_force_jit(
            self.position, Bounds(*bounds), Params.read(self.parameters), float(elapsed)))

    def color(self):
        """HSL color derived from the distance to the closest neighbor.

        The hue sweeps the full circle as the nearest neighbor moves from 0
        to 10 units away; not-yet-updated agents use hue 360.
        """
        if self.closest_distance is None:
            normalized = 1.0
        else:
            normalized = 1.0 - min(1.0, self.closest_distance / default_config.closest_distance_scale)
        return (360.0 * normalized, 100.0, 50.0)

    def render(self, surface) -> None:
        x, y = self.position
        surface.fill_rect(float(x), float(y), self.size, self.size, self.color())

    def __repr__(self):
        return f"Agent(position={self.position.tolist()}, velocity={self.velocity.tolist()})"
