"""Core boid steering logic using JAX.

Every kernel here works on a single agent against a ``FlockState`` snapshot
of the whole population taken at the start of the frame, so agents updated
later in a frame never see positions written earlier in the same frame.
"""

import jax
import jax.numpy as jnp
from jax import random
from typing import NamedTuple, Tuple

import numpy as np


class FlockState(NamedTuple):
    """Snapshot of every agent's kinematic state."""
    positions: jnp.ndarray  # (N, 2)
    velocities: jnp.ndarray  # (N, 2)

    @classmethod
    def from_agents(cls, agents) -> 'FlockState':
        """Copy the current positions and velocities of ``agents``."""
        if not agents:
            empty = np.zeros((0, 2), dtype=np.float32)
            return cls(positions=empty, velocities=empty)
        return cls(
            positions=np.stack([agent.position for agent in agents]),
            velocities=np.stack([agent.velocity for agent in agents]),
        )


class Bounds(NamedTuple):
    """Plane dimensions, re-read from the surface every frame."""
    width: float
    height: float


class Params(NamedTuple):
    """Values of the tunables at the moment a frame is computed."""
    sight_distance: float
    max_speed: float
    min_wall_distance: float
    wall_avoidance_damping: float
    separation_distance: float
    cohesion_damping: float

    @classmethod
    def read(cls, source) -> 'Params':
        """Read every tunable from a parameter source."""
        return cls(
            sight_distance=float(source.get('sightDistance')),
            max_speed=float(source.get('maxSpeed')),
            min_wall_distance=float(source.get('minWallDistance')),
            wall_avoidance_damping=float(source.get('wallAvoidanceDamping')),
            separation_distance=float(source.get('separationDistance')),
            cohesion_damping=float(source.get('cohesionDamping')),
        )


def initialize_boids(key: random.PRNGKey, num_boids: int, width: float, height: float,
                     max_speed: float) -> FlockState:
    """Initialize boid positions and velocities randomly.

    Args:
        key: JAX random key
        num_boids: Population size
        width: Plane width
        height: Plane height
        max_speed: Velocity cap; each velocity component is drawn from
            [-max_speed/2, max_speed/2]

    Returns:
        Initial flock state
    """
    key_pos, key_vel = random.split(key)

    # Random positions within world bounds
    positions = random.uniform(
        key_pos,
        shape=(num_boids, 2),
        minval=jnp.array([0.0, 0.0]),
        maxval=jnp.array([width, height])
    )

    velocities = random.uniform(
        key_vel,
        shape=(num_boids, 2),
        minval=-max_speed / 2,
        maxval=max_speed / 2
    )

    return FlockState(positions=positions, velocities=velocities)


def distances_to(position: jnp.ndarray, positions: jnp.ndarray) -> jnp.ndarray:
    """Distance from ``position`` (2,) to every row of ``positions`` (N, 2)."""
    return jnp.linalg.norm(positions - position, axis=-1)


def visible_mask(distances: jnp.ndarray, sight_distance: float) -> jnp.ndarray:
    # distance 0 is the agent itself (or a coincident one)
    return (distances > 0) & (distances <= sight_distance)


def limit_magnitude(vectors: jnp.ndarray, max_mag: float) -> jnp.ndarray:
    """Limit the magnitude of vectors.

    Vectors longer than ``max_mag`` are rescaled to exactly ``max_mag``;
    anything else, including the zero vector, is returned unchanged.

    Args:
        vectors: Input vectors (..., 2)
        max_mag: Maximum magnitude

    Returns:
        Limited vectors (..., 2)
    """
    magnitudes = jnp.linalg.norm(vectors, axis=-1, keepdims=True)
    safe = jnp.where(magnitudes > 0, magnitudes, 1.0)
    scale = jnp.where(magnitudes > max_mag, max_mag / safe, 1.0)
    return vectors * scale


def cohesion_force(position: jnp.ndarray, state: FlockState, params: Params,
                   elapsed: float) -> jnp.ndarray:
    """Steer toward the center of mass of visible neighbors.

    Args:
        position: Position of the steering agent (2,)
        state: Population snapshot
        params: Current tunables
        elapsed: Milliseconds since the last frame

    Returns:
        Cohesion force (2,), zero when nothing is visible
    """
    distances = distances_to(position, state.positions)
    visible = visible_mask(distances, params.sight_distance)
    count = jnp.sum(visible)

    center_of_mass = jnp.sum(
        jnp.where(visible[:, None], state.positions, 0.0),
        axis=0
    ) / jnp.maximum(count, 1)

    force = jnp.where(count > 0, center_of_mass - position, 0.0)
    return force * (elapsed / 1000.0 * params.cohesion_damping)


def separation_force(position: jnp.ndarray, state: FlockState, params: Params,
                     elapsed: float, index: int = -1) -> Tuple[jnp.ndarray, jnp.ndarray]:
    """Push away from visible neighbors that are too close.

    Args:
        position: Position of the steering agent (2,)
        state: Population snapshot
        params: Current tunables
        elapsed: Milliseconds since the last frame
        index: Row of the steering agent in ``state``; -1 when it is not
            in the snapshot, in which case rows at distance 0 count as self

    Returns:
        Separation force (2,) and the distance to the closest other agent
        (inf when there is none)
    """
    distances = distances_to(position, state.positions)
    visible = visible_mask(distances, params.sight_distance)
    too_close = visible & (distances <= params.separation_distance)

    offsets = state.positions - position
    force = -jnp.sum(jnp.where(too_close[:, None], offsets, 0.0), axis=0)

    # Nearest neighbor ignores sight and separation gating
    others = jnp.where(index >= 0, jnp.arange(distances.shape[0]) != index, distances > 0)
    closest = jnp.min(jnp.where(others, distances, jnp.inf), initial=jnp.inf)

    return force * (elapsed / 1000.0), closest


def alignment_force(position: jnp.ndarray, state: FlockState, params: Params,
                    elapsed: float) -> jnp.ndarray:
    """Steer toward the average velocity of visible neighbors.

    Args:
        position: Position of the steering agent (2,)
        state: Population snapshot
        params: Current tunables
        elapsed: Milliseconds since the last frame

    Returns:
        Alignment force (2,), zero when nothing is visible
    """
    distances = distances_to(position, state.positions)
    visible = visible_mask(distances, params.sight_distance)
    count = jnp.sum(visible)

    avg_velocity = jnp.sum(
        jnp.where(visible[:, None], state.velocities, 0.0),
        axis=0
    ) / jnp.maximum(count, 1)

    return avg_velocity * (elapsed / 1000.0)


def avoid_walls_force(position: jnp.ndarray, bounds: Bounds, params: Params,
                      elapsed: float) -> jnp.ndarray:
    """Push back toward the interior when within the wall margin.

    Each axis is handled independently; inside
    ``[min_wall_distance, dimension - min_wall_distance]`` it contributes 0.
    """
    margin = params.min_wall_distance
    dims = jnp.stack([jnp.asarray(bounds.width), jnp.asarray(bounds.height)])

    push = jnp.where(
        position < margin,
        margin - position,
        jnp.where(position > dims - margin, dims - margin - position, 0.0)
    )
    return push * (elapsed / 1000.0 * params.wall_avoidance_damping)


def step_agent(position: jnp.ndarray, velocity: jnp.ndarray, state: FlockState,
               bounds: Bounds, params: Params,
               elapsed: float, index: int = -1) -> Tuple[jnp.ndarray, jnp.ndarray, jnp.ndarray]:
    """Advance one agent by one frame.

    The four forces already carry the ``elapsed / 1000`` factor; position
    then moves by the full (capped) velocity without scaling it again.

    Args:
        position: Agent position (2,)
        velocity: Agent velocity (2,)
        state: Population snapshot, including the agent itself
        bounds: Plane dimensions
        params: Current tunables
        elapsed: Milliseconds since the last frame
        index: Row of the agent in ``state`` (-1 if absent)

    Returns:
        New position, new velocity and the closest-neighbor distance
    """
    cohesion = cohesion_force(position, state, params, elapsed)
    separation, closest = separation_force(position, state, params, elapsed, index)
    alignment = alignment_force(position, state, params, elapsed)
    walls = avoid_walls_force(position, bounds, params, elapsed)

    new_velocity = limit_magnitude(
        velocity + cohesion + separation + alignment + walls,
        params.max_speed
    )
    new_position = position + new_velocity

    return new_position, new_velocity, closest


# JIT compile the kernels for performance
cohesion_force_jit = jax.jit(cohesion_force)
separation_force_jit = jax.jit(separation_force)
alignment_force_jit = jax.jit(alignment_force)
avoid_walls_force_jit = jax.jit(avoid_walls_force)
step_agent_jit = jax.jit(step_agent)
