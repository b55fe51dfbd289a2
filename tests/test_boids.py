"""Tests for the steering kernels in boids.py."""

import numpy as np
import pytest
from jax import random

from boids import (
    Bounds,
    FlockState,
    Params,
    alignment_force,
    avoid_walls_force,
    cohesion_force,
    initialize_boids,
    limit_magnitude,
    separation_force,
    step_agent_jit,
)
from config import Parameters

ELAPSED = 16.0
BOUNDS = Bounds(800.0, 600.0)


def make_state(positions, velocities=None):
    positions = np.asarray(positions, dtype=np.float32).reshape(-1, 2)
    if velocities is None:
        velocities = np.zeros_like(positions)
    velocities = np.asarray(velocities, dtype=np.float32).reshape(-1, 2)
    return FlockState(positions=positions, velocities=velocities)


@pytest.fixture
def params():
    return Params.read(Parameters())


class TestLimitMagnitude:
    """Tests for limit_magnitude."""

    def test_zero_vector_unchanged(self):
        """The zero vector stays zero without NaN."""
        result = np.asarray(limit_magnitude(np.zeros(2, dtype=np.float32), 5.0))
        assert np.all(np.isfinite(result))
        assert np.allclose(result, 0.0)

    def test_short_vector_unchanged(self):
        """Vectors under the cap are returned as-is."""
        v = np.array([1.0, 2.0], dtype=np.float32)
        assert np.array_equal(np.asarray(limit_magnitude(v, 5.0)), v)

    def test_long_vector_rescaled(self):
        """Vectors over the cap keep direction and get the cap's length."""
        v = np.array([30.0, 40.0], dtype=np.float32)
        result = np.asarray(limit_magnitude(v, 5.0))
        assert np.linalg.norm(result) == pytest.approx(5.0, rel=1e-5)
        assert np.allclose(result, [3.0, 4.0], atol=1e-5)

    def test_batched(self):
        """Works row-wise on (N, 2) arrays."""
        v = np.array([[30.0, 40.0], [0.0, 1.0], [0.0, 0.0]], dtype=np.float32)
        result = np.asarray(limit_magnitude(v, 5.0))
        assert np.allclose(result, [[3.0, 4.0], [0.0, 1.0], [0.0, 0.0]], atol=1e-5)


class TestCohesion:
    """Tests for cohesion_force."""

    def test_zero_without_neighbors(self, params):
        """Alone in the flock: zero force."""
        state = make_state([[100.0, 100.0]])
        force = np.asarray(cohesion_force(state.positions[0], state, params, ELAPSED))
        assert np.allclose(force, 0.0)

    def test_zero_when_neighbors_out_of_sight(self, params):
        """Neighbors beyond sightDistance are ignored."""
        state = make_state([[0.0, 0.0], [400.0, 0.0]])
        force = np.asarray(cohesion_force(state.positions[0], state, params, ELAPSED))
        assert np.allclose(force, 0.0)

    def test_zero_for_coincident_neighbor(self, params):
        """A neighbor at distance 0 is not visible."""
        state = make_state([[10.0, 10.0], [10.0, 10.0]])
        force = np.asarray(cohesion_force(state.positions[0], state, params, ELAPSED))
        assert np.allclose(force, 0.0)

    def test_pulls_toward_center(self, params):
        """Force is (center - position) * elapsed/1000 * cohesionDamping."""
        state = make_state([[0.0, 0.0], [100.0, 0.0], [100.0, 100.0]])
        force = np.asarray(cohesion_force(state.positions[0], state, params, ELAPSED))
        expected = np.array([100.0, 50.0]) * (ELAPSED / 1000.0 * 0.02)
        assert np.allclose(force, expected, atol=1e-6)

    def test_sight_distance_is_inclusive(self, params):
        """A neighbor exactly at sightDistance is visible."""
        state = make_state([[0.0, 0.0], [300.0, 0.0]])
        force = np.asarray(cohesion_force(state.positions[0], state, params, ELAPSED))
        assert force[0] > 0


class TestSeparation:
    """Tests for separation_force."""

    def test_two_close_agents_push_apart(self, params):
        """Agents at (0,0) and (5,0) are pushed in opposite x directions."""
        state = make_state([[0.0, 0.0], [5.0, 0.0]])

        left, closest_left = separation_force(state.positions[0], state, params, ELAPSED)
        right, closest_right = separation_force(state.positions[1], state, params, ELAPSED)

        assert float(left[0]) < 0
        assert float(right[0]) > 0
        assert np.allclose(np.asarray(left), [-5.0 * ELAPSED / 1000.0, 0.0], atol=1e-6)
        assert float(closest_left) == pytest.approx(5.0)
        assert float(closest_right) == pytest.approx(5.0)

    def test_zero_when_nobody_too_close(self, params):
        """Visible neighbors farther than separationDistance do not repel."""
        state = make_state([[0.0, 0.0], [50.0, 0.0]])
        force, closest = separation_force(state.positions[0], state, params, ELAPSED)
        assert np.allclose(np.asarray(force), 0.0)
        assert float(closest) == pytest.approx(50.0)

    def test_closest_ignores_sight(self, params):
        """The closest distance is tracked even beyond sightDistance."""
        state = make_state([[0.0, 0.0], [500.0, 0.0], [0.0, 450.0]])
        force, closest = separation_force(state.positions[0], state, params, ELAPSED)
        assert np.allclose(np.asarray(force), 0.0)
        assert float(closest) == pytest.approx(450.0)

    def test_closest_is_inf_when_alone(self, params):
        """With no other agent the closest distance is infinite."""
        state = make_state([[0.0, 0.0]])
        _, closest = separation_force(state.positions[0], state, params, ELAPSED)
        assert np.isinf(float(closest))

    def test_no_separation_damping(self, params):
        """Separation is scaled by elapsed/1000 only."""
        state = make_state([[0.0, 0.0], [0.0, 4.0], [3.0, 0.0]])
        force, _ = separation_force(state.positions[0], state, params, 1000.0)
        assert np.allclose(np.asarray(force), [-3.0, -4.0], atol=1e-5)


class TestAlignment:
    """Tests for alignment_force."""

    def test_zero_without_visible_neighbors(self, params):
        """No visible neighbor: zero force."""
        state = make_state([[0.0, 0.0], [1000.0, 0.0]], [[1.0, 1.0], [3.0, 3.0]])
        force = np.asarray(alignment_force(state.positions[0], state, params, ELAPSED))
        assert np.allclose(force, 0.0)

    def test_average_neighbor_velocity(self, params):
        """Mean velocity of visible neighbors, own velocity excluded."""
        state = make_state(
            [[0.0, 0.0], [10.0, 0.0], [0.0, 20.0]],
            [[9.0, 9.0], [2.0, 0.0], [0.0, 4.0]],
        )
        force = np.asarray(alignment_force(state.positions[0], state, params, 1000.0))
        assert np.allclose(force, [1.0, 2.0], atol=1e-6)


class TestAvoidWalls:
    """Tests for avoid_walls_force."""

    def test_near_top_left_corner(self, params):
        """(10,10) in 800x600 is pushed toward the interior on both axes."""
        position = np.array([10.0, 10.0], dtype=np.float32)
        force = np.asarray(avoid_walls_force(position, BOUNDS, params, ELAPSED))
        assert force[0] > 0 and force[1] > 0
        assert np.allclose(force, [140.0 * 0.0016, 140.0 * 0.0016], atol=1e-6)

    def test_near_bottom_right_corner(self, params):
        """Past the far margin the push is negative."""
        position = np.array([790.0, 590.0], dtype=np.float32)
        force = np.asarray(avoid_walls_force(position, BOUNDS, params, ELAPSED))
        assert force[0] < 0 and force[1] < 0
        assert np.allclose(force, [-140.0 * 0.0016, -140.0 * 0.0016], atol=1e-6)

    def test_zero_inside_margin(self, params):
        """Strictly inside the margins both axes are zero."""
        position = np.array([400.0, 300.0], dtype=np.float32)
        force = np.asarray(avoid_walls_force(position, BOUNDS, params, ELAPSED))
        assert np.array_equal(force, [0.0, 0.0])

    def test_axes_independent(self, params):
        """Only the axis inside the margin is pushed."""
        position = np.array([400.0, 20.0], dtype=np.float32)
        force = np.asarray(avoid_walls_force(position, BOUNDS, params, ELAPSED))
        assert force[0] == 0.0
        assert force[1] > 0


class TestStepAgent:
    """Tests for step_agent."""

    def test_speed_capped(self, params):
        """Velocity never leaves step_agent faster than maxSpeed."""
        state = make_state([[10.0, 10.0], [12.0, 10.0]], [[50.0, 0.0], [0.0, 0.0]])
        _, velocity, _ = step_agent_jit(
            state.positions[0], state.velocities[0], state, BOUNDS, params, ELAPSED)
        assert np.linalg.norm(np.asarray(velocity)) <= params.max_speed + 1e-4

    def test_position_moves_by_full_velocity(self, params):
        """Position advances by the new velocity, not scaled by elapsed."""
        state = make_state([[400.0, 300.0]], [[1.0, -2.0]])
        position, velocity, _ = step_agent_jit(
            state.positions[0], state.velocities[0], state, BOUNDS, params, ELAPSED)
        assert np.allclose(np.asarray(velocity), [1.0, -2.0])
        assert np.allclose(np.asarray(position), [401.0, 298.0])


class TestInitializeBoids:
    """Tests for initialize_boids."""

    def test_shapes_and_ranges(self):
        """Positions cover the plane, velocities lie within +-maxSpeed/2."""
        state = initialize_boids(random.PRNGKey(0), 500, 800.0, 600.0, 5.0)
        positions = np.asarray(state.positions)
        velocities = np.asarray(state.velocities)

        assert positions.shape == (500, 2)
        assert velocities.shape == (500, 2)
        assert positions[:, 0].min() >= 0 and positions[:, 0].max() <= 800
        assert positions[:, 1].min() >= 0 and positions[:, 1].max() <= 600
        assert np.abs(velocities).max() <= 2.5

    def test_deterministic_for_seed(self):
        """Same key, same flock."""
        a = initialize_boids(random.PRNGKey(7), 10, 800.0, 600.0, 5.0)
        b = initialize_boids(random.PRNGKey(7), 10, 800.0, 600.0, 5.0)
        assert np.array_equal(np.asarray(a.positions), np.asarray(b.positions))
        assert np.array_equal(np.asarray(a.velocities), np.asarray(b.velocities))

    def test_empty_population(self):
        """Zero agents is a valid population."""
        state = initialize_boids(random.PRNGKey(0), 0, 800.0, 600.0, 5.0)
        assert np.asarray(state.positions).shape == (0, 2)


class TestSeparationIndex:
    """Tests for excluding the steering agent by row index."""

    def test_coincident_row_is_nearest(self, params):
        """A different row at the same position gives distance 0."""
        state = make_state([[100.0, 100.0], [100.0, 100.0], [108.0, 100.0]])
        force, closest = separation_force(state.positions[0], state, params, ELAPSED, 0)
        assert float(closest) == 0.0
        # a coincident agent is not visible, so it does not repel
        assert np.allclose(np.asarray(force), [-8.0 * ELAPSED / 1000.0, 0.0], atol=1e-6)

    def test_own_row_excluded(self, params):
        """The agent's own row never counts as its nearest neighbor."""
        state = make_state([[0.0, 0.0], [30.0, 40.0]])
        _, closest = separation_force(state.positions[1], state, params, ELAPSED, 1)
        assert float(closest) == pytest.approx(50.0)
