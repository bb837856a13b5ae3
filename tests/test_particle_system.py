"""
Tests for the physics kernels and ParticleSystem.

Covers:
- distance_jit
- compute_forces_jit (pair symmetry, saturation, kinetic energy, coincident particles)
- velocity_verlet_jit
- ParticleState layout and initialization
- ParticleSystem stale-force guard
"""

import logging
import math

import numpy as np
import pytest

from constants import HALF_PI, LOGGER_NAME
from lcg import SeedError
from parameters import SimulationParameters
from particle import ParticleState
from particle_system import (
    EnergyReport,
    ParticleSystem,
    compute_forces_jit,
    distance_jit,
    velocity_verlet_jit,
)


def evaluate(positions, velocities=None, mass=1.0):
    positions = np.ascontiguousarray(positions, dtype=np.float64)
    if velocities is None:
        velocities = np.zeros_like(positions)
    velocities = np.ascontiguousarray(velocities, dtype=np.float64)
    forces = np.empty_like(positions)
    pe, ke = compute_forces_jit(positions, velocities, mass, forces)
    return pe, ke, forces


# =============================================================================
# Distance primitive
# =============================================================================

class TestDistance:
    def test_self_distance_is_zero(self):
        r = np.array([1.5, -2.0, 3.25])
        dr = np.empty(3)
        assert distance_jit(r, r, dr) == 0.0
        np.testing.assert_array_equal(dr, np.zeros(3))

    def test_displacement_and_norm(self):
        dr = np.empty(2)
        d = distance_jit(np.array([4.0, 6.0]), np.array([1.0, 2.0]), dr)
        assert d == pytest.approx(5.0)
        np.testing.assert_allclose(dr, [3.0, 4.0])

    def test_symmetry(self):
        rng = np.random.default_rng(7)
        r1, r2 = rng.random(4), rng.random(4)
        dr12, dr21 = np.empty(4), np.empty(4)
        assert distance_jit(r1, r2, dr12) == pytest.approx(distance_jit(r2, r1, dr21))
        np.testing.assert_allclose(dr12, -dr21)

    def test_triangle_inequality(self):
        rng = np.random.default_rng(11)
        dr = np.empty(3)
        for _ in range(20):
            a, b, c = rng.uniform(-5, 5, size=(3, 3))
            assert distance_jit(a, c, dr) <= distance_jit(a, b, dr) + distance_jit(b, c, dr) + 1e-12

    def test_one_dimension(self):
        dr = np.empty(1)
        assert distance_jit(np.array([2.0]), np.array([-1.0]), dr) == pytest.approx(3.0)
        assert dr[0] == pytest.approx(3.0)


# =============================================================================
# Force and energy evaluation
# =============================================================================

class TestComputeForces:
    @pytest.mark.parametrize("d", [0.3, 1.0, HALF_PI, 2.5, 7.0])
    def test_pair_energy_and_opposite_forces(self, d):
        pe, ke, forces = evaluate([[0.0], [d]])

        d2 = min(d, HALF_PI)
        assert pe == pytest.approx(math.sin(d2) ** 2)
        assert ke == 0.0
        assert forces[0, 0] == pytest.approx(-forces[1, 0], abs=1e-15)
        assert forces[0, 0] == pytest.approx(math.sin(2.0 * d2), abs=1e-15)

    def test_energy_saturates_beyond_half_pi(self):
        # Beyond PI/2 the energy saturates at 1 per pair.
        pe_near, _, _ = evaluate([[0.0, 0.0], [2.0, 0.0]])
        pe_far, _, _ = evaluate([[0.0, 0.0], [9.0, 0.0]])
        assert pe_near == pytest.approx(1.0)
        assert pe_far == pytest.approx(1.0)

    def test_force_direction_in_plane(self):
        d = 0.5
        pe, _, forces = evaluate([[0.0, 0.0], [0.6 * d, 0.8 * d]])
        # Attractive inside the well: particle 0 is pulled toward particle 1.
        magnitude = math.sin(2.0 * d)
        np.testing.assert_allclose(forces[0], [0.6 * magnitude, 0.8 * magnitude])
        np.testing.assert_allclose(forces[1], -forces[0])
        assert pe == pytest.approx(math.sin(d) ** 2)

    def test_net_force_vanishes(self):
        rng = np.random.default_rng(3)
        _, _, forces = evaluate(rng.uniform(0.0, 2.0, size=(12, 3)))
        np.testing.assert_allclose(forces.sum(axis=0), np.zeros(3), atol=1e-12)

    def test_potential_counts_each_pair_once(self):
        rng = np.random.default_rng(5)
        positions = rng.uniform(0.0, 3.0, size=(6, 2))
        pe, _, _ = evaluate(positions)

        expected = 0.0
        for k in range(6):
            for j in range(k + 1, 6):
                d = np.linalg.norm(positions[k] - positions[j])
                expected += math.sin(min(d, HALF_PI)) ** 2
        assert pe == pytest.approx(expected)

    def test_kinetic_energy(self):
        velocities = np.array([[1.0, 2.0, 0.0], [0.5, -0.5, 3.0]])
        positions = np.array([[0.0, 0.0, 0.0], [1.0, 1.0, 1.0]])
        _, ke, _ = evaluate(positions, velocities, mass=2.5)
        assert ke == pytest.approx(0.5 * 2.5 * np.sum(velocities ** 2))

    def test_forces_overwritten(self):
        positions = np.array([[0.0], [1.0]])
        velocities = np.zeros_like(positions)
        forces = np.full_like(positions, 123.0)
        compute_forces_jit(positions, velocities, 1.0, forces)
        first = forces.copy()
        compute_forces_jit(positions, velocities, 1.0, forces)
        np.testing.assert_array_equal(forces, first)

    def test_inputs_not_mutated(self):
        positions = np.array([[0.0, 1.0], [2.0, 0.5], [1.0, 1.0]])
        velocities = np.array([[0.1, 0.2], [0.0, 0.0], [-0.3, 0.4]])
        p0, v0 = positions.copy(), velocities.copy()
        evaluate(positions, velocities)
        np.testing.assert_array_equal(positions, p0)
        np.testing.assert_array_equal(velocities, v0)

    def test_single_particle(self):
        pe, ke, forces = evaluate([[3.0, 4.0, 5.0]])
        assert pe == 0.0
        assert ke == 0.0
        np.testing.assert_array_equal(forces, np.zeros((1, 3)))

    def test_coincident_particles_give_nan(self):
        pe, _, forces = evaluate([[1.0, 1.0], [1.0, 1.0]])
        assert pe == 0.0
        assert np.all(np.isnan(forces))


# =============================================================================
# Integrator
# =============================================================================

class TestVelocityVerlet:
    def test_step_from_rest(self):
        mass, dt = 2.0, 0.01
        positions = np.array([[1.0, 2.0], [3.0, 4.0]])
        velocities = np.zeros((2, 2))
        accelerations = np.zeros((2, 2))
        forces = np.array([[0.5, -1.0], [-0.5, 1.0]])
        p0 = positions.copy()

        velocity_verlet_jit(positions, velocities, forces, accelerations, mass, dt)

        # Positions move with the old velocity and acceleration, both zero here.
        np.testing.assert_array_equal(positions, p0)
        np.testing.assert_allclose(velocities, 0.5 * dt * (forces / mass), rtol=1e-15)
        np.testing.assert_allclose(accelerations, forces / mass, rtol=1e-15)

        # A second step under the same force picks up the new velocity and acceleration.
        velocity_verlet_jit(positions, velocities, forces, accelerations, mass, dt)
        np.testing.assert_allclose(positions, p0 + (forces / mass) * dt * dt, rtol=1e-12)
        np.testing.assert_allclose(velocities, 1.5 * dt * (forces / mass), rtol=1e-12)

    def test_uses_pre_update_values(self):
        mass, dt = 1.0, 0.1
        positions = np.array([[0.0]])
        velocities = np.array([[2.0]])
        accelerations = np.array([[1.0]])
        forces = np.array([[3.0]])

        velocity_verlet_jit(positions, velocities, forces, accelerations, mass, dt)

        assert positions[0, 0] == pytest.approx(0.0 + 2.0 * dt + 0.5 * 1.0 * dt * dt)
        assert velocities[0, 0] == pytest.approx(2.0 + 0.5 * dt * (3.0 + 1.0))
        assert accelerations[0, 0] == pytest.approx(3.0)

    def test_forces_untouched(self):
        forces = np.array([[1.0, 2.0]])
        velocity_verlet_jit(np.zeros((1, 2)), np.zeros((1, 2)), forces, np.zeros((1, 2)), 1.0, 0.1)
        np.testing.assert_array_equal(forces, [[1.0, 2.0]])


# =============================================================================
# State and system
# =============================================================================

class TestParticleState:
    def test_layout(self):
        state = ParticleState(5, 3)
        for buf in (state.positions, state.velocities, state.accelerations, state.forces):
            assert buf.shape == (5, 3)
            assert buf.dtype == np.float64
            assert buf.flags['C_CONTIGUOUS']
        assert state.stride == 3
        assert not np.shares_memory(state.forces, state.positions)

    @pytest.mark.parametrize("n, d", [(0, 3), (3, 0)])
    def test_invalid_shape(self, n, d):
        with pytest.raises(ValueError):
            ParticleState(n, d)

    def test_initialize(self):
        state = ParticleState(4, 3)
        state.velocities.fill(1.0)
        state.accelerations.fill(1.0)
        seed = state.initialize(123456789)

        assert seed != 123456789
        assert np.all(state.positions >= 0.0) and np.all(state.positions < 10.0)
        np.testing.assert_array_equal(state.velocities, 0.0)
        np.testing.assert_array_equal(state.accelerations, 0.0)
        # Consecutive draws fill one particle's coordinates first.
        assert state.positions[0, 0] == pytest.approx(10.0 * 469049721 / 2147483647)
        assert state.positions[0, 1] == pytest.approx(10.0 * 2053676357 / 2147483647)
        assert state.positions[0, 2] == pytest.approx(10.0 * 1781357515 / 2147483647)

    def test_zero_seed_leaves_state_untouched(self):
        state = ParticleState(2, 2)
        state.positions.fill(5.0)
        with pytest.raises(SeedError):
            state.initialize(0)
        np.testing.assert_array_equal(state.positions, 5.0)


class TestParticleSystem:
    @pytest.fixture
    def system(self) -> ParticleSystem:
        return ParticleSystem(SimulationParameters(particle_count=4, dimensions=2, step_count=1))

    def test_update_requires_fresh_forces(self, system):
        system.initialize()
        with pytest.raises(RuntimeError):
            system.update()

    def test_forces_stale_after_update(self, system):
        system.initialize()
        system.compute()
        system.update()
        with pytest.raises(RuntimeError):
            system.update()

    def test_compute_returns_report(self, system):
        system.initialize()
        report = system.compute()
        assert isinstance(report, EnergyReport)
        assert report.kinetic == 0.0
        assert report.total == pytest.approx(report.potential)
        assert system.potential_energy == report.potential
        assert system.kinetic_energy == report.kinetic

    def test_kinetic_energy_matches_velocities(self, system):
        system.initialize()
        system.state.positions[:] = [[0.0, 0.0], [0.5, 0.0], [0.0, 0.5], [3.0, 3.0]]
        system.compute()
        system.update()
        report = system.compute()
        velocities = system.state.velocities
        assert report.kinetic == pytest.approx(0.5 * system.mass * np.sum(velocities ** 2))
        assert report.kinetic > 0.0

    def test_coincident_particles_warn(self, caplog):
        caplog.set_level(logging.WARNING, logger=LOGGER_NAME)
        system = ParticleSystem(SimulationParameters(particle_count=2, dimensions=1))
        system.compute()
        assert "Non-finite forces" in caplog.text
