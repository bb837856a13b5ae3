# particle_system.py

import numpy as np
import logging
import numba
from collections import namedtuple
from constants import HALF_PI, LOGGER_NAME
from particle import ParticleState

logger = logging.getLogger(LOGGER_NAME)

class EnergyReport(namedtuple('EnergyReport', ['potential', 'kinetic'])):
    """Total potential and kinetic energy of the system at one step."""
    __slots__ = ()

    @property
    def total(self):
        return self.potential + self.kinetic

# --- JIT-Compiled Physics Functions ---
# Compiled by Numba in nopython mode, so they live outside ParticleSystem and take
# only NumPy arrays and scalars. Per-particle arrays have shape (num_particles, dimensions).

@numba.jit(nopython=True)
def distance_jit(r1, r2, dr):
    """
    Computes the displacement dr = r1 - r2 and returns its Euclidean norm.
    """
    d = 0.0
    for i in range(r1.shape[0]):
        dr[i] = r1[i] - r2[i]
        d += dr[i] * dr[i]
    return np.sqrt(d)

@numba.jit(nopython=True, error_model='numpy')
def compute_forces_jit(positions, velocities, mass, forces):
    """
    Numba-accelerated O(n^2) force and energy evaluation.

    The pair potential is a harmonic well which saturates at PI/2:

        v(x)  = sin(min(x, PI/2))^2
        dv(x) = sin(2 * min(x, PI/2))

    Every ordered pair (k, j) is visited, so each pair's energy is added twice
    with weight 0.5. The force divides by the un-clamped distance, so beyond
    PI/2 the force decays while the energy stays saturated.

    Coincident particles give 0/0 and leave NaN in the force field. The numpy
    error model lets the NaN propagate instead of raising.

    Overwrites `forces` and returns (potential, kinetic).
    """
    num_particles, num_dims = positions.shape
    rij = np.empty(num_dims)
    pe = 0.0
    ke = 0.0

    for k in range(num_particles):
        for i in range(num_dims):
            forces[k, i] = 0.0

        for j in range(num_particles):
            if k != j:
                d = distance_jit(positions[k], positions[j], rij)
                d2 = d if d < HALF_PI else HALF_PI

                # Attribute half of the pair energy to each ordering.
                pe += 0.5 * np.sin(d2) ** 2

                dv = np.sin(2.0 * d2)
                for i in range(num_dims):
                    forces[k, i] -= rij[i] * dv / d

        for i in range(num_dims):
            ke += velocities[k, i] * velocities[k, i]

    # Mass is uniform, so it is factored out of the sum.
    ke *= 0.5 * mass
    return pe, ke

@numba.jit(nopython=True)
def velocity_verlet_jit(positions, velocities, forces, accelerations, mass, dt):
    """
    Numba-accelerated velocity Verlet update, in place.

    x(t+dt) = x(t) + v(t) * dt + 0.5 * a(t) * dt * dt
    v(t+dt) = v(t) + 0.5 * (a(t) + a(t+dt)) * dt
    a(t+dt) = f(t+dt) / m

    Each element is updated from its own pre-update values only.
    """
    rmass = 1.0 / mass
    num_particles, num_dims = positions.shape
    for j in range(num_particles):
        for i in range(num_dims):
            positions[j, i] = positions[j, i] + velocities[j, i] * dt + 0.5 * accelerations[j, i] * dt * dt
            velocities[j, i] = velocities[j, i] + 0.5 * dt * (forces[j, i] * rmass + accelerations[j, i])
            accelerations[j, i] = forces[j, i] * rmass


class ParticleSystem:
    """
    Owns the particle state and advances it with the sine-well pair potential.

    Data Contract:
    - Inputs:
        - params (SimulationParameters): The immutable run parameters.
    - Outputs: None. This class modifies its internal state.
    - Side Effects: Manages the lifecycle of all particle buffers.
    - Invariants: The number of particles is constant throughout the simulation.
      The force field used by `update` was always computed from the current
      positions; it is never carried over from an earlier step.
    """
    def __init__(self, params):
        self.mass = params.mass
        self.time_step = params.time_step
        self.seed = params.seed
        self.state = ParticleState(params.particle_count, params.dimensions)

        # Energies from the most recent evaluation.
        self.potential_energy = 0.0
        self.kinetic_energy = 0.0
        self._forces_current = False

        logger.info(
            f"ParticleSystem created for {params.particle_count} particles "
            f"in {params.dimensions}D (mass={params.mass}, dt={params.time_step})."
        )

    def initialize(self):
        """
        Seeds the positions and zeroes velocities and accelerations.
        Any previously computed force field becomes stale.
        """
        self.seed = self.state.initialize(self.seed)
        self._forces_current = False

    def compute(self) -> EnergyReport:
        """
        Evaluates forces and energies for the current positions and velocities.
        The whole force field is recomputed from one snapshot of the positions.
        """
        state = self.state
        pe, ke = compute_forces_jit(state.positions, state.velocities, self.mass, state.forces)
        self.potential_energy = pe
        self.kinetic_energy = ke
        self._forces_current = True

        if not np.all(np.isfinite(state.forces)):
            bad = int(np.count_nonzero(~np.isfinite(state.forces).all(axis=1)))
            logger.warning(
                f"Non-finite forces on {bad} particle(s). "
                f"Coincident particles make the pair force undefined."
            )
        return EnergyReport(pe, ke)

    def update(self):
        """
        Advances positions, velocities and accelerations by one time step
        using the force field of the current positions.
        """
        if not self._forces_current:
            raise RuntimeError("forces must be computed for the current positions before update()")

        state = self.state
        velocity_verlet_jit(
            state.positions,
            state.velocities,
            state.forces,
            state.accelerations,
            self.mass,
            self.time_step
        )
        self._forces_current = False
