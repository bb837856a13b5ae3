# particle.py

import logging
import numpy as np
from constants import LOGGER_NAME, POSITION_MIN, POSITION_MAX
from lcg import uniform_matrix

logger = logging.getLogger(LOGGER_NAME)


class ParticleState:
    """
    Holds the per-particle buffers of the simulation (Structure of Arrays).

    Every buffer is a C-contiguous float64 array of shape (num_particles, dimensions).
    The components of one particle's vector are adjacent in memory, so the stride
    between consecutive particles is exactly `dimensions` elements. The O(n^2)
    force loop walks particles in this order and relies on that layout.

    Data Contract:
    - Inputs:
        - num_particles (int): The number of particles, at least 1.
        - dimensions (int): The spatial dimensionality, at least 1.
    - Outputs: None. The buffers are mutated in place by the initializer and integrator.
    - Side Effects: Allocates the position, velocity, acceleration and force buffers.
    - Invariants: All four buffers share the same shape for the lifetime of the
      object. The force buffer never aliases the position buffer.
    """
    def __init__(self, num_particles: int, dimensions: int):
        if num_particles < 1:
            raise ValueError(f"num_particles must be >= 1, got {num_particles}")
        if dimensions < 1:
            raise ValueError(f"dimensions must be >= 1, got {dimensions}")

        shape = (num_particles, dimensions)
        self.positions = np.zeros(shape, dtype=np.float64)
        self.velocities = np.zeros(shape, dtype=np.float64)
        self.accelerations = np.zeros(shape, dtype=np.float64)
        self.forces = np.zeros(shape, dtype=np.float64)

        logger.debug(f"ParticleState allocated: {num_particles} particles in {dimensions}D.")

    @property
    def num_particles(self) -> int:
        return self.positions.shape[0]

    @property
    def dimensions(self) -> int:
        return self.positions.shape[1]

    @property
    def stride(self) -> int:
        """Number of elements between the first components of consecutive particles."""
        return self.positions.strides[0] // self.positions.itemsize

    def initialize(self, seed: int) -> int:
        """
        Sets the initial positions, velocities, and accelerations.

        Positions are drawn from the generator as a dimensions x num_particles
        grid over [POSITION_MIN, POSITION_MAX), so draw i + j*dimensions becomes
        coordinate i of particle j. Velocities and accelerations start at zero.

        - Inputs:
            - seed (int): The generator seed. Validated before any buffer is written.
        - Outputs: The advanced seed.
        """
        field, seed = uniform_matrix(
            self.dimensions, self.num_particles, POSITION_MIN, POSITION_MAX, seed
        )
        self.positions[:] = field.T
        self.velocities.fill(0.0)
        self.accelerations.fill(0.0)

        logger.debug(f"Positions initialized over [{POSITION_MIN}, {POSITION_MAX}). Seed advanced to {seed}.")
        return seed
