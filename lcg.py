# lcg.py

import logging

import numba
import numpy as np

from constants import (
    LCG_MODULUS,
    LCG_MULTIPLIER,
    LCG_SCALE,
    LOGGER_NAME,
    SCHRAGE_Q,
    SCHRAGE_R,
)

logger = logging.getLogger(LOGGER_NAME)


class SeedError(ValueError):
    """Raised when a generator seed cannot produce a valid stream."""


@numba.jit(nopython=True)
def _fill_uniform_jit(values, a, b, seed):
    """
    Numba-accelerated Park-Miller recursion.
    Fills `values` in order and returns the advanced seed.
    """
    for idx in range(values.shape[0]):
        # Truncating division, matching 32-bit signed integer semantics.
        k = int(seed / SCHRAGE_Q)
        seed = LCG_MULTIPLIER * (seed - k * SCHRAGE_Q) - k * SCHRAGE_R
        if seed < 0:
            seed = seed + LCG_MODULUS
        values[idx] = a + (b - a) * seed * LCG_SCALE
    return seed


def check_seed(seed):
    """
    Validates a generator seed.

    Data Contract:
    - Inputs: seed (int) - Must be non-zero with |seed| < 2^31 - 1.
    - Outputs: None
    - Side Effects: Logs an error before raising.
    - Invariants: A seed of 0 (or any multiple of the modulus) produces an all-zero
      stream and is always rejected.
    """
    if isinstance(seed, bool) or not isinstance(seed, (int, np.integer)):
        logger.error(f"Fatal error: seed must be an integer, got {seed!r}.")
        raise SeedError(f"seed must be an integer, got {seed!r}")
    if seed == 0:
        logger.error("Fatal error: input value of seed = 0.")
        raise SeedError("seed must be non-zero")
    if not -LCG_MODULUS < seed < LCG_MODULUS:
        logger.error(f"Fatal error: seed {seed} is outside the generator range (-(2^31 - 1), 2^31 - 1).")
        raise SeedError(f"seed {seed} is outside the generator range (-(2^31 - 1), 2^31 - 1)")


def uniform_matrix(m: int, n: int, a: float, b: float, seed: int):
    """
    Returns an m x n matrix of pseudorandom values in [a, b) and the updated seed.

    Values are drawn column by column, so draw number i + j*m lands in r[i, j].
    The matrix is returned in Fortran order, which makes r.T a C-contiguous
    (n, m) array holding the same draws in the same memory order.
    """
    check_seed(seed)
    flat = np.empty(m * n, dtype=np.float64)
    seed = _fill_uniform_jit(flat, float(a), float(b), int(seed))
    return flat.reshape((m, n), order='F'), int(seed)
