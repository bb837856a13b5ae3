# constants.py

"""
Application Constants

This module defines static configuration values for the simulator's framework.
These are not expected to change between simulation runs.

Data Contract:
- All values are immutable constants.
- Units are dimensionless (reduced units) unless stated otherwise.
"""

import math

# Name of the dedicated application logger
LOGGER_NAME = "md_sim"

# Default configuration file
DEFAULT_CONFIG_PATH = "config.json"

# Potential
# The pair argument saturates at PI/2: v(x) = sin(min(x, PI/2))^2
HALF_PI = math.pi / 2.0

# Initial positions are drawn uniformly per coordinate from this range.
POSITION_MIN = 0.0
POSITION_MAX = 10.0

# Park-Miller minimal standard generator, Schrage decomposition.
# seed = 16807 * seed mod (2^31 - 1), computed without 32-bit overflow.
LCG_MULTIPLIER = 16807
LCG_MODULUS = 2147483647  # 2^31 - 1
SCHRAGE_Q = 127773        # LCG_MODULUS // LCG_MULTIPLIER
SCHRAGE_R = 2836          # LCG_MODULUS % LCG_MULTIPLIER
LCG_SCALE = 1.0 / LCG_MODULUS

# Reference run parameters
DEFAULT_PARTICLE_COUNT = 2000
DEFAULT_DIMENSIONS = 3
DEFAULT_MASS = 1.0
DEFAULT_TIME_STEP = 0.0001
DEFAULT_STEP_COUNT = 100
DEFAULT_SEED = 123456789
