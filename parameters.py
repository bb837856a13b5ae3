# parameters.py

"""
Simulation parameters and configuration loading.

The run is described by a SimulationParameters instance built from the
'simulation' section of config.json, optionally overridden from the command line.
"""
import argparse
import json
import logging
import math
import numbers
from dataclasses import dataclass, fields, asdict
from typing import Any, Dict, Optional, Tuple

from constants import (
    DEFAULT_DIMENSIONS,
    DEFAULT_MASS,
    DEFAULT_PARTICLE_COUNT,
    DEFAULT_SEED,
    DEFAULT_STEP_COUNT,
    DEFAULT_TIME_STEP,
    LOGGER_NAME,
)
from lcg import SeedError, check_seed

logger = logging.getLogger(LOGGER_NAME)


class ConfigurationError(ValueError):
    """Raised when the simulation configuration is invalid."""


def _is_int(value) -> bool:
    return isinstance(value, numbers.Integral) and not isinstance(value, bool)


def _is_real(value) -> bool:
    return isinstance(value, numbers.Real) and not isinstance(value, bool)


@dataclass(frozen=True)
class SimulationParameters:
    """
    Immutable parameters of a run.

    Data Contract:
    - particle_count (int): Number of particles, positive.
    - dimensions (int): Spatial dimensionality, positive.
    - mass (float): Uniform particle mass, strictly positive.
    - time_step (float): Integration time step, strictly positive.
    - step_count (int): Number of integration steps after the initial evaluation, non-negative.
    - seed (int): Generator seed for the initial positions, non-zero.
    """
    particle_count: int = DEFAULT_PARTICLE_COUNT
    dimensions: int = DEFAULT_DIMENSIONS
    mass: float = DEFAULT_MASS
    time_step: float = DEFAULT_TIME_STEP
    step_count: int = DEFAULT_STEP_COUNT
    seed: int = DEFAULT_SEED

    def __post_init__(self):
        self.validate()

    def validate(self) -> None:
        if not _is_int(self.particle_count) or self.particle_count < 1:
            raise ConfigurationError(f"particle_count must be a positive integer, got {self.particle_count!r}")
        if not _is_int(self.dimensions) or self.dimensions < 1:
            raise ConfigurationError(f"dimensions must be a positive integer, got {self.dimensions!r}")
        if not _is_real(self.mass) or not math.isfinite(self.mass) or self.mass <= 0:
            raise ConfigurationError(f"mass must be a finite positive real, got {self.mass!r}")
        if not _is_real(self.time_step) or not math.isfinite(self.time_step) or self.time_step <= 0:
            raise ConfigurationError(f"time_step must be a finite positive real, got {self.time_step!r}")
        if not _is_int(self.step_count) or self.step_count < 0:
            raise ConfigurationError(f"step_count must be a non-negative integer, got {self.step_count!r}")
        try:
            check_seed(self.seed)
        except SeedError as e:
            raise ConfigurationError(f"invalid seed: {e}") from e

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "SimulationParameters":
        payload = dict(data) if data is not None else {}
        field_names = {f.name for f in fields(cls)}
        unknown = sorted(set(payload) - field_names)
        if unknown:
            raise ConfigurationError(f"unrecognized simulation options: {', '.join(unknown)}")
        return cls(**payload)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_config(
        cls,
        data: Optional[Dict[str, Any]],
        args: Optional[argparse.Namespace] = None,
    ) -> "SimulationParameters":
        """
        Builds parameters from the 'simulation' config section. Every field
        given on the command line replaces the configured value before validation.
        """
        payload = dict(data) if data is not None else {}
        if args is not None:
            for f in fields(cls):
                value = getattr(args, f.name, None)
                if value is not None:
                    payload[f.name] = value
        return cls.from_dict(payload)

    def summary(self) -> str:
        return (
            f"particle_count={self.particle_count} dimensions={self.dimensions} "
            f"mass={self.mass} time_step={self.time_step} "
            f"step_count={self.step_count} seed={self.seed}"
        )


CONFIG_SECTIONS = ('logging', 'simulation', 'run_control')


def load_config(path: str) -> Dict[str, Any]:
    """
    Loads a JSON configuration file.

    The top level must be an object, 'run_id' a string, and each of the
    'logging', 'simulation' and 'run_control' sections, when present, an object.
    """
    try:
        with open(path, 'r') as f:
            config = json.load(f)
    except FileNotFoundError:
        logger.error(f"Configuration file not found at {path}.")
        raise
    except json.JSONDecodeError:
        logger.error(f"Error decoding JSON from {path}.")
        raise

    if not isinstance(config, dict):
        raise ConfigurationError(f"{path} must contain a JSON object, got {type(config).__name__}")
    if not isinstance(config.get('run_id', 'default'), str):
        raise ConfigurationError(f"run_id must be a string, got {config['run_id']!r}")
    for section in CONFIG_SECTIONS:
        if not isinstance(config.get(section, {}), dict):
            raise ConfigurationError(f"'{section}' must be a JSON object, got {config[section]!r}")

    logger.debug(f"Configuration loaded from {path}.")
    return config


def run_options(config: Dict[str, Any]) -> Tuple[int, bool]:
    """
    Reads the run-control settings of a loaded configuration.

    - Outputs: (log_interval, profile). log_interval is a non-negative integer,
      0 disables per-step energy logging. profile is a boolean.
    """
    log_interval = config.get('logging', {}).get('log_interval', 0)
    if not _is_int(log_interval) or log_interval < 0:
        raise ConfigurationError(f"log_interval must be a non-negative integer, got {log_interval!r}")

    profile = config.get('run_control', {}).get('profile', False)
    if not isinstance(profile, bool):
        raise ConfigurationError(f"profile must be true or false, got {profile!r}")
    return log_interval, profile
