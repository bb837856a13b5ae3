# main.py

import argparse
import cProfile
import io
import json
import logging
import math
import pstats
import sys
import time
from collections import namedtuple

import constants
import logger_setup
from parameters import ConfigurationError, SimulationParameters, load_config, run_options
from particle_system import ParticleSystem

# Get the application's dedicated logger
logger = logging.getLogger(constants.LOGGER_NAME)

SimulationResult = namedtuple('SimulationResult', ['potential', 'kinetic', 'baseline', 'drift', 'steps'])


def relative_drift(total: float, baseline: float) -> float:
    """
    Relative change of the total energy from the baseline.
    Undefined (NaN) when the baseline energy is exactly zero.
    """
    if baseline == 0.0:
        return math.nan
    return (total - baseline) / baseline


def run_simulation(params: SimulationParameters, log_interval: int = 0) -> SimulationResult:
    """
    The main time stepping loop.

    Step 0 initializes the state and evaluates the baseline energy. Every later
    step integrates with the forces of the previous evaluation, then evaluates
    forces and energies for the new state.

    - Inputs:
        - params (SimulationParameters): The run parameters.
        - log_interval (int): Log energies every this many steps at DEBUG. 0 disables.
    - Outputs: A SimulationResult with the final energies and the relative drift.
    """
    particle_system = ParticleSystem(params)
    baseline = 0.0
    report = None
    start = time.perf_counter()

    for step in range(params.step_count + 1):
        if step == 0:
            particle_system.initialize()
        else:
            particle_system.update()

        report = particle_system.compute()

        if step == 0:
            baseline = report.total

        # --- Logging (throttled) ---
        if log_interval and step % log_interval == 0:
            logger.debug(
                f"Step={step}, "
                f"Potential={report.potential:.6f}, "
                f"Kinetic={report.kinetic:.6f}, "
                f"Total={report.total:.6f}, "
                f"Delta_E={report.total - baseline:+.3e}"
            )

    elapsed = time.perf_counter() - start
    drift = relative_drift(report.total, baseline)
    if math.isnan(drift):
        logger.warning("Baseline energy is zero; relative energy drift is undefined.")

    logger.info(f"Completed {params.step_count} step(s) in {elapsed:.3f} s.")
    return SimulationResult(report.potential, report.kinetic, baseline, drift, params.step_count)


def format_summary(result: SimulationResult) -> str:
    """The terminal summary line: final potential, final kinetic, relative drift."""
    return f"potential={result.potential:f}, kinetic={result.kinetic:f}, {result.drift:f}"


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Sine-well molecular dynamics with velocity Verlet integration.")
    parser.add_argument("--config", type=str, default=constants.DEFAULT_CONFIG_PATH, help="path to the JSON configuration file")
    parser.add_argument("--particle-count", dest="particle_count", type=int, default=None, help="number of particles")
    parser.add_argument("--dimensions", type=int, default=None, help="spatial dimension")
    parser.add_argument("--mass", type=float, default=None, help="mass of each particle")
    parser.add_argument("--time-step", dest="time_step", type=float, default=None, help="integration time step")
    parser.add_argument("--step-count", dest="step_count", type=int, default=None, help="number of time steps")
    parser.add_argument("--seed", type=int, default=None, help="non-zero seed for the initial positions")
    parser.add_argument("--profile", action="store_true", help="profile the run and log the top functions")
    return parser


def main(argv=None) -> int:
    """
    Main function to configure and run the simulation.
    Returns the process exit status.
    """
    args = build_arg_parser().parse_args(argv)

    # Logging is not set up yet, so configuration file errors are printed.
    try:
        config = load_config(args.config)
        log_interval, profile = run_options(config)
    except (OSError, json.JSONDecodeError, ConfigurationError) as e:
        print(f"FATAL: Could not load {args.config}. Error: {e}", file=sys.stderr)
        return 1

    # --- Setup ---
    try:
        logger_setup.setup_logging(config)
    except (ValueError, OSError) as e:
        print(f"FATAL: Could not set up logging from {args.config}. Error: {e}", file=sys.stderr)
        return 1
    logger.info("Application starting...")
    logger.info(f"Loaded configuration: {config}")

    try:
        params = SimulationParameters.from_config(config.get('simulation', {}), args)
    except ConfigurationError as e:
        logger.error(f"FATAL: Invalid configuration. {e}")
        return 1
    logger.info(f"Simulation parameters: {params.summary()}")

    profile = args.profile or profile

    if profile:
        profiler = cProfile.Profile()
        profiler.enable()
        result = run_simulation(params, log_interval)
        profiler.disable()

        s = io.StringIO()
        stats = pstats.Stats(profiler, stream=s).sort_stats('cumtime')
        stats.print_stats(20) # Print the top 20 time-consuming functions
        logger.info(f"Profiling complete.\n{s.getvalue()}")
    else:
        result = run_simulation(params, log_interval)

    print(format_summary(result))
    logger.info(
        f"Final energies: potential={result.potential}, kinetic={result.kinetic}, "
        f"baseline={result.baseline}, relative drift={result.drift:.3e}"
    )

    logger.info("Application shutting down.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
