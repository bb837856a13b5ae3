# logger_setup.py

import logging
import os
from constants import LOGGER_NAME

DEFAULT_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

def setup_logging(config):
    """
    Sets up logging for the application.

    Configures the "md_sim" logger from the 'logging' section of the config,
    writing to the console and to <log_dir>/<run_id>/simulation.log. The root
    logger is left alone so Numba's compiler logging stays out of the run log.

    Data Contract:
    - Inputs: config (dict) - The loaded configuration.
    - Outputs: The path of the log file (str).
    - Side Effects:
        - Configures the "md_sim" logger.
        - Creates directories for log files.
    - Raises: ValueError for an unknown level or a non-string setting, OSError
      when the log directory or file cannot be created.
    - Invariants: 'run_id' defaults to "default". The 'logging' section may
      provide 'level', 'format' and 'log_dir'.
    """
    run_id = config.get('run_id', 'default')
    log_config = config.get('logging', {})

    for key in ('level', 'format', 'log_dir'):
        if key in log_config and not isinstance(log_config[key], str):
            raise ValueError(f"logging.{key} must be a string, got {log_config[key]!r}")

    # --- Get a dedicated logger for the application ---
    logger = logging.getLogger(LOGGER_NAME)
    # Raises ValueError for an unknown level name
    logger.setLevel(log_config.get('level', 'INFO').upper())

    # --- Prevent logs from propagating to the root logger ---
    logger.propagate = False

    # --- Create directories for logs ---
    log_dir = os.path.join(log_config.get('log_dir', 'runs'), run_id)
    os.makedirs(log_dir, exist_ok=True)
    log_file = os.path.join(log_dir, 'simulation.log')

    # --- Create formatter and handlers ---
    formatter = logging.Formatter(log_config.get('format', DEFAULT_FORMAT))

    # File handler
    file_handler = logging.FileHandler(log_file)
    file_handler.setFormatter(formatter)

    # Console handler
    stream_handler = logging.StreamHandler()
    stream_handler.setFormatter(formatter)

    # --- Add handlers to the logger ---
    # Close and clear existing handlers to avoid duplication if this function is called again
    for handler in list(logger.handlers):
        handler.close()
    logger.handlers.clear()
    logger.addHandler(file_handler)
    logger.addHandler(stream_handler)

    logger.info(f"Logging initialized. Run ID: {run_id}. Log file: {log_file}")
    return log_file
