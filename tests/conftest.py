"""Shared fixtures for the simulator tests."""

import logging

import pytest

from constants import LOGGER_NAME


@pytest.fixture(autouse=True)
def reset_app_logger():
    """Undo setup_logging between tests so caplog sees the application logger."""
    yield
    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        handler.close()
    logger.handlers.clear()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)
