"""Pytest configuration for all tests."""

import logging

import pytest
import structlog

from scopekit.core.config import get_settings
from scopekit.core.logging import DEFAULT_LOGGER_NAME, clear_context


@pytest.fixture(autouse=True)
def _reset_settings_cache():
    """Drop cached settings so environment patches take effect per test."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture(autouse=True)
def _reset_logging():
    """Undo any ``configure_logging`` call made by a test."""
    yield
    clear_context()
    structlog.reset_defaults()
    package_logger = logging.getLogger(DEFAULT_LOGGER_NAME)
    package_logger.handlers.clear()
    package_logger.setLevel(logging.NOTSET)
    package_logger.propagate = True
