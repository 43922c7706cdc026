"""Settings and logging shared by the scopekit engine."""

from scopekit.core.config import Settings, get_settings
from scopekit.core.logging import (
    LoggingContext,
    clear_context,
    configure_logging,
    get_logger,
)

__all__ = [
    "Settings",
    "get_settings",
    "configure_logging",
    "get_logger",
    "LoggingContext",
    "clear_context",
]
