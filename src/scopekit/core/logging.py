"""Structured logging for scopekit.

Engine modules only ever log at debug level through ``get_logger``. Entries
are rendered by structlog and handed to the stdlib logger of the same name,
so a host that never calls ``configure_logging`` gets nothing below its own
stdlib level. ``configure_logging`` attaches a stdout handler to the
``scopekit`` logger: JSON lines by default, colored console output in
development.
"""

import logging
import sys
from typing import Any

import structlog
from structlog.types import EventDict, Processor

from scopekit.core.config import Settings, get_settings

DEFAULT_LOGGER_NAME = "scopekit"


def add_logger_name(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    """Record which module emitted the entry, falling back to the package name."""
    event_dict["logger"] = getattr(logger, "name", DEFAULT_LOGGER_NAME)
    return event_dict


def render_bytes(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    """Render raw byte values, such as comparison operands, as 0x-hex."""
    for key, value in event_dict.items():
        if isinstance(value, (bytes, bytearray)):
            event_dict[key] = "0x" + bytes(value).hex()
    return event_dict


def rename_message_field(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    """Store the event text under ``message``."""
    if "event" in event_dict:
        event_dict["message"] = event_dict.pop("event")
    return event_dict


def configure_logging(settings: Settings | None = None) -> None:
    """Install the structlog processor chain and the ``scopekit`` stdout handler.

    Args:
        settings: Settings to read level and format from. Defaults to
            ``get_settings()``.
    """
    settings = settings or get_settings()
    level = getattr(logging, settings.log_level)

    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
        render_bytes,
        rename_message_field,
    ]

    console = settings.is_development or settings.log_format == "console"
    if console:
        processors.append(
            structlog.dev.ConsoleRenderer(
                colors=True, exception_formatter=structlog.dev.plain_traceback
            )
        )
    else:
        processors.append(structlog.processors.JSONRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=not console,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter("%(message)s"))
    package_logger = logging.getLogger(DEFAULT_LOGGER_NAME)
    package_logger.handlers[:] = [handler]
    package_logger.setLevel(level)
    package_logger.propagate = False


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Return a structlog logger backed by the stdlib logger ``name``.

    Names outside the ``scopekit`` hierarchy are not covered by
    ``configure_logging``.
    """
    return structlog.wrap_logger(logging.getLogger(name or DEFAULT_LOGGER_NAME))


class LoggingContext:
    """Bind key-value pairs to every log entry emitted inside a ``with`` block.

    Example:
        with LoggingContext(role="managers", target="0xabc..."):
            normalize_condition(condition)
    """

    def __init__(self, **context: str) -> None:
        self.context = context

    def __enter__(self) -> "LoggingContext":
        structlog.contextvars.bind_contextvars(**self.context)
        return self

    def __exit__(self, *args: Any) -> None:
        structlog.contextvars.unbind_contextvars(*self.context)


def clear_context() -> None:
    """Unbind everything bound through ``LoggingContext`` or contextvars."""
    structlog.contextvars.clear_contextvars()
