"""Structured logging for chat_stats.

Events are snake_case names with keyword context. While a statistic is
being computed its name is bound to the context, so driver and
repository events can be traced back to the dashboard card that caused
them.
"""

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any

import structlog

if TYPE_CHECKING:
    from chat_stats.config import LoggingSettings

__all__ = [
    "configure_from_settings",
    "configure_logging",
    "get_logger",
    "statistic_context",
]

# Driver loggers that would otherwise log every pool event at INFO
NOISY_LOGGERS = ("pymongo", "motor", "redis")


def configure_logging(
    level: int | str = logging.INFO,
    json_output: bool = False,
    add_timestamp: bool = True,
) -> None:
    """Configure structlog for the application.

    Args:
        level: Logging level, numeric or name (default: INFO)
        json_output: If True, output JSON; if False, pretty console output
        add_timestamp: If True, add ISO timestamp to log entries
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())

    processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]
    if add_timestamp:
        processors.insert(0, structlog.processors.TimeStamper(fmt="iso", utc=True))

    if json_output:
        processors += [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty()))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level, force=True)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def configure_from_settings(settings: "LoggingSettings") -> None:
    """Configure logging from ``CHAT_STATS_LOG_*`` settings."""
    configure_logging(settings.level, settings.json_output)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a configured structlog logger.

    Args:
        name: Logger name (usually __name__ of the calling module)
    """
    return structlog.get_logger(name)


@contextmanager
def statistic_context(statistic: str, **context: Any) -> Iterator[None]:
    """Bind ``statistic`` (and extra context) to events logged inside the block."""
    with structlog.contextvars.bound_contextvars(statistic=statistic, **context):
        yield


# Configure with defaults on import; applications reconfigure at startup
_configured = False


def _ensure_configured() -> None:
    global _configured
    if not _configured:
        configure_logging()
        _configured = True


_ensure_configured()
