"""
Structured Logging Configuration
structlog on top of the standard library logging module.

Console rendering in development, one JSON object per line elsewhere
(SOLARSIM_LOG_JSON overrides). The request id bound by MetricsMiddleware
is merged into every event logged while a request is being handled.
"""
import logging
import sys
from typing import Any

import structlog
from structlog.types import Processor

from solarsim.core.config import Settings, settings as default_settings

# Loggers that repeat what the request metrics already record
QUIET_LOGGERS = ("uvicorn.access",)


def _processors(settings: Settings) -> list[Processor]:
    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
    ]
    if settings.json_logs:
        processors += [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty()))
    return processors


def configure_logging(settings: Settings | None = None) -> None:
    """Configure structlog and the root logger from settings."""
    settings = settings or default_settings
    level = logging.DEBUG if settings.debug else getattr(logging, settings.log_level)

    structlog.configure(
        processors=_processors(settings),
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(format="%(message)s", stream=sys.stdout)
    # basicConfig is a no-op once handlers exist; the level must still follow settings
    logging.getLogger().setLevel(level)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a structured logger instance."""
    return structlog.get_logger(name)


def bind_context(**kwargs: Any) -> None:
    """Bind context variables to the current logger context."""
    structlog.contextvars.bind_contextvars(**kwargs)


def clear_context() -> None:
    """Clear all context variables."""
    structlog.contextvars.clear_contextvars()
