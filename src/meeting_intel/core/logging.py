"""structlog configuration for hosts and CLI scripts.

Every event carries the service name and environment. Context bound with
``structlog.contextvars.bind_contextvars`` (for example a refresh run id)
is merged into each event. Production renders JSON lines; other
environments render for the console.
"""

from __future__ import annotations

import logging

import structlog
from structlog.typing import EventDict, WrappedLogger

from src.meeting_intel.config import Environment, get_settings

SERVICE_NAME = "meeting-intel"


def _add_service_context(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    settings = get_settings()
    event_dict.setdefault("service", SERVICE_NAME)
    event_dict.setdefault("environment", settings.ENVIRONMENT.value)
    return event_dict


def configure_structlog(level: str | None = None) -> None:
    """Configure stdlib logging and structlog once at process start.

    Args:
        level: Log level name; defaults to the LOG_LEVEL setting.
    """
    settings = get_settings()
    level_name = (level or settings.LOG_LEVEL).upper()
    logging.basicConfig(format="%(message)s", level=level_name)

    processors: list = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        _add_service_context,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if settings.ENVIRONMENT == Environment.production:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
