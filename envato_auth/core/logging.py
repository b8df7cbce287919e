"""
Structured logging configuration using structlog.
"""
import logging
import sys
from typing import Any, Dict, Optional

import structlog

from envato_auth.core.config import Settings, get_settings


def setup_logging(settings: Optional[Settings] = None) -> None:
    """
    Configure structured logging.

    Args:
        settings: Settings to read the environment and level from,
            defaults to the cached package settings
    """
    settings = settings or get_settings()
    level = logging.DEBUG if settings.DEBUG else getattr(logging, settings.LOG_LEVEL, logging.INFO)

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=level,
    )

    # Processors for development
    dev_processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.dev.ConsoleRenderer(colors=True),
    ]

    # Processors for production
    prod_processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.dict_tracebacks,
        structlog.processors.JSONRenderer(),
    ]

    processors = dev_processors if settings.is_development else prod_processors

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str | None = None) -> structlog.BoundLogger:
    """
    Get a configured logger instance.

    Args:
        name: Logger name (usually __name__ of the module)

    Returns:
        Configured logger instance
    """
    return structlog.get_logger(name)


def token_hint(token: Optional[str]) -> Optional[str]:
    """Return a loggable prefix of a credential."""
    if not token:
        return None
    return token[:8]


def log_error_details(error: Exception, **kwargs: Any) -> Dict[str, Any]:
    """
    Create a context dict for error logging.

    Args:
        error: Exception instance
        **kwargs: Additional context

    Returns:
        Context dictionary for logging
    """
    return {
        "error_type": type(error).__name__,
        "error_message": str(error),
        **kwargs,
    }
