"""
Centralized logging configuration for the RIS order engine.
Every process (API, purge script, tests) goes through configure_json_logging
so log lines are single JSON objects carrying the bound correlation id.
"""
import logging
import logging.config
from typing import Optional

import structlog
from ris.core.config import settings

DEFAULT_SERVICE_NAME = "ris-api"


def get_log_level() -> str:
    """Get the log level from settings, defaulting to INFO."""
    log_level_str = getattr(settings, 'LOG_LEVEL', "INFO").upper()
    return log_level_str


def configure_json_logging(
    service_name: Optional[str] = None,
    log_level: Optional[str] = None,
    disable_existing_loggers: bool = True
) -> structlog.BoundLogger:
    """
    Configure structured JSON logging using structlog.

    Args:
        service_name: Optional service name to include in logger context
        log_level: Override log level (defaults to settings.LOG_LEVEL)
        disable_existing_loggers: Whether to disable existing loggers

    Returns:
        Configured structlog logger instance
    """
    if log_level is None:
        log_level = get_log_level()

    if not isinstance(log_level, str):
        log_level = str(log_level)

    if service_name is None:
        service_name = DEFAULT_SERVICE_NAME

    # stdlib only prints the message; structlog renders the JSON
    logging_config = {
        "version": 1,
        "disable_existing_loggers": disable_existing_loggers,
        "formatters": {
            "plain": {
                "format": "%(message)s",
            },
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "plain",
                "stream": "ext://sys.stdout",
            },
        },
        "loggers": {
            "": {  # Root logger
                "handlers": ["console"],
                "level": log_level.upper(),
                "propagate": False,
            },
            "urllib3": {"level": "WARNING", "handlers": ["console"], "propagate": False},
            "sqlalchemy.engine": {"level": "WARNING", "handlers": ["console"], "propagate": False},
            "uvicorn.access": {"level": "WARNING", "handlers": ["console"], "propagate": False},
        },
    }

    root_logger = logging.getLogger()
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)

    logging.config.dictConfig(logging_config)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.CallsiteParameterAdder(
                parameters=[structlog.processors.CallsiteParameter.FILENAME,
                            structlog.processors.CallsiteParameter.LINENO]
            ),
            structlog.processors.JSONRenderer(),
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    logger = structlog.get_logger()
    if service_name:
        logger = logger.bind(service=service_name)

    return logger
