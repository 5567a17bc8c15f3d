"""Logging configuration applied at application startup."""

import logging
import logging.config

from stockroom.config.settings import Settings


def build_logging_config(settings: Settings) -> dict:
    """Build a dictConfig mapping for the application loggers.

    Args:
        settings: Application settings (uses log_level and debug)

    Returns:
        Dictionary suitable for logging.config.dictConfig

    """
    level = "DEBUG" if settings.debug else settings.log_level

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "default": {
                "format": "%(asctime)s %(levelname)s [%(name)s] %(message)s",
                "datefmt": "%Y-%m-%dT%H:%M:%S%z",
            },
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "default",
            },
        },
        "loggers": {
            "stockroom": {"handlers": ["console"], "level": level, "propagate": False},
            "sqlalchemy.engine": {"level": "INFO" if settings.database_echo else "WARNING"},
        },
        "root": {"handlers": ["console"], "level": "WARNING"},
    }


def configure_logging(settings: Settings) -> None:
    """Configure logging for the whole process."""
    logging.config.dictConfig(build_logging_config(settings))
    logging.getLogger(__name__).debug(f"Logging configured at level {settings.log_level}")
