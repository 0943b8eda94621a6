from __future__ import annotations
import logging.config

from core.config_loader import settings


def configure_logging(level: str | None = None) -> None:
    """Install the console handler used by every module logger."""
    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "default": {
                    "format": "%(asctime)s %(levelname)s [%(name)s] %(message)s",
                },
            },
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "formatter": "default",
                },
            },
            "root": {
                "handlers": ["console"],
                "level": (level or settings.LOG_LEVEL).upper(),
            },
            "loggers": {
                # SQL echo is controlled by SQL_ECHO, keep the engine quiet otherwise
                "sqlalchemy.engine": {"level": "WARNING"},
            },
        }
    )
