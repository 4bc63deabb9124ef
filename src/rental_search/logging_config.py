"""Logging configuration helpers."""

from __future__ import annotations

import logging
import logging.config
from typing import Any

from rental_search.config import get_settings


def get_logging_config() -> dict[str, Any]:
    """
    Get logging configuration based on settings.

    Returns:
        Logging configuration dictionary
    """
    settings = get_settings()
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "standard": {
                "format": "%(asctime)s | %(levelname)s | %(name)s | run_id=%(run_id)s | %(message)s",
            },
        },
        "filters": {
            "run_id": {
                "()": "rental_search.logging_config.RunIdFilter",
            },
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "standard",
                "filters": ["run_id"],
            },
        },
        "root": {
            "level": settings.log_level,
            "handlers": ["console"],
        },
    }


class RunIdFilter(logging.Filter):
    """Ensure `run_id` key is always available in log records."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "run_id"):
            record.run_id = "-"
        return True


def configure_logging(config: dict[str, Any] | None = None) -> None:
    """
    Apply logging configuration once.

    Args:
        config: Optional logging configuration dict. If None, uses config from settings.
    """
    if config is None:
        config = get_logging_config()
    logging.config.dictConfig(config)
