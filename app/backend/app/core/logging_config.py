"""Centralized logging configuration."""

from __future__ import annotations

import logging

from app.core.config import Settings

_NOISY_LOGGERS = ("uvicorn.access", "sqlalchemy.engine", "multipart")


def setup_logging(settings: Settings) -> logging.Logger:
    """Configure the root logger with a console handler.

    Safe to call more than once: existing handlers are replaced so repeated
    ``create_app()`` calls (tests) do not duplicate output.
    """

    log_level = getattr(logging, settings.log_level.upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers = []

    console_handler = logging.StreamHandler()
    console_handler.setLevel(log_level)
    console_handler.setFormatter(logging.Formatter(settings.log_format))
    root_logger.addHandler(console_handler)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logging.getLogger(__name__).debug("Logging initialized at %s level", logging.getLevelName(log_level))
    return root_logger
