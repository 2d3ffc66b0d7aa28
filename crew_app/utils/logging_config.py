"""
Logging setup for the crew importer Flask app.

Handlers are attached to ``app.logger`` and to the ``crew_app`` package logger
so pipeline modules using ``logging.getLogger(__name__)`` share the same
output.
"""

from __future__ import annotations

import logging
import os
import sys
from logging.handlers import RotatingFileHandler

from flask import Flask

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
PACKAGE_LOGGER = "crew_app"
_HANDLER_MARKER = "_crew_importer_handler"


def _resolve_level(value: object) -> int:
    if isinstance(value, int):
        return value
    level = logging.getLevelName(str(value or "INFO").upper())
    return level if isinstance(level, int) else logging.INFO


def _drop_managed_handlers(logger: logging.Logger) -> None:
    for handler in list(logger.handlers):
        if getattr(handler, _HANDLER_MARKER, False):
            logger.removeHandler(handler)
            handler.close()


def _build_handlers(app: Flask, level: int) -> list[logging.Handler]:
    formatter = logging.Formatter(LOG_FORMAT)
    handlers: list[logging.Handler] = []

    if app.config.get("ENABLE_CONSOLE_LOGGING", True):
        console = logging.StreamHandler(sys.stdout)
        handlers.append(console)

    if app.config.get("ENABLE_FILE_LOGGING", False):
        log_file = app.config.get("LOG_FILE") or os.path.join("logs", "crew_importer.log")
        directory = os.path.dirname(log_file)
        if directory:
            os.makedirs(directory, exist_ok=True)
        handlers.append(
            RotatingFileHandler(
                log_file,
                maxBytes=int(app.config.get("LOG_FILE_MAX_BYTES", 10 * 1024 * 1024)),
                backupCount=int(app.config.get("LOG_FILE_BACKUP_COUNT", 10)),
                encoding="utf-8",
            )
        )

    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
        setattr(handler, _HANDLER_MARKER, True)
    return handlers


def setup_logging(app: Flask) -> None:
    """
    (Re)configure logging from ``LOG_LEVEL``, ``ENABLE_CONSOLE_LOGGING``,
    ``ENABLE_FILE_LOGGING`` and ``LOG_FILE``.

    Safe to call repeatedly; previously installed handlers are replaced.
    """
    level = _resolve_level(app.config.get("LOG_LEVEL", "INFO"))
    package_logger = logging.getLogger(PACKAGE_LOGGER)

    for logger in (app.logger, package_logger):
        _drop_managed_handlers(logger)
        logger.setLevel(level)

    for handler in _build_handlers(app, level):
        app.logger.addHandler(handler)
        package_logger.addHandler(handler)

    app.logger.debug("Logging configured", extra={"log_level": logging.getLevelName(level)})
