"""Centralized logging configuration for the application."""
import logging
import sys
from logging.handlers import RotatingFileHandler

from flask import Flask

# Define log format
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

ROOT_LOGGER_NAME = "stoktrack"


def configure_logging(app: Flask) -> logging.Logger:
    """
    Set up the "stoktrack" logger hierarchy from app config.

    Service modules log through logging.getLogger(__name__), which lands under
    this logger because the package is named stoktrack.

    Config keys:
        LOG_LEVEL: DEBUG, INFO, WARNING, ERROR, CRITICAL
        LOG_FILE: optional path for a rotating file log (10MB x 5)
    """
    level_name = str(app.config.get("LOG_LEVEL", "INFO")).upper()
    level = getattr(logging, level_name, logging.INFO)

    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.setLevel(level)

    # Avoid duplicate handlers when create_app() is called more than once
    if logger.handlers:
        return logger

    formatter = logging.Formatter(LOG_FORMAT, DATE_FORMAT)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    log_file = app.config.get("LOG_FILE")
    if log_file:
        file_handler = RotatingFileHandler(
            log_file,
            maxBytes=10 * 1024 * 1024,  # 10MB
            backupCount=5,
            encoding="utf-8",
        )
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    # Flask's own app.logger shares the level so route-level logs match
    app.logger.setLevel(level)

    return logger
