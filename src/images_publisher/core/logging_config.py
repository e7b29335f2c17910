"""Centralized logging configuration for the images publisher."""

import os
import sys
import logging
from typing import Iterable, Optional

ROOT_LOGGER_NAME = "images-publisher"

# Loggers used by the HTTP stack underneath GitHubClient
HTTP_LOGGER_NAMES = ("httpx", "httpcore")

LOG_FORMATS = {
    "structured": (
        "%(asctime)s | %(name)s | %(levelname)-8s | "
        "%(filename)s:%(lineno)d | %(funcName)s() | %(message)s"
    ),
    "simple": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
}


def _resolve_level(level: Optional[str]) -> int:
    """Explicit level, else $LOG_LEVEL, else INFO. Unknown names mean INFO."""
    name = (level or os.getenv("LOG_LEVEL", "INFO")).upper()
    return getattr(logging, name, logging.INFO)


def _build_formatter(format_type: str) -> logging.Formatter:
    env_format = os.getenv("LOG_FORMAT", format_type).lower()
    if env_format == "structured":
        return logging.Formatter(LOG_FORMATS["structured"], datefmt="%Y-%m-%d %H:%M:%S")
    return logging.Formatter(LOG_FORMATS["simple"])


def setup_logger(
    name: str = ROOT_LOGGER_NAME,
    level: Optional[str] = None,
    format_type: str = "structured",
) -> logging.Logger:
    """
    Setup a stdout logger with environment variable configuration.

    Args:
        name: Logger name (defaults to "images-publisher")
        level: Log level override (defaults to env var or INFO)
        format_type: Logging format ("structured" or "simple")

    Returns:
        Configured logger instance

    Environment Variables:
        LOG_LEVEL: Set logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        LOG_FORMAT: Set format type ("structured" or "simple"); wins over
            ``format_type``
    """
    logger = logging.getLogger(name)
    logger.setLevel(_resolve_level(level))

    # Only the first call attaches a handler
    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(_build_formatter(format_type))
        logger.addHandler(handler)

    logger.propagate = False
    return logger


def get_logger(name: str = ROOT_LOGGER_NAME) -> logging.Logger:
    """Get a logger instance with the package configuration."""
    return setup_logger(name)


def get_worker_logger(worker_name: str) -> logging.Logger:
    """
    Get a child logger for an upload worker thread.

    Worker loggers carry the thread name so interleaved lines from the
    blob upload pool can be told apart.
    """
    return setup_logger(f"{ROOT_LOGGER_NAME}.{worker_name}")


def configure_http_logging(
    level: Optional[str] = None,
    names: Iterable[str] = HTTP_LOGGER_NAMES,
) -> None:
    """
    Route the HTTP client's own loggers through the package handlers.

    httpx logs one line per request at INFO and connection details at DEBUG;
    the CLI enables this with ``--debug``.
    """
    for name in names:
        setup_logger(name, level=level)


# Create default logger instance
logger = setup_logger()
