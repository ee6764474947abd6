"""
Logging helpers for the mall client.

The library only attaches a NullHandler to the ``mall_client`` logger; hosts
own the root logger. Scripts and demos that want output call
``configure_logging()`` once.

Usage:
    from mall_client.logging import get_logger
    logger = get_logger(__name__)

    logger.info("Cart restored")
"""

import logging
import os
import sys
from functools import cache

PACKAGE_LOGGER = "mall_client"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

logging.getLogger(PACKAGE_LOGGER).addHandler(logging.NullHandler())

_stdout_handler: logging.Handler | None = None


def configure_logging(level: str | int | None = None) -> logging.Handler:
    """
    Send mall_client records to stdout.

    Args:
        level: Level name or number; defaults to the LOG_LEVEL env var, then INFO

    Returns:
        The installed handler (reused on repeated calls)
    """
    if level is None:
        level = os.environ.get("LOG_LEVEL", "INFO")
    if isinstance(level, str):
        level = getattr(logging, level.upper(), logging.INFO)

    global _stdout_handler
    package_logger = logging.getLogger(PACKAGE_LOGGER)
    package_logger.setLevel(level)

    if _stdout_handler is None:
        _stdout_handler = logging.StreamHandler(sys.stdout)
        _stdout_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        package_logger.addHandler(_stdout_handler)
    _stdout_handler.setLevel(level)
    return _stdout_handler


@cache
def get_logger(name: str) -> logging.Logger:
    """Logger for a mall_client module (typically __name__)."""
    return logging.getLogger(name)


def _escape_log_injection(value: str) -> str:
    # CWE-117: forged log lines
    return (
        value.replace("\n", "\\n")
        .replace("\r", "\\r")
        .replace("\t", "\\t")
        .replace("\x00", "")
    )


def mask_token(token: str | None) -> str:
    """
    Mask a bearer token for logging, keeping only its last four characters.

    Returns:
        Masked token such as "****a1b2", or "N/A" if None/empty
    """
    if not token:
        return "N/A"
    safe_value = _escape_log_injection(str(token))
    if len(safe_value) <= 4:
        return "****"
    return "****" + safe_value[-4:]


def sanitize_string_for_logging(value: str | None, max_length: int = 50) -> str:
    """Escape control characters and truncate to max_length; "N/A" if empty."""
    if not value:
        return "N/A"
    safe_value = _escape_log_injection(str(value))
    if len(safe_value) <= max_length:
        return safe_value
    return safe_value[:max_length] + "..."


__all__ = [
    "LOG_FORMAT",
    "configure_logging",
    "get_logger",
    "mask_token",
    "sanitize_string_for_logging",
]
