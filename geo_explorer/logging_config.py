"""
Logging Configuration Module

Centralized logging configuration for the explorer service. Every record
written to stdout passes through the secret redaction filter so the model
credential never ends up in logs.
"""

import logging
import sys
from typing import Optional
from geo_explorer.security.secret_redactor import SecretRedactionFilter


def setup_logging(
    log_level: str = "INFO",
    log_format: Optional[str] = None,
    enable_redaction: bool = True
) -> logging.Logger:
    """
    Configure application logging with secret redaction.

    Call once at application startup. Sets up:
    - Console output with structured formatting
    - Automatic secret redaction (if enabled)
    - Consistent log levels across the application

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_format: Custom format string. If None, uses default structured format.
        enable_redaction: Whether to attach the SecretRedactionFilter (default: True)

    Returns:
        Configured root logger instance
    """
    if log_format is None:
        log_format = (
            '%(asctime)s - %(name)s - %(levelname)s - '
            '%(filename)s:%(lineno)d - %(message)s'
        )

    level = getattr(logging, log_level.upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    # Remove existing handlers to avoid duplicates
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(logging.Formatter(log_format, datefmt='%Y-%m-%d %H:%M:%S'))

    if enable_redaction:
        console_handler.addFilter(SecretRedactionFilter())

    root_logger.addHandler(console_handler)

    if enable_redaction:
        root_logger.info("Secret redaction filter enabled for all logs")

    logging.getLogger("geo_explorer").setLevel(level)

    return root_logger


def get_logger(name: str = "geo_explorer") -> logging.Logger:
    """
    Get a logger instance with the specified name.

    Loggers inherit the redaction filter from the root handler once
    setup_logging() has run.
    """
    return logging.getLogger(name)
