"""
Logging configuration for the insights engine.
"""

import logging
import os
import sys


def setup_logger(name: str) -> logging.Logger:
    """
    Setup a logger with consistent formatting.

    Args:
        name: Logger name (usually __name__ of the module)

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)

    # Only configure if not already configured
    if not logger.handlers:
        level = os.getenv("LOG_LEVEL", "INFO").upper()
        logger.setLevel(level)

        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(level)
        console_handler.setFormatter(logging.Formatter(
            fmt="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S"
        ))
        logger.addHandler(console_handler)

    return logger


def log_error(logger: logging.Logger, error: Exception, context: str = "", debug: bool = False) -> None:
    """
    Log an error with context.

    Args:
        logger: Logger instance
        error: Exception that occurred
        context: Additional context about where the error occurred
        debug: Also log the full traceback
    """
    if context:
        logger.error(f"{context}: {type(error).__name__}: {error}")
    else:
        logger.error(f"{type(error).__name__}: {error}")

    if debug:
        logger.exception("Full traceback:")
