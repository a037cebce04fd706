"""
Logging helpers for Signage Player.

Every module gets its logger through setup_logger(__name__). The process
entry point calls configure_logging() once to attach a single stream handler
to the package logger.
"""

import logging
from typing import Optional

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

# Root logger for the package; module loggers propagate into it
PACKAGE_LOGGER = 'signage_player'


def setup_logger(name: str) -> logging.Logger:
    """
    Get a module logger.

    Args:
        name: Logger name, normally the module's __name__

    Returns:
        Logger instance
    """
    return logging.getLogger(name)


def configure_logging(log_level: str = 'INFO', handler: Optional[logging.Handler] = None) -> None:
    """
    Configure the package logger with a stream handler.

    Calling this more than once replaces the previous handler instead of
    stacking duplicates.

    Args:
        log_level: Logging level name (DEBUG, INFO, WARNING, ERROR)
        handler: Optional handler to install (default: StreamHandler to stderr)
    """
    package_logger = logging.getLogger(PACKAGE_LOGGER)

    # Remove existing handlers
    for existing in package_logger.handlers[:]:
        package_logger.removeHandler(existing)

    handler = handler or logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    package_logger.addHandler(handler)

    package_logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))
