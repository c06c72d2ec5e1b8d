"""
unsurf/utils/logger.py

Centralized logging configuration for the project.
Every module obtains its logger via get_logger(name=__name__).
"""

import logging

from unsurf.config import Config


# Private functions _______________________________________________________________________________

def _formatter() -> logging.Formatter:
    """Formatter built from the LOG_FORMAT / LOG_DATE_FORMAT settings."""
    return logging.Formatter(fmt=Config.LOG_FORMAT, datefmt=Config.LOG_DATE_FORMAT)


def _configure_logger(logger: logging.Logger) -> logging.Logger:
    """
    Apply the project level, a single stream handler and the project format.
    Args:
        logger (logging.Logger): The logger to configure
    Returns:
        logging.Logger: The configured logger
    """
    logger.setLevel(Config.LOG_LEVEL)

    # one handler per logger, even when get_logger is called repeatedly
    if not logger.handlers:
        logger.addHandler(logging.StreamHandler())

    # pytest's caplog may attach handlers of its own; keep the format uniform
    for handler in logger.handlers:
        handler.setFormatter(fmt=_formatter())

    logger.propagate = False
    return logger


# Exports _________________________________________________________________________________________

def get_logger(name: str) -> logging.Logger:
    """
    Get a configured logger by name.
    Args:
        name (str): Logger name, normally the calling module's __name__.
    Returns:
        logging.Logger: Configured logger instance
    """
    return _configure_logger(logging.getLogger(name=name))
