"""
Logging Configuration
=====================

structlog setup for command-line entry points. Library modules only call
``structlog.get_logger()`` and never configure logging themselves.
"""

import logging

import structlog


def configure_logging(level: str = "INFO", json: bool = False) -> None:
    """
    Configure structlog processors.

    Args:
        level: Minimum level name (DEBUG, INFO, WARNING, ...)
        json: Render JSON lines instead of the console format
    """
    numeric_level = logging.getLevelName(level.upper())
    if not isinstance(numeric_level, int):
        raise ValueError(f"unknown log level: {level}")

    renderer = structlog.processors.JSONRenderer() if json else structlog.dev.ConsoleRenderer()
    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        cache_logger_on_first_use=False,
    )
