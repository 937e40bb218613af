"""
Logging setup - structlog configuration for command-line runs.

Library code only calls structlog.get_logger(); rendering is decided here.
"""

import logging

import structlog


def configure_logging(json: bool = False, level: str = "INFO"):
    """
    Configure structlog processors and rendering.

    Args:
        json: Render one JSON object per line instead of console output
        level: Minimum log level name (e.g. "DEBUG", "INFO")
    """
    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
    ]

    if json:
        processors += [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        # ConsoleRenderer formats exc_info itself
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.getLevelName(level.upper())
        ),
        cache_logger_on_first_use=True,
    )
