"""structlog configuration.

Learn: Every module grabs `structlog.get_logger()` and logs dotted event
names with keyword context (`logger.info("auth.registered", user_id=...)`).
merge_contextvars pulls in the request_id bound by RequestIdMiddleware, so
all entries for one request can be correlated.
"""

import logging

import structlog


def configure_logging(level: str = "INFO", json: bool = False) -> None:
    """Install the structlog processor chain. Safe to call more than once."""
    renderer = (
        structlog.processors.JSONRenderer()
        if json
        else structlog.dev.ConsoleRenderer()
    )
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, level.upper(), logging.INFO)
        ),
        cache_logger_on_first_use=False,
    )
