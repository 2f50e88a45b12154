"""structlog configuration shared by the API process and its stdlib loggers."""

import logging

import structlog

from irl.config import Settings

# Libraries that log every request/statement at INFO.
_NOISY_LOGGERS = ("httpx", "httpcore", "aiosmtplib", "sqlalchemy.engine")


def setup_logging(settings: Settings) -> None:
    """JSON lines in production (``log_format=json``), coloured console output otherwise."""
    level = getattr(logging, settings.log_level.upper(), logging.INFO)
    renderer: structlog.types.Processor = (
        structlog.processors.JSONRenderer() if settings.log_format == "json" else structlog.dev.ConsoleRenderer()
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            renderer,
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    # irl.gamification.* log through plain stdlib loggers
    logging.basicConfig(level=level)
    logging.getLogger("irl").setLevel(level)
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))
