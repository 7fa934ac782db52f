"""
logging_config.py — Centralized Logging Configuration for the storefront client

Sets up Loguru as the single logging backend. Intercepts Python's stdlib
logging module so httpx and any host application loggers route through
Loguru with the same format.

Business Rules:
- All logs go through Loguru (no direct print() or stdlib logging)
- JSON format in production for machine parsing
- Human-readable format in development
- Request IDs are bound by the API client (logger.bind(request_id=...))

Called by: host applications on startup, tests
Depends on: storefront/config.py (for log_level, environment)
"""

import logging
import sys

from loguru import logger

from storefront.config import Settings, get_settings


def setup_logging(settings: Settings | None = None) -> None:
    """Configure Loguru and intercept stdlib logging.

    Call once at startup, before issuing any requests.
    """
    settings = settings or get_settings()

    # Remove Loguru's default stderr handler so we control format
    logger.remove()

    log_level = settings.log_level.upper()

    if settings.is_production:
        logger.add(
            sys.stdout,
            level=log_level,
            format="{message}",
            serialize=True,  # JSON output
        )
    else:
        logger.add(
            sys.stdout,
            level=log_level,
            format=(
                "<green>{time:HH:mm:ss}</green> | "
                "<level>{level: <8}</level> | "
                "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
                "{extra[request_id]} {message}"
            ),
            colorize=True,
        )
    logger.configure(extra={"request_id": "-"})

    # Intercept stdlib logging → route through Loguru
    logging.basicConfig(handlers=[_InterceptHandler()], level=0, force=True)

    # Quiet noisy third-party loggers
    for noisy in ("httpx", "httpcore"):
        logging.getLogger(noisy).setLevel(logging.WARNING)

    logger.info("Logging configured", level=log_level, production=settings.is_production)


class _InterceptHandler(logging.Handler):
    """Route stdlib logging records to Loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        # Find the caller (skip frames from stdlib logging internals)
        frame, depth = logging.currentframe(), 0
        while frame and (depth == 0 or frame.f_code.co_filename == logging.__file__):
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(
            level, record.getMessage()
        )
