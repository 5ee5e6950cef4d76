"""
Process-wide logging configuration.

Call ``setup_logging`` once at startup; modules obtain loggers with
``logging.getLogger(__name__)``.
"""
import logging
import sys
from typing import Optional

DEFAULT_FORMAT = "%(asctime)s | %(levelname)-7s | %(name)s | %(message)s"
DEFAULT_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

NOISY_LOGGERS = [
    "asyncio",
    "asyncpg",
    "sqlalchemy.engine",
    "sqlalchemy.pool",
    "uvicorn.access",
]

def setup_logging(
    debug: bool = False,
    log_format: Optional[str] = None,
    date_format: Optional[str] = None
) -> None:
    level = logging.DEBUG if debug else logging.INFO

    logging.basicConfig(
        level=level,
        format=log_format or DEFAULT_FORMAT,
        datefmt=date_format or DEFAULT_DATE_FORMAT,
        stream=sys.stdout,
        force=True
    )

    # keep driver chatter out of INFO output unless debugging
    if not debug:
        for loggerName in NOISY_LOGGERS:
            logging.getLogger(loggerName).setLevel(logging.WARNING)

    logging.getLogger(__name__).info("Logging configured: level=%s", logging.getLevelName(level))
