"""Logging setup.

Routes structlog through the standard library so ``settings.log_level``
filters catalog events the same way it filters everything else.
"""

import logging
import sys

import structlog

from catalogquery.infrastructure.config import settings


def resolve_log_level(name: str) -> int:
    """Map a level name such as "info" to its logging constant.

    Raises:
        ValueError: If the name is not a standard logging level.
    """
    level = getattr(logging, name.upper(), None)
    if not isinstance(level, int):
        raise ValueError(f"Unknown log level: {name}")
    return level


def configure_logging(level: str | None = None) -> int:
    """Configure stdlib logging and structlog.

    Args:
        level: Level name (default ``settings.log_level``, or DEBUG when
            ``settings.debug`` is set).

    Returns:
        The numeric level applied to the root logger.
    """
    if level is None:
        level = "DEBUG" if settings.debug else settings.log_level
    numeric_level = resolve_log_level(level)

    logging.basicConfig(
        level=numeric_level,
        format="%(message)s",
        stream=sys.stderr,
    )
    # basicConfig leaves an already configured root logger alone
    logging.getLogger().setLevel(numeric_level)

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.JSONRenderer(),
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
    return numeric_level
