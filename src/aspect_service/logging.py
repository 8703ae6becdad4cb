"""Logging configuration for the aspect ratio service."""

from __future__ import annotations

import logging

import structlog

# third-party loggers stay at WARNING or above
_QUIET_LOGGERS = ("uvicorn.access", "httpx", "PIL")


def configure_logging(level: str | int = logging.INFO) -> None:
    """Route stdlib logging through basicConfig and render structlog events as JSON.

    ``level`` accepts a logging constant or a name such as ``"DEBUG"``.
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.strip().upper())
        if not isinstance(level, int):
            level = logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )
    logging.getLogger().setLevel(level)
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_logger_name,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
