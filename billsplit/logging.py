from __future__ import annotations

import logging
import sys
from typing import Union

import structlog


def _configure_structlog(level: int) -> None:
    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.JSONRenderer(),
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.make_filtering_bound_logger(level),
        cache_logger_on_first_use=True,
    )


def configure_logging(level: Union[int, str] = logging.INFO) -> None:
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    logging.basicConfig(
        level=level,
        format="%(message)s",
        stream=sys.stderr,
    )
    _configure_structlog(level)


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    # Until the host configures logging, events go to stdlib logging (and
    # therefore never to stdout) instead of structlog's console default.
    if not structlog.is_configured():
        _configure_structlog(logging.DEBUG)
    return structlog.get_logger(name)
