"""Logging setup shared by the audit command line tools."""

from __future__ import annotations

import logging
import sys
from typing import Optional


_LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"

# httpx logs every request at INFO; the fetcher emits its own events.
_NOISY_LOGGERS = ("httpx", "httpcore")


def configure_logging(level: int = logging.INFO, stream: Optional[logging.Handler] = None) -> None:
    """Route all log records to a single handler.

    Parameters
    ----------
    level:
        The logging level to apply across the root logger.
    stream:
        Optional handler. When omitted a handler pointing to ``sys.stdout``
        is used so progress lines land on standard output.
    """

    root_logger = logging.getLogger()
    handler: logging.Handler = stream if stream is not None else logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(_LOG_FORMAT))

    # Repeated calls (tests, both CLIs in one process) must not stack handlers.
    for existing in list(root_logger.handlers):
        root_logger.removeHandler(existing)

    root_logger.setLevel(level)
    root_logger.addHandler(handler)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))


__all__ = ["configure_logging"]
