"""Structured log events and timed spans."""

from __future__ import annotations

import json
import logging
import math
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Iterator, Optional

__all__ = ["Span", "log_event", "safe_json", "trace"]


def safe_json(value: Any) -> Any:
    """Return ``value`` converted into something :func:`json.dumps` accepts."""

    if value is None or isinstance(value, (str, int, bool)):
        return value

    if isinstance(value, float):
        if math.isnan(value) or math.isinf(value):
            return repr(value)
        return value

    if isinstance(value, datetime):
        return value.isoformat()

    if isinstance(value, (list, tuple, set)):
        return [safe_json(item) for item in value]

    if isinstance(value, dict):
        return {str(key): safe_json(val) for key, val in value.items()}

    to_dict = getattr(value, "to_dict", None)
    if callable(to_dict):
        return safe_json(to_dict())

    return repr(value)


def log_event(
    logger: logging.Logger,
    level: int,
    event: str,
    *,
    exc_info: bool | BaseException | None = None,
    **fields: Any,
) -> None:
    """Emit ``event`` and its ``fields`` as a single JSON log line.

    ``None`` valued fields are dropped to keep lines short.
    """

    payload: Dict[str, Any] = {"event": event}
    payload.update({key: safe_json(value) for key, value in fields.items() if value is not None})
    logger.log(level, json.dumps(payload, ensure_ascii=False, sort_keys=True), exc_info=exc_info)


@dataclass
class Span:
    """An open :func:`trace` block."""

    name: str
    logger: logging.Logger
    start_time: float
    fields: Dict[str, Any] = field(default_factory=dict)

    @property
    def elapsed_ms(self) -> float:
        return round((time.perf_counter() - self.start_time) * 1000, 2)


@contextmanager
def trace(name: str, *, logger: Optional[logging.Logger] = None, **fields: Any) -> Iterator[Span]:
    """Log ``trace.start``/``trace.end`` around a block, or ``trace.error`` if it raises."""

    logger = logger or logging.getLogger("trace")
    span = Span(name=name, logger=logger, start_time=time.perf_counter(), fields=dict(fields))
    log_event(logger, logging.INFO, "trace.start", trace=name, **fields)
    try:
        yield span
    except Exception as exc:
        log_event(
            logger,
            logging.ERROR,
            "trace.error",
            trace=name,
            duration_ms=span.elapsed_ms,
            error=repr(exc),
            **fields,
        )
        raise
    log_event(logger, logging.INFO, "trace.end", trace=name, duration_ms=span.elapsed_ms, **fields)
