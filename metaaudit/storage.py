"""Persistence helpers for audit artifacts."""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any

from .exceptions import ArtifactWriteError
from .tracing import log_event, safe_json

_LOGGER = logging.getLogger("storage")


def _atomic_write(path: Path, content: str) -> Path:
    """Write ``content`` to a sibling temp file, then move it over ``path``."""

    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", dir=path.parent)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(content)
            os.replace(tmp_name, path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
    except OSError as exc:
        raise ArtifactWriteError(f"Unable to write {path}: {exc}") from exc
    return path


def write_json(data: Any, path: Path) -> Path:
    """Serialise ``data`` as one indented JSON document at ``path``."""

    log_event(_LOGGER, logging.DEBUG, "storage.write_json.start", path=str(path), data_type=type(data).__name__)
    content = json.dumps(safe_json(data), indent=2, ensure_ascii=False)
    _atomic_write(path, content)
    log_event(_LOGGER, logging.INFO, "storage.write_json.finish", path=str(path))
    return path


def write_text(content: str, path: Path) -> Path:
    """Write raw ``content`` to ``path``."""

    log_event(
        _LOGGER,
        logging.DEBUG,
        "storage.write_text.start",
        path=str(path),
        bytes=len(content.encode("utf-8")),
    )
    _atomic_write(path, content)
    log_event(_LOGGER, logging.INFO, "storage.write_text.finish", path=str(path))
    return path


def read_json(path: Path) -> Any:
    """Load a JSON artifact written by :func:`write_json`."""

    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise ArtifactWriteError(f"Unable to read {path}: {exc}") from exc


__all__ = ["read_json", "write_json", "write_text"]
