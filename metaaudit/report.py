"""Final report assembly: three artifacts and a run summary."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from .models import AuditReport
from .storage import write_json
from .tracing import log_event

EN_RESULTS_FILENAME = "audit-results-en.json"
RU_RESULTS_FILENAME = "audit-results-ru.json"
ERRORS_FILENAME = "audit-errors.json"


@dataclass(slots=True)
class ArtifactPaths:
    en: Path
    ru: Path
    errors: Path


def write_artifacts(report: AuditReport, output_dir: Path) -> ArtifactPaths:
    """Write the EN results, RU results and error list as separate documents.

    Each file is written whole; a failure raises
    :class:`~metaaudit.exceptions.ArtifactWriteError`.
    """

    output_dir = Path(output_dir)
    return ArtifactPaths(
        en=write_json([record.to_dict() for record in report.en], output_dir / EN_RESULTS_FILENAME),
        ru=write_json([record.to_dict() for record in report.ru], output_dir / RU_RESULTS_FILENAME),
        errors=write_json([failure.to_dict() for failure in report.errors], output_dir / ERRORS_FILENAME),
    )


def log_summary(report: AuditReport, logger: logging.Logger | None = None) -> None:
    """Log crawled counts, elapsed time and every failed URL."""

    logger = logger or logging.getLogger("report")
    log_event(
        logger,
        logging.INFO,
        "audit.summary",
        en_pages=len(report.en),
        ru_pages=len(report.ru),
        errors=len(report.errors),
        started_at=report.started_at,
        finished_at=report.finished_at,
        elapsed_seconds=report.elapsed_seconds,
    )
    for failure in report.errors:
        log_event(logger, logging.WARNING, "audit.summary.error", url=failure.url, error=failure.error)


__all__ = [
    "ArtifactPaths",
    "ERRORS_FILENAME",
    "EN_RESULTS_FILENAME",
    "RU_RESULTS_FILENAME",
    "log_summary",
    "write_artifacts",
]
