"""Command line entrypoint for the tool-page metadata audit."""

from __future__ import annotations

import asyncio
import logging
import sys

from dotenv import load_dotenv

from metaaudit import configure_logging
from metaaudit.config import load_audit_config
from metaaudit.exceptions import AuditError
from metaaudit.pipeline import run_audit
from metaaudit.tracing import log_event


def main() -> int:
    load_dotenv()
    configure_logging(level=logging.INFO)
    logger = logging.getLogger("audit")
    config = load_audit_config()
    try:
        run = asyncio.run(run_audit(config))
    except AuditError as exc:
        log_event(logger, logging.ERROR, "audit.failed", error=str(exc))
        return 1

    log_event(
        logger,
        logging.INFO,
        "audit.artifacts",
        en=str(run.artifacts.en),
        ru=str(run.artifacts.ru),
        errors=str(run.artifacts.errors),
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
