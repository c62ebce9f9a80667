"""Command line entrypoint for the second-pass audit reports."""

from __future__ import annotations

import logging
import sys

from dotenv import load_dotenv

from metaaudit import configure_logging
from metaaudit.analysis import build_reports
from metaaudit.config import load_audit_config
from metaaudit.exceptions import AuditError
from metaaudit.tracing import log_event


def main() -> int:
    load_dotenv()
    configure_logging(level=logging.INFO)
    logger = logging.getLogger("build_report")
    config = load_audit_config()
    try:
        build_reports(
            config.output_dir,
            config.output_dir,
            base_url=config.base_url,
            user_agent=config.user_agent,
            brand=config.brand,
        )
    except AuditError as exc:
        log_event(logger, logging.ERROR, "report.failed", error=str(exc))
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
