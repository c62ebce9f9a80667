"""End-to-end audit run: registry -> crawl -> artifacts."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

import httpx

from .config import AuditConfig
from .crawler import AuditCrawler
from .http import PageFetcher
from .models import AuditReport
from .registry import FileRegistryProvider, RegistryProvider, tool_entries, validate_registry
from .report import ArtifactPaths, log_summary, write_artifacts
from .tracing import log_event, trace

_LOGGER = logging.getLogger("pipeline")


@dataclass(slots=True)
class AuditRun:
    report: AuditReport
    artifacts: ArtifactPaths


async def run_audit(
    config: AuditConfig,
    *,
    provider: Optional[RegistryProvider] = None,
    client: Optional[httpx.AsyncClient] = None,
) -> AuditRun:
    """Run one full audit and write its artifacts.

    Registry and artifact failures propagate; page fetch failures end up in
    the report.
    """

    provider = provider or FileRegistryProvider(config.registry_path)
    with trace("audit.run", logger=_LOGGER, base_url=config.base_url):
        entries = provider.get_all_entries()
        for issue in validate_registry(tool_entries(entries)):
            log_event(
                _LOGGER,
                logging.WARNING,
                "registry.validation",
                slug=issue.slug,
                locale=issue.locale,
                field=issue.field,
                message=issue.message,
            )

        async with PageFetcher(
            timeout=config.timeout_seconds,
            user_agent=config.user_agent,
            client=client,
        ) as fetcher:
            crawler = AuditCrawler(
                fetcher,
                base_url=config.base_url,
                request_delay=config.request_delay_seconds,
                brand=config.brand,
            )
            report = await crawler.run(entries)

        artifacts = write_artifacts(report, config.output_dir)

    log_summary(report)
    return AuditRun(report=report, artifacts=artifacts)


__all__ = ["AuditRun", "run_audit"]
