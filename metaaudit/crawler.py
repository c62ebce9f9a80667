"""Sequential crawl over the registry's tool pages."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from typing import Dict, Iterator, List, Optional, Protocol, Sequence, Tuple

from .exceptions import FetchError
from .extractor import extract_metadata
from .models import AuditRecord, AuditReport, FetchFailure, FetchResponse, Intent, RegistryEntry
from .registry import AUDITED_LOCALES, tool_entries
from .rules import DEFAULT_BRAND, evaluate_rules, robots_allows_indexing
from .tracing import log_event
from .utils.urls import RU_PREFIX

DEFAULT_REQUEST_DELAY = 0.1


class Fetcher(Protocol):
    async def fetch(self, url: str) -> FetchResponse:
        ...


def page_urls(base_url: str, entry: RegistryEntry) -> List[Tuple[str, str]]:
    """Return ``(locale, url)`` pairs for ``entry``, English first."""

    base = base_url.rstrip("/")
    return [("en", f"{base}{entry.pathname}"), ("ru", f"{base}{RU_PREFIX}{entry.pathname}")]


def build_record(response: FetchResponse, intent: Intent | None, *, brand: str = DEFAULT_BRAND) -> AuditRecord:
    """Turn one fetched page into an :class:`AuditRecord`."""

    snapshot = extract_metadata(response.content, response.final_url)
    snapshot.http_status = response.status_code
    snapshot.x_robots_tag = response.headers.get("x-robots-tag")
    indexable = robots_allows_indexing(snapshot.robots_meta) and snapshot.http_status == 200
    return AuditRecord(
        snapshot=snapshot,
        indexable=indexable,
        rules=evaluate_rules(snapshot, intent, brand=brand),
        registry_title=intent.title if intent else None,
        registry_description=intent.description if intent else None,
        registry_og_title=intent.alternate_title if intent else None,
        registry_og_description=intent.short_description if intent else None,
    )


class AuditCrawler:
    """Fetch, extract and evaluate every tool page, one request at a time.

    A :class:`FetchError` for one page is recorded in the report and the
    crawl moves on; nothing else is caught here.
    """

    def __init__(
        self,
        fetcher: Fetcher,
        *,
        base_url: str,
        request_delay: float = DEFAULT_REQUEST_DELAY,
        brand: str = DEFAULT_BRAND,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.fetcher = fetcher
        self.base_url = base_url.rstrip("/")
        self.request_delay = request_delay
        self.brand = brand
        self.logger = logger or logging.getLogger("crawler")

    def plan(self, entries: Sequence[RegistryEntry]) -> Iterator[Tuple[RegistryEntry, str, str]]:
        """Yield ``(entry, locale, url)`` in request order."""

        for entry in tool_entries(entries):
            for locale, url in page_urls(self.base_url, entry):
                yield entry, locale, url

    async def run(self, entries: Sequence[RegistryEntry]) -> AuditReport:
        requests = list(self.plan(entries))
        records: Dict[str, List[AuditRecord]] = {locale: [] for locale in AUDITED_LOCALES}
        errors: List[FetchFailure] = []
        started_at = datetime.now(timezone.utc)

        log_event(
            self.logger,
            logging.INFO,
            "crawler.start",
            base_url=self.base_url,
            pages=len(requests),
            started_at=started_at,
        )
        for index, (entry, locale, url) in enumerate(requests):
            if index:
                await asyncio.sleep(self.request_delay)
            log_event(self.logger, logging.INFO, "crawler.fetch", locale=locale, slug=entry.slug, url=url)
            try:
                response = await self.fetcher.fetch(url)
            except FetchError as exc:
                log_event(
                    self.logger,
                    logging.ERROR,
                    "crawler.fetch.error",
                    locale=locale,
                    url=url,
                    error=str(exc),
                )
                errors.append(FetchFailure(url=url, error=str(exc)))
                continue

            record = build_record(response, entry.intent_for(locale), brand=self.brand)
            records[locale].append(record)
            log_event(
                self.logger,
                logging.DEBUG,
                "crawler.fetch.done",
                locale=locale,
                url=record.snapshot.url,
                status_code=record.snapshot.http_status,
                indexable=record.indexable,
            )

        report = AuditReport(
            started_at=started_at,
            finished_at=datetime.now(timezone.utc),
            en=records["en"],
            ru=records["ru"],
            errors=errors,
        )
        log_event(
            self.logger,
            logging.INFO,
            "crawler.finish",
            en=len(report.en),
            ru=len(report.ru),
            errors=len(report.errors),
            elapsed_seconds=report.elapsed_seconds,
        )
        return report


__all__ = ["AuditCrawler", "DEFAULT_REQUEST_DELAY", "Fetcher", "build_record", "page_urls"]
