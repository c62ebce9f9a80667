"""Shared pytest fixtures for the metadata audit test-suite."""

from __future__ import annotations

from pathlib import Path
from typing import Callable, Dict, List, Union

import sys

import httpx
import pytest

ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from metaaudit.models import Intent, MetadataSnapshot, RegistryEntry
from metaaudit.registry import StaticRegistryProvider

BASE_URL = "https://example.com"

Route = Union[httpx.Response, Exception, Callable[[httpx.Request], httpx.Response]]


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
def fixtures_dir() -> Path:
    """Return the root directory containing reusable fixture files."""

    return Path(__file__).parent / "fixtures"


@pytest.fixture
def html_loader(fixtures_dir: Path) -> Callable[[str], str]:
    """Return a callable that loads HTML fixture files by name."""

    def _load(name: str) -> str:
        path = fixtures_dir / "html" / name
        return path.read_text(encoding="utf-8")

    return _load


@pytest.fixture
def base_url() -> str:
    return BASE_URL


@pytest.fixture
def en_intent() -> Intent:
    return Intent(
        title="UUID Generator — Create UUID v1/v4 Identifiers",
        description=(
            "Generate UUIDs v1 (time-based) and v4 (random) safely. Copy, download, "
            "and bulk-generate for apps, tests, and databases."
        ),
        alternateTitle="UUID Generator",
        shortDescription="Generate UUID v1/v4 identifiers.",
    )


@pytest.fixture
def ru_intent() -> Intent:
    return Intent(
        title="Генератор UUID — Идентификаторы v1/v4",
        description=(
            "Генерируйте UUID v1 (по времени) и v4 (случайные). Копирование, скачивание "
            "и массовая генерация для приложений и БД."
        ),
        shortDescription="UUID v1/v4 генерация.",
    )


def make_entry(slug: str, en: Intent, ru: Intent, *, entry_type: str = "tool") -> RegistryEntry:
    prefix = "/tools" if entry_type == "tool" else "/category"
    return RegistryEntry(
        slug=slug,
        pathname=f"{prefix}/{slug}",
        type=entry_type,
        i18n={"en": en, "ru": ru},
    )


@pytest.fixture
def uuid_entry(en_intent: Intent, ru_intent: Intent) -> RegistryEntry:
    return make_entry("uuid-generator", en_intent, ru_intent)


@pytest.fixture
def registry_entries(en_intent: Intent, ru_intent: Intent) -> List[RegistryEntry]:
    """Two tools with a category page between them."""

    return [
        make_entry("uuid-generator", en_intent, ru_intent),
        make_entry("random-generators", en_intent, ru_intent, entry_type="category"),
        make_entry("md5-hash", en_intent, ru_intent),
    ]


@pytest.fixture
def registry_provider(registry_entries: List[RegistryEntry]) -> StaticRegistryProvider:
    return StaticRegistryProvider(registry_entries)


@pytest.fixture
def snapshot_factory() -> Callable[..., MetadataSnapshot]:
    """Build snapshots for an EN tool page with selected fields overridden."""

    def _build(**overrides) -> MetadataSnapshot:
        fields = {"url": f"{BASE_URL}/tools/uuid-generator", "http_status": 200}
        fields.update(overrides)
        return MetadataSnapshot(**fields)

    return _build


@pytest.fixture
def mock_client() -> Callable[[Dict[str, Route]], httpx.AsyncClient]:
    """Return a factory for clients answering from a URL -> route table.

    A route is a response, an exception to raise, or a handler callable.
    Unknown URLs answer 404. Every request is appended to ``client.seen``.
    """

    def _factory(routes: Dict[str, Route]) -> httpx.AsyncClient:
        seen: List[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            route = routes.get(str(request.url))
            if route is None:
                return httpx.Response(404, text="<html><title>Not found</title></html>")
            if isinstance(route, Exception):
                raise route
            if callable(route):
                return route(request)
            return route

        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        client.seen = seen  # type: ignore[attr-defined]
        return client

    return _factory
