"""Tests for the redirect-following page fetcher."""

from __future__ import annotations

import httpx
import pytest

from metaaudit.exceptions import FetchError
from metaaudit.http import DEFAULT_USER_AGENT, PageFetcher

PAGE = "https://example.com/tools/uuid-generator"


@pytest.mark.anyio
async def test_fetch_returns_body_status_and_lowercased_headers(mock_client) -> None:
    """Given a 200 page When fetched Then content, status and lower-cased headers are returned."""

    client = mock_client(
        {PAGE: httpx.Response(200, text="<title>ok</title>", headers={"X-Robots-Tag": "noarchive"})}
    )

    async with PageFetcher(client=client) as fetcher:
        response = await fetcher.fetch(PAGE)

    assert response.url == PAGE
    assert response.final_url == PAGE
    assert response.status_code == 200
    assert response.content == "<title>ok</title>"
    assert response.headers["x-robots-tag"] == "noarchive"

    sent = client.seen[0]
    assert sent.headers["user-agent"] == DEFAULT_USER_AGENT
    assert sent.headers["accept"].startswith("text/html")
    assert sent.headers["accept-language"] == "en-US,en;q=0.5"
    await client.aclose()


@pytest.mark.anyio
async def test_fetch_follows_redirect_chain(mock_client) -> None:
    """Given a 301 -> 302 -> 200 chain When fetched Then the final page is returned."""

    client = mock_client(
        {
            PAGE: httpx.Response(301, headers={"Location": "/tools/uuid"}),
            "https://example.com/tools/uuid": httpx.Response(
                302, headers={"Location": "https://www.example.com/uuid"}
            ),
            "https://www.example.com/uuid": httpx.Response(200, text="<title>Final</title>"),
        }
    )

    async with PageFetcher(client=client) as fetcher:
        response = await fetcher.fetch(PAGE)

    assert response.url == PAGE
    assert response.final_url == "https://www.example.com/uuid"
    assert response.content == "<title>Final</title>"
    assert [str(request.url) for request in client.seen] == [
        PAGE,
        "https://example.com/tools/uuid",
        "https://www.example.com/uuid",
    ]
    await client.aclose()


@pytest.mark.anyio
@pytest.mark.parametrize("status", [404, 500])
async def test_fetch_returns_error_statuses(mock_client, status: int) -> None:
    """Given an error status When fetched Then the response is returned instead of raised."""

    client = mock_client({PAGE: httpx.Response(status, text="<title>Error</title>")})

    async with PageFetcher(client=client) as fetcher:
        response = await fetcher.fetch(PAGE)

    assert response.status_code == status
    assert response.content == "<title>Error</title>"
    await client.aclose()


@pytest.mark.anyio
async def test_fetch_without_location_is_final(mock_client) -> None:
    """Given a 3xx status without Location When fetched Then it is returned as the final response."""

    client = mock_client({PAGE: httpx.Response(304)})

    async with PageFetcher(client=client) as fetcher:
        response = await fetcher.fetch(PAGE)

    assert response.status_code == 304
    assert len(client.seen) == 1
    await client.aclose()


@pytest.mark.anyio
async def test_fetch_timeout_raises_fetch_error(mock_client) -> None:
    """Given a timing-out page When fetched Then FetchError carries "Request timeout"."""

    client = mock_client({PAGE: httpx.ReadTimeout("timed out")})

    async with PageFetcher(client=client, timeout=0.5) as fetcher:
        with pytest.raises(FetchError) as excinfo:
            await fetcher.fetch(PAGE)

    assert excinfo.value.url == PAGE
    assert str(excinfo.value) == "Request timeout"
    await client.aclose()


@pytest.mark.anyio
async def test_fetch_timeout_during_redirect_reports_requested_url(mock_client) -> None:
    """Given a redirect target that times out When fetched Then the error names the requested URL."""

    client = mock_client(
        {
            PAGE: httpx.Response(301, headers={"Location": "/slow"}),
            "https://example.com/slow": httpx.ConnectTimeout("slow"),
        }
    )

    async with PageFetcher(client=client) as fetcher:
        with pytest.raises(FetchError) as excinfo:
            await fetcher.fetch(PAGE)

    assert excinfo.value.url == PAGE
    assert excinfo.value.message == "Request timeout"
    await client.aclose()


@pytest.mark.anyio
async def test_fetch_transport_error_raises_fetch_error(mock_client) -> None:
    """Given a connection failure When fetched Then FetchError carries the transport message."""

    client = mock_client({PAGE: httpx.ConnectError("connection refused")})

    async with PageFetcher(client=client) as fetcher:
        with pytest.raises(FetchError) as excinfo:
            await fetcher.fetch(PAGE)

    assert str(excinfo.value) == "connection refused"
    await client.aclose()


@pytest.mark.anyio
async def test_fetch_stops_redirect_loops(mock_client) -> None:
    """Given a page redirecting to itself When fetched Then the redirect cap raises."""

    def loop(request: httpx.Request) -> httpx.Response:
        return httpx.Response(302, headers={"Location": str(request.url)})

    client = mock_client({PAGE: loop})

    async with PageFetcher(client=client, max_redirects=2) as fetcher:
        with pytest.raises(FetchError) as excinfo:
            await fetcher.fetch(PAGE)

    assert str(excinfo.value) == "Too many redirects"
    assert len(client.seen) == 3
    await client.aclose()


@pytest.mark.anyio
async def test_fetcher_leaves_injected_client_open(mock_client) -> None:
    """Given an injected client When the fetcher closes Then the client stays usable."""

    client = mock_client({PAGE: httpx.Response(200, text="")})

    async with PageFetcher(client=client):
        pass

    assert not client.is_closed
    await client.aclose()


@pytest.mark.anyio
async def test_fetcher_closes_its_own_client() -> None:
    """Given no injected client When the fetcher closes Then its own client is closed."""

    fetcher = PageFetcher()
    client = fetcher.client

    await fetcher.aclose()

    assert client.is_closed


@pytest.mark.anyio
async def test_fetch_rejects_unparseable_redirect_location(mock_client) -> None:
    """Given a redirect to a malformed URL When fetched Then FetchError names the bad location."""

    client = mock_client({PAGE: httpx.Response(301, headers={"Location": "http://[bad"})})

    async with PageFetcher(client=client) as fetcher:
        with pytest.raises(FetchError) as excinfo:
            await fetcher.fetch(PAGE)

    assert excinfo.value.url == PAGE
    assert str(excinfo.value) == "Invalid redirect location: http://[bad"
    assert len(client.seen) == 1
    await client.aclose()


@pytest.mark.anyio
async def test_fetch_undecodable_body_raises_fetch_error(mock_client) -> None:
    """Given a body that does not match its Content-Encoding When fetched Then FetchError is raised."""

    def broken_gzip(request: httpx.Request) -> httpx.Response:
        return httpx.Response(
            200,
            headers={"Content-Encoding": "gzip"},
            stream=httpx.ByteStream(b"definitely not gzip"),
        )

    client = mock_client({PAGE: broken_gzip})

    async with PageFetcher(client=client) as fetcher:
        with pytest.raises(FetchError) as excinfo:
            await fetcher.fetch(PAGE)

    assert excinfo.value.url == PAGE
    await client.aclose()
