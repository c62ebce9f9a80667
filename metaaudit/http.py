"""HTTP fetcher with explicit redirect following."""

from __future__ import annotations

import logging
from types import TracebackType
from typing import Dict, Optional, Type
from urllib.parse import urljoin

import httpx

from .exceptions import FetchError
from .models import FetchResponse
from .tracing import log_event

DEFAULT_USER_AGENT = "Metadata-Audit-Bot/1.0"
DEFAULT_TIMEOUT = 10.0
MAX_REDIRECTS = 20

_ACCEPT = "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8"
_ACCEPT_LANGUAGE = "en-US,en;q=0.5"


def _is_redirect(response: httpx.Response) -> bool:
    return 300 <= response.status_code < 400 and "location" in response.headers


class PageFetcher:
    """Fetch pages one hop at a time so every redirect is observed.

    Non-redirect responses are returned whatever their status. Timeouts,
    transport and decoding failures and unusable redirect targets raise
    :class:`FetchError`. Nothing is retried.
    """

    def __init__(
        self,
        *,
        timeout: float = DEFAULT_TIMEOUT,
        user_agent: str = DEFAULT_USER_AGENT,
        max_redirects: int = MAX_REDIRECTS,
        client: httpx.AsyncClient | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self.timeout = timeout
        self.max_redirects = max_redirects
        self.headers: Dict[str, str] = {
            "User-Agent": user_agent,
            "Accept": _ACCEPT,
            "Accept-Language": _ACCEPT_LANGUAGE,
        }
        self._client = client
        self._owns_client = client is None
        self.logger = logger or logging.getLogger("http")

    async def __aenter__(self) -> "PageFetcher":
        return self

    async def __aexit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc: Optional[BaseException],
        tb: Optional[TracebackType],
    ) -> None:
        await self.aclose()

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(follow_redirects=False)
        return self._client

    async def aclose(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def fetch(self, url: str) -> FetchResponse:
        """GET ``url``, follow any redirect chain and return the final response."""

        current = url
        for hop in range(self.max_redirects + 1):
            response = await self._get(url, current)
            if not _is_redirect(response):
                log_event(
                    self.logger,
                    logging.INFO,
                    "http.response",
                    url=url,
                    final_url=current,
                    status_code=response.status_code,
                    redirects=hop,
                )
                return FetchResponse(
                    url=url,
                    final_url=current,
                    status_code=response.status_code,
                    headers={key.lower(): value for key, value in response.headers.items()},
                    content=response.text,
                )

            location = response.headers["location"]
            try:
                target = urljoin(current, location)
            except ValueError as exc:
                raise FetchError(url, f"Invalid redirect location: {location}") from exc
            log_event(
                self.logger,
                logging.INFO,
                "http.redirect",
                source=current,
                target=target,
                status_code=response.status_code,
            )
            current = target

        raise FetchError(url, "Too many redirects")

    async def _get(self, origin: str, url: str) -> httpx.Response:
        log_event(self.logger, logging.DEBUG, "http.request", method="GET", url=url, timeout=self.timeout)
        try:
            return await self.client.get(
                url,
                headers=self.headers,
                timeout=self.timeout,
                follow_redirects=False,
            )
        except httpx.TimeoutException as exc:
            raise FetchError(origin, "Request timeout") from exc
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            raise FetchError(origin, str(exc) or exc.__class__.__name__) from exc


__all__ = ["DEFAULT_TIMEOUT", "DEFAULT_USER_AGENT", "MAX_REDIRECTS", "PageFetcher"]
