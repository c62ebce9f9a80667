"""Utilities for working with page URLs and their locale."""

from __future__ import annotations

from urllib.parse import urljoin, urlsplit, urlunsplit

RU_PREFIX = "/ru"

_DEFAULT_PORTS = {"http": 80, "https": 443}


def is_russian_path(path: str) -> bool:
    """Return ``True`` for ``/ru`` and anything below ``/ru/``."""

    return path == RU_PREFIX or path.startswith(RU_PREFIX + "/")


def locale_for_url(url: str) -> str:
    """Return ``"ru"`` when ``url`` points into the Russian tree, else ``"en"``."""

    return "ru" if is_russian_path(urlsplit(url).path) else "en"


def normalise_url(url: str) -> str:
    """Lowercase scheme and host, drop the scheme's default port and give an
    empty path a ``/``.

    Everything else (path case, trailing slashes, query) is kept as-is so the
    comparison stays exact. Raises :class:`ValueError` for unparseable URLs.
    """

    parts = urlsplit(url.strip())
    scheme = parts.scheme.lower()
    netloc = parts.netloc.lower()
    if parts.port is not None and parts.port == _DEFAULT_PORTS.get(scheme):
        netloc = netloc.rsplit(":", 1)[0]
    path = parts.path or "/"
    return urlunsplit((scheme, netloc, path, parts.query, parts.fragment))


def resolve_url(reference: str, base: str) -> str:
    """Resolve ``reference`` against ``base`` and normalise the result."""

    return normalise_url(urljoin(base, reference.strip()))


__all__ = ["RU_PREFIX", "is_russian_path", "locale_for_url", "normalise_url", "resolve_url"]
