"""Pattern based metadata extraction.

Each field is pulled out of the raw HTML with its own regular expression and
the first match wins. This is intentionally not a DOM parser: attributes are
expected in the order the patterns list them (``name`` before ``content``,
``rel`` before ``hreflang`` before ``href``) and markup inside ``<title>`` or
``<h1>`` prevents a match. Switching to a real parser would change which
values are found.
"""

from __future__ import annotations

import re
from typing import List, Optional

from .models import HreflangLink, MetadataSnapshot

# Rough average glyph width of a SERP title. Not font metrics.
AVERAGE_CHAR_WIDTH_PX = 6

_FLAGS = re.IGNORECASE

_TITLE_RE = re.compile(r"<title[^>]*>([^<]*)</title>", _FLAGS)
_H1_RE = re.compile(r"<h1[^>]*>([^<]*)</h1>", _FLAGS)
_DESCRIPTION_RE = re.compile(
    r"""<meta[^>]*name=["']description["'][^>]*content=["']([^"']*)["'][^>]*>""", _FLAGS
)
_ROBOTS_RE = re.compile(r"""<meta[^>]*name=["']robots["'][^>]*content=["']([^"']*)["'][^>]*>""", _FLAGS)
_CANONICAL_RE = re.compile(r"""<link[^>]*rel=["']canonical["'][^>]*href=["']([^"']*)["'][^>]*>""", _FLAGS)
_OG_TITLE_RE = re.compile(
    r"""<meta[^>]*property=["']og:title["'][^>]*content=["']([^"']*)["'][^>]*>""", _FLAGS
)
_OG_DESCRIPTION_RE = re.compile(
    r"""<meta[^>]*property=["']og:description["'][^>]*content=["']([^"']*)["'][^>]*>""", _FLAGS
)
_HREFLANG_TAG_RE = re.compile(
    r"""<link[^>]*rel=["']alternate["'][^>]*hreflang=["'][^"']*["'][^>]*href=["'][^"']*["'][^>]*>""",
    _FLAGS,
)
_HREFLANG_ATTR_RE = re.compile(r"""hreflang=["']([^"']*)["']""", _FLAGS)
_HREF_ATTR_RE = re.compile(r"""href=["']([^"']*)["']""", _FLAGS)
_HTML_LANG_RE = re.compile(r"""<html[^>]*lang=["']([^"']*)["'][^>]*>""", _FLAGS)


def estimate_pixel_width(text: str) -> int:
    """Approximate rendered width of ``text`` as ``len(text) * 6``."""

    return len(text) * AVERAGE_CHAR_WIDTH_PX


def _first(pattern: re.Pattern[str], html: str, *, strip: bool = True) -> Optional[str]:
    match = pattern.search(html)
    if match is None:
        return None
    value = match.group(1)
    return value.strip() if strip else value


def _hreflang_links(html: str) -> List[HreflangLink]:
    links: List[HreflangLink] = []
    for tag in _HREFLANG_TAG_RE.finditer(html):
        lang = _HREFLANG_ATTR_RE.search(tag.group(0))
        href = _HREF_ATTR_RE.search(tag.group(0))
        if lang and href:
            links.append(HreflangLink(lang=lang.group(1), href=href.group(1)))
    return links


def extract_metadata(html: str, url: str) -> MetadataSnapshot:
    """Build a :class:`MetadataSnapshot` for ``html`` served at ``url``.

    ``http_status`` and ``x_robots_tag`` come from the response, not the
    markup, and are left for the caller to fill in.
    """

    snapshot = MetadataSnapshot(url=url)

    title = _first(_TITLE_RE, html)
    if title is not None:
        snapshot.title = title
        snapshot.title_pixel_width = estimate_pixel_width(title)

    description = _first(_DESCRIPTION_RE, html)
    if description is not None:
        snapshot.meta_description = description
        snapshot.description_character_count = len(description)

    snapshot.h1 = _first(_H1_RE, html)
    snapshot.canonical = _first(_CANONICAL_RE, html)
    snapshot.robots_meta = _first(_ROBOTS_RE, html)
    snapshot.og_title = _first(_OG_TITLE_RE, html)
    snapshot.og_description = _first(_OG_DESCRIPTION_RE, html)
    snapshot.hreflang = _hreflang_links(html)
    snapshot.detected_language = _first(_HTML_LANG_RE, html, strip=False)
    return snapshot


__all__ = ["AVERAGE_CHAR_WIDTH_PX", "estimate_pixel_width", "extract_metadata"]
