"""Per-page SEO conformance rules.

:func:`evaluate_rules` looks at one page in isolation. Rules that need the
whole result set cannot be decided here:

* ``title_no_duplicates`` and ``description_no_duplicates`` are always
  ``PASS``; duplicate clusters are reported by :mod:`metaaudit.analysis`.
* ``hreflang_reciprocal`` and ``og_not_divergent`` are reserved keys that
  this pass never computes, so they stay at ``FAIL``.
"""

from __future__ import annotations

import re
from typing import Dict, Optional, Tuple

from .extractor import estimate_pixel_width
from .models import FAIL, PASS, Intent, MetadataSnapshot, RuleResultMap
from .utils.urls import locale_for_url, resolve_url

DEFAULT_BRAND = "Text Case Converter"

RULE_KEYS: Tuple[str, ...] = (
    "title_length",
    "title_contains_tool_concept",
    "title_avoids_boilerplate",
    "title_no_duplicates",
    "title_brand_consistent",
    "title_no_truncation",
    "description_length",
    "description_specific",
    "description_no_duplicates",
    "description_no_language_mismatch",
    "canonical_self_referential",
    "canonical_not_cross_language",
    "noindex_absent",
    "hreflang_reciprocal",
    "og_title_present",
    "og_description_present",
    "og_not_divergent",
)

# Decided after the crawl, never by this module.
PASS_BY_DEFAULT = frozenset({"title_no_duplicates", "description_no_duplicates"})

TITLE_MIN_CHARS = 45
TITLE_MAX_CHARS = 65
TITLE_MAX_PIXELS = 600
DESCRIPTION_MIN_CHARS = 120
DESCRIPTION_MAX_CHARS = 160

TOOL_KEYWORDS: Tuple[str, ...] = (
    "generator",
    "converter",
    "tool",
    "online",
    "free",
    "create",
    "make",
    "build",
    "transform",
    "convert",
    "counter",
    "analyzer",
    "translator",
    "encoder",
    "decoder",
)

# Matched case-sensitively. The brand itself is listed, so a branded title
# never passes this rule.
BOILERPLATE_PHRASES: Tuple[str, ...] = (
    "Free Online Tool",
    "Professional Text Tools",
    "Text Case Converter",
)

GENERIC_PHRASES: Tuple[str, ...] = (
    "use this free online tool",
    "fast and reliable",
    "no limits",
    "no signup",
    "professional text transformation tools",
)

_LATIN_ONLY_RE = re.compile(r"^[a-zA-Z\s\-—|.,!?]+$")
_CYRILLIC_RE = re.compile(r"[а-яё]", re.IGNORECASE)


def _verdict(condition: bool) -> str:
    return PASS if condition else FAIL


def _present(value: Optional[str]) -> bool:
    return bool(value and value.strip())


def effective_fields(snapshot: MetadataSnapshot, intent: Intent | None) -> Dict[str, Optional[str]]:
    """Return the values the rules judge: registry intent first, page second."""

    return {
        "title": (intent.title if intent else None) or snapshot.title,
        "description": (intent.description if intent else None) or snapshot.meta_description,
        "og_title": (intent.alternate_title if intent else None) or snapshot.og_title,
        "og_description": (intent.short_description if intent else None) or snapshot.og_description,
    }


def _title_rules(title: str, pixel_width: int, brand: str) -> RuleResultMap:
    lowered = title.lower()
    length = len(title)
    return {
        "title_length": _verdict(
            TITLE_MIN_CHARS <= length <= TITLE_MAX_CHARS or pixel_width <= TITLE_MAX_PIXELS
        ),
        "title_contains_tool_concept": _verdict(any(word in lowered for word in TOOL_KEYWORDS)),
        "title_avoids_boilerplate": _verdict(not any(phrase in title for phrase in BOILERPLATE_PHRASES)),
        "title_brand_consistent": _verdict(title.endswith((f" | {brand}", f" — {brand}"))),
        "title_no_truncation": _verdict(pixel_width <= TITLE_MAX_PIXELS),
    }


def _description_rules(description: str) -> RuleResultMap:
    lowered = description.lower()
    return {
        "description_length": _verdict(DESCRIPTION_MIN_CHARS <= len(description) <= DESCRIPTION_MAX_CHARS),
        "description_specific": _verdict(not any(phrase in lowered for phrase in GENERIC_PHRASES)),
    }


def _canonical_rules(canonical: str, page_url: str) -> RuleResultMap:
    try:
        resolved = resolve_url(canonical, page_url)
    except ValueError:
        # Unparseable href: neither rule can hold.
        return {"canonical_self_referential": FAIL, "canonical_not_cross_language": FAIL}
    page_is_ru = locale_for_url(page_url) == "ru"
    canonical_is_ru = locale_for_url(resolved) == "ru"
    return {
        "canonical_self_referential": _verdict(resolved == resolve_url(page_url, page_url)),
        "canonical_not_cross_language": _verdict(page_is_ru == canonical_is_ru),
    }


def _language_matches(page_url: str, title: Optional[str], description: Optional[str]) -> bool:
    if not title or not description:
        return False
    if locale_for_url(page_url) == "ru":
        return bool(_CYRILLIC_RE.search(title) and _CYRILLIC_RE.search(description))
    return bool(_LATIN_ONLY_RE.match(title) and _LATIN_ONLY_RE.match(description))


def robots_allows_indexing(robots_meta: Optional[str]) -> bool:
    return not robots_meta or "noindex" not in robots_meta.lower()


def evaluate_rules(
    snapshot: MetadataSnapshot,
    intent: Intent | None = None,
    *,
    brand: str = DEFAULT_BRAND,
) -> RuleResultMap:
    """Evaluate every rule in :data:`RULE_KEYS` for one page.

    A rule whose input is missing keeps its default (``FAIL`` except for the
    keys in :data:`PASS_BY_DEFAULT`). The result depends only on the
    arguments.
    """

    rules: RuleResultMap = {key: PASS if key in PASS_BY_DEFAULT else FAIL for key in RULE_KEYS}
    values = effective_fields(snapshot, intent)
    title = values["title"]
    description = values["description"]

    if title:
        pixel_width = snapshot.title_pixel_width or estimate_pixel_width(title)
        rules.update(_title_rules(title, pixel_width, brand))

    if description:
        rules.update(_description_rules(description))

    if snapshot.canonical:
        rules.update(_canonical_rules(snapshot.canonical, snapshot.url))

    rules["noindex_absent"] = _verdict(robots_allows_indexing(snapshot.robots_meta))
    rules["og_title_present"] = _verdict(_present(values["og_title"]))
    rules["og_description_present"] = _verdict(_present(values["og_description"]))
    rules["description_no_language_mismatch"] = _verdict(
        _language_matches(snapshot.url, title, description)
    )
    return rules


__all__ = [
    "BOILERPLATE_PHRASES",
    "DEFAULT_BRAND",
    "GENERIC_PHRASES",
    "PASS_BY_DEFAULT",
    "RULE_KEYS",
    "TOOL_KEYWORDS",
    "effective_fields",
    "evaluate_rules",
    "robots_allows_indexing",
]
