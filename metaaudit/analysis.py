"""Second pass over written audit artifacts.

Works on the JSON records produced by :func:`metaaudit.report.write_artifacts`
and derives what a single page cannot tell: duplicate titles and
descriptions across a locale, rule pass rates and an issue catalog. The
per-page ``*_no_duplicates`` values in the artifacts are left untouched;
duplicates are reported here instead.
"""

from __future__ import annotations

import csv
import io
import logging
import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

from jinja2 import Environment, FileSystemLoader

from .extractor import estimate_pixel_width
from .models import FAIL, PASS, Serializable
from .report import EN_RESULTS_FILENAME, ERRORS_FILENAME, RU_RESULTS_FILENAME
from .storage import read_json, write_json, write_text
from .tracing import log_event

_LOGGER = logging.getLogger("analysis")
_TEMPLATE_DIR = Path(__file__).resolve().parent / "templates"

Record = Mapping[str, Any]

REPORT_RULES = (
    "title_length",
    "title_contains_tool_concept",
    "title_avoids_boilerplate",
    "title_brand_consistent",
    "title_no_truncation",
    "description_length",
    "description_specific",
    "canonical_self_referential",
    "canonical_not_cross_language",
    "noindex_absent",
    "og_title_present",
    "og_description_present",
)

CSV_FIELDS = (
    "url",
    "http_status",
    "title",
    "title_pixel_width",
    "meta_description",
    "description_character_count",
    "h1",
    "canonical",
    "robots_meta",
    "x_robots_tag",
    "og_title",
    "og_description",
    "hreflang",
    "detected_language",
    "indexable",
    "registry_title",
    "registry_description",
    "registry_og_title",
    "registry_og_description",
) + REPORT_RULES

# (rule, evidence) pairs reported when any EN page fails the rule.
_CATALOG_RULES = (
    ("title_length", "Titles outside 45-65 character range or >600px width"),
    ("title_brand_consistent", "Missing brand suffix in title"),
    ("description_length", "Descriptions outside 120-160 character range"),
    ("canonical_self_referential", "Canonical URL not self-referential"),
    ("og_title_present", "Missing or empty og:title"),
)
MAX_SAMPLE_URLS = 10

CSV_FILENAMES = {"en": "english-audit.csv", "ru": "russian-audit.csv"}
ISSUE_CATALOG_FILENAME = "issue-catalog.json"
SUMMARY_METRICS_FILENAME = "summary-metrics.json"
SUMMARY_TEXT_FILENAME = "audit-summary.txt"


@dataclass(slots=True)
class DuplicateGroup(Serializable):
    value: str
    count: int
    urls: List[str] = field(default_factory=list)


@dataclass(slots=True)
class Issue(Serializable):
    issue_id: int
    rule: str
    evidence_example: str
    affected_urls_count: int
    sample_urls: List[str] = field(default_factory=list)


def find_duplicates(records: Sequence[Record], field_name: str) -> List[DuplicateGroup]:
    """Group records sharing a non-empty ``field_name`` value, first-seen order."""

    groups: Dict[str, List[str]] = {}
    for record in records:
        value = record.get(field_name)
        if value:
            groups.setdefault(value, []).append(record.get("url", ""))
    return [
        DuplicateGroup(value=value, count=len(urls), urls=urls)
        for value, urls in groups.items()
        if len(urls) > 1
    ]


def rule_stats(records: Sequence[Record]) -> Dict[str, Dict[str, int]]:
    stats = {rule: {"pass": 0, "fail": 0, "total": 0} for rule in REPORT_RULES}
    for record in records:
        rules = record.get("rules") or {}
        for rule in REPORT_RULES:
            verdict = rules.get(rule)
            if not verdict:
                continue
            stats[rule]["total"] += 1
            stats[rule]["pass" if verdict == PASS else "fail"] += 1
    return stats


def _failing_urls(records: Sequence[Record], rule: str) -> List[str]:
    return [
        record.get("url", "")
        for record in records
        if (record.get("rules") or {}).get(rule) == FAIL
    ]


def build_issue_catalog(records: Sequence[Record], *, brand: Optional[str] = None) -> List[Issue]:
    """List failing rules and duplicate clusters for one locale's records."""

    issues: List[Issue] = []
    stats = rule_stats(records)

    for rule, evidence in _CATALOG_RULES:
        if not stats[rule]["fail"]:
            continue
        if rule == "title_brand_consistent" and brand:
            evidence = f'Missing " | {brand}" or " — {brand}" suffix'
        issues.append(
            Issue(
                issue_id=len(issues) + 1,
                rule=rule,
                evidence_example=evidence,
                affected_urls_count=stats[rule]["fail"],
                sample_urls=_failing_urls(records, rule)[:MAX_SAMPLE_URLS],
            )
        )

    for group in find_duplicates(records, "registry_title"):
        issues.append(
            Issue(
                issue_id=len(issues) + 1,
                rule="title_no_duplicates",
                evidence_example=f'Duplicate title: "{group.value}"',
                affected_urls_count=group.count,
                sample_urls=group.urls[:MAX_SAMPLE_URLS],
            )
        )
    for group in find_duplicates(records, "registry_description"):
        issues.append(
            Issue(
                issue_id=len(issues) + 1,
                rule="description_no_duplicates",
                evidence_example=f'Duplicate description: "{group.value[:100]}..."',
                affected_urls_count=group.count,
                sample_urls=group.urls[:MAX_SAMPLE_URLS],
            )
        )
    return issues


def _pass_rate(stats: Mapping[str, Mapping[str, int]], rule: str) -> int:
    total = stats[rule]["total"]
    if not total:
        return 0
    return int(math.floor(stats[rule]["pass"] / total * 100 + 0.5))


def _duplicate_count(records: Sequence[Record], field_name: str) -> int:
    return sum(group.count for group in find_duplicates(records, field_name))


def summary_metrics(en: Sequence[Record], ru: Sequence[Record]) -> Dict[str, Dict[str, int]]:
    en_stats = rule_stats(en)
    ru_stats = rule_stats(ru)
    return {
        "total_tool_pages_scanned": {"en": len(en), "ru": len(ru)},
        "title_rules_pass_rate": {
            "en": _pass_rate(en_stats, "title_length"),
            "ru": _pass_rate(ru_stats, "title_length"),
        },
        "description_rules_pass_rate": {
            "en": _pass_rate(en_stats, "description_length"),
            "ru": _pass_rate(ru_stats, "description_length"),
        },
        "duplicate_counts": {
            "titles_en": _duplicate_count(en, "registry_title"),
            "titles_ru": _duplicate_count(ru, "registry_title"),
            "descriptions_en": _duplicate_count(en, "registry_description"),
            "descriptions_ru": _duplicate_count(ru, "registry_description"),
        },
        "canonical_errors": {
            "en": en_stats["canonical_self_referential"]["fail"],
            "ru": ru_stats["canonical_self_referential"]["fail"],
        },
        "cross_language_canonical_errors": {
            "en": en_stats["canonical_not_cross_language"]["fail"],
            "ru": ru_stats["canonical_not_cross_language"]["fail"],
        },
    }


def _csv_cell(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _csv_row(record: Record) -> List[str]:
    title = record.get("registry_title") or record.get("title")
    description = record.get("registry_description") or record.get("meta_description")
    rules = record.get("rules") or {}
    row: Dict[str, Any] = dict(record)
    row.update(
        {
            "title": title,
            "title_pixel_width": estimate_pixel_width(title) if title else 0,
            "meta_description": description,
            "description_character_count": len(description) if description else 0,
            "og_title": record.get("registry_og_title") or record.get("og_title"),
            "og_description": record.get("registry_og_description") or record.get("og_description"),
            "hreflang": ";".join(
                f"{link.get('lang')}:{link.get('href')}" for link in record.get("hreflang") or []
            ),
        }
    )
    row.update({rule: rules.get(rule) or "N/A" for rule in REPORT_RULES})
    return [_csv_cell(row.get(name)) for name in CSV_FIELDS]


def records_to_csv(records: Iterable[Record]) -> str:
    """Render records as CSV with every cell quoted.

    Title and description columns hold the registry value when there is one.
    """

    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow(CSV_FIELDS)
    for record in records:
        writer.writerow(_csv_row(record))
    return buffer.getvalue()


def render_summary(
    *,
    base_url: str,
    user_agent: str,
    metrics: Mapping[str, Any],
    issues: Sequence[Issue],
    errors: Sequence[Record] = (),
    generated_at: Optional[datetime] = None,
) -> str:
    environment = Environment(
        loader=FileSystemLoader(str(_TEMPLATE_DIR)),
        autoescape=False,
        keep_trailing_newline=True,
    )
    template = environment.get_template("audit_summary.txt.j2")
    return template.render(
        base_url=base_url,
        user_agent=user_agent,
        generated_at=(generated_at or datetime.now(timezone.utc)).isoformat(),
        metrics=metrics,
        issues=[issue.to_dict() for issue in issues],
        errors=list(errors),
        files=[CSV_FILENAMES["en"], CSV_FILENAMES["ru"], ISSUE_CATALOG_FILENAME, SUMMARY_METRICS_FILENAME],
    )


def build_reports(
    input_dir: Path,
    output_dir: Path,
    *,
    base_url: str,
    user_agent: str,
    brand: Optional[str] = None,
) -> Dict[str, Path]:
    """Read the crawl artifacts from ``input_dir`` and write every report."""

    input_dir = Path(input_dir)
    output_dir = Path(output_dir)
    en = read_json(input_dir / EN_RESULTS_FILENAME)
    ru = read_json(input_dir / RU_RESULTS_FILENAME)
    errors_path = input_dir / ERRORS_FILENAME
    errors = read_json(errors_path) if errors_path.exists() else []

    issues = build_issue_catalog(en, brand=brand)
    metrics = summary_metrics(en, ru)
    written = {
        "en_csv": write_text(records_to_csv(en), output_dir / CSV_FILENAMES["en"]),
        "ru_csv": write_text(records_to_csv(ru), output_dir / CSV_FILENAMES["ru"]),
        "issues": write_json([issue.to_dict() for issue in issues], output_dir / ISSUE_CATALOG_FILENAME),
        "metrics": write_json(metrics, output_dir / SUMMARY_METRICS_FILENAME),
        "summary": write_text(
            render_summary(
                base_url=base_url,
                user_agent=user_agent,
                metrics=metrics,
                issues=issues,
                errors=errors,
            ),
            output_dir / SUMMARY_TEXT_FILENAME,
        ),
    }
    log_event(
        _LOGGER,
        logging.INFO,
        "analysis.reports.written",
        issues=len(issues),
        files={key: str(path) for key, path in written.items()},
    )
    return written


__all__ = [
    "CSV_FIELDS",
    "DuplicateGroup",
    "Issue",
    "REPORT_RULES",
    "build_issue_catalog",
    "build_reports",
    "find_duplicates",
    "records_to_csv",
    "render_summary",
    "rule_stats",
    "summary_metrics",
]
