"""Data models used across the metadata audit."""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

PASS = "PASS"
FAIL = "FAIL"

RuleResultMap = Dict[str, str]


class Intent(BaseModel):
    """Registry-declared metadata for one locale of one catalog entry."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    title: str
    description: str
    alternate_title: Optional[str] = Field(default=None, alias="alternateTitle")
    short_description: Optional[str] = Field(default=None, alias="shortDescription")

    @field_validator("alternate_title", "short_description", mode="before")
    @classmethod
    def _blank_to_none(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value


class RegistryEntry(BaseModel):
    """One catalog entry as published by the content registry."""

    model_config = ConfigDict(extra="ignore")

    slug: str
    pathname: str
    type: str
    category: Optional[str] = None
    i18n: Dict[str, Intent] = Field(default_factory=dict)

    @field_validator("pathname")
    @classmethod
    def _ensure_leading_slash(cls, value: str) -> str:
        text = value.strip()
        if not text.startswith("/"):
            raise ValueError(f"pathname must start with '/': {value!r}")
        return text

    @property
    def is_tool(self) -> bool:
        return self.type == "tool"

    def intent_for(self, locale: str) -> Intent | None:
        """Return the :class:`Intent` for ``locale`` if the registry has one."""

        return self.i18n.get(locale)


@dataclass(slots=True)
class Serializable:
    """Base dataclass providing JSON-ready ``to_dict`` conversion."""

    def to_dict(self) -> Dict[str, Any]:
        def _convert(value: Any) -> Any:
            if isinstance(value, Serializable):
                return value.to_dict()
            if dataclasses.is_dataclass(value):
                return {f.name: _convert(getattr(value, f.name)) for f in dataclasses.fields(value)}
            if isinstance(value, datetime):
                return value.isoformat()
            if isinstance(value, list):
                return [_convert(item) for item in value]
            if isinstance(value, dict):
                return {key: _convert(val) for key, val in value.items()}
            return value

        return {f.name: _convert(getattr(self, f.name)) for f in dataclasses.fields(self)}


@dataclass(slots=True)
class FetchResponse:
    """Final (non-redirect) response of a fetch."""

    url: str
    final_url: str
    status_code: int
    headers: Dict[str, str]
    content: str


@dataclass(slots=True)
class HreflangLink(Serializable):
    lang: str
    href: str


@dataclass(slots=True)
class MetadataSnapshot(Serializable):
    """Metadata facts observed on one fetched page.

    Every field but ``url`` may be ``None`` when the page does not carry it.
    """

    url: str
    http_status: Optional[int] = None
    title: Optional[str] = None
    title_pixel_width: Optional[int] = None
    meta_description: Optional[str] = None
    description_character_count: Optional[int] = None
    h1: Optional[str] = None
    canonical: Optional[str] = None
    robots_meta: Optional[str] = None
    x_robots_tag: Optional[str] = None
    og_title: Optional[str] = None
    og_description: Optional[str] = None
    hreflang: List[HreflangLink] = field(default_factory=list)
    detected_language: Optional[str] = None


@dataclass(slots=True)
class AuditRecord(Serializable):
    """A snapshot with its indexability, mirrored registry intent and rule results."""

    snapshot: MetadataSnapshot
    indexable: bool
    rules: RuleResultMap
    registry_title: Optional[str] = None
    registry_description: Optional[str] = None
    registry_og_title: Optional[str] = None
    registry_og_description: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data = self.snapshot.to_dict()
        data["indexable"] = self.indexable
        data["registry_title"] = self.registry_title
        data["registry_description"] = self.registry_description
        data["registry_og_title"] = self.registry_og_title
        data["registry_og_description"] = self.registry_og_description
        data["rules"] = dict(self.rules)
        return data


@dataclass(slots=True)
class FetchFailure(Serializable):
    url: str
    error: str


@dataclass(slots=True)
class AuditReport(Serializable):
    """Everything one crawl produced."""

    started_at: datetime
    finished_at: datetime
    en: List[AuditRecord] = field(default_factory=list)
    ru: List[AuditRecord] = field(default_factory=list)
    errors: List[FetchFailure] = field(default_factory=list)

    @property
    def elapsed_seconds(self) -> float:
        return round((self.finished_at - self.started_at).total_seconds(), 3)


__all__ = [
    "AuditRecord",
    "AuditReport",
    "FAIL",
    "FetchFailure",
    "FetchResponse",
    "HreflangLink",
    "Intent",
    "MetadataSnapshot",
    "PASS",
    "RegistryEntry",
    "RuleResultMap",
    "Serializable",
]
