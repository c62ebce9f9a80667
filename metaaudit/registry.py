"""Access to the content registry that declares intended page metadata."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterable, List, Protocol, Sequence

import yaml
from pydantic import ValidationError

from .exceptions import RegistryError
from .models import RegistryEntry, Serializable
from .tracing import log_event

_LOGGER = logging.getLogger("registry")

AUDITED_LOCALES = ("en", "ru")

# Recommended lengths the registry itself is checked against.
META_LIMITS: Dict[str, tuple[int, int]] = {
    "title": (30, 60),
    "description": (80, 160),
    "short_description": (40, 140),
}


class RegistryProvider(Protocol):
    def get_all_entries(self) -> List[RegistryEntry]:
        ...


class StaticRegistryProvider:
    """Serve a fixed, already parsed list of entries."""

    def __init__(self, entries: Iterable[RegistryEntry]) -> None:
        self._entries = list(entries)

    def get_all_entries(self) -> List[RegistryEntry]:
        return list(self._entries)


class FileRegistryProvider:
    """Load registry entries from a JSON or YAML document.

    The document is either a list of entries or a mapping with an
    ``entries`` list.
    """

    def __init__(self, path: Path) -> None:
        self.path = Path(path)

    def _read(self) -> Any:
        try:
            text = self.path.read_text(encoding="utf-8")
        except OSError as exc:
            raise RegistryError(f"Unable to read registry {self.path}: {exc}") from exc

        try:
            if self.path.suffix.lower() in {".yaml", ".yml"}:
                return yaml.safe_load(text)
            return json.loads(text)
        except (json.JSONDecodeError, yaml.YAMLError) as exc:
            raise RegistryError(f"Unable to decode registry {self.path}: {exc}") from exc

    def get_all_entries(self) -> List[RegistryEntry]:
        data = self._read()
        if isinstance(data, dict):
            data = data.get("entries")
        if not isinstance(data, list):
            raise RegistryError(f"Registry {self.path} must contain a list of entries")

        entries: List[RegistryEntry] = []
        for index, raw in enumerate(data):
            try:
                entries.append(RegistryEntry.model_validate(raw))
            except ValidationError as exc:
                raise RegistryError(f"Invalid registry entry #{index} in {self.path}: {exc}") from exc

        log_event(_LOGGER, logging.INFO, "registry.loaded", path=str(self.path), entries=len(entries))
        return entries


def tool_entries(entries: Sequence[RegistryEntry]) -> List[RegistryEntry]:
    """Keep only ``type == "tool"`` entries, in registry order."""

    return [entry for entry in entries if entry.is_tool]


@dataclass(slots=True)
class ValidationIssue(Serializable):
    slug: str
    locale: str
    field: str
    message: str


def validate_registry(entries: Sequence[RegistryEntry]) -> List[ValidationIssue]:
    """Report registry texts outside :data:`META_LIMITS` and missing locales."""

    issues: List[ValidationIssue] = []
    for entry in entries:
        for locale in AUDITED_LOCALES:
            intent = entry.intent_for(locale)
            if intent is None:
                issues.append(ValidationIssue(entry.slug, locale, "title", "Missing locale block"))
                continue
            for field_name, (minimum, maximum) in META_LIMITS.items():
                value = getattr(intent, field_name)
                if not value:
                    continue
                length = len(value.strip())
                if length < minimum or length > maximum:
                    issues.append(
                        ValidationIssue(
                            entry.slug,
                            locale,
                            field_name,
                            f"Length {length} outside recommended range {minimum}-{maximum}",
                        )
                    )
    return issues


__all__ = [
    "AUDITED_LOCALES",
    "FileRegistryProvider",
    "META_LIMITS",
    "RegistryProvider",
    "StaticRegistryProvider",
    "ValidationIssue",
    "tool_entries",
    "validate_registry",
]
