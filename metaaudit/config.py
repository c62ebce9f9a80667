"""Configuration helpers for the metadata audit."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict

_LOGGER = logging.getLogger(__name__)
_PROJECT_ROOT = Path(__file__).resolve().parent.parent
_DEFAULT_CONFIG_PATH = _PROJECT_ROOT / "configs" / "audit.json"

BASE_URL_ENV = "METAAUDIT_BASE_URL"


@dataclass(slots=True)
class AuditConfig:
    """Settings for one audit run."""

    base_url: str = "https://textcaseconverter.net"
    registry_path: Path = _PROJECT_ROOT / "configs" / "registry.json"
    output_dir: Path = Path("reports")
    brand: str = "Text Case Converter"
    timeout_seconds: float = 10.0
    request_delay_seconds: float = 0.1
    user_agent: str = "Metadata-Audit-Bot/1.0"

    @classmethod
    def load(cls, path: Path | None = None) -> "AuditConfig":
        """Load configuration from disk, then apply the base URL override.

        Relative ``registry_path``/``output_dir`` values are resolved against
        the directory holding the config file.
        """

        config_path = path or _DEFAULT_CONFIG_PATH
        data: Dict[str, Any] = {}

        if config_path.exists():
            try:
                data = json.loads(config_path.read_text(encoding="utf-8"))
            except json.JSONDecodeError as exc:
                _LOGGER.warning("Unable to decode audit config at %s: %s", config_path, exc)
                data = {}

        known = {f.name for f in fields(cls)}
        filtered: Dict[str, Any] = {key: value for key, value in data.items() if key in known}

        for key in ("registry_path", "output_dir"):
            if key in filtered:
                candidate = Path(filtered[key])
                if not candidate.is_absolute():
                    candidate = config_path.parent / candidate
                filtered[key] = candidate

        env_base_url = os.environ.get(BASE_URL_ENV)
        if env_base_url:
            filtered["base_url"] = env_base_url

        config = cls(**filtered)
        config.base_url = config.base_url.rstrip("/")
        return config


def load_audit_config(path: Path | None = None) -> AuditConfig:
    """Helper to load the audit configuration."""

    return AuditConfig.load(path)


__all__ = ["AuditConfig", "BASE_URL_ENV", "load_audit_config"]
