"""
Builder settings.

Settings live in a small JSON file, e.g.:

    {
      "registrationUrlPath": "/s/registration",
      "canGetPublicUrl": true,
      "facets": {"timeRange": false},
      "copyAckSeconds": 4,
      "backend": {"kind": "file", "path": "data.json"}
    }

Loading is deliberately forgiving: a missing or broken file gives the
defaults, and unknown keys are ignored, so the CLI always starts.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Optional

from regurl.actions import ACK_DELAY_SECONDS
from regurl.backend import DEFAULT_TIMEOUT, Backend, HttpBackend, JsonFileBackend
from regurl.errors import RegurlError, UnknownFilterError
from regurl.filters import ALL_FACETS, Facet, parse_facets


logger = logging.getLogger(__name__)

FILE_BACKEND = "file"
HTTP_BACKEND = "http"


@dataclass(frozen=True)
class BackendSettings:
    kind: str = FILE_BACKEND
    path: Optional[str] = None
    url: Optional[str] = None
    timeout: float = DEFAULT_TIMEOUT


@dataclass(frozen=True)
class BuilderSettings:
    registration_url_path: Optional[str] = None
    can_get_public_url: bool = True
    facets: frozenset[Facet] = ALL_FACETS
    copy_ack_seconds: float = ACK_DELAY_SECONDS
    backend: BackendSettings = field(default_factory=BackendSettings)

    def with_overrides(self, **changes: Any) -> BuilderSettings:
        """
        Copy with the given non-None values replaced (CLI flags win over the file).
        """
        return replace(self, **{k: v for k, v in changes.items() if v is not None})


def _facets_from(raw: Any) -> frozenset[Facet]:
    """
    Accept {"timeRange": false, ...} (missing = enabled) or a list of
    enabled facet names.
    """
    if isinstance(raw, dict):
        disabled = parse_facets(k for k, enabled in raw.items() if not enabled)
        return ALL_FACETS - disabled
    if isinstance(raw, list):
        return parse_facets(raw)
    return ALL_FACETS


def _backend_from(raw: Any) -> BackendSettings:
    if not isinstance(raw, dict):
        return BackendSettings()
    kind = str(raw.get("kind", FILE_BACKEND)).strip().lower()
    try:
        timeout = float(raw.get("timeout", DEFAULT_TIMEOUT))
    except (TypeError, ValueError):
        timeout = DEFAULT_TIMEOUT
    return BackendSettings(kind=kind, path=raw.get("path"), url=raw.get("url"), timeout=timeout)


def settings_from_dict(data: dict[str, Any]) -> BuilderSettings:
    defaults = BuilderSettings()
    try:
        facets = _facets_from(data.get("facets"))
    except UnknownFilterError as e:
        logger.warning("Ignoring facets setting: %s", e)
        facets = ALL_FACETS

    try:
        ack = float(data.get("copyAckSeconds", defaults.copy_ack_seconds))
    except (TypeError, ValueError):
        ack = defaults.copy_ack_seconds

    path = data.get("registrationUrlPath")
    return BuilderSettings(
        registration_url_path=str(path) if path else None,
        can_get_public_url=bool(data.get("canGetPublicUrl", defaults.can_get_public_url)),
        facets=facets,
        copy_ack_seconds=ack,
        backend=_backend_from(data.get("backend")),
    )


def load_settings(path: str | Path | None = None) -> BuilderSettings:
    """
    Load settings from `path`. Missing path/file or invalid JSON -> defaults.
    """
    if path is None:
        return BuilderSettings()

    settings_path = Path(path)
    if not settings_path.exists():
        logger.info("Settings file %s not found, using defaults", settings_path)
        return BuilderSettings()

    try:
        data = json.loads(settings_path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError, UnicodeDecodeError) as e:
        logger.warning("Could not read settings %s: %s", settings_path, e)
        return BuilderSettings()

    if not isinstance(data, dict):
        logger.warning("Settings %s is not a JSON object, using defaults", settings_path)
        return BuilderSettings()
    return settings_from_dict(data)


def build_backend(settings: BackendSettings) -> Backend:
    if settings.kind == HTTP_BACKEND:
        if not settings.url:
            raise RegurlError("HTTP backend needs a url (use --api)")
        return HttpBackend(settings.url, timeout=settings.timeout)
    if settings.kind == FILE_BACKEND:
        if not settings.path:
            raise RegurlError("File backend needs a path (use --data)")
        return JsonFileBackend(settings.path)
    raise RegurlError(f"Unknown backend kind: {settings.kind!r}")
