"""Versioning settings and JSON persistence helpers."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import asdict, dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, Mapping

__all__ = ["VersioningSettings", "SettingsStore"]

LOGGER = logging.getLogger(__name__)
_SETTINGS_DIR = Path.home() / ".queryconsole"
_DEFAULT_SETTINGS_PATH = _SETTINGS_DIR / "settings.json"
_SETTINGS_VERSION = 1
_BOOL_ENV_OVERRIDES: Mapping[str, str] = {
    "QUERYCONSOLE_SEED_INITIAL_VERSION": "seed_initial_version",
    "QUERYCONSOLE_DEBUG_LOGGING": "debug_logging",
}
_FLOAT_ENV_OVERRIDES: Mapping[str, str] = {
    "QUERYCONSOLE_DEBOUNCE_SECONDS": "debounce_seconds",
}
_INT_ENV_OVERRIDES: Mapping[str, str] = {
    "QUERYCONSOLE_MAX_VERSIONS": "max_versions",
}
_TRUE_VALUES = {"1", "true", "yes", "on", "debug"}
_DEFAULT_DEBOUNCE_SECONDS = 0.5
_DEFAULT_MAX_VERSIONS = 50


@dataclass(slots=True)
class VersioningSettings:
    """Tunables shared by every console opened through a registry."""

    debounce_seconds: float = _DEFAULT_DEBOUNCE_SECONDS
    max_versions: int = _DEFAULT_MAX_VERSIONS
    seed_initial_version: bool = True
    initial_description: str = "Initial content"
    debug_logging: bool = False


class SettingsStore:
    """Persistence adapter for :class:`VersioningSettings`."""

    def __init__(self, path: Path | None = None) -> None:
        self._path = path or _DEFAULT_SETTINGS_PATH

    @property
    def path(self) -> Path:
        return self._path

    def load(self, *, overrides: Mapping[str, Any] | None = None) -> VersioningSettings:
        """Load settings from disk, then apply explicit and environment overrides."""

        payload = self._read_payload()
        settings = VersioningSettings()
        if payload:
            data = _filter_fields(payload)
            try:
                settings = VersioningSettings(**data)
            except TypeError as exc:
                LOGGER.warning("Settings payload contained unexpected data: %s", exc)
                settings = VersioningSettings()
        if overrides:
            settings = _apply_overrides(settings, overrides, source="runtime")
        settings = _apply_env_overrides(settings)
        return _normalize(settings)

    def save(self, settings: VersioningSettings) -> Path:
        """Persist settings with an atomic temp-file swap."""

        payload: Dict[str, Any] = asdict(settings)
        payload["version"] = _SETTINGS_VERSION
        body = json.dumps(payload, indent=2, sort_keys=True)
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self._path.with_suffix(".tmp")
        tmp_path.write_text(body, encoding="utf-8")
        tmp_path.replace(self._path)
        LOGGER.debug("Settings saved to %s", self._path)
        return self._path

    def _read_payload(self) -> Dict[str, Any]:
        if not self._path.exists():
            return {}
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return {}
        except json.JSONDecodeError as exc:
            LOGGER.warning("Settings file %s is not valid JSON: %s", self._path, exc)
            return {}
        if not isinstance(data, Mapping):
            LOGGER.warning("Settings file %s does not contain an object", self._path)
            return {}
        return dict(data)


def _filter_fields(payload: Mapping[str, Any]) -> Dict[str, Any]:
    allowed = {item.name for item in fields(VersioningSettings)}
    return {key: value for key, value in payload.items() if key in allowed}


def _apply_overrides(
    settings: VersioningSettings,
    overrides: Mapping[str, Any],
    *,
    source: str,
) -> VersioningSettings:
    filtered = {key: value for key, value in _filter_fields(overrides).items() if value is not None}
    if filtered:
        LOGGER.debug("Applying %s settings overrides: %s", source, sorted(filtered))
        settings = replace(settings, **filtered)
    return settings


def _apply_env_overrides(settings: VersioningSettings) -> VersioningSettings:
    overrides: Dict[str, Any] = {}
    for env_name, field_name in _BOOL_ENV_OVERRIDES.items():
        value = os.environ.get(env_name)
        if value is not None:
            overrides[field_name] = value.strip().lower() in _TRUE_VALUES
    for env_name, field_name in _INT_ENV_OVERRIDES.items():
        value = os.environ.get(env_name)
        if value is None:
            continue
        try:
            overrides[field_name] = int(value, 10)
        except ValueError:
            LOGGER.warning("Environment override %s=%s is not a valid integer", env_name, value)
    for env_name, field_name in _FLOAT_ENV_OVERRIDES.items():
        value = os.environ.get(env_name)
        if value is None:
            continue
        try:
            overrides[field_name] = float(value)
        except ValueError:
            LOGGER.warning("Environment override %s=%s is not a valid float", env_name, value)
    if overrides:
        settings = _apply_overrides(settings, overrides, source="environment")
    return settings


def _normalize(settings: VersioningSettings) -> VersioningSettings:
    debounce = settings.debounce_seconds
    max_versions = settings.max_versions
    try:
        debounce = max(0.0, float(debounce))
    except (TypeError, ValueError):
        LOGGER.warning("Invalid debounce_seconds %r; using default", debounce)
        debounce = _DEFAULT_DEBOUNCE_SECONDS
    try:
        max_versions = max(1, int(max_versions))
    except (TypeError, ValueError):
        LOGGER.warning("Invalid max_versions %r; using default", max_versions)
        max_versions = _DEFAULT_MAX_VERSIONS
    return replace(settings, debounce_seconds=debounce, max_versions=max_versions)
