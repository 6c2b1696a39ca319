"""Bootstrap helpers and command-line entry point."""

from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from dataclasses import asdict, replace
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Sequence, TextIO, get_type_hints

from .events import EventBus
from .settings import SettingsStore, VersioningSettings
from .utils import logging as logging_utils
from .versioning.diff_session import DiffPreview
from .versioning.models import InvalidModificationError, modification_from_payload
from .versioning.patches import compute_modified_content
from .versioning.registry import ConsoleRegistry
from .versioning.scheduling import Scheduler

_TRUE_VALUES = {"1", "true", "yes", "on", "debug"}
_FALSE_VALUES = {"0", "false", "no", "off", "disabled"}
_LOGGER = logging.getLogger(__name__)


def configure_logging(
    settings: VersioningSettings | None = None,
    *,
    debug: bool = False,
    log_dir: Path | str | None = None,
    force: bool = False,
) -> Path:
    """Configure logging from ``settings``; ``debug`` forces debug output on."""

    active = settings or VersioningSettings()
    if debug and not active.debug_logging:
        active = replace(active, debug_logging=True)
    log_path = logging_utils.configure_from_settings(active, log_dir=log_dir, force=force)
    _LOGGER.debug("Logging configured (debug=%s, path=%s)", active.debug_logging, log_path)
    return log_path


def load_settings(
    path: Optional[Path] = None,
    *,
    store: SettingsStore | None = None,
    overrides: Mapping[str, Any] | None = None,
) -> VersioningSettings:
    """Load persisted settings or fall back to defaults."""

    active_store = store or SettingsStore(path)
    try:
        return active_store.load(overrides=overrides)
    except OSError as exc:
        _LOGGER.warning("Failed to load settings from %s: %s", active_store.path, exc)
        return VersioningSettings()


def create_registry(
    settings: VersioningSettings | None = None,
    *,
    event_bus: EventBus | None = None,
    scheduler: Scheduler | None = None,
) -> ConsoleRegistry:
    """Build the console registry shared by every open console tab."""

    active = settings or VersioningSettings()
    _LOGGER.debug(
        "Creating console registry (debounce=%.2fs, max_versions=%d, seed=%s)",
        active.debounce_seconds,
        active.max_versions,
        active.seed_initial_version,
    )
    return ConsoleRegistry(settings=active, event_bus=event_bus or EventBus(), scheduler=scheduler)


def preview_modification(content: str, payload: Mapping[str, Any]) -> DiffPreview:
    """Decode ``payload`` and compute the preview a console would show for ``content``."""

    modification = modification_from_payload(payload)
    return DiffPreview(
        original_content=content,
        modified_content=compute_modified_content(content, modification),
        modification=modification,
    )


def main(argv: Sequence[str] | None = None, *, stream: TextIO | None = None) -> int:
    """Entry point for the ``queryconsole`` console script."""

    destination = stream or sys.stdout
    args = _parse_cli_args(argv)

    debug = _env_flag("QUERYCONSOLE_DEBUG", default=False)
    if args.log_dir or debug:
        configure_logging(debug=debug, log_dir=args.log_dir)

    settings_path = args.settings_path or os.environ.get("QUERYCONSOLE_SETTINGS_PATH")
    resolved_path = Path(settings_path).expanduser() if settings_path else None
    store = SettingsStore(resolved_path)
    try:
        overrides = _coerce_cli_overrides(args.overrides or [])
    except ValueError as exc:
        print(f"Invalid --set override: {exc}", file=sys.stderr)
        return 2

    settings = load_settings(resolved_path, store=store, overrides=overrides or None)
    if settings.debug_logging and not debug:
        configure_logging(settings, log_dir=args.log_dir, force=True)

    if args.dump_settings:
        _dump_settings(settings, store, overrides=overrides, stream=destination)
        return 0

    if args.preview:
        return _run_preview(args.preview, args.modification, stream=destination)

    print("Nothing to do; pass --dump-settings or --preview.", file=sys.stderr)
    return 1


def _run_preview(path: str, raw_payload: str | None, *, stream: TextIO) -> int:
    if not raw_payload:
        print("--preview requires --modification JSON", file=sys.stderr)
        return 2
    try:
        payload = json.loads(raw_payload)
    except json.JSONDecodeError as exc:
        print(f"Modification is not valid JSON: {exc}", file=sys.stderr)
        return 2
    try:
        content = Path(path).expanduser().read_text(encoding="utf-8")
    except OSError as exc:
        print(f"Cannot read {path}: {exc}", file=sys.stderr)
        return 2
    try:
        preview = preview_modification(content, payload)
    except InvalidModificationError as exc:
        print(f"Invalid modification: {exc}", file=sys.stderr)
        return 2

    diff = preview.unified_diff(filename=Path(path).name)
    stream.write(f"# {preview.action}: {preview.summary()}\n")
    if diff:
        stream.write(diff)
        stream.write("\n")
    return 0


def _parse_cli_args(argv: Sequence[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="queryconsole",
        description="Inspect query console versioning settings or preview AI modifications.",
    )
    parser.add_argument("--dump-settings", action="store_true", help="Print the effective settings and exit.")
    parser.add_argument("--settings-path", metavar="PATH", help="Override the default ~/.queryconsole/settings.json path.")
    parser.add_argument("--log-dir", metavar="PATH", help="Write logs to PATH instead of ~/.queryconsole/logs.")
    parser.add_argument(
        "--set",
        dest="overrides",
        metavar="KEY=VALUE",
        action="append",
        default=[],
        help="Override a setting for this run (repeatable).",
    )
    parser.add_argument("--preview", metavar="FILE", help="Console file to preview a modification against.")
    parser.add_argument(
        "--modification",
        metavar="JSON",
        help='Modification payload, e.g. {"action": "append", "content": "LIMIT 10"}.',
    )
    return parser.parse_args(argv)


def _env_flag(name: str, *, default: bool = False) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in _TRUE_VALUES


def _coerce_cli_overrides(items: Sequence[str]) -> Dict[str, Any]:
    overrides: Dict[str, Any] = {}
    type_hints = get_type_hints(VersioningSettings)
    for entry in items:
        if "=" not in entry:
            raise ValueError(f"Override '{entry}' must use KEY=VALUE syntax.")
        key, raw_value = entry.split("=", 1)
        key = key.strip()
        if key not in type_hints:
            raise ValueError(f"Unknown setting '{key}'.")
        overrides[key] = _coerce_value(type_hints[key], raw_value.strip())
    return overrides


def _coerce_value(annotation: Any, raw_value: str) -> Any:
    if annotation is bool:
        lowered = raw_value.lower()
        if lowered in _TRUE_VALUES:
            return True
        if lowered in _FALSE_VALUES:
            return False
        raise ValueError(f"Cannot coerce '{raw_value}' to a boolean.")
    if annotation is int:
        return int(raw_value, 10)
    if annotation is float:
        return float(raw_value)
    return raw_value


def _dump_settings(
    settings: VersioningSettings,
    store: SettingsStore,
    *,
    overrides: Mapping[str, Any],
    stream: TextIO,
) -> None:
    output = {
        "settings": asdict(settings),
        "meta": {
            "path": str(store.path),
            "cli_overrides": sorted(overrides.keys()),
            "environment_variables": sorted(name for name in os.environ if name.startswith("QUERYCONSOLE_")),
        },
    }
    json.dump(output, stream, indent=2)
    stream.write("\n")


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
