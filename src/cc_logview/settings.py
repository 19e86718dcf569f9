"""Settings file I/O and resolved runtime configuration for cc-logview.

Manages a JSON settings file at XDG_CONFIG_HOME/cc-logview/settings.json.
Resolution order: defaults < settings file < environment < CLI overrides.

Import as: import cc_logview.settings
"""

from __future__ import annotations

import dataclasses
import json
import logging
import os
import tempfile
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)


def get_config_path() -> Path:
    """Return path to settings file.

    Uses XDG_CONFIG_HOME (default ~/.config) / cc-logview / settings.json.
    """
    config_home = os.environ.get("XDG_CONFIG_HOME", os.path.expanduser("~/.config"))
    return Path(config_home) / "cc-logview" / "settings.json"


def load_settings() -> dict:
    """Load settings from JSON file. Returns empty dict on missing/corrupt file."""
    path = get_config_path()
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        return {}
    except (json.JSONDecodeError, OSError) as exc:
        logger.warning("ignoring unreadable settings file %s: %s", path, exc)
        return {}
    if not isinstance(data, dict):
        logger.warning("ignoring settings file %s: top level is not an object", path)
        return {}
    return data


def save_settings(data: dict) -> None:
    """Atomic write of settings dict to JSON file.

    Creates parent directories if needed. Writes to temp file then renames
    to avoid partial writes on crash.
    """
    path = get_config_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_path = tempfile.mkstemp(dir=path.parent, suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2)
            f.write("\n")
        os.replace(tmp_path, path)
    except Exception:
        try:
            os.unlink(tmp_path)
        except OSError:
            pass
        raise


def load_setting(key: str, default=None):
    """Load a single setting by key. Returns default if absent."""
    return load_settings().get(key, default)


def save_setting(key: str, value) -> None:
    """Save a single setting by key (merge into existing settings)."""
    data = load_settings()
    data[key] = value
    save_settings(data)


def save_theme(theme_name: str) -> None:
    """Persist theme choice to settings."""
    save_setting("theme", theme_name)


def load_theme() -> str | None:
    """Load saved theme name, or None if unset."""
    theme = load_setting("theme")
    return theme if isinstance(theme, str) else None


# ─── Resolved configuration ──────────────────────────────────────────────────


@dataclass(frozen=True)
class ResolvedConfig:
    follow: bool = True
    line_wrap: bool = True
    collapse_threshold: int = 10
    summary_lines: int = 3
    render_cache_capacity: int = 1000
    theme: str | None = None


_BOOL_KEYS = ("follow", "line_wrap")
_POSITIVE_INT_KEYS = ("collapse_threshold", "summary_lines", "render_cache_capacity")

ENV_OVERRIDES = {
    "CC_LOGVIEW_FOLLOW": "follow",
    "CC_LOGVIEW_LINE_WRAP": "line_wrap",
    "CC_LOGVIEW_CACHE_CAPACITY": "render_cache_capacity",
}

_TRUE_STRINGS = {"1", "true", "yes", "on"}
_FALSE_STRINGS = {"0", "false", "no", "off"}


def _coerce(key: str, value: object, source: str) -> object | None:
    """Validate one value for key. Returns None (and warns) when invalid."""
    if key in _BOOL_KEYS:
        if isinstance(value, bool):
            return value
        if isinstance(value, str) and value.strip().lower() in _TRUE_STRINGS | _FALSE_STRINGS:
            return value.strip().lower() in _TRUE_STRINGS
    elif key in _POSITIVE_INT_KEYS:
        if isinstance(value, str):
            try:
                value = int(value.strip())
            except ValueError:
                pass
        if isinstance(value, int) and not isinstance(value, bool) and value > 0:
            return value
    elif key == "theme":
        if isinstance(value, str) and value:
            return value
    else:
        return None
    logger.warning("ignoring invalid %s value for %s: %r", source, key, value)
    return None


def _apply(values: dict, layer: Mapping[str, object], source: str) -> None:
    for key, raw in layer.items():
        if raw is None:
            continue
        value = _coerce(key, raw, source)
        if value is not None:
            values[key] = value


def resolve_config(
    overrides: Mapping[str, object] | None = None,
    *,
    environ: Mapping[str, str] | None = None,
    file_settings: Mapping[str, object] | None = None,
) -> ResolvedConfig:
    """Layer defaults, settings file, environment and CLI overrides.

    Unknown keys are ignored; None-valued overrides mean "not given".
    """
    environ = os.environ if environ is None else environ
    file_settings = load_settings() if file_settings is None else file_settings
    known = {f.name for f in dataclasses.fields(ResolvedConfig)}

    values: dict = {}
    _apply(values, {k: v for k, v in file_settings.items() if k in known}, "settings file")
    _apply(
        values,
        {key: environ[name] for name, key in ENV_OVERRIDES.items() if name in environ},
        "environment",
    )
    if overrides:
        _apply(values, {k: v for k, v in overrides.items() if k in known}, "command line")
    return ResolvedConfig(**values)
