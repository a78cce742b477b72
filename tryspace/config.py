"""Persistent JSON config and resolved runtime settings.

Stores the workspace root, editor command and launch mode, clone options, and
theme preferences. All access is defensive: malformed or missing config falls
back safely to defaults and environment variables.
"""

from __future__ import annotations

import json
import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

from platformdirs import user_config_dir

from .editor import EDITOR_MODES

logger = logging.getLogger(__name__)

APP_NAME = "tryspace"
CONFIG_DIR = Path(user_config_dir(APP_NAME, appauthor=False))
CONFIG_STEM = "config"
DEFAULT_TRIES_PATH = Path("~") / "work" / "tries"


@dataclass(frozen=True)
class Settings:
    """Resolved configuration values consumed by the session."""

    tries_path: Path
    editor: str | None = None
    editor_mode: str = "block"
    shallow_clone: bool = False
    theme_name: str | None = None
    colors: dict[str, object] = field(default_factory=dict)
    is_first_run: bool = False
    config_path: Path | None = None


def expand_path(path_str: str) -> Path:
    """Expand a leading ``~`` into the user's home directory."""
    return Path(os.path.expanduser(path_str))


def config_path(environ: Mapping[str, str] | None = None) -> Path:
    """Return the config file path, honoring ``TRY_CONFIG=<stem>``."""
    env = os.environ if environ is None else environ
    stem = (env.get("TRY_CONFIG") or "").strip() or CONFIG_STEM
    name = stem if stem.endswith(".json") else f"{stem}.json"
    return CONFIG_DIR / name


def load_config(path: Path) -> dict[str, object]:
    """Load the persisted JSON config object.

    Returns an empty dict when the file is missing, unreadable, malformed, or
    does not decode to a top-level JSON object.
    """
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        return {}
    except (OSError, ValueError) as exc:
        logger.warning("ignoring unreadable config %s: %s", path, exc)
        return {}
    return data if isinstance(data, dict) else {}


def save_config(data: dict[str, object], path: Path) -> bool:
    """Persist config data as pretty-printed JSON; return whether it was written."""
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(data, indent=2) + "\n", encoding="utf-8")
    except OSError as exc:
        logger.warning("cannot write config %s: %s", path, exc)
        return False
    return True


def _string_value(data: Mapping[str, object], key: str) -> str | None:
    value = data.get(key)
    if not isinstance(value, str):
        return None
    stripped = value.strip()
    return stripped or None


def load_settings(environ: Mapping[str, str] | None = None, path: Path | None = None) -> Settings:
    """Resolve settings from config file and environment.

    Precedence for the workspace root is ``TRY_PATH``, then ``tries_path`` from
    the config file, then ``~/work/tries``. The editor comes from config, then
    ``$VISUAL``, then ``$EDITOR``. A missing config file is created holding the
    resolved root, and the run is flagged as the first run.
    """
    env = os.environ if environ is None else environ
    path = path if path is not None else config_path(env)

    env_tries_path = (env.get("TRY_PATH") or "").strip()
    tries_path = expand_path(env_tries_path) if env_tries_path else expand_path(str(DEFAULT_TRIES_PATH))

    is_first_run = False
    if path.exists():
        data = load_config(path)
    else:
        data = {}
        is_first_run = save_config({"tries_path": str(tries_path)}, path)

    configured_path = _string_value(data, "tries_path")
    if configured_path and not env_tries_path:
        tries_path = expand_path(configured_path)

    editor = _string_value(data, "editor") or (env.get("VISUAL") or "").strip() or (env.get("EDITOR") or "").strip()

    editor_mode = _string_value(data, "editor_mode") or "block"
    if editor_mode not in EDITOR_MODES:
        logger.warning("unknown editor_mode %r; using 'block'", editor_mode)
        editor_mode = "block"

    shallow_clone = data.get("shallow_clone")
    colors = data.get("colors")

    return Settings(
        tries_path=tries_path.absolute(),
        editor=editor or None,
        editor_mode=editor_mode,
        shallow_clone=shallow_clone if isinstance(shallow_clone, bool) else False,
        theme_name=_string_value(data, "theme"),
        colors=dict(colors) if isinstance(colors, dict) else {},
        is_first_run=is_first_run,
        config_path=path,
    )


__all__ = [
    "APP_NAME",
    "CONFIG_DIR",
    "Settings",
    "config_path",
    "expand_path",
    "load_config",
    "load_settings",
    "save_config",
]
