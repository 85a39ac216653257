"""Configuration directories and persisted render settings.

Styles and themes are discovered along a fixed search path:

    built-in package data < shared install location < user config directory

Later directories override earlier ones.  The user directory also holds
``settings.json`` with the last selected style/theme.
"""

from __future__ import annotations

import json
import logging
import os
import sys
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

APP_NAME = "glint"
SETTINGS_FILE = "settings.json"

BUILTIN_DIR = str(Path(__file__).resolve().parent / "data")


# --- Directories ---


def get_config_dir() -> str:
    """User config directory (``$GLINT_CONFIG_DIR`` > XDG > ``~/.config/glint``)."""
    override = os.environ.get("GLINT_CONFIG_DIR")
    if override:
        return override
    xdg = os.environ.get("XDG_CONFIG_HOME")
    if xdg:
        return os.path.join(xdg, APP_NAME)
    return os.path.join(os.path.expanduser("~"), ".config", APP_NAME)


def get_shared_dir() -> str:
    """Shared install location (``$GLINT_SHARE_DIR`` > ``<prefix>/share/glint``)."""
    override = os.environ.get("GLINT_SHARE_DIR")
    if override:
        return override
    return os.path.join(sys.prefix, "share", APP_NAME)


def default_search_dirs() -> list[str]:
    """Search path in override order: built-in, shared, user."""
    return [BUILTIN_DIR, get_shared_dir(), get_config_dir()]


# --- RenderSettings ---


def _settings_defaults() -> dict[str, Any]:
    return {
        "style": None,
        "theme": None,
        "tags": None,
    }


class RenderSettings:
    """Persisted style/theme selection and the tag on/off switch.

    Use the factory methods (``create``, ``in_memory``) instead of calling the
    constructor directly.
    """

    def __init__(
        self,
        *,
        settings_path: str | None,
        initial_settings: dict[str, Any],
        persist: bool = True,
        load_error: Exception | None = None,
    ) -> None:
        self._settings_path = settings_path
        self._settings = {**_settings_defaults(), **initial_settings}
        self._persist = persist
        self._load_error = load_error

    # --- Factory methods ---

    @classmethod
    def create(cls, config_dir: str | None = None) -> RenderSettings:
        """Create a settings manager backed by ``settings.json``."""
        cdir = config_dir or get_config_dir()
        settings_path = os.path.join(cdir, SETTINGS_FILE)
        settings, error = _load_from_file(settings_path)
        if error is not None:
            logger.warning("Ignoring unreadable settings file %s: %s", settings_path, error)
        return cls(
            settings_path=settings_path,
            initial_settings=settings,
            persist=True,
            load_error=error,
        )

    @classmethod
    def in_memory(cls, settings: dict[str, Any] | None = None) -> RenderSettings:
        """Create a settings manager that never touches disk."""
        return cls(settings_path=None, initial_settings=settings or {}, persist=False)

    @property
    def settings(self) -> dict[str, Any]:
        return self._settings

    @property
    def load_error(self) -> Exception | None:
        return self._load_error

    # --- Getters ---

    def get_style(self) -> str:
        return self._settings.get("style") or "default"

    def get_theme(self) -> str:
        return self._settings.get("theme") or "default"

    def get_tags_enabled(self) -> bool:
        val = self._settings.get("tags")
        if val is not None:
            return bool(val)
        return "NO_COLOR" not in os.environ

    # --- Setters ---

    def set_style(self, style: str) -> None:
        self._settings["style"] = style
        self._save()

    def set_theme(self, theme: str) -> None:
        self._settings["theme"] = theme
        self._save()

    def set_tags_enabled(self, enabled: bool) -> None:
        self._settings["tags"] = enabled
        self._save()

    # --- Persistence ---

    def _save(self) -> None:
        if not self._persist or not self._settings_path:
            return
        # Don't overwrite a file we could not parse
        if self._load_error:
            logger.warning("Not saving settings over corrupted file %s", self._settings_path)
            return

        current_file, _ = _load_from_file(self._settings_path)
        merged = {**current_file, **{k: v for k, v in self._settings.items() if v is not None}}

        try:
            os.makedirs(os.path.dirname(self._settings_path), exist_ok=True)
            Path(self._settings_path).write_text(
                json.dumps(merged, indent=2, ensure_ascii=False) + "\n",
                encoding="utf-8",
            )
        except OSError:
            logger.exception("Cannot write settings file %s", self._settings_path)


# --- File I/O helpers ---


def _load_from_file(path: str) -> tuple[dict[str, Any], Exception | None]:
    """Load settings from a JSON file. Returns (settings, error)."""
    if not os.path.exists(path):
        return {}, None
    try:
        content = Path(path).read_text(encoding="utf-8")
        settings = json.loads(content)
    except (OSError, json.JSONDecodeError) as e:
        return {}, e
    if not isinstance(settings, dict):
        return {}, ValueError(f"settings root must be an object, got {type(settings).__name__}")
    return settings, None
