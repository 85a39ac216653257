"""Two-layer theming: styles (colours) and themes (templates).

A *style* maps semantic UI roles (``user_prompt``, ``markdown_header1``,
``table_border``...) to ``@CODE@`` tags.  A *theme* maps template keys
(``banner_line1``, ``pagination_prompt``...) to template strings containing
``{style.<role>}`` and ``{var.<name>}`` placeholders.  Rendering a template
substitutes both kinds of placeholder and then expands the tags.

Both layers are loaded from ``key=value`` definition files found under the
``styles/`` and ``themes/`` subdirectories of each search directory.  Lookups
that miss return ``""``; nothing here raises on bad data.
"""

from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass, field, replace
from pathlib import Path
from types import MappingProxyType
from typing import Mapping, Protocol, runtime_checkable

from glint.render.codes import CodeRegistry
from glint.render.config import RenderSettings, default_search_dirs, get_config_dir

logger = logging.getLogger(__name__)

STYLE_DIR = "styles"
THEME_DIR = "themes"
STYLE_EXT = ".style"
THEME_EXT = ".theme"

_LINE_RE = re.compile(r"^(\w+)\s*=\s*(.+)$")
_STYLE_PLACEHOLDER_RE = re.compile(r"\{style\.(\w+)\}")
_VAR_PLACEHOLDER_RE = re.compile(r"\{var\.(\w+)\}")

# Keys that describe the definition itself rather than a role/template
_META_KEYS = frozenset({"name", "file"})

DEFAULT_SPINNER_FRAMES = ("⠋", "⠙", "⠹", "⠸", "⠼", "⠴", "⠦", "⠧", "⠇", "⠏")


# ---------------------------------------------------------------------------
# Built-in fallbacks
# ---------------------------------------------------------------------------

BUILTIN_STYLE: Mapping[str, str] = MappingProxyType(
    {
        "name": "default",
        # Conversation
        "user_prompt": "@BRIGHT_GREEN@",
        "user_text": "@WHITE@",
        "agent_label": "@BRIGHT_CYAN@",
        "agent_text": "@WHITE@",
        "system_message": "@CYAN@",
        "error_message": "@BRIGHT_RED@",
        "success_message": "@BRIGHT_GREEN@",
        "warning_message": "@BRIGHT_YELLOW@",
        "info_message": "@CYAN@",
        # Banner
        "app_title": "@BOLD@@BRIGHT_CYAN@",
        "app_subtitle": "@CYAN@",
        "banner_label": "@DIM@@WHITE@",
        "banner_value": "@WHITE@",
        "banner_help": "@DIM@@WHITE@",
        "banner_command": "@BRIGHT_GREEN@",
        "banner": "@BRIGHT_CYAN@",
        # Prompt
        "prompt_model": "@CYAN@",
        "prompt_directory": "@BRIGHT_CYAN@",
        "prompt_git_branch": "@DIM@@CYAN@",
        "prompt_indicator": "@BRIGHT_GREEN@",
        # General UI
        "theme_header": "@BRIGHT_CYAN@",
        "data": "@WHITE@",
        "dim": "@DIM@",
        "highlight": "@BRIGHT_CYAN@",
        "muted": "@DIM@@WHITE@",
        # Command output
        "command_header": "@BOLD@@BRIGHT_CYAN@",
        "command_subheader": "@CYAN@",
        "command_label": "@DIM@@WHITE@",
        "command_value": "@WHITE@",
        # Markdown
        "markdown_bold": "@BOLD@",
        "markdown_italic": "@DIM@",
        "markdown_code": "@CYAN@",
        "markdown_formula": "@BRIGHT_CYAN@",
        "markdown_link_text": "@BRIGHT_CYAN@@UNDERLINE@",
        "markdown_link_url": "@DIM@@CYAN@",
        "markdown_header1": "@BOLD@@BRIGHT_CYAN@",
        "markdown_header2": "@CYAN@",
        "markdown_header3": "@WHITE@",
        "markdown_list_bullet": "@BRIGHT_GREEN@",
        "markdown_quote": "@DIM@@CYAN@",
        "markdown_code_block": "@CYAN@",
        # Tables
        "table_border": "@DIM@@WHITE@",
        "table_header": "@BOLD@@BRIGHT_CYAN@",
        # Spinner (comma separated)
        "spinner_frames": ",".join(DEFAULT_SPINNER_FRAMES),
    }
)

BUILTIN_THEME: Mapping[str, str] = MappingProxyType(
    {
        "name": "default",
        "user_prompt_format": "{style.user_prompt}: @RESET@",
        "agent_prefix": "{style.agent_label}GLINT: @RESET@",
        "system_prefix": "{style.system_message}SYSTEM: @RESET@",
        "error_prefix": "{style.error_message}ERROR: @RESET@",
        "banner_line1": "{style.app_title}GLINT@RESET@ {style.app_subtitle}- terminal renderer@RESET@",
        "banner_line2": "{style.banner_label}Session ID:@RESET@ {style.banner_value}{var.session_id}@RESET@",
        "banner_line3": "{style.banner_label}You are connected to@RESET@ {style.banner_value}{var.model}@RESET@",
        "banner_line4": (
            "{style.banner_help}Type @RESET@{style.banner_command}\"/help\"@RESET@ "
            "{style.banner_help}for a list of commands.@RESET@"
        ),
        "help_header": "{style.data}{var.title}@RESET@",
        "help_section": "{style.data}{var.section}@RESET@",
        "help_command": "{style.prompt_indicator}{var.command}@RESET@",
        "thinking_indicator": "{style.dim}(thinking...)@RESET@",
        "nav_next": "{style.prompt_indicator}[N]ext@RESET@",
        "nav_previous": "{style.prompt_indicator}[P]revious@RESET@",
        "nav_quit": "{style.prompt_indicator}[Q]uit@RESET@",
        "pagination_info": "{style.dim}{var.info}@RESET@",
        "pagination_prompt": "{style.dim}{var.info}@RESET@ {style.prompt_indicator}[N]ext [P]revious [Q]uit@RESET@",
    }
)

# A theme is complete when it defines every one of these keys.
REQUIRED_THEME_KEYS: tuple[str, ...] = tuple(k for k in BUILTIN_THEME if k not in _META_KEYS)


# ---------------------------------------------------------------------------
# Data types
# ---------------------------------------------------------------------------


class DefinitionError(ValueError):
    """A style/theme file that cannot be registered."""


@dataclass(frozen=True)
class RenderContext:
    """The (style, theme) pair a render call resolves against."""

    style: str = "default"
    theme: str = "default"


@dataclass
class Definition:
    """One loaded style or theme."""

    name: str
    values: dict[str, str] = field(default_factory=dict)
    path: str | None = None

    def get(self, key: str) -> str:
        return self.values.get(key) or ""


@runtime_checkable
class ColorSource(Protocol):
    """Anything that can turn a semantic role into a colour string."""

    def get_color(self, role: str) -> str: ...


# ---------------------------------------------------------------------------
# Definition files
# ---------------------------------------------------------------------------


def parse_definition(path: str) -> Definition:
    """Parse a ``key=value`` definition file.

    Raises ``OSError``/``UnicodeDecodeError`` for unreadable files and
    :class:`DefinitionError` when the mandatory ``name=`` line is missing.
    """
    values: dict[str, str] = {}
    with open(path, encoding="utf-8") as fh:
        for raw in fh:
            line = raw.rstrip("\r\n")
            stripped = line.strip()
            if not stripped or stripped.startswith("#"):
                continue
            m = _LINE_RE.match(line)
            if m is None:
                logger.debug("Skipping malformed line in %s: %r", path, line)
                continue
            values[m.group(1)] = m.group(2)

    name = values.pop("name", "").strip()
    values.pop("file", None)
    if not name:
        raise DefinitionError(f"{path}: missing name= line")
    return Definition(name=name, values=values, path=path)


def load_definitions(search_dirs: list[str], subdir: str, ext: str) -> dict[str, Definition]:
    """Load every ``*<ext>`` file under ``<dir>/<subdir>`` in search order.

    A definition loaded later replaces one with the same name loaded earlier.
    Files that fail to load are skipped.
    """
    loaded: dict[str, Definition] = {}
    for base in search_dirs:
        directory = os.path.join(base, subdir)
        if not os.path.isdir(directory):
            continue
        try:
            entries = sorted(os.listdir(directory))
        except OSError as e:
            logger.warning("Cannot read %s: %s", directory, e)
            continue

        for entry in entries:
            if not entry.endswith(ext):
                continue
            path = os.path.join(directory, entry)
            if not os.path.isfile(path):
                continue
            try:
                definition = parse_definition(path)
            except (OSError, UnicodeDecodeError, DefinitionError) as e:
                logger.warning("Skipping %s: %s", path, e)
                continue
            loaded[definition.name] = definition
            logger.debug("Loaded %s %r from %s", ext.lstrip("."), definition.name, path)
    return loaded


def _builtin(values: Mapping[str, str]) -> Definition:
    return Definition(name=values["name"], values={k: v for k, v in values.items() if k not in _META_KEYS})


def _write_definition(path: str, kind: str, name: str, values: Mapping[str, str]) -> None:
    lines = [f"# {kind}: {name}", f"name={name}"]
    for key in sorted(values):
        if key in _META_KEYS:
            continue
        lines.append(f"{key}={values[key]}")
    os.makedirs(os.path.dirname(path), exist_ok=True)
    Path(path).write_text("\n".join(lines) + "\n", encoding="utf-8")


def _initial_name(loaded: Mapping[str, Definition], name: str, kind: str) -> str:
    if name in loaded:
        return name
    if name != "default":
        logger.warning("%s %r not found, using 'default'", kind.capitalize(), name)
    if "default" not in loaded:
        logger.warning("No default %s loaded; lookups will resolve to empty strings", kind)
    return "default"


# ---------------------------------------------------------------------------
# ThemeManager
# ---------------------------------------------------------------------------


class ThemeManager:
    """Loads styles and themes and resolves colours/templates against them."""

    def __init__(
        self,
        search_dirs: list[str] | None = None,
        registry: CodeRegistry | None = None,
        *,
        style: str = "default",
        theme: str = "default",
    ) -> None:
        self._search_dirs = list(search_dirs) if search_dirs is not None else default_search_dirs()
        self._registry = registry or CodeRegistry()
        self._styles: dict[str, Definition] = {}
        self._themes: dict[str, Definition] = {}

        self.load_all()

        self._context = RenderContext(
            style=_initial_name(self._styles, style, "style"),
            theme=_initial_name(self._themes, theme, "theme"),
        )

    @classmethod
    def from_settings(cls, settings: RenderSettings, search_dirs: list[str] | None = None) -> ThemeManager:
        """Build a manager from persisted settings (selection and tag switch)."""
        return cls(
            search_dirs,
            CodeRegistry(enabled=settings.get_tags_enabled()),
            style=settings.get_style(),
            theme=settings.get_theme(),
        )

    # -- loading --------------------------------------------------------------

    def load_all(self) -> None:
        self.load_styles()
        self.load_themes()

    def load_styles(self) -> None:
        self._styles = load_definitions(self._search_dirs, STYLE_DIR, STYLE_EXT)
        if not self._styles:
            logger.debug("No styles loaded, using built-in default")
            self._styles["default"] = _builtin(BUILTIN_STYLE)

    def load_themes(self) -> None:
        self._themes = load_definitions(self._search_dirs, THEME_DIR, THEME_EXT)
        if not self._themes:
            logger.debug("No themes loaded, using built-in default")
            self._themes["default"] = _builtin(BUILTIN_THEME)

    # -- properties -----------------------------------------------------------

    @property
    def registry(self) -> CodeRegistry:
        return self._registry

    @property
    def search_dirs(self) -> list[str]:
        return list(self._search_dirs)

    @property
    def user_dir(self) -> str:
        """The last (highest precedence) search directory; saves go here.

        Falls back to the user config directory when the search path is empty.
        """
        if not self._search_dirs:
            return get_config_dir()
        return self._search_dirs[-1]

    @property
    def context(self) -> RenderContext:
        return self._context

    @property
    def current_style(self) -> str:
        return self._context.style

    @property
    def current_theme(self) -> str:
        return self._context.theme

    # -- lookups --------------------------------------------------------------

    def _style(self, context: RenderContext | None) -> Definition | None:
        ctx = context or self._context
        return self._styles.get(ctx.style) or self._styles.get("default")

    def _theme(self, context: RenderContext | None) -> Definition | None:
        ctx = context or self._context
        return self._themes.get(ctx.theme) or self._themes.get("default")

    def get_color(self, role: str, context: RenderContext | None = None) -> str:
        style = self._style(context)
        return style.get(role) if style else ""

    def get_template(self, key: str, context: RenderContext | None = None) -> str:
        theme = self._theme(context)
        return theme.get(key) if theme else ""

    def get_spinner_frames(self, context: RenderContext | None = None) -> list[str]:
        frames = self.get_color("spinner_frames", context)
        if not frames:
            return list(DEFAULT_SPINNER_FRAMES)
        return frames.split(",")

    # -- rendering ------------------------------------------------------------

    def render_string(
        self,
        template: str,
        vars: Mapping[str, object] | None = None,
        context: RenderContext | None = None,
    ) -> str:
        """Substitute placeholders in *template* and expand its tags."""
        if not template:
            return ""
        values = vars or {}

        def _var(m: re.Match[str]) -> str:
            value = values.get(m.group(1))
            return "" if value is None else str(value)

        text = _STYLE_PLACEHOLDER_RE.sub(lambda m: self.get_color(m.group(1), context), template)
        text = _VAR_PLACEHOLDER_RE.sub(_var, text)
        return self._registry.parse(text)

    def render(
        self,
        key: str,
        vars: Mapping[str, object] | None = None,
        context: RenderContext | None = None,
    ) -> str:
        return self.render_string(self.get_template(key, context), vars, context)

    def bind(self, context: RenderContext | None = None) -> BoundStyle:
        """Return a colour source pinned to *context* (default: current)."""
        return BoundStyle(self, context or self._context)

    # -- switching ------------------------------------------------------------

    def set_style(self, name: str) -> bool:
        if name not in self._styles:
            logger.error("Style %r not found", name)
            return False
        self._context = replace(self._context, style=name)
        logger.debug("Switched to style: %s", name)
        return True

    def set_theme(self, name: str) -> bool:
        if name not in self._themes:
            logger.error("Theme %r not found", name)
            return False
        self._context = replace(self._context, theme=name)
        logger.debug("Switched to theme: %s", name)
        return True

    # -- introspection --------------------------------------------------------

    def list_styles(self) -> list[str]:
        return sorted(self._styles)

    def list_themes(self) -> list[str]:
        return sorted(self._themes)

    def get_style_definition(self, name: str) -> Definition | None:
        return self._styles.get(name)

    def get_theme_definition(self, name: str) -> Definition | None:
        return self._themes.get(name)

    # -- validation -----------------------------------------------------------

    def missing_theme_keys(self, name: str | None = None) -> list[str]:
        theme = self._themes.get(name or self._context.theme)
        if theme is None:
            return list(REQUIRED_THEME_KEYS)
        return [key for key in REQUIRED_THEME_KEYS if not theme.values.get(key)]

    def is_theme_complete(self, name: str | None = None) -> tuple[bool, str]:
        name = name or self._context.theme
        if name not in self._themes:
            return False, f"Theme '{name}' not found"
        missing = self.missing_theme_keys(name)
        if missing:
            return False, f"Theme '{name}' is missing keys: {', '.join(missing)}"
        return True, f"Theme '{name}' is complete"

    def referenced_roles(self) -> set[str]:
        """Every ``{style.X}`` role used by any loaded theme."""
        roles: set[str] = set()
        for theme in self._themes.values():
            for template in theme.values.values():
                roles.update(_STYLE_PLACEHOLDER_RE.findall(template))
        return roles

    def missing_style_roles(self, name: str | None = None) -> list[str]:
        style = self._styles.get(name or self._context.style)
        referenced = self.referenced_roles()
        if style is None:
            return sorted(referenced)
        return sorted(role for role in referenced if not style.values.get(role))

    def is_style_complete(self, name: str | None = None) -> tuple[bool, str]:
        name = name or self._context.style
        if name not in self._styles:
            return False, f"Style '{name}' not found"
        missing = self.missing_style_roles(name)
        if missing:
            return False, f"Style '{name}' is missing roles: {', '.join(missing)}"
        return True, f"Style '{name}' is complete"

    # -- persistence ----------------------------------------------------------

    def save_style(self, name: str) -> bool:
        """Write the current style as ``<user>/styles/<name>.style``."""
        current = self._style(None)
        if current is None:
            return False
        path = os.path.join(self.user_dir, STYLE_DIR, f"{name}{STYLE_EXT}")
        try:
            _write_definition(path, "Style", name, current.values)
        except OSError:
            logger.exception("Cannot write style file %s", path)
            return False
        self._styles[name] = Definition(name=name, values=dict(current.values), path=path)
        logger.debug("Saved style to: %s", path)
        return True

    def save_theme(self, name: str) -> bool:
        """Write the current theme as ``<user>/themes/<name>.theme``."""
        current = self._theme(None)
        if current is None:
            return False
        path = os.path.join(self.user_dir, THEME_DIR, f"{name}{THEME_EXT}")
        try:
            _write_definition(path, "Theme", name, current.values)
        except OSError:
            logger.exception("Cannot write theme file %s", path)
            return False
        self._themes[name] = Definition(name=name, values=dict(current.values), path=path)
        logger.debug("Saved theme to: %s", path)
        return True


class BoundStyle:
    """A :class:`ColorSource` that always resolves against one context."""

    def __init__(self, manager: ThemeManager, context: RenderContext) -> None:
        self._manager = manager
        self._context = context

    @property
    def context(self) -> RenderContext:
        return self._context

    @property
    def registry(self) -> CodeRegistry:
        return self._manager.registry

    def get_color(self, role: str) -> str:
        return self._manager.get_color(role, self._context)

    def render(self, key: str, vars: Mapping[str, object] | None = None) -> str:
        return self._manager.render(key, vars, self._context)
