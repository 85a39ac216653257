"""Code tags: symbolic ``@NAME@`` markers for terminal escape sequences.

Text may carry tags such as ``@BOLD@Hello @RED@World@RESET@``; :func:`parse_tags`
expands them into raw escape sequences.  Unknown names are dropped rather than
left in the output, so a malformed tag never leaks onto the screen.
"""

from __future__ import annotations

import re
from types import MappingProxyType
from typing import Mapping

# ---------------------------------------------------------------------------
# Escape sequence table
# ---------------------------------------------------------------------------

_CURSOR = {
    "CURSOR_UP": "\x1b[1A",
    "CURSOR_DOWN": "\x1b[1B",
    "CURSOR_RIGHT": "\x1b[1C",
    "CURSOR_LEFT": "\x1b[1D",
    "CURSOR_HOME": "\x1b[H",
    "CURSOR_SAVE": "\x1b[s",
    "CURSOR_RESTORE": "\x1b[u",
}

_LINE = {
    "CLEAR_LINE": "\x1b[2K",
    "CLEAR_TO_EOL": "\x1b[K",
    "CLEAR_TO_BOL": "\x1b[1K",
    "CLEAR_SCREEN": "\x1b[2J",
    "CR": "\r",
}

_ATTRIBUTES = {
    "RESET": "\x1b[0m",
    "BOLD": "\x1b[1m",
    "DIM": "\x1b[2m",
    "ITALIC": "\x1b[3m",
    "UNDERLINE": "\x1b[4m",
    "BLINK": "\x1b[5m",
    "REVERSE": "\x1b[7m",
    "HIDDEN": "\x1b[8m",
    "STRIKETHROUGH": "\x1b[9m",
}

_COLOR_NAMES = ("BLACK", "RED", "GREEN", "YELLOW", "BLUE", "MAGENTA", "CYAN", "WHITE")

_FOREGROUND = {name: f"\x1b[{30 + i}m" for i, name in enumerate(_COLOR_NAMES)}
_FOREGROUND["DEFAULT_FG"] = "\x1b[39m"

_BRIGHT_FOREGROUND = {f"BRIGHT_{name}": f"\x1b[{90 + i}m" for i, name in enumerate(_COLOR_NAMES)}

_BACKGROUND = {f"BG_{name}": f"\x1b[{40 + i}m" for i, name in enumerate(_COLOR_NAMES)}
_BACKGROUND["DEFAULT_BG"] = "\x1b[49m"

_BRIGHT_BACKGROUND = {f"BG_BRIGHT_{name}": f"\x1b[{100 + i}m" for i, name in enumerate(_COLOR_NAMES)}

# Short aliases -> canonical name
ALIASES: Mapping[str, str] = MappingProxyType(
    {
        "CUP": "CURSOR_UP",
        "CDN": "CURSOR_DOWN",
        "CRT": "CURSOR_RIGHT",
        "CLT": "CURSOR_LEFT",
        "CLL": "CLEAR_LINE",
        "CLS": "CLEAR_SCREEN",
    }
)

CATEGORIES: Mapping[str, tuple[str, ...]] = MappingProxyType(
    {
        "cursor": tuple(_CURSOR),
        "line": tuple(_LINE),
        "attribute": tuple(_ATTRIBUTES),
        "foreground": tuple(_FOREGROUND),
        "bright_foreground": tuple(_BRIGHT_FOREGROUND),
        "background": tuple(_BACKGROUND),
        "bright_background": tuple(_BRIGHT_BACKGROUND),
    }
)


def _build_codes() -> dict[str, str]:
    codes: dict[str, str] = {}
    for group in (_CURSOR, _LINE, _ATTRIBUTES, _FOREGROUND, _BRIGHT_FOREGROUND, _BACKGROUND, _BRIGHT_BACKGROUND):
        codes.update(group)
    for alias, target in ALIASES.items():
        codes[alias] = codes[target]
    return codes


CODES: Mapping[str, str] = MappingProxyType(_build_codes())

_EMPTY: Mapping[str, str] = MappingProxyType({})

# ---------------------------------------------------------------------------
# Patterns
# ---------------------------------------------------------------------------

TAG_RE = re.compile(r"@([A-Z_]+)@")
# ESC [ <digits/semicolons> <letter>
ESCAPE_RE = re.compile(r"\x1b\[[0-9;]*[A-Za-z]")


# ---------------------------------------------------------------------------
# CodeRegistry
# ---------------------------------------------------------------------------


class CodeRegistry:
    """Resolve and expand ``@NAME@`` tags.

    A disabled registry resolves nothing and leaves text untouched, which is
    how colour output is switched off without touching the callers.
    """

    def __init__(self, enabled: bool = True) -> None:
        self._enabled = enabled

    @property
    def enabled(self) -> bool:
        return self._enabled

    def enable(self) -> None:
        self._enabled = True

    def disable(self) -> None:
        self._enabled = False

    def codes(self) -> Mapping[str, str]:
        """Return the name -> sequence table (empty when disabled)."""
        return CODES if self._enabled else _EMPTY

    def resolve(self, name: str) -> str | None:
        if not self._enabled:
            return None
        return CODES.get(name)

    def parse(self, text: str | None) -> str:
        """Replace every ``@NAME@`` with its sequence; unknown names are removed."""
        if text is None:
            return ""
        if not self._enabled:
            return text
        return TAG_RE.sub(lambda m: CODES.get(m.group(1), ""), text)

    @staticmethod
    def strip(text: str | None) -> str:
        """Remove every ``@NAME@`` tag without resolving it."""
        if text is None:
            return ""
        return TAG_RE.sub("", text)

    @staticmethod
    def strip_ansi(text: str | None) -> str:
        """Remove already-materialised escape sequences."""
        if text is None:
            return ""
        return ESCAPE_RE.sub("", text)


# ---------------------------------------------------------------------------
# Module-level helpers
# ---------------------------------------------------------------------------

_default_registry = CodeRegistry()


def parse_tags(text: str | None) -> str:
    return _default_registry.parse(text)


def strip_tags(text: str | None) -> str:
    return CodeRegistry.strip(text)


def strip_escapes(text: str | None) -> str:
    return CodeRegistry.strip_ansi(text)
