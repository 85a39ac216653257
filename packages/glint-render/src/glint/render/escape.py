"""Placeholder escaping for literal markup characters.

Inline code content must survive the later emphasis/link passes and the tag
parser untouched.  Its special characters are swapped for private-use
codepoints and swapped back once those passes have run.
"""

from __future__ import annotations

from types import MappingProxyType
from typing import Mapping

AT = "\ue000"

PLACEHOLDERS: Mapping[str, str] = MappingProxyType(
    {
        "@": AT,
        "*": "\ue001",
        "_": "\ue002",
        "[": "\ue003",
        "]": "\ue004",
    }
)

_PROTECT = str.maketrans(dict(PLACEHOLDERS))
_RESTORE_MARKUP = str.maketrans({v: k for k, v in PLACEHOLDERS.items() if k != "@"})
_RESTORE_ALL = str.maketrans({v: k for k, v in PLACEHOLDERS.items()})


def protect(text: str) -> str:
    """Replace ``@ * _ [ ]`` with placeholders."""
    return text.translate(_PROTECT)


def protect_at(text: str) -> str:
    """Replace only ``@`` so the tag parser leaves the text alone."""
    return text.replace("@", AT)


def restore_markup(text: str) -> str:
    """Restore ``* _ [ ]``; ``@`` stays protected until tags are parsed."""
    return text.translate(_RESTORE_MARKUP)


def restore_at(text: str) -> str:
    return text.replace(AT, "@")


def restore(text: str) -> str:
    """Restore every placeholder."""
    return text.translate(_RESTORE_ALL)
