"""Visual width measurement for terminal columns.

Two measurements are provided:

* :func:`visual_width` -- width of *source* markup as it will appear once
  rendered: Markdown delimiters, link targets, escape sequences and ``@CODE@``
  tags do not count.
* :func:`display_width` -- width of already formatted text: only escape
  sequences and tags are ignored.

Both count wide glyphs (CJK, Hangul, fullwidth forms, emoji pictographs) as two
columns and everything else as one.  Neither looks at the active style, so
column widths are the same whatever colours are in use.
"""

from __future__ import annotations

import re

import grapheme
import wcwidth as _wcwidth

from glint.render import escape
from glint.render.codes import ESCAPE_RE, TAG_RE

# ---------------------------------------------------------------------------
# Markup patterns
# ---------------------------------------------------------------------------

_CODE_SPAN_RE = re.compile(r"`([^`]+)`")
_BOLD_STAR_RE = re.compile(r"\*\*([^*]+)\*\*")
_BOLD_UNDER_RE = re.compile(r"__([^_]+)__")
_ITALIC_STAR_RE = re.compile(r"(?<!\*)\*([^*]+)\*(?!\*)")
_ITALIC_UNDER_RE = re.compile(r"(^|[\s(])_([^_]+)_(?=[\s).,!?:;]|$)")
_IMAGE_RE = re.compile(r"!\[([^\]]*)\]\([^)]+\)")
_LINK_RE = re.compile(r"\[([^\]]+)\]\([^)]+\)")

# ---------------------------------------------------------------------------
# Wide codepoint ranges (inclusive)
# ---------------------------------------------------------------------------

WIDE_RANGES: tuple[tuple[int, int], ...] = (
    (0x1F300, 0x1F9FF),  # emoji pictographs
    (0x1FA00, 0x1FAFF),  # extended pictographs
    (0x3000, 0x9FFF),  # CJK symbols, kana, ideographs
    (0xAC00, 0xD7AF),  # Hangul syllables
    (0xF900, 0xFAFF),  # CJK compatibility ideographs
    (0xFE10, 0xFE1F),  # vertical forms
    (0xFF00, 0xFFEF),  # fullwidth forms
    (0x20000, 0x2FFFF),  # CJK extension B+
)

# ---------------------------------------------------------------------------
# Width cache (capped at 512 entries)
# ---------------------------------------------------------------------------

_width_cache: dict[str, int] = {}
_WIDTH_CACHE_MAX = 512


def _cache_width(key: str, value: int) -> int:
    if len(_width_cache) >= _WIDTH_CACHE_MAX:
        _width_cache.clear()
    _width_cache[key] = value
    return value


# ---------------------------------------------------------------------------
# Character width
# ---------------------------------------------------------------------------


def char_width(ch: str) -> int:
    """Column width of one character or grapheme cluster (its first codepoint)."""
    if not ch:
        return 0
    cp = ord(ch[0])
    if cp < 0x1100:
        return 1
    for lo, hi in WIDE_RANGES:
        if lo <= cp <= hi:
            return 2
    # East Asian Wide / Fullwidth outside the explicit ranges
    if _wcwidth.wcwidth(ch[0]) == 2:
        return 2
    return 1


def _cells(text: str) -> int:
    if not text:
        return 0
    if text.isascii():
        return len(text)

    cached = _width_cache.get(text)
    if cached is not None:
        return cached

    total = 0
    for g in grapheme.graphemes(text):
        total += char_width(g)
    return _cache_width(text, total)


# ---------------------------------------------------------------------------
# Stripping
# ---------------------------------------------------------------------------


def strip_markup(text: str) -> str:
    """Reduce source markup to the text a reader will see.

    Inline code keeps its content literally (an ``@`` inside backticks is not
    a tag).  Bold/italic delimiters are dropped, images and links keep only
    their display text, then escape sequences and ``@CODE@`` tags are removed.
    """
    if not text:
        return ""

    clean = _CODE_SPAN_RE.sub(lambda m: escape.protect(m.group(1)), text)

    clean = _BOLD_STAR_RE.sub(r"\1", clean)
    clean = _BOLD_UNDER_RE.sub(r"\1", clean)
    clean = _ITALIC_STAR_RE.sub(r"\1", clean)
    clean = _ITALIC_UNDER_RE.sub(r"\1\2", clean)

    clean = _IMAGE_RE.sub(r"\1", clean)
    clean = _LINK_RE.sub(r"\1", clean)

    clean = ESCAPE_RE.sub("", clean)
    clean = TAG_RE.sub("", clean)

    return escape.restore(clean)


def strip_codes(text: str) -> str:
    """Remove escape sequences and ``@CODE@`` tags, nothing else."""
    if not text:
        return ""
    return TAG_RE.sub("", ESCAPE_RE.sub("", text))


# ---------------------------------------------------------------------------
# Public measurements
# ---------------------------------------------------------------------------


def visual_width(text: str) -> int:
    """On-screen columns of *text* once its markup is rendered."""
    return _cells(strip_markup(text))


def display_width(text: str) -> int:
    """On-screen columns of already formatted *text*."""
    return _cells(strip_codes(text))
