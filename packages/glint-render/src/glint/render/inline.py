"""Inline formatting cascade and whole-line Markdown constructs.

The cascade is an ordered tuple of passes.  Each pass takes the line and a
role -> colour lookup and returns the transformed line, so every step can be
exercised on its own:

1. ``code``     -- `` `x` `` spans; content escaped to placeholders
2. ``bold``     -- ``**x**`` / ``__x__``
3. ``italic``   -- ``*x*`` / ``_x_`` (underscore only at word edges)
4. ``links``    -- ``![alt](url)`` then ``[text](url)``
5. ``formula``  -- ``$x$`` (never ``$$``)
6. ``restore``  -- placeholders for ``* _ [ ]`` back to literals

Colours are ``@CODE@`` tag strings; the ``@`` placeholder is left in place so
the caller can expand tags first and call :func:`glint.render.escape.restore_at`
afterwards.
"""

from __future__ import annotations

import re
from typing import Callable

from glint.render import escape
from glint.render.formula import render_formula

ColorFn = Callable[[str], str]
InlinePass = Callable[[str, ColorFn], str]

RESET = "@RESET@"
HR_WIDTH = 40

_CODE_SPAN_RE = re.compile(r"`([^`]+)`")
_BOLD_STAR_RE = re.compile(r"\*\*([^*]+)\*\*")
_BOLD_UNDER_RE = re.compile(r"__([^_]+)__")
_ITALIC_STAR_RE = re.compile(r"(?<!\*)\*([^*]+)\*(?!\*)")
_ITALIC_UNDER_RE = re.compile(r"(^|[\s(])_([^_]+)_(?=[\s).,!?:;]|$)")
_IMAGE_RE = re.compile(r"!\[([^\]]*)\]\(([^)]+)\)")
_LINK_RE = re.compile(r"\[([^\]]+)\]\(([^)]+)\)")
_FORMULA_RE = re.compile(r"(?<!\$)\$([^$]+)\$(?!\$)")

_HEADER_RE = re.compile(r"^(#{1,6})\s+(.+)$")
_QUOTE_RE = re.compile(r"^>\s+(.+)$")
_HR_RE = re.compile(r"^(?:-{3,}|\*{3,}|_{3,})\s*$")
_BULLET_RE = re.compile(r"^(\s*)[-*+]\s+(.+)$")
_ORDERED_RE = re.compile(r"^(\s*)(\d+)\.\s+(.+)$")


# ---------------------------------------------------------------------------
# Passes
# ---------------------------------------------------------------------------


def code_spans(text: str, color: ColorFn) -> str:
    code_color = color("markdown_code")
    return _CODE_SPAN_RE.sub(lambda m: f"{code_color}{escape.protect(m.group(1))}{RESET}", text)


def bold(text: str, color: ColorFn) -> str:
    bold_color = color("markdown_bold")
    text = _BOLD_STAR_RE.sub(lambda m: f"{bold_color}{m.group(1)}{RESET}", text)
    return _BOLD_UNDER_RE.sub(lambda m: f"{bold_color}{m.group(1)}{RESET}", text)


def italic(text: str, color: ColorFn) -> str:
    italic_color = color("markdown_italic")
    text = _ITALIC_STAR_RE.sub(lambda m: f"{italic_color}{m.group(1)}{RESET}", text)
    # Underscore form needs a non-word boundary so file_name.ext stays intact
    return _ITALIC_UNDER_RE.sub(lambda m: f"{m.group(1)}{italic_color}{m.group(2)}{RESET}", text)


def links(text: str, color: ColorFn) -> str:
    text_color = color("markdown_link_text")
    url_color = color("markdown_link_url")

    def _link(m: re.Match[str]) -> str:
        return f"{text_color}{m.group(1)}{RESET} → {url_color}{m.group(2)}{RESET}"

    text = _IMAGE_RE.sub(_link, text)
    return _LINK_RE.sub(_link, text)


def formulas(text: str, color: ColorFn) -> str:
    formula_color = color("markdown_formula")
    return _FORMULA_RE.sub(lambda m: f"{formula_color}${render_formula(m.group(1))}${RESET}", text)


def restore(text: str, color: ColorFn) -> str:
    return escape.restore_markup(text)


INLINE_PASSES: tuple[tuple[str, InlinePass], ...] = (
    ("code", code_spans),
    ("bold", bold),
    ("italic", italic),
    ("links", links),
    ("formula", formulas),
    ("restore", restore),
)


def format_inline(text: str, color: ColorFn) -> str:
    """Run every inline pass over *text* in order."""
    for _name, step in INLINE_PASSES:
        text = step(text, color)
    return text


# ---------------------------------------------------------------------------
# Whole-line constructs
# ---------------------------------------------------------------------------


def _header_role(level: int) -> str:
    if level == 1:
        return "markdown_header1"
    if level == 2:
        return "markdown_header2"
    return "markdown_header3"


def render_line(line: str, color: ColorFn) -> str:
    """Render one plain line: headers, quotes, rules and list items first,
    then the inline cascade on whatever text remains."""
    m = _HEADER_RE.match(line)
    if m:
        role = _header_role(len(m.group(1)))
        return f"{color(role)}{format_inline(m.group(2), color)}{RESET}"

    m = _QUOTE_RE.match(line)
    if m:
        return f"{color('markdown_quote')}│ {RESET}{format_inline(m.group(1), color)}"

    if _HR_RE.match(line):
        return f"{color('markdown_quote')}{'─' * HR_WIDTH}{RESET}"

    m = _BULLET_RE.match(line)
    if m:
        indent, body = m.group(1), m.group(2)
        return f"{indent}{color('markdown_list_bullet')}• {RESET}{format_inline(body, color)}"

    m = _ORDERED_RE.match(line)
    if m:
        indent, num, body = m.group(1), m.group(2), m.group(3)
        return f"{indent}{color('markdown_list_bullet')}{num}. {RESET}{format_inline(body, color)}"

    return format_inline(line, color)
