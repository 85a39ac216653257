"""Markdown to terminal text.

A line-by-line scanner with three states:

* ``PLAIN`` -- headers, quotes, rules, list items and the inline cascade
* ``CODE_BLOCK`` -- fenced lines emitted verbatim in the code-block colour
* ``TABLE`` -- pipe rows accumulated until the table ends, then laid out

Output is built with ``@CODE@`` tags, which are expanded in one pass at the end
(left as written when the registry is disabled).  No state survives between
:meth:`MarkdownRenderer.render` calls apart from the colour cache.
"""

from __future__ import annotations

import enum
import re

from glint.render import escape
from glint.render.codes import CodeRegistry
from glint.render.formula import formula_block
from glint.render.inline import RESET, format_inline, render_line
from glint.render.table import TableLayout, is_table_row
from glint.render.theme import BoundStyle, ColorSource, ThemeManager

_FENCE_RE = re.compile(r"^```(.*)$")
_DISPLAY_FORMULA_RE = re.compile(r"^\$\$\s*(.+?)\s*\$\$\s*$")


class _State(enum.Enum):
    PLAIN = "plain"
    CODE_BLOCK = "code_block"
    TABLE = "table"


class MarkdownRenderer:
    """Render Markdown text to a string of terminal escape sequences.

    *colors* supplies role colours (a :class:`~glint.render.theme.ThemeManager`
    or a context-bound view from ``ThemeManager.bind``).  Lookups are cached
    per instance and never refreshed; call :meth:`invalidate` after switching
    style, or build a new renderer.

    Without an explicit *registry*, a manager or bound style supplies its own,
    so a manager built with tags switched off renders tags unexpanded.
    """

    def __init__(
        self,
        colors: ColorSource | None = None,
        registry: CodeRegistry | None = None,
    ) -> None:
        if colors is not None and not isinstance(colors, ColorSource):
            raise TypeError(f"colors must implement get_color(role), got {type(colors).__name__}")
        self._colors = colors
        if registry is None:
            if isinstance(colors, (ThemeManager, BoundStyle)):
                registry = colors.registry
            else:
                registry = CodeRegistry()
        self._registry = registry
        self._color_cache: dict[str, str] = {}
        self._table = TableLayout(self.color)

    # -- colours --------------------------------------------------------------

    def color(self, role: str) -> str:
        cached = self._color_cache.get(role)
        if cached is not None:
            return cached
        value = self._colors.get_color(role) if self._colors is not None else ""
        self._color_cache[role] = value or ""
        return self._color_cache[role]

    def invalidate(self) -> None:
        self._color_cache.clear()

    # -- public API -----------------------------------------------------------

    def render(self, text: str | None) -> str:
        if text is None:
            return ""
        lines = self.render_lines(text.split("\n"))
        return self._finish("\n".join(lines))

    def render_inline(self, text: str | None) -> str:
        """Render a single line through the inline cascade only."""
        if text is None:
            return ""
        return self._finish(format_inline(text, self.color))

    def render_lines(self, lines: list[str]) -> list[str]:
        """Run the block scanner; returned lines still contain ``@CODE@`` tags."""
        output: list[str] = []
        state = _State.PLAIN
        table_rows: list[str] = []

        def flush_table() -> None:
            nonlocal state
            if table_rows:
                output.extend(self._table.render(table_rows))
                table_rows.clear()
            state = _State.PLAIN

        for i, line in enumerate(lines):
            fence = _FENCE_RE.match(line)
            if fence:
                if state is _State.TABLE:
                    flush_table()
                if state is _State.CODE_BLOCK:
                    state = _State.PLAIN
                    output.append("")
                else:
                    state = _State.CODE_BLOCK
                    lang = fence.group(1).strip()
                    label = f" ({lang})" if lang else ""
                    output.append(f"{self.color('markdown_code_block')}Code Block{label}:{RESET}")
                continue

            if state is _State.CODE_BLOCK:
                output.append(f"{self.color('markdown_code_block')}  {escape.protect_at(line)}{RESET}")
                continue

            if is_table_row(line):
                table_rows.append(line.strip())
                state = _State.TABLE
                if not _table_continues(lines, i + 1):
                    flush_table()
                continue

            if not line.strip():
                # Blank lines inside a table do not end it
                if state is _State.TABLE:
                    continue
            elif state is _State.TABLE:
                flush_table()

            formula = _DISPLAY_FORMULA_RE.match(line)
            if formula:
                output.extend(formula_block(formula.group(1), self.color("markdown_formula")))
                continue

            output.append(render_line(line, self.color))

        if table_rows:
            flush_table()

        return output

    # -- internals ------------------------------------------------------------

    def _finish(self, text: str) -> str:
        return escape.restore_at(self._registry.parse(text))


def _table_continues(lines: list[str], start: int) -> bool:
    """Whether the next non-blank line from *start* is another table row."""
    for line in lines[start:]:
        if line.strip():
            return is_table_row(line)
    return False


# ---------------------------------------------------------------------------
# Plain-text stripping
# ---------------------------------------------------------------------------

_STRIP_RULES: tuple[tuple[re.Pattern[str], str], ...] = (
    (re.compile(r"```[^\n]*\n.*?```\n?", re.S), ""),
    (re.compile(r"`([^`]+)`"), r"\1"),
    (re.compile(r"\$\$([^$]+)\$\$"), r"\1"),
    (re.compile(r"(?<!\$)\$([^$]+)\$(?!\$)"), r"\1"),
    (re.compile(r"\*\*([^*]+)\*\*"), r"\1"),
    (re.compile(r"__([^_]+)__"), r"\1"),
    (re.compile(r"\*([^*]+)\*"), r"\1"),
    (re.compile(r"(^|[\s(])_([^_]+)_(?=[\s).,!?:;]|$)", re.M), r"\1\2"),
    (re.compile(r"!\[([^\]]*)\]\([^)]+\)"), r"\1"),
    (re.compile(r"\[([^\]]+)\]\([^)]+\)"), r"\1"),
    (re.compile(r"^#{1,6}\s+", re.M), ""),
    (re.compile(r"^>\s+", re.M), ""),
    (re.compile(r"^(\s*)[-*+]\s+", re.M), r"\1"),
    (re.compile(r"^(\s*)\d+\.\s+", re.M), r"\1"),
)


def strip_markdown(text: str | None) -> str:
    """Remove Markdown formatting, keeping the readable text."""
    if text is None:
        return ""
    for pattern, repl in _STRIP_RULES:
        text = pattern.sub(repl, text)
    return text


def render_markdown(
    text: str | None,
    colors: ColorSource | None = None,
    registry: CodeRegistry | None = None,
) -> str:
    """One-shot helper: ``MarkdownRenderer(colors, registry).render(text)``."""
    return MarkdownRenderer(colors, registry).render(text)
