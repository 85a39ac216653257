"""Box-drawn table layout for pipe tables.

::

    ┌───┬────┐
    │ A │ B  │
    ├───┼────┤
    │ 1 │ 22 │
    └───┴────┘

The first data row is the header; separator rows (``|---|:-:|``) are dropped.
Every row is padded to the full column count, and padding is computed from
column widths rather than string lengths, so each rendered row spans the same
number of terminal columns whatever escape codes or wide glyphs it contains.
"""

from __future__ import annotations

import re

from glint.render.inline import RESET, ColorFn, format_inline
from glint.render.width import display_width

ROW_RE = re.compile(r"^\|.+\|$")
SEPARATOR_RE = re.compile(r"^\|[\s\-:|]+\|$")


def is_table_row(line: str) -> bool:
    return bool(ROW_RE.match(line.strip()))


def is_separator_row(row: str) -> bool:
    return bool(SEPARATOR_RE.match(row.strip()))


def split_row(row: str) -> list[str]:
    """Split ``| a | b |`` into ``["a", "b"]``."""
    cells = row.strip().split("|")
    if cells and not cells[0].strip():
        cells.pop(0)
    if cells and not cells[-1].strip():
        cells.pop()
    return [cell.strip() for cell in cells]


class TableLayout:
    """Lays out accumulated table rows using a role -> colour lookup.

    Column widths are measured on the *formatted* cells with
    :func:`~glint.render.width.display_width`, not on the source with
    :func:`~glint.render.width.visual_width`.  Inline passes rewrite some
    cells into longer text (``[t](u)`` becomes ``t → u``, ``$\\alpha$`` keeps
    its dollar signs), and only the formatted width matches what is drawn.
    """

    def __init__(self, color: ColorFn) -> None:
        self._color = color

    def render(self, rows: list[str]) -> list[str]:
        data_rows = [split_row(row) for row in rows if not is_separator_row(row)]
        if not data_rows:
            return []

        num_cols = max(len(cells) for cells in data_rows)
        header_color = self._color("table_header")

        formatted: list[list[str]] = []
        for row_idx, cells in enumerate(data_rows):
            padded = cells + [""] * (num_cols - len(cells))
            row: list[str] = []
            for cell in padded:
                text = format_inline(cell, self._color)
                if row_idx == 0:
                    text = f"{header_color}{text}{RESET}"
                row.append(text)
            formatted.append(row)

        col_widths = self._column_widths(formatted, num_cols)

        lines = [self._border("┌", "┬", "┐", col_widths)]
        for row_idx, row in enumerate(formatted):
            lines.append(self._row(row, col_widths))
            if row_idx == 0:
                lines.append(self._border("├", "┼", "┤", col_widths))
        lines.append(self._border("└", "┴", "┘", col_widths))
        return lines

    @staticmethod
    def _column_widths(rows: list[list[str]], num_cols: int) -> list[int]:
        widths = [0] * num_cols
        for row in rows:
            for col, cell in enumerate(row):
                w = display_width(cell)
                if w > widths[col]:
                    widths[col] = w
        return widths

    def _border(self, left: str, mid: str, right: str, col_widths: list[int]) -> str:
        segments = mid.join("─" * (w + 2) for w in col_widths)
        return f"{self._color('table_border')}{left}{segments}{right}{RESET}"

    def _row(self, cells: list[str], col_widths: list[int]) -> str:
        bar = f"{self._color('table_border')}│{RESET}"
        parts = [bar]
        for cell, width in zip(cells, col_widths):
            padding = max(0, width - display_width(cell))
            parts.append(f" {cell}{' ' * padding} {bar}")
        return "".join(parts)
