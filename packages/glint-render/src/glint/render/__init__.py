"""glint-render: Markdown and ``@CODE@`` tag rendering for terminals."""

import logging

# Code tags
from glint.render.codes import (
    ALIASES,
    CATEGORIES,
    CODES,
    CodeRegistry,
    parse_tags,
    strip_escapes,
    strip_tags,
)

# Configuration
from glint.render.config import (
    BUILTIN_DIR,
    RenderSettings,
    default_search_dirs,
    get_config_dir,
    get_shared_dir,
)

# Formulas
from glint.render.formula import SYMBOLS, formula_block, render_formula

# Inline cascade
from glint.render.inline import INLINE_PASSES, format_inline, render_line

# Markdown
from glint.render.markdown import MarkdownRenderer, render_markdown, strip_markdown

# Tables
from glint.render.table import TableLayout, is_separator_row, is_table_row, split_row

# Styles and themes
from glint.render.theme import (
    BUILTIN_STYLE,
    BUILTIN_THEME,
    REQUIRED_THEME_KEYS,
    BoundStyle,
    ColorSource,
    Definition,
    DefinitionError,
    RenderContext,
    ThemeManager,
)

# Width
from glint.render.width import char_width, display_width, strip_markup, visual_width

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    # Code tags
    "ALIASES",
    "CATEGORIES",
    "CODES",
    "CodeRegistry",
    "parse_tags",
    "strip_escapes",
    "strip_tags",
    # Configuration
    "BUILTIN_DIR",
    "RenderSettings",
    "default_search_dirs",
    "get_config_dir",
    "get_shared_dir",
    # Formulas
    "SYMBOLS",
    "formula_block",
    "render_formula",
    # Inline
    "INLINE_PASSES",
    "format_inline",
    "render_line",
    # Markdown
    "MarkdownRenderer",
    "render_markdown",
    "strip_markdown",
    # Tables
    "TableLayout",
    "is_separator_row",
    "is_table_row",
    "split_row",
    # Styles and themes
    "BUILTIN_STYLE",
    "BUILTIN_THEME",
    "REQUIRED_THEME_KEYS",
    "BoundStyle",
    "ColorSource",
    "Definition",
    "DefinitionError",
    "RenderContext",
    "ThemeManager",
    # Width
    "char_width",
    "display_width",
    "strip_markup",
    "visual_width",
]
