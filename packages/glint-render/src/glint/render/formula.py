"""LaTeX symbol substitution for inline and display formulas.

This is not a TeX parser: a fixed, ordered list of literal replacements turns
common control sequences into Unicode symbols and leaves everything else as
written.
"""

from __future__ import annotations

import re

from glint.render.width import display_width

# Ordered (latex, symbol) pairs.  A command that is a prefix of another
# (``\subset`` / ``\subseteq``, ``\in`` / ``\int`` / ``\infty``) comes after it.
SYMBOLS: tuple[tuple[str, str], ...] = (
    # Greek, lowercase
    ("\\alpha", "α"),
    ("\\beta", "β"),
    ("\\gamma", "γ"),
    ("\\delta", "δ"),
    ("\\epsilon", "ε"),
    ("\\zeta", "ζ"),
    ("\\eta", "η"),
    ("\\theta", "θ"),
    ("\\iota", "ι"),
    ("\\kappa", "κ"),
    ("\\lambda", "λ"),
    ("\\mu", "μ"),
    ("\\nu", "ν"),
    ("\\xi", "ξ"),
    ("\\omicron", "ο"),
    ("\\pi", "π"),
    ("\\rho", "ρ"),
    ("\\sigma", "σ"),
    ("\\tau", "τ"),
    ("\\upsilon", "υ"),
    ("\\phi", "φ"),
    ("\\chi", "χ"),
    ("\\psi", "ψ"),
    ("\\omega", "ω"),
    # Greek, uppercase
    ("\\Gamma", "Γ"),
    ("\\Delta", "Δ"),
    ("\\Theta", "Θ"),
    ("\\Lambda", "Λ"),
    ("\\Xi", "Ξ"),
    ("\\Pi", "Π"),
    ("\\Sigma", "Σ"),
    ("\\Upsilon", "Υ"),
    ("\\Phi", "Φ"),
    ("\\Psi", "Ψ"),
    ("\\Omega", "Ω"),
    # Operators and relations
    ("\\sqrt", "√"),
    ("\\cbrt", "∛"),
    ("\\sum", "∑"),
    ("\\prod", "∏"),
    ("\\oint", "∮"),
    ("\\int", "∫"),
    ("\\infty", "∞"),
    ("\\pm", "±"),
    ("\\mp", "∓"),
    ("\\times", "×"),
    ("\\div", "÷"),
    ("\\leq", "≤"),
    ("\\geq", "≥"),
    ("\\neq", "≠"),
    ("\\approx", "≈"),
    ("\\equiv", "≡"),
    ("\\propto", "∝"),
    ("\\partial", "∂"),
    ("\\nabla", "∇"),
    ("\\forall", "∀"),
    ("\\exists", "∃"),
    ("\\notin", "∉"),
    ("\\in", "∈"),
    ("\\subseteq", "⊆"),
    ("\\supseteq", "⊇"),
    ("\\subset", "⊂"),
    ("\\supset", "⊃"),
    ("\\cup", "∪"),
    ("\\cap", "∩"),
    ("\\therefore", "∴"),
    ("\\because", "∵"),
    ("\\cdot", "·"),
    ("\\ldots", "…"),
    ("\\dots", "…"),
    # Superscripts
    ("^2", "²"),
    ("^3", "³"),
    ("^-1", "⁻¹"),
    ("^n", "ⁿ"),
)

_EINSTEIN_RE = re.compile(r"E\s*=\s*mc\s*(?:\^2|²)")

FRAME_LABEL = "─ Formula "
_MIN_INNER = 28


def render_formula(formula: str | None) -> str:
    """Replace known LaTeX commands in *formula* with Unicode symbols."""
    if formula is None:
        return ""

    result = formula
    for latex, symbol in SYMBOLS:
        if latex in result:
            result = result.replace(latex, symbol)

    if _EINSTEIN_RE.fullmatch(result.strip()):
        result = "E = mc²"

    return result


def formula_block(formula: str | None, color: str = "") -> list[str]:
    """Frame a display formula.

    ::

        ┌─ Formula ──────────────────┐
        │ ∫ e^{-x²} dx               │
        └────────────────────────────┘

    *color* is a tag string (``@BRIGHT_CYAN@``...) applied to the frame.
    """
    if formula is None:
        return []

    rendered = render_formula(formula.strip())
    content_width = display_width(rendered)
    inner = max(_MIN_INNER, content_width + 2)
    padding = inner - 1 - content_width

    top = f"{color}┌{FRAME_LABEL}{'─' * (inner - len(FRAME_LABEL))}┐@RESET@"
    middle = f"{color}│ @RESET@{rendered}{' ' * padding}{color}│@RESET@"
    bottom = f"{color}└{'─' * inner}┘@RESET@"
    return [top, middle, bottom]
