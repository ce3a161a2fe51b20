"""
Formula detection for recognized text.

Provides:
- Classification of OCR text as mathematical
- Approximate conversion of that text to LaTeX

The classifier is a plain callable ``text -> (is_formula, latex)`` so a
real math-recognition model can replace it without touching the pipeline.
The patterns are regex heuristics: no grammar, no bracket balancing.
"""

import re
from typing import Callable, List, Tuple

FormulaClassifier = Callable[[str], Tuple[bool, str]]


# ============================================================================
# Patterns
# ============================================================================

MATH_SYMBOLS = "∫∑∏√±×÷≤≥≠≈∞∂∇"

# Digit and word-boundary classes are ASCII-only: "\d" must not match
# Arabic-Indic or other Unicode digits.
FORMULA_PATTERNS: List[re.Pattern] = [
    re.compile(f"[{MATH_SYMBOLS}]"),                          # math symbols
    re.compile(r"\d+[+\-*/]\d+", re.ASCII),                   # basic arithmetic
    re.compile(r"[a-zA-Z]\s*=\s*[a-zA-Z0-9+\-*/()]+"),        # equations
    re.compile(r"\b(sin|cos|tan|log|ln|exp|sqrt)\b", re.IGNORECASE | re.ASCII),  # functions
    re.compile(r"\([a-zA-Z0-9+\-*/\s]+\)"),                   # parenthesized
]

# Applied in order; later rules see the output of earlier ones
LATEX_SUBSTITUTIONS: List[Tuple[re.Pattern, str]] = [
    (re.compile(r"\*"), r"\\cdot "),
    (re.compile(r"/"), r"\\div "),
    (re.compile(r"sqrt\(([^)]+)\)", re.IGNORECASE | re.ASCII), r"\\sqrt{\1}"),
    (re.compile(r"\^([a-zA-Z0-9]+)"), r"^{\1}"),
    (re.compile(r"_([a-zA-Z0-9]+)"), r"_{\1}"),
    # Never matches: every "/" was already replaced above
    (re.compile(r"(\d+)/(\d+)", re.ASCII), r"\\frac{\1}{\2}"),
    (re.compile(r"\b(sin|cos|tan|log|ln|exp)\b", re.IGNORECASE | re.ASCII), r"\\\1"),
]


# ============================================================================
# Classification
# ============================================================================

def contains_math(text: str) -> bool:
    """
    Heuristically determine if text is mathematical.

    Args:
        text: Recognized text

    Returns:
        True if any formula pattern matches
    """
    if not text:
        return False
    return any(pattern.search(text) for pattern in FORMULA_PATTERNS)


def text_to_latex(text: str) -> str:
    """
    Convert recognized text to approximate LaTeX.

    Example: "sqrt(x)*2" -> "\\sqrt{x}\\cdot 2"
    """
    latex = text
    for pattern, replacement in LATEX_SUBSTITUTIONS:
        latex = pattern.sub(replacement, latex)
    return latex


def classify_formula(text: str) -> Tuple[bool, str]:
    """
    Classify text and translate it when it is mathematical.

    Returns:
        (is_formula, rendered) where rendered is LaTeX for formulas and
        the unchanged text otherwise
    """
    if not contains_math(text):
        return False, text
    return True, text_to_latex(text)
