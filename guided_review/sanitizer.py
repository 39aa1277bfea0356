"""Repair known corruption patterns in raw model text.

Replies occasionally arrive with LaTeX delimiters stripped, leaving output
such as ``3.They−interceptis10``. The rules below run in a fixed order
(later rules assume the earlier normalization) and the whole rule list is
re-applied until the text stops changing, so ``sanitize`` is idempotent.
"""

import logging
import re

log = logging.getLogger(__name__)

MAX_PASSES = 5

# Sentence-ending digit glued to the next sentence: "3.They" -> "3. They"
_GLUED_SENTENCE = re.compile(r"(\d)\.([A-Z][a-z])")

# Math glyphs that render badly once the LaTeX around them is lost.
_GLYPHS = str.maketrans({
    "−": "-",  # minus sign
    "－": "-",  # fullwidth hyphen-minus
    "＋": "+",  # fullwidth plus
    "∗": "*",  # asterisk operator
    "⋅": "·",  # dot operator -> middle dot
})

_GLUED_WORDS = (
    (re.compile(r"intercept(is)(\d+)", re.IGNORECASE), r"intercept is \2"),
    (re.compile(r"whichmeansyoustartwith", re.IGNORECASE), "which means you start with"),
    (re.compile(r"\b([xy])-?intercept\s*is\s*(\d+)", re.IGNORECASE), r"\1-intercept is \2"),
)

# A long word repeated back-to-back, possibly with punctuation between.
# The whole run collapses in one substitution.
_DUPLICATED_RUN = re.compile(r"(\b\w{10,}\b)(?:[^a-zA-Z]*\1\b)+")

_WHITESPACE_RUN = re.compile(r"\s{2,}")


def _collapse_whitespace(text: str) -> str:
    # Runs become one space; line breaks inside a run survive so a "//" comment
    # in an embedded JSON block still ends at its own line.
    def _one(match: re.Match) -> str:
        newlines = match.group(0).count("\n")
        if newlines >= 2:
            return "\n\n"
        return "\n" if newlines else " "

    return _WHITESPACE_RUN.sub(_one, text)


def _apply_rules(text: str) -> str:
    text = _GLUED_SENTENCE.sub(r"\1. \2", text)
    text = text.translate(_GLYPHS)
    for pattern, replacement in _GLUED_WORDS:
        text = pattern.sub(replacement, text)
    text = _DUPLICATED_RUN.sub(r"\1", text)
    return _collapse_whitespace(text).strip()


def sanitize(text: str) -> str:
    """Return ``text`` with corruption repaired. Never raises."""
    if not text:
        return ""

    sanitized = _apply_rules(text)
    for _ in range(MAX_PASSES):
        again = _apply_rules(sanitized)
        if again == sanitized:
            break
        sanitized = again

    # Whitespace trimming alone is not worth a diagnostic.
    if sanitized != text.strip() and _collapse_whitespace(text).strip() != sanitized:
        log.warning(
            f"[Sanitizer] Repaired corrupted text "
            f"(original length={len(text)}, sanitized length={len(sanitized)})"
        )
    return sanitized
