"""Remove visual promises the reply cannot keep.

The tutoring prompt pairs every "here's a diagram" with a chart block. When
no chart survived extraction, the promise is cut so the student is not
pointed at a picture that is not there.
"""

import logging
import re
from typing import Pattern, Tuple

log = logging.getLogger(__name__)

_VISUAL_NOUN = r"(?:diagram|image|figure|visual|graph|chart)"

# Rest of the sentence: a "." or ":" only ends it when followed by whitespace,
# so decimals like 2.5 stay inside the match.
_REST = r"(?:[^.:\n]|[.:](?!\s|$))*"
_END = r"[.:](?=\s|$)"

VISUAL_PROMISE_PATTERNS: Tuple[Pattern[str], ...] = tuple(
    re.compile(pattern, re.IGNORECASE)
    for pattern in (
        rf"\bhere'?s?\s+a\s+visual\s+representation{_REST}{_END}",
        rf"\bhere'?s?\s+(?:a\s+)?(?:visual\s+)?representation\s+(?:of|showing){_REST}{_END}",
        rf"\bhere'?s?\s+(?:a\s+)?(?:the\s+)?{_VISUAL_NOUN}{_REST}{_END}",
        rf"\bas\s+(?:you\s+can\s+)?see\s+(?:in\s+)?(?:the\s+|this\s+)?{_VISUAL_NOUN}{_REST}{_END}",
        rf"\bnotice\s+(?:in\s+)?(?:this|the)\s+{_VISUAL_NOUN}{_REST}{_END}",
        # Only a colon marks "let me show you" as a visual lead-in.
        rf"\blet\s+me\s+show\s+you{_REST}:(?=\s|$)",
    )
)

_DANGLING_VISUAL_LINE = re.compile(
    rf"\n\s*(?:\bhere'?s?\s+(?:a\s+)?visual{_REST}{_END}\s*)+\n", re.IGNORECASE
)
_BLANK_LINE_RUN = re.compile(r"\n{3,}")
_INLINE_SPACE_RUN = re.compile(r"[ \t]{2,}")


def clean_broken_references(text: str, chart_present: bool) -> str:
    """Drop visual-promise sentences unless a chart accompanies the reply."""
    if chart_present:
        return text

    cleaned = text
    for pattern in VISUAL_PROMISE_PATTERNS:
        for match in pattern.finditer(cleaned):
            log.warning(f'[References] Removing broken visual reference: "{match.group(0)}"')
        cleaned = pattern.sub("", cleaned)

    cleaned = _DANGLING_VISUAL_LINE.sub("\n", cleaned)
    cleaned = _BLANK_LINE_RUN.sub("\n\n", cleaned)
    cleaned = _INLINE_SPACE_RUN.sub(" ", cleaned)
    return cleaned.strip()
