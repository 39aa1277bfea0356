"""Tagged-block extraction and lenient JSON parsing.

The model embeds UI payloads in its prose as ``<question>{...}</question>``
and ``<graph>{...}</graph>``. A block is always cut out of the prose, even
when its payload is unusable, so raw markup never reaches the student.
"""

from __future__ import annotations

import json
import logging
import re
from functools import lru_cache
from typing import Any, NamedTuple, Optional

log = logging.getLogger(__name__)

QUESTION_TAG = "question"
CHART_TAG = "graph"

# Known limitation: a "//" inside a string value (e.g. a URL) is cut too.
_LINE_COMMENT = re.compile(r"//[^\n\r]*")


class ExtractedBlock(NamedTuple):
    remainder: str
    payload: Optional[Any]


@lru_cache(maxsize=None)
def _block_pattern(tag: str) -> re.Pattern[str]:
    name = re.escape(tag)
    return re.compile(rf"<{name}>([\s\S]*?)</{name}>")


def strip_json_comments(raw: str) -> str:
    return _LINE_COMMENT.sub("", raw)


def parse_lenient(raw: str) -> Any:
    """Parse JSON after dropping ``//`` line comments.

    Raises json.JSONDecodeError when the remainder is still not JSON.
    """
    return json.loads(strip_json_comments(raw).strip())


def extract_block(text: str, tag: str) -> ExtractedBlock:
    """Cut ``<tag>...</tag>`` out of ``text`` and parse the first one.

    Every complete block of that tag is removed from the remainder; only the
    first is parsed. Unmatched or unterminated delimiters leave the text as it
    was. The payload is None when there is no block or it fails to parse.
    """
    pattern = _block_pattern(tag)
    match = pattern.search(text)
    if match is None:
        return ExtractedBlock(text, None)

    remainder = pattern.sub("", text).strip()
    try:
        payload = parse_lenient(match.group(1))
    except (json.JSONDecodeError, RecursionError) as exc:
        log.warning(f"[Extractor] Dropped <{tag}> block with invalid JSON: {exc}")
        return ExtractedBlock(remainder, None)
    return ExtractedBlock(remainder, payload)
