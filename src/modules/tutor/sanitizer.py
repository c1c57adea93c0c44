"""Strip markdown emphasis from generated plain-text fields."""

import re
from typing import Any

_EMPHASIS_PATTERNS = (
    re.compile(r"\*\*([^*]+)\*\*"),  # **bold**
    re.compile(r"\*([^*]+)\*"),  # *italic*
    re.compile(r"__([^_]+)__"),  # __underline__
    re.compile(r"_([^_]+)_"),  # _emphasis_
    re.compile(r"`([^`]+)`"),  # `code`
    re.compile(r"~~([^~]+)~~"),  # ~~strike~~
)
_STRAY_ASTERISKS = re.compile(r"\*{2,}")
_HEADING_MARKERS = re.compile(r"(^|\n)\s*#{1,6}\s+")


def strip_markdown(text: str) -> str:
    """Remove markdown emphasis, inline code and heading markers."""
    for pattern in _EMPHASIS_PATTERNS:
        text = pattern.sub(r"\1", text)
    text = _STRAY_ASTERISKS.sub("", text)
    return _HEADING_MARKERS.sub(r"\1", text)


def sanitize_plain_text_deep(value: Any) -> Any:
    """Return a copy of ``value`` with every string passed through strip_markdown.

    Dicts and lists are walked recursively; keys and non-string leaves are
    left alone, so the shape never changes.
    """
    if isinstance(value, str):
        return strip_markdown(value)
    if isinstance(value, list):
        return [sanitize_plain_text_deep(item) for item in value]
    if isinstance(value, dict):
        return {key: sanitize_plain_text_deep(item) for key, item in value.items()}
    return value
