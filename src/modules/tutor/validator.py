"""Extract and validate the JSON content block from a raw completion.

Only syntactic normalization happens here (quote style, stray newlines,
surrounding prose). A payload that still fails is reported, never repaired.
"""

import json
import re
from typing import Any

import structlog

from src.modules.tutor.exceptions import SchemaValidationError

logger = structlog.get_logger()

REQUIRED_FIELDS = (
    "header",
    "main_heading",
    "description",
    "key_points",
    "next_options",
)
KEY_POINT_COUNT = 3
NEXT_OPTION_COUNT = 3

_SMART_QUOTES = str.maketrans(
    {
        "“": '"',
        "”": '"',
        "‘": "'",
        "’": "'",
    }
)
_NEWLINE_RUNS = re.compile(r"[\r\n]+")


def normalize_completion(raw_text: str) -> str:
    """Apply the pre-parse normalizations and slice out the JSON object.

    Steps, in order: straighten smart quotes, collapse newline runs to a
    single space, then keep the span from the first ``{`` to the last ``}``.
    """
    text = raw_text.strip().translate(_SMART_QUOTES)
    text = _NEWLINE_RUNS.sub(" ", text)

    start = text.find("{")
    end = text.rfind("}")
    if start != -1 and end > start:
        text = text[start : end + 1]
    return text


def _is_missing(value: Any) -> bool:
    return value is None or value == "" or value == [] or value == {}


def _non_empty_str(value: Any) -> bool:
    return isinstance(value, str) and value.strip() != ""


def validate_schema_response(raw_text: str) -> dict[str, Any]:
    """Parse a completion into the structured content shape.

    Args:
        raw_text: The provider's text exactly as returned.

    Returns:
        The parsed object.

    Raises:
        SchemaValidationError: ``kind`` is ``"parse"`` when no JSON object
            can be decoded, ``"missing_fields"`` when a required top-level
            field is absent or empty, and ``"shape"`` when ``key_points`` or
            ``next_options`` do not hold exactly three well-formed items.
    """
    normalized = normalize_completion(raw_text)

    try:
        parsed = json.loads(normalized)
    except json.JSONDecodeError as e:
        logger.warning(
            "schema_parse_failed",
            error=str(e),
            snippet=normalized[:200],
        )
        raise SchemaValidationError(
            "parse", f"Response is not valid JSON: {e.msg}", raw_text=raw_text
        ) from e

    if not isinstance(parsed, dict):
        raise SchemaValidationError(
            "parse", "Response JSON is not an object", raw_text=raw_text
        )

    missing = tuple(f for f in REQUIRED_FIELDS if _is_missing(parsed.get(f)))
    if missing:
        logger.warning("schema_missing_fields", fields=list(missing))
        raise SchemaValidationError(
            "missing_fields",
            f"Missing required fields: {', '.join(missing)}",
            fields=missing,
            raw_text=raw_text,
        )

    key_points = parsed["key_points"]
    if not isinstance(key_points, list) or len(key_points) != KEY_POINT_COUNT:
        count = len(key_points) if isinstance(key_points, list) else None
        raise SchemaValidationError(
            "shape",
            f"key_points must contain exactly {KEY_POINT_COUNT} items, got {count}",
            fields=("key_points",),
            raw_text=raw_text,
        )
    for index, point in enumerate(key_points):
        if not (
            isinstance(point, dict)
            and _non_empty_str(point.get("label"))
            and _non_empty_str(point.get("description"))
        ):
            raise SchemaValidationError(
                "shape",
                f"key_points[{index}] needs a non-empty label and description",
                fields=("key_points",),
                raw_text=raw_text,
            )

    next_options = parsed["next_options"]
    if (
        not isinstance(next_options, list)
        or len(next_options) != NEXT_OPTION_COUNT
        or not all(isinstance(option, str) for option in next_options)
    ):
        raise SchemaValidationError(
            "shape",
            f"next_options must be exactly {NEXT_OPTION_COUNT} strings",
            fields=("next_options",),
            raw_text=raw_text,
        )

    return parsed
