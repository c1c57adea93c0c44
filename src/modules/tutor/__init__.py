"""Tutor module.

Answers parents' questions about TimeBack through the provider fallback
chain, either as free text or as a validated structured content block.
"""

from src.modules.tutor.exceptions import SchemaValidationError, TutorError
from src.modules.tutor.sanitizer import sanitize_plain_text_deep, strip_markdown
from src.modules.tutor.schemas import (
    GenerateRequest,
    TutorRequest,
    TutorResult,
)
from src.modules.tutor.service import TutorService, warm_common_responses
from src.modules.tutor.validator import validate_schema_response

__all__ = [
    "GenerateRequest",
    "SchemaValidationError",
    "TutorError",
    "TutorRequest",
    "TutorResult",
    "TutorService",
    "sanitize_plain_text_deep",
    "strip_markdown",
    "validate_schema_response",
    "warm_common_responses",
]
