"""Tutor module exceptions."""

from typing import Literal

ValidationErrorKind = Literal["parse", "missing_fields", "shape"]


class TutorError(Exception):
    """Base exception for tutor operations."""

    pass


class SchemaValidationError(TutorError):
    """Raised when a schema-mode completion does not match the content shape.

    The raw completion is kept so it can be returned to the caller as-is.
    """

    def __init__(
        self,
        kind: ValidationErrorKind,
        message: str,
        *,
        fields: tuple[str, ...] = (),
        raw_text: str = "",
    ) -> None:
        self.kind = kind
        self.message = message
        self.fields = fields
        self.raw_text = raw_text
        super().__init__(message)
