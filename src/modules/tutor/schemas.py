"""Schemas for the tutor module."""

from dataclasses import dataclass
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

# Input constraints
MAX_QUESTION_LENGTH = 2000
MAX_HISTORY_MESSAGES = 50

SCHEMA_GENERATION_CONTEXT = "schema-generation"


class _CamelModel(BaseModel):
    """Accept both the camelCase wire names and the snake_case field names."""

    model_config = ConfigDict(populate_by_name=True)


class ChatTurn(BaseModel):
    """One prior message in the conversation."""

    role: Literal["user", "assistant"]
    content: str


class SelectedSchool(BaseModel):
    """A school the parent picked in the quiz (extra fields are kept)."""

    model_config = ConfigDict(extra="allow")

    name: str | None = None


class QuizData(_CamelModel):
    """Quiz answers forwarded by the client."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    parent_sub_type: str | None = Field(default=None, alias="parentSubType")
    selected_schools: list[SelectedSchool] = Field(
        default_factory=list, alias="selectedSchools"
    )
    kids_interests: list[str] = Field(default_factory=list, alias="kidsInterests")


class TutorRequest(_CamelModel):
    """Body of ``POST /api/ai/chat-tutor``."""

    question: str = Field(min_length=1, max_length=MAX_QUESTION_LENGTH)
    interests: list[str] = Field(default_factory=list)
    subject: str | None = None
    grade_level: str | None = Field(default=None, alias="gradeLevel")
    context: Any = None
    message_history: list[ChatTurn] = Field(
        default_factory=list, alias="messageHistory", max_length=MAX_HISTORY_MESSAGES
    )
    response_format: str | None = Field(default=None, alias="responseFormat")
    quiz_data: QuizData | None = Field(default=None, alias="quizData")
    kind: str | None = None

    @field_validator("question")
    @classmethod
    def question_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("question must not be blank")
        return value

    @property
    def is_schema_mode(self) -> bool:
        return (
            self.response_format == "schema"
            or self.context == SCHEMA_GENERATION_CONTEXT
        )

    def cache_context(self) -> dict[str, Any]:
        """Minimal context subset used in the cache key (history excluded).

        Unset fields are left out, so a request carrying only interests and
        grade level keys the same as an entry seeded with just those two.
        """
        quiz = self.quiz_data
        context = {
            "interests": self.interests,
            "gradeLevel": self.grade_level,
            "parentType": quiz.parent_sub_type if quiz else None,
            "schoolName": (
                quiz.selected_schools[0].name
                if quiz and quiz.selected_schools
                else None
            ),
        }
        return {key: value for key, value in context.items() if value is not None}


class GenerateRequest(_CamelModel):
    """Body of ``POST /api/ai/generate``."""

    prompt: str = Field(min_length=1, max_length=MAX_QUESTION_LENGTH)
    kind: str | None = None
    subject: str | None = None
    interests: list[str] = Field(default_factory=list)
    grade_level: str | None = Field(default=None, alias="gradeLevel")
    context: Any = None
    system_prompt: str | None = Field(default=None, alias="systemPrompt")

    @field_validator("prompt")
    @classmethod
    def prompt_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("prompt must not be blank")
        return value


@dataclass
class TutorResult:
    """Outcome of a tutor request, ready to serialize."""

    success: bool
    response: Any = None
    provider: str | None = None
    response_format: str | None = None
    cached: bool = False
    error: str | None = None
    validation_error: str | None = None
    raw_response: str | None = None

    def to_dict(self) -> dict[str, Any]:
        if not self.success:
            return {
                "success": False,
                "error": self.error,
                "validationError": self.validation_error,
                "rawResponse": self.raw_response,
            }

        body: dict[str, Any] = {
            "success": True,
            "response": self.response,
            "provider": self.provider,
        }
        if self.response_format is not None:
            body["responseFormat"] = self.response_format
        if self.cached:
            body["cached"] = True
        if self.error is not None:
            body["error"] = self.error
        return body
