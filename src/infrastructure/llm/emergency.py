"""Deterministic content served when every provider has failed.

Templates are registered per request ``kind``. They only interpolate the
request's own fields; nothing here touches the network.
"""

from collections.abc import Callable
from typing import Any

import structlog

from src.infrastructure.llm.schemas import GenerationRequest

logger = structlog.get_logger()

DEFAULT_KIND = "question_fallback"
GENERIC_KIND = "generic"

DEFAULT_SUBJECT = "general"
DEFAULT_GRADE = "6th"
DEFAULT_INTEREST = "your interests"

EmergencyTemplate = Callable[[GenerationRequest], Any]

_TEMPLATES: dict[str, EmergencyTemplate] = {}


def emergency_template(kind: str) -> Callable[[EmergencyTemplate], EmergencyTemplate]:
    """Register a template function for ``kind``."""

    def decorator(fn: EmergencyTemplate) -> EmergencyTemplate:
        _TEMPLATES[kind] = fn
        return fn

    return decorator


def registered_kinds() -> list[str]:
    return sorted(_TEMPLATES)


def build_emergency_content(request: GenerationRequest) -> Any:
    """Render the emergency template matching ``request.kind``.

    Unknown kinds use the generic template.
    """
    kind = request.kind or DEFAULT_KIND
    template = _TEMPLATES.get(kind)
    if template is None:
        logger.warning("emergency_template_unknown_kind", kind=kind)
        template = _TEMPLATES[GENERIC_KIND]
    return template(request)


def _subject(request: GenerationRequest) -> str:
    return request.subject or DEFAULT_SUBJECT


def _grade(request: GenerationRequest) -> str:
    return request.grade_level or DEFAULT_GRADE


def _primary_interest(request: GenerationRequest) -> str:
    return request.interests[0] if request.interests else DEFAULT_INTEREST


@emergency_template("question_fallback")
def _question_fallback(request: GenerationRequest) -> dict[str, Any]:
    subject, grade = _subject(request), _grade(request)
    interest = _primary_interest(request)
    return {
        "question": (
            f"Here's a {subject} question related to {interest} for {grade} grade: "
            f"How might concepts from {subject} apply to {interest}?"
        ),
        "solution": (
            "This is an emergency fallback response. AI services are temporarily "
            "unavailable. Please try refreshing the page in a few minutes for a "
            "personalized learning experience."
        ),
        "learningObjective": (
            f"Core {subject} concepts and their practical applications"
        ),
        "interestConnection": (
            f"This connects {subject} learning with {interest} to make it more engaging"
        ),
        "nextSteps": "Refresh the page to try again when AI services are restored",
        "followUpQuestions": [
            "Most interesting topic aspects?",
            "Real life applications?",
            "Next learning subject?",
        ],
        "emergency": True,
    }


@emergency_template("chat_suggestions")
def _chat_suggestions(request: GenerationRequest) -> list[str]:
    subject, interest = _subject(request), _primary_interest(request)
    return [
        f"How does {subject} show up in {interest}?",
        f"Where is {subject} used in real life?",
        f"What careers use {subject} every day?",
    ]


@emergency_template("how_we_get_results")
def _how_we_get_results(request: GenerationRequest) -> dict[str, Any]:
    grade, interest = _grade(request), _primary_interest(request)
    return {
        "title": f"How TimeBack helps a {grade} grade student excel",
        "subtitle": f"Personalized learning that builds on a love of {interest}",
        "points": [
            {
                "title": "Mastery before moving on",
                "description": (
                    "Students master each concept before advancing, "
                    "so gaps never compound."
                ),
            },
            {
                "title": "Personalized pacing",
                "description": (
                    "Lessons adapt to how quickly your child learns each topic."
                ),
            },
            {
                "title": "Time for passions",
                "description": (
                    f"Focused academics leave afternoons free for {interest}."
                ),
            },
        ],
        "emergency": True,
    }


@emergency_template("schema_response")
def _schema_response(request: GenerationRequest) -> dict[str, Any]:
    return {
        "header": "TIMEBACK | CUSTOM INSIGHT",
        "main_heading": "Let Me Help You Understand TimeBack",
        "description": (
            "I apologize for the technical difficulty. Please try asking your "
            "question again, and I'll provide you with personalized insights about "
            "how TimeBack can benefit your child."
        ),
        "key_points": [
            {
                "label": "Personalized Learning",
                "description": (
                    "TimeBack adapts to each student's unique learning pace and style, "
                    "ensuring they master concepts before moving forward."
                ),
            },
            {
                "label": "Proven Results",
                "description": (
                    "Students typically learn 2x faster while spending only 2 hours on "
                    "academics daily, freeing up time for passions and life skills."
                ),
            },
            {
                "label": "AI Powered Support",
                "description": (
                    "Our AI tutors provide individualized attention and immediate "
                    "feedback, eliminating learning gaps and building confidence."
                ),
            },
        ],
        "next_options": [
            "How does TimeBack measure student progress?",
            "What happens if my child struggles with a concept?",
            "How do students spend their extra time?",
        ],
        "emergency": True,
    }


@emergency_template(GENERIC_KIND)
def _generic(request: GenerationRequest) -> dict[str, Any]:
    subject, grade = _subject(request), _grade(request)
    interest = _primary_interest(request)
    return {
        "message": f"Content related to {subject} and {interest} for {grade} grade",
        "note": (
            "AI services are temporarily unavailable. "
            "Please try again in a few minutes."
        ),
        "subject": subject,
        "interests": list(request.interests),
        "gradeLevel": grade,
        "emergency": True,
        "suggestions": [
            "Refresh the page to try again",
            "Check your internet connection",
            "Contact support if the issue persists",
        ],
    }
