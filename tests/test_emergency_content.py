"""Tests for emergency content templates."""

import json

from src.infrastructure.llm import GenerationRequest, build_emergency_content
from src.infrastructure.llm.emergency import emergency_template, registered_kinds
from src.modules.tutor import validate_schema_response


def _request(**kwargs) -> GenerationRequest:
    return GenerationRequest(prompt="q", **kwargs)


class TestTemplateSelection:
    """Tests for kind lookup."""

    def test_default_kind_is_question_fallback(self):
        content = build_emergency_content(_request())

        assert set(content) >= {
            "question",
            "solution",
            "learningObjective",
            "interestConnection",
            "nextSteps",
            "followUpQuestions",
        }
        assert content["emergency"] is True
        assert len(content["followUpQuestions"]) == 3

    def test_unknown_kind_uses_generic(self):
        content = build_emergency_content(_request(kind="no-such-kind"))

        assert content["emergency"] is True
        assert len(content["suggestions"]) == 3
        assert "message" in content

    def test_chat_suggestions_returns_three_strings(self):
        content = build_emergency_content(
            _request(kind="chat_suggestions", subject="science")
        )

        assert isinstance(content, list)
        assert len(content) == 3
        assert all("science" in s for s in content[:2])

    def test_how_we_get_results(self):
        content = build_emergency_content(
            _request(kind="how_we_get_results", interests=("chess",))
        )

        assert "chess" in content["subtitle"]
        assert len(content["points"]) == 3

    def test_registered_kinds(self):
        assert {
            "question_fallback",
            "chat_suggestions",
            "how_we_get_results",
            "schema_response",
            "generic",
        } <= set(registered_kinds())

    def test_registering_new_kind(self):
        @emergency_template("test_only_kind")
        def _template(request: GenerationRequest) -> str:
            return f"custom for {request.prompt}"

        content = build_emergency_content(_request(kind="test_only_kind"))

        assert content == "custom for q"


class TestInterpolation:
    """Tests for context defaults and interpolation."""

    def test_defaults_when_context_missing(self):
        content = build_emergency_content(_request(kind="generic"))

        assert content["subject"] == "general"
        assert content["gradeLevel"] == "6th"
        assert "your interests" in content["message"]

    def test_uses_first_interest(self):
        content = build_emergency_content(
            _request(
                subject="history", grade_level="8th", interests=("music", "painting")
            )
        )

        assert "history" in content["question"]
        assert "music" in content["question"]
        assert "8th" in content["question"]
        assert "painting" not in content["interestConnection"]

    def test_deterministic(self):
        request = _request(subject="math", interests=("soccer",))

        assert build_emergency_content(request) == build_emergency_content(request)


class TestSchemaResponseTemplate:
    """The structured template must still render as a content block."""

    def test_schema_response_passes_validation(self):
        content = build_emergency_content(_request(kind="schema_response"))

        parsed = validate_schema_response(json.dumps(content))
        assert parsed["emergency"] is True
        assert len(parsed["key_points"]) == 3
        assert len(parsed["next_options"]) == 3
