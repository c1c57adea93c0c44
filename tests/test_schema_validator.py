"""Tests for structured response validation."""

import json

import pytest

from src.modules.tutor import SchemaValidationError, validate_schema_response
from src.modules.tutor.validator import normalize_completion

VALID = (
    '{"header":"H","main_heading":"M","description":"D",'
    '"key_points":[{"label":"a","description":"b"},{"label":"c","description":"d"},'
    '{"label":"e","description":"f"}],"next_options":["x","y","z"]}'
)


def _payload(**overrides) -> str:
    data = json.loads(VALID)
    data.update(overrides)
    return json.dumps(data)


class TestAcceptance:
    """Payloads that must parse."""

    def test_accepts_valid_payload(self):
        parsed = validate_schema_response(VALID)

        assert parsed["header"] == "H"
        assert len(parsed["key_points"]) == 3
        assert parsed["next_options"] == ["x", "y", "z"]

    def test_tolerates_prose_and_smart_quotes(self):
        """Surrounding prose is sliced off and curly quotes straightened."""
        curly = "\u201cdescription\u201d:\u201cfancy quotes\u201d"
        raw = "Here you go: " + VALID.replace('"description":"D"', curly) + " Thanks!"

        parsed = validate_schema_response(raw)

        assert parsed["description"] == "fancy quotes"

    def test_collapses_raw_newlines_inside_strings(self):
        raw = VALID.replace('"description":"D"', '"description":"line one\nline two"')

        parsed = validate_schema_response(raw)

        assert parsed["description"] == "line one line two"

    def test_tolerates_markdown_code_fence(self):
        raw = "```json\n" + VALID + "\n```"

        assert validate_schema_response(raw)["main_heading"] == "M"

    def test_single_smart_quotes_become_apostrophes(self):
        raw = VALID.replace('"main_heading":"M"', '"main_heading":"TimeBack\u2019s"')

        assert validate_schema_response(raw)["main_heading"] == "TimeBack's"

    def test_extra_keys_are_kept(self):
        parsed = validate_schema_response(_payload(extra="kept"))

        assert parsed["extra"] == "kept"


class TestParseErrors:
    def test_no_json(self):
        with pytest.raises(SchemaValidationError) as exc_info:
            validate_schema_response("Sorry, I cannot help with that.")

        assert exc_info.value.kind == "parse"
        assert exc_info.value.raw_text == "Sorry, I cannot help with that."

    def test_truncated_json(self):
        with pytest.raises(SchemaValidationError) as exc_info:
            validate_schema_response(VALID[:-20])

        assert exc_info.value.kind == "parse"

    def test_non_object_json(self):
        with pytest.raises(SchemaValidationError) as exc_info:
            validate_schema_response('["a", "b"]')

        assert exc_info.value.kind == "parse"


class TestMissingFields:
    def test_missing_field(self):
        data = json.loads(VALID)
        del data["main_heading"]

        with pytest.raises(SchemaValidationError) as exc_info:
            validate_schema_response(json.dumps(data))

        assert exc_info.value.kind == "missing_fields"
        assert exc_info.value.fields == ("main_heading",)

    @pytest.mark.parametrize("empty", [None, "", []])
    def test_empty_values_count_as_missing(self, empty):
        with pytest.raises(SchemaValidationError) as exc_info:
            validate_schema_response(_payload(header=empty))

        assert exc_info.value.kind == "missing_fields"
        assert "header" in exc_info.value.fields

    def test_reports_every_missing_field(self):
        with pytest.raises(SchemaValidationError) as exc_info:
            validate_schema_response('{"header": "H"}')

        assert exc_info.value.fields == (
            "main_heading",
            "description",
            "key_points",
            "next_options",
        )


class TestShape:
    def test_two_key_points(self):
        two = [{"label": "a", "description": "b"}, {"label": "c", "description": "d"}]

        with pytest.raises(SchemaValidationError) as exc_info:
            validate_schema_response(_payload(key_points=two))

        assert exc_info.value.kind == "shape"
        assert exc_info.value.fields == ("key_points",)

    def test_four_key_points(self):
        four = [{"label": str(i), "description": "d"} for i in range(4)]

        with pytest.raises(SchemaValidationError) as exc_info:
            validate_schema_response(_payload(key_points=four))

        assert exc_info.value.kind == "shape"

    def test_key_point_with_empty_label(self):
        points = [
            {"label": "", "description": "b"},
            {"label": "c", "description": "d"},
            {"label": "e", "description": "f"},
        ]

        with pytest.raises(SchemaValidationError) as exc_info:
            validate_schema_response(_payload(key_points=points))

        assert exc_info.value.kind == "shape"

    def test_key_points_not_a_list(self):
        with pytest.raises(SchemaValidationError) as exc_info:
            validate_schema_response(_payload(key_points="three points"))

        assert exc_info.value.kind == "shape"

    def test_next_options_wrong_length(self):
        with pytest.raises(SchemaValidationError) as exc_info:
            validate_schema_response(_payload(next_options=["x", "y"]))

        assert exc_info.value.kind == "shape"
        assert exc_info.value.fields == ("next_options",)

    def test_next_options_must_be_strings(self):
        with pytest.raises(SchemaValidationError) as exc_info:
            validate_schema_response(_payload(next_options=["x", "y", 3]))

        assert exc_info.value.kind == "shape"


class TestNormalize:
    def test_slices_between_outer_braces(self):
        assert normalize_completion('noise {"a": {"b": 1}} tail') == '{"a": {"b": 1}}'

    def test_leaves_text_without_braces(self):
        assert normalize_completion("  plain\n\ntext ") == "plain text"
