"""Tests for catalogue.py — operation descriptors, schemas and required-field checks."""

import pytest

from canvas_mcp.catalogue import (
    OPERATIONS,
    OPERATIONS_BY_NAME,
    FieldSpec,
    OperationDescriptor,
    get_operation,
    validate_arguments,
)
from canvas_mcp.exceptions import UnknownOperationError, ValidationError

_ORIGINAL_TOOLS = {
    "canvas_create_course",
    "canvas_update_course",
    "canvas_create_assignment",
    "canvas_update_assignment",
    "canvas_submit_grade",
    "canvas_enroll_user",
    "canvas_submit_assignment",
    "canvas_list_quizzes",
    "canvas_get_quiz",
    "canvas_create_quiz",
    "canvas_update_quiz",
    "canvas_delete_quiz",
    "canvas_list_modules",
    "canvas_get_module",
    "canvas_list_module_items",
    "canvas_get_module_item",
    "canvas_list_discussion_topics",
    "canvas_get_discussion_topic",
    "canvas_list_announcements",
}


class TestCatalogue:
    def test_names_are_unique(self):
        names = [op.name for op in OPERATIONS]
        assert len(names) == len(set(names))

    def test_contains_core_tools(self):
        assert _ORIGINAL_TOOLS <= set(OPERATIONS_BY_NAME)

    def test_lookup_is_read_only(self):
        with pytest.raises(TypeError):
            OPERATIONS_BY_NAME["x"] = OPERATIONS[0]

    def test_descriptors_are_frozen(self):
        with pytest.raises(AttributeError):
            OPERATIONS[0].name = "renamed"

    def test_unknown_operation(self):
        with pytest.raises(UnknownOperationError, match="Unknown tool: canvas_nope"):
            get_operation("canvas_nope")

    def test_every_schema_is_an_object(self):
        for op in OPERATIONS:
            schema = op.input_schema
            assert schema["type"] == "object"
            assert set(schema.get("required", [])) <= set(schema["properties"])


class TestInputSchema:
    def test_submit_grade_schema(self):
        schema = get_operation("canvas_submit_grade").input_schema
        assert schema["required"] == ["course_id", "assignment_id", "user_id", "grade"]
        assert schema["properties"]["grade"]["oneOf"] == [{"type": "number"}, {"type": "string"}]
        assert schema["properties"]["comment"]["type"] == "string"

    def test_course_id_is_number_or_string(self):
        schema = get_operation("canvas_list_quizzes").input_schema
        assert schema["properties"]["course_id"]["oneOf"] == [
            {"type": "number"},
            {"type": "string"},
        ]

    def test_array_items(self):
        props = get_operation("canvas_create_assignment").input_schema["properties"]
        assert props["submission_types"] == {
            "type": "array",
            "items": {"type": "string"},
            "description": "Allowed submission types",
        }

    def test_no_required_key_when_nothing_required(self):
        schema = get_operation("canvas_list_courses").input_schema
        assert schema == {"type": "object", "properties": {}}

    def test_required_preserves_declaration_order(self):
        op = OperationDescriptor(
            "x",
            "x",
            (
                FieldSpec("b", "string", True),
                FieldSpec("opt", "string"),
                FieldSpec("a", "number", True),
            ),
        )
        assert op.required == ("b", "a")


class TestValidateArguments:
    def test_passes_with_required_fields(self):
        validate_arguments(get_operation("canvas_enroll_user"), {"course_id": 5, "user_id": 9})

    def test_names_first_missing_field(self):
        op = get_operation("canvas_submit_grade")
        with pytest.raises(ValidationError, match="Missing required field: assignment_id"):
            validate_arguments(op, {"course_id": 1, "grade": "A"})

    def test_none_counts_as_missing(self):
        op = get_operation("canvas_create_course")
        with pytest.raises(ValidationError, match="Missing required field: name"):
            validate_arguments(op, {"name": None})

    def test_zero_grade_is_present(self):
        op = get_operation("canvas_submit_grade")
        validate_arguments(op, {"course_id": 1, "assignment_id": 2, "user_id": 3, "grade": 0})

    def test_optional_fields_not_type_checked(self):
        op = get_operation("canvas_create_quiz")
        validate_arguments(op, {"course_id": 1, "title": "Q", "time_limit": "soon"})
