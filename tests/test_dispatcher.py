"""Tests for the Dispatcher — envelopes, routing and resource resolution.

Mocks at the CanvasClient level. Verifies each operation calls the correct
client method and that every failure becomes an error envelope.
"""

import json
from unittest.mock import MagicMock

import pytest

from canvas_mcp.api import Response
from canvas_mcp.catalogue import OPERATIONS
from canvas_mcp.client import CanvasClient
from canvas_mcp.dispatcher import (
    _HANDLERS,
    Dispatcher,
    ResourceAddress,
    envelope_text,
    parse_resource_address,
)
from canvas_mcp.exceptions import (
    CanvasAPIError,
    TransportError,
    UnknownResourceError,
    ValidationError,
)

_COURSES = [
    {"id": 1, "name": "Biology", "course_code": "BIO101"},
    {"id": 2, "name": "Chemistry", "course_code": "CHEM201"},
]


def _mock_client(**method_returns):
    """Return a MagicMock client whose methods return given values."""
    client = MagicMock(spec=CanvasClient)
    for name, val in method_returns.items():
        getattr(client, name).return_value = val
    return client


# ---------------------------------------------------------------------------
# Operation dispatch
# ---------------------------------------------------------------------------


class TestListOperations:
    def test_returns_whole_catalogue(self):
        ops = Dispatcher(_mock_client()).list_operations()
        assert [op["name"] for op in ops] == [op.name for op in OPERATIONS]
        assert all(op["inputSchema"]["type"] == "object" for op in ops)

    def test_every_operation_has_a_handler(self):
        assert set(_HANDLERS) == {op.name for op in OPERATIONS}


class TestCallOperation:
    def test_success_envelope(self):
        client = _mock_client(list_quizzes=[{"id": 4}])
        envelope = Dispatcher(client).call_operation("canvas_list_quizzes", {"course_id": 5})
        assert envelope == {"ok": True, "schema_version": "1.0", "data": [{"id": 4}]}
        client.list_quizzes.assert_called_once_with(5)

    def test_enroll_user_defaults(self):
        client = _mock_client(enroll_user={"id": 70, "user_id": 9})
        envelope = Dispatcher(client).call_operation(
            "canvas_enroll_user", {"course_id": 5, "user_id": 9}
        )
        assert envelope["data"]["user_id"] == 9
        client.enroll_user.assert_called_once_with(5, 9, None, None)

    def test_enroll_user_end_to_end_defaults(self, fake_channel):
        fake_channel.routes[("POST", "/courses/5/enrollments")] = Response(
            status=200, data={"id": 70, "user_id": 9, "type": "StudentEnrollment"}
        )
        client = CanvasClient("tok", "x.edu", channel=fake_channel)
        envelope = Dispatcher(client).call_operation(
            "canvas_enroll_user", {"course_id": 5, "user_id": 9}
        )
        assert envelope["ok"] is True
        assert envelope["data"]["user_id"] == 9
        sent = fake_channel.calls[0][3]["enrollment"]
        assert sent == {"user_id": 9, "type": "StudentEnrollment", "enrollment_state": "active"}

    def test_mutation_passes_field_bag(self):
        client = _mock_client(update_quiz={"id": 4})
        Dispatcher(client).call_operation(
            "canvas_update_quiz", {"course_id": 5, "quiz_id": 4, "published": True}
        )
        client.update_quiz.assert_called_once_with(5, 4, published=True)

    def test_submit_grade_routes_all_fields(self):
        client = _mock_client(submit_grade={"grade": "A"})
        Dispatcher(client).call_operation(
            "canvas_submit_grade",
            {"course_id": 1, "assignment_id": 2, "user_id": 3, "grade": "A", "comment": "nice"},
        )
        client.submit_grade.assert_called_once_with(1, 2, 3, "A", "nice")

    def test_no_argument_operation_accepts_none(self):
        client = _mock_client(get_user_profile={"id": 1})
        envelope = Dispatcher(client).call_operation("canvas_get_user_profile", None)
        assert envelope["data"] == {"id": 1}

    def test_delete_returns_confirmation_text(self):
        client = _mock_client(delete_quiz=None)
        envelope = Dispatcher(client).call_operation(
            "canvas_delete_quiz", {"course_id": 5, "quiz_id": 7}
        )
        assert envelope["data"] == "Quiz 7 deleted successfully."
        assert envelope_text(envelope) == "Quiz 7 deleted successfully."
        client.delete_quiz.assert_called_once_with(5, 7)

    def test_unknown_operation(self, capsys):
        client = _mock_client()
        envelope = Dispatcher(client).call_operation("canvas_teleport", {})
        assert envelope["ok"] is False
        assert envelope["type"] == "unknown-operation"
        assert envelope["error"] == "Unknown tool: canvas_teleport"
        assert client.method_calls == []

    @pytest.mark.parametrize("op", [op for op in OPERATIONS if op.required], ids=lambda op: op.name)
    def test_missing_required_field_never_calls_client(self, op):
        client = _mock_client()
        envelope = Dispatcher(client).call_operation(op.name, {})
        assert envelope["ok"] is False
        assert envelope["type"] == "validation"
        assert envelope["error"] == f"Missing required field: {op.required[0]}"
        assert client.method_calls == []

    def test_invalid_identifier_never_calls_client(self):
        client = _mock_client()
        envelope = Dispatcher(client).call_operation(
            "canvas_get_module", {"course_id": 1, "module_id": 0}
        )
        assert envelope["type"] == "validation"
        assert "Invalid module ID: 0" in envelope["error"]
        assert client.method_calls == []

    def test_non_ascii_digit_course_id(self):
        client = _mock_client()
        envelope = Dispatcher(client).call_operation("canvas_get_course", {"course_id": "²"})
        assert envelope["type"] == "validation"
        assert "Invalid course ID: '²'" in envelope["error"]
        assert client.method_calls == []

    def test_non_object_arguments(self):
        client = _mock_client()
        envelope = Dispatcher(client).call_operation("canvas_list_modules", ["1"])
        assert envelope["type"] == "validation"
        assert client.method_calls == []

    def test_remote_api_error_envelope(self):
        client = _mock_client()
        client.get_course.side_effect = CanvasAPIError(
            "Canvas API Error (404): not found", status_code=404, response={"message": "not found"}
        )
        envelope = Dispatcher(client).call_operation("canvas_get_course", {"course_id": 9})
        assert envelope["ok"] is False
        assert envelope["type"] == "remote-api"
        assert envelope["error_detail"]["status"] == 404
        assert envelope["error_detail"]["response"] == {"message": "not found"}
        assert envelope_text(envelope) == "Error: Canvas API Error (404): not found"

    def test_transport_error_envelope(self):
        client = _mock_client()
        client.list_courses.side_effect = TransportError("[ERROR] Connection failed: refused")
        envelope = Dispatcher(client).call_operation("canvas_list_courses", {})
        assert envelope["type"] == "transport"

    def test_unexpected_exception_is_contained(self, capsys):
        client = _mock_client()
        client.list_files.side_effect = RuntimeError("kaboom")
        envelope = Dispatcher(client).call_operation("canvas_list_files", {"course_id": 3})
        assert envelope["ok"] is False
        assert envelope["type"] == "unknown"
        assert "kaboom" in envelope["error"]
        assert "[ERROR]" in capsys.readouterr().err

    def test_failures_are_not_retried(self):
        client = _mock_client()
        client.create_course.side_effect = TransportError("[ERROR] Connection failed")
        Dispatcher(client).call_operation("canvas_create_course", {"name": "Bio"})
        assert client.create_course.call_count == 1


class TestEnvelopeText:
    def test_json_payload_is_indented(self):
        assert envelope_text({"ok": True, "data": {"id": 1}}) == '{\n  "id": 1\n}'


# ---------------------------------------------------------------------------
# Resources
# ---------------------------------------------------------------------------


class TestParseResourceAddress:
    def test_course(self):
        assert parse_resource_address("course://42") == ResourceAddress("course", "42")

    def test_courses_list(self):
        assert parse_resource_address("courses://list") == ResourceAddress("courses", "list")

    @pytest.mark.parametrize("uri", ["course42", "://42", ""])
    def test_malformed(self, uri):
        with pytest.raises(ValidationError):
            parse_resource_address(uri)


class TestReadResource:
    def test_course_round_trip_is_exact(self):
        course = {"id": 42, "name": "Biology", "course_code": "BIO101", "total_students": 30}
        client = _mock_client(get_course=course)
        text = Dispatcher(client).read_resource("course://42")
        assert text == json.dumps(course, indent=2)
        client.get_course.assert_called_once_with(42)

    def test_courses_list(self):
        client = _mock_client(list_courses=_COURSES)
        assert json.loads(Dispatcher(client).read_resource("courses://list")) == _COURSES

    @pytest.mark.parametrize(
        "uri,method",
        [
            ("assignments://5", "list_assignments"),
            ("users://5", "list_users"),
            ("grades://5", "get_course_grades"),
            ("quizzes://5", "list_quizzes"),
            ("modules://5", "list_modules"),
            ("discussion-topics://5", "list_discussion_topics"),
            ("discussion_topics://5", "list_discussion_topics"),
            ("announcements://5", "list_announcements"),
        ],
    )
    def test_families_route_to_client(self, uri, method):
        client = _mock_client(**{method: [{"id": 1}]})
        Dispatcher(client).read_resource(uri)
        getattr(client, method).assert_called_once_with(5)

    def test_unknown_type(self):
        client = _mock_client()
        with pytest.raises(UnknownResourceError, match="Unknown resource type: rubrics"):
            Dispatcher(client).read_resource("rubrics://5")
        assert client.method_calls == []

    def test_identifier_must_parse(self):
        client = _mock_client()
        with pytest.raises(ValidationError):
            Dispatcher(client).read_resource("quizzes://abc")
        assert client.method_calls == []

    def test_non_ascii_digit_identifier(self, capsys):
        client = _mock_client()
        with pytest.raises(ValidationError, match="Invalid course ID"):
            Dispatcher(client).read_resource("course://²")
        assert client.method_calls == []
        assert "Error reading resource course://²" in capsys.readouterr().err

    def test_remote_404_propagates(self, fake_channel, capsys):
        err = CanvasAPIError(
            "Canvas API Error (404): not found", status_code=404, response={"message": "not found"}
        )
        fake_channel.routes["/courses/42"] = err
        client = CanvasClient("tok", "x.edu", channel=fake_channel)
        with pytest.raises(CanvasAPIError) as exc_info:
            Dispatcher(client).read_resource("course://42")
        assert exc_info.value.status_code == 404
        assert "not found" in str(exc_info.value)
        assert "Error reading resource course://42" in capsys.readouterr().err


class TestListResources:
    def test_one_global_entry_plus_eight_per_course(self):
        resources = Dispatcher(_mock_client(list_courses=_COURSES)).list_resources()
        assert len(resources) == 1 + 8 * len(_COURSES)
        assert resources[0]["uri"] == "courses://list"

    def test_cross_product_of_families_and_courses(self):
        resources = Dispatcher(_mock_client(list_courses=_COURSES)).list_resources()
        uris = [r["uri"] for r in resources[1:]]
        assert uris[:2] == ["course://1", "course://2"]
        assert "discussion-topics://2" in uris
        assert "announcements://1" in uris
        assert all(r["mimeType"] == "application/json" for r in resources)

    def test_course_entry_description(self):
        resources = Dispatcher(_mock_client(list_courses=_COURSES)).list_resources()
        course = next(r for r in resources if r["uri"] == "course://1")
        assert course["name"] == "Course: Biology"
        assert course["description"] == "BIO101 - Biology"

    def test_no_courses(self):
        assert len(Dispatcher(_mock_client(list_courses=[])).list_resources()) == 1

    def test_recomputed_every_call(self):
        client = _mock_client(list_courses=_COURSES)
        dispatcher = Dispatcher(client)
        dispatcher.list_resources()
        dispatcher.list_resources()
        assert client.list_courses.call_count == 2

    def test_every_listed_uri_is_readable(self):
        client = _mock_client(
            list_courses=_COURSES,
            get_course=_COURSES[0],
            list_assignments=[],
            list_users=[],
            get_course_grades=[],
            list_quizzes=[],
            list_modules=[],
            list_discussion_topics=[],
            list_announcements=[],
        )
        dispatcher = Dispatcher(client)
        for entry in dispatcher.list_resources():
            json.loads(dispatcher.read_resource(entry["uri"]))
