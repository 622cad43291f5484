"""
Dispatcher: the single entry point from the protocol layer into CanvasClient.

Operation calls always come back as an envelope, never as an exception.
Resource reads raise, so the protocol layer can report a failed read.
"""

from __future__ import annotations

import json
import sys
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from canvas_mcp import config
from canvas_mcp.catalogue import OPERATIONS, get_operation, validate_arguments
from canvas_mcp.client import CanvasClient
from canvas_mcp.exceptions import CanvasError, UnknownResourceError, ValidationError
from canvas_mcp.models import decode_arguments
from canvas_mcp.validation import coerce_course_ref

MIME_JSON = "application/json"

# ---------------------------------------------------------------------------
# Envelopes
# ---------------------------------------------------------------------------


def _contract_ok(data: Any) -> dict:
    return {"ok": True, "schema_version": config.CONTRACT_SCHEMA_VERSION, "data": data}


def _contract_error(error: CanvasError) -> dict:
    """Return a stable error envelope carrying the full error record."""
    return {
        "ok": False,
        "schema_version": config.CONTRACT_SCHEMA_VERSION,
        "type": error.kind,
        "error": error.message,
        "error_detail": error.to_dict(),
    }


def envelope_text(envelope: dict) -> str:
    """Render an envelope as the text block handed back to the protocol client."""
    if envelope.get("ok") is False:
        return f"Error: {envelope['error']}"
    data = envelope.get("data")
    if isinstance(data, str):
        return data
    return json.dumps(data, indent=2)


def _log_error(message: str) -> None:
    # stdout carries the protocol stream; diagnostics go to stderr.
    print(f"[ERROR] {message}", file=sys.stderr)


# ---------------------------------------------------------------------------
# Operation handlers (one per catalogue entry)
# ---------------------------------------------------------------------------


def _deleted(label: str, client_call: Callable[[], Any], entity_id: int) -> str:
    client_call()
    return f"{label} {entity_id} deleted successfully."


_HANDLERS: dict[str, Callable[[CanvasClient, Any], Any]] = {
    # Courses
    "canvas_list_courses": lambda c, a: c.list_courses(),
    "canvas_list_student_courses": lambda c, a: c.list_student_courses(),
    "canvas_get_course": lambda c, a: c.get_course(a.course_id),
    "canvas_create_course": lambda c, a: c.create_course(**a.payload()),
    "canvas_update_course": lambda c, a: c.update_course(a.course_id, **a.payload()),
    "canvas_delete_course": lambda c, a: _deleted(
        "Course", lambda: c.delete_course(a.course_id), a.course_id
    ),
    # Assignments and submissions
    "canvas_list_assignments": lambda c, a: c.list_assignments(a.course_id),
    "canvas_get_assignment": lambda c, a: c.get_assignment(a.course_id, a.assignment_id),
    "canvas_create_assignment": lambda c, a: c.create_assignment(a.course_id, **a.payload()),
    "canvas_update_assignment": lambda c, a: c.update_assignment(
        a.course_id, a.assignment_id, **a.payload()
    ),
    "canvas_delete_assignment": lambda c, a: _deleted(
        "Assignment",
        lambda: c.delete_assignment(a.course_id, a.assignment_id),
        a.assignment_id,
    ),
    "canvas_list_submissions": lambda c, a: c.list_submissions(a.course_id, a.assignment_id),
    "canvas_get_submission": lambda c, a: c.get_submission(
        a.course_id, a.assignment_id, a.user_id
    ),
    "canvas_submit_grade": lambda c, a: c.submit_grade(
        a.course_id, a.assignment_id, a.user_id, a.grade, a.comment
    ),
    "canvas_submit_assignment": lambda c, a: c.submit_assignment(
        a.course_id, a.assignment_id, a.user_id, a.submission_type, a.body
    ),
    # Users and enrollments
    "canvas_list_users": lambda c, a: c.list_users(a.course_id),
    "canvas_list_enrollments": lambda c, a: c.list_enrollments(a.course_id),
    "canvas_enroll_user": lambda c, a: c.enroll_user(
        a.course_id, a.user_id, a.role, a.enrollment_state
    ),
    "canvas_unenroll_user": lambda c, a: _deleted(
        "Enrollment",
        lambda: c.unenroll_user(a.course_id, a.enrollment_id),
        a.enrollment_id,
    ),
    "canvas_get_course_grades": lambda c, a: c.get_course_grades(a.course_id),
    "canvas_get_user_profile": lambda c, a: c.get_user_profile(),
    # Quizzes
    "canvas_list_quizzes": lambda c, a: c.list_quizzes(a.course_id),
    "canvas_get_quiz": lambda c, a: c.get_quiz(a.course_id, a.quiz_id),
    "canvas_create_quiz": lambda c, a: c.create_quiz(a.course_id, **a.payload()),
    "canvas_update_quiz": lambda c, a: c.update_quiz(a.course_id, a.quiz_id, **a.payload()),
    "canvas_delete_quiz": lambda c, a: _deleted(
        "Quiz", lambda: c.delete_quiz(a.course_id, a.quiz_id), a.quiz_id
    ),
    # Modules
    "canvas_list_modules": lambda c, a: c.list_modules(a.course_id),
    "canvas_get_module": lambda c, a: c.get_module(a.course_id, a.module_id),
    "canvas_list_module_items": lambda c, a: c.list_module_items(a.course_id, a.module_id),
    "canvas_get_module_item": lambda c, a: c.get_module_item(
        a.course_id, a.module_id, a.item_id
    ),
    # Discussions
    "canvas_list_discussion_topics": lambda c, a: c.list_discussion_topics(a.course_id),
    "canvas_get_discussion_topic": lambda c, a: c.get_discussion_topic(a.course_id, a.topic_id),
    "canvas_list_announcements": lambda c, a: c.list_announcements(a.course_id),
    # Files and account
    "canvas_list_files": lambda c, a: c.list_files(a.course_id),
    "canvas_get_file": lambda c, a: c.get_file(a.file_id),
    "canvas_list_account_scopes": lambda c, a: c.list_account_scopes(a.account_id, a.group_by),
}


# ---------------------------------------------------------------------------
# Resources
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ResourceAddress:
    resource_type: str
    identifier: str


@dataclass(frozen=True)
class ResourceFamily:
    """A per-course resource type: URI scheme, display label, fetch."""

    scheme: str
    label: str
    description: str
    fetch: Callable[[CanvasClient, int], Any]


# Order here is the order of families in list_resources().
RESOURCE_FAMILIES: tuple[ResourceFamily, ...] = (
    ResourceFamily("course", "Course", "{code} - {name}", lambda c, cid: c.get_course(cid)),
    ResourceFamily(
        "assignments", "Assignments", "Assignments for {name}",
        lambda c, cid: c.list_assignments(cid),
    ),
    ResourceFamily(
        "users", "Users", "Enrolled users in {name}", lambda c, cid: c.list_users(cid)
    ),
    ResourceFamily(
        "grades", "Grades", "Grade data for {name}", lambda c, cid: c.get_course_grades(cid)
    ),
    ResourceFamily(
        "quizzes", "Quizzes", "Quizzes for {name}", lambda c, cid: c.list_quizzes(cid)
    ),
    ResourceFamily(
        "modules", "Modules", "Modules for {name}", lambda c, cid: c.list_modules(cid)
    ),
    ResourceFamily(
        "discussion-topics", "Discussion Topics", "Discussion topics for {name}",
        lambda c, cid: c.list_discussion_topics(cid),
    ),
    ResourceFamily(
        "announcements", "Announcements", "Announcements for {name}",
        lambda c, cid: c.list_announcements(cid),
    ),
)

_FAMILIES_BY_SCHEME = {family.scheme: family for family in RESOURCE_FAMILIES}
# URI schemes cannot contain "_", but older clients still send it.
_FAMILIES_BY_SCHEME["discussion_topics"] = _FAMILIES_BY_SCHEME["discussion-topics"]

COURSES_LIST_URI = "courses://list"


def parse_resource_address(uri: str) -> ResourceAddress:
    """Split ``type://identifier``. Raises ValidationError when malformed."""
    if not isinstance(uri, str) or "://" not in uri:
        raise ValidationError(f"Invalid resource URI: {uri!r}")
    resource_type, identifier = uri.split("://", 1)
    if not resource_type:
        raise ValidationError(f"Invalid resource URI: {uri!r}")
    return ResourceAddress(resource_type=resource_type, identifier=identifier.rstrip("/"))


# ---------------------------------------------------------------------------
# Dispatcher
# ---------------------------------------------------------------------------


class Dispatcher:
    """Route operation calls and resource reads onto a CanvasClient."""

    def __init__(self, client: CanvasClient):
        self.client = client

    # -------------------------------------------------------------------
    # Operations
    # -------------------------------------------------------------------

    def list_operations(self) -> list[dict[str, Any]]:
        """Return the static catalogue with each operation's input schema."""
        return [
            {"name": op.name, "description": op.description, "inputSchema": op.input_schema}
            for op in OPERATIONS
        ]

    def call_operation(self, name: str, arguments: dict[str, Any] | None = None) -> dict:
        """Validate, decode and run one operation; always returns an envelope."""
        try:
            descriptor = get_operation(name)
            args = {} if arguments is None else arguments
            if not isinstance(args, dict):
                raise ValidationError(
                    f"Arguments must be a JSON object, got {type(args).__name__}."
                )
            validate_arguments(descriptor, args)
            record = decode_arguments(name, args)
            result = _HANDLERS[name](self.client, record)
        except CanvasError as e:
            _log_error(f"Error executing tool {name}: {e.message}")
            return _contract_error(e)
        except Exception as e:
            _log_error(f"Unexpected error executing tool {name}: {e!r}")
            return _contract_error(CanvasError(f"Unexpected error: {e}"))
        return _contract_ok(result)

    # -------------------------------------------------------------------
    # Resources
    # -------------------------------------------------------------------

    def list_resources(self) -> list[dict[str, str]]:
        """One global entry plus one entry per (course, family) pair.

        Fetches the course list on every call; nothing is cached.
        """
        courses = self.client.list_courses()
        resources = [
            {
                "uri": COURSES_LIST_URI,
                "name": "All Courses",
                "description": "List of all available Canvas courses",
                "mimeType": MIME_JSON,
            }
        ]
        for family in RESOURCE_FAMILIES:
            for course in courses:
                name = course.get("name", "")
                resources.append(
                    {
                        "uri": f"{family.scheme}://{course['id']}",
                        "name": f"{family.label}: {name}",
                        "description": family.description.format(
                            code=course.get("course_code", ""), name=name
                        ),
                        "mimeType": MIME_JSON,
                    }
                )
        return resources

    def fetch_resource(self, uri: str) -> Any:
        """Resolve a resource address to its decoded JSON content."""
        address = parse_resource_address(uri)
        if address.resource_type == "courses":
            if address.identifier not in ("", "list"):
                raise ValidationError(f"Invalid resource URI: {uri!r} (use {COURSES_LIST_URI})")
            return self.client.list_courses()
        family = _FAMILIES_BY_SCHEME.get(address.resource_type)
        if family is None:
            raise UnknownResourceError(f"Unknown resource type: {address.resource_type}")
        return family.fetch(self.client, coerce_course_ref(address.identifier))

    def read_resource(self, uri: str) -> str:
        """Return the resource content as JSON text. Failures are logged and re-raised."""
        try:
            content = self.fetch_resource(uri)
        except CanvasError as e:
            _log_error(f"Error reading resource {uri}: {e.message}")
            raise
        return json.dumps(content, indent=2)
