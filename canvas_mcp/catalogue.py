"""Static catalogue of dispatchable operations (exposed as MCP tools).

Each OperationDescriptor declares its input fields in order; the order is
the order in which missing required fields are reported. The table is built
once at import time and never mutated.
"""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Literal

from canvas_mcp.exceptions import UnknownOperationError, ValidationError

FieldType = Literal["string", "number", "boolean", "array", "oneOf"]


@dataclass(frozen=True)
class FieldSpec:
    name: str
    type: FieldType
    required: bool = False
    description: str = ""
    items: str | None = None
    one_of: tuple[str, ...] = ()

    def schema(self) -> dict[str, Any]:
        if self.type == "oneOf":
            out: dict[str, Any] = {"oneOf": [{"type": t} for t in self.one_of]}
        else:
            out = {"type": self.type}
        if self.type == "array" and self.items:
            out["items"] = {"type": self.items}
        if self.description:
            out["description"] = self.description
        return out


@dataclass(frozen=True)
class OperationDescriptor:
    name: str
    description: str
    fields: tuple[FieldSpec, ...] = ()

    @property
    def required(self) -> tuple[str, ...]:
        return tuple(f.name for f in self.fields if f.required)

    @property
    def input_schema(self) -> dict[str, Any]:
        """JSON Schema object describing the accepted arguments."""
        schema: dict[str, Any] = {
            "type": "object",
            "properties": {f.name: f.schema() for f in self.fields},
        }
        if self.required:
            schema["required"] = list(self.required)
        return schema


# ---------------------------------------------------------------------------
# Field helpers
# ---------------------------------------------------------------------------


def _course_id(description="ID of the course"):
    # Course references may arrive as numbers or numeric strings.
    return FieldSpec("course_id", "oneOf", True, description, one_of=("number", "string"))


def _id(name, description, required=True):
    return FieldSpec(name, "number", required, description)


def _str(name, description="", required=False):
    return FieldSpec(name, "string", required, description)


def _num(name, description=""):
    return FieldSpec(name, "number", False, description)


def _bool(name, description=""):
    return FieldSpec(name, "boolean", False, description)


def _str_list(name, description):
    return FieldSpec(name, "array", False, description, items="string")


_COURSE_FIELDS = (
    _str("course_code", "Course code (e.g., CS101)"),
    _str("start_at", "Course start date (ISO format)"),
    _str("end_at", "Course end date (ISO format)"),
    _str("license", "Content license"),
    _bool("is_public", "Whether the course is public"),
)

_QUIZ_FIELDS = (
    _str("quiz_type", "Type of the quiz (e.g., assignment, practice_quiz, graded_survey)"),
    _num("time_limit", "Time limit in minutes"),
    _bool("published", "Is the quiz published"),
    _str("description", "Description of the quiz"),
    _str("due_at", "Due date (ISO format)"),
)


# ---------------------------------------------------------------------------
# The catalogue
# ---------------------------------------------------------------------------

OPERATIONS: tuple[OperationDescriptor, ...] = (
    # Courses
    OperationDescriptor("canvas_list_courses", "List all courses visible to the token"),
    OperationDescriptor(
        "canvas_list_student_courses",
        "List courses of the current user with their own enrollments",
    ),
    OperationDescriptor("canvas_get_course", "Get details of a course", (_course_id(),)),
    OperationDescriptor(
        "canvas_create_course",
        "Create a new course in Canvas",
        (_str("name", "Name of the course", required=True), *_COURSE_FIELDS),
    ),
    OperationDescriptor(
        "canvas_update_course",
        "Update an existing course in Canvas",
        (
            _course_id("ID of the course to update"),
            _str("name", "New name for the course"),
            *_COURSE_FIELDS,
        ),
    ),
    OperationDescriptor(
        "canvas_delete_course", "Delete a course", (_course_id("ID of the course to delete"),)
    ),
    # Assignments
    OperationDescriptor(
        "canvas_list_assignments", "List all assignments in a course", (_course_id(),)
    ),
    OperationDescriptor(
        "canvas_get_assignment",
        "Get details of a specific assignment",
        (_course_id(), _id("assignment_id", "ID of the assignment")),
    ),
    OperationDescriptor(
        "canvas_create_assignment",
        "Create a new assignment in a Canvas course",
        (
            _course_id(),
            _str("name", "Name of the assignment", required=True),
            _str("description", "Assignment description/instructions"),
            _str("due_at", "Due date (ISO format)"),
            _num("points_possible", "Maximum points possible"),
            _str_list("submission_types", "Allowed submission types"),
            _str_list("allowed_extensions", "Allowed file extensions for submissions"),
        ),
    ),
    OperationDescriptor(
        "canvas_update_assignment",
        "Update an existing assignment",
        (
            _course_id(),
            _id("assignment_id", "ID of the assignment to update"),
            _str("name", "New name for the assignment"),
            _str("description", "New assignment description"),
            _str("due_at", "New due date (ISO format)"),
            _num("points_possible", "New maximum points"),
        ),
    ),
    OperationDescriptor(
        "canvas_delete_assignment",
        "Delete an assignment",
        (_course_id(), _id("assignment_id", "ID of the assignment to delete")),
    ),
    # Submissions
    OperationDescriptor(
        "canvas_list_submissions",
        "List all submissions for an assignment",
        (_course_id(), _id("assignment_id", "ID of the assignment")),
    ),
    OperationDescriptor(
        "canvas_get_submission",
        "Get one student's submission for an assignment",
        (
            _course_id(),
            _id("assignment_id", "ID of the assignment"),
            _id("user_id", "ID of the student"),
        ),
    ),
    OperationDescriptor(
        "canvas_submit_grade",
        "Submit a grade for a student's assignment",
        (
            _course_id(),
            _id("assignment_id", "ID of the assignment"),
            _id("user_id", "ID of the student"),
            FieldSpec(
                "grade",
                "oneOf",
                True,
                "Grade to submit (number or letter grade)",
                one_of=("number", "string"),
            ),
            _str("comment", "Optional comment on the submission"),
        ),
    ),
    OperationDescriptor(
        "canvas_submit_assignment",
        "Submit an assignment in Canvas",
        (
            _course_id(),
            _id("assignment_id", "ID of the assignment"),
            _id("user_id", "ID of the student"),
            _str("submission_type", "Type of submission (e.g., online_text_entry)", required=True),
            _str("body", "Submission body or file URL"),
        ),
    ),
    # Users, enrollments, grades
    OperationDescriptor(
        "canvas_list_users", "List users enrolled in a course", (_course_id(),)
    ),
    OperationDescriptor(
        "canvas_list_enrollments", "List enrollments in a course", (_course_id(),)
    ),
    OperationDescriptor(
        "canvas_enroll_user",
        "Enroll a user in a course",
        (
            _course_id(),
            _id("user_id", "ID of the user to enroll"),
            _str("role", "Role for the enrollment (StudentEnrollment, TeacherEnrollment, etc.)"),
            _str("enrollment_state", "State of the enrollment (active, invited, etc.)"),
        ),
    ),
    OperationDescriptor(
        "canvas_unenroll_user",
        "Remove an enrollment from a course",
        (_course_id(), _id("enrollment_id", "ID of the enrollment to remove")),
    ),
    OperationDescriptor(
        "canvas_get_course_grades", "Get enrollments with grades for a course", (_course_id(),)
    ),
    OperationDescriptor(
        "canvas_get_user_profile", "Get the profile of the authenticated user"
    ),
    # Quizzes
    OperationDescriptor("canvas_list_quizzes", "List all quizzes in a course", (_course_id(),)),
    OperationDescriptor(
        "canvas_get_quiz",
        "Get details of a specific quiz",
        (_course_id(), _id("quiz_id", "ID of the quiz")),
    ),
    OperationDescriptor(
        "canvas_create_quiz",
        "Create a new quiz in a course",
        (_course_id(), _str("title", "Title of the quiz", required=True), *_QUIZ_FIELDS),
    ),
    OperationDescriptor(
        "canvas_update_quiz",
        "Update an existing quiz",
        (
            _course_id(),
            _id("quiz_id", "ID of the quiz to update"),
            _str("title", "New title of the quiz"),
            *_QUIZ_FIELDS,
        ),
    ),
    OperationDescriptor(
        "canvas_delete_quiz",
        "Delete a quiz from a course",
        (_course_id(), _id("quiz_id", "ID of the quiz to delete")),
    ),
    # Modules
    OperationDescriptor("canvas_list_modules", "List all modules in a course", (_course_id(),)),
    OperationDescriptor(
        "canvas_get_module",
        "Get details of a specific module",
        (_course_id(), _id("module_id", "ID of the module")),
    ),
    OperationDescriptor(
        "canvas_list_module_items",
        "List all items in a module",
        (_course_id(), _id("module_id", "ID of the module")),
    ),
    OperationDescriptor(
        "canvas_get_module_item",
        "Get details of a specific module item",
        (
            _course_id(),
            _id("module_id", "ID of the module"),
            _id("item_id", "ID of the module item"),
        ),
    ),
    # Discussions
    OperationDescriptor(
        "canvas_list_discussion_topics",
        "List all discussion topics in a course",
        (_course_id(),),
    ),
    OperationDescriptor(
        "canvas_get_discussion_topic",
        "Get details of a specific discussion topic",
        (_course_id(), _id("topic_id", "ID of the discussion topic")),
    ),
    OperationDescriptor(
        "canvas_list_announcements", "List all announcements in a course", (_course_id(),)
    ),
    # Files
    OperationDescriptor("canvas_list_files", "List all files in a course", (_course_id(),)),
    OperationDescriptor(
        "canvas_get_file", "Get metadata of a file", (_id("file_id", "ID of the file"),)
    ),
    # Account
    OperationDescriptor(
        "canvas_list_account_scopes",
        "List API token scopes available in an account (beta endpoint)",
        (
            _id("account_id", "ID of the account"),
            _str("group_by", "Optional grouping, e.g. resource_name"),
        ),
    ),
)

OPERATIONS_BY_NAME = MappingProxyType({op.name: op for op in OPERATIONS})


def get_operation(name: str) -> OperationDescriptor:
    """Look up a descriptor by name. Raises UnknownOperationError on a miss."""
    try:
        return OPERATIONS_BY_NAME[name]
    except KeyError:
        raise UnknownOperationError(f"Unknown tool: {name}") from None


def validate_arguments(descriptor: OperationDescriptor, arguments: dict[str, Any]) -> None:
    """Fail on the first missing required field, in declaration order.

    A field counts as missing when absent or None. Optional fields are not
    type-checked here; Canvas enforces its own rules.
    """
    for name in descriptor.required:
        if arguments.get(name) is None:
            raise ValidationError(f"Missing required field: {name}")
