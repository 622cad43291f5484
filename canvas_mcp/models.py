"""
Typed argument records for dispatchable operations.

Every catalogue entry decodes its raw argument bag into one of these frozen
records before any operation-specific logic runs. Identifier fields are
validated here; other fields pass through as given.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Any, ClassVar

from canvas_mcp.exceptions import ValidationError
from canvas_mcp.validation import coerce_course_ref, coerce_id

_ID_LABELS = {
    "assignment_id": "assignment ID",
    "user_id": "user ID",
    "enrollment_id": "enrollment ID",
    "quiz_id": "quiz ID",
    "module_id": "module ID",
    "item_id": "module item ID",
    "topic_id": "discussion topic ID",
    "file_id": "file ID",
    "account_id": "account ID",
}


@dataclass(frozen=True)
class ArgumentRecord:
    """Base for decoded argument records."""

    # Fields that address the entity rather than describe it.
    identifiers: ClassVar[tuple[str, ...]] = ()

    @classmethod
    def from_arguments(cls, arguments: dict[str, Any]):
        if not isinstance(arguments, dict):
            raise ValidationError(
                f"Arguments must be a JSON object, got {type(arguments).__name__}."
            )
        values = {}
        for f in fields(cls):
            value = arguments.get(f.name)
            if value is not None:
                if f.name == "course_id":
                    value = coerce_course_ref(value)
                elif f.name in _ID_LABELS:
                    value = coerce_id(value, _ID_LABELS[f.name])
            values[f.name] = value
        return cls(**values)

    def payload(self) -> dict[str, Any]:
        """Non-identifier fields that are set, i.e. the mutation field bag."""
        return {
            f.name: getattr(self, f.name)
            for f in fields(self)
            if f.name not in self.identifiers and getattr(self, f.name) is not None
        }


@dataclass(frozen=True)
class NoArgs(ArgumentRecord):
    pass


# ---------------------------------------------------------------------------
# Courses
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class CourseArgs(ArgumentRecord):
    identifiers: ClassVar[tuple[str, ...]] = ("course_id",)

    course_id: int


@dataclass(frozen=True)
class CreateCourseArgs(ArgumentRecord):
    name: str
    course_code: str | None = None
    start_at: str | None = None
    end_at: str | None = None
    license: str | None = None
    is_public: bool | None = None


@dataclass(frozen=True)
class UpdateCourseArgs(ArgumentRecord):
    identifiers: ClassVar[tuple[str, ...]] = ("course_id",)

    course_id: int
    name: str | None = None
    course_code: str | None = None
    start_at: str | None = None
    end_at: str | None = None
    license: str | None = None
    is_public: bool | None = None


# ---------------------------------------------------------------------------
# Assignments and submissions
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class AssignmentArgs(ArgumentRecord):
    identifiers: ClassVar[tuple[str, ...]] = ("course_id", "assignment_id")

    course_id: int
    assignment_id: int


@dataclass(frozen=True)
class CreateAssignmentArgs(ArgumentRecord):
    identifiers: ClassVar[tuple[str, ...]] = ("course_id",)

    course_id: int
    name: str
    description: str | None = None
    due_at: str | None = None
    points_possible: float | None = None
    submission_types: list[str] | None = None
    allowed_extensions: list[str] | None = None


@dataclass(frozen=True)
class UpdateAssignmentArgs(ArgumentRecord):
    identifiers: ClassVar[tuple[str, ...]] = ("course_id", "assignment_id")

    course_id: int
    assignment_id: int
    name: str | None = None
    description: str | None = None
    due_at: str | None = None
    points_possible: float | None = None


@dataclass(frozen=True)
class SubmissionArgs(ArgumentRecord):
    identifiers: ClassVar[tuple[str, ...]] = ("course_id", "assignment_id", "user_id")

    course_id: int
    assignment_id: int
    user_id: int


@dataclass(frozen=True)
class SubmitGradeArgs(ArgumentRecord):
    identifiers: ClassVar[tuple[str, ...]] = ("course_id", "assignment_id", "user_id")

    course_id: int
    assignment_id: int
    user_id: int
    grade: int | float | str
    comment: str | None = None

    @classmethod
    def from_arguments(cls, arguments):
        record = super().from_arguments(arguments)
        if isinstance(record.grade, bool) or not isinstance(record.grade, (int, float, str)):
            raise ValidationError(f"Invalid grade: {record.grade!r}")
        return record


@dataclass(frozen=True)
class SubmitAssignmentArgs(ArgumentRecord):
    identifiers: ClassVar[tuple[str, ...]] = ("course_id", "assignment_id", "user_id")

    course_id: int
    assignment_id: int
    user_id: int
    submission_type: str
    body: str | None = None


# ---------------------------------------------------------------------------
# Users and enrollments
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class EnrollUserArgs(ArgumentRecord):
    identifiers: ClassVar[tuple[str, ...]] = ("course_id", "user_id")

    course_id: int
    user_id: int
    role: str | None = None
    enrollment_state: str | None = None


@dataclass(frozen=True)
class EnrollmentArgs(ArgumentRecord):
    identifiers: ClassVar[tuple[str, ...]] = ("course_id", "enrollment_id")

    course_id: int
    enrollment_id: int


# ---------------------------------------------------------------------------
# Quizzes
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class QuizArgs(ArgumentRecord):
    identifiers: ClassVar[tuple[str, ...]] = ("course_id", "quiz_id")

    course_id: int
    quiz_id: int


@dataclass(frozen=True)
class CreateQuizArgs(ArgumentRecord):
    identifiers: ClassVar[tuple[str, ...]] = ("course_id",)

    course_id: int
    title: str
    quiz_type: str | None = None
    time_limit: int | None = None
    published: bool | None = None
    description: str | None = None
    due_at: str | None = None


@dataclass(frozen=True)
class UpdateQuizArgs(ArgumentRecord):
    identifiers: ClassVar[tuple[str, ...]] = ("course_id", "quiz_id")

    course_id: int
    quiz_id: int
    title: str | None = None
    quiz_type: str | None = None
    time_limit: int | None = None
    published: bool | None = None
    description: str | None = None
    due_at: str | None = None


# ---------------------------------------------------------------------------
# Modules, discussions, files, account
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ModuleArgs(ArgumentRecord):
    identifiers: ClassVar[tuple[str, ...]] = ("course_id", "module_id")

    course_id: int
    module_id: int


@dataclass(frozen=True)
class ModuleItemArgs(ArgumentRecord):
    identifiers: ClassVar[tuple[str, ...]] = ("course_id", "module_id", "item_id")

    course_id: int
    module_id: int
    item_id: int


@dataclass(frozen=True)
class TopicArgs(ArgumentRecord):
    identifiers: ClassVar[tuple[str, ...]] = ("course_id", "topic_id")

    course_id: int
    topic_id: int


@dataclass(frozen=True)
class FileArgs(ArgumentRecord):
    identifiers: ClassVar[tuple[str, ...]] = ("file_id",)

    file_id: int


@dataclass(frozen=True)
class AccountScopesArgs(ArgumentRecord):
    identifiers: ClassVar[tuple[str, ...]] = ("account_id",)

    account_id: int
    group_by: str | None = None


DECODERS: dict[str, type[ArgumentRecord]] = {
    "canvas_list_courses": NoArgs,
    "canvas_list_student_courses": NoArgs,
    "canvas_get_course": CourseArgs,
    "canvas_create_course": CreateCourseArgs,
    "canvas_update_course": UpdateCourseArgs,
    "canvas_delete_course": CourseArgs,
    "canvas_list_assignments": CourseArgs,
    "canvas_get_assignment": AssignmentArgs,
    "canvas_create_assignment": CreateAssignmentArgs,
    "canvas_update_assignment": UpdateAssignmentArgs,
    "canvas_delete_assignment": AssignmentArgs,
    "canvas_list_submissions": AssignmentArgs,
    "canvas_get_submission": SubmissionArgs,
    "canvas_submit_grade": SubmitGradeArgs,
    "canvas_submit_assignment": SubmitAssignmentArgs,
    "canvas_list_users": CourseArgs,
    "canvas_list_enrollments": CourseArgs,
    "canvas_enroll_user": EnrollUserArgs,
    "canvas_unenroll_user": EnrollmentArgs,
    "canvas_get_course_grades": CourseArgs,
    "canvas_get_user_profile": NoArgs,
    "canvas_list_quizzes": CourseArgs,
    "canvas_get_quiz": QuizArgs,
    "canvas_create_quiz": CreateQuizArgs,
    "canvas_update_quiz": UpdateQuizArgs,
    "canvas_delete_quiz": QuizArgs,
    "canvas_list_modules": CourseArgs,
    "canvas_get_module": ModuleArgs,
    "canvas_list_module_items": ModuleArgs,
    "canvas_get_module_item": ModuleItemArgs,
    "canvas_list_discussion_topics": CourseArgs,
    "canvas_get_discussion_topic": TopicArgs,
    "canvas_list_announcements": CourseArgs,
    "canvas_list_files": CourseArgs,
    "canvas_get_file": FileArgs,
    "canvas_list_account_scopes": AccountScopesArgs,
}


def decode_arguments(name: str, arguments: dict[str, Any]) -> ArgumentRecord:
    """Decode the argument bag of operation *name* into its typed record."""
    return DECODERS[name].from_arguments(arguments)
