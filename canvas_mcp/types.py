"""Typed response definitions for CanvasClient methods.

These TypedDicts document the shape of the Canvas entities the client
returns. They are optional — runtime behavior is unchanged (plain dicts,
passed through verbatim from the API).
"""

from __future__ import annotations

from typing import Literal, TypedDict

CourseState = Literal["unpublished", "available", "completed", "deleted"]
EnrollmentType = Literal[
    "StudentEnrollment",
    "TeacherEnrollment",
    "TaEnrollment",
    "DesignerEnrollment",
    "ObserverEnrollment",
]
EnrollmentState = Literal["active", "invited", "inactive", "completed", "rejected"]
SubmissionState = Literal["submitted", "unsubmitted", "graded", "pending_review"]

# ---------------------------------------------------------------------------
# Courses and people
# ---------------------------------------------------------------------------


class CanvasGrades(TypedDict, total=False):
    current_score: float | None
    final_score: float | None
    current_grade: str | None
    final_grade: str | None


class CanvasEnrollment(TypedDict, total=False):
    id: int
    user_id: int
    course_id: int
    type: EnrollmentType
    role: str
    enrollment_state: EnrollmentState
    grades: CanvasGrades


class CanvasCourse(TypedDict, total=False):
    """Return type of CanvasClient.get_course() and list_courses() items."""

    id: int
    name: str
    course_code: str
    workflow_state: CourseState
    account_id: int
    start_at: str | None
    end_at: str | None
    enrollments: list[CanvasEnrollment]
    total_students: int


class CanvasUser(TypedDict, total=False):
    id: int
    name: str
    sortable_name: str
    short_name: str
    sis_user_id: str | None
    email: str
    avatar_url: str


class CanvasUserProfile(TypedDict, total=False):
    """Return type of CanvasClient.get_user_profile()."""

    id: int
    name: str
    short_name: str
    sortable_name: str
    primary_email: str
    login_id: str
    avatar_url: str
    time_zone: str
    locale: str | None


# ---------------------------------------------------------------------------
# Coursework
# ---------------------------------------------------------------------------


class CanvasAssignment(TypedDict, total=False):
    id: int
    course_id: int
    name: str
    description: str
    due_at: str | None
    points_possible: float
    position: int
    submission_types: list[str]


class CanvasSubmission(TypedDict, total=False):
    id: int
    assignment_id: int
    user_id: int
    submitted_at: str | None
    score: float | None
    grade: str | None
    attempt: int | None
    workflow_state: SubmissionState
    submission_type: str | None
    body: str | None


class CanvasQuiz(TypedDict, total=False):
    id: int
    title: str
    quiz_type: str
    time_limit: int | None
    published: bool
    description: str | None
    due_at: str | None


class CanvasModule(TypedDict, total=False):
    id: int
    name: str
    position: int
    published: bool
    items_count: int
    unlock_at: str | None


class CanvasModuleItem(TypedDict, total=False):
    id: int
    module_id: int
    title: str
    type: str
    position: int
    content_id: int | None
    html_url: str | None


class CanvasDiscussionTopic(TypedDict, total=False):
    """Discussion topic; announcements share this shape."""

    id: int
    title: str
    message: str
    posted_at: str | None
    author: dict
    is_announcement: bool


class CanvasFile(TypedDict, total=False):
    id: int
    display_name: str
    filename: str
    content_type: str
    size: int
    url: str


class CanvasScope(TypedDict, total=False):
    resource: str
    resource_name: str
    controller: str
    action: str
    verb: str
    scope: str
