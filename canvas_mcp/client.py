"""
CanvasClient — public Python API over the Canvas LMS REST API.

One method per remote entity action. Every method performs one logical
fetch (possibly many HTTP round trips when a collection is paginated) and
returns the decoded JSON verbatim. Identifiers are not validated here; the
dispatcher decodes and validates arguments before calling in.
"""

from __future__ import annotations

from typing import Any

from canvas_mcp import config
from canvas_mcp.api import Channel, Response
from canvas_mcp.exceptions import TransportError
from canvas_mcp.pagination import Page, fetch_all_pages
from canvas_mcp.types import (
    CanvasAssignment,
    CanvasCourse,
    CanvasDiscussionTopic,
    CanvasEnrollment,
    CanvasFile,
    CanvasModule,
    CanvasModuleItem,
    CanvasQuiz,
    CanvasScope,
    CanvasSubmission,
    CanvasUser,
    CanvasUserProfile,
)

_COURSE_INCLUDES = ["total_students", "teachers"]
_STUDENT_COURSE_INCLUDES = ["enrollments", "total_students"]
_USER_INCLUDES = ["email", "enrollments"]


def _compact(fields: dict[str, Any]) -> dict[str, Any]:
    """Drop unset (None) entries from a mutation field bag."""
    return {k: v for k, v in fields.items() if v is not None}


class CanvasClient:
    """Authenticated, pagination-aware Canvas API client.

    The client owns a single Channel for its whole lifetime; pass one in
    to share it or to substitute a fake in tests.
    """

    def __init__(self, token: str, domain: str, *, channel: Channel | None = None):
        self.channel = channel if channel is not None else Channel(token, domain)

    # -------------------------------------------------------------------
    # Internal helpers
    # -------------------------------------------------------------------

    def _fetch_page(self, url: str) -> Page:
        response = self.channel.request("GET", url)
        if not isinstance(response.data, list):
            raise TransportError(
                f"[ERROR] Expected a JSON array from paginated URL {url}, "
                f"got {type(response.data).__name__}."
            )
        return Page(records=response.data, link=response.link)

    def _collect(self, response: Response) -> Any:
        """Exhaust pagination when the body is a list carrying a Link header."""
        if isinstance(response.data, list) and response.link:
            return fetch_all_pages(
                Page(records=response.data, link=response.link),
                self._fetch_page,
                max(1, config.MAX_PAGES),
            )
        return response.data

    def _get(self, path: str, params: dict | None = None) -> Any:
        return self._collect(self.channel.request("GET", path, params=params))

    def _post(self, path: str, data: Any) -> Any:
        return self._collect(self.channel.request("POST", path, data=data))

    def _put(self, path: str, data: Any) -> Any:
        return self._collect(self.channel.request("PUT", path, data=data))

    def _delete(self, path: str) -> Any:
        return self._collect(self.channel.request("DELETE", path))

    # -------------------------------------------------------------------
    # Courses
    # -------------------------------------------------------------------

    def list_courses(self) -> list[CanvasCourse]:
        """List every course visible to the token, with students and teachers."""
        return self._get("/courses", {"include": _COURSE_INCLUDES})

    def list_student_courses(self) -> list[CanvasCourse]:
        """List courses with the caller's own enrollments attached."""
        return self._get("/courses", {"include": _STUDENT_COURSE_INCLUDES})

    def get_course(self, course_id: int) -> CanvasCourse:
        return self._get(f"/courses/{course_id}", {"include": _COURSE_INCLUDES})

    def create_course(self, **fields: Any) -> CanvasCourse:
        """Create a course.

        Args:
            **fields: Canvas course attributes (name, course_code, start_at,
                end_at, license, is_public).
        """
        return self._post("/courses", {"course": _compact(fields)})

    def update_course(self, course_id: int, **fields: Any) -> CanvasCourse:
        return self._put(f"/courses/{course_id}", {"course": _compact(fields)})

    def delete_course(self, course_id: int) -> Any:
        return self._delete(f"/courses/{course_id}")

    # -------------------------------------------------------------------
    # Assignments
    # -------------------------------------------------------------------

    def list_assignments(self, course_id: int) -> list[CanvasAssignment]:
        return self._get(f"/courses/{course_id}/assignments")

    def get_assignment(self, course_id: int, assignment_id: int) -> CanvasAssignment:
        return self._get(f"/courses/{course_id}/assignments/{assignment_id}")

    def create_assignment(self, course_id: int, **fields: Any) -> CanvasAssignment:
        """Create an assignment in a course.

        Args:
            course_id: Course the assignment belongs to.
            **fields: Canvas assignment attributes (name, description, due_at,
                points_possible, submission_types, allowed_extensions).
        """
        return self._post(
            f"/courses/{course_id}/assignments", {"assignment": _compact(fields)}
        )

    def update_assignment(
        self, course_id: int, assignment_id: int, **fields: Any
    ) -> CanvasAssignment:
        return self._put(
            f"/courses/{course_id}/assignments/{assignment_id}",
            {"assignment": _compact(fields)},
        )

    def delete_assignment(self, course_id: int, assignment_id: int) -> Any:
        return self._delete(f"/courses/{course_id}/assignments/{assignment_id}")

    # -------------------------------------------------------------------
    # Submissions
    # -------------------------------------------------------------------

    def list_submissions(self, course_id: int, assignment_id: int) -> list[CanvasSubmission]:
        return self._get(
            f"/courses/{course_id}/assignments/{assignment_id}/submissions"
        )

    def get_submission(
        self, course_id: int, assignment_id: int, user_id: int
    ) -> CanvasSubmission:
        return self._get(
            f"/courses/{course_id}/assignments/{assignment_id}/submissions/{user_id}"
        )

    def submit_grade(
        self,
        course_id: int,
        assignment_id: int,
        user_id: int,
        grade: int | float | str,
        comment: str | None = None,
    ) -> CanvasSubmission:
        """Post a grade (number or letter) and an optional comment for one student."""
        payload: dict[str, Any] = {"submission": {"posted_grade": grade}}
        if comment is not None:
            payload["comment"] = {"text_comment": comment}
        return self._put(
            f"/courses/{course_id}/assignments/{assignment_id}/submissions/{user_id}",
            payload,
        )

    def submit_assignment(
        self,
        course_id: int,
        assignment_id: int,
        user_id: int,
        submission_type: str,
        body: str | None = None,
    ) -> CanvasSubmission:
        return self._post(
            f"/courses/{course_id}/assignments/{assignment_id}/submissions/{user_id}",
            {"submission": _compact({"submission_type": submission_type, "body": body})},
        )

    # -------------------------------------------------------------------
    # Users, enrollments and grades
    # -------------------------------------------------------------------

    def list_users(self, course_id: int) -> list[CanvasUser]:
        return self._get(f"/courses/{course_id}/users", {"include": _USER_INCLUDES})

    def list_enrollments(self, course_id: int) -> list[CanvasEnrollment]:
        return self._get(f"/courses/{course_id}/enrollments")

    def enroll_user(
        self,
        course_id: int,
        user_id: int,
        role: str | None = None,
        enrollment_state: str | None = None,
    ) -> CanvasEnrollment:
        """Enroll a user. Defaults to an active StudentEnrollment."""
        enrollment = {
            "user_id": user_id,
            "type": role or config.DEFAULT_ENROLLMENT_ROLE,
            "enrollment_state": enrollment_state or config.DEFAULT_ENROLLMENT_STATE,
        }
        return self._post(
            f"/courses/{course_id}/enrollments", {"enrollment": enrollment}
        )

    def unenroll_user(self, course_id: int, enrollment_id: int) -> Any:
        return self._delete(f"/courses/{course_id}/enrollments/{enrollment_id}")

    def get_course_grades(self, course_id: int) -> list[CanvasEnrollment]:
        """Enrollments of a course with their grades attached."""
        return self._get(f"/courses/{course_id}/enrollments", {"include": ["grades"]})

    def get_user_profile(self) -> CanvasUserProfile:
        """Profile of the user who owns the token."""
        return self._get("/users/self/profile")

    # -------------------------------------------------------------------
    # Modules
    # -------------------------------------------------------------------

    def list_modules(self, course_id: int) -> list[CanvasModule]:
        return self._get(f"/courses/{course_id}/modules")

    def get_module(self, course_id: int, module_id: int) -> CanvasModule:
        return self._get(f"/courses/{course_id}/modules/{module_id}")

    def list_module_items(self, course_id: int, module_id: int) -> list[CanvasModuleItem]:
        return self._get(f"/courses/{course_id}/modules/{module_id}/items")

    def get_module_item(self, course_id: int, module_id: int, item_id: int) -> CanvasModuleItem:
        return self._get(
            f"/courses/{course_id}/modules/{module_id}/items/{item_id}"
        )

    # -------------------------------------------------------------------
    # Discussions and announcements
    # -------------------------------------------------------------------

    def list_discussion_topics(self, course_id: int) -> list[CanvasDiscussionTopic]:
        return self._get(f"/courses/{course_id}/discussion_topics")

    def get_discussion_topic(self, course_id: int, topic_id: int) -> CanvasDiscussionTopic:
        return self._get(f"/courses/{course_id}/discussion_topics/{topic_id}")

    def list_announcements(self, course_id: int) -> list[CanvasDiscussionTopic]:
        """Announcements are discussion topics filtered server-side."""
        return self._get(
            f"/courses/{course_id}/discussion_topics", {"only_announcements": True}
        )

    # -------------------------------------------------------------------
    # Quizzes
    # -------------------------------------------------------------------

    def list_quizzes(self, course_id: int) -> list[CanvasQuiz]:
        return self._get(f"/courses/{course_id}/quizzes")

    def get_quiz(self, course_id: int, quiz_id: int) -> CanvasQuiz:
        return self._get(f"/courses/{course_id}/quizzes/{quiz_id}")

    def create_quiz(self, course_id: int, **fields: Any) -> CanvasQuiz:
        return self._post(f"/courses/{course_id}/quizzes", {"quiz": _compact(fields)})

    def update_quiz(self, course_id: int, quiz_id: int, **fields: Any) -> CanvasQuiz:
        return self._put(
            f"/courses/{course_id}/quizzes/{quiz_id}", {"quiz": _compact(fields)}
        )

    def delete_quiz(self, course_id: int, quiz_id: int) -> Any:
        return self._delete(f"/courses/{course_id}/quizzes/{quiz_id}")

    # -------------------------------------------------------------------
    # Files and account scopes
    # -------------------------------------------------------------------

    def list_files(self, course_id: int) -> list[CanvasFile]:
        return self._get(f"/courses/{course_id}/files")

    def get_file(self, file_id: int) -> CanvasFile:
        return self._get(f"/files/{file_id}")

    def list_account_scopes(self, account_id: int, group_by: str | None = None) -> list[CanvasScope]:
        """List API token scopes for an account (Canvas beta endpoint).

        Args:
            account_id: Account to inspect.
            group_by: Optional grouping, e.g. ``"resource_name"``.
        """
        params = {"group_by": group_by} if group_by else None
        return self._get(f"/accounts/{account_id}/scopes", params)
