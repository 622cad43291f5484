"""
Identifier validators.

Canvas ids are positive integers. Course, assignment, user and enrollment
ids are distinct domains that share this one rule; these helpers can be
used by any component that wants a pre-flight check before touching the
network.
"""

from __future__ import annotations

from typing import Union

from canvas_mcp.exceptions import ValidationError

# Some Canvas endpoints accept course references as strings; callers at the
# dispatch boundary may send either form.
CourseRef = Union[int, str]


def is_valid_id(value) -> bool:
    """True for positive ints. bool is rejected even though it subclasses int."""
    return isinstance(value, int) and not isinstance(value, bool) and value > 0


def validate_id(value, label: str = "ID") -> int:
    """Return *value* unchanged if it is a positive int, else raise ValidationError."""
    if not is_valid_id(value):
        raise ValidationError(f"Invalid {label}: {value!r}")
    return value


def validate_course_id(value) -> int:
    return validate_id(value, "course ID")


def validate_assignment_id(value) -> int:
    return validate_id(value, "assignment ID")


def validate_user_id(value) -> int:
    return validate_id(value, "user ID")


def validate_enrollment_id(value) -> int:
    return validate_id(value, "enrollment ID")


def coerce_id(value, label: str = "ID") -> int:
    """Accept a positive int, its decimal string form (``"42"``) or an integral float."""
    if isinstance(value, str) and value.strip().isascii() and value.strip().isdigit():
        value = int(value.strip())
    elif isinstance(value, float) and value.is_integer():
        value = int(value)
    return validate_id(value, label)


def coerce_course_ref(value: CourseRef) -> int:
    """Resolve a CourseRef (int or decimal string) to a validated course id."""
    return coerce_id(value, "course ID")
