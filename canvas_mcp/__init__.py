"""canvas-mcp — MCP server and paginated client for the Canvas LMS REST API."""

from canvas_mcp.client import CanvasClient
from canvas_mcp.config import VERSION
from canvas_mcp.dispatcher import Dispatcher
from canvas_mcp.exceptions import (
    CanvasAPIError,
    CanvasError,
    SetupError,
    TransportError,
    UnknownOperationError,
    UnknownResourceError,
    ValidationError,
)
from canvas_mcp.types import (
    CanvasAssignment,
    CanvasCourse,
    CanvasEnrollment,
    CanvasQuiz,
    CanvasSubmission,
    CanvasUser,
)

__all__ = [
    "VERSION",
    "CanvasClient",
    "Dispatcher",
    "CanvasError",
    "CanvasAPIError",
    "SetupError",
    "TransportError",
    "UnknownOperationError",
    "UnknownResourceError",
    "ValidationError",
    "CanvasAssignment",
    "CanvasCourse",
    "CanvasEnrollment",
    "CanvasQuiz",
    "CanvasSubmission",
    "CanvasUser",
]
