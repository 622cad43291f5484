"""
canvas-mcp exception hierarchy.

All custom exceptions live here to avoid circular imports.
Each CanvasError subclass is one error kind of the dispatch contract.
"""


class CanvasError(Exception):
    """Base error. Exit code 1 when it reaches the process boundary."""

    kind = "unknown"
    exit_code = 1

    def __init__(self, message, status_code=None, response=None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.response = response

    def to_dict(self):
        """Return the error record as a JSON-serializable dict."""
        return {
            "type": self.kind,
            "message": self.message,
            "status": self.status_code,
            "response": self.response,
        }


class ValidationError(CanvasError):
    """Bad or missing caller input. Never reaches the network."""

    kind = "validation"


class CanvasAPIError(CanvasError):
    """Canvas answered with a non-2xx status."""

    kind = "remote-api"


class TransportError(CanvasError):
    """No usable response: connection failure, timeout, oversized or non-JSON body."""

    kind = "transport"


class UnknownOperationError(CanvasError):
    kind = "unknown-operation"


class UnknownResourceError(CanvasError):
    kind = "unknown-resource-type"


class SetupError(CanvasError):
    """Exit code 2 — missing token or domain."""

    kind = "setup"
    exit_code = 2


class HTTPError(Exception):
    """Raised by _http_request for HTTP errors that callers want to handle."""

    def __init__(self, code, reason, body, headers=None):
        super().__init__(f"HTTP {code}: {reason}")
        self.code = code
        self.reason = reason
        self.body = body
        self.headers = headers or {}
