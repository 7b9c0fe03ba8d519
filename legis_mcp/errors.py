"""
Error taxonomy shared by the Congress.gov service and the MCP tools.

The service raises these; each tool handler catches them once and turns
them into an ``isError`` result.
"""

from typing import Any, Optional


class CongressMcpError(Exception):
    """Base class for all errors raised by this package."""

    kind = "CongressMcpError"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return self.message


class ValidationError(CongressMcpError):
    """Malformed caller input, or HTTP 400 from upstream."""

    kind = "ValidationError"

    def __init__(self, message: str, details: Any = None):
        super().__init__(message)
        self.details = details


class NotFoundError(CongressMcpError):
    """Resource does not exist upstream."""

    kind = "NotFoundError"


class RateLimitError(CongressMcpError):
    """Local admission denied or upstream returned 429."""

    kind = "RateLimitError"


class ApiError(CongressMcpError):
    """Any other upstream failure. ``status_code`` is 0 for network errors."""

    kind = "ApiError"

    def __init__(self, message: str, status_code: int = 0, body: Optional[str] = None):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class InvalidParameterError(CongressMcpError):
    """Unsupported collection name or unparseable resource URI."""

    kind = "InvalidParameterError"


class AuthenticationError(CongressMcpError):
    """Caller credentials rejected by an authenticated backend."""

    kind = "AuthenticationError"


def describe_error(error: BaseException) -> str:
    """Human readable '<Category>: <cause>' line, never a traceback."""
    if isinstance(error, CongressMcpError):
        return f"{error.kind}: {error.message}"
    return f"UnexpectedError: {error}"
