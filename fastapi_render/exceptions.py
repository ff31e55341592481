"""Custom exceptions for the render middleware with HTTP status codes."""

from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    """Error codes for structured error reporting."""

    # Generic errors
    RENDER_ERROR = "RENDER_ERROR"

    # Startup errors
    TEMPLATE_COMPILE_ERROR = "TEMPLATE_COMPILE_ERROR"

    # Request-time errors
    TEMPLATE_NOT_FOUND = "TEMPLATE_NOT_FOUND"
    TEMPLATE_RENDER_ERROR = "TEMPLATE_RENDER_ERROR"
    JSON_ENCODE_ERROR = "JSON_ENCODE_ERROR"


class RenderException(Exception):
    """Base exception for render errors with HTTP status code support.

    All custom exceptions inherit from this class so callers can catch
    every render failure with a single ``except`` clause.
    """

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.RENDER_ERROR,
        status_code: int = 500,
        details: dict[str, Any] | None = None,
    ):
        """Initialize render exception.

        Args:
            message: Human-readable error message
            code: Error code from ErrorCode enum
            status_code: HTTP status code (default 500)
            details: Additional error context/details
        """
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details = details or {}
        super().__init__(message)


class TemplateCompileException(RenderException):
    """A template file could not be read or parsed, or the directory walk failed.

    Raised by a compilation pass. Never swallowed: an application must not
    serve traffic against an incomplete template set.
    """

    def __init__(
        self,
        message: str,
        path: str | None = None,
        lineno: int | None = None,
        details: dict[str, Any] | None = None,
    ):
        details = dict(details or {})
        if path is not None:
            details["path"] = path
        if lineno is not None:
            details["lineno"] = lineno
        super().__init__(
            message,
            code=ErrorCode.TEMPLATE_COMPILE_ERROR,
            status_code=500,
            details=details,
        )
        self.path = path
        self.lineno = lineno


class TemplateNotFoundException(RenderException):
    """The requested template is not part of the compiled set."""

    def __init__(self, template_name: str, details: dict[str, Any] | None = None):
        super().__init__(
            f'template "{template_name}" is not defined',
            code=ErrorCode.TEMPLATE_NOT_FOUND,
            status_code=500,
            details={"template": template_name, **(details or {})},
        )
        self.template_name = template_name


class TemplateRenderException(RenderException):
    """Executing a compiled template failed."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(
            message,
            code=ErrorCode.TEMPLATE_RENDER_ERROR,
            status_code=500,
            details=details,
        )


class JSONEncodeException(RenderException):
    """A value could not be serialized as JSON."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(
            message,
            code=ErrorCode.JSON_ENCODE_ERROR,
            status_code=500,
            details=details,
        )
