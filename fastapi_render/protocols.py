"""Protocol definitions for dependency injection."""

from typing import Any, Protocol

from fastapi.responses import Response


class Render(Protocol):
    """Protocol for the per-request renderer handed to route handlers.

    Each operation produces the response for the current request. Only the
    first call in a request takes effect.
    """

    def json(self, status: int, value: Any) -> Response:
        """Write ``value`` serialized as JSON with the given status.

        Args:
            status: HTTP status code
            value: Any JSON-serializable value or pydantic model

        Returns:
            The written response
        """
        ...

    def html(self, status: int, name: str, binding: Any = None) -> Response:
        """Render the template ``name`` with ``binding`` and write it with the given status.

        Args:
            status: HTTP status code
            name: Logical template name
            binding: Template context

        Returns:
            The written response
        """
        ...

    def error(self, status: int) -> Response:
        """Write only the given status code.

        Args:
            status: HTTP status code

        Returns:
            The written response
        """
        ...
