"""Transport protocol consumed by the batch queue and the client."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, Protocol, TypeAlias, runtime_checkable

FailureCallback: TypeAlias = Callable[[dict[str, Any], Exception], None]
"""Called with the dropped batch payload and the error that caused the drop."""


@runtime_checkable
class Transport(Protocol):
    """Performs authenticated calls against the collection service.

    Paths are relative to the configured base URL.  Implementations raise
    ``TransportError`` (or any other exception) when a call fails; callers
    in the delivery path treat every failure the same way.
    """

    def post(self, path: str, body: dict[str, Any] | None = None) -> dict[str, Any]:
        """Send a POST request with a JSON body and return the decoded response."""
        ...

    def get(self, path: str, query: dict[str, Any] | None = None) -> dict[str, Any]:
        """Send a GET request with query parameters and return the decoded response."""
        ...

    def put(self, path: str, body: dict[str, Any] | None = None) -> dict[str, Any]:
        """Send a PUT request with a JSON body and return the decoded response."""
        ...

    def patch(self, path: str, body: dict[str, Any] | None = None) -> dict[str, Any]:
        """Send a PATCH request with a JSON body and return the decoded response."""
        ...

    def delete(self, path: str) -> None:
        """Send a DELETE request."""
        ...
