"""Custom exceptions for spanline."""

from __future__ import annotations

__all__ = [
    "ConfigurationError",
    "SpanlineError",
    "TransportError",
]


class SpanlineError(Exception):
    """Base exception for all spanline errors."""


class ConfigurationError(SpanlineError):
    """Raised when the client configuration is incomplete or inconsistent."""


class TransportError(SpanlineError):
    """Raised when a call to the collection service fails.

    Parameters:
        message: Human-readable description of the failure.
        status_code: The HTTP status code, or ``0`` when no response was
            received (connection error, timeout).
        response_body: The raw response body, if any.
    """

    def __init__(
        self,
        message: str,
        status_code: int = 0,
        response_body: str | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.response_body = response_body
