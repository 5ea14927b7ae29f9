"""Exception hierarchy for the Metis Python SDK."""

from __future__ import annotations


class MetisError(Exception):
    """Base exception for all Metis SDK errors."""


class NetworkError(MetisError):
    """Raised when an exchange never produced a response (connect, DNS, timeout)."""


class AuthError(MetisError):
    """Raised when the API key is rejected (401)."""

    status_code = 401


class ApiError(MetisError):
    """Raised on any non-2xx status other than 401."""

    def __init__(self, message: str, status_code: int) -> None:
        super().__init__(f"API error (status {status_code}): {message}")
        self.message = message
        self.status_code = status_code


class EncodingError(MetisError):
    """Raised when a request body cannot be built. Nothing is sent."""


class ParseError(MetisError):
    """Raised when a 2xx body does not match the expected shape."""


class InvalidEndpoint(MetisError):
    """Raised when base URL, path and query do not compose into a valid URL."""
