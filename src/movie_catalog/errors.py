"""Exceptions raised by the API client.

Controllers catch these and convert them into ``Outcome`` values; they
never reach the presentation layer.
"""

from __future__ import annotations


class ApiError(Exception):
    """Base class for every failure surfaced by ``ApiClient``."""


class AuthExpiredError(ApiError):
    """The held session token is missing or no longer valid server-side."""


class ApiStatusError(ApiError):
    """The server answered with an error status (other than an expired session)."""

    def __init__(self, status_code: int, message: str = "", *, operation: str = "") -> None:
        self.status_code = status_code
        self.server_message = message
        self.operation = operation
        detail = f": {message}" if message else ""
        super().__init__(f"{operation or 'request'} failed with HTTP {status_code}{detail}")


class ApiTransportError(ApiError):
    """The request never produced a response (network error, timeout)."""


class ApiResponseError(ApiError):
    """The server answered 2xx with a body that could not be decoded."""


__all__ = [
    "ApiError",
    "ApiResponseError",
    "ApiStatusError",
    "ApiTransportError",
    "AuthExpiredError",
]
