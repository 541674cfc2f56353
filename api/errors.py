"""
api/errors.py

Typed failures raised by the resource client layer.

Every error carries the HTTP status (``None`` when no response arrived) and
the server's ``message`` so callers can branch on the kind of failure
instead of parsing strings.
"""

from __future__ import annotations

from typing import Any


class ApiError(Exception):
    """Base class for every failure surfaced by an API call."""

    def __init__(self, message: str, status_code: int | None = None, payload: Any = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.payload = payload

    def __str__(self) -> str:
        if self.status_code is None:
            return self.message
        return f"{self.message} (HTTP {self.status_code})"


class NetworkError(ApiError):
    """No response was received (connection refused, DNS, timeout)."""


class AuthError(ApiError):
    """Credentials rejected or session expired (HTTP 401)."""


class NotFoundError(ApiError):
    """The requested resource or target does not exist (HTTP 404)."""


class ValidationError(ApiError):
    """The server rejected the input (HTTP 400 / 422)."""


class ServerError(ApiError):
    """Opaque server-side failure (HTTP 5xx)."""


class ResolutionError(ApiError):
    """A response arrived but its payload could not be resolved into the expected model."""


def error_for_status(status_code: int, message: str, payload: Any = None) -> ApiError:
    """Return the error instance matching *status_code*."""
    if status_code == 401:
        return AuthError(message, status_code, payload)
    if status_code == 404:
        return NotFoundError(message, status_code, payload)
    if status_code in (400, 422):
        return ValidationError(message, status_code, payload)
    if status_code >= 500:
        return ServerError(message, status_code, payload)
    return ApiError(message, status_code, payload)
