"""
api/auth.py

Authentication endpoints.  Both calls are unauthenticated: no bearer token
is attached and a 401 here never invalidates an existing session.
"""

from __future__ import annotations

import logging

from api.client import ApiClient, parse_model
from api.errors import AuthError, ValidationError
from api.models import LoginResponse

logger = logging.getLogger(__name__)

PATIENT_REGISTRATION_ROLES = ["patient"]


def login(client: ApiClient, username: str, password: str) -> LoginResponse:
    """
    Exchange credentials for a token and the principal's claims.

    Raises:
        AuthError:    Invalid credentials.  The server answers 401 for a bad
                      password and 400 when the user does not exist; both
                      surface as ``AuthError``.
        NetworkError: No response.
    """
    try:
        payload = client.post_json(
            "/auth/login",
            {"username": username, "password": password},
            authenticated=False,
        )
    except ValidationError as exc:
        raise AuthError(exc.message, exc.status_code, exc.payload) from exc
    return parse_model(LoginResponse, payload, "/auth/login")


def register(client: ApiClient, username: str, email: str, password: str) -> str:
    """
    Register a patient account and return the server's confirmation message.

    Raises:
        ValidationError: Username or email already taken, or bad input.
    """
    payload = client.post_json(
        "/auth/register",
        {
            "username": username,
            "email": email,
            "password": password,
            "role": PATIENT_REGISTRATION_ROLES,
        },
        authenticated=False,
    )
    message = payload.get("message") if isinstance(payload, dict) else None
    logger.info("Registered patient account '%s'", username)
    return message or "User registered successfully!"
