"""
session/store.py

The session/identity store: who is signed in, with which roles, and the
bearer token every API call carries.

One ``SessionStore`` exists per running app instance (the Streamlit app
keeps it in ``st.session_state``); it is passed explicitly to whatever needs
it.  The store owns its ``ApiClient`` so that the client can read the token
on each request and report 401s back through :meth:`SessionStore.invalidate`.
"""

from __future__ import annotations

import logging
import threading
from typing import Optional

import requests

from api import auth as auth_api
from api.client import ApiClient
from api.config import ClientSettings
from api.errors import AuthError, NetworkError
from api.models import Principal, RoleTag
from session.token_cache import TokenCache

logger = logging.getLogger(__name__)


class SessionStore:
    def __init__(
        self,
        settings: ClientSettings | None = None,
        http: requests.Session | None = None,
        cache: TokenCache | None = None,
    ):
        self.settings = settings or ClientSettings.from_env()
        if cache is None and self.settings.session_cache_path:
            cache = TokenCache(self.settings.session_cache_path)
        self._cache = cache

        self._lock = threading.Lock()
        self._principal: Optional[Principal] = None
        self._token: Optional[str] = None
        self._epoch = 0
        self._ready = False
        self._login_redirect: Optional[str] = None

        self.client = ApiClient(
            self.settings,
            http=http,
            token_provider=self.token,
            on_unauthorized=self.invalidate,
        )

    # -------------------------
    # State
    # -------------------------
    @property
    def principal(self) -> Optional[Principal]:
        return self._principal

    @property
    def epoch(self) -> int:
        """Changes on every login, logout and invalidation."""
        return self._epoch

    @property
    def ready(self) -> bool:
        return self._ready

    def token(self) -> Optional[str]:
        return self._token

    def is_authenticated(self) -> bool:
        return self._principal is not None

    def has_role(self, role: RoleTag) -> bool:
        principal = self._principal
        return principal is not None and principal.has_role(role)

    def is_admin(self) -> bool:
        return self.has_role(RoleTag.admin)

    def is_patient(self) -> bool:
        return self.has_role(RoleTag.patient)

    # -------------------------
    # Lifecycle
    # -------------------------
    def restore(self) -> Optional[Principal]:
        """Reload a cached session, if any.  Marks the store ready."""
        if self._cache is not None:
            cached = self._cache.load()
            if cached is not None:
                with self._lock:
                    self._principal = cached.principal
                    self._token = cached.token
                    self._epoch += 1
                logger.info("Restored session for '%s'", cached.principal.username)
        self._ready = True
        return self._principal

    def login(self, username: str, password: str) -> Principal:
        """
        Authenticate and keep the principal until logout or invalidation.

        Raises:
            AuthError: Invalid credentials or no response from the server.
        """
        try:
            response = auth_api.login(self.client, username, password)
        except NetworkError as exc:
            raise AuthError(f"Could not reach the server to sign in: {exc.message}") from exc

        principal = response.to_principal()
        with self._lock:
            self._principal = principal
            self._token = response.token
            self._epoch += 1
            self._login_redirect = None
            self._ready = True

        if self._cache is not None:
            self._cache.save(response.token, principal)
        logger.info(
            "Signed in '%s' (id=%d, roles=%s)",
            principal.username,
            principal.id,
            sorted(r.value for r in principal.roles),
        )
        return principal

    def register(self, username: str, email: str, password: str) -> str:
        """Register a patient account.  Does not sign in."""
        return auth_api.register(self.client, username, email, password)

    def logout(self) -> None:
        """Clear the principal and token.  Safe to call repeatedly."""
        with self._lock:
            had_principal = self._principal is not None
            self._clear_locked()
        if self._cache is not None:
            self._cache.clear()
        if had_principal:
            logger.info("Signed out")

    def invalidate(self, reason: str = "Session expired") -> None:
        """
        Forcibly end the session after the server answered 401.

        Idempotent and callable from any thread: lookups running on worker
        threads may hit 401 at the same time.
        """
        with self._lock:
            if self._principal is None and self._token is None:
                return
            self._clear_locked()
            self._login_redirect = reason or "Session expired"
        if self._cache is not None:
            self._cache.clear()
        logger.warning("Session invalidated: %s", reason)

    @property
    def login_redirect_pending(self) -> bool:
        return self._login_redirect is not None

    def pop_login_redirect(self) -> Optional[str]:
        """Return (once) why the user must sign in again, if a 401 ended the session."""
        with self._lock:
            reason, self._login_redirect = self._login_redirect, None
        return reason

    def _clear_locked(self) -> None:
        self._principal = None
        self._token = None
        self._epoch += 1
