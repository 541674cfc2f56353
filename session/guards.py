"""
session/guards.py

Role-gated route guards.

Every guard is the same small state machine:

    Loading --(store ready, predicate true)--> Allowed
    Loading --(store ready, predicate false)--> Denied
    Loading --(store ready, no principal)--> LoginRequired is raised

``Allowed`` and ``Denied`` are terminal for a guard instance; a new
navigation builds a new guard.  ``Denied`` never redirects by itself: the
page shows the message and a "Go back" action.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Callable

from api.models import Principal, RoleTag
from session.store import SessionStore

logger = logging.getLogger(__name__)

Predicate = Callable[[Principal], bool]


class GuardState(str, Enum):
    loading = "loading"
    denied = "denied"
    allowed = "allowed"


class LoginRequired(Exception):
    """No principal is signed in; navigation must go to the login page."""


class RouteGuard:
    def __init__(self, name: str, predicate: Predicate, denied_message: str):
        self.name = name
        self.predicate = predicate
        self.denied_message = denied_message
        self.state = GuardState.loading

    def resolve(self, session: SessionStore) -> GuardState:
        """
        Advance out of ``Loading`` once the session store is ready.

        Raises:
            LoginRequired: The store is ready and nobody is signed in.
        """
        if self.state is not GuardState.loading:
            return self.state
        if not session.ready:
            return self.state

        principal = session.principal
        if principal is None:
            raise LoginRequired(self.name)

        if self.predicate(principal):
            self.state = GuardState.allowed
        else:
            self.state = GuardState.denied
            logger.info("Guard '%s' denied user id=%d", self.name, principal.id)
        return self.state


def _is_admin(principal: Principal) -> bool:
    return principal.has_role(RoleTag.admin)


def _is_patient_only(principal: Principal) -> bool:
    return principal.has_role(RoleTag.patient) and not principal.has_role(RoleTag.admin)


def admin_only() -> RouteGuard:
    return RouteGuard(
        "admin",
        _is_admin,
        "You do not have administrator privileges to access this area.",
    )


def patient_only() -> RouteGuard:
    return RouteGuard(
        "patient",
        _is_patient_only,
        "This section is only for patients. Administrators should use the admin dashboard.",
    )


def any_authenticated() -> RouteGuard:
    return RouteGuard("authenticated", lambda principal: True, "")
