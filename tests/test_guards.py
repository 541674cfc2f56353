"""
Unit tests for the role-gated route guards.
"""
import pytest

from session.guards import GuardState, LoginRequired, admin_only, any_authenticated, patient_only
from session.store import SessionStore


def test_loading_until_store_ready(settings, http):
    store = SessionStore(settings, http=http)
    guard = admin_only()
    assert guard.resolve(store) is GuardState.loading
    assert guard.state is GuardState.loading


def test_ready_without_principal_requires_login(session):
    with pytest.raises(LoginRequired):
        admin_only().resolve(session)


def test_admin_allowed_on_admin_route(admin_session):
    assert admin_only().resolve(admin_session) is GuardState.allowed


def test_patient_denied_on_admin_route(patient_session):
    guard = admin_only()
    assert guard.resolve(patient_session) is GuardState.denied
    assert "administrator" in guard.denied_message


def test_patient_route(patient_session):
    assert patient_only().resolve(patient_session) is GuardState.allowed


def test_admin_denied_on_patient_route(admin_session):
    assert patient_only().resolve(admin_session) is GuardState.denied


def test_any_authenticated(admin_session):
    assert any_authenticated().resolve(admin_session) is GuardState.allowed


def test_terminal_state_is_kept(admin_session):
    guard = admin_only()
    guard.resolve(admin_session)
    admin_session.logout()
    assert guard.resolve(admin_session) is GuardState.allowed
    with pytest.raises(LoginRequired):
        admin_only().resolve(admin_session)
