"""
System tests running the whole client stack against the built-in demo
dataset.
"""
import pytest

from api import admin as admin_api
from api import documents as documents_api
from api import patients as patients_api
from api.config import ClientSettings
from api.errors import ApiError, AuthError
from pipelines.dashboard import resolve_dashboard
from pipelines.resolution import resolve_patient_view
from session.store import SessionStore


@pytest.fixture
def demo_session():
    store = SessionStore(ClientSettings(base_url="http://demo.local/api", demo_mode=True))
    store.restore()
    return store


def test_demo_login_and_roles(demo_session):
    demo_session.login("admin", "admin")
    assert demo_session.is_admin()


def test_demo_bad_password(demo_session):
    with pytest.raises(AuthError):
        demo_session.login("admin", "nope")


def test_demo_patient_documents_and_profile(demo_session):
    demo_session.login("tomy", "demo")
    documents = documents_api.list_documents(demo_session.client)
    assert {d.id for d in documents} == {11, 12}
    assert patients_api.load_profile(demo_session.client).first_name == "John"

    downloaded = documents_api.download_document(demo_session.client, 11)
    assert downloaded.filename == "Blood panel.txt"
    assert b"Blood panel" in downloaded.content


def test_demo_patient_without_profile(demo_session):
    demo_session.login("ahmed", "demo")
    assert patients_api.load_profile(demo_session.client) is None


def test_demo_is_read_only_for_patient_writes(demo_session):
    demo_session.login("tomy", "demo")
    with pytest.raises(ApiError) as info:
        documents_api.delete_document(demo_session.client, 11)
    assert info.value.status_code == 403
    assert demo_session.is_authenticated()


def test_demo_patient_cannot_reach_admin(demo_session):
    demo_session.login("tomy", "demo")
    with pytest.raises(ApiError) as info:
        admin_api.list_patient_directory(demo_session.client)
    assert info.value.status_code == 403


def test_demo_admin_views(demo_session):
    demo_session.login("admin", "admin")

    view = resolve_patient_view(demo_session, 6)
    assert view.profile_missing
    assert [d.id for d in view.documents] == [13]
    assert view.documents[0].owner_username == "ahmed"

    view = resolve_patient_view(demo_session, 5)
    assert view.profile.full_name == "John Doe"

    dashboard = resolve_dashboard(demo_session)
    assert dashboard.demo is True
    assert dashboard.statistics.total_patients == 2
    assert dashboard.extended.patients_without_profiles == 1


def test_demo_ban_toggle(demo_session):
    demo_session.login("admin", "admin")
    admin_api.set_patient_banned(demo_session.client, 6, True)
    entry = next(p for p in admin_api.list_patient_directory(demo_session.client) if p.id == 6)
    assert entry.banned
    assert not entry.active
