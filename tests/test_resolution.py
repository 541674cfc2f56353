"""
Integration tests for the admin patient view: directory, profile and
document lookups reconciled into one view, with independent failures.
"""
import pytest
import requests

from api.config import ClientSettings
from api.errors import AuthError, NetworkError, NotFoundError, ServerError
from api.models import PatientProfile, PatientUser
from pipelines.resolution import (
    DocumentsLookup,
    ProfileLookup,
    lookup_documents,
    lookup_profile,
    resolve_admin_document,
    resolve_patient_view,
)
from pipelines.schemas import ReconciledPatientView
from session.store import SessionStore

from conftest import BASE_URL, login_payload, make_response

DIRECTORY = [
    {"id": 5, "username": "tomy", "email": "tomy@demo.com", "active": True, "banned": False,
     "hasProfile": True, "documentCount": 1, "firstName": "John", "lastName": "Doe", "profileId": 1},
    {"id": 6, "username": "ahmed", "email": "ahmed@demo.com", "active": True, "banned": False,
     "hasProfile": False, "documentCount": 0},
]

PROFILES = [
    {"id": 1, "firstName": "John", "lastName": "Doe", "allergies": "Penicillin",
     "user": {"id": 5, "username": "tomy"}},
]

TOMY_DOCS = [
    {"id": 11, "title": "Blood panel", "categoryId": 1, "categoryName": "Lab Results", "fileSize": 10},
]


@pytest.fixture
def directory(backend):
    backend.add("GET", "/admin/patients/all", DIRECTORY)
    return backend


def test_complete_view(admin_session, directory):
    directory.add("GET", "/admin/patients/with-profiles", PROFILES)
    directory.add("GET", "/admin/patients/5/documents", TOMY_DOCS)

    view = resolve_patient_view(admin_session, 5)

    assert view.patient_user.username == "tomy"
    assert view.profile_missing is False
    assert view.profile.allergies == "Penicillin"
    assert view.profile.user_id == 5
    assert view.documents_error is None
    assert [d.id for d in view.documents] == [11]
    assert view.display_name == "John Doe"
    assert view.profile_error is None


def test_documents_are_stamped_with_owner(admin_session, directory):
    directory.add("GET", "/admin/patients/with-profiles", PROFILES)
    directory.add("GET", "/admin/patients/5/documents", TOMY_DOCS)

    view = resolve_patient_view(admin_session, 5)

    assert view.documents[0].owner_user_id == 5
    assert view.documents[0].owner_username == "tomy"


def test_patient_without_profile_skips_profile_fetch(admin_session, directory):
    directory.add("GET", "/admin/patients/6/documents", [])

    view = resolve_patient_view(admin_session, 6)

    assert view.profile is None
    assert view.profile_missing is True
    assert view.documents == []
    assert view.documents_error is None
    assert view.profile_error is None
    assert "/admin/patients/with-profiles" not in directory.paths()
    assert view.display_name == "ahmed"


def test_profile_failure_is_marked_missing(admin_session, directory):
    directory.add("GET", "/admin/patients/with-profiles", {"message": "boom"}, status=500)
    directory.add("GET", "/admin/patients/5/documents", TOMY_DOCS)

    view = resolve_patient_view(admin_session, 5)

    assert view.profile_missing is True
    assert view.profile is None
    assert view.profile_error.startswith("Could not load patient profile")
    assert "boom" in view.profile_error
    assert [d.id for d in view.documents] == [11]


def test_profile_flagged_but_absent_is_marked_missing(admin_session, directory):
    directory.add("GET", "/admin/patients/with-profiles", [])
    directory.add("GET", "/admin/patients/5/documents", [])

    view = resolve_patient_view(admin_session, 5)

    assert view.profile_missing is True
    assert "flagged as having a profile" in view.profile_error


def test_document_failure_is_marked(admin_session, directory):
    directory.add("GET", "/admin/patients/with-profiles", PROFILES)
    directory.add("GET", "/admin/patients/5/documents", {"message": "database down"}, status=500)

    view = resolve_patient_view(admin_session, 5)

    assert view.profile_missing is False
    assert view.documents == []
    assert view.documents_error.startswith("Could not load patient documents")
    assert "database down" in view.documents_error


def test_documents_404_without_fallback_is_marked(admin_session, directory):
    directory.add("GET", "/admin/patients/with-profiles", PROFILES)

    view = resolve_patient_view(admin_session, 5)

    assert view.documents_error is not None
    assert "/admin/documents" not in directory.paths()


def test_documents_404_with_fallback_filters_full_listing(backend, http):
    settings = ClientSettings(base_url=BASE_URL, patient_documents_fallback=True)
    session = SessionStore(settings, http=http)
    session.restore()
    backend.add("POST", "/auth/login", login_payload(1, "admin", ["ROLE_ADMIN"]))
    session.login("admin", "secret")

    backend.add("GET", "/admin/patients/all", DIRECTORY)
    backend.add("GET", "/admin/patients/with-profiles", PROFILES)
    backend.add("GET", "/admin/documents", [
        {"id": 11, "title": "Blood panel", "userId": 5, "username": "tomy"},
        {"id": 13, "title": "Prescription", "userId": 6, "username": "ahmed"},
    ])

    view = resolve_patient_view(session, 5)

    assert view.documents_error is None
    assert [d.id for d in view.documents] == [11]


def test_directory_failure_aborts(admin_session, backend):
    backend.add("GET", "/admin/patients/all", exc=requests.ConnectionError("refused"))

    with pytest.raises(NetworkError):
        resolve_patient_view(admin_session, 5)
    assert "/admin/patients/5/documents" not in backend.paths()


def test_directory_server_error_aborts(admin_session, backend):
    backend.add("GET", "/admin/patients/all", {"message": "boom"}, status=500)
    with pytest.raises(ServerError):
        resolve_patient_view(admin_session, 5)


def test_unknown_patient_is_not_found(admin_session, directory):
    with pytest.raises(NotFoundError):
        resolve_patient_view(admin_session, 99)


def test_401_during_lookup_ends_session(admin_session, directory):
    directory.add("GET", "/admin/patients/with-profiles", PROFILES)
    directory.add("GET", "/admin/patients/5/documents", {"message": "Token expired"}, status=401)

    with pytest.raises(AuthError):
        resolve_patient_view(admin_session, 5)
    assert not admin_session.is_admin()
    assert admin_session.principal is None


def test_logout_during_lookup_discards_view(admin_session, directory):
    directory.add("GET", "/admin/patients/with-profiles", PROFILES)

    def documents_then_logout(request):
        admin_session.logout()
        return make_response(request, 200, TOMY_DOCS)

    directory.add("GET", "/admin/patients/5/documents", handler=documents_then_logout)

    with pytest.raises(AuthError):
        resolve_patient_view(admin_session, 5)


def test_view_flags_must_agree():
    user = PatientUser(id=5, username="tomy")
    with pytest.raises(ValueError):
        ReconciledPatientView(patient_user=user, profile=PatientProfile(user_id=5), profile_missing=True)
    with pytest.raises(ValueError):
        ReconciledPatientView(patient_user=user, documents_error="  ")
    with pytest.raises(ValueError):
        ReconciledPatientView(patient_user=user, profile_error="")
    with pytest.raises(ValueError):
        ReconciledPatientView(
            patient_user=user, profile=PatientProfile(user_id=5), profile_missing=False, profile_error="stale"
        )


def test_admin_document_detail(admin_session, backend):
    backend.add("GET", "/admin/documents", [{"id": 11, "title": "Blood panel", "userId": 5}])

    assert resolve_admin_document(admin_session, 11).title == "Blood panel"
    with pytest.raises(NotFoundError):
        resolve_admin_document(admin_session, 12)


def test_lookup_results_are_validated(admin_session, directory):
    directory.add("GET", "/admin/patients/6/documents", [{"id": 13, "title": "Prescription"}])
    patient = PatientUser(id=6, username="ahmed", has_profile=False)

    assert lookup_profile(admin_session, patient).model_dump() == {"profile": None, "error": None}
    documents = lookup_documents(admin_session, patient)
    assert isinstance(documents, DocumentsLookup)
    assert documents.documents[0].owner_username == "ahmed"

    with pytest.raises(ValueError):
        DocumentsLookup(documents=[{"title": "no id"}])
    with pytest.raises(ValueError):
        ProfileLookup(profile="not a profile")
