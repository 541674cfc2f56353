"""
UI tests using Streamlit's AppTest framework.

The pages run against the fake backend through a signed-in session that is
placed in ``st.session_state`` before the first run.
"""
from streamlit.testing.v1 import AppTest

DIRECTORY = [
    {"id": 6, "username": "ahmed", "email": "ahmed@demo.com", "active": True, "banned": False,
     "hasProfile": False, "documentCount": 0},
]


def _admin_area():
    import streamlit as st

    from app.ui import get_session, guarded
    from session.guards import admin_only

    if guarded(get_session(), admin_only()):
        st.write("Admin area content")


def _patient_view():
    from app.pages import admin_patient_documents

    admin_patient_documents.render()


def test_ui_patient_is_denied_admin_area(patient_session):
    app = AppTest.from_function(_admin_area, default_timeout=15)
    app.session_state["session"] = patient_session
    app.run()

    assert any("Access Denied" in e.value for e in app.error)
    assert not any("Admin area content" in md.value for md in app.markdown)
    assert any(b.label == "Go Back" for b in app.button)


def test_ui_admin_is_allowed(admin_session):
    app = AppTest.from_function(_admin_area, default_timeout=15)
    app.session_state["session"] = admin_session
    app.run()

    assert not app.error
    assert any("Admin area content" in md.value for md in app.markdown)


def test_ui_partial_patient_view_shows_markers(admin_session, backend):
    backend.add("GET", "/admin/patients/all", DIRECTORY)
    backend.add("GET", "/admin/patients/6/documents", {"message": "database down"}, status=500)

    app = AppTest.from_function(_patient_view, default_timeout=15)
    app.session_state["session"] = admin_session
    app.session_state["patient_id"] = 6
    app.run()

    warnings = [w.value for w in app.warning]
    assert any("has not completed a medical profile" in w for w in warnings)
    assert any("Could not load patient documents" in w for w in warnings)
    assert not app.error


def test_ui_unknown_patient_shows_full_page_error(admin_session, backend):
    backend.add("GET", "/admin/patients/all", DIRECTORY)

    app = AppTest.from_function(_patient_view, default_timeout=15)
    app.session_state["session"] = admin_session
    app.session_state["patient_id"] = 99
    app.run()

    assert any("Patient not found" in e.value for e in app.error)
    assert [b.label for b in app.button] == ["Retry", "Go Back"]


def test_ui_profile_failure_is_not_shown_as_missing_profile(admin_session, backend):
    backend.add("GET", "/admin/patients/all", [
        {"id": 5, "username": "tomy", "email": "tomy@demo.com", "active": True, "banned": False,
         "hasProfile": True, "documentCount": 0},
    ])
    backend.add("GET", "/admin/patients/with-profiles", {"message": "boom"}, status=500)
    backend.add("GET", "/admin/patients/5/documents", [])

    app = AppTest.from_function(_patient_view, default_timeout=15)
    app.session_state["session"] = admin_session
    app.session_state["patient_id"] = 5
    app.run()

    warnings = [w.value for w in app.warning]
    assert any("Could not load patient profile" in w and "boom" in w for w in warnings)
    assert not any("has not completed a medical profile" in w for w in warnings)


def _admin_document_detail():
    from app.pages import admin_documents

    admin_documents.render()


def test_ui_download_401_ends_session_instead_of_inline_error(admin_session, backend):
    backend.add("GET", "/admin/documents", [{"id": 11, "title": "Blood panel", "userId": 5}])
    backend.add("GET", "/admin/documents/11/download", {"message": "Token expired"}, status=401)

    app = AppTest.from_function(_admin_document_detail, default_timeout=15)
    app.session_state["session"] = admin_session
    app.session_state["admin_document_id"] = 11
    app.run()
    assert not app.exception

    next(b for b in app.button if b.label == "Prepare download").click().run()

    assert app.exception
    assert not any("Download failed" in e.value for e in app.error)
    assert not admin_session.is_authenticated()
    assert admin_session.login_redirect_pending


def _shared_documents():
    from app.pages import documents
    from app.ui import get_session, guarded
    from session.guards import any_authenticated

    if guarded(get_session(), any_authenticated()):
        documents.render()


def test_ui_admin_can_browse_documents_read_only(admin_session, backend):
    backend.add("GET", "/documents/categories", [{"id": 1, "name": "Lab Results"}])
    backend.add("GET", "/documents", [{"id": 11, "title": "Blood panel", "categoryId": 1}])

    app = AppTest.from_function(_shared_documents, default_timeout=15)
    app.session_state["session"] = admin_session
    app.run()

    assert not app.error
    assert app.title[0].value == "Documents"
    assert not any(e.label == "Upload a document" for e in app.expander)
    assert any(b.label == "Open" for b in app.button)


def test_ui_admin_document_detail_has_no_edit_or_delete(admin_session, backend):
    backend.add("GET", "/documents/categories", [{"id": 1, "name": "Lab Results"}])
    backend.add("GET", "/documents/11", {"id": 11, "title": "Blood panel", "categoryId": 1})

    app = AppTest.from_function(_shared_documents, default_timeout=15)
    app.session_state["session"] = admin_session
    app.session_state["document_id"] = 11
    app.run()

    assert not app.error
    labels = [b.label for b in app.button]
    assert "Prepare download" in labels
    assert "Delete document" not in labels
    assert not any(e.label == "Edit details" for e in app.expander)


def test_ui_patient_documents_page_offers_upload(patient_session, backend):
    backend.add("GET", "/documents/categories", [{"id": 1, "name": "Lab Results"}])
    backend.add("GET", "/documents", [])

    app = AppTest.from_function(_shared_documents, default_timeout=15)
    app.session_state["session"] = patient_session
    app.run()

    assert not app.error
    assert app.title[0].value == "My Documents"
    assert any(e.label == "Upload a document" for e in app.expander)
