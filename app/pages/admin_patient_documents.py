"""
app/pages/admin_patient_documents.py

One patient, as seen by an administrator.

The view is only shown once it is fully resolved.  A missing profile or a
failed document listing is shown as a warning next to whatever did load;
a failed directory lookup replaces the page with an error.
"""

from __future__ import annotations

import streamlit as st

from api import admin as admin_api
from api.errors import ApiError, AuthError, NotFoundError
from api.models import Document
from app.ui import (
    card_close,
    card_open,
    demo_banner,
    format_date,
    format_file_size,
    full_page_error,
    get_session,
    inject_theme,
    status_badge,
)
from pipelines.filters import search_patient_documents
from pipelines.resolution import resolve_patient_view
from pipelines.schemas import ReconciledPatientView


def _render_profile(view: ReconciledPatientView) -> None:
    user = view.patient_user
    card_open(view.display_name, f"@{user.username} · {user.email}")
    st.markdown(status_badge(user.active, user.banned), unsafe_allow_html=True)

    if view.profile_error:
        st.warning(view.profile_error)
    elif view.profile_missing:
        st.warning("This patient has not completed a medical profile yet.")
    else:
        p = view.profile
        c1, c2 = st.columns(2)
        c1.markdown(f"**Date of birth**  \n{format_date(p.date_of_birth)}")
        c2.markdown(f"**Phone**  \n{p.phone_number or 'N/A'}")
        c1.markdown(f"**Address**  \n{p.address or 'N/A'}")
        c2.markdown(f"**Emergency contact**  \n{p.emergency_contact or 'N/A'}")
        st.markdown(f"**Allergies**  \n{p.allergies or 'None recorded'}")
        st.markdown(f"**Medications**  \n{p.medications or 'None recorded'}")
        st.markdown(f"**Medical history**  \n{p.medical_history or 'None recorded'}")
    card_close()


def _render_document(session, document: Document) -> None:
    with st.container(border=True):
        c1, c2 = st.columns([4, 1])
        c1.markdown(
            f"**{document.title}**  \n"
            f"{document.category_name or 'Uncategorised'} · {format_date(document.document_date)} · "
            f"{format_file_size(document.file_size)}"
        )
        key = f"admin-doc-{document.id}"
        if c2.button("Prepare download", key=f"{key}-prep"):
            try:
                st.session_state[f"{key}-file"] = admin_api.download_document(session.client, document.id)
            except AuthError:
                raise
            except ApiError as exc:
                st.error(f"Download failed: {exc.message}")
        downloaded = st.session_state.get(f"{key}-file")
        if downloaded is not None:
            c2.download_button(
                "Download",
                data=downloaded.content,
                file_name=downloaded.filename,
                mime=downloaded.content_type,
                key=f"{key}-dl",
            )


def render() -> None:
    inject_theme()
    session = get_session()
    demo_banner(session)

    patient_id = st.session_state.get("patient_id")
    if patient_id is None:
        full_page_error("No patient selected.", "patient-view")
        return

    try:
        view = resolve_patient_view(session, int(patient_id))
    except AuthError:
        raise
    except NotFoundError:
        full_page_error("Patient not found.", "patient-view")
        return
    except ApiError as exc:
        full_page_error(f"Failed to load patient: {exc.message}", "patient-view")
        return

    st.title(view.display_name)
    _render_profile(view)

    st.subheader("Documents")
    if view.documents_error:
        st.warning(view.documents_error)
        return

    search = st.text_input("Search this patient's documents", key="patient-doc-search")
    matches = search_patient_documents(view.documents, search)
    if not matches:
        st.info("No documents found." if view.documents else "This patient has no documents.")
        return
    for document in matches:
        _render_document(session, document)
