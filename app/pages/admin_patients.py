"""
app/pages/admin_patients.py

Patient directory for administrators: search, status/profile filters,
pagination, activate/deactivate and ban/unban.
"""

from __future__ import annotations

import streamlit as st

from api import admin as admin_api
from api.errors import ApiError, AuthError
from api.models import PatientUser
from app.ui import demo_banner, full_page_error, get_session, inject_theme, navigate, status_badge
from pipelines.filters import ListState, filter_patients, total_pages
from pipelines.schemas import PatientFilters

_STATUS = {"all": "All", "active": "Active", "inactive": "Inactive", "banned": "Banned"}
_PROFILE = {"all": "All", "complete": "Profile complete", "incomplete": "No profile"}


def _list_state(page_size: int) -> ListState:
    state = st.session_state.get("patients_list")
    if state is None:
        state = ListState(PatientFilters(), page_size=page_size)
        st.session_state["patients_list"] = state
    return state


def _toggle_active(session, patient: PatientUser) -> None:
    try:
        admin_api.set_patient_active(session.client, patient.id, not patient.active)
    except AuthError:
        raise
    except ApiError as exc:
        st.error(f"Could not update status: {exc.message}")
        return
    st.rerun()


def _toggle_banned(session, patient: PatientUser) -> None:
    try:
        admin_api.set_patient_banned(session.client, patient.id, not patient.banned)
    except AuthError:
        raise
    except ApiError as exc:
        st.error(f"Could not update ban: {exc.message}")
        return
    st.rerun()


def _render_row(session, patient: PatientUser) -> None:
    with st.container(border=True):
        c1, c2, c3, c4, c5 = st.columns([3, 1.2, 1.2, 1.2, 1.2])
        c1.markdown(
            f"**{patient.display_name}**  \n{patient.email} · {patient.document_count} documents"
            + ("" if patient.has_profile else " · no profile")
        )
        c2.markdown(status_badge(patient.active, patient.banned), unsafe_allow_html=True)
        if c3.button("Documents", key=f"docs-{patient.id}"):
            navigate("admin_patient_documents", patient_id=patient.id, previous_page="admin_patients")
        if c4.button("Deactivate" if patient.active else "Activate", key=f"active-{patient.id}",
                     disabled=patient.banned):
            _toggle_active(session, patient)
        if c5.button("Unban" if patient.banned else "Ban", key=f"ban-{patient.id}"):
            _toggle_banned(session, patient)


def render() -> None:
    inject_theme()
    session = get_session()
    st.title("Patients")
    demo_banner(session)

    try:
        directory = admin_api.list_patient_directory(session.client)
    except AuthError:
        raise
    except ApiError as exc:
        full_page_error(f"Failed to load patients: {exc.message}", "patients")
        return

    state = _list_state(session.settings.page_size)
    c1, c2, c3 = st.columns([2, 1, 1])
    search = c1.text_input("Search", value=state.filters.search, placeholder="Name, username or email")
    status = c2.selectbox("Status", list(_STATUS), format_func=_STATUS.get,
                          index=list(_STATUS).index(state.filters.status))
    profile = c3.selectbox("Profile", list(_PROFILE), format_func=_PROFILE.get,
                           index=list(_PROFILE).index(state.filters.profile))
    state.update(search=search, status=status, profile=profile)

    matches = filter_patients(directory, state.filters)
    st.caption(f"{len(matches)} of {len(directory)} patients")
    if not matches:
        st.info("No patients match the current filters.")
        return

    for patient in state.visible(matches):
        _render_row(session, patient)

    pages = total_pages(len(matches), state.page_size)
    if pages > 1:
        page = st.number_input("Page", min_value=1, max_value=pages, value=state.page, step=1)
        if page != state.page:
            state.go_to(int(page), len(matches))
            st.rerun()
