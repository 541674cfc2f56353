"""
app/pages/admin_dashboard.py

System statistics for administrators.  Each statistics call that fails is
shown as its own error; nothing stands in for the missing numbers.
"""

from __future__ import annotations

import streamlit as st

from app.ui import demo_banner, format_file_size, get_session, inject_theme, metric_card, navigate
from pipelines.dashboard import resolve_dashboard


def render() -> None:
    inject_theme()
    session = get_session()
    st.title("Admin Dashboard")
    demo_banner(session)

    view = resolve_dashboard(session)

    if view.statistics_error:
        st.error(view.statistics_error)
    if view.statistics is not None:
        s = view.statistics
        c1, c2, c3, c4 = st.columns(4)
        with c1:
            metric_card("Patients", str(s.total_patients), f"{s.active_users} active · {s.inactive_users} inactive")
        with c2:
            metric_card("Documents", str(s.total_documents))
        with c3:
            metric_card("Storage used", format_file_size(s.total_storage_used))
        with c4:
            metric_card(
                "Uploads today",
                str(s.documents_uploaded_today),
                f"{s.documents_uploaded_this_month} this month",
            )

    st.subheader("Details")
    if view.extended_error:
        st.error(view.extended_error)
    if view.extended is not None:
        e = view.extended
        c1, c2, c3 = st.columns(3)
        with c1:
            metric_card("Banned patients", str(e.banned_patients))
        with c2:
            metric_card("Without profile", str(e.patients_without_profiles))
        with c3:
            metric_card("Active patients", str(e.active_patients))

        if e.monthly_uploads:
            st.markdown("**Monthly uploads**")
            st.bar_chart(e.monthly_uploads)
        if e.document_types:
            st.markdown("**Documents by category**")
            st.bar_chart(e.document_types)
        if e.patient_registrations:
            st.markdown("**Patient registrations**")
            st.bar_chart(e.patient_registrations)

    st.divider()
    c1, c2 = st.columns(2)
    if c1.button("Manage patients", use_container_width=True):
        navigate("admin_patients", previous_page="admin_dashboard")
    if c2.button("All documents", use_container_width=True):
        navigate("admin_documents", previous_page="admin_dashboard")
