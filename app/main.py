"""
app/main.py

Healthics: Streamlit entry point.
- Session restore + sign-in gate
- Role-based navigation (Patient / Admin)
- Every page behind its route guard
- Global theme injection
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Callable, Optional

import streamlit as st

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from api.errors import AuthError  # noqa: E402
from app.ui import get_session, guarded, inject_theme  # noqa: E402
from session.guards import RouteGuard, admin_only, any_authenticated, patient_only  # noqa: E402

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Page config
# ---------------------------------------------------------------------------
st.set_page_config(
    page_title="Healthics",
    page_icon="🏥",
    layout="wide",
    initial_sidebar_state="expanded",
)

# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------
# page key -> guard factory (None: public)
ROUTES: dict[str, Optional[Callable[[], RouteGuard]]] = {
    "auth": None,
    "documents": any_authenticated,
    "profile": patient_only,
    "admin_dashboard": admin_only,
    "admin_patients": admin_only,
    "admin_patient_documents": admin_only,
    "admin_documents": admin_only,
}

# pages reached from another page rather than from the sidebar
PARENT_PAGE = {"admin_patient_documents": "admin_patients"}

PATIENT_NAV = [("My Documents", "documents"), ("My Profile", "profile")]
ADMIN_NAV = [
    ("Dashboard", "admin_dashboard"),
    ("Patients", "admin_patients"),
    ("All Documents", "admin_documents"),
]


def _import_render(module_name: str):
    mod = __import__(f"app.pages.{module_name}", fromlist=["render"])
    return mod.render


def _landing_page(session) -> str:
    if session.is_admin():
        return "admin_dashboard"
    if session.is_patient():
        return "documents"
    return "auth"


def _go(page_key: str) -> None:
    st.session_state["previous_page"] = st.session_state.get("current_page")
    st.session_state["current_page"] = page_key


# ---------------------------------------------------------------------------
# Session
# ---------------------------------------------------------------------------
inject_theme()
session = get_session()

if "current_page" not in st.session_state:
    st.session_state["current_page"] = _landing_page(session)

if session.login_redirect_pending:
    st.session_state["current_page"] = "auth"

if st.session_state["current_page"] == "home":
    st.session_state["current_page"] = _landing_page(session)

if st.session_state["current_page"] == "auth" and session.is_authenticated():
    st.session_state["current_page"] = _landing_page(session)

if st.session_state["current_page"] not in ROUTES:
    logger.warning("Unknown page %r; going to landing page", st.session_state["current_page"])
    st.session_state["current_page"] = _landing_page(session)

# ---------------------------------------------------------------------------
# Sidebar
# ---------------------------------------------------------------------------
st.sidebar.title("🏥 Healthics")
st.sidebar.markdown("Personal medical records, organised.")
st.sidebar.divider()

principal = session.principal
if principal is not None:
    role = "Administrator" if session.is_admin() else "Patient"
    st.sidebar.success(f"**{principal.username}**\n\nRole: **{role}**")
    if st.sidebar.button("↩️ Sign out"):
        session.logout()
        for key in list(st.session_state.keys()):
            if key != "session":
                del st.session_state[key]
        st.session_state["current_page"] = "auth"
        st.rerun()
else:
    st.sidebar.info("Not logged in")

st.sidebar.divider()

if session.is_admin():
    nav_options = ADMIN_NAV
elif session.is_patient():
    nav_options = PATIENT_NAV
else:
    nav_options = [("Sign in", "auth")]

labels = [x[0] for x in nav_options]
keys = [x[1] for x in nav_options]

current = st.session_state["current_page"]
nav_current = PARENT_PAGE.get(current, current)
current_idx = keys.index(nav_current) if nav_current in keys else 0

page_label = st.sidebar.radio("Navigate", options=labels, index=current_idx)
selected = dict(nav_options)[page_label]
if selected != nav_current and nav_current in keys:
    _go(selected)

if session.settings.demo_mode:
    st.sidebar.divider()
    st.sidebar.caption("Demo mode: sample data only. Changes are not saved.")

# ---------------------------------------------------------------------------
# Page routing
# ---------------------------------------------------------------------------
page_key = st.session_state["current_page"]
guard_factory = ROUTES[page_key]

if guard_factory is None or guarded(session, guard_factory()):
    try:
        _import_render(page_key)()
    except AuthError as exc:
        logger.info("Page %s ended by authentication failure: %s", page_key, exc)
        if session.is_authenticated():
            session.invalidate(exc.message or "Your session has expired")
        st.session_state["current_page"] = "auth"
        st.rerun()
