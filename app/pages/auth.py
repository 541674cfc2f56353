"""
app/pages/auth.py

Sign-in / registration landing page:
- Left hero panel
- Right: sign-in form and patient registration form
Registration never signs the user in.
"""

from __future__ import annotations

import streamlit as st

from api.errors import ApiError, AuthError, ValidationError
from app.ui import demo_banner, get_session, inject_theme, navigate


def _landing_for(session) -> str:
    return "admin_dashboard" if session.is_admin() else "documents"


def _render_sign_in(session) -> None:
    with st.form("sign-in"):
        username = st.text_input("Username")
        password = st.text_input("Password", type="password")
        submitted = st.form_submit_button("Sign in", type="primary", use_container_width=True)

    if not submitted:
        return
    if not username or not password:
        st.error("Enter your username and password.")
        return
    try:
        session.login(username.strip(), password)
    except AuthError as exc:
        st.error(f"Login failed: {exc.message}")
        return
    navigate(_landing_for(session), previous_page="auth")


def _render_register(session) -> None:
    with st.form("register"):
        username = st.text_input("Username", key="reg-username")
        email = st.text_input("Email", key="reg-email")
        password = st.text_input("Password", type="password", key="reg-password")
        confirm = st.text_input("Confirm password", type="password", key="reg-confirm")
        submitted = st.form_submit_button("Create patient account", use_container_width=True)

    if not submitted:
        return
    if not username or not email or not password:
        st.error("All fields are required.")
        return
    if password != confirm:
        st.error("Passwords do not match.")
        return
    try:
        message = session.register(username.strip(), email.strip(), password)
    except ValidationError as exc:
        st.error(f"Registration failed: {exc.message}")
        return
    except ApiError as exc:
        st.error(f"Registration failed: {exc}")
        return
    st.success(f"{message} You can now sign in.")


def render() -> None:
    inject_theme()
    session = get_session()

    expired = session.pop_login_redirect()
    if expired:
        st.warning(f"{expired}. Please sign in again.")

    colL, colR = st.columns([1.15, 1], gap="large")

    with colL:
        st.markdown(
            """
<div style="
  border-radius: 18px;
  min-height: 420px;
  padding: 26px;
  background: linear-gradient(145deg, hsl(212 72% 18%), hsl(212 72% 12%));
  border: 1px solid rgba(255,255,255,0.10);
  font-family: system-ui, -apple-system, Segoe UI, Roboto, Arial, sans-serif;
">
  <div style="color: rgba(255,255,255,0.95); font-weight:900; font-size:20px; margin-bottom:120px;">Healthics</div>
  <div style="color:white; font-weight:1000; font-size:46px; line-height:1.05; margin-bottom:14px;">
    Your medical<br>documents, in one place.
  </div>
  <div style="color: rgba(255,255,255,0.75); font-size:15px; max-width:520px;">
    Upload, organise and download lab results, prescriptions and imaging.
    Administrators manage patient accounts and review records.
  </div>
</div>
            """,
            unsafe_allow_html=True,
        )

    with colR:
        demo_banner(session)
        tab_in, tab_up = st.tabs(["Sign in", "Register"])
        with tab_in:
            _render_sign_in(session)
        with tab_up:
            _render_register(session)
