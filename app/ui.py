# =========================
# app/ui.py
# =========================
from __future__ import annotations

import html
import math
from datetime import datetime
from typing import Optional

import streamlit as st

from api.config import ClientSettings
from session.guards import GuardState, LoginRequired, RouteGuard
from session.store import SessionStore


def inject_theme() -> None:
    st.markdown(
        """
<style>
/* ============================================================
   Healthics theme
   - Dark navy sidebar
   - Light canvas + white cards
   - Teal accent
   - Status pills (active / inactive / banned)
   ============================================================ */

/* Hide Streamlit built-in multipage nav (we route ourselves) */
[data-testid="stSidebarNav"] { display: none !important; }

:root{
  --primary-2: 212 72% 16%;
  --accent: 177 60% 38%;
  --sidebar-text: 210 40% 92%;

  --canvas: #F6F8FB;
  --card: #FFFFFF;
  --border: rgba(15,23,42,0.10);
  --muted: rgba(15,23,42,0.55);
  --text: rgba(15,23,42,0.92);

  --ok: 142 70% 33%;
  --ok-bg: 142 70% 95%;
  --warn: 38 92% 45%;
  --warn-bg: 38 92% 95%;
  --bad: 0 72% 45%;
  --bad-bg: 0 72% 95%;
}

.stApp { background: var(--canvas); }

div.block-container {
  padding-top: 2.2rem;
  padding-bottom: 2.2rem;
}

section[data-testid="stSidebar"]{
  background: hsl(var(--primary-2)) !important;
  border-right: 1px solid rgba(255,255,255,0.07);
}
section[data-testid="stSidebar"] *{
  color: hsl(var(--sidebar-text)) !important;
}
section[data-testid="stSidebar"] .stRadio div[role="radiogroup"] > label{
  background: rgba(255,255,255,0.03);
  border: 1px solid rgba(255,255,255,0.08);
  border-radius: 14px;
  padding: 10px 12px;
  margin-bottom: 8px;
}

.stButton>button{ border-radius: 12px; }
.stButton>button[kind="primary"]{
  background: hsl(var(--accent)) !important;
  border: 1px solid hsl(var(--accent)) !important;
  color: white !important;
}

/* Cards */
.mc-card{
  background: var(--card);
  border: 1px solid var(--border);
  border-radius: 16px;
  padding: 16px 16px;
  margin-bottom: 12px;
}
.mc-title{ font-weight: 800; font-size: 16px; margin-bottom: 2px; color: var(--text); }
.mc-sub{ color: var(--muted); font-size: 13px; }
.mc-metric-label{ color: var(--muted); font-size: 13px; margin-bottom: 6px; }
.mc-metric-value{ font-size: 30px; font-weight: 900; color: var(--text); line-height: 1.0; }
.mc-metric-foot{ margin-top: 6px; color: var(--muted); font-size: 12px; }

/* Pills */
.status-badge{
  display:inline-block;
  padding: 4px 10px;
  border-radius: 999px;
  font-size: 12px;
  font-weight: 800;
}
.status-ok{ background: hsl(var(--ok-bg)); color: hsl(var(--ok)); }
.status-warn{ background: hsl(var(--warn-bg)); color: hsl(var(--warn)); }
.status-bad{ background: hsl(var(--bad-bg)); color: hsl(var(--bad)); }
</style>
        """,
        unsafe_allow_html=True,
    )


def _esc(x: object) -> str:
    """Escape any user/API-provided strings before injecting into HTML."""
    return html.escape(str(x or ""), quote=True)


def card_open(title: str, subtitle: str = "") -> None:
    sub = f'<div class="mc-sub">{_esc(subtitle)}</div>' if subtitle else ""
    st.markdown(
        f'<div class="mc-card"><div class="mc-title">{_esc(title)}</div>{sub}',
        unsafe_allow_html=True,
    )


def card_close() -> None:
    st.markdown("</div>", unsafe_allow_html=True)


def status_badge(active: bool, banned: bool = False) -> str:
    if banned:
        cls, txt = "status-bad", "Banned"
    elif active:
        cls, txt = "status-ok", "Active"
    else:
        cls, txt = "status-warn", "Inactive"
    return f'<span class="status-badge {cls}">{txt}</span>'


def metric_card(label: str, value: str, foot: str | None = None) -> None:
    """Plain-text metric tile (escaped)."""
    foot_html = f'<div class="mc-metric-foot">{_esc(foot)}</div>' if foot else ""
    st.markdown(
        f"""
<div class="mc-card">
  <div class="mc-metric-label">{_esc(label)}</div>
  <div class="mc-metric-value">{_esc(value)}</div>
  {foot_html}
</div>
        """,
        unsafe_allow_html=True,
    )


# ---------------------------------------------------------------------------
# Formatting
# ---------------------------------------------------------------------------

_SIZE_UNITS = ("Bytes", "KB", "MB", "GB")


def format_file_size(size: int) -> str:
    if size <= 0:
        return "0 Bytes"
    i = min(int(math.floor(math.log(size, 1024))), len(_SIZE_UNITS) - 1)
    return f"{round(size / 1024 ** i, 2):g} {_SIZE_UNITS[i]}"


def format_date(value: Optional[str], with_time: bool = False) -> str:
    if not value:
        return "N/A"
    try:
        dt = datetime.fromisoformat(value)
    except ValueError:
        return value
    return dt.strftime("%d %b %Y · %H:%M" if with_time else "%d %b %Y")


# ---------------------------------------------------------------------------
# Session + navigation
# ---------------------------------------------------------------------------


def get_session() -> SessionStore:
    """The app-root session store for this browser session."""
    session = st.session_state.get("session")
    if session is None:
        session = SessionStore(ClientSettings.from_env())
        session.restore()
        st.session_state["session"] = session
    return session


def navigate(page_key: str, **state: object) -> None:
    for key, value in state.items():
        st.session_state[key] = value
    st.session_state["current_page"] = page_key
    st.rerun()


def demo_banner(session: SessionStore) -> None:
    if session.settings.demo_mode:
        st.info("Demo mode: all data shown is built-in sample data, not a live server.")


def guarded(session: SessionStore, guard: RouteGuard) -> bool:
    """
    Resolve *guard* for the current page.

    Returns True when the page may render.  Denied shows the message and a
    "Go back" button; a missing principal sends the user to sign in.
    """
    try:
        state = guard.resolve(session)
    except LoginRequired:
        navigate("auth")
        return False

    if state is GuardState.loading:
        st.info("Loading session…")
        return False

    if state is GuardState.denied:
        st.error(f"**Access Denied**\n\n{guard.denied_message}")
        if st.button("Go Back"):
            navigate(st.session_state.get("previous_page") or "home")
        return False

    return True


def full_page_error(message: str, retry_key: str) -> None:
    """Primary lookup failed: no partial view, only retry or go back."""
    st.error(message)
    col_retry, col_back = st.columns(2)
    if col_retry.button("Retry", key=f"{retry_key}-retry"):
        st.rerun()
    if col_back.button("Go Back", key=f"{retry_key}-back"):
        navigate(st.session_state.get("previous_page") or "home")
