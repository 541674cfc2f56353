"""
app/pages/admin_documents.py

Every document in the system: text / category / owner filters,
pagination and a detail panel with download.
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
)
from pipelines.filters import ListState, filter_documents, total_pages
from pipelines.resolution import resolve_admin_document
from pipelines.schemas import ALL, DocumentFilters


def _list_state(page_size: int) -> ListState:
    state = st.session_state.get("admin_documents_list")
    if state is None:
        state = ListState(DocumentFilters(), page_size=page_size)
        st.session_state["admin_documents_list"] = state
    return state


def _options(documents: list[Document]) -> tuple[dict[str, str], dict[str, str]]:
    categories = {ALL: "All categories"}
    owners = {ALL: "All patients"}
    for d in documents:
        if d.category_id is not None:
            categories[str(d.category_id)] = d.category_name or f"Category {d.category_id}"
        if d.owner_user_id is not None:
            owners[str(d.owner_user_id)] = d.owner_username or f"User {d.owner_user_id}"
    return categories, owners


def _select(label: str, options: dict[str, str], current: str, col) -> str:
    keys = list(options)
    index = keys.index(current) if current in keys else 0
    return col.selectbox(label, keys, index=index, format_func=options.get)


def _render_detail(session, document_id: int) -> None:
    if st.button("← Back to all documents"):
        st.session_state.pop("admin_document_id", None)
        st.rerun()

    try:
        document = resolve_admin_document(session, document_id)
    except NotFoundError:
        full_page_error("Document not found.", "admin-document")
        return
    except AuthError:
        raise
    except ApiError as exc:
        full_page_error(f"Failed to load document: {exc.message}", "admin-document")
        return

    card_open(document.title, f"{document.category_name or ''} · owner: {document.owner_username or 'unknown'}")
    st.write(document.description or "No description.")
    c1, c2, c3 = st.columns(3)
    c1.markdown(f"**Doctor**  \n{document.doctor_name or 'N/A'}")
    c2.markdown(f"**Hospital**  \n{document.hospital_name or 'N/A'}")
    c3.markdown(f"**Date**  \n{format_date(document.document_date)}")
    st.caption(
        f"{document.file_type or 'unknown type'} · {format_file_size(document.file_size)} · "
        f"uploaded {format_date(document.upload_date, with_time=True)}"
    )
    card_close()

    if st.button("Prepare download"):
        try:
            st.session_state["admin_document_file"] = admin_api.download_document(session.client, document.id)
        except AuthError:
            raise
        except ApiError as exc:
            st.error(f"Download failed: {exc.message}")
    downloaded = st.session_state.get("admin_document_file")
    if downloaded is not None:
        st.download_button(
            "Download",
            data=downloaded.content,
            file_name=downloaded.filename,
            mime=downloaded.content_type,
        )


def render() -> None:
    inject_theme()
    session = get_session()
    st.title("All Documents")
    demo_banner(session)

    document_id = st.session_state.get("admin_document_id")
    if document_id is not None:
        _render_detail(session, int(document_id))
        return

    try:
        documents = admin_api.list_all_documents(session.client)
    except AuthError:
        raise
    except ApiError as exc:
        full_page_error(f"Failed to load documents: {exc.message}", "admin-documents")
        return

    state = _list_state(session.settings.page_size)
    categories, owners = _options(documents)
    c1, c2, c3 = st.columns([2, 1, 1])
    search = c1.text_input("Search", value=state.filters.search, placeholder="Title, doctor, hospital…")
    category = _select("Category", categories, state.filters.category, c2)
    owner = _select("Patient", owners, state.filters.owner, c3)
    state.update(search=search, category=category, owner=owner)

    matches = filter_documents(documents, state.filters)
    st.caption(f"{len(matches)} of {len(documents)} documents")
    if not matches:
        st.info("No documents match the current filters.")
        return

    for document in state.visible(matches):
        with st.container(border=True):
            c1, c2 = st.columns([4, 1])
            c1.markdown(
                f"**{document.title}**  \n"
                f"{document.owner_username or 'unknown'} · {document.category_name or ''} · "
                f"{format_date(document.document_date)}"
            )
            if c2.button("Open", key=f"admin-open-{document.id}"):
                st.session_state["admin_document_id"] = document.id
                st.session_state.pop("admin_document_file", None)
                st.rerun()

    pages = total_pages(len(matches), state.page_size)
    if pages > 1:
        page = st.number_input("Page", min_value=1, max_value=pages, value=state.page, step=1)
        if page != state.page:
            state.go_to(int(page), len(matches))
            st.rerun()
