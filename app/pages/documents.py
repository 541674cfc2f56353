"""
app/pages/documents.py

Documents visible to the signed-in user:
- list with search
- upload (file + metadata in one request)
- detail: edit metadata, delete, download

Any authenticated user may browse and download.  Upload, edit and delete
are shown to patients only; administrators manage documents from the
admin area.
"""

from __future__ import annotations

from datetime import date

import streamlit as st

from api import documents as documents_api
from api.errors import ApiError, AuthError, NotFoundError
from api.models import Document, DocumentCategory, DocumentMetadata
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
from pipelines.filters import ListState, search_patient_documents, total_pages
from pipelines.schemas import DocumentFilters


def _list_state(page_size: int) -> ListState:
    state = st.session_state.get("documents_list")
    if state is None:
        state = ListState(DocumentFilters(), page_size=page_size)
        st.session_state["documents_list"] = state
    return state


def _category_picker(categories: list[DocumentCategory], key: str, selected: int | None = None) -> int | None:
    if not categories:
        st.warning("No document categories are available.")
        return None
    ids = [c.id for c in categories]
    names = {c.id: c.name for c in categories}
    index = ids.index(selected) if selected in ids else 0
    return st.selectbox("Category", ids, index=index, format_func=lambda i: names[i], key=key)


def can_edit(session) -> bool:
    return session.is_patient() and not session.is_admin()


def _download_button(session, document: Document, key: str) -> None:
    if st.button("Prepare download", key=f"{key}-prep"):
        try:
            st.session_state[f"{key}-file"] = documents_api.download_document(session.client, document.id)
        except AuthError:
            raise
        except ApiError as exc:
            st.error(f"Download failed: {exc.message}")
    downloaded = st.session_state.get(f"{key}-file")
    if downloaded is not None:
        st.download_button(
            "Download",
            data=downloaded.content,
            file_name=downloaded.filename,
            mime=downloaded.content_type,
            key=f"{key}-dl",
        )


# ---------------------------------------------------------------------------
# Upload
# ---------------------------------------------------------------------------


def _render_upload(session, categories: list[DocumentCategory]) -> None:
    with st.expander("Upload a document"):
        with st.form("upload", clear_on_submit=True):
            uploaded = st.file_uploader("File")
            title = st.text_input("Title")
            description = st.text_area("Description")
            category_id = _category_picker(categories, "upload-category")
            c1, c2 = st.columns(2)
            doctor_name = c1.text_input("Doctor")
            hospital_name = c2.text_input("Hospital")
            document_date = st.date_input("Document date", value=date.today())
            submitted = st.form_submit_button("Upload", type="primary")

    if not submitted:
        return
    if uploaded is None or not title or category_id is None:
        st.error("A file, a title and a category are required.")
        return

    metadata = DocumentMetadata(
        title=title,
        description=description,
        category_id=category_id,
        doctor_name=doctor_name,
        hospital_name=hospital_name,
        document_date=document_date,
    )
    try:
        created = documents_api.upload_document(
            session.client, uploaded.getvalue(), uploaded.name, metadata, uploaded.type
        )
    except AuthError:
        raise
    except ApiError as exc:
        st.error(f"Upload failed: {exc.message}")
        return
    st.success(f"Uploaded '{created.title}'.")


# ---------------------------------------------------------------------------
# Detail
# ---------------------------------------------------------------------------


def _render_detail(session, document_id: int, categories: list[DocumentCategory]) -> None:
    if st.button("← Back to documents"):
        st.session_state.pop("document_id", None)
        st.rerun()

    try:
        document = documents_api.get_document(session.client, document_id)
    except NotFoundError:
        full_page_error("Document not found.", "document-detail")
        return
    except AuthError:
        raise
    except ApiError as exc:
        full_page_error(f"Failed to load document: {exc.message}", "document-detail")
        return

    card_open(document.title, document.category_name or "")
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

    _download_button(session, document, f"doc-{document.id}")
    if not can_edit(session):
        return

    with st.expander("Edit details"):
        current = document.metadata()
        with st.form("edit-document"):
            title = st.text_input("Title", value=current.title)
            description = st.text_area("Description", value=current.description)
            category_id = _category_picker(categories, "edit-category", current.category_id)
            doctor_name = st.text_input("Doctor", value=current.doctor_name)
            hospital_name = st.text_input("Hospital", value=current.hospital_name)
            document_date = st.text_input("Document date", value=current.document_date)
            saved = st.form_submit_button("Save")
        if saved:
            try:
                documents_api.update_document(
                    session.client,
                    document.id,
                    DocumentMetadata(
                        title=title,
                        description=description,
                        category_id=category_id or current.category_id,
                        doctor_name=doctor_name,
                        hospital_name=hospital_name,
                        document_date=document_date,
                    ),
                )
            except AuthError:
                raise
            except ApiError as exc:
                st.error(f"Update failed: {exc.message}")
            else:
                st.success("Document updated.")
                st.rerun()

    if st.button("Delete document", type="secondary"):
        try:
            documents_api.delete_document(session.client, document.id)
        except AuthError:
            raise
        except ApiError as exc:
            st.error(f"Delete failed: {exc.message}")
        else:
            st.session_state.pop("document_id", None)
            st.success("Document deleted.")
            st.rerun()


# ---------------------------------------------------------------------------
# List
# ---------------------------------------------------------------------------


def _render_list(session, documents: list[Document]) -> None:
    state = _list_state(session.settings.page_size)

    search = st.text_input("Search documents", value=state.filters.search, placeholder="Title, doctor, hospital…")
    state.update(search=search)

    matches = search_patient_documents(documents, state.filters.search)
    if not matches:
        st.info("No documents found." if documents else "You have not uploaded any documents yet.")
        return

    for document in state.visible(matches):
        with st.container(border=True):
            c1, c2 = st.columns([4, 1])
            c1.markdown(f"**{document.title}**  \n{document.category_name or ''} · {format_date(document.document_date)}")
            if c2.button("Open", key=f"open-{document.id}"):
                st.session_state["document_id"] = document.id
                st.rerun()

    pages = total_pages(len(matches), state.page_size)
    if pages > 1:
        page = st.number_input("Page", min_value=1, max_value=pages, value=state.page, step=1)
        if page != state.page:
            state.go_to(int(page), len(matches))
            st.rerun()


def render() -> None:
    inject_theme()
    session = get_session()
    editable = can_edit(session)
    st.title("My Documents" if editable else "Documents")
    demo_banner(session)

    try:
        categories = documents_api.list_categories(session.client)
    except AuthError:
        raise
    except ApiError as exc:
        st.warning(f"Could not load categories: {exc.message}")
        categories = []

    document_id = st.session_state.get("document_id")
    if document_id is not None:
        _render_detail(session, int(document_id), categories)
        return

    if editable:
        _render_upload(session, categories)

    try:
        documents = documents_api.list_documents(session.client)
    except AuthError:
        raise
    except ApiError as exc:
        full_page_error(f"Failed to load documents: {exc.message}", "documents")
        return
    _render_list(session, documents)
