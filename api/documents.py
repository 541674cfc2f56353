"""
api/documents.py

Document endpoints for the authenticated patient.  The server scopes every
call to documents owned by the caller.
"""

from __future__ import annotations

import logging
from typing import Optional

from api.client import ApiClient, parse_model, parse_models
from api.models import Document, DocumentCategory, DocumentMetadata, DownloadedFile

logger = logging.getLogger(__name__)


def default_filename(document_id: int) -> str:
    return f"document-{document_id}"


def list_documents(client: ApiClient) -> list[Document]:
    return parse_models(Document, client.get_json("/documents"), "/documents")


def get_document(client: ApiClient, document_id: int) -> Document:
    path = f"/documents/{document_id}"
    return parse_model(Document, client.get_json(path), path)


def upload_document(
    client: ApiClient,
    content: bytes,
    filename: str,
    metadata: DocumentMetadata,
    content_type: Optional[str] = None,
) -> Document:
    """
    Upload a file with its metadata as one multipart request.

    Returns:
        The created ``Document`` as echoed by the server, including its id.
    """
    file_part = (filename, content, content_type or "application/octet-stream")
    response = client.request(
        "POST",
        "/documents",
        data=metadata.form_fields(),
        files={"file": file_part},
    )
    document = parse_model(Document, client.read_json(response, "/documents"), "/documents")
    logger.info("Uploaded document id=%d (%d bytes)", document.id, len(content))
    return document


def update_document(client: ApiClient, document_id: int, metadata: DocumentMetadata) -> Document:
    path = f"/documents/{document_id}"
    payload = client.put_json(path, metadata.model_dump(by_alias=True))
    return parse_model(Document, payload, path)


def delete_document(client: ApiClient, document_id: int) -> None:
    client.delete(f"/documents/{document_id}")
    logger.info("Deleted document id=%d", document_id)


def download_document(client: ApiClient, document_id: int) -> DownloadedFile:
    return client.download(f"/documents/{document_id}/download", default_filename(document_id))


def list_categories(client: ApiClient) -> list[DocumentCategory]:
    path = "/documents/categories"
    return parse_models(DocumentCategory, client.get_json(path), path)
