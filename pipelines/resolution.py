"""
pipelines/resolution.py

Resolution/reconciliation of admin views.

A patient's page is assembled from three lookups that fail independently:

1. the patient directory  (primary: no view without it)
2. the full profile       (secondary: many accounts never create one)
3. the document list      (secondary)

Secondary failures are folded into explicit markers on the view
(``profile_missing`` plus ``profile_error``, ``documents_error``).  Only a
failed directory lookup, or a target missing from it, aborts.  ``AuthError``
is never downgraded: a 401 ends the session and the resolution with it.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Optional

from pydantic import BaseModel, Field

from api import admin as admin_api
from api.errors import ApiError, AuthError, NotFoundError
from api.models import Document, PatientProfile, PatientUser
from pipelines.schemas import ReconciledPatientView
from session.store import SessionStore

logger = logging.getLogger(__name__)


class ProfileLookup(BaseModel):
    profile: Optional[PatientProfile] = None
    error: Optional[str] = None

    @property
    def missing(self) -> bool:
        return self.profile is None


class DocumentsLookup(BaseModel):
    documents: list[Document] = Field(default_factory=list)
    error: Optional[str] = None


def _describe(exc: ApiError) -> str:
    return exc.message or exc.__class__.__name__


def _ensure_same_session(session: SessionStore, epoch: int) -> None:
    if session.epoch != epoch:
        raise AuthError("The session ended while the view was loading")


# ---------------------------------------------------------------------------
# Sub-lookups
# ---------------------------------------------------------------------------


def lookup_directory_entry(session: SessionStore, patient_id: int) -> PatientUser:
    """
    Steps 1-2: fetch the directory and locate *patient_id* in it.

    Raises:
        NotFoundError: The directory has no such patient.
        ApiError:      Any failure of the directory call, unrecovered.
    """
    directory = admin_api.list_patient_directory(session.client)
    for entry in directory:
        if entry.id == patient_id:
            return entry
    raise NotFoundError(f"patient {patient_id}", 404)


def lookup_profile(session: SessionStore, patient: PatientUser) -> ProfileLookup:
    """Step 3: the full profile, or a marker explaining its absence."""
    if not patient.has_profile:
        return ProfileLookup()

    try:
        profiles = admin_api.list_patients_with_profiles(session.client)
    except AuthError:
        raise
    except ApiError as exc:
        logger.warning("Profile lookup for patient %d failed: %s", patient.id, exc)
        return ProfileLookup(error=f"Could not load patient profile: {_describe(exc)}")

    profile = next((p for p in profiles if p.user_id == patient.id), None)
    if profile is None:
        logger.warning(
            "Patient %d is flagged hasProfile but no profile was returned; showing it as missing",
            patient.id,
        )
        return ProfileLookup(error="Patient is flagged as having a profile, but none was returned")
    return ProfileLookup(profile=profile)


def _documents_from_full_listing(session: SessionStore, patient_id: int) -> list[Document]:
    logger.warning(
        "Per-patient documents endpoint returned 404 for patient %d; "
        "falling back to filtering the full document listing",
        patient_id,
    )
    return [d for d in admin_api.list_all_documents(session.client) if d.owner_user_id == patient_id]


def lookup_documents(session: SessionStore, patient: PatientUser) -> DocumentsLookup:
    """Step 4: the patient's documents, stamped with their owner."""
    try:
        try:
            documents = admin_api.list_patient_documents(session.client, patient.id)
        except NotFoundError:
            if not session.settings.patient_documents_fallback:
                raise
            documents = _documents_from_full_listing(session, patient.id)
    except AuthError:
        raise
    except ApiError as exc:
        logger.warning("Document lookup for patient %d failed: %s", patient.id, exc)
        return DocumentsLookup(error=f"Could not load patient documents: {_describe(exc)}")

    stamped = [
        d.model_copy(update={"owner_user_id": patient.id, "owner_username": patient.username})
        for d in documents
    ]
    return DocumentsLookup(documents=stamped)


# ---------------------------------------------------------------------------
# Public entry points
# ---------------------------------------------------------------------------


def resolve_patient_view(session: SessionStore, patient_id: int) -> ReconciledPatientView:
    """
    Build the admin view of one patient.

    The directory lookup runs first.  Profile and document lookups then run
    concurrently and both finish before the view is assembled.

    Raises:
        NotFoundError: *patient_id* is not in the directory.
        AuthError:     The session ended (401, logout) before assembly.
        ApiError:      The directory lookup itself failed.
    """
    epoch = session.epoch
    patient = lookup_directory_entry(session, patient_id)

    with ThreadPoolExecutor(max_workers=2, thread_name_prefix="resolve") as pool:
        profile_future = pool.submit(lookup_profile, session, patient)
        documents_future = pool.submit(lookup_documents, session, patient)
        profile_result = profile_future.result()
        documents_result = documents_future.result()

    _ensure_same_session(session, epoch)

    view = ReconciledPatientView(
        patient_user=patient,
        profile=profile_result.profile,
        documents=documents_result.documents,
        profile_missing=profile_result.missing,
        profile_error=profile_result.error,
        documents_error=documents_result.error,
    )
    logger.info(
        "Resolved patient %d: profile=%s documents=%d%s",
        patient_id,
        "missing" if view.profile_missing else "present",
        len(view.documents),
        " (documents unavailable)" if view.documents_error else "",
    )
    return view


def resolve_admin_document(session: SessionStore, document_id: int) -> Document:
    """
    Admin document detail, taken from the admin listing.

    Raises:
        NotFoundError: No document with that id.
    """
    for document in admin_api.list_all_documents(session.client):
        if document.id == document_id:
            return document
    raise NotFoundError(f"document {document_id}", 404)
