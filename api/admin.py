"""
api/admin.py

Administrator endpoints: patient directory, account status, cross-patient
document access and system statistics.  Role enforcement is server-side.
"""

from __future__ import annotations

import logging

from api.client import ApiClient, parse_model, parse_models
from api.documents import default_filename
from api.models import (
    Document,
    DownloadedFile,
    ExtendedStatistics,
    PatientProfile,
    PatientUser,
    SystemStatistics,
)

logger = logging.getLogger(__name__)


def _bool_param(value: bool) -> str:
    return "true" if value else "false"


# -------------------------
# Patients
# -------------------------
def list_patient_profiles(client: ApiClient) -> list[PatientProfile]:
    """Patients that completed a profile (``GET /admin/patients``)."""
    path = "/admin/patients"
    return parse_models(PatientProfile, client.get_json(path), path)


def list_patient_directory(client: ApiClient) -> list[PatientUser]:
    """Every patient account, profile or not (``GET /admin/patients/all``)."""
    path = "/admin/patients/all"
    return parse_models(PatientUser, client.get_json(path), path)


def list_patients_with_profiles(client: ApiClient) -> list[PatientProfile]:
    """Full profiles keyed back to their account via ``user_id``."""
    path = "/admin/patients/with-profiles"
    return parse_models(PatientProfile, client.get_json(path), path)


def set_patient_active(client: ApiClient, user_id: int, active: bool) -> None:
    client.request(
        "PUT", f"/admin/patients/{user_id}/status", params={"active": _bool_param(active)}
    )
    logger.info("Patient %d active=%s", user_id, active)


def set_patient_banned(client: ApiClient, user_id: int, banned: bool) -> None:
    client.request(
        "PUT", f"/admin/patients/{user_id}/ban", params={"banned": _bool_param(banned)}
    )
    logger.info("Patient %d banned=%s", user_id, banned)


# -------------------------
# Documents
# -------------------------
def list_all_documents(client: ApiClient) -> list[Document]:
    path = "/admin/documents"
    return parse_models(Document, client.get_json(path), path)


def list_patient_documents(client: ApiClient, user_id: int) -> list[Document]:
    path = f"/admin/patients/{user_id}/documents"
    return parse_models(Document, client.get_json(path), path)


def download_document(client: ApiClient, document_id: int) -> DownloadedFile:
    return client.download(
        f"/admin/documents/{document_id}/download", default_filename(document_id)
    )


# -------------------------
# Statistics
# -------------------------
def get_statistics(client: ApiClient) -> SystemStatistics:
    path = "/admin/statistics"
    return parse_model(SystemStatistics, client.get_json(path), path)


def get_extended_statistics(client: ApiClient) -> ExtendedStatistics:
    path = "/admin/statistics/extended"
    return parse_model(ExtendedStatistics, client.get_json(path), path)
