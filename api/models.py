"""
api/models.py

Pydantic v2 models for the payloads exchanged with the Healthics REST API.

The server speaks camelCase JSON; attributes here are snake_case and the
models accept either spelling on input.  Dump with ``by_alias=True`` to get
the wire form back.
"""

from __future__ import annotations

import logging
from datetime import date, datetime, time
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

logger = logging.getLogger(__name__)


class _WireModel(BaseModel):
    class Config:
        alias_generator = to_camel
        populate_by_name = True


# ---------------------------------------------------------------------------
# Identity
# ---------------------------------------------------------------------------


class RoleTag(str, Enum):
    """The closed set of roles a principal can hold."""
    patient = "ROLE_PATIENT"
    admin = "ROLE_ADMIN"


def parse_roles(raw: Any) -> frozenset[RoleTag]:
    """
    Map server role names onto ``RoleTag``.

    Accepts plain strings (``"ROLE_ADMIN"``) and role objects
    (``{"id": 1, "name": "ROLE_ADMIN"}``).  Unknown names are dropped.
    """
    roles: set[RoleTag] = set()
    for item in raw or []:
        if isinstance(item, RoleTag):
            roles.add(item)
            continue
        name = item.get("name") if isinstance(item, dict) else item
        try:
            roles.add(RoleTag(str(name)))
        except ValueError:
            logger.warning("Ignoring unknown role %r", name)
    return frozenset(roles)


class Principal(_WireModel):
    """The authenticated user held by the session store."""
    id: int
    username: str
    email: str = ""
    roles: frozenset[RoleTag] = frozenset()

    @field_validator("roles", mode="before")
    @classmethod
    def _coerce_roles(cls, value: Any) -> frozenset[RoleTag]:
        return parse_roles(value)

    def has_role(self, role: RoleTag) -> bool:
        return role in self.roles


class LoginResponse(_WireModel):
    token: str
    token_type: str = "Bearer"
    id: int
    username: str
    email: str = ""
    roles: frozenset[RoleTag] = frozenset()

    @field_validator("roles", mode="before")
    @classmethod
    def _coerce_roles(cls, value: Any) -> frozenset[RoleTag]:
        return parse_roles(value)

    def to_principal(self) -> Principal:
        return Principal(id=self.id, username=self.username, email=self.email, roles=self.roles)


# ---------------------------------------------------------------------------
# Patients
# ---------------------------------------------------------------------------


class PatientUser(_WireModel):
    """Directory record for a patient account, with or without a profile."""
    id: int
    username: str
    email: str = ""
    active: bool = True
    banned: bool = False
    has_profile: bool = False
    document_count: int = 0
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    profile_id: Optional[int] = None

    @property
    def display_name(self) -> str:
        if self.has_profile and self.first_name and self.last_name:
            return f"{self.first_name} {self.last_name}"
        return self.username


class ProfileForm(_WireModel):
    """Writable fields of a patient profile."""
    first_name: str = ""
    last_name: str = ""
    date_of_birth: Optional[str] = None
    phone_number: str = ""
    address: str = ""
    medical_history: str = ""
    allergies: str = ""
    medications: str = ""
    emergency_contact: str = ""


class PatientProfile(ProfileForm):
    """
    Full medical profile of a patient.

    Admin listings nest the owning account under ``user``; ``user_id`` is
    lifted from there when the payload does not carry it directly.
    """
    id: Optional[int] = None
    user_id: Optional[int] = None

    @model_validator(mode="before")
    @classmethod
    def _lift_user_id(cls, data: Any) -> Any:
        if isinstance(data, dict) and data.get("userId") is None and data.get("user_id") is None:
            user = data.get("user")
            if isinstance(user, dict) and user.get("id") is not None:
                data = {**data, "userId": user["id"]}
        return data

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


# ---------------------------------------------------------------------------
# Documents
# ---------------------------------------------------------------------------


class DocumentCategory(_WireModel):
    id: int
    name: str
    description: str = ""


def to_wire_datetime(value: Any) -> Any:
    """
    Normalise a document date to ISO local date-time (``2024-03-02T00:00:00``).

    The server parses ``documentDate`` as a local date-time; a bare date
    would be rejected (update) or replaced by the upload time (upload).
    """
    if isinstance(value, datetime):
        return value.replace(tzinfo=None).isoformat(timespec="seconds")
    if isinstance(value, date):
        return datetime.combine(value, time()).isoformat(timespec="seconds")
    if isinstance(value, str):
        text = value.strip()
        try:
            return datetime.combine(date.fromisoformat(text), time()).isoformat(timespec="seconds")
        except ValueError:
            return text
    return value


class DocumentMetadata(_WireModel):
    """Editable metadata sent with an upload or an update."""
    title: str
    description: str = ""
    category_id: int
    doctor_name: str = ""
    hospital_name: str = ""
    document_date: str = Field(description="ISO-8601 local date-time; bare dates get midnight.")

    @field_validator("document_date", mode="before")
    @classmethod
    def _local_datetime(cls, value: Any) -> Any:
        return to_wire_datetime(value)

    def form_fields(self) -> dict[str, str]:
        """Multipart form fields, all as strings."""
        return {key: str(value) for key, value in self.model_dump(by_alias=True).items()}


class Document(_WireModel):
    id: int
    title: str
    description: Optional[str] = ""
    category_id: Optional[int] = None
    category_name: Optional[str] = None
    doctor_name: Optional[str] = None
    hospital_name: Optional[str] = None
    document_date: Optional[str] = None
    file_type: Optional[str] = None
    file_size: int = 0
    upload_date: Optional[str] = None
    last_modified_date: Optional[str] = None
    download_url: Optional[str] = None
    owner_user_id: Optional[int] = Field(default=None, alias="userId")
    owner_username: Optional[str] = Field(default=None, alias="username")

    def metadata(self) -> DocumentMetadata:
        return DocumentMetadata(
            title=self.title,
            description=self.description or "",
            category_id=self.category_id or 0,
            doctor_name=self.doctor_name or "",
            hospital_name=self.hospital_name or "",
            document_date=self.document_date or "",
        )


class DownloadedFile(BaseModel):
    content: bytes
    filename: str
    content_type: Optional[str] = None


# ---------------------------------------------------------------------------
# Statistics
# ---------------------------------------------------------------------------


class SystemStatistics(_WireModel):
    total_patients: int = 0
    total_documents: int = 0
    total_storage_used: int = 0
    active_users: int = 0
    inactive_users: int = 0
    documents_uploaded_today: int = 0
    documents_uploaded_this_month: int = 0


class ExtendedStatistics(_WireModel):
    total_patients: int = 0
    total_documents: int = 0
    active_patients: int = 0
    inactive_patients: int = 0
    banned_patients: int = 0
    patients_without_profiles: int = 0
    total_storage_used: int = 0
    monthly_uploads: dict[str, int] = Field(default_factory=dict)
    document_types: dict[str, int] = Field(default_factory=dict)
    patient_registrations: dict[str, int] = Field(default_factory=dict)
