"""
pipelines/schemas.py

View models produced by the resolution layer and consumed by the pages.

- ReconciledPatientView: one patient's account, profile and documents
- DashboardView: system statistics for the admin dashboard
- DocumentFilters / PatientFilters: list filter values

Views are built fresh per request and never cached.
"""

from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, Field, model_validator

from api.models import Document, ExtendedStatistics, PatientProfile, PatientUser, SystemStatistics

ALL = "all"


class ReconciledPatientView(BaseModel):
    patient_user: PatientUser
    profile: Optional[PatientProfile] = None
    documents: list[Document] = Field(default_factory=list)
    profile_missing: bool = True
    profile_error: Optional[str] = None
    documents_error: Optional[str] = None

    @model_validator(mode="after")
    def _consistent(self) -> "ReconciledPatientView":
        if (self.profile is not None) == self.profile_missing:
            raise ValueError("profile_missing must be True exactly when profile is absent")
        if self.profile_error is not None:
            if not self.profile_error.strip():
                raise ValueError("profile_error must be a non-empty message when set")
            if self.profile is not None:
                raise ValueError("profile_error is only set when the profile is absent")
        if self.documents_error is not None and not self.documents_error.strip():
            raise ValueError("documents_error must be a non-empty message when set")
        return self

    @property
    def display_name(self) -> str:
        if self.profile is not None and self.profile.full_name:
            return self.profile.full_name
        return self.patient_user.display_name


class DashboardView(BaseModel):
    statistics: Optional[SystemStatistics] = None
    extended: Optional[ExtendedStatistics] = None
    statistics_error: Optional[str] = None
    extended_error: Optional[str] = None
    demo: bool = False


class DocumentFilters(BaseModel):
    search: str = ""
    category: str = ALL   # category id as string, or "all"
    owner: str = ALL      # owner user id as string, or "all"


PatientStatus = Literal["all", "active", "inactive", "banned"]
ProfileState = Literal["all", "complete", "incomplete"]


class PatientFilters(BaseModel):
    search: str = ""
    status: PatientStatus = "all"
    profile: ProfileState = "all"
