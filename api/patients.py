"""
api/patients.py

Patient-facing profile endpoints.  The profile always belongs to the
authenticated principal; there is no patient id in these paths.
"""

from __future__ import annotations

import logging

from api.client import ApiClient, parse_model
from api.errors import NotFoundError
from api.models import PatientProfile, ProfileForm

logger = logging.getLogger(__name__)

_PROFILE_PATH = "/patients/profile"


def get_profile(client: ApiClient) -> PatientProfile:
    """Raises ``NotFoundError`` when the patient has not created a profile yet."""
    return parse_model(PatientProfile, client.get_json(_PROFILE_PATH), _PROFILE_PATH)


def load_profile(client: ApiClient) -> PatientProfile | None:
    """Like :func:`get_profile`, but a missing profile is ``None``."""
    try:
        return get_profile(client)
    except NotFoundError:
        logger.info("No profile yet for the current patient")
        return None


def create_profile(client: ApiClient, form: ProfileForm) -> PatientProfile:
    payload = client.post_json(_PROFILE_PATH, form.model_dump(by_alias=True))
    return parse_model(PatientProfile, payload, _PROFILE_PATH)


def update_profile(client: ApiClient, form: ProfileForm) -> PatientProfile:
    payload = client.put_json(_PROFILE_PATH, form.model_dump(by_alias=True))
    return parse_model(PatientProfile, payload, _PROFILE_PATH)
