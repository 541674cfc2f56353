"""
api/config.py

Client settings loaded from environment variables.

HEALTHICS_API_URL                     base URL of the REST API
HEALTHICS_API_TIMEOUT                 request timeout in seconds (unset = none)
HEALTHICS_DEMO_MODE                   serve the labelled sample dataset
HEALTHICS_PAGE_SIZE                   rows per page in list views
HEALTHICS_PATIENT_DOCUMENTS_FALLBACK  opt-in fallback for per-patient documents
HEALTHICS_SESSION_CACHE               path of the encrypted session cache
"""

from __future__ import annotations

import logging
import os
from typing import Mapping, Optional

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "http://localhost:8080/api"

_TRUTHY = {"1", "true", "yes", "on"}


def _flag(env: Mapping[str, str], name: str) -> bool:
    return env.get(name, "").strip().lower() in _TRUTHY


class ClientSettings(BaseModel):
    base_url: str = DEFAULT_API_URL
    timeout: Optional[float] = Field(
        default=None, description="Seconds; None keeps the transport default."
    )
    demo_mode: bool = False
    page_size: int = Field(default=10, ge=1)
    patient_documents_fallback: bool = Field(
        default=False,
        description="On 404 from the per-patient documents endpoint, filter the full listing.",
    )
    session_cache_path: Optional[str] = None

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None) -> "ClientSettings":
        env = os.environ if env is None else env

        values: dict = {
            "base_url": env.get("HEALTHICS_API_URL", DEFAULT_API_URL).rstrip("/"),
            "demo_mode": _flag(env, "HEALTHICS_DEMO_MODE"),
            "patient_documents_fallback": _flag(env, "HEALTHICS_PATIENT_DOCUMENTS_FALLBACK"),
            "session_cache_path": env.get("HEALTHICS_SESSION_CACHE") or None,
        }

        raw_timeout = env.get("HEALTHICS_API_TIMEOUT")
        if raw_timeout:
            try:
                values["timeout"] = float(raw_timeout)
            except ValueError:
                logger.warning("Ignoring non-numeric HEALTHICS_API_TIMEOUT=%r", raw_timeout)

        raw_page_size = env.get("HEALTHICS_PAGE_SIZE")
        if raw_page_size:
            try:
                values["page_size"] = int(raw_page_size)
            except ValueError:
                logger.warning("Ignoring non-numeric HEALTHICS_PAGE_SIZE=%r", raw_page_size)

        settings = cls(**values)
        if settings.demo_mode:
            logger.warning("Demo mode enabled: responses come from the built-in sample dataset.")
        return settings
