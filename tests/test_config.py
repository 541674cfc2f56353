"""
Unit tests for environment-driven client settings.
"""
from api.config import DEFAULT_API_URL, ClientSettings


def test_defaults():
    settings = ClientSettings.from_env({})
    assert settings.base_url == DEFAULT_API_URL
    assert settings.timeout is None
    assert settings.demo_mode is False
    assert settings.page_size == 10
    assert settings.patient_documents_fallback is False
    assert settings.session_cache_path is None


def test_values_from_env():
    settings = ClientSettings.from_env({
        "HEALTHICS_API_URL": "https://records.example.org/api/",
        "HEALTHICS_API_TIMEOUT": "12.5",
        "HEALTHICS_DEMO_MODE": "true",
        "HEALTHICS_PAGE_SIZE": "25",
        "HEALTHICS_PATIENT_DOCUMENTS_FALLBACK": "1",
        "HEALTHICS_SESSION_CACHE": "/tmp/healthics.session",
    })
    assert settings.base_url == "https://records.example.org/api"
    assert settings.timeout == 12.5
    assert settings.demo_mode is True
    assert settings.page_size == 25
    assert settings.patient_documents_fallback is True
    assert settings.session_cache_path == "/tmp/healthics.session"


def test_bad_numbers_are_ignored(caplog):
    settings = ClientSettings.from_env({"HEALTHICS_API_TIMEOUT": "soon", "HEALTHICS_PAGE_SIZE": "many"})
    assert settings.timeout is None
    assert settings.page_size == 10
    assert "HEALTHICS_API_TIMEOUT" in caplog.text
