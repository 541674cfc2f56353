"""
Integration tests for the admin dashboard resolution.
"""
import pytest

from api.errors import AuthError
from pipelines.dashboard import resolve_dashboard

STATS = {"totalPatients": 2, "totalDocuments": 3, "totalStorageUsed": 2048, "activeUsers": 2}
EXTENDED = {"bannedPatients": 1, "monthlyUploads": {"2024-03": 2}, "documentTypes": {"Imaging": 1}}


def test_both_statistics_loaded(admin_session, backend):
    backend.add("GET", "/admin/statistics", STATS)
    backend.add("GET", "/admin/statistics/extended", EXTENDED)

    view = resolve_dashboard(admin_session)

    assert view.statistics.total_patients == 2
    assert view.extended.monthly_uploads == {"2024-03": 2}
    assert view.statistics_error is None
    assert view.extended_error is None
    assert view.demo is False


def test_failed_extended_statistics_are_marked(admin_session, backend):
    backend.add("GET", "/admin/statistics", STATS)
    backend.add("GET", "/admin/statistics/extended", {"message": "boom"}, status=500)

    view = resolve_dashboard(admin_session)

    assert view.statistics.total_documents == 3
    assert view.extended is None
    assert view.extended_error == "Could not load extended statistics: boom"


def test_failed_basic_statistics_are_not_substituted(admin_session, backend):
    backend.add("GET", "/admin/statistics/extended", EXTENDED)

    view = resolve_dashboard(admin_session)

    assert view.statistics is None
    assert view.statistics_error.startswith("Could not load statistics")
    assert view.extended.banned_patients == 1


def test_401_ends_dashboard(admin_session, backend):
    backend.add("GET", "/admin/statistics", {"message": "Token expired"}, status=401)
    backend.add("GET", "/admin/statistics/extended", EXTENDED)

    with pytest.raises(AuthError):
        resolve_dashboard(admin_session)
    assert not admin_session.is_authenticated()
