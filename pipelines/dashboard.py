"""
pipelines/dashboard.py

Admin dashboard resolution: basic and extended statistics are fetched
concurrently and each failure becomes an error marker on the view.
Nothing is substituted for a failed call.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Optional, TypeVar

from api import admin as admin_api
from api.errors import ApiError, AuthError
from pipelines.schemas import DashboardView
from session.store import SessionStore

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _attempt(label: str, call: Callable[[], T]) -> tuple[Optional[T], Optional[str]]:
    try:
        return call(), None
    except AuthError:
        raise
    except ApiError as exc:
        logger.warning("Dashboard %s unavailable: %s", label, exc)
        return None, f"Could not load {label}: {exc.message}"


def resolve_dashboard(session: SessionStore) -> DashboardView:
    epoch = session.epoch
    client = session.client

    with ThreadPoolExecutor(max_workers=2, thread_name_prefix="dashboard") as pool:
        basic = pool.submit(_attempt, "statistics", lambda: admin_api.get_statistics(client))
        extended = pool.submit(
            _attempt, "extended statistics", lambda: admin_api.get_extended_statistics(client)
        )
        statistics, statistics_error = basic.result()
        extended_stats, extended_error = extended.result()

    if session.epoch != epoch:
        raise AuthError("The session ended while the dashboard was loading")

    return DashboardView(
        statistics=statistics,
        extended=extended_stats,
        statistics_error=statistics_error,
        extended_error=extended_error,
        demo=session.settings.demo_mode,
    )
