"""
pipelines/filters.py

Client-side filtering and pagination for admin list views.

Filters are conjunctive and applied in a fixed order (text, then category,
then owner).  An empty search or an ``"all"`` selection never excludes
anything.  ``ListState`` resets to page 1 whenever a filter value changes,
so the user is never left on a page that no longer exists.
"""

from __future__ import annotations

import math
from typing import Generic, Iterable, Optional, Sequence, TypeVar

from pydantic import BaseModel

from api.models import Document, PatientUser
from pipelines.schemas import ALL, DocumentFilters, PatientFilters

T = TypeVar("T")
F = TypeVar("F", bound=BaseModel)

DOCUMENT_TEXT_FIELDS = ("title", "description", "doctor_name", "hospital_name")


def _active(value: Optional[str]) -> bool:
    return bool(value) and value != ALL


def _needle(text: Optional[str]) -> str:
    return (text or "").strip().lower()


def matches_text(document: Document, text: str, fields: Iterable[str] = DOCUMENT_TEXT_FIELDS) -> bool:
    """Case-insensitive substring match over the given document fields."""
    needle = _needle(text)
    if not needle:
        return True
    return any(needle in (getattr(document, field) or "").lower() for field in fields)


def filter_documents(documents: Sequence[Document], filters: DocumentFilters) -> list[Document]:
    result = list(documents)

    if _needle(filters.search):
        result = [d for d in result if matches_text(d, filters.search)]

    if _active(filters.category):
        result = [d for d in result if str(d.category_id) == filters.category]

    if _active(filters.owner):
        result = [d for d in result if str(d.owner_user_id) == filters.owner]

    return result


def search_patient_documents(documents: Sequence[Document], text: str) -> list[Document]:
    """Per-patient search box: also matches the category name."""
    fields = DOCUMENT_TEXT_FIELDS + ("category_name",)
    return [d for d in documents if matches_text(d, text, fields)]


def filter_patients(patients: Sequence[PatientUser], filters: PatientFilters) -> list[PatientUser]:
    result = list(patients)

    needle = _needle(filters.search)
    if needle:
        result = [
            p for p in result
            if any(needle in (value or "").lower()
                   for value in (p.username, p.email, p.first_name, p.last_name))
        ]

    if filters.status == "active":
        result = [p for p in result if p.active and not p.banned]
    elif filters.status == "inactive":
        result = [p for p in result if not p.active and not p.banned]
    elif filters.status == "banned":
        result = [p for p in result if p.banned]

    if filters.profile == "complete":
        result = [p for p in result if p.has_profile]
    elif filters.profile == "incomplete":
        result = [p for p in result if not p.has_profile]

    return result


# ---------------------------------------------------------------------------
# Pagination
# ---------------------------------------------------------------------------


def total_pages(item_count: int, page_size: int) -> int:
    return max(1, math.ceil(item_count / page_size))


def paginate(items: Sequence[T], page: int, page_size: int) -> list[T]:
    """Return the 1-based *page*; out-of-range pages are clamped."""
    page = min(max(page, 1), total_pages(len(items), page_size))
    start = (page - 1) * page_size
    return list(items[start:start + page_size])


class ListState(Generic[F]):
    """Filter values plus the active page of one list view."""

    def __init__(self, filters: F, page_size: int = 10):
        self.filters = filters
        self.page_size = page_size
        self.page = 1

    def update(self, **changes: object) -> bool:
        """Apply filter changes; returns True (and resets to page 1) if anything changed."""
        updated = self.filters.model_copy(update=changes)
        if updated == self.filters:
            return False
        self.filters = updated
        self.page = 1
        return True

    def go_to(self, page: int, item_count: int) -> int:
        self.page = min(max(page, 1), total_pages(item_count, self.page_size))
        return self.page

    def visible(self, items: Sequence[T]) -> list[T]:
        return paginate(items, self.page, self.page_size)
