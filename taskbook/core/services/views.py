"""Read-model operations: paginated, sorted, filtered task listings."""

from __future__ import annotations

import logging
import math
from typing import Optional, Union

from taskbook.core.errors import ValidationError
from taskbook.database.sqlite import SqliteDB
from taskbook.models import TaskPage

logger = logging.getLogger(__name__)

# Wire and Python spellings of every sortable field, mapped to store columns.
SORT_FIELDS: dict[str, str] = {
    "title": "title",
    "description": "description",
    "status": "status",
    "dueDate": "due_date",
    "due_date": "due_date",
    "createdAt": "created_at",
    "created_at": "created_at",
    "updatedAt": "updated_at",
    "updated_at": "updated_at",
    "deletedAt": "deleted_at",
    "deleted_at": "deleted_at",
}

SORT_ORDERS = ("asc", "desc")


def resolve_sort(sort_by: str, sort_order: str) -> tuple[str, bool]:
    """Map (sortBy, sortOrder) to (column, descending).

    Raises:
        ValidationError: For a field outside the allow-list or a bad order.
    """
    column = SORT_FIELDS.get(sort_by)
    if column is None:
        allowed = ", ".join(k for k in SORT_FIELDS if "_" not in k)
        raise ValidationError(f"Cannot sort by {sort_by!r}; expected one of: {allowed}")
    order = (sort_order or "").strip().lower()
    if order not in SORT_ORDERS:
        raise ValidationError(f"sortOrder must be 'asc' or 'desc', got {sort_order!r}")
    return column, order == "desc"


def parse_deleted_flag(raw: Union[str, bool, None]) -> bool:
    """Only the literal string "true" (or True) selects the deleted view."""
    if isinstance(raw, bool):
        return raw
    return raw == "true"


class ViewService:
    """Builds page descriptors over a user's live or soft-deleted tasks."""

    def __init__(self, db: SqliteDB, default_limit: int = 10, max_limit: int = 100) -> None:
        self._db = db
        self._default_limit = default_limit
        self._max_limit = max_limit

    def list_tasks(
        self,
        owner_id: str,
        page: int = 1,
        limit: Optional[int] = None,
        deleted: bool = False,
        sort_by: str = "createdAt",
        sort_order: str = "desc",
    ) -> TaskPage:
        """Return one page of tasks plus totals for the same filter.

        A page past the end yields an empty task list with the real totals.
        """
        if limit is None:
            limit = self._default_limit
        if page < 1:
            raise ValidationError(f"page must be >= 1, got {page}")
        if limit < 1:
            raise ValidationError(f"limit must be >= 1, got {limit}")
        if limit > self._max_limit:
            raise ValidationError(f"limit must be <= {self._max_limit}, got {limit}")
        column, descending = resolve_sort(sort_by, sort_order)

        total = self._db.count_tasks(owner_id, deleted=deleted)
        offset = (page - 1) * limit
        # Past the last page: no query, so huge offsets never reach SQLite.
        if offset >= total:
            tasks = []
        else:
            tasks = self._db.list_tasks(
                owner_id,
                deleted=deleted,
                sort_column=column,
                descending=descending,
                limit=limit,
                offset=offset,
            )
        logger.debug(
            "Listed %d/%d %s tasks for %s (page=%d limit=%d sort=%s %s)",
            len(tasks),
            total,
            "deleted" if deleted else "live",
            owner_id,
            page,
            limit,
            column,
            "desc" if descending else "asc",
        )
        return TaskPage(
            tasks=tasks,
            total_tasks=total,
            total_pages=math.ceil(total / limit),
            page=page,
            limit=limit,
        )
