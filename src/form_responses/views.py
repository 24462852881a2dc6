from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Dict, List

from .errors import ValidationError
from .models import SubmissionRecord
from .projection import ColumnSet, project
from .rendering import DEFAULT_OPTIONS, DISPLAY, DisplayCell, RenderOptions, render, row_number
from .schema import DEFAULT_PAGE_LIMIT
from .store import RecordStore


@dataclass(frozen=True)
class Page:
    records: List[SubmissionRecord]
    current_page: int
    total_pages: int
    total_responses: int
    limit: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "records": [r.to_dict() for r in self.records],
            "currentPage": self.current_page,
            "totalPages": self.total_pages,
            "totalResponses": self.total_responses,
            "limit": self.limit,
        }


@dataclass(frozen=True)
class Table:
    columns: ColumnSet
    rows: List[List[DisplayCell]]

    @property
    def header(self) -> List[str]:
        return self.columns.labels


def _as_int(name: str, value: Any) -> int:
    if isinstance(value, bool):
        raise ValidationError(f"'{name}' must be an integer.")
    try:
        return int(value)
    except (TypeError, ValueError) as e:
        raise ValidationError(f"'{name}' must be an integer.") from e


def paginate(store: RecordStore, page: Any = 1, limit: Any = DEFAULT_PAGE_LIMIT) -> Page:
    page = _as_int("page", page)
    limit = _as_int("limit", limit)
    if page < 1:
        raise ValidationError("'page' must be >= 1.")
    if limit < 1:
        raise ValidationError("'limit' must be > 0.")

    total = store.count()
    records = store.fetch(offset=(page - 1) * limit, limit=limit)
    return Page(
        records=records,
        current_page=page,
        total_pages=math.ceil(total / limit),
        total_responses=total,
        limit=limit,
    )


def build_table(page: Page, options: RenderOptions = DEFAULT_OPTIONS) -> Table:
    columns = project(page.records)
    rows = []
    for i, record in enumerate(page.records):
        n = row_number(page.current_page, page.limit, i)
        rows.append([render(record, c, DISPLAY, number=n, options=options) for c in columns])
    return Table(columns=columns, rows=rows)


def get_record(store: RecordStore, record_id: str) -> SubmissionRecord:
    if not record_id:
        raise ValidationError("A response id is required.")
    return store.get(record_id)
