from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional, Union

from .models import FileRef, SubmissionRecord
from .projection import FIELD, FILE, SECTOR, SEQUENCE, TIMESTAMP, Column
from .schema import (
    DISPLAY_TRUNCATE_AT,
    FORMULA_TEXT_LIMIT,
    NOT_AVAILABLE,
    TIMESTAMP_FORMAT,
    VIEW_FILE_LABEL,
)
from .util import format_timestamp

DISPLAY = "display"
EXPORT = "export"


class Formula(str):
    """A spreadsheet formula; serializers write it as a formula, not as text."""


@dataclass(frozen=True)
class DisplayCell:
    text: str
    title: str
    href: Optional[str] = None


@dataclass(frozen=True)
class RenderOptions:
    truncate_at: int = DISPLAY_TRUNCATE_AT
    timestamp_format: str = TIMESTAMP_FORMAT


DEFAULT_OPTIONS = RenderOptions()

Cell = Union[DisplayCell, Formula, str, int]

FORMULA_PREFIXES = ("=", "+", "-", "@", "'")


def row_number(page: int, limit: int, local_index: int) -> int:
    return (page - 1) * limit + local_index + 1


def escape_formula_text(text: str) -> str:
    return text.replace('"', '""')


def hyperlink_formula(link: str, label: str) -> Formula:
    label = label[:FORMULA_TEXT_LIMIT]
    return Formula(f'=HYPERLINK("{escape_formula_text(link)}","{escape_formula_text(label)}")')


def guard_text(value: Any) -> Any:
    """Quote text a spreadsheet would read as a formula. Formulas and numbers pass."""
    if isinstance(value, Formula) or not isinstance(value, str):
        return value
    if value.startswith(FORMULA_PREFIXES):
        return "'" + value
    return value


def truncate(text: str, limit: int) -> str:
    if len(text) > limit:
        return text[:limit] + "..."
    return text


def answer_to_text(value: Any) -> str:
    """Flatten an answer to cell text; empty answers read as N/A."""
    if value is None:
        return NOT_AVAILABLE
    if isinstance(value, (list, tuple)):
        parts = ["" if v is None else str(v) for v in value]
        text = ", ".join(p for p in parts if p)
    else:
        text = str(value)
    return text if text else NOT_AVAILABLE


def _file_at(record: SubmissionRecord, index: Optional[int]) -> Optional[FileRef]:
    if index is None or index < 0:
        return None
    files = record.uploaded_files or []
    return files[index] if index < len(files) else None


def _display(text: str, options: RenderOptions) -> DisplayCell:
    return DisplayCell(text=truncate(text, options.truncate_at), title=text)


def render_file(file: Optional[FileRef], mode: str) -> Cell:
    if file is None:
        return _plain(NOT_AVAILABLE, mode)
    link = file.link
    if not link:
        return _plain(file.file_name or NOT_AVAILABLE, mode)
    label = file.file_name or VIEW_FILE_LABEL
    if mode == EXPORT:
        if len(link) > FORMULA_TEXT_LIMIT:
            return link
        return hyperlink_formula(link, label)
    return DisplayCell(text=label, title=file.file_name or "Open file", href=link)


def _plain(text: str, mode: str) -> Cell:
    if mode == EXPORT:
        return text
    return DisplayCell(text=text, title=text)


def render(
    record: SubmissionRecord,
    column: Column,
    mode: str = DISPLAY,
    *,
    number: Optional[int] = None,
    options: RenderOptions = DEFAULT_OPTIONS,
) -> Cell:
    """Render one cell of ``record`` under ``column``.

    Absent or malformed data renders as N/A; this never raises for missing fields
    or file slots. ``number`` is the 1-based row number for the sequence column.
    """
    if mode not in (DISPLAY, EXPORT):
        raise ValueError(f"Unknown render mode: {mode}")

    if column.kind == SEQUENCE:
        if mode == EXPORT:
            return number if number is not None else NOT_AVAILABLE
        text = str(number) if number is not None else NOT_AVAILABLE
        return DisplayCell(text=text, title=text)

    if column.kind == TIMESTAMP:
        text = format_timestamp(record.timestamp, options.timestamp_format) or NOT_AVAILABLE
        return _plain(text, mode)

    if column.kind == SECTOR:
        return _plain(record.sector or NOT_AVAILABLE, mode)

    if column.kind == FILE:
        return render_file(_file_at(record, column.file_index), mode)

    if column.kind == FIELD:
        text = answer_to_text((record.fields or {}).get(column.label))
        if mode == EXPORT:
            return text
        return _display(text, options)

    return _plain(NOT_AVAILABLE, mode)
