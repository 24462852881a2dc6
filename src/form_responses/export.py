from __future__ import annotations

import logging
from dataclasses import dataclass
from io import BytesIO
from typing import Any, Iterable, List, Sequence

from openpyxl import Workbook
from openpyxl.cell.cell import ILLEGAL_CHARACTERS_RE
from openpyxl.styles import Font, PatternFill
from openpyxl.utils import get_column_letter

from .errors import ExportError
from .models import SubmissionRecord
from .projection import project
from .rendering import DEFAULT_OPTIONS, EXPORT, Formula, RenderOptions, render
from .schema import (
    DOCUMENT_COLUMNS,
    DOCUMENTS_FILENAME,
    DOCUMENTS_SHEET,
    NOT_AVAILABLE,
    RESPONSES_FILENAME,
    RESPONSES_SHEET,
    XLSX_CONTENT_TYPE,
)
from .util import format_timestamp

log = logging.getLogger("form_responses.export")

RESPONSES = "responses"
DOCUMENTS = "documents"


@dataclass(frozen=True)
class ExportStyle:
    header_fill: str = "1F4E78"
    header_font_color: str = "FFFFFF"
    column_width: float = 24.0
    freeze_header: bool = True


@dataclass(frozen=True)
class ExportArtifact:
    filename: str
    content_type: str
    content: bytes


def responses_table(
    records: Sequence[SubmissionRecord], options: RenderOptions = DEFAULT_OPTIONS
) -> List[List[Any]]:
    """Header row plus one export-mode row per record."""
    columns = project(records)
    rows: List[List[Any]] = [columns.labels]
    for i, record in enumerate(records):
        rows.append([render(record, c, EXPORT, number=i + 1, options=options) for c in columns])
    return rows


def documents_table(
    records: Sequence[SubmissionRecord], options: RenderOptions = DEFAULT_OPTIONS
) -> List[List[Any]]:
    """One row per uploaded file across all records."""
    rows: List[List[Any]] = [list(DOCUMENT_COLUMNS)]
    n = 0
    for record in records:
        for f in record.uploaded_files:
            n += 1
            rows.append(
                [
                    n,
                    record.id or "",
                    format_timestamp(record.timestamp, options.timestamp_format),
                    record.sector,
                    f.field_name,
                    f.file_name,
                    f.file_url or f.download_url or f.file_path or NOT_AVAILABLE,
                ]
            )
    return rows


def _write_sheet(wb: Workbook, title: str, rows: Iterable[List[Any]], style: ExportStyle) -> None:
    ws = wb.active
    ws.title = title
    for r, values in enumerate(rows, start=1):
        for c, value in enumerate(values, start=1):
            cell = ws.cell(row=r, column=c)
            if isinstance(value, Formula):
                cell.value = ILLEGAL_CHARACTERS_RE.sub("", str(value))
            elif isinstance(value, str):
                cell.value = ILLEGAL_CHARACTERS_RE.sub("", value)
                # Answers are data; a leading "=" must not turn into a formula.
                cell.data_type = "s"
            else:
                cell.value = value

    header_font = Font(bold=True, color=style.header_font_color)
    header_fill = PatternFill(fill_type="solid", start_color=style.header_fill, end_color=style.header_fill)
    for cell in ws[1]:
        cell.font = header_font
        cell.fill = header_fill
    for c in range(1, ws.max_column + 1):
        ws.column_dimensions[get_column_letter(c)].width = style.column_width
    if style.freeze_header:
        ws.freeze_panes = "A2"


def build_workbook_bytes(title: str, rows: Iterable[List[Any]], style: ExportStyle = ExportStyle()) -> bytes:
    wb = Workbook()
    _write_sheet(wb, title, rows, style)
    buf = BytesIO()
    wb.save(buf)
    return buf.getvalue()


def build_workbook(
    records: Sequence[SubmissionRecord],
    variant: str = RESPONSES,
    *,
    style: ExportStyle = ExportStyle(),
    options: RenderOptions = DEFAULT_OPTIONS,
) -> ExportArtifact:
    """Assemble a single-sheet workbook; any failure aborts the whole export."""
    try:
        if variant == RESPONSES:
            rows = responses_table(records, options)
            content = build_workbook_bytes(RESPONSES_SHEET, rows, style)
            filename = RESPONSES_FILENAME
        elif variant == DOCUMENTS:
            rows = documents_table(records, options)
            content = build_workbook_bytes(DOCUMENTS_SHEET, rows, style)
            filename = DOCUMENTS_FILENAME
        else:
            raise ValueError(f"Unknown export variant: {variant}")
    except Exception as e:
        log.error("Error exporting %s workbook: %s", variant, e)
        raise ExportError(f"Error exporting {variant} workbook: {e}") from e

    log.info("Built %s (%d records, %d bytes)", filename, len(records), len(content))
    return ExportArtifact(filename=filename, content_type=XLSX_CONTENT_TYPE, content=content)


def export_store(store, variant: str = RESPONSES, **kwargs) -> ExportArtifact:
    """Snapshot the store at call time and build the workbook."""
    return build_workbook(store.all_records(), variant, **kwargs)
