from __future__ import annotations

from typing import List, Tuple

# Leading columns of every tabular view and export, in order.
SEQUENCE_COLUMN = "S.No"
TIMESTAMP_COLUMN = "Timestamp"
SECTOR_COLUMN = "Sector"
FIXED_COLUMNS: List[str] = [SEQUENCE_COLUMN, TIMESTAMP_COLUMN, SECTOR_COLUMN]

DEFAULT_SECTOR = "Other"
UNKNOWN_SECTOR = "Unknown"
NOT_AVAILABLE = "N/A"
VIEW_FILE_LABEL = "View File"

# A question whose title contains one of these (case-folded) classifies the sector.
SECTOR_FIELD_KEYWORDS: Tuple[str, ...] = ("industry segment", "sector", "vertical")

# Google Forms item type for file-upload questions.
FILE_UPLOAD_ITEM_TYPE = "FILE_UPLOAD"

PITCH_DECK_KEYWORDS: Tuple[str, ...] = ("pitch", "deck")
CIN_DOCUMENT_KEYWORDS: Tuple[str, ...] = ("cin", "document")
TOP_SECTORS_LIMIT = 10

DISPLAY_TRUNCATE_AT = 50
# Longest string literal a spreadsheet formula accepts.
FORMULA_TEXT_LIMIT = 255
DEFAULT_PAGE_LIMIT = 50
TIMESTAMP_FORMAT = "%m/%d/%Y, %I:%M:%S %p"

XLSX_CONTENT_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
RESPONSES_SHEET = "Form Responses"
RESPONSES_FILENAME = "form-responses.xlsx"
DOCUMENTS_SHEET = "Uploaded Documents"
DOCUMENTS_FILENAME = "uploaded-documents.xlsx"

DOCUMENT_COLUMNS: List[str] = [
    "S.No",
    "Response ID",
    "Timestamp",
    "Sector",
    "Field Name",
    "File Name",
    "File URL/Path",
]


def file_column_label(index: int, field_name: str) -> str:
    return f"File {index + 1} ({field_name})"

