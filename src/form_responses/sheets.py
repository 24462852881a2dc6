from __future__ import annotations

import logging
from typing import Any, List, Sequence

from .export import responses_table
from .models import SubmissionRecord
from .rendering import Formula, guard_text
from .schema import RESPONSES_SHEET

log = logging.getLogger("form_responses.sheets")

DEFAULT_WORKSHEET = RESPONSES_SHEET


def auth_sheets(service_account_json_path: str):
    import gspread
    from google.oauth2.service_account import Credentials

    scopes = ["https://www.googleapis.com/auth/spreadsheets"]
    creds = Credentials.from_service_account_file(service_account_json_path, scopes=scopes)
    return gspread.authorize(creds)


def open_spreadsheet(gc, sheet_id: str):
    return gc.open_by_key(sheet_id)


def get_or_create_worksheet(sh, worksheet_name: str = DEFAULT_WORKSHEET, cols: int = 30):
    import gspread

    try:
        return sh.worksheet(worksheet_name)
    except gspread.WorksheetNotFound:
        return sh.add_worksheet(title=worksheet_name, rows=2000, cols=cols)


def sheet_value(value: Any) -> Any:
    """Cell value for USER_ENTERED input."""
    value = guard_text(value)
    if isinstance(value, Formula):
        return str(value)
    return value


def publish_table(ws, records: Sequence[SubmissionRecord]) -> int:
    """Replace the worksheet contents with the responses table. Returns rows written."""
    rows: List[List[Any]] = [[sheet_value(v) for v in row] for row in responses_table(records)]
    ws.clear()
    ws.update(values=rows, range_name="A1", value_input_option="USER_ENTERED")
    log.info("Published %d responses to worksheet %r", len(rows) - 1, getattr(ws, "title", ""))
    return len(rows) - 1
