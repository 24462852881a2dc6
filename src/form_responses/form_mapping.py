from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence

from .drive import DriveFile, file_ref_from_drive, unresolved_file_ref
from .models import Answer, FileRef, SubmissionRecord
from .schema import DEFAULT_SECTOR, FILE_UPLOAD_ITEM_TYPE, SECTOR_FIELD_KEYWORDS
from .util import utc_now

log = logging.getLogger("form_responses.form_mapping")

# Takes a source file id, returns its metadata or raises.
FileResolver = Callable[[str], DriveFile]


@dataclass(frozen=True)
class FormItem:
    """One answered question as the form source reports it."""

    question: str
    item_type: str
    answer: Any


def is_sector_question(question: str, keywords: Sequence[str] = SECTOR_FIELD_KEYWORDS) -> bool:
    q = question.casefold()
    return any(k.casefold() in q for k in keywords)


def answer_text(answer: Any) -> str:
    if answer is None:
        return ""
    if isinstance(answer, (list, tuple)):
        return ", ".join(str(a) for a in answer if a not in (None, ""))
    return str(answer).strip()


def derive_sector(
    fields: Dict[str, Any],
    keywords: Sequence[str] = SECTOR_FIELD_KEYWORDS,
    default: str = DEFAULT_SECTOR,
) -> str:
    """Last matching question with a non-empty answer wins."""
    sector = default
    for question, answer in fields.items():
        if is_sector_question(question, keywords):
            text = answer_text(answer)
            if text:
                sector = text
    return sector


def _file_ids(answer: Any) -> List[str]:
    if answer is None:
        return []
    if isinstance(answer, (list, tuple)):
        return [str(a) for a in answer if a not in (None, "")]
    return [str(answer)] if str(answer) else []


def resolve_file(question: str, file_id: str, resolver: Optional[FileResolver]) -> FileRef:
    if resolver is None:
        return unresolved_file_ref(question, file_id)
    try:
        meta = resolver(file_id)
    except Exception as e:
        log.warning("Could not access file id=%s for question %r: %s", file_id, question, e)
        return unresolved_file_ref(question, file_id, error=f"Could not access file: {e}")
    log.info("File processed: %s", meta.name)
    return file_ref_from_drive(question, meta)


def normalize_items(
    items: Iterable[FormItem],
    *,
    timestamp: Optional[datetime] = None,
    resolver: Optional[FileResolver] = None,
    keywords: Sequence[str] = SECTOR_FIELD_KEYWORDS,
) -> SubmissionRecord:
    """Turn the answered questions of one form response into a SubmissionRecord.

    File-upload answers are kept verbatim in ``fields`` and also expanded into one
    FileRef per file id. A file whose metadata cannot be read still gets a FileRef,
    with ``error`` set and links built from its id.
    """
    fields: Dict[str, Answer] = {}
    uploaded: List[FileRef] = []
    sector = DEFAULT_SECTOR

    for item in items:
        if item.item_type == FILE_UPLOAD_ITEM_TYPE:
            for file_id in _file_ids(item.answer):
                uploaded.append(resolve_file(item.question, file_id, resolver))
            fields[item.question] = item.answer
            continue

        fields[item.question] = item.answer
        if is_sector_question(item.question, keywords):
            text = answer_text(item.answer)
            if text:
                sector = text

    return SubmissionRecord(
        timestamp=timestamp or utc_now(),
        fields=fields,
        sector=sector,
        uploaded_files=uploaded,
    )
