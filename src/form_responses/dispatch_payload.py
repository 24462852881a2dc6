from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional, Sequence

from .drive import download_url, view_url
from .errors import ValidationError
from .form_mapping import FormItem, derive_sector
from .models import Answer, FileRef, SubmissionRecord
from .schema import SECTOR_FIELD_KEYWORDS
from .util import parse_iso_timestamp, utc_now


def _coerce_answer(question: str, value: Any) -> Answer:
    if value is None:
        return ""
    if isinstance(value, Mapping):
        raise ValidationError(f"Nested answers are not supported (question {question!r}).")
    if isinstance(value, (list, tuple)):
        out: List[str] = []
        for v in value:
            if isinstance(v, (Mapping, list, tuple)):
                raise ValidationError(f"Nested answers are not supported (question {question!r}).")
            out.append("" if v is None else str(v))
        return out
    return str(value)


def _parse_form_data(raw: Any) -> Dict[str, Answer]:
    if not isinstance(raw, Mapping):
        raise ValidationError("Submission is missing 'formData' (expected an object).")
    return {str(k): _coerce_answer(str(k), v) for k, v in raw.items()}


def _parse_file(raw: Any) -> FileRef:
    if not isinstance(raw, Mapping):
        raise ValidationError("Each entry of 'uploadedFiles' must be an object.")
    try:
        ref = FileRef.from_dict(dict(raw))
    except (TypeError, ValueError) as e:
        raise ValidationError(f"Invalid uploaded file entry: {e}") from e

    # The connector may send only the id; links can always be built from it.
    if ref.external_id and not ref.file_url and not ref.download_url:
        ref = FileRef(
            field_name=ref.field_name,
            file_name=ref.file_name or f"File ID: {ref.external_id}",
            file_url=view_url(ref.external_id),
            download_url=download_url(ref.external_id),
            external_id=ref.external_id,
            original_file_name=ref.original_file_name,
            file_size=ref.file_size,
            mime_type=ref.mime_type,
            file_path=ref.file_path,
            error=ref.error,
        )
    return ref


def parse_timestamp(raw: Any) -> Optional[datetime]:
    if raw in (None, ""):
        return None
    try:
        return parse_iso_timestamp(str(raw))
    except ValueError as e:
        raise ValidationError(f"Invalid timestamp {raw!r}.") from e


def parse_items(raw: Any) -> List[FormItem]:
    """Raw form-source items: ``[{"question", "type", "answer"}, ...]`` in form order."""
    if not isinstance(raw, list):
        raise ValidationError("'items' must be a list.")
    items: List[FormItem] = []
    for entry in raw:
        if not isinstance(entry, Mapping) or not entry.get("question"):
            raise ValidationError("Each item needs a 'question'.")
        question = str(entry["question"])
        items.append(
            FormItem(
                question=question,
                item_type=str(entry.get("type") or ""),
                answer=_coerce_answer(question, entry.get("answer")),
            )
        )
    return items


def parse_submission(
    payload: Any,
    keywords: Sequence[str] = SECTOR_FIELD_KEYWORDS,
) -> SubmissionRecord:
    """Validate a connector payload ``{sector?, formData, uploadedFiles?, timestamp?}``.

    An explicit ``sector`` is trusted; otherwise it is derived from ``formData``.
    """
    if not isinstance(payload, Mapping):
        raise ValidationError("Submission payload must be an object.")

    fields = _parse_form_data(payload.get("formData"))

    raw_files = payload.get("uploadedFiles") or []
    if not isinstance(raw_files, list):
        raise ValidationError("'uploadedFiles' must be a list.")
    files = [_parse_file(f) for f in raw_files]

    timestamp = parse_timestamp(payload.get("timestamp")) or utc_now()

    sector = payload.get("sector")
    if not isinstance(sector, str) or not sector.strip():
        sector = derive_sector(fields, keywords)

    return SubmissionRecord(
        timestamp=timestamp,
        fields=fields,
        sector=sector.strip(),
        uploaded_files=files,
    )
