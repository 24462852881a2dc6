from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Iterable, Optional, Sequence

from .dispatch_payload import parse_submission
from .form_mapping import FileResolver, FormItem, normalize_items
from .models import SubmissionRecord
from .schema import SECTOR_FIELD_KEYWORDS
from .store import RecordStore

log = logging.getLogger("form_responses.ingest")


def ingest_payload(
    store: RecordStore,
    payload: Any,
    keywords: Sequence[str] = SECTOR_FIELD_KEYWORDS,
) -> SubmissionRecord:
    """Validate a connector payload and store it. Invalid payloads are never stored."""
    record = parse_submission(payload, keywords)
    stored = store.insert(record)
    log.info("Response saved successfully id=%s", stored.id)
    return stored


def ingest_form_response(
    store: RecordStore,
    items: Iterable[FormItem],
    *,
    timestamp: Optional[datetime] = None,
    resolver: Optional[FileResolver] = None,
    keywords: Sequence[str] = SECTOR_FIELD_KEYWORDS,
) -> SubmissionRecord:
    record = normalize_items(items, timestamp=timestamp, resolver=resolver, keywords=keywords)
    failed = sum(1 for f in record.uploaded_files if f.error)
    if failed:
        log.warning("%d of %d files could not be resolved", failed, len(record.uploaded_files))
    return store.insert(record)
