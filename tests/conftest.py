from datetime import datetime, timezone

import pytest

from form_responses.models import SubmissionRecord
from form_responses.store import RecordStore


@pytest.fixture
def store():
    return RecordStore.from_url("sqlite://")


@pytest.fixture
def make_record():
    def _make(fields=None, sector="Other", files=None, day=1, record_id=None):
        return SubmissionRecord(
            timestamp=datetime(2025, 1, day, 9, 30, tzinfo=timezone.utc),
            fields=dict(fields or {}),
            sector=sector,
            uploaded_files=list(files or []),
            id=record_id,
        )

    return _make

