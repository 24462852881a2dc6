from __future__ import annotations

import random
from datetime import datetime, timedelta
from typing import List, Optional

from .models import FileRef, SubmissionRecord
from .store import RecordStore
from .util import utc_now

SAMPLE_SECTORS = ["HealthTech", "Mobility", "EdTech", "FinTech", "AgriTech", "Other"]

SAMPLE_FORM_DATA = [
    {
        "Company Name": "HealthCare Solutions",
        "Email": "contact@healthcare.com",
        "Phone": "+1234567890",
        "Description": "Revolutionary healthcare platform",
    },
    {
        "Company Name": "Mobility Plus",
        "Email": "info@mobility.com",
        "Phone": "+1234567891",
        "Description": "Smart transportation solutions",
    },
    {
        "Company Name": "EduLearn",
        "Email": "hello@edulearn.com",
        "Phone": "+1234567892",
        "Description": "Online learning platform",
    },
]


def sample_record(i: int, rng: random.Random, now: datetime) -> SubmissionRecord:
    fields = dict(rng.choice(SAMPLE_FORM_DATA))
    fields["Company Name"] = f"{fields['Company Name']} {i + 1}"
    fields["Email"] = f"company{i + 1}@example.com"
    return SubmissionRecord(
        timestamp=now - timedelta(days=i),
        sector=rng.choice(SAMPLE_SECTORS),
        fields=fields,
        uploaded_files=[
            FileRef(
                field_name="Pitch Deck",
                file_name=f"pitch-deck-{i + 1}.pdf",
                file_url=f"https://example.com/files/pitch-deck-{i + 1}.pdf",
            ),
            FileRef(
                field_name="CIN Document",
                file_name=f"cin-doc-{i + 1}.pdf",
                file_url=f"https://example.com/files/cin-doc-{i + 1}.pdf",
            ),
        ],
    )


def seed_sample_records(
    store: RecordStore,
    count: int = 30,
    now: Optional[datetime] = None,
    seed: Optional[int] = None,
) -> List[SubmissionRecord]:
    """Insert ``count`` sample responses spread one day apart."""
    rng = random.Random(seed)
    now = now or utc_now()
    return [store.insert(sample_record(i, rng, now)) for i in range(count)]
