from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from .schema import CIN_DOCUMENT_KEYWORDS, PITCH_DECK_KEYWORDS, TOP_SECTORS_LIMIT, UNKNOWN_SECTOR
from .store import RecordStore


@dataclass(frozen=True)
class SectorCount:
    sector: str
    count: int

    def to_dict(self) -> Dict[str, Any]:
        return {"sector": self.sector, "count": self.count}


@dataclass(frozen=True)
class Overview:
    total_applications: int
    pitch_decks_uploaded: int
    cin_documents_uploaded: int
    top_sectors: List[SectorCount] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "totalApplications": self.total_applications,
            "pitchDecksUploaded": self.pitch_decks_uploaded,
            "cinDocumentsUploaded": self.cin_documents_uploaded,
            "sectorStats": [s.to_dict() for s in self.top_sectors],
        }


def keyword_pattern(keywords: Sequence[str]) -> "re.Pattern[str]":
    return re.compile("|".join(re.escape(k) for k in keywords), re.IGNORECASE)


def label_sectors(rows: Iterable[Tuple[Optional[str], int]]) -> List[SectorCount]:
    # Empty sectors are stored as-is and only labelled here.
    return [SectorCount(sector=s or UNKNOWN_SECTOR, count=n) for s, n in rows]


def count_records_with_upload(
    uploaded_files: Iterable[List[Dict[str, Any]]],
    keywords: Sequence[str],
) -> int:
    """Records having at least one file whose field name matches ``keywords``."""
    pattern = keyword_pattern(keywords)
    total = 0
    for files in uploaded_files:
        if any(pattern.search(str(f.get("fieldName") or "")) for f in files if isinstance(f, dict)):
            total += 1
    return total


def sector_distribution(store: RecordStore) -> List[SectorCount]:
    return label_sectors(store.sector_counts())


def overview(
    store: RecordStore,
    *,
    pitch_keywords: Sequence[str] = PITCH_DECK_KEYWORDS,
    cin_keywords: Sequence[str] = CIN_DOCUMENT_KEYWORDS,
    top: int = TOP_SECTORS_LIMIT,
) -> Overview:
    files = list(store.iter_uploaded_files())
    return Overview(
        total_applications=store.count(),
        pitch_decks_uploaded=count_records_with_upload(files, pitch_keywords),
        cin_documents_uploaded=count_records_with_upload(files, cin_keywords),
        top_sectors=label_sectors(store.sector_counts(limit=top)),
    )
