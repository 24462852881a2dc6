from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, List, Optional, Sequence

from .models import SubmissionRecord
from .schema import (
    FIXED_COLUMNS,
    SECTOR_COLUMN,
    SEQUENCE_COLUMN,
    TIMESTAMP_COLUMN,
    file_column_label,
)

SEQUENCE = "sequence"
TIMESTAMP = "timestamp"
SECTOR = "sector"
FIELD = "field"
FILE = "file"

_FIXED_KINDS = {SEQUENCE_COLUMN: SEQUENCE, TIMESTAMP_COLUMN: TIMESTAMP, SECTOR_COLUMN: SECTOR}


@dataclass(frozen=True)
class Column:
    kind: str
    label: str
    file_index: Optional[int] = None


@dataclass(frozen=True)
class ColumnSet:
    columns: tuple

    def __iter__(self) -> Iterator[Column]:
        return iter(self.columns)

    def __len__(self) -> int:
        return len(self.columns)

    @property
    def labels(self) -> List[str]:
        return [c.label for c in self.columns]

    @property
    def field_labels(self) -> List[str]:
        return [c.label for c in self.columns if c.kind == FIELD]


def fixed_columns() -> List[Column]:
    return [Column(kind=_FIXED_KINDS[label], label=label) for label in FIXED_COLUMNS]


def field_columns(records: Sequence[SubmissionRecord], taken: Sequence[str] = ()) -> List[Column]:
    """Union of field keys, in first-seen order across ``records``."""
    seen = set(taken)
    out: List[Column] = []
    for record in records:
        for key in record.fields:
            if key in seen:
                continue
            seen.add(key)
            out.append(Column(kind=FIELD, label=key))
    return out


def first_record_file_columns(records: Sequence[SubmissionRecord]) -> List[Column]:
    """One column per upload of the first record.

    Later records with more uploads lose the extras in this view; fewer render N/A.
    The documents export lists every file.
    """
    if not records:
        return []
    return [
        Column(kind=FILE, label=file_column_label(i, f.field_name), file_index=i)
        for i, f in enumerate(records[0].uploaded_files)
    ]


def project(records: Sequence[SubmissionRecord], file_policy=first_record_file_columns) -> ColumnSet:
    records = list(records)
    cols = fixed_columns()
    cols.extend(field_columns(records, taken=[c.label for c in cols]))
    cols.extend(file_policy(records))
    return ColumnSet(columns=tuple(cols))
