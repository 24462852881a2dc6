from __future__ import annotations

import logging
from contextlib import contextmanager
from datetime import datetime
from typing import Any, Dict, Iterator, List, Optional, Tuple
from uuid import uuid4

from sqlalchemy import JSON, DateTime, Index, Integer, String, Text, create_engine, func, select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import DeclarativeBase, Mapped, Session, mapped_column, sessionmaker
from sqlalchemy.pool import StaticPool

from .errors import RecordNotFound, StoreError
from .models import FileRef, SubmissionRecord
from .util import ensure_utc

log = logging.getLogger("form_responses.store")


class Base(DeclarativeBase):
    pass


class SubmissionRow(Base):
    __tablename__ = "form_responses"

    seq: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    id: Mapped[str] = mapped_column(String(32), unique=True, default=lambda: uuid4().hex)
    timestamp: Mapped[datetime] = mapped_column(DateTime(timezone=True))
    sector: Mapped[str] = mapped_column(Text, index=True)
    # [[question, answer], ...] so question order survives backends that reorder JSON objects.
    fields: Mapped[List[Any]] = mapped_column(JSON, default=list)
    uploaded_files: Mapped[List[Dict[str, Any]]] = mapped_column(JSON, default=list)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )


Index("ix_form_responses_timestamp_desc", SubmissionRow.timestamp.desc())


def to_row(record: SubmissionRecord) -> SubmissionRow:
    return SubmissionRow(
        timestamp=ensure_utc(record.timestamp),
        sector=record.sector,
        fields=[[k, v] for k, v in record.fields.items()],
        uploaded_files=[f.to_dict() for f in record.uploaded_files],
    )


def to_record(row: SubmissionRow) -> SubmissionRecord:
    return SubmissionRecord(
        id=row.id,
        timestamp=ensure_utc(row.timestamp),
        sector=row.sector,
        fields={str(k): v for k, v in (row.fields or [])},
        uploaded_files=[FileRef.from_dict(f) for f in (row.uploaded_files or [])],
    )


def make_engine(database_url: str, echo: bool = False) -> Engine:
    kwargs: Dict[str, Any] = {"echo": echo}
    if database_url.startswith("sqlite"):
        kwargs["connect_args"] = {"check_same_thread": False}
        if database_url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
    return create_engine(database_url, **kwargs)


class RecordStore:
    """Durable collection of SubmissionRecords.

    Newest first everywhere; records sharing a timestamp keep insertion order.
    """

    def __init__(self, engine: Engine):
        self.engine = engine
        self._sessions = sessionmaker(bind=engine, expire_on_commit=False)

    @classmethod
    def from_url(cls, database_url: str, *, create: bool = True) -> "RecordStore":
        store = cls(make_engine(database_url))
        if create:
            store.create_all()
        return store

    def create_all(self) -> None:
        with self._guard("create schema"):
            Base.metadata.create_all(self.engine)

    @contextmanager
    def _guard(self, what: str) -> Iterator[None]:
        try:
            yield
        except SQLAlchemyError as e:
            log.error("Store failure during %s: %s", what, e)
            raise StoreError(f"Store failure during {what}: {e}") from e

    @contextmanager
    def session(self) -> Iterator[Session]:
        with self._sessions() as s:
            yield s

    def _recency(self):
        return (SubmissionRow.timestamp.desc(), SubmissionRow.seq.asc())

    def insert(self, record: SubmissionRecord) -> SubmissionRecord:
        row = to_row(record)
        with self._guard("insert"), self.session() as s:
            s.add(row)
            s.commit()
            stored = to_record(row)
        log.info("Stored submission id=%s sector=%s files=%d", stored.id, stored.sector, len(stored.uploaded_files))
        return stored

    def count(self) -> int:
        with self._guard("count"), self.session() as s:
            return int(s.scalar(select(func.count()).select_from(SubmissionRow)) or 0)

    def fetch(self, offset: int, limit: int) -> List[SubmissionRecord]:
        stmt = select(SubmissionRow).order_by(*self._recency()).offset(offset).limit(limit)
        with self._guard("fetch"), self.session() as s:
            return [to_record(r) for r in s.scalars(stmt)]

    def all_records(self) -> List[SubmissionRecord]:
        stmt = select(SubmissionRow).order_by(*self._recency())
        with self._guard("fetch all"), self.session() as s:
            return [to_record(r) for r in s.scalars(stmt)]

    def get(self, record_id: str) -> SubmissionRecord:
        stmt = select(SubmissionRow).where(SubmissionRow.id == record_id)
        with self._guard("get"), self.session() as s:
            row = s.scalars(stmt).first()
            if row is None:
                raise RecordNotFound(f"Response not found: {record_id}")
            return to_record(row)

    def sector_counts(self, limit: Optional[int] = None) -> List[Tuple[Optional[str], int]]:
        """(sector, count) pairs, most frequent first, ties by first insertion."""
        n = func.count().label("n")
        stmt = (
            select(SubmissionRow.sector, n)
            .group_by(SubmissionRow.sector)
            .order_by(n.desc(), func.min(SubmissionRow.seq))
        )
        if limit is not None:
            stmt = stmt.limit(limit)
        with self._guard("sector counts"), self.session() as s:
            return [(sector, int(count)) for sector, count in s.execute(stmt)]

    def iter_uploaded_files(self) -> Iterator[List[Dict[str, Any]]]:
        """Raw uploaded-file lists, one per record."""
        stmt = select(SubmissionRow.uploaded_files).order_by(SubmissionRow.seq)
        with self._guard("uploaded files"), self.session() as s:
            rows = list(s.scalars(stmt))
        for files in rows:
            yield files or []
