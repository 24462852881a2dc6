from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Union

from .schema import DEFAULT_SECTOR
from .util import ensure_utc

# A form answer is either a single string or a list of strings (checkboxes, file ids).
Answer = Union[str, List[str]]


@dataclass(frozen=True)
class FileRef:
    field_name: str
    file_name: str = ""
    file_url: str = ""
    download_url: str = ""
    external_id: str = ""
    original_file_name: Optional[str] = None
    file_size: Optional[int] = None
    mime_type: Optional[str] = None
    file_path: Optional[str] = None
    error: Optional[str] = None

    @property
    def link(self) -> str:
        return self.file_url or self.download_url

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "fieldName": self.field_name,
            "fileName": self.file_name,
            "fileUrl": self.file_url,
            "downloadUrl": self.download_url,
            "fileId": self.external_id,
        }
        optional = {
            "originalFileName": self.original_file_name,
            "fileSize": self.file_size,
            "mimeType": self.mime_type,
            "filePath": self.file_path,
            "error": self.error,
        }
        out.update({k: v for k, v in optional.items() if v is not None})
        return out

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FileRef":
        size = data.get("fileSize")
        return cls(
            field_name=str(data.get("fieldName") or ""),
            file_name=str(data.get("fileName") or ""),
            file_url=str(data.get("fileUrl") or ""),
            download_url=str(data.get("downloadUrl") or ""),
            external_id=str(data.get("fileId") or data.get("externalId") or ""),
            original_file_name=data.get("originalFileName"),
            file_size=int(size) if size not in (None, "") else None,
            mime_type=data.get("mimeType"),
            file_path=data.get("filePath"),
            error=data.get("error"),
        )


@dataclass
class SubmissionRecord:
    """One normalized form submission.

    ``fields`` keeps the question order of the form; the column projection relies on it.
    ``id`` is assigned by the store on insert.
    """

    timestamp: datetime
    fields: Dict[str, Answer] = field(default_factory=dict)
    sector: str = DEFAULT_SECTOR
    uploaded_files: List[FileRef] = field(default_factory=list)
    id: Optional[str] = None

    def __post_init__(self) -> None:
        if not self.sector:
            self.sector = DEFAULT_SECTOR
        self.timestamp = ensure_utc(self.timestamp)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "timestamp": self.timestamp.isoformat(),
            "sector": self.sector,
            "formData": dict(self.fields),
            "uploadedFiles": [f.to_dict() for f in self.uploaded_files],
        }
