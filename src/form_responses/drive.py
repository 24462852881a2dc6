from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional
from urllib.parse import quote

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from .models import FileRef

log = logging.getLogger("form_responses.drive")

DRIVE_SCOPES = ["https://www.googleapis.com/auth/drive.readonly"]
DRIVE_FILES_URL = "https://www.googleapis.com/drive/v3/files"
METADATA_FIELDS = "id,name,originalFilename,size,mimeType"


@dataclass(frozen=True)
class DriveFile:
    file_id: str
    name: str
    original_name: Optional[str] = None
    size: Optional[int] = None
    mime_type: Optional[str] = None


def view_url(file_id: str) -> str:
    return f"https://drive.google.com/file/d/{quote(file_id, safe='')}/view"


def download_url(file_id: str) -> str:
    return f"https://drive.google.com/uc?export=download&id={quote(file_id, safe='')}"


def single_attempt(s: requests.Session) -> requests.Session:
    # Lookups fail fast; the caller records the failure on the FileRef.
    retries = Retry(total=0, raise_on_status=False)
    s.mount("https://", HTTPAdapter(max_retries=retries))
    return s


def authorized_session(service_account_json_path: str) -> requests.Session:
    from google.auth.transport.requests import AuthorizedSession
    from google.oauth2.service_account import Credentials

    creds = Credentials.from_service_account_file(service_account_json_path, scopes=DRIVE_SCOPES)
    return single_attempt(AuthorizedSession(creds))


def _parse_metadata(file_id: str, data: Dict[str, Any]) -> DriveFile:
    size = data.get("size")
    return DriveFile(
        file_id=str(data.get("id") or file_id),
        name=str(data.get("name") or ""),
        original_name=data.get("originalFilename"),
        size=int(size) if size is not None else None,
        mime_type=data.get("mimeType"),
    )


class DriveResolver:
    """Resolve Drive file ids to metadata, one request per file and no retries."""

    def __init__(self, session: requests.Session, timeout: float = 10.0):
        self.session = session
        self.timeout = timeout

    @classmethod
    def from_service_account(cls, service_account_json_path: str) -> "DriveResolver":
        return cls(authorized_session(service_account_json_path))

    def fetch(self, file_id: str) -> DriveFile:
        url = f"{DRIVE_FILES_URL}/{quote(file_id, safe='')}"
        r = self.session.get(
            url,
            params={"fields": METADATA_FIELDS, "supportsAllDrives": "true"},
            timeout=self.timeout,
        )
        r.raise_for_status()
        return _parse_metadata(file_id, r.json())

    def __call__(self, file_id: str) -> DriveFile:
        return self.fetch(file_id)


def file_ref_from_drive(field_name: str, meta: DriveFile) -> FileRef:
    return FileRef(
        field_name=field_name,
        file_name=meta.name,
        original_file_name=meta.original_name,
        file_url=view_url(meta.file_id),
        download_url=download_url(meta.file_id),
        external_id=meta.file_id,
        file_size=meta.size,
        mime_type=meta.mime_type,
    )


def unresolved_file_ref(field_name: str, file_id: str, error: Optional[str] = None) -> FileRef:
    """Links built from the id alone, for files whose metadata could not be read."""
    return FileRef(
        field_name=field_name,
        file_name=f"File ID: {file_id}",
        file_url=view_url(file_id),
        download_url=download_url(file_id),
        external_id=file_id,
        error=error,
    )
