from unittest.mock import MagicMock

import pytest
import requests

from form_responses.drive import DriveResolver, download_url, single_attempt, view_url
from form_responses.form_mapping import FormItem, normalize_items


def _session(json_body=None, error=None):
    s = MagicMock()
    resp = MagicMock()
    resp.json.return_value = json_body or {}
    if error:
        resp.raise_for_status.side_effect = error
    s.get.return_value = resp
    return s


def test_fetch_parses_metadata():
    s = _session({"id": "abc", "name": "deck.pdf", "originalFilename": "Deck.pdf", "size": "2048", "mimeType": "application/pdf"})
    meta = DriveResolver(s).fetch("abc")
    assert meta.name == "deck.pdf"
    assert meta.original_name == "Deck.pdf"
    assert meta.size == 2048
    url = s.get.call_args[0][0]
    assert url.endswith("/files/abc")
    assert s.get.call_args[1]["params"]["fields"] == "id,name,originalFilename,size,mimeType"


def test_fetch_raises_on_http_error():
    s = _session(error=requests.HTTPError("403 Forbidden"))
    with pytest.raises(requests.HTTPError):
        DriveResolver(s).fetch("abc")
    assert s.get.call_count == 1


def test_failed_lookup_does_not_stop_later_files():
    calls = []

    def flaky(file_id):
        calls.append(file_id)
        if file_id == "bad":
            raise requests.ConnectionError("timeout")
        return DriveResolver(_session({"id": file_id, "name": f"{file_id}.pdf"})).fetch(file_id)

    rec = normalize_items([FormItem("Pitch Deck", "FILE_UPLOAD", ["bad", "good"])], resolver=flaky)
    assert calls == ["bad", "good"]
    assert [f.file_name for f in rec.uploaded_files] == ["File ID: bad", "good.pdf"]
    assert rec.uploaded_files[0].error == "Could not access file: timeout"


def test_links_and_no_retry_adapter():
    assert view_url("a b") == "https://drive.google.com/file/d/a%20b/view"
    assert download_url("abc") == "https://drive.google.com/uc?export=download&id=abc"
    s = single_attempt(requests.Session())
    assert s.get_adapter("https://www.googleapis.com").max_retries.total == 0
