"""Pytest configuration and fixtures."""

import json
import re
from datetime import datetime, timedelta, timezone
from urllib.parse import unquote

import pytest
import requests
from google.oauth2.credentials import Credentials

from drive_gateway.core.constants import API_FILES, DRIVE_SCOPES
from drive_gateway.drive.client import DriveClient, DriveClientConfig


# ============================================================================
# Credentials
# ============================================================================

def utcnow() -> datetime:
    """Naive UTC now, the form google-auth uses for expiry."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def make_credentials(token="access-1", refresh_token="refresh-1", expired=False) -> Credentials:
    expiry = utcnow() + (timedelta(hours=-1) if expired else timedelta(hours=1))
    return Credentials(
        token=token,
        refresh_token=refresh_token,
        token_uri="https://oauth2.googleapis.com/token",
        client_id="client-id",
        client_secret="client-secret",
        scopes=DRIVE_SCOPES,
        expiry=expiry,
    )


class StaticAuth:
    """Credential source that hands out a fixed, valid credential."""

    def __init__(self, token="access-1"):
        self.token = token
        self.calls = 0

    def get_credentials(self):
        self.calls += 1
        return make_credentials(token=self.token)


# ============================================================================
# Fake Drive HTTP API
# ============================================================================

class FakeResponse:
    """Just enough of requests.Response for the Drive client."""

    def __init__(self, status_code=200, payload=None, content=b"", break_after=None, reason=""):
        self.status_code = status_code
        self.reason = reason
        self._payload = payload
        self._content = content
        self._break_after = break_after
        self.headers = {"Content-Length": str(len(content))} if content else {}
        self.closed = False
        self.chunk_sizes = []

    def json(self):
        if self._payload is None:
            raise ValueError("No JSON body")
        return self._payload

    def iter_content(self, chunk_size=1):
        self.chunk_sizes.append(chunk_size)
        sent = 0
        for start in range(0, len(self._content), chunk_size):
            if self._break_after is not None and sent >= self._break_after:
                raise requests.exceptions.ChunkedEncodingError("Connection broken: IncompleteRead")
            chunk = self._content[start:start + chunk_size]
            sent += len(chunk)
            yield chunk

    def close(self):
        self.closed = True


def error_response(status, message):
    return FakeResponse(status, {"error": {"code": status, "message": message}})


class FakeDriveSession:
    """
    In-memory stand-in for the Drive v3 files endpoints.

    Folders are stored as a list of pages: page N is served for token
    "T<N>" (page 0 for no token) and advertises "T<N+1>" if more follow.
    """

    def __init__(self):
        self.folders = {}
        self.files = {}
        self.calls = []
        self.responses = []
        self.fail_with = None
        self.break_media_after = None

    def add_folder(self, folder_id, *pages):
        self.folders[folder_id] = [list(page) for page in pages]

    def add_file(self, file_id, name, content=b"", mime_type="application/octet-stream"):
        self.files[file_id] = {
            "id": file_id,
            "name": name,
            "mimeType": mime_type,
            "size": str(len(content)),
            "webViewLink": f"https://drive.google.com/file/d/{file_id}/view",
            "content": content,
        }

    def request(self, method, url, headers=None, params=None, timeout=None, stream=False):
        params = params or {}
        self.calls.append({"method": method, "url": url, "headers": headers, "params": params, "stream": stream})
        if self.fail_with is not None:
            raise self.fail_with

        response = self._route(method, url, params)
        self.responses.append(response)
        return response

    def _route(self, method, url, params):
        if url == API_FILES and method == "GET":
            return self._list(params)

        file_id = unquote(url[len(API_FILES) + 1:])
        if file_id not in self.files:
            return error_response(404, f"File not found: {file_id}.")

        if method == "DELETE":
            del self.files[file_id]
            return FakeResponse(204)

        data = self.files[file_id]
        if params.get("alt") == "media":
            return FakeResponse(200, content=data["content"], break_after=self.break_media_after)

        wanted = [f.strip() for f in params.get("fields", "").split(",") if f.strip()]
        return FakeResponse(200, {k: data[k] for k in wanted if k in data})

    def _list(self, params):
        folder_id = re.match(r"'(.+?)' in parents", params["q"]).group(1)
        if folder_id not in self.folders:
            return error_response(404, f"File not found: {folder_id}.")

        pages = self.folders[folder_id]
        token = params.get("pageToken")
        index = int(token[1:]) if token else 0
        payload = {"files": pages[index] if pages else []}
        if index + 1 < len(pages):
            payload["nextPageToken"] = f"T{index + 1}"
        return FakeResponse(200, json.loads(json.dumps(payload)))


@pytest.fixture
def drive():
    """Fake Drive API session."""
    return FakeDriveSession()


@pytest.fixture
def auth():
    return StaticAuth()


@pytest.fixture
def client(drive, auth):
    """DriveClient wired to the fake session with a small chunk size."""
    return DriveClient(auth, DriveClientConfig(timeout=5, chunk_size=4096, page_size=100), session=drive)
