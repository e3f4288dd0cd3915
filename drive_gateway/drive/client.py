"""
Google Drive API client for Drive Gateway.

Handles all HTTP interactions with the Drive v3 API. Every call asks the
credential provider for a fresh access token first, so an expired token is
refreshed before the request goes out.
"""

import logging
from dataclasses import dataclass
from typing import Iterator, Optional, Protocol
from urllib.parse import quote

import requests
from google.oauth2.credentials import Credentials

from ..core.constants import (
    API_FILES,
    DEFAULT_CHUNK_SIZE,
    DEFAULT_METADATA_FIELDS,
    DEFAULT_PAGE_SIZE,
    DEFAULT_TIMEOUT,
    LIST_FIELDS,
)
from ..errors import NotFoundError, RemoteCallError
from .models import FileEntry, FileMetadata

logger = logging.getLogger(__name__)


class CredentialSource(Protocol):
    def get_credentials(self) -> Credentials:
        ...


@dataclass
class DriveClientConfig:
    """Configuration for DriveClient."""
    timeout: float = DEFAULT_TIMEOUT
    chunk_size: int = DEFAULT_CHUNK_SIZE
    page_size: int = DEFAULT_PAGE_SIZE


class MediaStream:
    """
    An open download of one file's bytes.

    The HTTP request has already succeeded when this exists; reading happens
    in bounded chunks. Use as a context manager so the connection is released.
    """

    def __init__(self, file_id: str, response: requests.Response, chunk_size: int):
        self.file_id = file_id
        self.chunk_size = chunk_size
        self._response = response

    @property
    def content_length(self) -> Optional[int]:
        value = self._response.headers.get("Content-Length")
        return int(value) if value and value.isdigit() else None

    def chunks(self) -> Iterator[bytes]:
        """Yield the payload in chunks of at most `chunk_size` bytes."""
        try:
            for chunk in self._response.iter_content(chunk_size=self.chunk_size):
                if chunk:
                    yield chunk
        except requests.RequestException as e:
            raise RemoteCallError(None, f"Download of {self.file_id} interrupted: {e}") from e

    def close(self):
        self._response.close()

    def __enter__(self) -> "MediaStream":
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()


class DriveClient:
    """
    Google Drive API client.

    The single point through which the gateway talks to Drive: listing one
    page of a folder, reading metadata, opening a media download, deleting.
    Does not retry; a failed call raises and the caller decides.
    """

    def __init__(
        self,
        auth: CredentialSource,
        config: Optional[DriveClientConfig] = None,
        session: Optional[requests.Session] = None,
    ):
        """
        Initialize the Drive client.

        Args:
            auth: Provider of a valid OAuth credential (usually OAuthManager)
            config: Client configuration
            session: HTTP session (default: a new requests.Session)
        """
        self.auth = auth
        self.config = config or DriveClientConfig()
        self.session = session or requests.Session()
        self._api_calls = 0

    @property
    def api_calls(self) -> int:
        """Total API calls made by this client."""
        return self._api_calls

    def _get_headers(self) -> dict:
        creds = self.auth.get_credentials()
        return {"Authorization": f"Bearer {creds.token}"}

    def _request(self, method: str, url: str, context: str, **kwargs) -> requests.Response:
        """Issue one request; translate failures into RemoteCallError."""
        kwargs.setdefault("timeout", self.config.timeout)
        headers = {**self._get_headers(), **kwargs.pop("headers", {})}
        try:
            response = self.session.request(method, url, headers=headers, **kwargs)
        except requests.RequestException as e:
            raise RemoteCallError(None, f"Failed to {context}: {e}") from e
        self._api_calls += 1
        self._raise_for_status(response, context)
        return response

    @staticmethod
    def _raise_for_status(response: requests.Response, context: str):
        if response.status_code < 400:
            return
        message = _error_message(response)
        response.close()
        if response.status_code == 404:
            raise NotFoundError(f"Not found while attempting to {context}: {message}")
        raise RemoteCallError(response.status_code, f"Failed to {context}: {message}")

    def list_page(self, folder_id: str, page_token: Optional[str] = None) -> tuple[list[FileEntry], Optional[str]]:
        """
        Fetch one page of a folder's children.

        Args:
            folder_id: Google Drive folder ID
            page_token: Continuation token from the previous page, or None

        Returns:
            Tuple of (entries, next_page_token); the token is None on the last page
        """
        params = {
            "q": f"'{_quote(folder_id)}' in parents",
            "fields": LIST_FIELDS,
            "pageSize": self.config.page_size,
            "supportsAllDrives": "true",
            "includeItemsFromAllDrives": "true",
        }
        if page_token:
            params["pageToken"] = page_token

        response = self._request("GET", API_FILES, context=f"list folder {folder_id}", params=params)
        data = _json(response, f"list folder {folder_id}")
        entries = [FileEntry.from_dict(item) for item in data.get("files", [])]
        return entries, data.get("nextPageToken") or None

    def get_metadata(self, file_id: str, fields: str = DEFAULT_METADATA_FIELDS) -> FileMetadata:
        """
        Get selected metadata for a single file.

        Args:
            file_id: Google Drive file ID
            fields: Comma-separated field mask

        Returns:
            FileMetadata
        """
        params = {"fields": fields, "supportsAllDrives": "true"}
        response = self._request(
            "GET", _file_url(file_id),
            context=f"get metadata of {file_id}",
            params=params,
        )
        return FileMetadata.from_dict(_json(response, f"get metadata of {file_id}"))

    def open_media(self, file_id: str) -> MediaStream:
        """
        Start downloading a file's content.

        Errors reported by Drive (unknown id, no access) raise here, before
        any byte has been read.
        """
        params = {"alt": "media", "supportsAllDrives": "true"}
        response = self._request(
            "GET", _file_url(file_id),
            context=f"download {file_id}",
            params=params,
            stream=True,
        )
        return MediaStream(file_id, response, self.config.chunk_size)

    def stream_media(self, file_id: str, sink) -> int:
        """Copy a file's content into `sink`; returns the number of bytes written."""
        written = 0
        with self.open_media(file_id) as media:
            for chunk in media.chunks():
                sink.write(chunk)
                written += len(chunk)
        return written

    def delete(self, file_id: str):
        """Permanently delete a file (skips the trash)."""
        self._request(
            "DELETE", _file_url(file_id),
            context=f"delete {file_id}",
            params={"supportsAllDrives": "true"},
        )


def _file_url(file_id: str) -> str:
    """URL of a single file resource; the id is escaped as one path segment."""
    return f"{API_FILES}/{quote(file_id, safe='')}"


def _quote(value: str) -> str:
    """Escape a value for use inside a single-quoted Drive query string."""
    return value.replace("\\", "\\\\").replace("'", "\\'")


def _json(response: requests.Response, context: str) -> dict:
    """Decode a successful reply's JSON body."""
    try:
        data = response.json()
    except ValueError as e:
        response.close()
        raise RemoteCallError(response.status_code, f"Failed to {context}: invalid JSON response") from e
    if not isinstance(data, dict):
        raise RemoteCallError(response.status_code, f"Failed to {context}: unexpected JSON response")
    return data


def _error_message(response: requests.Response) -> str:
    """Pull the human-readable message out of a Drive error body."""
    try:
        data = response.json()
    except ValueError:
        data = None
    error = data.get("error") if isinstance(data, dict) else None
    if isinstance(error, dict) and error.get("message"):
        return error["message"]
    if isinstance(error, str):
        return error
    return response.reason or f"HTTP {response.status_code}"
