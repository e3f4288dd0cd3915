"""
Tests for the Drive API client.

Tests request construction, error translation and chunked media reads.
"""

import io

import pytest
import requests

from drive_gateway.core.constants import API_FILES
from drive_gateway.drive.client import DriveClient, DriveClientConfig
from drive_gateway.drive.models import FileEntry, FileMetadata
from drive_gateway.errors import NotFoundError, RemoteCallError

from conftest import FakeResponse, StaticAuth, error_response


class TestListPage:
    """Tests for list_page()."""

    def test_first_page_has_no_token(self, drive, client):
        drive.add_folder("folder123", [{"id": "1", "name": "a"}], [{"id": "2", "name": "b"}])
        page, next_token = client.list_page("folder123")

        assert page == [FileEntry("1", "a")]
        assert next_token == "T1"
        params = drive.calls[0]["params"]
        assert "pageToken" not in params
        assert params["q"] == "'folder123' in parents"
        assert params["fields"] == "nextPageToken, files(id, name)"
        assert params["pageSize"] == 100

    def test_last_page_token_is_none(self, drive, client):
        drive.add_folder("folder123", [{"id": "1", "name": "a"}], [{"id": "2", "name": "b"}])
        page, next_token = client.list_page("folder123", "T1")

        assert page == [FileEntry("2", "b")]
        assert next_token is None
        assert drive.calls[0]["params"]["pageToken"] == "T1"

    def test_quote_in_folder_id_escaped(self):
        seen = {}

        class Session:
            def request(self, method, url, params=None, **kwargs):
                seen.update(params)
                return FakeResponse(200, {"files": []})

        DriveClient(StaticAuth(), session=Session()).list_page("it's")
        assert seen["q"] == "'it\\'s' in parents"

    def test_trashed_children_included(self, drive, client):
        drive.add_folder("folder123", [{"id": "1", "name": "a"}])
        client.list_page("folder123")
        assert "trashed" not in drive.calls[0]["params"]["q"]

    def test_non_json_page(self, drive, client):
        drive._route = lambda method, url, params: FakeResponse(200, reason="OK")
        with pytest.raises(RemoteCallError, match="invalid JSON") as exc_info:
            client.list_page("folder123")
        assert exc_info.value.status == 200


class TestAuthHeader:
    """Every call asks the provider for a credential."""

    def test_bearer_token_sent(self, drive, client, auth):
        drive.add_file("f1", "a.txt")
        client.get_metadata("f1")
        assert drive.calls[0]["headers"]["Authorization"] == "Bearer access-1"

    def test_provider_consulted_per_call(self, drive, client, auth):
        drive.add_file("f1", "a.txt")
        client.get_metadata("f1")
        client.get_metadata("f1")
        assert auth.calls == 2

    def test_timeout_from_config(self, drive):
        seen = {}

        class Session:
            def request(self, method, url, **kwargs):
                seen.update(kwargs)
                return FakeResponse(200, {"id": "x", "name": "n"})

        DriveClient(StaticAuth(), DriveClientConfig(timeout=7), session=Session()).get_metadata("x")
        assert seen["timeout"] == 7


class TestErrors:
    """Tests for error translation."""

    def test_unknown_id_is_not_found(self, client):
        with pytest.raises(NotFoundError) as exc_info:
            client.get_metadata("missing")
        assert exc_info.value.status == 404
        assert "File not found: missing." in str(exc_info.value)

    def test_server_error_is_remote_call_error(self, drive, client):
        drive._route = lambda method, url, params: error_response(500, "Backend Error")
        with pytest.raises(RemoteCallError) as exc_info:
            client.get_metadata("f1")
        assert not isinstance(exc_info.value, NotFoundError)
        assert exc_info.value.status == 500
        assert "Backend Error" in exc_info.value.message

    def test_forbidden_is_remote_call_error(self, drive, client):
        drive._route = lambda method, url, params: error_response(403, "Insufficient permissions")
        with pytest.raises(RemoteCallError) as exc_info:
            client.delete("f1")
        assert exc_info.value.status == 403

    def test_error_without_json_body(self, drive, client):
        drive._route = lambda method, url, params: FakeResponse(502, reason="Bad Gateway")
        with pytest.raises(RemoteCallError, match="Bad Gateway"):
            client.list_page("f")

    def test_network_failure(self, drive, client):
        drive.fail_with = requests.exceptions.ConnectionError("connection refused")
        with pytest.raises(RemoteCallError) as exc_info:
            client.list_page("f")
        assert exc_info.value.status is None
        assert client.api_calls == 0

    def test_error_response_closed(self, drive, client):
        with pytest.raises(NotFoundError):
            client.open_media("missing")
        assert drive.responses[0].closed


class TestMetadata:
    """Tests for get_metadata()."""

    def test_fields_requested(self, drive, client):
        drive.add_file("f1", "report.pdf", mime_type="application/pdf")
        meta = client.get_metadata("f1", "id, name, mimeType, webViewLink, webContentLink")

        assert meta == FileMetadata(
            id="f1",
            name="report.pdf",
            mime_type="application/pdf",
            web_view_link="https://drive.google.com/file/d/f1/view",
        )
        assert drive.calls[0]["params"]["fields"] == "id, name, mimeType, webViewLink, webContentLink"
        assert drive.calls[0]["url"] == f"{API_FILES}/f1"

    def test_size_parsed(self, drive, client):
        drive.add_file("f1", "a.bin", b"12345")
        assert client.get_metadata("f1", "id, name, size").size == 5

    def test_non_json_body(self, drive, client):
        """A 200 with an HTML or truncated body is still a RemoteCallError."""
        drive._route = lambda method, url, params: FakeResponse(200, reason="OK")
        with pytest.raises(RemoteCallError, match="invalid JSON") as exc_info:
            client.get_metadata("abc")
        assert exc_info.value.status == 200
        assert drive.responses[0].closed

    def test_id_escaped_in_url(self, drive, client):
        drive.add_file("a/b?c", "odd.txt")
        assert client.get_metadata("a/b?c").name == "odd.txt"
        assert drive.calls[0]["url"] == f"{API_FILES}/a%2Fb%3Fc"


class TestMedia:
    """Tests for open_media() and stream_media()."""

    def test_chunks_bounded(self, drive, client):
        payload = bytes(range(256)) * 100
        drive.add_file("f1", "a.bin", payload)
        with client.open_media("f1") as media:
            chunks = list(media.chunks())

        assert b"".join(chunks) == payload
        assert max(len(c) for c in chunks) <= 4096
        assert drive.calls[0]["stream"] is True
        assert drive.calls[0]["params"]["alt"] == "media"
        assert drive.responses[0].closed

    def test_content_length(self, drive, client):
        drive.add_file("f1", "a.bin", b"x" * 10)
        with client.open_media("f1") as media:
            assert media.content_length == 10

    def test_interrupted_stream(self, drive, client):
        drive.add_file("f1", "a.bin", b"x" * 20000)
        drive.break_media_after = 8192
        with client.open_media("f1") as media:
            with pytest.raises(RemoteCallError, match="interrupted"):
                list(media.chunks())

    def test_stream_media_counts_bytes(self, drive, client):
        drive.add_file("f1", "a.bin", b"y" * 9000)
        sink = io.BytesIO()
        assert client.stream_media("f1", sink) == 9000
        assert sink.getvalue() == b"y" * 9000


class TestDelete:
    """Tests for delete()."""

    def test_delete(self, drive, client):
        drive.add_file("f1", "a.txt")
        client.delete("f1")
        assert "f1" not in drive.files
        assert drive.calls[0]["method"] == "DELETE"

    def test_delete_unknown(self, client):
        with pytest.raises(NotFoundError):
            client.delete("nope")

    def test_id_cannot_reach_sub_resource(self, drive, client):
        with pytest.raises(NotFoundError):
            client.delete("abc/permissions/anyoneWithLink")
        assert drive.calls[0]["method"] == "DELETE"
        assert drive.calls[0]["url"] == f"{API_FILES}/abc%2Fpermissions%2FanyoneWithLink"

    def test_dot_segments_escaped(self, drive, client):
        with pytest.raises(NotFoundError):
            client.open_media("../about")
        assert drive.calls[0]["url"] == f"{API_FILES}/..%2Fabout"
