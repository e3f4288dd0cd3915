"""
File transfer for Drive Gateway.

Streams a Drive file's bytes into a caller-owned sink (an HTTP response
body, a local file, stdout), and wraps the metadata and delete calls.
"""

import logging
import time
from dataclasses import dataclass
from typing import BinaryIO, Callable, Optional

from ..core.constants import DEFAULT_METADATA_FIELDS
from ..core.formatting import content_disposition, format_size
from ..drive.client import DriveClient
from ..drive.models import FileMetadata
from ..errors import RemoteCallError, TransferError

logger = logging.getLogger(__name__)

# Only the name (and size, for logging) are needed before a download starts
STREAM_FIELDS = "id, name, mimeType, size"


@dataclass
class StreamResult:
    """Result of a single streamed download."""
    file_id: str
    name: str
    bytes_written: int = 0


def download_headers(name: str) -> dict[str, str]:
    """Response headers for serving a Drive file as an attachment."""
    return {
        "Content-Type": "application/octet-stream",
        "Content-Disposition": content_disposition(name),
    }


class FileTransfer:
    """
    Metadata, download and delete for single Drive files.

    Downloads never hold more than one chunk in memory, so memory use does
    not depend on file size. The sink belongs to the caller: it is written to
    but never closed here.
    """

    def __init__(self, client: DriveClient):
        self.client = client

    def metadata(self, file_id: str, fields: str = DEFAULT_METADATA_FIELDS) -> FileMetadata:
        """
        Get a file's metadata restricted to `fields`.

        Raises:
            NotFoundError: Unknown file id
            RemoteCallError: Any other failure
        """
        logger.info("Fetching metadata for %s", file_id)
        return self.client.get_metadata(file_id, fields)

    def stream(
        self,
        file_id: str,
        sink: BinaryIO,
        on_start: Optional[Callable[[FileMetadata], None]] = None,
    ) -> StreamResult:
        """
        Stream a file's content into `sink`.

        The display name is fetched first and the download is opened before
        `on_start(metadata)` runs, so the caller can still answer with an
        error status if either fails, and can label the response (see
        download_headers) before the first byte is written.

        Args:
            file_id: Google Drive file ID
            sink: Anything with write(bytes)
            on_start: Called once with the file's metadata just before streaming

        Returns:
            StreamResult with the number of bytes written

        Raises:
            NotFoundError: Unknown file id (nothing written)
            RemoteCallError: Drive refused the request (nothing written)
            TransferError: The stream broke after it started; bytes already
                written to the sink stay written
        """
        meta = self.client.get_metadata(file_id, STREAM_FIELDS)
        logger.info("Downloading %s (%s)", meta.name, file_id)
        result = StreamResult(file_id=file_id, name=meta.name)
        started = time.monotonic()

        with self.client.open_media(file_id) as media:
            if on_start is not None:
                on_start(meta)
            try:
                for chunk in media.chunks():
                    try:
                        sink.write(chunk)
                    except Exception as e:
                        raise self._aborted(result, f"Write to sink failed: {e}") from e
                    result.bytes_written += len(chunk)
            except RemoteCallError as e:
                raise self._aborted(result, str(e)) from e

        logger.info(
            "Downloaded %s: %s in %.1fs",
            meta.name, format_size(result.bytes_written), time.monotonic() - started,
        )
        return result

    @staticmethod
    def _aborted(result: StreamResult, message: str) -> TransferError:
        logger.error(
            "Download of %s aborted after %s: %s",
            result.file_id, format_size(result.bytes_written), message,
        )
        return TransferError(result.file_id, result.bytes_written, message)

    def delete(self, file_id: str):
        """
        Delete a file. Success is the absence of an error.

        Raises:
            NotFoundError: Unknown file id
            RemoteCallError: Any other failure
        """
        logger.info("Deleting %s", file_id)
        self.client.delete(file_id)
        logger.info("Deleted %s", file_id)
