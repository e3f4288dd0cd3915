"""
Error taxonomy for Drive Gateway.

Everything raised by the gateway core derives from GatewayError so the
HTTP/CLI layer can catch one type and map it to a response.
"""

from typing import Optional


class GatewayError(Exception):
    """Base class for all gateway errors."""


class ConfigurationError(GatewayError):
    """Client secrets or settings are missing or malformed. Not retryable."""


class AuthorizationError(GatewayError):
    """The interactive exchange or a token refresh failed."""


class RemoteCallError(GatewayError):
    """A call to Google Drive failed (network error or error status)."""

    def __init__(self, status: Optional[int], message: str):
        super().__init__(message if status is None else f"HTTP {status}: {message}")
        self.status = status
        self.message = message


class NotFoundError(RemoteCallError):
    """Drive reports the file or folder id as unknown."""

    def __init__(self, message: str):
        super().__init__(404, message)


class TransferError(GatewayError):
    """A byte stream broke after it had started."""

    def __init__(self, file_id: str, bytes_written: int, message: str):
        super().__init__(f"{message} (file_id={file_id}, {bytes_written} bytes sent)")
        self.file_id = file_id
        self.bytes_written = bytes_written
