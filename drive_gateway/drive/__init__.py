"""
Google Drive interaction module.

Handles authentication, the token store and the API client.
"""

from .auth import OAuthManager, TokenStore
from .client import DriveClient, DriveClientConfig, MediaStream
from .models import FileEntry, FileMetadata, FolderListing

__all__ = [
    "OAuthManager",
    "TokenStore",
    "DriveClient",
    "DriveClientConfig",
    "MediaStream",
    "FileEntry",
    "FileMetadata",
    "FolderListing",
]
