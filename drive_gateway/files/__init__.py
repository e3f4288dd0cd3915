"""
Folder listing and file transfer on top of the Drive client.
"""

from .lister import FolderLister, sort_by_name
from .transfer import FileTransfer, StreamResult, download_headers

__all__ = [
    "FolderLister",
    "sort_by_name",
    "FileTransfer",
    "StreamResult",
    "download_headers",
]
