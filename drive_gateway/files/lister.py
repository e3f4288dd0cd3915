"""
Folder listing for Drive Gateway.

Walks every result page of a folder and returns one sorted listing.
"""

import logging
from typing import Iterable, Optional, Protocol

from ..drive.models import FileEntry, FolderListing

logger = logging.getLogger(__name__)


class PageSource(Protocol):
    def list_page(self, folder_id: str, page_token: Optional[str] = None) -> tuple[list[FileEntry], Optional[str]]:
        ...


def sort_by_name(entries: Iterable[FileEntry]) -> list[FileEntry]:
    """
    Sort entries by name, case-sensitive.

    Plain code-point order ("Apple" < "banana" < "cherry", "Zed" < "apple");
    stable, so entries with equal names keep their page order.
    """
    return sorted(entries, key=lambda entry: entry.name)


class FolderLister:
    """
    Lists a Drive folder across all result pages.

    Pagination is sequential: each request needs the token from the previous
    one. The loop ends when Drive stops returning a continuation token; a
    provider that returned tokens forever would never end, and that contract
    is Drive's to keep.
    """

    def __init__(self, client: PageSource):
        self.client = client

    def list_folder(self, folder_id: str) -> FolderListing:
        """
        List all files and folders in a Drive folder, sorted by name.

        Any failing page aborts the whole listing; pages already fetched are
        discarded.

        Args:
            folder_id: Google Drive folder ID

        Returns:
            FolderListing (empty for an empty folder)
        """
        logger.info("Listing folder %s", folder_id)
        all_entries: list[FileEntry] = []
        page_token = None
        pages = 0

        while True:
            entries, page_token = self.client.list_page(folder_id, page_token)
            all_entries.extend(entries)
            pages += 1
            if not page_token:
                break

        listing = FolderListing(folder_id=folder_id, entries=tuple(sort_by_name(all_entries)))
        logger.info("Listed %d entries in folder %s (%d pages)", len(listing), folder_id, pages)
        return listing
