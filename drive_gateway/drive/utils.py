"""
Drive-related utilities for Drive Gateway.
"""

import re

FOLDER = "folder"
FILE = "file"

_FOLDER_URL = re.compile(r"drive\.google\.com/drive(?:/u/\d+)?/folders/([a-zA-Z0-9_-]+)")
_FILE_URL = re.compile(r"(?:drive|docs)\.google\.com/(?:file|document|spreadsheets|presentation)/d/([a-zA-Z0-9_-]+)")
_OPEN_URL = re.compile(r"drive\.google\.com/(?:open|uc)\?(?:.*&)?id=([a-zA-Z0-9_-]+)")
_RAW_ID = re.compile(r"^[a-zA-Z0-9_-]{10,}$")

# Drive aliases that are valid folder ids without looking like one
FOLDER_ALIASES = {"root"}


def parse_drive_id(url_or_id: str, kind: str = FILE) -> tuple[str | None, str | None]:
    """
    Extract a Google Drive file or folder ID from a link or raw ID.

    Supports formats:
    - https://drive.google.com/drive/folders/FOLDER_ID (optionally /u/N/, ?usp=sharing)
    - https://drive.google.com/file/d/FILE_ID/view
    - https://docs.google.com/document/d/FILE_ID/edit
    - https://drive.google.com/open?id=ID
    - Raw ID (alphanumeric with - and _), or "root" for folders

    Args:
        url_or_id: URL or ID string
        kind: FOLDER or FILE, which kind of link is acceptable

    Returns:
        Tuple of (id, error_message)
        - (id, None) if valid
        - (None, error_message) if invalid
    """
    if kind not in (FOLDER, FILE):
        raise ValueError(f"kind must be {FOLDER!r} or {FILE!r}, got {kind!r}")

    url_or_id = url_or_id.strip()

    folder_match = _FOLDER_URL.search(url_or_id)
    file_match = _FILE_URL.search(url_or_id)

    if kind == FOLDER:
        if file_match:
            return None, "That's a file link, not a folder link"
        if folder_match:
            return folder_match.group(1), None
        if url_or_id in FOLDER_ALIASES:
            return url_or_id, None
    else:
        if folder_match:
            return None, "That's a folder link, not a file link"
        if file_match:
            return file_match.group(1), None

    open_match = _OPEN_URL.search(url_or_id)
    if open_match:
        return open_match.group(1), None

    if _RAW_ID.match(url_or_id):
        return url_or_id, None

    if "google.com" in url_or_id:
        return None, "Unrecognized Google Drive URL format"

    return None, "Not a Google Drive link or ID"
