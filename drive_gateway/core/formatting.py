"""
Formatting and sanitization utilities for Drive Gateway.
"""

from urllib.parse import quote

# ============================================================================
# Filename sanitization
# ============================================================================

# Characters a local filesystem may reject, mapped to safe alternatives
ILLEGAL_CHAR_MAP = {
    "<": "-",
    ">": "-",
    ":": " -",
    '"': "'",
    "\\": "-",
    "/": "-",
    "|": "-",
    "?": "",
    "*": "",
}

# Control characters (0x00-0x1F) and DEL (0x7F)
CONTROL_CHARS = set(chr(i) for i in range(32)) | {chr(127)}

WINDOWS_RESERVED_NAMES = {
    "CON", "PRN", "AUX", "NUL",
    "COM1", "COM2", "COM3", "COM4", "COM5", "COM6", "COM7", "COM8", "COM9",
    "LPT1", "LPT2", "LPT3", "LPT4", "LPT5", "LPT6", "LPT7", "LPT8", "LPT9",
}


def sanitize_filename(filename: str) -> str:
    """
    Make a Drive file name safe to save locally on any platform.

    Drive allows "/" and ":" in names; a local file cannot have them.

    Args:
        filename: Drive display name (not a path)

    Returns:
        Sanitized filename, never empty
    """
    result = []
    for char in filename:
        if char in ILLEGAL_CHAR_MAP:
            result.append(ILLEGAL_CHAR_MAP[char])
        elif char in CONTROL_CHARS:
            result.append("_")
        else:
            result.append(char)
    filename = "".join(result).rstrip(". ")

    base_name = filename.upper().split(".")[0]
    if base_name in WINDOWS_RESERVED_NAMES:
        filename = "_" + filename

    return filename or "_"


def content_disposition(filename: str) -> str:
    """
    Build an attachment Content-Disposition value for a download.

    ASCII names go in a quoted `filename` parameter; anything else also gets
    an RFC 5987 `filename*` so browsers show the real name.
    """
    fallback = "".join(
        "_" if c in CONTROL_CHARS else c for c in filename
    ).replace("\\", "_").replace('"', "'")
    try:
        fallback.encode("ascii")
    except UnicodeEncodeError:
        ascii_name = fallback.encode("ascii", "replace").decode("ascii")
        return f"attachment; filename=\"{ascii_name}\"; filename*=UTF-8''{quote(filename, safe='')}"
    return f'attachment; filename="{fallback}"'


# ============================================================================
# Size formatting
# ============================================================================

def format_size(size_bytes: int) -> str:
    """Format bytes as human readable string."""
    for unit in ["B", "KB", "MB", "GB", "TB"]:
        if size_bytes < 1024:
            return f"{size_bytes:.1f} {unit}"
        size_bytes /= 1024
    return f"{size_bytes:.1f} PB"
