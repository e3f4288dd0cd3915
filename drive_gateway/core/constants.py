"""
Shared constants for Drive Gateway.
"""

# Full read/write access to the user's Drive files (list, download, delete)
DRIVE_SCOPES = ["https://www.googleapis.com/auth/drive"]

# The gateway serves exactly one authenticated identity
DEFAULT_USER_ID = "user"

# Local port for the one-time OAuth callback listener
DEFAULT_CALLBACK_PORT = 8888

# Drive v3 endpoints
API_BASE = "https://www.googleapis.com/drive/v3"
API_FILES = f"{API_BASE}/files"

# Fields requested when listing a folder
LIST_FIELDS = "nextPageToken, files(id, name)"

# Fields requested for the metadata view
DEFAULT_METADATA_FIELDS = "id, name, mimeType, webViewLink, webContentLink"

# Streaming chunk size in bytes; bounds memory used by a download
DEFAULT_CHUNK_SIZE = 32768

DEFAULT_PAGE_SIZE = 1000
DEFAULT_TIMEOUT = 60
