"""
Drive Gateway - list, inspect, download and delete Google Drive files.

The core behind a small HTTP gateway: OAuth credential lifecycle with a
persisted refresh token, paginated folder listing, streaming downloads.

Import from submodules directly:
    from drive_gateway.config import GatewayConfig
    from drive_gateway.app import create_services
    from drive_gateway.files import FolderLister, FileTransfer
"""

__version__ = "0.1.0"
