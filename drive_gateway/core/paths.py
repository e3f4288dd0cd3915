"""
Filesystem locations for Drive Gateway.

Credential files live next to the app (or next to the frozen executable),
the same way a source checkout keeps them at the repo root.
"""

import sys
from pathlib import Path


def get_app_dir() -> Path:
    """Get the directory where the app is located (for user-writable files)."""
    if getattr(sys, "frozen", False):
        return Path(sys.executable).parent
    return Path(__file__).resolve().parent.parent.parent


def get_credentials_path() -> Path:
    """Default location of the OAuth client secrets file."""
    return get_app_dir() / "credentials.json"


def get_token_dir() -> Path:
    """Default directory holding the stored refresh token."""
    return get_app_dir() / "tokens"
