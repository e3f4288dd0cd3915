#!/usr/bin/env python3
"""
Drive Gateway - list, inspect, download and delete Google Drive files.

Run `python gateway.py auth` once to sign in; the refresh token is stored
and reused by every later command.
"""

import sys

from drive_gateway.cli import main

if __name__ == "__main__":
    try:
        sys.exit(main())
    except KeyboardInterrupt:
        print("\n\nCancelled by user.")
        sys.exit(130)
