"""
Command-line entry point for Drive Gateway.

`auth` is the one-time setup phase that may open a browser; every other
command runs non-interactively against the stored token, the same way the
request-serving path does.
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Optional

from . import __version__
from .app import create_auth, create_services
from .config import GatewayConfig
from .core.formatting import format_size, sanitize_filename
from .core.logging import setup_logging
from .drive.models import FileMetadata
from .drive.utils import FILE, FOLDER, parse_drive_id
from .errors import (
    AuthorizationError,
    ConfigurationError,
    GatewayError,
    NotFoundError,
    TransferError,
)

logger = logging.getLogger(__name__)

EXIT_ERROR = 1
EXIT_CONFIG = 2
EXIT_AUTH = 3
EXIT_NOT_FOUND = 4


class FileSink:
    """Binary sink that opens its target file only when the download starts."""

    def __init__(self):
        self.path: Optional[Path] = None
        self._file = None

    def open(self, path: Path):
        try:
            self._file = open(path, "wb")
        except OSError as e:
            raise ConfigurationError(f"Cannot write {path}: {e.strerror or e}") from e
        self.path = path

    def write(self, data: bytes) -> int:
        return self._file.write(data)

    def close(self):
        if self._file is not None:
            self._file.close()
            self._file = None


def _resolve_id(value: str, kind: str) -> str:
    resolved, error = parse_drive_id(value, kind)
    if error:
        raise ConfigurationError(f"{value!r}: {error}")
    return resolved


def cmd_auth(config: GatewayConfig, args) -> int:
    auth = create_auth(config, interactive=True)
    auth.authorize()
    print(f"Signed in. Token stored at {auth.store.path}")
    return 0


def cmd_logout(config: GatewayConfig, args) -> int:
    auth = create_auth(config)
    if not auth.has_token:
        print("No stored token.")
        return 0
    auth.clear_token()
    print(f"Removed {auth.store.path}")
    return 0


def cmd_list(config: GatewayConfig, args) -> int:
    folder_id = _resolve_id(args.folder, FOLDER)
    services = create_services(config)
    listing = services.lister.list_folder(folder_id)
    if args.json:
        print(json.dumps(listing.to_list(), indent=2, ensure_ascii=False))
    else:
        for entry in listing:
            print(f"{entry.id}\t{entry.name}")
    return 0


def cmd_meta(config: GatewayConfig, args) -> int:
    file_id = _resolve_id(args.file, FILE)
    services = create_services(config)
    meta = services.transfer.metadata(file_id)
    print(json.dumps(meta.to_dict(), indent=2, ensure_ascii=False))
    return 0


def cmd_download(config: GatewayConfig, args) -> int:
    file_id = _resolve_id(args.file, FILE)
    services = create_services(config)

    if args.output == "-":
        services.transfer.stream(file_id, sys.stdout.buffer)
        sys.stdout.buffer.flush()
        return 0

    target = Path(args.output) if args.output else Path.cwd()
    sink = FileSink()

    def on_start(meta: FileMetadata):
        path = target / sanitize_filename(meta.name) if target.is_dir() else target
        sink.open(path)

    try:
        result = services.transfer.stream(file_id, sink, on_start=on_start)
    except TransferError:
        sink.close()
        if sink.path is not None:
            sink.path.unlink(missing_ok=True)
        raise
    finally:
        sink.close()

    print(f"Saved {result.name} to {sink.path} ({format_size(result.bytes_written)})")
    return 0


def cmd_delete(config: GatewayConfig, args) -> int:
    file_id = _resolve_id(args.file, FILE)
    services = create_services(config)
    services.transfer.delete(file_id)
    print(f"File {file_id} deleted.")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="drive-gateway",
        description="Drive Gateway - list, inspect, download and delete Google Drive files",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--config", type=Path, help="JSON config file")
    parser.add_argument("--log-level", help="Console log level (default from config: INFO)")

    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("auth", help="Authorize with Google (opens a browser once)")
    p.set_defaults(func=cmd_auth)

    p = sub.add_parser("logout", help="Delete the stored token")
    p.set_defaults(func=cmd_logout)

    p = sub.add_parser("list", help="List a folder, sorted by name")
    p.add_argument("folder", help="Folder URL or ID ('root' for My Drive)")
    p.add_argument("--json", action="store_true", help="Print JSON instead of id<TAB>name lines")
    p.set_defaults(func=cmd_list)

    p = sub.add_parser("meta", help="Show a file's metadata")
    p.add_argument("file", help="File URL or ID")
    p.set_defaults(func=cmd_meta)

    p = sub.add_parser("download", help="Download a file")
    p.add_argument("file", help="File URL or ID")
    p.add_argument("-o", "--output", help="Output file or directory, '-' for stdout (default: current directory)")
    p.set_defaults(func=cmd_download)

    p = sub.add_parser("delete", help="Permanently delete a file")
    p.add_argument("file", help="File URL or ID")
    p.set_defaults(func=cmd_delete)

    return parser


def main(argv: Optional[list[str]] = None) -> int:
    """Entry point."""
    args = build_parser().parse_args(argv)

    try:
        config = GatewayConfig.load(args.config)
    except ConfigurationError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return EXIT_CONFIG

    setup_logging(args.log_level or config.log_level, config.log_file)

    try:
        return args.func(config, args)
    except ConfigurationError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return EXIT_CONFIG
    except AuthorizationError as e:
        print(f"Authorization failed: {e}", file=sys.stderr)
        return EXIT_AUTH
    except NotFoundError as e:
        print(f"Not found: {e}", file=sys.stderr)
        return EXIT_NOT_FOUND
    except GatewayError as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_ERROR
