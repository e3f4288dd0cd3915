"""
Logging setup for Drive Gateway.

Modules log through `logging.getLogger(__name__)`; the entry point calls
`setup_logging(...)` once at startup. Calling it again reconfigures.
"""

import logging
import logging.handlers
import sys
from pathlib import Path
from typing import Optional, Union

CONSOLE_FORMAT = "[%(levelname)s] %(name)s: %(message)s"
FILE_FORMAT = "%(asctime)s [%(levelname)s] %(name)s:%(funcName)s:%(lineno)d: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logging(
    level: Union[str, int] = "INFO",
    log_file: Optional[Path] = None,
    max_bytes: int = 5_000_000,
    backup_count: int = 3,
) -> None:
    """
    Configure root logging with a stderr handler and an optional rotating file.

    Args:
        level: Console level, name ("INFO") or number
        log_file: If given, also log everything at DEBUG to this file
        max_bytes: Rotation size for the log file
        backup_count: Rotated files to keep
    """
    if isinstance(level, str):
        level = getattr(logging, level.upper(), logging.INFO)

    root = logging.getLogger()
    for handler in root.handlers[:]:
        handler.close()
        root.removeHandler(handler)

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(level)
    console.setFormatter(logging.Formatter(CONSOLE_FORMAT))
    root.addHandler(console)
    root.setLevel(level)

    if log_file is not None:
        log_file = Path(log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            filename=log_file,
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding="utf-8",
        )
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt=DATE_FORMAT))
        root.addHandler(file_handler)
        root.setLevel(min(level, logging.DEBUG))

    # urllib3 is chatty at DEBUG (one line per connection)
    logging.getLogger("urllib3").setLevel(max(level, logging.INFO))
