"""
Configuration management for Drive Gateway.

Settings are resolved in three layers, later ones winning:
- Built-in defaults (see core.constants and core.paths)
- An optional JSON file (--config or DRIVE_GATEWAY_CONFIG)
- DRIVE_GATEWAY_* environment variables
"""

import json
import logging
import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Mapping, Optional

from .core.constants import (
    DEFAULT_CALLBACK_PORT,
    DEFAULT_CHUNK_SIZE,
    DEFAULT_PAGE_SIZE,
    DEFAULT_TIMEOUT,
    DEFAULT_USER_ID,
)
from .core.paths import get_credentials_path, get_token_dir
from .errors import ConfigurationError

logger = logging.getLogger(__name__)

ENV_PREFIX = "DRIVE_GATEWAY_"
CONFIG_ENV = f"{ENV_PREFIX}CONFIG"

# env suffix -> config field
_ENV_FIELDS = {
    "CREDENTIALS": "credentials_path",
    "TOKEN_DIR": "token_dir",
    "USER": "user_id",
    "CALLBACK_PORT": "callback_port",
    "TIMEOUT": "timeout",
    "CHUNK_SIZE": "chunk_size",
    "PAGE_SIZE": "page_size",
    "LOG_LEVEL": "log_level",
    "LOG_FILE": "log_file",
}

_INT_FIELDS = {"callback_port", "chunk_size", "page_size"}
_PATH_FIELDS = {"credentials_path", "token_dir", "log_file"}


@dataclass
class GatewayConfig:
    """Everything the gateway needs to authenticate and talk to Drive."""
    credentials_path: Path = field(default_factory=get_credentials_path)
    token_dir: Path = field(default_factory=get_token_dir)
    user_id: str = DEFAULT_USER_ID
    callback_port: int = DEFAULT_CALLBACK_PORT
    timeout: float = DEFAULT_TIMEOUT
    chunk_size: int = DEFAULT_CHUNK_SIZE
    page_size: int = DEFAULT_PAGE_SIZE
    log_level: str = "INFO"
    log_file: Optional[Path] = None

    def __post_init__(self):
        if self.chunk_size <= 0:
            raise ConfigurationError(f"chunk_size must be positive, got {self.chunk_size}")
        if self.page_size <= 0:
            raise ConfigurationError(f"page_size must be positive, got {self.page_size}")
        if not 0 < self.callback_port < 65536:
            raise ConfigurationError(f"callback_port out of range: {self.callback_port}")
        if self.timeout <= 0:
            raise ConfigurationError(f"timeout must be positive, got {self.timeout}")
        if not self.user_id:
            raise ConfigurationError("user_id must not be empty")

    @property
    def token_path(self) -> Path:
        """Path of the single stored token file."""
        return self.token_dir / f"{self.user_id}.json"

    def to_dict(self) -> dict:
        d = {
            "credentials_path": str(self.credentials_path),
            "token_dir": str(self.token_dir),
            "user_id": self.user_id,
            "callback_port": self.callback_port,
            "timeout": self.timeout,
            "chunk_size": self.chunk_size,
            "page_size": self.page_size,
            "log_level": self.log_level,
        }
        if self.log_file:
            d["log_file"] = str(self.log_file)
        return d

    @classmethod
    def from_dict(cls, data: Mapping, base: Optional["GatewayConfig"] = None) -> "GatewayConfig":
        """Build a config from a dict, filling gaps from `base` (or defaults)."""
        base = base or cls()
        known = set(base.to_dict()) | {"log_file"}
        unknown = set(data) - known
        if unknown:
            logger.warning("Ignoring unknown config keys: %s", ", ".join(sorted(unknown)))
        values = {k: _coerce(k, v) for k, v in data.items() if k in known}
        return replace(base, **values)

    @classmethod
    def load(cls, path: Optional[Path] = None, environ: Optional[Mapping[str, str]] = None) -> "GatewayConfig":
        """
        Resolve configuration from defaults, a JSON file and the environment.

        Args:
            path: JSON config file; falls back to $DRIVE_GATEWAY_CONFIG
            environ: Environment mapping (default: os.environ)

        Returns:
            GatewayConfig

        Raises:
            ConfigurationError: If the file is unreadable or a value is invalid
        """
        environ = os.environ if environ is None else environ
        config = cls()

        if path is None and environ.get(CONFIG_ENV):
            path = Path(environ[CONFIG_ENV])

        if path is not None:
            path = Path(path)
            try:
                with open(path) as f:
                    data = json.load(f)
            except (json.JSONDecodeError, OSError) as e:
                raise ConfigurationError(f"Could not load config file {path}: {e}") from e
            if not isinstance(data, dict):
                raise ConfigurationError(f"Config file {path} must contain a JSON object")
            config = cls.from_dict(data, base=config)

        overrides = {
            name: environ[ENV_PREFIX + suffix]
            for suffix, name in _ENV_FIELDS.items()
            if environ.get(ENV_PREFIX + suffix)
        }
        if overrides:
            config = cls.from_dict(overrides, base=config)

        return config


def _coerce(name: str, value):
    """Convert a raw JSON/env value to the field's type."""
    if value is None:
        return None
    try:
        if name in _INT_FIELDS:
            return int(value)
        if name == "timeout":
            return float(value)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"Invalid value for {name}: {value!r}") from e
    if name in _PATH_FIELDS:
        return Path(value).expanduser()
    return str(value)
