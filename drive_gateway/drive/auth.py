"""
OAuth authentication for Drive Gateway.

Handles the Google OAuth 2.0 authorization-code flow and the single stored
refresh token that keeps the gateway signed in between restarts.
"""

import json
import logging
import os
import tempfile
import threading
from pathlib import Path
from typing import Optional

import requests
from google.auth import exceptions as google_auth_exceptions
from google.auth.transport.requests import Request
from google.oauth2.credentials import Credentials
from google_auth_oauthlib.flow import InstalledAppFlow

from ..core.constants import DEFAULT_CALLBACK_PORT, DEFAULT_USER_ID, DRIVE_SCOPES
from ..errors import AuthorizationError, ConfigurationError

logger = logging.getLogger(__name__)


class TokenStore:
    """
    Persists the gateway's one OAuth credential as JSON on disk.

    The file is keyed by a fixed user id (`<token_dir>/<user_id>.json`) and
    holds the output of `Credentials.to_json()`: access token, expiry,
    refresh token and the client id/secret needed to refresh.
    """

    def __init__(self, token_dir: Path, user_id: str = DEFAULT_USER_ID):
        self.token_dir = Path(token_dir)
        self.user_id = user_id

    @property
    def path(self) -> Path:
        return self.token_dir / f"{self.user_id}.json"

    def exists(self) -> bool:
        return self.path.exists()

    def load(self, scopes: Optional[list[str]] = None) -> Optional[Credentials]:
        """
        Load the stored credential.

        Returns:
            Credentials, or None if there is no token or it cannot be parsed
        """
        if not self.path.exists():
            return None
        try:
            with open(self.path) as f:
                info = json.load(f)
            return Credentials.from_authorized_user_info(info, scopes)
        except (json.JSONDecodeError, OSError, ValueError) as e:
            logger.warning("Ignoring unreadable token file %s: %s", self.path, e)
            return None

    def save(self, creds: Credentials):
        """Write the credential atomically, readable only by the owner."""
        self.token_dir.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=self.token_dir, prefix=f".{self.user_id}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w") as f:
                f.write(creds.to_json())
            os.chmod(tmp_name, 0o600)
            os.replace(tmp_name, self.path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def delete(self):
        """Remove the stored token (explicit sign-out only)."""
        self.path.unlink(missing_ok=True)


class OAuthManager:
    """
    Hands out a valid Drive credential, refreshing or authorizing as needed.

    The interactive browser flow only runs when `interactive` is set (the
    one-time setup phase) or via `authorize()`. On the request-serving path
    a missing token fails closed with ConfigurationError.

    All load/refresh/persist work happens under one lock: the gateway has a
    single identity, so at most one refresh is in flight and concurrent
    callers see either the old or the new credential, never a half-written one.
    """

    def __init__(
        self,
        store: TokenStore,
        credentials_path: Optional[Path] = None,
        scopes: Optional[list[str]] = None,
        callback_port: int = DEFAULT_CALLBACK_PORT,
        interactive: bool = False,
        open_browser: bool = True,
        flow_timeout: Optional[float] = 300,
        session: Optional[requests.Session] = None,
    ):
        """
        Initialize OAuth manager.

        Args:
            store: Where the refresh token lives
            credentials_path: OAuth client secrets JSON (needed only for the browser flow)
            scopes: OAuth scopes (default: full Drive access)
            callback_port: Fixed local port for the redirect listener
            interactive: Allow get_credentials() to start the browser flow
            open_browser: Open the consent page automatically
            flow_timeout: Seconds to wait for the browser callback
            session: HTTP session used for token refreshes
        """
        self.store = store
        self.credentials_path = Path(credentials_path) if credentials_path else None
        self.scopes = list(scopes or DRIVE_SCOPES)
        self.callback_port = callback_port
        self.interactive = interactive
        self.open_browser = open_browser
        self.flow_timeout = flow_timeout
        self._session = session
        self._credentials: Optional[Credentials] = None
        self._token_revoked = False
        self._lock = threading.Lock()

    @property
    def has_token(self) -> bool:
        """Check if we have a saved token."""
        return self.store.exists()

    def get_credentials(self) -> Credentials:
        """
        Get a credential whose access token is currently valid.

        Raises:
            ConfigurationError: No stored token and not interactive, or bad client secrets
            AuthorizationError: Refresh rejected or the browser flow failed
        """
        with self._lock:
            return self._ensure_credentials(self.interactive)

    def authorize(self) -> Credentials:
        """Setup phase: make sure a stored credential exists, running the browser flow if needed."""
        with self._lock:
            return self._ensure_credentials(interactive=True)

    def get_token(self) -> str:
        """Get the current access token string."""
        return self.get_credentials().token

    def clear_token(self):
        """Remove saved token (force re-authentication)."""
        with self._lock:
            self.store.delete()
            self._credentials = None
            self._token_revoked = False
            logger.info("Removed stored token %s", self.store.path)

    def _ensure_credentials(self, interactive: bool) -> Credentials:
        creds = self._credentials
        if creds is None and not self._token_revoked:
            creds = self.store.load(self.scopes)
            if creds is not None:
                logger.debug("Loaded stored token for %r", self.store.user_id)

        if creds is not None and not creds.valid:
            creds = self._refresh(creds, interactive)

        if creds is None:
            if not interactive:
                if self._token_revoked:
                    raise AuthorizationError(
                        "Stored Drive token was revoked; run the auth setup again"
                    )
                raise ConfigurationError(
                    f"No stored Drive token at {self.store.path}; run the auth setup first"
                )
            creds = self._run_flow()
            self.store.save(creds)
            self._token_revoked = False
            logger.info("Authorization complete, token saved to %s", self.store.path)

        self._credentials = creds
        return creds

    def _refresh(self, creds: Credentials, interactive: bool) -> Optional[Credentials]:
        """Refresh an expired credential; None means the stored token is dead."""
        if not creds.refresh_token:
            logger.warning("Stored token has no refresh token")
            self._mark_revoked()
            return None

        logger.info("Access token expired, refreshing")
        try:
            creds.refresh(Request(session=self._session))
        except google_auth_exceptions.RefreshError as e:
            logger.error("Token refresh rejected: %s", e)
            self._mark_revoked()
            if interactive:
                return None
            raise AuthorizationError(f"Token refresh rejected: {e}") from e
        except google_auth_exceptions.TransportError as e:
            raise AuthorizationError(f"Token refresh failed: {e}") from e

        self.store.save(creds)
        logger.info("Token refreshed and saved")
        return creds

    def _mark_revoked(self):
        # The file stays on disk; it is only ignored for this process
        self._credentials = None
        self._token_revoked = True

    def _load_client_config(self) -> dict:
        """Read and validate the OAuth client secrets file."""
        if self.credentials_path is None:
            raise ConfigurationError("No OAuth client secrets file configured")
        try:
            with open(self.credentials_path) as f:
                config = json.load(f)
        except FileNotFoundError as e:
            raise ConfigurationError(f"OAuth client secrets not found: {self.credentials_path}") from e
        except (json.JSONDecodeError, OSError) as e:
            raise ConfigurationError(f"Could not read OAuth client secrets {self.credentials_path}: {e}") from e

        section = None
        if isinstance(config, dict):
            section = config.get("installed") or config.get("web")
        if not isinstance(section, dict):
            raise ConfigurationError(
                f"{self.credentials_path} is not an OAuth client secrets file "
                "(expected an 'installed' or 'web' section)"
            )
        missing = [k for k in ("client_id", "client_secret", "auth_uri", "token_uri") if not section.get(k)]
        if missing:
            raise ConfigurationError(
                f"{self.credentials_path} is missing {', '.join(missing)}"
            )
        return config

    def _run_flow(self) -> Credentials:
        """Run the browser consent flow with a local callback listener."""
        client_config = self._load_client_config()
        flow = InstalledAppFlow.from_client_config(client_config, self.scopes)
        logger.info("Waiting for browser authorization on http://localhost:%d/", self.callback_port)
        try:
            creds = flow.run_local_server(
                port=self.callback_port,
                open_browser=self.open_browser,
                timeout_seconds=self.flow_timeout,
                access_type="offline",
                prompt="consent",
            )
        except Exception as e:
            raise AuthorizationError(f"Browser authorization did not complete: {e}") from e

        if creds is None or not creds.refresh_token:
            raise AuthorizationError("Authorization server did not issue a refresh token")
        return creds
