"""
Service wiring for Drive Gateway.

Builds the credential provider, Drive client, lister and transfer once at
startup. Callers keep the returned GatewayServices and pass it to whatever
serves requests; there is no module-level client.
"""

import logging
from dataclasses import dataclass
from typing import Optional

import requests

from .config import GatewayConfig
from .drive.auth import OAuthManager, TokenStore
from .drive.client import DriveClient, DriveClientConfig
from .files.lister import FolderLister
from .files.transfer import FileTransfer

logger = logging.getLogger(__name__)


@dataclass
class GatewayServices:
    """Everything the request layer needs, constructed once per process."""
    auth: OAuthManager
    client: DriveClient
    lister: FolderLister
    transfer: FileTransfer


def create_auth(config: GatewayConfig, interactive: bool = False) -> OAuthManager:
    """Build the OAuth manager for the configured token store."""
    return OAuthManager(
        store=TokenStore(config.token_dir, config.user_id),
        credentials_path=config.credentials_path,
        callback_port=config.callback_port,
        interactive=interactive,
    )


def create_services(
    config: GatewayConfig,
    interactive: bool = False,
    session: Optional[requests.Session] = None,
) -> GatewayServices:
    """
    Construct the gateway's services.

    A credential is obtained up front so a missing or revoked token fails at
    startup rather than on the first request. With interactive=False (the
    serving path) a missing token raises ConfigurationError instead of
    opening a browser.

    Args:
        config: Resolved configuration
        interactive: Allow the one-time browser authorization
        session: HTTP session shared by the client (default: new session)

    Returns:
        GatewayServices
    """
    auth = create_auth(config, interactive=interactive)
    auth.get_credentials()

    client = DriveClient(
        auth,
        DriveClientConfig(
            timeout=config.timeout,
            chunk_size=config.chunk_size,
            page_size=config.page_size,
        ),
        session=session,
    )
    logger.info("Drive gateway ready (token: %s)", auth.store.path)
    return GatewayServices(
        auth=auth,
        client=client,
        lister=FolderLister(client),
        transfer=FileTransfer(client),
    )
