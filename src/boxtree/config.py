"""Application configuration loaded from environment variables."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass

from boxtree.api.client import (
    API_BASE_URL,
    DEFAULT_TIMEOUT_SECONDS,
    UPLOAD_BASE_URL,
    BoxApi,
    box_api_from_config,
)
from boxtree.api.token_store import (
    DEFAULT_TOKEN_BLOB,
    DEFAULT_TOKEN_CONTAINER,
    TokenStore,
    token_store_from_config,
)
from boxtree.models.account import Account
from boxtree.models.folder import DEFAULT_PAGE_SIZE

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AppConfig:
    """Centralized client configuration.

    Nothing is required: without a token the account starts unauthorized,
    and without a storage connection string tokens are not persisted.
    """

    access_token: str | None = None
    storage_connection_string: str | None = None

    # Domain constants — defaults provided, overridable via env
    api_base_url: str = API_BASE_URL
    upload_base_url: str = UPLOAD_BASE_URL
    page_size: int = DEFAULT_PAGE_SIZE
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    token_container: str = DEFAULT_TOKEN_CONTAINER
    token_blob: str = DEFAULT_TOKEN_BLOB


def load_config() -> AppConfig:
    """Construct an AppConfig from environment variables.

    Optional environment variables (with defaults):
        BOX_ACCESS_TOKEN: OAuth2 access token to authorize with.
        BOX_STORAGE_CONNECTION_STRING: Azure Storage connection string for token persistence.
        BOX_API_BASE_URL: Box API base URL (default: https://api.box.com/2.0).
        BOX_UPLOAD_BASE_URL: Box upload API base URL (default: https://upload.box.com/api/2.0).
        BOX_PAGE_SIZE: Folder listing page size (default: 1000).
        BOX_TIMEOUT_SECONDS: Per-request socket timeout (default: 30).
        BOX_TOKEN_CONTAINER: Blob container for the stored token.
        BOX_TOKEN_BLOB: Blob path for the stored token.

    Returns:
        Configured AppConfig instance.
    """
    return AppConfig(
        access_token=os.environ.get("BOX_ACCESS_TOKEN") or None,
        storage_connection_string=os.environ.get("BOX_STORAGE_CONNECTION_STRING") or None,
        api_base_url=os.environ.get("BOX_API_BASE_URL", API_BASE_URL),
        upload_base_url=os.environ.get("BOX_UPLOAD_BASE_URL", UPLOAD_BASE_URL),
        page_size=int(os.environ.get("BOX_PAGE_SIZE", str(DEFAULT_PAGE_SIZE))),
        timeout_seconds=float(os.environ.get("BOX_TIMEOUT_SECONDS", str(DEFAULT_TIMEOUT_SECONDS))),
        token_container=os.environ.get("BOX_TOKEN_CONTAINER", DEFAULT_TOKEN_CONTAINER),
        token_blob=os.environ.get("BOX_TOKEN_BLOB", DEFAULT_TOKEN_BLOB),
    )


def account_from_config(
    config: AppConfig,
    api: BoxApi | None = None,
    token_store: TokenStore | None = None,
) -> Account:
    """Construct an Account and authorize it from configuration.

    The configured token is tried first, then the stored one. A token that
    authorizes successfully is saved for the next run.

    Args:
        config: Application configuration instance.
        api: Transport to use instead of one built from the config.
        token_store: Token store to use instead of one built from the config.

    Returns:
        Account instance, authorized if any token worked.
    """
    api = api or box_api_from_config(config)
    token_store = token_store or token_store_from_config(config)
    account = Account(api, page_size=config.page_size)

    candidates = [config.access_token]
    if token_store is not None:
        candidates.append(token_store.get_token())

    for token in candidates:
        if token and account.authorize(token):
            if token_store is not None:
                token_store.save_token(token)
            logger.info("[account_from_config] account authorized")
            return account

    logger.warning("[account_from_config] no token authorized the account")
    return account
