"""Access token persistence in Azure Blob Storage."""

from __future__ import annotations

import contextlib
import logging
from typing import TYPE_CHECKING

from azure.core.exceptions import ResourceExistsError, ResourceNotFoundError
from azure.storage.blob import BlobServiceClient

if TYPE_CHECKING:
    from boxtree.config import AppConfig

logger = logging.getLogger(__name__)

DEFAULT_TOKEN_CONTAINER = "boxtree-state"
DEFAULT_TOKEN_BLOB = "auth-token/current.txt"


class TokenStore:
    """Keeps the last working access token so later runs can skip authorization."""

    def __init__(
        self,
        storage_connection_string: str,
        container: str = DEFAULT_TOKEN_CONTAINER,
        blob: str = DEFAULT_TOKEN_BLOB,
    ) -> None:
        """Initialise the token store.

        Args:
            storage_connection_string: Azure Storage connection string.
            container: Blob container name for token storage.
            blob: Blob path for the token file.
        """
        self._blob_service = BlobServiceClient.from_connection_string(storage_connection_string)
        self._container = container
        self._blob = blob

    def get_token(self) -> str | None:
        """Read the persisted token.

        Returns:
            The stored token, or None if none has been saved yet.
        """
        try:
            container_client = self._blob_service.get_container_client(self._container)
            blob_client = container_client.get_blob_client(self._blob)
            data = blob_client.download_blob().readall()
            return data.decode("utf-8")
        except ResourceNotFoundError:
            logger.info("[get_token] no stored token found; container:%s", self._container)
            return None

    def save_token(self, token: str) -> None:
        """Write the token, creating the container if needed."""
        container_client = self._blob_service.get_container_client(self._container)
        with contextlib.suppress(ResourceExistsError):
            container_client.create_container()
            logger.info("[save_token] created blob container; container:%s", self._container)

        blob_client = container_client.get_blob_client(self._blob)
        blob_client.upload_blob(token.encode("utf-8"), overwrite=True)
        logger.info("[save_token] saved token to blob storage")

    def clear_token(self) -> None:
        """Delete the stored token; a missing token is not an error."""
        container_client = self._blob_service.get_container_client(self._container)
        with contextlib.suppress(ResourceNotFoundError):
            container_client.get_blob_client(self._blob).delete_blob()
            logger.info("[clear_token] deleted stored token")


def token_store_from_config(config: AppConfig) -> TokenStore | None:
    """Construct a TokenStore from configuration, or None without a connection string."""
    if not config.storage_connection_string:
        return None
    return TokenStore(
        storage_connection_string=config.storage_connection_string,
        container=config.token_container,
        blob=config.token_blob,
    )
