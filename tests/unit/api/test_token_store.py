"""Unit tests for api/token_store.py — token persistence in blob storage."""

from unittest.mock import MagicMock, patch

from azure.core.exceptions import ResourceExistsError, ResourceNotFoundError

from boxtree.api.token_store import TokenStore, token_store_from_config
from boxtree.config import AppConfig

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _make_store() -> tuple[TokenStore, MagicMock, MagicMock]:
    """Return (store, mock_container_client, mock_blob_client)."""
    mock_blob_service = MagicMock()
    mock_container = MagicMock()
    mock_blob = MagicMock()
    mock_blob_service.get_container_client.return_value = mock_container
    mock_container.get_blob_client.return_value = mock_blob

    with patch(
        "boxtree.api.token_store.BlobServiceClient.from_connection_string",
        return_value=mock_blob_service,
    ):
        store = TokenStore(
            storage_connection_string="DefaultEndpointsProtocol=https;...",
            container="boxtree-state",
            blob="auth-token/current.txt",
        )

    return store, mock_container, mock_blob


# ---------------------------------------------------------------------------
# get_token tests
# ---------------------------------------------------------------------------


class TestGetToken:
    def test_returns_none_when_blob_not_found(self) -> None:
        store, _, mock_blob = _make_store()
        mock_blob.download_blob.side_effect = ResourceNotFoundError("not found")

        assert store.get_token() is None

    def test_returns_stored_token(self) -> None:
        store, mock_container, mock_blob = _make_store()
        mock_blob.download_blob.return_value.readall.return_value = b"tok-abc-123"

        assert store.get_token() == "tok-abc-123"
        mock_container.get_blob_client.assert_called_with("auth-token/current.txt")


# ---------------------------------------------------------------------------
# save_token / clear_token tests
# ---------------------------------------------------------------------------


class TestSaveToken:
    def test_uploads_token_as_utf8_bytes(self) -> None:
        store, mock_container, mock_blob = _make_store()

        store.save_token("tok-xyz")

        mock_container.create_container.assert_called_once()
        mock_blob.upload_blob.assert_called_once_with(b"tok-xyz", overwrite=True)

    def test_existing_container_is_not_an_error(self) -> None:
        store, mock_container, mock_blob = _make_store()
        mock_container.create_container.side_effect = ResourceExistsError("exists")

        store.save_token("tok-xyz")

        mock_blob.upload_blob.assert_called_once()


class TestClearToken:
    def test_deletes_blob(self) -> None:
        store, _, mock_blob = _make_store()

        store.clear_token()

        mock_blob.delete_blob.assert_called_once()

    def test_missing_blob_is_not_an_error(self) -> None:
        store, _, mock_blob = _make_store()
        mock_blob.delete_blob.side_effect = ResourceNotFoundError("not found")

        store.clear_token()


# ---------------------------------------------------------------------------
# Factory tests
# ---------------------------------------------------------------------------


class TestTokenStoreFromConfig:
    def test_none_without_connection_string(self) -> None:
        assert token_store_from_config(AppConfig()) is None

    def test_uses_configured_container_and_blob(self) -> None:
        config = AppConfig(storage_connection_string="conn", token_container="c", token_blob="b")

        with patch("boxtree.api.token_store.BlobServiceClient.from_connection_string") as mock_from:
            store = token_store_from_config(config)

        assert store is not None
        mock_from.assert_called_once_with("conn")
