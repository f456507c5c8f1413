"""Contract between the item model and whatever talks to the Box API."""

from __future__ import annotations

from typing import Any, Protocol


class Transport(Protocol):
    """Named remote operations used by items, folders and accounts.

    Every method returns the decoded response body as a plain dict (or list)
    keyed by remote field name, or raises a ``BoxApiError`` subclass from
    ``boxtree.errors``. ``kind`` is the item type tag ("file" or "folder").
    """

    def set_access_token(self, token: str | None) -> None:
        """Use the given bearer token for subsequent requests."""
        raise NotImplementedError

    def get_account_info(self) -> dict[str, Any]:
        """Return the authorized user's account details."""
        raise NotImplementedError

    def get_item_info(
        self,
        kind: str,
        item_id: str,
        limit: int | None = None,
        offset: int | None = None,
    ) -> dict[str, Any]:
        """Return an item's info; folders include one page of item_collection."""
        raise NotImplementedError

    def get_folder_items(self, folder_id: str, limit: int, offset: int) -> dict[str, Any]:
        """Return one page of a folder listing: total_count and entries."""
        raise NotImplementedError

    def create_folder(self, parent_id: str, name: str) -> dict[str, Any]:
        """Create a sub-folder and return its info."""
        raise NotImplementedError

    def update_item(self, kind: str, item_id: str, params: dict[str, Any]) -> dict[str, Any]:
        """Rename or move an item and return its updated info."""
        raise NotImplementedError

    def delete_item(self, kind: str, item_id: str, recursive: bool = False) -> None:
        """Delete an item; folders may be deleted with their contents."""
        raise NotImplementedError

    def upload_file(self, parent_id: str, name: str, content: bytes) -> dict[str, Any]:
        """Upload a new file and return the upload response (with entries)."""
        raise NotImplementedError

    def create_discussion(self, parent_id: str, name: str) -> dict[str, Any]:
        """Start a discussion on a folder."""
        raise NotImplementedError

    def get_folder_discussions(self, folder_id: str) -> dict[str, Any]:
        """Return the discussions attached to a folder."""
        raise NotImplementedError

    def share_item(
        self, kind: str, item_id: str, params: dict[str, Any] | None
    ) -> dict[str, Any]:
        """Create or update a shared link; None removes it."""
        raise NotImplementedError

    def get_folder_collaborations(self, folder_id: str) -> dict[str, Any]:
        """Return the collaborations on a folder."""
        raise NotImplementedError
