"""Box account: authorization state and entry point to the folder tree."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from boxtree.errors import InvalidInput, NotAuthorized, UnknownAttribute
from boxtree.models.folder import DEFAULT_PAGE_SIZE, Folder
from boxtree.models.item import FIELD_ID, File, Item

if TYPE_CHECKING:
    from boxtree.api.transport import Transport

logger = logging.getLogger(__name__)

ROOT_FOLDER_ID = "0"

# Keys accepted by authorize() when given a mapping
AUTH_KEYS = ("access_code", "auth_token")


class Account:
    """A Box account reached through a Transport.

    The account is authorized once its info has been fetched successfully.
    Folder and file handles it hands out are lazy: nothing is requested until
    one of their attributes is read.
    """

    def __init__(self, api: Transport, page_size: int = DEFAULT_PAGE_SIZE) -> None:
        """Initialise the account.

        Args:
            api: Transport used for every remote call.
            page_size: Listing page size for every folder reached through the
                account, including folders found in listings and parents.
        """
        self.api = api
        self.page_size = page_size
        self._info: dict[str, Any] | None = None
        self._root: Folder | None = None

    @property
    def authorized(self) -> bool:
        return self._info is not None

    def authorize(self, details: str | Mapping[str, Any] | None = None) -> bool:
        """Authorize the account with an existing token.

        Args:
            details: A token string, or a mapping holding it under
                "access_code" or "auth_token". None only reports the current
                state.

        Returns:
            Whether the account is authorized.
        """
        token: str | None = None
        if isinstance(details, Mapping):
            for key in AUTH_KEYS:
                if details.get(key):
                    token = details[key]
                    break
        elif details:
            token = details

        if token and self._authorize_token(token):
            return True
        return self.authorized

    def info(self, refresh: bool = False) -> dict[str, Any] | None:
        """Return the account details, fetching them if needed.

        Args:
            refresh: Ignore the cached details.

        Returns:
            The account details, or None if the account is not authorized.
        """
        if self._info is not None and not refresh:
            return self._info

        # A failed refresh leaves the account unauthorized, not stale.
        self._info = None
        try:
            self._info = dict(self.api.get_account_info())
        except (NotAuthorized, InvalidInput) as exc:
            logger.warning(
                "[info] account info unavailable; status:%s;code:%s",
                exc.status_code,
                exc.code,
            )
            return None
        return self._info

    def get(self, name: str) -> Any:
        """Return a field of the cached account details (e.g. "login").

        Raises:
            UnknownAttribute: If the account is not authorized or has no such field.
        """
        if self._info is None or name not in self._info:
            raise UnknownAttribute(type(self).__name__, name)
        return self._info[name]

    def set_access_token(self, details: str | None = None) -> None:
        """Use a new access token, or forget the account details when None."""
        if details:
            self.api.set_access_token(details)
        else:
            self._info = None

    @property
    def root(self) -> Folder:
        """The account's root folder, created on first use."""
        if self._root is None:
            self._root = self.folder(ROOT_FOLDER_ID)
        return self._root

    def folder(self, folder_id: str) -> Folder:
        """Return a folder handle by id.

        The handle does not know its parent, and is returned whether or not
        the folder exists; reading its attributes fails if it does not. Use
        ``root.find(type="folder", id=folder_id, recursive=True)`` when the
        tree above it is needed.
        """
        return Folder(self.api, {FIELD_ID: str(folder_id)}, page_size=self.page_size)

    def file(self, file_id: str) -> File:
        """Return a file handle by id. Same caveats as :meth:`folder`."""
        return File(self.api, {FIELD_ID: str(file_id)}, page_size=self.page_size)

    def item(self, item_id: str) -> Item:
        return Item(self.api, {FIELD_ID: str(item_id)}, page_size=self.page_size)

    def _authorize_token(self, token: str) -> bool:
        self.api.set_access_token(token)
        self.info(refresh=True)
        logger.info("[authorize] token authorization finished; authorized:%s", self.authorized)
        return self.authorized
