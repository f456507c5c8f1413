"""Lazily-fetched Box items and the attribute cache that backs them."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator, Mapping
from dataclasses import dataclass
from functools import cache
from typing import TYPE_CHECKING, Any, ClassVar

from boxtree.errors import NameTaken, UnknownAttribute
from boxtree.models.naming import name_with_current_date

if TYPE_CHECKING:
    from boxtree.api.transport import Transport

logger = logging.getLogger(__name__)

# Box API JSON field names
FIELD_ID = "id"
FIELD_NAME = "name"
FIELD_TYPE = "type"
FIELD_PARENT = "parent"
FIELD_PARENT_FOLDER = "parent_folder"
FIELD_CHILDREN = "children"
FIELD_ITEM_COLLECTION = "item_collection"
FIELD_ENTRIES = "entries"
FIELD_TOTAL_COUNT = "total_count"

# Item type tags, as sent in the "type" field
TYPE_FILE = "file"
TYPE_FOLDER = "folder"
TYPE_COMMENT = "comment"
TYPE_DISCUSSION = "discussion"
TYPE_VERSION = "version"


@cache
def _item_classes() -> dict[str, type[Item]]:
    # Folder lives in its own module and imports this one.
    from boxtree.models.folder import Folder

    return {
        TYPE_FILE: File,
        TYPE_FOLDER: Folder,
        TYPE_COMMENT: Comment,
        TYPE_DISCUSSION: Discussion,
        TYPE_VERSION: Version,
    }


def item_class_for(type_tag: Any) -> type[Item] | None:
    """Return the Item subclass for a type tag, or None if it is not one we model."""
    if not isinstance(type_tag, str):
        return None
    return _item_classes().get(type_tag)


def materialize(api: Transport, value: Any, page_size: int | None = None) -> Any:
    """Turn raw nested maps carrying a known ``type`` into Item instances.

    Lists are converted element by element. The ``type`` key is consumed;
    maps with an unknown or missing type are returned unchanged. A
    ``page_size`` is handed to every item built, so folders reached through
    them list their children in pages of that size.
    """
    if isinstance(value, list):
        return [_materialize_one(api, element, page_size) for element in value]
    return _materialize_one(api, value, page_size)


def _materialize_one(api: Transport, value: Any, page_size: int | None) -> Any:
    if not isinstance(value, Mapping):
        return value
    item_class = item_class_for(value.get(FIELD_TYPE))
    if item_class is None:
        return value
    fields = {key: val for key, val in value.items() if key != FIELD_TYPE}
    if page_size is None:
        return item_class(api, fields)
    return item_class(api, fields, page_size=page_size)


class AttributeStore:
    """Per-item cache of remote attributes.

    Incoming maps are merged, never swapped in wholesale, so keys from an
    earlier fetch survive a later partial one. On the way in,
    ``item_collection`` becomes ``children`` (its entries list),
    ``parent_folder`` becomes ``parent``, and typed nested maps become Items.
    """

    def __init__(self, api: Transport, page_size: int | None = None) -> None:
        self._api = api
        self.page_size = page_size
        self._data: dict[str, Any] = {}

    def __contains__(self, key: object) -> bool:
        return key in self._data

    def __getitem__(self, key: str) -> Any:
        return self._data[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def get(self, key: str, default: Any = None) -> Any:
        return self._data.get(key, default)

    def as_dict(self) -> dict[str, Any]:
        """Return a shallow copy of the cached attributes."""
        return dict(self._data)

    def merge(self, info: Mapping[str, Any]) -> None:
        """Merge a raw response map into the cache."""
        incoming: dict[str, Any] = {}
        for key, value in info.items():
            key = str(key)
            if key == FIELD_ITEM_COLLECTION:
                key = FIELD_CHILDREN
                value = value.get(FIELD_ENTRIES, []) if isinstance(value, Mapping) else value
            elif key == FIELD_PARENT_FOLDER:
                key = FIELD_PARENT
            incoming[key] = materialize(self._api, value, self.page_size)
        self._data.update(incoming)


@dataclass(frozen=True)
class MoveResult:
    """Outcome of Item.change_parent.

    Attributes:
        item: The moved item, as returned by the API.
        renamed: True when the move only succeeded after renaming the item
            to avoid a name collision in the target folder.
    """

    item: Item
    renamed: bool = False


class Item:
    """A remote Box entity whose attributes are fetched on first use.

    Known fields are exposed as properties; any other remote field is read
    with :meth:`get`. Plain ``Item`` instances never fetch anything on their
    own; the concrete subclasses know which API call describes them.
    """

    type_tag: ClassVar[str | None] = None

    def __init__(
        self,
        api: Transport,
        info: Mapping[str, Any] | None = None,
        page_size: int | None = None,
    ) -> None:
        """Create an item handle.

        Args:
            api: Transport used for every remote call made by this item.
            info: Initial attributes, as returned by the API.
            page_size: Listing page size for folders found in this item's
                attributes; None leaves them at their default.
        """
        self.api = api
        self._store = AttributeStore(api, page_size)
        self._cached = False
        self._store.merge(info or {})

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Item):
            return NotImplemented
        return type(self) is type(other) and self.id == other.id

    def __hash__(self) -> int:
        return hash((type(self), self.id))

    def __repr__(self) -> str:
        name = self._store.get(FIELD_NAME)
        if name is None:
            return f"{type(self).__name__}(id={self.id!r})"
        return f"{type(self).__name__}(id={self.id!r}, name={name!r})"

    @property
    def data(self) -> dict[str, Any]:
        """A copy of the attributes cached so far."""
        return self._store.as_dict()

    @property
    def id(self) -> str:
        return self._store.get(FIELD_ID)  # type: ignore[no-any-return]

    @property
    def name(self) -> str:
        return self.get(FIELD_NAME)  # type: ignore[no-any-return]

    @property
    def parent(self) -> Item | None:
        """The containing folder, or None when the item has none (or none is known)."""
        try:
            return self.get(FIELD_PARENT)  # type: ignore[no-any-return]
        except UnknownAttribute:
            return None

    @property
    def item_type(self) -> str:
        """The type tag reported by the API, falling back to the class's own tag."""
        if FIELD_TYPE in self._store:
            return self._store[FIELD_TYPE]  # type: ignore[no-any-return]
        if self.type_tag is not None:
            return self.type_tag
        return self.get(FIELD_TYPE)  # type: ignore[no-any-return]

    def has(self, name: str) -> bool:
        """Return whether an attribute is cached, without fetching."""
        return name in self._store

    def get(self, name: str, refresh: bool = False) -> Any:
        """Return an attribute, fetching the item's info if it is not cached.

        Args:
            name: Remote field name (after renaming, e.g. "children").
            refresh: Ignore the cache and fetch again.

        Returns:
            The attribute value.

        Raises:
            UnknownAttribute: If the attribute is still absent after one fetch.
        """
        if not refresh and name in self._store:
            return self._store[name]

        self.info(refresh)

        if name in self._store:
            return self._store[name]
        raise UnknownAttribute(type(self).__name__, name)

    def info(self, refresh: bool = False) -> Item:
        """Fetch this item's info unless it was fetched already.

        Args:
            refresh: Fetch again even if the info is cached.

        Returns:
            self
        """
        if self._cached and not refresh:
            return self

        self._cached = True
        self._store.merge(self._fetch_info())
        return self

    def update(self, name: str | None = None, parent: Item | None = None) -> Item:
        """Rename and/or move this item. Only files and folders support it."""
        raise NotImplementedError(f"{type(self).__name__} cannot be updated")

    def change_parent(
        self,
        parent_id: str,
        force: bool = False,
        on_rename: Callable[[], Any] | None = None,
    ) -> MoveResult:
        """Move this item into another folder.

        Args:
            parent_id: Id of the destination folder.
            force: If the name is taken in the destination, retry once with
                the current date appended to the name.
            on_rename: Called once after a forced, renamed move succeeds.

        Returns:
            MoveResult with the moved item and whether it had to be renamed.

        Raises:
            NameTaken: If the name is taken and ``force`` is False.
        """
        parent = Item(self.api, {FIELD_ID: parent_id})
        try:
            return MoveResult(self.update(parent=parent))
        except NameTaken:
            if not force:
                raise

        new_name = self.name_with_current_date()
        logger.info(
            "[change_parent] name taken in destination, renaming; id:%s;parent_id:%s;name:%s",
            self.id,
            parent_id,
            new_name,
        )
        moved = self.update(name=new_name, parent=parent)
        if on_rename is not None:
            on_rename()
        return MoveResult(moved, renamed=True)

    def name_with_current_date(self) -> str:
        """This item's name with the current UTC date appended (see naming)."""
        return name_with_current_date(self.name)

    # ------------------------------------------------------------------
    # Protected helpers
    # ------------------------------------------------------------------

    def _fetch_info(self) -> Mapping[str, Any]:
        """Fetch this item's info from the API. Plain items know no endpoint."""
        return {}

    def _update_item(self, name: str | None, parent: Item | None) -> Any:
        """Send an update for this item and wrap the response in a new handle."""
        params: dict[str, Any] = {FIELD_NAME: name if name is not None else self.name}
        if parent is not None:
            params[FIELD_PARENT] = {FIELD_ID: parent.id}

        response = self.api.update_item(self.item_type, self.id, params)
        logger.info(
            "[update] updated item; type:%s;id:%s;fields:%s",
            self.item_type,
            self.id,
            ",".join(sorted(params)),
        )
        page_size = self._store.page_size
        if page_size is None:
            return type(self)(self.api, response)
        return type(self)(self.api, response, page_size=page_size)


class File(Item):
    """A file stored on Box."""

    type_tag = TYPE_FILE

    def update(self, name: str | None = None, parent: Item | None = None) -> File:
        """Rename and/or move this file.

        Returns:
            A new File built from the API response.
        """
        return self._update_item(name, parent)  # type: ignore[no-any-return]

    def delete(self) -> bool:
        self.api.delete_item(TYPE_FILE, self.id)
        logger.info("[delete] deleted file; id:%s", self.id)
        return True

    def _fetch_info(self) -> Mapping[str, Any]:
        logger.debug("[_fetch_info] fetching file info; id:%s", self.id)
        return self.api.get_item_info(TYPE_FILE, self.id)


class Comment(Item):
    """A comment on a file or discussion."""

    type_tag = TYPE_COMMENT


class Discussion(Item):
    """A discussion thread attached to a folder."""

    type_tag = TYPE_DISCUSSION


class Version(Item):
    """A previous version of a file."""

    type_tag = TYPE_VERSION
