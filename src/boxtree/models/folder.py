"""Box folders: paginated listing, search and path resolution."""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from typing import TYPE_CHECKING, Any

from boxtree.errors import BoxError, NameTaken
from boxtree.models.item import (
    FIELD_CHILDREN,
    FIELD_ENTRIES,
    FIELD_ITEM_COLLECTION,
    FIELD_NAME,
    FIELD_TOTAL_COUNT,
    FIELD_TYPE,
    TYPE_FOLDER,
    Discussion,
    File,
    Item,
)
from boxtree.models.naming import name_with_current_date

if TYPE_CHECKING:
    from boxtree.api.transport import Transport

logger = logging.getLogger(__name__)

# Largest page the API returns for a folder listing
DEFAULT_PAGE_SIZE = 1000

FIELD_FOLDER_ID = "folder_id"
FIELD_DISCUSSIONS = "discussions"

# Criteria key that selects search recursion rather than an attribute
RECURSIVE = "recursive"


class Folder(Item):
    """A folder stored on Box.

    Children are fetched with the folder's info, across as many pages as the
    listing needs, and exposed as a single ordered list.
    """

    type_tag = TYPE_FOLDER

    def __init__(
        self,
        api: Transport,
        info: Mapping[str, Any] | None = None,
        page_size: int = DEFAULT_PAGE_SIZE,
    ) -> None:
        super().__init__(api, info, page_size=page_size)
        self.page_size = page_size

    @property
    def id(self) -> str:
        # Older responses identify folders by folder_id only.
        item_id = super().id
        if item_id is None:
            return self._store.get(FIELD_FOLDER_ID)  # type: ignore[no-any-return]
        return item_id

    @property
    def children(self) -> list[Item | None]:
        return self.get(FIELD_CHILDREN)  # type: ignore[no-any-return]

    @property
    def files(self) -> list[File]:
        return [child for child in self.children if child is not None and type(child) is File]

    @property
    def folders(self) -> list[Folder]:
        return [child for child in self.children if child is not None and type(child) is Folder]

    def info(
        self,
        refresh: bool = False,
        limit: int | None = None,
        offset: int | None = None,
    ) -> Folder:
        """Fetch this folder's info and children unless already fetched.

        Args:
            refresh: Fetch again even if the info is cached.
            limit: Fetch a single page of children of this size instead of
                the whole listing.
            offset: Offset of that single page.

        Returns:
            self
        """
        if self._cached and not refresh:
            return self

        self._cached = True
        self._store.merge(self._fetch_info(limit, offset))
        return self

    def item_collection(self, limit: int = 100, offset: int = 0) -> list[Item | None]:
        """Fetch one page of children and cache it as this folder's children.

        Args:
            limit: Maximum number of entries to fetch.
            offset: Index of the first entry to fetch.

        Returns:
            The children on that page.
        """
        response = self.api.get_folder_items(self.id, limit=limit, offset=offset)
        self._store.merge({FIELD_ITEM_COLLECTION: response})
        return self.children

    def update(self, name: str | None = None, parent: Item | None = None) -> Folder:
        """Rename and/or move this folder.

        Returns:
            A new Folder built from the API response.
        """
        return self._update_item(name, parent)  # type: ignore[no-any-return]

    def delete(self, recursive: bool = False) -> bool:
        """Delete this folder, including its contents if ``recursive``."""
        self.api.delete_item(TYPE_FOLDER, self.id, recursive=recursive)
        logger.info("[delete] deleted folder; id:%s;recursive:%s", self.id, recursive)
        return True

    def create_folder(self, name: str) -> Folder:
        """Create a sub-folder.

        Raises:
            NameTaken: If this folder already holds an item with that name.
        """
        response = self.api.create_folder(self.id, name)
        logger.info("[create_folder] created folder; parent_id:%s;name:%s", self.id, name)
        return Folder(self.api, response, page_size=self.page_size)

    def create_folder_with_unique_name(
        self,
        name: str,
        on_rename: Callable[[], Any] | None = None,
    ) -> Folder:
        """Create a sub-folder, appending the current date if the name is taken.

        Args:
            name: Preferred folder name.
            on_rename: Called once after the dated name was used.

        Returns:
            The new folder.
        """
        try:
            return self.create_folder(name)
        except NameTaken:
            unique_name = name_with_current_date(name, is_folder=True)
            logger.info(
                "[create_folder_with_unique_name] name taken, retrying; parent_id:%s;name:%s",
                self.id,
                unique_name,
            )

        folder = self.create_folder(unique_name)
        if on_rename is not None:
            on_rename()
        return folder

    def upload_file(self, name: str, content: bytes) -> File:
        """Upload a new file into this folder."""
        response = self.api.upload_file(self.id, name, content)
        logger.info(
            "[upload_file] uploaded file; parent_id:%s;name:%s;size:%d",
            self.id,
            name,
            len(content),
        )
        return File(self.api, response[FIELD_ENTRIES][0], page_size=self.page_size)

    def create_discussion(self, name: str) -> Discussion:
        response = self.api.create_discussion(self.id, name)
        return Discussion(self.api, response, page_size=self.page_size)

    def discussions(self) -> list[Discussion]:
        response = self.api.get_folder_discussions(self.id)
        return [
            Discussion(self.api, discussion, page_size=self.page_size)
            for discussion in response.get(FIELD_DISCUSSIONS, [])
        ]

    def share(self, **params: Any) -> Folder:
        """Create or update this folder's shared link.

        Params are passed through to the API, e.g. ``access="open"``,
        ``unshared_at="2026-01-01"`` or
        ``permissions={"can_download": True}``.
        """
        self._store.merge(self.api.share_item(TYPE_FOLDER, self.id, params))
        return self

    def unshare(self) -> Folder:
        """Remove this folder's shared link."""
        self._store.merge(self.api.share_item(TYPE_FOLDER, self.id, None))
        return self

    def collaborations(self) -> list[dict[str, Any]]:
        response = self.api.get_folder_collaborations(self.id)
        return response.get(FIELD_ENTRIES, [])  # type: ignore[no-any-return]

    def name_with_current_date(self) -> str:
        return name_with_current_date(self.name, is_folder=True)

    def find(self, criteria: Mapping[str, Any] | None = None, **kwargs: Any) -> list[Item]:
        """Search this folder's children for items matching every criterion.

        Each criterion compares an expected value with the same-named
        property or attribute of a child; ``type`` compares against the
        child's type tag. A criterion whose attribute cannot be read counts as
        not matching.

        Args:
            criteria: Mapping of attribute name to expected value.
            **kwargs: More criteria. ``recursive=True`` also searches every
                sub-folder, depth first.

        Returns:
            Matching items, this folder's children before sub-folder matches.

        Example:
            >>> folder.find(type="file", sha1="abcdefg", recursive=True)
        """
        merged = {**(criteria or {}), **kwargs}
        recursive = bool(merged.pop(RECURSIVE, False))
        return self._find(merged, recursive)

    def at(self, target_path: str) -> Item | None:
        """Return the item at a unix-style path, or None if there is none.

        Paths starting with "/" are resolved from the root folder, others from
        this folder. "." is the current folder and ".." its parent. A trailing
        "/" requires the result to be a folder.

        Example:
            >>> folder.at("../other/folder")
        """
        current: Item | None = self

        if target_path.startswith("/"):
            while current is not None and current.parent is not None:
                current = current.parent

        for target_name in target_path.split("/"):
            if current is None:
                break
            if target_name in ("", "."):
                continue
            if target_name == "..":
                current = current.parent
                continue
            if not _is_folder(current):
                return None
            matches = current.find({FIELD_NAME: target_name})  # type: ignore[attr-defined]
            current = matches[0] if matches else None

        if current is not None and target_path.endswith("/") and not _is_folder(current):
            current = self._sibling_folder(current)

        return current

    # ------------------------------------------------------------------
    # Protected helpers
    # ------------------------------------------------------------------

    def _fetch_info(
        self,
        limit: int | None = None,
        offset: int | None = None,
    ) -> Mapping[str, Any]:
        """Fetch this folder's info, gathering every page of its children.

        With an explicit limit or offset only that page is fetched.
        """
        if limit is not None or offset is not None:
            return self.api.get_item_info(TYPE_FOLDER, self.id, limit=limit, offset=offset)

        page_size = self.page_size
        response = dict(
            self.api.get_item_info(TYPE_FOLDER, self.id, limit=page_size, offset=0)
        )
        collection = response.get(FIELD_ITEM_COLLECTION)
        if not isinstance(collection, Mapping):
            return response

        entries = list(collection.get(FIELD_ENTRIES, []))
        total_count = collection.get(FIELD_TOTAL_COUNT, len(entries))
        offset = 0
        while len(entries) < total_count:
            offset += page_size
            logger.debug(
                "[_fetch_info] fetching next page; id:%s;offset:%d;total_count:%d",
                self.id,
                offset,
                total_count,
            )
            page = self.api.get_folder_items(self.id, limit=page_size, offset=offset)
            page_entries = page.get(FIELD_ENTRIES, [])
            if not page_entries:
                logger.warning(
                    "[_fetch_info] listing ended early; id:%s;received:%d;total_count:%d",
                    self.id,
                    len(entries),
                    total_count,
                )
                break
            entries.extend(page_entries)

        response[FIELD_ITEM_COLLECTION] = {**collection, FIELD_ENTRIES: entries}
        logger.debug("[_fetch_info] fetched folder info; id:%s;children:%d", self.id, len(entries))
        return response

    def _find(self, criteria: Mapping[str, Any], recursive: bool) -> list[Item]:
        matches = [
            child
            for child in self.children
            if isinstance(child, Item) and _matches(child, criteria)
        ]

        if recursive:
            for folder in self.folders:
                matches.extend(folder._find(criteria, recursive))

        return matches

    def _sibling_folder(self, candidate: Item) -> Item | None:
        """Return the folder next to ``candidate`` that has the same name."""
        try:
            container = candidate.parent
            name = candidate.name
        except (BoxError, AttributeError):
            return None
        if not isinstance(container, Folder):
            return None
        matches = container.find({FIELD_TYPE: TYPE_FOLDER, FIELD_NAME: name})
        return matches[0] if matches else None


def _is_folder(item: Item) -> bool:
    try:
        return item.item_type == TYPE_FOLDER
    except (BoxError, AttributeError):
        return False


def _matches(item: Item, criteria: Mapping[str, Any]) -> bool:
    return all(_criterion_matches(item, key, expected) for key, expected in criteria.items())


def _criterion_matches(item: Item, key: str, expected: Any) -> bool:
    try:
        if key == FIELD_TYPE:
            return bool(expected == item.item_type)
        if isinstance(getattr(type(item), key, None), property):
            return bool(expected == getattr(item, key))
        return bool(expected == item.get(key))
    except Exception:
        logger.debug("[find] criterion not readable; id:%s;key:%s", item.id, key, exc_info=True)
        return False

