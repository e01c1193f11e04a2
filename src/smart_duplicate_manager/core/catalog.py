"""Media catalog collaborator interface and an in-memory implementation."""

import logging
from pathlib import Path
from typing import Protocol

from pydantic import BaseModel, Field

from .models import MediaItem

logger = logging.getLogger(__name__)

CATALOG_ITEM_TYPES = frozenset({"Movie", "Episode"})


class MediaCatalog(Protocol):
    """The narrow view of the media catalog the duplicate pipeline depends on."""

    def list_items(self, collection_id: str) -> list[MediaItem]:
        """Return movies and episodes found recursively under a collection."""
        ...

    def resolve_item(self, item_id: str) -> MediaItem | None:
        """Look up a single item, or None if it no longer exists."""
        ...

    def get_people(self, item: MediaItem) -> list[str]:
        """Return the names of the people (cast and crew) credited on an item."""
        ...


class CatalogExport(BaseModel):
    """On-disk shape of a catalog export: collection ID to its items."""

    collections: dict[str, list[MediaItem]] = Field(default_factory=dict)


class InMemoryCatalog:
    """Catalog backed by item snapshots held in memory."""

    def __init__(self, collections: dict[str, list[MediaItem]] | None = None):
        """
        Initialize the catalog.

        Args:
            collections: Mapping of collection ID to the items it contains
        """
        self._collections: dict[str, list[MediaItem]] = {}
        self._items: dict[str, MediaItem] = {}
        for collection_id, items in (collections or {}).items():
            self.add_collection(collection_id, items)

    @classmethod
    def from_json_file(cls, path: Path) -> "InMemoryCatalog":
        """
        Load a catalog export written as JSON.

        Args:
            path: Path to a file shaped like CatalogExport

        Returns:
            Catalog populated with the exported collections

        Raises:
            OSError: If the file cannot be read
            pydantic.ValidationError: If the export is malformed
        """
        export = CatalogExport.model_validate_json(path.read_text(encoding="utf-8"))
        catalog = cls(export.collections)
        logger.info(
            f"Loaded catalog from {path}: {len(export.collections)} collections, "
            f"{len(catalog._items)} items"
        )
        return catalog

    @property
    def collection_ids(self) -> list[str]:
        """IDs of every known collection."""
        return list(self._collections)

    def add_collection(self, collection_id: str, items: list[MediaItem]) -> None:
        """Register (or replace) a collection's items."""
        self._collections[collection_id] = list(items)
        for item in items:
            self._items[item.item_id] = item

    def remove_item(self, item_id: str) -> None:
        """Forget an item, as if it had been deleted from the catalog."""
        self._items.pop(item_id, None)
        for items in self._collections.values():
            items[:] = [item for item in items if item.item_id != item_id]

    def list_items(self, collection_id: str) -> list[MediaItem]:
        """Return the movies and episodes in a collection."""
        items = self._collections.get(collection_id)
        if items is None:
            logger.warning(f"Collection {collection_id} not found")
            return []
        return [item for item in items if item.item_type in CATALOG_ITEM_TYPES]

    def resolve_item(self, item_id: str) -> MediaItem | None:
        """Look up a single item by ID."""
        return self._items.get(item_id)

    def get_people(self, item: MediaItem) -> list[str]:
        """Return the people credited on an item."""
        return list(item.people)
