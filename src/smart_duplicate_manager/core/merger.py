"""Consolidation of descriptive metadata across the versions of a group."""

import logging
from collections.abc import Iterable

from .catalog import MediaCatalog
from .models import DuplicateGroup, MediaItem, MergedMetadata, as_utc
from .results import MergeResult, MergeStatus

logger = logging.getLogger(__name__)


def _case_insensitive_union(values: Iterable[str]) -> list[str]:
    """Unique non-empty values, first spelling wins, first-seen order kept."""
    seen: set[str] = set()
    union = []
    for value in values:
        if not value or not value.strip():
            continue
        key = value.casefold()
        if key not in seen:
            seen.add(key)
            union.append(value)
    return union


class MetadataMerger:
    """Merges titles, credits, ratings and IDs from every version of a group."""

    def __init__(self, catalog: MediaCatalog):
        """
        Initialize the merger.

        Args:
            catalog: Catalog used to resolve items and their people
        """
        self.catalog = catalog

    def merge_group(self, group: DuplicateGroup) -> MergeResult:
        """
        Recompute the group's merged metadata from its resolvable versions.

        Args:
            group: Duplicate group, updated in place

        Returns:
            MergeResult; NO_ITEMS_RESOLVED leaves the existing metadata untouched
        """
        result = MergeResult(group_id=group.group_id, status=MergeStatus.MERGED)
        items: list[MediaItem] = []

        for version in group.versions:
            item = self.catalog.resolve_item(version.item_id)
            if item is None:
                logger.warning(f"Item {version.item_id} not found, skipping it for merge")
                result.skipped_item_ids.append(version.item_id)
                continue
            items.append(item)
            result.merged_item_ids.append(item.item_id)

        if not items:
            logger.warning(f"No items found for duplicate group {group.group_id}")
            result.status = MergeStatus.NO_ITEMS_RESOLVED
            return result

        people = {item.item_id: self.catalog.get_people(item) for item in items}
        group.merged_metadata = self.merge_items(items, people)
        self._record_contributions(group, items, people)

        logger.info(f"Merged metadata for duplicate group {group.group_id}")
        return result

    def merge_items(
        self, items: list[MediaItem], people: dict[str, list[str]] | None = None
    ) -> MergedMetadata:
        """
        Merge descriptive metadata of several items.

        Args:
            items: Resolved items, in group order
            people: Person names per item ID; defaults to each item's own people

        Returns:
            MergedMetadata built from the items
        """
        people = people or {}

        ratings = [item.community_rating for item in items if item.community_rating is not None]
        dates = [item.premiere_date for item in items if item.premiere_date is not None]

        external_ids: dict[str, str] = {}
        for item in items:
            for key, value in item.provider_ids.items():
                if key not in external_ids:
                    external_ids[key] = value

        return MergedMetadata(
            title=self._longest_title(items),
            genres=_case_insensitive_union(g for item in items for g in item.genres),
            tags=_case_insensitive_union(t for item in items for t in item.tags),
            people=_case_insensitive_union(
                p for item in items for p in people.get(item.item_id, item.people)
            ),
            average_rating=sum(ratings) / len(ratings) if ratings else 0.0,
            release_date=min(dates, key=as_utc) if dates else None,
            studios=_case_insensitive_union(s for item in items for s in item.studios),
            external_ids=external_ids,
            descriptions=_case_insensitive_union(item.overview or "" for item in items),
        )

    def _longest_title(self, items: list[MediaItem]) -> str:
        titles = [item.name for item in items if item.name]
        if not titles:
            return ""
        # max() keeps the first of equally long titles
        return max(titles, key=len)

    def _record_contributions(
        self, group: DuplicateGroup, items: list[MediaItem], people: dict[str, list[str]]
    ) -> None:
        """Tag each version with the merged fields its item supplied first."""
        merged = group.merged_metadata
        contributions: dict[str, list[str]] = {item.item_id: [] for item in items}

        def credit(field_name: str, values: list[str], item_values) -> None:
            # Each merged value is credited to the first item carrying it
            remaining = {value.casefold() for value in values}
            for item in items:
                own = {value.casefold() for value in item_values(item) if value}
                if remaining & own:
                    contributions[item.item_id].append(field_name)
                    remaining -= own

        for item in items:
            if item.name and item.name == merged.title:
                contributions[item.item_id].append("Title")
                break

        credit("Genres", merged.genres, lambda item: item.genres)
        credit("Tags", merged.tags, lambda item: item.tags)
        credit("People", merged.people, lambda item: people.get(item.item_id, item.people))
        credit("Studios", merged.studios, lambda item: item.studios)

        for item in items:
            if item.community_rating is not None:
                contributions[item.item_id].append("Rating")

        for item in items:
            if merged.release_date is not None and item.premiere_date == merged.release_date:
                contributions[item.item_id].append("ReleaseDate")
                break

        seen_keys: set[str] = set()
        for item in items:
            new_keys = set(item.provider_ids) - seen_keys
            if new_keys:
                contributions[item.item_id].append("ExternalIds")
                seen_keys |= new_keys

        credit("Description", merged.descriptions, lambda item: [item.overview or ""])

        for version in group.versions:
            if version.item_id in contributions:
                version.metadata_contribution = contributions[version.item_id]
