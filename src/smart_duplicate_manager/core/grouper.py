"""Duplicate grouping module for organizing catalog items into duplicate groups."""

import logging
import threading
from collections import defaultdict
from datetime import datetime, timezone
from pathlib import Path
from typing import Protocol

from .models import DuplicateGroup, LibraryPreferences, MediaItem, VersionRecord
from .normalizer import normalize_title
from .similarity import SimilarityScorer

logger = logging.getLogger(__name__)


class ProgressCallback(Protocol):
    """Protocol for progress callback functions during grouping."""

    def __call__(self, current: int, total: int | None = None, message: str = "") -> None:
        """Called to report progress while buckets are analyzed."""
        ...


class DuplicateGrouper:
    """Groups catalog items whose metadata says they are the same title."""

    def __init__(self, scorer: SimilarityScorer | None = None):
        """Initialize the grouper with an optional similarity scorer."""
        self.scorer = scorer or SimilarityScorer()

        self.grouping_stats = {
            "buckets_analyzed": 0,
            "pair_comparisons": 0,
            "groups_created": 0,
        }

    def group_by_normalized_title(self, items: list[MediaItem]) -> dict[str, list[MediaItem]]:
        """
        Bucket items by their normalized title.

        Args:
            items: Catalog items to bucket

        Returns:
            Dictionary mapping normalized titles to the items that share them

        Items whose title normalizes to an empty string are left out, as are
        repeated listings of an item ID already bucketed.
        """
        buckets: dict[str, list[MediaItem]] = defaultdict(list)
        seen_ids: set[str] = set()

        for item in items:
            if item.item_id in seen_ids:
                logger.warning(f"Ignoring repeated listing of item {item.item_id}")
                continue
            seen_ids.add(item.item_id)

            key = normalize_title(item.name)
            if not key:
                logger.debug(f"Skipping item without a usable title: {item.item_id}")
                continue
            buckets[key].append(item)

        logger.info(f"Grouped {len(items)} items into {len(buckets)} title buckets")
        return dict(buckets)

    def create_duplicate_groups(
        self,
        items: list[MediaItem],
        preferences: LibraryPreferences,
        library_id: str = "",
        cancel_event: threading.Event | None = None,
        progress_callback: ProgressCallback | None = None,
    ) -> list[DuplicateGroup]:
        """
        Create duplicate groups from a collection's items.

        Args:
            items: Catalog items of one collection
            preferences: Preferences supplying the similarity threshold and grouping strategy
            library_id: Collection the items belong to
            cancel_event: Checked between buckets; when set, grouping stops early
            progress_callback: Optional callback for progress updates

        Returns:
            List of DuplicateGroup objects, each with at least two versions
        """
        self.grouping_stats = {
            "buckets_analyzed": 0,
            "pair_comparisons": 0,
            "groups_created": 0,
        }

        buckets = self.group_by_normalized_title(items)
        duplicate_groups: list[DuplicateGroup] = []

        for i, (title_key, bucket) in enumerate(buckets.items()):
            if cancel_event is not None and cancel_event.is_set():
                logger.info(f"Grouping cancelled after {i} of {len(buckets)} buckets")
                break

            if progress_callback:
                progress_callback(i + 1, len(buckets), f"Comparing: {title_key} ({len(bucket)} items)")

            # Only buckets with multiple items can hold duplicates
            if len(bucket) < 2:
                continue

            self.grouping_stats["buckets_analyzed"] += 1

            for members in self._find_duplicate_members(bucket, preferences):
                group = self._build_group(members, library_id)
                duplicate_groups.append(group)
                logger.debug(f"Created duplicate group for '{title_key}' ({len(members)} items)")

        self.grouping_stats["groups_created"] = len(duplicate_groups)
        logger.info(
            f"Created {len(duplicate_groups)} duplicate groups "
            f"({self.grouping_stats['pair_comparisons']} pair comparisons)"
        )
        return duplicate_groups

    def _find_duplicate_members(
        self, bucket: list[MediaItem], preferences: LibraryPreferences
    ) -> list[list[MediaItem]]:
        """
        Find the duplicate member sets inside one title bucket.

        Args:
            bucket: Items sharing a normalized title
            preferences: Supplies the threshold and grouping strategy

        Returns:
            Member lists with at least two items each

        With the "edge" strategy every item that matches any other item joins a
        single group. The "connected" strategy splits matching items into the
        connected components of the match graph.
        """
        similar_pairs: list[tuple[int, int]] = []

        # Compare all items pairwise
        for i in range(len(bucket)):
            for j in range(i + 1, len(bucket)):
                score = self.scorer.calculate_score(bucket[i], bucket[j])
                self.grouping_stats["pair_comparisons"] += 1
                if score >= preferences.similarity_threshold:
                    similar_pairs.append((i, j))

        if not similar_pairs:
            return []

        if preferences.grouping_strategy == "connected":
            components = self._connected_components(similar_pairs)
            return [[bucket[i] for i in component] for component in components if len(component) >= 2]

        # Members in the order the pairs first admitted them
        member_indices: list[int] = []
        for i, j in similar_pairs:
            if i not in member_indices:
                member_indices.append(i)
            if j not in member_indices:
                member_indices.append(j)

        return [[bucket[i] for i in member_indices]]

    def _connected_components(self, similar_pairs: list[tuple[int, int]]) -> list[list[int]]:
        """Build connected components from matching pairs, ordered by first appearance."""
        remaining: list[int] = []
        for i, j in similar_pairs:
            for index in (i, j):
                if index not in remaining:
                    remaining.append(index)

        components = []
        while remaining:
            # Start a new component with the earliest remaining item
            component = [remaining.pop(0)]

            changed = True
            while changed:
                changed = False
                for i, j in similar_pairs:
                    if i in component and j in remaining:
                        component.append(j)
                        remaining.remove(j)
                        changed = True
                    elif j in component and i in remaining:
                        component.append(i)
                        remaining.remove(i)
                        changed = True

            components.append(component)

        return components

    def _build_group(self, members: list[MediaItem], library_id: str) -> DuplicateGroup:
        """Wrap matching items into a new duplicate group."""
        versions = [
            VersionRecord(
                item_id=item.item_id,
                file_path=item.path,
                file_size=self.get_file_size(item.path),
            )
            for item in members
        ]

        return DuplicateGroup(
            library_id=library_id,
            primary_version_id=versions[0].item_id,
            versions=versions,
            detection_timestamp=datetime.now(timezone.utc),
        )

    @staticmethod
    def get_file_size(path: str) -> int:
        """
        Get the size of a media file.

        Args:
            path: Path to the file

        Returns:
            Size in bytes, or 0 if the file is missing or cannot be read
        """
        if not path:
            return 0

        try:
            file_path = Path(path)
            if file_path.is_file():
                return file_path.stat().st_size
            logger.warning(f"File not found, recording size 0: {path}")
        except OSError as e:
            logger.warning(f"Error getting file size for {path}: {e}")

        return 0
