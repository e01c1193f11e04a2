"""Duplicate detection pipeline for a single collection."""

import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor

from .catalog import MediaCatalog
from .grouper import DuplicateGrouper, ProgressCallback
from .merger import MetadataMerger
from .models import DuplicateGroup, LibraryPreferences
from .quality import QualityScorer
from .results import ScanOutcome, ScanStatus

logger = logging.getLogger(__name__)


class DuplicateScanner:
    """Runs grouping, quality ranking and metadata merge over one collection."""

    def __init__(
        self,
        catalog: MediaCatalog,
        grouper: DuplicateGrouper | None = None,
        quality_scorer: QualityScorer | None = None,
        merger: MetadataMerger | None = None,
        workers: int = 1,
    ):
        """
        Initialize the scanner.

        Args:
            catalog: Media catalog supplying and resolving items
            grouper: Duplicate grouper, defaults to a new one
            quality_scorer: Quality scorer, defaults to one bound to the catalog
            merger: Metadata merger, defaults to one bound to the catalog
            workers: Number of groups analyzed concurrently (1-8)
        """
        if not 1 <= workers <= 8:
            raise ValueError(f"workers must be between 1 and 8, got {workers}")

        self.catalog = catalog
        self.grouper = grouper or DuplicateGrouper()
        self.quality_scorer = quality_scorer or QualityScorer(catalog)
        self.merger = merger or MetadataMerger(catalog)
        self.workers = workers

    def scan_collection(
        self,
        library_id: str,
        preferences: LibraryPreferences,
        cancel_event: threading.Event | None = None,
        progress_callback: ProgressCallback | None = None,
    ) -> ScanOutcome:
        """
        Detect, rank and merge duplicates in one collection.

        Args:
            library_id: Collection to scan
            preferences: Preferences of that collection
            cancel_event: Checked between groups; when set the scan stops
            progress_callback: Optional callback for progress updates

        Returns:
            ScanOutcome with the finished groups. A failed scan carries the
            error and no groups; a cancelled scan carries only the groups
            that finished before cancellation.
        """
        start_time = time.time()
        logger.info(f"Starting duplicate scan for library {library_id}")

        try:
            items = self.catalog.list_items(library_id)
            logger.info(f"Found {len(items)} items in library {library_id}")

            candidates = self.grouper.create_duplicate_groups(
                items,
                preferences,
                library_id=library_id,
                cancel_event=cancel_event,
                progress_callback=progress_callback,
            )

            groups: list[DuplicateGroup] = []
            analyzed = self._analyze_groups(candidates, preferences, cancel_event)
            for group in analyzed:
                if group.is_valid:
                    groups.append(group)

        except Exception as e:
            logger.error(f"Error scanning library {library_id}: {e}")
            return ScanOutcome(
                library_id=library_id,
                status=ScanStatus.FAILED,
                error=str(e),
                duration_seconds=time.time() - start_time,
            )

        cancelled = cancel_event is not None and cancel_event.is_set()
        outcome = ScanOutcome(
            library_id=library_id,
            status=ScanStatus.CANCELLED if cancelled else ScanStatus.COMPLETED,
            groups=groups,
            items_scanned=len(items),
            dropped_groups=len(candidates) - len(groups),
            duration_seconds=time.time() - start_time,
        )

        if cancelled:
            logger.info(f"Scan of library {library_id} cancelled with {len(groups)} groups finished")
        else:
            logger.info(
                f"Detected {len(groups)} duplicate groups in library {library_id} "
                f"in {outcome.duration_seconds:.2f} seconds"
            )
        return outcome

    def analyze_group(
        self,
        group: DuplicateGroup,
        preferences: LibraryPreferences,
        cancel_event: threading.Event | None = None,
    ) -> DuplicateGroup | None:
        """
        Rank and merge one group.

        Args:
            group: Group produced by the grouper
            preferences: Preferences of the group's collection
            cancel_event: When already set the group is skipped

        Returns:
            The analyzed group, or None if cancellation fired first
        """
        if cancel_event is not None and cancel_event.is_set():
            return None

        quality = self.quality_scorer.analyze_group(group, preferences)
        merge = self.merger.merge_group(group)

        # Versions whose items vanished from the catalog are not real duplicates
        for item_id in quality.unresolved_item_ids:
            if item_id in merge.skipped_item_ids:
                group.remove_version(item_id)

        if not group.is_valid:
            logger.info(
                f"Dropping group {group.group_id}: "
                f"only {group.version_count} version(s) left after resolution"
            )
        return group

    def _analyze_groups(
        self,
        groups: list[DuplicateGroup],
        preferences: LibraryPreferences,
        cancel_event: threading.Event | None,
    ) -> list[DuplicateGroup]:
        """Analyze groups in order, fanning out over workers when configured."""
        if self.workers == 1 or len(groups) < 2:
            analyzed = []
            for group in groups:
                if cancel_event is not None and cancel_event.is_set():
                    break
                result = self._analyze_or_drop(group, preferences, cancel_event)
                if result is not None:
                    analyzed.append(result)
            return analyzed

        with ThreadPoolExecutor(max_workers=self.workers) as executor:
            results = list(
                executor.map(lambda g: self._analyze_or_drop(g, preferences, cancel_event), groups)
            )
        return [group for group in results if group is not None]

    def _analyze_or_drop(
        self,
        group: DuplicateGroup,
        preferences: LibraryPreferences,
        cancel_event: threading.Event | None,
    ) -> DuplicateGroup | None:
        """Analyze one group; a group whose analysis fails is logged and dropped."""
        try:
            return self.analyze_group(group, preferences, cancel_event)
        except Exception as e:
            logger.error(f"Error analyzing duplicate group {group.group_id}, dropping it: {e}")
            return None
