"""Explicit outcomes returned by the pipeline stages."""

from dataclasses import dataclass, field
from enum import Enum

from .models import DuplicateGroup


class MergeStatus(Enum):
    """Outcome of merging a group's metadata."""

    MERGED = "merged"
    NO_ITEMS_RESOLVED = "no_items_resolved"


@dataclass
class MergeResult:
    """Result of a metadata merge for one duplicate group."""

    group_id: str
    status: MergeStatus
    merged_item_ids: list[str] = field(default_factory=list)
    skipped_item_ids: list[str] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return self.status is MergeStatus.MERGED


@dataclass
class QualityResult:
    """Result of quality scoring for one duplicate group."""

    group_id: str
    scored_item_ids: list[str] = field(default_factory=list)
    unresolved_item_ids: list[str] = field(default_factory=list)
    failed_item_ids: list[str] = field(default_factory=list)

    @property
    def fully_scored(self) -> bool:
        return not self.unresolved_item_ids and not self.failed_item_ids


class ScanStatus(Enum):
    """Outcome of scanning one collection."""

    COMPLETED = "Completed"
    CANCELLED = "Cancelled"
    FAILED = "Failed"


@dataclass
class ScanOutcome:
    """Groups produced for one collection plus how the scan ended."""

    library_id: str
    status: ScanStatus
    groups: list[DuplicateGroup] = field(default_factory=list)
    items_scanned: int = 0
    dropped_groups: int = 0
    error: str | None = None
    duration_seconds: float = 0.0

    @property
    def succeeded(self) -> bool:
        return self.status is ScanStatus.COMPLETED

    @property
    def duplicate_versions_count(self) -> int:
        """Total number of versions across all groups."""
        return sum(group.version_count for group in self.groups)

    @property
    def potential_space_savings_mb(self) -> float:
        """Space freed if every non-primary version were removed."""
        savings = 0.0
        for group in self.groups:
            primary = group.get_primary_version()
            if primary is not None:
                savings += group.total_size_mb - primary.size_mb
        return savings

    def __str__(self) -> str:
        text = (
            f"Scan of {self.library_id}: {self.items_scanned} items, "
            f"{len(self.groups)} duplicate groups ({self.status.value})"
        )
        if self.error:
            text += f": {self.error}"
        return text
