"""Quality ranking of the versions inside a duplicate group."""

import logging

from .catalog import MediaCatalog
from .extractor import TechnicalAttributeExtractor
from .models import DuplicateGroup, LibraryPreferences, VersionRecord
from .results import QualityResult

logger = logging.getLogger(__name__)


def priority_score(value: str, priority_list: list[str]) -> int:
    """
    Convert a categorical label into a score from its preference position.

    Args:
        value: Label to look up (compared case-insensitively)
        priority_list: Labels ordered most-preferred first

    Returns:
        round((len - index) / len * 100), or 0 when the value is empty,
        unknown or the list is empty

    Example:
        >>> priority_score("1080p", ["2160p", "1080p", "720p", "480p"])
        75
    """
    if not value or not priority_list:
        return 0

    wanted = value.lower()
    for index, entry in enumerate(priority_list):
        if entry.lower() == wanted:
            return round((len(priority_list) - index) / len(priority_list) * 100)
    return 0


class QualityScorer:
    """Scores group members against a collection's quality preferences."""

    RESOLUTION_WEIGHT = 0.30
    DYNAMIC_RANGE_WEIGHT = 0.25
    CODEC_WEIGHT = 0.20
    AUDIO_WEIGHT = 0.15
    SOURCE_TYPE_WEIGHT = 0.10

    def __init__(
        self,
        catalog: MediaCatalog,
        extractor: TechnicalAttributeExtractor | None = None,
    ):
        """
        Initialize the quality scorer.

        Args:
            catalog: Catalog used to resolve each version's item
            extractor: Technical attribute extractor, defaults to a new one
        """
        self.catalog = catalog
        self.extractor = extractor or TechnicalAttributeExtractor()

    def analyze_group(self, group: DuplicateGroup, preferences: LibraryPreferences) -> QualityResult:
        """
        Fill technical labels, score every version and rank the group.

        Args:
            group: Duplicate group to analyze, updated in place
            preferences: Priority lists of the group's collection

        Returns:
            QualityResult listing which versions were scored

        Versions whose item cannot be resolved keep their previous labels and
        score. Versions are sorted by descending score with ties in their
        original order, and the top version becomes primary unless the
        primary was pinned.
        """
        result = QualityResult(group_id=group.group_id)

        for version in group.versions:
            item = self.catalog.resolve_item(version.item_id)
            if item is None:
                logger.warning(f"Item {version.item_id} not found")
                result.unresolved_item_ids.append(version.item_id)
                continue

            try:
                attributes = self.extractor.extract(item)
            except Exception as e:
                logger.warning(f"Error extracting media info for {version.item_id}: {e}")
                result.failed_item_ids.append(version.item_id)
                continue

            version.resolution = attributes.resolution
            version.codec = attributes.codec
            version.dynamic_range = attributes.dynamic_range
            version.audio_codec = attributes.audio_codec
            version.audio_channels = attributes.audio_channels
            version.audio_format = attributes.audio_format
            version.source_type = attributes.source_type
            version.bitrate = attributes.bitrate

            version.quality_score = self.calculate_score(version, preferences)
            result.scored_item_ids.append(version.item_id)

        # sorted() is stable, so equal scores keep their input order
        group.versions = sorted(group.versions, key=lambda v: v.quality_score, reverse=True)

        if group.versions and (not group.primary_version_id or not group.primary_pinned):
            group.primary_version_id = group.versions[0].item_id

        logger.debug(
            f"Ranked group {group.group_id}: "
            + ", ".join(f"{v.item_id}={v.quality_score}" for v in group.versions)
        )
        return result

    def calculate_score(self, version: VersionRecord, preferences: LibraryPreferences) -> int:
        """
        Calculate the weighted quality score of one version.

        Args:
            version: Version with its technical labels filled in
            preferences: Priority lists to score against

        Returns:
            Integer score between 0 and 100
        """
        score = (
            self.RESOLUTION_WEIGHT
            * priority_score(version.resolution, preferences.resolution_priority)
            + self.DYNAMIC_RANGE_WEIGHT
            * priority_score(version.dynamic_range, preferences.dynamic_range_priority)
            + self.CODEC_WEIGHT * priority_score(version.codec, preferences.codec_priority)
            + self.AUDIO_WEIGHT * priority_score(version.audio_format, preferences.audio_priority)
            + self.SOURCE_TYPE_WEIGHT
            * priority_score(version.source_type, preferences.source_type_priority)
        )
        return round(score)
