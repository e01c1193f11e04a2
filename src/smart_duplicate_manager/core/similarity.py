"""Metadata similarity scoring between catalog items."""

import logging

from .models import MediaItem
from .normalizer import normalize_title

logger = logging.getLogger(__name__)


class SimilarityScorer:
    """Scores how likely two catalog items are the same title."""

    TITLE_MATCH_POINTS = 30
    SAME_YEAR_POINTS = 20
    ADJACENT_YEAR_POINTS = 10
    PROVIDER_MATCH_POINTS = 40
    RUNTIME_MATCH_POINTS = 10

    MATCHED_PROVIDERS = ("Imdb", "Tmdb")
    RUNTIME_TOLERANCE_MINUTES = 5.0

    MAX_SCORE = (
        TITLE_MATCH_POINTS
        + SAME_YEAR_POINTS
        + PROVIDER_MATCH_POINTS * len(MATCHED_PROVIDERS)
        + RUNTIME_MATCH_POINTS
    )

    def calculate_score(self, item1: MediaItem, item2: MediaItem) -> int:
        """
        Calculate the similarity score between two items.

        Args:
            item1: First item to compare
            item2: Second item to compare

        Returns:
            Sum of the matched signals, between 0 and MAX_SCORE (140)

        Signals that are missing on either side contribute nothing.
        """
        score = self._title_points(item1, item2)
        score += self._year_points(item1, item2)
        for provider in self.MATCHED_PROVIDERS:
            score += self._provider_points(item1, item2, provider)
        score += self._runtime_points(item1, item2)

        logger.debug(f"Similarity between {item1} and {item2}: {score}")
        return score

    def are_duplicates(self, item1: MediaItem, item2: MediaItem, threshold: int) -> bool:
        """Check whether two items score at or above the threshold."""
        return self.calculate_score(item1, item2) >= threshold

    def _title_points(self, item1: MediaItem, item2: MediaItem) -> int:
        if normalize_title(item1.name) == normalize_title(item2.name):
            return self.TITLE_MATCH_POINTS
        return 0

    def _year_points(self, item1: MediaItem, item2: MediaItem) -> int:
        if item1.production_year is None or item2.production_year is None:
            return 0

        year_diff = abs(item1.production_year - item2.production_year)
        if year_diff == 0:
            return self.SAME_YEAR_POINTS
        if year_diff == 1:
            return self.ADJACENT_YEAR_POINTS
        return 0

    def _provider_points(self, item1: MediaItem, item2: MediaItem, provider: str) -> int:
        id1 = item1.provider_id(provider)
        id2 = item2.provider_id(provider)
        if id1 and id2 and id1.lower() == id2.lower():
            return self.PROVIDER_MATCH_POINTS
        return 0

    def _runtime_points(self, item1: MediaItem, item2: MediaItem) -> int:
        if item1.runtime_minutes is None or item2.runtime_minutes is None:
            return 0

        if abs(item1.runtime_minutes - item2.runtime_minutes) <= self.RUNTIME_TOLERANCE_MINUTES:
            return self.RUNTIME_MATCH_POINTS
        return 0
