"""Tests for duplicate grouper module."""

import logging
import threading
from unittest.mock import Mock

from ..grouper import DuplicateGrouper
from ..models import LibraryPreferences, MediaItem


class TestDuplicateGrouper:
    """Test cases for DuplicateGrouper class."""

    def setup_method(self) -> None:
        """Set up test fixtures."""
        self.grouper = DuplicateGrouper()
        self.preferences = LibraryPreferences()

    def create_test_item(self, item_id: str, name: str, **kwargs) -> MediaItem:
        """Helper method to create test catalog items."""
        kwargs.setdefault("path", f"/nonexistent/{item_id}.mkv")
        return MediaItem(item_id=item_id, name=name, **kwargs)

    def test_group_by_normalized_title(self) -> None:
        """Test bucketing by normalized title."""
        items = [
            self.create_test_item("1", "The Matrix"),
            self.create_test_item("2", "the matrix!"),
            self.create_test_item("3", "Heat"),
        ]

        buckets = self.grouper.group_by_normalized_title(items)

        assert set(buckets) == {"the matrix", "heat"}
        assert [item.item_id for item in buckets["the matrix"]] == ["1", "2"]

    def test_group_by_normalized_title_skips_empty_titles(self) -> None:
        """Test that items without a usable title are left out."""
        items = [self.create_test_item("1", ""), self.create_test_item("2", "!!!")]

        assert self.grouper.group_by_normalized_title(items) == {}

    def test_matrix_versions_grouped(self) -> None:
        """Test that two versions of the same film form one group."""
        items = [
            self.create_test_item("1", "The Matrix", production_year=1999, provider_ids={"Imdb": "tt0133093"}),
            self.create_test_item("2", "the matrix", production_year=1999, provider_ids={"Imdb": "tt0133093"}),
        ]

        groups = self.grouper.create_duplicate_groups(items, self.preferences, library_id="movies")

        assert len(groups) == 1
        group = groups[0]
        assert group.library_id == "movies"
        assert [v.item_id for v in group.versions] == ["1", "2"]
        assert group.primary_version_id == "1"
        assert all(v.quality_score == 0 and v.resolution == "" for v in group.versions)

    def test_missing_files_have_zero_size(self) -> None:
        """Test that unreachable files are recorded with size 0."""
        items = [
            self.create_test_item("1", "Heat", production_year=1995),
            self.create_test_item("2", "Heat", production_year=1995),
        ]

        groups = self.grouper.create_duplicate_groups(items, self.preferences)

        assert [v.file_size for v in groups[0].versions] == [0, 0]

    def test_file_size_read_from_disk(self, tmp_path) -> None:
        """Test that existing files report their size."""
        media = tmp_path / "Heat.1995.mkv"
        media.write_bytes(b"x" * 2048)
        items = [
            self.create_test_item("1", "Heat", production_year=1995, path=str(media)),
            self.create_test_item("2", "Heat", production_year=1995),
        ]

        groups = self.grouper.create_duplicate_groups(items, self.preferences)

        assert groups[0].versions[0].file_size == 2048
        assert groups[0].versions[0].file_path == str(media)

    def test_below_threshold_bucket_produces_no_groups(self) -> None:
        """Test that a bucket whose pairs all score low yields nothing."""
        items = [
            self.create_test_item("1", "Heat", production_year=1986),
            self.create_test_item("2", "Heat", production_year=1995),
            self.create_test_item("3", "Heat", production_year=2010),
        ]

        assert self.grouper.create_duplicate_groups(items, self.preferences) == []
        assert self.grouper.grouping_stats["pair_comparisons"] == 3

    def test_different_titles_never_compared(self) -> None:
        """Test that items in different buckets are not paired."""
        items = [
            self.create_test_item("1", "Inception", production_year=2010, provider_ids={"Imdb": "tt1375666"}),
            self.create_test_item("2", "Inception 2", production_year=2010, provider_ids={"Imdb": "tt1375666"}),
        ]

        assert self.grouper.create_duplicate_groups(items, self.preferences) == []
        assert self.grouper.grouping_stats["pair_comparisons"] == 0

    def test_edge_driven_membership(self) -> None:
        """Test that one matching pair admits its items into the bucket's group."""
        items = [
            self.create_test_item("a", "Heat", production_year=1995),
            self.create_test_item("b", "Heat", production_year=2001),
            self.create_test_item("c", "Heat", production_year=1996),
        ]
        # Only a and c (adjacent years) reach the threshold
        preferences = LibraryPreferences(similarity_threshold=40)

        groups = self.grouper.create_duplicate_groups(items, preferences)

        assert len(groups) == 1
        assert [v.item_id for v in groups[0].versions] == ["a", "c"]

    def test_edge_driven_chains_items(self) -> None:
        """Test that items chained through a shared match land in one group."""
        items = [
            self.create_test_item("a", "Heat", production_year=1995),
            self.create_test_item("b", "Heat", production_year=1996),
            self.create_test_item("c", "Heat", production_year=1997),
        ]
        preferences = LibraryPreferences(similarity_threshold=40)

        groups = self.grouper.create_duplicate_groups(items, preferences)

        # a and c differ by two years but are joined through b
        assert len(groups) == 1
        assert [v.item_id for v in groups[0].versions] == ["a", "b", "c"]

    def test_connected_strategy_splits_components(self) -> None:
        """Test that the connected strategy keeps unrelated matches apart."""
        items = [
            self.create_test_item("a", "Heat", production_year=1986, runtime_minutes=90),
            self.create_test_item("b", "Heat", production_year=1995, runtime_minutes=170),
            self.create_test_item("c", "Heat", production_year=1986, runtime_minutes=91),
            self.create_test_item("d", "Heat", production_year=1995, runtime_minutes=171),
        ]

        edge_groups = self.grouper.create_duplicate_groups(
            items, LibraryPreferences(similarity_threshold=60)
        )
        connected_groups = self.grouper.create_duplicate_groups(
            items, LibraryPreferences(similarity_threshold=60, grouping_strategy="connected")
        )

        assert len(edge_groups) == 1
        assert edge_groups[0].version_count == 4
        assert [[v.item_id for v in g.versions] for g in connected_groups] == [["a", "c"], ["b", "d"]]

    def test_cancellation_stops_between_buckets(self) -> None:
        """Test that a set cancel event stops grouping."""
        items = [
            self.create_test_item("1", "Heat", production_year=1995),
            self.create_test_item("2", "Heat", production_year=1995),
        ]
        cancel_event = threading.Event()
        cancel_event.set()

        assert self.grouper.create_duplicate_groups(items, self.preferences, cancel_event=cancel_event) == []

    def test_progress_callback_called_per_bucket(self) -> None:
        """Test progress reporting."""
        items = [
            self.create_test_item("1", "Heat"),
            self.create_test_item("2", "Alien"),
        ]
        progress = Mock()

        self.grouper.create_duplicate_groups(items, self.preferences, progress_callback=progress)

        assert progress.call_count == 2
        assert progress.call_args_list[-1].args[:2] == (2, 2)

    def test_get_file_size_empty_path(self) -> None:
        """Test that an empty path has no size."""
        assert DuplicateGrouper.get_file_size("") == 0

    def test_repeated_item_listing_ignored(self) -> None:
        """Test that an item listed twice joins its group only once."""
        a = self.create_test_item("a", "Heat", production_year=1995)
        b = self.create_test_item("b", "Heat", production_year=1995)

        groups = self.grouper.create_duplicate_groups([a, b, a], self.preferences)

        assert len(groups) == 1
        assert [v.item_id for v in groups[0].versions] == ["a", "b"]
        assert self.grouper.grouping_stats["pair_comparisons"] == 1

    def test_repeated_listing_alone_is_not_a_duplicate(self) -> None:
        """Test that the same item listed twice does not form a group by itself."""
        a = self.create_test_item("a", "Heat", production_year=1995)

        assert self.grouper.create_duplicate_groups([a, a], self.preferences) == []

    def test_missing_file_logs_warning(self, caplog) -> None:
        """Test that a path with no file behind it is reported."""
        with caplog.at_level(logging.WARNING):
            size = DuplicateGrouper.get_file_size("/nonexistent/heat.mkv")

        assert size == 0
        assert "/nonexistent/heat.mkv" in caplog.text
