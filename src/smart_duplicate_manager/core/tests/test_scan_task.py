"""Tests for the scan task orchestrator and the scan lock."""

import threading
from unittest.mock import Mock

import pytest

from ..catalog import InMemoryCatalog
from ..locking import ScanLock
from ..models import ApplicationConfig, LibraryPreferences
from ..persistence import DataPersistenceService
from ..results import ScanOutcome, ScanStatus
from ..scan_task import ScanBusyError, ScanTask


class TestScanLock:
    """Test cases for ScanLock."""

    def test_reentrant_for_owner(self) -> None:
        """Test that the owning thread can nest acquisitions."""
        lock = ScanLock()

        assert lock.acquire()
        assert lock.acquire()
        assert lock.depth == 2
        lock.release()
        assert lock.held
        lock.release()
        assert not lock.held

    def test_other_thread_refused(self) -> None:
        """Test that a second thread cannot take a held lock."""
        lock = ScanLock()
        results = []

        with lock.hold() as acquired:
            assert acquired
            worker = threading.Thread(target=lambda: results.append(lock.acquire()))
            worker.start()
            worker.join()

        assert results == [False]
        assert not lock.held

    def test_release_without_acquire(self) -> None:
        """Test that releasing an unheld lock is an error."""
        with pytest.raises(RuntimeError):
            ScanLock().release()


class TestScanTask:
    """Test cases for ScanTask."""

    @pytest.fixture
    def persistence(self, tmp_path) -> DataPersistenceService:
        """Persistence rooted in a temporary directory."""
        return DataPersistenceService(tmp_path)

    def test_run_saves_each_collection(self, catalog, persistence, make_item) -> None:
        """Test that completed scans are persisted per collection."""
        catalog.add_collection("tv", [make_item("ep1", "Pilot"), make_item("ep2", "Finale")])
        progress = Mock()
        task = ScanTask(catalog, persistence, lock=ScanLock())

        jobs = task.run(["movies", "tv"], progress=progress)

        assert [job.status for job in jobs] == ["Completed", "Completed"]
        assert jobs[0].duplicates_found == 1
        assert jobs[0].items_processed == 2
        assert jobs[1].duplicates_found == 0
        assert len(persistence.load_duplicate_groups("movies")) == 1
        assert persistence.groups_path("tv").exists()
        assert [c.args[0] for c in progress.call_args_list] == [50.0, 100.0]

    def test_uses_library_preferences(self, catalog, persistence) -> None:
        """Test that per-collection preferences are applied."""
        config = ApplicationConfig(
            library_preferences={"movies": LibraryPreferences(similarity_threshold=141)}
        )
        task = ScanTask(catalog, persistence, config=config, lock=ScanLock())

        jobs = task.run(["movies"])

        assert jobs[0].duplicates_found == 0

    def test_disabled_config_skips(self, catalog, persistence) -> None:
        """Test that a disabled configuration does nothing."""
        task = ScanTask(catalog, persistence, config=ApplicationConfig(enabled=False), lock=ScanLock())

        assert task.run(["movies"]) == []
        assert not persistence.groups_path("movies").exists()

    def test_busy_lock_raises(self, catalog, persistence) -> None:
        """Test that a scan already running in another thread blocks a new one."""
        lock = ScanLock()
        holder_ready = threading.Event()
        release_holder = threading.Event()

        def hold_lock():
            with lock.hold():
                holder_ready.set()
                release_holder.wait()

        holder = threading.Thread(target=hold_lock)
        holder.start()
        holder_ready.wait()
        try:
            with pytest.raises(ScanBusyError):
                ScanTask(catalog, persistence, lock=lock).run(["movies"])
        finally:
            release_holder.set()
            holder.join()

    def test_failed_collection_does_not_stop_others(self, catalog, persistence) -> None:
        """Test that one failing collection is reported and the next still runs."""
        scanner = Mock()
        scanner.scan_collection.side_effect = [
            ScanOutcome(library_id="broken", status=ScanStatus.FAILED, error="boom"),
            ScanOutcome(library_id="movies", status=ScanStatus.COMPLETED),
        ]
        task = ScanTask(catalog, persistence, scanner=scanner, lock=ScanLock())

        jobs = task.run(["broken", "movies"])

        assert [job.status for job in jobs] == ["Failed", "Completed"]
        assert jobs[0].status_message == "boom"
        assert not persistence.groups_path("broken").exists()
        assert persistence.groups_path("movies").exists()

    def test_cancelled_collection_not_saved(self, catalog, persistence) -> None:
        """Test that cancelled scans are not persisted."""
        scanner = Mock()
        scanner.scan_collection.return_value = ScanOutcome(
            library_id="movies", status=ScanStatus.CANCELLED
        )
        task = ScanTask(catalog, persistence, scanner=scanner, lock=ScanLock())

        jobs = task.run(["movies"])

        assert jobs[0].status == "Cancelled"
        assert not persistence.groups_path("movies").exists()

    def test_cancel_event_stops_between_collections(self, catalog, persistence) -> None:
        """Test that a set cancel event prevents further collections."""
        cancel_event = threading.Event()
        cancel_event.set()
        task = ScanTask(catalog, persistence, lock=ScanLock())

        assert task.run(["movies"], cancel_event=cancel_event) == []

    def test_save_failure_marks_job_failed(self, catalog, persistence) -> None:
        """Test that a write error fails only that collection's job."""
        persistence.save_duplicate_groups = Mock(side_effect=OSError("disk full"))
        task = ScanTask(catalog, persistence, lock=ScanLock())

        jobs = task.run(["movies"])

        assert jobs[0].status == "Failed"
        assert "disk full" in jobs[0].status_message

    def test_outcomes_kept_for_callers(self, catalog, persistence) -> None:
        """Test that scan outcomes remain available after the run."""
        task = ScanTask(catalog, persistence, lock=ScanLock())

        task.run(["movies"])

        assert task.outcomes["movies"].succeeded
        assert task.outcomes["movies"].groups[0].primary_version_id == "uhd"
