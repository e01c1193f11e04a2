"""Scan task orchestrating duplicate detection across collections."""

import logging
import threading
from collections.abc import Callable

from .catalog import MediaCatalog
from .locking import ScanLock
from .models import ApplicationConfig, ScanJob
from .persistence import DataPersistenceService
from .pipeline import DuplicateScanner
from .results import ScanOutcome, ScanStatus

logger = logging.getLogger(__name__)

# One scan per process; shared by every ScanTask unless a lock is injected.
PROCESS_SCAN_LOCK = ScanLock()


class ScanBusyError(RuntimeError):
    """Raised when another scan already holds the process scan lock."""


class ScanTask:
    """Scans collections one after another and persists their duplicate groups."""

    def __init__(
        self,
        catalog: MediaCatalog,
        persistence: DataPersistenceService,
        config: ApplicationConfig | None = None,
        scanner: DuplicateScanner | None = None,
        lock: ScanLock | None = None,
    ):
        """
        Initialize the scan task.

        Args:
            catalog: Media catalog to scan
            persistence: Where detection results are stored
            config: Application configuration, defaults to ApplicationConfig()
            scanner: Collection scanner, defaults to one using config.scan_threads workers
            lock: Scan lock, defaults to the process-wide lock
        """
        self.catalog = catalog
        self.persistence = persistence
        self.config = config or ApplicationConfig()
        self.scanner = scanner or DuplicateScanner(catalog, workers=self.config.scan_threads)
        self.lock = lock or PROCESS_SCAN_LOCK
        self.outcomes: dict[str, ScanOutcome] = {}

    def run(
        self,
        library_ids: list[str],
        cancel_event: threading.Event | None = None,
        progress: Callable[[float], None] | None = None,
    ) -> list[ScanJob]:
        """
        Scan each collection and save its groups.

        Args:
            library_ids: Collections to scan, in order
            cancel_event: Checked between collections and between groups
            progress: Receives overall completion percentage after each collection

        Returns:
            One ScanJob per collection that was considered

        Raises:
            ScanBusyError: If another scan is already running
        """
        with self.lock.hold() as acquired:
            if not acquired:
                logger.warning("Another scan is already in progress, skipping")
                raise ScanBusyError("Another scan is already in progress")

            if not self.config.enabled:
                logger.info("Duplicate scanning is disabled, skipping scan")
                return []

            if not library_ids:
                logger.info("No libraries to scan")
                return []

            logger.info(f"Starting duplicate scan of {len(library_ids)} libraries")
            jobs = []

            for i, library_id in enumerate(library_ids):
                if cancel_event is not None and cancel_event.is_set():
                    logger.info("Duplicate scan cancelled")
                    break

                jobs.append(self.scan_library(library_id, cancel_event))

                if progress:
                    progress((i + 1) / len(library_ids) * 100)

            self._prune_audit_logs()
            logger.info("Duplicate scan task completed")
            return jobs

    def scan_library(
        self, library_id: str, cancel_event: threading.Event | None = None
    ) -> ScanJob:
        """
        Scan a single collection and persist the result if it completed.

        Args:
            library_id: Collection to scan
            cancel_event: Passed through to the scanner

        Returns:
            ScanJob describing how the collection scan ended
        """
        job = ScanJob(library_id=library_id, status="Running")
        logger.info(f"Scanning library: {library_id}")

        preferences = self.config.preferences_for(library_id)

        def report(current: int, total: int | None = None, message: str = "") -> None:
            if total:
                job.progress_percentage = min(99, int(current / total * 100))
            job.status_message = message

        outcome = self.scanner.scan_collection(
            library_id, preferences, cancel_event=cancel_event, progress_callback=report
        )
        self.outcomes[library_id] = outcome
        job.items_processed = outcome.items_scanned
        job.duplicates_found = len(outcome.groups)

        if outcome.status is ScanStatus.FAILED:
            job.finish("Failed", outcome.error or "Scan failed")
            return job

        if outcome.status is ScanStatus.CANCELLED:
            job.finish("Cancelled", "Scan cancelled; results were not saved")
            return job

        try:
            self.persistence.save_duplicate_groups(library_id, outcome.groups)
        except OSError as e:
            job.finish("Failed", f"Could not save results: {e}")
            return job

        job.finish("Completed", f"Found {len(outcome.groups)} duplicate groups")
        return job

    def _prune_audit_logs(self) -> None:
        try:
            self.persistence.prune_audit_logs(self.config.audit_retention_days)
        except OSError as e:
            logger.warning(f"Could not prune audit logs: {e}")
