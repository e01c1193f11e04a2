"""Storage of detection results and deletion audit records."""

import logging
from datetime import date, datetime, timedelta, timezone
from pathlib import Path

from pydantic import TypeAdapter, ValidationError

from .models import DeletionAuditRecord, DuplicateGroup, as_utc

logger = logging.getLogger(__name__)

_GROUP_LIST = TypeAdapter(list[DuplicateGroup])


class DataPersistenceService:
    """Persists duplicate groups per collection and an append-only audit log."""

    def __init__(self, root: Path):
        """
        Initialize the service, creating its directories.

        Args:
            root: Base directory; groups go to root/data, audit logs to root/audit
        """
        self.root = root
        self.data_directory = root / "data"
        self.audit_directory = root / "audit"
        self.data_directory.mkdir(parents=True, exist_ok=True)
        self.audit_directory.mkdir(parents=True, exist_ok=True)

    def groups_path(self, library_id: str) -> Path:
        """Location of a collection's duplicate document."""
        return self.data_directory / f"duplicates_{library_id}.json"

    def audit_path(self, when: datetime) -> Path:
        """Location of the monthly audit file covering a timestamp."""
        return self.audit_directory / f"audit_{when:%Y_%m}.jsonl"

    def save_duplicate_groups(self, library_id: str, groups: list[DuplicateGroup]) -> Path:
        """
        Write a collection's duplicate groups as one JSON document.

        Args:
            library_id: Collection the groups belong to
            groups: Groups to store; replaces any earlier document

        Returns:
            Path of the written file

        Raises:
            OSError: If the document cannot be written
        """
        path = self.groups_path(library_id)
        temp_path = path.with_name(path.name + ".tmp")
        try:
            temp_path.write_bytes(_GROUP_LIST.dump_json(groups, indent=2))
            temp_path.replace(path)
        except OSError as e:
            logger.error(f"Error saving duplicate groups for library {library_id}: {e}")
            raise

        logger.info(f"Saved {len(groups)} duplicate groups for library {library_id}")
        return path

    def load_duplicate_groups(self, library_id: str) -> list[DuplicateGroup]:
        """
        Read a collection's duplicate groups.

        Args:
            library_id: Collection to load

        Returns:
            Stored groups, or an empty list if none are stored or the document is unreadable
        """
        path = self.groups_path(library_id)
        if not path.exists():
            return []

        try:
            return _GROUP_LIST.validate_json(path.read_bytes())
        except (OSError, ValidationError) as e:
            logger.error(f"Error loading duplicate groups for library {library_id}: {e}")
            return []

    def log_deletion(self, record: DeletionAuditRecord) -> Path:
        """
        Append a deletion audit record to the current month's log.

        Args:
            record: Record to append

        Returns:
            Path of the audit file written to

        Raises:
            OSError: If the audit file cannot be written
        """
        path = self.audit_path(record.timestamp)
        try:
            with path.open("a", encoding="utf-8") as audit_file:
                audit_file.write(record.model_dump_json() + "\n")
        except OSError as e:
            logger.error(f"Error logging deletion audit for item {record.item_id}: {e}")
            raise

        logger.info(f"Logged deletion audit for item {record.item_id}")
        return path

    def get_audit_records(
        self, start_date: datetime | None = None, end_date: datetime | None = None
    ) -> list[DeletionAuditRecord]:
        """
        Read audit records, newest first.

        Args:
            start_date: Only records at or after this time
            end_date: Only records at or before this time

        Returns:
            Matching records; malformed lines and unreadable files are skipped
            with a warning
        """
        start_date = as_utc(start_date)
        end_date = as_utc(end_date)
        records = []

        for path in sorted(self.audit_directory.glob("audit_*.jsonl")):
            try:
                lines = path.read_text(encoding="utf-8").splitlines()
            except (OSError, UnicodeDecodeError) as e:
                logger.warning(f"Error reading audit log {path.name}: {e}")
                continue

            for line_number, line in enumerate(lines, 1):
                if not line.strip():
                    continue

                try:
                    record = DeletionAuditRecord.model_validate_json(line)
                except ValidationError as e:
                    logger.warning(f"Error deserializing audit record {path.name}:{line_number}: {e}")
                    continue

                timestamp = as_utc(record.timestamp)
                if start_date is not None and timestamp < start_date:
                    continue
                if end_date is not None and timestamp > end_date:
                    continue
                records.append(record)

        return sorted(records, key=lambda r: as_utc(r.timestamp), reverse=True)

    def prune_audit_logs(self, retention_days: int, today: date | None = None) -> list[Path]:
        """
        Delete monthly audit files that ended before the retention window.

        Args:
            retention_days: Number of days of audit history to keep
            today: Reference date, defaults to the current UTC date

        Returns:
            Paths of the removed files
        """
        today = today or datetime.now(timezone.utc).date()
        cutoff = today - timedelta(days=retention_days)
        removed = []

        for path in sorted(self.audit_directory.glob("audit_*.jsonl")):
            try:
                month_start = datetime.strptime(path.stem, "audit_%Y_%m").date()
            except ValueError:
                logger.debug(f"Ignoring unexpected audit file {path.name}")
                continue

            # First day of the following month
            month_end = (month_start.replace(day=28) + timedelta(days=4)).replace(day=1)
            if month_end <= cutoff:
                path.unlink()
                removed.append(path)
                logger.info(f"Removed expired audit log {path.name}")

        return removed

