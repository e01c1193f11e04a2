"""CLI entry point for smart duplicate manager."""

import argparse
import json
import logging
import sys
from pathlib import Path

from pydantic import ValidationError

from .. import __version__
from ..core import (
    ApplicationConfig,
    DataPersistenceService,
    InMemoryCatalog,
    ScanBusyError,
    ScanJob,
    ScanOutcome,
    ScanTask,
)


def setup_logging(level: str = "INFO") -> None:
    """
    Set up logging configuration.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR)
    """
    logging.basicConfig(
        level=getattr(logging, level.upper()),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def print_scan_results(job: ScanJob, outcome: ScanOutcome | None, detailed: bool = False) -> None:
    """
    Print one collection's scan results to the console.

    Args:
        job: Job record of the collection scan
        outcome: Scanner outcome holding the groups, if the scan ran
        detailed: Whether to show every version of every group
    """
    print("\n" + "=" * 60)
    print(f"LIBRARY {job.library_id}: {job.status.upper()}")
    print("=" * 60)

    print(f"Items processed: {job.items_processed}")
    print(f"Duplicate groups: {job.duplicates_found}")
    if job.status_message:
        print(f"Status: {job.status_message}")

    if outcome is None or not outcome.groups:
        return

    print(f"Potential space savings: {outcome.potential_space_savings_mb:.1f} MB")
    print("-" * 60)

    for i, group in enumerate(outcome.groups, 1):
        metadata = group.merged_metadata
        print(f"\nGroup {i}: '{metadata.title}' ({group.version_count} versions)")
        primary = group.get_primary_version()
        if primary:
            print(f"  Primary: {primary.filename or primary.item_id} (score {primary.quality_score})")

        if detailed:
            for version in group.versions:
                marker = "*" if version.item_id == group.primary_version_id else "-"
                print(f"    {marker} {version}")
                print(f"      Path: {version.file_path}")
                print(f"      Size: {version.size_mb:.1f} MB, bitrate {version.bitrate} kbps")
            if metadata.genres:
                print(f"  Genres: {', '.join(metadata.genres)}")
            if metadata.external_ids:
                ids = ", ".join(f"{k}={v}" for k, v in metadata.external_ids.items())
                print(f"  External IDs: {ids}")


def create_parser() -> argparse.ArgumentParser:
    """Create and configure the argument parser."""
    parser = argparse.ArgumentParser(
        description="Smart Duplicate Manager - find duplicate movies and episodes and rank their quality",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Scan every collection in a catalog export
  smart-duplicate-manager --catalog catalog.json

  # Scan one collection with per-library preferences
  smart-duplicate-manager --catalog catalog.json --collection movies --config config.json

  # Print the stored groups as JSON
  smart-duplicate-manager --catalog catalog.json --output-format json
        """,
    )

    parser.add_argument(
        "--catalog",
        type=Path,
        required=True,
        metavar="FILE",
        help="JSON catalog export to scan",
    )
    parser.add_argument(
        "--collection",
        action="append",
        dest="collections",
        metavar="ID",
        help="Collection to scan (repeatable; default: all collections in the catalog)",
    )
    parser.add_argument("--config", type=Path, metavar="FILE", help="JSON configuration file")
    parser.add_argument(
        "--data-dir",
        type=Path,
        default=Path("smart-duplicate-data"),
        metavar="DIR",
        help="Directory for stored results and audit logs (default: ./smart-duplicate-data)",
    )
    parser.add_argument(
        "--detailed", action="store_true", help="Show every version of each duplicate group"
    )
    parser.add_argument(
        "--output-format",
        choices=["text", "json"],
        default="text",
        help="Output format for results (default: text)",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Set logging level (default: from config, else INFO)",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    return parser


def main(argv: list[str] | None = None) -> int:
    """
    Main entry point for the CLI application.

    Returns:
        Exit code (0 for success, non-zero for error)
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    try:
        config = ApplicationConfig.load(args.config) if args.config else ApplicationConfig()
    except (OSError, ValidationError) as e:
        print(f"Error: could not load configuration: {e}")
        return 1

    setup_logging(args.log_level or config.log_level)
    logger = logging.getLogger(__name__)

    try:
        catalog = InMemoryCatalog.from_json_file(args.catalog)
        persistence = DataPersistenceService(args.data_dir)
        task = ScanTask(catalog, persistence, config)

        library_ids = args.collections or catalog.collection_ids
        jobs = task.run(library_ids)

        if args.output_format == "json":
            print(
                json.dumps(
                    {
                        "jobs": [job.model_dump(mode="json") for job in jobs],
                        "groups": {
                            library_id: [
                                group.model_dump(mode="json") for group in outcome.groups
                            ]
                            for library_id, outcome in task.outcomes.items()
                        },
                    },
                    indent=2,
                )
            )
        else:
            for job in jobs:
                print_scan_results(job, task.outcomes.get(job.library_id), detailed=args.detailed)

        return 0 if all(job.status != "Failed" for job in jobs) else 1

    except KeyboardInterrupt:
        print("\n\nOperation cancelled by user.")
        return 1
    except ScanBusyError as e:
        print(f"Error: {e}")
        return 1
    except (OSError, ValidationError) as e:
        print(f"Error: {e}")
        return 1
    except Exception as e:
        logger.exception("Unexpected error occurred")
        print(f"Error: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
