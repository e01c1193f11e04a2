"""Core functionality for smart duplicate manager."""

from .catalog import InMemoryCatalog, MediaCatalog
from .extractor import TechnicalAttributeExtractor, TechnicalAttributes
from .grouper import DuplicateGrouper
from .locking import ScanLock
from .merger import MetadataMerger
from .models import (
    ApplicationConfig,
    DeletionAuditRecord,
    DuplicateGroup,
    LibraryPreferences,
    MediaItem,
    MergedMetadata,
    ScanJob,
    StreamInfo,
    VersionRecord,
)
from .normalizer import normalize_title
from .persistence import DataPersistenceService
from .pipeline import DuplicateScanner
from .quality import QualityScorer, priority_score
from .results import MergeResult, MergeStatus, QualityResult, ScanOutcome, ScanStatus
from .scan_task import ScanBusyError, ScanTask
from .similarity import SimilarityScorer

__all__ = [
    "ApplicationConfig",
    "DataPersistenceService",
    "DeletionAuditRecord",
    "DuplicateGroup",
    "DuplicateGrouper",
    "DuplicateScanner",
    "InMemoryCatalog",
    "LibraryPreferences",
    "MediaCatalog",
    "MediaItem",
    "MergeResult",
    "MergeStatus",
    "MergedMetadata",
    "MetadataMerger",
    "QualityResult",
    "QualityScorer",
    "ScanBusyError",
    "ScanJob",
    "ScanLock",
    "ScanOutcome",
    "ScanStatus",
    "ScanTask",
    "SimilarityScorer",
    "StreamInfo",
    "TechnicalAttributeExtractor",
    "TechnicalAttributes",
    "VersionRecord",
    "normalize_title",
    "priority_score",
]
