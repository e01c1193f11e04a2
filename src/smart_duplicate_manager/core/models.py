"""Pydantic models for smart duplicate manager."""

import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator, model_validator


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _new_id() -> str:
    return uuid.uuid4().hex


def as_utc(value: datetime | None) -> datetime | None:
    """Treat naive timestamps as UTC so they compare with aware ones."""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class StreamInfo(BaseModel):
    """Technical stream descriptor reported by the media catalog."""

    video_width: int | None = Field(None, ge=0, description="Video width in pixels")
    video_height: int | None = Field(None, ge=0, description="Video height in pixels")
    video_codec: str | None = Field(None, description="Raw video codec name")
    video_profile: str | None = Field(None, description="Video codec profile text")
    video_range: str | None = Field(None, description="Video range classifier (SDR, HDR10, HLG...)")
    video_bitrate: int | None = Field(None, ge=0, description="Video bit rate in bits per second")
    audio_codec: str | None = Field(None, description="Raw audio codec name")
    audio_channels: int | None = Field(None, ge=0, description="Audio channel count")

    @property
    def has_video(self) -> bool:
        """Whether any video stream attribute was reported."""
        return any(
            value is not None
            for value in (
                self.video_width,
                self.video_height,
                self.video_codec,
                self.video_profile,
                self.video_range,
                self.video_bitrate,
            )
        )

    @property
    def has_audio(self) -> bool:
        """Whether any audio stream attribute was reported."""
        return self.audio_codec is not None or self.audio_channels is not None


class MediaItem(BaseModel):
    """A movie or episode as exposed by the media catalog."""

    item_id: str = Field(..., min_length=1, description="Catalog item identifier")
    name: str = Field("", description="Display title")
    item_type: str = Field("Movie", description="Catalog item kind (Movie, Episode)")
    production_year: int | None = Field(None, description="Production year")
    provider_ids: dict[str, str] = Field(
        default_factory=dict, description="External catalog IDs keyed by provider name"
    )
    runtime_minutes: float | None = Field(None, ge=0, description="Runtime in minutes")
    genres: list[str] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)
    people: list[str] = Field(default_factory=list, description="Cast and crew names")
    community_rating: float | None = Field(None, description="Community rating")
    premiere_date: datetime | None = Field(None, description="Premiere date")
    studios: list[str] = Field(default_factory=list)
    overview: str | None = Field(None, description="Overview text")
    path: str = Field("", description="Path to the media file")
    streams: StreamInfo | None = Field(None, description="Technical stream descriptor")

    def provider_id(self, provider: str) -> str | None:
        """Look up a provider ID, ignoring the case of the provider name."""
        wanted = provider.lower()
        for key, value in self.provider_ids.items():
            if key.lower() == wanted:
                return value
        return None

    @property
    def filename(self) -> str:
        """Just the filename part of the item's path."""
        return Path(self.path).name if self.path else ""

    def __str__(self) -> str:
        year = f" ({self.production_year})" if self.production_year else ""
        return f"{self.name}{year} [{self.item_id}]"


class VersionRecord(BaseModel):
    """One member of a duplicate group."""

    item_id: str = Field(..., min_length=1, description="Catalog item identifier")
    file_path: str = Field("", description="Full path to the media file")
    quality_score: int = Field(0, description="Calculated quality rank (higher is better)")
    resolution: str = Field("", description="Resolution label (e.g. 2160p)")
    codec: str = Field("", description="Video codec label (e.g. HEVC)")
    dynamic_range: str = Field("", description="Dynamic range label (e.g. HDR10)")
    audio_codec: str = Field("", description="Primary audio codec")
    audio_channels: str = Field("", description="Audio channel layout (e.g. 7.1)")
    audio_format: str = Field("", description="Audio format label (e.g. TrueHD 7.1)")
    source_type: str = Field("", description="Inferred source (e.g. Remux, WEB-DL)")
    file_size: int = Field(0, ge=0, description="File size in bytes")
    bitrate: int = Field(0, ge=0, description="Video bit rate in kbps")
    metadata_contribution: list[str] = Field(
        default_factory=list, description="Merged metadata fields supplied by this version"
    )

    @property
    def size_mb(self) -> float:
        """File size in megabytes."""
        return self.file_size / (1024 * 1024)

    @property
    def filename(self) -> str:
        """Just the filename."""
        return Path(self.file_path).name if self.file_path else ""

    def __str__(self) -> str:
        labels = " ".join(
            label
            for label in (
                self.resolution,
                self.codec,
                self.dynamic_range,
                self.audio_format,
                self.source_type,
            )
            if label
        )
        return f"{self.filename or self.item_id} [{labels}] score={self.quality_score}"


class MergedMetadata(BaseModel):
    """Metadata consolidated from every version of a duplicate group."""

    title: str = ""
    genres: list[str] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)
    people: list[str] = Field(default_factory=list)
    average_rating: float = 0.0
    release_date: datetime | None = None
    studios: list[str] = Field(default_factory=list)
    external_ids: dict[str, str] = Field(default_factory=dict)
    descriptions: list[str] = Field(default_factory=list)


class DuplicateGroup(BaseModel):
    """Represents a group of media items judged to be the same title."""

    group_id: str = Field(default_factory=_new_id, description="Unique group identifier")
    library_id: str = Field("", description="Collection containing these duplicates")
    primary_version_id: str | None = Field(None, description="Item ID of the primary version")
    primary_pinned: bool = Field(
        False, description="Primary was chosen explicitly and must not be re-ranked"
    )
    versions: list[VersionRecord] = Field(default_factory=list)
    merged_metadata: MergedMetadata = Field(default_factory=MergedMetadata)
    detection_timestamp: datetime = Field(default_factory=_utcnow)
    last_reviewed_timestamp: datetime | None = None
    status: str = Field("Pending", description="Review status")

    @model_validator(mode="after")
    def validate_versions(self) -> "DuplicateGroup":
        """Version item IDs are distinct and the primary is one of them."""
        item_ids = [version.item_id for version in self.versions]
        if len(item_ids) != len(set(item_ids)):
            raise ValueError("Duplicate group versions must have distinct item IDs")
        if self.primary_version_id and self.primary_version_id not in item_ids:
            raise ValueError(
                f"Primary version {self.primary_version_id} is not a member of the group"
            )
        return self

    @property
    def version_count(self) -> int:
        """Number of versions in this group."""
        return len(self.versions)

    @property
    def total_size_mb(self) -> float:
        """Total size of all versions in MB."""
        return sum(version.size_mb for version in self.versions)

    @property
    def is_valid(self) -> bool:
        """A group needs at least two versions to be kept."""
        return self.version_count >= 2

    def get_version(self, item_id: str) -> VersionRecord | None:
        """Find the version for an item ID."""
        for version in self.versions:
            if version.item_id == item_id:
                return version
        return None

    def get_primary_version(self) -> VersionRecord | None:
        """Get the version currently designated as primary."""
        if not self.primary_version_id:
            return None
        return self.get_version(self.primary_version_id)

    def set_primary(self, item_id: str) -> None:
        """Explicitly choose the primary version; scoring will no longer replace it."""
        if self.get_version(item_id) is None:
            raise ValueError(f"Item {item_id} is not a member of group {self.group_id}")
        self.primary_version_id = item_id
        self.primary_pinned = True

    def remove_version(self, item_id: str) -> VersionRecord | None:
        """Drop a version, clearing the primary if it pointed at it."""
        version = self.get_version(item_id)
        if version is None:
            return None
        self.versions.remove(version)
        if self.primary_version_id == item_id:
            self.primary_version_id = self.versions[0].item_id if self.versions else None
            self.primary_pinned = False
        return version

    def __str__(self) -> str:
        title = self.merged_metadata.title or self.group_id
        return f"Duplicate group '{title}' ({self.version_count} versions, {self.total_size_mb:.1f} MB)"


class DeletionAuditRecord(BaseModel):
    """One audit log entry for a deletion attempt."""

    record_id: str = Field(default_factory=_new_id)
    group_id: str
    item_id: str
    file_path: str = ""
    quality_score: int = 0
    deletion_reason: str = ""
    user_initiated: bool = False
    user_id: str | None = None
    timestamp: datetime = Field(default_factory=_utcnow)
    success: bool = False
    error_message: str | None = None


JobStatus = Literal["Pending", "Running", "Completed", "Cancelled", "Failed", "Skipped"]


class ScanJob(BaseModel):
    """Progress record for one collection scan."""

    job_id: str = Field(default_factory=_new_id)
    library_id: str
    status: JobStatus = "Pending"
    progress_percentage: int = Field(0, ge=0, le=100)
    status_message: str = ""
    start_time: datetime = Field(default_factory=_utcnow)
    end_time: datetime | None = None
    duplicates_found: int = Field(0, ge=0)
    items_processed: int = Field(0, ge=0)

    def finish(self, status: JobStatus, message: str = "") -> None:
        """Mark the job as finished."""
        self.status = status
        self.status_message = message
        self.end_time = _utcnow()
        if status == "Completed":
            self.progress_percentage = 100


GroupingStrategy = Literal["edge", "connected"]


class LibraryPreferences(BaseModel):
    """Per-collection preferences for duplicate detection and quality ranking."""

    library_id: str = ""
    resolution_priority: list[str] = Field(
        default_factory=lambda: ["4320p", "2160p", "1440p", "1080p", "720p", "576p", "480p"]
    )
    dynamic_range_priority: list[str] = Field(
        default_factory=lambda: ["HDR10+", "Dolby Vision", "HDR10", "HLG", "SDR"]
    )
    codec_priority: list[str] = Field(
        default_factory=lambda: ["AV1", "HEVC", "H.264", "VP9", "MPEG-4"]
    )
    audio_priority: list[str] = Field(
        default_factory=lambda: [
            "Dolby Atmos",
            "DTS:X",
            "TrueHD 7.1",
            "DTS-HD MA 7.1",
            "DTS-HD MA 5.1",
            "AC3 5.1",
            "AAC Stereo",
        ]
    )
    source_type_priority: list[str] = Field(
        default_factory=lambda: ["Remux", "BluRay", "WEB-DL", "WEBRip", "HDTV", "DVDRip"]
    )
    similarity_threshold: int = Field(
        default=50, ge=0, description="Minimum pairwise similarity score for duplicates"
    )
    grouping_strategy: GroupingStrategy = Field(
        default="edge", description="How matching pairs inside a title bucket become groups"
    )

    # Deletion policy; carried for the deletion service, not used for scoring.
    auto_delete_enabled: bool = False
    minimum_quality_threshold: str = ""
    require_manual_review: bool = True

    @field_validator(
        "resolution_priority",
        "dynamic_range_priority",
        "codec_priority",
        "audio_priority",
        "source_type_priority",
    )
    @classmethod
    def strip_blank_entries(cls, v: list[str]) -> list[str]:
        """Drop empty entries and surrounding whitespace."""
        return [entry.strip() for entry in v if entry and entry.strip()]


class ApplicationConfig(BaseModel):
    """Configuration settings for the application."""

    enabled: bool = Field(default=True, description="Run scans at all")
    scan_threads: int = Field(
        default=2, ge=1, le=8, description="Worker count for per-group analysis"
    )
    log_level: str = Field(default="INFO", description="Logging level")
    audit_retention_days: int = Field(
        default=30, ge=0, description="Days to keep deletion audit logs"
    )
    dry_run: bool = Field(default=False, description="Preview deletions without executing")
    library_preferences: dict[str, LibraryPreferences] = Field(default_factory=dict)

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Ensure the level is one logging understands."""
        level = v.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR"}:
            raise ValueError(f"Unsupported log level: {v}")
        return level

    @model_validator(mode="after")
    def fill_library_ids(self) -> "ApplicationConfig":
        """Preferences keyed by collection inherit that collection's ID."""
        for library_id, preferences in self.library_preferences.items():
            if not preferences.library_id:
                preferences.library_id = library_id
        return self

    def preferences_for(self, library_id: str) -> LibraryPreferences:
        """Configured preferences for a collection, or the defaults."""
        preferences = self.library_preferences.get(library_id)
        if preferences is None:
            return LibraryPreferences(library_id=library_id)
        return preferences

    @classmethod
    def load(cls, path: Path) -> "ApplicationConfig":
        """
        Load configuration from a JSON file.

        Args:
            path: Path to the JSON configuration file

        Returns:
            Validated ApplicationConfig

        Raises:
            OSError: If the file cannot be read
            pydantic.ValidationError: If the content is invalid
        """
        return cls.model_validate_json(path.read_text(encoding="utf-8"))
