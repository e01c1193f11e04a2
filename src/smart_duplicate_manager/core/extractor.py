"""Reduction of raw stream data into categorical quality attributes."""

import logging
from pathlib import PurePath

from pydantic import BaseModel

from .models import MediaItem, StreamInfo

logger = logging.getLogger(__name__)


class TechnicalAttributes(BaseModel):
    """Normalized technical labels for one media file."""

    resolution: str = ""
    codec: str = ""
    dynamic_range: str = ""
    audio_codec: str = ""
    audio_channels: str = ""
    audio_format: str = ""
    source_type: str = ""
    bitrate: int = 0


class TechnicalAttributeExtractor:
    """Derives resolution, codec, HDR, audio and source labels for an item."""

    # Minimum height for each resolution bucket, highest first
    RESOLUTION_BUCKETS = (
        (2160, "2160p"),
        (1440, "1440p"),
        (1080, "1080p"),
        (720, "720p"),
        (576, "576p"),
        (480, "480p"),
    )

    # Checked in order; the first pattern found in the upper-cased codec wins
    CODEC_PATTERNS = (
        (("HEVC", "H265", "H.265"), "HEVC"),
        (("H264", "H.264", "AVC"), "H.264"),
        (("AV1",), "AV1"),
        (("VP9",), "VP9"),
        (("MPEG",), "MPEG-4"),
    )

    CHANNEL_LABELS = {8: "7.1", 6: "5.1", 2: "Stereo", 1: "Mono"}

    # Checked in order against the upper-cased filename
    SOURCE_PATTERNS = (
        (("REMUX",), "Remux"),
        (("BLURAY", "BLU-RAY"), "BluRay"),
        (("WEB-DL", "WEBDL"), "WEB-DL"),
        (("WEBRIP",), "WEBRip"),
        (("HDTV",), "HDTV"),
        (("DVDRIP", "DVD-RIP"), "DVDRip"),
    )

    UNKNOWN_SOURCE = "Unknown"

    def extract(self, item: MediaItem) -> TechnicalAttributes:
        """
        Extract technical labels for a catalog item.

        Args:
            item: Item whose stream descriptor and path are analyzed

        Returns:
            TechnicalAttributes; labels without backing stream data stay empty
        """
        attributes = TechnicalAttributes(source_type=self.infer_source_type(item.path))
        streams = item.streams or StreamInfo()

        if streams.has_video:
            attributes.resolution = self.resolution_label(streams.video_height)
            attributes.codec = self.normalize_codec(streams.video_codec)
            attributes.dynamic_range = self.detect_dynamic_range(
                streams.video_profile, streams.video_range
            )
            if streams.video_bitrate:
                attributes.bitrate = streams.video_bitrate // 1000

        if streams.has_audio:
            attributes.audio_codec = streams.audio_codec or ""
            if streams.audio_channels is not None:
                attributes.audio_channels = self.format_channels(streams.audio_channels)
            attributes.audio_format = self.audio_format_label(
                attributes.audio_codec, attributes.audio_channels
            )

        logger.debug(f"Extracted attributes for {item.item_id}: {attributes}")
        return attributes

    def resolution_label(self, height: int | None) -> str:
        """Bucket a video height into a resolution label."""
        if not height:
            return ""

        for min_height, label in self.RESOLUTION_BUCKETS:
            if height >= min_height:
                return label
        return ""

    def detect_dynamic_range(self, profile: str | None, video_range: str | None) -> str:
        """
        Classify the dynamic range of a video stream.

        Args:
            profile: Codec profile text, which carries Dolby Vision / HDR10+ signaling
            video_range: The stream's range classifier

        Returns:
            One of "Dolby Vision", "HDR10+", "HDR10", "HLG" or "SDR"
        """
        profile_text = (profile or "").upper()
        if "DOLBY VISION" in profile_text:
            return "Dolby Vision"
        if "HDR10+" in profile_text or "HDR10PLUS" in profile_text:
            return "HDR10+"

        range_text = (video_range or "").upper()
        if "HDR" in range_text:
            return "HDR10"
        if "HLG" in range_text:
            return "HLG"

        return "SDR"

    def normalize_codec(self, codec: str | None) -> str:
        """Normalize a raw codec name into its family label."""
        if not codec:
            return ""

        codec = codec.upper()
        for patterns, label in self.CODEC_PATTERNS:
            if any(pattern in codec for pattern in patterns):
                return label
        return codec

    def format_channels(self, channels: int) -> str:
        """Format a channel count in the usual notation."""
        return self.CHANNEL_LABELS.get(channels, str(channels))

    def audio_format_label(self, codec: str, channels: str) -> str:
        """
        Describe the audio format from codec name and channel label.

        Args:
            codec: Raw audio codec name
            channels: Channel label as produced by format_channels

        Returns:
            Audio format label, or an empty string when no codec is known
        """
        if not codec:
            return ""

        codec = codec.upper()

        # Premium formats first
        if "ATMOS" in codec:
            return "Dolby Atmos"
        if "DTS:X" in codec or "DTSX" in codec:
            return "DTS:X"
        if "TRUEHD" in codec:
            return "TrueHD 7.1" if channels == "7.1" else "TrueHD 5.1"
        if "DTS-HD" in codec or "DTSHD" in codec:
            return "DTS-HD MA 7.1" if channels == "7.1" else "DTS-HD MA 5.1"
        if "AC3" in codec or "DD" in codec:
            return "AC3 5.1"
        if "AAC" in codec:
            return "AAC Stereo"

        return f"{codec} {channels}".strip()

    def infer_source_type(self, path: str) -> str:
        """Infer the release source from filename patterns."""
        filename = PurePath(path).name.upper() if path else ""

        for patterns, label in self.SOURCE_PATTERNS:
            if any(pattern in filename for pattern in patterns):
                return label
        return self.UNKNOWN_SOURCE
