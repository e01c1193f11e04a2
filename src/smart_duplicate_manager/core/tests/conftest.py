"""Shared fixtures for core tests."""

from datetime import datetime

import pytest

from ..catalog import InMemoryCatalog
from ..models import MediaItem, StreamInfo


@pytest.fixture
def make_item():
    """Factory for catalog items with sensible defaults."""

    def _make_item(item_id: str, name: str = "The Matrix", **kwargs) -> MediaItem:
        kwargs.setdefault("path", f"/media/{item_id}.mkv")
        return MediaItem(item_id=item_id, name=name, **kwargs)

    return _make_item


@pytest.fixture
def uhd_item(make_item) -> MediaItem:
    """A 2160p HDR remux with Atmos audio."""
    return make_item(
        "uhd",
        production_year=1999,
        provider_ids={"Imdb": "tt0133093", "Tmdb": "603"},
        runtime_minutes=136,
        genres=["Action", "Science Fiction"],
        community_rating=8.7,
        premiere_date=datetime(1999, 3, 31),
        overview="A hacker learns the truth about reality.",
        path="/media/The.Matrix.1999.2160p.UHD.BluRay.REMUX.HDR.HEVC.Atmos.mkv",
        streams=StreamInfo(
            video_width=3840,
            video_height=2160,
            video_codec="hevc",
            video_profile="Main 10",
            video_range="HDR10",
            video_bitrate=58_000_000,
            audio_codec="TrueHD Atmos",
            audio_channels=8,
        ),
    )


@pytest.fixture
def hd_item(make_item) -> MediaItem:
    """A 1080p SDR web download with stereo AAC."""
    return make_item(
        "hd",
        name="the matrix",
        production_year=1999,
        provider_ids={"Imdb": "tt0133093"},
        runtime_minutes=136.5,
        genres=["action", "Thriller"],
        community_rating=8.1,
        premiere_date=datetime(1999, 6, 11),
        overview="A hacker learns the truth about reality.",
        path="/media/The.Matrix.1999.1080p.WEB-DL.H264.AAC.mkv",
        streams=StreamInfo(
            video_width=1920,
            video_height=1080,
            video_codec="h264",
            video_profile="High",
            video_range="SDR",
            video_bitrate=8_000_000,
            audio_codec="aac",
            audio_channels=2,
        ),
    )


@pytest.fixture
def catalog(uhd_item, hd_item) -> InMemoryCatalog:
    """Catalog with one movies collection holding the two Matrix versions."""
    return InMemoryCatalog({"movies": [uhd_item, hd_item]})
