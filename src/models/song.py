"""Song and artist model type definitions for database operations."""

from datetime import datetime
from enum import Enum
from typing import TypedDict
from uuid import UUID


class SongProvider(str, Enum):
    """Music services a song can come from."""

    SPOTIFY = "spotify"
    YOUTUBE = "youtube"


class Song(TypedDict):
    """songs table row representation.

    (provider, provider_track_id) is the natural key; one row per external track.
    """

    id: UUID
    provider: SongProvider
    provider_track_id: str
    title: str
    artist_names: str | None
    url: str | None
    thumbnail_url: str | None
    duration_ms: int | None
    created_at: datetime


class Artist(TypedDict):
    """artists table row representation, keyed by (provider, provider_artist_id)."""

    id: UUID
    name: str
    provider: SongProvider
    provider_artist_id: str
