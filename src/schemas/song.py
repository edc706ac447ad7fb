"""Song and music lookup Pydantic schemas."""

from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from src.models.song import SongProvider


class ArtistRef(BaseModel):
    """Artist as returned by a track lookup."""

    model_config = ConfigDict(from_attributes=True)

    id: str = Field(..., min_length=1, description="Provider artist id")
    name: str = Field(..., min_length=1, description="Artist name")


class SongSummary(BaseModel):
    """Song attached to a letter."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID = Field(description="Song unique identifier")
    provider: SongProvider = Field(description="Music service")
    provider_track_id: str = Field(description="Track or video id at the provider")
    title: str = Field(description="Track title")
    artist_names: str | None = Field(default=None, description="Comma-separated artist names")
    url: str | None = Field(default=None, description="Link to the track")
    thumbnail_url: str | None = Field(default=None, description="Album art or thumbnail")
    duration_ms: int | None = Field(default=None, description="Duration in milliseconds")


class TrackSearchResult(BaseModel):
    """A Spotify track search hit."""

    model_config = ConfigDict(from_attributes=True)

    id: str = Field(description="Spotify track id")
    name: str = Field(description="Track name")
    artists: list[ArtistRef] = Field(default_factory=list, description="Track artists")
    url: str | None = Field(default=None, description="Spotify track URL")
    image_url: str | None = Field(default=None, description="Album art URL")
    duration_ms: int | None = Field(default=None, description="Duration in milliseconds")


class TrackSearchResponse(BaseModel):
    """Track search results."""

    model_config = ConfigDict(from_attributes=True)

    query: str = Field(description="Search keyword")
    tracks: list[TrackSearchResult] = Field(default_factory=list, description="Matching tracks")


class VideoMetadata(BaseModel):
    """YouTube video metadata."""

    model_config = ConfigDict(from_attributes=True)

    id: str = Field(description="YouTube video id")
    title: str = Field(description="Video title")
    channel_title: str | None = Field(default=None, description="Channel name")
    url: str | None = Field(default=None, description="Video URL")
    image_url: str | None = Field(default=None, description="Thumbnail URL")
    duration_sec: int | None = Field(default=None, description="Duration in seconds")
    channel_url: str | None = Field(default=None, description="Channel URL")
