"""Song resolution: track ids, song rows, and artist links."""

import logging
import re
from urllib.parse import parse_qs, urlparse

from src.api.middleware.error_handler import BackendError
from src.core.supabase import get_supabase_client
from src.models.song import Song, SongProvider
from src.schemas.song import ArtistRef

logger = logging.getLogger(__name__)

SPOTIFY_TRACK_PATTERN = re.compile(r"spotify\.com/(?:intl-[a-z]+/)?track/([A-Za-z0-9]+)")


def extract_track_id(provider: SongProvider, raw: str) -> str:
    """Pull the provider's track id out of a URL, or return the raw id.

    Args:
        provider: Music service the input belongs to.
        raw: A share URL or a bare id.

    Returns:
        str: The track or video id; empty string for blank input.
    """
    trimmed = raw.strip()
    if not trimmed:
        return ""

    if provider == SongProvider.SPOTIFY:
        match = SPOTIFY_TRACK_PATTERN.search(trimmed)
        return match.group(1) if match else trimmed

    parsed = urlparse(trimmed)
    host = parsed.hostname or ""
    if host.endswith("youtu.be"):
        return parsed.path.lstrip("/").split("/")[0] or trimmed
    if host.endswith("youtube.com"):
        video_ids = parse_qs(parsed.query).get("v")
        if video_ids:
            return video_ids[0]
        parts = [part for part in parsed.path.split("/") if part]
        # /shorts/<id> and /embed/<id>
        if len(parts) == 2 and parts[0] in ("shorts", "embed"):
            return parts[1]
    return trimmed


def build_track_url(provider: SongProvider, track_id: str) -> str:
    """Canonical share link for a provider track id."""
    if provider == SongProvider.SPOTIFY:
        return f"https://open.spotify.com/track/{track_id}"
    return f"https://youtu.be/{track_id}"


class SongService:
    """Service for upserting songs and their artists."""

    def __init__(self) -> None:
        """Initialize song service with Supabase client."""
        self.client = get_supabase_client()

    async def get_song(self, song_id: str) -> Song | None:
        """Get a song by id, or None if it does not exist."""
        response = (
            self.client.table("songs")
            .select("*")
            .eq("id", str(song_id))
            .limit(1)
            .execute()
        )
        return response.data[0] if response.data else None

    async def get_songs(self, song_ids: list[str]) -> dict[str, Song]:
        """Get several songs keyed by id."""
        if not song_ids:
            return {}
        response = (
            self.client.table("songs")
            .select("*")
            .in_("id", sorted({str(song_id) for song_id in song_ids}))
            .execute()
        )
        return {str(row["id"]): row for row in response.data or []}

    async def find_song(self, provider: SongProvider, track_id: str) -> Song | None:
        """Look a song up by its natural key."""
        response = (
            self.client.table("songs")
            .select("*")
            .eq("provider", provider.value)
            .eq("provider_track_id", track_id)
            .limit(1)
            .execute()
        )
        return response.data[0] if response.data else None

    async def resolve_song(
        self,
        provider: SongProvider,
        track_id: str,
        title: str,
        artists: list[ArtistRef] | None = None,
        url: str | None = None,
        thumbnail_url: str | None = None,
        duration_ms: int | None = None,
    ) -> Song:
        """Return the song row for a track, inserting it on first use.

        Artist rows and song/artist links are filled in afterwards on a
        best-effort basis.

        Raises:
            BackendError: If the song cannot be read or stored.
        """
        artists = artists or []

        try:
            song = await self.find_song(provider, track_id)
            if song is None:
                song_data = {
                    "provider": provider.value,
                    "provider_track_id": track_id,
                    "title": title.strip(),
                    "artist_names": ", ".join(artist.name for artist in artists) or None,
                    "url": url or build_track_url(provider, track_id),
                    "thumbnail_url": thumbnail_url,
                    "duration_ms": duration_ms,
                }
                response = self.client.table("songs").insert(song_data).execute()
                song = response.data[0]
                logger.info("Stored new %s song %s", provider.value, track_id)
        except Exception as e:
            logger.error("Failed to resolve song %s/%s: %s", provider.value, track_id, e)
            raise BackendError("Could not save the song") from e

        if artists:
            await self.link_artists(str(song["id"]), provider, artists)

        return song

    async def link_artists(self, song_id: str, provider: SongProvider, artists: list[ArtistRef]) -> int:
        """Upsert artists and link them to a song.

        Failures are logged and skipped; a letter never fails because of
        artist bookkeeping.

        Returns:
            int: Number of artists linked.
        """
        linked = 0
        for artist in artists:
            try:
                artist_id = await self._upsert_artist(provider, artist)
                existing = (
                    self.client.table("songs_artists")
                    .select("song_id")
                    .eq("song_id", song_id)
                    .eq("artist_id", artist_id)
                    .limit(1)
                    .execute()
                )
                if not existing.data:
                    self.client.table("songs_artists").insert(
                        {"song_id": song_id, "artist_id": artist_id}
                    ).execute()
                linked += 1
            except Exception as e:
                logger.warning("Failed to link artist %s to song %s: %s", artist.id, song_id, e)
        return linked

    async def _upsert_artist(self, provider: SongProvider, artist: ArtistRef) -> str:
        response = (
            self.client.table("artists")
            .select("id")
            .eq("provider", provider.value)
            .eq("provider_artist_id", artist.id)
            .limit(1)
            .execute()
        )
        if response.data:
            return str(response.data[0]["id"])

        inserted = (
            self.client.table("artists")
            .insert(
                {
                    "name": artist.name,
                    "provider": provider.value,
                    "provider_artist_id": artist.id,
                }
            )
            .execute()
        )
        return str(inserted.data[0]["id"])
