"""Unit tests for song resolution."""

import pytest

from src.api.middleware.error_handler import BackendError
from src.models.song import SongProvider
from src.schemas.song import ArtistRef
from src.services.song_service import SongService, build_track_url, extract_track_id
from tests.fakes import FakeSupabase


class TestExtractTrackId:
    """Tests for extract_track_id."""

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("https://open.spotify.com/track/4uLU6hMCjMI75M1A2tKUQC", "4uLU6hMCjMI75M1A2tKUQC"),
            ("https://open.spotify.com/intl-ko/track/4uLU6hMCjMI75M1A2tKUQC?si=x", "4uLU6hMCjMI75M1A2tKUQC"),
            ("  4uLU6hMCjMI75M1A2tKUQC  ", "4uLU6hMCjMI75M1A2tKUQC"),
        ],
    )
    def test_spotify(self, raw: str, expected: str) -> None:
        assert extract_track_id(SongProvider.SPOTIFY, raw) == expected

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("https://www.youtube.com/watch?v=dQw4w9WgXcQ&t=42", "dQw4w9WgXcQ"),
            ("https://youtu.be/dQw4w9WgXcQ", "dQw4w9WgXcQ"),
            ("https://www.youtube.com/shorts/dQw4w9WgXcQ", "dQw4w9WgXcQ"),
            ("https://www.youtube.com/embed/dQw4w9WgXcQ", "dQw4w9WgXcQ"),
            ("dQw4w9WgXcQ", "dQw4w9WgXcQ"),
        ],
    )
    def test_youtube(self, raw: str, expected: str) -> None:
        assert extract_track_id(SongProvider.YOUTUBE, raw) == expected

    def test_blank_input(self) -> None:
        assert extract_track_id(SongProvider.YOUTUBE, "   ") == ""

    def test_build_track_url(self) -> None:
        assert build_track_url(SongProvider.SPOTIFY, "abc") == "https://open.spotify.com/track/abc"
        assert build_track_url(SongProvider.YOUTUBE, "abc") == "https://youtu.be/abc"


class TestResolveSong:
    """Tests for resolve_song and link_artists."""

    @pytest.mark.asyncio
    async def test_inserts_on_first_use_and_reuses_after(self, fake_supabase: FakeSupabase) -> None:
        service = SongService()

        first = await service.resolve_song(SongProvider.YOUTUBE, "dQw4w9WgXcQ", "Never Gonna Give You Up")
        second = await service.resolve_song(SongProvider.YOUTUBE, "dQw4w9WgXcQ", "Other title")

        assert first["id"] == second["id"]
        assert first["url"] == "https://youtu.be/dQw4w9WgXcQ"
        assert len(fake_supabase.rows("songs")) == 1

    @pytest.mark.asyncio
    async def test_links_artists(self, fake_supabase: FakeSupabase) -> None:
        service = SongService()
        artists = [ArtistRef(id="a1", name="Artist One"), ArtistRef(id="a2", name="Artist Two")]

        song = await service.resolve_song(SongProvider.SPOTIFY, "track1", "Song", artists=artists)

        assert song["artist_names"] == "Artist One, Artist Two"
        assert len(fake_supabase.rows("artists")) == 2
        assert {row["song_id"] for row in fake_supabase.rows("songs_artists")} == {song["id"]}

    @pytest.mark.asyncio
    async def test_artist_failure_does_not_block_song(self, fake_supabase: FakeSupabase) -> None:
        fake_supabase.fail("songs_artists")
        service = SongService()

        song = await service.resolve_song(
            SongProvider.SPOTIFY, "track1", "Song", artists=[ArtistRef(id="a1", name="Artist")]
        )

        assert song["provider_track_id"] == "track1"
        assert fake_supabase.rows("songs_artists") == []

    @pytest.mark.asyncio
    async def test_song_failure_raises(self, fake_supabase: FakeSupabase) -> None:
        fake_supabase.fail("songs", "insert")

        with pytest.raises(BackendError):
            await SongService().resolve_song(SongProvider.SPOTIFY, "track1", "Song")
