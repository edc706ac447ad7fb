"""Unit tests for MusicLookupService."""

import json

import pytest

from src.api.middleware.error_handler import BackendError, NotFoundError, ValidationError
from src.services.music_lookup_service import MusicLookupService
from tests.fakes import FakeSupabase

SEARCH_PAYLOAD = {
    "tracks": [
        {
            "id": "4uLU6hMCjMI75M1A2tKUQC",
            "name": "Never Gonna Give You Up",
            "artists": [{"id": "0gxyHStUsqpMadRV0Di1Qt", "name": "Rick Astley"}],
            "url": "https://open.spotify.com/track/4uLU6hMCjMI75M1A2tKUQC",
            "imageUrl": "https://i.scdn.co/image/abc",
            "durationMs": 213573,
        },
        {"id": "second", "name": "Second", "artists": []},
    ]
}


class TestSearchTracks:
    """Tests for search_tracks."""

    @pytest.mark.asyncio
    async def test_maps_function_result(self, fake_supabase: FakeSupabase) -> None:
        fake_supabase.functions.results["spotify-search"] = SEARCH_PAYLOAD

        tracks = await MusicLookupService().search_tracks("  rick astley ", limit=5)

        assert [track.id for track in tracks] == ["4uLU6hMCjMI75M1A2tKUQC", "second"]
        assert tracks[0].artists[0].name == "Rick Astley"
        assert tracks[0].image_url == "https://i.scdn.co/image/abc"
        assert tracks[0].duration_ms == 213573
        name, options = fake_supabase.functions.calls[0]
        assert name == "spotify-search"
        assert options["body"] == {"q": "rick astley", "limit": 5}

    @pytest.mark.asyncio
    async def test_decodes_raw_json_bytes(self, fake_supabase: FakeSupabase) -> None:
        fake_supabase.functions.results["spotify-search"] = json.dumps(SEARCH_PAYLOAD).encode()

        tracks = await MusicLookupService().search_tracks("rick", limit=1)

        assert len(tracks) == 1

    @pytest.mark.asyncio
    async def test_blank_query(self, fake_supabase: FakeSupabase) -> None:
        with pytest.raises(ValidationError):
            await MusicLookupService().search_tracks("   ")

        assert fake_supabase.functions.calls == []

    @pytest.mark.asyncio
    async def test_function_failure(self, fake_supabase: FakeSupabase) -> None:
        fake_supabase.functions.results["spotify-search"] = RuntimeError("upstream 500")

        with pytest.raises(BackendError):
            await MusicLookupService().search_tracks("rick")


class TestFetchVideo:
    """Tests for fetch_video."""

    @pytest.mark.asyncio
    async def test_extracts_id_from_url(self, fake_supabase: FakeSupabase) -> None:
        fake_supabase.functions.results["youtube-metadata"] = {
            "id": "dQw4w9WgXcQ",
            "title": "Never Gonna Give You Up",
            "channelTitle": "Rick Astley",
            "durationSec": 213,
        }

        video = await MusicLookupService().fetch_video("https://youtu.be/dQw4w9WgXcQ")

        assert video.title == "Never Gonna Give You Up"
        assert video.channel_title == "Rick Astley"
        assert video.duration_sec == 213
        assert fake_supabase.functions.calls[0][1]["body"] == {"id": "dQw4w9WgXcQ"}

    @pytest.mark.asyncio
    async def test_unknown_video(self, fake_supabase: FakeSupabase) -> None:
        with pytest.raises(NotFoundError):
            await MusicLookupService().fetch_video("dQw4w9WgXcQ")
