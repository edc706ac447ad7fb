"""Track search and video metadata through Supabase edge functions."""

import json
import logging
from typing import Any

from src.api.middleware.error_handler import BackendError, NotFoundError, ValidationError
from src.core.config import get_settings
from src.core.supabase import get_supabase_client
from src.models.song import SongProvider
from src.schemas.song import ArtistRef, TrackSearchResult, VideoMetadata
from src.services.song_service import extract_track_id

logger = logging.getLogger(__name__)

MAX_SEARCH_RESULTS = 20


class MusicLookupService:
    """Service wrapping the music metadata edge functions."""

    def __init__(self) -> None:
        """Initialize music lookup service with Supabase client."""
        self.client = get_supabase_client()
        self.settings = get_settings()

    def _invoke(self, function_name: str, body: dict[str, Any]) -> Any:
        """Call an edge function and decode its JSON body.

        Raises:
            BackendError: If the call fails or returns something other than JSON.
        """
        try:
            result = self.client.functions.invoke(
                function_name,
                invoke_options={"body": body, "responseType": "json"},
            )
        except Exception as e:
            logger.error("Edge function %s failed: %s", function_name, e)
            raise BackendError("Music lookup failed. Please try again later.") from e

        if isinstance(result, (bytes, bytearray, str)):
            try:
                return json.loads(result)
            except ValueError as e:
                logger.error("Edge function %s returned invalid JSON", function_name)
                raise BackendError("Music lookup returned an invalid response") from e
        return result

    async def search_tracks(self, query: str, limit: int = 10) -> list[TrackSearchResult]:
        """Search Spotify tracks by keyword.

        Args:
            query: Search keyword.
            limit: Maximum number of results.

        Returns:
            list[TrackSearchResult]: Matching tracks.

        Raises:
            ValidationError: If the query is blank.
            BackendError: If the lookup fails.
        """
        query = query.strip()
        if not query:
            raise ValidationError("Please enter a search keyword")
        limit = max(1, min(limit, MAX_SEARCH_RESULTS))

        payload = self._invoke(self.settings.track_search_function, {"q": query, "limit": limit})
        items = payload.get("tracks", []) if isinstance(payload, dict) else payload or []

        results = []
        for item in items[:limit]:
            results.append(
                TrackSearchResult(
                    id=item["id"],
                    name=item["name"],
                    artists=[ArtistRef(id=a["id"], name=a["name"]) for a in item.get("artists", [])],
                    url=item.get("url"),
                    image_url=item.get("imageUrl") or item.get("image_url"),
                    duration_ms=item.get("durationMs") or item.get("duration_ms"),
                )
            )
        return results

    async def fetch_video(self, url_or_id: str) -> VideoMetadata:
        """Fetch YouTube video metadata by URL or id.

        Raises:
            ValidationError: If no video id can be extracted.
            NotFoundError: If the function finds no video.
            BackendError: If the lookup fails.
        """
        video_id = extract_track_id(SongProvider.YOUTUBE, url_or_id)
        if not video_id:
            raise ValidationError("Please enter a YouTube URL or video id")

        payload = self._invoke(self.settings.video_metadata_function, {"id": video_id})
        if not payload:
            raise NotFoundError("Video not found")

        return VideoMetadata(
            id=payload.get("id", video_id),
            title=payload["title"],
            channel_title=payload.get("channelTitle") or payload.get("channel_title"),
            url=payload.get("url"),
            image_url=payload.get("imageUrl") or payload.get("image_url"),
            duration_sec=payload.get("durationSec") or payload.get("duration_sec"),
            channel_url=payload.get("channelUrl") or payload.get("channel_url"),
        )
