"""Music lookup routes."""

from fastapi import APIRouter, Query

from src.api.deps import CurrentUser
from src.schemas.song import TrackSearchResponse, VideoMetadata
from src.services.music_lookup_service import MAX_SEARCH_RESULTS, MusicLookupService

router = APIRouter(prefix="/music", tags=["music"])


@router.get(
    "/tracks",
    response_model=TrackSearchResponse,
    summary="Search tracks",
    description="Keyword search over Spotify tracks.",
)
async def search_tracks(
    user: CurrentUser,
    q: str = Query(..., min_length=1, max_length=200, description="Search keyword"),
    limit: int = Query(default=10, ge=1, le=MAX_SEARCH_RESULTS, description="Maximum results"),
) -> TrackSearchResponse:
    """Search tracks by keyword."""
    service = MusicLookupService()
    tracks = await service.search_tracks(q, limit)
    return TrackSearchResponse(query=q, tracks=tracks)


@router.get(
    "/videos",
    response_model=VideoMetadata,
    summary="Video metadata",
    description="Fetch YouTube video metadata by URL or id.",
)
async def get_video(
    user: CurrentUser,
    url: str = Query(..., min_length=1, max_length=500, description="YouTube URL or video id"),
) -> VideoMetadata:
    """Fetch metadata for a YouTube video."""
    service = MusicLookupService()
    return await service.fetch_video(url)
