"""Profile API routes."""

from fastapi import APIRouter, status

from src.api.deps import CurrentUser
from src.api.middleware.error_handler import NotFoundError
from src.schemas.profile import ProfileResponse, ProfileUpdate
from src.services.profile_service import ProfileService

router = APIRouter(prefix="/profiles", tags=["profiles"])


@router.get(
    "/me",
    response_model=ProfileResponse,
    summary="Get current user's profile",
    description="Returns the authenticated user's profile information.",
)
async def get_my_profile(user: CurrentUser) -> ProfileResponse:
    """Get the authenticated user's profile.

    Raises:
        NotFoundError: 404 if the profile was never created.
    """
    service = ProfileService()
    profile = await service.require_profile(user.user_id)
    return ProfileResponse(**profile)


@router.put(
    "/me",
    response_model=ProfileResponse,
    summary="Update current user's profile",
    description="Updates the display name and/or public user ID.",
)
async def update_my_profile(
    data: ProfileUpdate,
    user: CurrentUser,
) -> ProfileResponse:
    """Update the authenticated user's profile.

    Raises:
        ValidationError: 422 if the user ID is invalid or taken.
        NotFoundError: 404 if profile not found.
    """
    service = ProfileService()
    await service.require_profile(user.user_id)

    profile = await service.update_profile(user.user_id, data)
    if not profile:
        raise NotFoundError("Profile not found")

    return ProfileResponse(**profile)


@router.post(
    "/me/tutorial",
    response_model=ProfileResponse,
    summary="Dismiss the tutorial",
    description="Records that the user has seen the first-visit tutorial.",
)
async def mark_tutorial_seen(user: CurrentUser) -> ProfileResponse:
    """Mark the tutorial as seen."""
    service = ProfileService()
    profile = await service.mark_tutorial_seen(user.user_id)
    if not profile:
        raise NotFoundError("Profile not found")
    return ProfileResponse(**profile)


@router.delete(
    "/me",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete account",
    description="Deletes the authenticated user's account and profile.",
)
async def delete_my_account(user: CurrentUser) -> None:
    """Delete the authenticated user's account.

    Raises:
        BackendError: 502 if the deletion function fails.
    """
    service = ProfileService()
    await service.delete_account(user.user_id)
