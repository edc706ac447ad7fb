"""Dashboard and limit routes."""

from fastapi import APIRouter

from src.api.deps import CurrentUser, LetterLimits
from src.schemas.profile import DashboardResponse, LetterSettingsResponse
from src.services.dashboard_service import DashboardService

router = APIRouter(tags=["dashboard"])


@router.get(
    "/dashboard",
    response_model=DashboardResponse,
    summary="Home screen counters",
    description="Letters sent today against the daily limit and unread letters against inbox capacity.",
)
async def get_dashboard(user: CurrentUser) -> DashboardResponse:
    """Return the authenticated user's send and inbox counters."""
    service = DashboardService()
    return await service.get_dashboard(str(user.user_id))


@router.get(
    "/settings/letters",
    response_model=LetterSettingsResponse,
    summary="Letter limits",
    description="Current daily send limit and inbox capacity.",
)
async def get_letter_limits(user: CurrentUser, limits: LetterLimits) -> LetterSettingsResponse:
    """Return the current letter limits."""
    return LetterSettingsResponse(
        daily_limit=limits.daily_limit,
        inbox_capacity=limits.inbox_capacity,
    )
