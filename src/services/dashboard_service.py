"""Home screen counters."""

from datetime import datetime

from src.schemas.profile import DashboardResponse
from src.services.app_settings_service import AppSettingsService
from src.services.profile_service import ProfileService
from src.services.rate_limit_service import RateLimitService
from src.services.recipient_service import RecipientService


class DashboardService:
    """Builds the send and inbox counters for one user."""

    def __init__(self) -> None:
        self.profiles = ProfileService()
        self.app_settings = AppSettingsService()
        self.rate_limits = RateLimitService()
        self.recipients = RecipientService()

    async def get_dashboard(self, user_id: str, now: datetime | None = None) -> DashboardResponse:
        """Collect today's send count and the unread inbox load.

        The unread count uses the same predicate as the inbox capacity check.
        """
        profile = await self.profiles.get_profile(user_id)
        limits = await self.app_settings.get_letter_settings()
        allowance = await self.rate_limits.can_send(str(user_id), limits.daily_limit, now)
        unread = await self.recipients.count_unread_load(str(user_id))

        return DashboardResponse(
            username=profile.get("username") if profile else None,
            has_seen_tutorial=bool(profile.get("has_seen_tutorial")) if profile else False,
            sent_today=allowance.sent_today,
            daily_limit=limits.daily_limit,
            remaining_today=allowance.remaining,
            unread_inbox=unread,
            inbox_capacity=limits.inbox_capacity,
        )
