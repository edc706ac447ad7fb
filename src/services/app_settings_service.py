"""Runtime letter limits stored in the app_settings table."""

import logging
from dataclasses import dataclass

from src.core.config import get_settings
from src.core.supabase import get_supabase_client

logger = logging.getLogger(__name__)

MAX_DAILY_LETTERS_KEY = "max_daily_letters"
MAX_INBOX_LETTERS_KEY = "max_inbox_letters"


@dataclass(frozen=True)
class LetterSettings:
    """Limits passed explicitly into the rate limiter and recipient selector."""

    daily_limit: int
    inbox_capacity: int


class AppSettingsService:
    """Service for reading tunable limits from app_settings."""

    def __init__(self) -> None:
        """Initialize app settings service with Supabase client."""
        self.client = get_supabase_client()
        self.settings = get_settings()

    def defaults(self) -> LetterSettings:
        """Limits used when a row is missing or unreadable."""
        return LetterSettings(
            daily_limit=self.settings.default_max_daily_letters,
            inbox_capacity=self.settings.default_max_inbox_letters,
        )

    async def get_letter_settings(self) -> LetterSettings:
        """Load the daily limit and inbox capacity.

        A failed read falls back to the configured defaults with a warning;
        the limits are never treated as unlimited. Non-positive values in
        the table are ignored.

        Returns:
            LetterSettings: Current limits.
        """
        defaults = self.defaults()

        try:
            response = (
                self.client.table("app_settings")
                .select("key, value_int")
                .in_("key", [MAX_DAILY_LETTERS_KEY, MAX_INBOX_LETTERS_KEY])
                .execute()
            )
        except Exception as e:
            logger.warning("Failed to read app_settings, using defaults: %s", e)
            return defaults

        values: dict[str, int] = {}
        for row in response.data or []:
            value = row.get("value_int")
            if isinstance(value, int) and value > 0:
                values[row["key"]] = value

        return LetterSettings(
            daily_limit=values.get(MAX_DAILY_LETTERS_KEY, defaults.daily_limit),
            inbox_capacity=values.get(MAX_INBOX_LETTERS_KEY, defaults.inbox_capacity),
        )
