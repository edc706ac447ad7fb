"""Daily send limit per sender."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass
from datetime import datetime

from src.api.middleware.error_handler import BackendError, QuotaExceededError
from src.core.config import get_settings
from src.core.day_window import calendar_day_bounds, seconds_until_next_day, to_timestamp, utc_now
from src.core.keyed_lock import KeyedLock
from src.core.supabase import get_supabase_client

logger = logging.getLogger(__name__)

# One lock per sender, shared by every RateLimitService in this process
_slot_locks = KeyedLock()


@dataclass(frozen=True)
class SendAllowance:
    """Result of a daily limit check."""

    allowed: bool
    sent_today: int
    daily_limit: int

    @property
    def remaining(self) -> int:
        return max(self.daily_limit - self.sent_today, 0)


@dataclass(frozen=True)
class SendSlot:
    """Token proving the daily limit was re-checked right before an insert."""

    sender_id: str
    sent_today: int
    daily_limit: int
    reserved_at: datetime


class RateLimitService:
    """Counts letters a sender created today and enforces the daily limit."""

    def __init__(self) -> None:
        """Initialize rate limit service with Supabase client."""
        self.client = get_supabase_client()
        self.timezone = get_settings().app_timezone

    async def count_sent_today(self, sender_id: str, now: datetime | None = None) -> int:
        """Count letters created by sender within the current calendar day.

        Raises:
            BackendError: If the count query fails.
        """
        start, end = calendar_day_bounds(now or utc_now(), self.timezone)

        try:
            response = (
                self.client.table("song_letters")
                .select("id", count="exact")
                .eq("sender_id", str(sender_id))
                .gte("created_at", to_timestamp(start))
                .lt("created_at", to_timestamp(end))
                .execute()
            )
        except Exception as e:
            logger.error("Failed to count today's letters for %s: %s", sender_id, e)
            raise BackendError("Could not check today's send count") from e

        if response.count is not None:
            return response.count
        return len(response.data or [])

    async def can_send(
        self,
        sender_id: str,
        daily_limit: int,
        now: datetime | None = None,
    ) -> SendAllowance:
        """Check whether sender is under the daily limit.

        Args:
            sender_id: The sender's user id.
            daily_limit: Maximum letters per calendar day.
            now: Reference time, defaults to the current time.

        Returns:
            SendAllowance: Whether a send is allowed and how many were sent today.
        """
        sent_today = await self.count_sent_today(sender_id, now)
        return SendAllowance(
            allowed=sent_today < daily_limit,
            sent_today=sent_today,
            daily_limit=daily_limit,
        )

    async def ensure_can_send(
        self,
        sender_id: str,
        daily_limit: int,
        now: datetime | None = None,
    ) -> SendAllowance:
        """Like can_send, but raise when the limit is reached.

        Raises:
            QuotaExceededError: If sent_today >= daily_limit.
        """
        now = now or utc_now()
        allowance = await self.can_send(sender_id, daily_limit, now)
        if not allowance.allowed:
            logger.info(
                "Daily limit reached for %s (%d / %d)",
                sender_id,
                allowance.sent_today,
                daily_limit,
            )
            raise QuotaExceededError(
                sent_today=allowance.sent_today,
                daily_limit=daily_limit,
                retry_after=seconds_until_next_day(now, self.timezone),
            )
        return allowance

    @asynccontextmanager
    async def reserve_send_slot(
        self,
        sender_id: str,
        daily_limit: int,
        now: datetime | None = None,
    ) -> AsyncIterator[SendSlot]:
        """Re-check the limit and hold the sender's slot while inserting.

        The insert must happen inside the block. Sends from the same sender
        are serialized within this process; separate worker processes can
        still race between the count and the insert.

        Raises:
            QuotaExceededError: If the limit was reached since the pre-check.
        """
        key = str(sender_id)
        async with _slot_locks.hold(key):
            now = now or utc_now()
            allowance = await self.ensure_can_send(key, daily_limit, now)
            yield SendSlot(
                sender_id=key,
                sent_today=allowance.sent_today,
                daily_limit=daily_limit,
                reserved_at=now,
            )
