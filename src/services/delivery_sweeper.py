"""Background retry of letters left queued for lack of inbox room."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from src.api.middleware.error_handler import APIError
from src.core.config import get_settings
from src.core.supabase import get_supabase_client
from src.models.letter import LetterStatus
from src.services.app_settings_service import AppSettingsService
from src.services.recipient_service import RecipientService

logger = logging.getLogger(__name__)


@dataclass
class SweepStats:
    """Outcome of one sweep."""

    examined: int = 0
    delivered: int = 0
    failed: int = 0


class QueuedLetterSweeper:
    """Retries assignment of queued letters, oldest first."""

    def __init__(self, interval_seconds: int | None = None, batch_size: int | None = None) -> None:
        settings = get_settings()
        self.interval_seconds = (
            settings.queue_sweep_interval_seconds if interval_seconds is None else interval_seconds
        )
        self.batch_size = settings.queue_sweep_batch_size if batch_size is None else batch_size
        self._task: asyncio.Task | None = None

    def _load_page(self, offset: int) -> list[dict[str, Any]]:
        response = (
            get_supabase_client()
            .table("song_letters")
            .select("id, sender_id")
            .eq("status", LetterStatus.QUEUED.value)
            .is_("receiver_id", "null")
            .order("created_at")
            .range(offset, offset + self.batch_size - 1)
            .execute()
        )
        return response.data or []

    async def sweep_once(self, now: datetime | None = None) -> SweepStats:
        """Try to deliver every queued letter, oldest first, batch_size at a time.

        Delivered letters drop out of the queue, so the next page starts
        after the letters that stayed queued. Letters nobody can take
        never hide newer ones behind them. A failure on one letter is
        logged and the sweep moves on.
        """
        stats = SweepStats()
        limits = None
        recipients = None
        offset = 0

        while True:
            page = self._load_page(offset)
            if not page:
                break
            if recipients is None:
                limits = await AppSettingsService().get_letter_settings()
                recipients = RecipientService()

            delivered = 0
            for letter in page:
                stats.examined += 1
                try:
                    result = await recipients.assign(letter["id"], letter["sender_id"], limits.inbox_capacity, now)
                except APIError as e:
                    stats.failed += 1
                    logger.warning("Sweep could not assign letter %s: %s", letter["id"], e.message)
                    continue
                if result.assigned:
                    delivered += 1

            stats.delivered += delivered
            if len(page) < self.batch_size:
                break
            offset += len(page) - delivered

        if stats.examined:
            logger.info(
                "Queue sweep: %d examined, %d delivered, %d failed",
                stats.examined,
                stats.delivered,
                stats.failed,
            )
        return stats

    async def start(self) -> None:
        """Start the background sweep loop unless disabled."""
        if self.interval_seconds <= 0:
            logger.info("Queued letter sweeper disabled")
            return
        if self._task is None:
            self._task = asyncio.create_task(self._loop())
            logger.info("Queued letter sweeper started (every %ds)", self.interval_seconds)

    async def stop(self) -> None:
        """Stop the background sweep loop."""
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
            logger.info("Queued letter sweeper stopped")

    async def _loop(self) -> None:
        while True:
            await asyncio.sleep(self.interval_seconds)
            try:
                await self.sweep_once()
            except Exception as e:
                logger.error("Queue sweep failed: %s", e)


# Global singleton instance
_sweeper: QueuedLetterSweeper | None = None


def get_sweeper() -> QueuedLetterSweeper:
    """Get or create the global sweeper instance."""
    global _sweeper
    if _sweeper is None:
        _sweeper = QueuedLetterSweeper()
    return _sweeper


async def init_sweeper() -> QueuedLetterSweeper:
    """Start the sweeper. Call at app startup."""
    sweeper = get_sweeper()
    await sweeper.start()
    return sweeper


async def shutdown_sweeper() -> None:
    """Stop the sweeper. Call at app shutdown."""
    global _sweeper
    if _sweeper:
        await _sweeper.stop()
        _sweeper = None
