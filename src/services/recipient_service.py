"""Recipient assignment for queued letters."""

import logging
from collections import Counter
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from src.api.middleware.error_handler import BackendError, NotFoundError
from src.core.config import get_settings
from src.core.day_window import to_timestamp, utc_now
from src.core.keyed_lock import KeyedLock
from src.core.recipient_policy import RecipientSelectionPolicy, get_selection_policy
from src.core.supabase import get_supabase_client
from src.models.letter import INBOX_STATUSES, LetterStatus

logger = logging.getLogger(__name__)

# Serializes load check + write for every assignment in this process
_assignment_lock = KeyedLock()
_ASSIGNMENT_KEY = "assignment"


@dataclass(frozen=True)
class AssignmentResult:
    """Outcome of an assignment attempt."""

    assigned: bool
    receiver_id: str | None = None


class RecipientService:
    """Chooses a receiver for a letter under the inbox capacity limit."""

    def __init__(self, policy: RecipientSelectionPolicy | None = None) -> None:
        """Initialize recipient service with Supabase client and selection policy."""
        self.client = get_supabase_client()
        self.policy = policy or get_selection_policy(get_settings().recipient_selection_policy)

    async def list_candidate_ids(self, exclude_user_id: str) -> list[str]:
        """Return every profile id except the sender's."""
        try:
            response = (
                self.client.table("profiles")
                .select("id")
                .neq("id", str(exclude_user_id))
                .execute()
            )
        except Exception as e:
            logger.error("Failed to load recipient candidates: %s", e)
            raise BackendError("Could not load recipient candidates") from e

        return [str(row["id"]) for row in response.data or []]

    async def get_unread_loads(self, candidate_ids: list[str]) -> dict[str, int]:
        """Unread-load for each candidate, zero for candidates with none.

        Only delivered or replied letters that are neither archived nor read
        count against capacity.
        """
        if not candidate_ids:
            return {}

        try:
            response = (
                self.client.table("song_letters")
                .select("receiver_id")
                .in_("receiver_id", candidate_ids)
                .in_("status", [status.value for status in INBOX_STATUSES])
                .is_("archived_at", "null")
                .is_("read_at", "null")
                .execute()
            )
        except Exception as e:
            logger.error("Failed to load inbox loads: %s", e)
            raise BackendError("Could not load inbox loads") from e

        tally = Counter(str(row["receiver_id"]) for row in response.data or [] if row.get("receiver_id"))
        return {candidate: tally.get(candidate, 0) for candidate in candidate_ids}

    async def count_unread_load(self, user_id: str) -> int:
        """Unread-load of a single user."""
        try:
            response = (
                self.client.table("song_letters")
                .select("id", count="exact")
                .eq("receiver_id", str(user_id))
                .in_("status", [status.value for status in INBOX_STATUSES])
                .is_("archived_at", "null")
                .is_("read_at", "null")
                .execute()
            )
        except Exception as e:
            logger.error("Failed to count unread letters for %s: %s", user_id, e)
            raise BackendError("Could not count unread letters") from e

        if response.count is not None:
            return response.count
        return len(response.data or [])

    async def _get_letter(self, letter_id: str) -> dict[str, Any]:
        try:
            response = (
                self.client.table("song_letters")
                .select("id, sender_id, receiver_id, status")
                .eq("id", str(letter_id))
                .limit(1)
                .execute()
            )
        except Exception as e:
            logger.error("Failed to load letter %s: %s", letter_id, e)
            raise BackendError("Could not load letter") from e

        if not response.data:
            raise NotFoundError("Letter not found")
        return response.data[0]

    async def _deliver(self, letter_id: str, receiver_id: str, now: datetime) -> bool:
        """Compare-and-set the letter from queued to delivered.

        Returns:
            bool: False if the letter was no longer queued.
        """
        try:
            response = (
                self.client.table("song_letters")
                .update(
                    {
                        "receiver_id": receiver_id,
                        "status": LetterStatus.DELIVERED.value,
                        "delivered_at": to_timestamp(now),
                    }
                )
                .eq("id", str(letter_id))
                .eq("status", LetterStatus.QUEUED.value)
                .is_("receiver_id", "null")
                .execute()
            )
        except Exception as e:
            logger.error("Failed to deliver letter %s: %s", letter_id, e)
            raise BackendError("Could not deliver letter") from e

        return bool(response.data)

    async def assign(
        self,
        letter_id: str,
        exclude_user_id: str,
        inbox_capacity: int,
        now: datetime | None = None,
    ) -> AssignmentResult:
        """Assign a queued letter to a receiver with room in their inbox.

        Candidates are ranked by the configured policy. Before writing, the
        chosen candidate's load is counted again and the candidate is skipped
        if it has reached capacity in the meantime. A letter that stays
        queued is a normal outcome, not an error.

        Args:
            letter_id: The letter to deliver.
            exclude_user_id: The sender, who never receives their own letter.
            inbox_capacity: Maximum unread-load a receiver may carry.
            now: Delivery timestamp, defaults to the current time.

        Returns:
            AssignmentResult: Whether the letter was assigned and to whom.
        """
        async with _assignment_lock.hold(_ASSIGNMENT_KEY):
            letter = await self._get_letter(letter_id)
            if letter["status"] != LetterStatus.QUEUED.value:
                return AssignmentResult(
                    assigned=letter.get("receiver_id") is not None,
                    receiver_id=letter.get("receiver_id"),
                )

            candidates = await self.list_candidate_ids(exclude_user_id)
            if not candidates:
                logger.info("Letter %s stays queued: no candidates", letter_id)
                return AssignmentResult(assigned=False)

            loads = await self.get_unread_loads(candidates)
            ranked = self.policy.rank(loads, inbox_capacity)

            for candidate in ranked:
                if await self.count_unread_load(candidate) >= inbox_capacity:
                    continue

                if not await self._deliver(letter_id, candidate, now or utc_now()):
                    current = await self._get_letter(letter_id)
                    return AssignmentResult(
                        assigned=current.get("receiver_id") is not None,
                        receiver_id=current.get("receiver_id"),
                    )

                logger.info("Letter %s delivered to %s (policy=%s)", letter_id, candidate, self.policy.name)
                return AssignmentResult(assigned=True, receiver_id=candidate)

            logger.info("Letter %s stays queued: every inbox is full", letter_id)
            return AssignmentResult(assigned=False)
