"""Letter business logic service: sending, reading, replying, archiving."""

import logging
from datetime import datetime
from typing import Any

from src.api.middleware.error_handler import BackendError, ConflictError, NotFoundError, ValidationError
from src.core.day_window import to_timestamp, utc_now
from src.core.send_guard import get_send_guard
from src.core.supabase import get_supabase_client
from src.models.letter import ANONYMOUS_SENDER_NAME, INBOX_STATUSES, Letter, LetterStatus, Reply
from src.schemas.letter import (
    InboxResponse,
    LetterCreate,
    LetterDetailResponse,
    LetterResponse,
    ReplyCreate,
    ReplyResponse,
    SendLetterResponse,
    SentLettersResponse,
)
from src.schemas.song import SongSummary
from src.services import letter_lifecycle as lifecycle
from src.services.app_settings_service import AppSettingsService
from src.services.profile_service import ProfileService
from src.services.rate_limit_service import RateLimitService
from src.services.recipient_service import RecipientService
from src.services.song_service import SongService, extract_track_id

logger = logging.getLogger(__name__)


class LetterService:
    """Service for the letter lifecycle."""

    def __init__(self) -> None:
        """Initialize letter service with Supabase client and collaborators."""
        self.client = get_supabase_client()
        self.songs = SongService()
        self.profiles = ProfileService()
        self.rate_limits = RateLimitService()
        self.recipients = RecipientService()
        self.app_settings = AppSettingsService()

    # Reads

    async def get_letter(self, letter_id: str) -> Letter:
        """Load a letter row.

        Raises:
            NotFoundError: If no letter has that id.
            BackendError: If the query fails.
        """
        try:
            response = (
                self.client.table("song_letters")
                .select("*")
                .eq("id", str(letter_id))
                .limit(1)
                .execute()
            )
        except Exception as e:
            logger.error("Failed to load letter %s: %s", letter_id, e)
            raise BackendError("Could not load the letter") from e

        if not response.data:
            raise NotFoundError("Letter not found")
        return response.data[0]

    async def get_replies(self, letter_id: str) -> list[Reply]:
        """Replies of a letter, oldest first."""
        try:
            response = (
                self.client.table("song_letter_replies")
                .select("*")
                .eq("letter_id", str(letter_id))
                .order("created_at")
                .execute()
            )
        except Exception as e:
            logger.error("Failed to load replies for %s: %s", letter_id, e)
            raise BackendError("Could not load replies") from e
        return response.data or []

    async def get_letter_detail(
        self,
        letter_id: str,
        user_id: str,
        now: datetime | None = None,
    ) -> LetterDetailResponse:
        """Open a letter as its sender or receiver.

        The receiver's first open stamps read_at; later opens change nothing.

        Raises:
            NotFoundError: If the letter does not exist.
            ForbiddenError: If the viewer is neither sender nor receiver.
        """
        letter = await self.get_letter(letter_id)
        lifecycle.ensure_visible(letter, user_id)

        if lifecycle.is_receiver(letter, user_id) and lifecycle.needs_read_stamp(letter):
            letter = await self._mark_read(letter, now or utc_now())

        song = None
        try:
            song = await self.songs.get_song(letter["song_id"])
        except Exception as e:
            logger.warning("Failed to load song for letter %s: %s", letter_id, e)

        replies = await self.get_replies(letter_id)

        base = self.to_response(letter, song, user_id)
        status = lifecycle.status_of(letter)
        is_receiver = lifecycle.is_receiver(letter, user_id)
        return LetterDetailResponse(
            **base.model_dump(),
            replies=[self.to_reply_response(reply, user_id) for reply in replies],
            can_reply=is_receiver and status in INBOX_STATUSES,
            can_archive=is_receiver and status in INBOX_STATUSES,
        )

    async def _mark_read(self, letter: dict[str, Any], now: datetime) -> dict[str, Any]:
        try:
            response = (
                self.client.table("song_letters")
                .update({"read_at": to_timestamp(now)})
                .eq("id", str(letter["id"]))
                .is_("read_at", "null")
                .execute()
            )
        except Exception as e:
            logger.error("Failed to mark letter %s read: %s", letter["id"], e)
            raise BackendError("Could not mark the letter as read") from e

        if response.data:
            return response.data[0]
        # Another request stamped it first
        return await self.get_letter(letter["id"])

    async def list_inbox(self, user_id: str, inbox_capacity: int) -> InboxResponse:
        """Non-archived letters delivered to user, newest delivery first."""
        try:
            response = (
                self.client.table("song_letters")
                .select("*")
                .eq("receiver_id", str(user_id))
                .is_("archived_at", "null")
                .order("delivered_at", desc=True)
                .order("created_at", desc=True)
                .execute()
            )
        except Exception as e:
            logger.error("Failed to load inbox for %s: %s", user_id, e)
            raise BackendError("Could not load the inbox") from e

        letters = response.data or []
        songs = await self._songs_for(letters)
        items = [self.to_response(letter, songs.get(str(letter["song_id"])), user_id) for letter in letters]
        return InboxResponse(
            letters=items,
            unread_count=sum(1 for item in items if item.is_unread),
            inbox_capacity=inbox_capacity,
        )

    async def list_sent(self, user_id: str) -> SentLettersResponse:
        """Letters sent by user, newest first, queued ones included."""
        try:
            response = (
                self.client.table("song_letters")
                .select("*")
                .eq("sender_id", str(user_id))
                .order("created_at", desc=True)
                .execute()
            )
        except Exception as e:
            logger.error("Failed to load sent letters for %s: %s", user_id, e)
            raise BackendError("Could not load sent letters") from e

        letters = response.data or []
        songs = await self._songs_for(letters)
        return SentLettersResponse(
            letters=[self.to_response(letter, songs.get(str(letter["song_id"])), user_id) for letter in letters]
        )

    async def _songs_for(self, letters: list[dict[str, Any]]) -> dict[str, dict[str, Any]]:
        try:
            return await self.songs.get_songs([str(letter["song_id"]) for letter in letters])
        except Exception as e:
            logger.warning("Failed to load songs for letter list: %s", e)
            return {}

    # Writes

    async def send_letter(
        self,
        sender_id: str,
        data: LetterCreate,
        now: datetime | None = None,
    ) -> SendLetterResponse:
        """Compose, store and try to deliver a letter.

        Steps run strictly in order: local validation, duplicate guard, daily
        limit pre-check, song resolution, daily limit re-check with the
        insert, then recipient assignment.

        Args:
            sender_id: The authenticated sender.
            data: Letter contents.
            now: Reference time for the daily window and timestamps.

        Returns:
            SendLetterResponse: The stored letter and whether it was delivered.

        Raises:
            ValidationError: Blank message or unusable track input.
            DuplicateSubmissionError: A send from this user is already running.
            QuotaExceededError: The daily limit is reached.
            BackendError: A backend call on the primary path failed.
        """
        message = data.message.strip()
        title = data.title.strip()
        if not message:
            raise ValidationError("Please write a message")
        if not title:
            raise ValidationError("Please enter the track title")
        track_id = extract_track_id(data.provider, data.track_input)
        if not track_id:
            raise ValidationError("Please check the track URL or id")

        sender_id = str(sender_id)
        now = now or utc_now()

        async with get_send_guard().hold(sender_id):
            limits = await self.app_settings.get_letter_settings()
            await self.rate_limits.ensure_can_send(sender_id, limits.daily_limit, now)

            sender_name = ANONYMOUS_SENDER_NAME
            if not data.is_anonymous:
                profile = await self.profiles.get_profile(sender_id)
                if not profile or not profile.get("username"):
                    raise ValidationError("Your display name could not be loaded. Please reload and try again.")
                sender_name = profile["username"]

            song = await self.songs.resolve_song(
                provider=data.provider,
                track_id=track_id,
                title=title,
                artists=data.artists,
                url=data.url,
                thumbnail_url=data.thumbnail_url,
                duration_ms=data.duration_ms,
            )

            async with self.rate_limits.reserve_send_slot(sender_id, limits.daily_limit, now) as slot:
                letter = await self._insert_letter(sender_id, str(song["id"]), sender_name, data.is_anonymous, message, now)

            assigned = False
            try:
                result = await self.recipients.assign(letter["id"], sender_id, limits.inbox_capacity, now)
                assigned = result.assigned
            except BackendError as e:
                logger.warning("Letter %s left queued after assignment failure: %s", letter["id"], e.message)

            if assigned:
                letter = await self.get_letter(letter["id"])

        return SendLetterResponse(
            letter=self.to_response(letter, song, sender_id),
            assigned=assigned,
            sent_today=slot.sent_today + 1,
            daily_limit=limits.daily_limit,
        )

    async def _insert_letter(
        self,
        sender_id: str,
        song_id: str,
        sender_name: str,
        is_anonymous: bool,
        message: str,
        now: datetime,
    ) -> dict[str, Any]:
        letter_data = {
            "sender_id": sender_id,
            "receiver_id": None,
            "song_id": song_id,
            "sender_name": sender_name,
            "is_anonymous": is_anonymous,
            "message": message,
            "status": LetterStatus.QUEUED.value,
            "created_at": to_timestamp(now),
        }
        try:
            response = self.client.table("song_letters").insert(letter_data).execute()
        except Exception as e:
            logger.error("Failed to insert letter for %s: %s", sender_id, e)
            raise BackendError("Could not send the letter") from e

        letter = response.data[0]
        logger.info("Letter %s queued by %s", letter["id"], sender_id)
        return letter

    async def reply(
        self,
        letter_id: str,
        user_id: str,
        data: ReplyCreate,
        now: datetime | None = None,
    ) -> ReplyResponse:
        """Store a reply from the receiver.

        The letter is claimed first with a conditional update that only
        matches delivered or replied letters, so a letter archived in the
        meantime never receives a reply. The first reply moves it from
        delivered to replied; if storing that reply then fails, the letter
        goes back to delivered.

        Raises:
            ValidationError: Blank reply.
            NotFoundError: Unknown letter.
            ForbiddenError: Caller is not the receiver.
            ConflictError: Letter is archived.
            BackendError: The claim or the insert failed.
        """
        content = data.content.strip()
        if not content:
            raise ValidationError("Please write a reply")

        letter = await self.get_letter(letter_id)
        lifecycle.ensure_receiver(letter, user_id, "reply to")
        first_reply = lifecycle.ensure_can_reply(letter)
        now = now or utc_now()

        try:
            claimed = (
                self.client.table("song_letters")
                .update({"status": LetterStatus.REPLIED.value})
                .eq("id", str(letter_id))
                .in_("status", [status.value for status in INBOX_STATUSES])
                .execute()
            )
        except Exception as e:
            logger.error("Failed to mark letter %s replied: %s", letter_id, e)
            raise BackendError("Could not send the reply") from e

        if not claimed.data:
            raise ConflictError("This letter has been archived and can no longer be replied to")

        try:
            response = (
                self.client.table("song_letter_replies")
                .insert(
                    {
                        "letter_id": str(letter_id),
                        "replier_id": str(user_id),
                        "content": content,
                        "is_anonymous": data.is_anonymous,
                        "created_at": to_timestamp(now),
                    }
                )
                .execute()
            )
        except Exception as e:
            logger.error("Failed to store reply on %s: %s", letter_id, e)
            if first_reply:
                self._restore_delivered(letter_id)
            raise BackendError("Could not send the reply") from e

        if first_reply:
            logger.info("Letter %s replied", letter_id)

        return self.to_reply_response(response.data[0], user_id)

    def _restore_delivered(self, letter_id: str) -> None:
        try:
            (
                self.client.table("song_letters")
                .update({"status": LetterStatus.DELIVERED.value})
                .eq("id", str(letter_id))
                .eq("status", LetterStatus.REPLIED.value)
                .execute()
            )
        except Exception as e:
            logger.error("Letter %s left replied without a stored reply: %s", letter_id, e)

    async def archive(
        self,
        letter_id: str,
        user_id: str,
        now: datetime | None = None,
    ) -> LetterResponse:
        """Archive a delivered or replied letter for its receiver.

        Archiving an archived letter returns it unchanged.

        Raises:
            NotFoundError: Unknown letter.
            ForbiddenError: Caller is not the receiver.
            ConflictError: Letter was never delivered.
        """
        letter = await self.get_letter(letter_id)
        lifecycle.ensure_receiver(letter, user_id, "archive")

        if lifecycle.ensure_can_archive(letter):
            try:
                response = (
                    self.client.table("song_letters")
                    .update(
                        {
                            "status": LetterStatus.ARCHIVED.value,
                            "archived_at": to_timestamp(now or utc_now()),
                        }
                    )
                    .eq("id", str(letter_id))
                    .in_("status", [status.value for status in INBOX_STATUSES])
                    .execute()
                )
            except Exception as e:
                logger.error("Failed to archive letter %s: %s", letter_id, e)
                raise BackendError("Could not archive the letter") from e

            letter = response.data[0] if response.data else await self.get_letter(letter_id)
            logger.info("Letter %s archived", letter_id)

        return self.to_response(letter, None, user_id)

    # Mapping

    @staticmethod
    def to_response(
        letter: dict[str, Any],
        song: dict[str, Any] | None,
        viewer_id: str,
    ) -> LetterResponse:
        """Shape a letter row for the viewer without exposing user ids."""
        is_receiver = lifecycle.is_receiver(letter, viewer_id)
        status = lifecycle.status_of(letter)
        return LetterResponse(
            id=letter["id"],
            sender_name=letter["sender_name"],
            is_anonymous=letter.get("is_anonymous", False),
            message=letter["message"],
            status=status,
            created_at=letter["created_at"],
            delivered_at=letter.get("delivered_at"),
            read_at=letter.get("read_at"),
            archived_at=letter.get("archived_at"),
            song=SongSummary(**song) if song else None,
            is_sender=lifecycle.is_sender(letter, viewer_id),
            is_receiver=is_receiver,
            is_delivered=letter.get("receiver_id") is not None,
            is_unread=(
                is_receiver
                and status in INBOX_STATUSES
                and letter.get("read_at") is None
                and letter.get("archived_at") is None
            ),
        )

    @staticmethod
    def to_reply_response(reply: dict[str, Any], viewer_id: str) -> ReplyResponse:
        return ReplyResponse(
            id=reply["id"],
            letter_id=reply["letter_id"],
            content=reply["content"],
            is_anonymous=reply.get("is_anonymous", False),
            created_at=reply["created_at"],
            is_mine=str(reply.get("replier_id")) == str(viewer_id),
        )
