"""Letter model type definitions for database operations."""

from datetime import datetime
from enum import Enum
from typing import TypedDict
from uuid import UUID


class LetterStatus(str, Enum):
    """Letter status values matching the song_letters.status column."""

    QUEUED = "queued"
    DELIVERED = "delivered"
    REPLIED = "replied"
    ARCHIVED = "archived"


# Statuses that count against a receiver's unread-load
INBOX_STATUSES: tuple[LetterStatus, ...] = (LetterStatus.DELIVERED, LetterStatus.REPLIED)

ANONYMOUS_SENDER_NAME = "Anonymous"


class Letter(TypedDict):
    """song_letters table row representation.

    receiver_id is null exactly while the letter is queued.
    """

    id: UUID
    sender_id: UUID
    receiver_id: UUID | None
    song_id: UUID
    sender_name: str
    is_anonymous: bool
    message: str
    status: LetterStatus
    created_at: datetime
    delivered_at: datetime | None
    read_at: datetime | None
    archived_at: datetime | None


class Reply(TypedDict):
    """song_letter_replies table row representation. Immutable once written."""

    id: UUID
    letter_id: UUID
    replier_id: UUID
    content: str
    is_anonymous: bool
    created_at: datetime
