"""Letter Pydantic schemas for API request/response models."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from src.models.letter import LetterStatus
from src.models.song import SongProvider
from src.schemas.song import ArtistRef, SongSummary

MAX_MESSAGE_LENGTH = 2000


class LetterCreate(BaseModel):
    """Schema for composing and sending a letter.

    track_input accepts either a provider URL or a bare track/video id.
    """

    model_config = ConfigDict(from_attributes=True)

    provider: SongProvider = Field(description="Music service of the track")
    track_input: str = Field(..., min_length=1, max_length=500, description="Track URL or provider id")
    title: str = Field(..., min_length=1, max_length=300, description="Track title")
    artists: list[ArtistRef] = Field(default_factory=list, description="Artists from the lookup result")
    url: str | None = Field(default=None, max_length=500, description="Canonical track URL if known")
    thumbnail_url: str | None = Field(default=None, max_length=500, description="Album art or video thumbnail")
    duration_ms: int | None = Field(default=None, ge=0, description="Track duration in milliseconds")
    message: str = Field(..., min_length=1, max_length=MAX_MESSAGE_LENGTH, description="Letter text")
    is_anonymous: bool = Field(default=False, description="Hide the sender's display name")


class LetterResponse(BaseModel):
    """Schema for a letter as seen by its sender or receiver.

    The counterpart's user id is never included.
    """

    model_config = ConfigDict(from_attributes=True)

    id: UUID = Field(description="Letter unique identifier")
    sender_name: str = Field(description="Display name chosen by the sender, or Anonymous")
    is_anonymous: bool = Field(description="Whether the sender chose to stay anonymous")
    message: str = Field(description="Letter text")
    status: LetterStatus = Field(description="Lifecycle status")
    created_at: datetime = Field(description="When the letter was sent")
    delivered_at: datetime | None = Field(default=None, description="When the letter reached an inbox")
    read_at: datetime | None = Field(default=None, description="When the receiver first opened it")
    archived_at: datetime | None = Field(default=None, description="When the receiver archived it")
    song: SongSummary | None = Field(default=None, description="The attached track")
    is_sender: bool = Field(default=False, description="Viewer sent this letter")
    is_receiver: bool = Field(default=False, description="Viewer received this letter")
    is_delivered: bool = Field(default=False, description="Letter has a receiver")
    is_unread: bool = Field(default=False, description="Letter is in the viewer's inbox and unopened")


class ReplyCreate(BaseModel):
    """Schema for replying to a received letter."""

    model_config = ConfigDict(from_attributes=True)

    content: str = Field(..., min_length=1, max_length=MAX_MESSAGE_LENGTH, description="Reply text")
    is_anonymous: bool = Field(default=False, description="Reply without attribution")


class ReplyResponse(BaseModel):
    """Schema for a reply."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID = Field(description="Reply unique identifier")
    letter_id: UUID = Field(description="Letter this reply belongs to")
    content: str = Field(description="Reply text")
    is_anonymous: bool = Field(default=False, description="Reply was sent anonymously")
    created_at: datetime = Field(description="When the reply was written")
    is_mine: bool = Field(default=False, description="Viewer wrote this reply")


class LetterDetailResponse(LetterResponse):
    """Letter with its replies."""

    replies: list[ReplyResponse] = Field(default_factory=list, description="Replies, oldest first")
    can_reply: bool = Field(default=False, description="Viewer may reply now")
    can_archive: bool = Field(default=False, description="Viewer may archive now")


class SendLetterResponse(BaseModel):
    """Result of a send."""

    model_config = ConfigDict(from_attributes=True)

    letter: LetterResponse = Field(description="The stored letter")
    assigned: bool = Field(description="Letter was delivered to an inbox right away")
    sent_today: int = Field(description="Letters sent today including this one")
    daily_limit: int = Field(description="Daily send limit")


class InboxResponse(BaseModel):
    """Receiver's active (non-archived) letters."""

    model_config = ConfigDict(from_attributes=True)

    letters: list[LetterResponse] = Field(default_factory=list, description="Newest delivery first")
    unread_count: int = Field(description="Unread letters counting against capacity")
    inbox_capacity: int = Field(description="Maximum unread letters")


class SentLettersResponse(BaseModel):
    """Letters the viewer has sent."""

    model_config = ConfigDict(from_attributes=True)

    letters: list[LetterResponse] = Field(default_factory=list, description="Newest first")
