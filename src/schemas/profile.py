"""Profile Pydantic schemas for API request/response models."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class ProfileUpdate(BaseModel):
    """Schema for updating a profile.

    All fields are optional for partial updates.
    """

    model_config = ConfigDict(from_attributes=True)

    username: str | None = Field(default=None, min_length=1, max_length=50, description="New display name")
    user_id: str | None = Field(default=None, min_length=3, max_length=32, description="New public user ID")


class ProfileResponse(BaseModel):
    """Schema for profile API responses."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID = Field(description="Profile id (the auth user id)")
    username: str = Field(description="Display name shown on attributed letters")
    user_id: str = Field(description="Unique public user ID")
    has_seen_tutorial: bool = Field(default=False, description="Tutorial was dismissed")
    created_at: datetime | None = Field(default=None, description="Profile creation timestamp")
    updated_at: datetime | None = Field(default=None, description="Last update timestamp")


class DashboardResponse(BaseModel):
    """Counters shown on the home screen."""

    model_config = ConfigDict(from_attributes=True)

    username: str | None = Field(default=None, description="Display name")
    has_seen_tutorial: bool = Field(default=False, description="Tutorial was dismissed")
    sent_today: int = Field(description="Letters sent today")
    daily_limit: int = Field(description="Daily send limit")
    remaining_today: int = Field(description="Letters that can still be sent today")
    unread_inbox: int = Field(description="Unread letters in the inbox")
    inbox_capacity: int = Field(description="Maximum unread letters")


class LetterSettingsResponse(BaseModel):
    """Current send and inbox limits."""

    model_config = ConfigDict(from_attributes=True)

    daily_limit: int = Field(description="Maximum letters per sender per day")
    inbox_capacity: int = Field(description="Maximum unread letters per receiver")
