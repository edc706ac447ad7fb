"""Profile model type definitions for database operations."""

from datetime import datetime
from typing import TypedDict
from uuid import UUID


class Profile(TypedDict):
    """Profile table row representation.

    The profile id is the auth user id. username is the display name shown
    on attributed letters; user_id is the unique public handle.
    """

    id: UUID
    username: str
    user_id: str
    has_seen_tutorial: bool
    created_at: datetime
    updated_at: datetime
