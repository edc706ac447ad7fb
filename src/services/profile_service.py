"""Profile business logic service."""

import logging
import re
from typing import Any
from uuid import UUID

from src.api.middleware.error_handler import BackendError, NotFoundError, ValidationError
from src.core.config import get_settings
from src.core.supabase import get_supabase_client
from src.models.profile import Profile
from src.schemas.profile import ProfileUpdate

logger = logging.getLogger(__name__)

HANDLE_PATTERN = re.compile(r"^[A-Za-z0-9_.-]{3,32}$")


def validate_handle(handle: str) -> str:
    """Check a public handle and return it trimmed.

    Raises:
        ValidationError: If the handle has the wrong length or characters.
    """
    handle = handle.strip()
    if not HANDLE_PATTERN.match(handle):
        raise ValidationError(
            "User ID must be 3-32 characters of letters, digits, '_', '.' or '-'"
        )
    return handle


class ProfileService:
    """Service for managing user profiles."""

    def __init__(self) -> None:
        """Initialize profile service with Supabase client."""
        self.client = get_supabase_client()

    async def get_profile(self, user_id: UUID | str) -> Profile | None:
        """Get a profile by auth user id.

        Args:
            user_id: The auth user ID (also the profile id).

        Returns:
            dict | None: The profile data or None if not found.
        """
        response = (
            self.client.table("profiles")
            .select("*")
            .eq("id", str(user_id))
            .limit(1)
            .execute()
        )
        return response.data[0] if response.data else None

    async def require_profile(self, user_id: UUID | str) -> Profile:
        """Like get_profile, but raise when missing.

        Raises:
            NotFoundError: If the user has no profile.
        """
        profile = await self.get_profile(user_id)
        if not profile:
            raise NotFoundError("Profile not found. Please finish signing up.")
        return profile

    async def is_handle_taken(self, handle: str, exclude_user_id: UUID | str | None = None) -> bool:
        """Check whether another profile already uses the public handle."""
        query = self.client.table("profiles").select("id").eq("user_id", handle)
        if exclude_user_id is not None:
            query = query.neq("id", str(exclude_user_id))
        response = query.limit(1).execute()
        return bool(response.data)

    async def create_profile(self, user_id: UUID | str, username: str, handle: str) -> Profile:
        """Create the profile for a freshly signed-up user.

        Raises:
            ValidationError: If the name is blank or the handle is invalid or taken.
        """
        username = username.strip()
        if not username:
            raise ValidationError("Please enter a display name")
        handle = validate_handle(handle)
        if await self.is_handle_taken(handle):
            raise ValidationError("That user ID is already taken")

        profile_data = {
            "id": str(user_id),
            "username": username,
            "user_id": handle,
            "has_seen_tutorial": False,
        }
        response = self.client.table("profiles").insert(profile_data).execute()
        logger.info("Profile created for %s", user_id)
        return response.data[0]

    async def update_profile(
        self,
        user_id: UUID | str,
        data: ProfileUpdate,
    ) -> dict[str, Any] | None:
        """Update display name and/or public handle.

        Args:
            user_id: The auth user ID.
            data: The fields to update.

        Returns:
            dict | None: The updated profile data or None if not found.

        Raises:
            ValidationError: If the handle is invalid or used by someone else.
        """
        update_data = data.model_dump(exclude_unset=True, exclude_none=True)

        if "username" in update_data:
            update_data["username"] = update_data["username"].strip()
            if not update_data["username"]:
                raise ValidationError("Please enter a display name")

        if "user_id" in update_data:
            update_data["user_id"] = validate_handle(update_data["user_id"])
            if await self.is_handle_taken(update_data["user_id"], exclude_user_id=user_id):
                raise ValidationError("That user ID is already taken")

        if not update_data:
            return await self.get_profile(user_id)

        response = (
            self.client.table("profiles")
            .update(update_data)
            .eq("id", str(user_id))
            .execute()
        )

        return response.data[0] if response.data else None

    async def mark_tutorial_seen(self, user_id: UUID | str) -> dict[str, Any] | None:
        """Record that the user dismissed the first-visit tutorial."""
        response = (
            self.client.table("profiles")
            .update({"has_seen_tutorial": True})
            .eq("id", str(user_id))
            .execute()
        )
        return response.data[0] if response.data else None

    async def delete_account(self, user_id: UUID | str) -> None:
        """Delete the auth user and profile through the account deletion function.

        Raises:
            BackendError: If the function call fails.
        """
        function_name = get_settings().delete_account_function
        try:
            self.client.functions.invoke(
                function_name,
                invoke_options={"body": {"user_id": str(user_id)}},
            )
        except Exception as e:
            logger.error("Account deletion failed for %s: %s", user_id, e)
            raise BackendError("Could not delete the account") from e
        logger.info("Account deleted: %s", user_id)
