"""Authentication business logic service."""

import logging
from typing import Any

from src.api.middleware.error_handler import AuthenticationError, ValidationError
from src.core.config import get_settings
from src.core.supabase import create_auth_client
from src.services.profile_service import ProfileService, validate_handle

logger = logging.getLogger(__name__)


class AuthService:
    """Service for managing user authentication."""

    def __init__(self) -> None:
        """Initialize auth service with isolated Supabase client.

        Uses create_auth_client() instead of get_supabase_client() so that
        sign-in and sign-out never touch the shared database client.
        """
        self.client = create_auth_client()
        self.settings = get_settings()
        self.profiles = ProfileService()

    async def signup(
        self,
        email: str,
        password: str,
        username: str,
        handle: str,
    ) -> dict[str, Any]:
        """Sign up a new user and create their profile.

        The display name and handle are checked before the auth user is
        created so a bad handle never leaves an account without a profile.

        Args:
            email: User's email address.
            password: User's password.
            username: Display name.
            handle: Unique public user ID.

        Returns:
            dict: Signup response with user_id, email, and email_sent status.

        Raises:
            ValidationError: If the profile fields are invalid or signup fails.
        """
        if not username.strip():
            raise ValidationError("Please enter a display name")
        handle = validate_handle(handle)
        if await self.profiles.is_handle_taken(handle):
            raise ValidationError("That user ID is already taken")

        try:
            response = self.client.auth.sign_up(
                {
                    "email": email,
                    "password": password,
                    "options": {"email_redirect_to": self.settings.auth_redirect_url},
                }
            )
        except Exception as e:
            error_msg = str(e)
            logger.error("Signup failed: %s", error_msg)

            if "already registered" in error_msg.lower() or "already exists" in error_msg.lower():
                raise ValidationError("An account with this email already exists") from e
            if "invalid email" in error_msg.lower():
                raise ValidationError("Invalid email address") from e
            if "password" in error_msg.lower() and "weak" in error_msg.lower():
                raise ValidationError("Password is too weak. Please use a stronger password.") from e

            raise ValidationError(f"Signup failed: {error_msg}") from e

        if not response.user:
            raise ValidationError("Failed to create user account")

        user = response.user
        logger.info("User signed up: %s", user.id)

        await self.profiles.create_profile(user.id, username, handle)

        return {
            "user_id": str(user.id),
            "email": user.email or email,
            "email_sent": response.session is None,
            "message": "Account created. Please check your email to verify your account.",
        }

    async def login(
        self,
        email: str,
        password: str,
    ) -> dict[str, Any]:
        """Login user with email and password.

        Returns:
            dict: Login response with access_token, refresh_token, and user info.

        Raises:
            AuthenticationError: If the credentials are rejected.
        """
        try:
            response = self.client.auth.sign_in_with_password(
                {
                    "email": email,
                    "password": password,
                }
            )
        except Exception as e:
            error_msg = str(e)
            logger.warning("Login failed: %s", error_msg)

            if "email not confirmed" in error_msg.lower() or "not verified" in error_msg.lower():
                raise AuthenticationError("Please verify your email before logging in") from e
            raise AuthenticationError("Invalid email or password") from e

        if not response.user or not response.session:
            raise AuthenticationError("Login failed: no session created")

        user = response.user
        session = response.session
        logger.info("User logged in: %s", user.id)

        return {
            "access_token": session.access_token,
            "refresh_token": session.refresh_token,
            "user_id": str(user.id),
            "email": user.email or email,
            "expires_in": session.expires_in or 3600,
        }

    async def logout(self, access_token: str) -> dict[str, Any]:
        """Logout user by invalidating their session.

        Failure is logged only; the client drops its tokens either way.
        """
        try:
            self.client.auth.set_session(access_token, "")
            self.client.auth.sign_out()
            logger.info("User logged out")
        except Exception as e:
            logger.warning("Logout failed: %s", str(e))

        return {"message": "Logged out successfully"}

    async def refresh(self, refresh_token: str) -> dict[str, Any]:
        """Exchange a refresh token for a new access token.

        Raises:
            AuthenticationError: If the refresh token is invalid or expired.
        """
        try:
            response = self.client.auth.refresh_session(refresh_token)
        except Exception as e:
            logger.warning("Token refresh failed: %s", str(e))
            raise AuthenticationError("Session expired. Please log in again.") from e

        if not response.session:
            raise AuthenticationError("Session expired. Please log in again.")

        session = response.session
        return {
            "access_token": session.access_token,
            "refresh_token": session.refresh_token,
            "expires_in": session.expires_in or 3600,
        }
