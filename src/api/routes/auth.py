"""Authentication API routes."""

from fastapi import APIRouter, status

from src.api.deps import BearerToken
from src.schemas.auth import (
    LoginRequest,
    LoginResponse,
    LogoutResponse,
    RefreshTokenRequest,
    RefreshTokenResponse,
    SignupRequest,
    SignupResponse,
)
from src.services.auth_service import AuthService

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post(
    "/signup",
    response_model=SignupResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Sign up new user",
    description="Create an account and its profile (display name and public user ID).",
)
async def signup(data: SignupRequest) -> SignupResponse:
    """Sign up a new user and create their profile.

    Raises:
        ValidationError: 422 if the profile fields are invalid or the email is taken.
    """
    service = AuthService()
    result = await service.signup(
        email=data.email,
        password=data.password,
        username=data.username,
        handle=data.user_id,
    )
    return SignupResponse(**result)


@router.post(
    "/login",
    response_model=LoginResponse,
    summary="Log in",
    description="Exchange email and password for an access token.",
)
async def login(data: LoginRequest) -> LoginResponse:
    """Log a user in with email and password.

    Raises:
        AuthenticationError: 401 if the credentials are rejected.
    """
    service = AuthService()
    result = await service.login(email=data.email, password=data.password)
    return LoginResponse(**result)


@router.post(
    "/logout",
    response_model=LogoutResponse,
    summary="Log out",
    description="Invalidate the current session.",
)
async def logout(token: BearerToken) -> LogoutResponse:
    """Log the current session out."""
    service = AuthService()
    result = await service.logout(token)
    return LogoutResponse(**result)


@router.post(
    "/refresh",
    response_model=RefreshTokenResponse,
    summary="Refresh access token",
    description="Exchange a refresh token for a new access token.",
)
async def refresh(data: RefreshTokenRequest) -> RefreshTokenResponse:
    """Refresh the session.

    Raises:
        AuthenticationError: 401 if the refresh token is no longer valid.
    """
    service = AuthService()
    result = await service.refresh(data.refresh_token)
    return RefreshTokenResponse(**result)
