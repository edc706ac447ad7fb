"""Supabase client singleton for database operations."""

from functools import lru_cache
from typing import Any

from supabase import Client, create_client
from supabase.lib.client_options import SyncClientOptions
from supabase_auth import SyncMemoryStorage

from src.core.config import get_settings


@lru_cache
def get_supabase_client() -> Client:
    """Get cached Supabase client singleton for database operations.

    Uses the secret key, which bypasses row level security. Ownership of
    letters and profiles is therefore checked by the services before any
    read or write is returned to a caller.

    Do NOT use this client for auth operations that call set_session();
    use create_auth_client() instead so the singleton's Authorization
    header stays untouched.

    Returns:
        Client: Supabase client instance.
    """
    settings = get_settings()
    return create_client(
        settings.supabase_url,
        settings.supabase_secret_key,
    )


def create_auth_client() -> Client:
    """Create a fresh Supabase client for auth operations.

    Each call returns an isolated client with in-memory session storage, so
    sign-in and sign-out never leak into the shared database client.

    Returns:
        Client: Fresh Supabase client instance.
    """
    settings = get_settings()
    options = SyncClientOptions(
        storage=SyncMemoryStorage(),
        auto_refresh_token=False,
        persist_session=False,
    )
    return create_client(
        settings.supabase_url,
        settings.supabase_secret_key,
        options=options,
    )


# Tables every letter request reads or writes
LETTER_TABLES = ("profiles", "song_letters", "app_settings")


async def check_database_connection(table: str) -> dict[str, Any]:
    """Check that one table answers a single-row select.

    Returns:
        dict: 'healthy' boolean and, when unhealthy, the 'error' message.
    """
    try:
        get_supabase_client().table(table).select("*").limit(1).execute()
    except Exception as e:
        return {"healthy": False, "error": str(e)}
    return {"healthy": True}
