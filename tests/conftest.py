"""Pytest configuration and fixtures."""

import os
from collections.abc import Generator
from typing import Any
from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

from tests.fakes import ALICE_ID, BOB_ID, SENDER_ID, TEST_SIGNING_KEY_JWK, FakeSupabase, make_profile

# Set test environment variables before importing application modules
os.environ.setdefault("APP_ENV", "test")
os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("SUPABASE_URL", "https://test-project.supabase.co")
os.environ.setdefault("SUPABASE_SECRET_KEY", "test-secret-key")
os.environ.setdefault("SUPABASE_SIGNING_KEY_JWK", TEST_SIGNING_KEY_JWK)
os.environ.setdefault("APP_TIMEZONE", "UTC")
os.environ.setdefault("DEFAULT_MAX_DAILY_LETTERS", "5")
os.environ.setdefault("DEFAULT_MAX_INBOX_LETTERS", "10")
os.environ.setdefault("QUEUE_SWEEP_INTERVAL_SECONDS", "0")

# Every module that binds get_supabase_client at import time
SUPABASE_CLIENT_TARGETS = (
    "src.core.supabase.get_supabase_client",
    "src.services.app_settings_service.get_supabase_client",
    "src.services.delivery_sweeper.get_supabase_client",
    "src.services.letter_service.get_supabase_client",
    "src.services.music_lookup_service.get_supabase_client",
    "src.services.profile_service.get_supabase_client",
    "src.services.rate_limit_service.get_supabase_client",
    "src.services.recipient_service.get_supabase_client",
    "src.services.song_service.get_supabase_client",
)


@pytest.fixture(scope="session")
def test_settings() -> Generator[Any, None, None]:
    """Provide test settings with cleared cache.

    Yields:
        Settings: Test configuration settings.
    """
    from src.core.config import get_settings

    get_settings.cache_clear()

    settings = get_settings()
    yield settings

    get_settings.cache_clear()


@pytest.fixture(autouse=True)
def reset_send_guard() -> Generator[None, None, None]:
    """Give every test an empty duplicate-submission guard."""
    import src.core.send_guard as send_guard

    send_guard._send_guard = None
    yield
    send_guard._send_guard = None


@pytest.fixture
def fake_supabase() -> Generator[FakeSupabase, None, None]:
    """Provide an in-memory Supabase client wired into every service.

    Yields:
        FakeSupabase: The shared fake client.
    """
    fake = FakeSupabase()
    patchers = [patch(target, return_value=fake) for target in SUPABASE_CLIENT_TARGETS]
    for patcher in patchers:
        patcher.start()
    yield fake
    for patcher in reversed(patchers):
        patcher.stop()


@pytest.fixture
def community(fake_supabase: FakeSupabase) -> FakeSupabase:
    """Three profiles: the sender plus two possible receivers."""
    fake_supabase.seed(
        "profiles",
        make_profile(SENDER_ID, "Sender", "sender"),
        make_profile(ALICE_ID, "Alice", "alice"),
        make_profile(BOB_ID, "Bob", "bob"),
    )
    return fake_supabase


@pytest.fixture
def client(fake_supabase: FakeSupabase) -> Generator[TestClient, None, None]:
    """Provide a test client for the FastAPI application.

    Args:
        fake_supabase: In-memory Supabase client fixture.

    Yields:
        TestClient: FastAPI test client.
    """
    from src.main import app

    with TestClient(app) as test_client:
        yield test_client
