"""Unit tests for the duplicate-submission guard and keyed locks."""

import asyncio

import pytest

from src.api.middleware.error_handler import DuplicateSubmissionError
from src.core.keyed_lock import KeyedLock
from src.core.send_guard import SendGuard, get_send_guard


class TestSendGuard:
    """Tests for SendGuard."""

    def test_second_acquire_is_rejected(self) -> None:
        guard = SendGuard()
        guard.acquire("sender")

        with pytest.raises(DuplicateSubmissionError) as exc_info:
            guard.acquire("sender")

        assert exc_info.value.status_code == 409
        assert exc_info.value.error_type == "duplicate_submission"

    def test_release_allows_next_send(self) -> None:
        guard = SendGuard()
        guard.acquire("sender")
        guard.release("sender")

        guard.acquire("sender")
        assert guard.is_in_flight("sender")

    def test_senders_are_independent(self) -> None:
        guard = SendGuard()
        guard.acquire("one")
        guard.acquire("two")

        assert guard.is_in_flight("one")
        assert guard.is_in_flight("two")

    @pytest.mark.asyncio
    async def test_hold_releases_on_error(self) -> None:
        guard = SendGuard()

        with pytest.raises(RuntimeError):
            async with guard.hold("sender"):
                assert guard.is_in_flight("sender")
                raise RuntimeError("insert failed")

        assert not guard.is_in_flight("sender")

    def test_get_send_guard_is_singleton(self) -> None:
        assert get_send_guard() is get_send_guard()


class TestKeyedLock:
    """Tests for KeyedLock."""

    @pytest.mark.asyncio
    async def test_same_key_is_serialized(self) -> None:
        locks = KeyedLock()
        events: list[str] = []

        async def worker(name: str) -> None:
            async with locks.hold("sender"):
                events.append(f"{name}-in")
                await asyncio.sleep(0.01)
                events.append(f"{name}-out")

        await asyncio.gather(worker("a"), worker("b"))

        assert events in (
            ["a-in", "a-out", "b-in", "b-out"],
            ["b-in", "b-out", "a-in", "a-out"],
        )

    @pytest.mark.asyncio
    async def test_entries_are_dropped_after_use(self) -> None:
        locks = KeyedLock()

        async with locks.hold("sender"):
            assert locks.is_held("sender")
            assert len(locks) == 1

        assert not locks.is_held("sender")
        assert len(locks) == 0

    @pytest.mark.asyncio
    async def test_different_keys_do_not_block(self) -> None:
        locks = KeyedLock()

        async with locks.hold("one"):
            async with locks.hold("two"):
                assert locks.is_held("one") and locks.is_held("two")
