"""Unit tests for RecipientService."""

import asyncio
from datetime import datetime, timezone
from unittest.mock import patch

import pytest

from src.api.middleware.error_handler import BackendError, NotFoundError
from src.core.recipient_policy import LeastLoadedPolicy
from src.services.recipient_service import RecipientService
from tests.fakes import (
    ALICE_ID,
    BOB_ID,
    SENDER_ID,
    FakeQuery,
    FakeResponse,
    FakeSupabase,
    make_letter,
    make_profile,
)

NOW = datetime(2026, 3, 10, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def recipients(community: FakeSupabase) -> RecipientService:
    """Create RecipientService with the least-loaded policy."""
    return RecipientService(policy=LeastLoadedPolicy())


def queue_letter(fake: FakeSupabase, sender_id: str = SENDER_ID) -> str:
    return fake.seed("song_letters", make_letter(sender_id))[0]["id"]


class TestUnreadLoad:
    """Tests for load counting."""

    @pytest.mark.asyncio
    async def test_only_unread_inbox_letters_count(
        self, recipients: RecipientService, community: FakeSupabase
    ) -> None:
        community.seed(
            "song_letters",
            make_letter(SENDER_ID, ALICE_ID),
            make_letter(SENDER_ID, ALICE_ID, status="replied"),
            make_letter(SENDER_ID, ALICE_ID, read_at="2026-03-10T10:00:00+00:00"),
            make_letter(SENDER_ID, ALICE_ID, status="archived", archived_at="2026-03-10T10:00:00+00:00"),
            make_letter(SENDER_ID, BOB_ID),
        )

        loads = await recipients.get_unread_loads([ALICE_ID, BOB_ID, SENDER_ID])

        assert loads == {ALICE_ID: 2, BOB_ID: 1, SENDER_ID: 0}
        assert await recipients.count_unread_load(ALICE_ID) == 2

    @pytest.mark.asyncio
    async def test_load_query_reads_only_candidate_inboxes(
        self, recipients: RecipientService, community: FakeSupabase
    ) -> None:
        community.seed(
            "song_letters",
            make_letter(SENDER_ID, ALICE_ID),
            make_letter(SENDER_ID, BOB_ID),
            make_letter(ALICE_ID, SENDER_ID),
        )
        execute = FakeQuery.execute
        fetched: list[dict] = []

        def record(self: FakeQuery) -> FakeResponse:
            response = execute(self)
            fetched.extend(response.data)
            return response

        with patch.object(FakeQuery, "execute", record):
            loads = await recipients.get_unread_loads([ALICE_ID])

        assert loads == {ALICE_ID: 1}
        assert fetched == [{"receiver_id": ALICE_ID}]

    @pytest.mark.asyncio
    async def test_no_candidates_skips_the_load_query(
        self, recipients: RecipientService, community: FakeSupabase
    ) -> None:
        community.fail("song_letters")

        assert await recipients.get_unread_loads([]) == {}


class TestAssign:
    """Tests for assign."""

    @pytest.mark.asyncio
    async def test_assigns_least_loaded_candidate(
        self, recipients: RecipientService, community: FakeSupabase
    ) -> None:
        community.seed("song_letters", make_letter(BOB_ID, ALICE_ID))
        letter_id = queue_letter(community)

        result = await recipients.assign(letter_id, SENDER_ID, inbox_capacity=10, now=NOW)

        assert result.assigned is True
        assert result.receiver_id == BOB_ID
        stored = community.find("song_letters", letter_id)
        assert stored["status"] == "delivered"
        assert stored["receiver_id"] == BOB_ID
        assert stored["delivered_at"] == "2026-03-10T12:00:00+00:00"

    @pytest.mark.asyncio
    async def test_sender_never_receives_own_letter(self, fake_supabase: FakeSupabase) -> None:
        fake_supabase.seed("profiles", make_profile(SENDER_ID, "Sender", "sender"))
        letter_id = queue_letter(fake_supabase)

        result = await RecipientService(policy=LeastLoadedPolicy()).assign(letter_id, SENDER_ID, 10, NOW)

        assert result.assigned is False
        stored = fake_supabase.find("song_letters", letter_id)
        assert stored["status"] == "queued"
        assert stored["receiver_id"] is None

    @pytest.mark.asyncio
    async def test_stays_queued_when_every_inbox_is_full(
        self, recipients: RecipientService, community: FakeSupabase
    ) -> None:
        """Test capacity=1 with both receivers already holding one unread letter."""
        community.seed(
            "song_letters",
            make_letter(SENDER_ID, ALICE_ID),
            make_letter(SENDER_ID, BOB_ID),
        )
        letter_id = queue_letter(community)

        result = await recipients.assign(letter_id, SENDER_ID, inbox_capacity=1, now=NOW)

        assert result.assigned is False
        assert community.find("song_letters", letter_id)["status"] == "queued"

    @pytest.mark.asyncio
    async def test_reading_frees_capacity(
        self, recipients: RecipientService, community: FakeSupabase
    ) -> None:
        community.seed(
            "song_letters",
            make_letter(SENDER_ID, ALICE_ID, read_at="2026-03-10T10:00:00+00:00"),
            make_letter(SENDER_ID, BOB_ID),
        )
        letter_id = queue_letter(community)

        result = await recipients.assign(letter_id, SENDER_ID, inbox_capacity=1, now=NOW)

        assert result.receiver_id == ALICE_ID

    @pytest.mark.asyncio
    async def test_concurrent_assignments_respect_capacity(self, fake_supabase: FakeSupabase) -> None:
        """Test that two letters racing for the last free slot cannot both land.

        Counting yields to the event loop, so the second assignment runs
        while the first sits between its capacity check and its write.
        """
        fake_supabase.seed(
            "profiles",
            make_profile(SENDER_ID, "Sender", "sender"),
            make_profile(ALICE_ID, "Alice", "alice"),
        )
        first = queue_letter(fake_supabase)
        second = queue_letter(fake_supabase)
        service_a = RecipientService(policy=LeastLoadedPolicy())
        service_b = RecipientService(policy=LeastLoadedPolicy())
        count_unread_load = RecipientService.count_unread_load

        async def count_then_yield(self: RecipientService, user_id: str) -> int:
            load = await count_unread_load(self, user_id)
            await asyncio.sleep(0)
            return load

        with patch.object(RecipientService, "count_unread_load", count_then_yield):
            results = await asyncio.gather(
                service_a.assign(first, SENDER_ID, 1, NOW),
                service_b.assign(second, SENDER_ID, 1, NOW),
            )

        assert sorted(result.assigned for result in results) == [False, True]
        statuses = sorted(fake_supabase.find("song_letters", lid)["status"] for lid in (first, second))
        assert statuses == ["delivered", "queued"]

    @pytest.mark.asyncio
    async def test_already_delivered_letter_is_left_alone(
        self, recipients: RecipientService, community: FakeSupabase
    ) -> None:
        letter_id = community.seed("song_letters", make_letter(SENDER_ID, ALICE_ID))[0]["id"]

        result = await recipients.assign(letter_id, SENDER_ID, 10, NOW)

        assert result.assigned is True
        assert result.receiver_id == ALICE_ID

    @pytest.mark.asyncio
    async def test_unknown_letter(self, recipients: RecipientService) -> None:
        with pytest.raises(NotFoundError):
            await recipients.assign("00000000-0000-4000-8000-000000000000", SENDER_ID, 10, NOW)

    @pytest.mark.asyncio
    async def test_candidate_query_failure(
        self, recipients: RecipientService, community: FakeSupabase
    ) -> None:
        letter_id = queue_letter(community)
        community.fail("profiles")

        with pytest.raises(BackendError):
            await recipients.assign(letter_id, SENDER_ID, 10, NOW)

        assert community.find("song_letters", letter_id)["status"] == "queued"
