"""In-memory guard against duplicate letter submissions."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from threading import Lock

from src.api.middleware.error_handler import DuplicateSubmissionError

logger = logging.getLogger(__name__)


class SendGuard:
    """Tracks senders that have a compose request in flight.

    A sender may have at most one send running at a time. A second submit
    while the first is still being processed is rejected instead of queued,
    the server-side counterpart of disabling the submit button.
    """

    def __init__(self) -> None:
        self._in_flight: set[str] = set()
        self._lock = Lock()

    def acquire(self, sender_id: str) -> None:
        """Mark a send as in flight.

        Raises:
            DuplicateSubmissionError: If the sender already has one running.
        """
        with self._lock:
            if sender_id in self._in_flight:
                logger.warning("Duplicate letter submission rejected for sender %s", sender_id)
                raise DuplicateSubmissionError()
            self._in_flight.add(sender_id)

    def release(self, sender_id: str) -> None:
        """Clear the in-flight mark for a sender."""
        with self._lock:
            self._in_flight.discard(sender_id)

    def is_in_flight(self, sender_id: str) -> bool:
        """Check whether a sender currently has a send running."""
        with self._lock:
            return sender_id in self._in_flight

    @asynccontextmanager
    async def hold(self, sender_id: str) -> AsyncIterator[None]:
        """Hold the guard for the duration of a send, releasing on any exit."""
        self.acquire(sender_id)
        try:
            yield
        finally:
            self.release(sender_id)


# Global singleton instance
_send_guard: SendGuard | None = None


def get_send_guard() -> SendGuard:
    """Get or create the global send guard instance."""
    global _send_guard
    if _send_guard is None:
        _send_guard = SendGuard()
    return _send_guard
