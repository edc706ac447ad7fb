"""Letter status state machine and ownership guards.

    queued --assign--> delivered --first reply--> replied
                       delivered --archive----> archived
                       replied   --archive----> archived

Reading stamps read_at without changing the status. archived is terminal.
"""

from typing import Any

from src.api.middleware.error_handler import ConflictError, ForbiddenError
from src.models.letter import INBOX_STATUSES, LetterStatus

ALLOWED_TRANSITIONS: dict[LetterStatus, frozenset[LetterStatus]] = {
    LetterStatus.QUEUED: frozenset({LetterStatus.DELIVERED}),
    LetterStatus.DELIVERED: frozenset({LetterStatus.REPLIED, LetterStatus.ARCHIVED}),
    LetterStatus.REPLIED: frozenset({LetterStatus.ARCHIVED}),
    LetterStatus.ARCHIVED: frozenset(),
}


def status_of(letter: dict[str, Any]) -> LetterStatus:
    """Return the letter's status as an enum member."""
    return LetterStatus(letter["status"])


def can_transition(current: LetterStatus, target: LetterStatus) -> bool:
    """Check whether current -> target is a forward edge of the state machine."""
    return target in ALLOWED_TRANSITIONS[current]


def ensure_transition(current: LetterStatus, target: LetterStatus) -> None:
    """Raise unless current -> target is allowed.

    Raises:
        ConflictError: If the transition would skip or reverse a status.
    """
    if not can_transition(current, target):
        raise ConflictError(f"Letter cannot move from {current.value} to {target.value}")


def is_sender(letter: dict[str, Any], user_id: str) -> bool:
    return str(letter["sender_id"]) == str(user_id)


def is_receiver(letter: dict[str, Any], user_id: str) -> bool:
    receiver_id = letter.get("receiver_id")
    return receiver_id is not None and str(receiver_id) == str(user_id)


def ensure_visible(letter: dict[str, Any], user_id: str) -> None:
    """Only the sender and the assigned receiver may see a letter.

    Raises:
        ForbiddenError: For anyone else.
    """
    if not (is_sender(letter, user_id) or is_receiver(letter, user_id)):
        raise ForbiddenError("You do not have permission to view this letter")


def ensure_receiver(letter: dict[str, Any], user_id: str, action: str) -> None:
    """Receiver-only actions.

    Raises:
        ForbiddenError: If user_id is not the letter's receiver.
    """
    if not is_receiver(letter, user_id):
        raise ForbiddenError(f"Only the receiver of this letter can {action} it")


def needs_read_stamp(letter: dict[str, Any]) -> bool:
    """True on the first open of a letter sitting in the inbox."""
    return status_of(letter) in INBOX_STATUSES and letter.get("read_at") is None


def ensure_can_reply(letter: dict[str, Any]) -> bool:
    """Validate a reply and report whether it is the first one.

    Returns:
        bool: True if the reply moves the letter from delivered to replied.

    Raises:
        ConflictError: If the letter is archived or not yet delivered.
    """
    status = status_of(letter)
    if status == LetterStatus.REPLIED:
        return False
    ensure_transition(status, LetterStatus.REPLIED)
    return True


def ensure_can_archive(letter: dict[str, Any]) -> bool:
    """Validate an archive request.

    Returns:
        bool: False when the letter is already archived (nothing to do).

    Raises:
        ConflictError: If the letter was never delivered.
    """
    status = status_of(letter)
    if status == LetterStatus.ARCHIVED:
        return False
    ensure_transition(status, LetterStatus.ARCHIVED)
    return True
