"""Song letter routes."""

from uuid import UUID

from fastapi import APIRouter, status

from src.api.deps import CurrentUser, LetterLimits
from src.schemas.letter import (
    InboxResponse,
    LetterCreate,
    LetterDetailResponse,
    LetterResponse,
    ReplyCreate,
    ReplyResponse,
    SendLetterResponse,
    SentLettersResponse,
)
from src.services.letter_service import LetterService

router = APIRouter(prefix="/letters", tags=["letters"])


@router.post(
    "",
    response_model=SendLetterResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Send a letter",
    description=(
        "Stores the letter and delivers it to a receiver with room in their inbox. "
        "When every inbox is full the letter stays queued and is retried later."
    ),
    responses={
        409: {"description": "A send from this user is already in progress"},
        429: {"description": "Daily send limit reached"},
    },
)
async def send_letter(data: LetterCreate, user: CurrentUser) -> SendLetterResponse:
    """Compose and send a letter.

    Raises:
        ValidationError: 422 for a blank message or unusable track input.
        DuplicateSubmissionError: 409 while another send is running.
        QuotaExceededError: 429 once the daily limit is reached.
    """
    service = LetterService()
    return await service.send_letter(str(user.user_id), data)


@router.get(
    "/inbox",
    response_model=InboxResponse,
    summary="Inbox",
    description="Letters delivered to the user that are not archived.",
)
async def get_inbox(user: CurrentUser, limits: LetterLimits) -> InboxResponse:
    """List the user's active inbox."""
    service = LetterService()
    return await service.list_inbox(str(user.user_id), limits.inbox_capacity)


@router.get(
    "/sent",
    response_model=SentLettersResponse,
    summary="Sent letters",
    description="Letters the user has sent, including ones still waiting for a receiver.",
)
async def get_sent(user: CurrentUser) -> SentLettersResponse:
    """List the user's sent letters."""
    service = LetterService()
    return await service.list_sent(str(user.user_id))


@router.get(
    "/{letter_id}",
    response_model=LetterDetailResponse,
    summary="Open a letter",
    description="Returns the letter with its song and replies. The receiver's first open marks it read.",
)
async def get_letter(letter_id: UUID, user: CurrentUser) -> LetterDetailResponse:
    """Open a letter as its sender or receiver.

    Raises:
        NotFoundError: 404 if the letter does not exist.
        ForbiddenError: 403 for anyone but the sender and receiver.
    """
    service = LetterService()
    return await service.get_letter_detail(str(letter_id), str(user.user_id))


@router.post(
    "/{letter_id}/replies",
    response_model=ReplyResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Reply to a letter",
    description="Receiver only. The first reply marks the letter as replied.",
)
async def reply_to_letter(letter_id: UUID, data: ReplyCreate, user: CurrentUser) -> ReplyResponse:
    """Reply to a received letter.

    Raises:
        ForbiddenError: 403 if the caller is not the receiver.
        ConflictError: 409 if the letter is archived.
    """
    service = LetterService()
    return await service.reply(str(letter_id), str(user.user_id), data)


@router.post(
    "/{letter_id}/archive",
    response_model=LetterResponse,
    summary="Archive a letter",
    description="Receiver only. Removes the letter from the inbox for good.",
)
async def archive_letter(letter_id: UUID, user: CurrentUser) -> LetterResponse:
    """Archive a received letter.

    Raises:
        ForbiddenError: 403 if the caller is not the receiver.
    """
    service = LetterService()
    return await service.archive(str(letter_id), str(user.user_id))
