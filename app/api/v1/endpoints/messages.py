"""Direct message endpoints.

Deleting a message is a soft delete: it disappears from threads,
conversations and unread counts, but stays visible to its sender under
`/messages/deleted`.
"""

import logging

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.api.deps import get_current_active_user, get_db
from app.core.exceptions import (
    BadRequestException,
    ForbiddenException,
    NotFoundException,
    SelfActionException,
)
from app.crud import crud_message, crud_user
from app.models.message import Message
from app.models.user import User
from app.schemas.common import MessageOnlyResponse, Pagination
from app.schemas.message import (
    ConversationListResponse,
    ConversationResponse,
    MessageCreate,
    MessageListResponse,
    MessageResponse,
    MessageSendResponse,
    ThreadResponse,
    UnreadCountResponse,
)
from app.schemas.user import UserSummary

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/messages",
    tags=["Messages"],
)


def _get_live_message(db: Session, message_id: int) -> Message:
    message = crud_message.get(db, message_id)
    if not message or message.is_deleted:
        raise NotFoundException("Message")
    return message


@router.get(
    "/conversations",
    response_model=ConversationListResponse,
    status_code=status.HTTP_200_OK,
    summary="List conversations",
    description="""
    One entry per conversation partner with the latest message and the
    number of unread messages addressed to me, most recent first.
    """,
)
def list_conversations(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db),
) -> ConversationListResponse:
    grouped = crud_message.get_conversations(db, user_id=current_user.id)
    total = len(grouped)
    offset = (page - 1) * limit
    page_items = grouped[offset:offset + limit]

    conversations = []
    for item in page_items:
        partner = crud_user.get(db, item["partner_id"])
        if partner is None:
            continue
        conversations.append(
            ConversationResponse(
                partner=UserSummary.model_validate(partner),
                last_message=MessageResponse.model_validate(item["last_message"]),
                unread_count=item["unread_count"],
            )
        )

    return ConversationListResponse(
        conversations=conversations,
        pagination=Pagination.build(total=total, page=page, limit=limit, returned=len(page_items)),
    )


@router.get(
    "/unread-count",
    response_model=UnreadCountResponse,
    status_code=status.HTTP_200_OK,
    summary="Unread message count",
)
def unread_count(
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db),
) -> UnreadCountResponse:
    return UnreadCountResponse(unread_count=crud_message.get_unread_count(db, user_id=current_user.id))


@router.get(
    "/deleted",
    response_model=MessageListResponse,
    status_code=status.HTTP_200_OK,
    summary="My deleted messages",
    description="""
    Messages I sent and later deleted, most recently deleted first.
    """,
)
def list_deleted_messages(
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=100),
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db),
) -> MessageListResponse:
    messages, total = crud_message.get_deleted_by_sender(
        db, sender_id=current_user.id, page=page, limit=limit
    )
    return MessageListResponse(
        messages=[MessageResponse.model_validate(m) for m in messages],
        pagination=Pagination.build(total=total, page=page, limit=limit, returned=len(messages)),
    )


@router.get(
    "/{user_id}",
    response_model=ThreadResponse,
    status_code=status.HTTP_200_OK,
    summary="Get conversation with a user",
    description="""
    Fetches the newest page and returns it oldest first. Unread messages
    from that user are marked as read.
    """,
)
def get_thread(
    user_id: int,
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=100),
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db),
) -> ThreadResponse:
    other_user = crud_user.get_active(db, user_id)
    if not other_user:
        raise NotFoundException("User")

    marked = crud_message.mark_thread_read(db, reader_id=current_user.id, sender_id=other_user.id)
    if marked:
        logger.info(f"[MESSAGE] Marked {marked} messages from {other_user.id} as read for {current_user.id}")

    messages, total = crud_message.get_thread(
        db, user_id=current_user.id, other_user_id=other_user.id, page=page, limit=limit
    )
    return ThreadResponse(
        messages=[MessageResponse.model_validate(m) for m in reversed(messages)],
        other_user=UserSummary.model_validate(other_user),
        pagination=Pagination.build(total=total, page=page, limit=limit, returned=len(messages)),
    )


@router.post(
    "/{user_id}",
    response_model=MessageSendResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Send a message",
)
def send_message(
    user_id: int,
    message_in: MessageCreate,
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db),
) -> MessageSendResponse:
    if user_id == current_user.id:
        raise SelfActionException("You cannot send a message to yourself")

    content = (message_in.content or "").strip()
    if not content and not message_in.media_url:
        raise BadRequestException("Message must have content or media")

    receiver = crud_user.get_active(db, user_id)
    if not receiver:
        raise NotFoundException("User")

    message = crud_message.create_message(
        db, sender=current_user, receiver=receiver, message_in=message_in
    )
    logger.info(f"[MESSAGE] {current_user.id} -> {receiver.id} message {message.id}")

    return MessageSendResponse(
        message="Message sent successfully",
        data=MessageResponse.model_validate(message),
    )


@router.delete(
    "/{message_id}",
    response_model=MessageOnlyResponse,
    status_code=status.HTTP_200_OK,
    summary="Delete a message I sent",
)
def delete_message(
    message_id: int,
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db),
) -> MessageOnlyResponse:
    message = _get_live_message(db, message_id)
    if message.sender_id != current_user.id:
        raise ForbiddenException("You can only delete your own messages")

    crud_message.soft_delete(db, message=message)
    logger.info(f"[MESSAGE] Soft-deleted message {message_id} by user {current_user.id}")
    return MessageOnlyResponse(message="Message deleted successfully")


@router.put(
    "/{message_id}/read",
    response_model=MessageResponse,
    status_code=status.HTTP_200_OK,
    summary="Mark a message as read",
)
def mark_message_read(
    message_id: int,
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db),
) -> MessageResponse:
    message = _get_live_message(db, message_id)
    if message.receiver_id != current_user.id:
        raise ForbiddenException("You can only mark messages sent to you as read")

    message = crud_message.mark_as_read(db, message=message)
    return MessageResponse.model_validate(message)


__all__ = ["router"]
