"""Notification endpoints."""

from typing import Optional

from fastapi import APIRouter, Depends, status, Query, Path
from sqlalchemy.orm import Session

from app.api.deps import get_current_active_user, get_db
from app.core.exceptions import NotFoundException
from app.crud import crud_notification
from app.models.notification import Notification
from app.models.user import User
from app.schemas.common import MessageOnlyResponse, Pagination
from app.schemas.notification import (
    NotificationResponse,
    NotificationListResponse,
    UnreadCountResponse,
    MarkAllReadResponse,
    NOTIFICATION_TYPES,
)

router = APIRouter(
    prefix="/notifications",
    tags=["Notifications"],
)


def _get_own_notification(db: Session, notification_id: int, user: User) -> Notification:
    # Another user's notification is indistinguishable from a missing one
    notification = crud_notification.get_for_user(db, notification_id=notification_id, user_id=user.id)
    if not notification:
        raise NotFoundException("Notification")
    return notification


@router.get(
    "",
    response_model=NotificationListResponse,
    status_code=status.HTTP_200_OK,
    summary="List notifications",
    description="""
    Notifications for the current user, newest first.

    **Filters:**
    - `type`: like, comment, follow, mention or message. Unknown values are ignored.

    `unreadCount` is always unfiltered, for badge display.
    """,
    responses={
        200: {"description": "List of notifications retrieved successfully"},
        401: {"description": "Not authenticated"},
    },
)
def list_notifications(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    notification_type: Optional[str] = Query(
        None,
        alias="type",
        description=f"Filter by notification type. Valid values: {sorted(NOTIFICATION_TYPES)}"
    ),
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db),
) -> NotificationListResponse:
    notifications, total = crud_notification.get_by_user(
        db,
        user_id=current_user.id,
        page=page,
        limit=limit,
        notification_type=notification_type,
    )
    unread_count = crud_notification.get_unread_count(db, user_id=current_user.id)

    return NotificationListResponse(
        notifications=[NotificationResponse.model_validate(n) for n in notifications],
        pagination=Pagination.build(total=total, page=page, limit=limit, returned=len(notifications)),
        unread_count=unread_count,
    )


@router.get(
    "/unread-count",
    response_model=UnreadCountResponse,
    status_code=status.HTTP_200_OK,
    summary="Get unread notification count",
)
def get_unread_count(
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db),
) -> UnreadCountResponse:
    unread_count = crud_notification.get_unread_count(db, user_id=current_user.id)
    return UnreadCountResponse(unread_count=unread_count)


@router.put(
    "/read-all",
    response_model=MarkAllReadResponse,
    status_code=status.HTTP_200_OK,
    summary="Mark all notifications as read",
)
def mark_all_notifications_as_read(
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db),
) -> MarkAllReadResponse:
    updated_count = crud_notification.mark_all_read(db, user_id=current_user.id)
    return MarkAllReadResponse(
        message="All notifications marked as read",
        updated_count=updated_count,
    )


@router.put(
    "/{notification_id}/read",
    response_model=NotificationResponse,
    status_code=status.HTTP_200_OK,
    summary="Mark notification as read",
    responses={
        200: {"description": "Notification marked as read successfully"},
        401: {"description": "Not authenticated"},
        404: {"description": "Notification not found"},
    },
)
def mark_notification_as_read(
    notification_id: int = Path(..., gt=0, description="Notification ID"),
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db),
) -> NotificationResponse:
    notification = _get_own_notification(db, notification_id, current_user)
    notification = crud_notification.mark_as_read(db, notification=notification)
    return NotificationResponse.model_validate(notification)


@router.delete(
    "/{notification_id}",
    response_model=MessageOnlyResponse,
    status_code=status.HTTP_200_OK,
    summary="Delete notification",
    responses={
        200: {"description": "Notification deleted successfully"},
        401: {"description": "Not authenticated"},
        404: {"description": "Notification not found"},
    },
)
def delete_notification(
    notification_id: int = Path(..., gt=0, description="Notification ID"),
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db),
) -> MessageOnlyResponse:
    notification = _get_own_notification(db, notification_id, current_user)
    crud_notification.delete(db, id=notification.id)
    return MessageOnlyResponse(message="Notification deleted successfully")


__all__ = ["router"]
