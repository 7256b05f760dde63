"""Pydantic schemas for `Notification` domain objects."""

from datetime import datetime
from typing import List, Optional

from app.schemas.common import CamelModel, Pagination
from app.schemas.user import UserSummary


NOTIFICATION_TYPES = {
    "like",
    "comment",
    "follow",
    "mention",
    "message",
}


class NotificationResponse(CamelModel):
    id: int
    user_id: int
    sender_id: int
    sender: Optional[UserSummary] = None
    type: str
    message: str
    post_id: Optional[int] = None
    comment_id: Optional[int] = None
    is_read: bool
    read_at: Optional[datetime] = None
    created_at: Optional[datetime] = None


class NotificationListResponse(CamelModel):
    notifications: List[NotificationResponse]
    pagination: Pagination
    unread_count: int


class UnreadCountResponse(CamelModel):
    unread_count: int


class MarkAllReadResponse(CamelModel):
    message: str
    updated_count: int
