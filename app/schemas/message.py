"""Pydantic schemas for Message."""

from datetime import datetime
from typing import Literal, Optional, List
from pydantic import Field

from app.schemas.common import CamelModel, Pagination
from app.schemas.user import UserSummary


MESSAGE_TYPES = ("text", "image", "video", "audio", "file")


class MessageCreate(CamelModel):
    """Schema for sending a message. Content or media is required."""
    content: Optional[str] = Field(None, min_length=1, max_length=1000, description="Message content")
    media_url: Optional[str] = Field(None, max_length=255, description="URL of externally hosted media")
    message_type: Literal["text", "image", "video", "audio", "file"] = "text"


class MessageResponse(CamelModel):
    """Schema for Message response."""
    id: int
    sender_id: int
    receiver_id: int
    sender: Optional[UserSummary] = None
    content: Optional[str] = None
    message_type: str
    media_url: Optional[str] = None
    is_read: bool
    read_at: Optional[datetime] = None
    is_deleted: bool = False
    deleted_at: Optional[datetime] = None
    created_at: Optional[datetime] = None


class MessageSendResponse(CamelModel):
    message: str
    data: MessageResponse


class ThreadResponse(CamelModel):
    """Messages exchanged with one user, oldest first."""
    messages: List[MessageResponse]
    other_user: UserSummary
    pagination: Pagination


class ConversationResponse(CamelModel):
    partner: UserSummary
    last_message: MessageResponse
    unread_count: int


class ConversationListResponse(CamelModel):
    conversations: List[ConversationResponse]
    pagination: Pagination


class MessageListResponse(CamelModel):
    messages: List[MessageResponse]
    pagination: Pagination


class UnreadCountResponse(CamelModel):
    unread_count: int
