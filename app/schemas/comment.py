"""Pydantic schemas for Comment."""

from datetime import datetime
from typing import List, Optional
from pydantic import Field, field_validator

from app.schemas.common import CamelModel, Pagination
from app.schemas.user import UserSummary


class CommentCreate(CamelModel):
    """Schema for creating a comment or a reply."""
    content: str = Field(..., min_length=1, max_length=1000, description="Comment content")
    parent_id: Optional[int] = Field(None, gt=0, description="Top-level comment being replied to")

    @field_validator("content")
    @classmethod
    def validate_content(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Comment must be 1-1000 characters")
        return v


class CommentResponse(CamelModel):
    id: int
    post_id: int
    user_id: int
    parent_id: Optional[int] = None
    content: str
    user: Optional[UserSummary] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class CommentWithReplies(CommentResponse):
    """Top-level comment with a preview of its replies."""
    replies: List[CommentResponse] = []
    replies_count: int = 0


class CommentCreateResponse(CamelModel):
    message: str
    comment: CommentResponse


class CommentListResponse(CamelModel):
    comments: List[CommentWithReplies]
    pagination: Pagination


class ReplyListResponse(CamelModel):
    replies: List[CommentResponse]
    pagination: Pagination


class CommentDeleteResponse(CamelModel):
    message: str
    deleted_count: int
