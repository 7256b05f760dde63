"""Pydantic schemas for Post and PostLike."""

from datetime import datetime
from typing import List, Optional
from pydantic import Field

from app.models.post import MediaType
from app.schemas.common import CamelModel, Pagination
from app.schemas.comment import CommentResponse
from app.schemas.user import UserSummary


class PostCreate(CamelModel):
    """Schema for creating a new post. Caption or media is required."""
    caption: Optional[str] = Field(None, max_length=2200, description="Post caption")
    media_url: Optional[str] = Field(None, max_length=255, description="URL of externally hosted media")
    media_type: Optional[MediaType] = Field(None, description="image or video")
    location: Optional[str] = Field(None, max_length=100)


class PostResponse(CamelModel):
    """Schema for Post response."""
    id: int
    user_id: int
    user: Optional[UserSummary] = None
    caption: Optional[str] = None
    media_url: Optional[str] = None
    media_type: Optional[MediaType] = None
    location: Optional[str] = None
    likes_count: int
    comments_count: int
    is_liked: bool = False  # Populated for the current user
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class PostDetailResponse(PostResponse):
    """Post with its most recent comments."""
    comments: List[CommentResponse] = []


class PostCreateResponse(CamelModel):
    message: str
    post: PostResponse


class PostListResponse(CamelModel):
    """Response for listing posts."""
    posts: List[PostResponse]
    pagination: Pagination


class PostLikeResponse(CamelModel):
    """Response for like toggle."""
    post_id: int
    is_liked: bool
    likes_count: int
    message: str


class PostLikersResponse(CamelModel):
    users: List[UserSummary]
    pagination: Pagination
