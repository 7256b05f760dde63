"""Pydantic schemas for the follow graph."""

from datetime import datetime
from typing import List, Literal, Optional

from app.models.follow import FollowStatus
from app.schemas.common import CamelModel, Pagination
from app.schemas.user import UserSummary


class FollowToggleResponse(CamelModel):
    """Result of POST /follow/{user_id}.

    `action` names the transition that ran: followed, requested,
    unfollowed or request_cancelled.
    """
    message: str
    is_following: bool
    follow_status: Optional[FollowStatus] = None
    action: str


class FollowRequestAction(CamelModel):
    action: Literal["accept", "reject"]


class FollowRequestResponse(CamelModel):
    id: int
    follower: UserSummary
    created_at: Optional[datetime] = None


class FollowRequestListResponse(CamelModel):
    requests: List[FollowRequestResponse]


class FollowRequestActionResponse(CamelModel):
    message: str
    follow_status: Optional[FollowStatus] = None


class FollowersResponse(CamelModel):
    followers: List[UserSummary]
    pagination: Pagination


class FollowingResponse(CamelModel):
    following: List[UserSummary]
    pagination: Pagination
