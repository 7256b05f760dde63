"""User directory endpoints: profiles, search and suggestions."""

import logging

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.api.deps import get_current_active_user, get_db
from app.core.exceptions import BadRequestException, NotFoundException
from app.core.presence import presence_registry
from app.crud import crud_follow, crud_post, crud_user
from app.models.follow import FollowStatus
from app.models.user import User
from app.schemas.common import Pagination
from app.schemas.user import (
    OnlineUsersResponse,
    ProfilePost,
    ProfileUpdateResponse,
    SuggestedUsersResponse,
    UserListResponse,
    UserProfileResponse,
    UserResponse,
    UserSummary,
    UserUpdate,
)

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/users",
    tags=["Users"],
)

PROFILE_POSTS_LIMIT = 12


@router.get(
    "/profile/{username}",
    response_model=UserProfileResponse,
    status_code=status.HTTP_200_OK,
    summary="Get user profile",
    description="""
    Profile with follower/following/post counts and the viewer's follow status.

    Posts of a private account are withheld unless the viewer is the owner
    or an accepted follower (`canViewPosts=false`).
    """,
)
def get_profile(
    username: str,
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db),
) -> UserProfileResponse:
    user = crud_user.get_by_username(db, username)
    if not user or not user.is_active:
        raise NotFoundException("User")

    edge = None
    if user.id != current_user.id:
        edge = crud_follow.get_edge(db, follower_id=current_user.id, following_id=user.id)
    can_view_posts = crud_follow.can_view(db, viewer_id=current_user.id, owner=user)

    posts = []
    if can_view_posts:
        posts, _ = crud_post.get_by_user(db, user_id=user.id, page=1, limit=PROFILE_POSTS_LIMIT)

    return UserProfileResponse(
        **UserSummary.model_validate(user).model_dump(),
        bio=user.bio,
        website=user.website,
        is_private=user.is_private,
        created_at=user.created_at,
        followers_count=crud_follow.count_followers(db, user_id=user.id),
        following_count=crud_follow.count_following(db, user_id=user.id),
        posts_count=crud_post.count_by_user(db, user_id=user.id),
        is_following=edge is not None and edge.status == FollowStatus.ACCEPTED,
        follow_status=edge.status.value if edge else None,
        can_view_posts=can_view_posts,
        posts=[ProfilePost.model_validate(post) for post in posts],
    )


@router.put(
    "/profile",
    response_model=ProfileUpdateResponse,
    status_code=status.HTTP_200_OK,
    summary="Update own profile",
)
def update_profile(
    user_in: UserUpdate,
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db),
) -> ProfileUpdateResponse:
    """Partial update; only the fields present in the body change."""
    user = crud_user.update(db, db_obj=current_user, obj_in=user_in)
    logger.info(f"[USER] Profile updated: id={user.id}")
    return ProfileUpdateResponse(
        message="Profile updated successfully",
        user=UserResponse.model_validate(user),
    )


@router.get(
    "/search",
    response_model=UserListResponse,
    status_code=status.HTTP_200_OK,
    summary="Search users",
)
def search_users(
    q: str = Query("", description="At least 2 characters"),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db),
) -> UserListResponse:
    if len(q.strip()) < 2:
        raise BadRequestException("Search query must be at least 2 characters")

    users, total = crud_user.search(
        db, query=q, exclude_user_id=current_user.id, page=page, limit=limit
    )
    return UserListResponse(
        users=[UserSummary.model_validate(u) for u in users],
        pagination=Pagination.build(total=total, page=page, limit=limit, returned=len(users)),
    )


@router.get(
    "/suggested",
    response_model=SuggestedUsersResponse,
    status_code=status.HTTP_200_OK,
    summary="Suggested users to follow",
)
def suggested_users(
    limit: int = Query(5, ge=1, le=50),
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db),
) -> SuggestedUsersResponse:
    users = crud_user.get_suggested(db, user_id=current_user.id, limit=limit)
    return SuggestedUsersResponse(users=[UserSummary.model_validate(u) for u in users])


@router.get(
    "/online",
    response_model=OnlineUsersResponse,
    status_code=status.HTTP_200_OK,
    summary="Users connected to the realtime channel",
)
def online_users(
    current_user: User = Depends(get_current_active_user),
) -> OnlineUsersResponse:
    return OnlineUsersResponse(user_ids=presence_registry.online_user_ids())


__all__ = ["router"]
