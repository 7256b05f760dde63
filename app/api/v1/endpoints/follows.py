"""Follow graph endpoints.

Private accounts receive follow requests that stay pending until accepted.
"""

import logging

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.api.deps import get_current_active_user, get_db
from app.core.exceptions import ForbiddenException, NotFoundException, SelfActionException
from app.crud import crud_follow, crud_user
from app.models.follow import FollowStatus
from app.models.user import User
from app.schemas.common import MessageOnlyResponse, Pagination
from app.schemas.follow import (
    FollowersResponse,
    FollowingResponse,
    FollowRequestAction,
    FollowRequestActionResponse,
    FollowRequestListResponse,
    FollowRequestResponse,
    FollowToggleResponse,
)
from app.schemas.user import UserSummary

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/follow",
    tags=["Follow"],
)


def _get_target(db: Session, user_id: int, current_user: User) -> User:
    if user_id == current_user.id:
        raise SelfActionException("You cannot follow yourself")
    target = crud_user.get_active(db, user_id)
    if not target:
        raise NotFoundException("User")
    return target


@router.get(
    "/requests",
    response_model=FollowRequestListResponse,
    status_code=status.HTTP_200_OK,
    summary="Pending follow requests addressed to me",
)
def list_follow_requests(
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db),
) -> FollowRequestListResponse:
    requests = crud_follow.get_pending_requests(db, user_id=current_user.id)
    return FollowRequestListResponse(
        requests=[
            FollowRequestResponse(
                id=r.id,
                follower=UserSummary.model_validate(r.follower),
                created_at=r.created_at,
            )
            for r in requests
        ]
    )


@router.put(
    "/requests/{request_id}",
    response_model=FollowRequestActionResponse,
    status_code=status.HTTP_200_OK,
    summary="Accept or reject a follow request",
)
def respond_to_follow_request(
    request_id: int,
    body: FollowRequestAction,
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db),
) -> FollowRequestActionResponse:
    request = crud_follow.get_pending_request(db, request_id=request_id, user_id=current_user.id)
    if not request:
        raise NotFoundException("Follow request")

    if body.action == "accept":
        if not crud_follow.accept(db, request=request, accepter=current_user):
            raise NotFoundException("Follow request")
        logger.info(f"[FOLLOW] Request {request_id} accepted by user {current_user.id}")
        return FollowRequestActionResponse(
            message="Follow request accepted",
            follow_status=FollowStatus.ACCEPTED,
        )

    if not crud_follow.reject(db, request=request):
        raise NotFoundException("Follow request")
    logger.info(f"[FOLLOW] Request {request_id} rejected by user {current_user.id}")
    return FollowRequestActionResponse(message="Follow request rejected", follow_status=None)


@router.post(
    "/{user_id}",
    response_model=FollowToggleResponse,
    status_code=status.HTTP_200_OK,
    summary="Follow, unfollow or cancel a request",
    description="""
    Toggle the follow edge to a user.

    - no edge: follow (`accepted` for public accounts, `pending` for private)
    - pending edge: the request is cancelled
    - accepted edge: unfollow

    `action` names the transition that ran: `followed`, `requested`,
    `request_cancelled` or `unfollowed`.
    """,
)
def toggle_follow(
    user_id: int,
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db),
) -> FollowToggleResponse:
    target = _get_target(db, user_id, current_user)
    edge = crud_follow.get_edge(db, follower_id=current_user.id, following_id=target.id)

    if edge is None:
        edge = crud_follow.follow(db, follower=current_user, target=target)
        if edge.status == FollowStatus.PENDING:
            return FollowToggleResponse(
                message="Follow request sent",
                is_following=False,
                follow_status=FollowStatus.PENDING,
                action="requested",
            )
        return FollowToggleResponse(
            message="User followed successfully",
            is_following=True,
            follow_status=FollowStatus.ACCEPTED,
            action="followed",
        )

    if edge.status == FollowStatus.PENDING:
        crud_follow.cancel_request(db, follower_id=current_user.id, following_id=target.id)
        logger.info(f"[FOLLOW] {current_user.id}->{target.id} request cancelled")
        return FollowToggleResponse(
            message="Follow request cancelled",
            is_following=False,
            follow_status=None,
            action="request_cancelled",
        )

    crud_follow.unfollow(db, follower_id=current_user.id, following_id=target.id)
    logger.info(f"[FOLLOW] {current_user.id}->{target.id} unfollowed")
    return FollowToggleResponse(
        message="User unfollowed successfully",
        is_following=False,
        follow_status=None,
        action="unfollowed",
    )


@router.delete(
    "/{user_id}",
    response_model=MessageOnlyResponse,
    status_code=status.HTTP_200_OK,
    summary="Unfollow a user",
)
def unfollow(
    user_id: int,
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db),
) -> MessageOnlyResponse:
    """Remove an accepted edge (404 when not following)."""
    target = _get_target(db, user_id, current_user)
    if not crud_follow.unfollow(db, follower_id=current_user.id, following_id=target.id):
        raise NotFoundException(detail="You are not following this user")
    logger.info(f"[FOLLOW] {current_user.id}->{target.id} unfollowed")
    return MessageOnlyResponse(message="User unfollowed successfully")


@router.delete(
    "/{user_id}/request",
    response_model=MessageOnlyResponse,
    status_code=status.HTTP_200_OK,
    summary="Cancel a pending follow request",
)
def cancel_follow_request(
    user_id: int,
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db),
) -> MessageOnlyResponse:
    target = _get_target(db, user_id, current_user)
    if not crud_follow.cancel_request(db, follower_id=current_user.id, following_id=target.id):
        raise NotFoundException("Follow request")
    logger.info(f"[FOLLOW] {current_user.id}->{target.id} request cancelled")
    return MessageOnlyResponse(message="Follow request cancelled")


def _get_listable_user(db: Session, user_id: int, current_user: User) -> User:
    user = crud_user.get_active(db, user_id)
    if not user:
        raise NotFoundException("User")
    if not crud_follow.can_view(db, viewer_id=current_user.id, owner=user):
        raise ForbiddenException("This account is private")
    return user


@router.get(
    "/{user_id}/followers",
    response_model=FollowersResponse,
    status_code=status.HTTP_200_OK,
    summary="Accepted followers of a user",
)
def get_followers(
    user_id: int,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db),
) -> FollowersResponse:
    user = _get_listable_user(db, user_id, current_user)
    followers, total = crud_follow.get_followers(db, user_id=user.id, page=page, limit=limit)
    return FollowersResponse(
        followers=[UserSummary.model_validate(u) for u in followers],
        pagination=Pagination.build(total=total, page=page, limit=limit, returned=len(followers)),
    )


@router.get(
    "/{user_id}/following",
    response_model=FollowingResponse,
    status_code=status.HTTP_200_OK,
    summary="Users a user follows",
)
def get_following(
    user_id: int,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db),
) -> FollowingResponse:
    user = _get_listable_user(db, user_id, current_user)
    following, total = crud_follow.get_following(db, user_id=user.id, page=page, limit=limit)
    return FollowingResponse(
        following=[UserSummary.model_validate(u) for u in following],
        pagination=Pagination.build(total=total, page=page, limit=limit, returned=len(following)),
    )


__all__ = ["router"]
