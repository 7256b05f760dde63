"""Post endpoints: create, feed, detail, delete and likes."""

import logging
from typing import List, Optional, Set

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.api.deps import get_current_active_user, get_db
from app.core.exceptions import BadRequestException, ForbiddenException, NotFoundException
from app.crud import crud_comment, crud_follow, crud_post, crud_post_like, crud_user
from app.models.post import Post
from app.models.user import User
from app.schemas.comment import CommentResponse
from app.schemas.common import MessageOnlyResponse, Pagination
from app.schemas.post import (
    PostCreate,
    PostCreateResponse,
    PostDetailResponse,
    PostLikersResponse,
    PostLikeResponse,
    PostListResponse,
    PostResponse,
)
from app.schemas.user import UserSummary

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/posts",
    tags=["Posts"],
)

RECENT_COMMENTS_LIMIT = 5


def _enrich_post_response(
    post: Post,
    liked_ids: Optional[Set[int]] = None,
) -> PostResponse:
    """Attach the author card and the viewer's like status."""
    response = PostResponse.model_validate(post)
    response.is_liked = post.id in (liked_ids or set())
    return response


def _enrich_post_list(db: Session, posts: List[Post], viewer_id: int) -> List[PostResponse]:
    liked_ids = crud_post.liked_post_ids(db, user_id=viewer_id, post_ids=[p.id for p in posts])
    return [_enrich_post_response(post, liked_ids) for post in posts]


def _get_visible_post(db: Session, post_id: int, viewer: User) -> Post:
    """Load a post the viewer may see (404 missing, 403 private)."""
    post = crud_post.get(db, post_id)
    if not post:
        raise NotFoundException("Post")
    if not crud_follow.can_view(db, viewer_id=viewer.id, owner=post.user):
        raise ForbiddenException("This account is private")
    return post


@router.post(
    "",
    response_model=PostCreateResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create new post",
    description="""
    Create a post. A caption, a media URL, or both are required.
    """,
)
def create_post(
    post_in: PostCreate,
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db),
) -> PostCreateResponse:
    caption = (post_in.caption or "").strip()
    if not caption and not post_in.media_url:
        raise BadRequestException("Post must have a caption or media")

    post = crud_post.create_post(db, user_id=current_user.id, post_in=post_in)
    logger.info(f"[POST] Created post {post.id} by user {current_user.id}")

    return PostCreateResponse(
        message="Post created successfully",
        post=_enrich_post_response(post),
    )


@router.get(
    "/feed",
    response_model=PostListResponse,
    status_code=status.HTTP_200_OK,
    summary="Get feed",
    description="""
    Newest first: the viewer's own posts, posts by public accounts and posts
    by private accounts the viewer follows.
    """,
)
def get_feed(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db),
) -> PostListResponse:
    posts, total = crud_post.get_feed(db, viewer_id=current_user.id, page=page, limit=limit)
    return PostListResponse(
        posts=_enrich_post_list(db, posts, current_user.id),
        pagination=Pagination.build(total=total, page=page, limit=limit, returned=len(posts)),
    )


@router.get(
    "/user/{user_id}",
    response_model=PostListResponse,
    status_code=status.HTTP_200_OK,
    summary="Get a user's posts",
)
def get_user_posts(
    user_id: int,
    page: int = Query(1, ge=1),
    limit: int = Query(12, ge=1, le=100),
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db),
) -> PostListResponse:
    owner = crud_user.get_active(db, user_id)
    if not owner:
        raise NotFoundException("User")
    if not crud_follow.can_view(db, viewer_id=current_user.id, owner=owner):
        raise ForbiddenException("This account is private")

    posts, total = crud_post.get_by_user(db, user_id=owner.id, page=page, limit=limit)
    return PostListResponse(
        posts=_enrich_post_list(db, posts, current_user.id),
        pagination=Pagination.build(total=total, page=page, limit=limit, returned=len(posts)),
    )


@router.get(
    "/{post_id}",
    response_model=PostDetailResponse,
    status_code=status.HTTP_200_OK,
    summary="Get post detail",
)
def get_post(
    post_id: int,
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db),
) -> PostDetailResponse:
    post = _get_visible_post(db, post_id, current_user)

    is_liked = crud_post.check_user_liked(db, post_id=post.id, user_id=current_user.id)
    comments = crud_comment.get_recent_for_post(db, post_id=post.id, limit=RECENT_COMMENTS_LIMIT)

    base = _enrich_post_response(post, {post.id} if is_liked else set())
    return PostDetailResponse(
        **base.model_dump(),
        comments=[CommentResponse.model_validate(c) for c in comments],
    )


@router.delete(
    "/{post_id}",
    response_model=MessageOnlyResponse,
    status_code=status.HTTP_200_OK,
    summary="Delete post",
)
def delete_post(
    post_id: int,
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db),
) -> MessageOnlyResponse:
    """Owner only. Likes, comments and related notifications go with it."""
    post = crud_post.get(db, post_id)
    if not post:
        raise NotFoundException("Post")
    if post.user_id != current_user.id:
        raise ForbiddenException("You can only delete your own posts")

    crud_post.delete_post(db, post=post)
    logger.info(f"[POST] Deleted post {post_id} by user {current_user.id}")
    return MessageOnlyResponse(message="Post deleted successfully")


@router.post(
    "/{post_id}/like",
    response_model=PostLikeResponse,
    status_code=status.HTTP_200_OK,
    summary="Like or unlike post",
    description="""
    Toggle like on a post. Liking notifies the post owner.
    """,
)
def toggle_like_post(
    post_id: int,
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db),
) -> PostLikeResponse:
    post = _get_visible_post(db, post_id, current_user)

    is_liked, likes_count = crud_post_like.toggle_like(db, post=post, user=current_user)
    logger.info(f"[LIKE] user={current_user.id} post={post.id} liked={is_liked} count={likes_count}")

    return PostLikeResponse(
        post_id=post.id,
        is_liked=is_liked,
        likes_count=likes_count,
        message="Post liked" if is_liked else "Post unliked",
    )


@router.get(
    "/{post_id}/likes",
    response_model=PostLikersResponse,
    status_code=status.HTTP_200_OK,
    summary="Users who liked a post",
)
def get_post_likes(
    post_id: int,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db),
) -> PostLikersResponse:
    post = _get_visible_post(db, post_id, current_user)
    users, total = crud_post.get_likers(db, post_id=post.id, page=page, limit=limit)
    return PostLikersResponse(
        users=[UserSummary.model_validate(u) for u in users],
        pagination=Pagination.build(total=total, page=page, limit=limit, returned=len(users)),
    )


__all__ = ["router"]
