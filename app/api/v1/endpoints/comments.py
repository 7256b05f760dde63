"""Comment endpoints: one level of threaded replies."""

import logging

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.api.deps import get_current_active_user, get_db
from app.core.exceptions import ForbiddenException, NotFoundException
from app.crud import crud_comment, crud_follow, crud_post
from app.models.user import User
from app.schemas.comment import (
    CommentCreate,
    CommentCreateResponse,
    CommentDeleteResponse,
    CommentListResponse,
    CommentResponse,
    CommentWithReplies,
    ReplyListResponse,
)
from app.schemas.common import Pagination

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/comments",
    tags=["Comments"],
)

REPLY_PREVIEW_LIMIT = 3


@router.post(
    "/{post_id}",
    response_model=CommentCreateResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Comment on a post or reply to a comment",
    description="""
    Create a comment. With `parentId` it becomes a reply; the parent must be
    a top-level comment on the same post.

    The post owner and the parent comment's author are notified (once each,
    never the commenter).
    """,
)
def create_comment(
    post_id: int,
    comment_in: CommentCreate,
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db),
) -> CommentCreateResponse:
    post = crud_post.get(db, post_id)
    if not post:
        raise NotFoundException("Post")
    if not crud_follow.can_view(db, viewer_id=current_user.id, owner=post.user):
        raise ForbiddenException("This account is private")

    comment = crud_comment.create_comment(
        db,
        post=post,
        author=current_user,
        content=comment_in.content.strip(),
        parent_id=comment_in.parent_id,
    )
    logger.info(f"[COMMENT] Created comment {comment.id} on post {post.id} by user {current_user.id}")

    return CommentCreateResponse(
        message="Reply added successfully" if comment.parent_id else "Comment added successfully",
        comment=CommentResponse.model_validate(comment),
    )


@router.get(
    "/{post_id}",
    response_model=CommentListResponse,
    status_code=status.HTTP_200_OK,
    summary="List comments on a post",
    description="""
    Top-level comments, newest first. Each embeds its oldest replies and the
    total `repliesCount`.
    """,
)
def list_comments(
    post_id: int,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db),
) -> CommentListResponse:
    post = crud_post.get(db, post_id)
    if not post:
        raise NotFoundException("Post")
    if not crud_follow.can_view(db, viewer_id=current_user.id, owner=post.user):
        raise ForbiddenException("This account is private")

    comments, total = crud_comment.get_top_level(db, post_id=post.id, page=page, limit=limit)
    parent_ids = [c.id for c in comments]
    previews = crud_comment.get_reply_previews(db, parent_ids=parent_ids, per_parent=REPLY_PREVIEW_LIMIT)
    reply_counts = crud_comment.count_replies(db, parent_ids=parent_ids)

    items = []
    for comment in comments:
        item = CommentWithReplies(
            **CommentResponse.model_validate(comment).model_dump(),
            replies=[CommentResponse.model_validate(r) for r in previews.get(comment.id, [])],
            replies_count=reply_counts.get(comment.id, 0),
        )
        items.append(item)

    return CommentListResponse(
        comments=items,
        pagination=Pagination.build(total=total, page=page, limit=limit, returned=len(comments)),
    )


@router.get(
    "/{comment_id}/replies",
    response_model=ReplyListResponse,
    status_code=status.HTTP_200_OK,
    summary="List replies to a comment",
)
def list_replies(
    comment_id: int,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db),
) -> ReplyListResponse:
    comment = crud_comment.get(db, comment_id)
    if not comment:
        raise NotFoundException("Comment")
    if not crud_follow.can_view(db, viewer_id=current_user.id, owner=comment.post.user):
        raise ForbiddenException("This account is private")

    replies, total = crud_comment.get_replies(db, comment_id=comment.id, page=page, limit=limit)
    return ReplyListResponse(
        replies=[CommentResponse.model_validate(r) for r in replies],
        pagination=Pagination.build(total=total, page=page, limit=limit, returned=len(replies)),
    )


@router.delete(
    "/{comment_id}",
    response_model=CommentDeleteResponse,
    status_code=status.HTTP_200_OK,
    summary="Delete comment",
    description="""
    Author only. Deleting a top-level comment also deletes its replies; the
    post's comment counter drops by `deletedCount`.
    """,
)
def delete_comment(
    comment_id: int,
    current_user: User = Depends(get_current_active_user),
    db: Session = Depends(get_db),
) -> CommentDeleteResponse:
    comment = crud_comment.get(db, comment_id)
    if not comment:
        raise NotFoundException("Comment")

    deleted_count = crud_comment.delete_comment(db, comment=comment, user_id=current_user.id)
    return CommentDeleteResponse(
        message="Comment deleted successfully",
        deleted_count=deleted_count,
    )


__all__ = ["router"]
