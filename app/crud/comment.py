"""CRUD operations for Comment."""

import logging
from typing import Dict, Iterable, List, Optional, Tuple
from sqlalchemy import Select, select, delete, update, func, and_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.exceptions import BadRequestException, ForbiddenException, NotFoundException
from app.crud.base import CRUDBase
from app.models.comment import Comment
from app.models.post import Post
from app.models.user import User
from app.services.notification_service import notification_service

logger = logging.getLogger(__name__)


class CRUDComment(CRUDBase[Comment, dict, dict]):
    """CRUD operations for Comment."""

    def lock_statement(self, comment_id: int, *, shared: bool = False) -> Select:
        """Select one comment under a row lock (FOR SHARE when `shared`).

        Reply inserts take the shared lock on their parent and cascade deletes
        take the exclusive one, so the two never interleave.
        """
        return (
            select(Comment)
            .where(Comment.id == comment_id)
            .with_for_update(read=shared)
            .execution_options(populate_existing=True)
        )

    def create_comment(
        self,
        db: Session,
        *,
        post: Post,
        author: User,
        content: str,
        parent_id: Optional[int] = None
    ) -> Comment:
        """Create a comment or a reply, bump the post counter and notify.

        Raises:
            NotFoundException: post or parent comment missing, or parent on another post
            BadRequestException: parent is itself a reply
        """
        parent = None
        if parent_id is not None:
            parent = db.scalars(self.lock_statement(parent_id, shared=True)).first()
            if not parent or parent.post_id != post.id:
                db.rollback()
                raise NotFoundException("Parent comment")
            if parent.parent_id is not None:
                db.rollback()
                raise BadRequestException("Cannot reply to a reply")

        comment = Comment(
            post_id=post.id,
            user_id=author.id,
            content=content,
            parent_id=parent.id if parent else None,
        )
        try:
            db.add(comment)
            db.flush()

            db.execute(
                update(Post)
                .where(Post.id == post.id)
                .values(comments_count=Post.comments_count + 1)
                .execution_options(synchronize_session=False)
            )

            targets = [(post.user_id, f"{author.username} commented on your post")]
            if parent is not None:
                targets.append((parent.user_id, f"{author.username} replied to your comment"))
            notification_service.fan_out(
                db,
                sender_id=author.id,
                notification_type="comment",
                targets=targets,
                post_id=post.id,
                comment_id=comment.id,
            )

            db.commit()
        except IntegrityError as e:
            # Post or parent was deleted after the checks above
            db.rollback()
            raise NotFoundException(detail="Post or parent comment no longer exists") from e
        except Exception:
            db.rollback()
            raise
        db.refresh(comment)
        return comment

    def delete_comment(self, db: Session, *, comment: Comment, user_id: int) -> int:
        """Delete a comment and, for top-level comments, all its replies.

        Returns:
            Number of comment rows removed (the post counter drops by the same)

        Raises:
            ForbiddenException: user is not the comment author
            NotFoundException: comment already deleted
        """
        if comment.user_id != user_id:
            raise ForbiddenException("You can only delete your own comments")

        comment_id = comment.id
        post_id = comment.post_id
        is_top_level = comment.parent_id is None

        try:
            if db.scalars(self.lock_statement(comment_id)).first() is None:
                raise NotFoundException("Comment")

            removed = 0
            if is_top_level:
                removed += db.execute(
                    delete(Comment).where(Comment.parent_id == comment_id)
                ).rowcount
            removed += db.execute(
                delete(Comment).where(Comment.id == comment_id)
            ).rowcount

            if removed:
                db.execute(
                    update(Post)
                    .where(Post.id == post_id)
                    .values(comments_count=Post.comments_count - removed)
                    .execution_options(synchronize_session=False)
                )
            db.commit()
        except Exception:
            db.rollback()
            raise

        logger.info(f"[COMMENT] Deleted comment {comment_id} on post {post_id} ({removed} rows)")
        return removed

    def get_top_level(
        self,
        db: Session,
        *,
        post_id: int,
        page: int = 1,
        limit: int = 20
    ) -> Tuple[List[Comment], int]:
        """Top-level comments on a post, newest first."""
        stmt = (
            select(Comment)
            .where(
                and_(
                    Comment.post_id == post_id,
                    Comment.parent_id.is_(None)
                )
            )
            .order_by(Comment.created_at.desc(), Comment.id.desc())
        )
        return self.paginate(db, stmt, page=page, limit=limit)

    def get_replies(
        self,
        db: Session,
        *,
        comment_id: int,
        page: int = 1,
        limit: int = 20
    ) -> Tuple[List[Comment], int]:
        """Replies to a comment, oldest first."""
        stmt = (
            select(Comment)
            .where(Comment.parent_id == comment_id)
            .order_by(Comment.created_at.asc(), Comment.id.asc())
        )
        return self.paginate(db, stmt, page=page, limit=limit)

    def get_reply_previews(
        self,
        db: Session,
        *,
        parent_ids: Iterable[int],
        per_parent: int = 3
    ) -> Dict[int, List[Comment]]:
        """Oldest few replies for each parent comment."""
        previews = {}
        for parent_id in parent_ids:
            stmt = (
                select(Comment)
                .where(Comment.parent_id == parent_id)
                .order_by(Comment.created_at.asc(), Comment.id.asc())
                .limit(per_parent)
            )
            previews[parent_id] = list(db.scalars(stmt).all())
        return previews

    def count_replies(self, db: Session, *, parent_ids: Iterable[int]) -> Dict[int, int]:
        parent_ids = list(parent_ids)
        if not parent_ids:
            return {}
        stmt = (
            select(Comment.parent_id, func.count(Comment.id))
            .where(Comment.parent_id.in_(parent_ids))
            .group_by(Comment.parent_id)
        )
        counts = {parent_id: 0 for parent_id in parent_ids}
        counts.update({parent_id: total for parent_id, total in db.execute(stmt).all()})
        return counts

    def get_recent_for_post(self, db: Session, *, post_id: int, limit: int = 5) -> List[Comment]:
        stmt = (
            select(Comment)
            .where(Comment.post_id == post_id)
            .order_by(Comment.created_at.desc(), Comment.id.desc())
            .limit(limit)
        )
        return list(db.scalars(stmt).all())

    def count_for_post(self, db: Session, *, post_id: int) -> int:
        """True comment row count (the denormalized counter must match this)."""
        stmt = select(func.count(Comment.id)).where(Comment.post_id == post_id)
        return db.scalar(stmt) or 0


# Singleton instance
crud_comment = CRUDComment(Comment)
