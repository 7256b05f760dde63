"""CRUD operations for PostLike."""

import logging
from typing import Tuple
from sqlalchemy import delete, update, and_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.crud.base import CRUDBase
from app.models.post import Post
from app.models.post_like import PostLike
from app.models.user import User
from app.services.notification_service import notification_service

logger = logging.getLogger(__name__)


class CRUDPostLike(CRUDBase[PostLike, dict, dict]):
    """CRUD operations for PostLike."""

    def toggle_like(
        self,
        db: Session,
        *,
        post: Post,
        user: User,
    ) -> Tuple[bool, int]:
        """
        Toggle like on a post in one transaction.

        The counter moves with SQL-side arithmetic and only when the row
        insert/delete actually happened, so it always equals the row count.

        Returns:
            (is_liked: bool, new_likes_count: int)
        """
        try:
            removed = db.execute(
                delete(PostLike).where(
                    and_(
                        PostLike.post_id == post.id,
                        PostLike.user_id == user.id
                    )
                )
            ).rowcount

            if removed:
                # Unlike
                db.execute(
                    update(Post)
                    .where(Post.id == post.id)
                    .values(likes_count=Post.likes_count - removed)
                    .execution_options(synchronize_session=False)
                )
                is_liked = False
            else:
                # Like
                db.add(PostLike(post_id=post.id, user_id=user.id))
                db.flush()
                db.execute(
                    update(Post)
                    .where(Post.id == post.id)
                    .values(likes_count=Post.likes_count + 1)
                    .execution_options(synchronize_session=False)
                )
                notification_service.notify(
                    db,
                    recipient_id=post.user_id,
                    sender_id=user.id,
                    notification_type="like",
                    message=f"{user.username} liked your post",
                    post_id=post.id,
                )
                is_liked = True

            db.commit()
        except IntegrityError:
            # A concurrent request from the same user inserted the like first
            db.rollback()
            logger.info(f"[LIKE] Concurrent like on post {post.id} by user {user.id}, keeping existing row")
            is_liked = True
        except Exception:
            db.rollback()
            raise

        db.refresh(post)
        return is_liked, post.likes_count


# Singleton instance
crud_post_like = CRUDPostLike(PostLike)
