"""CRUD operations for Post."""

from typing import Iterable, List, Optional, Set, Tuple
from sqlalchemy import select, or_, func, desc
from sqlalchemy.orm import Session

from app.crud.base import CRUDBase
from app.crud.follow import crud_follow
from app.models.post import Post
from app.models.post_like import PostLike
from app.models.user import User
from app.schemas.post import PostCreate


class CRUDPost(CRUDBase[Post, PostCreate, dict]):
    """CRUD operations for Post."""

    def create_post(
        self,
        db: Session,
        *,
        user_id: int,
        post_in: PostCreate,
    ) -> Post:
        """Create a new post with zeroed counters."""
        post = Post(
            user_id=user_id,
            caption=post_in.caption,
            media_url=post_in.media_url,
            media_type=post_in.media_type,
            location=post_in.location,
            likes_count=0,
            comments_count=0,
        )
        try:
            db.add(post)
            db.commit()
            db.refresh(post)
        except Exception:
            db.rollback()
            raise
        return post

    def get_feed(
        self,
        db: Session,
        *,
        viewer_id: int,
        page: int = 1,
        limit: int = 10,
    ) -> Tuple[List[Post], int]:
        """Newest posts the viewer may see.

        Own posts, posts by public accounts, and posts by private accounts
        the viewer follows with an accepted edge.
        """
        stmt = (
            select(Post)
            .join(User, User.id == Post.user_id)
            .where(
                User.is_active == True,
                or_(
                    Post.user_id == viewer_id,
                    User.is_private == False,
                    Post.user_id.in_(crud_follow.accepted_following_ids(viewer_id)),
                ),
            )
            .order_by(desc(Post.created_at), desc(Post.id))
        )
        return self.paginate(db, stmt, page=page, limit=limit)

    def get_by_user(
        self,
        db: Session,
        *,
        user_id: int,
        page: int = 1,
        limit: int = 12,
    ) -> Tuple[List[Post], int]:
        stmt = (
            select(Post)
            .where(Post.user_id == user_id)
            .order_by(desc(Post.created_at), desc(Post.id))
        )
        return self.paginate(db, stmt, page=page, limit=limit)

    def count_by_user(self, db: Session, *, user_id: int) -> int:
        stmt = select(func.count(Post.id)).where(Post.user_id == user_id)
        return db.scalar(stmt) or 0

    def delete_post(self, db: Session, *, post: Post) -> None:
        """Hard delete; likes, comments and notifications cascade."""
        try:
            db.delete(post)
            db.commit()
        except Exception:
            db.rollback()
            raise

    def check_user_liked(
        self,
        db: Session,
        *,
        post_id: int,
        user_id: int
    ) -> bool:
        """Check if user has liked a post."""
        stmt = select(PostLike.id).where(
            PostLike.post_id == post_id,
            PostLike.user_id == user_id
        )
        return db.scalar(stmt) is not None

    def liked_post_ids(self, db: Session, *, user_id: int, post_ids: Iterable[int]) -> Set[int]:
        """Subset of post_ids the user has liked."""
        post_ids = list(post_ids)
        if not post_ids:
            return set()
        stmt = select(PostLike.post_id).where(
            PostLike.user_id == user_id,
            PostLike.post_id.in_(post_ids),
        )
        return set(db.scalars(stmt).all())

    def get_likers(
        self,
        db: Session,
        *,
        post_id: int,
        page: int = 1,
        limit: int = 20,
    ) -> Tuple[List[User], int]:
        stmt = (
            select(User)
            .join(PostLike, PostLike.user_id == User.id)
            .where(PostLike.post_id == post_id)
            .order_by(desc(PostLike.created_at), desc(PostLike.id))
        )
        return self.paginate(db, stmt, page=page, limit=limit)

    def count_likes(self, db: Session, *, post_id: int) -> int:
        """True like row count (the denormalized counter must match this)."""
        stmt = select(func.count(PostLike.id)).where(PostLike.post_id == post_id)
        return db.scalar(stmt) or 0


# Singleton instance
crud_post = CRUDPost(Post)
