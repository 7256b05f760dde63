"""CRUD operations for the follow graph.

Each transition of the follow state machine is its own method:
follow (absent -> pending/accepted), accept (pending -> accepted),
reject and cancel_request (pending -> absent), unfollow (accepted -> absent).
"""

import logging
from typing import List, Optional, Tuple

from sqlalchemy import select, delete, update, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.crud.base import CRUDBase
from app.models.follow import Follow, FollowStatus
from app.models.user import User
from app.services.notification_service import notification_service

logger = logging.getLogger(__name__)


class CRUDFollow(CRUDBase[Follow, dict, dict]):
    """CRUD operations for Follow."""

    def get_edge(self, db: Session, *, follower_id: int, following_id: int) -> Optional[Follow]:
        stmt = select(Follow).where(
            Follow.follower_id == follower_id,
            Follow.following_id == following_id,
        )
        return db.scalars(stmt).first()

    def is_accepted_follower(self, db: Session, *, follower_id: int, following_id: int) -> bool:
        edge = self.get_edge(db, follower_id=follower_id, following_id=following_id)
        return edge is not None and edge.status == FollowStatus.ACCEPTED

    def can_view(self, db: Session, *, viewer_id: int, owner: User) -> bool:
        """Private accounts are visible only to themselves and accepted followers."""
        if not owner.is_private or owner.id == viewer_id:
            return True
        return self.is_accepted_follower(db, follower_id=viewer_id, following_id=owner.id)

    def accepted_following_ids(self, follower_id: int):
        """Subquery of ids the user follows with an accepted edge."""
        return select(Follow.following_id).where(
            Follow.follower_id == follower_id,
            Follow.status == FollowStatus.ACCEPTED,
        )

    # ----- Transitions -----
    def follow(self, db: Session, *, follower: User, target: User) -> Follow:
        """Create an edge: pending for private targets, accepted otherwise.

        The target is notified in the same transaction.
        """
        status = FollowStatus.PENDING if target.is_private else FollowStatus.ACCEPTED
        edge = Follow(follower_id=follower.id, following_id=target.id, status=status)
        db.add(edge)

        text = (
            f"{follower.username} requested to follow you"
            if status == FollowStatus.PENDING
            else f"{follower.username} started following you"
        )
        notification_service.notify(
            db,
            recipient_id=target.id,
            sender_id=follower.id,
            notification_type="follow",
            message=text,
        )

        try:
            db.commit()
        except IntegrityError:
            # Concurrent duplicate request; keep whatever edge won
            db.rollback()
            existing = self.get_edge(db, follower_id=follower.id, following_id=target.id)
            if existing is None:
                raise
            logger.info(f"[FOLLOW] Duplicate follow {follower.id}->{target.id} resolved to existing edge")
            return existing
        except Exception:
            db.rollback()
            raise
        db.refresh(edge)
        logger.info(f"[FOLLOW] {follower.id}->{target.id} status={status.value}")
        return edge

    def _remove_edge(self, db: Session, *, follower_id: int, following_id: int, status: FollowStatus) -> bool:
        stmt = delete(Follow).where(
            Follow.follower_id == follower_id,
            Follow.following_id == following_id,
            Follow.status == status,
        )
        try:
            result = db.execute(stmt)
            db.commit()
        except Exception:
            db.rollback()
            raise
        return result.rowcount == 1

    def unfollow(self, db: Session, *, follower_id: int, following_id: int) -> bool:
        """Remove an accepted edge. Returns False when there was none."""
        return self._remove_edge(
            db, follower_id=follower_id, following_id=following_id, status=FollowStatus.ACCEPTED
        )

    def cancel_request(self, db: Session, *, follower_id: int, following_id: int) -> bool:
        """Withdraw a pending request. Returns False when there was none."""
        return self._remove_edge(
            db, follower_id=follower_id, following_id=following_id, status=FollowStatus.PENDING
        )

    def get_pending_request(self, db: Session, *, request_id: int, user_id: int) -> Optional[Follow]:
        """A pending request addressed to the user."""
        stmt = select(Follow).where(
            Follow.id == request_id,
            Follow.following_id == user_id,
            Follow.status == FollowStatus.PENDING,
        )
        return db.scalars(stmt).first()

    def accept(self, db: Session, *, request: Follow, accepter: User) -> bool:
        """Move a pending request to accepted and notify the requester.

        Returns False if the request was no longer pending.
        """
        stmt = (
            update(Follow)
            .where(Follow.id == request.id, Follow.status == FollowStatus.PENDING)
            .values(status=FollowStatus.ACCEPTED)
            .execution_options(synchronize_session=False)
        )
        try:
            result = db.execute(stmt)
            if result.rowcount != 1:
                db.rollback()
                return False
            notification_service.notify(
                db,
                recipient_id=request.follower_id,
                sender_id=accepter.id,
                notification_type="follow",
                message=f"{accepter.username} accepted your follow request",
            )
            db.commit()
        except Exception:
            db.rollback()
            raise
        db.refresh(request)
        return True

    def reject(self, db: Session, *, request: Follow) -> bool:
        return self._remove_edge(
            db,
            follower_id=request.follower_id,
            following_id=request.following_id,
            status=FollowStatus.PENDING,
        )

    # ----- Listings -----
    def get_pending_requests(self, db: Session, *, user_id: int) -> List[Follow]:
        stmt = (
            select(Follow)
            .where(Follow.following_id == user_id, Follow.status == FollowStatus.PENDING)
            .order_by(Follow.created_at.desc(), Follow.id.desc())
        )
        return list(db.scalars(stmt).all())

    def get_followers(self, db: Session, *, user_id: int, page: int = 1, limit: int = 20) -> Tuple[List[User], int]:
        """Users with an accepted edge to user_id, newest first."""
        stmt = (
            select(User)
            .join(Follow, Follow.follower_id == User.id)
            .where(Follow.following_id == user_id, Follow.status == FollowStatus.ACCEPTED)
            .order_by(Follow.created_at.desc(), Follow.id.desc())
        )
        return self.paginate(db, stmt, page=page, limit=limit)

    def get_following(self, db: Session, *, user_id: int, page: int = 1, limit: int = 20) -> Tuple[List[User], int]:
        """Users user_id follows with an accepted edge, newest first."""
        stmt = (
            select(User)
            .join(Follow, Follow.following_id == User.id)
            .where(Follow.follower_id == user_id, Follow.status == FollowStatus.ACCEPTED)
            .order_by(Follow.created_at.desc(), Follow.id.desc())
        )
        return self.paginate(db, stmt, page=page, limit=limit)

    def count_followers(self, db: Session, *, user_id: int) -> int:
        stmt = select(func.count(Follow.id)).where(
            Follow.following_id == user_id, Follow.status == FollowStatus.ACCEPTED
        )
        return db.scalar(stmt) or 0

    def count_following(self, db: Session, *, user_id: int) -> int:
        stmt = select(func.count(Follow.id)).where(
            Follow.follower_id == user_id, Follow.status == FollowStatus.ACCEPTED
        )
        return db.scalar(stmt) or 0


# Singleton instance
crud_follow = CRUDFollow(Follow)
