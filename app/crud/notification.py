"""CRUD operations for `Notification` model."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional, Tuple

from sqlalchemy import select, and_, func, update
from sqlalchemy.orm import Session

from app.crud.base import CRUDBase
from app.models.notification import Notification
from app.schemas.notification import NOTIFICATION_TYPES


class CRUDNotification(CRUDBase[Notification, dict, dict]):
    def get_by_user(
        self,
        db: Session,
        *,
        user_id: int,
        page: int = 1,
        limit: int = 20,
        notification_type: Optional[str] = None,
    ) -> Tuple[List[Notification], int]:
        """Get a page of notifications for a user, newest first.

        Unknown types are ignored rather than rejected.
        """
        conditions = [Notification.user_id == user_id]

        if notification_type in NOTIFICATION_TYPES:
            conditions.append(Notification.type == notification_type)

        stmt = (
            select(Notification)
            .where(and_(*conditions))
            .order_by(Notification.created_at.desc(), Notification.id.desc())
        )
        return self.paginate(db, stmt, page=page, limit=limit)

    def get_for_user(self, db: Session, *, notification_id: int, user_id: int) -> Optional[Notification]:
        """Get a notification only if it belongs to the user."""
        stmt = select(Notification).where(
            Notification.id == notification_id,
            Notification.user_id == user_id,
        )
        return db.scalars(stmt).first()

    def get_unread_count(self, db: Session, *, user_id: int) -> int:
        stmt = select(func.count(Notification.id)).where(
            Notification.user_id == user_id,
            Notification.is_read == False,
        )
        return db.scalar(stmt) or 0

    def mark_as_read(self, db: Session, *, notification: Notification) -> Notification:
        """Mark a notification as read."""
        notification.is_read = True
        notification.read_at = datetime.utcnow()

        try:
            db.add(notification)
            db.commit()
            db.refresh(notification)
        except Exception:
            db.rollback()
            raise
        return notification

    def mark_all_read(self, db: Session, *, user_id: int) -> int:
        """Mark all notifications for a user as read.

        Returns the number of notifications marked.
        """
        stmt = (
            update(Notification)
            .where(
                Notification.user_id == user_id,
                Notification.is_read == False,
            )
            .values(is_read=True, read_at=datetime.utcnow())
            .execution_options(synchronize_session=False)
        )
        try:
            result = db.execute(stmt)
            db.commit()
        except Exception:
            db.rollback()
            raise
        return result.rowcount or 0


# Singleton instance
crud_notification = CRUDNotification(Notification)
