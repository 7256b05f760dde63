"""CRUD operations for Message."""

from typing import Dict, List, Tuple
from datetime import datetime
from sqlalchemy import select, func, and_, or_, desc, update
from sqlalchemy.orm import Session

from app.crud.base import CRUDBase
from app.models.message import Message
from app.models.user import User
from app.schemas.message import MessageCreate
from app.services.notification_service import notification_service


class CRUDMessage(CRUDBase[Message, MessageCreate, dict]):
    """CRUD operations for Message."""

    def create_message(
        self,
        db: Session,
        *,
        sender: User,
        receiver: User,
        message_in: MessageCreate,
    ) -> Message:
        """Create a new message and notify the receiver in the same transaction."""
        message = Message(
            sender_id=sender.id,
            receiver_id=receiver.id,
            content=message_in.content,
            media_url=message_in.media_url,
            message_type=message_in.message_type,
            is_read=False,
            is_deleted=False,
        )
        try:
            db.add(message)
            notification_service.notify(
                db,
                recipient_id=receiver.id,
                sender_id=sender.id,
                notification_type="message",
                message=f"{sender.username} sent you a message",
            )
            db.commit()
        except Exception:
            db.rollback()
            raise
        db.refresh(message)
        return message

    def _thread_filter(self, user_id: int, other_user_id: int):
        return and_(
            or_(
                and_(Message.sender_id == user_id, Message.receiver_id == other_user_id),
                and_(Message.sender_id == other_user_id, Message.receiver_id == user_id),
            ),
            Message.is_deleted == False,
        )

    def get_thread(
        self,
        db: Session,
        *,
        user_id: int,
        other_user_id: int,
        page: int = 1,
        limit: int = 50
    ) -> Tuple[List[Message], int]:
        """A page of the conversation, newest first."""
        stmt = (
            select(Message)
            .where(self._thread_filter(user_id, other_user_id))
            .order_by(desc(Message.created_at), desc(Message.id))
        )
        return self.paginate(db, stmt, page=page, limit=limit)

    def mark_thread_read(self, db: Session, *, reader_id: int, sender_id: int) -> int:
        """Mark every unread message from sender to reader as read.

        Returns:
            Number of messages marked as read
        """
        stmt = (
            update(Message)
            .where(
                Message.sender_id == sender_id,
                Message.receiver_id == reader_id,
                Message.is_read == False,
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

    def mark_as_read(self, db: Session, *, message: Message) -> Message:
        message.is_read = True
        message.read_at = datetime.utcnow()
        try:
            db.add(message)
            db.commit()
            db.refresh(message)
        except Exception:
            db.rollback()
            raise
        return message

    def soft_delete(self, db: Session, *, message: Message) -> Message:
        """Hide a message from listings while keeping it for its sender."""
        return self.delete(db, id=message.id)

    def get_conversations(self, db: Session, *, user_id: int) -> List[Dict]:
        """Group the user's non-deleted messages by conversation partner.

        Returns:
            Dicts with partner_id, last_message and unread_count, sorted by
            the last message's timestamp, newest first
        """
        stmt = (
            select(Message)
            .where(
                or_(Message.sender_id == user_id, Message.receiver_id == user_id),
                Message.is_deleted == False,
            )
            .order_by(desc(Message.created_at), desc(Message.id))
        )

        conversations: Dict[int, Dict] = {}
        for message in db.scalars(stmt).all():
            partner_id = message.receiver_id if message.sender_id == user_id else message.sender_id

            if partner_id not in conversations:
                # Newest-first ordering makes the first one seen the latest
                conversations[partner_id] = {
                    "partner_id": partner_id,
                    "last_message": message,
                    "unread_count": 0,
                }

            if message.receiver_id == user_id and not message.is_read:
                conversations[partner_id]["unread_count"] += 1

        # Insertion order already follows last_message recency
        return list(conversations.values())

    def get_unread_count(self, db: Session, *, user_id: int) -> int:
        stmt = select(func.count(Message.id)).where(
            Message.receiver_id == user_id,
            Message.is_read == False,
            Message.is_deleted == False,
        )
        return db.scalar(stmt) or 0

    def get_deleted_by_sender(
        self,
        db: Session,
        *,
        sender_id: int,
        page: int = 1,
        limit: int = 50
    ) -> Tuple[List[Message], int]:
        """The sender's own soft-deleted messages, for audit."""
        stmt = (
            select(Message)
            .where(Message.sender_id == sender_id, Message.is_deleted == True)
            .order_by(desc(Message.deleted_at), desc(Message.id))
        )
        return self.paginate(db, stmt, page=page, limit=limit)


# Create instance
crud_message = CRUDMessage(Message)
