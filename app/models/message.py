"""Message model for direct messages."""

from sqlalchemy import Column, Integer, String, Text, Boolean, TIMESTAMP, ForeignKey, Index, CheckConstraint
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from ..database import Base


class Message(Base):
    """A direct message between two users."""

    __tablename__ = "messages"

    id = Column(Integer, primary_key=True, index=True)

    # Foreign Keys
    sender_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    receiver_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    # Message Content
    content = Column(Text, nullable=True)
    message_type = Column(String(10), nullable=False, default="text")
    media_url = Column(String(255), nullable=True)

    # Read Status
    is_read = Column(Boolean, default=False, nullable=False, index=True)
    read_at = Column(TIMESTAMP, nullable=True)

    # Soft delete
    is_deleted = Column(Boolean, default=False, nullable=False, index=True)
    deleted_at = Column(TIMESTAMP, nullable=True)

    # Timestamps
    created_at = Column(TIMESTAMP, server_default=func.now(), index=True)

    __table_args__ = (
        CheckConstraint(
            "message_type IN ('text', 'image', 'video', 'audio', 'file')",
            name="check_message_type"
        ),
        CheckConstraint("sender_id <> receiver_id", name="check_no_self_message"),
        Index('idx_message_pair_created', 'sender_id', 'receiver_id', 'created_at'),
        Index('idx_message_receiver_unread', 'receiver_id', 'is_read'),
    )

    # Relationships
    sender = relationship("User", foreign_keys=[sender_id])
    receiver = relationship("User", foreign_keys=[receiver_id])
