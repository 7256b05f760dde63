"""Follow model: a directed edge between two users."""

from enum import Enum
from sqlalchemy import Column, Integer, TIMESTAMP, ForeignKey, UniqueConstraint, CheckConstraint, Index, Enum as SQLEnum
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from ..database import Base


class FollowStatus(str, Enum):
    """Follow edge status. Private targets start as pending."""
    PENDING = "pending"
    ACCEPTED = "accepted"


class Follow(Base):
    __tablename__ = "follows"

    id = Column(Integer, primary_key=True, index=True)

    follower_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    following_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    status = Column(
        SQLEnum(FollowStatus, name="follow_status"),
        nullable=False,
        default=FollowStatus.ACCEPTED,
        index=True
    )

    # Timestamps
    created_at = Column(TIMESTAMP, server_default=func.now(), index=True)
    updated_at = Column(TIMESTAMP, server_default=func.now(), onupdate=func.now())

    __table_args__ = (
        UniqueConstraint('follower_id', 'following_id', name='uq_follow_pair'),
        CheckConstraint('follower_id <> following_id', name='check_no_self_follow'),
        Index('idx_follow_following_status', 'following_id', 'status'),
    )

    # Relationships
    follower = relationship("User", foreign_keys=[follower_id])
    following = relationship("User", foreign_keys=[following_id])
