"""Post model for the user feed."""

from enum import Enum
from sqlalchemy import Column, Integer, String, Text, TIMESTAMP, ForeignKey, Index, Enum as SQLEnum
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from ..database import Base


class MediaType(str, Enum):
    """Kinds of media a post can reference."""
    IMAGE = "image"
    VIDEO = "video"


class Post(Base):
    """A post published by a user."""

    __tablename__ = "posts"

    id = Column(Integer, primary_key=True, index=True)

    # Foreign Keys
    user_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    # Post Content
    caption = Column(Text, nullable=True)
    media_url = Column(String(255), nullable=True)
    media_type = Column(SQLEnum(MediaType, name="media_type"), nullable=True)
    location = Column(String(100), nullable=True)

    # Denormalized counters, only touched by the like and comment crud paths
    likes_count = Column(Integer, default=0, nullable=False)
    comments_count = Column(Integer, default=0, nullable=False)

    # Timestamps
    created_at = Column(TIMESTAMP, server_default=func.now(), index=True)
    updated_at = Column(TIMESTAMP, server_default=func.now(), onupdate=func.now())

    __table_args__ = (
        Index('idx_post_user_created', 'user_id', 'created_at'),
    )

    # Relationships
    user = relationship("User", back_populates="posts")
    likes = relationship(
        "PostLike",
        back_populates="post",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    comments = relationship(
        "Comment",
        back_populates="post",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
