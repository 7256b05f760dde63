"""
SQLAlchemy Models for Socialnet
"""

from ..database import Base
from .user import User
from .post import Post, MediaType
from .post_like import PostLike
from .comment import Comment
from .follow import Follow, FollowStatus
from .message import Message
from .notification import Notification

# Export all models
__all__ = [
    "Base",
    "User",
    "Post",
    "MediaType",
    "PostLike",
    "Comment",
    "Follow",
    "FollowStatus",
    "Message",
    "Notification",
]
