"""CRUD operations package - exports singleton instances for all models."""

from .base import CRUDBase
from .user import crud_user
from .follow import crud_follow
from .post import crud_post
from .post_like import crud_post_like
from .comment import crud_comment
from .message import crud_message
from .notification import crud_notification


__all__ = [
    # Base
    "CRUDBase",
    # CRUD instances
    "crud_user",
    "crud_follow",
    "crud_post",
    "crud_post_like",
    "crud_comment",
    "crud_message",
    "crud_notification",
]
