"""API router aggregator."""

from fastapi import APIRouter

from app.api.v1.endpoints import auth, users, posts, comments, follows, messages, notifications

api_router = APIRouter(prefix="/api")

api_router.include_router(auth.router)
api_router.include_router(users.router)
api_router.include_router(posts.router)
api_router.include_router(comments.router)
api_router.include_router(follows.router)
api_router.include_router(messages.router)
api_router.include_router(notifications.router)

__all__ = ["api_router"]
