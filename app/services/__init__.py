"""Services package."""

from .notification_service import notification_service, NotificationService

__all__ = [
    "notification_service",
    "NotificationService",
]
