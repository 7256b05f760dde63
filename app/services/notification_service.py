"""Service layer for notification fan-out."""

import logging
from typing import Iterable, List, Optional, Sequence, Tuple

from sqlalchemy.orm import Session

from app.core.exceptions import BadRequestException
from app.models.notification import Notification
from app.schemas.notification import NOTIFICATION_TYPES

logger = logging.getLogger(__name__)


class NotificationService:
    """
    Creates notification rows for like, comment, follow and message events.

    Rows are added to the caller's session and never committed here, so they
    land in the same transaction as the action that triggered them.
    """

    @staticmethod
    def distinct_recipients(candidate_ids: Iterable[Optional[int]], *, sender_id: int) -> List[int]:
        """
        Ordered set of recipients for one event.

        Drops None, the acting user and repeats; the first occurrence wins.
        """
        seen = set()
        recipients = []
        for user_id in candidate_ids:
            if user_id is None or user_id == sender_id or user_id in seen:
                continue
            seen.add(user_id)
            recipients.append(user_id)
        return recipients

    def fan_out(
        self,
        db: Session,
        *,
        sender_id: int,
        notification_type: str,
        targets: Sequence[Tuple[Optional[int], str]],
        post_id: Optional[int] = None,
        comment_id: Optional[int] = None,
    ) -> List[Notification]:
        """
        Add one notification per distinct recipient.

        Args:
            db: Database session (not committed)
            sender_id: User who performed the action
            notification_type: like, comment, follow, mention or message
            targets: (recipient_id, message) pairs in priority order; when a
                recipient appears twice only its first message is used
            post_id: Optional related post
            comment_id: Optional related comment

        Returns:
            List[Notification]: The pending notification objects
        """
        if notification_type not in NOTIFICATION_TYPES:
            raise BadRequestException(
                f"Invalid notification type. Must be one of: {sorted(NOTIFICATION_TYPES)}"
            )

        messages = {}
        for recipient_id, message in targets:
            messages.setdefault(recipient_id, message)

        created = []
        for recipient_id in self.distinct_recipients([t[0] for t in targets], sender_id=sender_id):
            notification = Notification(
                user_id=recipient_id,
                sender_id=sender_id,
                type=notification_type,
                message=messages[recipient_id],
                post_id=post_id,
                comment_id=comment_id,
                is_read=False,
            )
            db.add(notification)
            created.append(notification)

        if created:
            logger.info(
                f"[NOTIFY] {notification_type} from user {sender_id} -> "
                f"{[n.user_id for n in created]}"
            )
        return created

    def notify(
        self,
        db: Session,
        *,
        recipient_id: int,
        sender_id: int,
        notification_type: str,
        message: str,
        post_id: Optional[int] = None,
        comment_id: Optional[int] = None,
    ) -> Optional[Notification]:
        """Single-recipient shortcut; returns None for self-notifications."""
        created = self.fan_out(
            db,
            sender_id=sender_id,
            notification_type=notification_type,
            targets=[(recipient_id, message)],
            post_id=post_id,
            comment_id=comment_id,
        )
        return created[0] if created else None


# Singleton instance
notification_service = NotificationService()
