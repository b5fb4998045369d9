"""
Comet Cupboard - Notification Service
======================================
Records user-facing messages produced by the policy engine's callers:
cart capacity rejections, weekly-limit blocks, pickup auto-cancellations.
Informed, never consulted: nothing here changes a business decision.
"""

import logging
from typing import List

from sqlalchemy.orm import Session
from sqlalchemy import desc

from modules.notification.models import Notification

logger = logging.getLogger("comet.notification")


class NotificationService:

    # ------------------------------------------------------------------
    # Core: Send Notification
    # ------------------------------------------------------------------

    def send(
        self,
        db: Session,
        user_id: str,
        notification_type: str,
        title: str,
        body: str = None,
    ) -> Notification:
        """Create an in-app notification. Caller manages commit."""
        notif = Notification(
            user_id=str(user_id),
            notification_type=notification_type,
            title=title,
            body=body,
        )
        db.add(notif)
        db.flush()
        logger.info(f"[{notification_type}] user #{user_id}: {title}")
        return notif

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def list_notifications(self, db: Session, user_id: str, limit: int = 20) -> List[Notification]:
        return (
            db.query(Notification)
            .filter(Notification.user_id == str(user_id))
            .order_by(desc(Notification.created_at), desc(Notification.id))
            .limit(limit)
            .all()
        )

    def get_unread_count(self, db: Session, user_id: str) -> int:
        return db.query(Notification).filter(
            Notification.user_id == str(user_id),
            Notification.is_read == False,
        ).count()

    def mark_all_read(self, db: Session, user_id: str) -> int:
        count = db.query(Notification).filter(
            Notification.user_id == str(user_id),
            Notification.is_read == False,
        ).update({"is_read": True})
        db.flush()
        return count


notification_service = NotificationService()
