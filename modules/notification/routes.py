"""
Notification Routes
=====================
In-app message list for the logged-in user.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from config.database import get_db
from modules.auth.deps import require_login
from modules.notification.service import notification_service

router = APIRouter(prefix="/api/notifications", tags=["notifications"])


@router.get("")
async def list_notifications(db: Session = Depends(get_db), me=Depends(require_login)):
    items = notification_service.list_notifications(db, me.id)
    return {
        "unread": notification_service.get_unread_count(db, me.id),
        "items": [
            {
                "id": n.id,
                "type": n.notification_type,
                "title": n.title,
                "body": n.body,
                "is_read": n.is_read,
                "created_at": n.created_at.isoformat() if n.created_at else None,
            }
            for n in items
        ],
    }


@router.post("/read-all")
async def mark_all_read(db: Session = Depends(get_db), me=Depends(require_login)):
    count = notification_service.mark_all_read(db, me.id)
    db.commit()
    return {"marked": count}
