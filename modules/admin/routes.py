"""
Admin Routes
==============
Staff JSON endpoints: user list, weekly-limit reset, request management.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel
from sqlalchemy.orm import Session

from config.database import get_db
from common.helpers import now_local
from modules.admin.service import admin_service
from modules.auth.deps import require_admin
from modules.order.models import PickupStatus
from modules.order.service import order_service

router = APIRouter(prefix="/api/admin", tags=["admin"])


class StatusRequest(BaseModel):
    status: PickupStatus
    reason: Optional[str] = None


# ==========================================
# 👥 Users
# ==========================================

@router.get("/users")
async def list_users(
    user_type: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    admin=Depends(require_admin),
):
    return admin_service.list_users(db, user_type=user_type)


@router.post("/users/{user_id}/reset-limit")
async def reset_limit(user_id: str, db: Session = Depends(get_db), admin=Depends(require_admin)):
    user = admin_service.reset_weekly_limit(db, user_id, admin_id=admin.id)
    db.commit()
    return {"success": True, "message": "Weekly order limit reset successfully.", "user": user.to_dict()}


# ==========================================
# 📦 Requests
# ==========================================

@router.get("/requests")
async def list_requests(
    status: Optional[PickupStatus] = Query(None),
    db: Session = Depends(get_db),
    admin=Depends(require_admin),
):
    now = now_local()
    pickups = order_service.list_pickups(db, status=status.value if status else None)
    return [order_service.pickup_view(p, now) for p in pickups]


@router.post("/requests/{pickup_id}/status")
async def update_request_status(
    pickup_id: str,
    body: StatusRequest,
    db: Session = Depends(get_db),
    admin=Depends(require_admin),
):
    pickup = order_service.update_status(db, pickup_id, body.status.value, body.reason)
    db.commit()
    return order_service.pickup_view(pickup)


@router.post("/requests/sweep")
async def sweep_requests(db: Session = Depends(get_db), admin=Depends(require_admin)):
    count = order_service.release_expired_pickups(db)
    db.commit()
    return {"cancelled": count}
