"""
Order Routes
==============
Student-facing JSON endpoints: eligibility, pickup slots, checkout,
and the "My Requests" list.
"""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel
from sqlalchemy.orm import Session

from config.database import get_db
from common.exceptions import NotFoundError, OrderLimitError
from common.helpers import now_local
from modules.auth.deps import require_student
from modules.order.models import PickupStatus
from modules.order.pickup import available_time_slots, default_pickup_date
from modules.order.service import order_service

router = APIRouter(prefix="/api/orders", tags=["orders"])


# ==========================================
# Schemas
# ==========================================

class CheckoutRequest(BaseModel):
    pickup_date: date
    pickup_time: str


# ==========================================
# Eligibility & slots
# ==========================================

@router.get("/eligibility")
async def eligibility(db: Session = Depends(get_db), me=Depends(require_student)):
    result = order_service.eligibility(db, me.id)
    return {
        "allowed": result.allowed,
        "next_eligible_date": result.next_eligible_date.isoformat() if result.next_eligible_date else None,
    }


@router.get("/time-slots")
async def time_slots(pickup_date: Optional[date] = Query(None), me=Depends(require_student)):
    now = now_local()
    pickup_date = pickup_date or default_pickup_date(now)
    return {
        "pickup_date": pickup_date.isoformat(),
        "slots": available_time_slots(now, pickup_date),
    }


# ==========================================
# Checkout
# ==========================================

@router.post("/checkout")
async def checkout(body: CheckoutRequest, db: Session = Depends(get_db), me=Depends(require_student)):
    try:
        pickup = order_service.checkout(db, me.id, body.pickup_date, body.pickup_time)
    except OrderLimitError:
        # keep the ORDER_LIMIT notification
        db.commit()
        raise
    db.commit()
    return order_service.pickup_view(pickup)


# ==========================================
# My Requests
# ==========================================

@router.get("/requests")
async def my_requests(
    status: Optional[PickupStatus] = Query(None),
    db: Session = Depends(get_db),
    me=Depends(require_student),
):
    now = now_local()
    pickups = order_service.list_pickups(db, user_id=me.id, status=status.value if status else None)
    return [order_service.pickup_view(p, now) for p in pickups]


@router.post("/requests/{pickup_id}/cancel")
async def cancel_request(pickup_id: str, db: Session = Depends(get_db), me=Depends(require_student)):
    pickup = order_service.get_pickup(db, pickup_id)
    if not pickup or pickup.user_id != me.id:
        raise NotFoundError("Request not found.")
    pickup = order_service.update_status(db, pickup_id, PickupStatus.CANCELLED.value, "Cancelled by student")
    db.commit()
    return order_service.pickup_view(pickup)
