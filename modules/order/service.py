"""
Order Module - Service Layer
===============================
Checkout (weekly limit + pickup slot), pickup status changes,
and the expiry sweep run by the background scheduler.
"""

import logging
import uuid
from collections import defaultdict
from datetime import date, datetime
from typing import List, Optional

from sqlalchemy.orm import Session

from common.exceptions import (
    AuthorizationError, CupboardError, EmptyCartError, InvalidTransitionError,
    NotFoundError, OrderLimitError, PickupSlotError,
)
from common.helpers import generate_order_number, now_local
from modules.cart.service import cart_service
from modules.notification.models import NotificationType
from modules.notification.service import notification_service
from modules.order.eligibility import EligibilityResult, can_place_order, record_order_placed
from modules.order.models import ScheduledPickup, PickupStatus, TERMINAL_STATUSES
from modules.order.pickup import (
    available_time_slots, default_pickup_date, parse_pickup_time, sweep,
    format_slot_label, format_remaining, time_until_pickup,
)
from modules.storage.service import KeyValueStore
from modules.user.service import user_service

logger = logging.getLogger("comet.order")

PICKUPS_KEY = "pickups"


class OrderService:

    # ==========================================
    # Storage
    # ==========================================

    def _load_pickups(self, db: Session) -> List[ScheduledPickup]:
        pickups = []
        for row in KeyValueStore(db).get_json(PICKUPS_KEY, default=[]) or []:
            try:
                pickups.append(ScheduledPickup.from_dict(row))
            except (KeyError, TypeError, ValueError) as e:
                logger.warning(f"Skipping malformed pickup record: {e}")
        return pickups

    def _save_pickups(self, db: Session, pickups: List[ScheduledPickup]):
        KeyValueStore(db).set_json(PICKUPS_KEY, [p.to_dict() for p in pickups])

    # ==========================================
    # Eligibility
    # ==========================================

    def eligibility(self, db: Session, user_id: str, now: datetime = None) -> EligibilityResult:
        """Weekly-limit check for a user. Unknown users are never allowed."""
        user = user_service.get_by_id(db, user_id)
        if not user:
            return EligibilityResult(allowed=False)
        return can_place_order(user.eligibility, now or now_local())

    # ==========================================
    # Checkout
    # ==========================================

    def checkout(
        self,
        db: Session,
        user_id: str,
        pickup_date: date,
        pickup_time: str,
        now: datetime = None,
    ) -> ScheduledPickup:
        """
        Turn the student's cart into a scheduled pickup:
        1. Validate user, cart and time slot
        2. Enforce the weekly limit (notifies with the next eligible date)
        3. Record the order on the user (consumes any admin reset)
        4. Save an in-progress pickup and clear the cart

        Raises CupboardError subclasses; nothing is written when one is raised
        except the ORDER_LIMIT notification.
        """
        now = now or now_local()

        user = user_service.get_by_id(db, user_id)
        if not user:
            raise NotFoundError("User not found.")
        if not user.is_student:
            raise AuthorizationError("Only students can place pickup requests.")

        cart = cart_service.load(db, user.id)
        if not cart.lines:
            raise EmptyCartError()

        slot_value = self._validate_slot(pickup_date, pickup_time, now)

        result = can_place_order(user.eligibility, now)
        if not result.allowed:
            error = OrderLimitError(result.next_eligible_date)
            notification_service.send(
                db, user.id, NotificationType.ORDER_LIMIT.value,
                "Weekly order limit reached", error.message,
            )
            raise error

        record_order_placed(user.eligibility, now)
        user_service.save(db, user)

        pickup = ScheduledPickup(
            id=uuid.uuid4().hex[:12],
            order_number=generate_order_number(),
            user_id=user.id,
            scheduled_date=pickup_date,
            scheduled_time=slot_value,
            status=PickupStatus.IN_PROGRESS.value,
            items=cart.to_list(),
            created_at=now,
        )
        pickups = self._load_pickups(db)
        pickups.append(pickup)
        self._save_pickups(db, pickups)

        cart_service.clear(db, user.id)

        label = format_slot_label(parse_pickup_time(slot_value))
        notification_service.send(
            db, user.id, NotificationType.ORDER_PLACED.value,
            f"Order {pickup.order_number} scheduled",
            f"Pick up on {pickup_date:%A, %B} {pickup_date.day} at {label}.",
        )
        logger.info(f"Order {pickup.order_number} placed by user #{user.id} for {pickup_date} {slot_value}")
        return pickup

    def _validate_slot(self, pickup_date: date, pickup_time: str, now: datetime) -> str:
        """Return the canonical "H:MM" slot value or raise PickupSlotError."""
        if not pickup_date or not pickup_time:
            raise PickupSlotError("Please select a pickup date and time.")

        if pickup_date not in (now.date(), default_pickup_date(now)):
            raise PickupSlotError("Pickups can only be scheduled for the next open day.")

        try:
            slot = parse_pickup_time(pickup_time)
        except ValueError:
            raise PickupSlotError("Invalid pickup time.")

        value = f"{slot.hour}:{slot.minute:02d}"
        offered = {s["value"] for s in available_time_slots(now, pickup_date)}
        if value not in offered:
            raise PickupSlotError("That pickup time is no longer available.")
        return value

    # ==========================================
    # Status changes
    # ==========================================

    def update_status(
        self,
        db: Session,
        pickup_id: str,
        new_status: str,
        reason: str = None,
    ) -> ScheduledPickup:
        """Manual transition out of in-progress. Terminal pickups cannot change."""
        if new_status not in TERMINAL_STATUSES:
            raise CupboardError(f"Invalid status: {new_status}")

        pickups = self._load_pickups(db)
        for i, pickup in enumerate(pickups):
            if pickup.id == pickup_id:
                break
        else:
            raise NotFoundError("Request not found.")

        if not pickup.is_in_progress:
            raise InvalidTransitionError(f"Request {pickup.order_number} is already {pickup.status}.")

        pickups[i] = pickup.with_status(new_status, reason)
        self._save_pickups(db, pickups)

        notification_service.send(
            db, pickup.user_id, NotificationType.PICKUP_STATUS.value,
            f"Request {pickup.order_number} is now {new_status}",
            reason,
        )
        return pickups[i]

    # ==========================================
    # Expiration sweep
    # ==========================================

    def release_expired_pickups(self, db: Session, now: datetime = None) -> int:
        """Cancel in-progress pickups past their grace period. Returns count cancelled."""
        now = now or now_local()
        pickups = self._load_pickups(db)
        result = sweep(pickups, now)
        if not result.any_changed:
            return 0

        self._save_pickups(db, result.updated)

        by_user = defaultdict(list)
        for pickup in result.updated:
            if pickup.id in result.cancelled_ids:
                by_user[pickup.user_id].append(pickup.order_number)

        for user_id, numbers in by_user.items():
            notification_service.send(
                db, user_id, NotificationType.PICKUP_CANCELLED.value,
                "One or more orders were automatically cancelled due to missed pickup time",
                f"Orders must be picked up within the pickup window ({', '.join(numbers)}).",
            )

        count = len(result.cancelled_ids)
        logger.info(f"Auto-cancelled {count} expired pickups")
        return count

    # ==========================================
    # Query
    # ==========================================

    def list_pickups(self, db: Session, user_id: str = None, status: str = None) -> List[ScheduledPickup]:
        pickups = self._load_pickups(db)
        if user_id is not None:
            pickups = [p for p in pickups if p.user_id == str(user_id)]
        if status:
            pickups = [p for p in pickups if p.status == status]
        return sorted(pickups, key=lambda p: (p.scheduled_date, parse_pickup_time(p.scheduled_time)), reverse=True)

    def get_pickup(self, db: Session, pickup_id: str) -> Optional[ScheduledPickup]:
        for pickup in self._load_pickups(db):
            if pickup.id == pickup_id:
                return pickup
        return None

    def pickup_view(self, pickup: ScheduledPickup, now: datetime = None) -> dict:
        """Serialized pickup plus countdown text for the requests page."""
        now = now or now_local()
        data = pickup.to_dict()
        data["remaining"] = format_remaining(pickup, now)
        data["time_until_pickup"] = time_until_pickup(pickup, now) if pickup.is_in_progress else None
        return data


order_service = OrderService()
