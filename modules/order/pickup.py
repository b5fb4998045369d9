"""
Order Module - Pickup Window
==============================
Scheduled pickups stay valid for PICKUP_GRACE_MINUTES after their time slot.
Past that, the periodic sweep cancels them. Also builds the daily list of
pickup slots offered at checkout.

Scheduled dates/times are pantry wall-clock values. `now` may be naive
(pantry-local) or timezone-aware; expiry is compared on the same footing.
"""

from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta
from typing import List, Optional

from common.helpers import pantry_tz
from config.settings import (
    PICKUP_GRACE_MINUTES, PICKUP_FIRST_SLOT, PICKUP_LAST_SLOT, PICKUP_SLOT_MINUTES,
)
from modules.order.models import ScheduledPickup, PickupStatus

GRACE_PERIOD = timedelta(minutes=PICKUP_GRACE_MINUTES)
AUTO_CANCEL_REASON = f"Not picked up within {PICKUP_GRACE_MINUTES} minutes of the scheduled time"


@dataclass
class SweepResult:
    updated: List[ScheduledPickup] = field(default_factory=list)
    any_changed: bool = False
    cancelled_ids: List[str] = field(default_factory=list)


# ==========================================
# Time parsing / formatting
# ==========================================

def parse_pickup_time(value: str) -> time:
    """
    Parse "14:30", "2:30 PM" or "12:00 am".
    Raises ValueError for anything else.
    """
    text = (value or "").strip().upper()
    period = None
    if text.endswith("AM") or text.endswith("PM"):
        period = text[-2:]
        text = text[:-2].strip()

    hour_str, sep, minute_str = text.partition(":")
    if not sep or not hour_str.isdigit() or not minute_str.isdigit():
        raise ValueError(f"Invalid pickup time: {value!r}")
    hour, minute = int(hour_str), int(minute_str)

    if period:
        if not 1 <= hour <= 12:
            raise ValueError(f"Invalid pickup time: {value!r}")
        if period == "PM" and hour != 12:
            hour += 12
        elif period == "AM" and hour == 12:
            hour = 0

    return time(hour, minute)


def format_slot_label(slot: time) -> str:
    """time(14, 30) -> "2:30 PM"."""
    hour12 = slot.hour % 12 or 12
    period = "PM" if slot.hour >= 12 else "AM"
    return f"{hour12}:{slot.minute:02d} {period}"


def _plural(n: int, unit: str) -> str:
    return f"{n} {unit}" if n == 1 else f"{n} {unit}s"


def _align(local_value: datetime, now: datetime) -> datetime:
    """Give a pantry wall-clock value the same naive/aware footing as `now`."""
    if now.tzinfo is None:
        return local_value
    return local_value.replace(tzinfo=pantry_tz())


# ==========================================
# Expiry
# ==========================================

def scheduled_at(pickup: ScheduledPickup) -> datetime:
    return datetime.combine(pickup.scheduled_date, parse_pickup_time(pickup.scheduled_time))


def compute_expiry(pickup: ScheduledPickup) -> datetime:
    """Scheduled slot plus the grace period (naive, pantry wall clock)."""
    return scheduled_at(pickup) + GRACE_PERIOD


def should_auto_cancel(pickup: ScheduledPickup, now: datetime) -> bool:
    if not pickup.is_in_progress:
        return False
    return now > _align(compute_expiry(pickup), now)


def remaining_time(pickup: ScheduledPickup, now: datetime) -> Optional[timedelta]:
    """Time left before auto-cancellation; None once expired or no longer in progress."""
    if not pickup.is_in_progress:
        return None
    expiry = _align(compute_expiry(pickup), now)
    if now > expiry:
        return None
    return expiry - now


def remaining_minutes(pickup: ScheduledPickup, now: datetime) -> Optional[int]:
    left = remaining_time(pickup, now)
    if left is None:
        return None
    return int(left.total_seconds() // 60)


def format_remaining(pickup: ScheduledPickup, now: datetime) -> Optional[str]:
    minutes = remaining_minutes(pickup, now)
    if minutes is None:
        return None
    if minutes <= 0:
        return "Less than a minute"
    return _plural(minutes, "minute")


def sweep(pickups: List[ScheduledPickup], now: datetime) -> SweepResult:
    """
    Cancel every in-progress pickup whose window has lapsed.
    Pure: returns new objects and leaves the input list untouched.
    """
    result = SweepResult()
    for pickup in pickups:
        if should_auto_cancel(pickup, now):
            result.updated.append(pickup.with_status(PickupStatus.CANCELLED.value, AUTO_CANCEL_REASON))
            result.cancelled_ids.append(pickup.id)
        else:
            result.updated.append(pickup)
    result.any_changed = bool(result.cancelled_ids)
    return result


# ==========================================
# Slots offered at checkout
# ==========================================

def daily_slots() -> List[time]:
    first = parse_pickup_time(PICKUP_FIRST_SLOT)
    last = parse_pickup_time(PICKUP_LAST_SLOT)
    step = timedelta(minutes=PICKUP_SLOT_MINUTES)

    slots = []
    cursor = datetime.combine(date.min, first)
    end = datetime.combine(date.min, last)
    while cursor <= end:
        slots.append(cursor.time())
        cursor += step
    return slots


def available_time_slots(now: datetime, pickup_date: date = None) -> List[dict]:
    """
    Slots still bookable for `pickup_date` (default: today).
    Today's slots at or before the current minute are dropped; past dates get none.
    """
    today = now.date()
    pickup_date = pickup_date or today
    if pickup_date < today:
        return []

    current = (now.hour, now.minute)
    slots = []
    for slot in daily_slots():
        if pickup_date == today and (slot.hour, slot.minute) <= current:
            continue
        slots.append({"value": f"{slot.hour}:{slot.minute:02d}", "label": format_slot_label(slot)})
    return slots


def is_after_cutoff(now: datetime) -> bool:
    """True once the last slot of the day has started."""
    return now.time() >= parse_pickup_time(PICKUP_LAST_SLOT)


def default_pickup_date(now: datetime) -> date:
    """Today, or tomorrow once the day's last slot has begun."""
    if is_after_cutoff(now):
        return now.date() + timedelta(days=1)
    return now.date()


def time_until_pickup(pickup: ScheduledPickup, now: datetime) -> str:
    """Human countdown to the scheduled slot (not the expiry)."""
    diff = _align(scheduled_at(pickup), now) - now
    if diff <= timedelta(0):
        return "Pickup time has passed"

    days = diff.days
    hours = diff.seconds // 3600
    minutes = (diff.seconds % 3600) // 60

    if days > 0:
        return f"{_plural(days, 'day')} and {_plural(hours, 'hour')}"
    if hours > 0:
        return f"{_plural(hours, 'hour')} and {_plural(minutes, 'minute')}"
    return _plural(minutes, "minute")
