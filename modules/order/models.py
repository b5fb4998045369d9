"""
Order Module - Models
======================
A placed request and its scheduled pickup. Stored as a JSON list under
the `pickups` key.

State machine: IN_PROGRESS is the only non-terminal status. It moves to
SUCCESSFUL (picked up) or CANCELLED (by staff, the student, or the expiry
sweep) and never leaves either.
"""

import enum
from dataclasses import dataclass, field, asdict, replace
from datetime import date, datetime
from typing import List, Optional

from common.helpers import parse_iso, to_iso


class PickupStatus(str, enum.Enum):
    IN_PROGRESS = "in-progress"
    SUCCESSFUL = "successful"
    CANCELLED = "cancelled"


TERMINAL_STATUSES = {PickupStatus.SUCCESSFUL.value, PickupStatus.CANCELLED.value}


@dataclass
class ScheduledPickup:
    id: str
    order_number: str
    user_id: str
    scheduled_date: date
    scheduled_time: str                      # "14:30" or "2:30 PM"
    status: str = PickupStatus.IN_PROGRESS.value
    items: List[dict] = field(default_factory=list)
    created_at: Optional[datetime] = None
    cancellation_reason: Optional[str] = None

    @property
    def is_in_progress(self) -> bool:
        return self.status == PickupStatus.IN_PROGRESS.value

    def with_status(self, status: str, reason: str = None) -> "ScheduledPickup":
        return replace(self, status=status, cancellation_reason=reason)

    def to_dict(self) -> dict:
        data = asdict(self)
        data["scheduled_date"] = self.scheduled_date.isoformat()
        data["created_at"] = to_iso(self.created_at)
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "ScheduledPickup":
        """Raises KeyError/ValueError for records the sweep could not evaluate."""
        from modules.order.pickup import parse_pickup_time
        scheduled_time = str(data["scheduled_time"])
        parse_pickup_time(scheduled_time)
        return cls(
            id=str(data["id"]),
            order_number=data.get("order_number", ""),
            user_id=str(data.get("user_id", "")),
            scheduled_date=date.fromisoformat(data["scheduled_date"]),
            scheduled_time=scheduled_time,
            status=data.get("status", PickupStatus.IN_PROGRESS.value),
            items=list(data.get("items") or []),
            created_at=parse_iso(data.get("created_at")),
            cancellation_reason=data.get("cancellation_reason"),
        )
