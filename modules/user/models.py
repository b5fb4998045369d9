"""
User Module - User Record
==========================
Users live as a JSON list in the key/value store (the storefront's mock
directory). Each record carries its own weekly-order state.
"""

import enum
from dataclasses import dataclass, field
from typing import Optional

from common.helpers import parse_iso, to_iso
from modules.order.eligibility import OrderEligibilityRecord


class UserType(str, enum.Enum):
    STUDENT = "student"
    ADMIN = "admin"
    DONOR = "donor"


@dataclass
class User:
    id: str
    first_name: str
    last_name: str
    email: str
    user_type: str = UserType.STUDENT.value
    student_id: Optional[str] = None
    eligibility: OrderEligibilityRecord = field(default_factory=OrderEligibilityRecord)

    @property
    def is_student(self) -> bool:
        return self.user_type == UserType.STUDENT.value

    @property
    def is_admin(self) -> bool:
        return self.user_type == UserType.ADMIN.value

    def to_dict(self) -> dict:
        data = {
            "id": self.id,
            "firstName": self.first_name,
            "lastName": self.last_name,
            "email": self.email,
            "userType": self.user_type,
        }
        if self.student_id:
            data["studentId"] = self.student_id
        if self.eligibility.last_order_at:
            data["lastOrderDate"] = to_iso(self.eligibility.last_order_at)
        if self.eligibility.admin_override:
            data["orderLimitReset"] = True
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "User":
        return cls(
            id=str(data["id"]),
            first_name=data.get("firstName", ""),
            last_name=data.get("lastName", ""),
            email=data.get("email", ""),
            user_type=data.get("userType", UserType.STUDENT.value),
            student_id=data.get("studentId"),
            eligibility=OrderEligibilityRecord(
                last_order_at=parse_iso(data.get("lastOrderDate")),
                admin_override=bool(data.get("orderLimitReset", False)),
            ),
        )
