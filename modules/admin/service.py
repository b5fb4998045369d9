"""
Admin Module - User Management Service
========================================
Student directory view for staff and the weekly-limit reset.
"""

import logging
from datetime import datetime
from typing import List

from sqlalchemy.orm import Session

from common.exceptions import CupboardError, NotFoundError
from common.helpers import now_local
from modules.order.eligibility import can_place_order, reset_weekly_limit
from modules.user.models import User
from modules.user.service import user_service

logger = logging.getLogger("comet.admin")


class AdminService:

    def list_users(self, db: Session, user_type: str = None, now: datetime = None) -> List[dict]:
        """All users with each student's current ordering eligibility."""
        now = now or now_local()
        rows = []
        for user in user_service.list_users(db):
            if user_type and user.user_type != user_type:
                continue
            row = user.to_dict()
            if user.is_student:
                result = can_place_order(user.eligibility, now)
                row["canOrder"] = result.allowed
                row["nextOrderDate"] = result.next_eligible_date.isoformat() if result.next_eligible_date else None
            rows.append(row)
        return rows

    def reset_weekly_limit(self, db: Session, user_id: str, admin_id: str = None) -> User:
        """
        Let a student order again this week. The override is single-use:
        their next checkout clears it.
        """
        user = user_service.get_by_id(db, user_id)
        if not user:
            raise NotFoundError("User not found.")
        if not user.is_student:
            raise CupboardError("Only student order limits can be reset.")

        reset_weekly_limit(user.eligibility)
        user_service.save(db, user)
        logger.info(f"Weekly order limit reset for user #{user.id} by admin #{admin_id}")
        return user


admin_service = AdminService()
