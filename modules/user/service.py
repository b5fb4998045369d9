"""
User Module - Directory Service
================================
Lookup and update of users stored under the `users` key.
The directory is seeded with the demo accounts on first read.
"""

import logging
from datetime import datetime, timedelta
from typing import List, Optional

from sqlalchemy.orm import Session

from common.helpers import now_local
from modules.order.eligibility import OrderEligibilityRecord
from modules.storage.service import KeyValueStore
from modules.user.models import User, UserType

logger = logging.getLogger("comet.user")

USERS_KEY = "users"


def default_users(now: datetime) -> List[User]:
    return [
        User(id="1", first_name="Admin", last_name="User",
             email="admin@utdallas.edu", user_type=UserType.ADMIN.value),
        User(id="2", first_name="Student", last_name="User",
             email="student@utdallas.edu", student_id="2023001",
             eligibility=OrderEligibilityRecord(last_order_at=now - timedelta(days=2))),
        User(id="3", first_name="John", last_name="Smith",
             email="john.smith@utdallas.edu", student_id="2023002",
             eligibility=OrderEligibilityRecord(last_order_at=now)),
        User(id="4", first_name="Emily", last_name="Johnson",
             email="emily.johnson@utdallas.edu", student_id="2023003"),
    ]


class UserService:

    def list_users(self, db: Session, now: datetime = None) -> List[User]:
        store = KeyValueStore(db)
        if store.get(USERS_KEY) is None:
            users = default_users(now or now_local())
            self.save_all(db, users)
            logger.info(f"Seeded user directory with {len(users)} demo users")
            return users

        rows = store.get_json(USERS_KEY, default=[])
        if not isinstance(rows, list):
            logger.warning("Stored user directory is not a list, treating it as empty")
            rows = []

        users = []
        for row in rows:
            try:
                users.append(User.from_dict(row))
            except (KeyError, TypeError) as e:
                logger.warning(f"Skipping malformed user record: {e}")
        return users

    def save_all(self, db: Session, users: List[User]):
        KeyValueStore(db).set_json(USERS_KEY, [u.to_dict() for u in users])

    def get_by_id(self, db: Session, user_id: str) -> Optional[User]:
        for user in self.list_users(db):
            if user.id == str(user_id):
                return user
        return None

    def save(self, db: Session, user: User) -> User:
        """Write one user back (replacing the record with the same id, or appending)."""
        users = self.list_users(db)
        for i, existing in enumerate(users):
            if existing.id == user.id:
                users[i] = user
                break
        else:
            users.append(user)
        self.save_all(db, users)
        return user


user_service = UserService()
