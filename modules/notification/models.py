"""
Comet Cupboard - Notification Models
=====================================
In-app messages shown to students and staff (toasts in the storefront).
"""

import enum

from sqlalchemy import Column, Integer, String, DateTime, Text, Boolean, Index
from sqlalchemy.sql import func

from config.database import Base


class NotificationType(str, enum.Enum):
    CART_LIMIT = "CART_LIMIT"
    ORDER_LIMIT = "ORDER_LIMIT"
    ORDER_PLACED = "ORDER_PLACED"
    PICKUP_CANCELLED = "PICKUP_CANCELLED"
    PICKUP_STATUS = "PICKUP_STATUS"
    SYSTEM = "SYSTEM"


class Notification(Base):
    __tablename__ = "notifications"

    id = Column(Integer, primary_key=True)
    # Users live in the key/value directory, so this is a plain string id
    user_id = Column(String(64), nullable=False, index=True)
    notification_type = Column(String(30), nullable=False, default=NotificationType.SYSTEM.value)
    title = Column(String(200), nullable=False)
    body = Column(Text, nullable=True)
    is_read = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    __table_args__ = (
        Index("ix_notif_user_unread", "user_id", "is_read"),
    )
