"""
Storage Module - Models
========================
Flat key/value table standing in for browser local storage.
"""

from sqlalchemy import Column, String, Text, DateTime
from sqlalchemy.sql import func
from config.database import Base


class StorageEntry(Base):
    __tablename__ = "storage_entries"

    key = Column(String(200), primary_key=True)
    value = Column(Text, nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)
