"""
Storage Module - Key/Value Store
=================================
String keys to JSON-serialized values. Every service persists through this
port (write-through on each mutation); callers own the commit.
"""

import json
import logging
from typing import Any, Optional

from sqlalchemy.orm import Session

from modules.storage.models import StorageEntry

logger = logging.getLogger("comet.storage")


class KeyValueStore:

    def __init__(self, db: Session):
        self.db = db

    def get(self, key: str) -> Optional[str]:
        entry = self.db.get(StorageEntry, key)
        return entry.value if entry else None

    def set(self, key: str, value: str):
        entry = self.db.get(StorageEntry, key)
        if entry:
            entry.value = value
        else:
            self.db.add(StorageEntry(key=key, value=value))
        self.db.flush()

    def remove(self, key: str):
        entry = self.db.get(StorageEntry, key)
        if entry:
            self.db.delete(entry)
            self.db.flush()

    # ------------------------------------------
    # JSON helpers
    # ------------------------------------------

    def get_json(self, key: str, default: Any = None) -> Any:
        """Decode a stored value. Corrupt JSON is logged and treated as missing."""
        raw = self.get(key)
        if raw is None:
            return default
        try:
            return json.loads(raw)
        except ValueError as e:
            logger.warning(f"Failed to parse stored value for {key!r}: {e}")
            return default

    def set_json(self, key: str, value: Any):
        self.set(key, json.dumps(value))
