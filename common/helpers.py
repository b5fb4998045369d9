"""
Comet Cupboard - Shared Helpers
================================
Pure utility functions with NO database or module dependencies.
"""

import random
from datetime import datetime
from typing import Optional
from zoneinfo import ZoneInfo

from config.settings import PANTRY_TIMEZONE


def pantry_tz() -> ZoneInfo:
    return ZoneInfo(PANTRY_TIMEZONE)


def now_local() -> datetime:
    """Returns the current time on the pantry's wall clock (timezone-aware)."""
    return datetime.now(pantry_tz())


def to_iso(value: Optional[datetime]) -> Optional[str]:
    if value is None:
        return None
    return value.isoformat()


def parse_iso(value: Optional[str]) -> Optional[datetime]:
    """Parse an ISO-8601 string (accepts a trailing 'Z'). Returns None on failure."""
    if not value:
        return None
    try:
        return datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except (ValueError, TypeError):
        return None


def generate_order_number() -> str:
    """Random pickup order number, e.g. CC-482913."""
    return f"CC-{random.randint(100000, 999999)}"
