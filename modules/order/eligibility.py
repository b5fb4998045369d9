"""
Order Module - Weekly Eligibility
===================================
One order per calendar week per student, unless an admin has reset the limit.

Weeks follow ISO-8601 numbering (Monday to Sunday, week 1 holds the year's
first Thursday) read on the wall clock each timestamp carries; services pass
pantry-local times. Ordering late Sunday and again just after midnight Monday
is allowed. The week number is paired with the calendar year, not the ISO year.

All functions here are total: a blocked order is a result, not an error.
"""

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Optional, Tuple


@dataclass
class OrderEligibilityRecord:
    """Per-user ordering state, owned by the user record."""
    last_order_at: Optional[datetime] = None
    admin_override: bool = False


@dataclass
class EligibilityResult:
    allowed: bool
    next_eligible_date: Optional[date] = None


def week_key(moment: date) -> Tuple[int, int]:
    """(ISO week number, calendar year) of a moment on its own wall clock."""
    return moment.isocalendar()[1], moment.year


def next_week_start(moment: date) -> date:
    """The Monday strictly after the date of `moment`."""
    local_date = moment.date() if isinstance(moment, datetime) else moment
    days = (8 - local_date.isoweekday()) % 7 or 7
    return local_date + timedelta(days=days)


def can_place_order(record: OrderEligibilityRecord, now: datetime) -> EligibilityResult:
    if record.admin_override:
        return EligibilityResult(allowed=True)

    if record.last_order_at is None:
        return EligibilityResult(allowed=True)

    if week_key(record.last_order_at) != week_key(now):
        return EligibilityResult(allowed=True)

    return EligibilityResult(
        allowed=False,
        next_eligible_date=next_week_start(record.last_order_at),
    )


def record_order_placed(record: OrderEligibilityRecord, now: datetime) -> OrderEligibilityRecord:
    """Start a new cooldown window and consume any admin override. Call once per checkout."""
    record.last_order_at = now
    record.admin_override = False
    return record


def reset_weekly_limit(record: OrderEligibilityRecord) -> OrderEligibilityRecord:
    record.admin_override = True
    record.last_order_at = None
    return record
