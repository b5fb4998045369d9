from datetime import date, datetime, timezone, timedelta

import pytest

from modules.order.eligibility import (
    OrderEligibilityRecord, can_place_order, next_week_start,
    record_order_placed, reset_weekly_limit, week_key,
)


@pytest.mark.parametrize("now", [
    datetime(2025, 4, 14, 9, 0),
    datetime(2025, 12, 31, 23, 59),
    datetime(2026, 1, 1, 0, 0),
])
def test_no_previous_order_is_always_allowed(now):
    result = can_place_order(OrderEligibilityRecord(), now)
    assert result.allowed
    assert result.next_eligible_date is None


@pytest.mark.parametrize("last_order_at", [
    datetime(2025, 4, 14, 10, 0),
    datetime(2025, 4, 18, 8, 0),
])
def test_admin_override_always_allows(last_order_at):
    record = OrderEligibilityRecord(last_order_at=last_order_at, admin_override=True)
    assert can_place_order(record, datetime(2025, 4, 18, 12, 0)).allowed


def test_same_iso_week_is_blocked_until_next_monday():
    record = OrderEligibilityRecord(last_order_at=datetime(2025, 4, 14, 10, 0))
    result = can_place_order(record, datetime(2025, 4, 18, 12, 0))
    assert not result.allowed
    assert result.next_eligible_date == date(2025, 4, 21)


def test_next_iso_week_is_allowed():
    record = OrderEligibilityRecord(last_order_at=datetime(2025, 4, 14, 10, 0))
    assert can_place_order(record, datetime(2025, 4, 21, 0, 0)).allowed


def test_sunday_night_then_monday_morning_is_allowed():
    # A rolling 7-day cooldown would block this
    record = OrderEligibilityRecord(last_order_at=datetime(2025, 4, 20, 23, 59))
    assert can_place_order(record, datetime(2025, 4, 21, 0, 1)).allowed


def test_week_key_uses_iso_week_and_calendar_year():
    assert week_key(datetime(2025, 4, 14)) == (16, 2025)
    assert week_key(datetime(2025, 4, 20, 23, 59)) == (16, 2025)
    assert week_key(datetime(2025, 4, 21)) == (17, 2025)
    # 2024-12-30 falls in ISO week 1 of 2025 but calendar year 2024
    assert week_key(datetime(2024, 12, 30)) == (1, 2024)


def test_year_boundary_pairs_week_with_calendar_year():
    record = OrderEligibilityRecord(last_order_at=datetime(2024, 12, 30, 12, 0))
    assert can_place_order(record, datetime(2025, 1, 2, 12, 0)).allowed


@pytest.mark.parametrize("moment, expected", [
    (datetime(2025, 4, 14, 10, 0), date(2025, 4, 21)),   # Monday
    (datetime(2025, 4, 15, 10, 0), date(2025, 4, 21)),   # Tuesday
    (datetime(2025, 4, 19, 10, 0), date(2025, 4, 21)),   # Saturday
    (datetime(2025, 4, 20, 23, 59), date(2025, 4, 21)),  # Sunday
    (datetime(2025, 12, 31, 8, 0), date(2026, 1, 5)),
])
def test_next_week_start_is_strictly_after(moment, expected):
    assert next_week_start(moment) == expected


def test_timezone_aware_timestamps_use_their_own_wall_clock():
    central = timezone(timedelta(hours=-5))
    record = OrderEligibilityRecord(last_order_at=datetime(2025, 4, 20, 22, 0, tzinfo=central))
    assert can_place_order(record, datetime(2025, 4, 21, 8, 0, tzinfo=central)).allowed


def test_record_order_placed_sets_timestamp_and_consumes_override():
    record = OrderEligibilityRecord(admin_override=True)
    now = datetime(2025, 4, 16, 13, 0)
    record_order_placed(record, now)
    assert record.last_order_at == now
    assert record.admin_override is False
    assert not can_place_order(record, datetime(2025, 4, 17, 9, 0)).allowed


def test_reset_after_order_allows_again_same_week():
    record = OrderEligibilityRecord()
    record_order_placed(record, datetime(2025, 4, 14, 10, 0))
    assert not can_place_order(record, datetime(2025, 4, 14, 15, 0)).allowed

    reset_weekly_limit(record)
    assert record.admin_override is True
    assert record.last_order_at is None
    assert can_place_order(record, datetime(2025, 4, 14, 15, 0)).allowed

    # single use: the next order starts a fresh cooldown
    record_order_placed(record, datetime(2025, 4, 14, 16, 0))
    result = can_place_order(record, datetime(2025, 4, 15, 9, 0))
    assert not result.allowed
    assert result.next_eligible_date == date(2025, 4, 21)
