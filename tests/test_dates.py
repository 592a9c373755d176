"""Tests for due date display helpers."""
from datetime import datetime, timedelta, timezone

from taskboard.dates import (
    format_due_date,
    format_date_for_input,
    is_overdue,
    is_upcoming,
)

NOW = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)


def test_no_due_date():
    assert format_due_date(None) == ""
    assert not is_overdue(None)
    assert not is_upcoming(None)
    assert format_date_for_input(None) == ""


def test_format_due_date_buckets():
    assert format_due_date(NOW - timedelta(days=3), NOW) == "3 days overdue"
    assert format_due_date(NOW, NOW) == "Due today"
    assert format_due_date(NOW + timedelta(hours=20), NOW) == "Due tomorrow"
    assert format_due_date(NOW + timedelta(days=5), NOW) == "Due in 5 days"
    assert format_due_date(NOW + timedelta(days=30), NOW) == "Nov 18, 2026"


def test_is_overdue_compares_calendar_days():
    assert is_overdue(NOW - timedelta(days=1), NOW)
    assert not is_overdue(NOW.replace(hour=1), NOW)
    assert not is_overdue(NOW + timedelta(days=1), NOW)


def test_is_upcoming_window():
    assert is_upcoming(NOW + timedelta(days=2), NOW)
    assert not is_upcoming(NOW + timedelta(days=3), NOW)
    assert not is_upcoming(NOW - timedelta(days=1), NOW)


def test_naive_dates():
    due = datetime(2026, 10, 25, 12, 0)
    assert format_due_date(due, datetime(2026, 10, 20, 12, 0)) == "Due in 5 days"


def test_format_date_for_input():
    assert format_date_for_input(datetime(2026, 1, 5, 23, 59)) == "2026-01-05"
