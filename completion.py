"""
Course completion arithmetic.

A course's end date is the enrollment instant plus the course duration, where
the duration is free text like "6 months" or "3 weeks". Month and year steps
follow the calendar: the day of month is kept and clamped to the last valid
day of a shorter target month. Nothing here reads the clock; callers pass
`now` explicitly.
"""
import calendar
import re
from datetime import datetime, timedelta, UTC

from utils import safe_parse_datetime

DURATION_RE = re.compile(r'(\d+)\s*(day|week|month|year)', re.IGNORECASE)

STATUS_APPROVED = 'Approved'
STATUS_PENDING_APPROVAL = 'Pending Approval'
STATUS_IN_PROGRESS = 'In Progress'
STATUS_NOT_STARTED = 'Not Started'


def parse_duration(duration_text):
    """Return (magnitude, unit) from a duration string, or None if it does not parse."""
    if not isinstance(duration_text, str):
        return None
    m = DURATION_RE.search(duration_text)
    if not m:
        return None
    return int(m.group(1)), m.group(2).lower()


def _add_months(start, months):
    month_index = start.month - 1 + months
    year = start.year + month_index // 12
    month = month_index % 12 + 1
    day = min(start.day, calendar.monthrange(year, month)[1])
    return start.replace(year=year, month=month, day=day)


def compute_completion_date(enrolled_at, duration_text):
    """Completion instant for an enrollment, or None when it cannot be computed."""
    start = safe_parse_datetime(enrolled_at)
    parsed = parse_duration(duration_text)
    if start is None or parsed is None:
        return None
    value, unit = parsed
    try:
        if unit == 'day':
            return start + timedelta(days=value)
        if unit == 'week':
            return start + timedelta(weeks=value)
        if unit == 'month':
            return _add_months(start, value)
        return _add_months(start, value * 12)
    except (OverflowError, ValueError):
        # magnitude pushes past datetime.max
        return None


def is_completed(enrolled_at, duration_text, now):
    end = compute_completion_date(enrolled_at, duration_text)
    if end is None:
        return False
    current = safe_parse_datetime(now)
    if current is None:
        return False
    return current >= end


def course_status(enrolled_at, duration_text, approved, status, now):
    """Label shown to students for one enrollment."""
    completed = is_completed(enrolled_at, duration_text, now)
    if completed and approved:
        return STATUS_APPROVED
    if completed:
        return STATUS_PENDING_APPROVAL
    if status == 'active':
        return STATUS_IN_PROGRESS
    return STATUS_NOT_STARTED


def utcnow():
    return datetime.now(UTC)
