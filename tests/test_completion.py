from datetime import date, datetime, timedelta, UTC

import pytest

from completion import (
    parse_duration,
    compute_completion_date,
    is_completed,
    course_status,
    STATUS_APPROVED,
    STATUS_PENDING_APPROVAL,
    STATUS_IN_PROGRESS,
    STATUS_NOT_STARTED,
)


@pytest.mark.parametrize('text, expected', [
    ('6 months', (6, 'month')),
    ('3 Weeks', (3, 'week')),
    ('1 YEAR', (1, 'year')),
    ('45days', (45, 'day')),
    ('Approx. 2 months (weekends)', (2, 'month')),
    ('lifetime access', None),
    ('', None),
    (None, None),
])
def test_parse_duration(text, expected):
    assert parse_duration(text) == expected


def test_six_months_from_mid_january():
    end = compute_completion_date(datetime(2024, 1, 15, tzinfo=UTC), '6 months')
    assert end == datetime(2024, 7, 15, tzinfo=UTC)


def test_month_end_clamps_to_leap_day():
    end = compute_completion_date(datetime(2024, 1, 31, tzinfo=UTC), '1 month')
    assert end == datetime(2024, 2, 29, tzinfo=UTC)


def test_month_end_clamps_in_common_year():
    end = compute_completion_date(datetime(2023, 1, 31, tzinfo=UTC), '1 month')
    assert end.date() == date(2023, 2, 28)


def test_year_from_leap_day():
    end = compute_completion_date(datetime(2024, 2, 29, tzinfo=UTC), '1 year')
    assert end.date() == date(2025, 2, 28)


def test_months_roll_over_year_boundary():
    end = compute_completion_date(datetime(2024, 11, 30, 14, 30, tzinfo=UTC), '3 months')
    assert end == datetime(2025, 2, 28, 14, 30, tzinfo=UTC)


def test_weeks_and_days_are_fixed_offsets():
    start = datetime(2024, 3, 1, 10, 0, tzinfo=UTC)
    assert compute_completion_date(start, '2 weeks') == start + timedelta(days=14)
    assert compute_completion_date(start, '10 days') == start + timedelta(days=10)


def test_deterministic_repeated_calls():
    start = datetime(2024, 1, 15, tzinfo=UTC)
    results = {compute_completion_date(start, '6 months') for _ in range(5)}
    assert len(results) == 1


def test_naive_and_string_inputs_are_utc():
    expected = datetime(2024, 7, 15, 9, 0, tzinfo=UTC)
    assert compute_completion_date(datetime(2024, 1, 15, 9, 0), '6 months') == expected
    assert compute_completion_date('2024-01-15T09:00:00Z', '6 months') == expected
    assert compute_completion_date(date(2024, 1, 15), '6 months') == datetime(2024, 7, 15, tzinfo=UTC)


@pytest.mark.parametrize('enrolled_at', [None, '', 'not a date', object()])
def test_unparseable_start_yields_none(enrolled_at):
    assert compute_completion_date(enrolled_at, '6 months') is None


def test_unparseable_duration_never_completes():
    start = datetime(2020, 1, 1, tzinfo=UTC)
    assert compute_completion_date(start, 'lifetime access') is None
    assert is_completed(start, 'lifetime access', datetime(2099, 1, 1, tzinfo=UTC)) is False


def test_huge_magnitude_degrades_to_none():
    assert compute_completion_date(datetime(2024, 1, 1, tzinfo=UTC), '999999 years') is None


def test_completion_boundary_is_inclusive():
    start = datetime(2024, 1, 15, tzinfo=UTC)
    end = compute_completion_date(start, '6 months')
    assert is_completed(start, '6 months', end) is True
    assert is_completed(start, '6 months', end - timedelta(seconds=1)) is False


def test_course_status_labels():
    start = datetime(2024, 1, 15, tzinfo=UTC)
    after = datetime(2024, 8, 1, tzinfo=UTC)
    before = datetime(2024, 2, 1, tzinfo=UTC)
    assert course_status(start, '6 months', True, 'active', after) == STATUS_APPROVED
    assert course_status(start, '6 months', False, 'active', after) == STATUS_PENDING_APPROVAL
    assert course_status(start, '6 months', True, 'active', before) == STATUS_IN_PROGRESS
    assert course_status(start, '6 months', False, 'cancelled', before) == STATUS_NOT_STARTED
