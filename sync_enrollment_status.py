"""
Backfill enrollment.status from the course calendar.

The stored status is not updated when a course's duration elapses; completion is
derived from enrolled_at + course duration. This script marks every `active`
enrollment whose completion date has passed as `completed`.

Usage: python sync_enrollment_status.py [--dry-run]
"""
import sys
from typing import Optional

from completion import is_completed, utcnow
from store import RecordStore


def sync_enrollment_status(now=None, store: Optional[RecordStore] = None, dry_run: bool = False) -> int:
    """Mark elapsed active enrollments completed; returns how many were (or would be) updated."""
    store = store or RecordStore()
    now = now or utcnow()
    courses = {}
    updated = 0
    for enrollment in store.find('enrollments', [('status', '==', 'active')]):
        if enrollment.course_id not in courses:
            courses[enrollment.course_id] = store.get('courses', enrollment.course_id)
        course = courses[enrollment.course_id]
        if course is None or not is_completed(enrollment.enrolled_at, course.duration, now):
            continue
        if not dry_run:
            store.put('enrollments', enrollment.enrollment_id, {'status': 'completed'})
        updated += 1
    return updated


def main(argv):
    from app import app
    dry_run = '--dry-run' in argv[1:]
    with app.app_context():
        count = sync_enrollment_status(dry_run=dry_run)
    verb = 'Would mark' if dry_run else 'Marked'
    print(f"{verb} {count} enrollment(s) as completed.")


if __name__ == '__main__':
    main(sys.argv)
