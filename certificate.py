"""
Certificate approval logic for the portal.

Approval stamps an enrollment with a freshly generated certificate ID; revocation
clears it again. Re-approving always rotates the ID: the previous ID stops
verifying and survives only in the certificate_audits trail. The read-then-write
in approve/revoke is not guarded against concurrent admins; the last write wins.
"""
import logging
import random
from dataclasses import dataclass, asdict
from datetime import datetime
from typing import Optional

from completion import compute_completion_date, is_completed, course_status, utcnow
from errors import NotFound
from generate_certificate import CertificateData
from store import RecordStore
from utils import format_display_date, to_naive_utc

CERTIFICATE_PREFIX = 'PRC'
CERTIFICATE_DIGITS = 5
MAX_ID_ATTEMPTS = 5


def generate_certificate_id(rng=None) -> str:
    """Return PRC followed by a zero-padded random number in [0, 100000)."""
    rng = rng or random
    number = rng.randrange(10 ** CERTIFICATE_DIGITS)
    return f'{CERTIFICATE_PREFIX}{number:0{CERTIFICATE_DIGITS}d}'


def _unused_certificate_id(store, enrollment_id, rng=None) -> str:
    candidate = generate_certificate_id(rng)
    for _ in range(MAX_ID_ATTEMPTS - 1):
        holders = store.find('enrollments', [('certificate_id', '==', candidate)])
        if all(h.enrollment_id == enrollment_id for h in holders):
            return candidate
        logging.warning('[APPROVE] Certificate ID %s already issued, drawing another', candidate)
        candidate = generate_certificate_id(rng)
    return candidate


def find_enrollment(student_id, course_id, store=None):
    """Locate the enrollment for (student, course).

    Duplicates are not expected; when they exist the earliest enrollment wins.
    """
    store = store or RecordStore()
    matches = store.find(
        'enrollments',
        [('student_id', '==', student_id), ('course_id', '==', course_id)],
        order_by='enrolled_at',
    )
    if not matches:
        raise NotFound(f'No enrollment for student {student_id} in course {course_id}')
    if len(matches) > 1:
        logging.warning('[ENROLLMENT] %d enrollments for student=%s course=%s; using %s',
                        len(matches), student_id, course_id, matches[0].enrollment_id)
        matches.sort(key=lambda e: (e.enrolled_at, e.enrollment_id))
    return matches[0]


def _record_transition(store, enrollment_id, fields, audit) -> None:
    """Write the enrollment change and its audit row in one commit."""
    try:
        store.put('enrollments', enrollment_id, fields, commit=False)
        store.create('certificate_audits', dict(audit, enrollment_id=enrollment_id), commit=False)
        store.commit()
    except Exception:
        store.rollback()
        raise


def approve_certificate(student_id, course_id, approved_by, now=None, store=None, rng=None) -> str:
    """Approve the enrollment for a certificate and return the new certificate ID."""
    store = store or RecordStore()
    now = to_naive_utc(now or utcnow())
    enrollment = find_enrollment(student_id, course_id, store)
    previous = enrollment.certificate_id
    certificate_id = _unused_certificate_id(store, enrollment.enrollment_id, rng)
    _record_transition(store, enrollment.enrollment_id, {
        'approved_for_certificate': True,
        'certificate_id': certificate_id,
        'certificate_approved_at': now,
        'certificate_approved_by': approved_by,
    }, {
        'certificate_id': certificate_id,
        'action': 'approved',
        'performed_by': approved_by,
        'performed_at': now,
    })
    if previous:
        logging.info('[APPROVE] enrollment=%s certificate %s replaced by %s',
                     enrollment.enrollment_id, previous, certificate_id)
    logging.info('[APPROVE] enrollment=%s approved by %s as %s',
                 enrollment.enrollment_id, approved_by, certificate_id)
    return certificate_id


def revoke_certificate(student_id, course_id, revoked_by=None, now=None, store=None) -> None:
    store = store or RecordStore()
    enrollment = find_enrollment(student_id, course_id, store)
    previous = enrollment.certificate_id
    _record_transition(store, enrollment.enrollment_id, {
        'approved_for_certificate': False,
        'certificate_id': None,
        'certificate_approved_at': None,
        'certificate_approved_by': None,
    }, {
        'certificate_id': previous,
        'action': 'revoked',
        'performed_by': revoked_by,
        'performed_at': to_naive_utc(now or utcnow()),
    })
    logging.info('[REVOKE] enrollment=%s certificate=%s revoked by %s',
                 enrollment.enrollment_id, previous, revoked_by)


def certificate_history(enrollment_id, store=None):
    store = store or RecordStore()
    return store.find('certificate_audits', [('enrollment_id', '==', enrollment_id)], order_by='id')


def enroll_student(student_id, course_id, now=None, store=None) -> str:
    """Create an active enrollment for a student in a course and return its id."""
    store = store or RecordStore()
    if store.get('students', student_id) is None:
        raise NotFound(f'Student {student_id} not found')
    if store.get('courses', course_id) is None:
        raise NotFound(f'Course {course_id} not found')
    enrollment_id = store.create('enrollments', {
        'student_id': student_id,
        'course_id': course_id,
        'enrolled_at': to_naive_utc(now or utcnow()),
        'status': 'active',
        'progress': 0,
    })
    logging.info('[ENROLL] student=%s course=%s enrollment=%s', student_id, course_id, enrollment_id)
    return enrollment_id


@dataclass
class EnrollmentView:
    enrollment_id: str
    course_id: str
    course_title: Optional[str]
    course_duration: Optional[str]
    enrolled_at: Optional[datetime]
    status: str
    progress: int
    approved_for_certificate: bool
    certificate_id: Optional[str]
    certificate_approved_at: Optional[datetime]
    completion_date: Optional[datetime]
    is_completed: bool
    certificate_status: str

    def to_dict(self):
        data = asdict(self)
        for key in ('enrolled_at', 'certificate_approved_at', 'completion_date'):
            data[key] = data[key].isoformat() if data[key] else None
        return data


def get_enrollments_with_approval(student_id, now=None, store=None):
    """Enrollments of one student, newest first, with completion and approval state."""
    store = store or RecordStore()
    now = now or utcnow()
    views = []
    for enrollment in store.find('enrollments', [('student_id', '==', student_id)], order_by='-enrolled_at'):
        course = store.get('courses', enrollment.course_id)
        duration = course.duration if course else None
        approved = bool(enrollment.approved_for_certificate)
        views.append(EnrollmentView(
            enrollment_id=enrollment.enrollment_id,
            course_id=enrollment.course_id,
            course_title=course.title if course else None,
            course_duration=duration,
            enrolled_at=enrollment.enrolled_at,
            status=enrollment.status,
            progress=enrollment.progress,
            approved_for_certificate=approved,
            certificate_id=enrollment.certificate_id,
            certificate_approved_at=enrollment.certificate_approved_at,
            completion_date=compute_completion_date(enrollment.enrolled_at, duration),
            is_completed=is_completed(enrollment.enrolled_at, duration, now),
            certificate_status=course_status(enrollment.enrolled_at, duration, approved, enrollment.status, now),
        ))
    return views


def build_certificate_data(enrollment_id, store=None):
    """Assemble CertificateData for an enrollment from its student and course.

    Does not check approval; callers gate on approved_for_certificate first.
    """
    store = store or RecordStore()
    enrollment = store.get('enrollments', enrollment_id)
    if enrollment is None:
        raise NotFound(f'Enrollment {enrollment_id} not found')
    student = store.get('students', enrollment.student_id)
    course = store.get('courses', enrollment.course_id)
    if student is None or course is None:
        raise NotFound(f'Enrollment {enrollment_id} references a missing student or course')
    return CertificateData(
        student_name=student.full_name,
        course_title=course.title,
        course_description=course.description or '',
        completion_date=format_display_date(compute_completion_date(enrollment.enrolled_at, course.duration)),
        certificate_id=enrollment.certificate_id or '',
        course_duration=course.duration or None,
    )
