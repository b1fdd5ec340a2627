"""
Public certificate verification.

Lookups only ever reveal approved enrollments: an enrollment that exists but
is not approved answers exactly like one that does not exist. Searches scan
every approved enrollment and filter in Python, which is fine for a few
thousand records.
"""
import logging
from dataclasses import dataclass, asdict
from typing import Optional

from completion import compute_completion_date
from store import RecordStore
from utils import format_display_date

UNKNOWN_STUDENT = 'Unknown Student'
NO_DESCRIPTION = 'No description available'
NOT_AVAILABLE = 'N/A'


@dataclass
class CertificateVerification:
    student_name: str
    course_title: str
    course_description: str
    enrollment_id: str
    student_id: str
    course_id: str
    certificate_id: str
    completion_date: str
    course_duration: str
    approved_for_certificate: bool = True
    certificate_approved_at: Optional[str] = None
    found: bool = True

    def to_dict(self):
        return asdict(self)


def _verification(enrollment, student, course):
    completion = compute_completion_date(enrollment.enrolled_at, course.duration)
    return CertificateVerification(
        student_name=student.full_name or UNKNOWN_STUDENT,
        course_title=course.title,
        course_description=course.description or NO_DESCRIPTION,
        enrollment_id=enrollment.enrollment_id,
        student_id=enrollment.student_id,
        course_id=enrollment.course_id,
        certificate_id=enrollment.certificate_id or NOT_AVAILABLE,
        completion_date=format_display_date(completion),
        course_duration=course.duration or NOT_AVAILABLE,
        approved_for_certificate=True,
        certificate_approved_at=format_display_date(enrollment.certificate_approved_at) or None,
    )


def verify_certificate(enrollment_id, store=None) -> Optional[CertificateVerification]:
    """Verify one certificate by enrollment id; None unless it exists, is approved and resolves."""
    store = store or RecordStore()
    if not isinstance(enrollment_id, str) or not enrollment_id.strip():
        return None
    enrollment = store.get('enrollments', enrollment_id.strip())
    if enrollment is None or not enrollment.approved_for_certificate:
        return None
    student = store.get('students', enrollment.student_id)
    course = store.get('courses', enrollment.course_id)
    if student is None or course is None:
        logging.warning('[VERIFY] enrollment=%s has a dangling student/course reference', enrollment.enrollment_id)
        return None
    return _verification(enrollment, student, course)


def _approved_enrollments(store):
    return store.find('enrollments', [('approved_for_certificate', '==', True)], order_by='enrolled_at')


def search_certificates_by_student(query, store=None):
    """Approved certificates whose student name contains `query`, case-insensitively."""
    store = store or RecordStore()
    if not query or not query.strip():
        return []
    needle = query.lower()
    results = []
    for enrollment in _approved_enrollments(store):
        student = store.get('students', enrollment.student_id)
        if student is None or needle not in (student.full_name or '').lower():
            continue
        course = store.get('courses', enrollment.course_id)
        if course is None:
            continue
        results.append(_verification(enrollment, student, course))
    logging.info('[VERIFY] student search %r matched %d certificate(s)', query, len(results))
    return results


def search_certificates_by_course(query, store=None):
    """Approved certificates whose course title contains `query`, case-insensitively."""
    store = store or RecordStore()
    if not query or not query.strip():
        return []
    needle = query.lower()
    results = []
    for enrollment in _approved_enrollments(store):
        course = store.get('courses', enrollment.course_id)
        if course is None or needle not in (course.title or '').lower():
            continue
        student = store.get('students', enrollment.student_id)
        if student is None:
            continue
        results.append(_verification(enrollment, student, course))
    logging.info('[VERIFY] course search %r matched %d certificate(s)', query, len(results))
    return results
