from flask import Blueprint, request, jsonify, session
from flask_login import current_user
import logging
import secrets

from werkzeug.security import generate_password_hash

from errors import InvalidInput
from store import RecordStore
from certificate import (
    approve_certificate,
    revoke_certificate,
    certificate_history,
    enroll_student,
    get_enrollments_with_approval,
)
from notifications import send_certificate_approved_email
from utils import admin_required

admin_bp = Blueprint('admin', __name__, url_prefix='/admin')


def _get_csrf_token() -> str:
    tok = session.get('csrf_token')
    if not tok:
        tok = secrets.token_urlsafe(32)
        session['csrf_token'] = tok
    return tok


def _csrf_ok() -> bool:
    header_token = request.headers.get('X-CSRFToken') or request.headers.get('X-CSRF-Token')
    return bool(header_token) and header_token == session.get('csrf_token')


def _payload():
    return request.get_json(silent=True) or {}


def _required(payload, *fields):
    values = []
    for field in fields:
        value = payload.get(field)
        if not isinstance(value, str) or not value.strip():
            raise InvalidInput(f'{field} is required')
        values.append(value.strip())
    return values


def _admin_identity():
    return getattr(current_user, 'email', None) or current_user.get_id()


@admin_bp.route('/csrf-token', methods=['GET'])
@admin_required
def csrf_token():
    return jsonify({'csrf_token': _get_csrf_token()})


@admin_bp.route('/certificates/approve', methods=['POST'])
@admin_required
def approve():
    if not _csrf_ok():
        return jsonify({'success': False, 'error': 'csrf_failed'}), 400
    student_id, course_id = _required(_payload(), 'student_id', 'course_id')
    certificate_id = approve_certificate(student_id, course_id, approved_by=_admin_identity())
    store = RecordStore()
    send_certificate_approved_email(store.get('students', student_id), store.get('courses', course_id), certificate_id)
    return jsonify({'success': True, 'certificate_id': certificate_id})


@admin_bp.route('/certificates/revoke', methods=['POST'])
@admin_required
def revoke():
    if not _csrf_ok():
        return jsonify({'success': False, 'error': 'csrf_failed'}), 400
    student_id, course_id = _required(_payload(), 'student_id', 'course_id')
    revoke_certificate(student_id, course_id, revoked_by=_admin_identity())
    return jsonify({'success': True})


@admin_bp.route('/certificates/<enrollment_id>/audit', methods=['GET'])
@admin_required
def audit(enrollment_id):
    rows = certificate_history(enrollment_id)
    return jsonify({'success': True, 'history': [r.to_dict() for r in rows]})


@admin_bp.route('/courses', methods=['POST'])
@admin_required
def create_course():
    if not _csrf_ok():
        return jsonify({'success': False, 'error': 'csrf_failed'}), 400
    payload = _payload()
    (title,) = _required(payload, 'title')
    course_id = RecordStore().create('courses', {
        'title': title,
        'description': payload.get('description'),
        'duration': payload.get('duration'),
        'level': payload.get('level'),
    })
    logging.info('[CREATE COURSE] %s (%s) by %s', title, course_id, _admin_identity())
    return jsonify({'success': True, 'course_id': course_id}), 201


@admin_bp.route('/students', methods=['POST'])
@admin_required
def create_student():
    """Provision a student account.

    The new account is only written to the store; the admin's own session is
    never touched, so the caller stays signed in as themselves.
    """
    if not _csrf_ok():
        return jsonify({'success': False, 'error': 'csrf_failed'}), 400
    payload = _payload()
    full_name, email, password = _required(payload, 'full_name', 'email', 'password')
    store = RecordStore()
    if store.find('students', [('email', '==', email.lower())]):
        return jsonify({'success': False, 'error': f'Email {email} is already registered'}), 409
    student_id = store.create('students', {
        'full_name': full_name,
        'email': email.lower(),
        'phone': payload.get('phone'),
        'password_hash': generate_password_hash(password),
        'status': 'active',
    })
    logging.info('[CREATE STUDENT] %s provisioned by %s', student_id, _admin_identity())
    return jsonify({'success': True, 'student_id': student_id}), 201


@admin_bp.route('/enrollments', methods=['POST'])
@admin_required
def create_enrollment():
    if not _csrf_ok():
        return jsonify({'success': False, 'error': 'csrf_failed'}), 400
    student_id, course_id = _required(_payload(), 'student_id', 'course_id')
    enrollment_id = enroll_student(student_id, course_id)
    return jsonify({'success': True, 'enrollment_id': enrollment_id}), 201


@admin_bp.route('/enrollments', methods=['GET'])
@admin_required
def list_enrollments():
    student_id = (request.args.get('student_id') or '').strip()
    if student_id:
        views = get_enrollments_with_approval(student_id)
        return jsonify({'success': True, 'enrollments': [v.to_dict() for v in views]})
    rows = RecordStore().find('enrollments', order_by='-enrolled_at')
    return jsonify({'success': True, 'enrollments': [r.to_dict() for r in rows]})
