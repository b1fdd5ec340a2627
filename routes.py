from flask import Blueprint, render_template, request, redirect, url_for, flash, jsonify, session, current_app, send_file, abort, make_response
from flask_login import login_user, login_required, logout_user, current_user
from io import BytesIO
import logging

from models import Admin, Student
from store import RecordStore
from certificate import get_enrollments_with_approval, build_certificate_data
from generate_certificate import render_certificate_preview, export_certificate
from verification import verify_certificate, search_certificates_by_student, search_certificates_by_course
from utils import student_required, is_admin

main_bp = Blueprint('main', __name__)

NOT_APPROVED_MESSAGE = 'Certificate not yet approved by admin'


@main_bp.route('/')
def index():
    if current_user.is_authenticated:
        if isinstance(current_user, Admin):
            return redirect(url_for('admin.list_enrollments'))
        return redirect(url_for('main.student_enrollments'))
    return redirect(url_for('main.login'))


@main_bp.route('/login', methods=['GET', 'POST'])
def login():
    if request.method == 'POST':
        email = (request.form.get('email') or '').strip()
        password = request.form.get('password') or ''
        admin = Admin.query.filter_by(email=email).first()
        if admin and admin.check_password(password):
            login_user(admin)
            session['user_type'] = 'admin'
            session['user_id'] = admin.get_id()
            logging.info('[LOGIN] Admin %s signed in', admin.get_id())
            return redirect(url_for('admin.list_enrollments'))
        student = Student.query.filter_by(email=email.lower()).first()
        if student and student.check_password(password):
            if not student.is_active:
                flash('Your account is currently inactive. Please contact the administration.')
                return render_template('login.html'), 403
            login_user(student)
            session['user_type'] = 'student'
            session['user_id'] = student.get_id()
            logging.info('[LOGIN] Student %s signed in', student.get_id())
            return redirect(url_for('main.student_enrollments'))
        flash('Invalid email or password')
        return render_template('login.html'), 401
    return render_template('login.html')


@main_bp.route('/logout', methods=['POST', 'GET'])
@login_required
def logout():
    logout_user()
    session.clear()
    flash('You have been logged out.', 'info')
    return redirect(url_for('main.login'))


@main_bp.route('/api/student/enrollments')
@student_required
def student_enrollments():
    views = get_enrollments_with_approval(current_user.student_id)
    return jsonify({'success': True, 'enrollments': [v.to_dict() for v in views]})


def _approved_certificate_data(enrollment_id):
    """Load certificate data for the current user, enforcing ownership and approval."""
    enrollment = RecordStore().get('enrollments', enrollment_id)
    if enrollment is None:
        abort(404)
    owner = isinstance(current_user, Student) and current_user.student_id == enrollment.student_id
    if not (owner or is_admin()):
        abort(403)
    if not enrollment.approved_for_certificate:
        return None
    return build_certificate_data(enrollment_id)


@main_bp.route('/certificates/<enrollment_id>/preview')
@login_required
def preview_certificate(enrollment_id):
    data = _approved_certificate_data(enrollment_id)
    if data is None:
        return jsonify({'success': False, 'error': NOT_APPROVED_MESSAGE}), 403
    html = render_certificate_preview(
        data,
        issuer_name=current_app.config.get('CERTIFICATE_ISSUER_NAME', 'ProCo Tech'),
        logo_url=current_app.config.get('CERTIFICATE_LOGO_URL'),
    )
    response = make_response(html)
    response.headers['Content-Type'] = 'text/html; charset=utf-8'
    return response


@main_bp.route('/certificates/<enrollment_id>/download')
@login_required
def download_certificate(enrollment_id):
    data = _approved_certificate_data(enrollment_id)
    if data is None:
        return jsonify({'success': False, 'error': NOT_APPROVED_MESSAGE}), 403
    cert_file = export_certificate(
        data,
        issuer_name=current_app.config.get('CERTIFICATE_ISSUER_NAME', 'ProCo Tech'),
        logo_path=current_app.config.get('CERTIFICATE_LOGO_PATH'),
        template_path=current_app.config.get('CERTIFICATE_TEMPLATE_PATH'),
        font_path=current_app.config.get('CERTIFICATE_FONT_PATH'),
    )
    logging.info('[DOWNLOAD] enrollment=%s downloaded by %s', enrollment_id, current_user.get_id())
    return send_file(BytesIO(cert_file.content), mimetype=cert_file.mimetype,
                     as_attachment=True, download_name=cert_file.filename)


@main_bp.route('/api/verify-certificate', methods=['POST'])
def api_verify_certificate():
    payload = request.get_json(silent=True) or {}
    enrollment_id = payload.get('enrollment_id')
    if not enrollment_id or not isinstance(enrollment_id, str):
        return jsonify({'found': False, 'error': 'Invalid enrollment ID provided'}), 400
    result = verify_certificate(enrollment_id)
    if result is None:
        return jsonify({'found': False, 'error': 'Certificate not found'}), 404
    return jsonify({'found': True, 'data': result.to_dict()})


@main_bp.route('/api/certificates/search')
def api_search_certificates():
    student_query = request.args.get('student') or ''
    course_query = request.args.get('course') or ''
    if student_query.strip():
        results = search_certificates_by_student(student_query)
    elif course_query.strip():
        results = search_certificates_by_course(course_query)
    else:
        results = []
    return jsonify({'success': True, 'count': len(results), 'results': [r.to_dict() for r in results]})
