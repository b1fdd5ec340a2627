import uuid
from datetime import datetime, UTC

from flask_sqlalchemy import SQLAlchemy
from flask_login import UserMixin
from werkzeug.security import generate_password_hash, check_password_hash

db = SQLAlchemy()


def _new_id():
    return uuid.uuid4().hex


def _utcnow():
    # DateTime columns hold naive UTC
    return datetime.now(UTC).replace(tzinfo=None)


class Admin(UserMixin, db.Model):
    __tablename__ = 'admin'

    admin_id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(80), unique=True, nullable=False)
    email = db.Column(db.String(120), unique=True, nullable=False)
    password_hash = db.Column(db.String(255), nullable=False)
    role = db.Column(db.String(50), nullable=False, default='admin')

    def get_id(self):
        return str(self.admin_id)

    def set_password(self, password):
        self.password_hash = generate_password_hash(password)

    def check_password(self, password):
        return check_password_hash(self.password_hash, password)


class Student(UserMixin, db.Model):
    __tablename__ = 'student'

    student_id = db.Column(db.String(32), primary_key=True, default=_new_id)
    full_name = db.Column(db.String(255), nullable=False)
    email = db.Column(db.String(120), unique=True, nullable=False)
    phone = db.Column(db.String(30))
    password_hash = db.Column(db.String(255), nullable=False)
    status = db.Column(db.String(20), nullable=False, default='active')  # active / inactive
    created_at = db.Column(db.DateTime, default=_utcnow)
    updated_at = db.Column(db.DateTime, default=_utcnow, onupdate=_utcnow)

    def get_id(self):
        return self.student_id

    @property
    def is_active(self):
        return self.status == 'active'

    def set_password(self, password):
        self.password_hash = generate_password_hash(password)

    def check_password(self, password):
        return check_password_hash(self.password_hash, password)

    def to_dict(self):
        return {
            'student_id': self.student_id,
            'full_name': self.full_name,
            'email': self.email,
            'phone': self.phone,
            'status': self.status,
        }


class Course(db.Model):
    __tablename__ = 'course'

    course_id = db.Column(db.String(32), primary_key=True, default=_new_id)
    title = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text)
    # Free text such as "6 months" or "3 weeks"; see completion.parse_duration
    duration = db.Column(db.String(100))
    level = db.Column(db.String(50))
    status = db.Column(db.String(20), nullable=False, default='active')
    created_at = db.Column(db.DateTime, default=_utcnow)
    updated_at = db.Column(db.DateTime, default=_utcnow, onupdate=_utcnow)

    def to_dict(self):
        return {
            'course_id': self.course_id,
            'title': self.title,
            'description': self.description,
            'duration': self.duration,
            'level': self.level,
            'status': self.status,
        }


class Enrollment(db.Model):
    __tablename__ = 'enrollment'

    enrollment_id = db.Column(db.String(32), primary_key=True, default=_new_id)
    # Weak references: lookups only, no FK constraint
    student_id = db.Column(db.String(32), nullable=False, index=True)
    course_id = db.Column(db.String(32), nullable=False, index=True)
    enrolled_at = db.Column(db.DateTime, nullable=False, default=_utcnow)
    status = db.Column(db.String(20), nullable=False, default='active')  # active / completed / cancelled
    progress = db.Column(db.Integer, nullable=False, default=0)
    approved_for_certificate = db.Column(db.Boolean, nullable=False, default=False, index=True)
    certificate_id = db.Column(db.String(8), nullable=True)
    certificate_approved_at = db.Column(db.DateTime, nullable=True)
    certificate_approved_by = db.Column(db.String(120), nullable=True)

    def to_dict(self):
        return {
            'enrollment_id': self.enrollment_id,
            'student_id': self.student_id,
            'course_id': self.course_id,
            'enrolled_at': self.enrolled_at.isoformat() if self.enrolled_at else None,
            'status': self.status,
            'progress': self.progress,
            'approved_for_certificate': bool(self.approved_for_certificate),
            'certificate_id': self.certificate_id,
            'certificate_approved_at': self.certificate_approved_at.isoformat() if self.certificate_approved_at else None,
            'certificate_approved_by': self.certificate_approved_by,
        }


class CertificateAudit(db.Model):
    """Append-only history of approval transitions, one row per approve/revoke."""
    __tablename__ = 'certificate_audit'

    id = db.Column(db.Integer, primary_key=True)
    enrollment_id = db.Column(db.String(32), nullable=False, index=True)
    certificate_id = db.Column(db.String(8))
    action = db.Column(db.String(20), nullable=False)  # approved / revoked
    performed_by = db.Column(db.String(120))
    performed_at = db.Column(db.DateTime, nullable=False, default=_utcnow)

    def to_dict(self):
        return {
            'id': self.id,
            'enrollment_id': self.enrollment_id,
            'certificate_id': self.certificate_id,
            'action': self.action,
            'performed_by': self.performed_by,
            'performed_at': self.performed_at.isoformat() if self.performed_at else None,
        }
