"""
Shared helpers and Jinja filter registration for the portal.
"""
from typing import Optional, Any
from datetime import date, datetime, UTC
from functools import wraps

from flask import url_for, jsonify
from flask_login import current_user
from werkzeug.routing import BuildError

DISPLAY_DATE_FORMAT = '%B %d, %Y'
DISPLAY_TIMESTAMP_FORMAT = '%B %d, %Y at %H:%M UTC'


def safe_url_for(endpoint: str, **values) -> str:
    """Return a safe URL or '#' if the endpoint build fails."""
    try:
        return url_for(endpoint, **values)
    except BuildError:
        return '#'


def safe_parse_datetime(value: Any) -> Optional[datetime]:
    """Parse a timestamp to an aware UTC datetime, or None when absent/unparseable.

    Accepts datetime, date (midnight UTC), ISO-8601 strings and POSIX timestamps.
    Naive values are taken to be UTC.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime(value.year, value.month, value.day)
    elif isinstance(value, (int, float)):
        try:
            return datetime.fromtimestamp(value, UTC)
        except (OverflowError, OSError, ValueError):
            return None
    elif isinstance(value, str):
        v = value.strip()
        if not v:
            return None
        if v.endswith('Z'):
            v = v[:-1] + '+00:00'
        try:
            parsed = datetime.fromisoformat(v)
        except ValueError:
            return None
    else:
        return None
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=UTC)
    return parsed.astimezone(UTC)


def format_display_date(value) -> str:
    """Format a date/datetime for certificates and listings ('' when absent)."""
    if value is None:
        return ''
    if isinstance(value, datetime):
        value = value.date()
    return value.strftime(DISPLAY_DATE_FORMAT)


def format_display_timestamp(value) -> str:
    """Format an instant as date and UTC time ('' when absent)."""
    parsed = safe_parse_datetime(value)
    if parsed is None:
        return ''
    return parsed.strftime(DISPLAY_TIMESTAMP_FORMAT)


def to_naive_utc(value) -> Optional[datetime]:
    """Convert an instant to the naive UTC form stored in DateTime columns."""
    parsed = safe_parse_datetime(value)
    if parsed is None:
        return None
    return parsed.replace(tzinfo=None)


def is_admin(user=None) -> bool:
    if user is None:
        user = current_user
    if not user or not user.is_authenticated:
        return False
    # Import here to avoid circular imports
    from models import Admin
    return isinstance(user, Admin)


def admin_required(f):
    """Decorator to require an authenticated admin for a JSON route."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if not current_user.is_authenticated:
            return jsonify({'success': False, 'error': 'login_required'}), 401
        if not is_admin():
            return jsonify({'success': False, 'error': 'forbidden'}), 403
        return f(*args, **kwargs)
    return decorated_function


def student_required(f):
    """Decorator to require an authenticated student for a JSON route."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if not current_user.is_authenticated:
            return jsonify({'success': False, 'error': 'login_required'}), 401
        from models import Student
        if not isinstance(current_user, Student):
            return jsonify({'success': False, 'error': 'forbidden'}), 403
        return f(*args, **kwargs)
    return decorated_function


def register_jinja_filters(app) -> None:
    """Register common Jinja filters and globals on the provided Flask app.

    Adds: 'display_date' and 'display_timestamp' filters and `safe_url_for`, `is_admin` globals.
    """
    app.jinja_env.filters['display_date'] = format_display_date
    app.jinja_env.filters['display_timestamp'] = format_display_timestamp
    app.jinja_env.globals['safe_url_for'] = safe_url_for
    app.jinja_env.globals['is_admin'] = is_admin
