from flask import Flask, session, jsonify
from flask_login import LoginManager
from flask_mail import Mail
import os
import logging

from models import db
from utils import register_jinja_filters
from database import normalize_database_url
from errors import PortalError
from routes import main_bp
from admin_routes import admin_bp


def _env_flag(name, default='0'):
    return os.environ.get(name, default).lower() in ('1', 'true', 'yes', 'on')


app = Flask(__name__, static_url_path='/static')
app.config['SECRET_KEY'] = os.environ.get('SECRET_KEY', 'change-this-secret-key')

# Database configuration
app.config['SQLALCHEMY_DATABASE_URI'] = normalize_database_url(os.environ.get('DATABASE_URL'))
app.config['SQLALCHEMY_TRACK_MODIFICATIONS'] = False
app.config['SQLALCHEMY_ENGINE_OPTIONS'] = {'pool_pre_ping': True}

logging.info('Using database: %s', app.config['SQLALCHEMY_DATABASE_URI'])

# Mail configuration (MailHog defaults for development)
app.config['MAIL_SERVER'] = os.environ.get('MAIL_SERVER', 'localhost')
app.config['MAIL_PORT'] = int(os.environ.get('MAIL_PORT', 1025))
app.config['MAIL_USE_TLS'] = _env_flag('MAIL_USE_TLS')
app.config['MAIL_USE_SSL'] = False
app.config['MAIL_DEFAULT_SENDER'] = os.environ.get('MAIL_DEFAULT_SENDER', 'noreply@procotech.example')
app.config['MAIL_ENABLED'] = _env_flag('MAIL_ENABLED')

# Certificate rendering
app.config['CERTIFICATE_ISSUER_NAME'] = os.environ.get('CERTIFICATE_ISSUER_NAME', 'ProCo Tech')
app.config['CERTIFICATE_LOGO_PATH'] = os.environ.get('CERTIFICATE_LOGO_PATH')
app.config['CERTIFICATE_LOGO_URL'] = os.environ.get('CERTIFICATE_LOGO_URL')
app.config['CERTIFICATE_TEMPLATE_PATH'] = os.environ.get('CERTIFICATE_TEMPLATE_PATH')
app.config['CERTIFICATE_FONT_PATH'] = os.environ.get('CERTIFICATE_FONT_PATH')

# Initialize extensions
register_jinja_filters(app)
db.init_app(app)
mail = Mail(app)
login_manager = LoginManager()
login_manager.init_app(app)
login_manager.login_view = 'main.login'

# Create database tables if they don't exist
with app.app_context():
    db.create_all()


@login_manager.user_loader
def load_user(user_id):
    """Resolve the session id to an Admin or Student using the stored user_type."""
    from models import Admin, Student
    user_type = session.get('user_type')
    if user_type == 'admin':
        try:
            return db.session.get(Admin, int(user_id))
        except (TypeError, ValueError):
            return None
    if user_type == 'student':
        return db.session.get(Student, user_id)
    return None


@app.errorhandler(PortalError)
def handle_portal_error(error):
    if error.status_code >= 500:
        logging.error('[ERROR] %s: %s', type(error).__name__, error.message)
    return jsonify({'success': False, 'error': error.message}), error.status_code


app.register_blueprint(main_bp)
app.register_blueprint(admin_bp)

if __name__ == '__main__':
    app.run(host='127.0.0.1', port=5050, debug=True)
