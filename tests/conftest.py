import os
from datetime import datetime, timedelta, UTC
from types import SimpleNamespace

import pytest

# In-memory DB, configured before the app module is first imported
os.environ['DATABASE_URL'] = 'sqlite:///:memory:'
os.environ.pop('MAIL_ENABLED', None)

ADMIN_EMAIL = 'admin@procotech.example'
ADMIN_PASSWORD = 'admin-pass'
STUDENT_PASSWORD = 'pass123'


def login(client, email, password):
    return client.post('/login', data={'email': email, 'password': password}, follow_redirects=False)


def csrf_headers(client):
    r = client.get('/admin/csrf-token')
    assert r.status_code == 200
    return {'X-CSRFToken': r.get_json()['csrf_token']}


@pytest.fixture()
def flask_app():
    import importlib
    appmod = importlib.import_module('app')
    app = appmod.app
    app.config['TESTING'] = True
    app.config['MAIL_ENABLED'] = False
    with app.app_context():
        appmod.db.drop_all()
        appmod.db.create_all()
    yield app
    with app.app_context():
        appmod.db.session.remove()


@pytest.fixture()
def app_ctx(flask_app):
    with flask_app.app_context():
        yield flask_app


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def seeded(flask_app):
    """Seed an admin, students, courses and enrollments; returns their ids."""
    from models import db, Admin, Student, Course, Enrollment
    with flask_app.app_context():
        admin = Admin(username='admin', email=ADMIN_EMAIL)
        admin.set_password(ADMIN_PASSWORD)

        jane = Student(full_name='Jane Doe', email='jane@example.com')
        jane_s = Student(full_name='jane smith', email='jsmith@example.com')
        bob = Student(full_name='Bob Stone', email='bob@example.com')
        for s in (jane, jane_s, bob):
            s.set_password(STUDENT_PASSWORD)

        web = Course(title='Full Stack Web Dev!!', description='HTML, CSS, JavaScript and Python.', duration='6 months')
        python = Course(title='Python Basics', description=None, duration='3 Weeks')
        typing = Course(title='Typing Mastery', description='Speed typing.', duration='lifetime access')
        tally = Course(title='Tally Accounting', description='GST and ledgers.', duration='1 year')
        db.session.add_all([admin, jane, jane_s, bob, web, python, typing, tally])
        db.session.flush()

        jane_web = Enrollment(student_id=jane.student_id, course_id=web.course_id,
                              enrolled_at=datetime(2024, 1, 15, 9, 0))
        smith_python = Enrollment(student_id=jane_s.student_id, course_id=python.course_id,
                                  enrolled_at=datetime(2024, 3, 1, 10, 0))
        bob_typing = Enrollment(student_id=bob.student_id, course_id=typing.course_id,
                                enrolled_at=datetime(2024, 2, 1, 8, 0))
        jane_tally = Enrollment(student_id=jane.student_id, course_id=tally.course_id,
                                enrolled_at=datetime.now(UTC) - timedelta(days=1))
        db.session.add_all([jane_web, smith_python, bob_typing, jane_tally])
        db.session.commit()

        return SimpleNamespace(
            admin_id=admin.admin_id,
            jane=jane.student_id,
            jane_smith=jane_s.student_id,
            bob=bob.student_id,
            web=web.course_id,
            python=python.course_id,
            typing=typing.course_id,
            tally=tally.course_id,
            jane_web=jane_web.enrollment_id,
            smith_python=smith_python.enrollment_id,
            bob_typing=bob_typing.enrollment_id,
            jane_tally=jane_tally.enrollment_id,
        )
