from app import app
from flask import url_for


def test_certificate_endpoints_exist():
    # Only checks the endpoints are registered and url_for can build them.
    with app.test_request_context():
        assert url_for('main.download_certificate', enrollment_id='abc') == '/certificates/abc/download'
        assert url_for('main.preview_certificate', enrollment_id='abc') == '/certificates/abc/preview'
        assert url_for('main.api_verify_certificate') == '/api/verify-certificate'
        assert url_for('admin.approve') == '/admin/certificates/approve'
        assert url_for('admin.revoke') == '/admin/certificates/revoke'


def test_login_page_renders(client):
    r = client.get('/login')
    assert r.status_code == 200
    assert b'password' in r.data
    assert client.get('/').status_code in (302, 303)
