import logging

from flask import current_app
from flask_mail import Message


def send_certificate_approved_email(student, course, certificate_id) -> bool:
    """Tell a student their certificate was approved. Returns True when a mail was sent.

    Disabled unless MAIL_ENABLED is set. Failures are logged and never raised:
    the approval itself has already been stored.
    """
    if not current_app.config.get('MAIL_ENABLED'):
        return False
    if not student or not student.email:
        return False
    mail_ext = current_app.extensions.get('mail')
    if mail_ext is None:
        logging.warning('[MAIL] Flask-Mail is not initialised; skipping approval email')
        return False
    issuer = current_app.config.get('CERTIFICATE_ISSUER_NAME', 'ProCo Tech')
    title = course.title if course else 'your course'
    body = (
        f"Dear {student.full_name},\n\n"
        f"Your certificate for \"{title}\" has been approved.\n"
        f"Certificate ID: {certificate_id}\n\n"
        f"You can preview and download it from your student dashboard.\n\n"
        f"{issuer}"
    )
    try:
        msg = Message(subject=f'Certificate approved: {title}', recipients=[student.email], body=body)
        mail_ext.send(msg)
    except Exception:
        logging.exception('[MAIL] Failed sending approval email to %s', student.email)
        return False
    logging.info('[MAIL] Approval email sent to %s for %s', student.email, certificate_id)
    return True
