#!/usr/bin/env python3
"""
Script to create an admin account
"""
import sys
from pathlib import Path

app_dir = Path(__file__).parent
if str(app_dir) not in sys.path:
    sys.path.insert(0, str(app_dir))

from app import app, db  # noqa: E402
from models import Admin  # noqa: E402


def create_admin(username, email, password):
    """Create a new admin account. Returns the Admin, or None if one already exists."""
    with app.app_context():
        existing_admin = Admin.query.filter(
            (Admin.username == username) | (Admin.email == email)
        ).first()

        if existing_admin:
            print(f"Admin with username '{username}' or email '{email}' already exists!")
            return None

        admin = Admin(username=username, email=email, role='admin')
        admin.set_password(password)

        db.session.add(admin)
        db.session.commit()

        print("Admin account created successfully!")
        print(f"   Username: {username}")
        print(f"   Email: {email}")
        print(f"   Admin ID: {admin.admin_id}")
        return admin


if __name__ == '__main__':
    print("=" * 60)
    print("CREATE ADMIN ACCOUNT")
    print("=" * 60)

    username = input("Enter username (default: admin): ").strip() or "admin"
    email = input("Enter email (default: admin@procotech.example): ").strip() or "admin@procotech.example"
    password = input("Enter password: ").strip()
    if not password:
        print("A password is required.")
        sys.exit(1)

    print()
    sys.exit(0 if create_admin(username, email, password) else 1)
