#!/usr/bin/env python3
"""
Create the default admin account, or reset its password if it already exists.

Usage: python create_admin.py [email] [password]
Defaults come from DEFAULT_ADMIN_EMAIL / DEFAULT_ADMIN_PASSWORD.
"""
import sys
import os

sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from inventory_api.core.config import get_settings
from inventory_api.core.database import Database
from inventory_api.core.roles import Role
from inventory_api.core.security import build_credential_service
from inventory_api.models.user import User
from inventory_api.services.seed import DEFAULT_ADMIN_NAME
from inventory_api.services.user_service import normalize_email


def create_admin(email: str, password: str) -> User:
    settings = get_settings()
    database = Database(settings)
    credentials = build_credential_service(settings)
    db = database.session()
    try:
        user = db.query(User).filter(User.email == email).first()
        if user:
            user.hashed_password = credentials.hash_password(password)
            user.role = Role.admin.value
            user.activate()
            print(f"Admin '{email}' password reset")
        else:
            user = User(
                email=email,
                hashed_password=credentials.hash_password(password),
                name=DEFAULT_ADMIN_NAME,
                role=Role.admin.value,
            )
            db.add(user)
            print(f"Admin '{email}' created")
        db.commit()
        db.refresh(user)
        return user
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()
        database.dispose()


if __name__ == "__main__":
    settings = get_settings()
    email = normalize_email(sys.argv[1] if len(sys.argv) > 1 else settings.default_admin_email)
    password = sys.argv[2] if len(sys.argv) > 2 else settings.default_admin_password
    create_admin(email, password)
